"""Admin review surface: search, filters, dashboard counters and dispositions.

Reads and writes go through the request repository only.
"""
import logging
from collections import Counter
from typing import Iterable, Optional

from app.errors import ValidationError
from app.models.service_request import RequestStatus, ServiceRequest, ServiceType
from app.services.request_repository import RequestRepository

logger = logging.getLogger(__name__)

ALL = "all"


def _parse_filter(value: Optional[str], enum_cls, label: str):
    if value is None or value == "" or value == ALL:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join([ALL] + [m.value for m in enum_cls])
        raise ValidationError(f"Invalid {label} filter {value!r}; expected one of: {allowed}")


def matches_search(request: ServiceRequest, term: str) -> bool:
    """Case-insensitive substring match over name, email, service and payment reference."""
    needle = term.strip().casefold()
    if not needle:
        return True
    haystack = (
        request.customer_name,
        request.customer_email,
        request.service.value,
        request.payment_reference,
    )
    return any(needle in field.casefold() for field in haystack if field)


def filter_requests(
    requests: Iterable[ServiceRequest],
    search: Optional[str] = None,
    status: Optional[str] = ALL,
    service: Optional[str] = ALL,
) -> list[ServiceRequest]:
    status_filter = _parse_filter(status, RequestStatus, "status")
    service_filter = _parse_filter(service, ServiceType, "service")
    return [
        r for r in requests
        if (not search or matches_search(r, search))
        and (status_filter is None or r.status == status_filter)
        and (service_filter is None or r.service == service_filter)
    ]


def list_requests(
    repository: RequestRepository,
    search: Optional[str] = None,
    status: Optional[str] = ALL,
    service: Optional[str] = ALL,
) -> list[ServiceRequest]:
    """Newest-first requests matching every given criterion."""
    return filter_requests(repository.list_all(), search=search, status=status, service=service)


def dashboard_stats(requests: Iterable[ServiceRequest]) -> dict[str, int]:
    """Total, per-status counts, and revenue (approved requests only)."""
    requests = list(requests)
    by_status = Counter(r.status for r in requests)
    return {
        "total": len(requests),
        **{s.value: by_status.get(s, 0) for s in RequestStatus},
        "revenue": sum(r.amount for r in requests if r.status == RequestStatus.approved),
    }


def approve(repository: RequestRepository, request_id: str, actor: str) -> ServiceRequest:
    request = repository.set_status(request_id, RequestStatus.approved, actor)
    logger.info("Admin %s approved request %s", actor, request_id)
    return request


def reject(repository: RequestRepository, request_id: str, actor: str) -> ServiceRequest:
    request = repository.set_status(request_id, RequestStatus.rejected, actor)
    logger.info("Admin %s rejected request %s", actor, request_id)
    return request
