"""Request persistence gateway.

Responsibilities:
- Commit finalized requests (assigns id + timestamps, writes the audit entry)
- Newest-first listing for the admin dashboard and the customer history
- Status writes checked against the lifecycle state machine
- Atomic per-record status updates via compare-and-swap on ``version``
- Translating store failures into PersistenceFailure

Callers depend on ``RequestRepository`` only. The concrete class is chosen
once at startup from ``settings.REQUEST_STORE``.
"""
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.errors import ConcurrentModification, NotFound, PersistenceFailure
from app.models.service_request import PaymentMethod, RequestStatus, ServiceRequest, utcnow
from app.models.status_change import RequestStatusChange
from app.services import lifecycle

logger = logging.getLogger(__name__)


class RequestRepository(ABC):
    @abstractmethod
    def commit(self, request: ServiceRequest, actor: str) -> str:
        """Persist a new request and return its id."""

    @abstractmethod
    def get(self, request_id: str) -> ServiceRequest:
        """Fetch a request by id or raise NotFound."""

    @abstractmethod
    def find_by_payment(self, method: PaymentMethod, reference: str) -> Optional[ServiceRequest]:
        """The request already committed for this payment, if any."""

    @abstractmethod
    def list_all(self) -> list[ServiceRequest]:
        """All requests, most recently created first."""

    @abstractmethod
    def list_for_user(self, user_id: str) -> list[ServiceRequest]:
        """A single user's requests, most recently created first."""

    @abstractmethod
    def set_status(self, request_id: str, new_status: RequestStatus, actor: str) -> ServiceRequest:
        """Move a request to ``new_status``. Repeating the current status is a no-op."""

    @abstractmethod
    def history(self, request_id: str) -> list[RequestStatusChange]:
        """Audit trail of a request, oldest first."""


class SqlRequestRepository(RequestRepository):
    """SQLAlchemy-backed repository; one instance per database session."""

    def __init__(self, db: Session, max_attempts: int = 3):
        self.db = db
        self.max_attempts = max_attempts

    def commit(self, request: ServiceRequest, actor: str) -> str:
        now = utcnow()
        request.request_id = request.request_id or str(uuid.uuid4())
        request.version = 1
        request.created_at = now
        request.updated_at = now
        try:
            self.db.add(request)
            self.db.flush()
            self.db.add(RequestStatusChange(
                request_id=request.request_id,
                from_status=None,
                to_status=request.status,
                actor=actor,
                created_at=now,
            ))
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Failed to commit %s request for user %s", request.service, request.user_id)
            raise PersistenceFailure() from exc

        self.db.refresh(request)
        logger.info(
            "Committed request %s (%s, %s, status=%s)",
            request.request_id, request.service.value, request.payment_method.value, request.status.value,
        )
        return request.request_id

    def get(self, request_id: str) -> ServiceRequest:
        request = self.db.query(ServiceRequest).filter(ServiceRequest.request_id == request_id).first()
        if not request:
            raise NotFound(f"Service request {request_id} not found")
        return request

    def find_by_payment(self, method: PaymentMethod, reference: str) -> Optional[ServiceRequest]:
        return (
            self.db.query(ServiceRequest)
            .filter(ServiceRequest.payment_method == method, ServiceRequest.payment_reference == reference)
            .first()
        )

    def list_all(self) -> list[ServiceRequest]:
        return (
            self.db.query(ServiceRequest)
            .order_by(ServiceRequest.created_at.desc(), ServiceRequest.seq.desc())
            .all()
        )

    def list_for_user(self, user_id: str) -> list[ServiceRequest]:
        return (
            self.db.query(ServiceRequest)
            .filter(ServiceRequest.user_id == user_id)
            .order_by(ServiceRequest.created_at.desc(), ServiceRequest.seq.desc())
            .all()
        )

    def set_status(self, request_id: str, new_status: RequestStatus, actor: str) -> ServiceRequest:
        for attempt in range(1, self.max_attempts + 1):
            request = self.get(request_id)
            if request.status == new_status:
                logger.info("Request %s already %s; nothing to do", request_id, new_status.value)
                return request

            lifecycle.ensure_transition(request.status, new_status)

            seen_version = request.version
            previous = request.status
            now = utcnow()
            try:
                updated = (
                    self.db.query(ServiceRequest)
                    .filter(
                        ServiceRequest.request_id == request_id,
                        ServiceRequest.version == seen_version,
                    )
                    .update(
                        {
                            ServiceRequest.status: new_status,
                            ServiceRequest.updated_at: now,
                            ServiceRequest.version: seen_version + 1,
                        },
                        synchronize_session=False,
                    )
                )
                if updated == 0:
                    # Someone else wrote first: re-read and decide again
                    self.db.rollback()
                    logger.warning(
                        "Version conflict on request %s (attempt %d/%d)", request_id, attempt, self.max_attempts,
                    )
                    continue

                self.db.add(RequestStatusChange(
                    request_id=request_id,
                    from_status=previous,
                    to_status=new_status,
                    actor=actor,
                    created_at=now,
                ))
                self.db.commit()
            except SQLAlchemyError as exc:
                self.db.rollback()
                logger.exception("Failed to update status of request %s", request_id)
                raise PersistenceFailure("Could not update the request. Please try again.") from exc

            self.db.refresh(request)
            logger.info("Request %s moved %s -> %s by %s", request_id, previous.value, new_status.value, actor)
            return request

        raise ConcurrentModification(request_id)

    def history(self, request_id: str) -> list[RequestStatusChange]:
        self.get(request_id)
        return (
            self.db.query(RequestStatusChange)
            .filter(RequestStatusChange.request_id == request_id)
            .order_by(RequestStatusChange.created_at)
            .all()
        )


REPOSITORIES: dict[str, type[RequestRepository]] = {
    "sql": SqlRequestRepository,
}


def resolve_repository_class(name: str) -> type[RequestRepository]:
    try:
        return REPOSITORIES[name]
    except KeyError:
        raise RuntimeError(f"Unknown REQUEST_STORE {name!r}; expected one of {sorted(REPOSITORIES)}")
