"""Admin API routes: login, review dashboard and approve/reject."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query

from app.config import settings
from app.dependencies import get_request_repository, require_admin
from app.errors import AuthenticationFailed
from app.schemas.admin import AdminLogin, AdminStatsOut, TokenOut
from app.schemas.service_request import ServiceRequestOut, StatusChangeOut
from app.services import admin_service, auth_service
from app.services.request_repository import RequestRepository

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/login", response_model=TokenOut)
def login(payload: AdminLogin):
    """Exchange the admin credentials for a bearer token."""
    if not auth_service.get_credential_verifier().verify(payload.email, payload.password):
        logger.warning("Failed admin login for %s", payload.email)
        raise AuthenticationFailed()
    token = auth_service.create_admin_token(payload.email.strip().lower())
    logger.info("Admin %s logged in", payload.email)
    return TokenOut(access_token=token, expires_in=settings.ADMIN_TOKEN_EXPIRE_MINUTES * 60)


@router.get("/requests", response_model=list[ServiceRequestOut])
def list_requests(
    search: Optional[str] = Query(None, description="Matches name, email, service or payment reference"),
    status: str = Query(admin_service.ALL),
    service: str = Query(admin_service.ALL),
    admin: str = Depends(require_admin),
    repository: RequestRepository = Depends(get_request_repository),
):
    """List requests newest first; search and filters combine with AND."""
    return admin_service.list_requests(repository, search=search, status=status, service=service)


@router.get("/requests/{request_id}", response_model=ServiceRequestOut)
def get_request(
    request_id: str,
    admin: str = Depends(require_admin),
    repository: RequestRepository = Depends(get_request_repository),
):
    return repository.get(request_id)


@router.get("/requests/{request_id}/history", response_model=list[StatusChangeOut])
def request_history(
    request_id: str,
    admin: str = Depends(require_admin),
    repository: RequestRepository = Depends(get_request_repository),
):
    """Status audit trail of a request, oldest first."""
    return repository.history(request_id)


@router.post("/requests/{request_id}/approve", response_model=ServiceRequestOut)
def approve_request(
    request_id: str,
    admin: str = Depends(require_admin),
    repository: RequestRepository = Depends(get_request_repository),
):
    """Approve a pending (or pending-verification) request."""
    return admin_service.approve(repository, request_id, actor=admin)


@router.post("/requests/{request_id}/reject", response_model=ServiceRequestOut)
def reject_request(
    request_id: str,
    admin: str = Depends(require_admin),
    repository: RequestRepository = Depends(get_request_repository),
):
    """Reject a pending (or pending-verification) request."""
    return admin_service.reject(repository, request_id, actor=admin)


@router.get("/stats", response_model=AdminStatsOut)
def dashboard_stats(
    admin: str = Depends(require_admin),
    repository: RequestRepository = Depends(get_request_repository),
):
    """Totals per status and revenue from approved requests."""
    return admin_service.dashboard_stats(repository.list_all())
