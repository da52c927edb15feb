"""Customer-facing request history routes.

These routes identify the customer by ``user_id`` only and return contact
details. Deployments without an auth layer in front of the API should set
CUSTOMER_HISTORY_ENABLED=false.
"""
from fastapi import APIRouter, Depends, Query

from app.config import settings
from app.dependencies import get_request_repository
from app.errors import NotFound
from app.schemas.service_request import ServiceRequestOut
from app.services.request_repository import RequestRepository

router = APIRouter()


def require_history_enabled() -> None:
    if not settings.CUSTOMER_HISTORY_ENABLED:
        raise NotFound("Request history is not available")


@router.get("/", response_model=list[ServiceRequestOut], dependencies=[Depends(require_history_enabled)])
def list_user_requests(
    user_id: str = Query(..., min_length=1),
    repository: RequestRepository = Depends(get_request_repository),
):
    """A user's requests, newest first."""
    return repository.list_for_user(user_id)


@router.get("/{request_id}", response_model=ServiceRequestOut, dependencies=[Depends(require_history_enabled)])
def get_request(request_id: str, repository: RequestRepository = Depends(get_request_repository)):
    """Fetch a single committed request by ID."""
    return repository.get(request_id)
