"""Request draft API routes: one draft per session handle (X-Session-Id)."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import SESSION_HEADER, get_session_id
from app.schemas.draft import DraftCreate, DraftOut
from app.services import draft_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.put("/", response_model=DraftOut)
def save_draft(
    payload: DraftCreate,
    response: Response,
    session_id: Optional[str] = Depends(get_session_id),
    db: Session = Depends(get_db),
):
    """Validate and price a service form, replacing the session's draft.

    A new session handle is issued when the request carries none; it is
    returned in the body and in the X-Session-Id header.
    """
    draft = draft_service.save_draft(db, session_id, payload.form, payload.user_id)
    response.headers[SESSION_HEADER] = draft.session_id
    return draft


@router.get("/", response_model=DraftOut)
def get_draft(session_id: Optional[str] = Depends(get_session_id), db: Session = Depends(get_db)):
    """Fetch the session's draft; 404 sends the caller back to service selection."""
    return draft_service.load_draft(db, session_id)


@router.delete("/", status_code=status.HTTP_204_NO_CONTENT)
def abandon_draft(session_id: Optional[str] = Depends(get_session_id), db: Session = Depends(get_db)):
    """Abandon the flow before payment. Nothing is committed."""
    draft_service.abandon_draft(db, session_id)
