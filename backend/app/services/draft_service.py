"""Request draft store.

A draft is the priced, not-yet-identified request held between form
submission and payment. There is exactly one draft per session handle, and
saving again overwrites it. Drafts live in the database so the payment step
survives reloads and restarts. A missing or expired draft fails closed.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import DraftNotFound, PaymentInProgress, PersistenceFailure, ValidationError
from app.models.draft import RequestDraft
from app.models.service_request import PaymentMethod, utcnow
from app.schemas.forms import PPAChangeForm, _ServiceFormBase
from app.services import pricing_service

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    return str(uuid.uuid4())


def _as_utc(ts: datetime) -> datetime:
    """SQLite hands timestamps back naive; they were written as UTC."""
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def _is_expired(draft: RequestDraft) -> bool:
    # A draft holding a paid charge stays until that charge is committed
    if draft.payment_reference:
        return False
    return _as_utc(draft.updated_at) < utcnow() - timedelta(hours=settings.DRAFT_TTL_HOURS)


def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Draft store failed to %s", action)
        raise PersistenceFailure() from exc


def _validate_form(form: _ServiceFormBase) -> pricing_service.Quote:
    if isinstance(form, PPAChangeForm) and form.letter_of_request is None:
        raise ValidationError("Letter of request required. Please upload your letter of request before proceeding.")

    quote = pricing_service.price(form.service_type, form.destination_region)
    if not quote.is_complete:
        raise ValidationError("Please select a state. You must select your preferred state to continue.")
    return quote


def save_draft(
    db: Session,
    session_id: Optional[str],
    form: _ServiceFormBase,
    user_id: Optional[str] = None,
) -> RequestDraft:
    """Validate and price ``form``, then store it as the session's only draft."""
    quote = _validate_form(form)

    form_data = form.model_dump(mode="json")
    if form.destination_field:
        form_data[form.destination_field] = pricing_service.canonical_region(form.destination_region)

    session_id = session_id or new_session_id()
    draft = db.query(RequestDraft).filter(RequestDraft.session_id == session_id).first()
    if draft is None:
        draft = RequestDraft(session_id=session_id)
        db.add(draft)
    elif draft.payment_reference:
        logger.warning(
            "Refusing to overwrite draft %s holding uncommitted gateway charge %s",
            session_id, draft.payment_reference,
        )
        raise PaymentInProgress()

    draft.user_id = user_id
    draft.service = form.service_type
    draft.amount = quote.amount
    draft.display_price = quote.display_price
    draft.form_data = form_data
    draft.customer_name = form.full_name
    draft.customer_email = form.email
    draft.customer_phone = form.contact_phone
    draft.payment_method = None
    draft.payment_reference = None
    draft.transfer_acknowledged_at = None
    draft.updated_at = utcnow()

    _commit(db, "save draft")
    db.refresh(draft)
    logger.info("Saved %s draft for session %s (%s)", form.service, session_id, quote.display_price)
    return draft


def load_draft(db: Session, session_id: Optional[str]) -> RequestDraft:
    """Return the session's draft, or raise DraftNotFound (missing or expired)."""
    if not session_id:
        raise DraftNotFound()

    draft = db.query(RequestDraft).filter(RequestDraft.session_id == session_id).first()
    if draft is None:
        raise DraftNotFound()

    if _is_expired(draft):
        logger.info("Draft for session %s expired", session_id)
        db.delete(draft)
        _commit(db, "drop expired draft")
        raise DraftNotFound("Your pending service request has expired. Please select a service again.")

    return draft


def attach_contact(
    db: Session,
    draft: RequestDraft,
    method: PaymentMethod,
    full_name: str,
    email: str,
    phone: Optional[str] = None,
) -> RequestDraft:
    """Record the payer's contact details and chosen payment path on the draft."""
    draft.customer_name = full_name
    draft.customer_email = email
    if phone:
        draft.customer_phone = phone
    draft.payment_method = method
    if method == PaymentMethod.bank_transfer:
        draft.transfer_acknowledged_at = utcnow()
    draft.updated_at = utcnow()
    _commit(db, "attach contact details")
    db.refresh(draft)
    return draft


def hold_gateway_reference(db: Session, draft: RequestDraft, transaction_id: str) -> None:
    """Keep a successful charge on the draft until the request is committed."""
    draft.payment_method = PaymentMethod.gateway
    draft.payment_reference = transaction_id
    draft.updated_at = utcnow()
    _commit(db, "hold gateway reference")


def clear_draft(db: Session, session_id: Optional[str]) -> bool:
    """Delete the session's draft. Returns False when there was none."""
    if not session_id:
        return False
    deleted = db.query(RequestDraft).filter(RequestDraft.session_id == session_id).delete()
    _commit(db, "clear draft")
    if deleted:
        logger.info("Cleared draft for session %s", session_id)
    return bool(deleted)


def abandon_draft(db: Session, session_id: Optional[str]) -> None:
    """Customer walks away before payment. Refused once a charge is held."""
    draft = load_draft(db, session_id)
    if draft.payment_reference:
        logger.warning("Refusing to abandon draft %s holding gateway charge %s", session_id, draft.payment_reference)
        raise PaymentInProgress()
    clear_draft(db, session_id)


def customer_info(draft: RequestDraft) -> dict:
    return {
        "full_name": draft.customer_name,
        "email": draft.customer_email,
        "phone": draft.customer_phone,
    }
