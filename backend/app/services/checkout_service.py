"""Payment path selector: turns a draft into a committed ServiceRequest.

Two mutually exclusive paths, enabled by ``settings.PAYMENT_METHODS``:

- gateway: synchronous charge under a hard timeout. A success commits a
  ``pending`` request. A decline or timeout keeps the draft for a retry.
- bank_transfer: the customer sees static remittance details, affirms the
  transfer (contact details attached to the draft), then self-reports a
  transaction reference. That commits a ``pending_verification`` request.

A draft is only cleared after its request is committed.
"""
import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.errors import GatewayDeclined, PaymentMethodUnavailable, PersistenceFailure, ValidationError
from app.models.draft import RequestDraft
from app.models.service_request import PaymentMethod, ServiceRequest
from app.services import draft_service, lifecycle
from app.services.payment_gateway import GatewayRequest, GatewayResult, PaymentGateway
from app.services.request_repository import RequestRepository

logger = logging.getLogger(__name__)

# Shared pool for gateway calls; a timed-out call keeps running here, detached from the request
_gateway_pool = ThreadPoolExecutor(max_workers=4, thread_name_prefix="gateway")


def enabled_methods() -> list[PaymentMethod]:
    methods = []
    for name in settings.enabled_payment_methods:
        try:
            methods.append(PaymentMethod(name))
        except ValueError:
            logger.warning("Ignoring unknown payment method %r in PAYMENT_METHODS", name)
    return methods


def _require_enabled(method: PaymentMethod) -> None:
    if method not in enabled_methods():
        raise PaymentMethodUnavailable(method.value)


def bank_details() -> dict[str, str]:
    return {
        "bank_name": settings.BANK_NAME,
        "account_name": settings.BANK_ACCOUNT_NAME,
        "account_number": settings.BANK_ACCOUNT_NUMBER,
        "sort_code": settings.BANK_SORT_CODE,
    }


def guest_user_id() -> str:
    return f"guest_{int(time.time() * 1000)}"


TIMEOUT_MESSAGE = "Payment timed out. Please try again."
FAILURE_MESSAGE = "Payment could not be processed. Please try again."


def _report_late_charge(request: GatewayRequest):
    """Done-callback for a charge that was still running when the customer was told it timed out."""

    def _callback(future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.warning("Timed-out gateway charge of %d later failed: %s", request.amount, error)
            return
        result = future.result()
        if result.success:
            logger.warning(
                "Timed-out gateway charge of %d for %s later succeeded as %s; needs reconciliation",
                request.amount, request.customer_email, result.transaction_id,
            )
        else:
            logger.info("Timed-out gateway charge of %d later declined: %s", request.amount, result.failure_reason)

    return _callback


def _charge_with_timeout(gateway: PaymentGateway, request: GatewayRequest, timeout: float) -> GatewayResult:
    """Run the charge on a worker thread; every outcome is a definite result.

    A timed-out charge that has not started yet is cancelled so it never
    reaches the gateway. One already in flight cannot be stopped; its late
    outcome is logged for reconciliation.
    """
    future = _gateway_pool.submit(gateway.charge, request)
    try:
        return future.result(timeout=timeout)
    except FutureTimeout:
        if future.cancel():
            logger.warning("Gateway charge of %d cancelled before it started (waited %.2fs)", request.amount, timeout)
        else:
            logger.warning("Gateway charge of %d timed out after %.2fs", request.amount, timeout)
            future.add_done_callback(_report_late_charge(request))
        return GatewayResult(success=False, failure_reason=TIMEOUT_MESSAGE)
    except Exception:
        logger.exception("Gateway charge of %d failed", request.amount)
        return GatewayResult(success=False, failure_reason=FAILURE_MESSAGE)


def _finalize(
    db: Session,
    repository: RequestRepository,
    draft: RequestDraft,
    method: PaymentMethod,
    reference: str,
) -> ServiceRequest:
    """Commit the draft as a ServiceRequest, then clear the draft."""
    contact = draft_service.customer_info(draft)
    request = ServiceRequest(
        user_id=draft.user_id or guest_user_id(),
        service=draft.service,
        amount=draft.amount,
        form_data={**draft.form_data, "customer_info": contact},
        customer_name=contact["full_name"],
        customer_email=contact["email"],
        customer_phone=contact["phone"],
        payment_method=method,
        payment_reference=reference,
        status=lifecycle.initial_status(method),
    )
    session_id = draft.session_id
    repository.commit(request, actor=request.user_id)

    try:
        draft_service.clear_draft(db, session_id)
    except PersistenceFailure:
        # The request is already committed. A leftover transfer draft expires; a leftover
        # gateway draft resolves to this request on the next payment attempt.
        logger.warning("Request %s committed but draft %s could not be cleared", request.request_id, session_id)
    return request


def pay_with_gateway(
    db: Session,
    repository: RequestRepository,
    gateway: PaymentGateway,
    session_id: Optional[str],
    full_name: str,
    email: str,
    phone: str,
) -> ServiceRequest:
    """Charge the draft amount through the gateway and commit a ``pending`` request."""
    _require_enabled(PaymentMethod.gateway)
    draft = draft_service.load_draft(db, session_id)
    if draft.amount <= 0:
        raise ValidationError("Invalid service data. Please select a service first.")

    draft = draft_service.attach_contact(db, draft, PaymentMethod.gateway, full_name, email, phone)

    if draft.payment_reference:
        committed = repository.find_by_payment(PaymentMethod.gateway, draft.payment_reference)
        if committed is not None:
            # Committed earlier but the draft outlived it
            logger.info("Charge %s already committed as %s", draft.payment_reference, committed.request_id)
            draft_service.clear_draft(db, session_id)
            return committed
        # A previous charge succeeded but its commit did not; don't charge twice
        logger.info("Reusing held gateway charge %s for session %s", draft.payment_reference, session_id)
        return _finalize(db, repository, draft, PaymentMethod.gateway, draft.payment_reference)

    result = _charge_with_timeout(
        gateway,
        GatewayRequest(
            amount=draft.amount,
            customer_email=email,
            customer_phone=phone,
            customer_name=full_name,
            narrative=draft.service.value,
        ),
        settings.GATEWAY_TIMEOUT_SECONDS,
    )
    if not result.success:
        logger.warning("Gateway declined session %s: %s", session_id, result.failure_reason)
        raise GatewayDeclined(result.failure_reason or "Payment failed")

    draft_service.hold_gateway_reference(db, draft, result.transaction_id)
    return _finalize(db, repository, draft, PaymentMethod.gateway, result.transaction_id)


def transfer_instructions(db: Session, session_id: Optional[str]) -> dict:
    """Remittance details plus the exact amount to send."""
    _require_enabled(PaymentMethod.bank_transfer)
    draft = draft_service.load_draft(db, session_id)
    return {
        **bank_details(),
        "service": draft.service,
        "amount": draft.amount,
        "display_price": draft.display_price,
    }


def acknowledge_transfer(db: Session, session_id: Optional[str], full_name: str, email: str) -> RequestDraft:
    """Step A: the customer says the money was sent; keep their contact details."""
    _require_enabled(PaymentMethod.bank_transfer)
    draft = draft_service.load_draft(db, session_id)
    draft = draft_service.attach_contact(db, draft, PaymentMethod.bank_transfer, full_name, email)
    logger.info("Bank transfer acknowledged for session %s (%s)", session_id, draft.display_price)
    return draft


def submit_transfer_reference(
    db: Session,
    repository: RequestRepository,
    session_id: Optional[str],
    reference: str,
) -> ServiceRequest:
    """Step B: commit a ``pending_verification`` request carrying the customer's reference."""
    _require_enabled(PaymentMethod.bank_transfer)
    reference = (reference or "").strip()
    if not reference:
        raise ValidationError("Transaction ID required. Please enter your transaction ID or reference number.")

    draft = draft_service.load_draft(db, session_id)
    if draft.payment_method != PaymentMethod.bank_transfer or draft.transfer_acknowledged_at is None:
        raise ValidationError("Please confirm that you have sent the transfer before submitting a reference.")

    return _finalize(db, repository, draft, PaymentMethod.bank_transfer, reference)
