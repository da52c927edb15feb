"""Payment API routes: gateway charge or two-step bank transfer."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_payment_gateway, get_request_repository, get_session_id
from app.schemas.draft import DraftOut
from app.schemas.payment import (
    BankTransferConfirmIn,
    BankTransferDetailsOut,
    GatewayPaymentIn,
    PaymentOptionsOut,
    TransactionReferenceIn,
)
from app.schemas.service_request import ServiceRequestOut
from app.services import checkout_service
from app.services.payment_gateway import PaymentGateway
from app.services.request_repository import RequestRepository

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/options", response_model=PaymentOptionsOut)
def payment_options():
    """Payment paths currently enabled."""
    return PaymentOptionsOut(methods=[m.value for m in checkout_service.enabled_methods()])


@router.post("/gateway", response_model=ServiceRequestOut, status_code=status.HTTP_201_CREATED)
def pay_with_gateway(
    payload: GatewayPaymentIn,
    session_id: Optional[str] = Depends(get_session_id),
    db: Session = Depends(get_db),
    repository: RequestRepository = Depends(get_request_repository),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """Charge the draft through the gateway; success commits a pending request."""
    return checkout_service.pay_with_gateway(
        db=db,
        repository=repository,
        gateway=gateway,
        session_id=session_id,
        full_name=payload.full_name,
        email=payload.email,
        phone=payload.phone,
    )


@router.get("/bank-transfer", response_model=BankTransferDetailsOut)
def bank_transfer_details(session_id: Optional[str] = Depends(get_session_id), db: Session = Depends(get_db)):
    """Remittance account and the exact amount to transfer."""
    return checkout_service.transfer_instructions(db, session_id)


@router.post("/bank-transfer/confirm", response_model=DraftOut)
def confirm_bank_transfer(
    payload: BankTransferConfirmIn,
    session_id: Optional[str] = Depends(get_session_id),
    db: Session = Depends(get_db),
):
    """Customer affirms the transfer was sent (step A)."""
    return checkout_service.acknowledge_transfer(db, session_id, payload.full_name, payload.email)


@router.post("/bank-transfer/reference", response_model=ServiceRequestOut, status_code=status.HTTP_201_CREATED)
def submit_transaction_reference(
    payload: TransactionReferenceIn,
    session_id: Optional[str] = Depends(get_session_id),
    db: Session = Depends(get_db),
    repository: RequestRepository = Depends(get_request_repository),
):
    """Customer reports the transfer reference (step B); commits a request awaiting verification."""
    return checkout_service.submit_transfer_reference(db, repository, session_id, payload.reference)
