"""Pydantic schemas for the payment step."""
from pydantic import BaseModel, Field

from app.models.service_request import ServiceType
from app.schemas.forms import EMAIL_PATTERN


class GatewayPaymentIn(BaseModel):
    full_name: str = Field(min_length=1, max_length=200)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    phone: str = Field(min_length=1, max_length=50)

    model_config = {"str_strip_whitespace": True}


class BankTransferConfirmIn(BaseModel):
    full_name: str = Field(min_length=1, max_length=200)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)

    model_config = {"str_strip_whitespace": True}


class TransactionReferenceIn(BaseModel):
    reference: str = Field(max_length=255)  # trimmed and checked for emptiness by the service


class PaymentOptionsOut(BaseModel):
    methods: list[str]


class BankTransferDetailsOut(BaseModel):
    bank_name: str
    account_name: str
    account_number: str
    sort_code: str
    service: ServiceType
    amount: int
    display_price: str
