"""Pydantic schemas for request drafts."""
from datetime import datetime
from typing import Optional, Any
from pydantic import BaseModel, Field

from app.models.service_request import PaymentMethod, ServiceType
from app.schemas.forms import ServiceForm


class DraftCreate(BaseModel):
    form: ServiceForm
    user_id: Optional[str] = Field(default=None, max_length=100)

    model_config = {"extra": "forbid"}


class DraftOut(BaseModel):
    session_id: str
    user_id: Optional[str] = None
    service: ServiceType
    amount: int
    display_price: str
    form_data: dict[str, Any]
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    transfer_acknowledged_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
