"""Pydantic schemas for committed ServiceRequests."""
from datetime import datetime
from typing import Optional, Any
from pydantic import BaseModel

from app.models.service_request import PaymentMethod, RequestStatus, ServiceType


class ServiceRequestOut(BaseModel):
    request_id: str
    user_id: str
    service: ServiceType
    amount: int
    form_data: dict[str, Any]
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    payment_method: PaymentMethod
    payment_reference: str
    status: RequestStatus
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class StatusChangeOut(BaseModel):
    change_id: str
    request_id: str
    from_status: Optional[RequestStatus] = None
    to_status: RequestStatus
    actor: str
    created_at: datetime

    model_config = {"from_attributes": True}
