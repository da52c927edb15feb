"""Pydantic schemas for the service catalog."""
from typing import Optional
from pydantic import BaseModel

from app.models.service_request import ServiceType


class ServiceOut(BaseModel):
    service: ServiceType
    description: str
    min_amount: int
    max_amount: int
    price_label: str
    requires_document: bool


class RegionOut(BaseModel):
    name: str
    tier: str  # premium | standard


class QuoteOut(BaseModel):
    service: ServiceType
    region: Optional[str] = None
    amount: int
    display_price: str
