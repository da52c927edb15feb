"""RequestDraft ORM model: one priced, not-yet-committed request per session handle."""
from sqlalchemy import Column, String, DateTime, Integer, JSON
from app.database import Base
from app.models.service_request import PaymentMethod, ServiceType, enum_column, utcnow


class RequestDraft(Base):
    __tablename__ = "request_drafts"

    session_id = Column(String(36), primary_key=True)
    user_id = Column(String(100), nullable=True)
    service = enum_column(ServiceType, nullable=False)
    amount = Column(Integer, nullable=False)
    display_price = Column(String(50), nullable=False)
    form_data = Column(JSON, nullable=False)
    customer_name = Column(String(200), nullable=True)
    customer_email = Column(String(255), nullable=True)
    customer_phone = Column(String(50), nullable=True)
    payment_method = enum_column(PaymentMethod, nullable=True)
    # Gateway transaction id held when a charge succeeded but the commit did not
    payment_reference = Column(String(255), nullable=True)
    transfer_acknowledged_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
