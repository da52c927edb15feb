"""ServiceRequest ORM model: a committed, paid-for (or payment-acknowledged) request."""
import uuid
import enum
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, Integer, JSON, Enum as SAEnum
from app.database import Base


class ServiceType(str, enum.Enum):
    direct_posting = "Direct Posting"
    relocation = "Relocation"
    ppa_change = "PPA Change"


class PaymentMethod(str, enum.Enum):
    gateway = "gateway"
    bank_transfer = "bank_transfer"


class RequestStatus(str, enum.Enum):
    pending = "pending"
    pending_verification = "pending_verification"
    approved = "approved"
    rejected = "rejected"


def _values(enum_cls):
    return [member.value for member in enum_cls]


def enum_column(enum_cls, **kwargs):
    """Enum column stored as its value in a plain VARCHAR."""
    return Column(
        SAEnum(enum_cls, values_callable=_values, native_enum=False, length=30),
        **kwargs,
    )


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ServiceRequest(Base):
    __tablename__ = "service_requests"

    # Insertion order; breaks ties between requests created in the same instant
    seq = Column(Integer, primary_key=True, autoincrement=True)
    request_id = Column(String(36), unique=True, nullable=False, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(100), nullable=False, index=True)
    service = enum_column(ServiceType, nullable=False)
    amount = Column(Integer, nullable=False)
    form_data = Column(JSON, nullable=False)
    customer_name = Column(String(200), nullable=True)
    customer_email = Column(String(255), nullable=True)
    customer_phone = Column(String(50), nullable=True)
    payment_method = enum_column(PaymentMethod, nullable=False)
    payment_reference = Column(String(255), nullable=False)
    status = enum_column(RequestStatus, nullable=False)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
