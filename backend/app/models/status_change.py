"""RequestStatusChange ORM model: append-only audit trail of request statuses."""
import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey
from app.database import Base
from app.models.service_request import RequestStatus, enum_column, utcnow


class RequestStatusChange(Base):
    __tablename__ = "request_status_changes"

    change_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    request_id = Column(String(36), ForeignKey("service_requests.request_id"), nullable=False, index=True)
    from_status = enum_column(RequestStatus, nullable=True)  # None on commit
    to_status = enum_column(RequestStatus, nullable=False)
    actor = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
