"""Shared FastAPI dependencies."""
from functools import lru_cache
import re
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.errors import AuthenticationFailed, ValidationError
from app.services import auth_service
from app.services.payment_gateway import PaymentGateway, build_gateway
from app.services.request_repository import RequestRepository, resolve_repository_class

SESSION_HEADER = "X-Session-Id"
# Issued handles are UUIDs; client-chosen ones must fit the same column
SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,36}$")

# Resolved once; an unknown REQUEST_STORE fails at import, not per request
RepositoryClass = resolve_repository_class(settings.REQUEST_STORE)

_bearer = HTTPBearer(auto_error=False)


def get_request_repository(db: Session = Depends(get_db)) -> RequestRepository:
    return RepositoryClass(db)


@lru_cache
def get_payment_gateway() -> PaymentGateway:
    return build_gateway()


def get_session_id(x_session_id: Optional[str] = Header(None, alias=SESSION_HEADER)) -> Optional[str]:
    """The draft handle sent by the client, if any."""
    if x_session_id is None or not x_session_id.strip():
        return None
    session_id = x_session_id.strip()
    if not SESSION_ID_PATTERN.match(session_id):
        raise ValidationError(f"Invalid {SESSION_HEADER}: use up to 36 letters, digits, '-' or '_'")
    return session_id


def require_admin(credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer)) -> str:
    """Return the admin's identity or raise 401."""
    if credentials is None:
        raise AuthenticationFailed("Admin authentication required")
    claims = auth_service.decode_admin_token(credentials.credentials)
    if claims is None:
        raise AuthenticationFailed("Invalid or expired admin token")
    return claims["sub"]
