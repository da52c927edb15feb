"""Admin authentication: pluggable credential verification + signed bearer tokens."""
import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

from jose import JWTError, jwt

from app.config import settings

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 120000
ADMIN_ROLE = "admin"


def hash_password(password: str, salt: Optional[bytes] = None, iterations: int = PBKDF2_ITERATIONS) -> str:
    """Return ``pbkdf2_sha256$<iterations>$<salt hex>$<digest hex>``."""
    if salt is None:
        salt = secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return f"pbkdf2_sha256${iterations}${salt.hex()}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        algorithm, iterations, salt_hex, digest_hex = encoded.split("$")
    except ValueError:
        logger.error("Malformed password hash")
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    candidate = hash_password(password, bytes.fromhex(salt_hex), int(iterations))
    return secrets.compare_digest(candidate.split("$")[-1], digest_hex)


class CredentialVerifier:
    def verify(self, email: str, password: str) -> bool:
        raise NotImplementedError


class StaticCredentialVerifier(CredentialVerifier):
    """A single configured admin account, compared by password hash."""

    def __init__(self, email: str, password_hash: str):
        self.email = email.strip().lower()
        self.password_hash = password_hash

    @classmethod
    def from_settings(cls) -> "StaticCredentialVerifier":
        password_hash = settings.ADMIN_PASSWORD_HASH or hash_password(settings.ADMIN_PASSWORD)
        if not settings.ADMIN_PASSWORD_HASH:
            logger.warning("ADMIN_PASSWORD_HASH not set; hashing the plain ADMIN_PASSWORD at startup")
        return cls(settings.ADMIN_EMAIL, password_hash)

    def verify(self, email: str, password: str) -> bool:
        email_ok = secrets.compare_digest(email.strip().lower().encode("utf-8"), self.email.encode("utf-8"))
        password_ok = verify_password(password, self.password_hash)
        return email_ok and password_ok


@lru_cache
def get_credential_verifier() -> CredentialVerifier:
    return StaticCredentialVerifier.from_settings()


def create_admin_token(subject: str, expires_minutes: Optional[int] = None) -> str:
    expire_delta = timedelta(minutes=expires_minutes or settings.ADMIN_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": subject,
        "role": ADMIN_ROLE,
        "exp": datetime.now(timezone.utc) + expire_delta,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_admin_token(token: str) -> Optional[dict]:
    """Return the claims of a valid admin token, or None."""
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    if claims.get("role") != ADMIN_ROLE or not claims.get("sub"):
        return None
    return claims
