"""Domain errors raised by the service layer.

Each error is an ``HTTPException`` so FastAPI renders it as ``{"detail": ...}``
without extra handlers, and services can raise them the same way they raise
plain ``HTTPException``.
"""
from typing import Any, Optional

from fastapi import HTTPException, status


class ValidationError(HTTPException):
    """Missing required field, empty transaction reference, unselected destination."""

    def __init__(self, detail: Any):
        super().__init__(status_code=422, detail=detail)


class GatewayDeclined(HTTPException):
    """The payment attempt failed. The draft is kept so the customer can retry."""

    def __init__(self, reason: str):
        super().__init__(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=reason)


class NotFound(HTTPException):
    def __init__(self, detail: str, headers: Optional[dict[str, str]] = None):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail, headers=headers)


class DraftNotFound(NotFound):
    """No in-flight draft for this session: send the caller back to service selection."""

    def __init__(self, detail: str = "No pending service request. Please select a service first."):
        super().__init__(detail=detail, headers={"Location": "/api/services"})


class InvalidTransition(HTTPException):
    def __init__(self, current: str, target: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot move request from '{current}' to '{target}'",
        )


class ConcurrentModification(HTTPException):
    def __init__(self, request_id: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Request {request_id} was modified concurrently. Re-fetch and retry.",
        )


class PaymentMethodUnavailable(HTTPException):
    def __init__(self, method: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Payment method '{method}' is not available",
        )


class PaymentInProgress(HTTPException):
    """The draft holds a successful gateway charge that has not been committed yet."""

    def __init__(self, detail: str = "Your payment was received. Please complete the payment step to submit your request."):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class PersistenceFailure(HTTPException):
    """The store is unreachable or the write failed. Nothing was committed; retry."""

    def __init__(self, detail: str = "Could not save your request. Please try again."):
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)


class AuthenticationFailed(HTTPException):
    def __init__(self, detail: str = "Invalid credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )
