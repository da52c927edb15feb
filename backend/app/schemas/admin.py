"""Pydantic schemas for the admin surface."""
from pydantic import BaseModel


class AdminLogin(BaseModel):
    email: str
    password: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class AdminStatsOut(BaseModel):
    total: int
    pending: int
    pending_verification: int
    approved: int
    rejected: int
    revenue: int
