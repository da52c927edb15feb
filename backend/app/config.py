"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATABASE_URL: str = "sqlite:///./nysc_services.db"
    CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    # Persistence backend for committed requests, resolved once at startup
    REQUEST_STORE: str = "sql"

    # Customer history is looked up by user_id alone; guest ids (guest_<ms>) are guessable.
    # Turn off wherever the API is reachable without an auth layer in front of it.
    CUSTOMER_HISTORY_ENABLED: bool = True

    # Pricing (whole naira)
    PREMIUM_FEE: int = 150000
    STANDARD_FEE: int = 70000
    PPA_CHANGE_FEE: int = 30000

    # Drafts
    DRAFT_TTL_HOURS: int = 24
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024
    ALLOWED_UPLOAD_TYPES: str = "image/jpeg,image/png,image/jpg,application/pdf"

    # Payments: comma-separated subset of "gateway,bank_transfer"
    PAYMENT_METHODS: str = "bank_transfer"
    GATEWAY_TIMEOUT_SECONDS: float = 10.0
    GATEWAY_LATENCY_SECONDS: float = 3.0
    GATEWAY_DECLINE_RATE: float = 0.1

    BANK_NAME: str = "First Bank of Nigeria"
    BANK_ACCOUNT_NAME: str = "NYSC Platform Services"
    BANK_ACCOUNT_NUMBER: str = "2034567890"
    BANK_SORT_CODE: str = "011151003"

    # Admin
    ADMIN_EMAIL: str = "Admin@admin.com"
    ADMIN_PASSWORD: str = "Admin@123"  # replace with ADMIN_PASSWORD_HASH in any real deployment
    ADMIN_PASSWORD_HASH: str = ""  # pbkdf2_sha256$<iterations>$<salt hex>$<digest hex>
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ADMIN_TOKEN_EXPIRE_MINUTES: int = 480

    class Config:
        env_file = ".env"

    @property
    def enabled_payment_methods(self) -> list[str]:
        return [m.strip() for m in self.PAYMENT_METHODS.split(",") if m.strip()]

    @property
    def allowed_upload_types(self) -> set[str]:
        return {t.strip().lower() for t in self.ALLOWED_UPLOAD_TYPES.split(",") if t.strip()}


settings = Settings()
