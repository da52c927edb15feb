"""FastAPI application entry point."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.config import settings
from app.database import Base, engine

# Import routers
from app.routers import catalog, drafts, payments, requests, admin

# Import all models so Base.metadata knows about them
from app.models.service_request import ServiceRequest       # noqa: F401
from app.models.status_change import RequestStatusChange     # noqa: F401
from app.models.draft import RequestDraft                    # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(
    title="NYSC Services",
    description="Direct posting, relocation and PPA change requests: intake, payment and admin review",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Session-Id"],
)

# Register routers
app.include_router(catalog.router, prefix="/api/services", tags=["Services"])
app.include_router(drafts.router, prefix="/api/drafts", tags=["Drafts"])
app.include_router(payments.router, prefix="/api/payments", tags=["Payments"])
app.include_router(requests.router, prefix="/api/requests", tags=["Requests"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
