"""Pytest fixtures: SQLite database per test, fake payment gateway and request helpers."""
import time
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from app.config import settings
from app.database import Base, get_db
from app.dependencies import get_payment_gateway
from app.main import app
from app.services import checkout_service
from app.services.payment_gateway import GatewayResult, PaymentGateway

# Import all models so they register with Base.metadata
from app.models.service_request import ServiceRequest         # noqa: F401
from app.models.status_change import RequestStatusChange       # noqa: F401
from app.models.draft import RequestDraft                      # noqa: F401

SQLITE_URL = "sqlite:///./test.db"
ADMIN_EMAIL = "Admin@admin.com"
ADMIN_PASSWORD = "Admin@123"


class FakeGateway(PaymentGateway):
    """Deterministic gateway: approves unless told to decline or fail; records every charge."""

    def __init__(self):
        self.decline_reason = None
        self.error = None
        self.delay_seconds = 0.0
        self.charges = []

    def charge(self, request):
        self.charges.append(request)
        if self.delay_seconds:
            time.sleep(self.delay_seconds)
        if self.error:
            raise self.error
        if self.decline_reason:
            return GatewayResult(success=False, failure_reason=self.decline_reason)
        return GatewayResult(success=True, transaction_id=f"flw_test_{len(self.charges)}")


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session, closed after the test."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def gateway():
    return FakeGateway()


@pytest.fixture(scope="function")
def client(db_engine, gateway):
    """FastAPI TestClient with the database and gateway dependencies overridden."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def isolated_gateway_pool():
    """Give each test its own gateway worker pool and drain it, so late charges can't leak into the next test."""
    pool = ThreadPoolExecutor(max_workers=4, thread_name_prefix="gateway")
    with pytest.MonkeyPatch.context() as mp:
        mp.setattr(checkout_service, "_gateway_pool", pool)
        yield
    pool.shutdown(wait=True)


@pytest.fixture
def gateway_enabled():
    """Turn on the card/USSD gateway path next to bank transfer."""
    with pytest.MonkeyPatch.context() as mp:
        mp.setattr(settings, "PAYMENT_METHODS", "gateway,bank_transfer")
        yield


# ---------------------------------------------------------------------------
# Helpers: form payloads and API round trips
# ---------------------------------------------------------------------------
def direct_posting_form(preferred_state="FCT", **overrides) -> dict:
    form = {
        "service": "Direct Posting",
        "full_name": "Ada Obi",
        "state_code": "LA/24A/1234",
        "call_up_number": "NYSC/UNN/2024/123456",
        "phone_number": "+234 800 123 4567",
        "email": "ada.obi@example.com",
        "preferred_state": preferred_state,
        "preferred_lga": "Abuja Municipal",
        "reason": "Close to family",
    }
    form.update(overrides)
    return form


def relocation_form(desired_state="Oyo", **overrides) -> dict:
    form = {
        "service": "Relocation",
        "full_name": "Tunde Bello",
        "state_code": "KN/24B/5678",
        "call_up_number": "NYSC/OAU/2024/654321",
        "current_state": "Kano",
        "current_lga": "Nassarawa",
        "desired_state": desired_state,
        "desired_lga": "Ibadan North",
        "reason": "Medical grounds",
        "email": "tunde@example.com",
    }
    form.update(overrides)
    return form


def ppa_change_form(with_document=True, **overrides) -> dict:
    form = {
        "service": "PPA Change",
        "full_name": "Chioma Eze",
        "state_code": "EN/24A/9012",
        "call_up_number": "NYSC/UNILAG/2024/111222",
        "current_ppa": "Government Secondary School",
        "current_ppa_address": "12 School Road, Enugu",
        "desired_ppa": "Tech Company Ltd",
        "desired_ppa_address": "4 Innovation Way, Enugu",
        "reason": "Better use of skills",
        "email": "chioma@example.com",
    }
    if with_document:
        form["letter_of_request"] = {"name": "letter.pdf", "content_type": "application/pdf", "size": 120_000}
    form.update(overrides)
    return form


def session_headers(session_id: str) -> dict:
    return {"X-Session-Id": session_id}


def save_draft(client: TestClient, form: dict, session_id: str = None, user_id: str = None) -> dict:
    """Helper: PUT /api/drafts and return response JSON (carries session_id)."""
    body = {"form": form}
    if user_id:
        body["user_id"] = user_id
    resp = client.put("/api/drafts/", json=body, headers=session_headers(session_id) if session_id else {})
    assert resp.status_code == 200, resp.text
    return resp.json()


def pay_by_bank_transfer(client: TestClient, session_id: str, reference: str = "TXN123456789") -> dict:
    """Helper: confirm the transfer and report the reference; returns the committed request."""
    resp = client.post(
        "/api/payments/bank-transfer/confirm",
        json={"full_name": "Ada Obi", "email": "ada.obi@example.com"},
        headers=session_headers(session_id),
    )
    assert resp.status_code == 200, resp.text
    resp = client.post(
        "/api/payments/bank-transfer/reference",
        json={"reference": reference},
        headers=session_headers(session_id),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def submit_request(client: TestClient, form: dict, reference: str = "TXN123456789", user_id: str = None) -> dict:
    """Helper: draft + bank transfer in one go."""
    draft = save_draft(client, form, user_id=user_id)
    return pay_by_bank_transfer(client, draft["session_id"], reference)


def admin_headers(client: TestClient) -> dict:
    """Helper: log in as the configured admin and return the auth header."""
    resp = client.post("/api/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}
