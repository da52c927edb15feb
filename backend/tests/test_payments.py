"""Tests for the payment path selector.

Covers:
- Enabled payment paths (PAYMENT_METHODS) and 409 for a disabled path
- Gateway: success commits a pending request and clears the draft
- Gateway: decline / timeout keep the draft for a retry, commit nothing
- Gateway: a held charge is reused instead of charging twice
- Gateway: a timed-out charge never starts late; a late success is logged
- Gateway: a held charge cannot be overwritten, abandoned or expired
- Bank transfer: details → confirm (step A) → reference (step B)
- Bank transfer: empty reference and unconfirmed transfer are refused
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

from app.config import settings
from app.models.service_request import utcnow
from app.services import checkout_service, draft_service
from tests.conftest import (
    direct_posting_form,
    pay_by_bank_transfer,
    ppa_change_form,
    relocation_form,
    save_draft,
    session_headers,
)

GATEWAY_PAYER = {"full_name": "Ada Obi", "email": "ada.obi@example.com", "phone": "08012345678"}


def _requests_for(client, user_id):
    resp = client.get("/api/requests/", params={"user_id": user_id})
    assert resp.status_code == 200
    return resp.json()


class TestPaymentOptions:
    """GET /api/payments/options reflects PAYMENT_METHODS."""

    def test_default_is_bank_transfer_only(self, client):
        resp = client.get("/api/payments/options")
        assert resp.status_code == 200
        assert resp.json()["methods"] == ["bank_transfer"]

    def test_both_paths(self, client, gateway_enabled):
        assert client.get("/api/payments/options").json()["methods"] == ["gateway", "bank_transfer"]

    def test_unknown_method_ignored(self, client, monkeypatch):
        monkeypatch.setattr(settings, "PAYMENT_METHODS", "bank_transfer,paypal")
        assert client.get("/api/payments/options").json()["methods"] == ["bank_transfer"]

    def test_gateway_disabled(self, client, gateway):
        draft = save_draft(client, direct_posting_form())
        resp = client.post("/api/payments/gateway", json=GATEWAY_PAYER, headers=session_headers(draft["session_id"]))
        assert resp.status_code == 409
        assert gateway.charges == []

    def test_bank_transfer_disabled(self, client, monkeypatch):
        monkeypatch.setattr(settings, "PAYMENT_METHODS", "gateway")
        draft = save_draft(client, direct_posting_form())
        resp = client.get("/api/payments/bank-transfer", headers=session_headers(draft["session_id"]))
        assert resp.status_code == 409


class TestGatewayPayment:
    """POST /api/payments/gateway."""

    def test_success_commits_pending(self, client, gateway, gateway_enabled):
        draft = save_draft(client, direct_posting_form("Lagos"), user_id="payer-1")
        headers = session_headers(draft["session_id"])

        resp = client.post("/api/payments/gateway", json=GATEWAY_PAYER, headers=headers)
        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "pending"
        assert data["payment_method"] == "gateway"
        assert data["payment_reference"] == "flw_test_1"
        assert data["amount"] == 150000
        assert data["user_id"] == "payer-1"
        assert data["form_data"]["customer_info"]["phone"] == "08012345678"

        assert len(gateway.charges) == 1
        assert gateway.charges[0].amount == 150000
        assert gateway.charges[0].narrative == "Direct Posting"
        assert client.get("/api/drafts/", headers=headers).status_code == 404

    def test_decline_keeps_draft(self, client, gateway, gateway_enabled):
        draft = save_draft(client, relocation_form(), user_id="payer-2")
        headers = session_headers(draft["session_id"])
        gateway.decline_reason = "Insufficient funds"

        resp = client.post("/api/payments/gateway", json=GATEWAY_PAYER, headers=headers)
        assert resp.status_code == 402
        assert resp.json()["detail"] == "Insufficient funds"
        assert client.get("/api/drafts/", headers=headers).status_code == 200
        assert _requests_for(client, "payer-2") == []

        # Retry after the decline succeeds on the same draft
        gateway.decline_reason = None
        resp = client.post("/api/payments/gateway", json=GATEWAY_PAYER, headers=headers)
        assert resp.status_code == 201
        assert len(_requests_for(client, "payer-2")) == 1

    def test_timeout_is_a_decline(self, client, gateway, gateway_enabled, monkeypatch):
        monkeypatch.setattr(settings, "GATEWAY_TIMEOUT_SECONDS", 0.05)
        gateway.delay_seconds = 0.5
        draft = save_draft(client, direct_posting_form())
        headers = session_headers(draft["session_id"])

        resp = client.post("/api/payments/gateway", json=GATEWAY_PAYER, headers=headers)
        assert resp.status_code == 402
        assert "timed out" in resp.json()["detail"]
        assert client.get("/api/drafts/", headers=headers).status_code == 200

    def test_held_charge_not_repeated(self, client, db, gateway, gateway_enabled):
        draft = save_draft(client, ppa_change_form())
        stored = draft_service.load_draft(db, draft["session_id"])
        draft_service.hold_gateway_reference(db, stored, "flw_held_1")

        resp = client.post("/api/payments/gateway", json=GATEWAY_PAYER, headers=session_headers(draft["session_id"]))
        assert resp.status_code == 201
        assert resp.json()["payment_reference"] == "flw_held_1"
        assert resp.json()["amount"] == 30000
        assert gateway.charges == []

    def test_no_draft(self, client, gateway, gateway_enabled):
        resp = client.post("/api/payments/gateway", json=GATEWAY_PAYER, headers=session_headers("nothing"))
        assert resp.status_code == 404
        assert gateway.charges == []

    def test_payer_details_required(self, client, gateway_enabled):
        draft = save_draft(client, direct_posting_form())
        resp = client.post(
            "/api/payments/gateway",
            json={"full_name": "Ada Obi", "email": "ada.obi@example.com"},
            headers=session_headers(draft["session_id"]),
        )
        assert resp.status_code == 422


class TestGatewayTimeouts:
    """A timed-out charge must not reach the gateway later, and a late success is reported."""

    def test_queued_charge_cancelled(self, client, gateway, gateway_enabled, monkeypatch):
        busy_pool = ThreadPoolExecutor(max_workers=1)
        release = threading.Event()
        busy_pool.submit(release.wait, 5)
        monkeypatch.setattr(checkout_service, "_gateway_pool", busy_pool)
        monkeypatch.setattr(settings, "GATEWAY_TIMEOUT_SECONDS", 0.05)
        draft = save_draft(client, direct_posting_form(), user_id="queued-payer")
        headers = session_headers(draft["session_id"])

        resp = client.post("/api/payments/gateway", json=GATEWAY_PAYER, headers=headers)
        assert resp.status_code == 402
        assert resp.json()["detail"] == checkout_service.TIMEOUT_MESSAGE

        release.set()
        busy_pool.shutdown(wait=True)
        assert gateway.charges == []

        free_pool = ThreadPoolExecutor(max_workers=1)
        monkeypatch.setattr(checkout_service, "_gateway_pool", free_pool)
        try:
            resp = client.post("/api/payments/gateway", json=GATEWAY_PAYER, headers=headers)
        finally:
            free_pool.shutdown(wait=True)
        assert resp.status_code == 201
        assert len(gateway.charges) == 1
        assert len(_requests_for(client, "queued-payer")) == 1

    def test_late_success_logged(self, client, gateway, gateway_enabled, monkeypatch, caplog):
        pool = ThreadPoolExecutor(max_workers=1)
        monkeypatch.setattr(checkout_service, "_gateway_pool", pool)
        monkeypatch.setattr(settings, "GATEWAY_TIMEOUT_SECONDS", 0.05)
        gateway.delay_seconds = 0.3
        caplog.set_level(logging.WARNING, logger="app.services.checkout_service")
        draft = save_draft(client, direct_posting_form())

        resp = client.post("/api/payments/gateway", json=GATEWAY_PAYER, headers=session_headers(draft["session_id"]))
        assert resp.status_code == 402

        pool.shutdown(wait=True)
        late = [r for r in caplog.records if "flw_test_1" in r.getMessage()]
        assert len(late) == 1
        assert late[0].levelno == logging.WARNING

    def test_gateway_error_hidden_from_customer(self, client, gateway, gateway_enabled):
        gateway.error = RuntimeError("upstream 500: merchant key abc123 rejected")
        draft = save_draft(client, direct_posting_form())
        headers = session_headers(draft["session_id"])

        resp = client.post("/api/payments/gateway", json=GATEWAY_PAYER, headers=headers)
        assert resp.status_code == 402
        assert resp.json()["detail"] == checkout_service.FAILURE_MESSAGE
        assert "abc123" not in resp.text
        assert client.get("/api/drafts/", headers=headers).status_code == 200


class TestHeldCharge:
    """A draft holding a successful but uncommitted charge is protected until it is committed."""

    def _hold(self, client, db, reference="flw_paid_1"):
        draft = save_draft(client, direct_posting_form("Lagos"), user_id="held-payer")
        stored = draft_service.load_draft(db, draft["session_id"])
        draft_service.hold_gateway_reference(db, stored, reference)
        return draft["session_id"]

    def test_resave_refused(self, client, db, gateway, gateway_enabled):
        session_id = self._hold(client, db)

        resp = client.put(
            "/api/drafts/", json={"form": relocation_form("Kano")}, headers=session_headers(session_id),
        )
        assert resp.status_code == 409

        db.expire_all()
        stored = draft_service.load_draft(db, session_id)
        assert stored.payment_reference == "flw_paid_1"
        assert stored.amount == 150000

        resp = client.post("/api/payments/gateway", json=GATEWAY_PAYER, headers=session_headers(session_id))
        assert resp.status_code == 201
        assert resp.json()["payment_reference"] == "flw_paid_1"
        assert gateway.charges == []

    def test_abandon_refused(self, client, db, gateway_enabled):
        session_id = self._hold(client, db)

        resp = client.delete("/api/drafts/", headers=session_headers(session_id))
        assert resp.status_code == 409
        assert client.get("/api/drafts/", headers=session_headers(session_id)).status_code == 200

    def test_held_charge_outlives_ttl(self, client, db, gateway_enabled):
        session_id = self._hold(client, db)
        stored = draft_service.load_draft(db, session_id)
        stored.updated_at = utcnow() - timedelta(hours=48)
        db.commit()

        db.expire_all()
        assert draft_service.load_draft(db, session_id).payment_reference == "flw_paid_1"


class TestBankTransfer:
    """Bank transfer details, acknowledgement and reference submission."""

    def test_details(self, client):
        draft = save_draft(client, relocation_form("FCT"))
        resp = client.get("/api/payments/bank-transfer", headers=session_headers(draft["session_id"]))
        assert resp.status_code == 200
        data = resp.json()
        assert data["bank_name"] == "First Bank of Nigeria"
        assert data["account_number"] == "2034567890"
        assert data["service"] == "Relocation"
        assert data["amount"] == 150000
        assert data["display_price"] == "₦150,000"

    def test_details_without_draft(self, client):
        resp = client.get("/api/payments/bank-transfer")
        assert resp.status_code == 404
        assert resp.headers["Location"] == "/api/services"

    def test_confirm_records_contact(self, client):
        draft = save_draft(client, direct_posting_form())
        resp = client.post(
            "/api/payments/bank-transfer/confirm",
            json={"full_name": "Ada N. Obi", "email": "ada.n@example.com"},
            headers=session_headers(draft["session_id"]),
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["payment_method"] == "bank_transfer"
        assert data["transfer_acknowledged_at"] is not None
        assert data["customer_name"] == "Ada N. Obi"
        assert data["customer_email"] == "ada.n@example.com"

    def test_full_flow_commits_pending_verification(self, client):
        draft = save_draft(client, direct_posting_form("Kano"), user_id="transfer-user")
        request = pay_by_bank_transfer(client, draft["session_id"], reference="  FBN-0099  ")

        assert request["status"] == "pending_verification"
        assert request["payment_method"] == "bank_transfer"
        assert request["payment_reference"] == "FBN-0099"
        assert request["amount"] == 70000
        assert request["user_id"] == "transfer-user"
        assert request["version"] == 1
        assert request["form_data"]["customer_info"] == {
            "full_name": "Ada Obi",
            "email": "ada.obi@example.com",
            "phone": "+234 800 123 4567",
        }
        assert client.get("/api/drafts/", headers=session_headers(draft["session_id"])).status_code == 404

    def test_guest_user_id(self, client):
        draft = save_draft(client, relocation_form())
        request = pay_by_bank_transfer(client, draft["session_id"])
        assert request["user_id"].startswith("guest_")

    def test_empty_reference_refused(self, client):
        draft = save_draft(client, direct_posting_form())
        headers = session_headers(draft["session_id"])
        client.post(
            "/api/payments/bank-transfer/confirm",
            json={"full_name": "Ada Obi", "email": "ada.obi@example.com"},
            headers=headers,
        )
        for reference in ["", "   "]:
            resp = client.post("/api/payments/bank-transfer/reference", json={"reference": reference}, headers=headers)
            assert resp.status_code == 422
            assert "Transaction ID required" in resp.json()["detail"]
        assert client.get("/api/drafts/", headers=headers).status_code == 200

    def test_reference_before_confirm_refused(self, client):
        draft = save_draft(client, direct_posting_form(), user_id="hasty")
        resp = client.post(
            "/api/payments/bank-transfer/reference",
            json={"reference": "TXN1"},
            headers=session_headers(draft["session_id"]),
        )
        assert resp.status_code == 422
        assert _requests_for(client, "hasty") == []

    def test_resaving_draft_resets_acknowledgement(self, client):
        draft = save_draft(client, direct_posting_form())
        headers = session_headers(draft["session_id"])
        client.post(
            "/api/payments/bank-transfer/confirm",
            json={"full_name": "Ada Obi", "email": "ada.obi@example.com"},
            headers=headers,
        )
        save_draft(client, direct_posting_form("Lagos"), session_id=draft["session_id"])

        resp = client.post("/api/payments/bank-transfer/reference", json={"reference": "TXN1"}, headers=headers)
        assert resp.status_code == 422

    def test_reference_without_draft(self, client):
        resp = client.post(
            "/api/payments/bank-transfer/reference",
            json={"reference": "TXN1"},
            headers=session_headers("gone"),
        )
        assert resp.status_code == 404

    def test_second_submission_has_no_draft(self, client):
        draft = save_draft(client, direct_posting_form())
        pay_by_bank_transfer(client, draft["session_id"])
        resp = client.post(
            "/api/payments/bank-transfer/reference",
            json={"reference": "TXN123456789"},
            headers=session_headers(draft["session_id"]),
        )
        assert resp.status_code == 404
