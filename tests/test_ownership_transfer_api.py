# tests/test_ownership_transfer_api.py
"""HTTP-level tests for /api/ownership-transfer: auth, error envelope and the full workflow."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import timedelta
from unittest.mock import MagicMock, patch
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from taxtron.main import app
from taxtron.database import get_db
from taxtron.dependencies.auth import create_access_token
from taxtron.models.inspection import Inspection
from conftest import auth_header, admin_header

BASE = "/api/ownership-transfer"


@pytest.fixture
def client(db):
    return TestClient(app)


def initiate(client, owner, vehicle, cnic="11111-2222222-3", **extra):
    body = {"vehicleId": vehicle.inspection_id, "recipientCnic": cnic, **extra}
    return client.post(f"{BASE}/initiate", json=body, headers=auth_header(owner.id))


class TestAuth:
    def test_missing_token(self, client, vehicle):
        resp = client.get(f"{BASE}/search-vehicle/ABC123")
        assert resp.status_code == 401
        assert resp.json() == {"success": False, "message": "Access denied. No token provided."}

    def test_garbage_token(self, client, vehicle):
        resp = client.get(f"{BASE}/search-vehicle/ABC123", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401
        assert resp.json()["success"] is False

    def test_expired_token(self, client, owner, vehicle):
        token = create_access_token({"userId": owner.id}, expires_delta=timedelta(minutes=-5))
        resp = client.get(f"{BASE}/search-vehicle/ABC123", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json()["message"] == "Token has expired"

    def test_user_token_rejected_on_admin_routes(self, client, owner):
        resp = client.get(f"{BASE}/admin/pending-transfers", headers=auth_header(owner.id))
        assert resp.status_code == 401

    def test_search_history_is_public(self, client, vehicle):
        resp = client.get(f"{BASE}/search-history/ABC123")
        assert resp.status_code == 404
        assert resp.json()["success"] is False


class TestSearchEndpoints:
    def test_search_vehicle(self, client, owner, vehicle):
        resp = client.get(f"{BASE}/search-vehicle/ABC123", headers=auth_header(owner.id))
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["vehicle"]["inspectionId"] == vehicle.inspection_id
        assert data["vehicle"]["currentOwner"]["cnic"] == "35202-1234567-8"
        assert "existingTransfer" not in data

    def test_search_vehicle_shows_existing_transfer(self, client, owner, recipient, vehicle):
        initiate(client, owner, vehicle)
        data = client.get(f"{BASE}/search-vehicle/ABC123", headers=auth_header(owner.id)).json()
        assert data["existingTransfer"]["status"] == "pending_admin_approval"
        assert data["existingTransfer"]["initiatedBy"] is True
        assert data["existingTransfer"]["toOwner"]["userId"] == recipient.id

    def test_search_vehicle_unpaid_is_402(self, client, owner, make_vehicle):
        make_vehicle(owner, chassis_number="UNPAID", is_paid=False)
        resp = client.get(f"{BASE}/search-vehicle/UNPAID", headers=auth_header(owner.id))
        assert resp.status_code == 402
        assert resp.json()["message"] == "Registration fee must be paid before transfer"

    def test_search_user(self, client, owner, recipient):
        resp = client.get(f"{BASE}/search-user/1111122222223", headers=auth_header(owner.id))
        assert resp.status_code == 200
        assert resp.json()["user"] == {
            "userId": recipient.id,
            "fullName": "Recipient B",
            "cnic": "11111-2222222-3",
            "email": recipient.email,
            "walletAddress": recipient.wallet_address,
        }

    def test_search_user_bad_format(self, client, owner):
        resp = client.get(f"{BASE}/search-user/12-34", headers=auth_header(owner.id))
        assert resp.status_code == 400

    def test_search_user_self(self, client, owner):
        resp = client.get(f"{BASE}/search-user/35202-1234567-8", headers=auth_header(owner.id))
        assert resp.status_code == 400
        assert resp.json()["message"] == "Cannot transfer vehicle to yourself"


class TestWorkflow:
    def test_initiate_defaults(self, client, owner, recipient, vehicle):
        resp = initiate(client, owner, vehicle)
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["transfer"]["status"] == "pending_admin_approval"
        assert data["transfer"]["transferFee"] == 5000
        assert data["transfer"]["vehicle"]["chassisNumber"] == "ABC123"
        assert data["transferId"] == data["transfer"]["transferId"]

    def test_initiate_duplicate_is_409(self, client, owner, recipient, vehicle):
        initiate(client, owner, vehicle)
        resp = initiate(client, owner, vehicle)
        assert resp.status_code == 409
        assert resp.json() == {"success": False, "message": "Vehicle is already in transfer process"}

    def test_initiate_zero_fee_uses_default(self, client, owner, recipient, vehicle):
        resp = initiate(client, owner, vehicle, transferFee=0)
        assert resp.status_code == 200
        assert resp.json()["transfer"]["transferFee"] == 5000

    def test_initiate_rejects_negative_fee(self, client, owner, recipient, vehicle):
        resp = initiate(client, owner, vehicle, transferFee=-100)
        assert resp.status_code == 400
        assert resp.json()["success"] is False

    def test_full_flow(self, client, db, owner, recipient, vehicle):
        transfer_id = initiate(client, owner, vehicle).json()["transferId"]

        pending = client.get(f"{BASE}/admin/pending-transfers", headers=admin_header()).json()["transfers"]
        assert [t["transferId"] for t in pending] == [transfer_id]
        assert pending[0]["vehicle"]["registrationNumber"] == vehicle.registration_number

        approve = client.post(f"{BASE}/admin/approve/{transfer_id}", json={"adminNotes": "ok"},
                              headers=admin_header())
        assert approve.json()["transfer"]["status"] == "approved"

        done = client.post(f"{BASE}/complete/{transfer_id}", json={"blockchainTxHash": "0xfeed"},
                           headers=auth_header(owner.id))
        assert done.status_code == 200
        assert done.json()["transfer"]["status"] == "completed"

        db.expire_all()
        assert db.query(Inspection).filter_by(inspection_id=vehicle.inspection_id).one().user_id == recipient.id

        history = client.get(f"{BASE}/history/{vehicle.inspection_id}", headers=auth_header(recipient.id)).json()
        entries = history["history"]["ownershipHistory"]
        assert len(entries) == 2
        assert history["history"]["totalTransfers"] == 1
        assert entries[-1]["isCurrentOwner"] is True
        assert entries[-1]["ownerId"] == recipient.id
        assert history["history"]["vehicleDetails"]["make"] == "Toyota"

        public = client.get(f"{BASE}/search-history/ABC123").json()
        assert public["history"]["totalTransfers"] == 1

    def test_complete_without_body(self, client, owner, recipient, vehicle):
        transfer_id = initiate(client, owner, vehicle).json()["transferId"]
        client.post(f"{BASE}/admin/approve/{transfer_id}", headers=admin_header())
        resp = client.post(f"{BASE}/complete/{transfer_id}", headers=auth_header(owner.id))
        assert resp.status_code == 200

    def test_complete_pending_is_404(self, client, owner, recipient, vehicle):
        transfer_id = initiate(client, owner, vehicle).json()["transferId"]
        resp = client.post(f"{BASE}/complete/{transfer_id}", headers=auth_header(owner.id))
        assert resp.status_code == 404
        assert resp.json()["message"] == "Transfer not found or already processed"

    def test_reject_with_empty_reason_is_400(self, client, owner, recipient, vehicle):
        transfer_id = initiate(client, owner, vehicle).json()["transferId"]
        resp = client.post(f"{BASE}/admin/reject/{transfer_id}", json={"rejectionReason": ""},
                           headers=admin_header())
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "message": "Rejection reason is required"}

        status = client.get(f"{BASE}/transfer-status/{transfer_id}", headers=auth_header(owner.id)).json()
        assert status["transfer"]["status"] == "pending_admin_approval"

    def test_reject(self, client, owner, recipient, vehicle):
        transfer_id = initiate(client, owner, vehicle).json()["transferId"]
        resp = client.post(f"{BASE}/admin/reject/{transfer_id}", json={"rejectionReason": "Mismatch"},
                           headers=admin_header())
        assert resp.json()["transfer"]["rejectionReason"] == "Mismatch"

    def test_approve_already_approved_is_404(self, client, owner, recipient, vehicle):
        transfer_id = initiate(client, owner, vehicle).json()["transferId"]
        client.post(f"{BASE}/admin/approve/{transfer_id}", headers=admin_header())
        resp = client.post(f"{BASE}/admin/approve/{transfer_id}", headers=admin_header())
        assert resp.status_code == 404

    def test_cancel_by_recipient_is_403(self, client, owner, recipient, vehicle):
        transfer_id = initiate(client, owner, vehicle).json()["transferId"]
        resp = client.post(f"{BASE}/cancel/{transfer_id}", headers=auth_header(recipient.id))
        assert resp.status_code == 403

    def test_cancel(self, client, owner, recipient, vehicle):
        transfer_id = initiate(client, owner, vehicle).json()["transferId"]
        resp = client.post(f"{BASE}/cancel/{transfer_id}", headers=auth_header(owner.id))
        assert resp.json()["transfer"]["status"] == "cancelled"


class TestTransferViews:
    def test_transfer_status_for_outsider_is_404(self, client, owner, recipient, vehicle, make_user):
        transfer_id = initiate(client, owner, vehicle).json()["transferId"]
        outsider = make_user("55555-6666666-7")
        resp = client.get(f"{BASE}/transfer-status/{transfer_id}", headers=auth_header(outsider.id))
        assert resp.status_code == 404

    def test_transfer_status_for_recipient(self, client, owner, recipient, vehicle):
        transfer_id = initiate(client, owner, vehicle).json()["transferId"]
        data = client.get(f"{BASE}/transfer-status/{transfer_id}", headers=auth_header(recipient.id)).json()
        assert data["transfer"]["initiatedBy"] is False
        assert data["vehicle"]["chassisNumber"] == "ABC123"

    def test_my_transfers(self, client, owner, recipient, vehicle):
        initiate(client, owner, vehicle)
        transfers = client.get(f"{BASE}/my-transfers", headers=auth_header(recipient.id)).json()["transfers"]
        assert len(transfers) == 1
        assert transfers[0]["fromOwner"]["userId"] == owner.id
        assert transfers[0]["vehicle"]["make"] == "Toyota"


class TestErrorEnvelope:
    def test_unexpected_error_is_generic_500(self, db, owner, vehicle):
        client = TestClient(app, raise_server_exceptions=False)
        with patch("taxtron.services.transfer_service.vehicle_service.get_vehicle_by_chassis",
                   side_effect=RuntimeError("connection reset")):
            resp = client.get(f"{BASE}/search-vehicle/ABC123", headers=auth_header(owner.id))
        assert resp.status_code == 500
        assert resp.json() == {"success": False, "message": "Internal server error"}

    def test_health(self, client):
        body = client.get("/api/health").json()
        assert body["database"] == "ok"
        assert body["pendingTransfers"] == 0

    def test_health_hides_database_error_text(self, client):
        broken = MagicMock()
        broken.execute.side_effect = OperationalError("SELECT 1", {}, Exception("password authentication failed for taxtron"))
        app.dependency_overrides[get_db] = lambda: broken
        try:
            resp = client.get("/api/health")
        finally:
            app.dependency_overrides.clear()
        body = resp.json()
        assert body["status"] == "degraded"
        assert body["database"] == "error"
        assert "password" not in resp.text
