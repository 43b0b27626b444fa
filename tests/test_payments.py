"""Payment methods, payment creation, verification and the payment invoice."""

import re

import pytest
from sqlmodel import select

from filemarket.models.purchase import Purchase


@pytest.fixture
def method(client, admin_headers):
    resp = client.post("/payments/methods", json={
        "name": "Bank Transfer",
        "type": "bank",
        "details": '{"iban": "DE00 0000"}',
        "instructions": "Use your email as reference",
    }, headers=admin_headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


@pytest.fixture
def payment(client, user_headers, paid_file, method):
    resp = client.post("/payments", json={
        "file_id": paid_file["id"],
        "payment_method_id": method["id"],
    }, headers=user_headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def _verify(client, headers, payment_id, status="completed", transaction_id="TX-1"):
    return client.post(
        f"/payments/{payment_id}/verify",
        json={"transaction_id": transaction_id, "status": status, "notes": "checked"},
        headers=headers,
    )


# ==============================================================================
# Methods
# ==============================================================================


def test_inactive_methods_hidden_from_users(client, admin_headers, user_headers, method):
    client.put(f"/payments/methods/{method['id']}", json={"is_active": False}, headers=admin_headers)

    for_user = client.get("/payments/methods", headers=user_headers).json()["data"]
    for_user_asking = client.get(
        "/payments/methods", params={"include_inactive": True}, headers=user_headers,
    ).json()["data"]
    for_admin = client.get(
        "/payments/methods", params={"include_inactive": True}, headers=admin_headers,
    ).json()["data"]

    assert for_user == []
    assert for_user_asking == []
    assert [m["name"] for m in for_admin] == ["Bank Transfer"]


def test_method_writes_are_admin_only(client, user_headers, admin_headers, method):
    assert client.post("/payments/methods", json={
        "name": "Cash", "type": "cash", "details": "", "instructions": "",
    }, headers=user_headers).status_code == 403
    assert client.delete("/payments/methods/999", headers=admin_headers).status_code == 404
    assert client.delete(f"/payments/methods/{method['id']}", headers=admin_headers).status_code == 200


# ==============================================================================
# Create
# ==============================================================================


def test_create_payment_snapshots_method(payment, method):
    assert payment["status"] == "pending"
    assert payment["amount"] == 9.99
    assert payment["payment_method"] == "Bank Transfer"
    assert payment["instructions"] == method["instructions"]
    assert payment["details"] == method["details"]


def test_create_payment_validation(client, user_headers, admin_headers, paid_file, free_file, method):
    def create(file_id, method_id=method["id"]):
        return client.post(
            "/payments",
            json={"file_id": file_id, "payment_method_id": method_id},
            headers=user_headers,
        )

    assert create(999).status_code == 404
    assert create(free_file["id"]).status_code == 400
    assert create(paid_file["id"], method_id=999).json()["message"] == "Invalid payment method"

    client.put(f"/payments/methods/{method['id']}", json={"is_active": False}, headers=admin_headers)
    assert create(paid_file["id"]).status_code == 400


def test_create_payment_after_completed_purchase_conflicts(
    client, user_headers, paid_file, method, completed_purchase,
):
    resp = client.post("/payments", json={
        "file_id": paid_file["id"], "payment_method_id": method["id"],
    }, headers=user_headers)

    assert resp.status_code == 409


# ==============================================================================
# Read
# ==============================================================================


def test_payments_visible_to_owner_and_admin(
    client, user_headers, other_headers, admin_headers, payment,
):
    url = f"/payments/{payment['payment_id']}"

    mine = client.get(url, headers=user_headers)
    assert mine.status_code == 200
    assert mine.json()["data"]["file_title"] == "Resume Template"
    assert mine.json()["data"]["payment_method_name"] == "Bank Transfer"

    assert client.get(url, headers=admin_headers).status_code == 200
    assert client.get(url, headers=other_headers).status_code == 404
    assert client.get("/payments", headers=other_headers).json()["data"] == []
    assert len(client.get("/payments", headers=admin_headers).json()["data"]) == 1


# ==============================================================================
# Verify
# ==============================================================================


def test_verify_completed_creates_completed_purchase(
    client, session, user, user_headers, admin_headers, paid_file, payment,
):
    resp = _verify(client, admin_headers, payment["payment_id"])

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["status"] == "completed"
    assert data["transaction_id"] == "TX-1"
    assert data["verified_at"] is not None

    purchase = session.exec(select(Purchase).where(Purchase.user_id == user.id)).one()
    assert purchase.status == "completed"
    assert purchase.payment_id == payment["payment_id"]

    download = client.get(f"/files/{paid_file['id']}/download", headers=user_headers)
    assert download.status_code == 200


def test_verify_completed_promotes_pending_purchase(
    client, session, user, admin_headers, pending_purchase, payment,
):
    _verify(client, admin_headers, payment["payment_id"])

    session.expire_all()
    purchases = session.exec(select(Purchase).where(Purchase.user_id == user.id)).all()
    assert len(purchases) == 1
    assert purchases[0].id == pending_purchase["id"]
    assert purchases[0].status == "completed"
    assert purchases[0].payment_id == payment["payment_id"]


def test_verify_failed_grants_nothing(client, session, user, admin_headers, payment):
    resp = _verify(client, admin_headers, payment["payment_id"], status="failed")

    assert resp.json()["data"]["status"] == "failed"
    assert session.exec(select(Purchase).where(Purchase.user_id == user.id)).all() == []


def test_verify_only_once(client, admin_headers, payment):
    _verify(client, admin_headers, payment["payment_id"])

    again = _verify(client, admin_headers, payment["payment_id"], status="refunded")

    assert again.status_code == 400
    assert again.json()["message"] == "Payment is not pending"


def test_second_payment_cannot_take_over_completed_purchase(
    client, session, user, user_headers, admin_headers, paid_file, method, payment,
):
    second = client.post("/payments", json={
        "file_id": paid_file["id"],
        "payment_method_id": method["id"],
    }, headers=user_headers).json()["data"]
    assert _verify(client, admin_headers, payment["payment_id"]).status_code == 200

    resp = _verify(client, admin_headers, second["payment_id"], transaction_id="TX-2")

    assert resp.status_code == 409
    session.expire_all()
    purchase = session.exec(select(Purchase).where(Purchase.user_id == user.id)).one()
    assert purchase.payment_id == payment["payment_id"]
    still_pending = client.get(f"/payments/{second['payment_id']}", headers=user_headers)
    assert still_pending.json()["data"]["status"] == "pending"


def test_verify_rejects_bad_input(client, admin_headers, user_headers, payment):
    assert _verify(client, admin_headers, 999).status_code == 404
    assert _verify(client, admin_headers, payment["payment_id"], status="pending").status_code == 400
    assert _verify(client, user_headers, payment["payment_id"]).status_code == 403


# ==============================================================================
# Invoice
# ==============================================================================


def test_payment_invoice(client, user, user_headers, other_headers, payment):
    resp = client.get(f"/payments/{payment['payment_id']}/invoice", headers=user_headers)

    assert resp.status_code == 200
    invoice = resp.json()["data"]
    assert re.fullmatch(rf"INV-{payment['payment_id']}-\d{{6}}", invoice["invoice_number"])
    assert re.fullmatch(r"[A-Z][a-z]+ \d{1,2}, \d{4}", invoice["date"])
    assert invoice["customer"] == {"name": user.name, "email": user.email}
    assert invoice["items"] == [{"description": "Resume Template", "amount": 9.99}]
    assert invoice["payment_method"] == "Bank Transfer"
    assert invoice["transaction_id"] == "Pending"
    assert invoice["total"] == 9.99

    assert client.get(
        f"/payments/{payment['payment_id']}/invoice", headers=other_headers,
    ).status_code == 404
