"""Purchase creation, uniqueness, visibility, status changes and deletion."""

from sqlmodel import select

from filemarket.models.download import Download
from filemarket.models.payment import Payment
from filemarket.models.purchase import Purchase


def test_create_purchase_is_pending_with_download_row(
    client, session, user, pending_purchase, paid_file,
):
    assert pending_purchase["status"] == "pending"
    assert pending_purchase["amount"] == 9.99
    assert pending_purchase["file_title"] == "Resume Template"

    row = session.exec(select(Download).where(Download.user_id == user.id)).one()
    assert row.purchase_id == pending_purchase["id"]
    assert row.download_count == 0


def test_duplicate_purchase_conflicts(client, session, user, user_headers, paid_file, pending_purchase):
    resp = client.post("/purchases", json={"file_id": paid_file["id"]}, headers=user_headers)

    assert resp.status_code == 409
    assert resp.json()["message"] == "You have already purchased this file"
    session.expire_all()
    assert len(session.exec(select(Purchase).where(Purchase.user_id == user.id)).all()) == 1


def test_purchase_of_missing_or_free_file(client, user_headers, free_file):
    assert client.post("/purchases", json={"file_id": 999}, headers=user_headers).status_code == 404
    assert client.post(
        "/purchases", json={"file_id": free_file["id"]}, headers=user_headers,
    ).status_code == 400


def test_list_is_scoped_to_caller(
    client, user_headers, other_headers, admin_headers, user, other_user, paid_file, pending_purchase,
):
    client.post("/purchases", json={"file_id": paid_file["id"]}, headers=other_headers)

    mine = client.get("/purchases", headers=user_headers).json()["data"]
    everyone = client.get("/purchases", headers=admin_headers).json()["data"]
    filtered = client.get(
        "/purchases", params={"user_id": other_user.id}, headers=admin_headers,
    ).json()["data"]

    assert [p["user_id"] for p in mine] == [user.id]
    assert mine[0]["user_email"] == user.email
    assert len(everyone) == 2
    assert [p["user_id"] for p in filtered] == [other_user.id]


def test_get_purchase_hides_other_users_rows(
    client, user_headers, other_headers, admin_headers, pending_purchase,
):
    url = f"/purchases/{pending_purchase['id']}"

    assert client.get(url, headers=user_headers).status_code == 200
    assert client.get(url, headers=admin_headers).status_code == 200
    assert client.get(url, headers=other_headers).status_code == 404


def test_status_update_rejects_unknown_value(client, admin_headers, pending_purchase):
    resp = client.put(
        f"/purchases/{pending_purchase['id']}/status",
        json={"status": "shipped"},
        headers=admin_headers,
    )

    assert resp.status_code == 400


def test_status_update_missing_purchase(client, admin_headers):
    resp = client.put("/purchases/999/status", json={"status": "failed"}, headers=admin_headers)

    assert resp.status_code == 404


def test_completing_purchase_settles_linked_payment(
    client, session, user, admin_headers, paid_file, pending_purchase,
):
    payment = Payment(user_id=user.id, file_id=paid_file["id"], amount=9.99)
    session.add(payment)
    session.commit()
    purchase = session.get(Purchase, pending_purchase["id"])
    purchase.payment_id = payment.id
    session.add(purchase)
    session.commit()

    client.put(
        f"/purchases/{pending_purchase['id']}/status",
        json={"status": "completed"},
        headers=admin_headers,
    )

    session.expire_all()
    settled = session.get(Payment, payment.id)
    assert settled.status == "completed"
    assert settled.verified_at is not None


def test_completed_purchase_cannot_be_deleted(client, admin_headers, completed_purchase):
    resp = client.delete(f"/purchases/{completed_purchase['id']}", headers=admin_headers)

    assert resp.status_code == 400
    assert resp.json()["message"] == "Cannot delete a completed purchase"


def test_delete_pending_purchase_removes_it_and_its_download_row(
    client, session, user, admin_headers, pending_purchase,
):
    resp = client.delete(f"/purchases/{pending_purchase['id']}", headers=admin_headers)

    assert resp.status_code == 200
    session.expire_all()
    assert session.get(Purchase, pending_purchase["id"]) is None
    assert session.exec(select(Download).where(Download.user_id == user.id)).all() == []


def test_delete_requires_admin(client, user_headers, pending_purchase):
    resp = client.delete(f"/purchases/{pending_purchase['id']}", headers=user_headers)

    assert resp.status_code == 403
