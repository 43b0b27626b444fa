"""File catalog: multipart upload, price policy, partial update, delete."""

from pathlib import Path

from fastapi.testclient import TestClient
from sqlmodel import Session as SQLModelSession

from filemarket.config import settings
from filemarket.main import app
from tests.conftest import upload_file


def _stored_assets():
    return {p.name for p in Path(settings.upload_dir).iterdir()}


def _stored_path(session, file_id):
    from filemarket.models.digital_file import DigitalFile

    session.expire_all()
    return Path(session.get(DigitalFile, file_id).file_path)


# ==============================================================================
# Create
# ==============================================================================


def test_upload_stores_asset_and_metadata(client, session, paid_file, category):
    assert paid_file["title"] == "Resume Template"
    assert paid_file["price"] == 9.99
    assert paid_file["is_free"] is False
    assert paid_file["file_name"] == "resume.pdf"
    assert paid_file["file_size"] == len(b"%PDF-1.4 test asset")
    assert paid_file["file_type"] == "application/pdf"
    assert paid_file["category_name"] == "Graphics"
    assert paid_file["download_url"] == f"/files/{paid_file['id']}/download"
    assert "file_path" not in paid_file

    path = _stored_path(session, paid_file["id"])
    assert path.is_file()
    assert path.suffix == ".pdf"
    assert path.name != "resume.pdf"


def test_upload_without_asset_is_rejected(client, admin_headers):
    resp = client.post(
        "/files", data={"title": "Empty", "price": "5"}, headers=admin_headers,
    )

    assert resp.status_code == 400
    assert resp.json()["message"] == "No file uploaded"


def test_free_file_with_price_is_rejected(client, admin_headers):
    before = _stored_assets()

    resp = upload_file(client, admin_headers, is_free="true", price="5")

    assert resp.status_code == 400
    assert _stored_assets() == before


def test_free_file_without_price_costs_nothing(free_file):
    assert free_file["is_free"] is True
    assert free_file["price"] == 0


def test_paid_file_needs_positive_price(client, admin_headers):
    assert upload_file(client, admin_headers, price=None).status_code == 400
    assert upload_file(client, admin_headers, price="0").status_code == 400


def test_unknown_category_is_rejected(client, admin_headers):
    resp = upload_file(client, admin_headers, category_id=999)

    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid category_id"


def test_upload_requires_admin(client, user_headers):
    assert upload_file(client, user_headers).status_code == 403


def test_failed_insert_removes_stored_asset(admin_headers, monkeypatch):
    before = _stored_assets()

    def broken_commit(self):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(SQLModelSession, "commit", broken_commit)
    with TestClient(app, raise_server_exceptions=False) as client:
        resp = upload_file(client, admin_headers)

    assert resp.status_code == 500
    assert resp.json() == {"status": "error", "message": "An unexpected error occurred"}
    assert _stored_assets() == before


# ==============================================================================
# Read
# ==============================================================================


def test_list_is_newest_first_with_category_name(client, admin_headers, category):
    upload_file(client, admin_headers, title="First", category_id=category.id)
    upload_file(client, admin_headers, title="Second")

    data = client.get("/files").json()["data"]

    assert [f["title"] for f in data] == ["Second", "First"]
    assert data[1]["category_name"] == "Graphics"
    assert data[0]["category_name"] is None


def test_missing_file_is_not_found(client):
    resp = client.get("/files/999")

    assert resp.status_code == 404
    assert resp.json() == {"status": "error", "message": "File not found"}


# ==============================================================================
# Update
# ==============================================================================


def test_partial_update_changes_only_given_fields(client, admin_headers, paid_file):
    resp = client.put(
        f"/files/{paid_file['id']}", data={"title": "Resume Template v2"}, headers=admin_headers,
    )

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["title"] == "Resume Template v2"
    assert data["price"] == 9.99
    assert data["description"] == paid_file["description"]
    assert data["category_id"] == paid_file["category_id"]


def test_update_to_free_zeroes_the_price(client, admin_headers, paid_file):
    resp = client.put(
        f"/files/{paid_file['id']}", data={"is_free": "true"}, headers=admin_headers,
    )

    assert resp.status_code == 200
    assert resp.json()["data"]["price"] == 0
    assert resp.json()["data"]["is_free"] is True


def test_update_keeps_price_policy(client, admin_headers, paid_file, free_file):
    free_with_price = client.put(
        f"/files/{paid_file['id']}", data={"is_free": "true", "price": "3"}, headers=admin_headers,
    )
    paid_without_price = client.put(
        f"/files/{free_file['id']}", data={"is_free": "false"}, headers=admin_headers,
    )

    assert free_with_price.status_code == 400
    assert paid_without_price.status_code == 400


def test_update_with_new_asset_replaces_old_one(client, session, admin_headers, paid_file):
    old_path = _stored_path(session, paid_file["id"])

    resp = client.put(
        f"/files/{paid_file['id']}",
        files={"file": ("resume-v2.docx", b"new content", "application/octet-stream")},
        headers=admin_headers,
    )

    assert resp.status_code == 200
    assert resp.json()["data"]["file_name"] == "resume-v2.docx"
    new_path = _stored_path(session, paid_file["id"])
    assert new_path.is_file()
    assert new_path.suffix == ".docx"
    assert not old_path.exists()


# ==============================================================================
# Delete
# ==============================================================================


def test_delete_removes_row_and_asset(client, session, admin_headers, paid_file):
    path = _stored_path(session, paid_file["id"])

    resp = client.delete(f"/files/{paid_file['id']}", headers=admin_headers)

    assert resp.status_code == 200
    assert client.get(f"/files/{paid_file['id']}").status_code == 404
    assert not path.exists()


def test_delete_missing_file_is_not_found(client, admin_headers):
    assert client.delete("/files/999", headers=admin_headers).status_code == 404
