"""Shared fixtures: in-memory SQLite, a temporary upload dir and auth helpers.

The environment is set before anything from ``filemarket`` is imported so the
module-level settings and engine pick it up.
"""

import os
import tempfile

os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["SQLALCHEMY_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="filemarket-uploads-")
os.environ["ENV"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.pop("BREVO_API_KEY", None)

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

import filemarket.models  # noqa: F401
from filemarket.database import engine
from filemarket.main import app
from filemarket.middleware.rate_limit import limiter
from filemarket.models.category import Category
from filemarket.models.user import User
from filemarket.routes.categories import clear_categories_cache
from filemarket.utils.hash import hash_password
from filemarket.utils.token import create_user_token

PASSWORD = "Passw0rd!"


@pytest.fixture(autouse=True)
def db():
    SQLModel.metadata.create_all(engine)
    clear_categories_cache()
    yield
    SQLModel.metadata.drop_all(engine)
    clear_categories_cache()


@pytest.fixture
def session(db):
    with Session(engine) as s:
        yield s


@pytest.fixture
def client(db):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def rate_limited(monkeypatch):
    """Switch the limiter on with empty counters for one test."""
    limiter.reset()
    monkeypatch.setattr(limiter, "enabled", True)
    yield limiter
    limiter.reset()


# -- Helpers -------------------------------------------------------------------

def make_user(session, email="user@example.com", name="Regular User", is_admin=False):
    user = User(
        name=name,
        email=email,
        password=hash_password(PASSWORD),
        is_admin=is_admin,
        is_verified=True,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def headers_for(user):
    return {"Authorization": f"Bearer {create_user_token(user)}"}


def upload_file(client, headers, filename="resume.pdf", content=b"%PDF-1.4 test asset", **fields):
    data = {
        "title": "Resume Template",
        "description": "A clean one-page resume",
        "price": "9.99",
        "is_free": "false",
    }
    for key, value in fields.items():
        if value is None:
            data.pop(key, None)
        else:
            data[key] = str(value)

    return client.post(
        "/files",
        data=data,
        files={"file": (filename, content, "application/pdf")},
        headers=headers,
    )


# -- Fixtures ------------------------------------------------------------------

@pytest.fixture
def user(session):
    return make_user(session)


@pytest.fixture
def other_user(session):
    return make_user(session, email="other@example.com", name="Other User")


@pytest.fixture
def admin(session):
    return make_user(session, email="admin@example.com", name="Admin", is_admin=True)


@pytest.fixture
def user_headers(user):
    return headers_for(user)


@pytest.fixture
def other_headers(other_user):
    return headers_for(other_user)


@pytest.fixture
def admin_headers(admin):
    return headers_for(admin)


@pytest.fixture
def category(session):
    category = Category(name="Graphics", slug="graphics", description="Design assets")
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


@pytest.fixture
def paid_file(client, admin_headers, category):
    resp = upload_file(client, admin_headers, category_id=category.id)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


@pytest.fixture
def free_file(client, admin_headers):
    resp = upload_file(
        client, admin_headers,
        title="Free Icons", price=None, is_free="true", filename="icons.zip",
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


@pytest.fixture
def pending_purchase(client, user_headers, paid_file):
    resp = client.post("/purchases", json={"file_id": paid_file["id"]}, headers=user_headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


@pytest.fixture
def completed_purchase(client, admin_headers, pending_purchase):
    resp = client.put(
        f"/purchases/{pending_purchase['id']}/status",
        json={"status": "completed"},
        headers=admin_headers,
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]
