"""Profile self-service and admin user management."""

from tests.conftest import PASSWORD


def test_profile_read_and_update(client, user_headers):
    resp = client.put(
        "/users/me",
        json={"name": "Renamed", "bio": "I sell fonts"},
        headers=user_headers,
    )

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["name"] == "Renamed"
    assert data["bio"] == "I sell fonts"

    again = client.get("/users/me", headers=user_headers).json()["data"]
    assert again["name"] == "Renamed"
    assert again["email"] == "user@example.com"


def test_profile_email_must_be_free(client, user_headers, other_user):
    resp = client.put("/users/me", json={"email": other_user.email}, headers=user_headers)

    assert resp.status_code == 400
    assert resp.json()["message"] == "Email already taken"


def test_change_password_requires_current_password(client, user, user_headers):
    wrong = client.put("/users/me/password", json={
        "current_password": "Wr0ng!pass",
        "new_password": "N3w!password",
        "confirm_password": "N3w!password",
    }, headers=user_headers)
    assert wrong.status_code == 401

    ok = client.put("/users/me/password", json={
        "current_password": PASSWORD,
        "new_password": "N3w!password",
        "confirm_password": "N3w!password",
    }, headers=user_headers)
    assert ok.status_code == 200

    login = client.post("/auth/login", json={"email": user.email, "password": "N3w!password"})
    assert login.status_code == 200


def test_admin_lists_users_with_pagination(client, admin_headers, user, other_user):
    resp = client.get("/users", params={"limit": 2}, headers=admin_headers)

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert len(data["users"]) == 2
    assert data["pagination"]["total"] == 3
    assert data["pagination"]["totalPages"] == 2
    assert data["pagination"]["hasNext"] is True


def test_admin_routes_reject_regular_users(client, user_headers, other_user):
    resp = client.get(f"/users/{other_user.id}", headers=user_headers)

    assert resp.status_code == 403
    assert resp.json()["message"] == "Admin access required"


def test_admin_updates_and_deletes_user(client, admin_headers, user):
    resp = client.put(f"/users/{user.id}", json={"is_admin": True}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["is_admin"] is True
    assert resp.json()["data"]["name"] == "Regular User"

    assert client.delete(f"/users/{user.id}", headers=admin_headers).status_code == 200
    assert client.get(f"/users/{user.id}", headers=admin_headers).status_code == 404


def test_admin_user_routes_404_on_missing_id(client, admin_headers):
    assert client.get("/users/999", headers=admin_headers).status_code == 404
    assert client.put("/users/999", json={"name": "Ghost"}, headers=admin_headers).status_code == 404
    assert client.delete("/users/999", headers=admin_headers).status_code == 404


def test_profile_rejects_null_name_or_email(client, user_headers):
    for field in ("name", "email"):
        resp = client.put("/users/me", json={field: None}, headers=user_headers)

        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == f"body.{field}"

    profile = client.get("/users/me", headers=user_headers).json()["data"]
    assert profile["name"] == "Regular User"
    assert profile["email"] == "user@example.com"


def test_profile_bio_can_be_cleared(client, user_headers):
    client.put("/users/me", json={"bio": "I sell fonts"}, headers=user_headers)

    resp = client.put("/users/me", json={"bio": None}, headers=user_headers)

    assert resp.status_code == 200
    assert resp.json()["data"]["bio"] is None


def test_admin_search_treats_wildcards_literally(client, admin_headers, user, other_user):
    resp = client.get("/users", params={"search": "%"}, headers=admin_headers)

    assert resp.status_code == 200
    assert resp.json()["data"]["users"] == []
