from conftest import PASSWORD, create_account, signed_in_client


def register(client, email="neu@example.com", **extra):
    payload = {"name": "Neue Köchin", "email": email, "password": "passwort1", "position": "Koch"}
    payload.update(extra)
    return client.post("/api/auth/register", json=payload)


def test_first_run_setup(client):
    assert client.get("/api/auth/check-setup").json() == {"needsSetup": True}

    res = client.post(
        "/api/auth/setup",
        json={"name": "Chef", "email": "Chef@Example.com", "password": "secret1"},
    )
    assert res.status_code == 201
    body = res.json()
    assert body["role"] == "admin"
    assert body["isApproved"] is True
    assert body["email"] == "chef@example.com"

    # setup signs the admin in
    assert client.get("/api/auth/me").json()["email"] == "chef@example.com"
    assert client.get("/api/auth/check-setup").json() == {"needsSetup": False}

    again = client.post(
        "/api/auth/setup",
        json={"name": "Other", "email": "other@example.com", "password": "secret1"},
    )
    assert again.status_code == 400


def test_register_creates_unapproved_guest(client):
    res = register(client)
    assert res.status_code == 201
    user = res.json()["user"]
    assert user["role"] == "guest"
    assert user["isApproved"] is False
    assert "password" not in user

    assert register(client).status_code == 400


def test_register_validation(client):
    assert register(client, email="kein-at-zeichen").status_code == 422
    assert register(client, password="123").status_code == 422
    assert register(client, name="X").status_code == 422


def test_login_requires_approval(client, admin_client):
    user_id = register(client).json()["user"]["id"]

    res = client.post("/api/auth/login", json={"email": "neu@example.com", "password": "passwort1"})
    assert res.status_code == 403

    res = admin_client.put(f"/api/admin/users/{user_id}", json={"isApproved": True, "role": "koch"})
    assert res.status_code == 200
    assert res.json()["role"] == "koch"

    res = client.post("/api/auth/login", json={"email": "NEU@example.com", "password": "passwort1"})
    assert res.status_code == 200
    assert client.get("/api/auth/me").json()["id"] == user_id


def test_login_bad_credentials(client, db):
    create_account(db, "koch@example.com")
    res = client.post("/api/auth/login", json={"email": "koch@example.com", "password": "falsch"})
    assert res.status_code == 401
    res = client.post("/api/auth/login", json={"email": "wer@example.com", "password": PASSWORD})
    assert res.status_code == 401


def test_me_and_logout(user_client, client):
    assert client.get("/api/auth/me").status_code == 401

    me = user_client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["name"] == "Test Koch"

    assert user_client.post("/api/auth/logout").json()["message"] == "Erfolgreich abgemeldet"
    assert user_client.get("/api/auth/me").status_code == 401


def test_deleted_user_session_is_rejected(db):
    user = create_account(db, "weg@example.com")
    c = signed_in_client("weg@example.com")
    db.delete(user)
    db.commit()
    assert c.get("/api/auth/me").status_code == 401


def test_positions(client):
    positions = client.get("/api/auth/positions").json()
    assert "Koch" in positions
    assert "Küchenchef" in positions


def test_admin_routes_require_admin(user_client):
    assert user_client.get("/api/admin/users").status_code == 403
    assert user_client.put("/api/admin/settings/restaurant", json={"value": "x"}).status_code == 403


def test_admin_user_management(admin_client, db):
    other = create_account(db, "lehrling@example.com", role="lehrling")
    users = admin_client.get("/api/admin/users").json()
    assert {u["email"] for u in users} == {"chef@example.com", "lehrling@example.com"}

    assert admin_client.put(f"/api/admin/users/{other.id}", json={"role": "kaiser"}).status_code == 400
    assert admin_client.put("/api/admin/users/does-not-exist", json={"role": "koch"}).status_code == 404

    me = admin_client.get("/api/auth/me").json()
    assert admin_client.delete(f"/api/admin/users/{me['id']}").status_code == 400
    assert admin_client.delete(f"/api/admin/users/{other.id}").status_code == 204
    assert admin_client.delete(f"/api/admin/users/{other.id}").status_code == 404


def test_admin_settings(admin_client):
    assert admin_client.get("/api/admin/settings").json() == {}
    res = admin_client.put("/api/admin/settings/restaurant_name", json={"value": "Gasthof Post"})
    assert res.status_code == 200
    assert res.json() == {"key": "restaurant_name", "value": "Gasthof Post"}
    admin_client.put("/api/admin/settings/restaurant_name", json={"value": "Gasthof Krone"})
    assert admin_client.get("/api/admin/settings").json() == {"restaurant_name": "Gasthof Krone"}
