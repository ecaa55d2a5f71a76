from __future__ import annotations

from fastapi.testclient import TestClient

from recipebook.app import app

client = TestClient(app)


def _login_user(c):
    c.post("/auth/login", json={"username": "alice", "password": "alice123"})


def _login_admin(c):
    c.post("/auth/login", json={"username": "admin", "password": "admin123"})


# ── Login / Logout ───────────────────────────────────────────────────────


def test_login_success_user():
    resp = client.post("/auth/login", json={"username": "alice", "password": "alice123"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["user"] == {"id": 1, "username": "alice", "role": "user"}


def test_login_success_admin():
    resp = client.post("/auth/login", json={"username": "admin", "password": "admin123"})
    assert resp.status_code == 200
    assert resp.json()["user"]["role"] == "admin"


def test_login_wrong_password():
    resp = client.post("/auth/login", json={"username": "alice", "password": "wrong"})
    assert resp.status_code == 401


def test_login_unknown_user():
    resp = client.post("/auth/login", json={"username": "nobody", "password": "x"})
    assert resp.status_code == 401


def test_login_validation():
    resp = client.post("/auth/login", json={"username": "", "password": "x"})
    assert resp.status_code == 422


def test_auth_me_when_logged_in():
    _login_user(client)
    resp = client.get("/auth/me")
    assert resp.status_code == 200
    assert resp.json()["username"] == "alice"


def test_auth_me_not_logged_in():
    c = TestClient(app)  # fresh client, no session
    resp = c.get("/auth/me")
    assert resp.status_code == 401


def test_logout():
    _login_user(client)
    resp = client.post("/auth/logout")
    assert resp.status_code == 200
    assert resp.json()["status"] == "logged_out"
    # Session should be cleared
    resp = client.get("/auth/me")
    assert resp.status_code == 401


def test_logout_forgets_window_state():
    c = TestClient(app)
    _login_user(c)
    c.post("/recipes/query", json={"page_size": 5, "action": {"type": "goto_page", "page": 3}})
    c.post("/auth/logout")
    body = c.post("/recipes/query", json={"page_size": 5, "action": {"type": "load_more"}}).json()
    assert (body["header_page"], body["footer_page"]) == (1, 2)
    assert body["seq"] == 1


# ── Route protection ─────────────────────────────────────────────────────


def test_browse_is_public():
    c = TestClient(app)
    resp = c.post("/recipes/query", json={})
    assert resp.status_code == 200


def test_personal_tags_require_login():
    c = TestClient(app)
    assert c.get("/recipes/1/personal-tags").status_code == 401
    assert c.post("/recipes/1/personal-tags", json={"name": "x"}).status_code == 401
    assert c.delete("/recipes/1/personal-tags/x").status_code == 401


def test_analytics_requires_admin():
    c = TestClient(app)
    _login_user(c)
    resp = c.get("/analytics")
    assert resp.status_code == 403


def test_analytics_requires_login():
    c = TestClient(app)
    resp = c.get("/analytics")
    assert resp.status_code == 401


def test_cache_stats_requires_admin():
    c = TestClient(app)
    _login_user(c)
    resp = c.get("/cache/stats")
    assert resp.status_code == 403


def test_admin_can_access_admin_routes():
    c = TestClient(app)
    _login_admin(c)
    assert c.get("/analytics").status_code == 200
    assert c.get("/cache/stats").status_code == 200
