from conftest import ADMIN, login
from utilities.api_client import ApiClient


def test_healthcheck(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json == {"ok": True}


def test_pages_require_login(client):
    response = client.get("/applications/")
    assert response.status_code == 302
    assert "/auth/login" in response.headers["Location"]


def test_login_requires_credentials(client, fake_api):
    response = client.post("/auth/login", data={"username": "", "password": ""})
    assert response.status_code == 400
    assert b"Enter your username and password." in response.data
    assert fake_api.calls == []


def test_login_failure_shows_api_message(client, fake_api):
    fake_api.add("POST", "/admin/auth/login", status=401,
                 json={"success": False, "message": "Invalid credentials"})
    response = client.post("/auth/login", data={"username": "siti", "password": "wrong"})
    assert response.status_code == 401
    assert b"Invalid credentials" in response.data
    assert b"session has expired" not in response.data


def test_login_success_stores_profile_and_cookies(client, fake_api):
    response = login(client, fake_api)
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/")

    with client.session_transaction() as sess:
        assert sess["admin"]["username"] == ADMIN["username"]
        assert sess["api_cookies"]["smc_admin_session"] == "sess-1"


def test_login_falls_back_to_me_endpoint(client, fake_api):
    fake_api.add("POST", "/admin/auth/login", json={"success": True, "data": {}})
    fake_api.add("GET", "/admin/auth/me", json={"success": True, "data": ADMIN})
    response = client.post("/auth/login", data={"username": "siti", "password": "secret"})
    assert response.status_code == 302
    assert fake_api.calls_to("GET", "/admin/auth/me")


def test_login_honours_safe_next(client, fake_api):
    fake_api.add("POST", "/admin/auth/login", json={"success": True, "data": {"admin": ADMIN}})
    response = client.post("/auth/login?next=/contacts/", data={"username": "siti", "password": "x"})
    assert response.headers["Location"].endswith("/contacts/")

    response = client.post("/auth/login?next=//evil.example", data={"username": "siti", "password": "x"})
    assert "evil.example" not in response.headers["Location"]


def test_csrf_cookie_is_echoed_on_later_calls(auth_client, fake_api):
    fake_api.add("DELETE", "/admin/faqs/f1", json={"success": True})
    auth_client.post("/content/faqs/f1/delete")
    assert fake_api.last("DELETE", "/admin/faqs/f1").headers["x-csrf-token"] == "tok+abc"


def test_logout_flow(auth_client, fake_api):
    fake_api.add("POST", "/admin/auth/logout", json={"success": True})
    response = auth_client.post("/auth/logout", follow_redirects=True)
    assert response.status_code == 200
    assert b"You have been signed out." in response.data
    assert fake_api.calls_to("POST", "/admin/auth/logout")

    with auth_client.session_transaction() as sess:
        assert "admin" not in sess
        assert "api_cookies" not in sess


def test_expired_session_redirects_to_login(auth_client, fake_api):
    fake_api.add("GET", "/admin/contacts", status=401, json={"success": False, "message": "Token expired"})
    response = auth_client.get("/contacts/")
    assert response.status_code == 302
    assert "/auth/login" in response.headers["Location"]

    page = auth_client.get("/auth/login")
    assert b"Your session has expired. Please sign in again." in page.data
    assert b"Token expired" not in page.data

    with auth_client.session_transaction() as sess:
        assert "admin" not in sess


def test_dashboard_session_expiry(auth_client, fake_api):
    fake_api.add("GET", "/admin/applications/stats/overview", status=401, json={"success": False})
    response = auth_client.get("/")
    assert response.status_code == 302
    assert "/auth/login" in response.headers["Location"]


def test_editor_cannot_open_settings(editor_client):
    response = editor_client.get("/settings/")
    assert response.status_code == 403


def test_session_expired_error_handler(app, client, fake_api):
    from middleware.api_session import get_api
    from utilities import api

    @app.get("/probe")
    def probe():
        api.get_me(get_api())
        return "unreachable"

    login(client, fake_api)
    fake_api.add("GET", "/admin/auth/me", status=401, json={"success": False})
    response = client.get("/probe")
    assert response.status_code == 302
    assert "/auth/login" in response.headers["Location"]


def test_api_client_is_closed_after_each_request(client, monkeypatch):
    closed = []
    monkeypatch.setattr(ApiClient, "close", lambda self: closed.append(self))

    client.get("/health")
    assert len(closed) == 1

    response = client.get("/static/css/console.css")
    assert response.status_code == 200
    assert len(closed) == 1
