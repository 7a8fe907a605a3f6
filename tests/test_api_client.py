import pytest
import requests

from utilities import api
from utilities.api_client import (
    ApiClient,
    ApiError,
    ApiResponse,
    NetworkError,
    SessionExpired,
    NETWORK_ERROR_MESSAGE,
)

BASE_URL = "http://api.test/api"


def make_client(**kwargs):
    return ApiClient(BASE_URL, **kwargs)


def test_csrf_header_only_sent_on_state_changing_calls(fake_api):
    fake_api.add("GET", "/admin/faqs", json={"success": True, "data": []})
    fake_api.add("POST", "/admin/faqs", json={"success": True, "data": {}})
    client = make_client(cookies={"smc_admin_csrf": "a%2Bb%3D"})

    client.get("/admin/faqs")
    client.post("/admin/faqs", {"question": {}})

    assert "x-csrf-token" not in fake_api.last("GET", "/admin/faqs").headers
    assert fake_api.last("POST", "/admin/faqs").headers["x-csrf-token"] == "a+b="


def test_no_csrf_header_without_cookie(fake_api):
    fake_api.add("DELETE", "/admin/faqs/1", json={"success": True})
    make_client().delete("/admin/faqs/1")
    headers = fake_api.last("DELETE", "/admin/faqs/1").headers
    assert "x-csrf-token" not in headers
    assert headers["Content-Type"] == "application/json"


def test_caller_content_type_is_kept():
    headers = make_client().build_headers("POST", {"content-type": "text/plain"})
    assert headers == {"content-type": "text/plain"}


def test_response_envelope_is_unpacked(fake_api):
    fake_api.add(
        "GET",
        "/admin/contacts",
        json={
            "success": True,
            "data": [{"_id": "c1"}],
            "pagination": {"page": 2, "limit": 20, "total": 41, "pages": 3},
            "statusCounts": {"new": 4},
        },
    )
    response = make_client().get("/admin/contacts", params={"page": "2"})

    assert isinstance(response, ApiResponse)
    assert response.success is True
    assert response.data == [{"_id": "c1"}]
    assert response.pagination["pages"] == 3
    assert response.status_counts == {"new": 4}
    assert fake_api.last("GET", "/admin/contacts").params == {"page": "2"}


def test_401_raises_session_expired_and_marks_client(fake_api):
    fake_api.add("GET", "/admin/auth/me", status=401, json={"success": False, "message": "Unauthorized"})
    client = make_client()

    with pytest.raises(SessionExpired) as excinfo:
        client.get("/admin/auth/me")

    assert excinfo.value.status == 401
    assert isinstance(excinfo.value, ApiError)
    assert client.session_expired is True


def test_non_json_401_also_expires_session(fake_api):
    fake_api.add("GET", "/admin/blogs", status=401, content=b"nope", headers={"Content-Type": "text/plain"})
    with pytest.raises(SessionExpired):
        make_client().get("/admin/blogs")


def test_non_json_error_reports_status(fake_api):
    fake_api.add("GET", "/admin/blogs", status=502, content=b"<html>bad gateway</html>",
                 headers={"Content-Type": "text/html"})
    with pytest.raises(ApiError) as excinfo:
        make_client().get("/admin/blogs")
    assert excinfo.value.message == "HTTP error! status: 502"
    assert not isinstance(excinfo.value, SessionExpired)


def test_non_json_success_is_invalid_format(fake_api):
    fake_api.add("GET", "/admin/blogs", content=b"hello", headers={"Content-Type": "text/plain"})
    with pytest.raises(ApiError, match="Invalid response format"):
        make_client().get("/admin/blogs")


def test_json_error_uses_message_or_default(fake_api):
    fake_api.add("PUT", "/admin/settings", status=422, json={"success": False, "message": "Invalid email"})
    fake_api.add("DELETE", "/admin/blogs/1", status=500, json={"success": False})
    client = make_client()

    with pytest.raises(ApiError) as excinfo:
        client.put("/admin/settings", {})
    assert excinfo.value.message == "Invalid email"
    assert excinfo.value.status == 422
    assert excinfo.value.payload == {"success": False, "message": "Invalid email"}

    with pytest.raises(ApiError, match="Something went wrong"):
        client.delete("/admin/blogs/1")


def test_connection_failure_is_network_error(monkeypatch):
    def refuse(session, method, url, **kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(requests.Session, "request", refuse)
    with pytest.raises(NetworkError) as excinfo:
        make_client().get("/admin/faqs")
    assert excinfo.value.message == NETWORK_ERROR_MESSAGE


def test_cookies_set_by_api_are_kept(fake_api):
    fake_api.add(
        "POST",
        "/admin/auth/login",
        json={"success": True, "data": {}},
        cookies={"smc_admin_session": "s1", "smc_admin_csrf": "t1"},
    )
    client = make_client(cookies={"existing": "1"})
    client.post("/admin/auth/login", {"username": "a", "password": "b"})

    assert client.cookies_dict() == {"existing": "1", "smc_admin_session": "s1", "smc_admin_csrf": "t1"}
    assert client.csrf_token() == "t1"

    client.clear_cookies()
    assert client.cookies_dict() == {}


def test_download_reads_filename_from_header(fake_api):
    fake_api.add(
        "GET",
        "/admin/export/contacts",
        content=b"PK\x03\x04",
        headers={
            "Content-Type": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            "Content-Disposition": 'attachment; filename="contacts_2024-01-05.xlsx"',
        },
    )
    content, content_type, filename = make_client().download("/admin/export/contacts")
    assert content == b"PK\x03\x04"
    assert filename == "contacts_2024-01-05.xlsx"
    assert content_type.startswith("application/vnd.openxmlformats")


def test_export_records_falls_back_to_default_filename(fake_api):
    fake_api.add("GET", "/admin/export/applications", content=b"data",
                 headers={"Content-Type": "application/octet-stream"})
    _, _, filename = api.export_records(make_client(), "applications", {"status": "pending", "loanType": ""})

    assert filename == "applications_export.xlsx"
    assert fake_api.last("GET", "/admin/export/applications").params == {"status": "pending"}


def test_export_records_rejects_unknown_type():
    with pytest.raises(ValueError):
        api.export_records(make_client(), "blogs")


def test_get_applications_dedupes_by_default(fake_api):
    fake_api.add("GET", "/admin/applications", json={"success": True, "data": []})
    client = make_client()

    api.get_applications(client, {"status": "pending", "search": ""})
    assert fake_api.last("GET", "/admin/applications").params == {"dedupe": "true", "status": "pending"}

    api.get_applications(client, {"dedupe": "false"})
    assert fake_api.last("GET", "/admin/applications").params == {"dedupe": "false"}


def test_notify_application_payload(fake_api):
    fake_api.add("POST", "/admin/whatsapp/notify-application/a1", json={"success": True})
    client = make_client()

    api.notify_application(client, "a1", "received")
    assert fake_api.last("POST", "/admin/whatsapp/notify-application/a1").json == {
        "notificationType": "received"
    }

    api.notify_application(client, "a1", "custom", "Hello")
    assert fake_api.last("POST", "/admin/whatsapp/notify-application/a1").json == {
        "notificationType": "custom",
        "customMessage": "Hello",
    }
