import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlsplit

import pytest
import requests
from requests.cookies import cookiejar_from_dict

from app import create_app
from config import TestingConfig

API_PREFIX = urlsplit(TestingConfig.API_URL).path

ADMIN = {
    "id": "adm-1",
    "username": "siti",
    "name": "Siti Aminah",
    "email": "siti@example.com",
    "role": "admin",
}


@dataclass
class Call:
    method: str
    path: str
    params: Dict[str, Any] = field(default_factory=dict)
    json: Any = None
    headers: Dict[str, str] = field(default_factory=dict)


class FakeApi:
    """In-memory admin API. Routes are keyed by (METHOD, path below /api)."""

    def __init__(self):
        self.routes: Dict[tuple, Any] = {}
        self.calls = []

    def add(
        self,
        method: str,
        path: str,
        json: Any = None,
        status: int = 200,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
        cookies: Optional[Dict[str, str]] = None,
        responder: Optional[Callable[[Call], dict]] = None,
    ):
        reply = {
            "json": json,
            "status": status,
            "content": content,
            "headers": headers or {},
            "cookies": cookies or {},
        }
        self.routes[(method.upper(), path)] = responder or reply

    def calls_to(self, method: str, path: str):
        return [c for c in self.calls if c.method == method.upper() and c.path == path]

    def last(self, method: str, path: str) -> Call:
        matching = self.calls_to(method, path)
        assert matching, f"no {method} {path} call was made"
        return matching[-1]

    def handle(self, method: str, url: str, **kwargs) -> requests.Response:
        path = urlsplit(url).path
        if path.startswith(API_PREFIX):
            path = path[len(API_PREFIX):]
        call = Call(
            method=method.upper(),
            path=path,
            params=dict(kwargs.get("params") or {}),
            json=kwargs.get("json"),
            headers=dict(kwargs.get("headers") or {}),
        )
        self.calls.append(call)

        route = self.routes.get((call.method, path))
        if route is None:
            reply = {"json": {"success": False, "message": "Not found"}, "status": 404}
        elif callable(route):
            reply = route(call)
        else:
            reply = route
        return build_response(url, reply)


def build_response(url: str, reply: dict) -> requests.Response:
    status = reply.get("status", 200)
    content = reply.get("content")
    response = requests.Response()
    response.url = url
    response.status_code = status
    response.reason = "OK" if status < 400 else "Error"
    response.encoding = "utf-8"
    if content is not None:
        response._content = content
    else:
        response._content = json.dumps(reply.get("json")).encode("utf-8")
        response.headers["Content-Type"] = "application/json; charset=utf-8"
    for key, value in (reply.get("headers") or {}).items():
        response.headers[key] = value
    response.cookies = cookiejar_from_dict(reply.get("cookies") or {})
    return response


@pytest.fixture
def fake_api(monkeypatch):
    fake = FakeApi()

    def fake_request(session, method, url, **kwargs):
        return fake.handle(method, url, **kwargs)

    monkeypatch.setattr(requests.Session, "request", fake_request)
    return fake


@pytest.fixture
def app(fake_api):
    application = create_app(TestingConfig)
    application.config.update(TESTING=True, WTF_CSRF_ENABLED=False)
    yield application


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, fake_api, admin=None):
    fake_api.add(
        "POST",
        "/admin/auth/login",
        json={"success": True, "data": {"admin": admin or ADMIN}},
        cookies={"smc_admin_session": "sess-1", "smc_admin_csrf": "tok%2Babc"},
    )
    return client.post("/auth/login", data={"username": "siti", "password": "secret"})


@pytest.fixture
def auth_client(client, fake_api):
    response = login(client, fake_api)
    assert response.status_code == 302
    return client


@pytest.fixture
def editor_client(client, fake_api):
    response = login(client, fake_api, dict(ADMIN, role="editor"))
    assert response.status_code == 302
    return client
