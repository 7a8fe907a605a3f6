"""
HTTP client for the remote admin API.

Every screen in the console goes through ApiClient.request():
- JSON in, JSON out, with the `{success, data, message, pagination,
  statusCounts}` envelope unpacked into an ApiResponse.
- The anti-forgery token the API sets in a cookie is echoed back in a
  header on state-changing calls.
- A 401 raises SessionExpired so the app can send the admin back to login.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple
from urllib.parse import unquote
import re

import requests

from .logger import get_logger

logger = get_logger("api")

SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}
NETWORK_ERROR_MESSAGE = "Network error. Please check your connection."
_FILENAME_RE = re.compile(r'filename="(.+)"')


class ApiError(Exception):
    """A call to the admin API failed."""

    def __init__(self, message: str, status: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload


class SessionExpired(ApiError):
    """The API answered 401: the admin's remote session is gone."""


class NetworkError(ApiError):
    """The API could not be reached."""


@dataclass
class ApiResponse:
    success: bool = False
    data: Any = None
    message: Optional[str] = None
    error: Optional[str] = None
    pagination: Optional[Dict[str, int]] = None
    status_counts: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> "ApiResponse":
        if not isinstance(payload, dict):
            return cls(success=False, data=payload)
        return cls(
            success=bool(payload.get("success")),
            data=payload.get("data"),
            message=payload.get("message"),
            error=payload.get("error"),
            pagination=payload.get("pagination"),
            status_counts=payload.get("statusCounts") or {},
        )


class ApiClient:
    def __init__(
        self,
        base_url: str,
        cookies: Optional[Dict[str, str]] = None,
        timeout: float = 15,
        csrf_cookie: str = "smc_admin_csrf",
        csrf_header: str = "x-csrf-token",
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.csrf_cookie = csrf_cookie
        self.csrf_header = csrf_header
        self.session = session or requests.Session()
        # Set once the API has answered 401 during this client's lifetime
        self.session_expired = False
        if cookies:
            self.session.cookies.update(cookies)

    # ------------------------------------------------------------------ #
    # Cookies / CSRF
    # ------------------------------------------------------------------ #
    def cookies_dict(self) -> Dict[str, str]:
        return requests.utils.dict_from_cookiejar(self.session.cookies)

    def clear_cookies(self) -> None:
        self.session.cookies.clear()

    def close(self) -> None:
        self.session.close()

    def csrf_token(self) -> Optional[str]:
        value = self.session.cookies.get(self.csrf_cookie)
        if value is None:
            return None
        return unquote(value)

    def build_headers(self, method: str, headers: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        merged = dict(headers or {})
        if not any(key.lower() == "content-type" for key in merged):
            merged["Content-Type"] = "application/json"
        if method.upper() not in SAFE_METHODS:
            token = self.csrf_token()
            if token:
                merged[self.csrf_header] = token
        return merged

    def _expired(self, message: str, payload: Any = None) -> SessionExpired:
        self.session_expired = True
        return SessionExpired(message, status=401, payload=payload)

    # ------------------------------------------------------------------ #
    # Transport
    # ------------------------------------------------------------------ #
    def _send(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{endpoint}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except (requests.ConnectionError, requests.Timeout) as exc:
            logger.warning("%s %s unreachable: %s", method, endpoint, exc)
            raise NetworkError(NETWORK_ERROR_MESSAGE) from exc
        except requests.RequestException as exc:
            logger.error("%s %s failed: %s", method, endpoint, exc)
            raise ApiError("An unexpected error occurred") from exc

        # Keep whatever the API set (session, CSRF) for the next call
        self.session.cookies.update(response.cookies)
        return response

    def request(
        self,
        endpoint: str,
        method: str = "GET",
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> ApiResponse:
        method = method.upper()
        response = self._send(
            method,
            endpoint,
            json=json,
            params=params,
            headers=self.build_headers(method, headers),
        )

        content_type = response.headers.get("content-type") or ""
        if "application/json" not in content_type:
            if not response.ok:
                logger.warning("%s %s -> %s (non-JSON)", method, endpoint, response.status_code)
                if response.status_code == 401:
                    raise self._expired("Your session has expired.")
                raise ApiError(f"HTTP error! status: {response.status_code}", status=response.status_code)
            raise ApiError("Invalid response format", status=response.status_code)

        try:
            payload = response.json()
        except ValueError as exc:
            raise ApiError("Invalid response format", status=response.status_code) from exc

        if not response.ok:
            message = None
            if isinstance(payload, dict):
                message = payload.get("message")
            logger.warning("%s %s -> %s %s", method, endpoint, response.status_code, message or "")
            if response.status_code == 401:
                raise self._expired(message or "Your session has expired.", payload)
            raise ApiError(message or "Something went wrong", status=response.status_code, payload=payload)

        return ApiResponse.from_payload(payload)

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> ApiResponse:
        return self.request(endpoint, params=params)

    def post(self, endpoint: str, data: Any = None) -> ApiResponse:
        return self.request(endpoint, method="POST", json=data)

    def put(self, endpoint: str, data: Any = None) -> ApiResponse:
        return self.request(endpoint, method="PUT", json=data)

    def patch(self, endpoint: str, data: Any = None) -> ApiResponse:
        return self.request(endpoint, method="PATCH", json=data)

    def delete(self, endpoint: str) -> ApiResponse:
        return self.request(endpoint, method="DELETE")

    def download(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        fallback_filename: str = "export.xlsx",
    ) -> Tuple[bytes, str, str]:
        """Fetch a binary file (exports). Returns (content, content_type, filename)."""
        response = self._send("GET", endpoint, params=params)
        if response.status_code == 401:
            raise self._expired("Your session has expired.")
        if not response.ok:
            logger.warning("GET %s -> %s (download)", endpoint, response.status_code)
            raise ApiError("Export failed", status=response.status_code)

        disposition = response.headers.get("Content-Disposition") or ""
        match = _FILENAME_RE.search(disposition)
        filename = match.group(1) if match else fallback_filename
        content_type = response.headers.get("content-type") or "application/octet-stream"
        return response.content, content_type, filename
