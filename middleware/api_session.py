"""
API session middleware.
Binds an ApiClient to each console request and handles remote session expiry.
"""

from functools import wraps

from flask import abort, current_app, flash, g, redirect, request, session, url_for
from flask_login import current_user, logout_user

from utilities.api_client import ApiClient, SessionExpired
from utilities.logger import get_logger

logger = get_logger("session")

API_COOKIES_KEY = "api_cookies"
ADMIN_KEY = "admin"


class ApiSessionMiddleware:
    """
    Request flow:
    1. Rebuild the remote cookie jar from the signed console session
    2. Expose the client as `g.api` for the views
    3. Persist any cookies the API refreshed during the request, then close the client
    4. On a 401 from the API, drop the local login and go back to login,
       even when the view caught the error and rendered something else
    """

    def __init__(self, app=None):
        self.app = app
        if app:
            self.init_app(app)

    def init_app(self, app):
        """Initialize middleware with Flask app."""
        self.app = app
        app.before_request(self.bind_client)
        app.after_request(self.finish_request)
        app.teardown_request(self.close_client)
        app.register_error_handler(SessionExpired, self.handle_session_expired)

    def build_client(self, cookies=None) -> ApiClient:
        config = current_app.config
        return ApiClient(
            config["API_URL"],
            cookies=cookies,
            timeout=config.get("API_TIMEOUT", 15),
            csrf_cookie=config.get("API_CSRF_COOKIE", "smc_admin_csrf"),
            csrf_header=config.get("API_CSRF_HEADER", "x-csrf-token"),
        )

    def bind_client(self):
        if request.endpoint == "static":
            return
        g.api = self.build_client(session.get(API_COOKIES_KEY) or {})

    def finish_request(self, response):
        client = g.get("api")
        if client is None or g.get("api_session_cleared"):
            return response
        if client.session_expired and current_user.is_authenticated:
            # Drop whatever the view flashed about the failed call
            session.pop("_flashes", None)
            return self.handle_session_expired(None)
        cookies = client.cookies_dict()
        if cookies != (session.get(API_COOKIES_KEY) or {}):
            session[API_COOKIES_KEY] = cookies
        return response

    def close_client(self, exc=None):
        client = g.pop("api", None)
        if client is not None:
            client.close()

    def handle_session_expired(self, error):
        username = getattr(current_user, "username", None)
        logger.info("Remote session expired for %s", username or "anonymous")
        clear_api_session()
        flash("Your session has expired. Please sign in again.", "error")
        return redirect(url_for("auth.login"))


def get_api() -> ApiClient:
    """Return the client bound to the current request."""
    client = g.get("api")
    if client is None:
        client = api_session.build_client(session.get(API_COOKIES_KEY) or {})
        g.api = client
    return client


def clear_api_session():
    """Forget the remote cookies and the signed-in admin."""
    if current_user.is_authenticated:
        logout_user()
    session.pop(API_COOKIES_KEY, None)
    session.pop(ADMIN_KEY, None)
    client = g.get("api")
    if client is not None:
        client.clear_cookies()
    g.api_session_cleared = True


def role_required(*roles):
    """
    Decorator to restrict a view to the given admin roles.

    Example:
        @settings_bp.route("/")
        @login_required
        @role_required("super-admin", "admin")
        def edit_settings():
            ...
    """
    allowed = {r.lower() for r in roles}

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return redirect(url_for("auth.login"))
            if (getattr(current_user, "role", "") or "").lower() not in allowed:
                abort(403, description="Your role does not have access to this page")
            return f(*args, **kwargs)
        return decorated_function
    return decorator


# Global middleware instance
api_session = ApiSessionMiddleware()
