from flask import request, Blueprint, render_template, redirect, url_for, flash, session
from flask_login import login_user, login_required, current_user

from middleware.api_session import get_api, clear_api_session, ADMIN_KEY
from utilities import api
from utilities.api_client import ApiError
from utilities.extensions import limiter
from utilities.logger import get_logger
from .user import AdminUser

auth_bp = Blueprint(
    "auth",
    __name__,
    template_folder="../templates",
    static_folder="../static"
)

logger = get_logger("auth")


def _resolve_admin(client, login_data) -> dict | None:
    """Admin profile from the login payload, falling back to /auth/me."""
    if isinstance(login_data, dict) and login_data.get("admin"):
        return login_data["admin"]
    me = api.get_me(client)
    if me.success and isinstance(me.data, dict):
        return me.data
    return None


@auth_bp.route("/login", methods=["GET"])
def login():
    if current_user.is_authenticated:
        return redirect(url_for("main.dashboard"))
    return render_template("login.html", username="")


@auth_bp.route("/login", methods=["POST"])
@limiter.limit("10 per minute", methods=["POST"])
def login_post():
    username = (request.form.get("username") or "").strip()
    password = request.form.get("password") or ""

    if not username or not password:
        flash("Enter your username and password.", "error")
        return render_template("login.html", username=username), 400

    client = get_api()
    try:
        response = api.login(client, username, password)
        if not response.success:
            raise ApiError(response.message or "Login failed")
        admin_data = _resolve_admin(client, response.data)
    except ApiError as e:
        logger.info("Login failed for %s: %s", username, e.message)
        flash(e.message or "Login failed", "error")
        return render_template("login.html", username=username), 401

    if not admin_data:
        flash("Login failed", "error")
        return render_template("login.html", username=username), 401

    admin = AdminUser(admin_data)
    session[ADMIN_KEY] = admin.to_dict()
    login_user(admin)
    logger.info("Admin %s signed in", admin.username)

    next_url = request.args.get("next")
    if next_url and next_url.startswith("/") and not next_url.startswith("//"):
        return redirect(next_url)
    return redirect(url_for("main.dashboard"))


@auth_bp.route("/logout", methods=["GET", "POST"])
@login_required
def logout():
    username = current_user.username
    try:
        api.logout(get_api())
    except ApiError as e:
        # Local sign-out still happens; the remote session will lapse on its own
        logger.warning("Remote logout failed for %s: %s", username, e.message)

    clear_api_session()
    logger.info("Admin %s signed out", username)
    flash("You have been signed out.", "success")
    return redirect(url_for("auth.login"))
