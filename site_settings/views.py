from flask import Blueprint, abort, flash, redirect, render_template, request, url_for
from flask_login import login_required

from middleware.api_session import get_api, role_required
from utilities import api
from utilities.api_client import ApiError
from utilities.logger import get_logger
from .forms import (
    DEFAULT_STATE,
    SECTION_LABELS,
    apply_location_action,
    build_payload,
    parse_locations,
    section_values,
    settings_to_state,
)

settings_bp = Blueprint(
    "site_settings",
    __name__,
    template_folder="../templates",
    static_folder="../static"
)

logger = get_logger("settings")

SETTINGS_ROLES = ("super-admin", "admin")


def _section_arg(raw) -> str:
    return raw if raw in SECTION_LABELS else "general"


def _load_settings() -> dict:
    response = api.get_settings(get_api())
    if not response.success:
        raise ApiError(response.message or "Failed to load settings")
    return response.data if isinstance(response.data, dict) else {}


def _render(section, state, locations, status_code=200):
    return render_template(
        "settings/index.html",
        section=section,
        sections=SECTION_LABELS,
        state=state,
        locations=locations,
    ), status_code


@settings_bp.route("/", methods=["GET"])
@login_required
@role_required(*SETTINGS_ROLES)
def index():
    section = _section_arg(request.args.get("section"))
    state = dict(DEFAULT_STATE)
    locations = []
    try:
        settings = _load_settings()
        if settings:
            state = settings_to_state(settings)
            locations = settings.get("locations") or []
    except ApiError as e:
        logger.error("Failed to fetch settings: %s", e.message)
        flash(e.message or "Failed to load settings", "error")

    return _render(section, state, locations)


@settings_bp.route("/<section>", methods=["POST"])
@login_required
@role_required(*SETTINGS_ROLES)
def save_section(section: str):
    if section not in SECTION_LABELS:
        abort(404)

    action = request.form.get("action") or "save"
    posted_locations = parse_locations(request.form) if section == "locations" else None
    if posted_locations is not None and action != "save":
        # Add/remove buttons only reshape the form; nothing is saved yet
        if not apply_location_action(posted_locations, action):
            flash("Unknown action.", "error")
        return _render(section, dict(DEFAULT_STATE), posted_locations)

    try:
        current = _load_settings()
    except ApiError as e:
        logger.error("Failed to fetch settings before saving %s: %s", section, e.message)
        flash(e.message or "Failed to save settings", "error")
        state = dict(DEFAULT_STATE)
        state.update(section_values(request.form, section))
        return _render(section, state, posted_locations or [])

    state = settings_to_state(current)
    state.update(section_values(request.form, section))
    if posted_locations is None:
        locations = current.get("locations") or []
    else:
        locations = posted_locations

    try:
        response = api.update_settings(get_api(), build_payload(state, locations))
        if not response.success:
            raise ApiError(response.message or "Failed to save settings")
    except ApiError as e:
        logger.error("Failed to save %s settings: %s", section, e.message)
        flash(e.message or "Failed to save settings", "error")
        return _render(section, state, locations)

    logger.info("%s settings saved", SECTION_LABELS[section])
    flash(f"{SECTION_LABELS[section]} settings saved successfully", "success")
    return redirect(url_for("site_settings.index", section=section))
