# exports/views.py
from urllib.parse import urlparse

from flask import Blueprint, Response, request, flash, redirect, url_for
from flask_login import login_required

from middleware.api_session import get_api
from utilities import api
from utilities.api_client import ApiError
from utilities.logger import get_logger

exports_bp = Blueprint("exports", __name__, template_folder="../templates")

logger = get_logger("exports")

EXPORT_FILTERS = ("status", "loanType", "startDate", "endDate")

# Where to go back to when there is no usable referrer
FALLBACK_ENDPOINTS = {
    "applications": "applications.list_applications",
    "contacts": "contacts.list_contacts",
    "analytics": "analytics.index",
}


def export_filters(export_type: str, args) -> dict:
    """Filters forwarded to the API; analytics exports take none."""
    if export_type == "analytics":
        return {}
    filters = {}
    for name in EXPORT_FILTERS:
        value = (args.get(name) or "").strip()
        if value and value != "all":
            filters[name] = value
    return filters


def _redirect_back(export_type: str):
    referrer = request.referrer or ""
    parsed = urlparse(referrer)
    if referrer and parsed.netloc == request.host:
        return redirect(referrer)
    return redirect(url_for(FALLBACK_ENDPOINTS.get(export_type, "main.dashboard")))


@exports_bp.route("/<export_type>", methods=["GET"])
@login_required
def export_data(export_type: str):
    """Stream an export file generated by the API back to the browser."""
    if export_type not in api.EXPORT_TYPES:
        flash("Invalid export type", "error")
        return redirect(url_for("main.dashboard"))

    filters = export_filters(export_type, request.args)
    try:
        content, content_type, filename = api.export_records(get_api(), export_type, filters)
    except ApiError as e:
        logger.error("Export of %s failed: %s", export_type, e.message)
        flash("Failed to export data. Please try again.", "error")
        return _redirect_back(export_type)

    logger.info("Exported %s (%d bytes) with filters %s", export_type, len(content), filters)
    response = Response(content, mimetype=content_type)
    response.headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response
