from flask import Blueprint, render_template, flash
from flask_login import login_required

from middleware.api_session import get_api
from utilities import api
from utilities.api_client import ApiError
from utilities.logger import get_logger


main_bp = Blueprint(
    "main",
    __name__,
    template_folder="../templates",
    static_folder="../static"
)

logger = get_logger("dashboard")

EMPTY_STATS = {"total": 0, "pending": 0, "today": 0, "thisMonth": 0, "lastMonth": 0, "growth": "0"}


def _growth_trend(growth) -> str:
    try:
        return "up" if float(growth) >= 0 else "down"
    except (TypeError, ValueError):
        return "up"


def build_stat_cards(stats: dict) -> list[dict]:
    return [
        {
            "title": "Total Applications",
            "value": stats.get("total") or 0,
            "description": "All time",
            "tone": "blue",
        },
        {
            "title": "Pending Review",
            "value": stats.get("pending") or 0,
            "description": "Needs attention",
            "tone": "yellow",
        },
        {
            "title": "This Month",
            "value": stats.get("thisMonth") or 0,
            "description": f"{stats.get('growth') or 0}% vs last month",
            "tone": "green",
            "trend": _growth_trend(stats.get("growth")),
        },
        {
            "title": "Today",
            "value": stats.get("today") or 0,
            "description": "New applications",
            "tone": "purple",
        },
    ]


@main_bp.route("/", methods=["GET"])
@login_required
def dashboard():
    client = get_api()
    stats = dict(EMPTY_STATS)
    recent_applications = []

    try:
        stats_response = api.get_application_stats(client)
        if stats_response.success and isinstance(stats_response.data, dict):
            stats.update(stats_response.data)

        apps_response = api.get_applications(
            client, {"limit": "5", "sortBy": "createdAt", "sortOrder": "desc"}
        )
        if apps_response.success and isinstance(apps_response.data, list):
            recent_applications = apps_response.data
    except ApiError as e:
        logger.error("Failed to fetch dashboard data: %s", e.message)
        flash(e.message, "error")

    return render_template(
        "dashboard.html",
        stats=stats,
        stat_cards=build_stat_cards(stats),
        recent_applications=recent_applications,
    )
