from flask import Blueprint, render_template, request
from flask_login import login_required

from middleware.api_session import get_api
from utilities import api
from utilities.api_client import ApiError
from utilities.formatting import chart_date, format_number
from utilities.logger import get_logger

analytics_bp = Blueprint(
    "analytics",
    __name__,
    template_folder="../templates",
    static_folder="../static"
)

logger = get_logger("analytics")

PERIOD_OPTIONS = [
    ("7d", "Last 7 days"),
    ("30d", "Last 30 days"),
    ("90d", "Last 90 days"),
]
DEFAULT_PERIOD = "30d"


def _section(overview: dict | None, name: str) -> dict:
    return (overview or {}).get(name) or {}


def build_summary_cards(overview: dict | None) -> list[dict]:
    applications = _section(overview, "applications")
    visitors = _section(overview, "visitors")
    page_views = _section(overview, "pageViews")
    return [
        {
            "title": "Total Applications",
            "value": format_number(applications.get("total") or 0),
            "change": f"+{applications.get('thisMonth') or 0} this month",
            "helper": "Lifetime total",
            "tone": "blue",
        },
        {
            "title": "Pending Applications",
            "value": format_number(applications.get("pending") or 0),
            "change": f"{applications.get('today') or 0} new today",
            "helper": "Awaiting review",
            "tone": "green",
        },
        {
            "title": "Visitors (30d)",
            "value": format_number(visitors.get("thisMonth") or 0),
            "change": f"{visitors.get('today') or 0} today",
            "helper": "Unique visitors",
            "tone": "purple",
        },
        {
            "title": "Page Views (30d)",
            "value": format_number(page_views.get("thisMonth") or 0),
            "change": f"{page_views.get('today') or 0} today",
            "helper": "All pages combined",
            "tone": "orange",
        },
    ]


def build_application_snapshot(overview: dict | None) -> list[dict]:
    applications = _section(overview, "applications")
    snapshot = [
        {"label": "Approved", "count": applications.get("approved") or 0, "tone": "green"},
        {"label": "Pending", "count": applications.get("pending") or 0, "tone": "yellow"},
        {"label": "Today", "count": applications.get("today") or 0, "tone": "blue"},
        {"label": "This Month", "count": applications.get("thisMonth") or 0, "tone": "purple"},
    ]
    total = applications.get("total") or 0
    for item in snapshot:
        item["percent"] = round(item["count"] / total * 100) if total else 0
    return snapshot


def _to_float(value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def visitor_series(rows) -> list[dict]:
    return [
        {
            "date": chart_date(row.get("date")),
            "visitors": row.get("visitors") or 0,
            "pageViews": row.get("pageViews") or 0,
        }
        for row in rows or []
    ]


def conversion_series(rows) -> list[dict]:
    # conversionRate may arrive as a string
    return [
        {
            "date": chart_date(row.get("date")),
            "applications": row.get("applications") or 0,
            "approved": row.get("approved") or 0,
            "conversionRate": _to_float(row.get("conversionRate")),
        }
        for row in rows or []
    ]


def series_peak(rows: list[dict], *keys: str) -> float:
    """Largest value across the given keys; used to scale the bars."""
    values = [row.get(key) or 0 for row in rows for key in keys]
    return max(values) if values and max(values) > 0 else 1


def _fetch(loader, label: str):
    """Returns (data, error) so each panel can fail on its own."""
    try:
        response = loader()
    except ApiError as e:
        logger.error("Failed to load %s: %s", label, e.message)
        return None, e.message or f"Failed to load {label}"
    if not response.success or response.data is None:
        return None, response.message or f"Failed to load {label}"
    return response.data, None


@analytics_bp.route("/", methods=["GET"])
@login_required
def index():
    period = request.args.get("period") or DEFAULT_PERIOD
    if period not in dict(PERIOD_OPTIONS):
        period = DEFAULT_PERIOD

    client = get_api()
    overview, overview_error = _fetch(lambda: api.get_analytics_overview(client), "analytics overview")
    visitors, visitors_error = _fetch(lambda: api.get_visitor_stats(client, period), "visitor stats")
    conversions, conversions_error = _fetch(
        lambda: api.get_conversion_stats(client, period), "conversion stats"
    )

    visitor_rows = visitor_series(visitors if isinstance(visitors, list) else [])
    conversion_rows = conversion_series(conversions if isinstance(conversions, list) else [])

    return render_template(
        "analytics/index.html",
        period=period,
        period_options=PERIOD_OPTIONS,
        summary_cards=build_summary_cards(overview),
        snapshot=build_application_snapshot(overview),
        visitor_rows=visitor_rows,
        visitor_peak=series_peak(visitor_rows, "visitors", "pageViews"),
        conversion_rows=conversion_rows,
        conversion_peak=series_peak(conversion_rows, "applications", "approved"),
        overview_error=overview_error,
        visitors_error=visitors_error,
        conversions_error=conversions_error,
    )
