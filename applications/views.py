from flask import Blueprint, render_template, request, redirect, url_for, flash, session, current_app
from flask_login import login_required

from middleware.api_session import get_api
from utilities import api
from utilities.api_client import ApiError, NetworkError
from utilities.formatting import address_lines
from utilities.logger import get_logger
from utilities.pagination import PageInfo, get_page_arg

applications_bp = Blueprint(
    "applications",
    __name__,
    template_folder="../templates",
    static_folder="../static"
)

logger = get_logger("applications")

APPLICATION_STATUSES = ["pending", "processing", "approved", "rejected", "cancelled", "contacted"]
SUMMARY_STATUSES = ["pending", "processing", "approved", "rejected", "cancelled"]
STATUS_ACTIONS = ["processing", "approved", "rejected"]
LOCKED_STATUSES = {"approved", "rejected"}

LOAN_TYPES = [
    ("personal-loan", "Personal Loan"),
    ("business-loan", "Business Loan"),
    ("car-loan", "Car Loan"),
    ("home-loan", "Home Loan"),
    ("education-loan", "Education Loan"),
]

LOAN_PURPOSE_LABELS = {
    "home-renovation": "Home Renovation",
    "debt-consolidation": "Debt Consolidation",
    "business-expansion": "Business Expansion",
    "education": "Education",
    "medical": "Medical Expenses",
    "vehicle": "Vehicle Purchase",
    "other": "Other",
}

LOAN_AMOUNT_RANGE_LABELS = {
    "5000-10000": "RM 5,000 - RM 10,000",
    "10000-30000": "RM 10,000 - RM 30,000",
    "30000-50000": "RM 30,000 - RM 50,000",
    "50000-100000": "RM 50,000 - RM 100,000",
    "100000+": "RM 100,000+",
}

NOTIFICATION_TYPES = [
    ("received", "Application Received"),
    ("status_update", "Status Update"),
    ("document_reminder", "Document Reminder"),
    ("approval", "Approval Notification"),
    ("custom", "Custom Message"),
]
NOTIFICATION_LABELS = {
    "received": "Application Received",
    "status_update": "Status Update",
    "document_reminder": "Document Reminder",
    "approval": "Approval",
    "custom": "Custom Message",
}
EDITABLE_NOTIFICATION_TYPES = {"custom", "status_update"}
DEFAULT_NOTIFICATION_TYPE = "status_update"
# notification type -> form field holding its message
MESSAGE_FIELDS = {
    "status_update": "status_update_message",
    "custom": "custom_message",
}

TEMPLATES_SESSION_KEY = "whatsapp_templates"


def _list_filters() -> dict:
    return {
        "search": (request.args.get("search") or "").strip(),
        "status": (request.args.get("status") or "all").strip(),
        "loanType": (request.args.get("loanType") or "all").strip(),
        "dedupe": request.args.get("dedupe", "true").lower() != "false",
    }


def _list_query_args(filters: dict, **overrides) -> dict:
    args = {
        "search": filters["search"] or None,
        "status": filters["status"] if filters["status"] != "all" else None,
        "loanType": filters["loanType"] if filters["loanType"] != "all" else None,
        "dedupe": None if filters["dedupe"] else "false",
    }
    args.update(overrides)
    return {k: v for k, v in args.items() if v is not None}


def get_message_templates() -> dict:
    stored = session.get(TEMPLATES_SESSION_KEY) or {}
    return {
        "status_update": stored.get("status_update") or "",
        "custom": stored.get("custom") or "",
    }


def _fetch_application(application_id: str) -> dict | None:
    try:
        response = api.get_application(get_api(), application_id)
    except NetworkError:
        logger.error("Network error while fetching application %s", application_id)
        raise
    except ApiError as e:
        if e.status != 404:
            logger.error("Failed to fetch application %s: %s", application_id, e.message)
        return None
    if response.success and isinstance(response.data, dict):
        return response.data
    return None


def _to_detail(application_id: str):
    return redirect(url_for("applications.application_detail", application_id=application_id))


@applications_bp.route("/", methods=["GET"])
@login_required
def list_applications():
    filters = _list_filters()
    page = get_page_arg()
    limit = current_app.config.get("PAGE_SIZE", 20)

    params = {
        "page": str(page),
        "limit": str(limit),
        "dedupe": "true" if filters["dedupe"] else "false",
    }
    if filters["search"]:
        params["search"] = filters["search"]
    if filters["status"] != "all":
        params["status"] = filters["status"]
    if filters["loanType"] != "all":
        params["loanType"] = filters["loanType"]

    applications = []
    status_counts = {}
    page_info = PageInfo(page=page, limit=limit)
    try:
        response = api.get_applications(get_api(), params)
        if response.success:
            applications = response.data or []
            page_info = PageInfo.from_api(response.pagination, page, limit)
            status_counts = response.status_counts
    except ApiError as e:
        logger.error("Failed to fetch applications: %s", e.message)
        flash(e.message, "error")

    def list_url(**overrides):
        return url_for("applications.list_applications", **_list_query_args(filters, **overrides))

    return render_template(
        "applications/list.html",
        applications=applications,
        status_counts=status_counts,
        page_info=page_info,
        filters=filters,
        list_url=list_url,
        statuses=APPLICATION_STATUSES,
        summary_statuses=SUMMARY_STATUSES,
        loan_types=LOAN_TYPES,
    )


@applications_bp.route("/<application_id>", methods=["GET"])
@login_required
def application_detail(application_id: str):
    try:
        application = _fetch_application(application_id)
    except NetworkError as e:
        return render_template(
            "unavailable.html",
            error=e.message,
            back_url=url_for("applications.list_applications"),
            back_label="Back to applications",
        ), 503
    if application is None:
        return render_template("applications/not_found.html"), 404

    status = application.get("status") or "pending"
    consent_items = [
        ("Terms & Conditions", application.get("termsAccepted")),
        ("Privacy Policy", application.get("privacyAccepted")),
        ("CTOS Consent", application.get("ctosConsent")),
        ("Marketing Updates", application.get("marketingConsent")),
    ]
    return render_template(
        "applications/detail.html",
        application=application,
        status=status,
        status_locked=status in LOCKED_STATUSES,
        address=address_lines(application.get("address")),
        consent_items=consent_items,
        loan_purpose=LOAN_PURPOSE_LABELS.get(application.get("loanPurpose") or ""),
        loan_range=LOAN_AMOUNT_RANGE_LABELS.get(application.get("loanAmountRange") or ""),
        notifications=application.get("notifications") or [],
        notification_types=NOTIFICATION_TYPES,
        notification_labels=NOTIFICATION_LABELS,
        editable_notification_types=EDITABLE_NOTIFICATION_TYPES,
        default_notification_type=DEFAULT_NOTIFICATION_TYPE,
        templates=get_message_templates(),
    )


@applications_bp.route("/<application_id>/status", methods=["POST"])
@login_required
def update_status(application_id: str):
    new_status = (request.form.get("status") or "").strip().lower()
    notes = request.form.get("notes")
    rejection_reason = (request.form.get("rejection_reason") or "").strip()

    if new_status not in STATUS_ACTIONS:
        flash("Select a valid status.", "error")
        return _to_detail(application_id)

    try:
        application = _fetch_application(application_id)
    except NetworkError as e:
        flash(e.message, "error")
        return _to_detail(application_id)
    if application is None:
        flash("Application not found.", "error")
        return redirect(url_for("applications.list_applications"))

    if (application.get("status") or "") in LOCKED_STATUSES:
        flash("This application has already been finalised.", "error")
        return _to_detail(application_id)

    if notes is None:
        notes = application.get("notes") or ""

    payload = {"status": new_status, "notes": notes}
    if new_status == "rejected":
        if not rejection_reason:
            flash("Please provide a reason for rejection.", "error")
            return _to_detail(application_id)
        payload["rejectionReason"] = rejection_reason

    try:
        api.update_application(get_api(), application_id, payload)
    except ApiError as e:
        logger.error("Failed to update status of %s: %s", application_id, e.message)
        flash("Failed to reject application" if new_status == "rejected" else "Failed to update status", "error")
        return _to_detail(application_id)

    logger.info("Application %s -> %s", application_id, new_status)
    flash("Application rejected" if new_status == "rejected" else "Status updated successfully", "success")
    return _to_detail(application_id)


@applications_bp.route("/<application_id>/notes", methods=["POST"])
@login_required
def save_notes(application_id: str):
    notes = request.form.get("notes") or ""
    try:
        api.update_application(get_api(), application_id, {"notes": notes})
    except ApiError as e:
        logger.error("Failed to save notes for %s: %s", application_id, e.message)
        flash("Failed to save notes", "error")
        return _to_detail(application_id)

    flash("Notes saved", "success")
    return _to_detail(application_id)


@applications_bp.route("/<application_id>/notify", methods=["POST"])
@login_required
def notify_applicant(application_id: str):
    notification_type = (request.form.get("notification_type") or DEFAULT_NOTIFICATION_TYPE).strip()
    valid_types = {value for value, _ in NOTIFICATION_TYPES}
    if notification_type not in valid_types:
        flash("Select a valid notification type.", "error")
        return _to_detail(application_id)

    custom_message = None
    if notification_type in EDITABLE_NOTIFICATION_TYPES:
        custom_message = (request.form.get(MESSAGE_FIELDS[notification_type]) or "").strip()
        if notification_type == "custom" and not custom_message:
            flash("Enter a message to send.", "error")
            return _to_detail(application_id)

    try:
        response = api.notify_application(get_api(), application_id, notification_type, custom_message)
    except ApiError as e:
        logger.error("WhatsApp notify error for %s: %s", application_id, e.message)
        payload_error = e.payload.get("error") if isinstance(e.payload, dict) else None
        flash(payload_error or "Failed to send notification. Please try again.", "error")
        return _to_detail(application_id)

    if not response.success:
        flash(response.error or "Failed to send notification", "error")
        return _to_detail(application_id)

    flash("WhatsApp notification sent successfully!", "success")
    return _to_detail(application_id)


@applications_bp.route("/<application_id>/templates", methods=["POST"])
@login_required
def save_templates(application_id: str):
    session[TEMPLATES_SESSION_KEY] = {
        "status_update": request.form.get("status_update") or "",
        "custom": request.form.get("custom") or "",
    }
    flash("Templates saved", "success")
    return _to_detail(application_id)


@applications_bp.route("/<application_id>/delete", methods=["POST"])
@login_required
def delete_application(application_id: str):
    try:
        api.delete_application(get_api(), application_id)
    except ApiError as e:
        logger.error("Failed to delete application %s: %s", application_id, e.message)
        flash(e.message, "error")
        return _to_detail(application_id)

    logger.info("Application %s deleted", application_id)
    flash("Application deleted.", "success")
    return redirect(url_for("applications.list_applications"))
