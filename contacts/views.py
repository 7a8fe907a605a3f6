from flask import Blueprint, render_template, request, redirect, url_for, flash, current_app
from flask_login import login_required

from middleware.api_session import get_api
from utilities import api
from utilities.api_client import ApiError, NetworkError
from utilities.logger import get_logger
from utilities.pagination import PageInfo, get_page_arg

CONTACT_STATUSES = ["new", "read", "replied", "archived"]

contacts_bp = Blueprint(
    "contacts",
    __name__,
    template_folder="../templates",
    static_folder="../static"
)

logger = get_logger("contacts")


def _fetch_contact(contact_id: str) -> dict | None:
    try:
        response = api.get_contact(get_api(), contact_id)
    except NetworkError:
        logger.error("Network error while fetching contact %s", contact_id)
        raise
    except ApiError as e:
        if e.status != 404:
            logger.error("Failed to fetch contact %s: %s", contact_id, e.message)
        return None
    if response.success and isinstance(response.data, dict):
        return response.data
    return None


def _back_to_list():
    # Keep the admin on the page/filter they came from
    next_url = request.form.get("next") or ""
    if next_url.startswith("/") and not next_url.startswith("//"):
        return redirect(next_url)
    return redirect(url_for("contacts.list_contacts"))


@contacts_bp.route("/", methods=["GET"])
@login_required
def list_contacts():
    status = (request.args.get("status") or "all").strip().lower()
    if status != "all" and status not in CONTACT_STATUSES:
        status = "all"
    search = (request.args.get("search") or "").strip()
    page = get_page_arg()
    limit = current_app.config.get("PAGE_SIZE", 20)

    params = {"page": str(page), "limit": str(limit)}
    if status != "all":
        params["status"] = status
    if search:
        params["search"] = search

    contacts = []
    status_counts = {}
    page_info = PageInfo(page=page, limit=limit)
    try:
        response = api.get_contacts(get_api(), params)
        if not response.success:
            raise ApiError(response.message or "Failed to fetch contacts")
        contacts = response.data or []
        page_info = PageInfo.from_api(response.pagination, page, limit)
        status_counts = response.status_counts
    except ApiError as e:
        logger.error("Failed to fetch contacts: %s", e.message)
        flash(e.message or "Failed to fetch contacts", "error")

    def list_url(**overrides):
        args = {"status": status if status != "all" else None, "search": search or None}
        args.update(overrides)
        return url_for("contacts.list_contacts", **{k: v for k, v in args.items() if v is not None})

    return render_template(
        "contacts/list.html",
        contacts=contacts,
        status_counts=status_counts,
        page_info=page_info,
        status_filter=status,
        search=search,
        list_url=list_url,
        statuses=CONTACT_STATUSES,
    )


@contacts_bp.route("/<contact_id>", methods=["GET"])
@login_required
def contact_detail(contact_id: str):
    try:
        contact = _fetch_contact(contact_id)
    except NetworkError as e:
        return render_template(
            "unavailable.html",
            error=e.message,
            back_url=url_for("contacts.list_contacts"),
            back_label="Back to contacts",
        ), 503
    if contact is None:
        flash("Contact not found.", "error")
        return redirect(url_for("contacts.list_contacts"))
    return render_template("contacts/detail.html", contact=contact, statuses=CONTACT_STATUSES)


@contacts_bp.route("/<contact_id>", methods=["POST"])
@login_required
def update_contact(contact_id: str):
    status = (request.form.get("status") or "").strip().lower()
    reply_message = request.form.get("reply_message") or ""

    if status not in CONTACT_STATUSES:
        flash("Select a valid status.", "error")
        return redirect(url_for("contacts.contact_detail", contact_id=contact_id))

    try:
        response = api.update_contact(
            get_api(), contact_id, {"status": status, "replyMessage": reply_message}
        )
        if not response.success:
            raise ApiError(response.message or "Failed to update contact")
    except ApiError as e:
        logger.error("Failed to update contact %s: %s", contact_id, e.message)
        flash(e.message or "Failed to update contact", "error")
        return redirect(url_for("contacts.contact_detail", contact_id=contact_id))

    flash("Contact updated.", "success")
    return redirect(url_for("contacts.list_contacts"))


@contacts_bp.route("/<contact_id>/status", methods=["POST"])
@login_required
def change_status(contact_id: str):
    new_status = (request.form.get("status") or "").strip().lower()
    current_status = (request.form.get("current_status") or "").strip().lower()

    if new_status not in CONTACT_STATUSES:
        flash("Select a valid status.", "error")
        return _back_to_list()
    if new_status == current_status:
        return _back_to_list()

    try:
        api.update_contact(get_api(), contact_id, {"status": new_status})
    except ApiError as e:
        logger.error("Failed to update status of contact %s: %s", contact_id, e.message)
        flash(e.message or "Failed to update status", "error")
        return _back_to_list()

    flash(f"Marked as {new_status.capitalize()}.", "success")
    return _back_to_list()


@contacts_bp.route("/<contact_id>/delete", methods=["POST"])
@login_required
def delete_contact(contact_id: str):
    try:
        api.delete_contact(get_api(), contact_id)
    except ApiError as e:
        logger.error("Failed to delete contact %s: %s", contact_id, e.message)
        flash(e.message, "error")
        return redirect(url_for("contacts.contact_detail", contact_id=contact_id))

    flash("Contact removed.", "success")
    return redirect(url_for("contacts.list_contacts"))
