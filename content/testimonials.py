from flask import render_template, request, redirect, url_for, flash
from flask_login import login_required

from middleware.api_session import get_api
from utilities import api
from utilities.api_client import ApiError
from utilities.localized import is_complete, localized_from_form
from utilities.logger import get_logger
from . import content_bp
from .ordering import find_by_id, next_order, parse_order, sort_by_order

logger = get_logger("content.testimonials")

RATINGS = [1, 2, 3, 4, 5]
CHECKED = ("1", "on", "true")


def _load_testimonials() -> list[dict]:
    response = api.get_testimonials(get_api())
    if response.success and isinstance(response.data, list):
        return sort_by_order(response.data)
    return []


def testimonial_to_form(item: dict | None, default_order: int = 1) -> dict:
    if item is None:
        return {
            "name": "",
            "location": "",
            "rating": "5",
            "content_en": "",
            "content_ms": "",
            "loan_type": "",
            "occupation": "",
            "is_active": True,
            "is_featured": False,
            "order": str(default_order),
        }
    content = item.get("content") or {}
    return {
        "name": item.get("name") or "",
        "location": item.get("location") or "",
        "rating": str(item.get("rating") or 5),
        "content_en": content.get("en") or "",
        "content_ms": content.get("ms") or "",
        "loan_type": item.get("loanType") or "",
        "occupation": item.get("occupation") or "",
        "is_active": bool(item.get("isActive")),
        "is_featured": bool(item.get("isFeatured")),
        "order": str(item.get("order") or 1),
    }


def _parse_rating(raw: str) -> int | None:
    try:
        rating = int(raw)
    except (TypeError, ValueError):
        return None
    return rating if 1 <= rating <= 5 else None


def validate_testimonial_form(form) -> tuple[dict, dict | None, str | None]:
    """Returns (form values, payload, error). Payload is None when invalid."""
    content = localized_from_form(form, "content")
    values = {
        "name": (form.get("name") or "").strip(),
        "location": (form.get("location") or "").strip(),
        "rating": (form.get("rating") or "").strip(),
        "content_en": content["en"],
        "content_ms": content["ms"],
        "loan_type": (form.get("loan_type") or "").strip(),
        "occupation": (form.get("occupation") or "").strip(),
        "is_active": form.get("is_active") in CHECKED,
        "is_featured": form.get("is_featured") in CHECKED,
        "order": (form.get("order") or "").strip(),
    }

    if not values["name"]:
        return values, None, "Customer name is required."
    if not is_complete(content):
        return values, None, "Please provide the review content in both languages."
    rating = _parse_rating(values["rating"])
    if rating is None:
        return values, None, "Rating must be between 1 and 5 stars."
    order = parse_order(values["order"])
    if order is None:
        return values, None, "Display order must be a positive number."

    payload = {
        "name": values["name"],
        "location": values["location"],
        "rating": rating,
        "content": content,
        "loanType": values["loan_type"],
        "occupation": values["occupation"],
        "isActive": values["is_active"],
        "isFeatured": values["is_featured"],
        "order": order,
    }
    return values, payload, None


def _render_form(item, values, error=None, status_code=200):
    return render_template(
        "content/testimonial_form.html",
        testimonial=item,
        values=values,
        form_error=error,
        ratings=RATINGS,
    ), status_code


@content_bp.route("/testimonials", methods=["GET"])
@login_required
def list_testimonials():
    testimonials = []
    try:
        testimonials = _load_testimonials()
    except ApiError as e:
        logger.error("Failed to fetch testimonials: %s", e.message)
        flash(e.message, "error")

    return render_template(
        "content/testimonials.html",
        testimonials=testimonials,
        active_count=sum(1 for t in testimonials if t.get("isActive")),
        featured_count=sum(1 for t in testimonials if t.get("isFeatured")),
    )


@content_bp.route("/testimonials/new", methods=["GET", "POST"])
@login_required
def new_testimonial():
    if request.method == "GET":
        try:
            default_order = next_order(_load_testimonials())
        except ApiError as e:
            logger.warning("Could not load testimonials for ordering: %s", e.message)
            default_order = 1
        return _render_form(None, testimonial_to_form(None, default_order))

    values, payload, error = validate_testimonial_form(request.form)
    if error:
        return _render_form(None, values, error, 400)

    try:
        api.create_testimonial(get_api(), payload)
    except ApiError as e:
        logger.error("Failed to save testimonial: %s", e.message)
        return _render_form(None, values, e.message or "Failed to save testimonial")

    flash("Testimonial created.", "success")
    return redirect(url_for("content.list_testimonials"))


@content_bp.route("/testimonials/<testimonial_id>/edit", methods=["GET", "POST"])
@login_required
def edit_testimonial(testimonial_id: str):
    try:
        item = find_by_id(_load_testimonials(), testimonial_id)
    except ApiError as e:
        flash(e.message, "error")
        return redirect(url_for("content.list_testimonials"))
    if item is None:
        flash("Testimonial not found.", "error")
        return redirect(url_for("content.list_testimonials"))

    if request.method == "GET":
        return _render_form(item, testimonial_to_form(item))

    values, payload, error = validate_testimonial_form(request.form)
    if error:
        return _render_form(item, values, error, 400)

    try:
        api.update_testimonial(get_api(), testimonial_id, payload)
    except ApiError as e:
        logger.error("Failed to save testimonial %s: %s", testimonial_id, e.message)
        return _render_form(item, values, e.message or "Failed to save testimonial")

    flash("Testimonial updated.", "success")
    return redirect(url_for("content.list_testimonials"))


@content_bp.route("/testimonials/<testimonial_id>/order", methods=["POST"])
@login_required
def update_testimonial_order(testimonial_id: str):
    new_order = parse_order(request.form.get("order"))
    if new_order is None:
        flash("Display order must be a positive number.", "error")
        return redirect(url_for("content.list_testimonials"))

    try:
        item = find_by_id(_load_testimonials(), testimonial_id)
        if item is None:
            flash("Testimonial not found.", "error")
            return redirect(url_for("content.list_testimonials"))
        api.update_testimonial(get_api(), testimonial_id, {
            "name": item.get("name"),
            "location": item.get("location"),
            "rating": item.get("rating"),
            "content": item.get("content"),
            "loanType": item.get("loanType"),
            "occupation": item.get("occupation"),
            "isActive": item.get("isActive"),
            "isFeatured": item.get("isFeatured"),
            "order": new_order,
        })
    except ApiError as e:
        logger.error("Failed to update order of testimonial %s: %s", testimonial_id, e.message)
        flash(e.message or "Failed to update order", "error")
        return redirect(url_for("content.list_testimonials"))

    flash("Display order updated.", "success")
    return redirect(url_for("content.list_testimonials"))


@content_bp.route("/testimonials/<testimonial_id>/delete", methods=["POST"])
@login_required
def delete_testimonial(testimonial_id: str):
    try:
        api.delete_testimonial(get_api(), testimonial_id)
    except ApiError as e:
        logger.error("Failed to delete testimonial %s: %s", testimonial_id, e.message)
        flash(e.message, "error")
        return redirect(url_for("content.list_testimonials"))

    flash("Testimonial deleted.", "success")
    return redirect(url_for("content.list_testimonials"))
