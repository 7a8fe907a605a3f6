from flask import render_template, request, redirect, url_for, flash
from flask_login import login_required

from middleware.api_session import get_api
from utilities import api
from utilities.api_client import ApiError
from utilities.localized import is_complete, localized_from_form
from utilities.logger import get_logger
from . import content_bp
from .ordering import find_by_id, next_order, parse_order, sort_by_order

logger = get_logger("content.faqs")

FAQ_CATEGORIES = ["general", "application", "payment", "requirements", "fees"]


def _load_faqs() -> list[dict]:
    response = api.get_faqs(get_api())
    if response.success and isinstance(response.data, list):
        return sort_by_order(response.data)
    return []


def faq_to_form(faq: dict | None, default_order: int = 1) -> dict:
    if faq is None:
        return {
            "question_en": "",
            "question_ms": "",
            "answer_en": "",
            "answer_ms": "",
            "category": "general",
            "is_active": True,
            "order": str(default_order),
        }
    question = faq.get("question") or {}
    answer = faq.get("answer") or {}
    return {
        "question_en": question.get("en") or "",
        "question_ms": question.get("ms") or "",
        "answer_en": answer.get("en") or "",
        "answer_ms": answer.get("ms") or "",
        "category": faq.get("category") or "general",
        "is_active": bool(faq.get("isActive")),
        "order": str(faq.get("order") or 1),
    }


def validate_faq_form(form) -> tuple[dict, dict | None, str | None]:
    """Returns (form values, payload, error). Payload is None when invalid."""
    question = localized_from_form(form, "question")
    answer = localized_from_form(form, "answer")
    values = {
        "question_en": question["en"],
        "question_ms": question["ms"],
        "answer_en": answer["en"],
        "answer_ms": answer["ms"],
        "category": (form.get("category") or "general").strip() or "general",
        "is_active": form.get("is_active") in ("1", "on", "true"),
        "order": (form.get("order") or "").strip(),
    }

    if not is_complete(question) or not is_complete(answer):
        return values, None, "Please complete the question and answer in both languages."
    order = parse_order(values["order"])
    if order is None:
        return values, None, "Display order must be a positive number."

    payload = {
        "question": question,
        "answer": answer,
        "category": values["category"],
        "isActive": values["is_active"],
        "order": order,
    }
    return values, payload, None


def _render_form(faq, values, error=None, status_code=200):
    return render_template(
        "content/faq_form.html",
        faq=faq,
        values=values,
        form_error=error,
        categories=FAQ_CATEGORIES,
    ), status_code


@content_bp.route("/faqs", methods=["GET"])
@login_required
def list_faqs():
    faqs = []
    try:
        faqs = _load_faqs()
    except ApiError as e:
        logger.error("Failed to fetch FAQs: %s", e.message)
        flash(e.message, "error")

    return render_template(
        "content/faqs.html",
        faqs=faqs,
        active_count=sum(1 for faq in faqs if faq.get("isActive")),
    )


@content_bp.route("/faqs/new", methods=["GET", "POST"])
@login_required
def new_faq():
    if request.method == "GET":
        try:
            default_order = next_order(_load_faqs())
        except ApiError as e:
            logger.warning("Could not load FAQs for ordering: %s", e.message)
            default_order = 1
        return _render_form(None, faq_to_form(None, default_order))

    values, payload, error = validate_faq_form(request.form)
    if error:
        return _render_form(None, values, error, 400)

    try:
        api.create_faq(get_api(), payload)
    except ApiError as e:
        logger.error("Failed to save FAQ: %s", e.message)
        return _render_form(None, values, e.message or "Failed to save FAQ")

    flash("FAQ created.", "success")
    return redirect(url_for("content.list_faqs"))


@content_bp.route("/faqs/<faq_id>/edit", methods=["GET", "POST"])
@login_required
def edit_faq(faq_id: str):
    try:
        faq = find_by_id(_load_faqs(), faq_id)
    except ApiError as e:
        flash(e.message, "error")
        return redirect(url_for("content.list_faqs"))
    if faq is None:
        flash("FAQ not found.", "error")
        return redirect(url_for("content.list_faqs"))

    if request.method == "GET":
        return _render_form(faq, faq_to_form(faq))

    values, payload, error = validate_faq_form(request.form)
    if error:
        return _render_form(faq, values, error, 400)

    try:
        api.update_faq(get_api(), faq_id, payload)
    except ApiError as e:
        logger.error("Failed to save FAQ %s: %s", faq_id, e.message)
        return _render_form(faq, values, e.message or "Failed to save FAQ")

    flash("FAQ updated.", "success")
    return redirect(url_for("content.list_faqs"))


@content_bp.route("/faqs/<faq_id>/order", methods=["POST"])
@login_required
def update_faq_order(faq_id: str):
    new_order = parse_order(request.form.get("order"))
    if new_order is None:
        flash("Display order must be a positive number.", "error")
        return redirect(url_for("content.list_faqs"))

    try:
        faq = find_by_id(_load_faqs(), faq_id)
        if faq is None:
            flash("FAQ not found.", "error")
            return redirect(url_for("content.list_faqs"))
        api.update_faq(get_api(), faq_id, {
            "question": faq.get("question"),
            "answer": faq.get("answer"),
            "category": faq.get("category"),
            "isActive": faq.get("isActive"),
            "order": new_order,
        })
    except ApiError as e:
        logger.error("Failed to update order of FAQ %s: %s", faq_id, e.message)
        flash(e.message or "Failed to update order", "error")
        return redirect(url_for("content.list_faqs"))

    flash("Display order updated.", "success")
    return redirect(url_for("content.list_faqs"))


@content_bp.route("/faqs/<faq_id>/delete", methods=["POST"])
@login_required
def delete_faq(faq_id: str):
    try:
        api.delete_faq(get_api(), faq_id)
    except ApiError as e:
        logger.error("Failed to delete FAQ %s: %s", faq_id, e.message)
        flash(e.message, "error")
        return redirect(url_for("content.list_faqs"))

    flash("FAQ deleted.", "success")
    return redirect(url_for("content.list_faqs"))
