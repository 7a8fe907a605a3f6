from flask import render_template, request, redirect, url_for, flash
from flask_login import login_required

from middleware.api_session import get_api
from utilities import api
from utilities.api_client import ApiError
from utilities.localized import parse_optional_number
from utilities.logger import get_logger
from . import content_bp
from .ordering import find_by_id

logger = get_logger("content.products")

# record key -> (form prefix, label, whole numbers only)
RANGE_FIELDS = {
    "loanAmount": ("amount", "Loan amount", True),
    "interestRate": ("rate", "Interest rate", False),
    "tenure": ("tenure", "Tenure", True),
}


def _load_products() -> list[dict]:
    response = api.get_products(get_api())
    if response.success and isinstance(response.data, list):
        return response.data
    return []


def _plain(value):
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def product_ranges(product: dict) -> dict:
    """Display strings for the product's amount, rate and tenure ranges."""
    amount = product.get("loanAmount") or {}
    rate = product.get("interestRate") or {}
    tenure = product.get("tenure") or {}
    return {
        "amount": "RM {:,} - {:,}".format(_plain(amount.get("min") or 0), _plain(amount.get("max") or 0)),
        "rate": f"{_plain(rate.get('min') or 0)}% - {_plain(rate.get('max') or 0)}% p.a.",
        "tenure": f"{_plain(tenure.get('min') or 0)} - {_plain(tenure.get('max') or 0)} months",
    }


def product_to_form(product: dict) -> dict:
    values = {}
    for key, (prefix, _, _) in RANGE_FIELDS.items():
        bounds = product.get(key) or {}
        values[f"min_{prefix}"] = str(_plain(bounds.get("min", 0)))
        values[f"max_{prefix}"] = str(_plain(bounds.get("max", 0)))
    values["is_active"] = bool(product.get("isActive"))
    values["is_featured"] = bool(product.get("isFeatured"))
    return values


def validate_product_form(form, product: dict) -> tuple[dict, dict | None, str | None]:
    """Returns (form values, payload, error). Payload is None when invalid."""
    values = {}
    payload = {}
    error = None
    for key, (prefix, label, integer) in RANGE_FIELDS.items():
        raw_min = (form.get(f"min_{prefix}") or "").strip()
        raw_max = (form.get(f"max_{prefix}") or "").strip()
        values[f"min_{prefix}"] = raw_min
        values[f"max_{prefix}"] = raw_max
        low = parse_optional_number(raw_min, integer=integer)
        high = parse_optional_number(raw_max, integer=integer)
        if error:
            continue
        if low is None or high is None or low < 0 or high < 0:
            error = f"{label} must be a valid number."
        elif low > high:
            error = f"{label} minimum cannot be greater than the maximum."
        else:
            payload[key] = {"min": low, "max": high}

    values["is_active"] = form.get("is_active") in ("1", "on", "true")
    values["is_featured"] = form.get("is_featured") in ("1", "on", "true")
    if error:
        return values, None, error

    payload["interestRate"]["type"] = (product.get("interestRate") or {}).get("type")
    payload["isActive"] = values["is_active"]
    payload["isFeatured"] = values["is_featured"]
    return values, payload, None


def _render_form(product, values, error=None, status_code=200):
    return render_template(
        "content/product_form.html",
        product=product,
        values=values,
        form_error=error,
    ), status_code


@content_bp.route("/products", methods=["GET"])
@login_required
def list_products():
    products = []
    try:
        products = _load_products()
    except ApiError as e:
        logger.error("Failed to fetch products: %s", e.message)
        flash(e.message, "error")

    return render_template(
        "content/products.html",
        products=[(product, product_ranges(product)) for product in products],
        total=len(products),
        active_count=sum(1 for p in products if p.get("isActive")),
        featured_count=sum(1 for p in products if p.get("isFeatured")),
    )


@content_bp.route("/products/<product_id>/edit", methods=["GET", "POST"])
@login_required
def edit_product(product_id: str):
    try:
        product = find_by_id(_load_products(), product_id)
    except ApiError as e:
        flash(e.message, "error")
        return redirect(url_for("content.list_products"))
    if product is None:
        flash("Product not found.", "error")
        return redirect(url_for("content.list_products"))

    if request.method == "GET":
        return _render_form(product, product_to_form(product))

    values, payload, error = validate_product_form(request.form, product)
    if error:
        return _render_form(product, values, error, 400)

    try:
        api.update_product(get_api(), product_id, payload)
    except ApiError as e:
        logger.error("Failed to update product %s: %s", product_id, e.message)
        return _render_form(product, values, e.message or "Failed to update product")

    logger.info("Product %s updated", product_id)
    flash("Product updated.", "success")
    return redirect(url_for("content.list_products"))
