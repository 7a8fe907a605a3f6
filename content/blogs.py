from urllib.parse import urlparse

from flask import render_template, request, redirect, url_for, flash
from flask_login import login_required

from middleware.api_session import get_api
from utilities import api
from utilities.api_client import ApiError
from utilities.localized import join_list, split_list
from utilities.logger import get_logger
from . import content_bp

logger = get_logger("content.blogs")

BLOG_CATEGORIES = [
    ("tips", "Tips"),
    ("news", "News"),
    ("guides", "Guides"),
    ("comparison", "Comparison"),
    ("updates", "Updates"),
]
BLOG_STATUSES = [
    ("draft", "Draft"),
    ("published", "Published"),
    ("archived", "Archived"),
]

# field -> (minimum length, error message)
MIN_LENGTHS = {
    "title_en": (3, "Title (EN) is required"),
    "title_ms": (3, "Title (MS) is required"),
    "slug": (3, "Slug is required"),
    "excerpt_en": (10, "Excerpt (EN) is required"),
    "excerpt_ms": (10, "Excerpt (MS) is required"),
    "content_en": (20, "Content (EN) is required"),
    "content_ms": (20, "Content (MS) is required"),
    "category": (2, "Category is required"),
}

FORM_FIELDS = list(MIN_LENGTHS) + [
    "status",
    "tags",
    "featured_image_url",
    "featured_image_alt_en",
    "featured_image_alt_ms",
    "seo_title_en",
    "seo_title_ms",
    "seo_description_en",
    "seo_description_ms",
    "seo_keywords",
]


def _is_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def blog_to_form(blog: dict | None) -> dict:
    blog = blog or {}
    title = blog.get("title") or {}
    excerpt = blog.get("excerpt") or {}
    content = blog.get("content") or {}
    image = blog.get("featuredImage") or {}
    image_alt = image.get("alt") or {}
    seo = blog.get("seo") or {}
    return {
        "title_en": title.get("en") or "",
        "title_ms": title.get("ms") or "",
        "slug": blog.get("slug") or "",
        "excerpt_en": excerpt.get("en") or "",
        "excerpt_ms": excerpt.get("ms") or "",
        "content_en": content.get("en") or "",
        "content_ms": content.get("ms") or "",
        "category": blog.get("category") or "tips",
        "status": blog.get("status") or "draft",
        "tags": join_list(blog.get("tags")),
        "featured_image_url": image.get("url") or "",
        "featured_image_alt_en": image_alt.get("en") or "",
        "featured_image_alt_ms": image_alt.get("ms") or "",
        "seo_title_en": (seo.get("title") or {}).get("en") or "",
        "seo_title_ms": (seo.get("title") or {}).get("ms") or "",
        "seo_description_en": (seo.get("description") or {}).get("en") or "",
        "seo_description_ms": (seo.get("description") or {}).get("ms") or "",
        "seo_keywords": join_list(seo.get("keywords")),
    }


def validate_blog_form(form) -> tuple[dict, dict]:
    """Returns (values, errors); errors maps field name -> message."""
    values = {name: (form.get(name) or "") for name in FORM_FIELDS}
    errors: dict[str, str] = {}

    for name, (minimum, message) in MIN_LENGTHS.items():
        if len(values[name]) < minimum:
            errors[name] = message

    if values["status"] not in {value for value, _ in BLOG_STATUSES}:
        errors["status"] = "Select a valid status"

    url = values["featured_image_url"].strip()
    if url and not _is_url(url):
        errors["featured_image_url"] = "Enter a valid URL"

    return values, errors


def build_blog_payload(values: dict) -> dict:
    payload = {
        "title": {"en": values["title_en"], "ms": values["title_ms"]},
        "slug": values["slug"],
        "excerpt": {"en": values["excerpt_en"], "ms": values["excerpt_ms"]},
        "content": {"en": values["content_en"], "ms": values["content_ms"]},
        "category": values["category"],
        "status": values["status"],
        "tags": split_list(values.get("tags")),
        "seo": {
            "title": {"en": values.get("seo_title_en") or "", "ms": values.get("seo_title_ms") or ""},
            "description": {
                "en": values.get("seo_description_en") or "",
                "ms": values.get("seo_description_ms") or "",
            },
            "keywords": split_list(values.get("seo_keywords")),
        },
    }
    image_url = (values.get("featured_image_url") or "").strip()
    if image_url:
        payload["featuredImage"] = {
            "url": image_url,
            "alt": {
                "en": values.get("featured_image_alt_en") or values["title_en"],
                "ms": values.get("featured_image_alt_ms") or values["title_ms"],
            },
        }
    return payload


def _render_form(blog, values, errors, status_code=200):
    return render_template(
        "content/blog_form.html",
        blog=blog,
        values=values,
        errors=errors,
        categories=BLOG_CATEGORIES,
        statuses=BLOG_STATUSES,
    ), status_code


@content_bp.route("/blogs", methods=["GET"])
@login_required
def list_blogs():
    blogs = []
    try:
        response = api.get_blogs(get_api())
        if response.success and isinstance(response.data, list):
            blogs = response.data
    except ApiError as e:
        logger.error("Failed to fetch blogs: %s", e.message)
        flash(e.message, "error")

    return render_template(
        "content/blogs.html",
        blogs=blogs,
        published_count=sum(1 for b in blogs if b.get("status") == "published"),
        draft_count=sum(1 for b in blogs if b.get("status") == "draft"),
    )


@content_bp.route("/blogs/new", methods=["GET", "POST"])
@login_required
def new_blog():
    if request.method == "GET":
        return _render_form(None, blog_to_form(None), {})

    values, errors = validate_blog_form(request.form)
    if errors:
        return _render_form(None, values, errors, 400)

    try:
        api.create_blog(get_api(), build_blog_payload(values))
    except ApiError as e:
        logger.error("Failed to create blog post: %s", e.message)
        flash(e.message or "Failed to save blog post", "error")
        return _render_form(None, values, {})

    flash("Blog post created.", "success")
    return redirect(url_for("content.list_blogs"))


@content_bp.route("/blogs/<blog_id>", methods=["GET", "POST"])
@login_required
def edit_blog(blog_id: str):
    try:
        response = api.get_blog(get_api(), blog_id)
        if not response.success or not response.data:
            raise ApiError(response.message or "Failed to load blog post")
        blog = response.data
    except ApiError as e:
        logger.error("Failed to load blog post %s: %s", blog_id, e.message)
        return render_template("content/blog_missing.html", error=e.message), 404

    if request.method == "GET":
        return _render_form(blog, blog_to_form(blog), {})

    values, errors = validate_blog_form(request.form)
    if errors:
        return _render_form(blog, values, errors, 400)

    try:
        api.update_blog(get_api(), blog_id, build_blog_payload(values))
    except ApiError as e:
        logger.error("Failed to update blog post %s: %s", blog_id, e.message)
        flash(e.message or "Failed to save blog post", "error")
        return _render_form(blog, values, {})

    flash("Blog post saved.", "success")
    return redirect(url_for("content.list_blogs"))


@content_bp.route("/blogs/<blog_id>/delete", methods=["POST"])
@login_required
def delete_blog(blog_id: str):
    try:
        api.delete_blog(get_api(), blog_id)
    except ApiError as e:
        logger.error("Failed to delete blog %s: %s", blog_id, e.message)
        flash(e.message or "Failed to delete blog post", "error")
        return redirect(url_for("content.list_blogs"))

    flash("Blog post deleted.", "success")
    return redirect(url_for("content.list_blogs"))
