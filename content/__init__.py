"""
Content blueprint for the marketing site: blog posts, FAQs,
testimonials and product rate cards.
"""

from flask import Blueprint

content_bp = Blueprint(
    "content",
    __name__,
    template_folder="../templates",
    static_folder="../static"
)

from . import blogs, faqs, testimonials, products  # noqa: E402,F401
