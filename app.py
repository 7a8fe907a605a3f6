# app.py
from flask import Flask, render_template, current_app, url_for, request
from flask_login import current_user

from config import get_config
from utilities.extensions import login_manager, csrf, limiter
from utilities.formatting import register_filters
from utilities.logger import init_app_logging
from middleware.api_session import api_session
from auth import auth_bp, load_admin
from main import main_bp
from applications import applications_bp
from contacts import contacts_bp
from content import content_bp
from analytics import analytics_bp
from site_settings import settings_bp
from exports import exports_bp

# (endpoint, label, url prefix used for the active state)
NAV_ITEMS = [
    ("main.dashboard", "Dashboard", "/"),
    ("applications.list_applications", "Applications", "/applications"),
    ("contacts.list_contacts", "Contacts", "/contacts"),
    ("content.list_blogs", "Blogs", "/content/blogs"),
    ("content.list_faqs", "FAQs", "/content/faqs"),
    ("content.list_testimonials", "Testimonials", "/content/testimonials"),
    ("content.list_products", "Products", "/content/products"),
    ("analytics.index", "Analytics", "/analytics"),
    ("site_settings.index", "Settings", "/settings"),
]
ADMIN_ONLY_ENDPOINTS = {"site_settings.index"}


def create_app(config_object=None):
    app = Flask(__name__)

    # 1) Load config for the selected environment
    app.config.from_object(config_object or get_config())

    # 2) Logging
    logger = init_app_logging(app)

    # 3) Extensions
    login_manager.init_app(app)
    login_manager.user_loader(load_admin)
    csrf.init_app(app)
    limiter.init_app(app)
    api_session.init_app(app)
    register_filters(app)

    # 4) Blueprints
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(main_bp)  # '/' dashboard
    app.register_blueprint(applications_bp, url_prefix="/applications")
    app.register_blueprint(contacts_bp, url_prefix="/contacts")
    app.register_blueprint(content_bp, url_prefix="/content")
    app.register_blueprint(analytics_bp, url_prefix="/analytics")
    app.register_blueprint(settings_bp, url_prefix="/settings")
    app.register_blueprint(exports_bp, url_prefix="/exports")

    # 5) Health check
    @app.get("/health")
    def health():
        return {"ok": True}, 200

    # 6) Error handlers
    @app.errorhandler(403)
    def handle_403(error):
        return render_template("403.html", error=error), 403

    @app.errorhandler(404)
    def handle_404(error):
        return render_template("404.html"), 404

    @app.errorhandler(500)
    def handle_500(error):
        logger.error("Unhandled error on %s: %s", request.path, error)
        return render_template("500.html"), 500

    # 7) Context processors (make helpers available in all templates)
    @app.context_processor
    def inject_template_helpers():
        def has_endpoint(name: str) -> bool:
            return name in current_app.view_functions

        def safe_url(endpoint: str, **kwargs) -> str:
            # Return a real URL if the endpoint exists, else '#'
            return url_for(endpoint, **kwargs) if has_endpoint(endpoint) else "#"

        def nav_items():
            is_admin = current_user.is_authenticated and current_user.is_admin
            items = []
            for endpoint, label, prefix in NAV_ITEMS:
                if endpoint in ADMIN_ONLY_ENDPOINTS and not is_admin:
                    continue
                if prefix == "/":
                    active = request.path == "/"
                else:
                    active = request.path.startswith(prefix)
                items.append({"url": safe_url(endpoint), "label": label, "active": active})
            return items

        return dict(has_endpoint=has_endpoint, safe_url=safe_url, nav_items=nav_items)

    logger.info("Admin console started against %s", app.config.get("API_URL"))
    return app


# For `flask --app app run`, having create_app is enough.
# You can optionally expose a concrete app instance too:
# app = create_app()
