"""Endpoint catalogue for the admin API. Each call takes the client first."""

from typing import Any, Dict, Optional

from .api_client import ApiClient, ApiResponse

EXPORT_TYPES = ("applications", "contacts", "analytics")


def _clean_params(params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return {k: v for k, v in (params or {}).items() if v is not None and v != ""}


# Auth
def login(api: ApiClient, username: str, password: str) -> ApiResponse:
    return api.post("/admin/auth/login", {"username": username, "password": password})


def logout(api: ApiClient) -> ApiResponse:
    return api.post("/admin/auth/logout")


def get_me(api: ApiClient) -> ApiResponse:
    return api.get("/admin/auth/me")


# Applications
def get_applications(api: ApiClient, params: Optional[Dict[str, Any]] = None) -> ApiResponse:
    query = {"dedupe": "true"}
    query.update(_clean_params(params))
    return api.get("/admin/applications", params=query)


def get_application(api: ApiClient, application_id: str) -> ApiResponse:
    return api.get(f"/admin/applications/{application_id}")


def update_application(api: ApiClient, application_id: str, data: Dict[str, Any]) -> ApiResponse:
    return api.patch(f"/admin/applications/{application_id}", data)


def delete_application(api: ApiClient, application_id: str) -> ApiResponse:
    return api.delete(f"/admin/applications/{application_id}")


def get_application_stats(api: ApiClient) -> ApiResponse:
    return api.get("/admin/applications/stats/overview")


def notify_application(
    api: ApiClient,
    application_id: str,
    notification_type: str,
    custom_message: Optional[str] = None,
) -> ApiResponse:
    payload: Dict[str, Any] = {"notificationType": notification_type}
    if custom_message is not None:
        payload["customMessage"] = custom_message
    return api.post(f"/admin/whatsapp/notify-application/{application_id}", payload)


# Blogs
def get_blogs(api: ApiClient, params: Optional[Dict[str, Any]] = None) -> ApiResponse:
    return api.get("/admin/blogs", params=_clean_params(params))


def get_blog(api: ApiClient, blog_id: str) -> ApiResponse:
    return api.get(f"/admin/blogs/{blog_id}")


def create_blog(api: ApiClient, data: Dict[str, Any]) -> ApiResponse:
    return api.post("/admin/blogs", data)


def update_blog(api: ApiClient, blog_id: str, data: Dict[str, Any]) -> ApiResponse:
    return api.put(f"/admin/blogs/{blog_id}", data)


def delete_blog(api: ApiClient, blog_id: str) -> ApiResponse:
    return api.delete(f"/admin/blogs/{blog_id}")


# FAQs
def get_faqs(api: ApiClient) -> ApiResponse:
    return api.get("/admin/faqs")


def create_faq(api: ApiClient, data: Dict[str, Any]) -> ApiResponse:
    return api.post("/admin/faqs", data)


def update_faq(api: ApiClient, faq_id: str, data: Dict[str, Any]) -> ApiResponse:
    return api.put(f"/admin/faqs/{faq_id}", data)


def delete_faq(api: ApiClient, faq_id: str) -> ApiResponse:
    return api.delete(f"/admin/faqs/{faq_id}")


# Testimonials
def get_testimonials(api: ApiClient) -> ApiResponse:
    return api.get("/admin/testimonials")


def create_testimonial(api: ApiClient, data: Dict[str, Any]) -> ApiResponse:
    return api.post("/admin/testimonials", data)


def update_testimonial(api: ApiClient, testimonial_id: str, data: Dict[str, Any]) -> ApiResponse:
    return api.put(f"/admin/testimonials/{testimonial_id}", data)


def delete_testimonial(api: ApiClient, testimonial_id: str) -> ApiResponse:
    return api.delete(f"/admin/testimonials/{testimonial_id}")


# Products
def get_products(api: ApiClient) -> ApiResponse:
    return api.get("/admin/products")


def update_product(api: ApiClient, product_id: str, data: Dict[str, Any]) -> ApiResponse:
    return api.put(f"/admin/products/{product_id}", data)


# Analytics
def get_analytics_overview(api: ApiClient) -> ApiResponse:
    return api.get("/admin/analytics/overview")


def get_visitor_stats(api: ApiClient, period: Optional[str] = None) -> ApiResponse:
    return api.get("/admin/analytics/visitors", params={"period": period} if period else None)


def get_conversion_stats(api: ApiClient, period: Optional[str] = None) -> ApiResponse:
    return api.get("/admin/analytics/conversions", params={"period": period} if period else None)


# Settings
def get_settings(api: ApiClient) -> ApiResponse:
    return api.get("/admin/settings")


def update_settings(api: ApiClient, data: Dict[str, Any]) -> ApiResponse:
    return api.put("/admin/settings", data)


# Contacts
def get_contacts(api: ApiClient, params: Optional[Dict[str, Any]] = None) -> ApiResponse:
    return api.get("/admin/contacts", params=_clean_params(params))


def get_contact(api: ApiClient, contact_id: str) -> ApiResponse:
    return api.get(f"/admin/contacts/{contact_id}")


def update_contact(api: ApiClient, contact_id: str, data: Dict[str, Any]) -> ApiResponse:
    return api.patch(f"/admin/contacts/{contact_id}", data)


def delete_contact(api: ApiClient, contact_id: str) -> ApiResponse:
    return api.delete(f"/admin/contacts/{contact_id}")


# Exports
def export_records(api: ApiClient, export_type: str, filters: Optional[Dict[str, Any]] = None):
    """Returns (content, content_type, filename) for the requested export."""
    if export_type not in EXPORT_TYPES:
        raise ValueError(f"Unknown export type: {export_type}")
    return api.download(
        f"/admin/export/{export_type}",
        params=_clean_params(filters) or None,
        fallback_filename=f"{export_type}_export.xlsx",
    )
