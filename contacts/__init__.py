from .views import contacts_bp

__all__ = ["contacts_bp"]
