from .views import applications_bp

__all__ = ["applications_bp"]
