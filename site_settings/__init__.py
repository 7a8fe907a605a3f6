from .views import settings_bp

__all__ = ["settings_bp"]
