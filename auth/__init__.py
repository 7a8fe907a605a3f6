from .views import auth_bp
from .user import AdminUser, load_admin

__all__ = ["auth_bp", "AdminUser", "load_admin"]
