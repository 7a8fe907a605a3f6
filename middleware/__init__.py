from .api_session import api_session, get_api, clear_api_session, role_required

__all__ = ["api_session", "get_api", "clear_api_session", "role_required"]
