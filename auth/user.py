from typing import Any, Dict, Optional

from flask import session
from flask_login import UserMixin

ADMIN_ROLES = ["super-admin", "admin", "editor"]


class AdminUser(UserMixin):
    """The signed-in staff member, as described by the admin API."""

    def __init__(self, data: Dict[str, Any]):
        self.id = str(data.get("id") or data.get("_id") or "")
        self.username = data.get("username") or ""
        self.name = data.get("name") or self.username
        self.email = data.get("email") or ""
        self.role = (data.get("role") or "editor").lower()
        self.avatar = data.get("avatar")

    @property
    def is_admin(self) -> bool:
        return self.role in ("super-admin", "admin")

    @property
    def initials(self) -> str:
        parts = [p for p in self.name.split() if p]
        return "".join(p[0] for p in parts[:2]).upper() or "A"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "avatar": self.avatar,
        }


def load_admin(user_id: str) -> Optional[AdminUser]:
    """Flask-Login user loader: the profile lives in the signed session."""
    data = session.get("admin")
    if not data:
        return None
    admin = AdminUser(data)
    if not admin.id or admin.id != str(user_id):
        return None
    return admin
