from dataclasses import dataclass
from typing import Optional

from flask import request


def get_page_arg(name: str = "page") -> int:
    try:
        page = int(request.args.get(name, 1))
    except (TypeError, ValueError):
        return 1
    return max(page, 1)


@dataclass
class PageInfo:
    page: int = 1
    pages: int = 1
    total: int = 0
    limit: int = 20

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.pages

    @classmethod
    def from_api(cls, pagination: Optional[dict], page: int, limit: int) -> "PageInfo":
        pagination = pagination or {}
        return cls(
            page=int(pagination.get("page") or page),
            pages=max(int(pagination.get("pages") or 1), 1),
            total=int(pagination.get("total") or 0),
            limit=int(pagination.get("limit") or limit),
        )
