"""Display-order helpers shared by FAQs and testimonials."""

from typing import Any, Dict, Iterable, List, Optional


def _order_of(item: Dict[str, Any]) -> int:
    try:
        return int(item.get("order") or 0)
    except (TypeError, ValueError):
        return 0


def sort_by_order(items: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(items, key=_order_of)


def next_order(items: Iterable[Dict[str, Any]]) -> int:
    orders = [_order_of(item) for item in items]
    return max(orders) + 1 if orders else 1


def parse_order(raw: Optional[str]) -> Optional[int]:
    """A positive whole number, or None when the input is not one."""
    text = (raw or "").strip()
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if value != value or value < 1 or not value.is_integer():
        return None
    return int(value)


def find_by_id(items: Iterable[Dict[str, Any]], item_id: str) -> Optional[Dict[str, Any]]:
    for item in items:
        if str(item.get("_id")) == str(item_id):
            return item
    return None
