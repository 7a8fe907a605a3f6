import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

_WORD_SPLIT = re.compile(r"[\s\-_]+")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def humanize(value: Optional[str], default: str = "-") -> str:
    """'personal-loan' -> 'Personal Loan'."""
    if not value:
        return default
    words = [w for w in _WORD_SPLIT.split(str(value)) if w]
    return " ".join(w[:1].upper() + w[1:] for w in words)


def capitalize(value: Optional[str]) -> str:
    if not value:
        return ""
    return value[:1].upper() + value[1:]


def format_currency(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return "-"
    if value != value:  # NaN
        return "-"
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int):
        return f"RM {value:,}"
    return f"RM {value:,.2f}".rstrip("0").rstrip(".")


def format_number(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return "0"
    return f"{value:,}"


def parse_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_date(value: Any) -> str:
    """'2024-01-05T..' -> 'January 5th, 2024'; unparseable values pass through."""
    if not value:
        return "-"
    parsed = parse_datetime(value)
    if parsed is None:
        return str(value)
    return f"{parsed.strftime('%B')} {_ordinal(parsed.day)}, {parsed.year}"


def format_datetime(value: Any) -> str:
    parsed = parse_datetime(value)
    if parsed is None:
        return "-" if not value else str(value)
    hour = parsed.hour % 12 or 12
    suffix = "AM" if parsed.hour < 12 else "PM"
    return f"{format_date(parsed)} {hour}:{parsed.minute:02d} {suffix}"


def chart_date(value: Any) -> str:
    """'2024-01-05' -> 'Jan 5'."""
    parsed = parse_datetime(value)
    if parsed is None:
        return str(value or "")
    return f"{parsed.strftime('%b')} {parsed.day}"


def time_ago(value: Any, now: Optional[datetime] = None) -> str:
    parsed = parse_datetime(value)
    if parsed is None:
        return "-"
    now = now or utc_now()
    seconds = (now - parsed).total_seconds()
    future = seconds < 0
    seconds = abs(seconds)

    if seconds < 45:
        text = "less than a minute"
    elif seconds < 90:
        text = "1 minute"
    elif seconds < 45 * 60:
        text = f"{round(seconds / 60)} minutes"
    elif seconds < 90 * 60:
        text = "about 1 hour"
    elif seconds < 24 * 3600:
        text = f"about {round(seconds / 3600)} hours"
    elif seconds < 42 * 3600:
        text = "1 day"
    elif seconds < 30 * 86400:
        text = f"{round(seconds / 86400)} days"
    elif seconds < 45 * 86400:
        text = "about 1 month"
    elif seconds < 365 * 86400:
        text = f"{round(seconds / (30 * 86400))} months"
    else:
        years = round(seconds / (365 * 86400))
        text = "about 1 year" if years == 1 else f"about {years} years"

    return f"in {text}" if future else f"{text} ago"


def address_lines(address: Optional[Dict[str, Any]]) -> List[str]:
    if not address:
        return []
    city_line = " ".join(str(p) for p in (address.get("postcode"), address.get("city")) if p).strip()
    lines = [address.get("line1"), address.get("line2"), city_line, address.get("state")]
    return [str(line).strip() for line in lines if line and str(line).strip()]


_ORDINAL_SUFFIXES = {1: "st", 2: "nd", 3: "rd"}


def _ordinal(day: int) -> str:
    if 11 <= day % 100 <= 13:
        return f"{day}th"
    return f"{day}{_ORDINAL_SUFFIXES.get(day % 10, 'th')}"


def register_filters(app) -> None:
    app.jinja_env.filters.update(
        humanize=humanize,
        capitalize_first=capitalize,
        currency=format_currency,
        number=format_number,
        date=format_date,
        datetime=format_datetime,
        chart_date=chart_date,
        time_ago=time_ago,
    )
