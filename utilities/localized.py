"""
Helpers for localized (English / Malay) values.

Forms post each localized field as a pair of inputs, `<name>_en` and
`<name>_ms`; the API stores them as `{"en": ..., "ms": ...}`.
"""

import math
from typing import Any, Dict, List, Mapping, Optional

LANGUAGES = ("en", "ms")


def localized_from_form(form: Mapping[str, str], name: str, strip: bool = True) -> Dict[str, str]:
    value = {}
    for lang in LANGUAGES:
        raw = form.get(f"{name}_{lang}") or ""
        value[lang] = raw.strip() if strip else raw
    return value


def localized_to_form(value: Optional[Mapping[str, Any]], name: str) -> Dict[str, str]:
    value = value or {}
    return {f"{name}_{lang}": value.get(lang) or "" for lang in LANGUAGES}


def is_complete(value: Optional[Mapping[str, Any]]) -> bool:
    """True when every language has non-blank text."""
    if not value:
        return False
    return all((value.get(lang) or "").strip() for lang in LANGUAGES)


def split_list(raw: Optional[str]) -> List[str]:
    """'a, b,, c' -> ['a', 'b', 'c']"""
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def join_list(values: Optional[List[str]]) -> str:
    return ", ".join(values or [])


def parse_optional_number(raw: Optional[str], integer: bool = False):
    """Blank -> None, otherwise int/float. Invalid or non-finite numbers also give None."""
    text = (raw or "").strip()
    if not text:
        return None
    try:
        value = int(text) if integer else float(text)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value
