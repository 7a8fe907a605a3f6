"""
Form <-> payload conversion for the site settings screen.

The four flat sections (general, contact, social, seo) are edited as a
single dict of form values ("state"); locations are posted as indexed
fields, e.g. `locations-0-name_en`, `locations-0-services-1_ms` or
`locations-0-faqs-2-question_en`. Every save sends the whole settings
document back to the API.
"""

import re
from typing import Any, Dict, List, Mapping, Optional

from utilities.localized import LANGUAGES, localized_from_form, parse_optional_number

SECTION_LABELS = {
    "general": "General",
    "contact": "Contact",
    "social": "Social Media",
    "seo": "SEO & Analytics",
    "locations": "Locations",
}

SECTION_FIELDS = {
    "general": [
        "site_name",
        "tagline_en",
        "tagline_ms",
        "company_name",
        "registration_number",
        "license_number",
    ],
    "contact": [
        "phone",
        "whatsapp",
        "email",
        "address_en",
        "address_ms",
        "business_hours_en",
        "business_hours_ms",
        "google_maps_url",
        "geo_lat",
        "geo_lng",
    ],
    "social": ["facebook", "instagram", "linkedin", "twitter"],
    "seo": [
        "default_title_en",
        "default_title_ms",
        "default_desc_en",
        "default_desc_ms",
        "google_verification",
        "google_analytics_id",
        "facebook_pixel_id",
    ],
}

# Shown until the API has answered
DEFAULT_STATE = {
    "site_name": "SeaMoneeCredit",
    "tagline_en": "Your Trusted Financial Partner",
    "tagline_ms": "Rakan Kewangan Anda Yang Dipercayai",
    "company_name": "SeaMonee Credit Sdn Bhd",
    "registration_number": "",
    "license_number": "",
    "phone": "+60-3-XXXX-XXXX",
    "whatsapp": "+60-12-XXX-XXXX",
    "email": "info@seamoneecredit.com",
    "address_en": "",
    "address_ms": "",
    "business_hours_en": "Monday - Friday: 9:00 AM - 6:00 PM",
    "business_hours_ms": "Isnin - Jumaat: 9:00 PG - 6:00 PTG",
    "google_maps_url": "",
    "geo_lat": "",
    "geo_lng": "",
    "facebook": "",
    "instagram": "",
    "linkedin": "",
    "twitter": "",
    "default_title_en": "Personal Loan Malaysia | SeaMoneeCredit",
    "default_title_ms": "Pinjaman Peribadi Malaysia | SeaMoneeCredit",
    "default_desc_en": "Apply for personal loan in Malaysia with interest rates from 4.88% p.a.",
    "default_desc_ms": "Mohon pinjaman peribadi di Malaysia dengan kadar faedah dari 4.88% p.a.",
    "google_verification": "",
    "google_analytics_id": "",
    "facebook_pixel_id": "",
}

LOCATION_TEXT_FIELDS = ["slug", "phone", "whatsapp", "email", "mapEmbedUrl"]
LOCATION_LOCALIZED_FIELDS = ["name", "summary", "address", "hours"]
LOCATION_LIST_FIELDS = ["services", "areasServed"]


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _nested(data: Optional[Mapping[str, Any]], *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, Mapping):
            return None
        data = data.get(key)
    return data


def settings_to_state(settings: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """Flatten a settings document into form values. Missing values become ''."""
    s = settings or {}
    return {
        "site_name": _text(s.get("siteName")),
        "tagline_en": _text(_nested(s, "tagline", "en")),
        "tagline_ms": _text(_nested(s, "tagline", "ms")),
        "company_name": _text(_nested(s, "legal", "companyName")),
        "registration_number": _text(_nested(s, "legal", "registrationNumber")),
        "license_number": _text(_nested(s, "legal", "licenseNumber")),
        "phone": _text(_nested(s, "contact", "phone")),
        "whatsapp": _text(_nested(s, "contact", "whatsapp")),
        "email": _text(_nested(s, "contact", "email")),
        "address_en": _text(_nested(s, "contact", "address", "en")),
        "address_ms": _text(_nested(s, "contact", "address", "ms")),
        "business_hours_en": _text(_nested(s, "businessHours", "en")),
        "business_hours_ms": _text(_nested(s, "businessHours", "ms")),
        "google_maps_url": _text(_nested(s, "contact", "googleMapsUrl")),
        "geo_lat": _text(_nested(s, "contact", "geo", "lat")),
        "geo_lng": _text(_nested(s, "contact", "geo", "lng")),
        "facebook": _text(_nested(s, "social", "facebook")),
        "instagram": _text(_nested(s, "social", "instagram")),
        "linkedin": _text(_nested(s, "social", "linkedin")),
        "twitter": _text(_nested(s, "social", "twitter")),
        "default_title_en": _text(_nested(s, "seo", "defaultTitle", "en")),
        "default_title_ms": _text(_nested(s, "seo", "defaultTitle", "ms")),
        "default_desc_en": _text(_nested(s, "seo", "defaultDescription", "en")),
        "default_desc_ms": _text(_nested(s, "seo", "defaultDescription", "ms")),
        "google_verification": _text(_nested(s, "seo", "googleVerification")),
        "google_analytics_id": _text(_nested(s, "analytics", "googleAnalyticsId")),
        "facebook_pixel_id": _text(_nested(s, "analytics", "facebookPixelId")),
    }


def section_values(form: Mapping[str, str], section: str) -> Dict[str, str]:
    return {name: form.get(name) or "" for name in SECTION_FIELDS.get(section, [])}


def _geo(lat_raw: str, lng_raw: str) -> Optional[Dict[str, float]]:
    """None when both inputs are blank; blank or invalid halves are left out."""
    if not (lat_raw or "").strip() and not (lng_raw or "").strip():
        return None
    geo = {}
    lat = parse_optional_number(lat_raw)
    lng = parse_optional_number(lng_raw)
    if lat is not None:
        geo["lat"] = lat
    if lng is not None:
        geo["lng"] = lng
    return geo


def build_payload(state: Mapping[str, str], locations: List[Dict[str, Any]]) -> Dict[str, Any]:
    contact = {
        "phone": state["phone"],
        "whatsapp": state["whatsapp"],
        "email": state["email"],
        "address": {"en": state["address_en"], "ms": state["address_ms"]},
        "googleMapsUrl": state["google_maps_url"],
    }
    geo = _geo(state["geo_lat"], state["geo_lng"])
    if geo is not None:
        contact["geo"] = geo

    return {
        "siteName": state["site_name"],
        "tagline": {"en": state["tagline_en"], "ms": state["tagline_ms"]},
        "legal": {
            "companyName": state["company_name"],
            "registrationNumber": state["registration_number"],
            "licenseNumber": state["license_number"],
        },
        "contact": contact,
        "businessHours": {"en": state["business_hours_en"], "ms": state["business_hours_ms"]},
        "social": {
            "facebook": state["facebook"],
            "instagram": state["instagram"],
            "linkedin": state["linkedin"],
            "twitter": state["twitter"],
        },
        "seo": {
            "defaultTitle": {"en": state["default_title_en"], "ms": state["default_title_ms"]},
            "defaultDescription": {"en": state["default_desc_en"], "ms": state["default_desc_ms"]},
            "googleVerification": state["google_verification"],
        },
        "analytics": {
            "googleAnalyticsId": state["google_analytics_id"],
            "facebookPixelId": state["facebook_pixel_id"],
        },
        "locations": locations,
    }


# ---------------------------------------------------------------------- #
# Locations
# ---------------------------------------------------------------------- #
def _indices(form: Mapping[str, str], prefix: str) -> List[int]:
    pattern = re.compile(re.escape(prefix) + r"-(\d+)[-_]")
    found = set()
    for key in form.keys():
        match = pattern.match(key)
        if match:
            found.add(int(match.group(1)))
    return sorted(found)


def _localized(form: Mapping[str, str], name: str) -> Dict[str, str]:
    return localized_from_form(form, name, strip=False)


def new_location() -> Dict[str, Any]:
    return {"slug": "", "name": {}, "summary": {}, "address": {}}


def parse_location(form: Mapping[str, str], index: int) -> Dict[str, Any]:
    prefix = f"locations-{index}"
    location: Dict[str, Any] = {}
    for name in LOCATION_TEXT_FIELDS:
        location[name] = form.get(f"{prefix}-{name}") or ""
    for name in LOCATION_LOCALIZED_FIELDS:
        location[name] = _localized(form, f"{prefix}-{name}")

    geo = _geo(form.get(f"{prefix}-geo_lat") or "", form.get(f"{prefix}-geo_lng") or "")
    if geo:
        location["geo"] = geo

    for name in LOCATION_LIST_FIELDS:
        location[name] = [
            _localized(form, f"{prefix}-{name}-{i}")
            for i in _indices(form, f"{prefix}-{name}")
        ]

    location["faqs"] = [
        {
            "question": _localized(form, f"{prefix}-faqs-{i}-question"),
            "answer": _localized(form, f"{prefix}-faqs-{i}-answer"),
        }
        for i in _indices(form, f"{prefix}-faqs")
    ]

    rating = {}
    score = parse_optional_number(form.get(f"{prefix}-rating_score"))
    count = parse_optional_number(form.get(f"{prefix}-rating_count"), integer=True)
    if score is not None:
        rating["score"] = score
    if count is not None:
        rating["count"] = count
    if rating:
        location["ratingSummary"] = rating
    return location


def parse_locations(form: Mapping[str, str]) -> List[Dict[str, Any]]:
    return [parse_location(form, i) for i in _indices(form, "locations")]


def apply_location_action(locations: List[Dict[str, Any]], action: str) -> bool:
    """
    Apply an add/remove button press to the posted locations in place.

    Actions look like "add_location", "remove_location-1",
    "add_services-0", "remove_areasServed-0-2", "add_faqs-1" or
    "remove_faqs-1-0". Returns False for anything unrecognised.
    """
    verb, _, target = action.partition("_")
    parts = target.split("-")
    field = parts[0]
    try:
        numbers = [int(p) for p in parts[1:]]
    except ValueError:
        return False

    if field == "location":
        if verb == "add" and not numbers:
            locations.append(new_location())
            return True
        if verb == "remove" and len(numbers) == 1 and 0 <= numbers[0] < len(locations):
            del locations[numbers[0]]
            return True
        return False

    if field not in LOCATION_LIST_FIELDS and field != "faqs":
        return False
    if not numbers or not 0 <= numbers[0] < len(locations):
        return False

    items = locations[numbers[0]].setdefault(field, [])
    if verb == "add" and len(numbers) == 1:
        if field == "faqs":
            items.append({"question": {}, "answer": {}})
        else:
            items.append({lang: "" for lang in LANGUAGES})
        return True
    if verb == "remove" and len(numbers) == 2 and 0 <= numbers[1] < len(items):
        del items[numbers[1]]
        return True
    return False
