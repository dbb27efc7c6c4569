"""Normalize raw event records into the common item format."""

import hashlib
import logging
from datetime import date, datetime, timezone

logger = logging.getLogger("mosaic.normalize")

KINDS = ("festival", "subevent", "vendor", "event")

SPONSORSHIP_PROMOTION = {
    "FREE": 0,
    "SPONSORED": 1,
    "PREMIUM": 2,
}


def _first(raw: dict, *keys):
    """Return the first non-empty value among keys, or None."""
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return value
    return None


def _count(value) -> int:
    """Coerce an upstream counter to a non-negative int (junk becomes 0)."""
    if isinstance(value, bool):
        return 0
    try:
        return max(int(value), 0)
    except (TypeError, ValueError, OverflowError):
        return 0


def _parse_iso(value: str) -> datetime | None:
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def to_iso(value) -> str | None:
    """Convert a date-like value to an ISO-8601 string, or None if invalid.

    Accepts datetimes, dates, ISO strings and epoch milliseconds (the shape
    JavaScript clients send).
    """
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        parsed = _parse_iso(value)
        return parsed.isoformat() if parsed else None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc).isoformat()
        except (OverflowError, OSError, ValueError):
            return None
    return None


def _resolve_timestamp(raw: dict, iso_keys: tuple, raw_keys: tuple) -> str | None:
    formatted = _first(raw, *iso_keys)
    if isinstance(formatted, str) and _parse_iso(formatted):
        return formatted.strip()
    return to_iso(_first(raw, *raw_keys))


def _resolve_tags(raw: dict) -> list[str]:
    tags = _first(raw, "eventTypes", "event_types", "categoryTags", "category_tags", "tags")
    if isinstance(tags, str):
        tags = [tags]
    if not isinstance(tags, (list, tuple, set, frozenset)):
        return []
    return sorted({str(t).strip().upper() for t in tags if str(t).strip()})


def _resolve_rsvp_count(raw: dict) -> int:
    explicit = _first(raw, "rsvpCount", "rsvp_count")
    if explicit is not None:
        return _count(explicit)
    rsvps = raw.get("rsvps")
    if isinstance(rsvps, (list, tuple)):
        return len(rsvps)
    metrics = raw.get("metrics")
    if isinstance(metrics, dict):
        return _count(metrics.get("rsvps"))
    return 0


def _resolve_view_count(raw: dict) -> int:
    explicit = _first(raw, "viewCount", "view_count")
    if explicit is not None:
        return _count(explicit)
    metrics = raw.get("metrics")
    if isinstance(metrics, dict):
        return _count(metrics.get("views"))
    return 0


def _resolve_promotion_tier(raw: dict) -> int:
    explicit = _first(raw, "promotionTier", "promotion_tier")
    if explicit is not None:
        return _count(explicit)
    sponsorship = _first(raw, "sponsorshipTier", "sponsorship_tier")
    if isinstance(sponsorship, str):
        return SPONSORSHIP_PROMOTION.get(sponsorship.upper(), 0)
    if raw.get("isSponsored") or raw.get("is_sponsored"):
        return 1
    return 0


def _parent_festival_id(raw: dict):
    parent = raw.get("parentFestival")
    if isinstance(parent, dict) and parent.get("id"):
        return parent["id"]
    return _first(raw, "parentFestivalId", "parent_festival_id")


def _resolve_kind(raw: dict, tags: list[str]) -> str:
    explicit = raw.get("kind")
    if isinstance(explicit, str) and explicit.lower() in KINDS:
        return explicit.lower()
    if "FESTIVAL" in tags or isinstance(raw.get("subevents"), list):
        return "festival"
    if _parent_festival_id(raw) is not None:
        return "subevent"
    if _first(raw, "vendorId", "vendor_id") is not None:
        return "vendor"
    return "event"


def _resolve_href(raw: dict, item_id: str, kind: str) -> str:
    href = raw.get("href")
    if isinstance(href, str) and href:
        return href
    if kind == "subevent":
        return f"/festivals/{_parent_festival_id(raw)}/subevents/{item_id}"
    return f"/events/{item_id}"


def normalize_item(raw: dict) -> dict:
    """Map one raw event, festival or vendor record onto the common item format.

    Never raises: missing or malformed fields resolve to "", None or 0.
    When several source fields can feed one canonical field, the most
    specific one wins (hero image before cover image before a generic image).
    """
    if not isinstance(raw, dict):
        raw = {}

    title = _first(raw, "title", "name")
    title = str(title).strip() if title is not None else ""
    starts_at = _resolve_timestamp(raw, ("startsAt", "starts_at"), ("startDate", "start_date"))

    raw_id = raw.get("id")
    if raw_id not in (None, ""):
        item_id = str(raw_id)
    else:
        item_id = hashlib.sha256(f"{title}|{starts_at or ''}".encode()).hexdigest()[:16]

    image = _first(raw, "heroImageUrl", "hero_image_url", "coverImageUrl",
                   "cover_image_url", "imageUrl", "image_url", "image")
    tags = _resolve_tags(raw)
    kind = _resolve_kind(raw, tags)

    return {
        "id": item_id,
        "kind": kind,
        "title": title,
        "image_url": image if isinstance(image, str) else "",
        "href": _resolve_href(raw, item_id, kind),
        "starts_at": starts_at,
        "ends_at": _resolve_timestamp(raw, ("endsAt", "ends_at"), ("endDate", "end_date")),
        "category_tags": tags,
        "rsvp_count": _resolve_rsvp_count(raw),
        "view_count": _resolve_view_count(raw),
        "promotion_tier": _resolve_promotion_tier(raw),
    }


def deduplicate(items: list[dict]) -> list[dict]:
    """Collapse items sharing an id: the last occurrence wins, in the first one's slot."""
    by_id: dict[str, dict] = {}
    for item in items:
        by_id[item["id"]] = item
    if len(by_id) < len(items):
        logger.info("Collapsed %d duplicate item ids", len(items) - len(by_id))
    return list(by_id.values())
