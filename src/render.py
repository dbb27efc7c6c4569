"""Render mosaic output: CSS-grid placements, JSON, and an HTML preview."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import urlsplit

from jinja2 import Environment, FileSystemLoader

from flow import grid_rows

logger = logging.getLogger("mosaic.render")

PROJECT_ROOT = Path(__file__).resolve().parent.parent
TEMPLATES_DIR = PROJECT_ROOT / "templates"

VALID_THEMES = {"grid", "dark"}
DEFAULT_THEME = "grid"
DEFAULT_ROW_HEIGHT = 64

TITLE_CLASS = {
    "L": "title-lg",
    "M": "title-md",
    "S": "title-sm",
}

# Characters that could close the CSS url() or the style attribute.
UNSAFE_URL_CHARS = set("\"'()\\<>;") | {" ", "\t", "\n", "\r"}


def grid_area(placed: dict) -> dict:
    """Translate a placement into 1-based CSS grid-column / grid-row values."""
    return {
        "grid_column": f"{placed['col'] + 1} / span {placed['w']}",
        "grid_row": f"{placed['row'] + 1} / span {placed['h']}",
    }


def format_when(starts_at: str | None) -> str:
    """Format an ISO start time as e.g. "May 18 • 7:00 PM"."""
    if not starts_at:
        return ""
    try:
        dt = datetime.fromisoformat(starts_at.replace("Z", "+00:00"))
    except ValueError:
        return ""
    hour = dt.hour % 12 or 12
    return f"{dt.strftime('%b')} {dt.day} • {hour}:{dt.minute:02d} {'AM' if dt.hour < 12 else 'PM'}"


def css_image_url(url: str) -> str:
    """Return url if it is safe inside a CSS url('...'), else "".

    Only http(s) and root-relative paths are kept.
    """
    if not url or any(ch in UNSAFE_URL_CHARS for ch in url):
        return ""
    if url.startswith("/") and not url.startswith("//"):
        return url
    try:
        scheme = urlsplit(url).scheme
    except ValueError:
        return ""
    return url if scheme in ("http", "https") else ""


def build_cards(items: list[dict], placed: list[dict]) -> list[dict]:
    """Join placements to their normalized items for the template.

    Placements whose id has no item are skipped.
    """
    by_id = {item["id"]: item for item in items}
    cards = []
    for p in placed:
        item = by_id.get(p["id"])
        if item is None:
            continue
        area = grid_area(p)
        cards.append({
            "id": item["id"],
            "title": item["title"],
            "href": item["href"],
            "image_url": css_image_url(item["image_url"]),
            "when": format_when(item["starts_at"]),
            "rsvp_count": item["rsvp_count"],
            "tier": p["tier"],
            "title_class": TITLE_CLASS.get(p["tier"], "title-sm"),
            "style": f"grid-column: {area['grid_column']}; grid-row: {area['grid_row']};",
        })
    return cards


def render_json(
    items: list[dict],
    placed: list[dict],
    columns: int,
    output_path: Path,
) -> None:
    """Write the layout and the normalized items it refers to."""
    data = {
        "generated": datetime.now(timezone.utc).isoformat(),
        "columns": columns,
        "rows": grid_rows(placed),
        "placements": placed,
        "items": items,
    }

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Wrote JSON: %s", output_path)


def render_html(
    cards: list[dict],
    feed_config: dict,
    columns: int,
    output_path: Path,
) -> None:
    """Render the HTML mosaic preview."""
    format_config = feed_config.get("format", {})
    theme = format_config.get("theme", DEFAULT_THEME)
    if theme not in VALID_THEMES:
        logger.warning("Unknown theme %r, falling back to %s", theme, DEFAULT_THEME)
        theme = DEFAULT_THEME

    env = Environment(loader=FileSystemLoader(str(TEMPLATES_DIR)), autoescape=True)
    template = env.get_template("mosaic.html.j2")

    title = format_config.get("title") or feed_config.get("_feed_display_name", "Events")

    html = template.render(
        title=title,
        theme=theme,
        columns=columns,
        row_height=format_config.get("row_height", DEFAULT_ROW_HEIGHT),
        cards=cards,
        date_formatted=datetime.now().strftime("%B %d, %Y"),
    )

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(html, encoding="utf-8")
    logger.info("Wrote HTML: %s", output_path)
