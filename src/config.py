"""Load and validate feed definitions and the raw records they point at."""

import json
import logging
from pathlib import Path

import jsonschema
import yaml

logger = logging.getLogger("mosaic.config")

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SCHEMAS_DIR = PROJECT_ROOT / "schemas"
FEEDS_DIR = PROJECT_ROOT / "feeds"

DEFAULT_COLUMNS = 12
DEFAULT_ORDERING = "fetch"
DEFAULT_THEME = "grid"


def load_schema() -> dict:
    schema_path = SCHEMAS_DIR / "feed.schema.json"
    with open(schema_path) as f:
        return json.load(f)


def validate_config(config: dict) -> None:
    """Validate a feed definition against the JSON schema."""
    schema = load_schema()
    jsonschema.validate(instance=config, schema=schema)


def load_feed(name: str, feeds_dir: Path = FEEDS_DIR) -> dict:
    """Load feeds/<name>.yaml, fill defaults, and validate it.

    Returns:
        Config dict ready for the build pipeline, with `_feed_name` and
        `_feed_display_name` stashed for rendering.
    """
    path = feeds_dir / f"{name}.yaml"
    if not path.exists():
        raise FileNotFoundError(f"Feed definition not found: {path}")

    with open(path) as f:
        config = yaml.safe_load(f) or {}

    config.setdefault("version", 1)
    config.setdefault("columns", DEFAULT_COLUMNS)
    config.setdefault("ordering", DEFAULT_ORDERING)
    config["format"] = config.get("format") or {}
    config["format"].setdefault("theme", DEFAULT_THEME)

    validate_config(config)

    config["_feed_name"] = name
    config["_feed_display_name"] = config.get("name") or name.replace("-", " ").title()
    logger.info("Loaded feed '%s' (%d columns, %s order)",
                name, config["columns"], config["ordering"])
    return config


def load_raw_items(config: dict) -> list[dict]:
    """Read the already-fetched raw records a feed points at.

    The file holds either a JSON list or an object with an "items" list.
    """
    path = PROJECT_ROOT / config["input"]
    if not path.exists():
        raise FileNotFoundError(f"Feed input not found: {path}")
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get("items", [])
    if not isinstance(data, list):
        raise ValueError(f"Feed input must be a list of records: {path}")
    return data


def discover_feeds(feeds_dir: Path = FEEDS_DIR) -> list[str]:
    """List feed names under feeds/, skipping files that start with _."""
    if not feeds_dir.exists():
        return []
    return [
        path.stem
        for path in sorted(feeds_dir.glob("*.yaml"))
        if not path.name.startswith("_")
    ]
