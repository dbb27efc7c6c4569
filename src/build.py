#!/usr/bin/env python3
"""Main entry point — build event mosaics for every feed definition."""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from config import load_feed, load_raw_items, discover_feeds, PROJECT_ROOT as ROOT
from normalize import normalize_item, deduplicate
from score import bucket_by_percentiles, order_for_display, HIGH_VALUE_TAGS
from flow import compose_flow, clamp_columns, grid_rows
from render import build_cards, render_html, render_json

OUT_DIR = ROOT / "out"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("mosaic.build")


def layout_items(raw_items: list[dict], columns: int, ordering: str = "fetch",
                 high_value_tags=HIGH_VALUE_TAGS) -> tuple[list[dict], list[dict]]:
    """Run normalize -> bucket -> order -> pack over already-fetched records.

    Returns (normalized items, placements).
    """
    items = deduplicate([normalize_item(raw) for raw in raw_items])
    scored = bucket_by_percentiles(items, high_value_tags)
    ordered = order_for_display(items, scored, ordering)
    placed = compose_flow(ordered, columns)
    return items, placed


def build_feed(feed_name: str, columns: int | None = None, out_dir: Path = OUT_DIR) -> dict:
    """Build a single feed's mosaic. Returns build summary."""
    logger.info("=" * 50)
    logger.info("Building: %s", feed_name)
    logger.info("=" * 50)

    start = datetime.now()
    result = {"feed": feed_name, "success": False, "error": None}

    try:
        config = load_feed(feed_name)
        raw_items = load_raw_items(config)
    except Exception as e:
        logger.error("Failed to load feed '%s': %s", feed_name, e)
        result["error"] = str(e)
        return result

    columns = clamp_columns(columns if columns is not None else config["columns"])
    tags = config.get("high_value_tags", HIGH_VALUE_TAGS)
    items, placed = layout_items(raw_items, columns, config["ordering"], tags)
    logger.info("Placed %d of %d items in %d rows",
                len(placed), len(items), grid_rows(placed))

    date_str = datetime.now().strftime("%Y-%m-%d")
    feed_out = out_dir / feed_name
    render_json(items, placed, columns, feed_out / f"{date_str}.json")
    render_html(build_cards(items, placed), config, columns, feed_out / f"{date_str}.html")
    _write_index_redirect(feed_out / "index.html", f"{date_str}.html")

    elapsed = (datetime.now() - start).total_seconds()
    result["success"] = True
    result["items"] = len(items)
    result["placed"] = len(placed)
    result["columns"] = columns
    result["elapsed_seconds"] = round(elapsed, 1)
    result["display_name"] = config["_feed_display_name"]

    logger.info("Built %s in %.1fs — %d placed", feed_name, elapsed, len(placed))
    return result


def _write_index_redirect(index_path: Path, target_filename: str) -> None:
    """Write an index.html that redirects to the latest mosaic."""
    html = f"""<!DOCTYPE html>
<html>
<head>
    <meta http-equiv="refresh" content="0; url={target_filename}">
    <title>Redirecting...</title>
</head>
<body>
    <p>Redirecting to <a href="{target_filename}">latest mosaic</a>...</p>
</body>
</html>"""
    index_path.parent.mkdir(parents=True, exist_ok=True)
    index_path.write_text(html, encoding="utf-8")


def main():
    parser = argparse.ArgumentParser(description="Build event mosaics")
    parser.add_argument("--feed", help="Build a specific feed only")
    parser.add_argument("--columns", type=int, help="Override the feed's column count")
    args = parser.parse_args()

    start = datetime.now()
    feeds = [args.feed] if args.feed else discover_feeds()

    if not feeds:
        logger.error("No feeds found")
        sys.exit(1)

    logger.info("Building %d feed(s): %s", len(feeds), ", ".join(feeds))

    results = []
    for feed_name in feeds:
        try:
            results.append(build_feed(feed_name, columns=args.columns))
        except Exception as e:
            logger.error("Build failed for '%s': %s", feed_name, e)
            results.append({"feed": feed_name, "success": False, "error": str(e)})

    build_log = {
        "timestamp": datetime.now().isoformat(),
        "feeds_built": len(results),
        "successful": sum(1 for r in results if r.get("success")),
        "failed": sum(1 for r in results if not r.get("success")),
        "results": results,
        "total_elapsed_seconds": round((datetime.now() - start).total_seconds(), 1),
    }

    log_path = OUT_DIR / "build-log.json"
    log_path.parent.mkdir(parents=True, exist_ok=True)
    log_path.write_text(json.dumps(build_log, indent=2), encoding="utf-8")

    print()
    print("=" * 50)
    print("Build Summary")
    print("=" * 50)
    for r in results:
        status = "✓" if r.get("success") else "✗"
        if r.get("success"):
            print(f"  {status} {r['feed']}: {r['placed']}/{r['items']} placed "
                  f"on {r['columns']} columns ({r['elapsed_seconds']}s)")
        else:
            print(f"  {status} {r['feed']}: {r.get('error', 'unknown error')}")

    if build_log["failed"]:
        sys.exit(1)


if __name__ == "__main__":
    main()
