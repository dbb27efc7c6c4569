"""Skyline / serpentine packing of tiered items onto a column grid."""

import logging

logger = logging.getLogger("mosaic.flow")

MIN_COLUMNS = 2

# Preferred (w, h) shapes per tier in grid units, most preferred first.
SHAPES = {
    "L": ((6, 4), (4, 4)),
    "M": ((4, 3), (3, 3)),
    "S": ((3, 2), (2, 2)),
}

# Next tier down; a tier's shapes are followed by every smaller tier's.
DOWNGRADE = {
    "L": "M",
    "M": "S",
}


def clamp_columns(columns) -> int:
    """Coerce a caller column count to an int of at least MIN_COLUMNS."""
    try:
        columns = int(columns)
    except (TypeError, ValueError, OverflowError):
        return MIN_COLUMNS
    return max(columns, MIN_COLUMNS)


def fallback_shapes(tier: str, columns: int) -> list[tuple[str, int, int]]:
    """Ordered (tier, w, h) attempts for an item, skipping shapes wider than the grid."""
    tiers = [tier]
    while tiers[-1] in DOWNGRADE:
        tiers.append(DOWNGRADE[tiers[-1]])
    return [
        (t, w, h)
        for t in tiers
        for w, h in SHAPES.get(t, ())
        if w <= columns
    ]


def _best_column(skyline: list[int], w: int, ascending: bool) -> tuple[int, int] | None:
    """Find the start column giving the earliest row for a shape of width w.

    Returns (col, row) or None when the shape is wider than the grid. Ties
    go to the first column met in the scan direction.
    """
    last = len(skyline) - w
    if last < 0:
        return None
    starts = range(0, last + 1) if ascending else range(last, -1, -1)

    best = None
    for c in starts:
        row = max(skyline[c:c + w])
        if best is None or row < best[1]:
            best = (c, row)
    return best


def compose_flow(items: list[dict], columns: int) -> list[dict]:
    """Place tiered items on a grid `columns` wide, in the order given.

    Each item takes the first shape from its attempt list that fits the
    grid, at the start column where it can sit highest. The scan direction
    flips after every placement so tall shapes do not pile up on one side.
    Items that fit no shape are dropped, so the result may be shorter than
    the input.
    """
    columns = clamp_columns(columns)
    skyline = [0] * columns
    ascending = True
    placed = []

    for item in items:
        for tier, w, h in fallback_shapes(item.get("tier", "S"), columns):
            spot = _best_column(skyline, w, ascending)
            if spot is None:
                continue
            col, row = spot
            for c in range(col, col + w):
                skyline[c] = row + h
            placed.append({"id": item["id"], "col": col, "row": row, "w": w, "h": h, "tier": tier})
            ascending = not ascending
            break
        else:
            logger.debug("Dropped %s: no %s shape fits %d columns",
                         item.get("id"), item.get("tier"), columns)

    if len(placed) < len(items):
        logger.info("Placed %d of %d items on %d columns",
                    len(placed), len(items), columns)
    return placed


def grid_rows(placed: list[dict]) -> int:
    """Total rows spanned by a layout (0 when nothing was placed)."""
    return max((p["row"] + p["h"] for p in placed), default=0)
