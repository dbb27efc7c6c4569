"""Engagement scoring, percentile tier bucketing, and display ordering."""

import logging
import math

logger = logging.getLogger("mosaic.score")

# Score weights. Each term is additive:
#   RSVP_WEIGHT * log1p(rsvps)      attendance, with diminishing returns
#   VIEW_WEIGHT * log1p(views)      views count for less than RSVPs
#   HIGH_VALUE_BONUS                flat, once, for party/launch-style events
#   PROMOTION_WEIGHT * promotion    editorial override, the largest lever
RSVP_WEIGHT = 1.0
VIEW_WEIGHT = 0.6
HIGH_VALUE_BONUS = 1.0
PROMOTION_WEIGHT = 1.25

HIGH_VALUE_TAGS = frozenset({
    "PARTY",
    "LAUNCH",
    "PRODUCT_REVEAL",
    "KEYNOTE",
    "AWARDS",
})

# Share of the ranking that lands in each tier or above.
LARGE_SHARE = 0.20
MEDIUM_SHARE = 0.60

TIERS = ("L", "M", "S")

# Repeating deal pattern for interleaved display order.
INTERLEAVE_PATTERN = ("L", "M", "S", "M", "S", "M")


def score_item(item: dict, high_value_tags=HIGH_VALUE_TAGS) -> float:
    """Compute the interest score of one normalized item."""
    total = RSVP_WEIGHT * math.log1p(item.get("rsvp_count", 0))
    total += VIEW_WEIGHT * math.log1p(item.get("view_count", 0))

    wanted = {t.upper() for t in high_value_tags}
    if wanted.intersection(item.get("category_tags", ())):
        total += HIGH_VALUE_BONUS

    total += PROMOTION_WEIGHT * item.get("promotion_tier", 0)
    return total


def _threshold(ranked: list[tuple[float, dict]], share: float, default: float) -> float:
    """Score of the last item inside the top `share` of the ranking."""
    index = math.floor(len(ranked) * share) - 1
    if index < 0:
        return default
    return ranked[index][0]


def bucket_by_percentiles(items: list[dict], high_value_tags=HIGH_VALUE_TAGS) -> list[dict]:
    """Assign every item a tier by where its score falls within this set.

    Thresholds are recomputed from the given items on every call, so tiers
    describe relative standing only. The top 20% of the ranking is "L", the
    next 40% "M", the rest "S"; an item tied with a boundary score joins the
    higher tier. When the set is too small for a slice to hold any item, its
    threshold falls back to +inf (no organic "L") or 0 (for "M"). Promoted
    items are always "L".

    Returns one scored item per input item, highest score first.
    """
    if not items:
        return []

    scored = [(score_item(item, high_value_tags), item) for item in items]
    ranked = sorted(scored, key=lambda pair: pair[0], reverse=True)

    p80 = _threshold(ranked, LARGE_SHARE, math.inf)
    p40 = _threshold(ranked, MEDIUM_SHARE, 0.0)

    result = []
    for score, item in ranked:
        if item.get("promotion_tier", 0) > 0 or score >= p80:
            tier = "L"
        elif score >= p40:
            tier = "M"
        else:
            tier = "S"
        result.append({"id": item["id"], "score": score, "tier": tier})

    counts = {t: sum(1 for r in result if r["tier"] == t) for t in TIERS}
    logger.info("Bucketed %d items (L=%d, M=%d, S=%d)",
                len(result), counts["L"], counts["M"], counts["S"])
    return result


def interleave_tiers(scored: list[dict]) -> list[dict]:
    """Deal ranked items out as L, M, S, M, S, M, ... so small cards spread through the feed."""
    queues = {t: [s for s in scored if s["tier"] == t] for t in TIERS}
    out = []
    while any(queues.values()):
        for tier in INTERLEAVE_PATTERN:
            if queues[tier]:
                out.append(queues[tier].pop(0))
    return out


def order_for_display(items: list[dict], scored: list[dict], mode: str = "fetch") -> list[dict]:
    """Order scored items for packing.

    "fetch" keeps the order the items arrived in; "interleaved" mixes tiers.
    """
    if mode == "interleaved":
        return interleave_tiers(scored)
    if mode != "fetch":
        logger.warning("Unknown ordering %r, keeping fetch order", mode)

    by_id = {s["id"]: s for s in scored}
    ordered = []
    seen = set()
    for item in items:
        item_id = item["id"]
        if item_id in by_id and item_id not in seen:
            seen.add(item_id)
            ordered.append(by_id[item_id])
    return ordered
