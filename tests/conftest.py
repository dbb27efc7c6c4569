"""Shared fixtures for the event mosaic test suite."""

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))


@pytest.fixture
def make_raw():
    """Factory fixture for raw event records with sensible defaults."""
    def _make(
        id="evt-1",
        title="Test Event",
        rsvp_count=None,
        view_count=None,
        event_types=None,
        promotion_tier=None,
        starts_at="2025-05-18T19:00:00+00:00",
        **extra,
    ):
        raw = {"id": id, "title": title, "startsAt": starts_at}
        if rsvp_count is not None:
            raw["rsvpCount"] = rsvp_count
        if view_count is not None:
            raw["viewCount"] = view_count
        if event_types is not None:
            raw["eventTypes"] = event_types
        if promotion_tier is not None:
            raw["promotionTier"] = promotion_tier
        raw.update(extra)
        return raw
    return _make


@pytest.fixture
def tiered():
    """Build packer input from a string of tiers, e.g. tiered("LMS")."""
    def _make(tiers):
        return [{"id": f"i{n}", "tier": t} for n, t in enumerate(tiers)]
    return _make
