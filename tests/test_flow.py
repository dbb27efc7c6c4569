"""Tests for src/flow.py — skyline / serpentine packing."""

import itertools

from flow import compose_flow, fallback_shapes, clamp_columns, grid_rows


def _overlaps(a, b):
    cols = a["col"] < b["col"] + b["w"] and b["col"] < a["col"] + a["w"]
    rows = a["row"] < b["row"] + b["h"] and b["row"] < a["row"] + a["h"]
    return cols and rows


MIXED = "LMSSMLSMSSLMMSSSLSMS"


class TestComposeFlow:
    def test_empty_input_returns_empty(self):
        assert compose_flow([], 12) == []

    def test_is_deterministic(self, tiered):
        items = tiered(MIXED)
        assert compose_flow(items, 12) == compose_flow(items, 12)

    def test_no_two_items_overlap(self, tiered):
        for columns in (2, 3, 5, 7, 12, 16):
            placed = compose_flow(tiered(MIXED), columns)
            for a, b in itertools.combinations(placed, 2):
                assert not _overlaps(a, b), (columns, a, b)

    def test_items_stay_inside_grid_width(self, tiered):
        for columns in (2, 3, 4, 6, 9, 12):
            for p in compose_flow(tiered(MIXED), columns):
                assert p["col"] >= 0
                assert p["col"] + p["w"] <= columns

    def test_preferred_shapes_on_wide_grid(self, tiered):
        placed = compose_flow(tiered("LMS"), 24)
        assert [(p["w"], p["h"]) for p in placed] == [(6, 4), (4, 3), (3, 2)]
        assert [p["tier"] for p in placed] == ["L", "M", "S"]

    def test_serpentine_alternates_scan_direction(self, tiered):
        placed = compose_flow(tiered("SSS"), 12)
        # ascending, then descending from the right edge, then ascending again
        assert [(p["col"], p["row"]) for p in placed] == [(0, 0), (9, 0), (3, 0)]

    def test_picks_earliest_row(self, tiered):
        # Four S items fill row 0 across all twelve columns; the fifth goes on top.
        placed = compose_flow(tiered("SSSS" + "S"), 12)
        assert all(p["row"] == 0 for p in placed[:4])
        assert placed[4]["row"] == 2

    def test_falls_back_to_smaller_shape(self, tiered):
        placed = compose_flow(tiered("L"), 5)
        assert (placed[0]["w"], placed[0]["h"], placed[0]["tier"]) == (4, 4, "L")

    def test_medium_downgrades_to_small_on_narrow_grid(self, tiered):
        placed = compose_flow(tiered("M"), 2)
        assert (placed[0]["w"], placed[0]["h"], placed[0]["tier"]) == (2, 2, "S")

    def test_large_on_one_column_shrinks_to_smallest_shape(self, tiered):
        # Clamped to 2 columns: no L or M shape fits, so L cascades down to 2x2.
        assert compose_flow(tiered("L"), 1) == [
            {"id": "i0", "col": 0, "row": 0, "w": 2, "h": 2, "tier": "S"},
        ]

    def test_narrow_grid_keeps_large_items(self):
        placed = compose_flow([{"id": "big", "tier": "L"}, {"id": "mid", "tier": "M"}], 2)
        assert [p["id"] for p in placed] == ["big", "mid"]
        assert (placed[1]["col"], placed[1]["row"]) == (0, 2)

    def test_every_known_tier_is_placed_on_any_width(self, tiered):
        for columns in range(1, 8):
            assert len(compose_flow(tiered(MIXED), columns)) == len(MIXED)

    def test_dropped_items_do_not_stop_the_rest(self):
        items = [{"id": "odd", "tier": "XL"}, {"id": "ok", "tier": "S"}]
        placed = compose_flow(items, 2)
        assert [p["id"] for p in placed] == ["ok"]
        assert (placed[0]["col"], placed[0]["row"]) == (0, 0)

    def test_keeps_input_order(self, tiered):
        items = tiered("SLMSM")
        assert [p["id"] for p in compose_flow(items, 12)] == [i["id"] for i in items]

    def test_bad_column_count_is_clamped(self, tiered):
        placed = compose_flow(tiered("S"), "wide")
        assert placed == [{"id": "i0", "col": 0, "row": 0, "w": 2, "h": 2, "tier": "S"}]

    def test_duplicate_ids_are_both_placed(self):
        placed = compose_flow([{"id": "a", "tier": "S"}, {"id": "a", "tier": "S"}], 12)
        assert len(placed) == 2

    def test_columns_stay_balanced(self, tiered):
        placed = compose_flow(tiered("S" * 40), 12)
        heights = [0] * 12
        for p in placed:
            for c in range(p["col"], p["col"] + p["w"]):
                heights[c] = max(heights[c], p["row"] + p["h"])
        assert max(heights) - min(heights) <= 4

    def test_end_to_end_two_items(self):
        placed = compose_flow([{"id": "a", "tier": "M"}, {"id": "b", "tier": "S"}], 12)
        assert placed == [
            {"id": "a", "col": 0, "row": 0, "w": 4, "h": 3, "tier": "M"},
            {"id": "b", "col": 9, "row": 0, "w": 3, "h": 2, "tier": "S"},
        ]


class TestFallbackShapes:
    def test_large_cascades_through_medium_and_small(self):
        assert fallback_shapes("L", 12) == [
            ("L", 6, 4), ("L", 4, 4), ("M", 4, 3), ("M", 3, 3), ("S", 3, 2), ("S", 2, 2),
        ]

    def test_medium_cascades_to_small(self):
        assert fallback_shapes("M", 12) == [("M", 4, 3), ("M", 3, 3), ("S", 3, 2), ("S", 2, 2)]

    def test_small_has_no_downgrade(self):
        assert fallback_shapes("S", 12) == [("S", 3, 2), ("S", 2, 2)]

    def test_skips_shapes_wider_than_grid(self):
        assert fallback_shapes("L", 3) == [("M", 3, 3), ("S", 3, 2), ("S", 2, 2)]
        assert fallback_shapes("L", 2) == [("S", 2, 2)]

    def test_unknown_tier_has_no_shapes(self):
        assert fallback_shapes("XL", 12) == []


class TestHelpers:
    def test_clamp_columns(self):
        assert clamp_columns(1) == 2
        assert clamp_columns(-4) == 2
        assert clamp_columns(None) == 2
        assert clamp_columns(float("inf")) == 2
        assert clamp_columns(12) == 12

    def test_grid_rows(self):
        assert grid_rows([]) == 0
        assert grid_rows([{"row": 3, "h": 4}, {"row": 0, "h": 2}]) == 7
