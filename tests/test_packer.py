"""
Tests for the first-fit canvas search
"""
import random
from itertools import combinations
from unittest.mock import patch

import pytest
from pngpack import pack, SourceRect, MapDefinition, DuplicateTagError, CanvasExceededError
from pngpack.packing import GrowthState, place_all, sort_for_packing, DEFAULT_MAX_ORDER


def rect(tag, w, h):
    return SourceRect(tag=tag, width=w, height=h)


def overlaps(a, b):
    ax1, ay1, ax2, ay2 = a.box()
    bx1, by1, bx2, by2 = b.box()
    return ax1 < bx2 and bx1 < ax2 and ay1 < by2 and by1 < ay2


def random_rects(seed, count, unit):
    rng = random.Random(seed)
    return [
        rect(f"r{i}", unit * rng.randint(1, 6), unit * rng.randint(1, 6))
        for i in range(count)
    ]


def is_power_of_two(n):
    return n > 0 and (n & (n - 1)) == 0


class TestGrowthState:
    """Canvas exponent growth"""

    def test_starts_at_two_by_two(self):
        assert GrowthState().canvas_size == (2, 2)

    def test_alternates_starting_with_x(self):
        state = GrowthState()
        seen = []
        for _ in range(5):
            state = state.bumped()
            seen.append((state.order_x, state.order_y))
        assert seen == [(2, 1), (2, 2), (3, 2), (3, 3), (4, 3)]

    def test_bumps_the_axis_that_is_behind(self):
        assert GrowthState(order_x=3, order_y=5).bumped() == GrowthState(order_x=4, order_y=5)
        assert GrowthState(order_x=5, order_y=3).bumped() == GrowthState(order_x=5, order_y=4)

    def test_exceeds(self):
        assert not GrowthState(order_x=4, order_y=3).exceeds(4)
        assert GrowthState(order_x=5, order_y=4).exceeds(4)


class TestPack:
    """End-to-end packing behaviour"""

    def test_example_layout(self):
        """Two 8x8 and one 4x4 fit a 16x16 canvas with block size 4"""
        defn = pack([rect("a", 8, 8), rect("b", 8, 8), rect("c", 4, 4)], max_order=4)

        assert defn.canvas_size == (16, 16)
        assert set(defn.placements) == {"a", "b", "c"}
        assert defn.placements["a"].offset == (0, 0)
        assert defn.placements["b"].offset == (8, 0)
        assert defn.placements["c"].offset == (0, 8)
        assert defn.placements["c"].size == (4, 4)

    def test_single_rect_gets_smallest_canvas(self):
        defn = pack([rect("a", 8, 8)], max_order=4)
        assert defn.canvas_size == (8, 8)
        assert defn.placements["a"].offset == (0, 0)

    def test_wide_canvas_before_square(self):
        """X grows first, so two squares side by side land on a 2:1 canvas"""
        defn = pack([rect("a", 8, 8), rect("b", 8, 8)])
        assert defn.canvas_size == (16, 8)

    def test_empty_input(self):
        defn = pack([])
        assert isinstance(defn, MapDefinition)
        assert defn.canvas_size == (0, 0)
        assert defn.placements == {}
        assert defn.is_empty

    def test_duplicate_tags_fail_before_placement(self):
        with patch('pngpack.packing.packer.place_all') as mock_place:
            with pytest.raises(DuplicateTagError) as exc:
                pack([rect("a", 4, 4), rect("b", 4, 4), rect("a", 8, 8)])
        mock_place.assert_not_called()
        assert exc.value.tags == ["a"]

    def test_oversized_rect_exceeds_canvas(self):
        with pytest.raises(CanvasExceededError) as exc:
            pack([rect("big", 32, 8)], max_order=4)
        assert exc.value.max_order == 4

    def test_too_much_area_exceeds_canvas(self):
        """Five 16x16 rects cannot share a 32x32 canvas"""
        rects = [rect(f"t{i}", 16, 16) for i in range(5)]
        with pytest.raises(CanvasExceededError):
            pack(rects, max_order=5)
        assert pack(rects, max_order=6).canvas_size == (64, 32)

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            pack([rect("a", 4, 4)], max_order=0)
        with pytest.raises(ValueError):
            pack([rect("a", 4, 4)], block_size=0)

    @pytest.mark.parametrize("seed", range(5))
    def test_no_overlaps_and_every_tag_placed(self, seed):
        rects = random_rects(seed, count=12, unit=4)
        defn = pack(rects, max_order=8)

        assert sorted(defn.placements) == sorted(r.tag for r in rects)
        for a, b in combinations(defn.placements.values(), 2):
            assert not overlaps(a, b), f"{a.tag} overlaps {b.tag}"

    @pytest.mark.parametrize("seed", range(5))
    def test_canvas_sides_are_bounded_powers_of_two(self, seed):
        max_order = 8
        defn = pack(random_rects(seed, count=10, unit=8), max_order=max_order)
        width, height = defn.canvas_size

        assert is_power_of_two(width) and width <= 2 ** max_order
        assert is_power_of_two(height) and height <= 2 ** max_order
        for p in defn.placements.values():
            x1, y1, x2, y2 = p.box()
            assert x2 <= width and y2 <= height

    def test_sizes_are_true_pixel_sizes(self):
        rects = [rect("a", 12, 6), rect("b", 6, 18)]
        defn = pack(rects)
        assert defn.placements["a"].size == (12, 6)
        assert defn.placements["b"].size == (6, 18)

    def test_repacking_is_deterministic(self):
        rects = random_rects(42, count=15, unit=2)
        first = pack(rects, max_order=9)
        second = pack(list(rects), max_order=9)

        assert first.canvas_size == second.canvas_size
        assert {t: p.offset for t, p in first.placements.items()} == \
               {t: p.offset for t, p in second.placements.items()}

    def test_block_size_one_still_packs(self):
        rects = [rect("a", 3, 5), rect("b", 2, 2), rect("c", 7, 1)]
        defn = pack(rects)
        assert len(defn.placements) == 3
        for a, b in combinations(defn.placements.values(), 2):
            assert not overlaps(a, b)

    def test_placements_stay_inside_canvas_when_blocks_do_not_divide_it(self):
        """A 3px block grid over a 4px canvas has a partial block that must stay unused"""
        defn = pack([rect("a", 3, 3), rect("b", 3, 3)])
        width, height = defn.canvas_size
        assert (width, height) == (8, 4)
        assert defn.placements["b"].offset == (3, 0)
        for p in defn.placements.values():
            x1, y1, x2, y2 = p.box()
            assert x2 <= width and y2 <= height

    def test_fixed_block_size(self):
        """A larger fixed block size rounds each rect up to whole blocks"""
        defn = pack([rect("a", 8, 8), rect("b", 8, 8)], block_size=16)
        assert defn.canvas_size == (32, 16)
        assert defn.placements["a"].offset == (0, 0)
        assert defn.placements["b"].offset == (16, 0)

    def test_default_max_order(self):
        assert DEFAULT_MAX_ORDER == 13


class TestPlaceAll:
    """Single attempt placement"""

    def test_returns_none_when_any_rect_fails(self):
        rects = sort_for_packing([rect("a", 8, 8), rect("b", 8, 8)])
        assert place_all(rects, 8, GrowthState(order_x=3, order_y=3)) is None

    def test_places_in_given_order(self):
        rects = sort_for_packing([rect("small", 4, 4), rect("large", 8, 8)])
        assert [r.tag for r in rects] == ["large", "small"]

        placements = place_all(rects, 4, GrowthState(order_x=4, order_y=3))
        assert list(placements) == ["large", "small"]
        assert placements["large"].offset == (0, 0)
        assert placements["small"].offset == (8, 0)

    def test_sort_keeps_input_order_on_ties(self):
        rects = [rect("x", 4, 8), rect("y", 8, 4), rect("z", 8, 8)]
        assert [r.tag for r in sort_for_packing(rects)] == ["x", "y", "z"]
