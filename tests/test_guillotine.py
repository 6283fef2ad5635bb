"""
Tests for the guillotine packer.

Covers:
- Initial state and re-initialisation
- Heuristic scoring and split decisions
- The reference 1500×1500×800 placement
- Perfect-fit shortcut, flipping, no-fit idempotence
- Partition invariants under every heuristic combination
- Global batch insertion and merging
"""

import itertools

import pytest

from freespace.algorithms.guillotine import (
    FreeChoiceHeuristic,
    GuillotinePacker,
    SplitHeuristic,
    merge_pair,
    orientations,
    score_by_heuristic,
    split_free_box,
    split_horizontally,
)
from freespace.algorithms.verification import DisjointnessVerifier
from freespace.core.errors import InvalidDimensionsError
from freespace.core.geometry import Box, Size, contained_in, disjoint, guillotine_order_key


ALL_CHOICES = list(FreeChoiceHeuristic)
ALL_SPLITS = list(SplitHeuristic)


@pytest.fixture
def packer(demo_container):
    return GuillotinePacker(*demo_container, verifier=DisjointnessVerifier())


def _two_free_volumes():
    """100³ container after a 50×50×100 column: a 100×50 strip and a 50×50 strip."""
    p = GuillotinePacker(100, 100, 100, verifier=DisjointnessVerifier())
    p.insert(50, 50, 100, merge=False)
    return p


def _assert_partition(p: GuillotinePacker):
    container = Box(0, 0, 0, p.bin_width, p.bin_height, p.bin_depth)
    everything = list(p.free_boxes) + list(p.used_boxes)
    for a, b in itertools.combinations(everything, 2):
        assert disjoint(a, b), f"{a} overlaps {b}"
    for box in everything:
        assert contained_in(box, container)
    assert sum(b.volume for b in everything) == p.bin_volume


# ---------------------------------------------------------------------------
# 1. Lifecycle
# ---------------------------------------------------------------------------

class TestLifecycle:
    def test_init_has_one_free_volume(self, packer):
        assert packer.free_boxes == (Box(0, 0, 0, 1500, 1500, 800),)
        assert packer.used_boxes == ()
        assert packer.occupancy() == 0.0

    def test_unsized_packer_reports_zero_occupancy(self):
        p = GuillotinePacker()
        assert p.occupancy() == 0.0
        assert p.free_boxes == ()

    def test_reinit_discards_previous_state(self, packer, carton):
        packer.insert(*carton.as_tuple())
        packer.init(200, 100, 50)
        assert packer.free_boxes == (Box(0, 0, 0, 200, 100, 50),)
        assert packer.used_boxes == ()
        assert packer.occupancy() == 0.0
        # The verifier starts over too: the same spot is free again
        assert packer.insert(200, 100, 50) == Box(0, 0, 0, 200, 100, 50)

    @pytest.mark.parametrize("dims", [(0, 10, 10), (10, -1, 10), (10, 10, 0)])
    def test_init_rejects_non_positive_extents(self, dims):
        with pytest.raises(InvalidDimensionsError):
            GuillotinePacker(1, 1, 1).init(*dims)

    def test_insert_rejects_non_positive_extents(self, packer):
        with pytest.raises(ValueError):
            packer.insert(0, 10, 10)


# ---------------------------------------------------------------------------
# 2. Heuristic primitives
# ---------------------------------------------------------------------------

class TestHeuristics:
    FREE = Box(0, 0, 0, 10, 20, 30)

    @pytest.mark.parametrize("choice,expected", [
        (FreeChoiceHeuristic.BEST_AREA_FIT, 6000 - 500),
        (FreeChoiceHeuristic.BEST_SHORT_SIDE_FIT, 5),
        (FreeChoiceHeuristic.BEST_LONG_SIDE_FIT, 20),
        (FreeChoiceHeuristic.WORST_AREA_FIT, -(6000 - 500)),
        (FreeChoiceHeuristic.WORST_SHORT_SIDE_FIT, -5),
        (FreeChoiceHeuristic.WORST_LONG_SIDE_FIT, -20),
    ])
    def test_score_by_heuristic(self, choice, expected):
        assert score_by_heuristic(5, 10, 10, self.FREE, choice) == expected

    @pytest.mark.parametrize("method,horizontal", [
        (SplitHeuristic.SHORTER_LEFTOVER_AXIS, False),
        (SplitHeuristic.LONGER_LEFTOVER_AXIS, True),
        (SplitHeuristic.MINIMIZE_AREA, False),
        (SplitHeuristic.MAXIMIZE_AREA, True),
        (SplitHeuristic.SHORTER_AXIS, False),
        (SplitHeuristic.LONGER_AXIS, True),
    ])
    def test_split_direction(self, method, horizontal):
        # leftover is 70 along x and 20 along y
        free = Box(0, 0, 0, 100, 60, 10)
        placed = Box(0, 0, 0, 30, 40, 10)
        assert split_horizontally(free, placed, method) is horizontal

    def test_horizontal_split_gives_bottom_the_full_width(self):
        pieces = split_free_box(
            Box(0, 0, 0, 100, 60, 10), Box(0, 0, 0, 30, 40, 10),
            SplitHeuristic.LONGER_LEFTOVER_AXIS,
        )
        # up piece has zero depth and is dropped
        assert pieces == [Box(0, 40, 0, 100, 20, 10), Box(30, 0, 0, 70, 40, 10)]

    def test_vertical_split_gives_right_the_full_height(self):
        pieces = split_free_box(
            Box(0, 0, 0, 100, 60, 10), Box(0, 0, 0, 30, 40, 10),
            SplitHeuristic.SHORTER_LEFTOVER_AXIS,
        )
        assert pieces == [Box(0, 40, 0, 30, 20, 10), Box(30, 0, 0, 70, 60, 10)]

    def test_up_piece_covers_only_the_placed_footprint(self):
        pieces = split_free_box(
            Box(0, 0, 0, 100, 60, 50), Box(0, 0, 0, 30, 40, 10),
            SplitHeuristic.SHORTER_LEFTOVER_AXIS,
        )
        assert pieces[0] == Box(0, 0, 10, 30, 40, 40)

    def test_orientations_skip_duplicate_for_square_footprint(self):
        assert orientations(Size(5, 5, 9)) == [Size(5, 5, 9)]
        assert orientations(Size(5, 7, 9)) == [Size(5, 7, 9), Size(7, 5, 9)]


# ---------------------------------------------------------------------------
# 3. Single insertion
# ---------------------------------------------------------------------------

class TestInsert:
    def test_reference_placement(self, packer, carton):
        box = packer.insert(
            *carton.as_tuple(),
            merge=True,
            choice=FreeChoiceHeuristic.WORST_LONG_SIDE_FIT,
            split=SplitHeuristic.SHORTER_LEFTOVER_AXIS,
        )
        assert box == Box(0, 0, 0, 510, 290, 210)
        assert packer.occupancy() == pytest.approx(510 * 290 * 210 / (1500 * 1500 * 800))
        assert set(packer.free_boxes) == {
            Box(0, 0, 210, 510, 290, 590),
            Box(0, 290, 0, 1500, 1210, 800),
            Box(510, 0, 0, 990, 290, 800),
        }

    def test_perfect_fit_fills_container(self):
        p = GuillotinePacker(100, 100, 100)
        assert p.insert(100, 100, 100) == Box(0, 0, 0, 100, 100, 100)
        assert p.free_boxes == ()
        assert p.occupancy() == 1.0

    def test_stacked_perfect_fit(self):
        p = GuillotinePacker(100, 100, 100)
        p.insert(100, 100, 40)
        assert p.free_boxes == (Box(0, 0, 40, 100, 100, 60),)
        assert p.insert(100, 100, 60) == Box(0, 0, 40, 100, 100, 60)

    def test_perfect_fit_beats_heuristic_preference(self):
        # Worst-area-fit alone would pick the larger strip at y=50
        p = _two_free_volumes()
        box = p.insert(50, 50, 100, choice=FreeChoiceHeuristic.WORST_AREA_FIT)
        assert box == Box(50, 0, 0, 50, 50, 100)

    @pytest.mark.parametrize("choice,expected", [
        (FreeChoiceHeuristic.BEST_AREA_FIT, Box(50, 0, 0, 50, 50, 50)),
        (FreeChoiceHeuristic.WORST_AREA_FIT, Box(0, 50, 0, 50, 50, 50)),
    ])
    def test_choice_selects_free_volume(self, choice, expected):
        p = _two_free_volumes()
        assert p.insert(50, 50, 50, choice=choice) == expected

    def test_flips_width_and_height_when_needed(self):
        p = GuillotinePacker(100, 50, 100)
        assert p.insert(50, 100, 10) == Box(0, 0, 0, 100, 50, 10)

    def test_depth_is_never_rotated(self):
        p = GuillotinePacker(100, 100, 50)
        assert p.insert(10, 10, 60) is None

    def test_no_fit_leaves_state_untouched(self, packer, carton):
        packer.insert(*carton.as_tuple())
        free_before = packer.free_boxes
        used_before = packer.used_boxes
        # storage order differs from search order here
        assert list(free_before) != sorted(free_before, key=guillotine_order_key)
        assert packer.insert(2000, 10, 10) is None
        assert packer.free_boxes == free_before
        assert packer.used_boxes == used_before

    def test_reference_load_is_fully_placed(self, packer, reference_sizes):
        placed = [packer.insert(*s.as_tuple()) for s in reference_sizes]
        assert all(b is not None for b in placed)
        _assert_partition(packer)
        assert packer.occupancy() == pytest.approx(
            sum(s.volume for s in reference_sizes) / packer.bin_volume
        )


# ---------------------------------------------------------------------------
# 4. Invariants under every heuristic combination
# ---------------------------------------------------------------------------

class TestPartitionInvariants:
    @pytest.mark.parametrize(
        "choice,split", list(itertools.product(ALL_CHOICES, ALL_SPLITS)),
        ids=lambda v: v.value,
    )
    @pytest.mark.parametrize("merge", [True, False])
    def test_free_and_used_tile_the_container(self, choice, split, merge, random_sizes):
        p = GuillotinePacker(1000, 800, 600, verifier=DisjointnessVerifier())
        previous = 0.0
        for s in random_sizes:
            p.insert(*s.as_tuple(), merge=merge, choice=choice, split=split)
            assert p.occupancy() >= previous
            previous = p.occupancy()
        assert 0.0 < p.occupancy() <= 1.0
        _assert_partition(p)

    def test_placed_boxes_sit_at_a_free_volume_origin(self, random_sizes):
        p = GuillotinePacker(1000, 800, 600)
        for s in random_sizes:
            free_before = p.free_boxes
            box = p.insert(*s.as_tuple())
            if box is not None:
                assert (box.x, box.y, box.z) in {(f.x, f.y, f.z) for f in free_before}


# ---------------------------------------------------------------------------
# 5. Merging
# ---------------------------------------------------------------------------

class TestMerge:
    @pytest.mark.parametrize("a,b,expected", [
        (Box(0, 0, 0, 10, 5, 10), Box(0, 5, 0, 10, 5, 10), Box(0, 0, 0, 10, 10, 10)),
        (Box(0, 5, 0, 10, 5, 10), Box(0, 0, 0, 10, 5, 10), Box(0, 0, 0, 10, 10, 10)),
        (Box(0, 0, 0, 4, 10, 10), Box(4, 0, 0, 6, 10, 10), Box(0, 0, 0, 10, 10, 10)),
        (Box(0, 0, 3, 10, 10, 7), Box(0, 0, 0, 10, 10, 3), Box(0, 0, 0, 10, 10, 10)),
    ])
    def test_merge_pair(self, a, b, expected):
        assert merge_pair(a, b) == expected

    def test_merge_pair_needs_adjacency(self):
        assert merge_pair(Box(0, 0, 0, 10, 5, 10), Box(0, 6, 0, 10, 5, 10)) is None
        assert merge_pair(Box(0, 0, 0, 10, 5, 10), Box(0, 5, 0, 9, 5, 10)) is None

    def test_chain_of_three_needs_two_passes(self):
        p = GuillotinePacker(30, 10, 10, verifier=DisjointnessVerifier())
        p._free = [
            Box(20, 0, 0, 10, 10, 10),
            Box(0, 0, 0, 10, 10, 10),
            Box(10, 0, 0, 10, 10, 10),
        ]
        assert p.merge_free_list() is True
        assert len(p.free_boxes) == 2
        assert p.merge_free_list() is True
        assert p.free_boxes == (Box(0, 0, 0, 30, 10, 10),)
        assert p.merge_free_list() is False

    def test_merge_never_changes_free_volume(self, random_sizes):
        p = GuillotinePacker(1000, 800, 600)
        for s in random_sizes[:10]:
            p.insert(*s.as_tuple(), merge=False)
        before = sum(f.volume for f in p.free_boxes)
        while p.merge_free_list():
            pass
        assert sum(f.volume for f in p.free_boxes) == before


# ---------------------------------------------------------------------------
# 6. Batch insertion
# ---------------------------------------------------------------------------

class TestBatch:
    def test_batch_returns_leftovers(self):
        p = GuillotinePacker(100, 100, 100, verifier=DisjointnessVerifier())
        sizes = [Size(100, 100, 60), Size(100, 100, 60), Size(100, 100, 40)]
        result = p.insert_batch(sizes)
        assert result.placed == [Box(0, 0, 0, 100, 100, 60), Box(0, 0, 60, 100, 100, 40)]
        assert result.unpacked == [Size(100, 100, 60)]
        assert not result.all_packed
        assert p.occupancy() == 1.0
        # The caller's list is not consumed
        assert len(sizes) == 3

    def test_batch_reference_load(self, packer, reference_sizes):
        result = packer.insert_batch(reference_sizes)
        assert len(result.placed) + len(result.unpacked) == len(reference_sizes)
        assert list(packer.used_boxes) == result.placed
        _assert_partition(packer)

    def test_batch_with_nothing_fitting(self):
        p = GuillotinePacker(10, 10, 10)
        result = p.insert_batch([Size(20, 20, 20)])
        assert result.placed == []
        assert result.unpacked == [Size(20, 20, 20)]
        assert p.free_boxes == (Box(0, 0, 0, 10, 10, 10),)

    def test_batch_stop_leaves_free_list_as_last_committed(self, carton):
        single = GuillotinePacker(1500, 1500, 800)
        single.insert(*carton.as_tuple())

        p = GuillotinePacker(1500, 1500, 800)
        result = p.insert_batch([carton, Size(2000, 10, 10)])
        assert result.unpacked == [Size(2000, 10, 10)]
        assert p.free_boxes == single.free_boxes

    def test_batch_rejects_invalid_sizes_before_placing(self):
        p = GuillotinePacker(10, 10, 10)
        with pytest.raises(InvalidDimensionsError):
            p.insert_batch([Size(5, 5, 5), Size(0, 5, 5)])
        assert p.used_boxes == ()
