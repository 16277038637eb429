"""Tests for the wavefront tessellation engine."""

import pytest
import numpy as np

from py_voronoi.core.alea_prng import AleaPRNG
from py_voronoi.core.tessellation import (
    Color, ConfigurationError, Seed, TessellationEngine, TieBreak,
    build_distance_table, ring_offsets,
)
from py_voronoi.utils.random import set_random_seed

RED = Color(255, 0, 0, 255)
BLUE = Color(0, 0, 255, 255)


def make_engine(width, height, seeds, tie_break=TieBreak.FIRST_SEED):
    """Engine with explicitly placed seeds."""
    return TessellationEngine(width, height, len(seeds), tie_break=tie_break,
                              prng=AleaPRNG("fixture"), seeds=seeds)


class TestDistanceTable:
    """Test distance table construction."""

    def test_table_shape(self):
        table = build_distance_table(4, 3)
        assert table.shape == (9, 7)

    def test_squared_distances(self):
        table = build_distance_table(10, 10)
        assert table[0, 0] == 0
        assert table[3, 4] == 25
        assert table[20, 20] == 800
        assert table[7, 2] == table[2, 7]


class TestRingOffsets:
    """Test wavefront ring geometry."""

    @pytest.mark.parametrize("radius", [0, 1, 2, 3, 4, 7, 10])
    def test_ring_size(self, radius):
        """Each octant point is mirrored eight times."""
        offsets = ring_offsets(radius)
        assert offsets.shape == (8 * (radius // 2 + 1), 2)

    @pytest.mark.parametrize("radius", [1, 2, 3, 4, 5, 6])
    def test_ring_is_diamond(self, radius):
        """Unique offsets are exactly the cells at L1 distance r."""
        offsets = {tuple(o) for o in ring_offsets(radius).tolist()}
        expected = {
            (dx, dy)
            for dx in range(-radius, radius + 1)
            for dy in range(-radius, radius + 1)
            if abs(dx) + abs(dy) == radius
        }
        assert offsets == expected
        assert len(offsets) == 4 * radius

    def test_ring_is_deterministic(self):
        np.testing.assert_array_equal(ring_offsets(5), ring_offsets(5))

    def test_octant_walk_order(self):
        """The walk starts on the y axis and mirrors in a fixed order."""
        offsets = ring_offsets(2).tolist()
        assert offsets[:8] == [[0, 2], [0, -2], [0, 2], [0, -2],
                               [2, 0], [2, 0], [-2, 0], [-2, 0]]
        assert offsets[8:] == [[1, 1], [1, -1], [-1, 1], [-1, -1],
                               [1, 1], [1, -1], [-1, 1], [-1, -1]]


class TestInitialization:
    """Test engine construction and seeding."""

    @pytest.mark.parametrize("width,height,num_seeds", [
        (1, 1, 1),
        (4, 4, 16),
        (50, 30, 40),
        (7, 200, 0),
    ])
    def test_seeds_within_bounds(self, width, height, num_seeds):
        engine = TessellationEngine(width, height, num_seeds, prng=AleaPRNG("bounds"))

        assert len(engine.seeds) == num_seeds
        for seed in engine.seeds:
            assert 0 <= seed.x < width
            assert 0 <= seed.y < height
            assert all(0 <= channel <= 255 for channel in seed.color)

    def test_too_many_seeds(self):
        with pytest.raises(ConfigurationError):
            TessellationEngine(4, 4, 17)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            TessellationEngine(2, 2, 5)

    @pytest.mark.parametrize("width,height,num_seeds", [
        (0, 4, 1),
        (4, 0, 1),
        (-3, 4, 1),
        (4, 4, -1),
    ])
    def test_invalid_dimensions(self, width, height, num_seeds):
        with pytest.raises(ConfigurationError):
            TessellationEngine(width, height, num_seeds)

    def test_explicit_seed_out_of_bounds(self):
        with pytest.raises(ConfigurationError):
            make_engine(4, 4, [Seed(4, 0, RED)])

    def test_initial_state(self):
        engine = TessellationEngine(20, 20, 10, prng=AleaPRNG("init"))

        assert engine.radius == 0
        assert engine.active_seeds == list(range(10))
        assert not engine.is_complete
        assert engine.distances.shape == (41, 41)

    def test_seeds_are_self_assigned(self):
        engine = TessellationEngine(30, 30, 12, prng=AleaPRNG("self"))

        for seed in engine.seeds:
            assert engine.distance_at(seed.x, seed.y) == 0
            assert engine.cell(seed.x, seed.y).distance == 0

    def test_other_cells_unassigned(self):
        engine = make_engine(5, 5, [Seed(2, 2, RED)])

        assert engine.assigned_count == 1
        assert engine.cell(0, 0) is None
        assert engine.distance_at(4, 4) is None
        assert engine.owner_at(0, 0) == -1

    def test_same_seed_string_reproduces_seeds(self):
        engine1 = TessellationEngine(64, 64, 20, prng=AleaPRNG("repeat"))
        engine2 = TessellationEngine(64, 64, 20, prng=AleaPRNG("repeat"))

        assert engine1.seeds == engine2.seeds

    def test_different_seed_strings_differ(self):
        engine1 = TessellationEngine(64, 64, 20, prng=AleaPRNG("seed1"))
        engine2 = TessellationEngine(64, 64, 20, prng=AleaPRNG("seed2"))

        assert engine1.seeds != engine2.seeds

    def test_default_random_source(self):
        """Without an injected source the process-wide PRNG is used."""
        set_random_seed("shared")
        engine1 = TessellationEngine(32, 32, 8)
        engine2 = TessellationEngine(32, 32, 8, prng=AleaPRNG("shared"))

        assert engine1.seeds == engine2.seeds

    def test_reinit_discards_state(self):
        engine = TessellationEngine(40, 40, 10, prng=AleaPRNG("reinit"))
        first_seeds = list(engine.seeds)
        engine.step(run_to_completion=True)

        engine.init()

        assert engine.radius == 0
        assert engine.active_seeds == list(range(10))
        assert engine.assigned_count <= 10
        assert engine.seeds != first_seeds

    def test_reinit_with_explicit_seeds(self):
        engine = TessellationEngine(10, 10, 5, prng=AleaPRNG("explicit"))
        engine.init([Seed(1, 1, RED)])

        assert engine.seeds == [Seed(1, 1, RED)]
        assert engine.owner_at(1, 1) == 0


class TestStep:
    """Test wavefront growth."""

    def test_single_ring(self):
        engine = make_engine(9, 9, [Seed(4, 4, RED)])
        engine.step(run_to_completion=False)

        assert engine.radius == 1
        assert engine.assigned_count == 5
        for x, y in [(3, 4), (5, 4), (4, 3), (4, 5)]:
            assert engine.owner_at(x, y) == 0
            assert engine.distance_at(x, y) == 1

    @pytest.mark.parametrize("width,height,num_seeds,seed", [
        (30, 20, 15, "finish"),
        (17, 41, 9, "tall"),
        (50, 8, 30, "wide"),
        (12, 12, 144, "crowded"),
        (25, 25, 1, "lonely"),
    ])
    def test_run_to_completion_terminates(self, width, height, num_seeds, seed):
        engine = TessellationEngine(width, height, num_seeds, prng=AleaPRNG(seed))
        engine.step(run_to_completion=True)

        assert engine.is_complete
        assert engine.active_seeds == []
        assert engine.radius <= width + height
        assert engine.assigned_count == width * height

    def test_step_after_completion_is_noop(self):
        engine = make_engine(4, 4, [Seed(0, 0, RED)])
        engine.step(run_to_completion=True)
        radius = engine.radius
        owners = engine.owners()

        engine.step(run_to_completion=False)
        engine.step(run_to_completion=True)

        assert engine.radius == radius
        np.testing.assert_array_equal(engine.owners(), owners)

    def test_active_set_shrinks_monotonically(self):
        engine = TessellationEngine(40, 40, 25, prng=AleaPRNG("monotonic"))
        previous = set(engine.active_seeds)

        while not engine.is_complete:
            engine.step(run_to_completion=False)
            current = set(engine.active_seeds)
            assert current <= previous
            previous = current

    def test_single_ring_steps_match_full_run(self):
        engine1 = TessellationEngine(25, 25, 12, prng=AleaPRNG("frames"))
        engine2 = TessellationEngine(25, 25, 12, prng=AleaPRNG("frames"))

        engine1.step(run_to_completion=True)
        while not engine2.is_complete:
            engine2.step(run_to_completion=False)

        assert engine1.radius == engine2.radius
        np.testing.assert_array_equal(engine1.owners(), engine2.owners())

    @pytest.mark.parametrize("width,height,x,y", [
        (4, 4, 0, 0),
        (10, 3, 9, 1),
        (1, 12, 0, 5),
        (15, 15, 7, 7),
    ])
    def test_single_seed_covers_grid(self, width, height, x, y):
        """Narrow grids included, where the ring outgrows the distance table."""
        engine = make_engine(width, height, [Seed(x, y, RED)])
        engine.step(run_to_completion=True)

        assert engine.assigned_count == width * height
        assert np.all(engine.owners() == 0)

    def test_no_seeds(self):
        engine = TessellationEngine(6, 6, 0, prng=AleaPRNG("empty"))

        assert engine.is_complete
        engine.step(run_to_completion=True)

        assert engine.radius == 0
        assert engine.assigned_count == 0
        assert np.all(engine.owners() == -1)

    def test_closer_seed_takes_over_earlier_claim(self):
        """
        The diamond reaches (3, 2) from (0, 2) one ring before it reaches it
        from (5, 4), but the second seed is closer (8 < 9).
        """
        engine = make_engine(6, 5, [Seed(0, 2, RED), Seed(5, 4, BLUE)])

        for _ in range(3):
            engine.step(run_to_completion=False)
        assert engine.owner_at(3, 2) == 0
        assert engine.distance_at(3, 2) == 9

        engine.step(run_to_completion=False)
        assert engine.owner_at(3, 2) == 1
        assert engine.distance_at(3, 2) == 8

        engine.step(run_to_completion=True)
        assert engine.owner_at(3, 2) == 1

    def test_stacked_seeds(self):
        """Two seeds on one position: the later one owns the position."""
        engine = make_engine(5, 5, [Seed(2, 2, RED), Seed(2, 2, BLUE)])
        engine.step(run_to_completion=True)

        owners = engine.owners()
        assert owners[2, 2] == 1
        assert np.count_nonzero(owners == 1) == 1
        assert np.count_nonzero(owners == 0) == 24


class TestScenarios:
    """Small grids with pinned ownership."""

    def test_single_seed_in_corner(self):
        engine = make_engine(4, 4, [Seed(0, 0, RED)])
        engine.step(run_to_completion=True)

        for x in range(4):
            for y in range(4):
                cell = engine.cell(x, y)
                assert cell.color == RED
                assert cell.distance == x * x + y * y

    def test_two_seeds_first_seed_wins_ties(self):
        engine = make_engine(4, 4, [Seed(0, 0, RED), Seed(3, 3, BLUE)],
                             tie_break=TieBreak.FIRST_SEED)
        engine.step(run_to_completion=True)

        assert engine.assigned_count == 16
        for x in range(4):
            for y in range(4):
                expected = 0 if x + y <= 3 else 1
                assert engine.owner_at(x, y) == expected, (x, y)

    def test_two_seeds_last_seed_wins_ties(self):
        engine = make_engine(4, 4, [Seed(0, 0, RED), Seed(3, 3, BLUE)],
                             tie_break=TieBreak.LAST_SEED)
        engine.step(run_to_completion=True)

        assert engine.assigned_count == 16
        for x in range(4):
            for y in range(4):
                expected = 0 if x + y <= 2 else 1
                assert engine.owner_at(x, y) == expected, (x, y)

    @pytest.mark.parametrize("tie_break", list(TieBreak))
    def test_equal_distance_taken_over_by_later_ring(self, tie_break):
        """
        (3, 0) is 25 away from both seeds. The second seed reaches it in
        ring 5, the first one in ring 7, and the later claim wins.
        """
        engine = make_engine(9, 5, [Seed(0, 4, RED), Seed(8, 0, BLUE)],
                             tie_break=tie_break)

        for _ in range(6):
            engine.step(run_to_completion=False)
        assert engine.owner_at(3, 0) == 1
        assert engine.distance_at(3, 0) == 25
        assert engine.owner_at(5, 4) == 0
        assert engine.active_seeds == [0, 1]

        engine.step(run_to_completion=False)
        assert engine.owner_at(3, 0) == 0
        assert engine.distance_at(3, 0) == 25
        assert engine.owner_at(5, 4) == 1
        assert engine.distance_at(5, 4) == 25

        engine.step(run_to_completion=True)
        assert engine.owners()[0].tolist()[:5] == [0, 0, 0, 0, 1]
        assert engine.owner_at(5, 4) == 1

    def test_tie_loser_stops_growing(self):
        """A seed that wins nothing in a ring leaves the active set."""
        engine = make_engine(4, 4, [Seed(0, 0, RED), Seed(3, 3, BLUE)])

        engine.step(run_to_completion=False)
        engine.step(run_to_completion=False)
        assert engine.active_seeds == [0, 1]

        engine.step(run_to_completion=False)
        assert engine.active_seeds == [0]

    def test_tie_break_accepts_strings(self):
        engine = TessellationEngine(4, 4, 1, tie_break="last_seed", prng=AleaPRNG("s"))
        assert engine.tie_break is TieBreak.LAST_SEED


class TestExport:
    """Test pixel export."""

    def test_buffer_size(self):
        engine = TessellationEngine(13, 7, 5, prng=AleaPRNG("size"))
        assert len(engine.to_pixels()) == 13 * 7 * 4
        assert engine.to_array().shape == (7, 13, 4)

    def test_fresh_diagram_is_transparent(self):
        """Only seeds are assigned and they render as black markers."""
        engine = TessellationEngine(10, 10, 6, prng=AleaPRNG("fresh"))
        assert engine.to_pixels() == bytes(10 * 10 * 4)

    def test_export_is_idempotent(self):
        engine = TessellationEngine(20, 20, 8, prng=AleaPRNG("idem"))
        engine.step(run_to_completion=False)
        engine.step(run_to_completion=False)

        assert engine.to_pixels() == engine.to_pixels()

    def test_row_major_layout(self):
        width, height = 5, 4
        engine = make_engine(width, height, [Seed(1, 2, RED)])
        engine.step(run_to_completion=True)
        pixels = engine.to_pixels()

        x, y = 3, 1
        pos = (y * width + x) * 4
        assert tuple(pixels[pos:pos + 4]) == tuple(RED)

    def test_seed_marker(self):
        engine = make_engine(4, 4, [Seed(0, 0, RED)])
        engine.step(run_to_completion=True)
        array = engine.to_array()

        np.testing.assert_array_equal(array[0, 0], [0, 0, 0, 0])
        assert np.all(array.reshape(-1, 4)[1:] == np.array(RED, dtype=np.uint8))

    def test_unassigned_cells_transparent(self):
        engine = make_engine(9, 9, [Seed(4, 4, BLUE)])
        engine.step(run_to_completion=False)
        array = engine.to_array()

        np.testing.assert_array_equal(array[4, 5], list(BLUE))
        np.testing.assert_array_equal(array[0, 0], [0, 0, 0, 0])
