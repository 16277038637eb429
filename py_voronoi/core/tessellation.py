"""
Approximate Voronoi tessellation of a pixel grid by wavefront expansion.

Every seed grows outward one ring at a time. A ring of radius ``r`` is the
diamond of offsets with ``|dx| + |dy| == r``; each offset the seed reaches is
claimed using the true squared Euclidean distance from a precomputed table.
Growth is shared across seeds through a single radius counter, and a seed
stops growing as soon as a ring brings it no new cells.

Each ring is resolved in two phases. Every active seed first proposes its
claims against the grid as it stood when the ring started; the proposals are
then applied, the closest claim winning each cell and the tie-break policy
settling equal distances. Iteration order therefore never decides ownership.

A cell claimed in an earlier ring is kept only against strictly farther
claims: a later ring reaching it at the same distance takes it over.
"""

from enum import Enum
from typing import List, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import structlog

from ..utils import random as random_source

logger = structlog.get_logger()

UNASSIGNED = -1
# Stored distance of cells nobody has claimed yet
UNCLAIMED_DISTANCE = np.iinfo(np.int64).max


class ConfigurationError(ValueError):
    """Raised when an engine cannot be built for the requested grid."""


class TieBreak(str, Enum):
    """Which seed wins a cell claimed at the same distance in the same ring."""

    FIRST_SEED = "first_seed"  # lowest seed index
    LAST_SEED = "last_seed"  # highest seed index, last-write-wins for same-ring ties


class Color(NamedTuple):
    """RGBA color, one byte per channel."""

    r: int
    g: int
    b: int
    a: int


class Seed(NamedTuple):
    """Origin point of one region of the diagram."""

    x: int
    y: int
    color: Color


class Cell(NamedTuple):
    """An assigned grid cell."""

    seed: int  # index into TessellationEngine.seeds
    color: Color
    distance: int


def build_distance_table(width: int, height: int) -> np.ndarray:
    """
    Precompute squared distances for every offset magnitude.

    Args:
        width: Grid width
        height: Grid height

    Returns:
        Array of shape (2*width + 1, 2*height + 1) where
        ``table[dx, dy] == dx**2 + dy**2``
    """
    dx = np.arange(2 * width + 1, dtype=np.int64)
    dy = np.arange(2 * height + 1, dtype=np.int64)
    return np.add.outer(dx * dx, dy * dy)


def ring_offsets(radius: int) -> np.ndarray:
    """
    Offsets of the wavefront at the given radius.

    Walks one octant from (0, radius) towards the diagonal and mirrors each
    point into all eight octants. Points lying on an axis or on the diagonal
    are emitted more than once, so the ring always holds
    ``8 * (radius // 2 + 1)`` vectors.

    Args:
        radius: Ring radius (>= 0)

    Returns:
        Integer array of shape (n, 2) holding (dx, dy) pairs
    """
    combinations = []
    dx = 0
    dy = radius

    while dy >= dx:
        combinations.extend([
            (dx, dy), (dx, -dy), (-dx, dy), (-dx, -dy),
            (dy, dx), (dy, -dx), (-dy, dx), (-dy, -dx),
        ])
        dx += 1
        dy -= 1

    return np.array(combinations, dtype=np.int64).reshape(-1, 2)


class TessellationEngine:
    """
    Grows a Voronoi diagram over a ``width x height`` grid.

    The engine owns the grid, the seeds, the distance table and the set of
    seeds still growing. ``init()`` rebuilds all of it; ``step()`` advances
    the wavefront; ``to_pixels()`` exports the current state as RGBA bytes.
    """

    def __init__(
        self,
        width: int,
        height: int,
        num_seeds: int,
        tie_break: TieBreak = TieBreak.FIRST_SEED,
        prng=None,
        seeds: Optional[Sequence[Seed]] = None,
    ):
        """
        Validate the grid and run the first ``init()``.

        Args:
            width: Grid width in cells (> 0)
            height: Grid height in cells (> 0)
            num_seeds: Number of random seeds (0 <= num_seeds <= width*height)
            tie_break: Policy for equal-distance claims within a ring
            prng: Random source with a ``randint(n)`` method; defaults to the
                process-wide AleaPRNG
            seeds: Explicit seeds placed instead of random ones on the first
                ``init()``

        Raises:
            ConfigurationError: If the grid or the seed count is invalid
        """
        if width <= 0 or height <= 0:
            raise ConfigurationError(
                f"Grid dimensions must be positive, got {width}x{height}"
            )
        if num_seeds < 0:
            raise ConfigurationError(f"Number of seeds cannot be negative, got {num_seeds}")
        if num_seeds > width * height:
            raise ConfigurationError(
                "Number of seeds cannot be more than the pixels in the canvas "
                f"({num_seeds} > {width * height})"
            )

        self.width = width
        self.height = height
        self.num_seeds = num_seeds
        self.tie_break = TieBreak(tie_break)
        self.prng = prng if prng is not None else random_source.get_prng()

        self.seeds: List[Seed] = []
        self.radius = 0
        self.distances = np.zeros((0, 0), dtype=np.int64)
        self._owner = np.empty((0, 0), dtype=np.int64)
        self._distance = np.empty((0, 0), dtype=np.int64)
        self._active = np.empty(0, dtype=np.int64)
        self._seed_xy = np.empty((0, 2), dtype=np.int64)
        self._colors = np.empty((0, 4), dtype=np.uint8)

        self.init(seeds)

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def init(self, seeds: Optional[Sequence[Seed]] = None) -> None:
        """
        Discard all state and start a new diagram.

        Args:
            seeds: Seeds to place; when None, ``num_seeds`` random seeds are
                drawn from the engine's random source

        Raises:
            ConfigurationError: If explicit seeds are out of bounds or more
                numerous than the grid cells
        """
        if seeds is not None:
            seeds = self._validate_seeds(seeds)

        self.distances = build_distance_table(self.width, self.height)
        self._init_grid()
        self.seeds = seeds if seeds is not None else self._random_seeds()
        self._place_seeds()

        self.radius = 0
        self._active = np.arange(len(self.seeds), dtype=np.int64)

        logger.info("Tessellation initialized",
                    width=self.width, height=self.height,
                    seeds=len(self.seeds), tie_break=self.tie_break.value)

    def _validate_seeds(self, seeds: Sequence[Seed]) -> List[Seed]:
        seeds = [Seed(int(s.x), int(s.y), Color(*s.color)) for s in seeds]
        if len(seeds) > self.width * self.height:
            raise ConfigurationError(
                "Number of seeds cannot be more than the pixels in the canvas "
                f"({len(seeds)} > {self.width * self.height})"
            )
        for seed in seeds:
            if not (0 <= seed.x < self.width and 0 <= seed.y < self.height):
                raise ConfigurationError(
                    f"Seed ({seed.x}, {seed.y}) lies outside the "
                    f"{self.width}x{self.height} grid"
                )
        return seeds

    def _init_grid(self) -> None:
        self._owner = np.full((self.height, self.width), UNASSIGNED, dtype=np.int64)
        self._distance = np.full((self.height, self.width), UNCLAIMED_DISTANCE, dtype=np.int64)

    def _random_seeds(self) -> List[Seed]:
        seeds = []
        for _ in range(self.num_seeds):
            x = self.prng.randint(self.width)
            y = self.prng.randint(self.height)
            color = Color(
                r=self.prng.randint(256),
                g=self.prng.randint(256),
                b=self.prng.randint(256),
                a=self.prng.randint(256),
            )
            seeds.append(Seed(x, y, color))
        return seeds

    def _place_seeds(self) -> None:
        self._seed_xy = np.array([(s.x, s.y) for s in self.seeds], dtype=np.int64).reshape(-1, 2)
        self._colors = np.array([s.color for s in self.seeds], dtype=np.uint8).reshape(-1, 4)

        # A later seed on the same position takes the cell over
        for index, seed in enumerate(self.seeds):
            self._owner[seed.y, seed.x] = index
            self._distance[seed.y, seed.x] = 0

    # ------------------------------------------------------------------
    # Tessellation
    # ------------------------------------------------------------------

    def step(self, run_to_completion: bool = False) -> None:
        """
        Advance the wavefront.

        Args:
            run_to_completion: Grow until no seed is active; otherwise grow a
                single ring. Does nothing once the diagram is complete.
        """
        while self._active.size > 0:
            self._grow_ring()

            if not run_to_completion:
                break

    def _grow_ring(self) -> None:
        self.radius += 1
        offsets = ring_offsets(self.radius)
        active = self._active

        # Propose: every (active seed, offset) pair, rows follow seed order
        targets = self._seed_xy[active][:, None, :] + offsets[None, :, :]
        xs = targets[..., 0].ravel()
        ys = targets[..., 1].ravel()
        abs_dx = np.tile(np.abs(offsets[:, 0]), active.size)
        abs_dy = np.tile(np.abs(offsets[:, 1]), active.size)
        claimants = np.repeat(active, offsets.shape[0])

        # Out-of-bounds targets are dropped before the table lookup, the ring
        # can outgrow the table on narrow grids
        inside = (xs >= 0) & (xs < self.width) & (ys >= 0) & (ys < self.height)
        xs, ys = xs[inside], ys[inside]
        claim_distances = self.distances[abs_dx[inside], abs_dy[inside]]
        claimants = claimants[inside]

        admissible = claim_distances <= self._distance[ys, xs]
        if not np.any(admissible):
            logger.debug("Ring claimed nothing", radius=self.radius,
                         active_seeds=int(active.size))
            self._active = np.empty(0, dtype=np.int64)
            self._log_completion()
            return

        xs, ys = xs[admissible], ys[admissible]
        claim_distances = claim_distances[admissible]
        claimants = claimants[admissible]

        # Apply: per cell, smallest distance first, then the tie-break rank
        cells = ys * self.width + xs
        rank = claimants if self.tie_break is TieBreak.FIRST_SEED else -claimants
        order = np.lexsort((rank, claim_distances, cells))
        _, first = np.unique(cells[order], return_index=True)
        winners = order[first]

        self._owner[ys[winners], xs[winners]] = claimants[winners]
        self._distance[ys[winners], xs[winners]] = claim_distances[winners]

        self._active = np.unique(claimants[winners])

        logger.debug("Ring grown", radius=self.radius,
                     claimed=int(winners.size),
                     active_seeds=int(self._active.size))

    def _log_completion(self) -> None:
        logger.info("Tessellation complete", radius=self.radius,
                    assigned=self.assigned_count,
                    cells=self.width * self.height)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def active_seeds(self) -> List[int]:
        """Indices of the seeds still growing."""
        return self._active.tolist()

    @property
    def is_complete(self) -> bool:
        return self._active.size == 0

    @property
    def assigned_count(self) -> int:
        return int(np.count_nonzero(self._owner != UNASSIGNED))

    def owners(self) -> np.ndarray:
        """Copy of the owner grid, shape (height, width), -1 where unassigned."""
        return self._owner.copy()

    def owner_at(self, x: int, y: int) -> int:
        return int(self._owner[y, x])

    def distance_at(self, x: int, y: int) -> Optional[int]:
        if self._owner[y, x] == UNASSIGNED:
            return None
        return int(self._distance[y, x])

    def cell(self, x: int, y: int) -> Optional[Cell]:
        """The assignment of cell (x, y), or None if no seed claimed it yet."""
        index = self.owner_at(x, y)
        if index == UNASSIGNED:
            return None
        return Cell(seed=index, color=self.seeds[index].color,
                    distance=int(self._distance[y, x]))

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_array(self) -> np.ndarray:
        """
        Render the diagram as an RGBA image array.

        Unassigned cells and seed positions are transparent black.

        Returns:
            uint8 array of shape (height, width, 4)
        """
        pixels = np.zeros((self.height, self.width, 4), dtype=np.uint8)

        assigned = self._owner != UNASSIGNED
        pixels[assigned] = self._colors[self._owner[assigned]]

        # Seeds render as black points
        if self._seed_xy.size:
            pixels[self._seed_xy[:, 1], self._seed_xy[:, 0]] = 0

        return pixels

    def to_pixels(self) -> bytes:
        """
        Row-major RGBA8888 buffer of the diagram.

        Pixel (x, y) starts at byte ``(y * width + x) * 4``.
        """
        return self.to_array().tobytes()

    def layout(self) -> Tuple[int, int]:
        return self.width, self.height

    def __repr__(self):
        return (f"TessellationEngine({self.width}x{self.height}, "
                f"seeds={len(self.seeds)}, radius={self.radius}, "
                f"active={self._active.size})")
