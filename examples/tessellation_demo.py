#!/usr/bin/env python3
"""
Simple demo script showing wavefront tessellation and its tie-break policies.
"""

import numpy as np
from py_voronoi.core import AleaPRNG, TessellationEngine, TieBreak


def region_sizes(engine):
    """Cells owned by each seed."""
    owners = engine.owners()
    return np.bincount(owners[owners >= 0], minlength=len(engine.seeds))


def main():
    """Demonstrate ring-by-ring growth."""
    print("Py-Voronoi Tessellation Demo")
    print("=" * 40)

    width, height, num_seeds = 120, 80, 12

    for tie_break in TieBreak:
        print(f"\n{tie_break.value.upper()} tie-break:")
        print("-" * 30)

        engine = TessellationEngine(width, height, num_seeds,
                                    tie_break=tie_break, prng=AleaPRNG("demo123"))

        # Grow ring by ring, reporting every tenth
        while not engine.is_complete:
            engine.step(run_to_completion=False)
            if engine.radius % 10 == 0:
                coverage = engine.assigned_count / (width * height) * 100
                print(f"  Ring {engine.radius:3d}: {coverage:5.1f}% assigned, "
                      f"{len(engine.active_seeds)} seeds growing")

        sizes = region_sizes(engine)
        print(f"  Finished after {engine.radius} rings")
        print(f"  Unassigned cells: {width * height - engine.assigned_count}")
        print("  Region sizes:")
        for index, (seed, size) in enumerate(zip(engine.seeds, sizes)):
            bar = '#' * int(size / max(sizes) * 20)
            print(f"    seed {index:2d} at ({seed.x:3d},{seed.y:3d}): {bar} ({size})")


if __name__ == "__main__":
    main()
