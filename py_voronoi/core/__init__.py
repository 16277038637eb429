"""
Core tessellation functionality.
"""

from .alea_prng import AleaPRNG
from .tessellation import (
    Cell, Color, ConfigurationError, Seed, TessellationEngine, TieBreak,
    build_distance_table, ring_offsets,
)

__all__ = ['AleaPRNG', 'Cell', 'Color', 'ConfigurationError', 'Seed',
           'TessellationEngine', 'TieBreak', 'build_distance_table', 'ring_offsets']
