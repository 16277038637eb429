"""
Random number generation utilities.

The engine never reads the wall clock for randomness: it draws from an
injected random source. This module keeps the process-wide default source
used when none is injected.
"""

import uuid
from typing import Optional

from ..core.alea_prng import AleaPRNG

# Global PRNG instance
_prng = None


def new_seed_string() -> str:
    """Return a short random seed string for diagrams created without one."""
    return uuid.uuid4().hex[:8]


def set_random_seed(seed: Optional[str]) -> AleaPRNG:
    """
    Reset the default random source.

    Args:
        seed: Seed string; a fresh one is generated when None

    Returns:
        The new default AleaPRNG instance
    """
    global _prng

    _prng = AleaPRNG(seed if seed is not None else new_seed_string())
    return _prng


def get_prng() -> AleaPRNG:
    """
    Get the current default PRNG instance, creating one on first use.

    Returns:
        AleaPRNG instance
    """
    global _prng
    if _prng is None:
        _prng = AleaPRNG(new_seed_string())
    return _prng
