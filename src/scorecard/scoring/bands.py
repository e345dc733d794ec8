"""Piecewise-interval lookups shared by the fixed-table scorers.

A band table is an ordered sequence of ``(bound, score, label)`` triples.
``at_least`` walks a descending table and picks the first band whose bound
is <= the value; ``at_most`` walks an ascending table and picks the first
band whose bound is >= the value.  Both fall through to ``fallback``.
"""

from __future__ import annotations

import math
from typing import NamedTuple


class Band(NamedTuple):
    bound: float
    score: float
    label: str


def at_least(value: float, bands: tuple[Band, ...], fallback: Band) -> Band:
    for band in bands:
        if value >= band.bound:
            return band
    return fallback


def at_most(value: float, bands: tuple[Band, ...], fallback: Band) -> Band:
    for band in bands:
        if value <= band.bound:
            return band
    return fallback


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def bounded(value: float, minimum: float, maximum: float = 100.0) -> int:
    """Clamp a parametric score to ``[minimum, maximum]`` and round it half-up."""
    return round_half_up(min(max(value, minimum), maximum))
