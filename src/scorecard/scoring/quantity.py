"""Quantity variance score.

Received versus ordered quantity.  On the fixed table overdelivery is
rewarded; the parametric policy instead penalises any deviation from an
exact match, with separate rates for shortfall and overdelivery.
"""

from __future__ import annotations

import logging

from src.scorecard.errors import InvalidMeasurementError
from src.scorecard.models import QuantityConfiguration, QuantityInput, QuantityScore
from src.scorecard.scoring.bands import Band, at_least, bounded

logger = logging.getLogger(__name__)

FIXED_BANDS: tuple[Band, ...] = (
    Band(20, 100, "[20%, +∞)"),
    Band(10, 95, "[10%, 20%)"),
    Band(5, 90, "[5%, 10%)"),
    Band(0, 80, "[0%, 5%)"),
    Band(-5, 60, "[-5%, 0%)"),
    Band(-10, 40, "[-10%, -5%)"),
    Band(-20, 20, "[-20%, -10%)"),
)
FIXED_FALLBACK = Band(float("-inf"), 10, "[-100%, -20%)")


def variance(ordered_quantity: int, received_quantity: int) -> tuple[int, float]:
    """Return ``(variance_quantity, variance_percentage)``."""
    if ordered_quantity <= 0:
        raise InvalidMeasurementError("ordered_quantity", "must be greater than zero")
    if received_quantity < 0:
        raise InvalidMeasurementError("received_quantity", "cannot be negative")
    diff = received_quantity - ordered_quantity
    return diff, diff / ordered_quantity * 100


def fixed_table(variance_percentage: float) -> tuple[float, str]:
    band = at_least(variance_percentage, FIXED_BANDS, FIXED_FALLBACK)
    return band.score, band.label


def parametric(
    variance_percentage: float, configuration: QuantityConfiguration,
) -> tuple[float, str]:
    c = configuration
    if variance_percentage == 0:
        return bounded(c.perfect_delivery_score, c.minimum_score), "Exact match"
    if variance_percentage < 0:
        raw = c.perfect_delivery_score - abs(variance_percentage) * c.shortfall_penalty_rate
        return bounded(raw, c.minimum_score), "Shortfall"
    raw = c.perfect_delivery_score - variance_percentage * c.overdelivery_penalty_rate
    return bounded(raw, c.minimum_score), "Overdelivery"


def score(
    raw: QuantityInput, configuration: QuantityConfiguration | None = None,
) -> QuantityScore:
    diff, pct = variance(raw.ordered_quantity, raw.received_quantity)
    if configuration is None:
        value, label = fixed_table(pct)
        policy = "fixed_table"
    else:
        value, label = parametric(pct, configuration)
        policy = "parametric"

    logger.debug(
        "Quantity ordered=%d received=%d: variance=%.2f%% -> %s (%s)",
        raw.ordered_quantity, raw.received_quantity, pct, value, policy,
    )
    return QuantityScore(
        score=value,
        score_range=label,
        policy=policy,
        variance_quantity=diff,
        variance_percentage=pct,
    )
