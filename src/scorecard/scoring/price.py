"""Price variance score.

Compares the invoiced unit price against the purchase-order price.  Cost
savings (negative variance) score higher than overruns.

  fixed_table  — eight fixed bands, independent of any configuration
  parametric   — excellent / good / acceptable thresholds, then a linear
                 penalty per percentage point above ``acceptable_threshold``

The two policies disagree inside some bands: +1% is 40 on the fixed table
but 70 under the default configuration.
"""

from __future__ import annotations

import logging

from src.scorecard.errors import InvalidMeasurementError
from src.scorecard.models import PriceConfiguration, PriceInput, PriceScore
from src.scorecard.scoring.bands import Band, at_least, bounded

logger = logging.getLogger(__name__)

FIXED_BANDS: tuple[Band, ...] = (
    Band(20, 5, "[20%, +∞)"),
    Band(10, 10, "[10%, 20%)"),
    Band(5, 20, "[5%, 10%)"),
    Band(0, 40, "[0%, 5%)"),
    Band(-5, 60, "[-5%, 0%)"),
    Band(-10, 80, "[-10%, -5%)"),
    Band(-20, 90, "[-20%, -10%)"),
)
FIXED_FALLBACK = Band(float("-inf"), 95, "[-100%, -20%)")

BASE_PENALTY_SCORE = 70


def variance(po_price: float, invoice_price: float) -> tuple[float, float]:
    """Return ``(variance_amount, variance_percentage)``."""
    if po_price <= 0:
        raise InvalidMeasurementError("po_price", "must be greater than zero")
    if invoice_price <= 0:
        raise InvalidMeasurementError("invoice_price", "must be greater than zero")
    amount = invoice_price - po_price
    return amount, amount / po_price * 100


def fixed_table(variance_percentage: float) -> tuple[float, str]:
    band = at_least(variance_percentage, FIXED_BANDS, FIXED_FALLBACK)
    return band.score, band.label


def parametric(
    variance_percentage: float, configuration: PriceConfiguration,
) -> tuple[float, str]:
    c = configuration
    if variance_percentage <= c.excellent_threshold:
        return 100, f"Excellent (<= {c.excellent_threshold:g}%)"
    if variance_percentage <= c.good_threshold:
        return 80, f"Good (<= {c.good_threshold:g}%)"
    if variance_percentage <= c.acceptable_threshold:
        return BASE_PENALTY_SCORE, f"Acceptable (<= {c.acceptable_threshold:g}%)"
    penalty = (variance_percentage - c.acceptable_threshold) * c.penalty_rate
    return (
        bounded(BASE_PENALTY_SCORE - penalty, c.minimum_score),
        f"Penalized (> {c.acceptable_threshold:g}%)",
    )


def score(
    raw: PriceInput, configuration: PriceConfiguration | None = None,
) -> PriceScore:
    """Score one price measurement.  No configuration selects the fixed table."""
    amount, pct = variance(raw.po_price, raw.invoice_price)
    if configuration is None:
        value, label = fixed_table(pct)
        policy = "fixed_table"
    else:
        value, label = parametric(pct, configuration)
        policy = "parametric"

    logger.debug(
        "Price po=%.4f invoice=%.4f: variance=%.2f%% -> %s (%s)",
        raw.po_price, raw.invoice_price, pct, value, policy,
    )
    return PriceScore(
        score=value,
        score_range=label,
        policy=policy,
        variance_amount=amount,
        variance_percentage=pct,
    )
