"""Defect rate in parts per million.

Not a score: the PPM value is classified into a descriptive tier for display
and filtering only, and PPM evaluations never feed the composite KPI.
"""

from __future__ import annotations

import logging

from src.scorecard.errors import InvalidMeasurementError
from src.scorecard.models import PpmClassification, PpmConfiguration, PpmInput

logger = logging.getLogger(__name__)

PPM_SCALE = 1_000_000

DEFAULT_EXCELLENT_THRESHOLD = 1_000
DEFAULT_GOOD_THRESHOLD = 10_000


def ppm_value(rejected_quantity: int, total_received_quantity: int) -> int:
    if total_received_quantity <= 0:
        raise InvalidMeasurementError("total_received_quantity", "must be at least 1")
    if rejected_quantity < 0:
        raise InvalidMeasurementError("rejected_quantity", "cannot be negative")
    # half-up, so 0.5 PPM rounds to 1 rather than to even
    return int(rejected_quantity * PPM_SCALE / total_received_quantity + 0.5)


def _compact(threshold: int) -> str:
    for divisor, suffix in ((1_000_000, "M"), (1_000, "K")):
        if threshold >= divisor:
            return f"{threshold / divisor:g}{suffix}"
    return str(threshold)


def _classify(
    ppm: int,
    excellent_threshold: int,
    good_threshold: int,
    labels: tuple[str, str, str, str],
) -> tuple[str, str]:
    zero, excellent, good, improvement = labels
    lo, hi = _compact(excellent_threshold), _compact(good_threshold)
    if ppm == 0:
        return zero, "Excellent (0 PPM)"
    if ppm < excellent_threshold:
        return excellent, f"Good (<{lo} PPM)"
    if ppm < good_threshold:
        return good, f"Average ({lo}-{hi} PPM)"
    return improvement, f"Poor (>{hi} PPM)"


def fixed_table(ppm: int) -> tuple[str, str]:
    """Return ``(tier, score_range)`` using the built-in 1K / 10K thresholds."""
    return _classify(
        ppm,
        DEFAULT_EXCELLENT_THRESHOLD,
        DEFAULT_GOOD_THRESHOLD,
        ("Zero Defects", "Excellent", "Good", "Needs Improvement"),
    )


def parametric(ppm: int, configuration: PpmConfiguration) -> tuple[str, str]:
    c = configuration
    return _classify(
        ppm,
        c.excellent_threshold,
        c.good_threshold,
        (c.zero_defects_label, c.excellent_label, c.good_label, c.improvement_label),
    )


def score(
    raw: PpmInput, configuration: PpmConfiguration | None = None,
) -> PpmClassification:
    ppm = ppm_value(raw.rejected_quantity, raw.total_received_quantity)
    if configuration is None:
        tier, label = fixed_table(ppm)
        policy = "fixed_table"
    else:
        tier, label = parametric(ppm, configuration)
        policy = "parametric"

    logger.debug(
        "PPM rejected=%d received=%d: %d ppm -> %s (%s)",
        raw.rejected_quantity, raw.total_received_quantity, ppm, tier, policy,
    )
    return PpmClassification(ppm_value=ppm, tier=tier, score_range=label, policy=policy)
