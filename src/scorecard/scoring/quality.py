"""Quality score.

Two inputs: the number of quality notifications raised against the delivery
and the goods-receipt inspection result.

  fixed_table  — notification band score and inspection score (OK=100,
                 NOT_OK=1), averaged
  parametric   — one linear model: base score minus a per-notification
                 penalty, plus a bonus or minus a penalty for the inspection
"""

from __future__ import annotations

import logging

from src.scorecard.errors import InvalidMeasurementError
from src.scorecard.models import (
    InspectionResult,
    QualityConfiguration,
    QualityInput,
    QualityScore,
)
from src.scorecard.scoring.bands import Band, at_most, bounded

logger = logging.getLogger(__name__)

NOTIFICATION_BANDS: tuple[Band, ...] = (
    Band(0, 100, "[0, 0]"),
    Band(5, 80, "[1, 5]"),
    Band(10, 60, "[6, 10]"),
    Band(20, 40, "[11, 20]"),
    Band(50, 20, "[21, 50]"),
)
NOTIFICATION_FALLBACK = Band(float("inf"), 5, "[51, +∞)")

INSPECTION_SCORES: dict[str, float] = {"OK": 100, "NOT_OK": 1}


def notification_score(notifications: int) -> tuple[float, str]:
    if notifications < 0:
        raise InvalidMeasurementError("quality_notifications", "cannot be negative")
    band = at_most(notifications, NOTIFICATION_BANDS, NOTIFICATION_FALLBACK)
    return band.score, band.label


def inspection_score(result: InspectionResult) -> float:
    return INSPECTION_SCORES[result]


def fixed_table(
    notifications: int, result: InspectionResult,
) -> tuple[float, float, float, str]:
    """Return ``(notification_score, inspection_score, overall, label)``."""
    n_score, label = notification_score(notifications)
    i_score = inspection_score(result)
    return n_score, i_score, (n_score + i_score) / 2, label


def parametric(
    notifications: int, result: InspectionResult, configuration: QualityConfiguration,
) -> tuple[float, str]:
    if notifications < 0:
        raise InvalidMeasurementError("quality_notifications", "cannot be negative")
    c = configuration
    raw = c.base_score - notifications * c.notification_penalty
    if result == "OK":
        raw += c.inspection_ok_bonus
    else:
        raw -= c.inspection_not_ok_penalty
    return bounded(raw, c.minimum_score), f"{notifications} notification(s), inspection {result}"


def score(
    raw: QualityInput, configuration: QualityConfiguration | None = None,
) -> QualityScore:
    n = raw.quality_notifications
    if configuration is None:
        n_score, i_score, overall, label = fixed_table(n, raw.inspection_result)
        result = QualityScore(
            score=overall,
            score_range=label,
            policy="fixed_table",
            quality_notifications=n,
            notification_score=n_score,
            inspection_score=i_score,
        )
    else:
        overall, label = parametric(n, raw.inspection_result, configuration)
        result = QualityScore(
            score=overall,
            score_range=label,
            policy="parametric",
            quality_notifications=n,
        )

    logger.debug(
        "Quality notifications=%d inspection=%s -> %s (%s)",
        n, raw.inspection_result, result.score, result.policy,
    )
    return result
