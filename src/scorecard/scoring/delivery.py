"""Delivery timeliness score.

Signed day difference between actual and scheduled delivery.  The fixed
table peaks uniquely at on-time (100) and falls off faster for lateness than
for earliness; the parametric policy treats early and on-time alike and
subtracts a per-day penalty for every overdue day.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime

from src.scorecard.models import DeliveryConfiguration, DeliveryInput, DeliveryScore
from src.scorecard.scoring.bands import Band, at_most, bounded

logger = logging.getLogger(__name__)

FIXED_BANDS: tuple[Band, ...] = (
    Band(-60, 5, "(-∞, -60]"),
    Band(-30, 20, "(-60, -30]"),
    Band(-10, 40, "(-30, -10]"),
    Band(-1, 65, "(-10, -1]"),
    Band(0, 100, "[0, 0]"),
    Band(10, 80, "(0, 10]"),
    Band(20, 60, "(10, 20]"),
    Band(30, 40, "(20, 30]"),
    Band(40, 20, "(30, 40]"),
)
FIXED_FALLBACK = Band(float("inf"), 5, "(40, +∞)")

_SECONDS_PER_DAY = 24 * 60 * 60


def overdue_days(scheduled: date, actual: date) -> int:
    """Whole days late (negative when early), floored."""
    if isinstance(scheduled, datetime) and isinstance(actual, datetime):
        return math.floor((actual - scheduled).total_seconds() / _SECONDS_PER_DAY)
    if isinstance(scheduled, datetime):
        scheduled = scheduled.date()
    if isinstance(actual, datetime):
        actual = actual.date()
    return (actual - scheduled).days


def fixed_table(days: int) -> tuple[float, str]:
    band = at_most(days, FIXED_BANDS, FIXED_FALLBACK)
    return band.score, band.label


def parametric(days: int, configuration: DeliveryConfiguration) -> tuple[float, str]:
    c = configuration
    if days <= 0:
        return bounded(c.on_time_score, c.minimum_score), "On time or early"
    raw = c.on_time_score - days * c.penalty_per_day
    return bounded(raw, c.minimum_score), f"{days} day(s) overdue"


def score(
    raw: DeliveryInput, configuration: DeliveryConfiguration | None = None,
) -> DeliveryScore:
    days = overdue_days(raw.scheduled_date, raw.actual_date)
    if configuration is None:
        value, label = fixed_table(days)
        policy = "fixed_table"
    else:
        value, label = parametric(days, configuration)
        policy = "parametric"

    logger.debug(
        "Delivery scheduled=%s actual=%s: overdue=%d -> %s (%s)",
        raw.scheduled_date, raw.actual_date, days, value, policy,
    )
    return DeliveryScore(
        score=value, score_range=label, policy=policy, overdue_days=days,
    )
