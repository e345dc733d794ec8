"""Composite supplier KPI — equal-weight mean of the four category means.

Recomputed from the full evaluation history every time, never patched
incrementally, so running it twice over the same history gives the same
snapshot.  A category with no evaluations contributes 0 to its own mean and
to the composite.  PPM evaluations are ignored.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timezone

from src.scorecard.models import KPI_CATEGORIES, Category, SupplierKpi

logger = logging.getLogger(__name__)


def category_mean(scores: Iterable[float]) -> float:
    values = list(scores)
    if not values:
        return 0.0
    return sum(values) / len(values)


def recompute_kpi(
    supplier_id: str,
    evaluations_by_category: Mapping[Category, Sequence],
    now: datetime | None = None,
) -> SupplierKpi:
    """Build a fresh KPI snapshot for one supplier.

    ``evaluations_by_category`` maps a category to that supplier's persisted
    evaluations; missing keys are treated as empty.  Evaluations belonging to
    another supplier are skipped.
    """
    means: dict[str, float] = {}
    count = 0
    for category in KPI_CATEGORIES:
        evaluations = [
            e for e in evaluations_by_category.get(category, ())
            if e.supplier_id == supplier_id
        ]
        means[category] = category_mean(e.kpi_score for e in evaluations)
        count += len(evaluations)

    overall = category_mean(means[c] for c in KPI_CATEGORIES)
    kpi = SupplierKpi(
        supplier_id=supplier_id,
        price_score=means["price"],
        quantity_score=means["quantity"],
        delivery_score=means["delivery"],
        quality_score=means["quality"],
        overall_kpi=overall,
        evaluation_count=count,
        last_updated=now or datetime.now(timezone.utc),
    )
    logger.debug(
        "KPI %s: price=%.2f qty=%.2f delivery=%.2f quality=%.2f -> %.2f (%d evals)",
        supplier_id, kpi.price_score, kpi.quantity_score, kpi.delivery_score,
        kpi.quality_score, kpi.overall_kpi, count,
    )
    return kpi
