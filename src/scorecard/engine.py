"""Top-level orchestrator — ties scoring, configuration and aggregation.

Recording an evaluation:
  1. Validate the request                        (pydantic)
  2. Resolve the configuration for the policy    (parametric only)
  3. Score the raw measurement                   (pure, per category)
  4. Persist the evaluation                      (repository)
  5. Recompute the supplier KPI from scratch     (price/quantity/delivery/quality)

Steps 4 and 5 run under the repository lock so a concurrent writer for the
same supplier cannot interleave between the append and the KPI write.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from src.scorecard.config import ScoringPolicy, settings
from src.scorecard.configuration import resolve_for_scoring
from src.scorecard.errors import InvalidImportError, ScorecardError, SupplierNotFoundError
from src.scorecard.models import (
    KPI_CATEGORIES,
    REQUEST_MODELS,
    Category,
    DeliveryInput,
    EvaluationRecord,
    ImportFailure,
    ImportReport,
    PpmInput,
    PriceInput,
    QualityInput,
    QuantityInput,
    ScoringConfiguration,
    Supplier,
    SupplierKpi,
)
from src.scorecard.repository import EvaluationRepository
from src.scorecard.scoring import defect_rate, delivery, price, quality, quantity
from src.scorecard.scoring.composite import recompute_kpi

logger = logging.getLogger(__name__)

DATA_DIR = settings.data_dir

SCORERS: dict[Category, Callable[..., BaseModel]] = {
    "price": price.score,
    "quantity": quantity.score,
    "delivery": delivery.score,
    "quality": quality.score,
    "ppm": defect_rate.score,
}

INPUT_MODELS: dict[Category, type[BaseModel]] = {
    "price": PriceInput,
    "quantity": QuantityInput,
    "delivery": DeliveryInput,
    "quality": QualityInput,
    "ppm": PpmInput,
}


def _as_model(model: type[BaseModel], data: BaseModel | Mapping[str, Any]) -> BaseModel:
    if isinstance(data, model):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump()
    return model.model_validate(data)


def score(
    category: Category,
    raw_input: BaseModel | Mapping[str, Any],
    configuration: ScoringConfiguration | None = None,
) -> BaseModel:
    """Score a raw measurement; no configuration selects the fixed table."""
    raw = _as_model(INPUT_MODELS[category], raw_input)
    return SCORERS[category](raw, configuration)


def _evaluation_fields(
    category: Category, request: BaseModel, result: BaseModel,
) -> dict[str, Any]:
    fields = {**request.model_dump(), **result.model_dump()}
    if category == "quality":
        fields["overall_score"] = fields.pop("score")
    return fields


def refresh_supplier_kpi(repo: EvaluationRepository, supplier_id: str) -> SupplierKpi:
    with repo.lock:
        history = {
            category: repo.list_evaluations(category, supplier_id)
            for category in KPI_CATEGORIES
        }
        kpi = recompute_kpi(supplier_id, history)
        return repo.write_kpi(supplier_id, kpi)


def rebuild_all_kpis(repo: EvaluationRepository) -> list[SupplierKpi]:
    return [refresh_supplier_kpi(repo, s.id) for s in repo.list_suppliers()]


def record_evaluation(
    repo: EvaluationRepository,
    category: Category,
    request: BaseModel | Mapping[str, Any],
    policy: ScoringPolicy | None = None,
) -> EvaluationRecord:
    req = _as_model(REQUEST_MODELS[category], request)
    if repo.get_supplier(req.supplier_id) is None:
        raise SupplierNotFoundError(req.supplier_id)

    configuration = resolve_for_scoring(repo, category, policy or settings.scoring_policy)
    result = SCORERS[category](req, configuration)

    with repo.lock:
        record = repo.create_evaluation(category, _evaluation_fields(category, req, result))
        if category in KPI_CATEGORIES:
            refresh_supplier_kpi(repo, req.supplier_id)

    logger.info(
        "Recorded %s evaluation %s for supplier %s (%s)",
        category, record.id, req.supplier_id, result.policy,
    )
    return record


def record_price_evaluation(repo, request, policy=None):
    return record_evaluation(repo, "price", request, policy)


def record_quantity_evaluation(repo, request, policy=None):
    return record_evaluation(repo, "quantity", request, policy)


def record_delivery_evaluation(repo, request, policy=None):
    return record_evaluation(repo, "delivery", request, policy)


def record_quality_evaluation(repo, request, policy=None):
    return record_evaluation(repo, "quality", request, policy)


def record_ppm_evaluation(repo, request, policy=None):
    return record_evaluation(repo, "ppm", request, policy)


def import_evaluations(
    repo: EvaluationRepository,
    rows: Iterable[Mapping[str, Any]],
    policy: ScoringPolicy | None = None,
) -> ImportReport:
    """Record a batch of ``{"category": ..., **fields}`` rows.

    Rows are independent: a rejected row is reported and skipped, and every
    other row is still recorded.
    A payload that is not a list of rows at all raises ``InvalidImportError``.
    """
    if isinstance(rows, (Mapping, str, bytes)) or not isinstance(rows, Iterable):
        raise InvalidImportError(
            f"Expected a list of evaluation rows, got {type(rows).__name__}"
        )

    report = ImportReport()
    for idx, row in enumerate(rows):
        if not isinstance(row, Mapping):
            report.failures.append(ImportFailure(
                row=idx, error=f"Expected an object, got {type(row).__name__}",
            ))
            continue
        fields = dict(row)
        category = fields.pop("category", None)
        if not isinstance(category, str) or category not in REQUEST_MODELS:
            report.failures.append(ImportFailure(
                row=idx,
                category=category if isinstance(category, str) else None,
                error=f"Unknown category {category!r}",
            ))
            continue
        try:
            record = record_evaluation(repo, category, fields, policy)
        except (ValidationError, ScorecardError) as e:
            logger.warning("Rejected %s row %d: %s", category, idx, e)
            report.failures.append(ImportFailure(row=idx, category=category, error=str(e)))
            continue
        report.recorded.append(record.id)

    logger.info(
        "Import complete: %d recorded, %d rejected",
        len(report.recorded), len(report.failures),
    )
    return report


def load_sample_suppliers(
    repo: EvaluationRepository, path: Path | None = None,
) -> list[Supplier]:
    path = path or DATA_DIR / "sample_suppliers.json"
    with open(path) as f:
        raw = json.load(f)
    existing = {s.code for s in repo.list_suppliers()}
    created = []
    for entry in raw:
        if entry["code"] in existing:
            continue
        created.append(repo.create_supplier(**entry))
    return created
