"""Read-side helpers for dashboards and exports."""

from __future__ import annotations

from typing import Any, Literal

from src.scorecard.config import settings
from src.scorecard.models import Supplier, SupplierKpi
from src.scorecard.repository import EvaluationRepository
from src.scorecard.scoring.bands import round_half_up

ScoreColour = Literal["green", "blue", "yellow", "red"]
PerformanceTier = Literal["top_performer", "standard", "needs_improvement"]


def score_colour(score: float) -> ScoreColour:
    bands = settings.score_colour_bands
    if score >= bands.green:
        return "green"
    if score >= bands.blue:
        return "blue"
    if score >= bands.yellow:
        return "yellow"
    return "red"


def format_ppm(ppm: int) -> str:
    if ppm >= 1_000_000:
        return f"{ppm / 1_000_000:.1f}M"
    if ppm >= 1_000:
        return f"{ppm / 1_000:.1f}K"
    return str(ppm)


def performance_tier(kpi: SupplierKpi | None) -> PerformanceTier:
    overall = kpi.overall_kpi if kpi else 0.0
    if overall >= settings.top_performer_threshold:
        return "top_performer"
    if overall < settings.needs_improvement_threshold:
        return "needs_improvement"
    return "standard"


def _average(values: list[float], count: int) -> float:
    if count == 0:
        return 0.0
    return round_half_up(sum(values) / count * 10) / 10


def dashboard_summary(repo: EvaluationRepository) -> dict[str, Any]:
    """Supplier count and per-category averages across every supplier."""
    suppliers = repo.list_suppliers()
    kpis = repo.list_kpis()
    n = len(suppliers)
    return {
        "total_suppliers": n,
        "average_scores": {
            "price": _average([k.price_score for k in kpis], n),
            "quantity": _average([k.quantity_score for k in kpis], n),
            "delivery": _average([k.delivery_score for k in kpis], n),
            "quality": _average([k.quality_score for k in kpis], n),
            "overall": _average([k.overall_kpi for k in kpis], n),
        },
    }


def report_statistics(repo: EvaluationRepository) -> dict[str, Any]:
    kpis = repo.list_kpis()
    tiers = [performance_tier(k) for k in kpis]
    return {
        "total_suppliers": len(repo.list_suppliers()),
        "avg_overall_kpi": (
            sum(k.overall_kpi for k in kpis) / len(kpis) if kpis else 0.0
        ),
        "top_performers": tiers.count("top_performer"),
        "needs_improvement": tiers.count("needs_improvement"),
    }


def supplier_rows(repo: EvaluationRepository) -> list[tuple[Supplier, SupplierKpi | None]]:
    return [(s, repo.get_kpi(s.id)) for s in repo.list_suppliers()]


def filter_suppliers(
    rows: list[tuple[Supplier, SupplierKpi | None]],
    tier: PerformanceTier | None = None,
    search: str = "",
) -> list[tuple[Supplier, SupplierKpi | None]]:
    """Filter by performance tier and a case-insensitive name/code search."""
    needle = search.strip().lower()
    out = []
    for supplier, kpi in rows:
        if needle and needle not in supplier.name.lower() and needle not in supplier.code.lower():
            continue
        if tier and performance_tier(kpi) != tier:
            continue
        out.append((supplier, kpi))
    return out


def export_suppliers(repo: EvaluationRepository) -> list[dict[str, Any]]:
    return [
        {
            **supplier.model_dump(mode="json"),
            "kpi": kpi.model_dump(mode="json") if kpi else None,
        }
        for supplier, kpi in supplier_rows(repo)
    ]
