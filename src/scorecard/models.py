"""Pydantic v2 data models — the data contracts flowing through the system."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import ClassVar, Literal, Union

from pydantic import BaseModel, Field, model_validator

from src.scorecard.config import ScoringPolicy


# ---------------------------------------------------------------------------
# Type aliases
# ---------------------------------------------------------------------------

Category = Literal["price", "quantity", "delivery", "quality", "ppm"]

CATEGORIES: tuple[Category, ...] = ("price", "quantity", "delivery", "quality", "ppm")

# Defect-rate (PPM) evaluations are recorded but never feed the composite.
KPI_CATEGORIES: tuple[Category, ...] = ("price", "quantity", "delivery", "quality")

InspectionResult = Literal["OK", "NOT_OK"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Raw measurements
# ---------------------------------------------------------------------------

class PriceInput(BaseModel):
    po_price: float = Field(gt=0, description="Purchase-order unit price")
    invoice_price: float = Field(gt=0, description="Invoiced unit price")


class QuantityInput(BaseModel):
    ordered_quantity: int = Field(gt=0)
    received_quantity: int = Field(ge=0)


class DeliveryInput(BaseModel):
    scheduled_date: date
    actual_date: date


class QualityInput(BaseModel):
    quality_notifications: int = Field(ge=0)
    inspection_result: InspectionResult


class PpmInput(BaseModel):
    rejected_quantity: int = Field(ge=0)
    total_received_quantity: int = Field(ge=1)


# ---------------------------------------------------------------------------
# Evaluation requests (raw measurement + business keys)
# ---------------------------------------------------------------------------

class PriceEvaluationRequest(PriceInput):
    supplier_id: str = Field(min_length=1)
    po_number: str
    item_number: str
    quantity: int = Field(ge=1)


class QuantityEvaluationRequest(QuantityInput):
    supplier_id: str = Field(min_length=1)
    po_number: str
    item_number: str


class DeliveryEvaluationRequest(DeliveryInput):
    supplier_id: str = Field(min_length=1)
    po_number: str
    item_number: str
    schedule_line_number: str


class QualityEvaluationRequest(QualityInput):
    supplier_id: str = Field(min_length=1)
    po_number: str
    item_number: str


class PpmEvaluationRequest(PpmInput):
    supplier_id: str = Field(min_length=1)
    material_document: str


# ---------------------------------------------------------------------------
# Scoring results
# ---------------------------------------------------------------------------

class ScoreResult(BaseModel):
    score: float = Field(ge=0.0, le=100.0)
    score_range: str
    policy: ScoringPolicy


class PriceScore(ScoreResult):
    variance_amount: float
    variance_percentage: float

    @property
    def derived_variance(self) -> float:
        return self.variance_percentage


class QuantityScore(ScoreResult):
    variance_quantity: int
    variance_percentage: float

    @property
    def derived_variance(self) -> float:
        return self.variance_percentage


class DeliveryScore(ScoreResult):
    overdue_days: int

    @property
    def derived_variance(self) -> int:
        return self.overdue_days


class QualityScore(ScoreResult):
    """``score`` is the overall quality score; the sub-scores are only
    populated by the fixed-table policy."""

    quality_notifications: int
    notification_score: float | None = None
    inspection_score: float | None = None

    @property
    def overall_score(self) -> float:
        return self.score

    @property
    def derived_variance(self) -> int:
        return self.quality_notifications


class PpmClassification(BaseModel):
    ppm_value: int = Field(ge=0)
    tier: str
    score_range: str
    policy: ScoringPolicy

    @property
    def derived_variance(self) -> int:
        return self.ppm_value


# ---------------------------------------------------------------------------
# Persisted evaluations (immutable)
# ---------------------------------------------------------------------------

class EvaluationRecord(BaseModel):
    id: str
    supplier_id: str
    created_at: datetime

    model_config = {"frozen": True}


class PriceEvaluation(EvaluationRecord):
    po_number: str
    item_number: str
    po_price: float
    invoice_price: float
    quantity: int
    variance_amount: float
    variance_percentage: float
    score: float
    score_range: str = ""
    policy: ScoringPolicy = "fixed_table"

    @property
    def kpi_score(self) -> float:
        return self.score


class QuantityEvaluation(EvaluationRecord):
    po_number: str
    item_number: str
    ordered_quantity: int
    received_quantity: int
    variance_quantity: int
    variance_percentage: float
    score: float
    score_range: str = ""
    policy: ScoringPolicy = "fixed_table"

    @property
    def kpi_score(self) -> float:
        return self.score


class DeliveryEvaluation(EvaluationRecord):
    po_number: str
    item_number: str
    schedule_line_number: str
    scheduled_date: date
    actual_date: date
    overdue_days: int
    score: float
    score_range: str = ""
    policy: ScoringPolicy = "fixed_table"

    @property
    def kpi_score(self) -> float:
        return self.score


class QualityEvaluation(EvaluationRecord):
    po_number: str
    item_number: str
    quality_notifications: int
    inspection_result: InspectionResult
    notification_score: float | None = None
    inspection_score: float | None = None
    overall_score: float
    score_range: str = ""
    policy: ScoringPolicy = "fixed_table"

    @property
    def kpi_score(self) -> float:
        return self.overall_score


class PpmEvaluation(EvaluationRecord):
    material_document: str
    rejected_quantity: int
    total_received_quantity: int
    ppm_value: int
    tier: str = ""
    score_range: str = ""
    policy: ScoringPolicy = "fixed_table"


Evaluation = Union[
    PriceEvaluation,
    QuantityEvaluation,
    DeliveryEvaluation,
    QualityEvaluation,
    PpmEvaluation,
]

EVALUATION_MODELS: dict[Category, type[EvaluationRecord]] = {
    "price": PriceEvaluation,
    "quantity": QuantityEvaluation,
    "delivery": DeliveryEvaluation,
    "quality": QualityEvaluation,
    "ppm": PpmEvaluation,
}

REQUEST_MODELS: dict[Category, type[BaseModel]] = {
    "price": PriceEvaluationRequest,
    "quantity": QuantityEvaluationRequest,
    "delivery": DeliveryEvaluationRequest,
    "quality": QualityEvaluationRequest,
    "ppm": PpmEvaluationRequest,
}


# ---------------------------------------------------------------------------
# Scoring configurations
# ---------------------------------------------------------------------------

class ScoringConfiguration(BaseModel):
    category: ClassVar[Category]

    id: str = Field(default_factory=_new_id)
    name: str = "SAP S4HANA Default"
    description: str = ""
    is_active: bool = True
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class PriceConfiguration(ScoringConfiguration):
    category: ClassVar[Category] = "price"

    excellent_threshold: float = Field(default=-5.0, le=0.0)
    good_threshold: float = -2.0
    acceptable_threshold: float = 2.0
    penalty_rate: float = Field(default=10.0, ge=0.0)
    minimum_score: float = Field(default=0.0, ge=0.0, le=100.0)

    @model_validator(mode="after")
    def _ordered_thresholds(self) -> PriceConfiguration:
        if not (self.excellent_threshold <= self.good_threshold <= self.acceptable_threshold):
            raise ValueError(
                "thresholds must satisfy excellent <= good <= acceptable"
            )
        return self


class QuantityConfiguration(ScoringConfiguration):
    category: ClassVar[Category] = "quantity"

    perfect_delivery_score: float = Field(default=100.0, ge=0.0, le=100.0)
    shortfall_penalty_rate: float = Field(default=5.0, ge=0.0)
    overdelivery_penalty_rate: float = Field(default=2.0, ge=0.0)
    minimum_score: float = Field(default=0.0, ge=0.0, le=100.0)


class DeliveryConfiguration(ScoringConfiguration):
    category: ClassVar[Category] = "delivery"

    on_time_score: float = Field(default=100.0, ge=0.0, le=100.0)
    penalty_per_day: float = Field(default=5.0, ge=0.0)
    max_overdue_days: int = Field(default=20, ge=0)
    minimum_score: float = Field(default=0.0, ge=0.0, le=100.0)


class QualityConfiguration(ScoringConfiguration):
    category: ClassVar[Category] = "quality"

    base_score: float = Field(default=100.0, ge=0.0, le=100.0)
    notification_penalty: float = Field(default=10.0, ge=0.0)
    inspection_ok_bonus: float = Field(default=0.0, ge=0.0)
    inspection_not_ok_penalty: float = Field(default=20.0, ge=0.0)
    minimum_score: float = Field(default=0.0, ge=0.0, le=100.0)


class PpmConfiguration(ScoringConfiguration):
    category: ClassVar[Category] = "ppm"

    zero_defects_label: str = "Zero Defects"
    excellent_threshold: int = Field(default=1000, gt=0)
    excellent_label: str = "Excellent"
    good_threshold: int = Field(default=10000, gt=0)
    good_label: str = "Good"
    improvement_label: str = "Needs Improvement"

    @model_validator(mode="after")
    def _ordered_thresholds(self) -> PpmConfiguration:
        if self.good_threshold <= self.excellent_threshold:
            raise ValueError("good_threshold must be greater than excellent_threshold")
        return self


AnyConfiguration = Union[
    PriceConfiguration,
    QuantityConfiguration,
    DeliveryConfiguration,
    QualityConfiguration,
    PpmConfiguration,
]

CONFIGURATION_MODELS: dict[Category, type[ScoringConfiguration]] = {
    "price": PriceConfiguration,
    "quantity": QuantityConfiguration,
    "delivery": DeliveryConfiguration,
    "quality": QualityConfiguration,
    "ppm": PpmConfiguration,
}


# ---------------------------------------------------------------------------
# Suppliers and KPI snapshots
# ---------------------------------------------------------------------------

class Supplier(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    code: str
    contact_email: str | None = None
    contact_phone: str | None = None
    address: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)


class SupplierKpi(BaseModel):
    supplier_id: str
    price_score: float = 0.0
    quantity_score: float = 0.0
    delivery_score: float = 0.0
    quality_score: float = 0.0
    overall_kpi: float = 0.0
    evaluation_count: int = 0
    last_updated: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Batch import
# ---------------------------------------------------------------------------

class ImportFailure(BaseModel):
    row: int
    category: str | None = None
    error: str


class ImportReport(BaseModel):
    recorded: list[str] = Field(default_factory=list)
    failures: list[ImportFailure] = Field(default_factory=list)
