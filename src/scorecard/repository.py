"""Evaluation repository — the storage port and an in-memory adapter.

The scoring core never touches storage directly; the engine talks to
whatever implements ``EvaluationRepository``.  The in-memory adapter is what
the Streamlit app and the tests use.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Mapping
from contextlib import AbstractContextManager
from datetime import datetime, timezone
from typing import Any, Protocol

from src.scorecard.errors import DuplicateSupplierCodeError, SupplierNotFoundError
from src.scorecard.models import (
    CATEGORIES,
    EVALUATION_MODELS,
    Category,
    EvaluationRecord,
    ScoringConfiguration,
    Supplier,
    SupplierKpi,
)

logger = logging.getLogger(__name__)


class EvaluationRepository(Protocol):
    lock: AbstractContextManager[Any]

    def create_evaluation(
        self, category: Category, fields: Mapping[str, Any],
    ) -> EvaluationRecord: ...

    def list_evaluations(
        self, category: Category, supplier_id: str | None = None,
    ) -> list[EvaluationRecord]: ...

    def get_active_configuration(
        self, category: Category,
    ) -> ScoringConfiguration | None: ...

    def list_configurations(self, category: Category) -> list[ScoringConfiguration]: ...

    def get_configuration(
        self, category: Category, config_id: str,
    ) -> ScoringConfiguration | None: ...

    def put_configuration(self, configuration: ScoringConfiguration) -> None: ...

    def write_kpi(self, supplier_id: str, kpi: SupplierKpi) -> SupplierKpi: ...

    def get_kpi(self, supplier_id: str) -> SupplierKpi | None: ...

    def list_kpis(self) -> list[SupplierKpi]: ...

    def list_suppliers(self) -> list[Supplier]: ...

    def get_supplier(self, supplier_id: str) -> Supplier | None: ...

    def create_supplier(self, name: str, code: str, **contact: str | None) -> Supplier: ...

    def update_supplier(self, supplier_id: str, **changes: Any) -> Supplier: ...


class InMemoryRepository:
    """Dict-backed repository.  Insertion order is preserved on every list."""

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self._evaluations: dict[Category, dict[str, EvaluationRecord]] = {
            c: {} for c in CATEGORIES
        }
        self._configurations: dict[Category, dict[str, ScoringConfiguration]] = {
            c: {} for c in CATEGORIES
        }
        self._suppliers: dict[str, Supplier] = {}
        self._kpis: dict[str, SupplierKpi] = {}

    # -- evaluations --------------------------------------------------------

    def create_evaluation(
        self, category: Category, fields: Mapping[str, Any],
    ) -> EvaluationRecord:
        model = EVALUATION_MODELS[category]
        record = model(
            id=str(uuid.uuid4()),
            created_at=datetime.now(timezone.utc),
            **fields,
        )
        with self.lock:
            self._evaluations[category][record.id] = record
        return record

    def list_evaluations(
        self, category: Category, supplier_id: str | None = None,
    ) -> list[EvaluationRecord]:
        with self.lock:
            records = list(self._evaluations[category].values())
        if supplier_id is None:
            return records
        return [r for r in records if r.supplier_id == supplier_id]

    # -- configurations -----------------------------------------------------

    def get_active_configuration(
        self, category: Category,
    ) -> ScoringConfiguration | None:
        with self.lock:
            for config in self._configurations[category].values():
                if config.is_active:
                    return config
        return None

    def list_configurations(self, category: Category) -> list[ScoringConfiguration]:
        with self.lock:
            return list(self._configurations[category].values())

    def get_configuration(
        self, category: Category, config_id: str,
    ) -> ScoringConfiguration | None:
        return self._configurations[category].get(config_id)

    def put_configuration(self, configuration: ScoringConfiguration) -> None:
        with self.lock:
            self._configurations[configuration.category][configuration.id] = configuration

    # -- KPI snapshots ------------------------------------------------------

    def write_kpi(self, supplier_id: str, kpi: SupplierKpi) -> SupplierKpi:
        with self.lock:
            self._kpis[supplier_id] = kpi
        logger.info(
            "KPI written for %s: overall=%.2f (%d evaluations)",
            supplier_id, kpi.overall_kpi, kpi.evaluation_count,
        )
        return kpi

    def get_kpi(self, supplier_id: str) -> SupplierKpi | None:
        return self._kpis.get(supplier_id)

    def list_kpis(self) -> list[SupplierKpi]:
        with self.lock:
            return list(self._kpis.values())

    # -- suppliers ----------------------------------------------------------

    def list_suppliers(self) -> list[Supplier]:
        with self.lock:
            return list(self._suppliers.values())

    def get_supplier(self, supplier_id: str) -> Supplier | None:
        return self._suppliers.get(supplier_id)

    def create_supplier(self, name: str, code: str, **contact: str | None) -> Supplier:
        with self.lock:
            if any(s.code == code for s in self._suppliers.values()):
                raise DuplicateSupplierCodeError(code)
            supplier = Supplier(name=name, code=code, **contact)
            self._suppliers[supplier.id] = supplier
            # every supplier starts with an all-zero snapshot
            self._kpis[supplier.id] = SupplierKpi(supplier_id=supplier.id)
        logger.info("Created supplier %s (%s)", supplier.code, supplier.id)
        return supplier

    def update_supplier(self, supplier_id: str, **changes: Any) -> Supplier:
        with self.lock:
            existing = self._suppliers.get(supplier_id)
            if existing is None:
                raise SupplierNotFoundError(supplier_id)
            if "code" in changes and any(
                s.code == changes["code"] and s.id != supplier_id
                for s in self._suppliers.values()
            ):
                raise DuplicateSupplierCodeError(changes["code"])
            changes.pop("id", None)
            changes.pop("created_at", None)
            updated = Supplier.model_validate({**existing.model_dump(), **changes})
            self._suppliers[supplier_id] = updated
        return updated
