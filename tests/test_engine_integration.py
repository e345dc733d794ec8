"""Integration-level tests — engine, repository and configuration together."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from src.scorecard import engine
from src.scorecard.configuration import save_configuration
from src.scorecard.engine import (
    DATA_DIR,
    import_evaluations,
    load_sample_suppliers,
    rebuild_all_kpis,
    record_delivery_evaluation,
    record_evaluation,
    record_ppm_evaluation,
    record_price_evaluation,
    record_quality_evaluation,
    record_quantity_evaluation,
)
from src.scorecard.errors import (
    DuplicateSupplierCodeError,
    InvalidImportError,
    SupplierNotFoundError,
)
from src.scorecard.models import PriceConfiguration, PriceEvaluationRequest
from src.scorecard.repository import InMemoryRepository


@pytest.fixture
def repo() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def supplier(repo):
    return repo.create_supplier(name="ABC Manufacturing Ltd", code="SUP-001")


def _price_row(supplier_id: str, po_price: float = 2.55, invoice_price: float = 1.27) -> dict:
    return {
        "supplier_id": supplier_id, "po_number": "4500000001", "item_number": "10",
        "po_price": po_price, "invoice_price": invoice_price, "quantity": 100,
    }


class TestSampleData:
    def test_sample_suppliers_file(self):
        path = DATA_DIR / "sample_suppliers.json"
        assert path.exists(), f"Missing {path}"
        with open(path) as f:
            raw = json.load(f)
        assert [r["code"] for r in raw] == ["SUP-001", "SUP-002", "SUP-003"]

    def test_load_sample_suppliers_is_repeatable(self, repo):
        created = load_sample_suppliers(repo)
        assert len(created) == 3
        assert load_sample_suppliers(repo) == []
        assert len(repo.list_suppliers()) == 3
        for s in repo.list_suppliers():
            assert repo.get_kpi(s.id).overall_kpi == 0

    def test_duplicate_code_rejected(self, repo, supplier):
        with pytest.raises(DuplicateSupplierCodeError):
            repo.create_supplier(name="Other", code="SUP-001")

    def test_update_supplier_renames(self, repo, supplier):
        updated = repo.update_supplier(supplier.id, name="ABC Manufacturing plc", contact_email="qa@abc.example")
        assert updated.name == "ABC Manufacturing plc"
        assert updated.code == "SUP-001"
        assert updated.contact_email == "qa@abc.example"
        assert repo.get_supplier(supplier.id) == updated

    def test_update_supplier_rejects_clashing_code(self, repo, supplier):
        other = repo.create_supplier(name="XYZ Components Inc", code="SUP-002")
        with pytest.raises(DuplicateSupplierCodeError):
            repo.update_supplier(other.id, code="SUP-001")
        assert repo.get_supplier(other.id).code == "SUP-002"
        assert repo.update_supplier(supplier.id, code="SUP-001").code == "SUP-001"

    def test_update_supplier_keeps_identity(self, repo, supplier):
        updated = repo.update_supplier(supplier.id, id="hijacked", created_at="2000-01-01T00:00:00Z")
        assert updated.id == supplier.id
        assert updated.created_at == supplier.created_at
        assert repo.get_supplier("hijacked") is None

    def test_update_unknown_supplier(self, repo):
        with pytest.raises(SupplierNotFoundError):
            repo.update_supplier("nope", name="Ghost")


class TestScoreDispatch:
    def test_dict_input(self):
        assert engine.score("price", {"po_price": 2.55, "invoice_price": 1.27}).score == 95

    def test_configuration_selects_parametric(self):
        result = engine.score("price", {"po_price": 100, "invoice_price": 101}, PriceConfiguration())
        assert result.score == 70


class TestRecordEvaluation:
    def test_price_updates_kpi(self, repo, supplier):
        record = record_price_evaluation(repo, _price_row(supplier.id))
        assert record.score == 95
        assert record.variance_percentage == pytest.approx(-50.196, abs=0.01)
        kpi = repo.get_kpi(supplier.id)
        assert kpi.price_score == 95
        assert kpi.overall_kpi == pytest.approx(23.75)
        assert kpi.evaluation_count == 1

    def test_accepts_request_model(self, repo, supplier):
        request = PriceEvaluationRequest(**_price_row(supplier.id))
        assert record_evaluation(repo, "price", request).score == 95

    def test_all_kpi_categories(self, repo, supplier):
        record_price_evaluation(repo, _price_row(supplier.id))
        record_quantity_evaluation(repo, {
            "supplier_id": supplier.id, "po_number": "PO", "item_number": "10",
            "ordered_quantity": 6, "received_quantity": 1,
        })
        record_delivery_evaluation(repo, {
            "supplier_id": supplier.id, "po_number": "PO", "item_number": "10",
            "schedule_line_number": "1",
            "scheduled_date": "2024-01-01", "actual_date": "2024-01-01",
        })
        quality = record_quality_evaluation(repo, {
            "supplier_id": supplier.id, "po_number": "PO", "item_number": "10",
            "quality_notifications": 1, "inspection_result": "NOT_OK",
        })
        assert quality.overall_score == 40.5
        assert quality.notification_score == 80
        kpi = repo.get_kpi(supplier.id)
        assert kpi.overall_kpi == pytest.approx((95 + 10 + 100 + 40.5) / 4)
        assert kpi.evaluation_count == 4

    def test_ppm_recorded_without_touching_kpi(self, repo, supplier):
        record_price_evaluation(repo, _price_row(supplier.id))
        before = repo.get_kpi(supplier.id)
        record = record_ppm_evaluation(repo, {
            "supplier_id": supplier.id, "material_document": "5000000001",
            "rejected_quantity": 20, "total_received_quantity": 25,
        })
        assert record.ppm_value == 800_000
        assert record.tier == "Needs Improvement"
        assert repo.get_kpi(supplier.id) == before
        assert len(repo.list_evaluations("ppm", supplier.id)) == 1

    def test_unknown_supplier(self, repo):
        with pytest.raises(SupplierNotFoundError):
            record_price_evaluation(repo, _price_row("nope"))

    def test_invalid_input_not_persisted(self, repo, supplier):
        with pytest.raises(ValidationError):
            record_price_evaluation(repo, _price_row(supplier.id, po_price=0))
        assert repo.list_evaluations("price") == []
        assert repo.get_kpi(supplier.id).evaluation_count == 0

    def test_evaluations_are_immutable(self, repo, supplier):
        record = record_price_evaluation(repo, _price_row(supplier.id))
        with pytest.raises(ValidationError):
            record.score = 1


class TestPolicies:
    def test_parametric_uses_active_configuration(self, repo, supplier):
        save_configuration(repo, PriceConfiguration())
        record = record_price_evaluation(
            repo, _price_row(supplier.id, po_price=100, invoice_price=101), policy="parametric",
        )
        assert record.score == 70
        assert record.policy == "parametric"

    def test_parametric_without_configuration_falls_back(self, repo, supplier):
        record = record_price_evaluation(
            repo, _price_row(supplier.id, po_price=100, invoice_price=101), policy="parametric",
        )
        assert record.score == 40
        assert record.policy == "fixed_table"

    def test_configuration_change_does_not_rewrite_history(self, repo, supplier):
        save_configuration(repo, PriceConfiguration())
        record_price_evaluation(
            repo, _price_row(supplier.id, po_price=100, invoice_price=101), policy="parametric",
        )
        kpi_before = repo.get_kpi(supplier.id)
        save_configuration(repo, PriceConfiguration(good_threshold=0, acceptable_threshold=0.5))
        assert repo.list_evaluations("price", supplier.id)[0].score == 70
        assert repo.get_kpi(supplier.id) == kpi_before


class TestRebuild:
    def test_rebuild_is_idempotent(self, repo):
        load_sample_suppliers(repo)
        for s in repo.list_suppliers():
            record_price_evaluation(repo, _price_row(s.id))
        before = {k.supplier_id: k.model_dump(exclude={"last_updated"}) for k in repo.list_kpis()}
        rebuilt = rebuild_all_kpis(repo)
        assert len(rebuilt) == 3
        for kpi in rebuilt:
            assert kpi.model_dump(exclude={"last_updated"}) == before[kpi.supplier_id]


class TestImport:
    def test_bad_rows_do_not_block_good_ones(self, repo, supplier):
        other = repo.create_supplier(name="XYZ Components Inc", code="SUP-002")
        rows = [
            {"category": "price", **_price_row(supplier.id, po_price=0)},
            {"category": "warranty", "supplier_id": supplier.id},
            {"category": "price", **_price_row(other.id)},
            {"category": "ppm", "supplier_id": supplier.id, "material_document": "MD",
             "rejected_quantity": 1, "total_received_quantity": 0},
            {"category": "quality", "supplier_id": "missing", "po_number": "PO",
             "item_number": "10", "quality_notifications": 0, "inspection_result": "OK"},
        ]
        report = import_evaluations(repo, rows)
        assert len(report.recorded) == 1
        assert [f.row for f in report.failures] == [0, 1, 3, 4]
        assert report.failures[1].category == "warranty"
        assert repo.get_kpi(other.id).price_score == 95
        assert repo.get_kpi(supplier.id).evaluation_count == 0

    def test_malformed_rows_reported(self, repo, supplier):
        ppm_row = {
            "category": "ppm", "supplier_id": supplier.id, "material_document": "MD",
            "rejected_quantity": 1, "total_received_quantity": 10,
        }
        rows = [42, "price", {"category": ["price"]}, {"category": None}, ppm_row]
        report = import_evaluations(repo, rows)
        assert len(report.recorded) == 1
        assert [f.row for f in report.failures] == [0, 1, 2, 3]
        assert all(f.category is None for f in report.failures)
        assert len(repo.list_evaluations("ppm", supplier.id)) == 1

    @pytest.mark.parametrize("payload", [{"category": "price"}, "price", 42, None])
    def test_payload_must_be_a_list(self, repo, payload):
        with pytest.raises(InvalidImportError):
            import_evaluations(repo, payload)
