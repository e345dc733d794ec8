"""Streamlit UI for recording supplier evaluations and browsing KPIs."""

from __future__ import annotations

import json
import logging
import sys
from datetime import date
from pathlib import Path

import pandas as pd
import streamlit as st
from pydantic import ValidationError

sys.path.insert(0, str(Path(__file__).resolve().parent))

from src.scorecard.config import settings  # noqa: E402
from src.scorecard.configuration import (  # noqa: E402
    default_configuration,
    save_configuration,
    update_configuration,
)
from src.scorecard.engine import (  # noqa: E402
    import_evaluations,
    load_sample_suppliers,
    record_evaluation,
    score,
)
from src.scorecard.errors import ScorecardError  # noqa: E402
from src.scorecard.models import CATEGORIES  # noqa: E402
from src.scorecard.reporting import (  # noqa: E402
    dashboard_summary,
    export_suppliers,
    filter_suppliers,
    format_ppm,
    report_statistics,
    score_colour,
    supplier_rows,
)
from src.scorecard.repository import InMemoryRepository  # noqa: E402

logging.basicConfig(level=logging.INFO)

st.set_page_config(page_title="Supplier Scorecard", layout="wide")
st.title("Supplier Evaluation Scorecard")

POLICY_OPTIONS = ["fixed_table", "parametric"]
TIER_OPTIONS = {"All": None, "Top performers": "top_performer", "Needs improvement": "needs_improvement"}

_UPLOAD_HELP = """\
Upload a JSON array of evaluations.  Each row names its `category`:

```json
[
  {"category": "price", "supplier_id": "<id>", "po_number": "4500000001",
   "item_number": "10", "po_price": 2.55, "invoice_price": 1.27, "quantity": 100},
  {"category": "ppm", "supplier_id": "<id>", "material_document": "5000000001",
   "rejected_quantity": 20, "total_received_quantity": 25}
]
```

Rows are recorded independently; rejected rows are listed below.
"""

# Raw inputs shown side by side under both policies on the configuration tab.
PREVIEW_INPUTS = {
    "price": [{"po_price": 100, "invoice_price": p} for p in (80, 95, 98, 100, 103, 110, 125)],
    "quantity": [{"ordered_quantity": 100, "received_quantity": q} for q in (70, 90, 98, 100, 105, 120)],
    "delivery": [
        {"scheduled_date": date(2024, 1, 31), "actual_date": date(2024, 1, d)}
        for d in (1, 25, 31)
    ] + [
        {"scheduled_date": date(2024, 1, 1), "actual_date": date(2024, 1, d)}
        for d in (5, 15, 31)
    ],
    "quality": [
        {"quality_notifications": n, "inspection_result": r}
        for n in (0, 3, 12, 60) for r in ("OK", "NOT_OK")
    ],
    "ppm": [
        {"rejected_quantity": j, "total_received_quantity": 100_000}
        for j in (0, 50, 500, 2_000)
    ],
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _repo() -> InMemoryRepository:
    if "repo" not in st.session_state:
        repo = InMemoryRepository()
        if settings.seed_sample_suppliers:
            load_sample_suppliers(repo)
        st.session_state.repo = repo
    return st.session_state.repo


_CELL_COLOURS = {
    "green": "#c8e6c9",
    "blue": "#bbdefb",
    "yellow": "#fff9c4",
    "red": "#ffcdd2",
}


def _render_kpi_table(rows) -> None:
    if not rows:
        st.info("No suppliers match the current filter.")
        return
    df = pd.DataFrame([
        {
            "Code": s.code,
            "Supplier": s.name,
            "Price": k.price_score if k else 0.0,
            "Quantity": k.quantity_score if k else 0.0,
            "Delivery": k.delivery_score if k else 0.0,
            "Quality": k.quality_score if k else 0.0,
            "Overall KPI": k.overall_kpi if k else 0.0,
            "Evaluations": k.evaluation_count if k else 0,
        }
        for s, k in rows
    ])
    score_cols = ["Price", "Quantity", "Delivery", "Quality", "Overall KPI"]
    styled = df.style.map(
        lambda v: f"background-color: {_CELL_COLOURS[score_colour(v)]}", subset=score_cols,
    ).format("{:.1f}", subset=score_cols)
    st.dataframe(styled, use_container_width=True)


def _evaluation_form(category: str, supplier_id: str) -> dict | None:
    with st.form(f"record_{category}", clear_on_submit=False):
        fields: dict = {"supplier_id": supplier_id}
        if category == "ppm":
            fields["material_document"] = st.text_input("Material document *")
        else:
            col1, col2 = st.columns(2)
            fields["po_number"] = col1.text_input("PO number *")
            fields["item_number"] = col2.text_input("Item number *")

        if category == "price":
            col1, col2, col3 = st.columns(3)
            fields["po_price"] = col1.number_input("PO unit price", min_value=0.0, value=1.0)
            fields["invoice_price"] = col2.number_input("Invoice unit price", min_value=0.0, value=1.0)
            fields["quantity"] = col3.number_input("Quantity", min_value=1, value=1, step=1)
        elif category == "quantity":
            col1, col2 = st.columns(2)
            fields["ordered_quantity"] = col1.number_input("Ordered", min_value=0, value=1, step=1)
            fields["received_quantity"] = col2.number_input("Received", min_value=0, value=1, step=1)
        elif category == "delivery":
            fields["schedule_line_number"] = st.text_input("Schedule line *", value="1")
            col1, col2 = st.columns(2)
            fields["scheduled_date"] = col1.date_input("Scheduled date")
            fields["actual_date"] = col2.date_input("Actual date")
        elif category == "quality":
            col1, col2 = st.columns(2)
            fields["quality_notifications"] = col1.number_input(
                "Quality notifications", min_value=0, value=0, step=1,
            )
            fields["inspection_result"] = col2.radio("Inspection", ["OK", "NOT_OK"], horizontal=True)
        else:
            col1, col2 = st.columns(2)
            fields["rejected_quantity"] = col1.number_input("Rejected", min_value=0, value=0, step=1)
            fields["total_received_quantity"] = col2.number_input(
                "Total received", min_value=0, value=1, step=1,
            )

        if st.form_submit_button("Record evaluation", type="primary"):
            return fields
    return None


def _configuration_form(category: str) -> None:
    repo = _repo()
    active = repo.get_active_configuration(category)
    current = active or default_configuration(category)
    st.caption(
        f"Editing **{current.name}**" + ("" if active else " (not saved yet, defaults shown)")
    )

    editable = current.model_dump(exclude={"id", "created_at", "updated_at"})
    with st.form(f"config_{category}"):
        values = {}
        for name, value in editable.items():
            label = name.replace("_", " ").capitalize()
            if isinstance(value, bool):
                values[name] = st.checkbox(label, value=value)
            elif isinstance(value, int):
                values[name] = st.number_input(label, value=value, step=1)
            elif isinstance(value, float):
                values[name] = st.number_input(label, value=value)
            else:
                values[name] = st.text_input(label, value=value)
        submitted = st.form_submit_button("Save configuration")

    if submitted:
        try:
            if active:
                update_configuration(repo, category, active.id, **values)
            else:
                save_configuration(repo, default_configuration(category, **values))
            st.success("Configuration saved.")
        except ValidationError as e:
            st.error(f"Invalid configuration: {e}")

    config = repo.get_active_configuration(category) or current
    preview = []
    for raw in PREVIEW_INPUTS[category]:
        fixed = score(category, raw)
        param = score(category, raw, config)
        row = {k: str(v) for k, v in raw.items()}
        if category == "ppm":
            row.update({"PPM": format_ppm(fixed.ppm_value), "Fixed": fixed.tier, "Configured": param.tier})
        else:
            row.update({"Fixed": fixed.score, "Configured": param.score})
        preview.append(row)
    st.markdown("**Score preview** — fixed table vs. this configuration")
    st.dataframe(pd.DataFrame(preview), use_container_width=True)


# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------

with st.sidebar:
    st.header("Settings")
    st.session_state["policy"] = st.radio(
        "Scoring policy",
        POLICY_OPTIONS,
        index=POLICY_OPTIONS.index(settings.scoring_policy),
        help="Parametric scoring uses each category's active configuration.",
    )
    st.markdown("---")
    if st.button("Reset session data"):
        st.session_state.pop("repo", None)
        st.rerun()


# ---------------------------------------------------------------------------
# Main tabs
# ---------------------------------------------------------------------------

tab_dash, tab_record, tab_config, tab_import = st.tabs([
    "Dashboard", "Record Evaluation", "Configurations", "Import JSON",
])
repo = _repo()
suppliers = repo.list_suppliers()

# --- Tab 1: Dashboard ---
with tab_dash:
    summary = dashboard_summary(repo)
    stats = report_statistics(repo)
    cols = st.columns(6)
    cols[0].metric("Suppliers", summary["total_suppliers"])
    for col, key in zip(cols[1:], ("price", "quantity", "delivery", "quality", "overall")):
        col.metric(key.capitalize(), f"{summary['average_scores'][key]:.1f}")
    st.caption(
        f"{stats['top_performers']} top performers · "
        f"{stats['needs_improvement']} need improvement"
    )

    fcol1, fcol2 = st.columns([1, 2])
    tier_label = fcol1.selectbox("Filter", list(TIER_OPTIONS))
    search = fcol2.text_input("Search by name or code")
    _render_kpi_table(filter_suppliers(supplier_rows(repo), TIER_OPTIONS[tier_label], search))

    st.download_button(
        "Export suppliers (JSON)",
        data=json.dumps(export_suppliers(repo), indent=2),
        file_name="supplier-evaluation-report.json",
        mime="application/json",
    )

# --- Tab 2: Record Evaluation ---
with tab_record:
    if not suppliers:
        st.warning("No suppliers loaded.")
    else:
        labels = {f"{s.code} — {s.name}": s.id for s in suppliers}
        supplier_label = st.selectbox("Supplier", list(labels))
        category = st.selectbox("Category", CATEGORIES)
        fields = _evaluation_form(category, labels[supplier_label])
        if fields is not None:
            try:
                record = record_evaluation(repo, category, fields, st.session_state["policy"])
                st.success(f"Recorded {category} evaluation {record.id}")
                st.json(record.model_dump(mode="json"))
            except (ValidationError, ScorecardError) as e:
                st.error(f"Evaluation rejected: {e}")

        with st.expander("Evaluation history"):
            history = repo.list_evaluations(category, labels[supplier_label])
            if history:
                st.dataframe(
                    pd.DataFrame([e.model_dump(mode="json") for e in history]),
                    use_container_width=True,
                )
            else:
                st.caption("No evaluations yet.")

# --- Tab 3: Configurations ---
with tab_config:
    config_category = st.selectbox("Configuration category", CATEGORIES, key="config_category")
    _configuration_form(config_category)

# --- Tab 4: Import JSON ---
with tab_import:
    st.markdown(_UPLOAD_HELP)
    if suppliers:
        st.caption("Supplier ids: " + ", ".join(f"`{s.code}` = `{s.id}`" for s in suppliers))
    uploaded = st.file_uploader("Upload JSON", type=["json"])
    if uploaded and st.button("Import", type="primary"):
        try:
            rows = json.loads(uploaded.read())
        except json.JSONDecodeError as e:
            st.error(f"Error loading JSON: {e}")
        else:
            try:
                report = import_evaluations(repo, rows, st.session_state["policy"])
            except ScorecardError as e:
                st.error(str(e))
                st.stop()
            st.success(f"Recorded {len(report.recorded)} evaluations")
            if report.failures:
                st.dataframe(
                    pd.DataFrame([f.model_dump() for f in report.failures]),
                    use_container_width=True,
                )
