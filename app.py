import sys
from pathlib import Path

import streamlit as st

# Add current directory to path
sys.path.append(str(Path(__file__).parent))

from aggregations import (
    available_years,
    category_comparison,
    export_csv,
    intensity_heatmap,
    pace_of_spending,
    records_frame,
    seasonality,
    transaction_distribution,
)
from dashboard import category_chart, distribution_chart, heatmap_styler, pace_chart, seasonality_chart
from logging_setup import configure_logging
from models import CANONICAL_FIELDS, FieldMapping, ParseError, PurgeNotConfirmed, StorageError
from process_transactions import build_batch, parse_csv, suggest_mapping
from storage import TransactionStore

# --- Configuration ---
st.set_page_config(page_title="YoY Finance", layout="wide", page_icon="📈")
configure_logging()
LIST_LIMIT = 1000

# --- Store (loaded once per session, before any view is computed) ---
if "store" not in st.session_state:
    store = TransactionStore()
    store.load()
    st.session_state.store = store

if "importing" not in st.session_state:
    st.session_state["importing"] = None

# Messages that must survive the st.rerun() after an action
if "flash" not in st.session_state:
    st.session_state["flash"] = []


def get_store() -> TransactionStore:
    return st.session_state.store


def flash(level: str, message: str):
    st.session_state["flash"].append((level, message))


def finish_import(mapping: FieldMapping):
    parsed = st.session_state["importing"]
    batch = build_batch(parsed, mapping)
    try:
        count = get_store().append(batch)
    except StorageError as e:
        flash("error", f"Could not save imported transactions: {e}")
        return
    st.session_state["importing"] = None
    if count:
        flash("success", f"Imported {count} transactions.")
    else:
        flash("warning", "No valid transactions found.")


def cancel_import():
    st.session_state["importing"] = None


# Sidebar
with st.sidebar:
    st.header("📥 Import")
    uploaded_file = st.file_uploader(
        "Upload a statement CSV",
        type=["csv", "txt"],
        help="Any delimited export with a header row. You'll map the columns next.",
        key="csv_upload",
    )

    if uploaded_file is not None and st.session_state.get("parsed_upload_id") != uploaded_file.file_id:
        st.session_state["parsed_upload_id"] = uploaded_file.file_id
        try:
            st.session_state["importing"] = parse_csv(uploaded_file.getvalue())
        except ParseError as e:
            st.session_state["importing"] = None
            st.error(f"Could not read {uploaded_file.name}: {e}")

    parsed = st.session_state["importing"]
    if parsed is not None:
        st.subheader("Column Mapping")
        st.caption(f"{len(parsed.rows)} rows detected.")
        suggested = suggest_mapping(parsed.fields)
        with st.form("column_mapping"):
            choices = {
                field: st.selectbox(
                    field.title(),
                    parsed.fields,
                    index=parsed.fields.index(getattr(suggested, field)),
                )
                for field in CANONICAL_FIELDS
            }
            col1, col2 = st.columns(2)
            confirmed = col1.form_submit_button("Import", type="primary", use_container_width=True)
            cancelled = col2.form_submit_button("Cancel", use_container_width=True)

        if confirmed:
            finish_import(FieldMapping(**choices))
            st.rerun()
        elif cancelled:
            cancel_import()
            st.rerun()

for level, message in st.session_state["flash"]:
    getattr(st, level)(message)
st.session_state["flash"] = []

store = get_store()
records = store.records
years = available_years(records)

tab1, tab2 = st.tabs(["📊 Dashboard", "📋 Data List"])

with tab1:
    if not records:
        st.info("No data found. Please import a CSV statement.")
    else:
        col1, col2 = st.columns(2)
        with col1:
            st.plotly_chart(seasonality_chart(seasonality(records, years)), use_container_width=True)
        with col2:
            st.plotly_chart(pace_chart(pace_of_spending(records, years)), use_container_width=True)

        st.plotly_chart(category_chart(category_comparison(records, years)), use_container_width=True)

        col3, col4 = st.columns([2, 1])
        with col3:
            st.subheader("At-A-Glance Intensity")
            st.dataframe(heatmap_styler(intensity_heatmap(records, years)), use_container_width=True)
        with col4:
            st.plotly_chart(distribution_chart(transaction_distribution(records, years)), use_container_width=True)

with tab2:
    st.subheader(f"{len(records)} Records")
    if records:
        st.dataframe(records_frame(records, limit=LIST_LIMIT), hide_index=True, use_container_width=True)
        if len(records) > LIST_LIMIT:
            st.caption(f"Showing the first {LIST_LIMIT} records.")
        st.download_button(
            "⬇️ Export CSV",
            data=export_csv(records),
            file_name="transactions.csv",
            mime="text/csv",
        )
    else:
        st.info("No transactions.")

    st.divider()
    with st.form("purge"):
        st.markdown("**Purge data**: removes every stored transaction. This cannot be undone.")
        sure = st.checkbox("Yes, delete all transactions")
        if st.form_submit_button("🗑️ Purge"):
            try:
                store.clear(confirmed=sure)
            except PurgeNotConfirmed:
                st.warning("Tick the confirmation box to purge.")
            except StorageError as e:
                st.error(f"Purge failed: {e}")
            else:
                flash("success", "All transactions removed.")
                st.rerun()
