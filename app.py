import altair as alt
import pandas as pd
import streamlit as st
from contextlib import contextmanager
from typing import Optional

from core.data import SourceError, load_dashboard_data, prepare_context
from core.filters import normalize_filters
from core.metrics_analytics import METRIC_COLUMNS, compute_analytics
from core.metrics_applications import compute_applications
from core.metrics_debug import compute_debug
from core.metrics_overview import compute_overview

alt.data_transformers.disable_max_rows()
# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;margin-bottom: 8px;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def show_chart(spec: Optional[dict], empty_msg: str = "Not enough data for this chart."):
    if spec:
        st.vega_lite_chart(spec, use_container_width=True)
    else:
        st.info(empty_msg)


# ---------- UI setup ----------
st.set_page_config(page_title="Applicant Analytics Dashboard", layout="wide")
inject_base_styles()
st.title("Applicant Analytics Dashboard")
st.caption("Reconciled applicant records: one row per applicant, best score per test.")

try:
    data_ctx = load_dashboard_data()
except SourceError as exc:
    st.error(f"Data unavailable: {exc}")
    st.stop()

applicants = data_ctx.get("applicants", pd.DataFrame())

# ----- Sidebar: navigation + filters -----
with st.sidebar:
    st.markdown("### Navigate")
    nav_choice = st.radio("Navigate", ["Overview", "Analytics", "Applications", "Data Quality"], index=0)

    st.markdown("---")
    st.markdown("### Filters")
    search = st.text_input("Search ID, country or program", "")
    country_options = sorted(c for c in applicants["Country"].dropna().astype(str).unique() if c.strip())
    program_options = sorted(p for p in applicants["Program"].dropna().astype(str).unique() if p.strip())
    countries = st.multiselect("Country", options=country_options, default=[])
    programs = st.multiselect("Program", options=program_options, default=[])
    gpa_range = st.slider("GPA range", min_value=0.0, max_value=4.0, value=(0.0, 4.0), step=0.1)
    with st.expander("Advanced settings", expanded=False):
        top_n = st.slider("Top N categories in charts", min_value=5, max_value=50, value=15, step=5)

filters = normalize_filters(
    {
        "search": search,
        "countries": countries,
        "programs": programs,
        "min_gpa": gpa_range[0] if gpa_range[0] > 0 else None,
        "max_gpa": gpa_range[1] if gpa_range[1] < 4.0 else None,
        "top_n": top_n,
    }
)
ctx = prepare_context(filters, data_ctx)

if nav_choice == "Overview":
    payload = compute_overview(filters, ctx)
    kpis = payload["kpis"]
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Applicants", kpis["total_applicants"])
    c2.metric("Average GPA", kpis["avg_gpa"])
    c3.metric("Average IELTS", kpis["avg_ielts"])
    c4.metric("Countries", kpis["total_countries"])

    left, right = st.columns(2)
    with left:
        with card("Country Distribution"):
            show_chart(payload["charts"].get("country_distribution"))
    with right:
        with card("Program Distribution"):
            show_chart(payload["charts"].get("program_distribution"))
    with card("GPA Distribution"):
        show_chart(payload["charts"].get("gpa_distribution"))

elif nav_choice == "Analytics":
    labels = {key: title for key, (_, title) in METRIC_COLUMNS.items()}
    c1, c2 = st.columns(2)
    x_metric = c1.selectbox("X axis", options=list(labels), index=0, format_func=labels.get)
    y_metric = c2.selectbox("Y axis", options=list(labels), index=list(labels).index("ielts"), format_func=labels.get)
    payload = compute_analytics(filters, ctx, x=x_metric, y=y_metric)

    with card(f"{labels[x_metric]} vs {labels[y_metric]}"):
        show_chart(payload["charts"].get("correlation"))
        reg = payload.get("regression")
        if reg:
            st.caption(f"Trend: y = {reg['intercept']:.3f} + {reg['slope']:.3f}·x  (n={reg['n']})")
    with card("Program Performance"):
        show_chart(payload["charts"].get("program_pareto"))
        perf = pd.DataFrame(payload["program_performance"])
        if not perf.empty:
            st.dataframe(perf, use_container_width=True, hide_index=True)
    with card("Score Distribution"):
        show_chart(payload["charts"].get("score_distribution"))

elif nav_choice == "Applications":
    payload = compute_applications(filters, ctx)
    table = pd.DataFrame(payload["rows"])
    st.caption(f"{payload['counts']['matched']} of {payload['counts']['total']} applicants")
    if table.empty:
        st.info("No applicants match the selected filters.")
    else:
        st.dataframe(table, use_container_width=True, hide_index=True)
        st.download_button(
            "Export CSV",
            data=table.to_csv(index=False).encode("utf-8"),
            file_name="applications.csv",
            mime="text/csv",
        )

else:
    payload = compute_debug(filters, ctx)
    st.subheader("Data Quality")
    st.write(f"Source: {payload['source']}")
    st.json(payload["row_counts"])
    st.json(payload["cleaning_checks"])
    if payload["applicants_without_scores"]:
        st.warning(f"{len(payload['applicants_without_scores'])} applicants have no GRE or IELTS score.")
