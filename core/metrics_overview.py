from __future__ import annotations

import math
from dataclasses import asdict
from typing import Any, Dict, List

import pandas as pd

from core.charts import count_bar, to_vega_spec
from core.data import normalize_country, round_half_up
from core.filters import ApplicantFilters


def _positive_mean(series: pd.Series) -> float:
    valid = pd.to_numeric(series, errors="coerce")
    valid = valid[valid > 0]
    if valid.empty:
        return 0.0
    return float(valid.mean())


def compute_kpis(df: pd.DataFrame) -> Dict[str, Any]:
    if df.empty:
        return {"total_applicants": 0, "avg_gpa": 0.0, "avg_gre": 0.0, "avg_ielts": 0.0, "total_countries": 0}
    countries = df["Country"].map(normalize_country).dropna()
    return {
        "total_applicants": int(len(df)),
        "avg_gpa": round_half_up(float(df["GPA"].mean()), 2),
        "avg_gre": round_half_up(_positive_mean(df["GRE_Total"]), 1),
        "avg_ielts": round_half_up(_positive_mean(df["IELTS_Score"]), 1),
        "total_countries": int(countries.nunique()),
    }


def country_distribution(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Applicant counts per normalized country name, largest first.

    Feeds both the choropleth and the top-10 country list.
    """
    if df.empty:
        return []
    names = df["Country"].map(normalize_country).dropna()
    counts = names.value_counts(sort=False).rename_axis("name").reset_index(name="count")
    counts = counts.sort_values(["count", "name"], ascending=[False, True], kind="mergesort")
    return [{"name": str(r["name"]), "count": int(r["count"])} for r in counts.to_dict(orient="records")]


def program_distribution(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if df.empty:
        return []
    programs = df["Program"].astype(str).str.strip()
    programs = programs[programs != ""]
    counts = programs.value_counts(sort=False).rename_axis("name").reset_index(name="value")
    counts = counts.sort_values(["value", "name"], ascending=[False, True], kind="mergesort")
    return [{"name": str(r["name"]), "value": int(r["value"])} for r in counts.to_dict(orient="records")]


def gpa_distribution(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if df.empty:
        return []
    buckets = df["GPA"].astype(float).map(lambda g: math.floor(g * 4) / 4)
    counts = buckets.value_counts().sort_index()
    return [{"gpa": f"{float(b):.2f}", "count": int(c)} for b, c in counts.items()]


def compute_overview(filters: ApplicantFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("filtered_applicants", pd.DataFrame()).copy()
    countries = country_distribution(df)
    programs = program_distribution(df)
    gpa_bins = gpa_distribution(df)

    charts: Dict[str, Any] = {}
    if countries:
        top = pd.DataFrame(countries[: filters.top_n])
        charts["country_distribution"] = to_vega_spec(count_bar(top, "name", title="Country"))
    if programs:
        prog_df = pd.DataFrame(programs[: filters.top_n])
        charts["program_distribution"] = to_vega_spec(count_bar(prog_df, "name", "value", title="Program"))
    if gpa_bins:
        charts["gpa_distribution"] = to_vega_spec(count_bar(pd.DataFrame(gpa_bins), "gpa", title="GPA", sort="x"))

    return {
        "filters": asdict(filters),
        "kpis": compute_kpis(df),
        "countries": countries,
        "top_countries": countries[:10],
        "programs": programs,
        "gpa_distribution": gpa_bins,
        "charts": charts,
    }
