from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Literal, Tuple

import altair as alt
import numpy as np
import pandas as pd

from core.charts import to_vega_spec
from core.filters import ApplicantFilters

Metric = Literal["gpa", "gre", "greVerbal", "greQuant", "ielts"]

METRIC_COLUMNS = {
    "gpa": ("GPA", "GPA"),
    "gre": ("GRE_Total", "GRE Total"),
    "greVerbal": ("GRE_Verbal", "GRE Verbal"),
    "greQuant": ("GRE_Quant", "GRE Quant"),
    "ielts": ("IELTS_Score", "IELTS"),
}

# Inclusive brackets; values between brackets (e.g. GPA 2.55) are not counted.
SCORE_RANGES = {
    "gpa": [("2.0-2.5", 2.0, 2.5), ("2.6-3.0", 2.6, 3.0), ("3.1-3.5", 3.1, 3.5), ("3.6-4.0", 3.6, 4.0)],
    "gre": [("280-300", 280, 300), ("301-320", 301, 320), ("321-340", 321, 340), ("341-360", 341, 360)],
    "ielts": [("5.0-6.0", 5.0, 6.0), ("6.1-7.0", 6.1, 7.0), ("7.1-8.0", 7.1, 8.0), ("8.1-9.0", 8.1, 9.0)],
}
RANGE_SOURCE = {"gpa": "GPA", "gre": "GRE_Total", "ielts": "IELTS_Score"}


def regression(xs: np.ndarray, ys: np.ndarray) -> Tuple[float, float]:
    """Least-squares slope and intercept; a flat line when x has no spread."""
    if len(xs) == 0:
        return 0.0, 0.0
    mean_x = float(xs.mean())
    mean_y = float(ys.mean())
    var_x = float(((xs - mean_x) ** 2).sum())
    cov = float(((xs - mean_x) * (ys - mean_y)).sum())
    slope = cov / var_x if var_x != 0 else 0.0
    return slope, mean_y - slope * mean_x


def program_performance(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if df.empty:
        return []
    base = df.assign(Program=df["Program"].astype(str).str.strip().replace("", "Unknown"))
    perf = (
        base.groupby("Program", sort=False)
        .agg(count=("id", "size"), avg_gpa=("GPA", "mean"))
        .reset_index()
        .rename(columns={"Program": "name"})
    )
    return [
        {"name": str(r["name"]), "count": int(r["count"]), "avg_gpa": float(r["avg_gpa"])}
        for r in perf.to_dict(orient="records")
    ]


def pareto(performance: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    ordered = sorted(performance, key=lambda d: d["count"], reverse=True)
    total = sum(d["count"] for d in ordered)
    out: List[Dict[str, Any]] = []
    cumulative = 0
    for d in ordered:
        cumulative += d["count"]
        out.append({"name": d["name"], "count": d["count"], "cumulative_pct": (cumulative / total) * 100 if total else 0.0})
    return out


def score_distribution(df: pd.DataFrame) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = [{"range": label} for label, _, _ in SCORE_RANGES["gpa"]]
    for key, brackets in SCORE_RANGES.items():
        values = pd.to_numeric(df.get(RANGE_SOURCE[key], pd.Series(dtype=float)), errors="coerce").fillna(0)
        values = values[values != 0]
        for i, (_, lo, hi) in enumerate(brackets):
            rows[i][key] = int(((values >= lo) & (values <= hi)).sum())
    return rows


def compute_analytics(
    filters: ApplicantFilters,
    ctx: Dict[str, Any],
    *,
    x: Metric = "gpa",
    y: Metric = "ielts",
) -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("filtered_applicants", pd.DataFrame()).copy()
    x_col, x_title = METRIC_COLUMNS[x]
    y_col, y_title = METRIC_COLUMNS[y]

    if df.empty:
        return {"filters": asdict(filters), "metric": {"x": x, "y": y}, "regression": None, "points": [], "program_performance": [], "pareto": [], "score_distribution": score_distribution(df), "charts": {}}

    points = pd.DataFrame(
        {
            "id": df["id"].astype(str),
            "x": pd.to_numeric(df[x_col], errors="coerce"),
            "y": pd.to_numeric(df[y_col], errors="coerce"),
            "country": df["Country"].astype(str).str.strip().replace("", "Unknown"),
            "program": df["Program"].astype(str).str.strip().replace("", "Unknown"),
        }
    ).dropna(subset=["x", "y"])
    slope, intercept = regression(points["x"].to_numpy(dtype=float), points["y"].to_numpy(dtype=float))
    points["predicted"] = intercept + slope * points["x"]

    performance = program_performance(df)
    pareto_rows = pareto(performance)
    distribution = score_distribution(df)

    charts: Dict[str, Any] = {}
    if not points.empty:
        scatter = (
            alt.Chart(points)
            .mark_circle(size=60, opacity=0.7)
            .encode(
                x=alt.X("x:Q", title=x_title, scale=alt.Scale(zero=False)),
                y=alt.Y("y:Q", title=y_title, scale=alt.Scale(zero=False)),
                color=alt.Color("program:N", title="Program"),
                tooltip=["id:N", "country:N", "program:N", alt.Tooltip("x:Q", title=x_title), alt.Tooltip("y:Q", title=y_title)],
            )
        )
        trend = alt.Chart(points).mark_line(color="orange").encode(x="x:Q", y="predicted:Q")
        charts["correlation"] = to_vega_spec(scatter + trend)

    if pareto_rows:
        p_df = pd.DataFrame(pareto_rows[: filters.top_n])
        base = alt.Chart(p_df).encode(x=alt.X("name:N", title="Program", sort=None, axis=alt.Axis(labelAngle=-35)))
        bars = base.mark_bar().encode(y=alt.Y("count:Q", title="Applicants"))
        line = base.mark_line(point=True, color="#ffc658").encode(
            y=alt.Y("cumulative_pct:Q", title="Cumulative %", scale=alt.Scale(domain=[0, 100]))
        )
        charts["program_pareto"] = to_vega_spec(alt.layer(bars, line).resolve_scale(y="independent"))

    long_df = pd.DataFrame(distribution).melt(id_vars="range", var_name="metric", value_name="count")
    charts["score_distribution"] = to_vega_spec(
        alt.Chart(long_df)
        .mark_line(point={"filled": True})
        .encode(
            x=alt.X("range:N", title="Range", sort=None),
            y=alt.Y("count:Q", title="Applicants"),
            color=alt.Color("metric:N", title="Metric"),
        )
    )

    return {
        "filters": asdict(filters),
        "metric": {"x": x, "y": y},
        "regression": {"slope": slope, "intercept": intercept, "n": int(len(points))},
        "points": points.to_dict(orient="records"),
        "program_performance": performance,
        "pareto": pareto_rows,
        "score_distribution": distribution,
        "charts": charts,
    }
