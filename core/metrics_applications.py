from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

import pandas as pd

from core.filters import ApplicantFilters


def _options(df: pd.DataFrame, col: str) -> List[str]:
    if df.empty or col not in df.columns:
        return []
    values = df[col].dropna().astype(str).str.strip()
    return sorted(v for v in values.unique().tolist() if v)


def compute_applications(filters: ApplicantFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    applicants: pd.DataFrame = ctx.get("applicants", pd.DataFrame())
    df: pd.DataFrame = ctx.get("filtered_applicants", pd.DataFrame()).copy()
    if not df.empty:
        df = df.sort_values("id", kind="mergesort").reset_index(drop=True)
    return {
        "filters": asdict(filters),
        "options": {"countries": _options(applicants, "Country"), "programs": _options(applicants, "Program")},
        "counts": {"matched": int(len(df)), "total": int(len(applicants))},
        "rows": df.to_dict(orient="records"),
    }
