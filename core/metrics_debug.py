from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from core.filters import ApplicantFilters
from core.reconcile import DataQuality


def compute_debug(filters: ApplicantFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    applicants: pd.DataFrame = ctx.get("applicants", pd.DataFrame()).copy()
    quality: DataQuality = ctx.get("quality") or DataQuality()
    payload = {
        "filters": asdict(filters),
        "source": ctx.get("source"),
        "row_counts": {
            "raw_rows": int(ctx.get("raw_row_count", 0) or 0),
            "applicants": int(len(applicants)),
            "filtered_applicants": int(len(ctx.get("filtered_applicants", pd.DataFrame()))),
        },
        "cleaning_checks": quality.to_dict(),
        "applicants_without_scores": [],
        "blank_fields": {},
    }

    if not applicants.empty:
        no_scores = applicants[(applicants["GRE_Total"] <= 0) & (applicants["IELTS_Score"] <= 0)]
        payload["applicants_without_scores"] = no_scores["id"].astype(str).tolist()
        payload["blank_fields"] = {
            "country": int((applicants["Country"].astype(str).str.strip() == "").sum()),
            "program": int((applicants["Program"].astype(str).str.strip() == "").sum()),
        }
    return payload
