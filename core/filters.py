from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional


ALL_TOKENS = {"all", "all countries", "all programs"}


@dataclass(frozen=True)
class ApplicantFilters:
    search: str = ""
    countries: List[str] = field(default_factory=list)
    programs: List[str] = field(default_factory=list)
    min_gpa: Optional[float] = None
    max_gpa: Optional[float] = None
    top_n: int = 15


def _as_str_list(values: Optional[Iterable[object]]) -> List[str]:
    if not values:
        return []
    if isinstance(values, str):
        values = [values]
    out: List[str] = []
    for v in values:
        if v is None:
            continue
        s = str(v).strip()
        if s and s.lower() not in ALL_TOKENS:
            out.append(s)
    return out


def _as_float(value: object) -> Optional[float]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return float(value)
    except Exception:
        return None


def normalize_filters(raw: Optional[dict]) -> ApplicantFilters:
    raw = raw or {}
    search = str(raw.get("search") or "").strip()
    countries = _as_str_list(raw.get("countries"))
    programs = _as_str_list(raw.get("programs"))

    min_gpa = _as_float(raw.get("min_gpa"))
    max_gpa = _as_float(raw.get("max_gpa"))
    if min_gpa is not None and max_gpa is not None and min_gpa > max_gpa:
        min_gpa, max_gpa = max_gpa, min_gpa

    top_n = raw.get("top_n", 15)
    try:
        top_n = int(top_n)
    except Exception:
        top_n = 15
    top_n = max(1, min(200, top_n))

    return ApplicantFilters(
        search=search,
        countries=countries,
        programs=programs,
        min_gpa=min_gpa,
        max_gpa=max_gpa,
        top_n=top_n,
    )
