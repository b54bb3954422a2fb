from __future__ import annotations

import logging
import os
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import pandas as pd

from core.filters import ApplicantFilters, normalize_filters
from core.models import RAW_COLUMNS
from core.reconcile import records_to_frame, run_reconciliation


logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1]
SOURCE_FILE = "MSapplications.xlsx"
SOURCE_ENV = "APPLICANTS_SOURCE"
SNAPSHOT_PATH = DATA_DIR / "public" / "applicants.json"

HEADER_KEYWORDS = ["Application ID", "ApplicationID", "App ID"]

COUNTRY_NAME_MAP = {
    "USA": "United States",
    "US": "United States",
    "United States of America": "United States",
    "UK": "United Kingdom",
    "Great Britain": "United Kingdom",
    "England": "United Kingdom",
}

PathLike = Union[str, Path]


class SourceError(Exception):
    """The applicant table could not be turned into rows at all."""


class SourceUnavailableError(SourceError):
    pass


class EmptySourceError(SourceError):
    pass


def resolve_source(path: Optional[PathLike] = None) -> Path:
    if path:
        return Path(path)
    env = os.environ.get(SOURCE_ENV, "").strip()
    if env:
        return Path(env)
    return DATA_DIR / SOURCE_FILE


def find_header_row(df: pd.DataFrame, keywords: Iterable[str], search_rows: int = 25) -> Optional[int]:
    lowered = [k.lower() for k in keywords]
    for idx in range(min(search_rows, len(df))):
        row = df.iloc[idx].astype(str).str.lower().tolist()
        if any(k in " ".join(row) for k in lowered):
            return idx
    return None


def drop_duplicate_columns(df: pd.DataFrame) -> pd.DataFrame:
    return df.loc[:, ~df.columns.duplicated()]


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    df = df.rename(columns=lambda c: str(c).strip())
    df = df.rename(columns=RAW_COLUMNS)
    df = drop_duplicate_columns(df)
    return df.dropna(how="all")


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def normalize_country(value: object) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    s = str(value).strip()
    if not s:
        return None
    return COUNTRY_NAME_MAP.get(s, s)


# ---------------- Loaders ----------------
def _read_workbook(path: Path) -> pd.DataFrame:
    try:
        book = pd.ExcelFile(path)
    except Exception as exc:
        raise SourceUnavailableError(f"Could not open workbook {path}: {exc}") from exc
    with book:
        sheet_names = list(book.sheet_names)
        logger.info("Available sheets: %s", sheet_names)
        if not sheet_names:
            raise EmptySourceError(f"No sheets in workbook {path}")
        first = sheet_names[0]
        raw = book.parse(first, header=None)
        if raw.empty:
            raise EmptySourceError(f"Sheet {first!r} in {path} has no rows")
        header_row = find_header_row(raw, HEADER_KEYWORDS, search_rows=10) or 0
        return book.parse(first, header=header_row, keep_default_na=False, na_values=[""])


def _read_csv(path: Path) -> pd.DataFrame:
    try:
        # Cells stay text; parse_number does the typing so ids like "0123" survive.
        return pd.read_csv(path, dtype=str, keep_default_na=False, na_values=[""])
    except pd.errors.EmptyDataError as exc:
        raise EmptySourceError(f"No rows in {path}") from exc
    except Exception as exc:
        raise SourceUnavailableError(f"Could not read {path}: {exc}") from exc


def read_source_frame(path: Optional[PathLike] = None) -> pd.DataFrame:
    source = resolve_source(path)
    logger.info("Looking for applicant table at: %s", source)
    if not source.is_file():
        raise SourceUnavailableError(f"Applicant table not found at {source}")

    if source.suffix.lower() == ".csv":
        df = _read_csv(source)
    else:
        df = _read_workbook(source)

    df = normalize_columns(df)
    if df.empty:
        raise EmptySourceError(f"No applicant rows in {source}")
    logger.info("Total rows from %s: %d", source.name, len(df))
    return df


def load_raw_rows(path: Optional[PathLike] = None) -> List[Dict[str, Any]]:
    return read_source_frame(path).to_dict(orient="records")


@lru_cache(maxsize=4)
def _load_dashboard_data_cached(source: str, mtime: float) -> Dict[str, object]:
    rows = load_raw_rows(source)
    result = run_reconciliation(rows)
    return {
        "source": Path(source).name,
        "raw_row_count": len(rows),
        "records": tuple(result.records),
        "applicants": records_to_frame(result.records),
        "quality": result.quality,
    }


def load_dashboard_data(path: Optional[PathLike] = None) -> Dict[str, object]:
    source = resolve_source(path)
    if not source.is_file():
        raise SourceUnavailableError(f"Applicant table not found at {source}")
    return _load_dashboard_data_cached(str(source), source.stat().st_mtime)


def apply_filters(df: pd.DataFrame, filt: ApplicantFilters) -> pd.DataFrame:
    if df.empty:
        return df
    out = df
    if filt.search:
        q = filt.search.lower()
        mask = pd.Series(False, index=out.index)
        for col in ["id", "Country", "Program"]:
            mask |= out[col].astype(str).str.lower().str.contains(q, na=False, regex=False)
        out = out[mask]
    if filt.countries:
        out = out[out["Country"].isin(filt.countries)]
    if filt.programs:
        out = out[out["Program"].isin(filt.programs)]
    if filt.min_gpa is not None:
        out = out[out["GPA"] >= filt.min_gpa]
    if filt.max_gpa is not None:
        out = out[out["GPA"] <= filt.max_gpa]
    return out


def prepare_context(filters: dict | ApplicantFilters | None, data_ctx: Dict[str, object]) -> Dict[str, object]:
    applicants: pd.DataFrame = data_ctx.get("applicants", pd.DataFrame()).copy()
    filt = filters if isinstance(filters, ApplicantFilters) else normalize_filters(filters)
    filtered = apply_filters(applicants, filt)
    return {
        "filters": filt,
        "source": data_ctx.get("source"),
        "raw_row_count": data_ctx.get("raw_row_count", 0),
        "quality": data_ctx.get("quality"),
        "applicants": applicants,
        "filtered_applicants": filtered.reset_index(drop=True),
    }
