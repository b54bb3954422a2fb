from __future__ import annotations

import logging
import math
from typing import List, Literal

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.responses import Response
from fastapi.encoders import jsonable_encoder

from api.schemas import ApplicantFiltersModel, ApplicantModel, ErrorResponse
from core.data import SourceError, SourceUnavailableError, load_dashboard_data, prepare_context
from core.filters import ApplicantFilters, normalize_filters
from core.metrics_analytics import compute_analytics
from core.metrics_applications import compute_applications
from core.metrics_debug import compute_debug
from core.metrics_overview import compute_overview


app = FastAPI(title="Applicant Analytics API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

MetricParam = Literal["gpa", "gre", "greVerbal", "greQuant", "ielts"]
ERROR_RESPONSES = {404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
EXPORT_PAGES = {"applications", "applicants"}


def _filters_from_model(model: ApplicantFiltersModel) -> ApplicantFilters:
    return normalize_filters(model.model_dump())


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        )
    )


def _error(exc: Exception) -> JSONResponse:
    status = 404 if isinstance(exc, SourceUnavailableError) else 500
    return JSONResponse(status_code=status, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/applicants", response_model=List[ApplicantModel], responses=ERROR_RESPONSES)
def applicants():
    try:
        data_ctx = load_dashboard_data()
        return [r.to_dict() for r in data_ctx.get("records", ())]
    except SourceError as exc:
        logger.error("applicants unavailable: %s", exc)
        return _error(exc)
    except Exception as exc:
        logger.exception("applicants failed")
        return _error(exc)


@app.post("/overview", responses=ERROR_RESPONSES)
def overview(filters: ApplicantFiltersModel):
    try:
        data_ctx = load_dashboard_data()
        f = _filters_from_model(filters)
        ctx = prepare_context(f, data_ctx)
        return _json(compute_overview(f, ctx))
    except SourceError as exc:
        logger.error("overview unavailable: %s", exc)
        return _error(exc)
    except Exception as exc:
        logger.exception("overview failed")
        return _error(exc)


@app.post("/analytics", responses=ERROR_RESPONSES)
def analytics(
    filters: ApplicantFiltersModel,
    x: MetricParam = Query(default="gpa"),
    y: MetricParam = Query(default="ielts"),
):
    try:
        data_ctx = load_dashboard_data()
        f = _filters_from_model(filters)
        ctx = prepare_context(f, data_ctx)
        return _json(compute_analytics(f, ctx, x=x, y=y))
    except SourceError as exc:
        logger.error("analytics unavailable: %s", exc)
        return _error(exc)
    except Exception as exc:
        logger.exception("analytics failed")
        return _error(exc)


@app.post("/applications", responses=ERROR_RESPONSES)
def applications(filters: ApplicantFiltersModel):
    try:
        data_ctx = load_dashboard_data()
        f = _filters_from_model(filters)
        ctx = prepare_context(f, data_ctx)
        return _json(compute_applications(f, ctx))
    except SourceError as exc:
        logger.error("applications unavailable: %s", exc)
        return _error(exc)
    except Exception as exc:
        logger.exception("applications failed")
        return _error(exc)


@app.post("/debug", responses=ERROR_RESPONSES)
def debug(filters: ApplicantFiltersModel):
    try:
        data_ctx = load_dashboard_data()
        f = _filters_from_model(filters)
        ctx = prepare_context(f, data_ctx)
        return _json(compute_debug(f, ctx))
    except SourceError as exc:
        logger.error("debug unavailable: %s", exc)
        return _error(exc)
    except Exception as exc:
        logger.exception("debug failed")
        return _error(exc)


@app.post("/export/{page}", responses=ERROR_RESPONSES)
def export_page(page: str, filters: ApplicantFiltersModel):
    if page not in EXPORT_PAGES:
        return JSONResponse(status_code=404, content={"error": f"Unknown export page {page!r}", "type": "UnknownPage"})
    try:
        data_ctx = load_dashboard_data()
    except SourceError as exc:
        return _error(exc)
    f = _filters_from_model(filters)
    ctx = prepare_context(f, data_ctx)

    export_df = ctx.get("filtered_applicants")
    if export_df is None or not hasattr(export_df, "to_csv"):
        export_df = pd.DataFrame()
    filename = "applications.csv"
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})
