from __future__ import annotations

import json
import logging
import math
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from fleet_api.schemas import FilterStateModel, MetaListResponse, MetaSheetsResponse, RefreshResponse, SheetMeta
from fleet_core.data import DatasetStore, prepare_context
from fleet_core.filters import DashboardFilters, normalize_filters
from fleet_core.logging_setup import configure_logging
from fleet_core.metrics_debug import compute_debug
from fleet_core.metrics_sheets import compute_sheet_view
from fleet_core.metrics_zones import compute_zone_analysis
from fleet_core.sheets import CHART_TITLES

logger = logging.getLogger(__name__)


def _filters_from_model(model: FilterStateModel) -> DashboardFilters:
    return normalize_filters(model.model_dump(by_alias=True))


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        ),
    )


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _unknown_sheet(store: DatasetStore, sheet_name: str) -> Optional[JSONResponse]:
    if sheet_name in store.sheet_names:
        return None
    return JSONResponse(status_code=404, content={"error": f"Unknown sheet '{sheet_name}'.", "type": "UnknownSheetError"})


def _export_frame(records: List[Dict[str, Any]]) -> pd.DataFrame:
    def _cell(value: Any) -> Any:
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return value

    return pd.DataFrame([{key: _cell(value) for key, value in row.items()} for row in records])


def create_app(store: Optional[DatasetStore] = None) -> FastAPI:
    app = FastAPI(title="Fleet Dashboard API", version="0.1.0")
    app.state.store = store or DatasetStore()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    async def _context(request: Request, filters: DashboardFilters) -> Dict[str, Any]:
        store: DatasetStore = request.app.state.store
        dataset = await store.ensure_fresh()
        return prepare_context(filters, dataset)

    @app.get("/meta/sheets")
    def meta_sheets(request: Request):
        store: DatasetStore = request.app.state.store
        sheets = [SheetMeta(name=name, title=CHART_TITLES.get(name, name)) for name in store.sheet_names]
        return _json(MetaSheetsResponse(sheets=sheets))

    @app.get("/meta/zones")
    async def meta_zones(request: Request):
        try:
            ctx = await _context(request, DashboardFilters())
            return _json(MetaListResponse(values=ctx["zones"]))
        except Exception as exc:
            logger.exception("meta_zones failed")
            return _error(exc)

    @app.get("/meta/dates")
    async def meta_dates(request: Request):
        try:
            ctx = await _context(request, DashboardFilters())
            return _json(MetaListResponse(values=ctx["dates"]))
        except Exception as exc:
            logger.exception("meta_dates failed")
            return _error(exc)

    @app.post("/refresh")
    async def refresh(request: Request):
        store: DatasetStore = request.app.state.store
        try:
            dataset = await store.refresh()
        except Exception as exc:
            logger.exception("refresh failed")
            return _error(exc)
        body = RefreshResponse(
            refreshed_at=store.refreshed_at.isoformat() if store.refreshed_at else None,
            row_counts={name: len(records) for name, records in dataset.items()},
            errors=store.errors,
        )
        return _json(body, status_code=503 if store.all_failed else 200)

    @app.post("/sheets/{sheet_name}")
    async def sheet_view(sheet_name: str, filters: FilterStateModel, request: Request):
        missing = _unknown_sheet(request.app.state.store, sheet_name)
        if missing is not None:
            return missing
        try:
            f = _filters_from_model(filters)
            ctx = await _context(request, f)
            return _json(compute_sheet_view(f, ctx, sheet_name))
        except Exception as exc:
            logger.exception("sheet_view failed for %s", sheet_name)
            return _error(exc)

    @app.post("/zones/analysis")
    async def zone_analysis(filters: FilterStateModel, request: Request):
        try:
            f = _filters_from_model(filters)
            ctx = await _context(request, f)
            return _json(compute_zone_analysis(f, ctx))
        except Exception as exc:
            logger.exception("zone_analysis failed")
            return _error(exc)

    @app.post("/debug")
    async def debug(filters: FilterStateModel, request: Request):
        try:
            f = _filters_from_model(filters)
            ctx = await _context(request, f)
            return _json(compute_debug(f, ctx, request.app.state.store))
        except Exception as exc:
            logger.exception("debug failed")
            return _error(exc)

    @app.post("/export/{sheet_name}")
    async def export_sheet(sheet_name: str, filters: FilterStateModel, request: Request):
        missing = _unknown_sheet(request.app.state.store, sheet_name)
        if missing is not None:
            return missing
        f = _filters_from_model(filters)
        ctx = await _context(request, f)
        export_df = _export_frame(ctx["filtered"].get(sheet_name, []))
        csv_bytes = export_df.to_csv(index=False).encode("utf-8")
        return Response(
            content=csv_bytes,
            media_type="text/csv",
            headers={"Content-Disposition": f"attachment; filename={sheet_name}.csv"},
        )

    return app


configure_logging()
app = create_app()
