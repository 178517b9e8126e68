from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

import pandas as pd

from fleet_core.data import DatasetStore
from fleet_core.filters import DashboardFilters


def compute_debug(filters: DashboardFilters, ctx: Dict[str, Any], store: Optional[DatasetStore] = None) -> Dict[str, Any]:
    dataset = ctx.get("dataset", {})
    filtered = ctx.get("filtered", {})
    results = store.results if store is not None else {}
    payload: Dict[str, Any] = {
        "filters": asdict(filters),
        "refreshed_at": store.refreshed_at.isoformat() if store is not None and store.refreshed_at else None,
        "row_counts": {name: len(records) for name, records in dataset.items()},
        "filtered_counts": {name: len(records) for name, records in filtered.items()},
        "sheets": {},
        "errors": store.errors if store is not None else {},
        "date_coverage": [],
    }
    for name, result in results.items():
        payload["sheets"][name] = {
            "raw_rows": result.raw_rows,
            "records": len(result.records),
            "shape": result.shape.value if result.shape is not None else None,
            "skipped": dict(result.skipped),
            "error": result.error,
        }

    coverage_rows = [
        {"sheet": name, "Date": row.get("Date", "")}
        for name, records in dataset.items()
        for row in records
        if row.get("Date")
    ]
    if coverage_rows:
        frame = pd.DataFrame(coverage_rows)
        coverage = (
            frame.groupby("sheet")["Date"]
            .agg(["min", "max", "nunique"])
            .reset_index()
            .rename(columns={"min": "first_date", "max": "last_date", "nunique": "dates_present"})
        )
        payload["date_coverage"] = coverage.to_dict(orient="records")
    return payload
