from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

from fleet_core.chart_data import build_chart_data, chart_options
from fleet_core.charts import bar_chart, to_vega_spec
from fleet_core.filters import DashboardFilters
from fleet_core.sheets import get_label_field, get_value_field


def _numeric_values(dataset: Dict[str, Any]) -> List[float]:
    out: List[float] = []
    for point in dataset.get("data") or []:
        value = point.get("y") if isinstance(point, dict) else point
        if isinstance(value, (int, float)):
            out.append(float(value))
    return out


def compute_sheet_view(filters: DashboardFilters, ctx: Dict[str, Any], sheet_name: str) -> Dict[str, Any]:
    records = ctx.get("filtered", {}).get(sheet_name, [])
    chart_data = build_chart_data(
        records,
        get_value_field(sheet_name),
        get_label_field(sheet_name),
        sheet_name,
        filters.trip_count_filter,
    )
    options = chart_options(sheet_name)
    values = _numeric_values(chart_data["datasets"][0]) if chart_data["datasets"] else []
    total = sum(values)
    kpis = {
        "total": total,
        "max": max(values) if values else 0,
        "average": round(total / len(values), 1) if values else 0,
        "zones": len(chart_data["labels"]),
        "records": len(records),
    }
    charts: Dict[str, Any] = {}
    if chart_data["labels"]:
        charts["bar"] = to_vega_spec(bar_chart(chart_data, options))
    return {
        "filters": asdict(filters),
        "sheet": sheet_name,
        "title": options["title"],
        "kpis": kpis,
        "chart_data": chart_data,
        "options": options,
        "charts": charts,
    }
