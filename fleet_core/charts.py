from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def chart_data_frame(chart_data: Mapping[str, Any]) -> pd.DataFrame:
    """Flatten ``{labels, datasets}`` into one row per (label, series)."""
    rows: List[Dict[str, Any]] = []
    labels = list(chart_data.get("labels") or [])
    for dataset in chart_data.get("datasets") or []:
        for label, point in zip(labels, dataset.get("data") or []):
            if isinstance(point, Mapping):
                value, remarks = point.get("y"), point.get("remarks", "")
            else:
                value, remarks = point, ""
            rows.append(
                {
                    "label": label,
                    "series": dataset.get("label", ""),
                    "value": value,
                    "remarks": remarks,
                    "color": dataset.get("borderColor"),
                }
            )
    return pd.DataFrame(rows, columns=["label", "series", "value", "remarks", "color"])


def bar_chart(chart_data: Mapping[str, Any], options: Optional[Mapping[str, Any]] = None) -> alt.Chart:
    options = options or {}
    df = chart_data_frame(chart_data)
    labels = list(chart_data.get("labels") or [])
    y_scale = alt.Scale(domain=[0, options["y_max"]]) if options.get("y_max") else alt.Undefined
    series = df[["series", "color"]].drop_duplicates() if not df.empty else pd.DataFrame(columns=["series", "color"])
    colors = [c or "#3b82f6" for c in series["color"].tolist()]
    hover = alt.selection_point(fields=["series"], on="mouseover")
    return (
        alt.Chart(df, title=options.get("title", ""))
        .mark_bar(cornerRadiusTopLeft=4, cornerRadiusTopRight=4)
        .encode(
            x=alt.X("label:N", title=options.get("x_label", ""), sort=labels, axis=alt.Axis(labelAngle=0, grid=False)),
            xOffset=alt.XOffset("series:N"),
            y=alt.Y("value:Q", title=options.get("y_label", ""), scale=y_scale, axis=alt.Axis(gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color("series:N", title=None, scale=alt.Scale(domain=series["series"].tolist(), range=colors)),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.4)),
            tooltip=[
                alt.Tooltip("label:N", title=options.get("label_name", "Zone")),
                alt.Tooltip("series:N", title="Series"),
                alt.Tooltip("value:Q", title="Value"),
                alt.Tooltip("remarks:N", title="Note"),
            ],
        )
        .add_params(hover)
    )
