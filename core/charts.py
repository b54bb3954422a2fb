from __future__ import annotations

from typing import Any, Dict, Optional

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def count_bar(df: pd.DataFrame, category: str, value: str = "count", *, title: Optional[str] = None, sort: Any = "-y") -> alt.Chart:
    hover = alt.selection_point(fields=[category], on="mouseover", empty="all")
    return (
        alt.Chart(df)
        .mark_bar(cornerRadiusTopLeft=3, cornerRadiusTopRight=3)
        .encode(
            x=alt.X(f"{category}:N", title=title or category, sort=sort, axis=alt.Axis(labelAngle=-35)),
            y=alt.Y(f"{value}:Q", title=value.replace("_", " ").title(), axis=alt.Axis(gridDash=[4, 4], domain=False, ticks=False)),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.6)),
            tooltip=[alt.Tooltip(f"{category}:N", title=title or category), alt.Tooltip(f"{value}:Q", title="Count")],
        )
        .add_params(hover)
    )
