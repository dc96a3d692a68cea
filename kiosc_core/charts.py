from __future__ import annotations

from typing import Any, Dict

import altair as alt

alt.data_transformers.disable_max_rows()

STATUS_COLORS = {
    "On Track": "#16a34a",
    "Caution": "#f59e0b",
    "At Risk": "#dc2626",
}


def currency_axis(title: str = "") -> alt.Axis:
    return alt.Axis(title=title, format="$,.0f")


def status_color(field: str = "status") -> alt.Color:
    """Color encoding pinned to the budget status tiers."""
    return alt.Color(
        f"{field}:N",
        scale=alt.Scale(domain=list(STATUS_COLORS), range=list(STATUS_COLORS.values())),
        title="Status",
    )


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()
