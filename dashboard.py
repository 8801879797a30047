# dashboard.py: year-over-year charts built from the aggregation views

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
from pandas.io.formats.style import Styler

from aggregations import Heatmap

YEAR_COLORS = {
    2025: "#6366f1",
    2024: "#f43f5e",
    2023: "#10b981",
    2022: "#f59e0b",
    2021: "#8b5cf6",
    2020: "#06b6d4",
}
DEFAULT_YEAR_COLOR = "#94a3b8"

# Cell style per heatmap tier (0 = no spend, 4 = hottest month).
TIER_STYLES = {
    0: "background-color: #f8fafc; color: #cbd5e1",
    1: "background-color: #ecfdf5; color: #047857",
    2: "background-color: #fef3c7; color: #92400e",
    3: "background-color: #fdba74; color: #7c2d12",
    4: "background-color: #ef4444; color: white",
}


def year_color(year: int) -> str:
    return YEAR_COLORS.get(int(year), DEFAULT_YEAR_COLOR)


def _color_map(years) -> dict:
    return {str(y): year_color(y) for y in years}


def _long(view: pd.DataFrame, x: str, value: str) -> pd.DataFrame:
    """Melt a years-as-columns view into rows for plotly express."""
    long_df = view.rename(columns=str).reset_index().melt(id_vars=x, var_name="Year", value_name=value)
    return long_df


def seasonality_chart(view: pd.DataFrame):
    """
    One line per year across Jan..Dec.
    """
    data = _long(view, "Month", "Spend")
    fig = px.line(
        data,
        x="Month",
        y="Spend",
        color="Year",
        markers=True,
        color_discrete_map=_color_map(view.columns),
        title="Seasonality Comparison",
    )
    fig.update_layout(height=400, yaxis_tickprefix="$", legend_title_text="")
    return fig


def pace_chart(view: pd.DataFrame):
    """
    Cumulative spend by day of year, one line per year.
    """
    data = _long(view, "Day", "Cumulative")
    fig = px.line(
        data,
        x="Day",
        y="Cumulative",
        color="Year",
        color_discrete_map=_color_map(view.columns),
        title="Pace of Spending",
    )
    fig.update_layout(height=400, yaxis_tickprefix="$", legend_title_text="")
    return fig


def category_chart(view: pd.DataFrame):
    """
    Horizontal grouped bars: category totals side by side for each year.
    """
    fig = go.Figure()
    for year in view.columns:
        fig.add_trace(go.Bar(
            y=view.index,
            x=view[year],
            name=str(year),
            orientation="h",
            marker_color=year_color(year),
        ))
    fig.update_layout(
        barmode="group",
        title="Inflation vs. Habit Check",
        height=max(400, 40 * len(view.index)),
        yaxis=dict(autorange="reversed"),
    )
    return fig


def _heatmap_label(value: float) -> str:
    return f"${value / 1000:.1f}k" if value > 0 else "-"


def heatmap_styler(heatmap: Heatmap) -> Styler:
    """Year x month table coloured by intensity tier."""
    tiers = heatmap.tiers

    def tier_css(frame: pd.DataFrame) -> pd.DataFrame:
        return tiers.map(TIER_STYLES.get).reindex_like(frame)

    return heatmap.grid.style.apply(tier_css, axis=None).format(_heatmap_label)


def distribution_chart(view: pd.DataFrame):
    """
    Box per year drawn from precomputed five-number summaries.
    """
    fig = go.Figure()
    for year, row in view.iterrows():
        fig.add_trace(go.Box(
            x=[str(year)],
            lowerfence=[row["min"]],
            q1=[row["q1"]],
            median=[row["median"]],
            q3=[row["q3"]],
            upperfence=[row["max"]],
            name=str(year),
            marker_color=year_color(year),
            fillcolor=year_color(year),
        ))
    fig.update_layout(title="Transaction Shift", height=400, showlegend=False, yaxis_tickprefix="$")
    return fig
