"""
Chart data shaping.

The chart library does the drawing. This module only reshapes daily
buckets into the arrays a bar chart wants: labels, values, per-bar
colours and tooltip text.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Sequence

import plotly.graph_objects as go

from expense_tracker.models.expense import DailyBucket
from expense_tracker.presentation.context import UIContext


@dataclass(frozen=True)
class BarColor:
    background: str
    border: str


# (lower bound exclusive, light colours, dark colours), checked top to bottom
SPEND_TIERS: list[tuple[Decimal, BarColor, BarColor]] = [
    (
        Decimal("200"),
        BarColor("rgba(255, 99, 132, 0.2)", "rgba(255, 99, 132, 1)"),
        BarColor("rgba(255, 99, 132, 0.3)", "rgba(255, 99, 132, 0.8)"),
    ),
    (
        Decimal("100"),
        BarColor("rgba(255, 206, 86, 0.2)", "rgba(255, 206, 86, 1)"),
        BarColor("rgba(255, 206, 86, 0.3)", "rgba(255, 206, 86, 0.8)"),
    ),
    (
        Decimal("50"),
        BarColor("rgba(54, 162, 235, 0.2)", "rgba(54, 162, 235, 1)"),
        BarColor("rgba(54, 162, 235, 0.3)", "rgba(54, 162, 235, 0.8)"),
    ),
]
LOW_SPEND_LIGHT = BarColor("rgba(75, 192, 192, 0.2)", "rgba(75, 192, 192, 1)")
LOW_SPEND_DARK = BarColor("rgba(75, 192, 192, 0.3)", "rgba(75, 192, 192, 0.8)")


def color_for_amount(amount: Decimal, ctx: UIContext) -> BarColor:
    """Red for heavy days, then yellow, blue, and green for light ones."""
    for threshold, light, dark in SPEND_TIERS:
        if amount > threshold:
            return dark if ctx.is_dark else light
    return LOW_SPEND_DARK if ctx.is_dark else LOW_SPEND_LIGHT


def format_label(bucket: DailyBucket) -> str:
    return bucket.calendar_date.strftime("%m/%d")


def tooltip_lines(bucket: DailyBucket, ctx: UIContext) -> list[str]:
    if len(bucket.categories) > 1:
        categories = f"Categories: {', '.join(bucket.categories)}"
    else:
        categories = f"Category: {bucket.categories[0] if bucket.categories else ''}"
    return [f"Total: {ctx.currency_symbol}{bucket.total_amount:.2f}", categories]


@dataclass
class ChartSeries:
    labels: list[str] = field(default_factory=list)
    values: list[float] = field(default_factory=list)
    colors: list[BarColor] = field(default_factory=list)
    tooltips: list[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.labels)


def daily_chart_series(buckets: Sequence[DailyBucket], ctx: UIContext) -> ChartSeries:
    """Reshape ordered buckets into bar-chart arrays, one bar per day."""
    series = ChartSeries()
    for bucket in buckets:
        series.labels.append(format_label(bucket))
        series.values.append(float(bucket.total_amount))
        series.colors.append(color_for_amount(bucket.total_amount, ctx))
        series.tooltips.append("<br>".join(tooltip_lines(bucket, ctx)))
    return series


def build_daily_bar_chart(series: ChartSeries, ctx: UIContext) -> go.Figure:
    """Plotly bar chart for the daily series, themed from the context."""
    text_color = "#d1d5db" if ctx.is_dark else "#2c3e50"
    tick_color = "#9ca3af" if ctx.is_dark else "#7f8c8d"
    grid_color = "#374151" if ctx.is_dark else "#e0e0e0"

    fig = go.Figure(
        go.Bar(
            x=series.labels,
            y=series.values,
            marker=dict(
                color=[c.background for c in series.colors],
                line=dict(color=[c.border for c in series.colors], width=1),
            ),
            hovertext=series.tooltips,
            hoverinfo="text",
        )
    )
    fig.update_layout(
        template="plotly_dark" if ctx.is_dark else "plotly_white",
        showlegend=False,
        margin=dict(l=10, r=10, t=10, b=10),
        xaxis=dict(
            title=dict(text="Date", font=dict(color=text_color)),
            tickfont=dict(color=tick_color),
            showgrid=False,
            type="category",
        ),
        yaxis=dict(
            title=dict(text=f"Amount ({ctx.currency_symbol})", font=dict(color=text_color)),
            tickfont=dict(color=tick_color),
            tickprefix=ctx.currency_symbol,
            gridcolor=grid_color,
            rangemode="tozero",
        ),
    )
    return fig
