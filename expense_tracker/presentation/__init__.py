"""Presentation helpers shared by the Streamlit pages."""

from expense_tracker.presentation.charts import (
    BarColor,
    ChartSeries,
    build_daily_bar_chart,
    color_for_amount,
    daily_chart_series,
)
from expense_tracker.presentation.cards import insight_card_html, welcome_html
from expense_tracker.presentation.context import Theme, UIContext

__all__ = [
    "BarColor",
    "ChartSeries",
    "Theme",
    "UIContext",
    "build_daily_bar_chart",
    "color_for_amount",
    "daily_chart_series",
    "insight_card_html",
    "welcome_html",
]
