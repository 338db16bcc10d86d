"""Tests for chart data shaping."""

from datetime import date
from decimal import Decimal

import plotly.graph_objects as go

from expense_tracker.models.expense import DailyBucket
from expense_tracker.presentation import (
    Theme,
    UIContext,
    build_daily_bar_chart,
    color_for_amount,
    daily_chart_series,
)

LIGHT = UIContext()
DARK = UIContext(theme=Theme.DARK)


def bucket(amount, categories=("Food",), day=date(2024, 1, 5)) -> DailyBucket:
    return DailyBucket(calendar_date=day, total_amount=Decimal(str(amount)), categories=list(categories))


class TestColorForAmount:
    """Spend tiers: >200 red, >100 yellow, >50 blue, else green."""

    def test_tiers_light(self):
        assert color_for_amount(Decimal("250"), LIGHT).border == "rgba(255, 99, 132, 1)"
        assert color_for_amount(Decimal("150"), LIGHT).border == "rgba(255, 206, 86, 1)"
        assert color_for_amount(Decimal("75"), LIGHT).border == "rgba(54, 162, 235, 1)"
        assert color_for_amount(Decimal("20"), LIGHT).border == "rgba(75, 192, 192, 1)"

    def test_boundaries_are_exclusive(self):
        assert color_for_amount(Decimal("200"), LIGHT) == color_for_amount(Decimal("150"), LIGHT)
        assert color_for_amount(Decimal("50"), LIGHT) == color_for_amount(Decimal("0"), LIGHT)

    def test_dark_theme_uses_stronger_fill(self):
        assert color_for_amount(Decimal("250"), DARK).background == "rgba(255, 99, 132, 0.3)"
        assert color_for_amount(Decimal("250"), LIGHT).background == "rgba(255, 99, 132, 0.2)"


class TestDailyChartSeries:
    def test_labels_values_and_tooltips(self):
        series = daily_chart_series([bucket("12.5"), bucket(300, ("Food", "Bills"), date(2024, 1, 6))], LIGHT)

        assert len(series) == 2
        assert series.labels == ["01/05", "01/06"]
        assert series.values == [12.5, 300.0]
        assert series.tooltips[0] == "Total: $12.50<br>Category: Food"
        assert series.tooltips[1] == "Total: $300.00<br>Categories: Food, Bills"

    def test_empty_buckets(self):
        assert len(daily_chart_series([], LIGHT)) == 0

    def test_figure_has_one_bar_per_day(self):
        series = daily_chart_series([bucket(10), bucket(20, day=date(2024, 1, 6))], DARK)
        fig = build_daily_bar_chart(series, DARK)

        assert isinstance(fig, go.Figure)
        assert list(fig.data[0].x) == ["01/05", "01/06"]


class TestUIContext:
    def test_toggle_switches_theme(self):
        assert LIGHT.toggled().is_dark
        assert not DARK.toggled().is_dark

    def test_money(self):
        assert LIGHT.money(Decimal("1234.5")) == "$1,234.50"
