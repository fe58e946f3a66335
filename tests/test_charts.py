from datetime import datetime

from macro_dashboard.config import get_indicator_config
from macro_dashboard.models import DataPoint
from macro_dashboard.ui.charts import (
    SAHM_THRESHOLD,
    build_indicator_figure,
    build_inflation_figure,
    build_rates_figure,
    build_recession_figure,
    build_risk_figure,
    calculate_real_rate,
)


NOW = datetime(2024, 1, 20)


def test_real_rate_joins_on_date():
    result = calculate_real_rate(
        [DataPoint("2024-01-01", 5.33), DataPoint("2024-02-01", 5.33)],
        [DataPoint("2024-01-01", 3.33)],
    )
    assert result == [DataPoint("2024-01-01", 2.0)]


def test_indicator_figure_respects_range():
    series = [DataPoint("2023-01-03", 20.0), DataPoint("2024-01-03", 13.2)]
    fig = build_indicator_figure(series, get_indicator_config("vix"), "1M", NOW)

    assert list(fig.data[0].x) == ["2024-01-03"]
    assert list(fig.data[0].y) == [13.2]


def test_rates_figure(combined_data):
    fig = build_rates_figure(combined_data, "ALL", NOW)
    names = [trace.name for trace in fig.data]

    assert names == ["Fed Funds Rate", "2Y Treasury", "10Y Treasury", "Yield Spread (10Y-2Y)"]
    assert list(fig.data[3].y) == [-0.38, -0.39]


def test_inflation_figure(combined_data):
    fig = build_inflation_figure(combined_data, "ALL", NOW)

    cpi_yoy, _, real_rate = fig.data
    assert list(cpi_yoy.y) == [3.33]
    assert list(real_rate.y) == [2.0]


def test_risk_figure_puts_sp500_on_right_axis(combined_data):
    fig = build_risk_figure(combined_data, "ALL", NOW)
    axes = {trace.name: trace.yaxis for trace in fig.data}

    assert axes == {"VIX": "y", "HY Spread": "y", "S&P 500": "y2"}


def test_recession_figure_reference_lines(combined_data):
    fig = build_recession_figure(combined_data, "ALL", NOW)
    levels = sorted(shape.y0 for shape in fig.layout.shapes)

    assert levels == [0, SAHM_THRESHOLD]
