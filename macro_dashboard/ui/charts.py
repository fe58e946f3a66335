"""Plotly figures for the indicator cards and the thematic views."""

from dataclasses import dataclass
from datetime import datetime

import plotly.graph_objects as go

from macro_dashboard.config import IndicatorConfig, get_indicator_config
from macro_dashboard.indicators.transforms import (
    DateRange,
    calculate_yield_spread,
    calculate_yoy,
    filter_by_date_range,
    round2,
)
from macro_dashboard.models.market_data import CombinedData, DataPoint, Series


SPREAD_COLOR = "#00ff9f"
REAL_RATE_COLOR = "#22d3ee"
SAHM_THRESHOLD = 0.5


@dataclass(frozen=True)
class ChartSeries:
    name: str
    points: Series
    color: str
    secondary: bool = False  # Plot against the right-hand axis


@dataclass(frozen=True)
class ReferenceLine:
    value: float
    label: str
    color: str = "#666666"


def calculate_real_rate(fed_funds: Series, cpi_yoy: Series) -> Series:
    """Fed funds minus CPI YoY on dates present in both series."""
    yoy_by_date = {point.date: point.value for point in cpi_yoy}
    return [
        DataPoint(date=point.date, value=round2(point.value - yoy_by_date[point.date]))
        for point in fed_funds
        if point.date in yoy_by_date
    ]


def _apply_layout(fig: go.Figure, height: int, left_label: str = "", right_label: str = "") -> None:
    fig.update_layout(
        height=height,
        margin=dict(l=0, r=0, t=30, b=0),
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        hovermode="x unified",
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
        xaxis=dict(showgrid=True, gridcolor="#1e293b"),
        yaxis=dict(title=left_label, showgrid=True, gridcolor="#1e293b"),
    )
    if right_label:
        fig.update_layout(
            yaxis2=dict(title=right_label, overlaying="y", side="right", showgrid=False)
        )


def build_indicator_figure(
    series: Series,
    config: IndicatorConfig,
    date_range: DateRange | str = DateRange.ALL,
    now: datetime | None = None,
    height: int = 220,
) -> go.Figure:
    """Single-line chart of one indicator over the selected window."""
    points = filter_by_date_range(series, date_range, now)

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=[p.date for p in points], y=[p.value for p in points],
        mode="lines", line=dict(color=config.color, width=2),
        name=config.name,
        hovertemplate=f"{config.name}: %{{y:.2f}}{config.unit}<extra></extra>",
    ))
    _apply_layout(fig, height, left_label=config.unit)
    fig.update_layout(showlegend=False)
    return fig


def build_composite_figure(
    series: list[ChartSeries],
    date_range: DateRange | str = DateRange.ALL,
    now: datetime | None = None,
    reference_lines: tuple[ReferenceLine, ...] = (),
    left_label: str = "",
    right_label: str = "",
    height: int = 400,
) -> go.Figure:
    """Several series on shared dates, optionally split across two axes."""
    fig = go.Figure()

    for item in series:
        points = filter_by_date_range(item.points, date_range, now)
        fig.add_trace(go.Scatter(
            x=[p.date for p in points], y=[p.value for p in points],
            mode="lines", line=dict(color=item.color, width=2),
            name=item.name,
            yaxis="y2" if item.secondary else "y",
        ))

    for line in reference_lines:
        fig.add_hline(
            y=line.value, line_dash="dash", line_color=line.color, line_width=1,
            annotation_text=line.label, annotation_position="top left",
        )

    _apply_layout(fig, height, left_label, right_label)
    return fig


def _indicator_series(data: CombinedData, key: str, secondary: bool = False) -> ChartSeries:
    config = get_indicator_config(key)
    return ChartSeries(
        name=config.name if config else key,
        points=data.series(key),
        color=config.color if config else "#94a3b8",
        secondary=secondary,
    )


def build_rates_figure(
    data: CombinedData, date_range: DateRange | str, now: datetime | None = None
) -> go.Figure:
    """Policy rate, 2Y and 10Y yields and the 10Y-2Y spread."""
    spread = calculate_yield_spread(data.series("treasury10y"), data.series("treasury2y"))
    return build_composite_figure(
        [
            _indicator_series(data, "fedFundsRate"),
            _indicator_series(data, "treasury2y"),
            _indicator_series(data, "treasury10y"),
            ChartSeries("Yield Spread (10Y-2Y)", spread, SPREAD_COLOR),
        ],
        date_range, now,
        reference_lines=(ReferenceLine(0, "0%"),),
        left_label="%",
    )


def build_inflation_figure(
    data: CombinedData, date_range: DateRange | str, now: datetime | None = None
) -> go.Figure:
    """CPI YoY against the policy rate, with the real rate between them."""
    cpi_yoy = calculate_yoy(data.series("cpi"))
    real_rate = calculate_real_rate(data.series("fedFundsRate"), cpi_yoy)
    return build_composite_figure(
        [
            ChartSeries("CPI YoY", cpi_yoy, get_indicator_config("cpi").color),
            _indicator_series(data, "fedFundsRate"),
            ChartSeries("Real Rate", real_rate, REAL_RATE_COLOR),
        ],
        date_range, now,
        reference_lines=(ReferenceLine(0, "0%"),),
        left_label="%",
    )


def build_risk_figure(
    data: CombinedData, date_range: DateRange | str, now: datetime | None = None
) -> go.Figure:
    """S&P 500 on the right axis, VIX and high-yield spread on the left."""
    return build_composite_figure(
        [
            _indicator_series(data, "vix"),
            _indicator_series(data, "hySpread"),
            _indicator_series(data, "sp500", secondary=True),
        ],
        date_range, now,
        left_label="VIX / %",
        right_label="S&P 500",
    )


def build_recession_figure(
    data: CombinedData, date_range: DateRange | str, now: datetime | None = None
) -> go.Figure:
    """Sahm rule, unemployment and yield curve with the Sahm trigger level."""
    spread = calculate_yield_spread(data.series("treasury10y"), data.series("treasury2y"))
    return build_composite_figure(
        [
            _indicator_series(data, "sahmRule"),
            _indicator_series(data, "unemployment"),
            ChartSeries("Yield Spread (10Y-2Y)", spread, SPREAD_COLOR),
        ],
        date_range, now,
        reference_lines=(
            ReferenceLine(0, "0%"),
            ReferenceLine(SAHM_THRESHOLD, "Sahm Rule threshold", "#ff3366"),
        ),
        left_label="%",
    )
