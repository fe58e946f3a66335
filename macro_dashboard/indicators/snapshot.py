"""Point-in-time snapshots of the indicator set and their fingerprints."""

import string
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from macro_dashboard.indicators.transforms import (
    calculate_yield_spread,
    calculate_yoy,
    get_latest_value,
    js_round,
    round2,
)
from macro_dashboard.models.journal import AiOpinions
from macro_dashboard.models.market_data import CombinedData, DataSnapshot, Series


class OpinionFreshness(Enum):
    """Whether cached AI opinions still describe the current data."""
    MISSING = "missing"  # Nothing cached, generate
    FRESH = "fresh"  # Fingerprint matches, reuse
    STALE = "stale"  # Data moved, regenerate


# Fields shown in the before/after comparison of review mode
COMPARISON_FIELDS: tuple[tuple[str, str], ...] = (
    ("treasury_2y", "2Y"),
    ("treasury_10y", "10Y"),
    ("yield_spread", "Spread"),
    ("vix", "VIX"),
    ("sp500", "S&P 500"),
)

_BASE36_DIGITS = string.digits + string.ascii_lowercase


@dataclass(frozen=True)
class ComparisonRow:
    """One indicator at prediction time versus after the release."""

    field: str
    label: str
    before: float
    after: float
    change: float
    change_percent: float  # 0 when the prediction-time value is 0


def _latest(series: Series) -> float | None:
    point = get_latest_value(series)
    return point.value if point is not None else None


def _or_zero(value: float | None) -> float:
    return value if value is not None else 0.0


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def create_data_snapshot(data: CombinedData, now: datetime | None = None) -> DataSnapshot:
    """
    Flatten the latest value of every indicator into a snapshot.

    Missing values become 0.0. CPI YoY and the 10Y-2Y spread are derived
    from the full series before taking their latest value.
    """
    fed_funds = _latest(data.series("fedFundsRate"))
    cpi_yoy = _latest(calculate_yoy(data.series("cpi")))
    yield_spread = _latest(
        calculate_yield_spread(data.series("treasury10y"), data.series("treasury2y"))
    )

    if fed_funds is not None and cpi_yoy is not None:
        real_rate = round2(fed_funds - cpi_yoy)
    else:
        real_rate = 0.0

    if now is not None:
        timestamp = now.isoformat()
    else:
        timestamp = _utc_now_iso()

    return DataSnapshot(
        treasury_2y=_or_zero(_latest(data.series("treasury2y"))),
        treasury_10y=_or_zero(_latest(data.series("treasury10y"))),
        fed_funds_rate=_or_zero(fed_funds),
        cpi=_or_zero(_latest(data.series("cpi"))),
        cpi_yoy=_or_zero(cpi_yoy),
        nonfarm_payroll=_or_zero(_latest(data.series("nonfarmPayroll"))),
        vix=_or_zero(_latest(data.series("vix"))),
        sp500=_or_zero(_latest(data.series("sp500"))),
        hy_spread=_or_zero(_latest(data.series("hySpread"))),
        sahm_rule=_or_zero(_latest(data.series("sahmRule"))),
        unemployment=_or_zero(_latest(data.series("unemployment"))),
        yield_spread=_or_zero(yield_spread),
        real_rate=real_rate,
        timestamp=timestamp,
    )


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    sign = "-" if number < 0 else ""
    number = abs(number)
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return sign + "".join(reversed(digits))


def _string_hash(text: str) -> int:
    """32-bit signed rolling hash (hash * 31 + code unit)."""
    encoded = text.encode("utf-16-le")
    value = 0
    for i in range(0, len(encoded), 2):
        code_unit = int.from_bytes(encoded[i:i + 2], "little")
        value = (value * 31 + code_unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return value


def fingerprint_key(snapshot: DataSnapshot) -> str:
    """Coarse key: rates to 0.1, VIX to 1, S&P 500 to 100 points."""
    parts = (
        js_round(snapshot.treasury_2y * 10),
        js_round(snapshot.treasury_10y * 10),
        js_round(snapshot.fed_funds_rate * 10),
        js_round(snapshot.cpi_yoy * 10),
        js_round(snapshot.vix),
        js_round(snapshot.sp500 / 100),
    )
    return "|".join(str(part) for part in parts)


def generate_data_hash(snapshot: DataSnapshot) -> str:
    """
    Lossy fingerprint of a snapshot for reusing AI opinions.

    Not a content hash: snapshots that differ below the rounding precision
    share a fingerprint, and unrelated snapshots may collide.
    """
    return _to_base36(_string_hash(fingerprint_key(snapshot)))


def check_opinions_freshness(
    opinions: AiOpinions | None, snapshot: DataSnapshot
) -> OpinionFreshness:
    if opinions is None or not opinions.data_hash:
        return OpinionFreshness.MISSING
    if opinions.data_hash == generate_data_hash(snapshot):
        return OpinionFreshness.FRESH
    return OpinionFreshness.STALE


def build_chat_context(data: CombinedData) -> dict[str, Any]:
    """
    Latest values for the chat assistant.

    Unlike snapshots, unavailable values stay None so the model can tell
    missing data from a zero reading.
    """
    treasury_2y = _latest(data.series("treasury2y"))
    treasury_10y = _latest(data.series("treasury10y"))
    fed_funds = _latest(data.series("fedFundsRate"))
    cpi_yoy = _latest(calculate_yoy(data.series("cpi")))

    yield_spread = (
        treasury_10y - treasury_2y
        if treasury_10y is not None and treasury_2y is not None
        else None
    )
    real_rate = fed_funds - cpi_yoy if fed_funds is not None and cpi_yoy is not None else None

    return {
        "currentData": {
            "treasury2y": treasury_2y,
            "treasury10y": treasury_10y,
            "fedFundsRate": fed_funds,
            "cpi": _latest(data.series("cpi")),
            "cpiYoY": cpi_yoy,
            "nonfarmPayroll": _latest(data.series("nonfarmPayroll")),
            "vix": _latest(data.series("vix")),
            "sp500": _latest(data.series("sp500")),
            "hySpread": _latest(data.series("hySpread")),
            "sahmRule": _latest(data.series("sahmRule")),
            "unemployment": _latest(data.series("unemployment")),
        },
        "derived": {
            "yieldSpread": yield_spread,
            "realRate": real_rate,
        },
    }


def compare_snapshots(before: DataSnapshot, after: DataSnapshot) -> list[ComparisonRow]:
    rows = []
    for field_name, label in COMPARISON_FIELDS:
        old = getattr(before, field_name)
        new = getattr(after, field_name)
        change = new - old
        rows.append(
            ComparisonRow(
                field=field_name,
                label=label,
                before=old,
                after=new,
                change=change,
                change_percent=change / old * 100 if old != 0 else 0.0,
            )
        )
    return rows
