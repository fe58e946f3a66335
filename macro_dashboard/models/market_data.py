"""Data models for market data."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class DataPoint:
    """Single observation of one indicator."""

    date: str  # YYYY-MM-DD
    value: float

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date, "value": self.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DataPoint":
        return cls(date=str(data["date"]), value=float(data["value"]))


Series = list[DataPoint]


@dataclass
class CombinedData:
    """All tracked indicator series plus the time they were last refreshed."""

    indicators: dict[str, Series] = field(default_factory=dict)
    last_updated: str | None = None

    def series(self, key: str) -> Series:
        """Series for an indicator key; missing keys read as empty."""
        return self.indicators.get(key) or []

    def to_dict(self) -> dict[str, Any]:
        return {
            "indicators": {
                key: [point.to_dict() for point in points]
                for key, points in self.indicators.items()
            },
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CombinedData":
        indicators = {
            key: [DataPoint.from_dict(p) for p in points or []]
            for key, points in (data.get("indicators") or {}).items()
        }
        return cls(indicators=indicators, last_updated=data.get("lastUpdated"))


# Snapshot attribute -> serialized (camelCase) key
SNAPSHOT_FIELDS: tuple[tuple[str, str], ...] = (
    ("treasury_2y", "treasury2y"),
    ("treasury_10y", "treasury10y"),
    ("fed_funds_rate", "fedFundsRate"),
    ("cpi", "cpi"),
    ("cpi_yoy", "cpiYoY"),
    ("nonfarm_payroll", "nonfarmPayroll"),
    ("vix", "vix"),
    ("sp500", "sp500"),
    ("hy_spread", "hySpread"),
    ("sahm_rule", "sahmRule"),
    ("unemployment", "unemployment"),
    ("yield_spread", "yieldSpread"),
    ("real_rate", "realRate"),
)


@dataclass(frozen=True)
class DataSnapshot:
    """
    Flattened point-in-time summary of every indicator.

    Unavailable values are 0.0 rather than None: the snapshot is embedded in
    AI prompts and used for before/after arithmetic.
    """

    treasury_2y: float = 0.0
    treasury_10y: float = 0.0
    fed_funds_rate: float = 0.0
    cpi: float = 0.0
    cpi_yoy: float = 0.0
    nonfarm_payroll: float = 0.0
    vix: float = 0.0
    sp500: float = 0.0
    hy_spread: float = 0.0
    sahm_rule: float = 0.0
    unemployment: float = 0.0
    yield_spread: float = 0.0
    real_rate: float = 0.0
    timestamp: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            key: getattr(self, attr) for attr, key in SNAPSHOT_FIELDS
        }
        data["timestamp"] = self.timestamp
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DataSnapshot":
        values = {}
        for attr, key in SNAPSHOT_FIELDS:
            raw = data.get(key)
            values[attr] = float(raw) if isinstance(raw, (int, float)) else 0.0
        return cls(**values, timestamp=str(data.get("timestamp") or ""))
