"""Configuration settings for the dashboard."""

from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
import os

from dotenv import load_dotenv


load_dotenv()


@dataclass(frozen=True)
class IndicatorConfig:
    """Static description of one tracked indicator."""

    key: str
    name: str
    description: str
    unit: str
    color: str
    source_id: str
    frequency: str  # daily | monthly
    release_id: int | None = None  # FRED release for the schedule


# Tracked indicators, in display order
INDICATOR_CONFIGS: tuple[IndicatorConfig, ...] = (
    IndicatorConfig(
        key="treasury2y",
        name="2Y Treasury",
        description="2-Year Treasury Yield",
        unit="%",
        color="#22d3ee",
        source_id="DGS2",
        frequency="daily",
        release_id=18,  # H.15 Selected Interest Rates
    ),
    IndicatorConfig(
        key="treasury10y",
        name="10Y Treasury",
        description="10-Year Treasury Yield",
        unit="%",
        color="#6366f1",
        source_id="DGS10",
        frequency="daily",
        release_id=18,
    ),
    IndicatorConfig(
        key="fedFundsRate",
        name="Fed Funds Rate",
        description="Effective Federal Funds Rate",
        unit="%",
        color="#ffd93d",
        source_id="FEDFUNDS",
        frequency="monthly",
        release_id=18,
    ),
    IndicatorConfig(
        key="cpi",
        name="CPI",
        description="Consumer Price Index",
        unit="",
        color="#ff3366",
        source_id="CPIAUCSL",
        frequency="monthly",
        release_id=10,  # Consumer Price Index
    ),
    IndicatorConfig(
        key="nonfarmPayroll",
        name="Nonfarm Payroll",
        description="All Employees, Total Nonfarm",
        unit="K",
        color="#00ff9f",
        source_id="PAYEMS",
        frequency="monthly",
        release_id=50,  # Employment Situation
    ),
    IndicatorConfig(
        key="vix",
        name="VIX",
        description="CBOE Volatility Index",
        unit="",
        color="#f472b6",
        source_id="VIXCLS",
        frequency="daily",
    ),
    IndicatorConfig(
        key="sp500",
        name="S&P 500",
        description="S&P 500 Index",
        unit="",
        color="#a78bfa",
        source_id="SP500",
        frequency="daily",
    ),
    IndicatorConfig(
        key="hySpread",
        name="HY Spread",
        description="ICE BofA High Yield Spread",
        unit="%",
        color="#ffd93d",
        source_id="BAMLH0A0HYM2",
        frequency="daily",
    ),
    IndicatorConfig(
        key="sahmRule",
        name="Sahm Rule",
        description="Real-time Sahm Rule Recession Indicator",
        unit="%p",
        color="#ff3366",
        source_id="SAHMREALTIME",
        frequency="monthly",
    ),
    IndicatorConfig(
        key="unemployment",
        name="Unemployment Rate",
        description="Civilian Unemployment Rate",
        unit="%",
        color="#6366f1",
        source_id="UNRATE",
        frequency="monthly",
        release_id=50,
    ),
)

INDICATOR_KEYS: tuple[str, ...] = tuple(c.key for c in INDICATOR_CONFIGS)

# Indicator key -> FRED series id
FRED_SERIES: dict[str, str] = {c.key: c.source_id for c in INDICATOR_CONFIGS}

# History before this date is never fetched or kept
START_DATE = "2020-01-01"

# Minimum age of the cached data before a refresh is triggered
UPDATE_INTERVAL = timedelta(minutes=10)

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"


def get_indicator_config(key: str) -> IndicatorConfig | None:
    for config in INDICATOR_CONFIGS:
        if config.key == key:
            return config
    return None


@dataclass
class Settings:
    """Application settings."""

    fred_api_key: str = field(default_factory=lambda: os.getenv("FRED_API_KEY", ""))
    gemini_api_key: str = field(default_factory=lambda: os.getenv("GEMINI_API_KEY", ""))
    gemini_model: str = field(
        default_factory=lambda: os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL)
    )
    ai_language: str = field(
        default_factory=lambda: os.getenv("AI_RESPONSE_LANGUAGE", "English")
    )
    data_dir: Path = field(
        default_factory=lambda: Path(
            os.getenv("MACRO_DATA_DIR", Path(__file__).parent.parent.parent / "data")
        )
    )
    db_path: Path = field(init=False)
    journal_path: Path = field(init=False)

    def __post_init__(self) -> None:
        self.data_dir = Path(self.data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.db_path = self.data_dir / "market_data.db"
        self.journal_path = self.data_dir / "journal.json"

    def validate(self) -> None:
        """Validate settings required for fetching from FRED."""
        if not self.fred_api_key:
            raise ValueError(
                "FRED_API_KEY not set. Get one at: "
                "https://fred.stlouisfed.org/docs/api/api_key.html"
            )

    def validate_gemini(self) -> None:
        """Validate settings required for the AI features."""
        if not self.gemini_api_key:
            raise ValueError(
                "GEMINI_API_KEY not set. Get one at: "
                "https://aistudio.google.com/app/apikey"
            )

    def has_gemini(self) -> bool:
        """Check if a Gemini API key is configured."""
        return bool(self.gemini_api_key)
