"""Settings and static indicator configuration."""

from .settings import (
    DEFAULT_GEMINI_MODEL,
    FRED_SERIES,
    INDICATOR_CONFIGS,
    INDICATOR_KEYS,
    START_DATE,
    UPDATE_INTERVAL,
    IndicatorConfig,
    Settings,
    get_indicator_config,
)

__all__ = [
    "DEFAULT_GEMINI_MODEL",
    "FRED_SERIES",
    "INDICATOR_CONFIGS",
    "INDICATOR_KEYS",
    "START_DATE",
    "UPDATE_INTERVAL",
    "IndicatorConfig",
    "Settings",
    "get_indicator_config",
]
