"""Derived indicator calculations."""

from macro_dashboard.indicators.transforms import (
    Change,
    DateRange,
    calculate_yield_spread,
    calculate_yoy,
    filter_by_date_range,
    format_value,
    get_change,
    get_latest_value,
)
from macro_dashboard.indicators.snapshot import (
    OpinionFreshness,
    build_chat_context,
    check_opinions_freshness,
    compare_snapshots,
    create_data_snapshot,
    generate_data_hash,
)
from macro_dashboard.indicators.release_results import ReleaseResult, compute_release_results

__all__ = [
    "Change",
    "DateRange",
    "OpinionFreshness",
    "ReleaseResult",
    "build_chat_context",
    "calculate_yield_spread",
    "calculate_yoy",
    "check_opinions_freshness",
    "compare_snapshots",
    "compute_release_results",
    "create_data_snapshot",
    "filter_by_date_range",
    "format_value",
    "generate_data_hash",
    "get_change",
    "get_latest_value",
]
