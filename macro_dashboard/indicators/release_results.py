"""Outcome of the most recent scheduled release of each indicator."""

from dataclasses import dataclass
from datetime import date

from macro_dashboard.config import INDICATOR_CONFIGS
from macro_dashboard.models.market_data import CombinedData, DataPoint, Series


@dataclass(frozen=True)
class ReleaseResult:
    """Value published at a release versus the observation before it."""

    key: str
    name: str
    release_date: str
    previous_value: float
    current_value: float
    change: float
    change_percent: float | None
    color: str
    unit: str


def _first_of_last_month(today: date) -> date:
    if today.month == 1:
        return date(today.year - 1, 12, 1)
    return date(today.year, today.month - 1, 1)


def _release_point(series: Series, release_date: str) -> DataPoint | None:
    """
    Observation published by a release.

    Monthly data is stamped on the first of the month rather than on the
    release day, so the earliest point of the release month wins. Failing
    that, the last point on or before the release, then the first after it.
    """
    year_month = release_date[:7]
    same_month = [p for p in series if p.date.startswith(year_month)]
    if same_month:
        return min(same_month, key=lambda p: p.date)

    before = [p for p in series if p.date <= release_date]
    if before:
        return max(before, key=lambda p: p.date)

    after = [p for p in series if p.date > release_date]
    if after:
        return min(after, key=lambda p: p.date)
    return None


def compute_release_results(
    data: CombinedData,
    release_dates: dict[str, list[str]],
    today: date | None = None,
) -> list[ReleaseResult]:
    """
    Latest past release per indicator since the first day of last month.

    Returns results newest release first.
    """
    today = today or date.today()
    window_start = _first_of_last_month(today).isoformat()
    today_str = today.isoformat()

    latest: dict[str, ReleaseResult] = {}

    for config in INDICATOR_CONFIGS:
        if config.release_id is None:
            continue

        series = data.series(config.key)
        releases = release_dates.get(config.key) or []
        if not series or not releases:
            continue

        for release_date in sorted(releases):
            if release_date >= today_str:
                break
            if release_date < window_start:
                continue

            current = _release_point(series, release_date)
            if current is None:
                continue

            earlier = [p for p in series if p.date < current.date]
            if not earlier:
                continue
            previous = max(earlier, key=lambda p: p.date)

            change = current.value - previous.value
            result = ReleaseResult(
                key=config.key,
                name=config.name,
                release_date=release_date,
                previous_value=previous.value,
                current_value=current.value,
                change=change,
                change_percent=change / previous.value * 100 if previous.value != 0 else None,
                color=config.color,
                unit=config.unit,
            )

            existing = latest.get(config.key)
            if existing is None or release_date > existing.release_date:
                latest[config.key] = result

    return sorted(latest.values(), key=lambda r: r.release_date, reverse=True)
