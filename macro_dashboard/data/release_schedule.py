"""Release calendar lookups and the journal events derived from them."""

from dataclasses import dataclass
from datetime import date

from macro_dashboard.config import INDICATOR_CONFIGS
from macro_dashboard.models.journal import EventType


# Indicators whose releases can be journaled
EVENT_TYPES: dict[str, EventType] = {
    "fedFundsRate": EventType.FOMC,
    "cpi": EventType.CPI,
    "nonfarmPayroll": EventType.NFP,
}

EVENT_TITLES: dict[EventType, str] = {
    EventType.FOMC: "FOMC Rate Decision",
    EventType.CPI: "CPI Release",
    EventType.NFP: "Nonfarm Payroll Release",
}


@dataclass(frozen=True)
class UpcomingRelease:
    key: str
    name: str
    next_release_date: str
    release_name: str
    color: str


@dataclass(frozen=True)
class ReleaseEvent:
    """A scheduled release a prediction can be recorded against."""

    event_id: str
    event_type: EventType
    event_date: str
    event_title: str


def event_id_for(event_type: EventType, event_date: str) -> str:
    return f"{event_type.value.lower()}-{event_date}"


def event_title_for(event_type: EventType, event_date: str) -> str:
    day = date.fromisoformat(event_date)
    return f"{day.strftime('%B %Y')} {EVENT_TITLES[event_type]}"


def event_for_release(key: str, release_date: str) -> ReleaseEvent | None:
    """Journal event for an indicator's release, if that indicator is journaled."""
    event_type = EVENT_TYPES.get(key)
    if event_type is None:
        return None
    return ReleaseEvent(
        event_id=event_id_for(event_type, release_date),
        event_type=event_type,
        event_date=release_date,
        event_title=event_title_for(event_type, release_date),
    )


class ReleaseScheduleProvider:
    """Read-only view over stored release dates (indicator key -> dates)."""

    def __init__(self, release_dates: dict[str, list[str]]) -> None:
        self._release_dates = {key: sorted(dates) for key, dates in release_dates.items()}

    def all_release_dates(self, key: str) -> list[str]:
        return list(self._release_dates.get(key, []))

    def next_release_date(self, key: str, today: date | None = None) -> str | None:
        """First release on or after today."""
        today_str = (today or date.today()).isoformat()
        for release_date in self._release_dates.get(key, []):
            if release_date >= today_str:
                return release_date
        return None

    def upcoming_releases(self, today: date | None = None) -> list[UpcomingRelease]:
        """Next release of every scheduled indicator, soonest first."""
        upcoming = []
        for config in INDICATOR_CONFIGS:
            if config.release_id is None:
                continue
            next_date = self.next_release_date(config.key, today)
            if next_date is None:
                continue
            upcoming.append(
                UpcomingRelease(
                    key=config.key,
                    name=config.name,
                    next_release_date=next_date,
                    release_name=config.description,
                    color=config.color,
                )
            )
        return sorted(upcoming, key=lambda r: r.next_release_date)

    def upcoming_events(self, today: date | None = None) -> list[ReleaseEvent]:
        """Journal events for the next release of each journaled indicator."""
        events = []
        for release in self.upcoming_releases(today):
            event = event_for_release(release.key, release.next_release_date)
            if event is not None:
                events.append(event)
        return events
