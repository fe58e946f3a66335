"""Data fetching, caching and persistence."""

from .cache import DataCache
from .fred_fetcher import FredFetcher, should_update
from .journal import JournalStore, JournalStoreError
from .release_schedule import ReleaseEvent, ReleaseScheduleProvider, UpcomingRelease

__all__ = [
    "DataCache",
    "FredFetcher",
    "JournalStore",
    "JournalStoreError",
    "ReleaseEvent",
    "ReleaseScheduleProvider",
    "UpcomingRelease",
    "should_update",
]
