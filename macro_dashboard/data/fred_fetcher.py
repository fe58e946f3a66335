"""Incremental FRED downloads of indicator series and release calendars."""

import logging
from datetime import date, datetime, timedelta

import httpx
import pandas as pd

from macro_dashboard.config import (
    FRED_SERIES,
    INDICATOR_CONFIGS,
    INDICATOR_KEYS,
    START_DATE,
    UPDATE_INTERVAL,
    Settings,
)
from macro_dashboard.data.cache import DataCache
from macro_dashboard.models.market_data import CombinedData, Series


logger = logging.getLogger(__name__)

# FRED returns at most this many rows per request
RELEASE_DATES_LIMIT = 10000


def should_update(
    last_updated: datetime | None,
    now: datetime | None = None,
    interval: timedelta = UPDATE_INTERVAL,
) -> bool:
    """True when there is no data yet or it is older than the interval."""
    if last_updated is None:
        return True
    now = now or datetime.now(last_updated.tzinfo)
    return now - last_updated >= interval


class FredFetcher:
    """Fetches indicator data and release calendars from FRED with local caching."""

    BASE_URL = "https://api.stlouisfed.org/fred"

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.settings.validate()
        self.cache = DataCache(self.settings.db_path)
        self._transport = transport
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Lazy-initialize HTTP client."""
        if self._client is None:
            self._client = httpx.Client(timeout=30.0, transport=self._transport)
        return self._client

    def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "FredFetcher":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _fetch_observations(
        self, series_id: str, start_date: date | None = None
    ) -> pd.DataFrame:
        """
        Download one FRED series, oldest first.

        Args:
            series_id: FRED series ID
            start_date: Only fetch data after this date (for delta updates)

        Returns:
            DataFrame with date index and value column
        """
        if start_date:
            # Resume the day after the last cached observation
            observation_start = (start_date + timedelta(days=1)).isoformat()
        else:
            observation_start = START_DATE

        response = self.client.get(
            f"{self.BASE_URL}/series/observations",
            params={
                "series_id": series_id,
                "api_key": self.settings.fred_api_key,
                "file_type": "json",
                "observation_start": observation_start,
                "sort_order": "asc",
            },
        )
        response.raise_for_status()
        data = response.json()

        observations = data.get("observations", [])
        if not observations:
            return pd.DataFrame(columns=["value"])

        df = pd.DataFrame(observations)
        # Missing observations come through as "."
        df["value"] = pd.to_numeric(df["value"], errors="coerce")
        df = df[["date", "value"]].dropna()
        df = df[df["date"] >= START_DATE]
        df["date"] = pd.to_datetime(df["date"])
        df.set_index("date", inplace=True)

        return df

    def fetch_series(self, key: str, reset: bool = False) -> Series:
        """
        Fetch a single indicator, using delta updates when possible.

        Args:
            key: Indicator key (e.g. "cpi")
            reset: If True, drop the cached series and refetch from START_DATE

        Returns:
            Every cached observation of the indicator, oldest first
        """
        series_id = FRED_SERIES[key]
        logger.info(f"Fetching {key} ({series_id})...")

        start_date = None
        if reset:
            removed = self.cache.delete_series(key)
            logger.info(f"  Reset: removed {removed} cached observations")
        else:
            start_date = self.cache.get_latest_date(key)
            if start_date:
                logger.info(f"  Delta update from {start_date}")

        new_data = self._fetch_observations(series_id, start_date)
        fetched_at = datetime.now()

        if not new_data.empty:
            rows_stored = self.cache.store_observations(key, new_data, fetched_at)
            logger.info(f"  Stored {rows_stored} new observations")
        else:
            logger.info("  No new data")

        return self.cache.get_points(key)

    def fetch_all(self, reset: bool = False) -> dict[str, Series]:
        """
        Fetch all tracked indicators.

        Failures are logged per indicator and do not stop the batch.

        Returns:
            Dict mapping indicator key to its cached series
        """
        results = {}
        errors = {}

        for key in INDICATOR_KEYS:
            try:
                results[key] = self.fetch_series(key, reset)
            except httpx.HTTPStatusError as e:
                logger.error(f"HTTP error fetching {key}: {e.response.status_code}")
                errors[key] = str(e)
            except httpx.HTTPError as e:
                logger.error(f"Error fetching {key}: {e}")
                errors[key] = str(e)
            except (ValueError, KeyError) as e:
                logger.error(f"Malformed FRED response for {key}: {e!r}")
                errors[key] = repr(e)

        if errors:
            logger.warning(f"Failed to fetch {len(errors)} indicators: {list(errors.keys())}")

        return results

    def _fetch_release_dates(self, release_id: int) -> list[str]:
        """All known release dates of a FRED release since START_DATE, past and future."""
        response = self.client.get(
            f"{self.BASE_URL}/release/dates",
            params={
                "release_id": release_id,
                "api_key": self.settings.fred_api_key,
                "file_type": "json",
                "include_release_dates_with_no_data": "true",
                "realtime_start": START_DATE,
                "sort_order": "asc",
                "limit": RELEASE_DATES_LIMIT,
            },
        )
        response.raise_for_status()
        data = response.json()

        return [
            item["date"]
            for item in data.get("release_dates", [])
            if item.get("date") and item["date"] >= START_DATE
        ]

    def update_release_dates(self) -> dict[str, list[str]]:
        """Refresh the release calendar of every indicator that has one."""
        fetched_by_release: dict[int, list[str]] = {}
        fetched_at = datetime.now()

        for config in INDICATOR_CONFIGS:
            if config.release_id is None:
                continue

            if config.release_id not in fetched_by_release:
                logger.info(f"Fetching release dates for release {config.release_id}...")
                try:
                    fetched_by_release[config.release_id] = self._fetch_release_dates(
                        config.release_id
                    )
                except httpx.HTTPError as e:
                    logger.error(f"Error fetching release {config.release_id}: {e}")
                    continue

            dates = fetched_by_release[config.release_id]
            self.cache.store_release_dates(config.key, config.release_id, dates, fetched_at)
            logger.info(f"  {config.name}: {len(dates)} release dates")

        return self.cache.get_release_dates()

    def refresh(self, reset: bool = False) -> CombinedData:
        """Fetch every indicator and release calendar, then load the result."""
        self.fetch_all(reset=reset)
        self.update_release_dates()
        return self.get_combined_data()

    def refresh_if_stale(self, now: datetime | None = None) -> bool:
        """Refresh when the cache is older than UPDATE_INTERVAL. Returns whether it ran."""
        last_fetched = self.cache.get_last_fetched()
        if not should_update(last_fetched, now):
            logger.info(f"Data is up to date (last fetched {last_fetched})")
            return False
        self.refresh()
        return True

    def get_combined_data(self) -> CombinedData:
        """Get all indicators from cache without fetching."""
        return self.cache.get_combined_data(INDICATOR_KEYS)

    def get_status(self) -> dict:
        """Get cache status for all indicators."""
        status = self.cache.get_cache_status()

        for key in INDICATOR_KEYS:
            if key not in status:
                status[key] = {
                    "observation_count": 0,
                    "first_date": None,
                    "last_date": None,
                    "last_fetched": None,
                }

        return status


def main() -> None:
    """Command line refresh of the local cache."""
    import argparse
    import sys

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Fetch macro indicator data from FRED")
    parser.add_argument(
        "--reset",
        action="store_true",
        help=f"Drop cached data and refetch everything from {START_DATE}",
    )
    parser.add_argument(
        "--status",
        action="store_true",
        help="Show cache status and exit",
    )
    parser.add_argument(
        "--series",
        type=str,
        help="Fetch one indicator only (e.g. cpi)",
    )
    parser.add_argument(
        "--release-dates",
        action="store_true",
        help="Only refresh the release calendar",
    )
    args = parser.parse_args()

    try:
        with FredFetcher() as fetcher:
            if args.status:
                status = fetcher.get_status()
                print("\nCache Status:")
                print("-" * 70)
                for key, info in sorted(status.items()):
                    count = info["observation_count"]
                    last = info["last_date"] or "N/A"
                    print(f"{key:16} | {count:6} obs | Last: {last:10} | {FRED_SERIES.get(key, '')}")
                return

            if args.release_dates:
                release_dates = fetcher.update_release_dates()
                for key, dates in release_dates.items():
                    print(f"  {key}: {len(dates)} release dates")
                return

            if args.series:
                if args.series not in FRED_SERIES:
                    print(f"Unknown indicator: {args.series}")
                    print(f"Available: {', '.join(FRED_SERIES.keys())}")
                    sys.exit(1)
                fetcher.fetch_series(args.series, reset=args.reset)
            else:
                fetcher.refresh(reset=args.reset)

            print("\nDone. Cache status:")
            status = fetcher.get_status()
            for key in INDICATOR_KEYS:
                info = status.get(key, {})
                count = info.get("observation_count", 0)
                last = info.get("last_date", "N/A")
                print(f"  {key}: {count} observations, last date: {last}")

    except ValueError as e:
        print(f"Configuration error: {e}")
        sys.exit(1)
    except httpx.HTTPStatusError as e:
        print(f"API error: {e.response.status_code} - {e.response.text}")
        sys.exit(1)


if __name__ == "__main__":
    main()
