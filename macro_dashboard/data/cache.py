"""SQLite cache for indicator observations and release dates."""

import sqlite3
from datetime import date, datetime
from pathlib import Path

import pandas as pd

from macro_dashboard.models.market_data import CombinedData, DataPoint


class DataCache:
    """SQLite-based cache keyed by indicator key."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Connection returning rows addressable by column name."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        """Create tables on first use."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS observations (
                    indicator TEXT NOT NULL,
                    date TEXT NOT NULL,
                    value REAL NOT NULL,
                    fetched_at TEXT NOT NULL,
                    PRIMARY KEY (indicator, date)
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS release_dates (
                    indicator TEXT NOT NULL,
                    release_id INTEGER NOT NULL,
                    date TEXT NOT NULL,
                    fetched_at TEXT NOT NULL,
                    PRIMARY KEY (indicator, date)
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_obs_indicator_date
                ON observations(indicator, date)
            """)

    def get_latest_date(self, indicator: str) -> date | None:
        """Get the most recent date we have cached for an indicator."""
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT MAX(date) as max_date FROM observations WHERE indicator = ?",
                (indicator,),
            ).fetchone()
            if row and row["max_date"]:
                return date.fromisoformat(row["max_date"])
        return None

    def get_last_fetched(self) -> datetime | None:
        """When any observation was last written."""
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT MAX(fetched_at) as last_fetched FROM observations"
            ).fetchone()
            if row and row["last_fetched"]:
                return datetime.fromisoformat(row["last_fetched"])
        return None

    def store_observations(
        self, indicator: str, df: pd.DataFrame, fetched_at: datetime
    ) -> int:
        """
        Store observations for an indicator.

        Args:
            indicator: Indicator key (e.g. "treasury10y")
            df: DataFrame with date index and 'value' column
            fetched_at: When the data was fetched

        Returns:
            Rows written (existing dates are overwritten)
        """
        if df.empty:
            return 0

        fetched_str = fetched_at.isoformat()
        rows = [
            (indicator, idx.strftime("%Y-%m-%d"), float(val), fetched_str)
            for idx, val in df["value"].items()
            if pd.notna(val)
        ]

        with self._get_connection() as conn:
            conn.executemany(
                """
                INSERT OR REPLACE INTO observations (indicator, date, value, fetched_at)
                VALUES (?, ?, ?, ?)
                """,
                rows,
            )
        return len(rows)

    def delete_series(self, indicator: str) -> int:
        """Drop every cached observation of an indicator."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM observations WHERE indicator = ?", (indicator,)
            )
            return cursor.rowcount

    def get_points(self, indicator: str) -> list[DataPoint]:
        """Cached series as DataPoints, ascending by date."""
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT date, value FROM observations WHERE indicator = ? ORDER BY date",
                (indicator,),
            ).fetchall()
        return [DataPoint(date=row["date"], value=float(row["value"])) for row in rows]

    def get_combined_data(self, indicators: tuple[str, ...] | list[str]) -> CombinedData:
        """All requested indicators; uncached ones come back as empty series."""
        last_fetched = self.get_last_fetched()
        return CombinedData(
            indicators={key: self.get_points(key) for key in indicators},
            last_updated=last_fetched.isoformat() if last_fetched else None,
        )

    def store_release_dates(
        self, indicator: str, release_id: int, dates: list[str], fetched_at: datetime
    ) -> int:
        """Replace the release calendar of an indicator."""
        fetched_str = fetched_at.isoformat()
        with self._get_connection() as conn:
            conn.execute("DELETE FROM release_dates WHERE indicator = ?", (indicator,))
            conn.executemany(
                """
                INSERT OR REPLACE INTO release_dates (indicator, release_id, date, fetched_at)
                VALUES (?, ?, ?, ?)
                """,
                [(indicator, release_id, d, fetched_str) for d in dates],
            )
        return len(dates)

    def get_release_dates(self) -> dict[str, list[str]]:
        """Release dates per indicator, ascending."""
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT indicator, date FROM release_dates ORDER BY indicator, date"
            ).fetchall()

        result: dict[str, list[str]] = {}
        for row in rows:
            result.setdefault(row["indicator"], []).append(row["date"])
        return result

    def get_cache_status(self) -> dict[str, dict]:
        """Get status of cached data for each indicator."""
        with self._get_connection() as conn:
            rows = conn.execute("""
                SELECT
                    indicator,
                    COUNT(*) as observation_count,
                    MIN(date) as first_date,
                    MAX(date) as last_date,
                    MAX(fetched_at) as last_fetched
                FROM observations
                GROUP BY indicator
            """).fetchall()

        return {
            row["indicator"]: {
                "observation_count": row["observation_count"],
                "first_date": row["first_date"],
                "last_date": row["last_date"],
                "last_fetched": row["last_fetched"],
            }
            for row in rows
        }
