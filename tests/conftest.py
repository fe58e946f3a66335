import pytest

from macro_dashboard.config import Settings
from macro_dashboard.models import CombinedData, DataPoint


def make_series(start_year: int, values: list[float], day: int = 1) -> list[DataPoint]:
    """Monthly points starting January of start_year."""
    points = []
    for i, value in enumerate(values):
        year = start_year + i // 12
        month = i % 12 + 1
        points.append(DataPoint(date=f"{year}-{month:02d}-{day:02d}", value=value))
    return points


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        fred_api_key="test-fred-key",
        gemini_api_key="test-gemini-key",
        gemini_model="gemini-2.5-flash",
        ai_language="English",
        data_dir=tmp_path,
    )


@pytest.fixture()
def combined_data():
    return CombinedData(
        indicators={
            "treasury2y": [
                DataPoint("2024-01-02", 4.33),
                DataPoint("2024-01-03", 4.30),
            ],
            "treasury10y": [
                DataPoint("2024-01-02", 3.95),
                DataPoint("2024-01-03", 3.91),
                DataPoint("2024-01-04", 3.99),
            ],
            "fedFundsRate": make_series(2023, [5.33] * 13),
            "cpi": make_series(2023, [300.0 + i for i in range(12)] + [310.0]),
            "nonfarmPayroll": [DataPoint("2024-01-01", 157000.0)],
            "vix": [DataPoint("2024-01-03", 13.2)],
            "sp500": [DataPoint("2024-01-03", 4704.81)],
            "hySpread": [DataPoint("2024-01-03", 3.4)],
            "sahmRule": [DataPoint("2024-01-01", 0.2)],
            "unemployment": [DataPoint("2024-01-01", 3.7)],
        },
        last_updated="2024-01-04T00:00:00",
    )
