from datetime import datetime, timedelta

import httpx
import pytest

from macro_dashboard.config import FRED_SERIES, INDICATOR_KEYS, Settings
from macro_dashboard.data.fred_fetcher import RELEASE_DATES_LIMIT, FredFetcher, should_update
from macro_dashboard.models import DataPoint


RELEASE_DATES = {
    "18": ["2019-12-30", "2024-01-02", "2024-01-03"],
    "10": ["2024-01-11", "2024-02-13"],
    "50": ["2024-01-05", "2024-02-02"],
}


class FakeFred:
    """Mock FRED API recording every request it serves."""

    def __init__(
        self,
        failing: set[str] | None = None,
        malformed: dict[str, httpx.Response] | None = None,
    ) -> None:
        self.failing = failing or set()
        self.malformed = malformed or {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        params = request.url.params

        if request.url.path == "/fred/series/observations":
            series_id = params["series_id"]
            if series_id in self.failing:
                return httpx.Response(500, json={"error_message": "boom"})
            if series_id in self.malformed:
                return self.malformed[series_id]
            return httpx.Response(200, json={"observations": [
                {"date": "2019-12-01", "value": "1.0"},
                {"date": "2024-01-01", "value": "2.5"},
                {"date": "2024-02-01", "value": "."},
                {"date": "2024-03-01", "value": "3.5"},
            ]})

        if request.url.path == "/fred/release/dates":
            dates = RELEASE_DATES.get(params["release_id"], [])
            return httpx.Response(200, json={
                "release_dates": [{"release_id": params["release_id"], "date": d} for d in dates]
            })

        return httpx.Response(404)

    def observation_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/observations")]


@pytest.fixture()
def fake_fred():
    return FakeFred()


@pytest.fixture()
def fetcher(settings, fake_fred):
    with FredFetcher(settings, transport=httpx.MockTransport(fake_fred)) as fetcher:
        yield fetcher


class TestShouldUpdate:
    def test_no_data(self):
        assert should_update(None) is True

    def test_interval(self):
        now = datetime(2024, 1, 1, 12, 0)
        assert should_update(now - timedelta(minutes=5), now) is False
        assert should_update(now - timedelta(minutes=10), now) is True


def test_requires_api_key(tmp_path):
    with pytest.raises(ValueError, match="FRED_API_KEY"):
        FredFetcher(Settings(fred_api_key="", data_dir=tmp_path))


def test_fetch_series_initial(fetcher, fake_fred):
    fetcher.fetch_series("cpi")

    request = fake_fred.requests[0]
    assert request.url.params["series_id"] == "CPIAUCSL"
    assert request.url.params["observation_start"] == "2020-01-01"
    assert request.url.params["api_key"] == "test-fred-key"
    assert request.url.params["file_type"] == "json"

    # Pre-2020 and "." observations are dropped
    assert fetcher.cache.get_points("cpi") == [
        DataPoint("2024-01-01", 2.5),
        DataPoint("2024-03-01", 3.5),
    ]


def test_fetch_series_delta(fetcher, fake_fred):
    fetcher.fetch_series("cpi")
    fetcher.fetch_series("cpi")

    assert fake_fred.requests[1].url.params["observation_start"] == "2024-03-02"


def test_fetch_series_reset(fetcher, fake_fred):
    fetcher.fetch_series("cpi")
    fetcher.fetch_series("cpi", reset=True)

    assert fake_fred.requests[1].url.params["observation_start"] == "2020-01-01"
    assert len(fetcher.cache.get_points("cpi")) == 2


def test_fetch_all_continues_after_failure(settings):
    fake = FakeFred(failing={"DGS2"})
    with FredFetcher(settings, transport=httpx.MockTransport(fake)) as fetcher:
        results = fetcher.fetch_all()

    assert "treasury2y" not in results
    assert set(results) == set(INDICATOR_KEYS) - {"treasury2y"}
    assert len(fake.observation_requests()) == len(FRED_SERIES)


def test_fetch_all_continues_after_malformed_payload(settings):
    fake = FakeFred(malformed={
        "DGS10": httpx.Response(200, text="<html>maintenance</html>"),
        "FEDFUNDS": httpx.Response(200, json={"observations": [{"date": "2024-01-01"}]}),
    })
    with FredFetcher(settings, transport=httpx.MockTransport(fake)) as fetcher:
        results = fetcher.fetch_all()

    assert set(results) == set(INDICATOR_KEYS) - {"treasury10y", "fedFundsRate"}
    assert len(fake.observation_requests()) == len(FRED_SERIES)
    assert fetcher.cache.get_points("treasury10y") == []


def test_fetch_series_returns_cached_points(fetcher):
    assert fetcher.fetch_series("cpi") == [
        DataPoint("2024-01-01", 2.5),
        DataPoint("2024-03-01", 3.5),
    ]
    assert fetcher.fetch_series("cpi") == fetcher.cache.get_points("cpi")


def test_update_release_dates_fetches_each_release_once(fetcher, fake_fred):
    release_dates = fetcher.update_release_dates()

    release_requests = [r for r in fake_fred.requests if r.url.path.endswith("/release/dates")]
    assert sorted(r.url.params["release_id"] for r in release_requests) == ["10", "18", "50"]
    assert release_requests[0].url.params["limit"] == str(RELEASE_DATES_LIMIT)

    assert release_dates["treasury2y"] == ["2024-01-02", "2024-01-03"]
    assert release_dates["fedFundsRate"] == ["2024-01-02", "2024-01-03"]
    assert release_dates["cpi"] == ["2024-01-11", "2024-02-13"]
    assert release_dates["unemployment"] == ["2024-01-05", "2024-02-02"]
    assert "vix" not in release_dates


def test_refresh_returns_combined_data(fetcher):
    data = fetcher.refresh()

    assert set(data.indicators) == set(INDICATOR_KEYS)
    assert data.series("vix")[-1] == DataPoint("2024-03-01", 3.5)
    assert data.last_updated is not None


def test_refresh_if_stale(fetcher, fake_fred):
    assert fetcher.refresh_if_stale() is True
    served = len(fake_fred.requests)

    assert fetcher.refresh_if_stale() is False
    assert len(fake_fred.requests) == served

    later = datetime.now() + timedelta(minutes=11)
    assert fetcher.refresh_if_stale(now=later) is True


def test_status_lists_every_indicator(fetcher):
    fetcher.fetch_series("vix")

    status = fetcher.get_status()

    assert set(status) == set(INDICATOR_KEYS)
    assert status["vix"]["observation_count"] == 2
    assert status["cpi"]["observation_count"] == 0
