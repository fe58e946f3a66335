import json
from dataclasses import replace

import pytest

from macro_dashboard.data.journal import JournalStore, JournalStoreError
from macro_dashboard.models import (
    AiOpinion,
    AiOpinions,
    DataSnapshot,
    EventType,
    JournalEntry,
    PredictionCategory,
    PredictionResult,
    Stance,
    prediction_for_stance,
)


@pytest.fixture()
def store(tmp_path):
    return JournalStore(tmp_path / "journal.json")


def make_entry(event_id: str = "fomc-2025-01-29", prediction: str = "hold") -> JournalEntry:
    return JournalEntry(
        event_id=event_id,
        event_type=EventType.FOMC,
        event_date="2025-01-29",
        event_title="January 2025 FOMC Rate Decision",
        snapshot=DataSnapshot(treasury_2y=4.3, vix=16.0, timestamp="2025-01-20T00:00:00.000Z"),
        category=PredictionCategory.RATE,
        prediction=prediction,
        memo="Inflation sticky",
    )


def test_missing_file_is_empty(store):
    assert store.list_entries() == []
    assert store.get("nope") is None


def test_create_assigns_id_and_timestamp(store):
    created = store.create(make_entry())

    assert created.id
    assert created.created_at.endswith("Z")
    assert store.get(created.id) == created
    assert store.get_by_event_id("fomc-2025-01-29") == created


def test_file_layout(store):
    created = store.create(make_entry())
    raw = json.loads(store.path.read_text(encoding="utf-8"))

    assert list(raw) == ["entries"]
    stored = raw["entries"][0]
    assert stored["id"] == created.id
    assert stored["eventType"] == "FOMC"
    assert stored["snapshot"]["treasury2y"] == 4.3
    assert "result" not in stored


def test_update_merges_and_keeps_identity(store):
    created = store.create(make_entry())

    updated = store.update(created.id, {"memo": "Changed my mind", "id": "other", "createdAt": "x"})

    assert updated.memo == "Changed my mind"
    assert updated.id == created.id
    assert updated.created_at == created.created_at
    assert store.get(created.id).memo == "Changed my mind"


def test_update_unknown_entry(store):
    assert store.update("missing", {"memo": "x"}) is None


def test_unknown_fields_survive(store):
    created = store.create(make_entry())
    store.update(created.id, {"tags": ["fed"]})

    entry = store.get(created.id)
    assert entry.extra == {"tags": ["fed"]}
    assert entry.to_dict()["tags"] == ["fed"]


def test_save_for_event_overwrites_same_event(store):
    first = store.save_for_event(make_entry(prediction="hold"))
    second = store.save_for_event(make_entry(prediction="cut"))

    assert second.id == first.id
    assert second.prediction == "cut"
    assert len(store.list_entries()) == 1


def test_record_result(store):
    created = store.create(make_entry())
    result = PredictionResult(
        actual="hold",
        snapshot_after=DataSnapshot(vix=14.0),
        is_correct=True,
        ai_feedback="Well reasoned.",
    )

    updated = store.record_result(created.id, result)

    assert updated.result == result
    assert store.get(created.id).result.snapshot_after.vix == 14.0


def test_save_for_event_keeps_recorded_result(store):
    created = store.create(make_entry())
    store.record_result(
        created.id,
        PredictionResult(actual="hold", snapshot_after=DataSnapshot(), is_correct=True),
    )

    store.save_for_event(make_entry(prediction="hold"))

    assert store.get(created.id).result.actual == "hold"


def test_delete(store):
    keep = store.create(make_entry("cpi-2025-02-12"))
    gone = store.create(make_entry())

    assert store.delete(gone.id) is True
    assert store.delete(gone.id) is False
    assert [e.id for e in store.list_entries()] == [keep.id]


def test_corrupt_file_raises(store):
    store.path.write_text("{not json", encoding="utf-8")
    with pytest.raises(JournalStoreError):
        store.list_entries()
    with pytest.raises(JournalStoreError):
        store.create(make_entry())
    assert store.path.read_text(encoding="utf-8") == "{not json"


def test_ai_opinions_round_trip(store):
    opinions = AiOpinions(
        generated_at="2025-01-20T00:00:00.000Z",
        data_hash="-1a2b",
        bullish=AiOpinion(id="1", stance=Stance.BULLISH, title="Hike", key_indicators=("CPI YoY: 3.1",)),
        neutral=AiOpinion(id="2", stance=Stance.NEUTRAL, title="Hold"),
        bearish=AiOpinion(id="3", stance=Stance.BEARISH, title="Cut"),
    )
    entry = replace(make_entry(), ai_opinions=opinions, used_ai_opinion="2")

    created = store.create(entry)

    loaded = store.get(created.id)
    assert loaded.ai_opinions == opinions
    assert loaded.ai_opinions.find("2").title == "Hold"


@pytest.mark.parametrize(
    "category,stance,expected",
    [
        (PredictionCategory.RATE, Stance.BULLISH, "raise"),
        (PredictionCategory.RATE, Stance.BEARISH, "cut"),
        ("sp500", "neutral", "neutral"),
        ("sp500", "bullish", "up"),
    ],
)
def test_prediction_for_stance(category, stance, expected):
    assert prediction_for_stance(category, stance) == expected
