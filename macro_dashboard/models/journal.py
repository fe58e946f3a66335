"""Data models for prediction journal entries and AI commentary."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from macro_dashboard.models.market_data import DataSnapshot


class EventType(str, Enum):
    """Scheduled releases a prediction can be recorded against."""
    FOMC = "FOMC"
    CPI = "CPI"
    NFP = "NFP"


class PredictionCategory(str, Enum):
    """What the prediction is about."""
    RATE = "rate"  # Rate decision: raise / hold / cut
    SP500 = "sp500"  # Market direction: up / neutral / down


class Stance(str, Enum):
    BULLISH = "bullish"
    NEUTRAL = "neutral"
    BEARISH = "bearish"


PREDICTION_CHOICES: dict[PredictionCategory, tuple[str, ...]] = {
    PredictionCategory.RATE: ("raise", "hold", "cut"),
    PredictionCategory.SP500: ("up", "neutral", "down"),
}


def prediction_for_stance(category: PredictionCategory | str, stance: Stance | str) -> str:
    """Map an opinion stance to the prediction value of a category."""
    category = PredictionCategory(category)
    stance = Stance(stance)
    bullish, neutral, bearish = PREDICTION_CHOICES[category]
    if stance is Stance.BULLISH:
        return bullish
    if stance is Stance.BEARISH:
        return bearish
    return neutral


def _str_list(raw: Any) -> list[str]:
    if not isinstance(raw, list):
        return []
    return [str(item) for item in raw]


@dataclass(frozen=True)
class AiOpinion:
    """One of the three generated perspectives on an upcoming event."""

    id: str
    stance: Stance
    title: str = ""
    summary: str = ""
    reasoning: str = ""
    key_indicators: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "stance": self.stance.value,
            "title": self.title,
            "summary": self.summary,
            "reasoning": self.reasoning,
            "keyIndicators": list(self.key_indicators),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], stance: Stance | str | None = None) -> "AiOpinion":
        return cls(
            id=str(data.get("id") or ""),
            stance=Stance(stance or data.get("stance")),
            title=str(data.get("title") or ""),
            summary=str(data.get("summary") or ""),
            reasoning=str(data.get("reasoning") or ""),
            key_indicators=tuple(_str_list(data.get("keyIndicators"))),
        )


@dataclass(frozen=True)
class AiOpinions:
    """Three-stance commentary tagged with the fingerprint of its input data."""

    generated_at: str
    data_hash: str
    bullish: AiOpinion
    neutral: AiOpinion
    bearish: AiOpinion

    def all(self) -> tuple[AiOpinion, AiOpinion, AiOpinion]:
        return (self.bullish, self.neutral, self.bearish)

    def find(self, opinion_id: str) -> AiOpinion | None:
        for opinion in self.all():
            if opinion.id == opinion_id:
                return opinion
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "generatedAt": self.generated_at,
            "dataHash": self.data_hash,
            "opinions": {o.stance.value: o.to_dict() for o in self.all()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AiOpinions":
        opinions = data.get("opinions") or {}
        return cls(
            generated_at=str(data.get("generatedAt") or ""),
            data_hash=str(data.get("dataHash") or ""),
            bullish=AiOpinion.from_dict(opinions.get("bullish") or {}, Stance.BULLISH),
            neutral=AiOpinion.from_dict(opinions.get("neutral") or {}, Stance.NEUTRAL),
            bearish=AiOpinion.from_dict(opinions.get("bearish") or {}, Stance.BEARISH),
        )


@dataclass(frozen=True)
class PredictionResult:
    """Outcome recorded after the event took place."""

    actual: str
    snapshot_after: DataSnapshot
    is_correct: bool
    ai_feedback: str | None = None
    feedback_generated_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "actual": self.actual,
            "snapshotAfter": self.snapshot_after.to_dict(),
            "aiFeedback": self.ai_feedback,
            "feedbackGeneratedAt": self.feedback_generated_at,
            "isCorrect": self.is_correct,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PredictionResult":
        return cls(
            actual=str(data.get("actual") or ""),
            snapshot_after=DataSnapshot.from_dict(data.get("snapshotAfter") or {}),
            is_correct=bool(data.get("isCorrect")),
            ai_feedback=data.get("aiFeedback"),
            feedback_generated_at=data.get("feedbackGeneratedAt"),
        )


@dataclass(frozen=True)
class JournalEntry:
    """A user prediction tied to a scheduled release."""

    event_id: str
    event_type: EventType
    event_date: str
    event_title: str
    snapshot: DataSnapshot
    category: PredictionCategory
    prediction: str
    memo: str = ""
    ai_opinions: AiOpinions | None = None
    ai_opinions_generated_at: str | None = None
    used_ai_opinion: str | None = None
    result: PredictionResult | None = None
    id: str = ""
    created_at: str = ""
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> dict[str, Any]:
        data = dict(self.extra)
        data.update(
            {
                "id": self.id,
                "createdAt": self.created_at,
                "eventId": self.event_id,
                "eventType": self.event_type.value,
                "eventDate": self.event_date,
                "eventTitle": self.event_title,
                "snapshot": self.snapshot.to_dict(),
                "aiOpinions": self.ai_opinions.to_dict() if self.ai_opinions else None,
                "aiOpinionsGeneratedAt": self.ai_opinions_generated_at,
                "category": self.category.value,
                "prediction": self.prediction,
                "memo": self.memo,
                "usedAiOpinion": self.used_ai_opinion,
            }
        )
        if self.result is not None:
            data["result"] = self.result.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JournalEntry":
        known = {
            "id", "createdAt", "eventId", "eventType", "eventDate", "eventTitle",
            "snapshot", "aiOpinions", "aiOpinionsGeneratedAt", "category",
            "prediction", "memo", "usedAiOpinion", "result",
        }
        opinions = data.get("aiOpinions")
        result = data.get("result")
        return cls(
            id=str(data.get("id") or ""),
            created_at=str(data.get("createdAt") or ""),
            event_id=str(data["eventId"]),
            event_type=EventType(data["eventType"]),
            event_date=str(data.get("eventDate") or ""),
            event_title=str(data.get("eventTitle") or ""),
            snapshot=DataSnapshot.from_dict(data.get("snapshot") or {}),
            ai_opinions=AiOpinions.from_dict(opinions) if opinions else None,
            ai_opinions_generated_at=data.get("aiOpinionsGeneratedAt"),
            category=PredictionCategory(data["category"]),
            prediction=str(data.get("prediction") or ""),
            memo=str(data.get("memo") or ""),
            used_ai_opinion=data.get("usedAiOpinion"),
            result=PredictionResult.from_dict(result) if result else None,
            extra={k: v for k, v in data.items() if k not in known},
        )
