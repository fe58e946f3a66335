"""Data models."""

from .journal import (
    AiOpinion,
    AiOpinions,
    EventType,
    JournalEntry,
    PredictionCategory,
    PredictionResult,
    Stance,
    prediction_for_stance,
)
from .market_data import CombinedData, DataPoint, DataSnapshot, Series

__all__ = [
    "AiOpinion",
    "AiOpinions",
    "CombinedData",
    "DataPoint",
    "DataSnapshot",
    "EventType",
    "JournalEntry",
    "PredictionCategory",
    "PredictionResult",
    "Series",
    "Stance",
    "prediction_for_stance",
]
