"""AI commentary: chat replies, three-stance opinions and prediction feedback."""

import json
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Any

from macro_dashboard.ai.gemini_client import (
    AiResponseFormatError,
    GeminiClient,
    to_gemini_contents,
)
from macro_dashboard.ai.prompts import (
    build_chat_system_prompt,
    build_feedback_prompt,
    build_opinions_prompt,
)
from macro_dashboard.indicators.snapshot import (
    OpinionFreshness,
    check_opinions_freshness,
    generate_data_hash,
)
from macro_dashboard.models.journal import (
    AiOpinion,
    AiOpinions,
    EventType,
    JournalEntry,
    PredictionCategory,
    Stance,
)
from macro_dashboard.models.market_data import DataSnapshot


logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?\n?")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _user_message(text: str) -> list[dict[str, Any]]:
    return [{"role": "user", "parts": [{"text": text}]}]


def _opinion_from_payload(payload: Any, stance: Stance) -> AiOpinion:
    """Field-by-field extraction; missing or mistyped fields become empty."""
    if not isinstance(payload, dict):
        payload = {}

    def text(name: str) -> str:
        value = payload.get(name)
        return value if isinstance(value, str) else ""

    indicators = payload.get("keyIndicators")
    if not isinstance(indicators, list):
        indicators = []

    return AiOpinion(
        id=str(uuid.uuid4()),
        stance=stance,
        title=text("title"),
        summary=text("summary"),
        reasoning=text("reasoning"),
        key_indicators=tuple(str(item) for item in indicators),
    )


def parse_opinions(content: str, data_hash: str, generated_at: str | None = None) -> AiOpinions:
    """
    Parse the model's JSON answer into AiOpinions.

    Markdown code fences around the JSON are removed first.

    Raises:
        AiResponseFormatError: The text is not a JSON object
    """
    cleaned = _CODE_FENCE.sub("", content).strip()
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse AI response as JSON: {content}")
        raise AiResponseFormatError("Failed to parse AI response", content) from e

    if not isinstance(payload, dict):
        raise AiResponseFormatError("AI response is not a JSON object", content)

    return AiOpinions(
        generated_at=generated_at or _now_iso(),
        data_hash=data_hash,
        bullish=_opinion_from_payload(payload.get("bullish"), Stance.BULLISH),
        neutral=_opinion_from_payload(payload.get("neutral"), Stance.NEUTRAL),
        bearish=_opinion_from_payload(payload.get("bearish"), Stance.BEARISH),
    )


def generate_ai_opinions(
    client: GeminiClient,
    event_type: EventType | str,
    category: PredictionCategory | str,
    snapshot: DataSnapshot,
) -> AiOpinions:
    """Ask the model for bullish, neutral and bearish takes on an event."""
    event_type = EventType(event_type)
    category = PredictionCategory(category)

    prompt = build_opinions_prompt(
        event_type.value, category, snapshot, client.settings.ai_language
    )
    content = client.generate(
        _user_message(prompt), error_message="Failed to generate AI opinions"
    )
    return parse_opinions(content, generate_data_hash(snapshot))


def get_or_generate_opinions(
    client: GeminiClient,
    event_type: EventType | str,
    category: PredictionCategory | str,
    snapshot: DataSnapshot,
    cached: AiOpinions | None = None,
) -> tuple[AiOpinions, OpinionFreshness]:
    """
    Reuse cached opinions while the data fingerprint is unchanged.

    Returns the opinions and the freshness of ``cached`` that decided it.
    """
    freshness = check_opinions_freshness(cached, snapshot)
    if freshness is OpinionFreshness.FRESH and cached is not None:
        logger.info("Reusing cached AI opinions")
        return cached, freshness

    logger.info(f"Generating AI opinions ({freshness.value})")
    return generate_ai_opinions(client, event_type, category, snapshot), freshness


def generate_ai_feedback(
    client: GeminiClient,
    entry: JournalEntry,
    actual: str,
    current_snapshot: DataSnapshot,
) -> str:
    """Mentor-style review of a recorded prediction against the outcome."""
    if not actual:
        raise ValueError("Missing actual result")

    prompt = build_feedback_prompt(entry, actual, current_snapshot, client.settings.ai_language)
    return client.generate(_user_message(prompt), error_message="Failed to generate AI feedback")


def generate_chat_reply(
    client: GeminiClient,
    messages: list[dict[str, str]],
    context: dict[str, Any],
) -> str:
    """
    Answer the latest chat turn with the market context as system prompt.

    Args:
        messages: Conversation as {"role": "user"|"assistant", "content": ...}
        context: Output of build_chat_context
    """
    if not messages:
        raise ValueError("Invalid messages format")
    if not context:
        raise ValueError("Context is required")

    system_prompt = build_chat_system_prompt(context, client.settings.ai_language)
    return client.generate(
        to_gemini_contents(messages),
        system_instruction=system_prompt,
        model=client.resolve_model(),
        try_fallbacks=True,
    )
