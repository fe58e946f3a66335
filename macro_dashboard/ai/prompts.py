"""Prompt templates for chat, opinions and prediction feedback."""

import json
from typing import Any

from macro_dashboard.models.journal import JournalEntry, PredictionCategory
from macro_dashboard.models.market_data import DataSnapshot


CHAT_SYSTEM_PROMPT = """You are a macroeconomic investment advisor assistant specializing in data-driven analysis.

Base your analysis on numerical data interpretation, prioritizing objective analysis over the user's intent. Present multiple scenarios based on different numerical interpretations rather than following the user's subjective expectations.

You have access to the following real-time market data:
{context}

GUIDELINES:
1. Always answer; base the analysis on the data provided and relevant political and economic information you can recall
2. Always cite specific numbers as evidence (e.g. "10Y Treasury: 4.19%", "Yield Spread: 0.70%")
3. The data is structured as currentData (treasury2y, treasury10y, fedFundsRate, cpi, cpiYoY, nonfarmPayroll, vix, sp500, hySpread, sahmRule, unemployment) and derived (yieldSpread, realRate); null means unavailable
4. Explain what the indicators typically suggest based on historical patterns
5. Note unusual patterns or divergences between indicators
6. Present bullish and bearish interpretations when the data allows both
7. Do NOT make specific buy/sell recommendations
8. Respond in {language}, informative but concise (max 800 words)"""


OPINIONS_PROMPT = """You are a macroeconomic analyst. Generate 3 different perspectives on the upcoming {event_type}.

Current Market Data:
{snapshot}

Category: {category_label}

GUIDELINES:
1. Consider the latest U.S. economic trends and news that could impact the outcome, including policy announcements, Fed statements, economic reports and geopolitical events.
2. Look at the complete picture. Do not cherry-pick indicators that support one view; acknowledge conflicting signals and explain how they balance out.
3. Be detailed: explain how each data point leads to the conclusion, include historical context, and address counterarguments.

Generate exactly 3 opinions representing different viewpoints:
{stances}

For each opinion provide:
- title: Short title ({language})
- summary: 2-3 sentence summary ({language})
- reasoning: Detailed reasoning with specific data references and recent developments ({language})
- keyIndicators: Array of 2-3 key indicators used (format: "Name: Value")

Respond in JSON format:
{{
  "bullish": {{ "title": "", "summary": "", "reasoning": "", "keyIndicators": [] }},
  "neutral": {{ "title": "", "summary": "", "reasoning": "", "keyIndicators": [] }},
  "bearish": {{ "title": "", "summary": "", "reasoning": "", "keyIndicators": [] }}
}}

Be objective and balanced. Each opinion should be plausible given all of the data."""


RATE_STANCES = """1. BULLISH (Rate Hike): Arguments for raising rates
2. NEUTRAL (Hold): Arguments for keeping rates unchanged
3. BEARISH (Rate Cut): Arguments for cutting rates"""

SP500_STANCES = """1. BULLISH (Up): Arguments for the market going up
2. NEUTRAL: Arguments for sideways movement
3. BEARISH (Down): Arguments for the market going down"""


FEEDBACK_PROMPT = """You are a macroeconomic mentor reviewing a student's prediction.

Event: {event_title}
Category: {category_label}

Student's Prediction: {prediction}
Actual Result: {actual}
Prediction Correct: {correct}

Student's Memo:
{memo}

Data at Prediction Time ({before_timestamp}):
{before}

Data After Result ({after_timestamp}):
{after}

Provide feedback in {language}:
1. Whether the prediction was correct
2. What the student did well (specific points)
3. What could be improved (specific points)
4. Suggestions for the next similar event

Be constructive and educational. Reference specific data points.
Keep the feedback concise but actionable."""


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def build_chat_system_prompt(context: dict[str, Any], language: str) -> str:
    return CHAT_SYSTEM_PROMPT.format(context=_dump(context), language=language)


def build_opinions_prompt(
    event_type: str,
    category: PredictionCategory,
    snapshot: DataSnapshot,
    language: str,
) -> str:
    is_rate = category is PredictionCategory.RATE
    return OPINIONS_PROMPT.format(
        event_type=event_type,
        snapshot=_dump(snapshot.to_dict()),
        category_label="Interest Rate Decision" if is_rate else "S&P 500 Direction",
        stances=RATE_STANCES if is_rate else SP500_STANCES,
        language=language,
    )


def build_feedback_prompt(
    entry: JournalEntry,
    actual: str,
    current_snapshot: DataSnapshot,
    language: str,
) -> str:
    return FEEDBACK_PROMPT.format(
        event_title=entry.event_title,
        category_label=(
            "Interest Rate" if entry.category is PredictionCategory.RATE else "S&P 500"
        ),
        prediction=entry.prediction,
        actual=actual,
        correct="Yes" if entry.prediction == actual else "No",
        memo=entry.memo,
        before_timestamp=entry.snapshot.timestamp,
        before=_dump(entry.snapshot.to_dict()),
        after_timestamp=current_snapshot.timestamp,
        after=_dump(current_snapshot.to_dict()),
        language=language,
    )
