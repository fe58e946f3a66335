"""AI commentary through the Gemini API."""

from .gemini_client import (
    AiGatewayError,
    AiResponseFormatError,
    AiServiceError,
    AiTransportError,
    EmptyResponseError,
    GeminiClient,
)
from .service import (
    generate_ai_feedback,
    generate_ai_opinions,
    generate_chat_reply,
    get_or_generate_opinions,
    parse_opinions,
)

__all__ = [
    "AiGatewayError",
    "AiResponseFormatError",
    "AiServiceError",
    "AiTransportError",
    "EmptyResponseError",
    "GeminiClient",
    "generate_ai_feedback",
    "generate_ai_opinions",
    "generate_chat_reply",
    "get_or_generate_opinions",
    "parse_opinions",
]
