"""Client for the Gemini generateContent REST API."""

import logging
from typing import Any

import httpx

from macro_dashboard.config import Settings


logger = logging.getLogger(__name__)


class AiServiceError(Exception):
    """Base exception for AI features."""


class AiGatewayError(AiServiceError):
    """Non-success HTTP status from the model API."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class AiTransportError(AiServiceError):
    """The model API could not be reached (timeout, connection failure)."""


class EmptyResponseError(AiServiceError):
    """The model API answered but returned no text."""


class AiResponseFormatError(AiServiceError):
    """The model text could not be parsed into the expected structure."""

    def __init__(self, message: str, content: str) -> None:
        super().__init__(message)
        self.content = content


def to_gemini_contents(messages: list[dict[str, str]]) -> list[dict[str, Any]]:
    """Convert role/content chat messages; anything not from the user is the model."""
    return [
        {
            "role": "user" if message.get("role") == "user" else "model",
            "parts": [{"text": message.get("content", "")}],
        }
        for message in messages
    ]


class GeminiClient:
    """Text generation through Gemini, with model discovery and fallback."""

    BASE_URL = "https://generativelanguage.googleapis.com"
    API_VERSION = "v1beta"

    GENERATION_CONFIG = {
        "temperature": 0.7,
        "topK": 40,
        "topP": 0.95,
    }

    # Tried in order when the configured model is not available
    PREFERRED_MODELS = (
        "gemini-2.5-flash",
        "gemini-2.5-flash-latest",
        "gemini-1.5-flash-latest",
        "gemini-1.5-pro-latest",
        "gemini-1.5-flash",
        "gemini-1.5-pro",
        "gemini-pro",
    )

    # (api version, model) retried after a 404
    FALLBACK_ATTEMPTS = (
        ("v1beta", "gemini-1.5-flash"),
        ("v1beta", "gemini-1.5-pro"),
        ("v1beta", "gemini-pro"),
        ("v1", "gemini-pro"),
    )

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.settings.validate_gemini()
        self._transport = transport
        self._client: httpx.Client | None = None
        self._available_models: list[str] | None = None

    @property
    def client(self) -> httpx.Client:
        """Lazy-initialize HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.BASE_URL,
                timeout=60.0,
                headers={"x-goog-api-key": self.settings.gemini_api_key},
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "GeminiClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def list_models(self) -> list[str]:
        """
        Models that support generateContent, cached for the client's lifetime.

        Returns an empty list when the listing fails.
        """
        if self._available_models is not None:
            return self._available_models

        try:
            response = self.client.get(f"/{self.API_VERSION}/models")
        except httpx.HTTPError as e:
            logger.warning(f"Failed to fetch available models: {e}")
            return []

        if response.status_code != 200:
            logger.warning(f"Failed to fetch models list: {response.status_code} {response.text}")
            return []

        try:
            listed = response.json().get("models", [])
        except (ValueError, AttributeError):
            logger.warning(f"Unreadable models list: {response.text}")
            return []

        models = []
        for model in listed:
            if "generateContent" not in (model.get("supportedGenerationMethods") or []):
                continue
            name = (model.get("name") or "").replace("models/", "")
            if name:
                models.append(name)

        self._available_models = models
        return models

    def resolve_model(self) -> str:
        """Configured model if available, else the first preferred one, else any."""
        configured = self.settings.gemini_model
        available = self.list_models()

        if not available:
            return configured

        if configured in available:
            return configured
        for preferred in self.PREFERRED_MODELS:
            if preferred in available:
                return preferred
        return available[0]

    def _post(
        self, version: str, model: str, contents: list[dict], system_instruction: str | None
    ) -> httpx.Response:
        body: dict[str, Any] = {
            "contents": contents,
            "generationConfig": self.GENERATION_CONFIG,
        }
        if system_instruction:
            body["systemInstruction"] = {"parts": [{"text": system_instruction}]}

        try:
            return self.client.post(f"/{version}/models/{model}:generateContent", json=body)
        except httpx.HTTPError as e:
            logger.error(f"Gemini API request failed: {e}")
            raise AiTransportError(f"Could not reach the AI service: {e}") from e

    @staticmethod
    def _error_message(response: httpx.Response, default: str) -> str:
        """Upstream error.message when the body carries one."""
        try:
            error = response.json().get("error") or {}
        except (ValueError, AttributeError):
            logger.error(f"Gemini API error (raw): {response.text}")
            return default
        message = error.get("message") if isinstance(error, dict) else None
        return message or default

    @staticmethod
    def _extract_text(data: dict[str, Any]) -> str | None:
        candidates = data.get("candidates") or []
        if not candidates:
            return None

        candidate = candidates[0]
        content = candidate.get("content") or {}
        parts = content.get("parts") or []

        if candidate.get("finishReason") == "MAX_TOKENS":
            logger.warning("Response was truncated due to MAX_TOKENS limit")

        if parts:
            return parts[0].get("text")
        return content.get("text")

    def generate(
        self,
        contents: list[dict[str, Any]],
        system_instruction: str | None = None,
        model: str | None = None,
        try_fallbacks: bool = False,
        error_message: str = "Failed to get response from AI",
    ) -> str:
        """
        Run generateContent and return the text of the first candidate.

        Args:
            contents: Gemini contents (role + parts)
            system_instruction: Optional system prompt
            model: Model name; defaults to the configured model
            try_fallbacks: Retry FALLBACK_ATTEMPTS when the model is not found
            error_message: Reported when the upstream error has no message

        Raises:
            AiGatewayError: Non-success status
            AiTransportError: The request never got a response
            EmptyResponseError: No text in the response
            AiResponseFormatError: The body is not JSON
        """
        model = model or self.settings.gemini_model
        logger.info(f"Using Gemini model: {model}")

        response = self._post(self.API_VERSION, model, contents, system_instruction)

        if response.status_code == 404 and try_fallbacks:
            logger.warning(f"Model {model!r} not found in {self.API_VERSION}, trying alternatives")
            for version, fallback in self.FALLBACK_ATTEMPTS:
                if (version, fallback) == (self.API_VERSION, model):
                    continue
                response = self._post(version, fallback, contents, system_instruction)
                if response.is_success:
                    logger.info(f"Using fallback model {fallback} ({version})")
                    model = fallback
                    break

        if not response.is_success:
            message = self._error_message(response, error_message)
            if response.status_code == 404 and "not found" in message:
                message = (
                    f'Model "{model}" not found. Check available models at '
                    "https://ai.google.dev/models or set GEMINI_MODEL."
                )
            logger.error(f"Gemini API error {response.status_code}: {message}")
            raise AiGatewayError(response.status_code, message)

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Gemini API returned a non-JSON body: {response.text}")
            raise AiResponseFormatError("AI service returned a malformed response", response.text) from e
        if not isinstance(data, dict):
            raise AiResponseFormatError("AI service returned a malformed response", response.text)

        text = self._extract_text(data)
        if not text:
            logger.error(f"Unexpected Gemini API response: {response.text}")
            raise EmptyResponseError("No content in response")

        logger.debug(f"Received {len(text)} characters from {model}")
        return text
