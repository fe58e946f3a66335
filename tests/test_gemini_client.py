import json

import httpx
import pytest

from macro_dashboard.ai.gemini_client import (
    AiGatewayError,
    AiResponseFormatError,
    AiServiceError,
    AiTransportError,
    EmptyResponseError,
    GeminiClient,
    to_gemini_contents,
)
from macro_dashboard.config import Settings


CONTENTS = [{"role": "user", "parts": [{"text": "hello"}]}]


def text_response(text: str, finish_reason: str = "STOP") -> httpx.Response:
    return httpx.Response(200, json={
        "candidates": [{"content": {"parts": [{"text": text}]}, "finishReason": finish_reason}]
    })


def models_response(*names: str, extra: tuple[str, ...] = ()) -> httpx.Response:
    models = [
        {"name": f"models/{name}", "supportedGenerationMethods": ["generateContent"]}
        for name in names
    ]
    models += [
        {"name": f"models/{name}", "supportedGenerationMethods": ["embedContent"]}
        for name in extra
    ]
    return httpx.Response(200, json={"models": models})


def make_client(settings, handler) -> GeminiClient:
    return GeminiClient(settings, transport=httpx.MockTransport(handler))


def test_requires_api_key(tmp_path):
    with pytest.raises(ValueError, match="GEMINI_API_KEY"):
        GeminiClient(Settings(gemini_api_key="", data_dir=tmp_path))


def test_to_gemini_contents():
    contents = to_gemini_contents([
        {"role": "user", "content": "What about CPI?"},
        {"role": "assistant", "content": "It is cooling."},
    ])
    assert contents == [
        {"role": "user", "parts": [{"text": "What about CPI?"}]},
        {"role": "model", "parts": [{"text": "It is cooling."}]},
    ]


class TestGenerate:
    def test_success(self, settings):
        seen = []

        def handler(request):
            seen.append(request)
            return text_response("Rates look restrictive.")

        with make_client(settings, handler) as client:
            text = client.generate(CONTENTS, system_instruction="Be brief")

        assert text == "Rates look restrictive."
        request = seen[0]
        assert request.url.path == "/v1beta/models/gemini-2.5-flash:generateContent"
        assert request.headers["x-goog-api-key"] == "test-gemini-key"
        assert "key" not in request.url.params
        body = json.loads(request.content)
        assert body["contents"] == CONTENTS
        assert body["generationConfig"]["temperature"] == 0.7
        assert body["systemInstruction"] == {"parts": [{"text": "Be brief"}]}

    def test_no_system_instruction(self, settings):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return text_response("ok")

        make_client(settings, handler).generate(CONTENTS)
        assert "systemInstruction" not in seen[0]

    def test_truncated_response_still_returns_text(self, settings):
        client = make_client(settings, lambda request: text_response("partial", "MAX_TOKENS"))
        assert client.generate(CONTENTS) == "partial"

    def test_content_text_fallback(self, settings):
        def handler(request):
            return httpx.Response(200, json={"candidates": [{"content": {"text": "flat"}}]})

        assert make_client(settings, handler).generate(CONTENTS) == "flat"

    def test_upstream_error_message(self, settings):
        def handler(request):
            return httpx.Response(400, json={"error": {"message": "API key not valid"}})

        with pytest.raises(AiGatewayError) as exc_info:
            make_client(settings, handler).generate(CONTENTS)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "API key not valid"

    def test_non_json_error_uses_default(self, settings):
        def handler(request):
            return httpx.Response(502, text="Bad Gateway")

        with pytest.raises(AiGatewayError) as exc_info:
            make_client(settings, handler).generate(CONTENTS, error_message="Failed to generate AI opinions")

        assert exc_info.value.status_code == 502
        assert exc_info.value.message == "Failed to generate AI opinions"

    def test_non_json_success_body(self, settings):
        client = make_client(settings, lambda request: httpx.Response(200, text="<html>oops"))

        with pytest.raises(AiResponseFormatError) as exc_info:
            client.generate(CONTENTS)

        assert exc_info.value.content == "<html>oops"

    def test_non_object_success_body(self, settings):
        client = make_client(settings, lambda request: httpx.Response(200, json=["candidates"]))
        with pytest.raises(AiResponseFormatError):
            client.generate(CONTENTS)

    def test_timeout(self, settings):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(AiTransportError, match="timed out"):
            make_client(settings, handler).generate(CONTENTS)

    def test_connection_error_during_fallback(self, settings):
        def handler(request):
            if "gemini-2.5-flash" in request.url.path:
                return httpx.Response(404, json={"error": {"message": "not found"}})
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(AiServiceError):
            make_client(settings, handler).generate(CONTENTS, try_fallbacks=True)

    def test_empty_candidates(self, settings):
        def handler(request):
            return httpx.Response(200, json={"candidates": []})

        with pytest.raises(EmptyResponseError):
            make_client(settings, handler).generate(CONTENTS)

    def test_model_not_found(self, settings):
        def handler(request):
            return httpx.Response(404, json={"error": {"message": "models/x is not found"}})

        with pytest.raises(AiGatewayError) as exc_info:
            make_client(settings, handler).generate(CONTENTS)

        assert exc_info.value.status_code == 404
        assert 'Model "gemini-2.5-flash" not found' in exc_info.value.message

    def test_fallback_after_not_found(self, settings):
        paths = []

        def handler(request):
            paths.append(request.url.path)
            if "gemini-1.5-pro" in request.url.path:
                return text_response("from fallback")
            return httpx.Response(404, json={"error": {"message": "not found"}})

        text = make_client(settings, handler).generate(CONTENTS, try_fallbacks=True)

        assert text == "from fallback"
        assert paths == [
            "/v1beta/models/gemini-2.5-flash:generateContent",
            "/v1beta/models/gemini-1.5-flash:generateContent",
            "/v1beta/models/gemini-1.5-pro:generateContent",
        ]

    def test_fallbacks_exhausted(self, settings):
        def handler(request):
            return httpx.Response(404, json={"error": {"message": "gone"}})

        with pytest.raises(AiGatewayError) as exc_info:
            make_client(settings, handler).generate(CONTENTS, try_fallbacks=True)

        assert exc_info.value.status_code == 404


class TestModels:
    def test_list_models_filters_and_caches(self, settings):
        calls = []

        def handler(request):
            calls.append(request.url.path)
            return models_response("gemini-2.5-flash", "gemini-pro", extra=("text-embedding-004",))

        client = make_client(settings, handler)

        assert client.list_models() == ["gemini-2.5-flash", "gemini-pro"]
        assert client.list_models() == ["gemini-2.5-flash", "gemini-pro"]
        assert calls == ["/v1beta/models"]

    def test_list_models_failure_is_empty(self, settings):
        client = make_client(settings, lambda request: httpx.Response(500, text="oops"))
        assert client.list_models() == []

    def test_list_models_transport_error_is_empty(self, settings):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        assert make_client(settings, handler).list_models() == []

    def test_list_models_non_json_is_empty(self, settings):
        client = make_client(settings, lambda request: httpx.Response(200, text="not json"))
        assert client.list_models() == []

    def test_resolve_configured_model(self, settings):
        client = make_client(settings, lambda request: models_response("gemini-pro", "gemini-2.5-flash"))
        assert client.resolve_model() == "gemini-2.5-flash"

    def test_resolve_preferred_model(self, settings):
        client = make_client(settings, lambda request: models_response("gemini-pro", "gemini-1.5-pro"))
        assert client.resolve_model() == "gemini-1.5-pro"

    def test_resolve_first_available(self, settings):
        client = make_client(settings, lambda request: models_response("gemini-exp-1206"))
        assert client.resolve_model() == "gemini-exp-1206"

    def test_resolve_without_listing(self, settings):
        client = make_client(settings, lambda request: httpx.Response(403))
        assert client.resolve_model() == "gemini-2.5-flash"
