"""Model clients: mock classifier, Gemini over httpx.MockTransport, gateway and reply schema."""
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import json
from types import SimpleNamespace

import httpx
import pytest

from core.exceptions import (
    ClassificationNetworkError,
    InvalidModelResponseError,
    ServiceUnavailableError,
)
from intent.models import IntentType
from prompting import llm_gateway
from prompting.llm.gemini import GeminiLLMClient
from prompting.llm.interface import LLMRequest
from prompting.llm.mock import MockLLMClient, mock_classify
from prompting.personality import PERSONA_NAME, build_classification_prompt
from schemas.llm import parse_model_reply


def _request(user_input="what club should I hit", context_block=""):
    return LLMRequest(system_prompt="classify", context_block=context_block, user_input=user_input)


def _gemini(handler):
    return GeminiLLMClient(
        api_key="test-key",
        model="gemini-test",
        base_url="https://gemini.test/v1beta",
        temperature=0.0,
        transport=httpx.MockTransport(handler),
    )


def _candidate(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


# ══════════════════════════════════════════════════════════════════════════
#  Mock client
# ══════════════════════════════════════════════════════════════════════════
class TestMockClient:

    def test_shot_question(self):
        reply = mock_classify("what club should I hit")
        assert reply["intent_type"] == "SHOT_RECOMMENDATION"
        assert reply["confidence"] >= 0.75

    def test_entities(self):
        reply = mock_classify("7-iron from 150 yards in the rough on hole 7 and my back hurts")
        assert reply["entities"]["club"] == "7-iron"
        assert reply["entities"]["yardage"] == 150
        assert reply["entities"]["hole_number"] == 7
        assert reply["entities"]["lie"] == "rough"
        assert reply["entities"]["pain"] is True

    def test_no_match_is_low_confidence_help(self):
        reply = mock_classify("zzz")
        assert reply["intent_type"] == "HELP_REQUEST"
        assert reply["confidence"] < 0.5

    @pytest.mark.asyncio
    async def test_reply_passes_schema(self):
        response = await MockLLMClient().complete(_request())
        reply = parse_model_reply(response.text)
        assert reply.intent_type is IntentType.SHOT_RECOMMENDATION
        assert response.model == "mock"
        assert await MockLLMClient().is_healthy()


# ══════════════════════════════════════════════════════════════════════════
#  Gemini client
# ══════════════════════════════════════════════════════════════════════════
class TestGeminiClient:

    @pytest.mark.asyncio
    async def test_request_shape_and_text(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["key"] = request.headers.get("x-goog-api-key")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_candidate('{"intent_type": "HELP_REQUEST", "confidence": 0.9}'))

        response = await _gemini(handler).complete(_request(context_block="## Current Context"))

        assert seen["url"] == "https://gemini.test/v1beta/models/gemini-test:generateContent"
        assert seen["key"] == "test-key"
        assert seen["body"]["system_instruction"]["parts"][0]["text"] == "classify"
        user_text = seen["body"]["contents"][0]["parts"][0]["text"]
        assert user_text.startswith("## Current Context")
        assert user_text.endswith("User input: what club should I hit")
        assert seen["body"]["generationConfig"]["responseMimeType"] == "application/json"
        assert parse_model_reply(response.text).intent_type is IntentType.HELP_REQUEST
        assert response.model == "gemini-test"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [429, 500, 503])
    async def test_unavailable(self, status):
        client = _gemini(lambda request: httpx.Response(status, json={}))
        with pytest.raises(ServiceUnavailableError):
            await client.complete(_request())

    @pytest.mark.asyncio
    async def test_rejected(self):
        client = _gemini(lambda request: httpx.Response(400, json={"error": "bad"}))
        with pytest.raises(ClassificationNetworkError):
            await client.complete(_request())

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ClassificationNetworkError):
            await _gemini(handler).complete(_request())

    @pytest.mark.asyncio
    async def test_missing_candidates_gives_empty_text(self):
        client = _gemini(lambda request: httpx.Response(200, json={"candidates": []}))
        response = await client.complete(_request())
        assert response.text == ""
        with pytest.raises(InvalidModelResponseError):
            parse_model_reply(response.text)

    def test_requires_key(self):
        with pytest.raises(ValueError, match="GEMINI_API_KEY"):
            GeminiLLMClient(api_key="", model="m", base_url="https://x", temperature=0.0)


# ══════════════════════════════════════════════════════════════════════════
#  Gateway and prompt
# ══════════════════════════════════════════════════════════════════════════
class TestGateway:

    def test_mock_flag_selects_mock(self, monkeypatch):
        monkeypatch.setattr(llm_gateway, "is_mock_llm", lambda: True)
        llm_gateway.reset_llm_client()
        try:
            client = llm_gateway.get_llm_client()
            assert isinstance(client, MockLLMClient)
            assert llm_gateway.get_llm_client() is client
        finally:
            llm_gateway.reset_llm_client()

    def test_real_client_when_mock_off(self, monkeypatch):
        monkeypatch.setattr(llm_gateway, "is_mock_llm", lambda: False)
        settings = SimpleNamespace(
            GEMINI_API_KEY="k", GEMINI_MODEL="gemini-test",
            GEMINI_BASE_URL="https://gemini.test", LLM_TEMPERATURE=0.1,
        )
        monkeypatch.setattr("prompting.llm.gemini.get_settings", lambda: settings)
        llm_gateway.reset_llm_client()
        try:
            assert isinstance(llm_gateway.get_llm_client(), GeminiLLMClient)
        finally:
            llm_gateway.reset_llm_client()

    def test_classification_prompt(self):
        prompt = build_classification_prompt()
        assert PERSONA_NAME in prompt
        for intent_type in IntentType:
            assert intent_type.value in prompt
