"""Gemini LLM client: classification over the Gemini REST API.

Endpoint: POST {GEMINI_BASE_URL}/models/{model}:generateContent
Auth: x-goog-api-key header
Output: JSON-only (responseMimeType=application/json)
"""
import logging
import time
from typing import Optional

import httpx

from config.settings import get_settings
from core.exceptions import ClassificationNetworkError, ServiceUnavailableError
from prompting.llm.interface import LLMClient, LLMRequest, LLMResponse

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class GeminiLLMClient(LLMClient):

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.base_url = (base_url or settings.GEMINI_BASE_URL).rstrip("/")
        self.temperature = settings.LLM_TEMPERATURE if temperature is None else temperature
        # Transport hook lets tests substitute httpx.MockTransport
        self._transport = transport
        if not self.api_key:
            raise ValueError("GEMINI_API_KEY is required for GeminiLLMClient")

    def _payload(self, request: LLMRequest) -> dict:
        return {
            "system_instruction": {"parts": [{"text": request.system_prompt}]},
            "contents": [{"role": "user", "parts": [{"text": request.user_message()}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "responseMimeType": "application/json",
            },
        }

    async def complete(self, request: LLMRequest) -> LLMResponse:
        url = f"{self.base_url}/models/{self.model}:generateContent"
        start = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as client:
                response = await client.post(
                    url,
                    json=self._payload(request),
                    headers={"x-goog-api-key": self.api_key, "Content-Type": "application/json"},
                )
        except httpx.HTTPError as e:
            logger.error("[LLM:GEMINI] transport failure: %s", type(e).__name__)
            raise ClassificationNetworkError(f"Gemini request failed: {type(e).__name__}") from e

        latency_ms = (time.monotonic() - start) * 1000
        if response.status_code in _RETRYABLE_STATUS:
            logger.warning("[LLM:GEMINI] unavailable status=%d latency=%.0fms", response.status_code, latency_ms)
            raise ServiceUnavailableError(f"Gemini returned HTTP {response.status_code}")
        if response.status_code >= 400:
            logger.error("[LLM:GEMINI] rejected status=%d body=%s", response.status_code, response.text[:200])
            raise ClassificationNetworkError(f"Gemini rejected request: HTTP {response.status_code}")

        text = _extract_text(response)
        logger.info("[LLM:GEMINI] model=%s latency=%.0fms chars=%d", self.model, latency_ms, len(text))
        return LLMResponse(text=text, latency_ms=latency_ms, model=self.model)

    async def is_healthy(self) -> bool:
        return bool(self.api_key)


def _extract_text(response: httpx.Response) -> str:
    """First candidate's text, or '' (which later fails reply validation)."""
    try:
        body = response.json()
        parts = body["candidates"][0]["content"]["parts"]
    except (ValueError, KeyError, IndexError, TypeError):
        logger.warning("[LLM:GEMINI] response had no candidate text")
        return ""
    return "".join(p.get("text", "") for p in parts if isinstance(p, dict))
