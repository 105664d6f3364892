"""Async completion provider for the Groq OpenAI-compatible chat API."""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

import httpx

from .base import (
    LLMMessage,
    LLMProvider,
    LLMProviderAPIError,
    LLMProviderAuthError,
    LLMProviderError,
    LLMProviderRateLimitError,
    LLMResponse,
)

DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"
CHAT_COMPLETIONS_PATH = "/chat/completions"


def _error_detail(response: httpx.Response) -> str:
    """Groq error bodies look like ``{"error": {"message": ...}}``."""
    try:
        body = response.json()
    except ValueError:
        return response.text
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return response.text


class GroqProvider(LLMProvider):
    """Groq chat completion provider."""

    name = "groq"

    def __init__(
        self,
        api_key: str,
        model: str = "llama-3.3-70b-versatile",
        *,
        base_url: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        **kwargs: Any,
    ) -> None:
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        super().__init__(api_key, model, transport=transport, **kwargs)

    def _setup_client(self, transport: httpx.AsyncBaseTransport | None = None, **kwargs: Any) -> None:
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
            headers={"Authorization": f"Bearer {self.api_key}", "Accept": "application/json"},
        )

    async def _complete(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self._client.post(CHAT_COMPLETIONS_PATH, json=payload)
        except httpx.RequestError as exc:
            raise LLMProviderAPIError(f"Groq request error: {exc}") from exc

        if response.status_code in (401, 403):
            raise LLMProviderAuthError(f"Groq authentication failed: {_error_detail(response)}")
        if response.status_code == 429:
            retry_after = response.headers.get("retry-after")
            hint = f" (retry after {retry_after}s)" if retry_after else ""
            raise LLMProviderRateLimitError(f"Groq rate limit exceeded{hint}")
        if response.is_error:
            raise LLMProviderAPIError(f"Groq API error ({response.status_code}): {_error_detail(response)}")

        try:
            return response.json()
        except ValueError as exc:
            raise LLMProviderAPIError(f"Groq returned invalid JSON: {exc}") from exc

    def _build_payload(
        self,
        messages: List[LLMMessage],
        max_tokens: Optional[int],
        temperature: Optional[float],
        extra: Dict[str, Any],
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [msg.model_dump() for msg in messages],
        }
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        if temperature is not None:
            payload["temperature"] = temperature
        payload.update({key: value for key, value in extra.items() if value is not None})
        return payload

    async def generate_response(
        self,
        messages: List[LLMMessage],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        start_time = time.time()
        data = await self._complete(self._build_payload(messages, max_tokens, temperature, kwargs))

        choices = data.get("choices") or []
        if not choices:
            raise LLMProviderError("Groq response missing choices")

        choice = choices[0]
        content = (choice.get("message") or {}).get("content") or ""
        usage = data.get("usage") or {}
        return self._create_response(
            content=content,
            tokens_used=usage.get("total_tokens"),
            finish_reason=choice.get("finish_reason"),
            response_time_ms=self._measure_time(start_time),
        )

    async def close(self) -> None:
        await self._client.aclose()
