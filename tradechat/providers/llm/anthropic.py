from typing import List, Dict, Any, Optional
import time

import anthropic
from anthropic import AsyncAnthropic

from .base import (
    LLMProvider, LLMMessage, LLMResponse,
    LLMProviderAPIError, LLMProviderAuthError, LLMProviderRateLimitError,
)


class AnthropicProvider(LLMProvider):
    """Anthropic Claude LLM Provider implementation"""

    name = "anthropic"

    def __init__(self, api_key: str, model: Optional[str] = None, **kwargs):
        if not model:
            raise ValueError("AnthropicProvider requires a model to be specified")

        super().__init__(api_key, model, **kwargs)

    def _setup_client(self, timeout: Optional[float] = None, **kwargs) -> None:
        """Initialize the Anthropic client"""
        client_kwargs: Dict[str, Any] = {"api_key": self.api_key}
        if timeout is not None:
            client_kwargs["timeout"] = timeout
        self.client = AsyncAnthropic(**client_kwargs)

    async def generate_response(
        self,
        messages: List[LLMMessage],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        **kwargs
    ) -> LLMResponse:
        """Generate a response from Claude"""
        start_time = time.time()

        # System messages are sent separately; several are joined in order
        system_parts = [msg.content for msg in messages if msg.role == "system"]
        anthropic_messages = [
            {"role": msg.role, "content": msg.content}
            for msg in messages
            if msg.role != "system"
        ]

        request_params: Dict[str, Any] = {
            "model": self.model,
            "messages": anthropic_messages,
            "max_tokens": max_tokens or 1000,
        }
        if system_parts:
            request_params["system"] = "\n\n".join(system_parts)
        if temperature is not None:
            request_params["temperature"] = temperature
        request_params.update(kwargs)

        try:
            response = await self.client.messages.create(**request_params)
        except anthropic.AuthenticationError as e:
            self.logger.error("Anthropic authentication failed: %s", e)
            raise LLMProviderAuthError(f"Authentication failed: {e}") from e
        except anthropic.RateLimitError as e:
            raise LLMProviderRateLimitError(f"Rate limit exceeded: {e}") from e
        except anthropic.APIError as e:
            self.logger.error("Anthropic API error: %s", e)
            raise LLMProviderAPIError(f"API error: {e}") from e

        content = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )

        return self._create_response(
            content=content,
            tokens_used=response.usage.output_tokens if response.usage else None,
            finish_reason=response.stop_reason,
            response_time_ms=self._measure_time(start_time),
        )

    async def close(self) -> None:
        await self.client.close()
