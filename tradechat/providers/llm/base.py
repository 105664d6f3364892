from abc import ABC, abstractmethod
from typing import List, Dict, Any, Literal, Optional
from pydantic import BaseModel
import time
import logging

from ...core.errors import NetworkError


class LLMMessage(BaseModel):
    """One chat turn sent to a completion service."""
    role: Literal["system", "user", "assistant"]
    content: str

    @classmethod
    def system(cls, content: str) -> "LLMMessage":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "LLMMessage":
        return cls(role="user", content=content)


class LLMResponse(BaseModel):
    content: Optional[str] = None
    tokens_used: Optional[int] = None
    model: Optional[str] = None
    finish_reason: Optional[str] = None
    response_time_ms: Optional[float] = None


class LLMProviderError(NetworkError):
    """A completion service call failed."""

    def __init__(self, message: str):
        super().__init__(message, service="completion")


class LLMProviderRateLimitError(LLMProviderError):
    pass


class LLMProviderAuthError(LLMProviderError):
    pass


class LLMProviderAPIError(LLMProviderError):
    pass


class LLMProvider(ABC):
    """Completion service used for intent extraction and market commentary.

    Subclasses own their HTTP client (built in ``_setup_client``) and map
    transport and status failures onto the ``LLMProviderError`` family.
    Errors are never swallowed here; callers decide how to surface them.
    """

    name: str = "llm"

    def __init__(self, api_key: str, model: str, **kwargs):
        self.api_key = api_key
        self.model = model
        self.logger = logging.getLogger(f"tradechat.llm.{self.name}")
        self._setup_client(**kwargs)

    @abstractmethod
    def _setup_client(self, **kwargs) -> None:
        ...

    @abstractmethod
    async def generate_response(
        self,
        messages: List[LLMMessage],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        **kwargs
    ) -> LLMResponse:
        """Return the completion for ``messages``.

        Raises:
            LLMProviderAuthError: credentials rejected
            LLMProviderRateLimitError: request throttled
            LLMProviderAPIError: transport failure or unusable response
        """

    async def health_check(self) -> Dict[str, Any]:
        """Send a tiny completion and report healthy, degraded, or error."""
        status: Dict[str, Any] = {"provider": self.name, "model": self.model}
        try:
            response = await self.generate_response(
                [LLMMessage.user("ping")], max_tokens=4, temperature=0.0
            )
        except LLMProviderRateLimitError:
            status.update(status="degraded", error="rate_limited")
        except LLMProviderError as exc:
            self.logger.warning("Completion health check failed: %s", exc)
            status.update(status="error", error=str(exc))
        else:
            status.update(status="healthy", response_preview=(response.content or "")[:32])
        return status

    async def close(self) -> None:
        pass

    def _create_response(self, content: str, **metadata) -> LLMResponse:
        return LLMResponse(content=content, model=self.model, **metadata)

    def _measure_time(self, start_time: float) -> float:
        """Milliseconds since ``start_time``."""
        return (time.time() - start_time) * 1000
