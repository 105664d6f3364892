from typing import Dict, Type, Optional

from .base import (
    LLMProvider,
    LLMMessage,
    LLMResponse,
    LLMProviderError,
    LLMProviderAPIError,
    LLMProviderAuthError,
    LLMProviderRateLimitError,
)
from .anthropic import AnthropicProvider
from .groq import GroqProvider

PROVIDER_ALIAS_MAP: Dict[str, str] = {
    "claude": "anthropic",
}

# Registry of available LLM providers
PROVIDER_REGISTRY: Dict[str, Type[LLMProvider]] = {
    "anthropic": AnthropicProvider,
    "groq": GroqProvider,
}


def canonical_provider_name(name: str) -> str:
    """Normalize provider aliases to their canonical identifier."""

    return PROVIDER_ALIAS_MAP.get(name.lower(), name.lower())


def get_llm_provider(settings, provider_name: Optional[str] = None, **kwargs) -> LLMProvider:
    """Instantiate the configured completion provider.

    Raises:
        ValueError: unknown provider or no API key configured for it
    """
    resolved = canonical_provider_name((provider_name or settings.llm_provider).strip())
    if resolved not in PROVIDER_REGISTRY:
        available = ", ".join(PROVIDER_REGISTRY.keys())
        raise ValueError(f"Unsupported provider '{resolved}'. Available providers: {available}")

    if resolved == "groq":
        if not settings.has_groq_key:
            raise ValueError("No API key configured for provider: groq")
        return GroqProvider(
            api_key=settings.groq_api_key,
            model=settings.llm_model,
            base_url=settings.groq_base_url,
            timeout=settings.llm_timeout_seconds,
            **kwargs,
        )

    if not settings.has_anthropic_key:
        raise ValueError("No API key configured for provider: anthropic")
    return AnthropicProvider(
        api_key=settings.anthropic_api_key,
        model=settings.llm_model,
        timeout=settings.llm_timeout_seconds,
        **kwargs,
    )


__all__ = [
    "LLMProvider",
    "LLMMessage",
    "LLMResponse",
    "LLMProviderError",
    "LLMProviderAPIError",
    "LLMProviderAuthError",
    "LLMProviderRateLimitError",
    "AnthropicProvider",
    "GroqProvider",
    "PROVIDER_REGISTRY",
    "canonical_provider_name",
    "get_llm_provider",
]
