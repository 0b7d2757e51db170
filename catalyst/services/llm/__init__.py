"""LLM provider factory."""

from catalyst.core.config import settings
from catalyst.services.llm.base import BaseLLMProvider


def get_llm_provider() -> BaseLLMProvider:
    """Factory function that returns the configured LLM provider."""
    if settings.llm_provider == "gemini":
        from catalyst.services.llm.gemini import GeminiProvider
        return GeminiProvider()
    elif settings.llm_provider == "catalyst":
        from catalyst.services.llm.catalyst import CatalystProvider
        return CatalystProvider()
    else:
        raise ValueError(f"Unknown LLM provider: {settings.llm_provider}")
