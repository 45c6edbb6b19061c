"""LLM adapter package."""
from fitplan.llm.base import (
    LLMProvider,
    LLMConfig,
    LLMResponse,
    Message,
)
from fitplan.llm.schemas import (
    ANALYSIS_SCHEMA,
    BLUEPRINT_SCHEMA,
)

__all__ = [
    "LLMProvider",
    "LLMConfig",
    "LLMResponse",
    "Message",
    "ANALYSIS_SCHEMA",
    "BLUEPRINT_SCHEMA",
    "get_llm_provider",
    "cleanup_llm_provider",
]


# Module-level singleton instance
_provider_instance: LLMProvider | None = None


def get_llm_provider() -> LLMProvider:
    """
    Get the singleton LLM provider instance.

    Builds one OpenAI-compatible provider per name in
    ``settings.llm_provider_priority`` and wraps them in a fallback chain.
    Reusing the instance keeps HTTP connections pooled.
    """
    global _provider_instance

    if _provider_instance is not None:
        return _provider_instance

    from fitplan.config.settings import get_settings
    from fitplan.llm.fallback import FallbackLLMProvider
    from fitplan.llm.openai_provider import OpenAIProvider

    settings = get_settings()
    providers = [OpenAIProvider.from_settings(name) for name in settings.provider_priority]
    _provider_instance = FallbackLLMProvider(providers, timeout_seconds=settings.llm_timeout_seconds)

    return _provider_instance


async def cleanup_llm_provider():
    """
    Clean up the LLM provider singleton.

    Closes HTTP connections; called during application shutdown.
    """
    global _provider_instance

    if _provider_instance is not None:
        await _provider_instance.close()
        _provider_instance = None
