"""Provider priority chain: the first provider that answers in time wins."""
from __future__ import annotations

import asyncio
import json

import httpx

from fitplan.core.exceptions import LLMUnavailableError
from fitplan.core.logging import get_logger
from fitplan.core.metrics import llm_requests_total
from fitplan.llm.base import LLMConfig, LLMProvider, LLMResponse, Message

logger = get_logger(__name__)

# Failures that move the chain on to the next provider
PROVIDER_ERRORS = (asyncio.TimeoutError, httpx.HTTPError, json.JSONDecodeError, KeyError)


class FallbackLLMProvider(LLMProvider):
    """Tries each provider in order, bounding every attempt by ``timeout_seconds``.

    Providers exposing ``is_configured = False`` (no API key) are skipped
    without a request.
    """

    name = "fallback"

    def __init__(self, providers: list[LLMProvider], timeout_seconds: float = 45.0):
        if not providers:
            raise ValueError("FallbackLLMProvider needs at least one provider")
        self.providers = list(providers)
        self.timeout_seconds = timeout_seconds

    def _available(self) -> list[LLMProvider]:
        return [p for p in self.providers if getattr(p, "is_configured", True)]

    async def chat(self, messages: list[Message], config: LLMConfig) -> LLMResponse:
        attempted: list[dict[str, str]] = []

        for provider in self._available():
            try:
                response = await asyncio.wait_for(
                    provider.chat(messages, config),
                    timeout=self.timeout_seconds,
                )
            except PROVIDER_ERRORS as e:
                outcome = "timeout" if isinstance(e, asyncio.TimeoutError) else "error"
                llm_requests_total.labels(
                    provider=provider.name, stage=config.stage, outcome=outcome
                ).inc()
                logger.warning(
                    "llm_provider_failed",
                    provider=provider.name,
                    stage=config.stage,
                    outcome=outcome,
                    error=str(e) or type(e).__name__,
                )
                attempted.append({"provider": provider.name, "outcome": outcome})
                continue

            llm_requests_total.labels(
                provider=provider.name, stage=config.stage, outcome="success"
            ).inc()
            logger.info(
                "llm_provider_succeeded",
                provider=provider.name,
                stage=config.stage,
                content_length=len(response.content),
            )
            if response.provider is None:
                response.provider = provider.name
            return response

        if not attempted:
            raise LLMUnavailableError("No LLM providers are configured")
        raise LLMUnavailableError(
            f"All LLM providers failed for stage {config.stage}",
            {"attempted": attempted},
        )

    async def health_check(self) -> bool:
        for provider in self._available():
            if await provider.health_check():
                return True
        return False

    async def provider_health(self) -> dict[str, bool]:
        """Health of every provider in priority order."""
        return {p.name: await p.health_check() for p in self.providers}

    async def close(self) -> None:
        for provider in self.providers:
            await provider.close()
