"""Tests for the provider fallback chain."""
import asyncio

import httpx
import pytest

from fitplan.core.exceptions import LLMUnavailableError
from fitplan.llm.base import LLMConfig, LLMProvider, LLMResponse, Message
from fitplan.llm.fallback import FallbackLLMProvider


class StubProvider(LLMProvider):
    def __init__(self, name, reply="{}", error=None, delay=0.0, configured=True, healthy=True):
        self.name = name
        self.reply = reply
        self.error = error
        self.delay = delay
        self.is_configured = configured
        self.healthy = healthy
        self.calls = 0
        self.closed = False

    async def chat(self, messages, config):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return LLMResponse(content=self.reply)

    async def health_check(self):
        return self.healthy

    async def close(self):
        self.closed = True


MESSAGES = [Message(role="user", content="hello")]


class TestFallbackChat:
    """Tests for FallbackLLMProvider.chat."""

    @pytest.mark.asyncio
    async def test_first_provider_wins(self):
        primary = StubProvider("primary", reply='{"ok": true}')
        secondary = StubProvider("secondary")
        chain = FallbackLLMProvider([primary, secondary])

        response = await chain.chat(MESSAGES, LLMConfig(stage="analysis"))

        assert response.content == '{"ok": true}'
        assert response.provider == "primary"
        assert secondary.calls == 0

    @pytest.mark.asyncio
    async def test_http_error_falls_through(self):
        primary = StubProvider("primary", error=httpx.ConnectError("connection refused"))
        secondary = StubProvider("secondary", reply="fallback")
        chain = FallbackLLMProvider([primary, secondary])

        response = await chain.chat(MESSAGES, LLMConfig())

        assert response.provider == "secondary"
        assert primary.calls == 1

    @pytest.mark.asyncio
    async def test_timeout_falls_through(self):
        slow = StubProvider("slow", delay=1.0)
        fast = StubProvider("fast", reply="quick")
        chain = FallbackLLMProvider([slow, fast], timeout_seconds=0.05)

        response = await chain.chat(MESSAGES, LLMConfig())

        assert response.content == "quick"

    @pytest.mark.asyncio
    async def test_unconfigured_providers_are_skipped(self):
        missing_key = StubProvider("openai", configured=False)
        local = StubProvider("ollama", reply="local")
        chain = FallbackLLMProvider([missing_key, local])

        response = await chain.chat(MESSAGES, LLMConfig())

        assert response.provider == "ollama"
        assert missing_key.calls == 0

    @pytest.mark.asyncio
    async def test_all_failing_raises_unavailable(self):
        chain = FallbackLLMProvider(
            [
                StubProvider("a", error=httpx.ReadTimeout("read timed out")),
                StubProvider("b", delay=1.0),
            ],
            timeout_seconds=0.05,
        )
        with pytest.raises(LLMUnavailableError) as exc_info:
            await chain.chat(MESSAGES, LLMConfig(stage="blueprint"))
        assert exc_info.value.details["attempted"] == [
            {"provider": "a", "outcome": "error"},
            {"provider": "b", "outcome": "timeout"},
        ]

    @pytest.mark.asyncio
    async def test_nothing_configured_raises_unavailable(self):
        chain = FallbackLLMProvider([StubProvider("a", configured=False)])
        with pytest.raises(LLMUnavailableError) as exc_info:
            await chain.chat(MESSAGES, LLMConfig())
        assert exc_info.value.message == "No LLM providers are configured"

    def test_empty_chain_is_rejected(self):
        with pytest.raises(ValueError):
            FallbackLLMProvider([])


class TestFallbackHealth:
    """Tests for health reporting and shutdown."""

    @pytest.mark.asyncio
    async def test_provider_health_reports_each_provider(self):
        chain = FallbackLLMProvider([StubProvider("a", healthy=False), StubProvider("b")])
        assert await chain.provider_health() == {"a": False, "b": True}
        assert await chain.health_check() is True

    @pytest.mark.asyncio
    async def test_close_closes_every_provider(self):
        providers = [StubProvider("a"), StubProvider("b")]
        await FallbackLLMProvider(providers).close()
        assert all(p.closed for p in providers)
