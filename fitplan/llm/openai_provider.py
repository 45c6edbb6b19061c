"""OpenAI-compatible LLM provider implementation."""
import json
import logging

import httpx

from fitplan.config.settings import get_settings
from fitplan.llm.base import (
    LLMProvider,
    LLMConfig,
    LLMResponse,
    Message,
)

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """
    OpenAI-compatible chat completions provider.

    The same client serves OpenAI, DeepSeek and Gemini through their
    OpenAI-compatible endpoints; only name, key, base URL and model differ.
    """

    def __init__(
        self,
        name: str = "openai",
        api_key: str | None = None,
        base_url: str | None = None,
        default_model: str | None = None,
        timeout: float | None = None,
    ):
        settings = get_settings()
        self.name = name
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.base_url = (base_url or settings.openai_base_url).rstrip('/')
        self.default_model = default_model or settings.openai_model
        self.timeout = timeout or settings.llm_timeout_seconds

        if not self.api_key:
            logger.warning(f"{self.name} API key not configured; provider will be skipped.")

        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, name: str) -> "OpenAIProvider":
        """Build the provider for ``name`` ("openai", "deepseek" or "gemini")."""
        settings = get_settings()
        try:
            return cls(
                name=name,
                api_key=getattr(settings, f"{name}_api_key"),
                base_url=getattr(settings, f"{name}_base_url"),
                default_model=getattr(settings, f"{name}_model"),
            )
        except AttributeError:
            raise ValueError(f"Unknown LLM provider: {name}") from None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    def _build_messages(self, messages: list[Message]) -> list[dict]:
        return [{"role": m.role, "content": m.content} for m in messages]

    async def chat(
        self,
        messages: list[Message],
        config: LLMConfig,
    ) -> LLMResponse:
        """
        Send a chat request to the /chat/completions endpoint.

        When a JSON schema is supplied, JSON output is requested and the schema
        is appended to the system message as a hint.
        """
        client = await self._get_client()

        payload = {
            "model": config.model or self.default_model,
            "messages": self._build_messages(messages),
            "temperature": config.temperature,
        }

        if config.max_tokens:
            payload["max_tokens"] = config.max_tokens

        if config.json_schema:
            payload["response_format"] = {"type": "json_object"}
            schema_hint = f"\n\nRespond with valid JSON matching this schema: {json.dumps(config.json_schema)}"
            if messages and messages[0].role == "system":
                payload["messages"][0]["content"] += schema_hint

        try:
            response = await client.post(
                f"{self.base_url}/chat/completions",
                json=payload,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"{self.name} API error: {e.response.status_code} - {e.response.text}")
            raise

        data = response.json()
        choice = (data.get("choices") or [{}])[0]
        content = choice.get("message", {}).get("content") or ""
        usage = data.get("usage", {})

        # Structured parsing is left to fitplan.llm.json_extraction, which
        # tolerates fenced or prefixed replies.
        return LLMResponse(
            content=content,
            usage={
                "prompt_tokens": usage.get("prompt_tokens"),
                "completion_tokens": usage.get("completion_tokens"),
                "total_tokens": usage.get("total_tokens"),
            },
            model=data.get("model"),
            finish_reason=choice.get("finish_reason"),
            provider=self.name,
        )

    async def health_check(self) -> bool:
        """
        Check if the API is accessible by listing models.
        """
        if not self.api_key:
            return False

        try:
            client = await self._get_client()
            response = await client.get(f"{self.base_url}/models")
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning(f"{self.name} health check failed: {e}")
            return False
