"""Provider-agnostic LLM interface."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Literal


@dataclass
class Message:
    role: Literal["system", "user", "assistant"]
    content: str


@dataclass
class LLMConfig:
    """Per-request generation settings."""

    model: str | None = None
    temperature: float = 0.4
    max_tokens: int | None = None
    json_schema: dict[str, Any] | None = None
    stage: str = "chat"  # metrics and log label only


@dataclass
class LLMResponse:
    content: str
    structured_data: dict[str, Any] | None = None
    usage: dict[str, int | None] = field(default_factory=dict)
    model: str | None = None
    finish_reason: str | None = None
    provider: str | None = None


class LLMProvider(ABC):
    """Chat-completion backend used by the generation pipeline."""

    name: str = "llm"

    @abstractmethod
    async def chat(self, messages: list[Message], config: LLMConfig) -> LLMResponse:
        """Send a conversation and return the model's reply."""

    @abstractmethod
    async def health_check(self) -> bool:
        """Return True when the backend is reachable and configured."""

    async def close(self) -> None:
        """Release network resources."""
