from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import openai

from .prompts import CONTENT_HEADER, system_instruction


class CompletionServiceError(Exception):
    """Failure reported by a completion backend.

    `retryable` separates transient failures (rate limits, outages) from
    terminal ones (bad request, content-safety rejection).
    """

    def __init__(self, message: str, retryable: bool = True):
        super().__init__(message)
        self.retryable = retryable


@dataclass
class Conversation:
    """Chat history reused between consecutive chunks."""

    messages: list[dict[str, str]] = field(default_factory=list)

    def record(self, prompt: str, reply: str) -> None:
        self.messages.append({"role": "user", "content": prompt})
        self.messages.append({"role": "assistant", "content": reply})


class CompletionProvider(ABC):
    """Abstract base class for completion providers."""

    def new_conversation(self) -> Conversation:
        return Conversation()

    @abstractmethod
    def complete(self, prompt: str, conversation: Conversation) -> str:
        """Return the completion for prompt, extending the conversation."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier."""


class DummyCompletionProvider(CompletionProvider):
    """Deterministic provider for testing and dry-runs (no network required).

    Returns the section content of the prompt unchanged.
    """

    def __init__(self) -> None:
        self.calls = 0

    def complete(self, prompt: str, conversation: Conversation) -> str:
        self.calls += 1
        _, _, content = prompt.partition(f"{CONTENT_HEADER}\n")
        conversation.record(prompt, content)
        return content

    @property
    def provider_name(self) -> str:
        return "dummy"


def classify_openai_error(error: openai.OpenAIError) -> CompletionServiceError:
    """Map an OpenAI client error onto a retryable or terminal service error."""
    if isinstance(error, (openai.RateLimitError, openai.APIConnectionError, openai.InternalServerError)):
        return CompletionServiceError(str(error), retryable=True)
    if isinstance(error, openai.APIStatusError):
        return CompletionServiceError(str(error), retryable=error.status_code in (408, 409) or error.status_code >= 500)
    return CompletionServiceError(str(error), retryable=False)


class OpenAIChatProvider(CompletionProvider):
    """OpenAI chat completions provider (requires API key)."""

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        running_header: str = "",
        temperature: float = 1.0,
        max_output_tokens: int = 8192,
        api_key: str | None = None,
    ):
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.system = system_instruction(running_header)
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            raise ValueError("OPENAI_API_KEY environment variable is required")
        # Retries are owned by the chunk formatter
        self._client = openai.OpenAI(api_key=self.api_key, max_retries=0)

    def complete(self, prompt: str, conversation: Conversation) -> str:
        messages = [{"role": "system", "content": self.system}, *conversation.messages]
        messages.append({"role": "user", "content": prompt})

        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_completion_tokens=self.max_output_tokens,
            )
        except openai.OpenAIError as e:
            raise classify_openai_error(e) from e

        choice = response.choices[0]
        if choice.finish_reason == "content_filter":
            raise CompletionServiceError("Completion blocked by content filter", retryable=False)
        content = choice.message.content
        if not content:
            raise CompletionServiceError("Empty completion", retryable=True)

        conversation.record(prompt, content)
        return content

    @property
    def provider_name(self) -> str:
        return "openai"


def get_completion_provider(
    provider_name: str | None = None,
    model: str | None = None,
    running_header: str = "",
    temperature: float = 1.0,
    max_output_tokens: int = 8192,
    api_key: str | None = None,
) -> CompletionProvider:
    """
    Get completion provider based on configuration.

    Args:
        provider_name: Provider name ("dummy", "openai") or None to use
                      COMPLETION_PROVIDER env var (default: "dummy")

    Returns:
        CompletionProvider instance
    """
    provider_name = provider_name or os.getenv("COMPLETION_PROVIDER", "dummy")

    if provider_name == "dummy":
        return DummyCompletionProvider()
    elif provider_name == "openai":
        return OpenAIChatProvider(
            model=model or "gpt-4o-mini",
            running_header=running_header,
            temperature=temperature,
            max_output_tokens=max_output_tokens,
            api_key=api_key,
        )
    else:
        raise ValueError(f"Unknown completion provider: {provider_name}")
