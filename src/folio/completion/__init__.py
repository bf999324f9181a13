"""
Completion service access: providers, prompts and the per-chunk formatter.
"""

from .formatter import ChunkFormatter
from .prompts import build_prompt, system_instruction
from .provider import (
    CompletionProvider,
    CompletionServiceError,
    Conversation,
    DummyCompletionProvider,
    OpenAIChatProvider,
    classify_openai_error,
    get_completion_provider,
)

__all__ = [
    "ChunkFormatter",
    "CompletionProvider",
    "CompletionServiceError",
    "Conversation",
    "DummyCompletionProvider",
    "OpenAIChatProvider",
    "build_prompt",
    "classify_openai_error",
    "get_completion_provider",
    "system_instruction",
]
