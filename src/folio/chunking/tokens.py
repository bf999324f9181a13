"""
Token encoders used to size chunks.
"""

from typing import List, Protocol, Sequence

import tiktoken


class TokenEncoder(Protocol):
    """Anything that maps text to token ids and back."""

    def encode(self, text: str) -> List[int]: ...

    def decode(self, tokens: Sequence[int]) -> str: ...


class TiktokenEncoder:
    """OpenAI BPE encoder; unknown model names fall back to cl100k_base."""

    def __init__(self, model: str = "gpt-4o"):
        self.model = model
        try:
            self._encoding = tiktoken.encoding_for_model(model)
        except KeyError:
            self._encoding = tiktoken.get_encoding("cl100k_base")

    @property
    def name(self) -> str:
        return self._encoding.name

    def encode(self, text: str) -> List[int]:
        # Special-token text in documents is treated as plain text
        return self._encoding.encode(text, disallowed_special=())

    def decode(self, tokens: Sequence[int]) -> str:
        return self._encoding.decode(list(tokens))


def count_tokens(text: str, encoder: TokenEncoder) -> int:
    return len(encoder.encode(text))
