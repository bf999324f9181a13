"""
Token-window chunking with a hard cap.
"""

from typing import List

from .tokens import TokenEncoder


def chunk_by_tokens(text: str, max_tokens: int, encoder: TokenEncoder) -> List[str]:
    """
    Split text into consecutive slices of at most max_tokens tokens.

    Boundaries fall on token boundaries only, so a word or sentence may be
    split across two chunks. Every chunk except the last holds exactly
    max_tokens tokens.

    Args:
        text: Text to split
        max_tokens: Hard ceiling per chunk (must be >= 1)
        encoder: Token encoder used for both encoding and decoding

    Returns:
        Decoded chunk texts in order; empty input gives an empty list
    """
    if max_tokens < 1:
        raise ValueError(f"max_tokens must be >= 1, got {max_tokens}")

    chunks: List[str] = []
    current: List[int] = []

    for token in encoder.encode(text):
        if len(current) >= max_tokens:
            chunks.append(encoder.decode(current))
            current = []
        current.append(token)

    if current:
        chunks.append(encoder.decode(current))

    return chunks
