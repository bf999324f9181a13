"""
Token-bounded chunking.
"""

from .chunker import chunk_by_tokens
from .tokens import TiktokenEncoder, TokenEncoder, count_tokens

__all__ = ["TiktokenEncoder", "TokenEncoder", "chunk_by_tokens", "count_tokens"]
