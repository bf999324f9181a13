"""Global test configuration for folio tests."""

import pytest

from folio.core.config import Settings


class CharEncoder:
    """One token per character; round-trips any string exactly."""

    def encode(self, text):
        return [ord(c) for c in text]

    def decode(self, tokens):
        return "".join(chr(t) for t in tokens)


@pytest.fixture
def char_encoder():
    return CharEncoder()


@pytest.fixture
def test_settings():
    """Settings isolated from .env files and environment variables."""
    return Settings(
        _env_file=None,
        RUNNING_HEADER="Mandate for Leadership: The Conservative Promise",
        CHUNK_MAX_TOKENS=50,
        COMPLETION_PROVIDER="dummy",
        COMPLETION_RETRY_DELAY=0,
    )


@pytest.fixture
def sample_document():
    """Three-page excerpt in the extracted-text layout the segmenter expects."""
    return (
        "— xi —\n"
        "The Project 2025 Advisory Board\n"
        "A list of member organizations.\n"
        "— 1 —\n"
        "A PROMISE TO AMERICA\n"
        "The long march of cultural Marxism through our institutions has come to pass.\n"
        "Foreword\n"
        "— 2 —\n"
        "Mandate for Leadership: The Conservative Promise\n"
        "The family is the centerpiece of American life.\n"
        "— 3 —\n"
        "Section 1: Taking the Reins\n"
        "WHITE HOUSE OFFICE\n"
        "Rick Dearborn\n"
        "The President's staff serves the President.\n"
        "— 4 —\n"
        "Mandate for Leadership: The Conservative Promise\n"
        "Personnel is policy.\n"
    )
