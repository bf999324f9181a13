"""Text cleanup applied once before page segmentation."""

import re

_HYPHEN_WRAP_RE = re.compile(r"-\n")
_BLANK_RUN_RE = re.compile(r"\n{2,}")
_DOT_LEADER_RE = re.compile(r"(\.\s+){2,}")


def normalize_text(text: str) -> str:
    """Normalize extracted text so the heading heuristics see clean lines."""
    # Extractors often hand over escaped newlines
    text = text.replace("\\n", "\n")
    # Re-join words split by a line-wrap hyphen
    text = _HYPHEN_WRAP_RE.sub("", text)
    text = _BLANK_RUN_RE.sub("\n\n", text)
    # Citation dot-leaders (". . . .")
    return _DOT_LEADER_RE.sub(" ", text)
