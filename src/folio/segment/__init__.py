"""
Page segmentation for marker-delimited document text.
"""

from .preprocess import normalize_text
from .rules import HEADING_RULES, Heading, HeadingRule, consume_uppercase_title, detect_heading
from .segmenter import PAGE_MARKER_RE, ScanState, iter_pages, segment, segment_page

__all__ = [
    "HEADING_RULES",
    "Heading",
    "HeadingRule",
    "PAGE_MARKER_RE",
    "ScanState",
    "consume_uppercase_title",
    "detect_heading",
    "iter_pages",
    "normalize_text",
    "segment",
    "segment_page",
]
