"""
Table-of-contents merge: group pages into sections and chunk them.
"""

from .loader import load_overrides, load_toc
from .merge import combine_pages, last_numeric_page, merge_toc_with_pages, page_range

__all__ = [
    "combine_pages",
    "last_numeric_page",
    "load_overrides",
    "load_toc",
    "merge_toc_with_pages",
    "page_range",
]
