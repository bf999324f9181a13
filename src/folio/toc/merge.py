"""
Merge a table of contents with segmented pages.

Each TOC entry owns the pages from its own start page up to, but not
including, the next entry's start page. Only integer page labels can be
addressed this way; Roman-numeral front matter never lands in a section.
"""

from __future__ import annotations

from typing import Callable, List, Mapping, Optional, Sequence

from ..core.logging import log
from ..core.models import PageRecord, TocEntry

Chunker = Callable[[str, int], List[str]]


def last_numeric_page(pages: Mapping[str, PageRecord]) -> Optional[int]:
    numbers = [int(label) for label in pages if label.isdigit()]
    return max(numbers) if numbers else None


def page_range(
    entries: Sequence[TocEntry],
    index: int,
    last_page: Optional[int],
    open_ended_last: bool = True,
) -> range:
    """Pages covered by entries[index]; entries must already be sorted."""
    start = entries[index].page
    if index + 1 < len(entries):
        return range(start, entries[index + 1].page)
    if open_ended_last and last_page is not None:
        return range(start, last_page + 1)
    # Without an end-of-document bound the last entry is zero-width
    return range(start, start)


def combine_pages(pages: Mapping[str, PageRecord], numbers: range) -> str:
    parts = []
    for number in numbers:
        record = pages.get(str(number))
        if record is None:
            log.debug("merge.page_missing", page=number)
            continue
        parts.append(record.text + "\n")
    return "".join(parts)


def merge_toc_with_pages(
    toc: Sequence[TocEntry],
    pages: Mapping[str, PageRecord],
    chunker: Chunker,
    max_tokens: int = 4000,
    open_ended_last: bool = True,
) -> List[TocEntry]:
    """
    Attach token-bounded chunks of each entry's page range to the entry.

    Args:
        toc: Section reference list in any order
        pages: Page records keyed by label
        chunker: Callable splitting (text, max_tokens) into chunks
        max_tokens: Maximum tokens per chunk
        open_ended_last: Extend the last entry to the last numeric page
            instead of leaving it empty

    Returns:
        Copies of the entries sorted by page, each with `chunks` set
    """
    entries = sorted(toc, key=lambda entry: entry.page)
    last_page = last_numeric_page(pages)

    merged: List[TocEntry] = []
    for index, entry in enumerate(entries):
        numbers = page_range(entries, index, last_page, open_ended_last)
        chunks = chunker(combine_pages(pages, numbers), max_tokens)
        log.info(
            "merge.section",
            section_id=entry.id,
            title=entry.title,
            first_page=numbers.start,
            page_count=len(numbers),
            chunks=len(chunks),
        )
        merged.append(entry.model_copy(update={"chunks": chunks}))

    return merged
