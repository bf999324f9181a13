"""
Page segmentation: split marker-delimited text into page records.

Pages are delimited by em-dash markers such as "— 14 —" or "— xii —". The
scan is a fold over the markers in document order; the running section
title and the subsection of the last numeric page are carried in an
explicit ScanState rather than in shared variables.
"""

from __future__ import annotations

import re
from typing import Dict, Iterator, Mapping, NamedTuple, Optional, Tuple

from ..core.logging import log
from ..core.models import PageRecord
from .rules import detect_heading

PAGE_MARKER_RE = re.compile(r"— ([0-9]+|[ivxlcdm]+) —", re.IGNORECASE)
LINE_SPLIT_RE = re.compile(r"\r?\n")


class ScanState(NamedTuple):
    """Accumulator threaded through the page fold."""

    section: str = ""
    last_numeric_subsection: Optional[str] = None


def iter_pages(text: str) -> Iterator[Tuple[str, str]]:
    """Yield (label, body) for every page marker, in scan order.

    Text before the first marker does not belong to any page. Malformed
    markers do not match and stay inside the previous page's body.
    """
    matches = list(PAGE_MARKER_RE.finditer(text))
    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        yield match.group(1), text[match.end() : end].strip()


def segment_page(
    state: ScanState,
    label: str,
    body: str,
    overrides: Mapping[str, str],
    running_header: str = "",
) -> Tuple[PageRecord, ScanState]:
    """Build one PageRecord and the state to carry into the next page."""
    lines = LINE_SPLIT_RE.split(body)
    rule, heading = detect_heading(lines)

    section = heading.section if heading.section is not None else state.section
    subsection = heading.subsection.strip()
    remaining = heading.lines

    # A heuristic title wins; overrides only fill gaps
    if not subsection:
        if label in overrides:
            subsection = overrides[label]
        else:
            subsection = remaining[0].strip() if remaining else ""
            log.debug("segment.heading.fallback", label=label, subsection=subsection)

    numeric = label.isdigit()
    if (
        numeric
        and int(label) % 2 == 0
        and running_header
        and subsection == running_header
        and state.last_numeric_subsection is not None
    ):
        # Even pages print the running header where the chapter title belongs
        subsection = state.last_numeric_subsection

    record = PageRecord(
        label=label,
        section=section,
        subsection=subsection,
        text="\n".join(remaining).strip(),
    )
    log.debug("segment.page", label=label, rule=rule, section=section, subsection=subsection)

    next_state = ScanState(
        section=section,
        last_numeric_subsection=subsection if numeric else state.last_numeric_subsection,
    )
    return record, next_state


def segment(
    text: str,
    overrides: Optional[Mapping[str, str]] = None,
    running_header: str = "",
) -> Dict[str, PageRecord]:
    """
    Split text into page records keyed by page label.

    Args:
        text: Normalized document text containing page markers
        overrides: Page label -> subsection used when no heading is detected
        running_header: Running title printed on interior pages; even pages
            showing it inherit the previous numeric page's subsection

    Returns:
        Mapping of label to PageRecord in scan order
    """
    overrides = overrides or {}
    pages: Dict[str, PageRecord] = {}
    state = ScanState()

    for label, body in iter_pages(text):
        record, state = segment_page(state, label, body, overrides, running_header)
        if label in pages:
            log.warning("segment.duplicate_label", label=label)
        pages[label] = record

    log.info("segment.done", pages=len(pages), last_section=state.section)
    return pages
