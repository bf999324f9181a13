"""
End-to-end run: raw text to a reassembled document.

segment -> merge -> format -> reassemble, with optional per-phase artifacts
under <root>/<run_id>/<phase>/.
"""

from __future__ import annotations

from functools import partial
from itertools import groupby
from pathlib import Path
from typing import Mapping, Optional, Sequence

from ..chunking import TiktokenEncoder, TokenEncoder, chunk_by_tokens
from ..completion import ChunkFormatter, CompletionProvider, get_completion_provider
from ..core.artifacts import new_run_id, phase_dir, write_json, write_jsonl
from ..core.config import SETTINGS, Settings
from ..core.logging import log
from ..core.models import ChunkResult, PipelineResult, TocEntry
from ..reassemble import reassemble
from ..segment import normalize_text, segment
from ..toc import merge_toc_with_pages
from .dag import DEFAULT_PHASES, validate_phases


def assemble_document(results: Sequence[ChunkResult]) -> tuple[str, list[str]]:
    """
    Reassemble chunk results section by section.

    Failed chunks contribute their unformatted source text so the document
    stays complete; their sections are reported as incomplete.

    Returns:
        (document, titles of incomplete sections)
    """
    parts: list[str] = []
    incomplete: list[str] = []

    for (_, title, _), group in groupby(results, key=lambda r: (r.section_id, r.title, r.page)):
        chunk_results = list(group)
        fragments = [r.content if r.ok and r.content is not None else r.source for r in chunk_results]
        parts.append(reassemble(fragments))
        if not all(r.ok for r in chunk_results):
            incomplete.append(title)

    return "\n\n".join(parts), incomplete


def run_pipeline(
    raw_text: str,
    toc: Sequence[TocEntry],
    overrides: Optional[Mapping[str, str]] = None,
    settings: Optional[Settings] = None,
    provider: Optional[CompletionProvider] = None,
    encoder: Optional[TokenEncoder] = None,
    phases: Optional[list[str]] = None,
    artifacts_root: Optional[Path] = None,
    run_id: Optional[str] = None,
) -> PipelineResult:
    """
    Run the document pipeline over raw extracted text.

    Args:
        raw_text: Extracted document text with page markers
        toc: Section reference list
        overrides: Page label -> subsection overrides (defaults to settings)
        settings: Pipeline settings (defaults to global SETTINGS)
        provider: Completion provider (defaults to settings.COMPLETION_PROVIDER)
        encoder: Token encoder (defaults to tiktoken for settings.TOKEN_MODEL)
        phases: Prefix of DEFAULT_PHASES to run
        artifacts_root: Directory receiving <run_id>/<phase>/ artifacts;
            nothing is written when None
        run_id: Run identifier (generated when None)

    Returns:
        PipelineResult with the outputs of every phase that ran
    """
    settings = settings or SETTINGS
    phases = validate_phases(phases or DEFAULT_PHASES)
    rid = run_id or new_run_id()
    result = PipelineResult(run_id=rid)
    log.info("pipeline.run.start", run_id=rid, phases=phases)

    def out(phase: str) -> Optional[Path]:
        return phase_dir(rid, phase, root=artifacts_root) if artifacts_root else None

    # segment
    text = normalize_text(raw_text)
    result.pages = segment(
        text,
        overrides=settings.PAGE_OVERRIDES if overrides is None else overrides,
        running_header=settings.RUNNING_HEADER,
    )
    if (d := out("segment")) is not None:
        write_json(d / "pages.json", {label: page.model_dump() for label, page in result.pages.items()})

    if "merge" in phases:
        encoder = encoder or TiktokenEncoder(settings.TOKEN_MODEL)
        result.sections = merge_toc_with_pages(
            toc,
            result.pages,
            partial(chunk_by_tokens, encoder=encoder),
            max_tokens=settings.CHUNK_MAX_TOKENS,
            open_ended_last=settings.OPEN_ENDED_LAST_SECTION,
        )
        if (d := out("merge")) is not None:
            write_json(d / "sections.json", {"sections": [s.model_dump() for s in result.sections]})

    if "format" in phases:
        provider = provider or get_completion_provider(
            settings.COMPLETION_PROVIDER,
            model=settings.COMPLETION_MODEL,
            running_header=settings.RUNNING_HEADER,
            temperature=settings.COMPLETION_TEMPERATURE,
            max_output_tokens=settings.COMPLETION_MAX_OUTPUT_TOKENS,
            api_key=settings.OPENAI_API_KEY,
        )
        formatter = ChunkFormatter(
            provider,
            max_retries=settings.COMPLETION_MAX_RETRIES,
            retry_delay=settings.COMPLETION_RETRY_DELAY,
            page_start=settings.PAGE_START,
            max_chunks=settings.MAX_CHUNKS,
            fail_fast=settings.COMPLETION_FAIL_FAST,
        )
        result.results = formatter.run(result.sections)
        if (d := out("format")) is not None:
            write_jsonl(d / "results.jsonl", (r.model_dump() for r in result.results))

    if "reassemble" in phases:
        result.document, incomplete = assemble_document(result.results)
        # Sections the chunk cap left unprocessed are missing from the document
        result.incomplete_sections = incomplete + [t for t in formatter.capped_sections if t not in incomplete]
        if result.incomplete_sections:
            log.warning("pipeline.incomplete_sections", sections=result.incomplete_sections)
        if (d := out("reassemble")) is not None:
            (d / "document.md").write_text(result.document, encoding="utf-8")

    log.info(
        "pipeline.run.end",
        run_id=rid,
        pages=len(result.pages),
        sections=len(result.sections),
        chunks=len(result.results),
        failed=sum(1 for r in result.results if not r.ok),
    )
    return result
