"""
Sequential chunk processing against a completion provider.

Chunks are sent one at a time, in section order, through a single
conversation. A failed call throws the conversation away so whatever
caused the failure is not replayed, then retries after a fixed delay.
"""

from __future__ import annotations

from typing import Sequence

from tenacity import RetryCallState, Retrying, retry_if_exception, stop_after_attempt, wait_fixed

from ..core.logging import log
from ..core.models import ChunkResult, TocEntry
from .prompts import build_prompt
from .provider import CompletionProvider, CompletionServiceError


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, CompletionServiceError) and error.retryable


class ChunkFormatter:
    """Runs every chunk of every section through the completion provider."""

    def __init__(
        self,
        provider: CompletionProvider,
        max_retries: int = 2,
        retry_delay: float = 2.0,
        page_start: int = 0,
        max_chunks: int | None = None,
        fail_fast: bool = False,
    ):
        if max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {max_retries}")
        self.provider = provider
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.page_start = page_start
        self.max_chunks = max_chunks
        self.fail_fast = fail_fast
        self.conversation = provider.new_conversation()

        # Statistics
        self.chunks_processed = 0
        self.chunks_failed = 0
        self.retries = 0
        # Titles of sections left unprocessed by the max_chunks cap
        self.capped_sections: list[str] = []

    def run(self, sections: Sequence[TocEntry]) -> list[ChunkResult]:
        """Process chunks in order until done or the max_chunks cap is hit."""
        results: list[ChunkResult] = []
        self.capped_sections = []
        pending = [s for s in sections if s.page >= self.page_start]

        for position, section in enumerate(pending):
            for index, chunk in enumerate(section.chunks):
                if not chunk.strip():
                    continue
                if self.max_chunks is not None and self.chunks_processed >= self.max_chunks:
                    # The current section is cut short; later ones never start
                    self.capped_sections = [section.title] + [
                        s.title for s in pending[position + 1 :] if any(c.strip() for c in s.chunks)
                    ]
                    log.warning(
                        "format.cap_reached",
                        max_chunks=self.max_chunks,
                        unprocessed_sections=len(self.capped_sections),
                    )
                    return results
                results.append(self.format_chunk(section, index, chunk))

        log.info(
            "format.done",
            processed=self.chunks_processed,
            failed=self.chunks_failed,
            retries=self.retries,
            provider=self.provider.provider_name,
        )
        return results

    def format_chunk(self, section: TocEntry, index: int, chunk: str) -> ChunkResult:
        """Send one chunk, retrying transient failures with a fresh conversation."""
        prompt = build_prompt(section.title, section.authors, chunk)
        attempts = 0

        def attempt() -> str:
            nonlocal attempts
            attempts += 1
            return self.provider.complete(prompt, self.conversation)

        retrying = Retrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_fixed(self.retry_delay),
            retry=retry_if_exception(_is_retryable),
            before_sleep=self._before_retry,
            reraise=True,
        )

        self.chunks_processed += 1
        base = {
            "section_id": section.id,
            "title": section.title,
            "authors": section.authors,
            "page": section.page,
            "index": index,
            "source": chunk,
        }
        log.info("format.chunk.start", count=self.chunks_processed, section_id=section.id, page=section.page, index=index)

        try:
            content = retrying(attempt)
        except CompletionServiceError as e:
            self.conversation = self.provider.new_conversation()
            self.chunks_failed += 1
            log.error(
                "format.chunk.failed",
                section_id=section.id,
                index=index,
                attempts=attempts,
                retryable=e.retryable,
                error=str(e),
            )
            if self.fail_fast:
                raise
            return ChunkResult(**base, ok=False, error=str(e), attempts=attempts)

        return ChunkResult(**base, content=content, attempts=attempts)

    def _before_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        self.retries += 1
        log.warning(
            "format.chunk.retry",
            attempt=retry_state.attempt_number,
            delay=self.retry_delay,
            error=str(error),
        )
        self.conversation = self.provider.new_conversation()
