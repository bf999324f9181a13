"""Tests for sequential chunk formatting with retries."""

import pytest

from folio.completion import ChunkFormatter, CompletionProvider, CompletionServiceError, DummyCompletionProvider
from folio.core.models import TocEntry

pytestmark = pytest.mark.unit


class ScriptedProvider(CompletionProvider):
    """Replays a script of replies/errors and records every conversation used."""

    def __init__(self, script):
        self.script = list(script)
        self.prompts = []
        self.conversations = []

    def complete(self, prompt, conversation):
        self.prompts.append(prompt)
        self.conversations.append(conversation)
        step = self.script.pop(0)
        if isinstance(step, Exception):
            raise step
        conversation.record(prompt, step)
        return step

    @property
    def provider_name(self):
        return "scripted"


def _sections():
    return [
        TocEntry(id="foreword", title="FOREWORD", page=1, chunks=["f0", "f1"]),
        TocEntry(id="section-1", title="WHITE HOUSE OFFICE", page=23, authors=["Rick Dearborn"], chunks=["w0"]),
    ]


class TestOrdering:
    def test_processes_chunks_in_order(self):
        formatter = ChunkFormatter(DummyCompletionProvider(), retry_delay=0)
        results = formatter.run(_sections())
        assert [(r.section_id, r.index, r.content) for r in results] == [
            ("foreword", 0, "f0"),
            ("foreword", 1, "f1"),
            ("section-1", 0, "w0"),
        ]
        assert all(r.ok and r.attempts == 1 for r in results)
        assert results[2].authors == ["Rick Dearborn"]

    def test_conversation_is_reused_between_chunks(self):
        provider = ScriptedProvider(["a", "b", "c"])
        ChunkFormatter(provider, retry_delay=0).run(_sections())
        assert provider.conversations[0] is provider.conversations[1] is provider.conversations[2]
        assert len(provider.conversations[2].messages) == 6

    def test_empty_chunks_are_skipped(self):
        sections = [TocEntry(id="a", title="A", page=1, chunks=["", "  ", "real"])]
        results = ChunkFormatter(DummyCompletionProvider(), retry_delay=0).run(sections)
        assert [(r.index, r.content) for r in results] == [(2, "real")]


class TestLimits:
    def test_max_chunks_caps_the_run(self):
        provider = DummyCompletionProvider()
        results = ChunkFormatter(provider, retry_delay=0, max_chunks=2).run(_sections())
        assert len(results) == 2
        assert provider.calls == 2

    def test_cap_records_unprocessed_sections(self):
        formatter = ChunkFormatter(DummyCompletionProvider(), retry_delay=0, max_chunks=1)
        formatter.run(_sections())
        assert formatter.capped_sections == ["FOREWORD", "WHITE HOUSE OFFICE"]

    def test_cap_at_section_boundary_records_only_later_sections(self):
        formatter = ChunkFormatter(DummyCompletionProvider(), retry_delay=0, max_chunks=2)
        formatter.run(_sections())
        assert formatter.capped_sections == ["WHITE HOUSE OFFICE"]

    def test_uncapped_run_records_nothing(self):
        formatter = ChunkFormatter(DummyCompletionProvider(), retry_delay=0, max_chunks=3)
        formatter.run(_sections())
        assert formatter.capped_sections == []

    def test_page_start_skips_earlier_sections(self):
        results = ChunkFormatter(DummyCompletionProvider(), retry_delay=0, page_start=10).run(_sections())
        assert [r.section_id for r in results] == ["section-1"]

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            ChunkFormatter(DummyCompletionProvider(), max_retries=0)


class TestRetries:
    def test_transient_failure_is_retried_with_fresh_conversation(self):
        provider = ScriptedProvider([CompletionServiceError("busy"), "ok", "b", "c"])
        formatter = ChunkFormatter(provider, max_retries=2, retry_delay=0)
        results = formatter.run(_sections())

        assert results[0].ok
        assert results[0].content == "ok"
        assert results[0].attempts == 2
        assert provider.conversations[0] is not provider.conversations[1]
        assert formatter.retries == 1

    def test_exhausted_retries_produce_failure_marker(self):
        provider = ScriptedProvider([CompletionServiceError("busy"), CompletionServiceError("busy"), "b", "c"])
        formatter = ChunkFormatter(provider, max_retries=2, retry_delay=0)
        results = formatter.run(_sections())

        assert len(results) == 3
        failed = results[0]
        assert not failed.ok
        assert failed.content is None
        assert failed.error == "busy"
        assert failed.attempts == 2
        assert failed.source == "f0"
        assert [r.ok for r in results[1:]] == [True, True]
        assert formatter.chunks_failed == 1

    def test_terminal_error_is_not_retried(self):
        provider = ScriptedProvider([CompletionServiceError("blocked", retryable=False), "b", "c"])
        results = ChunkFormatter(provider, max_retries=3, retry_delay=0).run(_sections())
        assert results[0].attempts == 1
        assert not results[0].ok
        # Conversation is discarded after a terminal failure too
        assert provider.conversations[0] is not provider.conversations[1]

    def test_fail_fast_propagates(self):
        provider = ScriptedProvider([CompletionServiceError("blocked", retryable=False)])
        formatter = ChunkFormatter(provider, retry_delay=0, fail_fast=True)
        with pytest.raises(CompletionServiceError):
            formatter.run(_sections())

    def test_unexpected_errors_propagate(self):
        provider = ScriptedProvider([RuntimeError("bug")])
        with pytest.raises(RuntimeError):
            ChunkFormatter(provider, retry_delay=0).run(_sections())
