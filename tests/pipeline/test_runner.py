"""Tests for the end-to-end pipeline."""

import json

import pytest

from folio.completion import CompletionProvider, CompletionServiceError, DummyCompletionProvider
from folio.core.models import ChunkResult, PipelineResult, TocEntry
from folio.pipeline import assemble_document, run_pipeline, validate_phases

pytestmark = pytest.mark.unit


class FailingSectionProvider(CompletionProvider):
    """Fails every chunk whose prompt mentions the given title."""

    def __init__(self, title):
        self.title = title

    def complete(self, prompt, conversation):
        if self.title in prompt:
            raise CompletionServiceError("blocked", retryable=False)
        return prompt.split("Section Content\n", 1)[1].upper()

    @property
    def provider_name(self):
        return "failing"


@pytest.fixture
def toc():
    return [
        TocEntry(id="foreword", title="FOREWORD", page=1),
        TocEntry(id="section-1", title="WHITE HOUSE OFFICE", page=3, authors=["Rick Dearborn"]),
    ]


def _result(section_id, title, index, content, ok=True):
    return ChunkResult(
        section_id=section_id,
        title=title,
        page=1,
        index=index,
        source=f"source {index}",
        content=content,
        ok=ok,
        error=None if ok else "failed",
    )


class TestPhases:
    def test_phases_must_be_prefix(self):
        assert validate_phases(["segment", "merge"]) == ["segment", "merge"]
        with pytest.raises(ValueError):
            validate_phases(["merge"])
        with pytest.raises(ValueError):
            validate_phases(["segment", "embed"])


class TestResultModel:
    def test_result_fields(self):
        assert list(PipelineResult.model_fields) == [
            "run_id",
            "pages",
            "sections",
            "results",
            "document",
            "incomplete_sections",
        ]


class TestAssembleDocument:
    def test_sections_are_reassembled_and_separated(self):
        results = [
            _result("a", "A", 0, "The cat sat"),
            _result("a", "A", 1, "on the mat."),
            _result("b", "B", 0, "Second section."),
        ]
        document, incomplete = assemble_document(results)
        assert document == "The cat sat on the mat.\n\nSecond section."
        assert incomplete == []

    def test_failed_chunks_fall_back_to_source(self):
        results = [
            _result("a", "A", 0, "Formatted"),
            _result("a", "A", 1, None, ok=False),
        ]
        document, incomplete = assemble_document(results)
        assert document == "Formatted source 1"
        assert incomplete == ["A"]


class TestRunPipeline:
    def test_full_run_with_dummy_provider(self, sample_document, toc, test_settings, char_encoder):
        result = run_pipeline(
            sample_document,
            toc,
            settings=test_settings,
            provider=DummyCompletionProvider(),
            encoder=char_encoder,
        )

        assert list(result.pages) == ["xi", "1", "2", "3", "4"]
        assert [s.id for s in result.sections] == ["foreword", "section-1"]
        assert all(len(chunk) <= 50 for s in result.sections for chunk in s.chunks)
        assert "".join(result.sections[1].chunks) == (
            "Rick Dearborn\nThe President's staff serves the President.\n"
            "Mandate for Leadership: The Conservative Promise\nPersonnel is policy.\n"
        )
        assert all(r.ok for r in result.results)
        assert "Personnel is policy." in result.document
        assert result.incomplete_sections == []

    def test_overrides_argument_replaces_settings(self, sample_document, toc, test_settings, char_encoder):
        settings = test_settings.model_copy(update={"PAGE_OVERRIDES": {"xi": "From Settings"}})

        result = run_pipeline(sample_document, toc, settings=settings, encoder=char_encoder, phases=["segment"])
        assert result.pages["xi"].subsection == "From Settings"

        result = run_pipeline(
            sample_document,
            toc,
            overrides={"xi": "From Argument"},
            settings=settings,
            encoder=char_encoder,
            phases=["segment"],
        )
        assert result.pages["xi"].subsection == "From Argument"
        assert result.sections == []

    def test_failed_section_is_reported_not_raised(self, sample_document, toc, test_settings, char_encoder):
        result = run_pipeline(
            sample_document,
            toc,
            settings=test_settings,
            provider=FailingSectionProvider("WHITE HOUSE OFFICE"),
            encoder=char_encoder,
        )
        assert result.incomplete_sections == ["WHITE HOUSE OFFICE"]
        assert "Rick Dearborn" in result.document
        assert "THE LONG MARCH" in result.document

    def test_max_chunks_from_settings(self, sample_document, toc, test_settings, char_encoder):
        settings = test_settings.model_copy(update={"MAX_CHUNKS": 1})
        result = run_pipeline(
            sample_document,
            toc,
            settings=settings,
            provider=DummyCompletionProvider(),
            encoder=char_encoder,
        )
        assert len(result.results) == 1
        assert result.incomplete_sections == ["FOREWORD", "WHITE HOUSE OFFICE"]

    def test_chunk_cap_marks_unprocessed_sections_incomplete(self, test_settings, char_encoder):
        text = "— 1 —\nalpha beta gamma\n— 2 —\nmore text\n— 3 —\nsection b body\n"
        toc = [TocEntry(id="a", title="A", page=1), TocEntry(id="b", title="B", page=3)]
        settings = test_settings.model_copy(update={"CHUNK_MAX_TOKENS": 5, "MAX_CHUNKS": 1})

        result = run_pipeline(text, toc, settings=settings, provider=DummyCompletionProvider(), encoder=char_encoder)

        assert result.document == "alpha"
        assert len(result.sections[0].chunks) > 1
        assert result.incomplete_sections == ["A", "B"]

    def test_cap_covering_every_chunk_leaves_nothing_incomplete(self, test_settings, char_encoder):
        text = "— 1 —\nalpha\n— 3 —\nbeta\n"
        toc = [TocEntry(id="a", title="A", page=1), TocEntry(id="b", title="B", page=3)]
        settings = test_settings.model_copy(update={"MAX_CHUNKS": 2})

        result = run_pipeline(text, toc, settings=settings, provider=DummyCompletionProvider(), encoder=char_encoder)

        assert len(result.results) == 2
        assert result.incomplete_sections == []

    def test_writes_phase_artifacts(self, sample_document, toc, test_settings, char_encoder, tmp_path):
        result = run_pipeline(
            sample_document,
            toc,
            settings=test_settings,
            provider=DummyCompletionProvider(),
            encoder=char_encoder,
            artifacts_root=tmp_path,
            run_id="test-run",
        )
        run_dir = tmp_path / "test-run"
        pages = json.loads((run_dir / "segment" / "pages.json").read_text())
        assert pages["3"]["subsection"] == "WHITE HOUSE OFFICE"
        sections = json.loads((run_dir / "merge" / "sections.json").read_text())
        assert [s["id"] for s in sections["sections"]] == ["foreword", "section-1"]
        lines = (run_dir / "format" / "results.jsonl").read_text().splitlines()
        assert len(lines) == len(result.results)
        assert (run_dir / "reassemble" / "document.md").read_text() == result.document
