from pydantic import BaseModel, ConfigDict


class PageRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str  # decimal digits or Roman numeral, as printed
    section: str = ""  # carried-forward top-level section title
    subsection: str = ""  # chapter title guessed for this page
    text: str = ""  # body with consumed heading lines removed


class TocEntry(BaseModel):
    id: str
    title: str
    page: int
    authors: list[str] = []
    chunks: list[str] = []  # attached by the merger


class ChunkResult(BaseModel):
    section_id: str
    title: str
    authors: list[str] = []
    page: int
    index: int  # position of the chunk within its section
    source: str  # chunk text sent to the completion service
    content: str | None = None  # completion output, None on failure
    ok: bool = True
    error: str | None = None
    attempts: int = 0


class PipelineResult(BaseModel):
    run_id: str | None = None
    pages: dict[str, PageRecord] = {}
    sections: list[TocEntry] = []
    results: list[ChunkResult] = []
    document: str = ""
    incomplete_sections: list[str] = []
