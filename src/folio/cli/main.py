import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from ..core.config import SETTINGS, Settings
from ..core.logging import log, setup_logging

app = typer.Typer(add_completion=False, help="Folio CLI")


@app.callback()
def _init(
    log_format: str | None = typer.Option(None, "--log-format", help="Log format: json|plain|auto (default: LOG_FORMAT)"),
    log_level: str = typer.Option("info", "--log-level", help="Minimum log level: debug|info|warning|error"),
) -> None:
    setup_logging(log_format or SETTINGS.LOG_FORMAT, log_level)


def _load_settings(config_file: str | None, **overrides: Any) -> Settings:
    """Config file < env vars < CLI flags."""
    try:
        settings = Settings.load_config(config_file)
    except Exception as e:
        typer.echo(f"❌ Config error: {e}", err=True)
        raise typer.Exit(1) from e
    log.info("config.loaded", config_file=config_file or "auto-discovered")

    cli = {key: value for key, value in overrides.items() if value is not None}
    return settings.model_copy(update=cli) if cli else settings


def _load_overrides(path: Path | None, settings: Settings) -> dict[str, str]:
    from ..toc import load_overrides

    if path is None:
        return dict(settings.PAGE_OVERRIDES)
    return {**settings.PAGE_OVERRIDES, **load_overrides(path)}


def _load_toc(path: Path | None, settings: Settings):
    from ..toc import load_toc

    toc_path = path or (Path(settings.TOC_FILE) if settings.TOC_FILE else None)
    if toc_path is None:
        typer.echo("❌ No table of contents: pass --toc or set TOC_FILE", err=True)
        raise typer.Exit(1)
    try:
        return load_toc(toc_path)
    except (OSError, ValueError) as e:
        typer.echo(f"❌ Could not load table of contents: {e}", err=True)
        raise typer.Exit(1) from e


@app.command()
def version() -> None:
    from .. import __version__

    typer.echo(__version__)


@app.command()
def paths() -> None:
    """Show workspace paths."""
    from ..core import paths as workspace

    typer.echo(f"data:    {workspace.data()}")
    typer.echo(f"workdir: {workspace.workdir()}")
    typer.echo(f"runs:    {workspace.runs()}")


@app.command()
def segment(
    input_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Extracted document text"),
    overrides_file: Path | None = typer.Option(None, "--overrides", help="YAML/JSON page label -> title overrides"),
    config_file: str | None = typer.Option(None, "--config", help="Config file (.folio.yaml auto-discovered)"),
    as_json: bool = typer.Option(False, "--json", help="Print page records as JSON"),
) -> None:
    """Split a document into pages and show the detected headings."""
    from ..segment import normalize_text, segment as segment_pages

    settings = _load_settings(config_file)
    pages = segment_pages(
        normalize_text(input_file.read_text(encoding="utf-8")),
        overrides=_load_overrides(overrides_file, settings),
        running_header=settings.RUNNING_HEADER,
    )

    if as_json:
        typer.echo(json.dumps({label: p.model_dump() for label, p in pages.items()}, indent=2, ensure_ascii=False))
        return

    table = Table(title=f"{len(pages)} pages")
    table.add_column("Page", justify="right")
    table.add_column("Section")
    table.add_column("Subsection")
    table.add_column("Chars", justify="right")
    for label, page in pages.items():
        table.add_row(label, page.section, page.subsection, str(len(page.text)))
    Console().print(table)


@app.command()
def merge(
    input_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Extracted document text"),
    toc_file: Path | None = typer.Option(None, "--toc", help="YAML/JSON section reference list"),
    overrides_file: Path | None = typer.Option(None, "--overrides", help="YAML/JSON page label -> title overrides"),
    max_tokens: int | None = typer.Option(None, "--max-tokens", min=1, help="Maximum tokens per chunk"),
    config_file: str | None = typer.Option(None, "--config", help="Config file (.folio.yaml auto-discovered)"),
) -> None:
    """Group pages into TOC sections and print the chunked sections as JSON."""
    from ..pipeline import run_pipeline

    settings = _load_settings(config_file, CHUNK_MAX_TOKENS=max_tokens)
    try:
        result = run_pipeline(
            input_file.read_text(encoding="utf-8"),
            _load_toc(toc_file, settings),
            overrides=_load_overrides(overrides_file, settings),
            settings=settings,
            phases=["segment", "merge"],
        )
    except (OSError, ValueError) as e:
        typer.echo(f"❌ Merge failed: {e}", err=True)
        raise typer.Exit(1) from e
    typer.echo(json.dumps({"sections": [s.model_dump() for s in result.sections]}, indent=2, ensure_ascii=False))


@app.command()
def run(
    input_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Extracted document text"),
    toc_file: Path | None = typer.Option(None, "--toc", help="YAML/JSON section reference list"),
    overrides_file: Path | None = typer.Option(None, "--overrides", help="YAML/JSON page label -> title overrides"),
    config_file: str | None = typer.Option(None, "--config", help="Config file (.folio.yaml auto-discovered)"),
    provider: str | None = typer.Option(None, "--provider", help="Override completion provider (dummy|openai)"),
    model: str | None = typer.Option(None, "--model", help="Override completion model"),
    max_tokens: int | None = typer.Option(None, "--max-tokens", min=1, help="Maximum tokens per chunk"),
    max_chunks: int | None = typer.Option(None, "--max-chunks", min=1, help="Stop after this many chunks"),
    page_start: int | None = typer.Option(None, "--page-start", help="Skip sections starting before this page"),
    fail_fast: bool = typer.Option(False, "--fail-fast", help="Abort on the first chunk that cannot be formatted"),
    out: Path | None = typer.Option(None, "--out", help="Artifacts root (default: var/runs)"),
    print_document: bool = typer.Option(False, "--print", help="Print the final document to stdout"),
) -> None:
    """
    Run the full pipeline: segment → merge → format → reassemble.

    Config precedence: config file < env vars < CLI flags
    """
    from ..completion import CompletionServiceError
    from ..core import paths as workspace
    from ..pipeline import run_pipeline

    settings = _load_settings(
        config_file,
        COMPLETION_PROVIDER=provider,
        COMPLETION_MODEL=model,
        CHUNK_MAX_TOKENS=max_tokens,
        MAX_CHUNKS=max_chunks,
        PAGE_START=page_start,
        COMPLETION_FAIL_FAST=fail_fast or None,
    )

    try:
        result = run_pipeline(
            input_file.read_text(encoding="utf-8"),
            _load_toc(toc_file, settings),
            overrides=_load_overrides(overrides_file, settings),
            settings=settings,
            artifacts_root=out or workspace.runs(),
        )
    except (CompletionServiceError, OSError, ValueError) as e:
        typer.echo(f"❌ Run failed: {e}", err=True)
        raise typer.Exit(1) from e

    if print_document:
        typer.echo(result.document)
        return

    failed = sum(1 for r in result.results if not r.ok)
    typer.echo(f"✅ Run {result.run_id}: {len(result.pages)} pages, {len(result.sections)} sections, {len(result.results)} chunks")
    if failed:
        typer.echo(f"⚠️  {failed} chunks failed")
    if result.incomplete_sections:
        typer.echo(f"⚠️  Incomplete sections: {', '.join(result.incomplete_sections)}")


if __name__ == "__main__":
    app()
