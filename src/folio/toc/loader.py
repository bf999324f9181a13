"""Load the section reference list and page overrides from YAML or JSON."""

import json
from pathlib import Path
from typing import Any

import yaml

from ..core.models import TocEntry


def _read_structured(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".json":
        return json.loads(text)
    return yaml.safe_load(text)


def load_toc(path: str | Path) -> list[TocEntry]:
    """Read `[{id, title, page, authors}, ...]` or `{sections: [...]}`."""
    data = _read_structured(Path(path))
    if isinstance(data, dict):
        data = data.get("sections")
    if not isinstance(data, list):
        raise ValueError(f"TOC file {path} must contain a list of sections")
    return [TocEntry.model_validate(item) for item in data]


def load_overrides(path: str | Path) -> dict[str, str]:
    """Read a label -> subsection mapping, optionally nested under `overrides`."""
    data = _read_structured(Path(path)) or {}
    if isinstance(data, dict) and isinstance(data.get("overrides"), dict):
        data = data["overrides"]
    if not isinstance(data, dict):
        raise ValueError(f"Overrides file {path} must contain a mapping")
    # YAML reads bare numeric labels as ints
    return {str(label): str(title) for label, title in data.items()}
