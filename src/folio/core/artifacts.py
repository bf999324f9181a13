import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable
import uuid

from .paths import runs


def new_run_id() -> str:
    return f"{datetime.now(timezone.utc).strftime('%Y-%m-%d_%H%M%S')}_{uuid.uuid4().hex[:4]}"


def phase_dir(run_id: str, phase: str, root: Path | None = None) -> Path:
    p = (root or runs()) / run_id / phase
    p.mkdir(parents=True, exist_ok=True)
    return p


def write_json(path: Path, payload: Any) -> Path:
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def write_jsonl(path: Path, rows: Iterable[dict]) -> Path:
    with open(path, "w", encoding="utf-8") as f:
        for row in rows:
            f.write(json.dumps(row, ensure_ascii=False) + "\n")
    return path
