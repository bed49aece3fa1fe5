from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence

from ..normalize.schema import ContextSummary, EligibilityRecord
from ..normalize.transform import stable_json_dumps
from ..util.errors import ExportError


def write_json_array(items: Iterable[Dict[str, Any]], path: Path) -> Path:
    """
    Write items as one UTF-8 JSON array, replacing any existing file.
    Item order is kept as given.
    """
    rows: List[Dict[str, Any]] = list(items)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            f.write(stable_json_dumps(rows))
            f.write("\n")
    except OSError as e:
        raise ExportError(f"Failed to write {path}: {e}") from e
    return path


def export_full(records: Sequence[EligibilityRecord], path: Path) -> Path:
    return write_json_array((r.to_dict() for r in records), path)


def export_summary(summaries: Sequence[ContextSummary], path: Path) -> Path:
    return write_json_array((s.to_dict() for s in summaries), path)
