"""Persistence of accepted runs as a JSON list file."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, List, Union

from .models import ManhattanRun

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]


def save_runs(path: PathLike, runs: Iterable[ManhattanRun]) -> Path:
    """Overwrite ``path`` with ``runs``.

    The list is written to a sibling temp file first and swapped into place,
    so readers never observe a half-written file.
    """

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = [run.to_dict() for run in runs]
    temp_path = target.with_suffix(target.suffix + ".tmp")
    with temp_path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, ensure_ascii=False, indent=2)
    temp_path.replace(target)
    LOGGER.info("Saved %d runs to %s", len(payload), target)
    return target


def load_runs(path: PathLike) -> List[ManhattanRun]:
    """Read runs written by :func:`save_runs`. A missing file yields ``[]``.

    Raises:
        ValueError: If the file is not a JSON list of run records.
    """

    source = Path(path)
    if not source.exists():
        LOGGER.info("No cached runs file found at %s", source)
        return []
    with source.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, list):
        raise ValueError(f"Runs file {source} must contain a JSON list")
    runs: List[ManhattanRun] = []
    for index, record in enumerate(data):
        try:
            runs.append(ManhattanRun.from_dict(record))
        except (KeyError, TypeError, ValueError, IndexError) as exc:
            LOGGER.warning("Skipping malformed run record #%d in %s: %s", index, source, exc)
    LOGGER.info("Loaded %d runs from %s", len(runs), source)
    return runs


__all__ = ["save_runs", "load_runs"]
