from __future__ import annotations

import json
from pathlib import Path

import pytest

from manhattan_runs.models import ManhattanRun
from manhattan_runs.storage import load_runs, save_runs


def _run(run_id: int, **overrides) -> ManhattanRun:
    data = dict(
        id=run_id,
        name=f"Run {run_id}",
        date="2025-03-01T12:00:00Z",
        distance=8046.7,
        moving_time=2400,
        coordinates=[(-73.97, 40.78), (-73.96, 40.79)],
        snapped=True,
        confidence=0.82,
    )
    data.update(overrides)
    return ManhattanRun(**data)


def test_save_runs_writes_lng_lat_pairs(tmp_path: Path) -> None:
    target = save_runs(tmp_path / "out" / "runs.json", [_run(1)])

    stored = json.loads(target.read_text(encoding="utf-8"))
    assert stored[0]["coordinates"] == [[-73.97, 40.78], [-73.96, 40.79]]
    assert stored[0]["snapped"] is True
    assert set(stored[0]) == {
        "id",
        "name",
        "date",
        "distance",
        "moving_time",
        "coordinates",
        "snapped",
        "confidence",
    }


def test_save_runs_replaces_existing_file(tmp_path: Path) -> None:
    path = tmp_path / "runs.json"
    save_runs(path, [_run(1), _run(2)])
    save_runs(path, [_run(3)])

    assert [run.id for run in load_runs(path)] == [3]
    assert list(tmp_path.iterdir()) == [path]


def test_load_runs_restores_records(tmp_path: Path) -> None:
    path = tmp_path / "runs.json"
    original = _run(7, name="Hudson loop")
    save_runs(path, [original])

    (loaded,) = load_runs(path)

    assert loaded == original


def test_load_runs_missing_file_returns_empty(tmp_path: Path) -> None:
    assert load_runs(tmp_path / "missing.json") == []


def test_load_runs_rejects_non_list(tmp_path: Path) -> None:
    path = tmp_path / "runs.json"
    path.write_text(json.dumps({"runs": []}))

    with pytest.raises(ValueError):
        load_runs(path)


def test_load_runs_skips_malformed_records(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    path = tmp_path / "runs.json"
    good = _run(1).to_dict()
    path.write_text(json.dumps([good, {"name": "no id"}, "junk"]))

    runs = load_runs(path)

    assert [run.id for run in runs] == [1]
    assert "malformed" in caplog.text.lower()
