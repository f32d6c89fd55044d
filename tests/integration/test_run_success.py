from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import pytest

from allocation_validator.cli.__main__ import main as cli_main

"""Integration: clean end-to-end runs from CSV (with config) and XLSX (CLI paths only)."""


def _issue_records(logs_dir: Path) -> list[dict]:
    files = sorted(logs_dir.glob("issues-*.log"))
    assert len(files) == 1
    return [json.loads(line) for line in files[0].read_text(encoding="utf-8").splitlines()]


def test_clean_csv_run(write_config, write_sheets, temp_workdir: Path, capsys):
    write_sheets()
    code = cli_main([])
    out = capsys.readouterr().out

    assert code == 0
    assert "SUMMARY validators=13 issues=2 errors=0 warnings=0 info=2" in out
    assert "INFO tasks row=-1 column=PreferredPhases [phase_saturation] Phase 4" in out
    assert "ERROR" not in out

    records = _issue_records(temp_workdir / "logs")
    assert [(r["type"], r["category"], r["value"]) for r in records] == [
        ("info", "phase_saturation", 4),
        ("info", "phase_saturation", 5),
    ]
    assert all(r["validator_name"] == "PhaseSaturationValidator" for r in records)


@pytest.fixture
def xlsx_sheets(write_sheets) -> dict[str, Path]:
    paths = {}
    for name, csv_path in write_sheets().items():
        path = csv_path.with_suffix(".xlsx")
        frame = pd.read_csv(csv_path, dtype=str)
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            frame.to_excel(writer, sheet_name=name, index=False)
        csv_path.unlink()
        paths[name] = path
    return paths


def test_clean_xlsx_run_without_config(xlsx_sheets, temp_workdir: Path, capsys):
    code = cli_main(
        [
            "--clients",
            str(xlsx_sheets["clients"]),
            "--workers",
            str(xlsx_sheets["workers"]),
            "--tasks",
            str(xlsx_sheets["tasks"]),
        ]
    )
    out = capsys.readouterr().out

    assert code == 0
    assert "INFO Loaded workers: 2 rows from" in out
    assert "SUMMARY validators=13 issues=2 errors=0 warnings=0 info=2" in out


def test_partial_sheet_set(write_sheets, temp_workdir: Path, capsys):
    paths = write_sheets()
    code = cli_main(["--tasks", str(paths["tasks"]), "--no-issue-log"])
    out = capsys.readouterr().out

    # cross-sheet validators have nothing to compare against and stay quiet
    assert code == 0
    assert "SUMMARY validators=13 issues=0 errors=0" in out
