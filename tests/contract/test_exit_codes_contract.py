from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from allocation_validator.cli.__main__ import main as cli_main

"""Exit code contract: 0 no errors, 2 validation errors, 1 fatal."""


def test_exit_code_fatal_without_inputs(temp_workdir: Path, capsys):
    assert cli_main([]) == 1
    assert "ERROR no input sheets:" in capsys.readouterr().out


def test_exit_code_fatal_bad_config_path(temp_workdir: Path, capsys):
    assert cli_main(["--config", "config/missing.yml"]) == 1
    assert "ERROR config: config file not found" in capsys.readouterr().out


def test_exit_code_fatal_unreadable_sheet(temp_workdir: Path, capsys):
    bad = temp_workdir / "data" / "tasks.xlsx"
    bad.write_bytes(b"garbage")
    assert cli_main(["--tasks", str(bad)]) == 1
    assert "ERROR tasks: failed to read tasks.xlsx" in capsys.readouterr().out


def test_exit_code_all_clean(write_config, write_sheets, temp_workdir: Path, capsys):
    write_sheets()
    assert cli_main([]) == 0


def test_exit_code_warnings_only(write_config, write_sheets, temp_workdir: Path, capsys):
    # a skill nobody has is a warning, not an error
    write_sheets(
        tasks=[
            ("T1", "ETL", "Data", "1", "python", "1,2", "2"),
            ("T2", "Report", "Data", "2", "sql", "2", "1"),
            ("T3", "Mockup", "Design", "1", "design,figma", "3-4", "1"),
        ]
    )
    assert cli_main(["--no-issue-log"]) == 0
    out = capsys.readouterr().out
    assert "WARN tasks row=2 column=RequiredSkills [skill_coverage]" in out


def test_exit_code_validation_errors(write_config, write_sheets, temp_workdir: Path, capsys):
    write_sheets(workers=[("W1", "Alice", "python,sql,design", "1,2,3", "abc", "GroupA", "4")])
    assert cli_main([]) == 2


def test_exit_code_fatal_dependency_cycle(write_config, write_sheets, temp_workdir: Path, capsys):
    from allocation_validator.errors import DependencyCycleError

    write_sheets()
    with patch(
        "allocation_validator.cli.__main__.ValidationEngine.run_validation",
        side_effect=DependencyCycleError("A -> B -> A"),
    ):
        assert cli_main([]) == 1
    assert "ERROR engine:" in capsys.readouterr().out
