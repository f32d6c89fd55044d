from __future__ import annotations

from pathlib import Path

from allocation_validator.cli.__main__ import main as cli_main

"""Integration: --auto-fix applies mechanical fixes and re-validates."""


def test_auto_fix_clears_fixable_errors(write_config, write_sheets, temp_workdir: Path, capsys):
    write_sheets(
        clients=[
            ("C1", "Acme", "9", "T1,T2", "GroupA", '{"budget": 100}'),
            ("C2", "Globex", "5", "T3", "GroupB", None),
        ],
        tasks=[
            ("T1", "ETL", "Data", "1", "python", "1,2", "0"),
            ("T2", "Report", "Data", "2", "sql", "2", "1"),
            ("T3", "Mockup", "Design", "1", "design", "3-4", "1"),
        ],
    )
    code = cli_main(["--auto-fix"])
    out = capsys.readouterr().out

    assert code == 0
    assert "INFO Applied fix:" in out
    assert "INFO auto-fix: applied=2 failed=0" in out
    assert "SUMMARY validators=13 issues=2 errors=0 warnings=0 info=2" in out


def test_auto_fix_leaves_unfixable_errors(write_config, write_sheets, temp_workdir: Path, capsys):
    write_sheets(
        workers=[
            ("W1", "Alice", "python,sql", "1,2,3", "lots", "GroupA", "4"),
            ("W2", "Bob", "design", "2,4", "2", "GroupB", "3"),
        ]
    )
    code = cli_main(["--auto-fix", "--no-issue-log"])
    out = capsys.readouterr().out

    assert code == 2
    assert "auto-fix: applied=0 failed=0" in out
    assert "[out_of_range]" in out


def test_auto_fix_from_config(write_sheets, temp_workdir: Path, capsys):
    write_sheets(
        tasks=[
            ("T1", "ETL", "Data", "1", "python", "1,2", "2"),
            ("T1", "Report", "Data", "2", "sql", "2", "1"),
            ("T3", "Mockup", "Design", "1", "design", "3-4", "1"),
        ]
    )
    (temp_workdir / "config" / "validator.yml").write_text(
        "sources:\n"
        "  clients: ../data/clients.csv\n"
        "  workers: ../data/workers.csv\n"
        "  tasks: ../data/tasks.csv\n"
        "validation:\n"
        "  auto_fix: true\n",
        encoding="utf-8",
    )
    code = cli_main(["--no-issue-log"])
    out = capsys.readouterr().out

    # the duplicate becomes T2, which also resolves the dangling T2 reference
    assert "auto-fix: applied=1 failed=0" in out
    assert "[duplicate_ids]" not in out
    assert code == 0
