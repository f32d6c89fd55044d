# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from allocation_validator.logging.init import reset_logging
from allocation_validator.models.business_rule import BusinessRule
from allocation_validator.models.config_models import ValidationConfig
from allocation_validator.models.parsed_data import ParsedData
from allocation_validator.validation.context import ValidationContext, ValidationContextBuilder

CLIENT_HEADERS = ("ClientID", "ClientName", "PriorityLevel", "RequestedTaskIDs", "GroupTag", "AttributesJSON")
WORKER_HEADERS = (
    "WorkerID",
    "WorkerName",
    "Skills",
    "AvailableSlots",
    "MaxLoadPerPhase",
    "WorkerGroup",
    "QualificationLevel",
)
TASK_HEADERS = ("TaskID", "TaskName", "Category", "Duration", "RequiredSkills", "PreferredPhases", "MaxConcurrent")

# Clean dataset: no errors or warnings; phases 4 and 5 have idle capacity (2 info issues)
CLIENT_ROWS = [
    ("C1", "Acme", "3", "T1,T2", "GroupA", '{"budget": 100}'),
    ("C2", "Globex", "5", "T3", "GroupB", None),
]
WORKER_ROWS = [
    ("W1", "Alice", "python,sql", "1,2,3", "2", "GroupA", "4"),
    ("W2", "Bob", "design", "2,4", "2", "GroupB", "3"),
]
TASK_ROWS = [
    ("T1", "ETL", "Data", "1", "python", "1,2", "2"),
    ("T2", "Report", "Data", "2", "sql", "2", "1"),
    ("T3", "Mockup", "Design", "1", "design", "3-4", "1"),
]


def make_data(headers: tuple[str, ...], rows: list[tuple[Any, ...]]) -> ParsedData:
    return ParsedData.from_records(headers, [dict(zip(headers, r, strict=True)) for r in rows])


@pytest.fixture(autouse=True)
def _clean_logging():
    # Handlers bind sys.stdout at creation; start every test without them
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def make_sheet() -> Callable[[tuple[str, ...], list[tuple[Any, ...]]], ParsedData]:
    return make_data


@pytest.fixture()
def clients_data() -> ParsedData:
    return make_data(CLIENT_HEADERS, CLIENT_ROWS)


@pytest.fixture()
def workers_data() -> ParsedData:
    return make_data(WORKER_HEADERS, WORKER_ROWS)


@pytest.fixture()
def tasks_data() -> ParsedData:
    return make_data(TASK_HEADERS, TASK_ROWS)


@pytest.fixture()
def make_context(
    clients_data: ParsedData, workers_data: ParsedData, tasks_data: ParsedData
) -> Callable[..., ValidationContext]:
    """Context factory; keyword overrides replace the clean sample sheets."""
    _missing = object()

    def factory(
        *,
        clients: Any = _missing,
        workers: Any = _missing,
        tasks: Any = _missing,
        config: ValidationConfig | None = None,
        rules: list[BusinessRule] | tuple[BusinessRule, ...] = (),
    ) -> ValidationContext:
        return (
            ValidationContextBuilder()
            .with_clients(clients_data if clients is _missing else clients)
            .with_workers(workers_data if workers is _missing else workers)
            .with_tasks(tasks_data if tasks is _missing else tasks)
            .with_config(config or ValidationConfig())
            .with_rules(rules)
            .build()
        )

    return factory


@pytest.fixture()
def sample_config_yaml() -> str:
    return """sources:
  clients: ../data/clients.csv
  workers: ../data/workers.csv
  tasks: ../data/tasks.csv
validation:
  strict_mode: false
  phases: [1, 2, 3, 4, 5]
  high_utilization_ratio: 0.8
issue_log_dir: logs
"""


@pytest.fixture()
def write_sheets(temp_workdir: Path) -> Callable[..., dict[str, Path]]:
    """Write the sample sheets (or overrides) as CSV files under data/."""

    def writer(
        clients: list[tuple[Any, ...]] | None = None,
        workers: list[tuple[Any, ...]] | None = None,
        tasks: list[tuple[Any, ...]] | None = None,
    ) -> dict[str, Path]:
        paths = {}
        for name, headers, rows in (
            ("clients", CLIENT_HEADERS, clients if clients is not None else CLIENT_ROWS),
            ("workers", WORKER_HEADERS, workers if workers is not None else WORKER_ROWS),
            ("tasks", TASK_HEADERS, tasks if tasks is not None else TASK_ROWS),
        ):
            path = temp_workdir / "data" / f"{name}.csv"
            pd.DataFrame(rows, columns=list(headers)).to_csv(path, index=False)
            paths[name] = path
        return paths

    return writer


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "validator.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg
