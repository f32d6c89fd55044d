from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.issue import ValidationIssue

"""Issue log buffering.

- JSON Lines with a fixed key set (no extra keys)
- One file per run: ``<dir>/issues-YYYYMMDD-HHMMSS.log`` (UTC), created on
  first flush
- Buffered in memory, written on flush()
"""

__all__ = [
    "IssueLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class IssueLogBuffer:
    """In-memory buffer of issues. flush() appends them as JSON Lines.

    Single-threaded use only.
    """

    def __init__(self, directory: Path | None = None) -> None:
        self._directory = directory or LOGS_DIR
        self._issues: list[ValidationIssue] = []
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._directory.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._directory / f"issues-{stamp}.log"
        return self._file_path

    def append(self, issue: ValidationIssue) -> None:
        self._issues.append(issue)

    def extend(self, issues: list[ValidationIssue]) -> None:
        self._issues.extend(issues)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._issues)

    def flush(self) -> Path | None:
        """Write buffered issues; returns the file path, or None if nothing to write."""
        if not self._issues:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for issue in self._issues:
                f.write(issue.to_json_line() + "\n")
        self._issues.clear()
        return fp
