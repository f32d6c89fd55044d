from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from .parsed_data import ParsedData, Sheet

"""Issue and result value objects.

A ValidationIssue describes one finding. ``row`` is the 0-based index of the
data row the finding refers to; -1 is the sentinel for header-row / sheet-level
findings and must survive serialization unchanged.
"""

__all__ = [
    "HEADER_ROW",
    "IssueType",
    "IssueCategory",
    "Severity",
    "ValidationIssue",
    "ValidationResult",
    "FixResult",
    "ValidationSummary",
]

HEADER_ROW = -1


class IssueType(Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Severity(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def for_type(cls, issue_type: IssueType) -> Severity:
        return _SEVERITY_BY_TYPE[issue_type]


_SEVERITY_BY_TYPE = {
    IssueType.ERROR: Severity.HIGH,
    IssueType.WARNING: Severity.MEDIUM,
    IssueType.INFO: Severity.LOW,
}


class IssueCategory(Enum):
    """Canonical finding taxonomy (header-mapping findings use MISSING_COLUMNS)."""
    MISSING_COLUMNS = "missing_columns"
    DUPLICATE_IDS = "duplicate_ids"
    MALFORMED_LISTS = "malformed_lists"
    OUT_OF_RANGE = "out_of_range"
    JSON_FIELDS = "json_fields"
    REFERENCES = "references"
    CIRCULAR_CORUN = "circular_corun"
    CONFLICTING_RULES = "conflicting_rules"
    OVERLOADED_WORKERS = "overloaded_workers"
    PHASE_SATURATION = "phase_saturation"
    SKILL_COVERAGE = "skill_coverage"
    CONCURRENCY_FEASIBILITY = "concurrency_feasibility"


_ISSUE_KEYS = (
    "type",
    "category",
    "message",
    "sheet",
    "row",
    "column",
    "value",
    "severity",
    "suggestion",
    "suggested_fix",
    "fixable",
    "validator_name",
)


@dataclass(frozen=True)
class ValidationIssue:
    """A single finding produced by a validator.

    Attributes:
        type: error / warning / info
        category: Canonical category tag
        message: Human readable description
        sheet: Sheet the finding belongs to (None for cross-sheet findings)
        row: 0-based data row index, HEADER_ROW (-1) for sheet-level findings
        column: Column the finding refers to
        value: Offending cell value (if any)
        severity: Derived from type unless given explicitly
        suggestion: Hint produced by the validator itself
        suggested_fix: Externally supplied fix text (e.g. from an LLM)
        fixable: Whether a mechanical fix exists
        validator_name: Name of the validator that raised the finding
        details: Structured fix data (suggested id, redistribution plan, ...)
    """
    type: IssueType
    category: IssueCategory
    message: str
    sheet: Sheet | None = None
    row: int | None = None
    column: str | None = None
    value: Any = None
    severity: Severity | None = None
    suggestion: str | None = None
    suggested_fix: str | None = None
    fixable: bool = False
    validator_name: str = ""
    details: Mapping[str, Any] | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.severity is None:
            object.__setattr__(self, "severity", Severity.for_type(self.type))

    @property
    def is_error(self) -> bool:
        return self.type is IssueType.ERROR

    @property
    def is_sheet_level(self) -> bool:
        return self.row == HEADER_ROW

    def with_suggested_fix(self, text: str) -> ValidationIssue:
        """Return a copy carrying an externally supplied fix suggestion."""
        return replace(self, suggested_fix=text)

    def to_dict(self) -> dict[str, Any]:
        assert self.severity is not None
        return {
            "type": self.type.value,
            "category": self.category.value,
            "message": self.message,
            "sheet": self.sheet.value if self.sheet else None,
            "row": self.row,
            "column": self.column,
            "value": self.value,
            "severity": self.severity.value,
            "suggestion": self.suggestion,
            "suggested_fix": self.suggested_fix,
            "fixable": self.fixable,
            "validator_name": self.validator_name,
        }

    def to_json_line(self) -> str:
        """Serialize to one JSON line with the fixed key set."""
        data = self.to_dict()
        assert tuple(data.keys()) == _ISSUE_KEYS
        return json.dumps(data, ensure_ascii=False, default=str)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of one validator run."""
    issues: tuple[ValidationIssue, ...]
    success: bool  # no error-type issues
    validator_name: str
    execution_time: float = 0.0  # seconds

    @property
    def has_errors(self) -> bool:
        return any(i.is_error for i in self.issues)


@dataclass(frozen=True)
class FixResult:
    """Outcome of a fix attempt. ``modified_data`` replaces ``sheet`` wholesale."""
    success: bool
    message: str
    modified_data: ParsedData | None = None
    sheet: Sheet | None = None


@dataclass(frozen=True)
class ValidationSummary:
    """Aggregated counts for one validation pass."""
    total_time: float
    validator_count: int
    issue_count: int
    errors: int
    warnings: int
    info: int
