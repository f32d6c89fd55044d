from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any

from ..models.issue import (
    FixResult,
    IssueCategory,
    IssueType,
    Severity,
    ValidationIssue,
    ValidationResult,
    ValidationSummary,
)
from ..models.parsed_data import ParsedData, Sheet

"""Builders for validator results and fix results, plus the pass aggregator."""

__all__ = [
    "ValidationResultBuilder",
    "FixResultBuilder",
    "ValidationResultAggregator",
]


class ValidationResultBuilder:
    """Accumulates issues for one validator run and times it.

    Every issue added here is stamped with the validator name and the default
    category given at construction (overridable per issue).
    """

    def __init__(self, validator_name: str, category: IssueCategory) -> None:
        self.validator_name = validator_name
        self.category = category
        self._issues: list[ValidationIssue] = []
        self._start = time.perf_counter()

    def _add(
        self,
        issue_type: IssueType,
        message: str,
        sheet: Sheet | None,
        *,
        row: int | None = None,
        column: str | None = None,
        value: Any = None,
        category: IssueCategory | None = None,
        suggestion: str | None = None,
        fixable: bool = False,
        details: Mapping[str, Any] | None = None,
    ) -> ValidationResultBuilder:
        self._issues.append(
            ValidationIssue(
                type=issue_type,
                category=category or self.category,
                message=message,
                sheet=sheet,
                row=row,
                column=column,
                value=value,
                suggestion=suggestion,
                fixable=fixable,
                validator_name=self.validator_name,
                details=details,
            )
        )
        return self

    def add_error(self, message: str, sheet: Sheet | None, **kwargs: Any) -> ValidationResultBuilder:
        return self._add(IssueType.ERROR, message, sheet, **kwargs)

    def add_warning(self, message: str, sheet: Sheet | None, **kwargs: Any) -> ValidationResultBuilder:
        return self._add(IssueType.WARNING, message, sheet, **kwargs)

    def add_info(self, message: str, sheet: Sheet | None, **kwargs: Any) -> ValidationResultBuilder:
        return self._add(IssueType.INFO, message, sheet, **kwargs)

    @property
    def issues(self) -> tuple[ValidationIssue, ...]:
        return tuple(self._issues)

    def build(self) -> ValidationResult:
        issues = tuple(self._issues)
        return ValidationResult(
            issues=issues,
            success=not any(i.is_error for i in issues),
            validator_name=self.validator_name,
            execution_time=time.perf_counter() - self._start,
        )


class FixResultBuilder:
    @staticmethod
    def success(message: str, modified_data: ParsedData | None = None, sheet: Sheet | None = None) -> FixResult:
        return FixResult(success=True, message=message, modified_data=modified_data, sheet=sheet)

    @staticmethod
    def failure(message: str) -> FixResult:
        return FixResult(success=False, message=message)


class ValidationResultAggregator:
    """Collects validator results for one pass, in run order."""

    def __init__(self) -> None:
        self.results: list[ValidationResult] = []

    def add(self, result: ValidationResult) -> None:
        self.results.append(result)

    def all_issues(self) -> list[ValidationIssue]:
        return [issue for result in self.results for issue in result.issues]

    def by_category(self, category: IssueCategory) -> list[ValidationIssue]:
        return [i for i in self.all_issues() if i.category is category]

    def by_sheet(self, sheet: Sheet) -> list[ValidationIssue]:
        return [i for i in self.all_issues() if i.sheet is sheet]

    def by_severity(self, severity: Severity) -> list[ValidationIssue]:
        return [i for i in self.all_issues() if i.severity is severity]

    def count(self, issue_type: IssueType) -> int:
        return sum(1 for i in self.all_issues() if i.type is issue_type)

    @property
    def has_errors(self) -> bool:
        return self.count(IssueType.ERROR) > 0

    def summary(self) -> ValidationSummary:
        issues = self.all_issues()
        return ValidationSummary(
            total_time=sum(r.execution_time for r in self.results),
            validator_count=len(self.results),
            issue_count=len(issues),
            errors=sum(1 for i in issues if i.type is IssueType.ERROR),
            warnings=sum(1 for i in issues if i.type is IssueType.WARNING),
            info=sum(1 for i in issues if i.type is IssueType.INFO),
        )
