from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar, Literal

from ..models.issue import FixResult, IssueCategory, ValidationIssue, ValidationResult
from ..validation.context import ValidationContext
from ..validation.results import FixResultBuilder, ValidationResultBuilder

"""Validator base class.

A validator is a named, prioritized check over a ValidationContext. Concrete
validators set the class attributes below and implement ``validate``; those
with ``can_fix = True`` also override ``fix``.
"""

__all__ = [
    "ValidatorCategory",
    "Validator",
]

ValidatorCategory = Literal["schema", "data_type", "relational", "business"]


class Validator(ABC):
    name: ClassVar[str]
    category: ClassVar[ValidatorCategory]
    issue_category: ClassVar[IssueCategory]
    priority: ClassVar[int] = 100
    dependencies: ClassVar[tuple[str, ...]] = ()
    can_fix: ClassVar[bool] = False

    def __init__(self, *, enabled: bool = True) -> None:
        self.enabled = enabled

    def builder(self) -> ValidationResultBuilder:
        return ValidationResultBuilder(self.name, self.issue_category)

    @abstractmethod
    def validate(self, context: ValidationContext) -> ValidationResult:
        raise NotImplementedError

    def fix(self, issue: ValidationIssue, context: ValidationContext) -> FixResult:
        return FixResultBuilder.failure(f"Validator {self.name} does not support fixing")

    def __repr__(self) -> str:  # pragma: no cover (debug aid)
        return f"<{type(self).__name__} priority={self.priority}>"
