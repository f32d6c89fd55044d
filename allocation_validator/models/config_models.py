from __future__ import annotations

from dataclasses import dataclass, field

from .parsed_data import Sheet

"""Config dataclasses for the allocation validator.

ValidationConfig controls one validation pass; SheetRequirements describes
what a well-formed sheet looks like (required headers, ID column, typed
columns and numeric ranges).
"""

__all__ = [
    "DEFAULT_ENABLED_VALIDATORS",
    "DEFAULT_PHASES",
    "NumericRange",
    "SheetRequirements",
    "ValidationConfig",
]

DEFAULT_ENABLED_VALIDATORS: tuple[str, ...] = (
    "RequiredColumnsValidator",
    "HeaderMappingValidator",
    "DuplicateIDValidator",
    "JSONValidator",
    "ListFormatValidator",
    "RangeValidator",
    "TaskReferenceValidator",
    "SkillCoverageValidator",
    "WorkerCapacityValidator",
    "ConcurrencyFeasibilityValidator",
    "CircularCoRunValidator",
    "ConflictingRulesValidator",
    "PhaseSaturationValidator",
)

DEFAULT_PHASES: tuple[int, ...] = (1, 2, 3, 4, 5)


@dataclass(frozen=True)
class NumericRange:
    min: float | None = None
    max: float | None = None

    def contains(self, value: float) -> bool:
        if self.min is not None and value < self.min:
            return False
        if self.max is not None and value > self.max:
            return False
        return True

    def clamp(self, value: float) -> float:
        if self.min is not None and value < self.min:
            return self.min
        if self.max is not None and value > self.max:
            return self.max
        return value

    def describe(self) -> str:
        if self.min is not None and self.max is not None:
            return f"between {_fmt(self.min)} and {_fmt(self.max)}"
        if self.min is not None:
            return f">= {_fmt(self.min)}"
        if self.max is not None:
            return f"<= {_fmt(self.max)}"
        return ""


def _fmt(n: float) -> str:
    return str(int(n)) if float(n).is_integer() else str(n)


@dataclass(frozen=True)
class SheetRequirements:
    """Shape requirements for one sheet."""
    sheet: Sheet
    required: tuple[str, ...]
    id_column: str
    json_columns: tuple[str, ...] = ()
    list_columns: tuple[str, ...] = ()  # comma separated text items
    numeric_list_columns: tuple[str, ...] = ()  # comma separated numbers
    ranges: dict[str, NumericRange] = field(default_factory=dict)


@dataclass(frozen=True)
class ValidationConfig:
    """Options for one validation pass.

    Attributes:
        enabled_validators: Names of validators allowed to run
        strict_mode: Stop after the first validator that reports an error
        auto_fix: Apply mechanical fixes after validation (host decides)
        skip_dependent_validators: Skip validators whose dependencies errored
        phases: Scheduling phases every worker is assumed available in
        high_utilization_ratio: Demand/capacity ratio that triggers a warning
    """
    enabled_validators: tuple[str, ...] = DEFAULT_ENABLED_VALIDATORS
    strict_mode: bool = False
    auto_fix: bool = False
    skip_dependent_validators: bool = False
    phases: tuple[int, ...] = DEFAULT_PHASES
    high_utilization_ratio: float = 0.8
