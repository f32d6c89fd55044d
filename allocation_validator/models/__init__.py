"""Domain models for the allocation validator.

Sheets, issues, results, business rules and config dataclasses used across the
engine, the validators and the CLI.
"""

from .business_rule import (
    RULE_TYPES,
    BusinessRule,
    CoRunRule,
    LoadLimitRule,
    PatternMatchRule,
    PhaseRange,
    PhaseWindowRule,
    PrecedenceOverrideRule,
    SlotRestrictionRule,
    rule_from_dict,
)
from .config_models import NumericRange, SheetRequirements, ValidationConfig
from .issue import (
    HEADER_ROW,
    FixResult,
    IssueCategory,
    IssueType,
    Severity,
    ValidationIssue,
    ValidationResult,
    ValidationSummary,
)
from .parsed_data import ParsedData, Sheet

__all__ = [
    # Data
    "ParsedData",
    "Sheet",
    # Issues and results
    "HEADER_ROW",
    "IssueType",
    "IssueCategory",
    "Severity",
    "ValidationIssue",
    "ValidationResult",
    "FixResult",
    "ValidationSummary",
    # Rules
    "RULE_TYPES",
    "BusinessRule",
    "CoRunRule",
    "SlotRestrictionRule",
    "LoadLimitRule",
    "PhaseRange",
    "PhaseWindowRule",
    "PatternMatchRule",
    "PrecedenceOverrideRule",
    "rule_from_dict",
    # Configuration
    "NumericRange",
    "SheetRequirements",
    "ValidationConfig",
]
