from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..models.issue import (
    HEADER_ROW,
    FixResult,
    IssueCategory,
    ValidationIssue,
    ValidationResult,
    ValidationSummary,
)
from ..services.progress import ValidationProgress
from .context import ContextHelper, ValidationContext
from .registry import ValidatorRegistry
from .results import FixResultBuilder, ValidationResultAggregator
from .suggestions import SuggestionKind, parse_suggestion

if TYPE_CHECKING:
    from ..validators.base import Validator, ValidatorCategory

"""Validation engine.

Runs the registry's ordered validators over a context, isolates validator
failures, aggregates issues and routes fix requests.

Fix routing for issues whose own validator cannot fix them but that carry an
external ``suggested_fix`` is string-pattern based (category + message +
suggestion text). It is a best-effort heuristic, not a contract:
    json_fields + "{" in suggestion   -> JSONValidator
    "duplicate" in message            -> DuplicateIDValidator
    missing_columns + "Add column"    -> add-column handler
    other missing_columns             -> HeaderMappingValidator (rename)
"""

__all__ = ["ValidationEngine"]

logger = logging.getLogger(__name__)

JSON_VALIDATOR = "JSONValidator"
DUPLICATE_VALIDATOR = "DuplicateIDValidator"
HEADER_VALIDATOR = "HeaderMappingValidator"


class ValidationEngine:
    def __init__(self, registry: ValidatorRegistry | None = None, *, show_progress: bool = False) -> None:
        if registry is None:
            from ..validators import build_default_registry

            registry = build_default_registry()
        self.registry = registry
        self.show_progress = show_progress
        self._aggregator = ValidationResultAggregator()
        self.last_summary: ValidationSummary | None = None

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def run_validation(self, context: ValidationContext) -> list[ValidationIssue]:
        """Run every enabled validator in resolved order.

        Returns:
            Flattened issue list in validator run order

        Raises:
            DependencyCycleError: If validator dependencies form a cycle
        """
        self._aggregator = ValidationResultAggregator()
        validators = self.registry.get_execution_order(context)
        logger.debug("Running %d validators: %s", len(validators), [v.name for v in validators])

        skipped: set[str] = set()
        with ValidationProgress(len(validators), enabled=self.show_progress) as progress:
            for validator in validators:
                progress.start(validator.name)
                if validator.name in skipped:
                    logger.info("Skipping %s (a dependency reported errors)", validator.name)
                    progress.finish()
                    continue

                result = self.run_validator(validator, context)
                self._aggregator.add(result)
                progress.finish(issues=len(result.issues))

                if result.has_errors and ContextHelper.is_strict_mode(context):
                    logger.info("Stopping validation after errors in %s (strict mode)", validator.name)
                    break
                if result.has_errors and context.config.skip_dependent_validators:
                    dependents = self.registry.dependents_of(validator.name, validators)
                    if dependents:
                        logger.info(
                            "Skipping validators dependent on %s: %s",
                            validator.name,
                            ", ".join(sorted(dependents)),
                        )
                    skipped |= dependents

        self.last_summary = self._aggregator.summary()
        logger.debug(
            "Validation complete: %d issues in %.3fs",
            self.last_summary.issue_count,
            self.last_summary.total_time,
        )
        return self._aggregator.all_issues()

    def run_validator(self, validator: Validator, context: ValidationContext) -> ValidationResult:
        """Run one validator; an exception becomes a synthetic error issue."""
        builder = validator.builder()
        try:
            return validator.validate(context)
        except Exception as e:
            logger.exception("Validator %s failed", validator.name)
            builder.add_error(
                f"Validator {validator.name} failed: {e}",
                None,
                row=HEADER_ROW,
            )
            return builder.build()

    def run_validation_by_category(
        self, context: ValidationContext, category: ValidatorCategory
    ) -> list[ValidationIssue]:
        """Run only the enabled validators of one category, priority ordered."""
        self._aggregator = ValidationResultAggregator()
        eligible = [
            v
            for v in self.registry.by_category(category)
            if v.enabled and ContextHelper.is_validator_enabled(context, v.name)
        ]
        for validator in self.registry.get_sorted_by_priority(eligible):
            self._aggregator.add(self.run_validator(validator, context))
        self.last_summary = self._aggregator.summary()
        return self._aggregator.all_issues()

    @property
    def last_issues(self) -> list[ValidationIssue]:
        return self._aggregator.all_issues()

    def register_validator(self, validator: Validator) -> None:
        self.registry.register(validator)

    def validation_stats(self) -> dict[str, object]:
        validators = self.registry.all()
        return {
            "total_validators": len(validators),
            "enabled_validators": sum(1 for v in validators if v.enabled),
            "categories": self.registry.category_counts(),
        }

    # ------------------------------------------------------------------
    # Fixes
    # ------------------------------------------------------------------
    def apply_fix(self, issue: ValidationIssue, context: ValidationContext) -> FixResult:
        """Produce a modified dataset for ``issue``. Never mutates ``context``."""
        validator = self.registry.get(issue.validator_name)
        if validator is None:
            return FixResultBuilder.failure(f"Validator {issue.validator_name} not found")

        if validator.can_fix and issue.fixable:
            return self._run_fix(validator, issue, context)

        if issue.suggested_fix:
            return self._route_suggested_fix(issue, context)

        return FixResultBuilder.failure(
            f"Validator {issue.validator_name} does not support fixing this issue"
        )

    def _run_fix(self, validator: Validator, issue: ValidationIssue, context: ValidationContext) -> FixResult:
        try:
            return validator.fix(issue, context)
        except Exception as e:
            logger.exception("Fix by %s failed", validator.name)
            return FixResultBuilder.failure(f"Fix failed: {e}")

    def _route_suggested_fix(self, issue: ValidationIssue, context: ValidationContext) -> FixResult:
        suggestion = issue.suggested_fix or ""
        target: str | None = None
        if issue.category is IssueCategory.JSON_FIELDS and "{" in suggestion:
            target = JSON_VALIDATOR
        elif "duplicate" in issue.message.lower():
            target = DUPLICATE_VALIDATOR
        elif issue.category is IssueCategory.MISSING_COLUMNS:
            parsed = parse_suggestion(suggestion)
            if parsed.kind is SuggestionKind.ADD_COLUMN:
                try:
                    return self._add_column(issue, context, parsed.new or "")
                except Exception as e:
                    logger.exception("Add-column fix failed")
                    return FixResultBuilder.failure(f"Fix failed: {e}")
            target = HEADER_VALIDATOR

        validator = self.registry.get(target) if target else None
        if validator is None or not validator.can_fix:
            return FixResultBuilder.failure(f"No fix handler for suggestion on: {issue.message}")
        logger.debug("Routing suggested fix for %s to %s", issue.validator_name, validator.name)
        return self._run_fix(validator, issue, context)

    @staticmethod
    def _add_column(issue: ValidationIssue, context: ValidationContext, column: str) -> FixResult:
        if issue.sheet is None:
            return FixResultBuilder.failure("Cannot add column: issue has no sheet")
        data = context.data(issue.sheet)
        if data is None:
            return FixResultBuilder.failure("No data found for sheet")
        if not column:
            return FixResultBuilder.failure("Could not extract column name from suggestion")
        if data.has_column(column):
            return FixResultBuilder.failure(f'Column "{column}" already exists')
        return FixResultBuilder.success(
            f'Added missing column "{column}"',
            data.add_column(column, ""),
            issue.sheet,
        )

    def auto_fix(
        self, context: ValidationContext, max_fixes: int = 50
    ) -> tuple[ValidationContext, list[FixResult]]:
        """Apply fixable issues one at a time, re-validating after each fix.

        Each issue (by value) is attempted at most once. Stops when no
        untried fixable issue remains or ``max_fixes`` attempts were made.
        """
        attempted: set[ValidationIssue] = set()
        results: list[FixResult] = []
        current = context
        while len(results) < max_fixes:
            issues = self.run_validation(current)
            candidate = next((i for i in issues if i.fixable and i not in attempted), None)
            if candidate is None:
                break
            attempted.add(candidate)
            result = self.apply_fix(candidate, current)
            results.append(result)
            if result.success and result.modified_data is not None and result.sheet is not None:
                logger.info("Applied fix: %s", result.message)
                current = current.with_data(result.sheet, result.modified_data)
            else:
                logger.warning("Fix not applied: %s", result.message)
        return current, results
