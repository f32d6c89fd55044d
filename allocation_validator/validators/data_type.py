from __future__ import annotations

import json

from ..config.requirements import DATA_REQUIREMENTS, SHEET_ORDER
from ..models.issue import FixResult, IssueCategory, ValidationIssue, ValidationResult
from ..models.parsed_data import ParsedData
from ..validation.context import ValidationContext
from ..validation.results import FixResultBuilder
from ..validation.suggestions import extract_json_object, repair_json
from .base import Validator
from .parsing import format_number, is_blank, parse_numeric_list, split_list, to_number

"""Data-type validators: JSON objects, list cells and numeric ranges."""

__all__ = [
    "JSONValidator",
    "ListFormatValidator",
    "RangeValidator",
]


def _locate(issue: ValidationIssue, context: ValidationContext) -> ParsedData | None:
    """Data for the issue's sheet if the issue points at an existing cell."""
    if issue.sheet is None or issue.row is None or issue.row < 0 or not issue.column:
        return None
    data = context.data(issue.sheet)
    if data is None or issue.row >= len(data) or not data.has_column(issue.column):
        return None
    return data


def _whole(n: float) -> int | float:
    return int(n) if float(n).is_integer() else n


def _json_error(raw: str) -> str | None:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        return e.msg
    if parsed is None:
        return "value is null (expected JSON object)"
    if isinstance(parsed, list):
        return "value is an array (expected JSON object)"
    if not isinstance(parsed, dict):
        return "value is not a JSON object"
    return None


class JSONValidator(Validator):
    name = "JSONValidator"
    category = "data_type"
    issue_category = IssueCategory.JSON_FIELDS
    priority = 10
    can_fix = True

    def validate(self, context: ValidationContext) -> ValidationResult:
        builder = self.builder()
        for sheet in SHEET_ORDER:
            data = context.data(sheet)
            if data is None:
                continue
            for column in DATA_REQUIREMENTS[sheet].json_columns:
                header = data.find_header(column)
                if header is None:
                    continue
                for index, value in enumerate(data.column_values(header)):
                    if is_blank(value):
                        continue
                    error = _json_error(str(value).strip())
                    if error is None:
                        continue
                    builder.add_error(
                        f"Invalid JSON in {header} at row {index + 1}: {error}",
                        sheet,
                        row=index,
                        column=header,
                        value=value,
                        suggestion=f'Convert "{value}" to a valid JSON object',
                        fixable=repair_json(str(value)) is not None,
                    )
        return builder.build()

    def fix(self, issue: ValidationIssue, context: ValidationContext) -> FixResult:
        data = _locate(issue, context)
        if data is None:
            return FixResultBuilder.failure("Cannot fix: missing data or location information")
        assert issue.row is not None and issue.column is not None and issue.sheet is not None

        current = data.value(issue.row, issue.column)
        if issue.suggested_fix:
            obj = extract_json_object(issue.suggested_fix)
        else:
            obj = repair_json(str(current or ""))
        if obj is None:
            return FixResultBuilder.failure(f'Cannot fix: no usable JSON for "{current}"')

        fixed = json.dumps(obj, ensure_ascii=False)
        return FixResultBuilder.success(
            f'Converted to valid JSON: "{current}" -> "{fixed}"',
            data.replace_cell(issue.row, issue.column, fixed),
            issue.sheet,
        )


class ListFormatValidator(Validator):
    """Text list cells need at least one item; numeric list cells must parse."""

    name = "ListFormatValidator"
    category = "data_type"
    issue_category = IssueCategory.MALFORMED_LISTS
    priority = 11
    can_fix = True

    def validate(self, context: ValidationContext) -> ValidationResult:
        builder = self.builder()
        for sheet in SHEET_ORDER:
            data = context.data(sheet)
            if data is None:
                continue
            req = DATA_REQUIREMENTS[sheet]
            for column in (*req.list_columns, *req.numeric_list_columns):
                header = data.find_header(column)
                if header is None:
                    continue
                numeric = column in req.numeric_list_columns
                for index, value in enumerate(data.column_values(header)):
                    if is_blank(value):
                        continue
                    if numeric:
                        try:
                            parse_numeric_list(value)
                        except ValueError as e:
                            builder.add_error(
                                f"Invalid numeric list in {header} at row {index + 1}: {e}",
                                sheet,
                                row=index,
                                column=header,
                                value=value,
                                suggestion='Use comma-separated numbers (e.g. "1,2,3")',
                                fixable=True,
                            )
                    elif not split_list(value):
                        builder.add_warning(
                            f"Empty list in {header} at row {index + 1}",
                            sheet,
                            row=index,
                            column=header,
                            value=value,
                            suggestion="Provide at least one item or leave the cell empty",
                            fixable=True,
                        )
        return builder.build()

    def fix(self, issue: ValidationIssue, context: ValidationContext) -> FixResult:
        data = _locate(issue, context)
        if data is None:
            return FixResultBuilder.failure("Cannot fix: missing data or location information")
        assert issue.row is not None and issue.column is not None and issue.sheet is not None

        current = data.value(issue.row, issue.column)
        column = issue.column.strip().lower()
        numeric = any(c.lower() == column for c in DATA_REQUIREMENTS[issue.sheet].numeric_list_columns)
        if numeric:
            # keep the items that are numbers, drop the rest
            items = []
            for part in split_list(current):
                try:
                    items.extend(parse_numeric_list(part))
                except ValueError:
                    continue
            fixed = ",".join(format_number(n) for n in items)
        else:
            fixed = ",".join(split_list(current))
        return FixResultBuilder.success(
            f'Normalized list: "{current}" -> "{fixed}"',
            data.replace_cell(issue.row, issue.column, fixed),
            issue.sheet,
        )


class RangeValidator(Validator):
    name = "RangeValidator"
    category = "data_type"
    issue_category = IssueCategory.OUT_OF_RANGE
    priority = 12
    can_fix = True

    def validate(self, context: ValidationContext) -> ValidationResult:
        builder = self.builder()
        for sheet in SHEET_ORDER:
            data = context.data(sheet)
            if data is None:
                continue
            for column, bounds in DATA_REQUIREMENTS[sheet].ranges.items():
                header = data.find_header(column)
                if header is None:
                    continue
                for index, value in enumerate(data.column_values(header)):
                    if is_blank(value):
                        continue
                    number = to_number(value)
                    if number is None:
                        builder.add_error(
                            f"{header} at row {index + 1} is not a number: {value}",
                            sheet,
                            row=index,
                            column=header,
                            value=value,
                            suggestion=f"{header} must be a number {bounds.describe()}",
                        )
                    elif not bounds.contains(number):
                        builder.add_error(
                            f"{header} at row {index + 1} is out of range: {value} (must be {bounds.describe()})",
                            sheet,
                            row=index,
                            column=header,
                            value=value,
                            suggestion=f"Set {header} to {format_number(bounds.clamp(number))}",
                            fixable=True,
                        )
        return builder.build()

    def fix(self, issue: ValidationIssue, context: ValidationContext) -> FixResult:
        data = _locate(issue, context)
        if data is None:
            return FixResultBuilder.failure("Cannot fix: missing data or location information")
        assert issue.row is not None and issue.column is not None and issue.sheet is not None

        ranges = {c.lower(): r for c, r in DATA_REQUIREMENTS[issue.sheet].ranges.items()}
        bounds = ranges.get(issue.column.strip().lower())
        current = data.value(issue.row, issue.column)
        number = to_number(current)
        if bounds is None or number is None:
            return FixResultBuilder.failure(f"Cannot fix: {issue.column} value {current!r} is not a ranged number")
        clamped = bounds.clamp(number)
        # keep the cell type: text stays text
        fixed: str | int | float = format_number(clamped) if isinstance(current, str) else _whole(clamped)
        return FixResultBuilder.success(
            f"Clamped {issue.column}: {current} -> {fixed}",
            data.replace_cell(issue.row, issue.column, fixed),
            issue.sheet,
        )
