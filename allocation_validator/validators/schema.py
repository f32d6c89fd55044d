from __future__ import annotations

import logging
import re

from ..config.requirements import DATA_REQUIREMENTS, HEADER_PATTERNS, SHEET_ORDER
from ..models.issue import HEADER_ROW, FixResult, IssueCategory, ValidationIssue, ValidationResult
from ..models.parsed_data import ParsedData, Sheet
from ..validation.context import ContextHelper, ValidationContext
from ..validation.results import FixResultBuilder, ValidationResultBuilder
from ..validation.suggestions import SuggestionKind, parse_suggestion
from .base import Validator
from .parsing import is_blank

"""Schema validators: required columns, header mapping, duplicate IDs."""

__all__ = [
    "RequiredColumnsValidator",
    "HeaderMappingValidator",
    "DuplicateIDValidator",
    "map_headers",
]

logger = logging.getLogger(__name__)


class RequiredColumnsValidator(Validator):
    name = "RequiredColumnsValidator"
    category = "schema"
    issue_category = IssueCategory.MISSING_COLUMNS
    priority = 1

    def validate(self, context: ValidationContext) -> ValidationResult:
        builder = self.builder()
        for sheet in SHEET_ORDER:
            data = context.data(sheet)
            if data is None:
                continue
            required = ContextHelper.required_headers(context, sheet)
            required_lower = {r.lower() for r in required}
            present_lower = {h.strip().lower() for h in data.headers}
            missing = [r for r in required if r.lower() not in present_lower]
            unexpected = [h for h in data.headers if h.strip().lower() not in required_lower]

            for column in missing:
                if unexpected:
                    candidates = ", ".join(f'"{h}"' for h in unexpected)
                    suggestion = f'Rename one of the unexpected headers ({candidates}) to "{column}"'
                else:
                    suggestion = f'Add column "{column}" to the {sheet.value} sheet'
                builder.add_error(
                    f"Missing required column: {column}",
                    sheet,
                    row=HEADER_ROW,
                    column=column,
                    suggestion=suggestion,
                )
            if missing:
                logger.debug("%s: missing %d required columns", sheet.value, len(missing))
        return builder.build()


def map_headers(actual: tuple[str, ...], required: tuple[str, ...]) -> tuple[dict[str, str], list[str]]:
    """Map required header -> actual header.

    Exact case-insensitive matches are taken first, then the regex table for
    the remaining required headers; an actual header is used at most once.

    Returns:
        (mapping, extra headers not absorbed by any required header)
    """
    mapping: dict[str, str] = {}
    for req in required:
        exact = next((a for a in actual if a.strip().lower() == req.lower()), None)
        if exact is not None:
            mapping[req] = exact
    for req in required:
        if req in mapping:
            continue
        patterns = HEADER_PATTERNS.get(req, ())
        used = set(mapping.values())
        fuzzy = next(
            (a for a in actual if a not in used and any(p.search(a) for p in patterns)),
            None,
        )
        if fuzzy is not None:
            mapping[req] = fuzzy
    used = set(mapping.values())
    extra = [a for a in actual if a not in used]
    return mapping, extra


class HeaderMappingValidator(Validator):
    name = "HeaderMappingValidator"
    category = "schema"
    issue_category = IssueCategory.MISSING_COLUMNS
    priority = 2
    dependencies = ("RequiredColumnsValidator",)
    can_fix = True

    def validate(self, context: ValidationContext) -> ValidationResult:
        builder = self.builder()
        for sheet in SHEET_ORDER:
            data = context.data(sheet)
            if data is None:
                continue
            mapping, extra = map_headers(data.headers, ContextHelper.required_headers(context, sheet))
            for required, actual in mapping.items():
                if required == actual:
                    continue
                builder.add_warning(
                    f'Suggested header mapping: "{actual}" -> "{required}"',
                    sheet,
                    row=HEADER_ROW,
                    column=actual,
                    suggestion=f'Rename header "{actual}" to "{required}"',
                    fixable=True,
                )
            for header in extra:
                builder.add_warning(
                    f'Unexpected header: "{header}" (could not map to any required field)',
                    sheet,
                    row=HEADER_ROW,
                    column=header,
                    suggestion=f'Remove column "{header}" or map it to a required field',
                )
        return builder.build()

    def fix(self, issue: ValidationIssue, context: ValidationContext) -> FixResult:
        if issue.sheet is None:
            return FixResultBuilder.failure("Cannot fix: issue has no sheet")
        data = context.data(issue.sheet)
        if data is None:
            return FixResultBuilder.failure("No data found for sheet")

        parsed = parse_suggestion(issue.suggested_fix or issue.suggestion)
        if parsed.kind is SuggestionKind.RENAME:
            old, new = parsed.old, parsed.new
        elif parsed.kind is SuggestionKind.FIX_VALUE:
            old, new = parsed.old, parsed.value
        else:
            return FixResultBuilder.failure("Could not parse a rename instruction from the suggestion")
        if not old or not new:
            return FixResultBuilder.failure(f'Could not extract both header names (old="{old}", new="{new}")')

        found = data.find_header(old)
        if found is None:
            if new in data.headers:
                return FixResultBuilder.success(f'Header "{new}" already present', data, issue.sheet)
            return FixResultBuilder.failure(f'Header "{old}" not found. Available: [{", ".join(data.headers)}]')
        if found == new:
            return FixResultBuilder.success(f'Header "{new}" already present', data, issue.sheet)
        existing = data.find_header(new)
        if existing is not None and existing != found:
            return FixResultBuilder.failure(f'Column "{new}" already exists')
        return FixResultBuilder.success(
            f'Renamed header "{found}" -> "{new}"',
            data.rename_column(found, new),
            issue.sheet,
        )


_ID_NUMBER_RE = re.compile(r"^(.*?)(\d+)$")


def _split_id(value: str) -> tuple[str, int, int] | None:
    """'T007' -> ('T', 7, 3)."""
    match = _ID_NUMBER_RE.match(value)
    if not match:
        return None
    return match.group(1), int(match.group(2)), len(match.group(2))


class DuplicateIDValidator(Validator):
    """Duplicate / empty IDs, with a unique replacement suggested per duplicate.

    Replacement IDs prefer the local numbering (IDs within two rows above or
    below sharing the prefix): the first gap in that sequence, else its max+1,
    zero-padded to the duplicate's digit width. Otherwise the next unused
    ``{prefix}{n+1}``. IDs without a numeric tail get ``{id}_{k}``.
    """

    name = "DuplicateIDValidator"
    category = "schema"
    issue_category = IssueCategory.DUPLICATE_IDS
    priority = 3
    can_fix = True
    neighbor_window = 2

    def validate(self, context: ValidationContext) -> ValidationResult:
        builder = self.builder()
        reserved: set[str] = set()
        for sheet in SHEET_ORDER:
            data = context.data(sheet)
            if data is None:
                continue
            id_column = DATA_REQUIREMENTS[sheet].id_column
            header = data.find_header(id_column)
            if header is None:
                logger.debug("%s: ID column %s not found, skipping duplicate check", sheet.value, id_column)
                continue
            self._check_sheet(data, sheet, header, builder, reserved)
        return builder.build()

    def _check_sheet(
        self,
        data: ParsedData,
        sheet: Sheet,
        header: str,
        builder: ValidationResultBuilder,
        reserved: set[str],
    ) -> None:
        ids = ["" if is_blank(v) else str(v).strip() for v in data.column_values(header)]
        occurrences: dict[str, list[int]] = {}
        for index, value in enumerate(ids):
            if not value:
                builder.add_error(
                    f"Missing {header} at row {index + 1}",
                    sheet,
                    row=index,
                    column=header,
                    suggestion=f"Provide a unique {header}",
                )
                continue
            occurrences.setdefault(value, []).append(index)

        taken = set(ids) | reserved
        for value, rows in occurrences.items():
            if len(rows) < 2:
                continue
            for index in rows[1:]:
                suggested = self.suggest_id(value, index, ids, taken)
                taken.add(suggested)
                reserved.add(suggested)
                builder.add_error(
                    f'Duplicate {header}: "{value}" (found in {len(rows)} rows)',
                    sheet,
                    row=index,
                    column=header,
                    value=value,
                    suggestion=f'Change {header} to "{suggested}"',
                    fixable=True,
                    details={"suggested_id": suggested},
                )

    def suggest_id(self, value: str, index: int, ids: list[str], taken: set[str]) -> str:
        parts = _split_id(value)
        if parts is None:
            k = 1
            while f"{value}_{k}" in taken:
                k += 1
            return f"{value}_{k}"
        prefix, number, width = parts

        lo, hi = max(0, index - self.neighbor_window), min(len(ids), index + self.neighbor_window + 1)
        neighbors = sorted(
            {
                p[1]
                for i in range(lo, hi)
                if i != index and (p := _split_id(ids[i])) is not None and p[0] == prefix
            }
        )
        candidate: int | None = None
        if neighbors:
            for a, b in zip(neighbors, neighbors[1:], strict=False):
                if b - a > 1:
                    candidate = a + 1
                    break
            if candidate is None:
                candidate = neighbors[-1] + 1
        else:
            candidate = number + 1
        while f"{prefix}{candidate:0{width}d}" in taken:
            candidate += 1
        return f"{prefix}{candidate:0{width}d}"

    def fix(self, issue: ValidationIssue, context: ValidationContext) -> FixResult:
        if issue.sheet is None or issue.row is None or issue.row < 0 or not issue.column:
            return FixResultBuilder.failure("Cannot fix: missing data or location information")
        data = context.data(issue.sheet)
        if data is None or issue.row >= len(data):
            return FixResultBuilder.failure("Cannot fix: row not found")

        existing = {str(v).strip() for v in data.column_values(issue.column) if not is_blank(v)}
        new_id = self._external_id(issue, existing)
        if new_id is None:
            suggested = (issue.details or {}).get("suggested_id")
            if suggested and suggested not in existing:
                new_id = suggested
        if new_id is None:
            current = str(data.value(issue.row, issue.column) or "").strip()
            ids = [str(v).strip() if not is_blank(v) else "" for v in data.column_values(issue.column)]
            new_id = self.suggest_id(current, issue.row, ids, existing)

        old = data.value(issue.row, issue.column)
        return FixResultBuilder.success(
            f'Generated unique ID: "{old}" -> "{new_id}"',
            data.replace_cell(issue.row, issue.column, new_id),
            issue.sheet,
        )

    @staticmethod
    def _external_id(issue: ValidationIssue, existing: set[str]) -> str | None:
        if not issue.suggested_fix:
            return None
        parsed = parse_suggestion(issue.suggested_fix)
        candidate = parsed.value if parsed.kind is SuggestionKind.FIX_VALUE else None
        if candidate:
            candidate = candidate.strip().strip("'\"`").strip()
        if candidate and " " not in candidate and candidate not in existing:
            return candidate
        return None
