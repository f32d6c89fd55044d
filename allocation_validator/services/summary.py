from __future__ import annotations

from ..models.issue import ValidationSummary

"""SUMMARY line rendering for a validation pass."""

__all__ = ["render_summary_line", "format_seconds"]


def format_seconds(value: float) -> str:
    """Render elapsed seconds without scientific notation or trailing zeros."""
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    return f"{value:.6f}".rstrip("0").rstrip(".")


def render_summary_line(summary: ValidationSummary, elapsed_seconds: float | None = None) -> str:
    """Render the SUMMARY line.

    Format:
        SUMMARY validators={n} issues={n} errors={n} warnings={n} info={n} elapsed_sec={s}

    ``elapsed_seconds`` overrides the summed validator time (wall clock
    including loading, for the CLI).

    Examples:
        >>> s = ValidationSummary(total_time=2.0, validator_count=13, issue_count=3,
        ...                       errors=1, warnings=2, info=0)
        >>> render_summary_line(s)
        'SUMMARY validators=13 issues=3 errors=1 warnings=2 info=0 elapsed_sec=2'
    """
    elapsed = summary.total_time if elapsed_seconds is None else elapsed_seconds
    return (
        f"SUMMARY validators={summary.validator_count} "
        f"issues={summary.issue_count} "
        f"errors={summary.errors} "
        f"warnings={summary.warnings} "
        f"info={summary.info} "
        f"elapsed_sec={format_seconds(elapsed)}"
    )
