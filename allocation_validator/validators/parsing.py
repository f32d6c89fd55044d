from __future__ import annotations

import json
import math
import re
from typing import Any

"""Cell parsing helpers shared by the validators.

Cells arrive as text (sheet loader) or as Python scalars (programmatic
callers); every helper accepts both.
"""

__all__ = [
    "is_blank",
    "to_number",
    "format_number",
    "split_list",
    "parse_numeric_list",
    "slot_count",
    "preferred_phases",
    "first_preferred_phase",
    "skill_set",
]

_RANGE_RE = re.compile(r"^(-?\d+)\s*-\s*(-?\d+)$")


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def to_number(value: Any) -> float | None:
    """Return ``value`` as a float, or None if blank / not numeric."""
    if is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    return None if math.isnan(number) else number


def format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def split_list(value: Any) -> list[str]:
    """Split a comma separated (or JSON array) cell into trimmed items."""
    if is_blank(value):
        return []
    if isinstance(value, list | tuple):
        return [str(v).strip() for v in value if str(v).strip()]
    text = str(value).strip()
    if text.startswith("[") and text.endswith("]"):
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            text = text[1:-1]
        else:
            if isinstance(parsed, list):
                return [str(v).strip() for v in parsed if str(v).strip()]
    return [part.strip().strip("'\"").strip() for part in text.split(",") if part.strip().strip("'\"").strip()]


def _as_int_if_whole(n: float) -> int | float:
    return int(n) if n.is_integer() else n


def parse_numeric_list(value: Any) -> list[int | float]:
    """Parse ``1,2`` / ``[1,2]`` / ``1-3`` / ``1, 3-4`` into numbers.

    Raises:
        ValueError: If any item is not a number or a range is inverted
    """
    if is_blank(value):
        return []
    single = to_number(value)
    if single is not None and not isinstance(value, str):
        return [_as_int_if_whole(single)]
    numbers: list[int | float] = []
    for item in split_list(value):
        match = _RANGE_RE.match(item)
        if match:
            start, end = int(match.group(1)), int(match.group(2))
            if start > end:
                raise ValueError(f"Invalid range: {item}")
            numbers.extend(range(start, end + 1))
            continue
        number = to_number(item)
        if number is None:
            raise ValueError(f"Invalid number: {item}")
        numbers.append(_as_int_if_whole(number))
    return numbers


def slot_count(value: Any) -> float | None:
    """Number of slots a worker has.

    A single number is the slot count itself; a list counts its entries.
    Returns None if the cell cannot be interpreted.
    """
    if is_blank(value):
        return None
    if not isinstance(value, str) or ("," not in value and not value.strip().startswith("[")):
        number = to_number(value)
        if number is not None:
            return number
    try:
        return float(len(parse_numeric_list(value)))
    except ValueError:
        return None


def preferred_phases(value: Any) -> list[int]:
    """Positive integer phases of a PreferredPhases cell; invalid items are dropped."""
    if is_blank(value):
        return []
    items = split_list(value) if isinstance(value, str | list | tuple) else [str(value)]
    phases: list[int] = []
    for item in items:
        match = _RANGE_RE.match(item.strip())
        if match:
            phases.extend(p for p in range(int(match.group(1)), int(match.group(2)) + 1) if p > 0)
            continue
        number = to_number(re.sub(r"^\s*phase\s*", "", str(item), flags=re.IGNORECASE))
        if number is not None and number > 0:
            phases.append(int(number))
    return phases


def first_preferred_phase(value: Any, default: int = 1) -> int:
    phases = preferred_phases(value)
    return phases[0] if phases else default


def skill_set(value: Any) -> set[str]:
    """Lower-cased, trimmed skills of a comma separated cell."""
    return {s.lower() for s in split_list(value)}
