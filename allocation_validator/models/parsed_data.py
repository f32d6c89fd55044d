from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

"""Tabular dataset model for the allocation validator.

ParsedData is the immutable view of one sheet (headers + rows) that every
validator reads during a validation pass. Edits never happen in place: the
helpers below return a new ParsedData and leave the original untouched, so a
fix result can be swapped in wholesale by the caller.
"""

__all__ = [
    "Sheet",
    "ParsedData",
    "CellValue",
]

CellValue = str | int | float | None


class Sheet(Enum):
    """The three related datasets checked by the engine."""
    CLIENTS = "clients"
    WORKERS = "workers"
    TASKS = "tasks"


def _freeze_row(row: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(row))


@dataclass(frozen=True)
class ParsedData:
    """Immutable headers + rows for a single sheet.

    Attributes:
        headers: Column names in source order
        rows: Records mapping header name -> cell value (read-only mappings)
    """
    headers: tuple[str, ...] = ()
    rows: tuple[Mapping[str, Any], ...] = field(default=())

    def __post_init__(self) -> None:
        # Accept lists / plain dicts from callers, store tuples of read-only rows
        object.__setattr__(self, "headers", tuple(str(h) for h in self.headers))
        object.__setattr__(self, "rows", tuple(_freeze_row(r) for r in self.rows))

    @classmethod
    def from_records(cls, headers: Iterable[str], rows: Iterable[Mapping[str, Any]]) -> ParsedData:
        return cls(headers=tuple(headers), rows=tuple(rows))

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def find_header(self, name: str) -> str | None:
        """Return the actual header matching ``name`` case-insensitively."""
        wanted = name.strip().lower()
        for header in self.headers:
            if header.strip().lower() == wanted:
                return header
        return None

    def has_column(self, name: str) -> bool:
        return self.find_header(name) is not None

    def column_values(self, name: str) -> list[Any]:
        header = self.find_header(name)
        if header is None:
            return []
        return [row.get(header) for row in self.rows]

    def value(self, row_index: int, column: str) -> Any:
        header = self.find_header(column) or column
        return self.rows[row_index].get(header)

    # ------------------------------------------------------------------
    # Copy-on-write helpers
    # ------------------------------------------------------------------
    def replace_cell(self, row_index: int, column: str, value: Any) -> ParsedData:
        """Return a copy with one cell replaced.

        Raises:
            IndexError: If row_index is outside the data rows
        """
        if row_index < 0 or row_index >= len(self.rows):
            raise IndexError(f"row {row_index} out of range (rows={len(self.rows)})")
        header = self.find_header(column) or column
        rows = [dict(r) for r in self.rows]
        rows[row_index][header] = value
        headers = self.headers if header in self.headers else (*self.headers, header)
        return ParsedData(headers=headers, rows=rows)

    def rename_column(self, old: str, new: str) -> ParsedData:
        """Rename ``old`` to ``new`` in the header list and every row.

        Returns ``self`` unchanged when ``old`` is not a header, which makes a
        repeated rename a no-op.

        Raises:
            ValueError: If ``new`` is already another column's header
        """
        if old not in self.headers or old == new:
            return self
        if new in self.headers:
            raise ValueError(f'column "{new}" already exists')
        headers = tuple(new if h == old else h for h in self.headers)
        rows = []
        for row in self.rows:
            renamed = {}
            for key, val in row.items():
                renamed[new if key == old else key] = val
            rows.append(renamed)
        return ParsedData(headers=headers, rows=rows)

    def add_column(self, name: str, default: Any = "") -> ParsedData:
        """Append a column filled with ``default`` for every row."""
        rows = [{**r, name: default} for r in self.rows]
        return ParsedData(headers=(*self.headers, name), rows=rows)

    def to_records(self) -> list[dict[str, Any]]:
        return [dict(r) for r in self.rows]
