from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

"""Parser for externally supplied fix suggestions.

Suggestion text usually comes from a language model and is free-form. Only a
narrow grammar is understood; anything else parses as UNPARSABLE and the fix
that needed it fails instead of guessing.

Recognized forms:
    Rename [header|column] <old> to <new>     (names quoted or bare)
    Add [missing] column <name>
    [💡] [**]Fix[**]: <value>                  (first quoted string = old header)
"""

__all__ = [
    "SuggestionKind",
    "ParsedSuggestion",
    "parse_suggestion",
    "extract_json_object",
    "repair_json",
]

_NAME = r"""(?:"([^"]+)"|'([^']+)'|([^\s"']+))"""
_RENAME_RE = re.compile(rf"\brename\s+(?:header\s+|column\s+)?{_NAME}\s+to\s+{_NAME}", re.IGNORECASE)
_ADD_RE = re.compile(rf"\badd\s+(?:missing\s+)?columns?\b[ \t]*:?[ \t]*{_NAME}?", re.IGNORECASE)
_FIX_RE = re.compile(r"(?:💡\s*)?\*{0,2}\bfix\*{0,2}\s*:\s*\**\s*([^\n\r]+)", re.IGNORECASE)
_QUOTED_RE = re.compile(r'"([^"]+)"')
_TRAILING_PUNCT = ".,;:!?)]*`"


class SuggestionKind(Enum):
    RENAME = "rename"
    ADD_COLUMN = "add_column"
    FIX_VALUE = "fix_value"
    UNPARSABLE = "unparsable"


@dataclass(frozen=True)
class ParsedSuggestion:
    kind: SuggestionKind
    old: str | None = None
    new: str | None = None
    value: str | None = None


UNPARSABLE = ParsedSuggestion(SuggestionKind.UNPARSABLE)


def _pick(match: re.Match[str], start: int) -> str | None:
    for group in match.groups()[start : start + 3]:
        if group:
            return _clean(group)
    return None


def _clean(name: str) -> str:
    return name.strip().strip("'\"").rstrip(_TRAILING_PUNCT).strip()


def _fix_section(text: str) -> str | None:
    match = _FIX_RE.search(text)
    if not match:
        return None
    value = match.group(1).strip().strip("*").strip()
    return value or None


def parse_suggestion(text: str | None) -> ParsedSuggestion:
    """Parse suggestion text into a structured instruction."""
    if not text or not text.strip():
        return UNPARSABLE

    add = _ADD_RE.search(text)
    if add:
        name = _pick(add, 0) or _fix_section(text)
        if name:
            return ParsedSuggestion(SuggestionKind.ADD_COLUMN, new=_clean(name))

    rename = _RENAME_RE.search(text)
    if rename:
        old, new = _pick(rename, 0), _pick(rename, 3)
        if old and new:
            return ParsedSuggestion(SuggestionKind.RENAME, old=old, new=new)

    value = _fix_section(text)
    if value:
        quoted = _QUOTED_RE.search(text)
        return ParsedSuggestion(
            SuggestionKind.FIX_VALUE,
            old=quoted.group(1).strip() if quoted else None,
            value=value,
        )
    return UNPARSABLE


def _balanced_spans(text: str) -> list[str]:
    """Candidate ``{...}`` substrings in order of their opening brace."""
    spans = []
    for start, ch in enumerate(text):
        if ch != "{":
            continue
        depth = 0
        in_string = False
        escaped = False
        for end in range(start, len(text)):
            c = text[end]
            if in_string:
                if escaped:
                    escaped = False
                elif c == "\\":
                    escaped = True
                elif c == '"':
                    in_string = False
                continue
            if c == '"':
                in_string = True
            elif c == "{":
                depth += 1
            elif c == "}":
                depth -= 1
                if depth == 0:
                    spans.append(text[start : end + 1])
                    break
    return spans


def extract_json_object(text: str | None) -> dict[str, Any] | None:
    """Return the first balanced ``{...}`` in ``text`` that parses as an object."""
    if not text:
        return None
    for candidate in _balanced_spans(text):
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_BARE_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_][\w-]*)(\s*:)")


def repair_json(raw: str) -> dict[str, Any] | None:
    """Mechanical repair of near-JSON text (quotes, trailing commas, bare keys)."""
    text = raw.strip()
    if not text:
        return None
    text = text.replace("'", '"')
    text = _TRAILING_COMMA_RE.sub(r"\1", text)
    text = _BARE_KEY_RE.sub(r'\1"\2"\3', text)
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None
