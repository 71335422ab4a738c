"""Natural, blanks-last ordering of rows."""

from __future__ import annotations

import re
import unicodedata
from typing import Any, Callable, Sequence, TypeVar

from catalog_engine.models import is_blank, stringify

T = TypeVar("T")

_DIGITS = re.compile(r"(\d+)")

# Collation order for punctuation, symbols and whitespace; all sort before digits.
_PUNCTUATION_ORDER = " _-,;:!?.'\"()[]{}@*/\\&#%`^+<=>|~$"
_PUNCTUATION_RANK = {ch: idx for idx, ch in enumerate(_PUNCTUATION_ORDER)}


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()


def _char_key(ch: str) -> tuple[int, int, str]:
    if ch.isspace() or unicodedata.category(ch)[0] in "PSZ":
        return (0, _PUNCTUATION_RANK.get(ch, len(_PUNCTUATION_ORDER) + ord(ch)), "")
    return (2, 0, ch)


def natural_key(value: Any) -> tuple:
    """Numeric-aware, case- and accent-insensitive sort key ("9" < "10").

    Punctuation and whitespace sort before digits, digits before letters.
    """

    parts = []
    for chunk in _DIGITS.split(stringify(value)):
        if not chunk:
            continue
        if chunk.isdecimal():
            parts.append((1, int(chunk), ""))
        else:
            parts.extend(_char_key(ch) for ch in _fold(chunk))
    return tuple(parts)


def sort_blanks_last(
    items: Sequence[T],
    value_of: Callable[[T], Any],
    *,
    descending: bool = False,
) -> list[T]:
    """Stable sort by ``value_of``; blank values always trail, in input order."""

    filled = [item for item in items if not is_blank(value_of(item))]
    blanks = [item for item in items if is_blank(value_of(item))]
    filled.sort(key=lambda item: natural_key(value_of(item)), reverse=descending)
    return filled + blanks


__all__ = ["natural_key", "sort_blanks_last"]
