#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Stable multi-key ordering for read models.

Keys compare the way a human reads them: case and accents are ignored and runs
of digits compare as numbers ("Item 9" < "Item 10").  Every sorter ends with
the id so ties are broken deterministically.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import re
from functools import cmp_to_key
from typing import Any, Callable, Iterable, Sequence

from .slug import strip_diacritics

_CHUNKS = re.compile(r"(\d+)")


# -----------------------------------------------------------------------------

def natural_key(value: str | None) -> tuple:
    folded = strip_diacritics(value or "").casefold()
    parts = _CHUNKS.split(folded)
    # Tag each chunk so numbers and text never compare against each other.
    return tuple((0, int(p), "") if p.isdigit() else (1, 0, p) for p in parts if p)


def _compare(a: tuple, b: tuple) -> int:
    return (a > b) - (a < b)


# -----------------------------------------------------------------------------

def make_sorter(
    keys: Sequence[tuple[str, bool]],
) -> Callable[[Iterable[Any]], list[Any]]:
    """Build a sorter over attribute/key names; ``True`` means descending."""

    def _get(item: Any, key: str) -> str | None:
        if isinstance(item, dict):
            return item.get(key)
        return getattr(item, key)

    def _cmp(a: Any, b: Any) -> int:
        for key, reverse in keys:
            result = _compare(natural_key(_get(a, key)), natural_key(_get(b, key)))
            if result:
                return -result if reverse else result
        return 0

    def _sort(items: Iterable[Any]) -> list[Any]:
        return sorted(items, key=cmp_to_key(_cmp))

    return _sort


# -----------------------------------------------------------------------------

sort_initiatives = make_sorter([("deadline", True), ("short_name", False), ("id", False)])
sort_people = make_sorter([("name", False), ("id", False)])
sort_organisations = make_sorter([("name", False), ("id", False)])


# -----------------------------------------------------------------------------
