#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Result values returned by field validators and asset fetchers.

A validator never raises for bad input: it returns ``Ok(value)`` or
``Err(error, readable_error)`` and the caller decides what to do with it.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    error: str
    readable_error: str

    @property
    def ok(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "error",
            "error": self.error,
            "readableError": self.readable_error,
        }


Result = Union[Ok[T], Err]


# -----------------------------------------------------------------------------
