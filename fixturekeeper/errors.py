"""Exceptions raised for genuine fixture failures.

Expected outcomes such as duplicate inserts or unknown references are not
errors; facade operations report them with ``None`` or ``0``.
"""

from __future__ import annotations

from typing import Any


class FixtureError(Exception):
    """Base class for fixture management failures."""


class FixtureSerializationError(FixtureError, TypeError):
    """Raised when a payload cannot be canonicalized for hashing."""


class CollaboratorResultError(FixtureError):
    """Raised when a target collection reports a result we cannot account for."""

    def __init__(self, action: str, collection: str, result: Any) -> None:
        super().__init__(f"{action} on '{collection}' returned unexpected result {result!r}")
        self.action = action
        self.collection = collection
        self.result = result
