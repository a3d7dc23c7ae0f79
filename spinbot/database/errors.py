# spinbot/database/errors.py
from __future__ import annotations

import enum


class StoreErrorKind(str, enum.Enum):
    UNREACHABLE = "unreachable"
    CONSTRAINT_VIOLATION = "constraint_violation"
    CONFLICT = "conflict"  # optimistic retries exhausted
    NOT_FOUND = "not_found"


class StoreError(Exception):
    """
    Any failure of the account store.

    Raised by AccountStore for every database problem so callers never have to
    know about SQLAlchemy / driver exception types.
    """

    def __init__(self, kind: StoreErrorKind, message: str = "") -> None:
        super().__init__(message or kind.value)
        self.kind = kind

    def __repr__(self) -> str:
        return f"StoreError(kind={self.kind.value!r}, message={str(self)!r})"
