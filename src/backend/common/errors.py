from __future__ import annotations

from typing import Optional


class PrecheckFailed(RuntimeError):
    """A workflow transition was attempted before its prerequisite held.

    Raised before any mutation is dispatched.
    """

    def __init__(self, field: str, prerequisite: str, message: str):
        super().__init__(message)
        self.field = field
        self.prerequisite = prerequisite


class ConfirmationRequired(RuntimeError):
    def __init__(self, field: str, value: bool, prompt: str):
        super().__init__(prompt)
        self.field = field
        self.value = value
        self.prompt = prompt


class PersistenceError(RuntimeError):
    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ConcurrentUpdateError(PersistenceError):
    def __init__(self, path: str, expected: Optional[int], actual: Optional[int]):
        super().__init__(
            f"Record at {path} changed since it was read (expected lastUpdated={expected}, found {actual}).",
            path=path,
        )
        self.expected = expected
        self.actual = actual


class InvalidClaimTransition(ValueError):
    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot move claim from '{current}' to '{requested}'.")
        self.current = current
        self.requested = requested


ADMIN_ERROR_CODES = ("unauthenticated", "permission-denied", "invalid-argument", "internal")


class AdminActionError(RuntimeError):
    def __init__(self, code: str, message: str):
        if code not in ADMIN_ERROR_CODES:
            raise ValueError(f"Unknown admin error code: {code}")
        super().__init__(message)
        self.code = code


class RecordNotFound(LookupError):
    def __init__(self, path: str):
        super().__init__(f"No record at {path}.")
        self.path = path
