"""Exceptions that cross the engine boundary.

Malformed sensor values, incomplete baselines and profile-lookup failures
all have defined fallbacks and never raise.  The only propagated failure
is a sample or session call that does not identify its user.
"""

from __future__ import annotations


class MissingUserIdError(ValueError):
    """Raised when an operation is invoked without a user id."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"{operation}: user_id is required")
        self.operation = operation
