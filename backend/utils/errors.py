"""Ledger error taxonomy.

The core raises these; ``main.py`` maps them onto HTTP responses.
"""


class LedgerError(Exception):
    """Base class for errors raised by the ledger core."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Caller-supplied data violates a precondition. Never retried."""


class NotFoundError(LedgerError):
    """A referenced group, expense or settlement record does not exist."""


class ConflictError(LedgerError):
    """Concurrent updates to the same group kept colliding and retries ran out."""


class LedgerIntegrityError(LedgerError):
    """A balance batch would break the zero-sum invariant. Indicates a bug."""
