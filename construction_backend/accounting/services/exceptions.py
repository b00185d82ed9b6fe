# accounting/services/exceptions.py

"""
ACCOUNTING SERVICE ERRORS

Centralized domain errors for accounting services.

API mapping (see accounting/api/errors.py):
- ValidationError      -> 400
- InvalidStateError    -> 400
- NotFoundError        -> 404
- InfrastructureError  -> 503
"""

from __future__ import annotations

from decimal import Decimal


class AccountingServiceError(Exception):
    """Base exception for all accounting service failures."""


class ValidationError(AccountingServiceError):
    """
    Raised before any write when input is malformed or unbalanced.

    total_debit / total_credit are set for imbalance failures so callers
    can show both amounts.
    """

    def __init__(
        self,
        message: str,
        *,
        total_debit: Decimal | None = None,
        total_credit: Decimal | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.total_debit = total_debit
        self.total_credit = total_credit

    def as_dict(self) -> dict:
        data = {"detail": self.message}
        if self.total_debit is not None or self.total_credit is not None:
            data["total_debit"] = str(self.total_debit)
            data["total_credit"] = str(self.total_credit)
        return data


# Engine-level name kept for journal line / balance failures.
JournalEntryCreationError = ValidationError


class NotFoundError(AccountingServiceError):
    """Raised when a journal entry / account does not exist in the caller's tenant."""


class InvalidStateError(AccountingServiceError):
    """Raised when an operation is illegal for the entry's lifecycle state."""

    def __init__(self, message: str, *, current_state: str = "", required_state: str = ""):
        super().__init__(message)
        self.message = message
        self.current_state = current_state
        self.required_state = required_state

    def as_dict(self) -> dict:
        return {
            "detail": self.message,
            "current_state": self.current_state,
            "required_state": self.required_state,
        }


class InfrastructureError(AccountingServiceError):
    """Raised when storage fails or aborts the transaction."""


class AccountResolutionError(AccountingServiceError):
    """Raised when an account cannot be resolved or created."""
