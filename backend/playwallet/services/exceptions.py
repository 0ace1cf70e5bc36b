"""Ledger domain specific exceptions.

Every error carries a stable ``code`` that the account gateway exposes to
callers, plus a human-readable message.
"""


class LedgerError(Exception):
    """Base class for ledger domain errors."""

    code = "LEDGER_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BelowMinimumError(LedgerError):
    """Raised when an amount is under the operation's fixed floor."""

    code = "BELOW_MINIMUM"


class InsufficientBalanceError(LedgerError):
    """Raised when an operation would drive the balance negative."""

    code = "INSUFFICIENT_BALANCE"


class InvalidGameVariantError(LedgerError):
    """Raised when the requested game type is not supported."""

    code = "INVALID_GAME_VARIANT"


class AccountNotFoundError(LedgerError):
    """Raised when the requested account cannot be found."""

    code = "ACCOUNT_NOT_FOUND"


class AccountAlreadyExistsError(LedgerError):
    """Raised when attempting to open an account with a duplicate username."""

    code = "ACCOUNT_EXISTS"


class StoreUnavailableError(LedgerError):
    """Raised on a transient storage failure. Nothing was applied; retry."""

    code = "STORE_UNAVAILABLE"
