"""Business logic services: outcome resolution, settlement and the account gateway."""

from playwallet.services.account_gateway import AccountGateway, coerce_amount
from playwallet.services.account_locks import AccountLockRegistry, account_locks
from playwallet.services.exceptions import (
    AccountAlreadyExistsError,
    AccountNotFoundError,
    BelowMinimumError,
    InsufficientBalanceError,
    InvalidGameVariantError,
    LedgerError,
    StoreUnavailableError,
)
from playwallet.services.outcome_resolver import OutcomeResolver, RandomSource, Resolution
from playwallet.services.settlement_engine import (
    BalanceChange,
    CommissionReport,
    History,
    PlayResult,
    Reconciliation,
    SettlementEngine,
)

__all__ = [
    # Facade
    "AccountGateway",
    "coerce_amount",
    # Engine
    "SettlementEngine",
    "BalanceChange",
    "PlayResult",
    "History",
    "CommissionReport",
    "Reconciliation",
    # Resolver
    "OutcomeResolver",
    "RandomSource",
    "Resolution",
    # Locks
    "AccountLockRegistry",
    "account_locks",
    # Errors
    "LedgerError",
    "BelowMinimumError",
    "InsufficientBalanceError",
    "InvalidGameVariantError",
    "AccountNotFoundError",
    "AccountAlreadyExistsError",
    "StoreUnavailableError",
]
