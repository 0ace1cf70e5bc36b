"""Shared FastAPI dependencies for the ledger routes."""

from playwallet.dal.accounts_dal import AccountDAL
from playwallet.dal.database import get_database
from playwallet.dal.transactions_dal import TransactionDAL
from playwallet.dal.wagers_dal import WagerDAL
from playwallet.services.account_gateway import AccountGateway
from playwallet.services.outcome_resolver import OutcomeResolver
from playwallet.services.settlement_engine import SettlementEngine

# One random source for every play served by this process
resolver = OutcomeResolver()


def get_gateway() -> AccountGateway:
    """Build an AccountGateway wired to the current database."""
    db = get_database()
    return AccountGateway(
        SettlementEngine(
            account_dal=AccountDAL(db),
            transaction_dal=TransactionDAL(db),
            wager_dal=WagerDAL(db),
            resolver=resolver,
        )
    )
