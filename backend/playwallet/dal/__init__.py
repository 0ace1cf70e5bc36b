"""Data Access Layer -- MongoDB repository classes and connection management."""

from playwallet.dal.database import (
    connect_to_mongo,
    close_mongo_connection,
    ensure_indexes,
    get_database,
)
from playwallet.dal.accounts_dal import AccountDAL
from playwallet.dal.transactions_dal import TransactionDAL
from playwallet.dal.wagers_dal import WagerDAL

__all__ = [
    # Connection management
    "connect_to_mongo",
    "close_mongo_connection",
    "ensure_indexes",
    "get_database",
    # DAL classes
    "AccountDAL",
    "TransactionDAL",
    "WagerDAL",
]
