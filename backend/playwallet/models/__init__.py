"""Pydantic models for PlayWallet."""

from playwallet.models.common import (
    CoinSide,
    GameVariant,
    Money,
    PyObjectId,
    TransactionKind,
    TransactionStatus,
    WagerOutcome,
    quantize_money,
)
from playwallet.models.account import Account, AccountResponse
from playwallet.models.transaction import Transaction, TransactionResponse
from playwallet.models.wager import WagerRecord, WagerRecordResponse, commission_for
from playwallet.models.game import (
    GAME_PARAMS,
    CoinFlipParams,
    GameParams,
    LuckyWheelParams,
    NumberGuessParams,
)

__all__ = [
    # Enums and types
    "CoinSide",
    "GameVariant",
    "Money",
    "PyObjectId",
    "TransactionKind",
    "TransactionStatus",
    "WagerOutcome",
    "quantize_money",
    # Account models
    "Account",
    "AccountResponse",
    # Transaction models
    "Transaction",
    "TransactionResponse",
    # Wager models
    "WagerRecord",
    "WagerRecordResponse",
    "commission_for",
    # Game parameter models
    "GAME_PARAMS",
    "GameParams",
    "CoinFlipParams",
    "NumberGuessParams",
    "LuckyWheelParams",
]
