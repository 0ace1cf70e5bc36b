"""Common enums, shared types, and money helpers for PlayWallet models."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import StrEnum
from typing import Annotated, Any

from bson import Decimal128, ObjectId
from pydantic import BeforeValidator, PlainSerializer, SerializationInfo

CENT = Decimal("0.01")


def _validate_object_id(value: Any) -> str:
    """Validate and convert ObjectId or string to string representation."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, str):
        return value
    raise ValueError(f"Invalid ObjectId value: {value}")


# Annotated type for MongoDB ObjectId fields.
# Accepts ObjectId or string on input, always serializes as string.
PyObjectId = Annotated[
    str,
    BeforeValidator(_validate_object_id),
    PlainSerializer(lambda v: str(v), return_type=str),
]


def _validate_money(value: Any) -> Decimal:
    """Accept Decimal128 (as stored), Decimal, int, float or numeric str."""
    if isinstance(value, Decimal128):
        return value.to_decimal()
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError("Boolean is not a monetary amount")
    if isinstance(value, (int, float, str)):
        try:
            return Decimal(str(value))
        except InvalidOperation as exc:
            raise ValueError(f"Invalid monetary amount: {value!r}") from exc
    raise ValueError(f"Invalid monetary amount: {value!r}")


def _serialize_money(value: Decimal, info: SerializationInfo) -> Any:
    """Decimal128 for MongoDB documents, a JSON number for API responses."""
    if info.mode == "json":
        return float(value)
    return Decimal128(value)


# Annotated type for monetary fields.
# Stored as Decimal128, handled as Decimal, rendered as a JSON number.
Money = Annotated[
    Decimal,
    BeforeValidator(_validate_money),
    PlainSerializer(_serialize_money),
]


def quantize_money(value: Decimal) -> Decimal:
    """Round an amount to the currency's minimum unit (0.01)."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class TransactionKind(StrEnum):
    """Kinds of ledger entries."""
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    GAME_WIN = "game_win"
    GAME_LOSS = "game_loss"


class TransactionStatus(StrEnum):
    """Transaction status. Every entry written by the engine is COMPLETED."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class WagerOutcome(StrEnum):
    """Result of a settled wager."""
    WIN = "win"
    LOSS = "loss"


class GameVariant(StrEnum):
    """Supported game types."""
    COIN_FLIP = "coin_flip"
    NUMBER_GUESS = "number_guess"
    LUCKY_WHEEL = "lucky_wheel"


class CoinSide(StrEnum):
    """Faces of the coin in coin_flip."""
    HEADS = "heads"
    TAILS = "tails"
