"""Account gateway: the caller-facing facade over the settlement engine.

Normalizes raw caller input (amounts, game types, parameters, limits) and
translates ledger errors into HTTP errors with stable codes. Error bodies
have the shape ``{"detail": {"code": ..., "message": ...}}``.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterator, Optional

from fastapi import HTTPException, status
from pydantic import BaseModel, ValidationError

from playwallet.models.account import Account
from playwallet.models.common import CENT, GameVariant
from playwallet.models.game import GAME_PARAMS
from playwallet.services.exceptions import (
    AccountAlreadyExistsError,
    AccountNotFoundError,
    BelowMinimumError,
    InsufficientBalanceError,
    InvalidGameVariantError,
    LedgerError,
    StoreUnavailableError,
)
from playwallet.services.settlement_engine import (
    BalanceChange,
    CommissionReport,
    History,
    PlayResult,
    Reconciliation,
    SettlementEngine,
)

logger = logging.getLogger("playwallet.services.gateway")

RETRY_AFTER_SECONDS = 1

_STATUS_BY_ERROR: dict[type[LedgerError], int] = {
    BelowMinimumError: status.HTTP_400_BAD_REQUEST,
    InsufficientBalanceError: status.HTTP_400_BAD_REQUEST,
    InvalidGameVariantError: status.HTTP_400_BAD_REQUEST,
    AccountNotFoundError: status.HTTP_404_NOT_FOUND,
    AccountAlreadyExistsError: status.HTTP_409_CONFLICT,
    StoreUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _error(status_code: int, code: str, message: str, **kwargs: Any) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"code": code, "message": message},
        **kwargs,
    )


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are taken to be UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def coerce_amount(value: Any) -> Decimal:
    """Turn a caller-supplied amount into an exact two-decimal Decimal.

    Accepts int, float, numeric str and Decimal. Rejects anything that is
    not a finite number or that has a fraction finer than 0.01.

    Raises:
        HTTPException 422: ``INVALID_AMOUNT``.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise _error(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "INVALID_AMOUNT",
            "Amount must be a number",
        )
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        raise _error(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "INVALID_AMOUNT",
            "Amount must be a number",
        ) from None

    if not amount.is_finite():
        raise _error(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "INVALID_AMOUNT",
            "Amount must be a finite number",
        )
    try:
        quantized = amount.quantize(CENT)
    except InvalidOperation:
        raise _error(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "INVALID_AMOUNT",
            "Amount is out of range",
        ) from None
    if quantized != amount:
        raise _error(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "INVALID_AMOUNT",
            "Amount cannot have more than two decimal places",
        )
    return quantized


class AccountGateway:
    """Caller-facing operations on accounts, wallets, games and reports."""

    def __init__(self, engine: SettlementEngine) -> None:
        self._engine = engine

    @property
    def engine(self) -> SettlementEngine:
        return self._engine

    @contextmanager
    def _translate_errors(self) -> Iterator[None]:
        try:
            yield
        except StoreUnavailableError as exc:
            logger.warning("Store unavailable: %s", exc.message)
            raise _error(
                status.HTTP_503_SERVICE_UNAVAILABLE,
                exc.code,
                exc.message,
                headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
            ) from None
        except LedgerError as exc:
            status_code = _STATUS_BY_ERROR.get(
                type(exc), status.HTTP_400_BAD_REQUEST
            )
            raise _error(status_code, exc.code, exc.message) from None

    # ------------------------------------------------------------------
    # Input normalization
    # ------------------------------------------------------------------

    def parse_variant(self, game_type: Any) -> GameVariant:
        """Raises HTTPException 400 ``INVALID_GAME_VARIANT``."""
        try:
            return GameVariant(game_type)
        except ValueError:
            raise _error(
                status.HTTP_400_BAD_REQUEST,
                InvalidGameVariantError.code,
                f"Unsupported game type: {game_type}",
            ) from None

    def parse_params(
        self, variant: GameVariant, params: Optional[dict[str, Any]]
    ) -> BaseModel:
        """Raises HTTPException 422 ``INVALID_GAME_PARAMS``."""
        try:
            return GAME_PARAMS[variant].model_validate(params or {})
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'params'}: {err['msg']}"
                for err in exc.errors()
            )
            raise _error(
                status.HTTP_422_UNPROCESSABLE_ENTITY,
                "INVALID_GAME_PARAMS",
                f"Invalid parameters for {variant.value}: {problems}",
            ) from None

    def clamp_limit(self, limit: Optional[int]) -> int:
        maximum = self._engine.history_max_limit
        if limit is None:
            return maximum
        return max(1, min(limit, maximum))

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def open_account(self, username: str, email: Optional[str] = None) -> Account:
        with self._translate_errors():
            return await self._engine.open_account(username.strip(), email)

    async def get_account(self, account_id: str) -> Account:
        with self._translate_errors():
            return await self._engine.get_account(account_id)

    async def deposit(self, account_id: str, amount: Any) -> BalanceChange:
        amount = coerce_amount(amount)
        with self._translate_errors():
            return await self._engine.deposit(account_id, amount)

    async def withdraw(self, account_id: str, amount: Any) -> BalanceChange:
        amount = coerce_amount(amount)
        with self._translate_errors():
            return await self._engine.withdraw(account_id, amount)

    async def play_game(
        self,
        account_id: str,
        game_type: Any,
        bet_amount: Any,
        params: Optional[dict[str, Any]] = None,
    ) -> PlayResult:
        """Validate a play request, then hand it to the engine to settle."""
        bet_amount = coerce_amount(bet_amount)
        variant = self.parse_variant(game_type)
        params_model = self.parse_params(variant, params)
        with self._translate_errors():
            return await self._engine.play_game(
                account_id, variant, bet_amount, params_model
            )

    async def list_history(
        self, account_id: str, limit: Optional[int] = None
    ) -> History:
        with self._translate_errors():
            return await self._engine.list_history(account_id, self.clamp_limit(limit))

    async def commission_report(
        self,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> CommissionReport:
        since = _as_utc(since)
        until = _as_utc(until)
        if since is not None and until is not None and since >= until:
            raise _error(
                status.HTTP_422_UNPROCESSABLE_ENTITY,
                "INVALID_PERIOD",
                "'since' must be earlier than 'until'",
            )
        with self._translate_errors():
            return await self._engine.commission_report(since=since, until=until)

    async def reconcile(self, account_id: str) -> Reconciliation:
        with self._translate_errors():
            return await self._engine.reconcile(account_id)
