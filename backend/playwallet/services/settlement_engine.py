"""Settlement engine: the balance ledger and wager settlement core.

Every mutation of an account runs as one indivisible unit:

1. take the account's lock (in-process exclusivity),
2. read a fresh snapshot and validate against it,
3. write all ledger fields in a single compare-and-set on ``version``
   (cross-process exclusivity; a lost race re-runs the unit),
4. append the transaction (and wager) records, rolling the account back to
   the snapshot if that append fails.

A driver error on the compare-and-set does not say whether the write landed,
so the account is read back before the unit goes on or gives up.

The unit is shielded from caller cancellation, so a request that goes
away mid-flight leaves either the whole settlement or none of it.
"""

import asyncio
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from decimal import Decimal
from functools import partial
from typing import Any, Awaitable, Callable, Iterator, Optional, TypeVar

from bson import ObjectId
from pydantic import BaseModel
from pymongo.errors import DuplicateKeyError, PyMongoError

from playwallet.config import settings
from playwallet.dal.accounts_dal import AccountDAL
from playwallet.dal.transactions_dal import TransactionDAL
from playwallet.dal.wagers_dal import WagerDAL
from playwallet.models.account import Account
from playwallet.models.common import (
    GameVariant,
    TransactionKind,
    TransactionStatus,
    WagerOutcome,
    quantize_money,
)
from playwallet.models.game import GAME_PARAMS
from playwallet.models.transaction import Transaction
from playwallet.models.wager import WagerRecord
from playwallet.services.account_locks import AccountLockRegistry, account_locks
from playwallet.services.exceptions import (
    AccountAlreadyExistsError,
    AccountNotFoundError,
    BelowMinimumError,
    InsufficientBalanceError,
    InvalidGameVariantError,
    StoreUnavailableError,
)
from playwallet.services.outcome_resolver import OutcomeResolver

logger = logging.getLogger("playwallet.services.settlement")

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _VersionConflict(Exception):
    """Another writer committed to the account since our snapshot."""


def _report_detached(account_id: str, task: "asyncio.Future[Any]") -> None:
    """Collect the outcome of a settlement whose caller stopped waiting."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning(
            "Settlement for account %s failed after its caller went away: %r",
            account_id,
            exc,
        )
    else:
        logger.info("Settlement for account %s completed after its caller went away", account_id)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BalanceChange:
    """Outcome of a deposit or withdrawal."""

    account: Account
    transaction: Transaction

    @property
    def new_balance(self) -> Decimal:
        return self.account.balance


@dataclass(frozen=True)
class PlayResult:
    """Outcome of a settled play."""

    outcome: WagerOutcome
    win_amount: Decimal
    commission: Decimal
    draw: Any
    account: Account
    wager: WagerRecord
    transaction: Transaction

    @property
    def new_balance(self) -> Decimal:
        return self.account.balance


@dataclass(frozen=True)
class History:
    """An account's most recent ledger entries, newest first."""

    wagers: list[WagerRecord]
    transactions: list[Transaction]


@dataclass(frozen=True)
class CommissionReport:
    """House commission totals."""

    total_commission: Decimal
    today_commission: Decimal
    day_start: datetime
    generated_at: datetime
    period_commission: Optional[Decimal] = None
    since: Optional[datetime] = None
    until: Optional[datetime] = None


@dataclass(frozen=True)
class Reconciliation:
    """Balance versus the sum of the account's completed transactions."""

    account_id: str
    balance: Decimal
    ledger_total: Decimal
    transaction_count: int

    @property
    def balanced(self) -> bool:
        return self.balance == self.ledger_total


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class SettlementEngine:
    """Applies deposits, withdrawals and plays to account balances."""

    def __init__(
        self,
        account_dal: AccountDAL,
        transaction_dal: TransactionDAL,
        wager_dal: WagerDAL,
        resolver: Optional[OutcomeResolver] = None,
        locks: Optional[AccountLockRegistry] = None,
        *,
        min_deposit: Optional[Decimal] = None,
        min_withdrawal: Optional[Decimal] = None,
        min_bet: Optional[Decimal] = None,
        history_max_limit: Optional[int] = None,
        max_attempts: Optional[int] = None,
        report_tz: Optional[tzinfo] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._accounts = account_dal
        self._transactions = transaction_dal
        self._wagers = wager_dal
        self._resolver = resolver or OutcomeResolver()
        self._locks = locks if locks is not None else account_locks
        self.min_deposit = min_deposit if min_deposit is not None else settings.MIN_DEPOSIT
        self.min_withdrawal = (
            min_withdrawal if min_withdrawal is not None else settings.MIN_WITHDRAWAL
        )
        self.min_bet = min_bet if min_bet is not None else settings.MIN_BET
        self.history_max_limit = history_max_limit or settings.HISTORY_MAX_LIMIT
        self._max_attempts = max_attempts or settings.SETTLEMENT_MAX_RETRIES
        self._report_tz = report_tz or settings.report_tz
        self._clock = clock

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _store_call(self, action: str) -> Iterator[None]:
        """Surface driver failures (timeouts, lost connections) as retryable."""
        try:
            yield
        except PyMongoError as exc:
            logger.warning("Store failure during %s: %s", action, exc)
            raise StoreUnavailableError(
                "The ledger store is temporarily unavailable, please retry"
            ) from exc

    async def _load(self, account_id: str) -> Account:
        with self._store_call("account read"):
            account = await self._accounts.get_by_id(account_id)
        if account is None:
            raise AccountNotFoundError(f"Account {account_id} not found")
        return account

    async def _exclusive(
        self, account_id: str, operation: Callable[[], Awaitable[T]]
    ) -> T:
        """Run ``operation`` under the account lock, retrying lost CAS races."""

        async def locked() -> T:
            async with self._locks.hold(account_id):
                for attempt in range(1, self._max_attempts + 1):
                    try:
                        return await operation()
                    except _VersionConflict:
                        logger.info(
                            "Retrying settlement for account %s (attempt %d/%d)",
                            account_id,
                            attempt,
                            self._max_attempts,
                        )
                raise StoreUnavailableError(
                    "The account is busy with another operation, please retry"
                )

        task = asyncio.ensure_future(locked())
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            task.add_done_callback(partial(_report_detached, account_id))
            raise

    async def _write(
        self, account_id: str, expected_version: int, fields: dict[str, Any]
    ) -> Optional[Account]:
        """Compare-and-set that settles a driver failure of unknown outcome.

        A timeout can hide an update the server applied, so on a driver error
        the account is read back. Our ``fields`` at ``expected_version + 1``
        means the write landed; an untouched ``expected_version`` means it
        did not.

        Returns:
            The account as written, or None if another writer got there first.

        Raises:
            StoreUnavailableError: The write did not land, or its outcome
                could not be read back.
        """
        try:
            return await self._accounts.compare_and_set(
                account_id, expected_version, fields
            )
        except PyMongoError as exc:
            failure = exc
            logger.warning(
                "Update of account %s at version %d has unknown outcome: %s",
                account_id,
                expected_version,
                exc,
            )

        for _ in range(self._max_attempts):
            try:
                current = await self._accounts.get_by_id(account_id)
            except PyMongoError as exc:
                failure = exc
                continue
            if current is None:
                break
            if current.version == expected_version:
                raise StoreUnavailableError(
                    "The ledger store is temporarily unavailable, please retry"
                ) from failure
            stored = current.ledger_fields()
            if current.version == expected_version + 1 and all(
                stored.get(key) == value for key, value in fields.items()
            ):
                logger.info(
                    "Update of account %s to version %d was applied",
                    account_id,
                    current.version,
                )
                return current
            return None

        logger.error(
            "Could not confirm update of account %s; ledger needs reconciliation",
            account_id,
        )
        raise StoreUnavailableError(
            "The ledger store is temporarily unavailable, please retry"
        ) from failure

    async def _swap(self, snapshot: Account, fields: dict[str, Any]) -> Account:
        """Write ``fields`` over ``snapshot`` atomically, or raise _VersionConflict."""
        updated = snapshot.model_copy(update={**fields, "updated_at": self._clock()})
        committed = await self._write(
            snapshot.id, snapshot.version, updated.ledger_fields()
        )
        if committed is None:
            raise _VersionConflict(snapshot.id)
        return committed

    async def _append(
        self,
        snapshot: Account,
        committed: Account,
        transaction: Transaction,
        wager: Optional[WagerRecord] = None,
    ) -> None:
        """Append the records of a committed update, or undo the update."""
        try:
            if wager is not None:
                await self._wagers.create(wager)
            await self._transactions.create(transaction)
        except PyMongoError as exc:
            logger.error(
                "Failed to record settlement for account %s, rolling back: %s",
                snapshot.id,
                exc,
            )
            await self._roll_back(snapshot, committed, transaction, wager)
            raise StoreUnavailableError(
                "The ledger store is temporarily unavailable, please retry"
            ) from exc

    async def _roll_back(
        self,
        snapshot: Account,
        committed: Account,
        transaction: Transaction,
        wager: Optional[WagerRecord],
    ) -> None:
        """Restore ``snapshot`` and delete the records of a failed settlement.

        Record deletes are by preassigned id, so an append that timed out
        after landing is removed as well. Each step is retried.
        """
        restore = snapshot.model_copy(update={"updated_at": self._clock()})
        for attempt in range(1, self._max_attempts + 1):
            try:
                restored = await self._write(
                    committed.id, committed.version, restore.ledger_fields()
                )
            except StoreUnavailableError:
                logger.warning(
                    "Restore of account %s failed (attempt %d/%d)",
                    snapshot.id,
                    attempt,
                    self._max_attempts,
                )
                continue
            if restored is None:
                logger.error(
                    "Rollback of account %s lost a version race; ledger needs reconciliation",
                    snapshot.id,
                )
            break
        else:
            logger.error(
                "Could not restore account %s; ledger needs reconciliation",
                snapshot.id,
            )

        for attempt in range(1, self._max_attempts + 1):
            try:
                if wager is not None:
                    await self._wagers.delete(wager.id)
                await self._transactions.delete(transaction.id)
                return
            except PyMongoError as exc:
                logger.warning(
                    "Record cleanup for account %s failed (attempt %d/%d): %s",
                    snapshot.id,
                    attempt,
                    self._max_attempts,
                    exc,
                )
        logger.error(
            "Could not delete records of a rolled back settlement for account %s",
            snapshot.id,
        )

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def open_account(self, username: str, email: Optional[str] = None) -> Account:
        """Create an account with a zero balance.

        Raises:
            AccountAlreadyExistsError: The username is taken.
        """
        with self._store_call("account create"):
            if await self._accounts.get_by_username(username) is not None:
                raise AccountAlreadyExistsError(f"Username {username} is already taken")
            try:
                account = await self._accounts.create(
                    Account(username=username, email=email)
                )
            except DuplicateKeyError:
                raise AccountAlreadyExistsError(
                    f"Username {username} is already taken"
                ) from None
        return account

    async def get_account(self, account_id: str) -> Account:
        """Current snapshot of an account, never mid-settlement."""
        async with self._locks.hold(account_id):
            return await self._load(account_id)

    # ------------------------------------------------------------------
    # Deposit / withdraw
    # ------------------------------------------------------------------

    async def deposit(self, account_id: str, amount: Decimal) -> BalanceChange:
        """Credit ``amount`` to the account.

        Raises:
            BelowMinimumError: ``amount`` is under the minimum deposit.
            AccountNotFoundError: Unknown account.
            StoreUnavailableError: Transient store failure; nothing applied.
        """
        amount = quantize_money(amount)
        if amount < self.min_deposit:
            raise BelowMinimumError(f"Minimum deposit amount is {self.min_deposit}")

        async def operation() -> BalanceChange:
            account = await self._load(account_id)
            committed = await self._swap(
                account,
                {
                    "balance": account.balance + amount,
                    "cumulative_deposits": account.cumulative_deposits + amount,
                },
            )
            transaction = Transaction(
                _id=str(ObjectId()),
                account_id=account_id,
                kind=TransactionKind.DEPOSIT,
                amount=amount,
                description="Cash deposit",
            )
            await self._append(account, committed, transaction)
            return BalanceChange(account=committed, transaction=transaction)

        result = await self._exclusive(account_id, operation)
        logger.info(
            "Deposit of %s to account %s, balance now %s",
            amount,
            account_id,
            result.new_balance,
        )
        return result

    async def withdraw(self, account_id: str, amount: Decimal) -> BalanceChange:
        """Debit ``amount`` from the account.

        Raises:
            BelowMinimumError: ``amount`` is under the minimum withdrawal.
            InsufficientBalanceError: ``amount`` exceeds the current balance.
            AccountNotFoundError: Unknown account.
            StoreUnavailableError: Transient store failure; nothing applied.
        """
        amount = quantize_money(amount)
        if amount < self.min_withdrawal:
            raise BelowMinimumError(
                f"Minimum withdrawal amount is {self.min_withdrawal}"
            )

        async def operation() -> BalanceChange:
            account = await self._load(account_id)
            if amount > account.balance:
                raise InsufficientBalanceError("Insufficient balance")
            committed = await self._swap(
                account, {"balance": account.balance - amount}
            )
            transaction = Transaction(
                _id=str(ObjectId()),
                account_id=account_id,
                kind=TransactionKind.WITHDRAWAL,
                amount=-amount,
                description="Cash withdrawal",
            )
            await self._append(account, committed, transaction)
            return BalanceChange(account=committed, transaction=transaction)

        try:
            result = await self._exclusive(account_id, operation)
        except InsufficientBalanceError:
            logger.warning(
                "Rejected withdrawal of %s from account %s: insufficient balance",
                amount,
                account_id,
            )
            raise
        logger.info(
            "Withdrawal of %s from account %s, balance now %s",
            amount,
            account_id,
            result.new_balance,
        )
        return result

    # ------------------------------------------------------------------
    # Play
    # ------------------------------------------------------------------

    async def play_game(
        self,
        account_id: str,
        variant: GameVariant | str,
        bet_amount: Decimal,
        params: BaseModel | dict[str, Any] | None = None,
    ) -> PlayResult:
        """Stake ``bet_amount`` on one play of ``variant`` and settle it.

        The stake is debited, one draw decides the outcome, and on a win the
        stake is returned together with the winnings. The balance therefore
        moves by ``+win_amount`` or ``-bet_amount``, which is exactly the
        amount of the single transaction recorded for the play.

        Raises:
            BelowMinimumError: ``bet_amount`` is under the minimum bet.
            InvalidGameVariantError: Unsupported variant.
            pydantic.ValidationError: ``params`` do not fit the variant.
            InsufficientBalanceError: ``bet_amount`` exceeds the balance.
            AccountNotFoundError: Unknown account.
            StoreUnavailableError: Transient store failure; nothing applied.
        """
        bet_amount = quantize_money(bet_amount)
        if bet_amount < self.min_bet:
            raise BelowMinimumError(f"Minimum bet amount is {self.min_bet}")
        try:
            variant = GameVariant(variant)
        except ValueError:
            raise InvalidGameVariantError(f"Unsupported game type: {variant}") from None
        params_model = GAME_PARAMS[variant]
        if not isinstance(params, params_model):
            params = params_model.model_validate(params or {})

        async def operation() -> PlayResult:
            account = await self._load(account_id)
            if bet_amount > account.balance:
                raise InsufficientBalanceError("Insufficient balance")

            resolution = self._resolver.resolve(variant, params, bet_amount)
            won = resolution.outcome == WagerOutcome.WIN

            balance = account.balance - bet_amount
            winnings = account.cumulative_winnings
            if won:
                balance += bet_amount + resolution.win_amount
                winnings += resolution.win_amount

            committed = await self._swap(
                account,
                {
                    "balance": balance,
                    "cumulative_winnings": winnings,
                    "games_played": account.games_played + 1,
                },
            )

            wager = WagerRecord(
                _id=str(ObjectId()),
                account_id=account_id,
                variant=variant,
                bet_amount=bet_amount,
                win_amount=resolution.win_amount,
                outcome=resolution.outcome,
                commission=resolution.commission,
                game_data={**params.model_dump(mode="json"), "draw": resolution.draw},
            )
            transaction = Transaction(
                _id=str(ObjectId()),
                account_id=account_id,
                kind=TransactionKind.GAME_WIN if won else TransactionKind.GAME_LOSS,
                amount=resolution.win_amount if won else -bet_amount,
                description=f"{variant.value} game {resolution.outcome.value}",
                wager_id=wager.id,
            )
            await self._append(account, committed, transaction, wager)
            return PlayResult(
                outcome=resolution.outcome,
                win_amount=resolution.win_amount,
                commission=resolution.commission,
                draw=resolution.draw,
                account=committed,
                wager=wager,
                transaction=transaction,
            )

        try:
            result = await self._exclusive(account_id, operation)
        except InsufficientBalanceError:
            logger.warning(
                "Rejected %s bet of %s for account %s: insufficient balance",
                variant,
                bet_amount,
                account_id,
            )
            raise
        logger.info(
            "Settled %s for account %s: bet=%s outcome=%s win=%s balance=%s",
            variant,
            account_id,
            bet_amount,
            result.outcome,
            result.win_amount,
            result.new_balance,
        )
        return result

    # ------------------------------------------------------------------
    # Read-only queries
    # ------------------------------------------------------------------

    async def list_history(
        self, account_id: str, limit: Optional[int] = None
    ) -> History:
        """The most recent wagers and transactions of an account, newest first.

        ``limit`` is clamped to ``1..history_max_limit``.
        """
        if limit is None:
            limit = self.history_max_limit
        limit = max(1, min(limit, self.history_max_limit))

        async with self._locks.hold(account_id):
            await self._load(account_id)
            with self._store_call("history read"):
                wagers = await self._wagers.get_by_account(account_id, limit=limit)
                transactions = await self._transactions.get_by_account(
                    account_id, limit=limit
                )
        return History(wagers=wagers, transactions=transactions)

    async def commission_report(
        self,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> CommissionReport:
        """Total commission, today's commission, and optionally a period's.

        "Today" starts at midnight of the report timezone, computed from a
        single clock reading for the whole report.
        """
        now = self._clock()
        day_start = now.astimezone(self._report_tz).replace(
            hour=0, minute=0, second=0, microsecond=0
        )

        with self._store_call("commission report"):
            total = await self._wagers.sum_commission()
            today = await self._wagers.sum_commission(since=day_start)
            period = None
            if since is not None or until is not None:
                period = await self._wagers.sum_commission(since=since, until=until)

        return CommissionReport(
            total_commission=total,
            today_commission=today,
            day_start=day_start,
            generated_at=now,
            period_commission=period,
            since=since,
            until=until,
        )

    async def reconcile(self, account_id: str) -> Reconciliation:
        """Compare the balance with the sum of completed transactions."""
        async with self._locks.hold(account_id):
            account = await self._load(account_id)
            with self._store_call("reconciliation read"):
                transactions = await self._transactions.get_all_by_account(account_id)

        completed = [t for t in transactions if t.status == TransactionStatus.COMPLETED]
        ledger_total = sum((t.amount for t in completed), Decimal("0"))
        reconciliation = Reconciliation(
            account_id=account_id,
            balance=account.balance,
            ledger_total=ledger_total,
            transaction_count=len(completed),
        )
        if not reconciliation.balanced:
            logger.error(
                "Account %s is out of balance: balance=%s ledger=%s",
                account_id,
                account.balance,
                ledger_total,
            )
        return reconciliation
