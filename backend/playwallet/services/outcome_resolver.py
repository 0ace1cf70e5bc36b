"""Outcome resolution for the supported game variants.

The resolver is pure: it never touches account state. Randomness comes
from an injected source so tests can script the draw.
"""

import logging
import random
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Protocol, Sequence, TypeVar

from pydantic import BaseModel

from playwallet.models.common import CoinSide, GameVariant, WagerOutcome, quantize_money
from playwallet.models.game import (
    COIN_FLIP_MULTIPLIER,
    GAME_PARAMS,
    LUCKY_WHEEL_MULTIPLIERS,
    NUMBER_GUESS_MULTIPLIER,
    NUMBER_GUESS_RANGE,
    CoinFlipParams,
    LuckyWheelParams,
    NumberGuessParams,
)
from playwallet.models.wager import commission_for
from playwallet.services.exceptions import InvalidGameVariantError

logger = logging.getLogger("playwallet.services.outcome_resolver")

T = TypeVar("T")


class RandomSource(Protocol):
    """The subset of :class:`random.Random` the resolver draws from."""

    def choice(self, seq: Sequence[T]) -> T: ...

    def randint(self, a: int, b: int) -> int: ...


@dataclass(frozen=True)
class Resolution:
    """A resolved play: the outcome and what it is worth."""

    outcome: WagerOutcome
    win_amount: Decimal
    commission: Decimal
    draw: Any


class OutcomeResolver:
    """Maps a variant, its parameters and a bet to a resolved result."""

    def __init__(self, rng: RandomSource | None = None) -> None:
        self._rng = rng if rng is not None else random.Random()
        self._handlers: dict[GameVariant, Callable[[BaseModel], tuple[Decimal, Any]]] = {
            GameVariant.COIN_FLIP: self._coin_flip,
            GameVariant.NUMBER_GUESS: self._number_guess,
            GameVariant.LUCKY_WHEEL: self._lucky_wheel,
        }

    def resolve(
        self,
        variant: GameVariant | str,
        params: BaseModel | dict[str, Any],
        bet_amount: Decimal,
    ) -> Resolution:
        """Draw once and settle ``bet_amount`` for the given variant.

        Args:
            variant: One of the supported game variants.
            params: The variant's parameter model, or a dict to validate into it.
            bet_amount: The stake, already quantized to the currency unit.

        Returns:
            The resolution; ``win_amount`` is 0 on a loss.

        Raises:
            InvalidGameVariantError: Unknown variant.
            pydantic.ValidationError: ``params`` do not fit the variant.
        """
        try:
            variant = GameVariant(variant)
        except ValueError:
            raise InvalidGameVariantError(f"Unsupported game type: {variant}") from None

        params_model = GAME_PARAMS[variant]
        if not isinstance(params, params_model):
            params = params_model.model_validate(params or {})

        multiplier, draw = self._handlers[variant](params)
        if multiplier > 0:
            outcome = WagerOutcome.WIN
            win_amount = quantize_money(bet_amount * multiplier)
        else:
            outcome = WagerOutcome.LOSS
            win_amount = Decimal("0.00")

        commission = commission_for(outcome, bet_amount, win_amount)
        logger.debug(
            "Resolved %s: draw=%s outcome=%s win=%s", variant, draw, outcome, win_amount
        )
        return Resolution(
            outcome=outcome, win_amount=win_amount, commission=commission, draw=draw
        )

    # ------------------------------------------------------------------
    # Variants: each returns (multiplier, draw); multiplier 0 is a loss
    # ------------------------------------------------------------------

    def _coin_flip(self, params: CoinFlipParams) -> tuple[Decimal, Any]:
        draw = CoinSide(self._rng.choice([CoinSide.HEADS, CoinSide.TAILS]))
        if draw == params.choice:
            return COIN_FLIP_MULTIPLIER, draw.value
        return Decimal("0"), draw.value

    def _number_guess(self, params: NumberGuessParams) -> tuple[Decimal, Any]:
        draw = self._rng.randint(*NUMBER_GUESS_RANGE)
        if draw == params.guess:
            return NUMBER_GUESS_MULTIPLIER, draw
        return Decimal("0"), draw

    def _lucky_wheel(self, params: LuckyWheelParams) -> tuple[Decimal, Any]:
        draw = self._rng.randint(1, len(LUCKY_WHEEL_MULTIPLIERS))
        return LUCKY_WHEEL_MULTIPLIERS[draw - 1], draw
