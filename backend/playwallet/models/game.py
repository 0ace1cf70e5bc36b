"""Game variant parameter models and the payout catalogue.

Each variant in :class:`GameVariant` has exactly one parameter model.
``GAME_PARAMS`` is the closed dispatch table used to validate the
caller-supplied parameters of a play.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from playwallet.models.common import CoinSide, GameVariant

COIN_FLIP_MULTIPLIER = Decimal("1.8")
NUMBER_GUESS_MULTIPLIER = Decimal("9")
NUMBER_GUESS_RANGE = (1, 10)

# 1-indexed by the wheel segment drawn
LUCKY_WHEEL_MULTIPLIERS: tuple[Decimal, ...] = (
    Decimal("0"),
    Decimal("1.5"),
    Decimal("2"),
    Decimal("3"),
    Decimal("5"),
    Decimal("2"),
    Decimal("1.5"),
    Decimal("0"),
)


class CoinFlipParams(BaseModel):
    """The side the player bets on."""

    model_config = {"extra": "ignore"}

    choice: CoinSide


class NumberGuessParams(BaseModel):
    """The number the player bets on."""

    model_config = {"extra": "ignore"}

    guess: int = Field(ge=NUMBER_GUESS_RANGE[0], le=NUMBER_GUESS_RANGE[1])


class LuckyWheelParams(BaseModel):
    """Lucky wheel takes no player input."""

    model_config = {"extra": "ignore"}


GameParams = CoinFlipParams | NumberGuessParams | LuckyWheelParams

GAME_PARAMS: dict[GameVariant, type[BaseModel]] = {
    GameVariant.COIN_FLIP: CoinFlipParams,
    GameVariant.NUMBER_GUESS: NumberGuessParams,
    GameVariant.LUCKY_WHEEL: LuckyWheelParams,
}


class GameInfo(BaseModel):
    """Catalogue entry describing a variant's rules."""

    variant: GameVariant
    title: str
    description: str
    min_bet: float
    multipliers: list[float]


def game_catalogue(min_bet: Decimal) -> list[GameInfo]:
    """Describe every supported variant, in display order."""
    wheel = sorted({float(m) for m in LUCKY_WHEEL_MULTIPLIERS if m > 0}, reverse=True)
    return [
        GameInfo(
            variant=GameVariant.COIN_FLIP,
            title="Coin Flip",
            description="Choose heads or tails and win 1.8x your bet",
            min_bet=float(min_bet),
            multipliers=[float(COIN_FLIP_MULTIPLIER)],
        ),
        GameInfo(
            variant=GameVariant.NUMBER_GUESS,
            title="Number Guess",
            description="Guess the number from 1 to 10 and win 9x your bet",
            min_bet=float(min_bet),
            multipliers=[float(NUMBER_GUESS_MULTIPLIER)],
        ),
        GameInfo(
            variant=GameVariant.LUCKY_WHEEL,
            title="Lucky Wheel",
            description="Spin the wheel and win up to 5x your bet",
            min_bet=float(min_bet),
            multipliers=wheel,
        ),
    ]
