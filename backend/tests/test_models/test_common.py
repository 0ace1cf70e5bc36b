"""Tests for the shared money type and enums."""

from decimal import Decimal

import pytest
from bson import Decimal128
from pydantic import BaseModel, ValidationError

from playwallet.models.common import (
    GameVariant,
    Money,
    TransactionKind,
    quantize_money,
)


class _Amount(BaseModel):
    value: Money


class TestMoney:
    """Tests for the Money annotated type."""

    def test_accepts_decimal128_from_store(self):
        assert _Amount(value=Decimal128("12.50")).value == Decimal("12.50")

    def test_accepts_int_float_and_str(self):
        assert _Amount(value=100).value == Decimal("100")
        assert _Amount(value=10.1).value == Decimal("10.1")
        assert _Amount(value="99.99").value == Decimal("99.99")

    def test_rejects_bool(self):
        with pytest.raises(ValidationError):
            _Amount(value=True)

    def test_rejects_non_numeric_string(self):
        with pytest.raises(ValidationError):
            _Amount(value="ten")

    def test_python_dump_is_decimal128(self):
        dumped = _Amount(value=Decimal("5.075")).model_dump()
        assert isinstance(dumped["value"], Decimal128)
        assert dumped["value"].to_decimal() == Decimal("5.075")

    def test_json_dump_is_number(self):
        assert _Amount(value=Decimal("180.00")).model_dump(mode="json") == {"value": 180.0}


class TestQuantizeMoney:

    def test_rounds_half_up(self):
        assert quantize_money(Decimal("10.005")) == Decimal("10.01")
        assert quantize_money(Decimal("10.004")) == Decimal("10.00")

    def test_pads_to_cents(self):
        assert str(quantize_money(Decimal("100"))) == "100.00"


class TestEnums:

    def test_game_variant_values(self):
        assert {v.value for v in GameVariant} == {"coin_flip", "number_guess", "lucky_wheel"}

    def test_transaction_kind_values(self):
        assert {k.value for k in TransactionKind} == {
            "deposit",
            "withdrawal",
            "game_win",
            "game_loss",
        }
