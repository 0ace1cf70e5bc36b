"""Tests for Account Pydantic model."""

from datetime import datetime
from decimal import Decimal

import pytest
from bson import Decimal128, ObjectId
from pydantic import ValidationError

from playwallet.models.account import Account, AccountResponse


class TestAccount:
    """Tests for the Account domain model."""

    def test_account_creation_minimal(self):
        account = Account(username="alice")
        assert account.username == "alice"
        assert account.email is None
        assert account.balance == Decimal("0")
        assert account.cumulative_deposits == Decimal("0")
        assert account.cumulative_winnings == Decimal("0")
        assert account.games_played == 0
        assert account.version == 0
        assert isinstance(account.created_at, datetime)
        assert account.updated_at is None
        assert account.id is None

    def test_account_with_objectid(self):
        oid = ObjectId()
        account = Account(_id=oid, username="alice")
        assert account.id == str(oid)

    def test_negative_balance_rejected(self):
        with pytest.raises(ValidationError):
            Account(username="alice", balance=Decimal("-0.01"))

    def test_to_mongo_dict_excludes_none_id(self):
        data = Account(username="alice").to_mongo_dict()
        assert "_id" not in data
        assert isinstance(data["balance"], Decimal128)
        assert isinstance(data["created_at"], str)

    def test_ledger_fields(self):
        account = Account(
            username="alice",
            balance=Decimal("280.00"),
            games_played=1,
            version=4,
        )
        fields = account.ledger_fields()
        assert set(fields) == {
            "balance",
            "cumulative_deposits",
            "cumulative_winnings",
            "games_played",
            "updated_at",
        }
        assert fields["balance"] == Decimal128("280.00")
        assert fields["games_played"] == 1

    def test_roundtrip_from_stored_document(self):
        oid = ObjectId()
        doc = Account(username="alice", balance=Decimal("12.34")).to_mongo_dict()
        doc["_id"] = str(oid)
        account = Account(**doc)
        assert account.balance == Decimal("12.34")
        assert account.created_at.tzinfo is not None


class TestAccountResponse:

    def test_from_account_json_dump(self):
        account = Account(_id=ObjectId(), username="alice", balance=Decimal("50.50"))
        response = AccountResponse.model_validate(account.model_dump(mode="json"))
        assert response.id == account.id
        assert response.model_dump(mode="json")["balance"] == 50.5
