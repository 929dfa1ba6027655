"""Tests for the transaction repository."""

import re
from datetime import date

import pytest
from pydantic import ValidationError

from src.clarityledger.core.ids import generate_id
from src.clarityledger.core.models import TransactionCreate, TransactionType
from src.clarityledger.data.store import transactions_key


def make_transaction(**overrides) -> TransactionCreate:
    data = {
        "description": "Coffee",
        "amount": 4.5,
        "type": TransactionType.EXPENSE,
        "category": "Food",
        "date": date(2024, 3, 15),
        "tags": ["morning", "work"],
    }
    data.update(overrides)
    return TransactionCreate(**data)


class TestTransactionRepository:
    def test_add_assigns_id_and_user(self, transaction_repo):
        transaction = transaction_repo.add(make_transaction())

        assert transaction.id.startswith("txn_")
        assert transaction.user_id == transaction_repo.user_id
        assert transaction_repo.get_all() == [transaction]

    def test_stored_with_camel_case_keys(self, transaction_repo, store):
        transaction_repo.add(make_transaction())

        record = store.load(transactions_key(transaction_repo.user_id))[0]
        assert record["userId"] == transaction_repo.user_id
        assert record["date"] == "2024-03-15"
        assert record["tags"] == ["morning", "work"]

    def test_delete(self, transaction_repo):
        first = transaction_repo.add(make_transaction(description="First"))
        second = transaction_repo.add(make_transaction(description="Second"))

        assert transaction_repo.delete(first.id) is True
        assert [t.id for t in transaction_repo.get_all()] == [second.id]

    def test_delete_missing_is_noop(self, transaction_repo, caplog):
        transaction_repo.add(make_transaction())

        assert transaction_repo.delete("txn_missing") is False
        assert len(transaction_repo.get_all()) == 1
        assert "not found" in caplog.text

    def test_malformed_records_are_skipped(self, transaction_repo, store):
        good = transaction_repo.add(make_transaction())
        records = store.load(transaction_repo.key)
        records.append({"id": "broken", "amount": "lots"})
        store.save(transaction_repo.key, records)

        assert transaction_repo.get_all() == [good]

    def test_unreadable_records_survive_add_and_delete(self, transaction_repo, store):
        store.save(transaction_repo.key, [{"id": "legacy", "amount": "lots"}])

        added = transaction_repo.add(make_transaction())
        assert [r["id"] for r in store.load(transaction_repo.key)] == ["legacy", added.id]

        assert transaction_repo.delete(added.id) is True
        assert store.load(transaction_repo.key) == [{"id": "legacy", "amount": "lots"}]


class TestTransactionValidation:
    def test_amount_must_be_positive(self):
        with pytest.raises(ValidationError):
            make_transaction(amount=0)

    def test_blank_description_rejected(self):
        with pytest.raises(ValidationError):
            make_transaction(description="   ")

    def test_accepts_camel_case_input(self):
        transaction = TransactionCreate.model_validate(
            {"description": "Rent", "amount": 1000, "type": "EXPENSE", "category": "Housing", "date": "2024-03-01"}
        )
        assert transaction.tags == []
        assert transaction.date == date(2024, 3, 1)


class TestIds:
    def test_format(self):
        assert re.fullmatch(r"txn_\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{6}Z_[0-9a-z]{7}", generate_id("txn"))

    def test_unique_and_increasing(self):
        ids = [generate_id("txn") for _ in range(200)]
        stamps = [i.split("_")[1] for i in ids]

        assert len(set(ids)) == len(ids)
        assert stamps == sorted(stamps)
        assert len(set(stamps)) == len(stamps)
