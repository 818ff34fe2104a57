# tests/test_entity.py
"""
Construction, field access and lazy field resolution.
"""
import copy
import random

import pytest

from conftest import Account, Expense
from errors import FieldEnumerationFailure
from models.entity import Entity
from models.fields import Deferred


class TestConstruction:
    def test_undeclared_fields_are_dropped(self):
        expense = Expense({"amount": 1, "unknown": 2})
        assert expense.amount == 1
        assert expense.unknown is None
        assert "unknown" not in expense
        assert expense.fields == {"amount": 1}

    def test_keyword_arguments_override_mapping(self):
        expense = Expense({"amount": 1}, amount=3, category="rent")
        assert expense.fields == {"amount": 3, "category": "rent"}

    def test_annotations_count_as_declared_fields(self):
        account = Account(number="DE-1", note="joint", balance=10)
        assert account.fields == {"number": "DE-1", "note": "joint"}

    def test_annotated_default_does_not_shadow_value(self):
        class Ticket(Entity):
            title: str
            status: str = "open"

        assert Ticket(status="closed").status == "closed"
        assert Ticket(title="x").fields == {"title": "x", "status": "open"}

    def test_annotated_defaults_are_per_instance(self):
        class Board(Entity):
            labels: list = []

        first, second = Board(), Board()
        first.labels.append("bug")
        assert second.labels == []

    def test_annotated_defaults_are_inherited(self):
        class Ticket(Entity):
            status: str = "open"

        class Incident(Ticket):
            severity: int = 3

        assert Incident().fields == {"status": "open", "severity": 3}
        assert Incident(status="triaged").status == "triaged"

    def test_from_storage_ignores_annotated_defaults(self):
        class Ticket(Entity):
            title: str
            status: str = "open"

        assert Ticket.from_storage({"title": "x"}).status is None

    def test_new_entity_has_empty_snapshot(self):
        assert Expense(amount=1).previous_state == {}

    def test_type_without_fields_cannot_be_built(self):
        class Empty(Entity):
            pass

        with pytest.raises(FieldEnumerationFailure):
            Empty({"a": 1})

    def test_from_storage_keeps_join_columns_and_syncs_snapshot(self):
        row = {"id": 3, "amount": 5, "user_name": "Mona"}
        expense = Expense.from_storage(row)
        assert expense.user_name == "Mona"
        assert expense.fields == row
        assert expense.previous_state == row
        assert not expense.is_dirty()


class TestFieldAccess:
    def test_unset_field_reads_none(self):
        assert Expense().category is None

    def test_writes_accept_any_name(self):
        expense = Expense()
        expense.total_for_month = 120
        assert expense.total_for_month == 120
        assert expense.fields == {"total_for_month": 120}

    def test_delete_removes_field(self):
        expense = Expense(amount=1)
        del expense.amount
        assert "amount" not in expense
        assert expense.amount is None

    def test_dunder_lookups_still_raise(self):
        with pytest.raises(AttributeError):
            Expense().__missing_protocol__

    def test_direct_read_returns_deferred_unevaluated(self):
        calls = []
        lazy = Deferred(lambda: calls.append(1) or "x")
        expense = Expense()
        expense.category = lazy
        assert expense.category is lazy
        assert calls == []

    def test_resolve_missing_field_returns_none(self):
        assert Expense().resolve("category") is None

    def test_resolve_concrete_value(self):
        assert Expense(amount=4).resolve("amount") == 4


class TestLazyResolution:
    def test_resolve_evaluates_once(self):
        expense = Expense()
        expense.amount = Deferred(lambda: random.random())
        first = expense.resolve("amount")
        assert expense.resolve("amount") == first
        assert expense.amount == first

    def test_resolve_updates_snapshot(self):
        lazy = Deferred(lambda: "groceries")
        expense = Expense.from_storage({"id": 1, "category": lazy})
        assert expense.resolve("category") == "groceries"
        assert expense.previous_state["category"] == "groceries"
        assert not expense.is_dirty()

    def test_resolve_does_not_add_snapshot_entries(self):
        expense = Expense.from_storage({"id": 1})
        expense.category = Deferred(lambda: "rent")
        expense.resolve("category")
        assert "category" not in expense.previous_state

    def test_peek_does_not_write_back(self):
        calls = []
        expense = Expense()
        expense.amount = Deferred(lambda: calls.append(1) or len(calls))
        assert expense.peek("amount") == 1
        assert expense.peek("amount") == 2
        assert isinstance(expense.amount, Deferred)


class TestRepresentation:
    def test_str_uses_primary_key_value(self):
        assert str(Expense(id=7)) == "Expense(7)"
        assert str(Account(number="DE-1")) == "Account(DE-1)"

    def test_str_without_primary_key(self):
        assert str(Expense(amount=1)) == "Expense(None)"

    def test_repr_lists_fields(self):
        assert repr(Expense(id=1, amount=2)) == "<Expense id=1, amount=2>"


class TestIsolation:
    def test_snapshots_are_per_instance(self):
        first = Expense.from_storage({"id": 1, "amount": 10})
        second = Expense.from_storage({"id": 2, "amount": 20})
        first.amount = 11
        assert first.previous_state == {"id": 1, "amount": 10}
        assert second.previous_state == {"id": 2, "amount": 20}
        assert first.is_dirty()
        assert not second.is_dirty()

    def test_copy_does_not_share_state(self):
        original = Expense.from_storage({"id": 1, "amount": 10})
        clone = copy.copy(original)
        clone.amount = 99
        assert original.amount == 10
        assert not original.is_dirty()
        assert clone.is_dirty()

    def test_copy_detaches_list_fields(self):
        original = Expense.from_storage({"id": 1, "category": ["food"]})
        clone = copy.copy(original)
        clone.category.append("rent")
        assert original.category == ["food"]
        assert not original.is_dirty()
        assert clone.is_dirty()
