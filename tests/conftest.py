# tests/conftest.py
import pytest

from models.entity import Entity
from schema.columns import Column
from fakes import MemoryStore


class Expense(Entity):
    @classmethod
    def schema(cls):
        return {
            "id": Column("serial", primary_key=True),
            "user_id": Column("bigint", nullable=False),
            "amount": Column("numeric(12,2)", nullable=False),
            "category": Column("varchar(50)"),
        }


class Account(Entity):
    """Primary key not called ``id``; fields declared by annotation too."""
    number: str
    owner: str
    note: str

    @classmethod
    def schema(cls):
        return {
            "number": Column("varchar(20)", primary_key=True),
            "owner": Column("varchar(100)"),
        }


@pytest.fixture
def store():
    store = MemoryStore()
    Expense.bind_handler(store.handler)
    Account.bind_handler(store.handler)
    yield store
    Expense.handler_factory = None
    Account.handler_factory = None


@pytest.fixture
def loaded_expense(store):
    """An expense as a handler returns it: stored, snapshot in sync."""
    row = store.insert(Expense, {"user_id": 42, "amount": 9.5, "category": "food"})
    store.calls.clear()
    return Expense.from_storage(row)
