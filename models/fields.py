"""
models/fields.py
----------------
Field value variants stored inside an Entity.

A field holds either a concrete value or a deferred computation that has not
run yet. Entities keep both wrapped so reading code can tell them apart
without guessing from the value's type.
"""

from dataclasses import dataclass
from typing import Any, Callable, Union


@dataclass(frozen=True)
class Concrete:
    """An already known field value."""
    value: Any


@dataclass(frozen=True, eq=False)
class Deferred:
    """
    A zero-argument computation producing a field value on demand.

    Compared by identity: a snapshot holding the same Deferred object as the
    live field is not a change.

    Attributes:
        compute: Callable run by `evaluate()`.
    """
    compute: Callable[[], Any]

    def evaluate(self) -> Any:
        """Run the computation. Caching is up to the owning entity."""
        return self.compute()

    def __repr__(self) -> str:
        name = getattr(self.compute, "__qualname__", repr(self.compute))
        return f"Deferred({name})"


FieldValue = Union[Concrete, Deferred]


def wrap(value: Any) -> FieldValue:
    """Store `value` as a field; Deferred values are kept as they are."""
    if isinstance(value, Deferred):
        return value
    return Concrete(value)


def unwrap(field: FieldValue) -> Any:
    """Raw stored value: the concrete value, or the Deferred itself."""
    if isinstance(field, Concrete):
        return field.value
    return field
