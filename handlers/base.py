"""
handlers/base.py
----------------
Interface of the query/persistence collaborator.

A Handler is built per entity type (``Entity.items()``) and turns field-level
operations into storage reads and writes. Staging calls (filter, create,
update, order_by) return a Handler so they chain; ``one()`` and ``all()``
execute. Implementations raise ``errors.PersistenceFailure`` (or their
driver's own errors) on storage failure; the entity core lets those through.
"""

from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from models.entity import Entity


@runtime_checkable
class Handler(Protocol):
    def filter(self, criteria: Mapping[str, Any]) -> "Handler":
        """Narrow the scope to rows matching every ``field -> value`` pair."""
        ...

    def create(self, fields: Mapping[str, Any]) -> "Handler":
        """Stage an insert of one row built from `fields`."""
        ...

    def update(self, fields: Mapping[str, Any], previous: Mapping[str, Any]) -> "Handler":
        """
        Stage an update of the rows in scope.

        `previous` is the entity's snapshot as last loaded; the handler may
        diff against it or use it to detect concurrent modification.
        """
        ...

    def order_by(self, field_expr: str) -> "Handler":
        """Order results, e.g. ``'id DESC'``."""
        ...

    def one(self, force_reload: bool = False) -> Optional["Entity"]:
        """Execute and return the first matching entity, or None."""
        ...

    def all(self) -> Iterable["Entity"]:
        """Execute and return every matching entity, lazily if possible."""
        ...


HandlerFactory = Callable[[type], Handler]
