"""
models/entity.py
----------------
Base class of every persisted domain object.

An Entity holds its field values, resolves deferred fields on demand, keeps
a snapshot of the fields as last loaded from storage, and delegates saving
and reloading to the Handler bound to its type.

Lifecycle:
    1. Built in memory: ``Expense({"amount": 9.5})``. Transient, empty snapshot.
    2. Loaded from storage: ``Expense.from_storage(row)``. Snapshot == fields.
    3. Mutated by its owner: ``expense.amount = 12``. Now dirty.
    4. ``save()`` persists through the Handler; ``reload()`` re-syncs a dirty
       entity from storage.

An entity instance belongs to one caller at a time. Its fields and snapshot
must change together, and nothing here locks them; share a copy, or guard the
instance with an external lock.
"""

import copy
import json
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, ClassVar, Mapping, Optional

from config import JSON_ENSURE_ASCII, JSON_INDENT
from errors import EntityNotFound, HandlerNotConfigured, SerializationFailure
from handlers.base import Handler, HandlerFactory
from models.fields import Deferred, unwrap, wrap
from schema.resolver import (
    annotated_fields,
    FieldEnumerator,
    SchemaResolver,
    default_field_enumerator,
    default_schema_resolver,
)
from utils.logger import get_logger

logger = get_logger(__name__)


def _differs(current: Any, previous: Any) -> bool:
    """Strict comparison: a change of type counts as a change."""
    if isinstance(current, Deferred) or isinstance(previous, Deferred):
        return current is not previous
    return type(current) is not type(previous) or current != previous


def _detach(value: Any) -> Any:
    """Copy built-in containers so in-place edits of a field do not reach the snapshot."""
    if isinstance(value, (list, dict, set, bytearray)):
        return copy.deepcopy(value)
    return value


def _detached(state: Mapping[str, Any]) -> dict[str, Any]:
    return {name: _detach(value) for name, value in state.items()}


class Entity:
    """
    Active-Record style base class.

    Subclasses declare their stored fields through ``schema()`` (and/or class
    annotations) and get a Handler through ``bind_handler()``::

        class Expense(Entity):
            @classmethod
            def schema(cls):
                return {"id": Column("serial", primary_key=True),
                        "amount": Column("numeric", nullable=False)}

        Expense.bind_handler(PostgresHandler)

    Reading a field that is not set returns None. Writing any field name is
    accepted, including columns a join added that ``schema()`` does not list.
    Annotated class attributes with a value (``status: str = "open"``) are
    field defaults, copied into each new instance. Other class attributes
    and methods shadow fields of the same name; read those through
    ``fields`` or ``resolve()``.
    """

    handler_factory: ClassVar[Optional[HandlerFactory]] = None
    field_enumerator: ClassVar[FieldEnumerator] = default_field_enumerator
    schema_resolver: ClassVar[SchemaResolver] = default_schema_resolver
    _field_defaults: ClassVar[dict[str, Any]] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        # Annotated defaults move off the class into _field_defaults.
        defaults = dict(cls._field_defaults)
        for name in annotated_fields(cls):
            if name in cls.__dict__:
                defaults[name] = cls.__dict__[name]
                delattr(cls, name)
        cls._field_defaults = defaults

    def __init__(self, fields: Optional[Mapping[str, Any]] = None, **kwargs):
        """
        Construct a new entity. This does not persist it.

        Args:
            fields: Candidate field values; keys the type does not declare
                are dropped.
            **kwargs: More candidate values, overriding `fields`.

        Raises:
            FieldEnumerationFailure: The type's declared fields are unknown.
        """
        object.__setattr__(self, "_fields", {})
        object.__setattr__(self, "_previous_state", {})

        candidates = dict(fields or {}, **kwargs)
        declared = self.field_enumerator.declared_fields(type(self))
        for name, default in self._field_defaults.items():
            if name in declared and name not in candidates:
                self._fields[name] = wrap(_detach(default))
        for name, value in candidates.items():
            if name in declared:
                self._fields[name] = wrap(value)
            else:
                logger.debug(f"{type(self).__name__}: dropped undeclared field {name!r}")

    @classmethod
    def from_storage(cls, row: Mapping[str, Any]) -> "Entity":
        """
        Build an entity from a row a Handler has just read.

        Every column is kept (join columns included) and the snapshot is set
        to the same values, so the result starts clean.
        """
        entity = cls.__new__(cls)
        object.__setattr__(entity, "_fields", {name: wrap(value) for name, value in row.items()})
        object.__setattr__(entity, "_previous_state", _detached(row))
        return entity

    # ── FIELD ACCESS ──────────────────────────────────────

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails.
        if name.startswith("__") and name.endswith("__"):
            raise AttributeError(name)
        field = self.__dict__["_fields"].get(name) if "_fields" in self.__dict__ else None
        return unwrap(field) if field is not None else None

    def __setattr__(self, name: str, value: Any) -> None:
        self._fields[name] = wrap(value)

    def __delattr__(self, name: str) -> None:
        self._fields.pop(name, None)

    def __contains__(self, name: str) -> bool:
        return name in self._fields

    def __copy__(self) -> "Entity":
        clone = type(self).__new__(type(self))
        fields = _detached(self.fields)
        object.__setattr__(clone, "_fields", {name: wrap(value) for name, value in fields.items()})
        object.__setattr__(clone, "_previous_state", _detached(self._previous_state))
        return clone

    @property
    def fields(self) -> dict[str, Any]:
        """Copy of the current fields; deferred ones stay unevaluated."""
        return {name: unwrap(field) for name, field in self._fields.items()}

    @property
    def previous_state(self) -> dict[str, Any]:
        """Copy of the fields as last loaded from or saved to storage."""
        return dict(self._previous_state)

    def resolve(self, name: str) -> Any:
        """
        Read a field, evaluating it once if it is deferred.

        The result replaces the deferred value both in the fields and in the
        snapshot, so opening a lazy field does not make the entity dirty.

        Returns:
            The field value, or None if the field is not set.
        """
        field = self._fields.get(name)
        if field is None:
            return None
        if isinstance(field, Deferred):
            value = field.evaluate()
            self._fields[name] = wrap(value)
            if name in self._previous_state:
                self._previous_state[name] = _detach(value)
            return value
        return field.value

    def peek(self, name: str) -> Any:
        """
        Read a field, evaluating a deferred one without storing the result.

        Each call on a deferred field runs its computation again; use
        ``resolve()`` to keep the value.
        """
        field = self._fields.get(name)
        if field is None:
            return None
        if isinstance(field, Deferred):
            return field.evaluate()
        return field.value

    # ── SCHEMA ────────────────────────────────────────────

    @classmethod
    def schema(cls) -> dict:
        """
        The user defined schema: field name -> ``schema.Column``.

        Concrete entity types must override this.
        """
        raise NotImplementedError(f"{cls.__name__} does not define schema()")

    def pk(self) -> str:
        """
        Get the primary key field name of this entity type.

        Raises:
            SchemaResolutionFailure: The type has no single primary key.
        """
        return self.schema_resolver.primary_key_field(type(self))

    @classmethod
    def bind_handler(cls, factory: HandlerFactory) -> None:
        """Use `factory(entity_type)` to build Handlers for this type and its subclasses."""
        cls.handler_factory = factory

    @classmethod
    def items(cls) -> Handler:
        """
        All the stored objects of this type.

        Raises:
            HandlerNotConfigured: No handler factory was bound.
        """
        factory = cls.handler_factory
        if factory is None:
            raise HandlerNotConfigured(cls)
        return factory(cls)

    # ── PERSISTENCE ───────────────────────────────────────

    def save(self) -> Optional["Entity"]:
        """
        Save the entity to storage.

        With its primary key set, the matching row is updated (the snapshot
        goes along so the handler can diff). Without it, a row is created and
        read back as the highest primary key. Deferred fields are handed over
        unevaluated. This entity is left untouched; use the returned one.

        Returns:
            The entity as stored, or None if the handler found nothing.
        """
        pk = self.pk()
        fields = self.fields
        if pk in fields:
            logger.debug(f"Updating {self}")
            return self.items().filter({pk: fields[pk]}).update(fields, self.previous_state).one()

        logger.debug(f"Inserting new {type(self).__name__}")
        return self.items().create(fields).order_by(f"{pk} DESC").one()

    def changed_fields(self) -> list[str]:
        """Names of snapshot fields whose current value differs."""
        changed = []
        for name, previous in self._previous_state.items():
            field = self._fields.get(name)
            current = unwrap(field) if field is not None else None
            if _differs(current, previous):
                changed.append(name)
        return changed

    def is_dirty(self) -> bool:
        """True if any field changed since the entity was loaded or synced."""
        return bool(self.changed_fields())

    def reload(self) -> "Entity":
        """
        Reload the entity from storage if it has local changes.

        A clean entity is returned as is. A dirty one is fetched again by
        primary key (bypassing any handler cache); its fields and snapshot
        are both replaced by the stored values.

        Raises:
            EntityNotFound: Storage no longer holds the row.
        """
        if not self.is_dirty():
            return self

        pk = self.pk()
        value = self.peek(pk)
        fresh = self.items().filter({pk: value}).one(force_reload=True)
        if fresh is None:
            logger.error(f"Reload failed: {type(self).__name__} with {pk}={value!r} is gone")
            raise EntityNotFound(type(self), pk, value)

        state = fresh.fields
        object.__setattr__(self, "_fields", {name: wrap(v) for name, v in state.items()})
        object.__setattr__(self, "_previous_state", _detached(state))
        logger.debug(f"Reloaded {self}")
        return self

    # ── SERIALIZATION ─────────────────────────────────────

    def to_dict(self, expand_lists: bool = False) -> dict[str, Any]:
        """
        Mapping of the fields, deferred ones evaluated (not stored).

        Values are not converted: nested entities, dates and decimals stay
        Python objects until ``json()`` encodes them.

        Args:
            expand_lists: Replace Handler-valued fields (related collections)
                with the list of their entities. Otherwise they map to None.
        """
        data = {}
        for name in list(self._fields):
            value = self.peek(name)
            if isinstance(value, Handler):
                value = [item.to_dict() for item in value.all()] if expand_lists else None
            data[name] = value
        return data

    def json(self, expand_lists: bool = False) -> str:
        """
        Get a pretty-printed JSON representation of the entity.

        Raises:
            SerializationFailure: A value has no JSON form. Nothing is
                returned partially.
        """
        data = self.to_dict(expand_lists)
        try:
            return json.dumps(
                data,
                indent=JSON_INDENT,
                ensure_ascii=JSON_ENSURE_ASCII,
                default=_json_default,
            )
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to serialize {type(self).__name__}: {e}")
            raise SerializationFailure(type(self), str(e)) from e

    # ── REPRESENTATION ────────────────────────────────────

    def __str__(self) -> str:
        return f"{type(self).__name__}({self.peek(self.pk())})"

    def __repr__(self) -> str:
        fields = ", ".join(f"{name}={value!r}" for name, value in self.fields.items())
        return f"<{type(self).__name__} {fields}>"


def _json_default(value: Any) -> Any:
    """Encode values the json module does not know."""
    if isinstance(value, Entity):
        return value.to_dict()
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
