"""
errors.py
---------
Error hierarchy of the data mapper.

The entity core never retries and never translates collaborator failures:
storage errors raised by a Handler reach the caller unchanged. Dynamic field
reads never raise; they degrade to ``None``.
"""

from typing import Any


class OrmError(Exception):
    """Base class for every error raised by the data mapper."""


class FieldEnumerationFailure(OrmError):
    """The declared fields of an entity type could not be determined."""

    def __init__(self, entity_type: type, reason: str):
        self.entity_type = entity_type
        self.reason = reason
        super().__init__(f"Cannot enumerate fields of {_type_name(entity_type)}: {reason}")


class SchemaResolutionFailure(OrmError):
    """No (single) primary key could be found for an entity type."""

    def __init__(self, entity_type: type, reason: str):
        self.entity_type = entity_type
        self.reason = reason
        super().__init__(f"Cannot resolve primary key of {_type_name(entity_type)}: {reason}")


class PersistenceFailure(OrmError):
    """
    Raised by Handler implementations when storage rejects an operation.

    The entity core only lets it through; it is defined here so storage
    layers share one exception type with their callers.
    """


class EntityNotFound(OrmError):
    """A dirty entity was reloaded but storage no longer holds its row."""

    def __init__(self, entity_type: type, pk: str, value: Any):
        self.entity_type = entity_type
        self.pk = pk
        self.value = value
        super().__init__(f"{_type_name(entity_type)} with {pk}={value!r} not found")


class SerializationFailure(OrmError):
    """A field value could not be converted to JSON."""

    def __init__(self, entity_type: type, reason: str):
        self.entity_type = entity_type
        self.reason = reason
        super().__init__(f"Cannot serialize {_type_name(entity_type)}: {reason}")


class HandlerNotConfigured(OrmError):
    """An entity type was asked for its items() but has no handler factory."""

    def __init__(self, entity_type: type):
        self.entity_type = entity_type
        super().__init__(
            f"No handler bound to {_type_name(entity_type)}; call bind_handler() first"
        )


def _type_name(entity_type: Any) -> str:
    return getattr(entity_type, "__name__", repr(entity_type))
