"""
schema/resolver.py
------------------
Schema collaborators of the entity core.

    - SchemaResolver: entity type -> primary-key field name.
    - FieldEnumerator: entity type -> names of the fields it declares.

Both are protocols so an application can plug its own discovery (a catalog
lookup, a migration registry, ...). The default implementations read the
type's ``schema()`` declaration and its class annotations.
"""

import inspect
import typing
import weakref
from typing import Any, Mapping, Protocol

from errors import FieldEnumerationFailure, SchemaResolutionFailure
from utils.logger import get_logger

logger = get_logger(__name__)


class SchemaResolver(Protocol):
    def primary_key_field(self, entity_type: type) -> str:
        ...


class FieldEnumerator(Protocol):
    def declared_fields(self, entity_type: type) -> frozenset:
        ...


def _read_schema(entity_type: type) -> Mapping[str, Any]:
    """Call ``entity_type.schema()`` and check it returned a mapping."""
    schema = getattr(entity_type, "schema", None)
    if not callable(schema):
        raise NotImplementedError(f"{entity_type.__name__} has no schema()")
    columns = schema()
    if not isinstance(columns, Mapping):
        raise TypeError(f"schema() returned {type(columns).__name__}, expected a mapping")
    return columns


def _is_class_var(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return annotation.startswith(("ClassVar", "typing.ClassVar"))
    return annotation is typing.ClassVar or typing.get_origin(annotation) is typing.ClassVar


def annotated_fields(klass: type) -> list[str]:
    """Public, non-ClassVar names annotated in the body of `klass` itself."""
    return [
        name for name, annotation in inspect.get_annotations(klass).items()
        if not name.startswith("_") and not _is_class_var(annotation)
    ]


class SchemaPrimaryKeyResolver:
    """
    Finds the one column flagged ``primary_key`` in ``schema()``.

    Schemas are immutable at runtime, so the answer is cached per type.
    """

    def __init__(self):
        self._cache: "weakref.WeakKeyDictionary[type, str]" = weakref.WeakKeyDictionary()

    def primary_key_field(self, entity_type: type) -> str:
        """
        Args:
            entity_type: The concrete entity class.

        Returns:
            The primary-key field name.

        Raises:
            SchemaResolutionFailure: No schema, no primary key, or several.
        """
        cached = self._cache.get(entity_type)
        if cached is not None:
            return cached

        try:
            columns = _read_schema(entity_type)
        except Exception as e:
            logger.error(f"schema() of {entity_type!r} unusable: {e}")
            raise SchemaResolutionFailure(entity_type, str(e) or type(e).__name__) from e

        keys = [name for name, column in columns.items() if getattr(column, "primary_key", False)]
        if len(keys) != 1:
            reason = "no primary key column" if not keys else f"several primary keys {keys}"
            logger.error(f"{entity_type.__name__}: {reason}")
            raise SchemaResolutionFailure(entity_type, reason)

        self._cache[entity_type] = keys[0]
        return keys[0]


class SchemaFieldEnumerator:
    """
    Declared fields = ``schema()`` keys plus annotated class attributes.

    ``ClassVar`` annotations are configuration, not fields, and are skipped.
    A type without ``schema()`` may still declare its fields through
    annotations alone.
    """

    def declared_fields(self, entity_type: type) -> frozenset:
        """
        Raises:
            FieldEnumerationFailure: Not a class, schema() broken, or no fields.
        """
        if not isinstance(entity_type, type):
            raise FieldEnumerationFailure(entity_type, "not a class")

        names: set[str] = set()
        try:
            names.update(_read_schema(entity_type).keys())
        except NotImplementedError:
            pass
        except Exception as e:
            logger.error(f"schema() of {entity_type.__name__} failed: {e}")
            raise FieldEnumerationFailure(entity_type, str(e) or type(e).__name__) from e

        for klass in reversed(entity_type.__mro__):
            names.update(annotated_fields(klass))

        if not names:
            raise FieldEnumerationFailure(entity_type, "declares no fields")
        return frozenset(names)


default_schema_resolver = SchemaPrimaryKeyResolver()
default_field_enumerator = SchemaFieldEnumerator()
