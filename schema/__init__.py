"""
schema/ - Schema Layer
======================
Column declarations and the two schema collaborators of an entity type:
the primary-key resolver and the declared-field enumerator.
"""

from schema.columns import Column
from schema.resolver import (
    FieldEnumerator,
    SchemaFieldEnumerator,
    SchemaPrimaryKeyResolver,
    SchemaResolver,
)

__all__ = [
    "Column",
    "FieldEnumerator",
    "SchemaFieldEnumerator",
    "SchemaPrimaryKeyResolver",
    "SchemaResolver",
]
