"""
schema/columns.py
-----------------
Column declaration returned by an entity type's ``schema()``.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Column:
    """
    Describes one stored field of an entity type.

    Attributes:
        type: Storage type name, interpreted by the storage layer (e.g. 'int').
        primary_key: Whether this column identifies the row.
        nullable: Whether storage accepts NULL for this column.
        default: Value storage fills in when the field is not given.
    """
    type: str
    primary_key: bool = False
    nullable: bool = True
    default: Any = None

    def __str__(self) -> str:
        flags = " primary key" if self.primary_key else ""
        if not self.nullable:
            flags += " not null"
        return f"{self.type}{flags}"
