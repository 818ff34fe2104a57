"""
models/ - Entity Layer
======================
The Entity base class every persisted domain object extends, and the field
value variants it stores.
"""

from models.entity import Entity
from models.fields import Concrete, Deferred

__all__ = ["Entity", "Concrete", "Deferred"]
