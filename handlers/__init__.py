"""
handlers/ - Query Layer Interface
=================================
The Handler protocol entities delegate filtering, creation, updates and
fetching to. Storage backends implement it; this package ships none.
"""

from handlers.base import Handler, HandlerFactory

__all__ = ["Handler", "HandlerFactory"]
