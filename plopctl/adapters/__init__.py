"""Adapters — process bindings for the external generator engine.

Public re-exports for convenient access.
"""

from plopctl.adapters.base import Adapter, ExecutionContext
from plopctl.adapters.mock import MockAdapter

__all__ = [
    "Adapter",
    "ExecutionContext",
    "MockAdapter",
]
