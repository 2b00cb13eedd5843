"""Language adapters — node."""

from plopctl.adapters.languages.node import NodeAdapter

__all__ = ["NodeAdapter"]
