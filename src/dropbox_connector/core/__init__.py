"""Core traversal logic package."""

from .traverser import Traverser, TraversalResult

__all__ = [
    "Traverser",
    "TraversalResult"
]
