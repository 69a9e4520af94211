"""
Undo/redo history for SchemaCanvas.

Invariants:
    - Snapshots are immutable copies of entities and relationships
    - A new snapshot invalidates redo history
"""

from .stack import DEFAULT_MAX_DEPTH, HistorySnapshot, HistoryStack

__all__ = ["HistoryStack", "HistorySnapshot", "DEFAULT_MAX_DEPTH"]
