"""
SchemaCanvas - state core of a collaborative database schema diagram editor.

This package implements the in-memory diagram engine behind the editor:
- Entities (tables or collections), Fields and Relationships as the data model
- Typed events as the only mutation path, local or remote
- Bounded undo/redo over immutable snapshots
- Generators that turn the diagram into MySQL DDL or Mongoose schemas

Architecture:
    ┌─────────────┐     ┌──────────────┐     ┌─────────────────┐
    │  UI intent  │────▶│   Session    │────▶│ EventDispatcher │
    └─────────────┘     └──────┬───────┘     └────────┬────────┘
                               │ snapshot()           │ reduce()
                               ▼                      ▼
                        ┌──────────────┐     ┌─────────────────┐
                        │ HistoryStack │◀───▶│  DiagramModel   │
                        └──────────────┘     └────────┬────────┘
                                                      │
                 ┌────────────────────┐               │ read-only
                 │ CollaborationChannel│◀── send()     ▼
                 │   (remote peers)   │──▶ receive() ┌──────────┐
                 └────────────────────┘              │ codegen  │
                                                     └──────────┘

Invariants:
    - Every change to entities or relationships goes through dispatch()
    - Remote events are applied once, never snapshotted, never re-sent
    - History snapshots are immutable and never alias live state
    - Generators never mutate the diagram and never raise on partial input

How to change safely:
    - New event variants need a reducer entry and a codec entry
    - Keep the wire payload keys stable; peers may run older versions
"""

from ._version import __version__
from .session import DiagramSession

__all__ = ["__version__", "DiagramSession"]
