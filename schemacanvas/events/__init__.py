"""
Event sourcing core for SchemaCanvas.

This module provides:
- Typed events, one per kind of diagram mutation
- The pure reducer that applies them
- The wire codec shared with collaborators
- EventDispatcher, the single mutation entry point

Invariants:
    - Events are the only sanctioned way to change entities or relationships
    - Stale references are no-ops, never errors
"""

from .codec import decode_event, encode_event, event_from_dict, event_to_dict
from .dispatcher import EventDispatcher
from .reducer import REDUCERS, reduce
from .types import (
    EVENT_CLASSES,
    DiagramEvent,
    EntityAdded,
    EntityDeleted,
    EntityUpdated,
    EventType,
    FieldAdded,
    FieldDeleted,
    FieldUpdated,
    RelationshipAdded,
    RelationshipDeleted,
    now_ms,
)

__all__ = [
    # Types
    "EventType",
    "DiagramEvent",
    "EntityAdded",
    "EntityDeleted",
    "EntityUpdated",
    "FieldAdded",
    "FieldUpdated",
    "FieldDeleted",
    "RelationshipAdded",
    "RelationshipDeleted",
    "EVENT_CLASSES",
    "now_ms",
    # Reducer
    "reduce",
    "REDUCERS",
    # Codec
    "event_to_dict",
    "event_from_dict",
    "encode_event",
    "decode_event",
    # Dispatcher
    "EventDispatcher",
]
