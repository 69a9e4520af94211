"""
Diagram event types.

Every mutation of a diagram is described by exactly one of these events.
The set is closed: EventType enumerates it, and each member has one frozen
dataclass carrying its payload.

Invariants:
    - Events are immutable once created
    - Envelope fields (diagram_id, actor_id, timestamp) are stamped by the
      dispatcher for local events and preserved for remote ones
    - ``changes`` are read-only copies keyed by wire names (``name``,
      ``isPrimaryKey``, ...)

How to change safely:
    - Add a member to EventType, a dataclass here, a reducer entry and a
      codec entry; the test suite checks the reducer table is exhaustive
"""

from __future__ import annotations

import copy
import time
from dataclasses import dataclass, replace
from dataclasses import field as dataclass_field
from enum import Enum
from types import MappingProxyType
from typing import Any, ClassVar, Mapping

from ..model.types import Entity, Field, Relationship


class EventType(Enum):
    """Tag of every event variant, as written on the wire."""

    ENTITY_ADDED = "EntityAdded"
    ENTITY_DELETED = "EntityDeleted"
    ENTITY_UPDATED = "EntityUpdated"
    FIELD_ADDED = "FieldAdded"
    FIELD_UPDATED = "FieldUpdated"
    FIELD_DELETED = "FieldDeleted"
    RELATIONSHIP_ADDED = "RelationshipAdded"
    RELATIONSHIP_DELETED = "RelationshipDeleted"


def now_ms() -> int:
    """Current time in Unix milliseconds."""
    return int(time.time() * 1000)


def _frozen(changes: Mapping[str, Any]) -> Mapping[str, Any]:
    """Read-only deep copy of a changes mapping."""
    return MappingProxyType(copy.deepcopy(dict(changes)))


@dataclass(frozen=True, kw_only=True)
class DiagramEvent:
    """Envelope shared by every event.

    Attributes:
        diagram_id: Diagram the event belongs to
        actor_id: Originating actor (local user or remote collaborator)
        timestamp: Unix milliseconds
    """

    type: ClassVar[EventType]

    diagram_id: str = ""
    actor_id: str = ""
    timestamp: int = 0

    def stamped(self, diagram_id: str, actor_id: str, timestamp: int | None = None) -> DiagramEvent:
        """Return a copy with the envelope filled in."""
        return replace(
            self,
            diagram_id=diagram_id,
            actor_id=actor_id,
            timestamp=now_ms() if timestamp is None else timestamp,
        )


@dataclass(frozen=True, kw_only=True)
class EntityAdded(DiagramEvent):
    type: ClassVar[EventType] = EventType.ENTITY_ADDED

    entity: Entity


@dataclass(frozen=True, kw_only=True)
class EntityDeleted(DiagramEvent):
    type: ClassVar[EventType] = EventType.ENTITY_DELETED

    entity_id: str


@dataclass(frozen=True, kw_only=True)
class EntityUpdated(DiagramEvent):
    """Shallow-merge of ``changes`` into an entity (e.g. a rename)."""

    type: ClassVar[EventType] = EventType.ENTITY_UPDATED

    entity_id: str
    changes: Mapping[str, Any] = dataclass_field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "changes", _frozen(self.changes))


@dataclass(frozen=True, kw_only=True)
class FieldAdded(DiagramEvent):
    type: ClassVar[EventType] = EventType.FIELD_ADDED

    entity_id: str
    field: Field


@dataclass(frozen=True, kw_only=True)
class FieldUpdated(DiagramEvent):
    type: ClassVar[EventType] = EventType.FIELD_UPDATED

    entity_id: str
    field_id: str
    changes: Mapping[str, Any] = dataclass_field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "changes", _frozen(self.changes))


@dataclass(frozen=True, kw_only=True)
class FieldDeleted(DiagramEvent):
    type: ClassVar[EventType] = EventType.FIELD_DELETED

    entity_id: str
    field_id: str


@dataclass(frozen=True, kw_only=True)
class RelationshipAdded(DiagramEvent):
    type: ClassVar[EventType] = EventType.RELATIONSHIP_ADDED

    relationship: Relationship


@dataclass(frozen=True, kw_only=True)
class RelationshipDeleted(DiagramEvent):
    type: ClassVar[EventType] = EventType.RELATIONSHIP_DELETED

    relationship_id: str


EVENT_CLASSES: dict[EventType, type[DiagramEvent]] = {
    cls.type: cls
    for cls in (
        EntityAdded,
        EntityDeleted,
        EntityUpdated,
        FieldAdded,
        FieldUpdated,
        FieldDeleted,
        RelationshipAdded,
        RelationshipDeleted,
    )
}
