"""
Wire codec for diagram events.

Payload shape exchanged with the collaboration channel:

    {
        "type": "FieldUpdated",
        "diagramId": "d_123",
        "actorId": "user:42",
        "timestamp": 1730000000000,
        "entityId": "t1",
        "fieldId": "f2",
        "changes": {"isPrimaryKey": true}
    }

Variant fields:
    EntityAdded          entity
    EntityDeleted        entityId
    EntityUpdated        entityId, changes
    FieldAdded           entityId, field
    FieldUpdated         entityId, fieldId, changes
    FieldDeleted         entityId, fieldId
    RelationshipAdded    relationship
    RelationshipDeleted  relationshipId
"""

from __future__ import annotations

import json
from typing import Any

from ..errors import EventDecodeError
from ..model.types import Entity, Field, Position, Relationship
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
)

# Wire keys each variant requires beyond the envelope
REQUIRED_KEYS: dict[EventType, tuple[str, ...]] = {
    EventType.ENTITY_ADDED: ("entity",),
    EventType.ENTITY_DELETED: ("entityId",),
    EventType.ENTITY_UPDATED: ("entityId", "changes"),
    EventType.FIELD_ADDED: ("entityId", "field"),
    EventType.FIELD_UPDATED: ("entityId", "fieldId", "changes"),
    EventType.FIELD_DELETED: ("entityId", "fieldId"),
    EventType.RELATIONSHIP_ADDED: ("relationship",),
    EventType.RELATIONSHIP_DELETED: ("relationshipId",),
}


def _checked_changes(event_type: EventType, changes: Any) -> dict[str, Any]:
    """Reject a changes object the reducer could not apply.

    Raises:
        TypeError, KeyError, ValueError, AttributeError: On malformed content
    """
    if not isinstance(changes, dict):
        raise TypeError(f"changes must be an object, got {type(changes).__name__}")

    for key in ("name", "type"):
        value = changes.get(key)
        if value is not None and not isinstance(value, str):
            raise TypeError(f"{key!r} must be a string")

    if event_type == EventType.ENTITY_UPDATED:
        if "position" in changes:
            Position.from_dict(changes["position"])
        if "fields" in changes:
            for f in changes["fields"] or []:
                Field.from_dict(f)

    return changes


def event_to_dict(event: DiagramEvent) -> dict[str, Any]:
    """Convert an event to its wire dictionary."""
    data: dict[str, Any] = {
        "type": event.type.value,
        "diagramId": event.diagram_id,
        "actorId": event.actor_id,
        "timestamp": event.timestamp,
    }

    if isinstance(event, EntityAdded):
        data["entity"] = event.entity.to_dict()
    elif isinstance(event, EntityDeleted):
        data["entityId"] = event.entity_id
    elif isinstance(event, EntityUpdated):
        data["entityId"] = event.entity_id
        data["changes"] = dict(event.changes)
    elif isinstance(event, FieldAdded):
        data["entityId"] = event.entity_id
        data["field"] = event.field.to_dict()
    elif isinstance(event, FieldUpdated):
        data["entityId"] = event.entity_id
        data["fieldId"] = event.field_id
        data["changes"] = dict(event.changes)
    elif isinstance(event, FieldDeleted):
        data["entityId"] = event.entity_id
        data["fieldId"] = event.field_id
    elif isinstance(event, RelationshipAdded):
        data["relationship"] = event.relationship.to_dict()
    elif isinstance(event, RelationshipDeleted):
        data["relationshipId"] = event.relationship_id
    else:
        raise TypeError(f"Unsupported event class: {type(event).__name__}")

    return data


def event_from_dict(data: dict[str, Any]) -> DiagramEvent:
    """Create an event from its wire dictionary.

    Raises:
        EventDecodeError: If the type is unknown or required keys are missing
    """
    if not isinstance(data, dict):
        raise EventDecodeError(f"Event payload must be an object, got {type(data).__name__}")

    type_str = data.get("type")
    try:
        event_type = EventType(type_str)
    except ValueError:
        raise EventDecodeError(f"Unknown event type: {type_str!r}", event_type=type_str)

    missing = [k for k in REQUIRED_KEYS[event_type] if k not in data]
    if missing:
        raise EventDecodeError(
            f"Missing required fields for {event_type.value}: {missing}",
            event_type=event_type.value,
            missing=missing,
        )

    cls = EVENT_CLASSES[event_type]

    try:
        envelope = {
            "diagram_id": str(data.get("diagramId") or ""),
            "actor_id": str(data.get("actorId") or ""),
            "timestamp": int(data.get("timestamp") or 0),
        }
        if event_type == EventType.ENTITY_ADDED:
            return cls(entity=Entity.from_dict(data["entity"]), **envelope)
        if event_type == EventType.ENTITY_DELETED:
            return cls(entity_id=str(data["entityId"]), **envelope)
        if event_type == EventType.ENTITY_UPDATED:
            return cls(
                entity_id=str(data["entityId"]),
                changes=_checked_changes(event_type, data["changes"]),
                **envelope,
            )
        if event_type == EventType.FIELD_ADDED:
            return cls(
                entity_id=str(data["entityId"]),
                field=Field.from_dict(data["field"]),
                **envelope,
            )
        if event_type == EventType.FIELD_UPDATED:
            return cls(
                entity_id=str(data["entityId"]),
                field_id=str(data["fieldId"]),
                changes=_checked_changes(event_type, data["changes"]),
                **envelope,
            )
        if event_type == EventType.FIELD_DELETED:
            return cls(
                entity_id=str(data["entityId"]),
                field_id=str(data["fieldId"]),
                **envelope,
            )
        if event_type == EventType.RELATIONSHIP_ADDED:
            return cls(relationship=Relationship.from_dict(data["relationship"]), **envelope)
        return cls(relationship_id=str(data["relationshipId"]), **envelope)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise EventDecodeError(
            f"Malformed {event_type.value} payload: {e}",
            event_type=event_type.value,
        ) from e


def encode_event(event: DiagramEvent) -> bytes:
    """Encode an event as UTF-8 JSON bytes."""
    return json.dumps(event_to_dict(event)).encode("utf-8")


def decode_event(payload: bytes) -> DiagramEvent:
    """Decode UTF-8 JSON bytes into an event.

    Raises:
        EventDecodeError: If the bytes are not valid JSON or not a valid event
    """
    try:
        data = json.loads(payload.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise EventDecodeError(f"Failed to parse event payload as JSON: {e}")
    return event_from_dict(data)
