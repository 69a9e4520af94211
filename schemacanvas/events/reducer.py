"""
Pure reducer from (DiagramState, event) to DiagramState.

Each event type has exactly one handler in REDUCERS. Handlers never raise
for references to entities, fields or relationships that no longer exist:
under near-real-time collaboration a remote delete can race a local edit,
and the late event simply does nothing.

Invariants:
    - reduce() never mutates its input state
    - Deleting an entity removes every relationship touching it, and no other
    - A stale reference yields the input state unchanged (same object)
    - Malformed values inside ``changes`` are logged and skipped, never raised
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, Mapping

from ..model.diagram import DiagramState
from ..model.types import FIELD_CHANGE_KEYS, Entity, Field, Position
from .types import (
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

logger = logging.getLogger(__name__)


def _stale(event: DiagramEvent, reason: str) -> None:
    logger.debug(
        "Ignoring stale event",
        extra={"event_type": event.type.value, "actor_id": event.actor_id, "reason": reason},
    )


def _replace_entity(state: DiagramState, updated: Entity) -> DiagramState:
    return replace(
        state,
        entities=tuple(updated if e.id == updated.id else e for e in state.entities),
    )


def _text(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"expected a string, got {type(value).__name__}")
    return value


def _malformed(key: str, error: Exception) -> None:
    logger.warning(f"Ignoring malformed change {key!r}: {error}", extra={"key": key})


def _merge_entity_changes(entity: Entity, changes: Mapping[str, Any]) -> Entity:
    kwargs: dict[str, Any] = {}
    for key, value in changes.items():
        try:
            if key == "name":
                kwargs["name"] = _text(value)
            elif key == "position":
                kwargs["position"] = Position.from_dict(value)
            elif key == "fields":
                kwargs["fields"] = tuple(Field.from_dict(f) for f in value or [])
            elif key in ("id", "kind"):
                logger.debug("Ignoring change to immutable entity attribute", extra={"key": key})
            else:
                logger.warning(f"Unknown entity change key: {key}")
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            _malformed(key, e)
    return replace(entity, **kwargs) if kwargs else entity


def _merge_field_changes(f: Field, changes: Mapping[str, Any]) -> Field:
    kwargs: dict[str, Any] = {}
    for key, value in changes.items():
        attr = FIELD_CHANGE_KEYS.get(key)
        if attr is None:
            if key != "id":
                logger.warning(f"Unknown field change key: {key}")
            continue
        if attr.startswith("is_"):
            value = bool(value)
        elif attr == "default_value":
            value = None if value is None else str(value)
        else:
            try:
                value = _text(value)
            except TypeError as e:
                _malformed(key, e)
                continue
        kwargs[attr] = value
    return replace(f, **kwargs) if kwargs else f


def _entity_added(state: DiagramState, event: EntityAdded) -> DiagramState:
    if state.get_entity(event.entity.id) is not None:
        _stale(event, "entity already present")
        return state
    return replace(
        state,
        entities=state.entities + (event.entity,),
        selected_entity_id=event.entity.id,
    )


def _entity_deleted(state: DiagramState, event: EntityDeleted) -> DiagramState:
    if state.get_entity(event.entity_id) is None:
        _stale(event, "entity not found")
        return state
    selected = state.selected_entity_id
    return DiagramState(
        entities=tuple(e for e in state.entities if e.id != event.entity_id),
        relationships=tuple(r for r in state.relationships if not r.touches(event.entity_id)),
        selected_entity_id=None if selected == event.entity_id else selected,
    )


def _entity_updated(state: DiagramState, event: EntityUpdated) -> DiagramState:
    entity = state.get_entity(event.entity_id)
    if entity is None:
        _stale(event, "entity not found")
        return state
    updated = _merge_entity_changes(entity, event.changes)
    if updated == entity:
        return state
    return _replace_entity(state, updated)


def _field_added(state: DiagramState, event: FieldAdded) -> DiagramState:
    entity = state.get_entity(event.entity_id)
    if entity is None:
        _stale(event, "entity not found")
        return state
    if entity.get_field(event.field.id) is not None:
        _stale(event, "field already present")
        return state
    return _replace_entity(state, replace(entity, fields=entity.fields + (event.field,)))


def _field_updated(state: DiagramState, event: FieldUpdated) -> DiagramState:
    entity = state.get_entity(event.entity_id)
    if entity is None or entity.get_field(event.field_id) is None:
        _stale(event, "entity or field not found")
        return state
    fields = tuple(
        _merge_field_changes(f, event.changes) if f.id == event.field_id else f
        for f in entity.fields
    )
    return _replace_entity(state, replace(entity, fields=fields))


def _field_deleted(state: DiagramState, event: FieldDeleted) -> DiagramState:
    entity = state.get_entity(event.entity_id)
    if entity is None or entity.get_field(event.field_id) is None:
        _stale(event, "entity or field not found")
        return state
    fields = tuple(f for f in entity.fields if f.id != event.field_id)
    return _replace_entity(state, replace(entity, fields=fields))


def _relationship_added(state: DiagramState, event: RelationshipAdded) -> DiagramState:
    rel = event.relationship
    if state.get_relationship(rel.id) is not None:
        _stale(event, "relationship already present")
        return state
    if state.get_entity(rel.source) is None or state.get_entity(rel.target) is None:
        _stale(event, "relationship endpoint not found")
        return state
    return replace(state, relationships=state.relationships + (rel,))


def _relationship_deleted(state: DiagramState, event: RelationshipDeleted) -> DiagramState:
    if state.get_relationship(event.relationship_id) is None:
        _stale(event, "relationship not found")
        return state
    return replace(
        state,
        relationships=tuple(r for r in state.relationships if r.id != event.relationship_id),
    )


REDUCERS: dict[EventType, Callable[[DiagramState, Any], DiagramState]] = {
    EventType.ENTITY_ADDED: _entity_added,
    EventType.ENTITY_DELETED: _entity_deleted,
    EventType.ENTITY_UPDATED: _entity_updated,
    EventType.FIELD_ADDED: _field_added,
    EventType.FIELD_UPDATED: _field_updated,
    EventType.FIELD_DELETED: _field_deleted,
    EventType.RELATIONSHIP_ADDED: _relationship_added,
    EventType.RELATIONSHIP_DELETED: _relationship_deleted,
}


def reduce(state: DiagramState, event: DiagramEvent) -> DiagramState:
    """Apply one event to a state and return the resulting state.

    Args:
        state: Current state (not modified)
        event: Event to apply

    Returns:
        New state, or ``state`` itself when the event is a no-op
    """
    return REDUCERS[event.type](state, event)
