"""
Per-document editing session.

A DiagramSession owns everything needed to edit one open diagram:
- The DiagramModel (state)
- The HistoryStack (undo/redo)
- The EventDispatcher (single mutation path)
- Optionally a CollaborationChannel to remote peers

It exposes the editor's intents (add a table, rename it, toggle a flag, ...)
and decides which of them are individually undoable.

Invariants:
    - Sessions never share a model; there is no process-wide store
    - Every content change goes through the dispatcher
    - Continuous input (renames, field edits while typing) is not snapshotted;
      the UI snapshots once when editing starts

How to change safely:
    - New intents should build an event and dispatch it, never assign state
"""

from __future__ import annotations

import logging
import random
import uuid
from typing import Any, Iterable

from .channel.base import CollaborationChannel
from .codegen import generate_code
from .config import Settings
from .events.dispatcher import EventDispatcher
from .events.types import (
    EntityAdded,
    EntityDeleted,
    EntityUpdated,
    FieldAdded,
    FieldDeleted,
    FieldUpdated,
    RelationshipAdded,
    RelationshipDeleted,
)
from .history.stack import HistoryStack
from .model.diagram import DiagramModel, utc_now_iso
from .model.types import (
    DEFAULT_IDENTITY_FIELD,
    DEFAULT_NEW_FIELD_TYPE,
    DatabaseKind,
    Diagram,
    DiagramMetadata,
    Entity,
    EntityKind,
    Field,
    FieldMapping,
    Position,
    Relationship,
)

logger = logging.getLogger(__name__)


def generate_id() -> str:
    """Random identifier for new entities, fields and relationships."""
    return str(uuid.uuid4())


class DiagramSession:
    """Editing session for one diagram.

    Attributes:
        model: Diagram state
        history: Undo/redo stack
        dispatcher: Mutation entry point
        channel: Collaboration channel, if connected
        settings: Loaded settings

    Example:
        >>> session = DiagramSession("diagram-1")
        >>> table_id = session.add_entity("users")
        >>> session.add_field(table_id)
        >>> print(session.generate_code())
    """

    def __init__(
        self,
        diagram_id: str,
        settings: Settings | None = None,
        channel: CollaborationChannel | None = None,
        actor_id: str | None = None,
    ) -> None:
        self.settings = settings or Settings()
        now = utc_now_iso()
        self.model = DiagramModel(
            diagram_id,
            metadata=DiagramMetadata(
                database_kind=DatabaseKind(self.settings.database_kind),
                created_at=now,
                updated_at=now,
            ),
        )
        self.history = HistoryStack(self.model, max_depth=self.settings.history_depth)
        self.dispatcher = EventDispatcher(
            self.model,
            history=self.history,
            actor_id=actor_id or self.settings.actor_id,
        )
        self.channel: CollaborationChannel | None = None
        if channel is not None:
            self.connect_channel(channel)

    @property
    def diagram_id(self) -> str:
        return self.model.diagram_id

    @property
    def entity_kind(self) -> EntityKind:
        """Kind of entity new tables/collections get in this diagram."""
        return self.model.metadata.database_kind.entity_kind

    # Collaboration

    def connect_channel(self, channel: CollaborationChannel) -> None:
        """Attach a channel: outbound events go to it, inbound ones are applied."""
        self.channel = channel
        self.dispatcher.channel = channel
        channel.register(self.dispatcher.receive)
        logger.info("Channel connected", extra={"diagram_id": self.diagram_id})

    def disconnect_channel(self) -> None:
        if self.channel is None:
            return
        self.channel.close()
        self.channel = None
        self.dispatcher.channel = None
        logger.info("Channel disconnected", extra={"diagram_id": self.diagram_id})

    # Persistence

    def load(self, diagram: Diagram) -> None:
        """Replace the session content with a persisted diagram.

        History and selection are reset; nothing is broadcast.
        """
        self.model.load(diagram)
        self.history.clear()

    def export(self) -> Diagram:
        """Current diagram for persistence, with updated_at refreshed."""
        return self.model.to_diagram()

    # Entities

    def add_entity(self, name: str | None = None, position: Position | None = None) -> str:
        """Add a table or collection seeded with its identity field.

        Returns:
            The new entity id
        """
        kind = self.entity_kind
        label = "Collection" if kind == EntityKind.DOCUMENT else "Table"
        id_name, id_type = DEFAULT_IDENTITY_FIELD[kind]

        entity = Entity(
            id=generate_id(),
            kind=kind,
            name=name if name is not None else f"{label} {len(self.model.entities) + 1}",
            position=position
            or Position(x=100 + random.random() * 50, y=100 + random.random() * 50),
            fields=(
                Field(
                    id=generate_id(),
                    name=id_name,
                    type=id_type,
                    is_primary_key=True,
                    is_nullable=False,
                ),
            ),
        )
        self.dispatcher.dispatch(EntityAdded(entity=entity))
        return entity.id

    def delete_entity(self, entity_id: str) -> None:
        self.dispatcher.dispatch(EntityDeleted(entity_id=entity_id))

    def rename_entity(self, entity_id: str, name: str) -> None:
        """Rename as the user types; the UI snapshots on focus."""
        self.dispatcher.dispatch(
            EntityUpdated(entity_id=entity_id, changes={"name": name}),
            should_snapshot=False,
        )

    def move_entity(self, entity_id: str, position: Position) -> None:
        """Persist a drag result; the UI snapshots on drag start."""
        self.dispatcher.dispatch(
            EntityUpdated(entity_id=entity_id, changes={"position": position.to_dict()}),
            should_snapshot=False,
        )

    def select_entity(self, entity_id: str | None) -> None:
        self.model.select(entity_id)

    # Fields

    def add_field(
        self, entity_id: str, name: str = "new_field", field_type: str | None = None
    ) -> str:
        """Append a nullable field to an entity.

        Returns:
            The new field id (the field is not added if the entity is gone)
        """
        entity = self.model.get_entity(entity_id)
        kind = entity.kind if entity is not None else self.entity_kind
        new_field = Field(
            id=generate_id(),
            name=name,
            type=field_type or DEFAULT_NEW_FIELD_TYPE[kind],
            is_nullable=True,
        )
        self.dispatcher.dispatch(FieldAdded(entity_id=entity_id, field=new_field))
        return new_field.id

    def update_field(
        self,
        entity_id: str,
        field_id: str,
        changes: dict[str, Any],
        snapshot: bool = False,
    ) -> None:
        """Apply a partial field update.

        Args:
            entity_id: Owning entity
            field_id: Field to update
            changes: Wire-keyed changes, e.g. ``{"isPrimaryKey": True}``
            snapshot: True for discrete toggles, False for typing
        """
        self.dispatcher.dispatch(
            FieldUpdated(entity_id=entity_id, field_id=field_id, changes=dict(changes)),
            should_snapshot=snapshot,
        )

    def delete_field(self, entity_id: str, field_id: str) -> None:
        self.dispatcher.dispatch(FieldDeleted(entity_id=entity_id, field_id=field_id))

    # Relationships

    def connect(
        self,
        source_id: str,
        target_id: str,
        field_mappings: Iterable[FieldMapping] = (),
        cardinality: str = "one-to-many",
    ) -> str:
        """Add a relationship where the source references the target.

        Returns:
            The new relationship id
        """
        relationship = Relationship(
            id=generate_id(),
            source=source_id,
            target=target_id,
            field_mappings=tuple(field_mappings),
            cardinality=cardinality,
        )
        self.dispatcher.dispatch(RelationshipAdded(relationship=relationship))
        return relationship.id

    def disconnect(self, relationship_id: str) -> None:
        self.dispatcher.dispatch(RelationshipDeleted(relationship_id=relationship_id))

    # History

    def snapshot(self) -> None:
        """Mark the start of a continuous edit (focus, drag start)."""
        self.history.snapshot()

    def undo(self) -> bool:
        return self.history.undo()

    def redo(self) -> bool:
        return self.history.redo()

    # Code generation

    def generate_code(self) -> str:
        """Generate DDL or schema code for the diagram's database kind."""
        return generate_code(
            self.model.to_diagram(),
            string_length=self.settings.default_string_length,
        )
