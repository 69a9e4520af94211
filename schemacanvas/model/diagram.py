"""
Live diagram state for one open document.

DiagramState is the immutable value the reducer maps from and to.
DiagramModel is the single mutable holder a session owns; the dispatcher and
the history stack replace its state, nothing else writes to it.

Invariants:
    - One DiagramModel per open diagram; models are never shared
    - Only EventDispatcher and HistoryStack assign DiagramModel.state
    - Metadata is not part of DiagramState and is never touched by undo/redo
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone

from .types import Diagram, DiagramMetadata, Entity, Relationship

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiagramState:
    """Entities, relationships and the current selection.

    Attributes:
        entities: Entities in insertion order
        relationships: Relationships in insertion order
        selected_entity_id: Entity highlighted in the editor, if any
    """

    entities: tuple[Entity, ...] = ()
    relationships: tuple[Relationship, ...] = ()
    selected_entity_id: str | None = None

    def get_entity(self, entity_id: str) -> Entity | None:
        for entity in self.entities:
            if entity.id == entity_id:
                return entity
        return None

    def get_relationship(self, relationship_id: str) -> Relationship | None:
        for rel in self.relationships:
            if rel.id == relationship_id:
                return rel
        return None


def utc_now_iso() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


class DiagramModel:
    """Mutable holder of a diagram's state.

    Example:
        >>> model = DiagramModel("diagram-1")
        >>> model.entities
        ()
    """

    def __init__(
        self,
        diagram_id: str,
        metadata: DiagramMetadata | None = None,
        state: DiagramState | None = None,
    ) -> None:
        self.diagram_id = diagram_id
        self.metadata = metadata or DiagramMetadata(
            created_at=utc_now_iso(), updated_at=utc_now_iso()
        )
        self.state = state or DiagramState()

    @property
    def entities(self) -> tuple[Entity, ...]:
        return self.state.entities

    @property
    def relationships(self) -> tuple[Relationship, ...]:
        return self.state.relationships

    @property
    def selected_entity_id(self) -> str | None:
        return self.state.selected_entity_id

    def get_entity(self, entity_id: str) -> Entity | None:
        return self.state.get_entity(entity_id)

    def select(self, entity_id: str | None) -> None:
        """Change the selection. Selection is UI state, not an event."""
        self.state = replace(self.state, selected_entity_id=entity_id)

    def load(self, diagram: Diagram) -> None:
        """Replace all content with a persisted diagram."""
        self.metadata = diagram.metadata
        self.state = DiagramState(
            entities=diagram.entities,
            relationships=diagram.relationships,
        )
        logger.info(
            "Diagram loaded",
            extra={
                "diagram_id": self.diagram_id,
                "entities": len(diagram.entities),
                "relationships": len(diagram.relationships),
            },
        )

    def to_diagram(self) -> Diagram:
        """Export the persistence view with a refreshed updated_at."""
        metadata = replace(self.metadata, updated_at=utc_now_iso())
        return Diagram(
            entities=self.state.entities,
            relationships=self.state.relationships,
            metadata=metadata,
        )
