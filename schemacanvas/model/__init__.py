"""
Diagram model for SchemaCanvas.

This module provides the data structures the rest of the core consumes:
- Record types (Entity, Field, Relationship, Diagram and friends)
- DiagramState / DiagramModel for the live, per-document state
- YAML/JSON persistence format

Invariants:
    - Records are immutable; updates produce new records
    - Entity ids never change
    - Field ids are unique within an entity
"""

from .diagram import DiagramModel, DiagramState, utc_now_iso
from .format import parse_diagram, parse_json, parse_yaml, to_json, to_yaml, validate
from .types import (
    DEFAULT_IDENTITY_FIELD,
    DEFAULT_NEW_FIELD_TYPE,
    FIELD_CHANGE_KEYS,
    DatabaseKind,
    Diagram,
    DiagramMetadata,
    DocumentType,
    Entity,
    EntityKind,
    Field,
    FieldMapping,
    Position,
    RelationalType,
    Relationship,
)

__all__ = [
    # Types
    "Field",
    "Entity",
    "EntityKind",
    "Position",
    "FieldMapping",
    "Relationship",
    "Diagram",
    "DiagramMetadata",
    "DatabaseKind",
    "RelationalType",
    "DocumentType",
    "DEFAULT_IDENTITY_FIELD",
    "DEFAULT_NEW_FIELD_TYPE",
    "FIELD_CHANGE_KEYS",
    # Live state
    "DiagramState",
    "DiagramModel",
    "utc_now_iso",
    # Format
    "parse_diagram",
    "parse_yaml",
    "parse_json",
    "to_yaml",
    "to_json",
    "validate",
]
