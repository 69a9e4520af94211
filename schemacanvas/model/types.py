"""
Core type definitions for the SchemaCanvas diagram model.

This module defines the records every other component works with:
- Field: A column (relational) or property (document) of an entity
- Entity: A table or collection node on the canvas
- FieldMapping / Relationship: A directed edge between two entities
- DiagramMetadata / Diagram: The unit of persistence

Invariants:
    - All records are frozen; sequences are tuples
    - Entity.id is immutable once created
    - Field ids are unique within their owning entity, not globally
    - is_primary_key / is_foreign_key only mean something on relational entities
    - Relationship mappings refer to fields by name and may dangle

How to change safely:
    - Add new optional attributes with defaults
    - Keep to_dict() keys stable; they are the wire and persistence format
    - Never make a record mutable; history snapshots rely on it

Example:
    >>> users = Entity(
    ...     id="t1",
    ...     kind=EntityKind.RELATIONAL,
    ...     name="users",
    ...     fields=(Field(id="f1", name="id", type="INT", is_primary_key=True),),
    ... )
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field as dataclass_field
from enum import Enum
from typing import Any


class EntityKind(Enum):
    """Whether an entity is a relational table or a document collection."""

    RELATIONAL = "relational"
    DOCUMENT = "document"

    @classmethod
    def from_str(cls, value: str) -> EntityKind:
        """Convert a string to EntityKind.

        Accepts the canonical values as well as the canvas node types used by
        the editor frontend (``mysqlTable``, ``mongoCollection``).

        Raises:
            ValueError: If value is not a known kind
        """
        aliases = {
            "mysqlTable": cls.RELATIONAL,
            "table": cls.RELATIONAL,
            "mongoCollection": cls.DOCUMENT,
            "collection": cls.DOCUMENT,
        }
        if value in aliases:
            return aliases[value]
        for kind in cls:
            if kind.value == value:
                return kind
        valid = [k.value for k in cls]
        raise ValueError(f"Invalid entity kind '{value}'. Valid kinds: {valid}")


class DatabaseKind(Enum):
    """Target database of a whole diagram."""

    MYSQL = "MYSQL"
    MONGODB = "MONGODB"

    @property
    def entity_kind(self) -> EntityKind:
        """Entity kind created by default in diagrams of this database kind."""
        if self is DatabaseKind.MONGODB:
            return EntityKind.DOCUMENT
        return EntityKind.RELATIONAL


class RelationalType(Enum):
    """Column types available on relational entities."""

    INT = "INT"
    BIGINT = "BIGINT"
    TINYINT = "TINYINT"
    DECIMAL = "DECIMAL"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"
    VARCHAR = "VARCHAR"
    CHAR = "CHAR"
    TEXT = "TEXT"
    LONGTEXT = "LONGTEXT"
    ENUM = "ENUM"
    DATE = "DATE"
    DATETIME = "DATETIME"
    TIMESTAMP = "TIMESTAMP"
    BOOLEAN = "BOOLEAN"
    JSON = "JSON"
    BLOB = "BLOB"


class DocumentType(Enum):
    """Property types available on document entities."""

    OBJECT_ID = "ObjectId"
    STRING = "String"
    NUMBER = "Number"
    BOOLEAN = "Boolean"
    DATE = "Date"
    ARRAY = "Array"
    OBJECT = "Object"
    DECIMAL128 = "Decimal128"
    MAP = "Map"
    BUFFER = "Buffer"
    UUID = "UUID"


# Fields every entity kind is seeded with when created from the editor
DEFAULT_IDENTITY_FIELD = {
    EntityKind.RELATIONAL: ("id", RelationalType.INT.value),
    EntityKind.DOCUMENT: ("_id", DocumentType.OBJECT_ID.value),
}

# Type given to a freshly added field
DEFAULT_NEW_FIELD_TYPE = {
    EntityKind.RELATIONAL: RelationalType.VARCHAR.value,
    EntityKind.DOCUMENT: DocumentType.STRING.value,
}


@dataclass(frozen=True)
class Field:
    """A single column or property.

    Attributes:
        id: Identifier, unique within the owning entity
        name: Column/property name (may be empty while being edited)
        type: Data type drawn from RelationalType or DocumentType values.
            Relational types may carry arguments, e.g. ``VARCHAR(64)``.
        is_primary_key: Primary key flag (relational only)
        is_foreign_key: Foreign key flag (relational only)
        is_nullable: Whether the value may be absent
        is_unique: Uniqueness constraint
        default_value: Optional default, kept as entered
    """

    id: str
    name: str = ""
    type: str = ""
    is_primary_key: bool = False
    is_foreign_key: bool = False
    is_nullable: bool = True
    is_unique: bool = False
    default_value: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire representation."""
        result: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "isPrimaryKey": self.is_primary_key,
            "isForeignKey": self.is_foreign_key,
            "isNullable": self.is_nullable,
            "isUnique": self.is_unique,
        }
        if self.default_value is not None:
            result["defaultValue"] = self.default_value
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Field:
        """Create from the wire representation."""
        default = data.get("defaultValue")
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            type=data.get("type") or "",
            is_primary_key=bool(data.get("isPrimaryKey", False)),
            is_foreign_key=bool(data.get("isForeignKey", False)),
            is_nullable=bool(data.get("isNullable", True)),
            is_unique=bool(data.get("isUnique", False)),
            default_value=None if default is None else str(default),
        )


# Wire key -> attribute name for partial field updates
FIELD_CHANGE_KEYS = {
    "name": "name",
    "type": "type",
    "isPrimaryKey": "is_primary_key",
    "isForeignKey": "is_foreign_key",
    "isNullable": "is_nullable",
    "isUnique": "is_unique",
    "defaultValue": "default_value",
}


@dataclass(frozen=True)
class Position:
    """Canvas coordinates; owned by the renderer, persisted with the entity."""

    x: float = 0.0
    y: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Position:
        data = data or {}
        return cls(x=float(data.get("x", 0.0)), y=float(data.get("y", 0.0)))


@dataclass(frozen=True)
class Entity:
    """A table or collection node.

    Attributes:
        id: Immutable identifier
        kind: Relational table or document collection
        name: Display name, may be empty transiently
        position: Canvas position
        fields: Ordered fields
    """

    id: str
    kind: EntityKind = EntityKind.RELATIONAL
    name: str = ""
    position: Position = dataclass_field(default_factory=Position)
    fields: tuple[Field, ...] = ()

    def get_field(self, field_id: str) -> Field | None:
        """Find a field by id."""
        for f in self.fields:
            if f.id == field_id:
                return f
        return None

    def get_field_by_name(self, name: str) -> Field | None:
        """Find the first field with the given name."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire representation."""
        return {
            "id": self.id,
            "kind": self.kind.value,
            "name": self.name,
            "position": self.position.to_dict(),
            "fields": [f.to_dict() for f in self.fields],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Entity:
        """Create from the wire representation."""
        return cls(
            id=str(data["id"]),
            kind=EntityKind.from_str(data.get("kind", EntityKind.RELATIONAL.value)),
            name=data.get("name") or "",
            position=Position.from_dict(data.get("position")),
            fields=tuple(Field.from_dict(f) for f in data.get("fields") or []),
        )


@dataclass(frozen=True)
class FieldMapping:
    """One source-field to target-field pairing inside a relationship."""

    source_field: str
    target_field: str
    cardinality: str = "1:N"

    def to_dict(self) -> dict[str, str]:
        return {
            "sourceField": self.source_field,
            "targetField": self.target_field,
            "cardinality": self.cardinality,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FieldMapping:
        return cls(
            source_field=data.get("sourceField") or "",
            target_field=data.get("targetField") or "",
            cardinality=data.get("cardinality") or data.get("relationshipType") or "1:N",
        )


@dataclass(frozen=True)
class Relationship:
    """A directed edge: the source entity references the target entity.

    Attributes:
        id: Identifier
        source: Source entity id (holds the foreign key)
        target: Target entity id (is referenced)
        field_mappings: Field-level mappings, resolved by name
        cardinality: Overall cardinality label
        show_fields: Display flag for mapping labels
        show_cardinality: Display flag for the cardinality label
    """

    id: str
    source: str
    target: str
    field_mappings: tuple[FieldMapping, ...] = ()
    cardinality: str = "one-to-many"
    show_fields: bool = True
    show_cardinality: bool = True

    def touches(self, entity_id: str) -> bool:
        """Whether either endpoint is the given entity."""
        return self.source == entity_id or self.target == entity_id

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire representation."""
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "fieldMappings": [m.to_dict() for m in self.field_mappings],
            "cardinality": self.cardinality,
            "showFields": self.show_fields,
            "showCardinality": self.show_cardinality,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Relationship:
        """Create from the wire representation."""
        return cls(
            id=str(data["id"]),
            source=str(data["source"]),
            target=str(data["target"]),
            field_mappings=tuple(
                FieldMapping.from_dict(m) for m in data.get("fieldMappings") or []
            ),
            cardinality=data.get("cardinality") or "one-to-many",
            show_fields=bool(data.get("showFields", True)),
            show_cardinality=bool(data.get("showCardinality", True)),
        )


@dataclass(frozen=True)
class DiagramMetadata:
    """Diagram-level metadata.

    Timestamps are ISO-8601 strings as produced by the persistence layer.
    """

    version: int = 1
    database_kind: DatabaseKind = DatabaseKind.MYSQL
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "databaseKind": self.database_kind.value,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> DiagramMetadata:
        data = data or {}
        kind = data.get("databaseKind") or data.get("dbType") or DatabaseKind.MYSQL.value
        return cls(
            version=int(data.get("version", 1)),
            database_kind=DatabaseKind(kind),
            created_at=data.get("createdAt") or "",
            updated_at=data.get("updatedAt") or "",
        )


@dataclass(frozen=True)
class Diagram:
    """Entities, relationships and metadata; the unit of persistence."""

    entities: tuple[Entity, ...] = ()
    relationships: tuple[Relationship, ...] = ()
    metadata: DiagramMetadata = dataclass_field(default_factory=DiagramMetadata)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persistence payload."""
        return {
            "entities": [e.to_dict() for e in self.entities],
            "relationships": [r.to_dict() for r in self.relationships],
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Diagram:
        """Create from the persistence payload."""
        return cls(
            entities=tuple(Entity.from_dict(e) for e in data.get("entities") or []),
            relationships=tuple(
                Relationship.from_dict(r) for r in data.get("relationships") or []
            ),
            metadata=DiagramMetadata.from_dict(data.get("metadata")),
        )
