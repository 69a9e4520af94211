"""
Unit tests for the diagram persistence format.

Tests cover:
- YAML and JSON parsing
- Serialization round trips
- Structural validation
"""

import pytest

from schemacanvas.errors import DiagramFormatError
from schemacanvas.model import (
    DatabaseKind,
    Diagram,
    Entity,
    Field,
    FieldMapping,
    Relationship,
    parse_diagram,
    parse_json,
    parse_yaml,
    to_json,
    to_yaml,
    validate,
)

SAMPLE_YAML = """
entities:
  - id: t1
    kind: relational
    name: users
    position: {x: 100, y: 80}
    fields:
      - id: f1
        name: id
        type: INT
        isPrimaryKey: true
        isNullable: false
  - id: t2
    kind: relational
    name: posts
    fields:
      - id: f1
        name: id
        type: INT
        isPrimaryKey: true
      - id: f2
        name: user_id
        type: INT
relationships:
  - id: e1
    source: t2
    target: t1
    fieldMappings:
      - sourceField: user_id
        targetField: id
        cardinality: "1:N"
metadata:
  version: 2
  databaseKind: MYSQL
  createdAt: "2024-01-01T00:00:00+00:00"
  updatedAt: "2024-01-02T00:00:00+00:00"
"""


class TestParse:
    """Tests for parsing persisted diagrams."""

    def test_parse_yaml(self):
        diagram = parse_yaml(SAMPLE_YAML)

        assert [e.name for e in diagram.entities] == ["users", "posts"]
        assert diagram.entities[0].position.x == 100
        assert diagram.entities[0].fields[0].is_primary_key is True
        assert diagram.relationships[0].field_mappings[0].source_field == "user_id"
        assert diagram.metadata.version == 2
        assert diagram.metadata.database_kind == DatabaseKind.MYSQL

    def test_yaml_round_trip(self):
        diagram = parse_yaml(SAMPLE_YAML)

        assert parse_yaml(to_yaml(diagram)) == diagram

    def test_json_round_trip(self):
        diagram = parse_yaml(SAMPLE_YAML)

        assert parse_json(to_json(diagram)) == diagram

    def test_empty_document_is_empty_diagram(self):
        assert parse_yaml("") == Diagram()

    def test_non_mapping_raises(self):
        with pytest.raises(DiagramFormatError) as exc_info:
            parse_yaml("- just\n- a list\n")

        assert exc_info.value.code == "DIAGRAM_FORMAT_ERROR"
        assert exc_info.value.source_format == "yaml"

    def test_invalid_json_raises(self):
        with pytest.raises(DiagramFormatError):
            parse_json("{not json")

    def test_entity_without_id_raises(self):
        with pytest.raises(DiagramFormatError, match="Invalid diagram payload"):
            parse_diagram({"entities": [{"name": "users"}]})

    def test_dangling_relationship_loads(self):
        """Dangling references are tolerated by the model."""
        diagram = parse_diagram({
            "entities": [],
            "relationships": [{"id": "e1", "source": "x", "target": "y"}],
        })

        assert len(diagram.relationships) == 1


class TestValidate:
    """Tests for structural validation."""

    def test_valid_diagram(self):
        assert validate(parse_yaml(SAMPLE_YAML)) == []

    def test_reports_duplicate_entity_ids(self):
        diagram = Diagram(entities=(Entity(id="t1", name="a"), Entity(id="t1", name="b")))

        assert "Duplicate entity IDs found" in validate(diagram)

    def test_reports_duplicate_field_ids(self):
        diagram = Diagram(
            entities=(Entity(id="t1", name="a", fields=(Field(id="f1"), Field(id="f1"))),)
        )

        assert any("duplicate field IDs" in e for e in validate(diagram))

    def test_reports_empty_name(self):
        diagram = Diagram(entities=(Entity(id="t1"),))

        assert any("name is empty" in e for e in validate(diagram))

    def test_reports_dangling_endpoints_and_mappings(self):
        diagram = Diagram(
            entities=(Entity(id="t1", name="users", fields=(Field(id="f1", name="id"),)),),
            relationships=(
                Relationship(id="e1", source="t1", target="missing"),
                Relationship(
                    id="e2",
                    source="t1",
                    target="t1",
                    field_mappings=(FieldMapping("parent_id", "id"),),
                ),
            ),
        )

        errors = validate(diagram)

        assert any("target missing not found" in e for e in errors)
        assert any("source field 'parent_id' not found" in e for e in errors)
