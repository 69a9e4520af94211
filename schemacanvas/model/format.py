"""
YAML/JSON persistence format for diagrams.

The persistence collaborator stores diagrams as:

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
    relationships:
      - id: e1
        source: t2
        target: t1
        fieldMappings:
          - sourceField: user_id
            targetField: id
            cardinality: "1:N"
    metadata:
      version: 1
      databaseKind: MYSQL
      createdAt: "2024-01-01T00:00:00+00:00"
      updatedAt: "2024-01-01T00:00:00+00:00"

Parsing is lenient about content (dangling references load fine) and strict
about shape (a payload that is not a mapping raises DiagramFormatError).
validate() reports structural problems without rejecting the diagram.
"""

from __future__ import annotations

import json
from typing import Any

import yaml

from ..errors import DiagramFormatError
from .types import Diagram


def parse_diagram(data: Any, source_format: str = "dict") -> Diagram:
    """Parse a diagram from an already-decoded payload.

    Raises:
        DiagramFormatError: If the payload is not a mapping or a record is
            missing a required key
    """
    if data is None:
        return Diagram()
    if not isinstance(data, dict):
        raise DiagramFormatError(
            f"Diagram payload must be a mapping, got {type(data).__name__}",
            source_format=source_format,
        )
    try:
        return Diagram.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise DiagramFormatError(f"Invalid diagram payload: {e}", source_format=source_format) from e


def parse_yaml(yaml_str: str) -> Diagram:
    """Parse a diagram from a YAML string."""
    try:
        data = yaml.safe_load(yaml_str)
    except yaml.YAMLError as e:
        raise DiagramFormatError(f"Invalid YAML: {e}", source_format="yaml") from e
    return parse_diagram(data, source_format="yaml")


def parse_json(json_str: str) -> Diagram:
    """Parse a diagram from a JSON string."""
    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        raise DiagramFormatError(f"Invalid JSON: {e}", source_format="json") from e
    return parse_diagram(data, source_format="json")


def to_yaml(diagram: Diagram) -> str:
    """Serialize a diagram to YAML."""
    return yaml.dump(diagram.to_dict(), default_flow_style=False, sort_keys=False)


def to_json(diagram: Diagram) -> str:
    """Serialize a diagram to JSON."""
    return json.dumps(diagram.to_dict(), indent=2)


def validate(diagram: Diagram) -> list[str]:
    """Report structural problems in a diagram.

    Nothing here is fatal: the editor loads and renders such diagrams, and
    generators skip what they cannot resolve.
    """
    errors = []

    entity_ids = [e.id for e in diagram.entities]
    if len(entity_ids) != len(set(entity_ids)):
        errors.append("Duplicate entity IDs found")

    rel_ids = [r.id for r in diagram.relationships]
    if len(rel_ids) != len(set(rel_ids)):
        errors.append("Duplicate relationship IDs found")

    by_id = {e.id: e for e in diagram.entities}
    for entity in diagram.entities:
        label = entity.name or entity.id
        field_ids = [f.id for f in entity.fields]
        if len(field_ids) != len(set(field_ids)):
            errors.append(f"Entity '{label}': duplicate field IDs")
        if not entity.name:
            errors.append(f"Entity '{entity.id}': name is empty")

    for rel in diagram.relationships:
        source = by_id.get(rel.source)
        target = by_id.get(rel.target)
        if source is None:
            errors.append(f"Relationship '{rel.id}': source {rel.source} not found")
        if target is None:
            errors.append(f"Relationship '{rel.id}': target {rel.target} not found")
        if source is None or target is None:
            continue
        for m in rel.field_mappings:
            if source.get_field_by_name(m.source_field) is None:
                errors.append(
                    f"Relationship '{rel.id}': source field '{m.source_field}' not found"
                )
            if target.get_field_by_name(m.target_field) is None:
                errors.append(
                    f"Relationship '{rel.id}': target field '{m.target_field}' not found"
                )

    return errors
