"""
Code generation from diagrams.

Generates MySQL DDL or Mongoose schema code from diagram entities and
relationships. The diagram is the source of truth - code is always derived.
Generators are pure functions: no I/O, no mutation, no exceptions for
incomplete diagrams.
"""

from __future__ import annotations

from ..model.types import DatabaseKind, Diagram
from .document import generate_document_schemas, model_name, mongoose_type
from .relational import DEFAULT_STRING_LENGTH, generate_relational_ddl, sql_type


def generate_code(diagram: Diagram, string_length: int = DEFAULT_STRING_LENGTH) -> str:
    """Generate code for a diagram's target database."""
    if diagram.metadata.database_kind == DatabaseKind.MONGODB:
        return generate_document_schemas(diagram.entities)
    return generate_relational_ddl(diagram.entities, diagram.relationships, string_length)


__all__ = [
    "generate_code",
    "generate_relational_ddl",
    "generate_document_schemas",
    "sql_type",
    "mongoose_type",
    "model_name",
    "DEFAULT_STRING_LENGTH",
]
