"""
MySQL DDL generation from a diagram.

Output layout:
    1. One CREATE TABLE per relational entity, in entity order
    2. One ALTER TABLE ... ADD CONSTRAINT per resolvable relationship mapping,
       in relationship order (constraints reference tables created above)

Incomplete input degrades instead of raising: unnamed tables get a
positional name, unnamed columns are skipped, tables without columns become
a comment, and mappings whose tables or columns cannot be found by name are
left out.

Invariants:
    - Table, column and constraint names are distinct within their scope;
      repeats get ``_2``, ``_3``, ... compared case-insensitively
    - Type arguments reach the output only if they are numeric, or quoted
      values for ENUM
"""

from __future__ import annotations

import re
from typing import Iterable

from ..model.types import Entity, EntityKind, Field, Relationship

DEFAULT_STRING_LENGTH = 255

INTEGER_TYPES = {"INT", "BIGINT", "TINYINT"}

# Types that need a length when none was given
LENGTH_TYPES = {"VARCHAR", "CHAR"}

TYPE_DEFAULT_ARGS = {
    "DECIMAL": "(10,2)",
}

PLAIN_TYPES = {
    "INT",
    "BIGINT",
    "TINYINT",
    "DECIMAL",
    "FLOAT",
    "DOUBLE",
    "VARCHAR",
    "CHAR",
    "TEXT",
    "LONGTEXT",
    "ENUM",
    "DATE",
    "DATETIME",
    "TIMESTAMP",
    "BOOLEAN",
    "JSON",
    "BLOB",
}

DEFAULT_KEYWORDS = {"NULL", "CURRENT_TIMESTAMP", "TRUE", "FALSE"}

_TYPE_RE = re.compile(r"^\s*([A-Za-z]+)\s*(\(.*\))?\s*$")
_NUMERIC_ARGS_RE = re.compile(r"^\(\s*\d+(\s*,\s*\d+)?\s*\)$")
_ENUM_ARGS_RE = re.compile(r"^\(\s*'(?:[^'\\]|'')*'(\s*,\s*'(?:[^'\\]|'')*')*\s*\)$")
_NUMBER_RE = re.compile(r"^-?\d+(\.\d+)?$")


def quote_identifier(name: str) -> str:
    """Backtick-quote a MySQL identifier."""
    return "`" + name.replace("`", "``") + "`"


def quote_literal(value: str) -> str:
    """Single-quote a MySQL string literal."""
    return "'" + value.replace("\\", "\\\\").replace("'", "''") + "'"


def sql_type(type_str: str, string_length: int = DEFAULT_STRING_LENGTH) -> str:
    """Map a field type to MySQL column type syntax.

    Unknown or empty types fall back to VARCHAR so the statement stays valid.
    Arguments are kept only when they are a numeric length/precision, or a
    list of quoted values for ENUM; anything else is dropped.
    """
    match = _TYPE_RE.match(type_str or "")
    if match is None:
        return f"VARCHAR({string_length})"

    base = match.group(1).upper()
    args = _valid_args(base, match.group(2))

    if base not in PLAIN_TYPES:
        return f"VARCHAR({string_length})"
    if args:
        return f"{base}{args}"
    if base in LENGTH_TYPES:
        return f"{base}({string_length})"
    if base == "ENUM":
        # ENUM without a value list is not valid MySQL
        return f"VARCHAR({string_length})"
    return base + TYPE_DEFAULT_ARGS.get(base, "")


def _default_clause(value: str) -> str:
    if value.upper() in DEFAULT_KEYWORDS or _NUMBER_RE.match(value):
        return f"DEFAULT {value}"
    return f"DEFAULT {quote_literal(value)}"


def _valid_args(base: str, args: str | None) -> str | None:
    if not args:
        return None
    pattern = _ENUM_ARGS_RE if base == "ENUM" else _NUMERIC_ARGS_RE
    return args if pattern.match(args) else None


def unique_name(name: str, used: set[str]) -> str:
    """Return ``name`` or the first free ``name_2``, ``name_3``, ... and reserve it.

    MySQL compares these identifiers case-insensitively, so ``used`` holds
    lower-cased names.
    """
    candidate = name
    n = 2
    while candidate.lower() in used:
        candidate = f"{name}_{n}"
        n += 1
    used.add(candidate.lower())
    return candidate


def _column_definition(f: Field, column: str, auto_increment: bool, string_length: int) -> str:
    parts = [quote_identifier(column), sql_type(f.type, string_length)]

    if f.is_primary_key or not f.is_nullable:
        parts.append("NOT NULL")
    if auto_increment:
        parts.append("AUTO_INCREMENT")
    if f.is_unique and not f.is_primary_key:
        parts.append("UNIQUE")
    if f.default_value is not None and f.default_value != "" and not auto_increment:
        parts.append(_default_clause(f.default_value))

    return " ".join(parts)


def table_names(entities: Iterable[Entity]) -> dict[str, str]:
    """Resolve a distinct table name for every relational entity, by entity id."""
    names = {}
    used: set[str] = set()
    for index, entity in enumerate(entities, start=1):
        names[entity.id] = unique_name(entity.name.strip() or f"table_{index}", used)
    return names


def column_names(entity: Entity) -> list[tuple[Field, str]]:
    """Pair every named field with a distinct column name, in field order.

    The first field with a given name keeps it; later ones get a suffix.
    """
    used: set[str] = set()
    return [(f, unique_name(f.name, used)) for f in entity.fields if f.name.strip()]


def _create_table(entity: Entity, name: str, string_length: int) -> list[str]:
    columns = column_names(entity)
    if not columns:
        return [f"-- Table {quote_identifier(name)} has no columns"]

    auto_inc = next(
        (
            i
            for i, (f, _) in enumerate(columns)
            if f.is_primary_key and _base_type(f.type) in INTEGER_TYPES
        ),
        None,
    )

    lines = [f"CREATE TABLE IF NOT EXISTS {quote_identifier(name)} ("]
    body = [
        _column_definition(f, column, i == auto_inc, string_length)
        for i, (f, column) in enumerate(columns)
    ]

    pk_columns = [quote_identifier(column) for f, column in columns if f.is_primary_key]
    if pk_columns:
        body.append(f"PRIMARY KEY ({', '.join(pk_columns)})")

    lines.append(",\n".join(f"  {b}" for b in body))
    lines.append(");")
    return lines


def _base_type(type_str: str) -> str:
    match = _TYPE_RE.match(type_str or "")
    return match.group(1).upper() if match else ""


def _column_for(columns: list[tuple[Field, str]], field_name: str) -> str | None:
    for f, column in columns:
        if f.name == field_name:
            return column
    return None


def _foreign_keys(
    relationships: Iterable[Relationship],
    by_id: dict[str, Entity],
    names: dict[str, str],
) -> list[list[str]]:
    statements = []
    used_names: set[str] = set()
    columns = {entity_id: column_names(entity) for entity_id, entity in by_id.items()}

    for rel in relationships:
        if rel.source not in by_id or rel.target not in by_id:
            continue

        for mapping in rel.field_mappings:
            source_column = _column_for(columns[rel.source], mapping.source_field)
            target_column = _column_for(columns[rel.target], mapping.target_field)
            if source_column is None or target_column is None:
                continue

            source_name = names[rel.source]
            target_name = names[rel.target]
            constraint = unique_name(f"fk_{source_name}_{source_column}", used_names)

            statements.append([
                f"ALTER TABLE {quote_identifier(source_name)}",
                f"  ADD CONSTRAINT {quote_identifier(constraint)}",
                f"  FOREIGN KEY ({quote_identifier(source_column)}) "
                f"REFERENCES {quote_identifier(target_name)} ({quote_identifier(target_column)});",
            ])

    return statements


def generate_relational_ddl(
    entities: Iterable[Entity],
    relationships: Iterable[Relationship],
    string_length: int = DEFAULT_STRING_LENGTH,
) -> str:
    """Generate MySQL DDL for the relational part of a diagram.

    Args:
        entities: Diagram entities; document entities are ignored
        relationships: Diagram relationships; those touching non-relational
            or missing entities are ignored
        string_length: Length given to VARCHAR/CHAR columns without one

    Returns:
        DDL script text
    """
    # First entity wins when a loaded diagram repeats an id
    by_id: dict[str, Entity] = {}
    for entity in entities:
        if entity.kind == EntityKind.RELATIONAL and entity.id not in by_id:
            by_id[entity.id] = entity
    tables = list(by_id.values())
    names = table_names(tables)

    lines = [
        "-- MySQL schema",
        "-- Generated from diagram. Do not edit directly - change the diagram instead.",
        "",
    ]

    for entity in tables:
        lines.extend(_create_table(entity, names[entity.id], string_length))
        lines.append("")

    foreign_keys = _foreign_keys(relationships, by_id, names)
    if foreign_keys:
        lines.append("-- Relationships")
        lines.append("")
        for statement in foreign_keys:
            lines.extend(statement)
            lines.append("")

    return "\n".join(lines).rstrip() + "\n"
