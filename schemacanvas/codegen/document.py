"""
Mongoose schema generation from a diagram.

Produces one ``new Schema({...})`` block and one ``mongoose.model(...)``
registration per document entity. The ``_id`` field is implicit in Mongoose
and is never emitted. Primary/foreign key flags have no meaning for
documents and are ignored.

Invariants:
    - Every ``const`` in the output is declared once; repeated model names
      get ``2``, ``3``, ...
"""

from __future__ import annotations

import re
from typing import Iterable

from ..model.types import Entity, EntityKind, Field

IDENTITY_FIELD = "_id"

MONGOOSE_TYPES = {
    "ObjectId": "Schema.Types.ObjectId",
    "String": "String",
    "Number": "Number",
    "Boolean": "Boolean",
    "Date": "Date",
    "Array": "Array",
    "Object": "Object",
    "Decimal128": "Schema.Types.Decimal128",
    "Map": "Map",
    "Buffer": "Buffer",
    "UUID": "Schema.Types.UUID",
}

UNTYPED = "Schema.Types.Mixed"

# Module-level identifiers the generated code already uses; a model constant
# with one of these names would redeclare or shadow it
RESERVED_NAMES = frozenset(
    {"mongoose", "Schema"} | {t for t in MONGOOSE_TYPES.values() if "." not in t}
)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_WORD_RE = re.compile(r"[A-Za-z0-9]+")


def mongoose_type(type_str: str) -> str:
    """Map a document field type to its Mongoose declaration."""
    return MONGOOSE_TYPES.get((type_str or "").strip(), UNTYPED)


def js_string(value: str) -> str:
    """Single-quoted JavaScript string literal."""
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'").replace("\n", "\\n") + "'"


def _property_key(name: str) -> str:
    return name if _IDENTIFIER_RE.match(name) else js_string(name)


def singularize(word: str) -> str:
    """Naive English singular of a collection name."""
    lower = word.lower()
    if lower.endswith("ies") and len(word) > 3:
        return word[:-3] + ("Y" if word[-3].isupper() else "y")
    if re.search(r"(s|x|z|ch|sh)es$", lower):
        return word[:-2]
    if lower.endswith("s") and not lower.endswith(("ss", "us", "is")):
        return word[:-1]
    return word


def model_name(collection: str) -> str:
    """Singularized PascalCase model name for a collection name.

    Returns an empty string when the name has no usable characters.

    Example:
        >>> model_name("order_items")
        'OrderItem'
    """
    words = _WORD_RE.findall(collection)
    if not words:
        return ""
    words[-1] = singularize(words[-1])
    name = "".join(w[:1].upper() + w[1:] for w in words if w)
    if name[:1].isdigit():
        name = "Model" + name
    return name


def _unique_model_name(name: str, used: set[str]) -> str:
    """Pick a model name whose model and schema constants are both unused."""
    candidate = name
    n = 2
    while candidate in used or f"{candidate}Schema" in used:
        candidate = f"{name}{n}"
        n += 1
    used.update((candidate, f"{candidate}Schema"))
    return candidate


def _default_literal(f: Field) -> str:
    value = f.default_value or ""
    if f.type == "Number" and re.match(r"^-?\d+(\.\d+)?$", value):
        return value
    if f.type == "Boolean" and value.lower() in ("true", "false"):
        return value.lower()
    if f.type == "Date" and value.lower() in ("now", "date.now"):
        return "Date.now"
    return js_string(value)


def _property_definition(f: Field) -> list[str]:
    lines = [f"  {_property_key(f.name)}: {{", f"    type: {mongoose_type(f.type)},"]
    if not f.is_nullable:
        lines.append("    required: true,")
    if f.is_unique:
        lines.append("    unique: true,")
    if f.default_value is not None and f.default_value != "":
        lines.append(f"    default: {_default_literal(f)},")
    lines.append("  },")
    return lines


def generate_document_schemas(entities: Iterable[Entity]) -> str:
    """Generate Mongoose schema code for the document part of a diagram.

    Args:
        entities: Diagram entities; relational entities are ignored

    Returns:
        JavaScript module text
    """
    collections = [e for e in entities if e.kind == EntityKind.DOCUMENT]

    lines = [
        "// Mongoose schemas",
        "// Generated from diagram. Do not edit directly - change the diagram instead.",
        "",
        "const mongoose = require('mongoose');",
        "const { Schema } = mongoose;",
        "",
    ]

    exported = []
    used = set(RESERVED_NAMES)

    for index, entity in enumerate(collections, start=1):
        name = _unique_model_name(model_name(entity.name) or f"Collection{index}", used)

        properties = [
            f for f in entity.fields if f.name.strip() and f.name.strip() != IDENTITY_FIELD
        ]

        if properties:
            lines.append(f"const {name}Schema = new Schema({{")
            for f in properties:
                lines.extend(_property_definition(f))
            lines.append("}, { timestamps: true });")
        else:
            lines.append(f"const {name}Schema = new Schema({{}}, {{ timestamps: true }});")
        lines.append("")

        lines.append(f"const {name} = mongoose.model({js_string(name)}, {name}Schema);")
        lines.append("")
        exported.append(name)

    lines.append(f"module.exports = {{ {', '.join(exported)} }};" if exported else "module.exports = {};")
    return "\n".join(lines) + "\n"
