"""
Unit tests for Mongoose schema generation.

Tests cover:
- Model naming
- Property blocks and type mapping
- Implicit _id handling
- Degradation on incomplete diagrams
"""

import pytest

from schemacanvas.codegen import generate_code, generate_document_schemas, model_name, mongoose_type
from schemacanvas.codegen.document import singularize
from schemacanvas.model import (
    DatabaseKind,
    Diagram,
    DiagramMetadata,
    Entity,
    EntityKind,
    Field,
)


def collection(entity_id, name, *fields):
    return Entity(id=entity_id, kind=EntityKind.DOCUMENT, name=name, fields=tuple(fields))


@pytest.fixture
def users():
    return collection(
        "c1",
        "users",
        Field(id="f1", name="_id", type="ObjectId", is_primary_key=True, is_nullable=False),
        Field(id="f2", name="username", type="String", is_nullable=False, is_unique=True),
        Field(id="f3", name="age", type="Number"),
    )


class TestNaming:
    """Tests for model naming helpers."""

    @pytest.mark.parametrize(
        "word, expected",
        [
            ("users", "user"),
            ("categories", "category"),
            ("boxes", "box"),
            ("status", "status"),
            ("address", "address"),
            ("data", "data"),
        ],
    )
    def test_singularize(self, word, expected):
        assert singularize(word) == expected

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("users", "User"),
            ("order_items", "OrderItem"),
            ("blog posts", "BlogPost"),
            ("2fa_codes", "Model2faCode"),
            ("???", ""),
        ],
    )
    def test_model_name(self, name, expected):
        assert model_name(name) == expected

    def test_type_mapping(self):
        assert mongoose_type("ObjectId") == "Schema.Types.ObjectId"
        assert mongoose_type("String") == "String"
        assert mongoose_type("Geo") == "Schema.Types.Mixed"
        assert mongoose_type("") == "Schema.Types.Mixed"


class TestGenerateDocumentSchemas:
    """Tests for generate_document_schemas."""

    def test_users_collection(self, users):
        code = generate_document_schemas([users])

        assert "const UserSchema = new Schema({" in code
        assert "mongoose.model('User', UserSchema)" in code
        assert "_id" not in code
        assert "  username: {\n    type: String,\n    required: true,\n    unique: true,\n  }," in code
        assert "  age: {\n    type: Number,\n  }," in code
        assert "}, { timestamps: true });" in code
        assert code.rstrip().endswith("module.exports = { User };")

    def test_key_flags_are_ignored(self):
        entity = collection(
            "c1",
            "posts",
            Field(id="f1", name="author", type="ObjectId", is_primary_key=True, is_foreign_key=True),
        )

        code = generate_document_schemas([entity])

        assert "  author: {\n    type: Schema.Types.ObjectId,\n  }," in code

    def test_defaults(self):
        entity = collection(
            "c1",
            "jobs",
            Field(id="f1", name="attempts", type="Number", default_value="0"),
            Field(id="f2", name="active", type="Boolean", default_value="TRUE"),
            Field(id="f3", name="queued", type="Date", default_value="now"),
            Field(id="f4", name="state", type="String", default_value="new"),
        )

        code = generate_document_schemas([entity])

        assert "default: 0," in code
        assert "default: true," in code
        assert "default: Date.now," in code
        assert "default: 'new'," in code

    def test_non_identifier_keys_are_quoted(self):
        entity = collection("c1", "events", Field(id="f1", name="created-at", type="Date"))

        assert "  'created-at': {" in generate_document_schemas([entity])

    def test_empty_collection(self):
        code = generate_document_schemas([collection("c1", "logs")])

        assert "const LogSchema = new Schema({}, { timestamps: true });" in code

    def test_only_id_field_is_empty_schema(self):
        code = generate_document_schemas(
            [collection("c1", "tokens", Field(id="f1", name="_id", type="ObjectId"))]
        )

        assert "const TokenSchema = new Schema({}, { timestamps: true });" in code

    def test_unnamed_collection_and_fields(self):
        code = generate_document_schemas(
            [collection("c1", "", Field(id="f1", name=" ", type="String"))]
        )

        assert "const Collection1Schema = new Schema({}, { timestamps: true });" in code

    def test_name_collisions_get_suffix(self):
        code = generate_document_schemas([collection("c1", "users"), collection("c2", "user")])

        assert "mongoose.model('User', UserSchema)" in code
        assert "mongoose.model('User2', User2Schema)" in code
        assert "module.exports = { User, User2 };" in code

    def test_relational_entities_ignored(self, users):
        table = Entity(id="t1", name="accounts", fields=(Field(id="f1", name="id"),))

        code = generate_document_schemas([users, table])

        assert "Account" not in code

    def test_empty_diagram(self):
        code = generate_document_schemas([])

        assert "const mongoose = require('mongoose');" in code
        assert "module.exports = {};" in code


class TestGenerateCode:
    """Tests for target selection."""

    def test_mongodb_uses_mongoose(self, users):
        diagram = Diagram(
            entities=(users,),
            metadata=DiagramMetadata(database_kind=DatabaseKind.MONGODB),
        )

        assert "mongoose.model" in generate_code(diagram)

    def test_mysql_uses_ddl(self):
        diagram = Diagram(entities=(Entity(id="t1", name="users", fields=(Field(id="f1", name="id"),)),))

        assert generate_code(diagram).startswith("-- MySQL schema")


class TestModelNameCollisions:
    """Tests for unique model constants."""

    def test_suffix_does_not_collide_with_real_name(self):
        code = generate_document_schemas(
            [collection("c1", "users"), collection("c2", "user"), collection("c3", "user2s")]
        )

        assert code.count("const User2Schema") == 1
        assert code.count("const User2 ") == 1
        assert "const User22 = mongoose.model('User22', User22Schema);" in code
        assert code.rstrip().endswith("module.exports = { User, User2, User22 };")

    def test_schema_constant_does_not_collide_with_model(self):
        code = generate_document_schemas([collection("c1", "users"), collection("c2", "user_schemas")])

        assert code.count("const UserSchema ") == 1
        assert "const UserSchema2 = mongoose.model('UserSchema2', UserSchema2Schema);" in code

    @pytest.mark.parametrize("name, expected", [("schemas", "Schema2"), ("dates", "Date2")])
    def test_names_used_by_generated_code_are_avoided(self, name, expected):
        entity = collection("c1", name, Field(id="f1", name="at", type="Date"))

        code = generate_document_schemas([entity])

        assert f"const {expected} = mongoose.model('{expected}', {expected}Schema);" in code
        assert "const { Schema } = mongoose;" in code
        assert "    type: Date," in code
