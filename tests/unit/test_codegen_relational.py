"""
Unit tests for MySQL DDL generation.

Tests cover:
- Column type mapping
- CREATE TABLE layout and column modifiers
- Foreign key constraints from relationship mappings
- Degradation on incomplete diagrams
"""

import pytest

from schemacanvas.codegen import generate_relational_ddl, sql_type
from schemacanvas.model import Entity, EntityKind, Field, FieldMapping, Relationship


@pytest.fixture
def users():
    return Entity(
        id="1",
        name="users",
        fields=(
            Field(id="f1", name="id", type="INT", is_primary_key=True, is_nullable=False),
            Field(id="f2", name="username", type="VARCHAR", is_nullable=False, is_unique=True),
            Field(id="f3", name="bio", type="TEXT"),
        ),
    )


@pytest.fixture
def posts():
    return Entity(
        id="2",
        name="posts",
        fields=(
            Field(id="f1", name="id", type="INT", is_primary_key=True),
            Field(id="f2", name="user_id", type="INT", is_foreign_key=True),
        ),
    )


@pytest.fixture
def users_posts():
    return Relationship(
        id="e1",
        source="2",
        target="1",
        field_mappings=(FieldMapping("user_id", "id"),),
    )


class TestSqlType:
    """Tests for sql_type."""

    @pytest.mark.parametrize(
        "type_str, expected",
        [
            ("INT", "INT"),
            ("VARCHAR", "VARCHAR(255)"),
            ("varchar(64)", "VARCHAR(64)"),
            ("CHAR", "CHAR(255)"),
            ("DECIMAL", "DECIMAL(10,2)"),
            ("ENUM('a','b')", "ENUM('a','b')"),
            ("ENUM", "VARCHAR(255)"),
            ("GEOMETRY", "VARCHAR(255)"),
            ("", "VARCHAR(255)"),
        ],
    )
    def test_mapping(self, type_str, expected):
        assert sql_type(type_str) == expected

    def test_custom_string_length(self):
        assert sql_type("VARCHAR", string_length=100) == "VARCHAR(100)"


class TestGenerateRelationalDdl:
    """Tests for generate_relational_ddl."""

    def test_users_posts_foreign_key(self, users, posts, users_posts):
        ddl = generate_relational_ddl([users, posts], [users_posts])

        assert "CREATE TABLE IF NOT EXISTS `users`" in ddl
        assert "CREATE TABLE IF NOT EXISTS `posts`" in ddl
        assert "FOREIGN KEY (`user_id`) REFERENCES `users` (`id`)" in ddl
        assert ddl.index("CREATE TABLE IF NOT EXISTS `posts`") < ddl.index("ALTER TABLE `posts`")

    def test_column_modifiers(self, users):
        ddl = generate_relational_ddl([users], [])

        assert "  `id` INT NOT NULL AUTO_INCREMENT" in ddl
        assert "  `username` VARCHAR(255) NOT NULL UNIQUE" in ddl
        assert "  `bio` TEXT,\n" in ddl
        assert "  PRIMARY KEY (`id`)\n);" in ddl

    def test_full_table_layout(self, posts):
        ddl = generate_relational_ddl([posts], [])

        assert ddl == (
            "-- MySQL schema\n"
            "-- Generated from diagram. Do not edit directly - change the diagram instead.\n"
            "\n"
            "CREATE TABLE IF NOT EXISTS `posts` (\n"
            "  `id` INT NOT NULL AUTO_INCREMENT,\n"
            "  `user_id` INT,\n"
            "  PRIMARY KEY (`id`)\n"
            ");\n"
        )

    def test_composite_primary_key_auto_increments_first_only(self):
        entity = Entity(
            id="t1",
            name="memberships",
            fields=(
                Field(id="f1", name="user_id", type="INT", is_primary_key=True),
                Field(id="f2", name="group_id", type="INT", is_primary_key=True),
            ),
        )

        ddl = generate_relational_ddl([entity], [])

        assert ddl.count("AUTO_INCREMENT") == 1
        assert "PRIMARY KEY (`user_id`, `group_id`)" in ddl

    def test_string_primary_key_not_auto_increment(self):
        entity = Entity(
            id="t1",
            name="countries",
            fields=(Field(id="f1", name="code", type="CHAR(2)", is_primary_key=True),),
        )

        ddl = generate_relational_ddl([entity], [])

        assert "`code` CHAR(2) NOT NULL" in ddl
        assert "AUTO_INCREMENT" not in ddl

    def test_defaults(self):
        entity = Entity(
            id="t1",
            name="settings",
            fields=(
                Field(id="f1", name="retries", type="INT", default_value="3"),
                Field(id="f2", name="mode", type="VARCHAR", default_value="it's"),
                Field(id="f3", name="created_at", type="TIMESTAMP", default_value="CURRENT_TIMESTAMP"),
            ),
        )

        ddl = generate_relational_ddl([entity], [])

        assert "`retries` INT DEFAULT 3" in ddl
        assert "`mode` VARCHAR(255) DEFAULT 'it''s'" in ddl
        assert "`created_at` TIMESTAMP DEFAULT CURRENT_TIMESTAMP" in ddl

    def test_unresolvable_mapping_skipped(self, users, posts):
        rel = Relationship(
            id="e1",
            source="2",
            target="1",
            field_mappings=(FieldMapping("author_id", "id"),),
        )

        ddl = generate_relational_ddl([users, posts], [rel])

        assert "ALTER TABLE" not in ddl
        assert "-- Relationships" not in ddl

    def test_dangling_relationship_skipped(self, users):
        rel = Relationship(
            id="e1",
            source="ghost",
            target="1",
            field_mappings=(FieldMapping("user_id", "id"),),
        )

        assert "ALTER TABLE" not in generate_relational_ddl([users], [rel])

    def test_self_reference(self):
        entity = Entity(
            id="t1",
            name="categories",
            fields=(
                Field(id="f1", name="id", type="INT", is_primary_key=True),
                Field(id="f2", name="parent_id", type="INT"),
            ),
        )
        rel = Relationship(
            id="e1",
            source="t1",
            target="t1",
            field_mappings=(FieldMapping("parent_id", "id"),),
        )

        ddl = generate_relational_ddl([entity], [rel])

        assert "FOREIGN KEY (`parent_id`) REFERENCES `categories` (`id`)" in ddl

    def test_duplicate_constraint_names_get_suffix(self, users, posts, users_posts):
        again = Relationship(
            id="e2",
            source="2",
            target="1",
            field_mappings=(FieldMapping("user_id", "id"),),
        )

        ddl = generate_relational_ddl([users, posts], [users_posts, again])

        assert "`fk_posts_user_id`" in ddl
        assert "`fk_posts_user_id_2`" in ddl

    def test_unnamed_table_and_columns_degrade(self):
        entity = Entity(
            id="t1",
            name="",
            fields=(Field(id="f1", name="", type="INT"), Field(id="f2", name="title")),
        )

        ddl = generate_relational_ddl([entity], [])

        assert "CREATE TABLE IF NOT EXISTS `table_1`" in ddl
        assert "`title` VARCHAR(255)" in ddl
        assert "``" not in ddl

    def test_table_without_columns_is_comment(self):
        ddl = generate_relational_ddl([Entity(id="t1", name="empty")], [])

        assert "-- Table `empty` has no columns" in ddl
        assert "CREATE TABLE" not in ddl

    def test_empty_diagram(self):
        ddl = generate_relational_ddl([], [])

        assert ddl.startswith("-- MySQL schema")
        assert "CREATE TABLE" not in ddl

    def test_document_entities_ignored(self, users):
        collection = Entity(id="c1", kind=EntityKind.DOCUMENT, name="events")

        ddl = generate_relational_ddl([users, collection], [])

        assert "events" not in ddl


class TestUntrustedTypes:
    """Tests for type strings that are not valid column types."""

    @pytest.mark.parametrize(
        "type_str, expected",
        [
            ("INT(1); DROP TABLE users; -- )", "INT"),
            ("INT; DROP TABLE users", "VARCHAR(255)"),
            ("VARCHAR(abc)", "VARCHAR(255)"),
            ("ENUM('a'); DROP TABLE users; -- ')", "VARCHAR(255)"),
            ("DECIMAL(12, 4)", "DECIMAL(12, 4)"),
            ("ENUM('it''s', 'b')", "ENUM('it''s', 'b')"),
        ],
    )
    def test_arguments_are_checked(self, type_str, expected):
        assert sql_type(type_str) == expected

    def test_injected_type_does_not_reach_ddl(self):
        entity = Entity(
            id="t1",
            name="users",
            fields=(Field(id="f1", name="id", type="INT(1); DROP TABLE users; -- )"),),
        )

        ddl = generate_relational_ddl([entity], [])

        assert "DROP TABLE" not in ddl
        assert "  `id` INT\n" in ddl


class TestNameCollisions:
    """Tests for repeated table, column and constraint names."""

    def test_constraint_suffix_does_not_collide_with_real_name(self):
        a = Entity(
            id="a",
            name="a",
            fields=(Field(id="f1", name="b", type="INT"), Field(id="f2", name="b_2", type="INT")),
        )
        u = Entity(id="u", name="u", fields=(Field(id="f1", name="id", type="INT"),))
        v = Entity(id="v", name="v", fields=(Field(id="f1", name="id", type="INT"),))
        rels = [
            Relationship(id="r1", source="a", target="u", field_mappings=(FieldMapping("b", "id"),)),
            Relationship(id="r2", source="a", target="v", field_mappings=(FieldMapping("b", "id"),)),
            Relationship(id="r3", source="a", target="u", field_mappings=(FieldMapping("b_2", "id"),)),
        ]

        ddl = generate_relational_ddl([a, u, v], rels)

        assert ddl.count("ADD CONSTRAINT") == 3
        assert ddl.count("`fk_a_b`") == 1
        assert ddl.count("`fk_a_b_2`") == 1
        assert ddl.count("`fk_a_b_2_2`") == 1

    def test_repeated_column_names_are_renamed(self):
        entity = Entity(
            id="t1",
            name="users",
            fields=(
                Field(id="f1", name="id", type="INT", is_primary_key=True),
                Field(id="f2", name="id", type="INT"),
                Field(id="f3", name="email"),
                Field(id="f4", name="Email"),
            ),
        )

        ddl = generate_relational_ddl([entity], [])

        assert ddl.count("`id` INT") == 1
        assert "  `id_2` INT," in ddl
        assert "  `Email_2` VARCHAR(255)," in ddl
        assert "PRIMARY KEY (`id`)" in ddl
        assert ddl.count("AUTO_INCREMENT") == 1

    def test_repeated_table_names_are_renamed(self, posts):
        first = Entity(id="t1", name="users", fields=(Field(id="f1", name="id", type="INT"),))
        second = Entity(id="t2", name="users", fields=(Field(id="f1", name="id", type="INT"),))
        rel = Relationship(
            id="e1",
            source="2",
            target="t2",
            field_mappings=(FieldMapping("user_id", "id"),),
        )

        ddl = generate_relational_ddl([first, second, posts], [rel])

        assert ddl.count("CREATE TABLE IF NOT EXISTS `users` (") == 1
        assert ddl.count("CREATE TABLE IF NOT EXISTS `users_2` (") == 1
        assert "REFERENCES `users_2` (`id`)" in ddl

    def test_positional_name_does_not_collide(self):
        unnamed = Entity(id="t1", name="", fields=(Field(id="f1", name="id"),))
        named = Entity(id="t2", name="table_1", fields=(Field(id="f1", name="id"),))

        ddl = generate_relational_ddl([unnamed, named], [])

        assert "CREATE TABLE IF NOT EXISTS `table_1` (" in ddl
        assert "CREATE TABLE IF NOT EXISTS `table_1_2` (" in ddl
