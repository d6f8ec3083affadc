"""Tests for SQL schema lowering and DDL rendering."""

import pytest
from mathgraph.ir.builder import SchemaBuilder
from mathgraph.sql.ddl import render_literal, sanitize_name
from mathgraph.sql.generator import SqlGenerator, export_to_sql


def _owns(unique_car: bool = True):
    builder = SchemaBuilder(name="Fleet")
    person = builder.add_entity("Person")
    car = builder.add_entity("Car")
    owns = builder.add_binary_fact_type("owns", person.id, car.id, "owner", "car")
    if unique_car:
        builder.add_unique([owns.predicators[1]])
    return builder.build()


def _has_name():
    builder = SchemaBuilder(name="People")
    person = builder.add_entity("Person")
    name = builder.add_label_type("Name", "String")
    has_name = builder.add_binary_fact_type("has name", person.id, name.id, "person", "name")
    builder.add_unique([has_name.predicators[0]])
    return builder.build()


def test_functional_binary_becomes_column():
    """Test that a binary fact type with a unique role is hosted as a column."""
    ddl = export_to_sql(_owns(), "PostgreSQL")
    assert ddl == (
        "CREATE TABLE person (\n"
        "  id SERIAL NOT NULL,\n"
        "  car INTEGER,\n"
        "  PRIMARY KEY (id),\n"
        "  CONSTRAINT fk_person_car FOREIGN KEY (car) REFERENCES car(id) "
        "ON DELETE RESTRICT ON UPDATE CASCADE\n"
        ");\n"
        "\n"
        "CREATE TABLE car (\n"
        "  id SERIAL NOT NULL,\n"
        "  PRIMARY KEY (id)\n"
        ");\n"
        "\n"
        "CREATE INDEX idx_person_car ON person (car);"
    )


def test_many_to_many_binary_becomes_junction():
    """Test that a binary fact type without a unique role gets a junction table."""
    sql_schema = SqlGenerator().generate_schema(_owns(unique_car=False))

    assert [t.name for t in sql_schema.tables] == ["person", "car", "owns"]
    owns = sql_schema.table("owns")
    assert owns.kind == "junction"
    assert owns.primary_key == ["owner", "car"]
    assert all(not c.nullable for c in owns.columns)
    assert [(fk.name, fk.ref_table, fk.on_delete) for fk in owns.foreign_keys] == [
        ("fk_owns_owner", "person", "CASCADE"),
        ("fk_owns_car", "car", "CASCADE"),
    ]
    assert [c.name for c in sql_schema.table("person").columns] == ["id"]
    assert [i.name for i in sql_schema.indexes] == ["idx_owns_owner", "idx_owns_car"]


@pytest.mark.parametrize(
    "dialect,type_name",
    [
        ("PostgreSQL", "VARCHAR(255)"),
        ("MySQL", "VARCHAR(255)"),
        ("SQLite", "TEXT"),
        ("SQL Server", "NVARCHAR(255)"),
    ],
)
def test_natural_key_per_dialect(dialect, type_name):
    """Test that a label identifier becomes the primary key with the dialect's type."""
    ddl = export_to_sql(_has_name(), dialect)
    assert ddl == f"CREATE TABLE person (\n  name {type_name} NOT NULL,\n  PRIMARY KEY (name)\n);"


@pytest.mark.parametrize(
    "dialect,surrogate",
    [
        ("PostgreSQL", "id SERIAL NOT NULL"),
        ("MySQL", "id INT AUTO_INCREMENT NOT NULL"),
        ("SQLite", "id INTEGER NOT NULL"),
        ("SQL Server", "id INT IDENTITY(1,1) NOT NULL"),
    ],
)
def test_surrogate_key_per_dialect(dialect, surrogate):
    """Test auto-increment syntax of surrogate keys."""
    builder = SchemaBuilder()
    builder.add_entity("Person")
    assert surrogate in export_to_sql(builder.build(), dialect)


def test_enumeration_check():
    """Test that an enumeration constraint yields an IN check on the label column."""
    builder = SchemaBuilder()
    person = builder.add_entity("Person")
    status = builder.add_label_type("Status")
    builder.add_enumeration(status.id, ["active", "inactive"])
    has_status = builder.add_binary_fact_type("has status", person.id, status.id, "person", "status")
    builder.add_unique([has_status.predicators[1]])

    table = SqlGenerator().generate_schema(builder.build()).table("person")

    assert [c.name for c in table.columns] == ["id", "status"]
    assert table.unique_constraints == []
    check = table.check_constraints[0]
    assert check.name == "chk_person_status_enum"
    assert check.expression == "status IN ('active', 'inactive')"


def test_one_check_per_enumeration():
    """Test that every enumeration constraint on a label gets its own CHECK."""
    builder = SchemaBuilder()
    person = builder.add_entity("Person")
    status = builder.add_label_type("Status")
    builder.add_enumeration(status.id, ["active", "inactive", "banned"])
    builder.add_enumeration(status.id, ["active", "inactive"])
    has_status = builder.add_binary_fact_type("has status", person.id, status.id, "person", "status")
    builder.add_unique([has_status.predicators[1]])

    table = SqlGenerator().generate_schema(builder.build()).table("person")

    assert [(c.name, c.expression) for c in table.check_constraints] == [
        ("chk_person_status_enum", "status IN ('active', 'inactive', 'banned')"),
        ("chk_person_status_enum_2", "status IN ('active', 'inactive')"),
    ]


@pytest.mark.parametrize(
    "dialect,literal",
    [("PostgreSQL", "TRUE"), ("MySQL", "TRUE"), ("SQLite", "1"), ("SQL Server", "1")],
)
def test_boolean_enumeration_per_dialect(dialect, literal):
    """Test boolean CHECK literals on dialects with and without a BOOLEAN type."""
    builder = SchemaBuilder()
    person = builder.add_entity("Person")
    flag = builder.add_label_type("Flag", "Boolean", enumeration=[True])
    has_flag = builder.add_binary_fact_type("has flag", person.id, flag.id, "person", "flag")
    builder.add_unique([has_flag.predicators[1]])

    table = SqlGenerator(dialect).generate_schema(builder.build()).table("person")

    assert table.check_constraints[0].expression == f"flag IN ({literal})"


def test_range_check():
    """Test min and max bounds of a label type."""
    builder = SchemaBuilder()
    person = builder.add_entity("Person")
    age = builder.add_label_type("Age", "Integer", min_value=0, max_value=150)
    has_age = builder.add_binary_fact_type("has age", person.id, age.id, "person", "age")
    builder.add_unique([has_age.predicators[1]])

    table = SqlGenerator().generate_schema(builder.build()).table("person")

    assert table.column("age").data_type == "INTEGER"
    assert [(c.name, c.expression) for c in table.check_constraints] == [
        ("chk_person_age_range", "age >= 0 AND age <= 150")
    ]


def test_unary_fact_type_becomes_boolean_column():
    """Test unary fact type lowering."""
    builder = SchemaBuilder()
    person = builder.add_entity("Person")
    builder.add_unary_fact_type(person.id, "smokes")

    sql_schema = SqlGenerator().generate_schema(builder.build())

    assert [t.name for t in sql_schema.tables] == ["person"]
    assert sql_schema.table("person").column("smokes").data_type == "BOOLEAN"


def test_ternary_fact_type_junction():
    """Test that a fact type with arity three gets a composite-key junction table."""
    builder = SchemaBuilder()
    ids = [builder.add_entity(name).id for name in ("Student", "Course", "Term")]
    builder.add_fact_type(ids, name="enrolled in", role_names=["student", "course", "term"])

    table = SqlGenerator().generate_schema(builder.build()).table("enrolled_in")

    assert table.kind == "junction"
    assert table.primary_key == ["student", "course", "term"]
    assert len(table.foreign_keys) == 3


def test_objectified_fact_type_gets_own_table():
    """Test that an objectified fact type has its own table beside its entity's table."""
    builder = SchemaBuilder()
    student = builder.add_entity("Student")
    course = builder.add_entity("Course")
    enrolls = builder.add_binary_fact_type("enrolls", student.id, course.id, "student", "course")
    builder.objectify(enrolls.id, "Enrollment")

    sql_schema = SqlGenerator().generate_schema(builder.build())

    assert [t.name for t in sql_schema.tables] == ["student", "course", "enrollment", "enrolls"]
    enrollment = sql_schema.table("enrollment")
    assert enrollment.kind == "entity"
    assert [c.name for c in enrollment.columns] == ["id"]
    table = sql_schema.table("enrolls")
    assert table.kind == "objectified"
    assert table.primary_key == ["id"]
    assert [c.name for c in table.columns] == ["id", "student", "course"]
    assert [(fk.ref_table, fk.on_delete) for fk in table.foreign_keys] == [
        ("student", "RESTRICT"),
        ("course", "RESTRICT"),
    ]
    assert [c.name for c in sql_schema.table("student").columns] == ["id"]


def test_objectified_fact_type_without_entity():
    """Test the standalone table of an objectified fact type with no entity."""
    builder = SchemaBuilder()
    student = builder.add_entity("Student")
    course = builder.add_entity("Course")
    enrolls = builder.add_binary_fact_type("enrolls", student.id, course.id, "student", "course")
    enrolls.is_objectified = True

    table = SqlGenerator().generate_schema(builder.build()).table("enrolls")

    assert table.kind == "objectified"
    assert table.primary_key == ["id"]
    assert [c.name for c in table.columns] == ["id", "student", "course"]
    assert {fk.on_delete for fk in table.foreign_keys} == {"RESTRICT"}


def test_specialization_foreign_key():
    """Test the subtype to supertype foreign key."""
    builder = SchemaBuilder()
    person = builder.add_entity("Person")
    employee = builder.add_entity("Employee")
    builder.specialize(employee.id, person.id)

    ddl = export_to_sql(builder.build())

    assert (
        "CONSTRAINT fk_employee_person FOREIGN KEY (id) REFERENCES person(id) "
        "ON DELETE CASCADE ON UPDATE CASCADE"
    ) in ddl


def test_specialization_inherits_natural_key():
    """Test that a subtype without an identifier takes over its parent's natural key."""
    builder = SchemaBuilder()
    person = builder.add_entity("Person")
    name = builder.add_label_type("Name", "String")
    has_name = builder.add_binary_fact_type("has name", person.id, name.id, "person", "name")
    builder.add_unique([has_name.predicators[0]])
    employee = builder.add_entity("Employee")
    builder.specialize(employee.id, person.id)

    sql_schema = SqlGenerator().generate_schema(builder.build())

    table = sql_schema.table("employee")
    assert [c.name for c in table.columns] == ["name"]
    assert table.primary_key == ["name"]
    assert table.column("name").data_type == "VARCHAR(255)"
    assert (
        "CONSTRAINT fk_employee_person FOREIGN KEY (name) REFERENCES person(name) "
        "ON DELETE CASCADE ON UPDATE CASCADE"
    ) in export_to_sql(builder.build())


def test_specialization_key_type_mismatch_skipped():
    """Test that no specialization FK is emitted between keys of different types."""
    builder = SchemaBuilder()
    person = builder.add_entity("Person")
    name = builder.add_label_type("Name", "String")
    has_name = builder.add_binary_fact_type("has name", person.id, name.id, "person", "name")
    builder.add_unique([has_name.predicators[0]])
    employee = builder.add_entity("Employee")
    badge = builder.add_label_type("Badge", "Integer")
    has_badge = builder.add_binary_fact_type("has badge", employee.id, badge.id, "employee", "badge")
    builder.add_unique([has_badge.predicators[0]])
    builder.specialize(employee.id, person.id)

    table = SqlGenerator().generate_schema(builder.build()).table("employee")

    assert table.primary_key == ["badge"]
    assert table.foreign_keys == []


def test_reference_to_natural_key():
    """Test that referencing columns take the referenced key's type and name."""
    builder = SchemaBuilder()
    person = builder.add_entity("Person")
    car = builder.add_entity("Car")
    plate = builder.add_label_type("Plate")
    has_plate = builder.add_binary_fact_type("has plate", car.id, plate.id, "car", "plate")
    builder.add_unique([has_plate.predicators[0]])
    owns = builder.add_binary_fact_type("owns", person.id, car.id, "owner", "car")
    builder.add_unique([owns.predicators[1]])

    sql_schema = SqlGenerator().generate_schema(builder.build())

    assert sql_schema.table("car").primary_key == ["plate"]
    column = sql_schema.table("person").column("car")
    assert column.data_type == "VARCHAR(255)"
    assert (column.references.table, column.references.column) == ("car", "plate")
    fk = sql_schema.table("person").foreign_keys[0]
    assert (fk.columns, fk.ref_table, fk.ref_columns) == (["car"], "car", ["plate"])


def test_secondary_identifier_becomes_unique():
    """Test that non-primary identifiers are rendered as UNIQUE constraints."""
    builder = SchemaBuilder()
    person = builder.add_entity("Person")
    email = builder.add_label_type("Email")
    ssn = builder.add_label_type("SSN")
    has_email = builder.add_binary_fact_type("has email", person.id, email.id, "person", "email")
    has_ssn = builder.add_binary_fact_type("has ssn", person.id, ssn.id, "person", "ssn")
    builder.add_unique([has_ssn.predicators[0]])
    builder.add_unique([has_email.predicators[0]])

    table = SqlGenerator().generate_schema(builder.build()).table("person")

    assert table.primary_key == ["ssn"]
    assert table.unique_constraints == [["email"]]
    assert "  UNIQUE (email)" in export_to_sql(builder.build())


def test_table_name_collisions_are_suffixed():
    """Test deterministic renaming of colliding table names."""
    builder = SchemaBuilder()
    builder.add_entity("Order")
    builder.add_entity("order")
    sql_schema = SqlGenerator().generate_schema(builder.build())
    assert [t.name for t in sql_schema.tables] == ["order", "order_2"]


def test_generation_is_deterministic():
    """Test that generating twice yields identical DDL."""
    schema = _owns(unique_car=False)
    assert export_to_sql(schema) == export_to_sql(schema)


def test_unknown_dialect():
    """Test dialect resolution on construction."""
    assert SqlGenerator("postgres").dialect == "PostgreSQL"
    with pytest.raises(ValueError, match="Unsupported SQL dialect"):
        SqlGenerator("oracle")


def test_sanitize_name():
    """Test identifier sanitization."""
    assert sanitize_name("Has Name") == "has_name"
    assert sanitize_name("  Order-Line#2 ") == "order_line_2"
    assert sanitize_name("") == "unnamed"
    assert sanitize_name(sanitize_name("Ünïcode Name")) == sanitize_name("Ünïcode Name")


def test_render_literal():
    """Test CHECK literal rendering."""
    assert render_literal("O'Hara") == "'O''Hara'"
    assert render_literal(True) == "TRUE"
    assert render_literal(None) == "NULL"
    assert render_literal(3) == "3"
    assert render_literal(False, "SQL Server") == "0"
    assert render_literal(True, "SQLite") == "1"
    assert render_literal(True, "MySQL") == "TRUE"
