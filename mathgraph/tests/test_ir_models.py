"""Tests for IR models."""

from mathgraph.ir.conceptual import Entity, FactType, InformationSchema, LabelType, Predicator
from mathgraph.ir.constraint_ir import UniqueConstraint
from mathgraph.ir.graph import VisualGraph
from mathgraph.ir.logical import SqlColumn, SqlSchema, SqlTable
from mathgraph.ir.population import Population, encode_value


def _person_schema() -> InformationSchema:
    schema = InformationSchema(id="s", name="s")
    schema.entities["person"] = Entity(id="person", name="Person")
    schema.label_types["name"] = LabelType(id="name", name="Name")
    schema.fact_types["has_name"] = FactType(id="has_name", name="has name", predicators=["p1", "p2"])
    schema.predicators["p1"] = Predicator(id="p1", fact_type_id="has_name", object_id="person")
    schema.predicators["p2"] = Predicator(
        id="p2", fact_type_id="has_name", position=1, object_id="name"
    )
    return schema


def test_fact_type_arity():
    """Test FactType arity properties."""
    unary = FactType(id="f1", name="smokes", predicators=["p"])
    binary = FactType(id="f2", name="owns", predicators=["a", "b"])
    assert unary.is_unary
    assert unary.arity == 1
    assert not binary.is_unary
    assert binary.arity == 2


def test_schema_object_lookup():
    """Test merged object lookup across object kinds."""
    schema = _person_schema()
    assert set(schema.objects) == {"person", "name"}
    assert schema.get_object("name").kind == "Label"
    assert schema.get_object("missing") is None
    assert [p.id for p in schema.fact_type_predicators(schema.fact_types["has_name"])] == ["p1", "p2"]


def test_attach_identifier_first_becomes_primary():
    """Test that the first identifier of an entity becomes primary."""
    schema = _person_schema()
    first = UniqueConstraint(id="u1", predicator_ids=["p1"])
    second = UniqueConstraint(id="u2", predicator_ids=["p1"])
    schema.unique_constraints.update({"u1": first, "u2": second})

    owner = schema.attach_identifier(first)
    schema.attach_identifier(second)

    assert owner.id == "person"
    assert schema.entities["person"].identifiers == ["u1", "u2"]
    assert schema.primary_identifier(schema.entities["person"]).id == "u1"
    assert not second.is_primary


def test_attach_identifier_explicit_primary_demotes():
    """Test that an explicit primary flag replaces the existing primary."""
    schema = _person_schema()
    first = UniqueConstraint(id="u1", predicator_ids=["p1"])
    second = UniqueConstraint(id="u2", predicator_ids=["p1"])
    schema.unique_constraints.update({"u1": first, "u2": second})

    schema.attach_identifier(first)
    schema.attach_identifier(second, is_primary=True)

    assert second.is_primary
    assert not first.is_primary


def test_attach_identifier_on_label_is_ignored():
    """Test that a uniqueness constraint owned by a label is not an identifier."""
    schema = _person_schema()
    constraint = UniqueConstraint(id="u1", predicator_ids=["p2"])
    schema.unique_constraints["u1"] = constraint
    assert schema.attach_identifier(constraint) is None
    assert schema.entities["person"].identifiers == []


def test_population_deduplicates_instances():
    """Test set semantics of object populations."""
    population = Population(object_populations={"o": [1, 2, 1, {"a": 1}, {"a": 1}]})
    assert population.instances("o") == [1, 2, {"a": 1}]

    population.add_instance("o", 2)
    population.add_instance("o", 3)
    assert population.instances("o") == [1, 2, {"a": 1}, 3]


def test_population_tuples_and_clear():
    """Test fact tuple editing."""
    population = Population()
    assert population.tuples("f") is None

    population.add_tuple("f", {"p": 1})
    population.add_tuple("f", {"p": 1})
    assert population.tuples("f") == [{"p": 1}, {"p": 1}]

    population.clear()
    assert population.tuples("f") is None
    assert population.object_populations == {}


def test_encode_value_structural_equality():
    """Test that encoding ignores key order."""
    assert encode_value({"a": 1, "b": 2}) == encode_value({"b": 2, "a": 1})
    assert encode_value(1) != encode_value("1")


def test_encode_value_numeric_equality():
    """Test that integer-valued floats encode like the matching integers."""
    assert encode_value(1) == encode_value(1.0)
    assert encode_value({"a": 2.0, "b": [3.0, 0.5]}) == encode_value({"a": 2, "b": [3, 0.5]})
    assert encode_value(1.5) != encode_value(1)
    assert encode_value(True) != encode_value(1)


def test_visual_graph_accepts_canvas_json():
    """Test camelCase and 'type' keys of the canvas export."""
    graph = VisualGraph.model_validate(
        {
            "nodes": [
                {"id": "n1", "type": "entity", "label": "Person"},
                {"id": "n2", "kind": "labelType", "label": "Age", "dataType": "integer"},
            ],
            "edges": [
                {"id": "e1", "kind": "predicator", "sourceNodeId": "f", "targetNodeId": "n1"}
            ],
            "constraints": [
                {
                    "id": "c1",
                    "kind": "frequency",
                    "appliesTo": ["f"],
                    "parameters": {"min": 1, "max": "infinity"},
                }
            ],
        }
    )
    assert graph.nodes[0].kind == "entity"
    assert graph.nodes[1].data_type == "integer"
    assert graph.edges[0].source_node_id == "f"
    assert graph.edges[0].position is None
    assert graph.constraints[0].parameters.max == "infinity"


def test_sql_schema_lookup():
    """Test SqlSchema and SqlTable helpers."""
    table = SqlTable(
        name="person",
        columns=[SqlColumn(name="id", data_type="SERIAL", nullable=False, primary_key=True)],
        primary_key=["id"],
    )
    sql_schema = SqlSchema(dialect="PostgreSQL", tables=[table])
    assert sql_schema.table("person") is table
    assert sql_schema.table("car") is None
    assert table.column("id").primary_key
