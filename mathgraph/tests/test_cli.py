"""Tests for the command-line interface."""

import json
import pytest
from typer.testing import CliRunner
from mathgraph.cli.app import app
from mathgraph.config.logging import setup_logging
from mathgraph.ir.population import Population
from mathgraph.utils.ir_io import load_schema, save_population

runner = CliRunner()

GRAPH = {
    "nodes": [
        {"id": "person", "kind": "entity", "label": "Person"},
        {"id": "car", "kind": "entity", "label": "Car"},
        {"id": "owns", "kind": "factType", "label": "owns"},
    ],
    "edges": [
        {"id": "owner", "kind": "predicator", "sourceNodeId": "owns", "targetNodeId": "person", "label": "owner"},
        {"id": "vehicle", "kind": "predicator", "sourceNodeId": "owns", "targetNodeId": "car", "label": "car"},
    ],
    "constraints": [{"id": "u1", "kind": "uniqueness", "predicatorIds": ["vehicle"]}],
}


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    # Commands bind the log handler to the runner's stderr
    setup_logging()


@pytest.fixture
def graph_file(tmp_path):
    path = tmp_path / "graph.json"
    path.write_text(json.dumps(GRAPH), encoding="utf-8")
    return path


def test_convert(tmp_path, graph_file):
    """Test converting a graph export into a schema file."""
    out = tmp_path / "schema.json"
    result = runner.invoke(app, ["convert", str(graph_file), str(out), "--name", "Fleet"])

    assert result.exit_code == 0
    assert "✓ Complete!" in result.output
    schema = load_schema(out)
    assert schema.name == "Fleet"
    assert set(schema.predicators) == {"owner", "vehicle"}


def test_convert_missing_graph(tmp_path):
    """Test the error path for a missing input file."""
    result = runner.invoke(app, ["convert", str(tmp_path / "none.json"), str(tmp_path / "out.json")])
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_sql_to_stdout(graph_file):
    """Test DDL generation from a graph export."""
    result = runner.invoke(app, ["sql", str(graph_file), "--graph", "--dialect", "mysql"])

    assert result.exit_code == 0
    assert "CREATE TABLE person (" in result.output
    assert "  id INT AUTO_INCREMENT NOT NULL," in result.output
    assert "REFERENCES car(id)" in result.output


def test_sql_to_file(tmp_path, graph_file):
    """Test writing DDL to a file."""
    out = tmp_path / "ddl" / "schema.sql"
    result = runner.invoke(app, ["sql", str(graph_file), "--graph", "-o", str(out)])

    assert result.exit_code == 0
    assert "PostgreSQL DDL written" in result.output
    assert out.read_text(encoding="utf-8").startswith("CREATE TABLE person (")


def test_sql_unknown_dialect(graph_file):
    """Test that an unsupported dialect exits with an error."""
    result = runner.invoke(app, ["sql", str(graph_file), "--graph", "--dialect", "oracle"])
    assert result.exit_code == 1
    assert "Unsupported SQL dialect" in result.output


def test_validate_reports_violations(tmp_path, graph_file):
    """Test that an invalid population fails with a listed violation."""
    population = tmp_path / "population.json"
    save_population(
        Population(fact_populations={"owns": [{"owner": 1, "vehicle": 7}, {"owner": 2, "vehicle": 7}]}),
        population,
    )
    report = tmp_path / "report.json"

    result = runner.invoke(
        app, ["validate", str(graph_file), str(population), "--graph", "--out-report", str(report)]
    )

    assert result.exit_code == 1
    assert "[Error] Uniqueness u1" in result.output
    assert "Valid: False" in result.output
    data = json.loads(report.read_text(encoding="utf-8"))
    assert data["isValid"] is False
    assert data["violations"][0]["constraintId"] == "u1"


def test_validate_valid_population(tmp_path, graph_file):
    """Test a population that satisfies every constraint."""
    population = tmp_path / "population.json"
    save_population(Population(fact_populations={"owns": [{"owner": 1, "vehicle": 7}]}), population)

    result = runner.invoke(app, ["validate", str(graph_file), str(population), "--graph"])

    assert result.exit_code == 0
    assert "Valid: True" in result.output


def test_check(graph_file):
    """Test the integrity check on a consistent graph."""
    result = runner.invoke(app, ["check", str(graph_file), "--graph"])
    assert result.exit_code == 0
    assert "No issues found" in result.output


def test_check_reports_dangling_references(tmp_path):
    """Test the integrity check on a graph with a dangling constraint."""
    broken = dict(GRAPH, constraints=[{"id": "f1", "kind": "frequency", "appliesTo": ["ghost"]}])
    path = tmp_path / "broken.json"
    path.write_text(json.dumps(broken), encoding="utf-8")

    result = runner.invoke(app, ["check", str(path), "--graph"])

    assert result.exit_code == 1
    assert "CONSTRAINT_REF_MISSING" in result.output


def test_dialects():
    """Test listing dialects with the default marked."""
    result = runner.invoke(app, ["dialects"])
    assert result.exit_code == 0
    assert "PostgreSQL (default)" in result.output
    assert "SQL Server" in result.output
