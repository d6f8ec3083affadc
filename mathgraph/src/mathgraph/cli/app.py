"""Typer CLI application."""

import typer
from pathlib import Path
from typing import Optional

from mathgraph.config.logging import setup_logging
from mathgraph.config.settings import get_settings
from mathgraph.conversion.converter import convert
from mathgraph.ir.conceptual import InformationSchema
from mathgraph.ir.validators import validate_schema, validate_sql_schema
from mathgraph.sql.dialects import DIALECTS, resolve_dialect
from mathgraph.sql.generator import SqlGenerator
from mathgraph.utils.data_loader import load_population_from_csv
from mathgraph.utils.ir_io import load_graph, load_population, load_schema, save_schema
from mathgraph.validation.validator import validate as validate_population

app = typer.Typer(help="MathGraph: information model conversion, validation and SQL generation")

GRAPH_OPTION = typer.Option(False, "--graph", help="Read SCHEMA as a canvas graph export")


def _read_schema(schema_json: Path, from_graph: bool) -> InformationSchema:
    if from_graph:
        return convert(load_graph(schema_json))
    return load_schema(schema_json)


@app.command("convert")
def convert_graph(
    graph_json: Path,
    out_schema: Path,
    name: Optional[str] = typer.Option(None, "--name", help="Schema name"),
    strict: bool = typer.Option(False, "--strict", help="Fail on malformed set constraints"),
):
    """
    Convert a canvas graph export into an information schema.

    Args:
        graph_json: Path to the graph JSON file
        out_schema: Output path for the schema JSON
    """
    setup_logging()

    typer.echo(f"Loading graph from {graph_json}")
    try:
        graph = load_graph(graph_json)
        schema = convert(graph, schema_name=name, strict=strict or None)
    except (FileNotFoundError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Writing schema to {out_schema}")
    save_schema(schema, out_schema)

    typer.echo(f"✓ Complete! Schema written to {out_schema}")
    typer.echo(f"  Objects: {len(schema.objects)}")
    typer.echo(f"  Fact types: {len(schema.fact_types)}")


@app.command("validate")
def validate_data(
    schema_json: Path,
    population_path: Path,
    graph: bool = GRAPH_OPTION,
    out_report: Optional[Path] = typer.Option(None, "--out-report", help="Write violations as JSON"),
):
    """
    Validate a population against the constraints of a schema.

    Args:
        schema_json: Path to the schema (or graph) JSON file
        population_path: Population JSON file, or a directory of CSV files
    """
    setup_logging()

    try:
        typer.echo(f"Loading schema from {schema_json}")
        schema = _read_schema(schema_json, graph)

        typer.echo(f"Loading population from {population_path}")
        if population_path.is_dir():
            population = load_population_from_csv(population_path, schema_id=schema.id)
        else:
            population = load_population(population_path)
    except (FileNotFoundError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo("Running validation...")
    result = validate_population(schema, population)

    if out_report is not None:
        typer.echo(f"Writing report to {out_report}")
        out_report.parent.mkdir(parents=True, exist_ok=True)
        out_report.write_text(result.model_dump_json(indent=2, by_alias=True), encoding="utf-8")

    for violation in result.violations:
        typer.echo(
            f"  [{violation.severity}] {violation.constraint_type} "
            f"{violation.constraint_id}: {violation.message}"
        )

    typer.echo(f"  Valid: {result.is_valid}")
    typer.echo(f"  Violations: {len(result.violations)}")
    if not result.is_valid:
        raise typer.Exit(1)


@app.command()
def sql(
    schema_json: Path,
    dialect: Optional[str] = typer.Option(None, "--dialect", "-d", help="Target SQL dialect"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Write DDL to a file instead of stdout"),
    graph: bool = GRAPH_OPTION,
):
    """
    Generate SQL DDL for a schema.

    Args:
        schema_json: Path to the schema (or graph) JSON file
    """
    setup_logging()

    try:
        generator = SqlGenerator(dialect or get_settings().default_dialect)
        schema = _read_schema(schema_json, graph)
    except (FileNotFoundError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    ddl = generator.generate_ddl(generator.generate_schema(schema))

    if out is None:
        typer.echo(ddl)
        return

    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(ddl + "\n", encoding="utf-8")
    typer.echo(f"✓ Complete! {generator.dialect} DDL written to {out}")


@app.command()
def check(
    schema_json: Path,
    graph: bool = GRAPH_OPTION,
    dialect: Optional[str] = typer.Option(None, "--dialect", "-d", help="Dialect for the relational check"),
):
    """
    Check a schema and its generated relational schema for dangling references.

    Args:
        schema_json: Path to the schema (or graph) JSON file
    """
    setup_logging()

    try:
        schema = _read_schema(schema_json, graph)
        generator = SqlGenerator(dialect or get_settings().default_dialect)
    except (FileNotFoundError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    issues = validate_schema(schema)
    issues.extend(validate_sql_schema(generator.generate_schema(schema)))

    for issue in issues:
        typer.echo(f"  [{issue.code}] {issue.location}: {issue.message}")

    if issues:
        typer.echo(f"Found {len(issues)} issues", err=True)
        raise typer.Exit(1)
    typer.echo("✓ No issues found")


@app.command("dialects")
def list_dialects():
    """List the supported SQL dialects."""
    default = resolve_dialect(get_settings().default_dialect)
    for name in DIALECTS:
        marker = " (default)" if name == default else ""
        typer.echo(f"{name}{marker}")


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
