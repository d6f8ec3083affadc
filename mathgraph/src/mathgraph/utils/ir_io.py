"""Utilities for loading and saving schemas, populations and graphs as JSON."""

from pathlib import Path
from typing import Type, TypeVar
from pydantic import BaseModel, TypeAdapter
from mathgraph.ir.conceptual import InformationSchema
from mathgraph.ir.graph import VisualGraph
from mathgraph.ir.population import Population

ModelT = TypeVar("ModelT", bound=BaseModel)


def _load_json(path: Path, model: Type[ModelT], what: str) -> ModelT:
    """
    Load and validate one JSON document.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is empty, not JSON, or does not match the model
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"{what} file not found: {path}")

    file_content = path.read_text(encoding="utf-8").strip()
    if not file_content:
        raise ValueError(
            f"{what} file is empty or corrupted: {path}. "
            f"The file exists but contains no valid JSON data."
        )

    try:
        return TypeAdapter(model).validate_json(file_content)
    except Exception as e:
        raise ValueError(f"Failed to load {what.lower()} from {path}: {e}") from e


def _save_json(model: BaseModel, path: Path, by_alias: bool = False) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(model.model_dump_json(indent=2, by_alias=by_alias), encoding="utf-8")


def load_schema(path: Path) -> InformationSchema:
    """
    Load an InformationSchema from a JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is empty or corrupted
    """
    return _load_json(path, InformationSchema, "Schema")


def save_schema(schema: InformationSchema, path: Path) -> None:
    """
    Save an InformationSchema to a JSON file.

    Note:
        Creates parent directories if they don't exist.
    """
    _save_json(schema, path)


def load_population(path: Path) -> Population:
    """Load a Population from a JSON file; errors as for load_schema."""
    return _load_json(path, Population, "Population")


def save_population(population: Population, path: Path) -> None:
    _save_json(population, path)


def load_graph(path: Path) -> VisualGraph:
    """Load a canvas graph export (camelCase keys) from a JSON file."""
    return _load_json(path, VisualGraph, "Graph")


def save_graph(graph: VisualGraph, path: Path) -> None:
    """Save a graph with the camelCase keys of the canvas export."""
    _save_json(graph, path, by_alias=True)
