"""Utility functions for common operations."""

from .ir_io import (
    load_graph,
    load_population,
    load_schema,
    save_graph,
    save_population,
    save_schema,
)
from .data_loader import load_csv_files, load_population_from_csv

__all__ = [
    "load_graph",
    "load_population",
    "load_schema",
    "save_graph",
    "save_population",
    "save_schema",
    "load_csv_files",
    "load_population_from_csv",
]
