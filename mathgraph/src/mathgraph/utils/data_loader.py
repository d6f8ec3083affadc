"""Utilities for loading populations from CSV files."""

from pathlib import Path
from typing import Any, Dict, Optional
import pandas as pd
from mathgraph.config.logging import get_logger
from mathgraph.ir.population import Population

logger = get_logger(__name__)


def load_csv_files(data_dir: Path) -> Dict[str, pd.DataFrame]:
    """
    Load all CSV files from a directory into DataFrames.

    Args:
        data_dir: Directory containing CSV files

    Returns:
        Dictionary mapping file stems to DataFrames
    """
    return {p.stem: pd.read_csv(p) for p in sorted(Path(data_dir).glob("*.csv"))}


def _cell(value: Any) -> Any:
    """Plain Python value of a DataFrame cell; NaN means an unfilled role."""
    if pd.isna(value):
        return None
    value = value.item() if hasattr(value, "item") else value
    # Integer columns with gaps are read as float
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def load_population_from_csv(data_dir: Path, schema_id: Optional[str] = None) -> Population:
    """
    Load a population from a directory of CSV files.

    Layout::

        <data_dir>/objects/<object_id>.csv     first column holds the instances
        <data_dir>/facts/<fact_type_id>.csv    one column per predicator id

    Empty fact cells are left out of their tuple (unfilled optional role).

    Args:
        data_dir: Population directory
        schema_id: Schema id stamped on the population

    Returns:
        Population instance

    Raises:
        FileNotFoundError: If ``data_dir`` does not exist
    """
    data_dir = Path(data_dir)
    if not data_dir.is_dir():
        raise FileNotFoundError(f"Population directory not found: {data_dir}")

    population = Population(schema_id=schema_id)

    objects_dir = data_dir / "objects"
    if objects_dir.is_dir():
        for object_id, df in load_csv_files(objects_dir).items():
            if df.columns.empty:
                continue
            for value in df.iloc[:, 0].tolist():
                value = _cell(value)
                if value is not None:
                    population.add_instance(object_id, value)

    facts_dir = data_dir / "facts"
    if facts_dir.is_dir():
        for fact_type_id, df in load_csv_files(facts_dir).items():
            population.fact_populations.setdefault(fact_type_id, [])
            for record in df.to_dict(orient="records"):
                fact = {str(k): _cell(v) for k, v in record.items()}
                population.add_tuple(
                    fact_type_id, {k: v for k, v in fact.items() if v is not None}
                )

    logger.info(
        f"Loaded population from {data_dir}: {len(population.object_populations)} objects, "
        f"{len(population.fact_populations)} fact types"
    )
    return population
