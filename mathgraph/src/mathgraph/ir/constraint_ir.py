"""Constraint IR models: uniqueness, total role, set, cardinality, frequency, enumeration, custom."""

from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field

SetConstraintKind = Literal["Subset", "Equality", "Exclusion"]


class UniqueConstraint(BaseModel):
    """Joint values of the listed predicators must be distinct across all tuples."""

    id: str
    name: str = "Unique Constraint"
    predicator_ids: List[str] = Field(default_factory=list)  # ordered, single or composite
    is_primary: bool = False
    is_preferred: bool = False


class TotalRoleConstraint(BaseModel):
    """Every instance of the object must play the predicator at least once (mandatory)."""

    id: str
    name: str = "Mandatory Constraint"
    predicator_id: str
    object_id: str


class SetConstraint(BaseModel):
    """Subset / equality / exclusion between the value sets of two predicator lists."""

    id: str
    name: str = "Set Constraint"
    kind: SetConstraintKind
    source_predicator_ids: List[str] = Field(default_factory=list)
    target_predicator_ids: List[str] = Field(default_factory=list)


class CardinalityConstraint(BaseModel):
    """How many times a single instance may occur in one predicator: at_least(g, n) / limit(g, m)."""

    id: str
    name: str = "Cardinality Constraint"
    predicator_id: str
    min: Optional[int] = None
    max: Optional[int] = None


class FrequencyConstraint(BaseModel):
    """frequency(f, n, m): the fact type holds between n and m tuples."""

    id: str
    name: str = "Frequency Constraint"
    fact_type_id: str
    min: Optional[int] = None
    max: Optional[int] = None


class EnumerationConstraint(BaseModel):
    """A label type restricted to an explicit finite value set."""

    id: str
    name: str = "Enumeration Constraint"
    label_type_id: str
    allowed_values: List[Any] = Field(default_factory=list)


class CustomConstraint(BaseModel):
    """A named rule evaluated by a registered evaluator (see mathgraph.validation.custom)."""

    id: str
    name: str = "Custom Constraint"
    kind: str  # registry key, e.g. "no_empty"
    description: str = ""
    applies_to: List[str] = Field(default_factory=list)  # object / fact type ids
    parameters: Dict[str, Any] = Field(default_factory=dict)
