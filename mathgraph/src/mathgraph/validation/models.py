"""Validation result models."""

from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Severity = Literal["Error", "Warning"]


class ConstraintViolation(BaseModel):
    """A single constraint violation found in a population."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    constraint_id: str
    constraint_type: str  # Uniqueness | TotalRole | SetConstraint | Cardinality | ...
    severity: Severity = "Error"
    message: str
    affected_objects: List[str] = Field(default_factory=list)
    affected_facts: Optional[List[Dict[str, Any]]] = None


class ValidationResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    is_valid: bool
    violations: List[ConstraintViolation] = Field(default_factory=list)

    def by_type(self, constraint_type: str) -> List[ConstraintViolation]:
        return [v for v in self.violations if v.constraint_type == constraint_type]
