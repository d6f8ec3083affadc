"""Constraint validation of populations."""

from .models import ConstraintViolation, ValidationResult
from .validator import validate
from .custom import (
    CUSTOM_EVALUATORS,
    get_custom_evaluator,
    list_custom_constraints,
    register_custom_constraint,
)

__all__ = [
    "ConstraintViolation",
    "ValidationResult",
    "validate",
    "CUSTOM_EVALUATORS",
    "get_custom_evaluator",
    "list_custom_constraints",
    "register_custom_constraint",
]
