"""Registry of custom constraint evaluators.

A custom constraint stores only a ``kind``; the behaviour lives in an
evaluator registered under that kind. Evaluators must be deterministic and
must not modify the schema or the population.
"""

from typing import Callable, Dict, List, Optional
from mathgraph.config.logging import get_logger
from mathgraph.ir.conceptual import InformationSchema
from mathgraph.ir.constraint_ir import CustomConstraint
from mathgraph.ir.population import Population
from . import constants
from .models import ConstraintViolation

logger = get_logger(__name__)

CustomEvaluator = Callable[
    [CustomConstraint, InformationSchema, Population], List[ConstraintViolation]
]

# Registry of evaluators keyed by custom constraint kind
CUSTOM_EVALUATORS: Dict[str, CustomEvaluator] = {}


def register_custom_constraint(kind: str, evaluator: Optional[CustomEvaluator] = None):
    """
    Register an evaluator for a custom constraint kind.

    Usable directly or as a decorator::

        @register_custom_constraint("no_empty")
        def no_empty(constraint, schema, population): ...

    Args:
        kind: Custom constraint kind
        evaluator: Evaluator function; omitted when used as a decorator
    """

    def decorator(func: CustomEvaluator) -> CustomEvaluator:
        CUSTOM_EVALUATORS[kind] = func
        logger.debug(f"Registered custom constraint evaluator: {kind}")
        return func

    if evaluator is not None:
        return decorator(evaluator)
    return decorator


def get_custom_evaluator(kind: str) -> CustomEvaluator:
    """
    Get the evaluator registered for a kind.

    Raises:
        KeyError: If no evaluator is registered under ``kind``
    """
    if kind not in CUSTOM_EVALUATORS:
        available = ", ".join(sorted(CUSTOM_EVALUATORS.keys()))
        raise KeyError(
            f"Custom constraint '{kind}' not found. Available custom constraints: {available}"
        )
    return CUSTOM_EVALUATORS[kind]


def list_custom_constraints() -> List[str]:
    return sorted(CUSTOM_EVALUATORS.keys())


@register_custom_constraint("no_empty")
def no_empty(
    constraint: CustomConstraint, schema: InformationSchema, population: Population
) -> List[ConstraintViolation]:
    """no_empty(e): every object the constraint applies to has at least one instance."""
    violations: List[ConstraintViolation] = []
    for object_id in constraint.applies_to:
        if not population.instances(object_id):
            violations.append(
                ConstraintViolation(
                    constraint_id=constraint.id,
                    constraint_type="Custom",
                    message=f"{constants.NO_EMPTY_VIOLATION}: {constraint.name}",
                    affected_objects=[object_id],
                )
            )
    return violations
