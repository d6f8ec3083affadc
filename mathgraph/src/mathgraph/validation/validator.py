"""Constraint validation of populations against an information schema."""

from typing import Any, Dict, List, Optional, Tuple
from mathgraph.config.logging import get_logger
from mathgraph.ir.conceptual import FactType, InformationSchema, Predicator
from mathgraph.ir.population import Population, encode_value
from . import constants
from .custom import CUSTOM_EVALUATORS
from .models import ConstraintViolation, ValidationResult

logger = get_logger(__name__)


def validate(schema: InformationSchema, population: Population) -> ValidationResult:
    """
    Validate a population against every constraint of a schema.

    Each constraint category is checked independently and the violations are
    concatenated in category order. Constraints whose ids do not resolve in
    the schema or the population are skipped. Exceptions raised by custom
    constraint evaluators propagate.

    Args:
        schema: Information schema holding the constraints
        population: Instance data to check (not modified)

    Returns:
        ValidationResult; ``is_valid`` is False when any violation has
        severity Error
    """
    violations: List[ConstraintViolation] = []
    violations.extend(validate_uniqueness(schema, population))
    violations.extend(validate_total_roles(schema, population))
    violations.extend(validate_set_constraints(schema, population))
    violations.extend(validate_cardinality(schema, population))
    violations.extend(validate_frequency(schema, population))
    violations.extend(validate_enumerations(schema, population))
    violations.extend(validate_custom(schema, population))

    is_valid = not any(v.severity == "Error" for v in violations)
    if violations:
        logger.warning(f"Population validation found {len(violations)} violations")
    else:
        logger.info("Population validation passed")
    return ValidationResult(is_valid=is_valid, violations=violations)


def _resolve_role(
    schema: InformationSchema, predicator_id: Optional[str]
) -> Tuple[Optional[Predicator], Optional[FactType]]:
    predicator = schema.predicators.get(predicator_id) if predicator_id else None
    if predicator is None:
        return None, None
    return predicator, schema.fact_types.get(predicator.fact_type_id)


def _role_values(tuples: List[Dict[str, Any]], predicator_id: str) -> List[Any]:
    """Filled values of a role across tuples, in tuple order."""
    return [t[predicator_id] for t in tuples if t.get(predicator_id) is not None]


def validate_uniqueness(
    schema: InformationSchema, population: Population
) -> List[ConstraintViolation]:
    """Every repeat of an already seen key combination is one violation."""
    violations: List[ConstraintViolation] = []

    for constraint_id, constraint in schema.unique_constraints.items():
        if not constraint.predicator_ids:
            continue
        _, fact_type = _resolve_role(schema, constraint.predicator_ids[0])
        if fact_type is None:
            continue
        tuples = population.tuples(fact_type.id)
        if tuples is None:
            continue

        seen = set()
        for fact in tuples:
            key = tuple(encode_value(fact.get(pid)) for pid in constraint.predicator_ids)
            if key in seen:
                violations.append(
                    ConstraintViolation(
                        constraint_id=constraint_id,
                        constraint_type="Uniqueness",
                        message=f"{constants.UNIQUENESS_VIOLATION}: {constraint.name}",
                        affected_objects=[fact_type.id],
                        affected_facts=[fact],
                    )
                )
            seen.add(key)

    return violations


def validate_total_roles(
    schema: InformationSchema, population: Population
) -> List[ConstraintViolation]:
    """One violation per object instance that never plays the mandatory role."""
    violations: List[ConstraintViolation] = []

    for constraint_id, constraint in schema.total_role_constraints.items():
        _, fact_type = _resolve_role(schema, constraint.predicator_id)
        if fact_type is None:
            continue
        instances = population.instances(constraint.object_id)
        tuples = population.tuples(fact_type.id)
        if instances is None or tuples is None:
            continue

        participating = {encode_value(v) for v in _role_values(tuples, constraint.predicator_id)}
        for instance in instances:
            if encode_value(instance) not in participating:
                violations.append(
                    ConstraintViolation(
                        constraint_id=constraint_id,
                        constraint_type="TotalRole",
                        message=(
                            f"{constants.TOTAL_ROLE_VIOLATION}: {constraint.name} "
                            f"(instance: {instance!r})"
                        ),
                        affected_objects=[constraint.object_id],
                        affected_facts=[],
                    )
                )

    return violations


def _predicator_population(
    schema: InformationSchema, population: Population, predicator_ids: List[str]
) -> Dict[str, Any]:
    """Encoded values reachable through a predicator list, in first-seen order."""
    values: Dict[str, Any] = {}
    for predicator_id in predicator_ids:
        _, fact_type = _resolve_role(schema, predicator_id)
        if fact_type is None:
            continue
        for value in _role_values(population.tuples(fact_type.id) or [], predicator_id):
            values.setdefault(encode_value(value), value)
    return values


def validate_set_constraints(
    schema: InformationSchema, population: Population
) -> List[ConstraintViolation]:
    """Subset, equality and exclusion; at most one violation per constraint."""
    violations: List[ConstraintViolation] = []

    for constraint_id, constraint in schema.set_constraints.items():
        source = _predicator_population(schema, population, constraint.source_predicator_ids)
        target = _predicator_population(schema, population, constraint.target_predicator_ids)
        both_sides = constraint.source_predicator_ids + constraint.target_predicator_ids

        message: Optional[str] = None
        affected = both_sides
        if constraint.kind == "Subset":
            missing = [v for k, v in source.items() if k not in target]
            if missing:
                message = f"{constants.SUBSET_VIOLATION}: {constraint.name} (value: {missing[0]!r})"
                affected = list(constraint.source_predicator_ids)
        elif constraint.kind == "Equality":
            if len(source) != len(target) or any(k not in target for k in source):
                message = f"{constants.EQUALITY_VIOLATION}: {constraint.name}"
        elif constraint.kind == "Exclusion":
            shared = [v for k, v in source.items() if k in target]
            if shared:
                message = f"{constants.EXCLUSION_VIOLATION}: {constraint.name} (value: {shared[0]!r})"

        if message is not None:
            violations.append(
                ConstraintViolation(
                    constraint_id=constraint_id,
                    constraint_type="SetConstraint",
                    message=message,
                    affected_objects=affected,
                    affected_facts=[],
                )
            )

    return violations


def validate_cardinality(
    schema: InformationSchema, population: Population
) -> List[ConstraintViolation]:
    """Per-instance occurrence counts in a role checked against [min, max]."""
    violations: List[ConstraintViolation] = []

    for constraint_id, constraint in schema.cardinality_constraints.items():
        predicator, fact_type = _resolve_role(schema, constraint.predicator_id)
        if predicator is None or fact_type is None:
            continue
        tuples = population.tuples(fact_type.id)
        if tuples is None:
            continue

        counts: Dict[str, int] = {}
        for value in _role_values(tuples, predicator.id):
            key = encode_value(value)
            counts[key] = counts.get(key, 0) + 1

        for key, count in counts.items():
            if constraint.min is not None and count < constraint.min:
                violations.append(
                    ConstraintViolation(
                        constraint_id=constraint_id,
                        constraint_type="Cardinality",
                        message=(
                            f"{constants.CARDINALITY_MIN_VIOLATION}: {constraint.name} "
                            f"(instance: {key}, min: {constraint.min}, actual: {count})"
                        ),
                        affected_objects=[predicator.object_id],
                        affected_facts=[],
                    )
                )
            if constraint.max is not None and count > constraint.max:
                violations.append(
                    ConstraintViolation(
                        constraint_id=constraint_id,
                        constraint_type="Cardinality",
                        message=(
                            f"{constants.CARDINALITY_MAX_VIOLATION}: {constraint.name} "
                            f"(instance: {key}, max: {constraint.max}, actual: {count})"
                        ),
                        affected_objects=[predicator.object_id],
                        affected_facts=[],
                    )
                )

    return violations


def validate_frequency(
    schema: InformationSchema, population: Population
) -> List[ConstraintViolation]:
    """Total tuple count of a fact type checked against [min, max]."""
    violations: List[ConstraintViolation] = []

    for constraint_id, constraint in schema.frequency_constraints.items():
        if constraint.fact_type_id not in schema.fact_types:
            continue
        count = len(population.tuples(constraint.fact_type_id) or [])

        if constraint.min is not None and count < constraint.min:
            violations.append(
                ConstraintViolation(
                    constraint_id=constraint_id,
                    constraint_type="Frequency",
                    message=(
                        f"{constants.FREQUENCY_MIN_VIOLATION}: {constraint.name} "
                        f"(min: {constraint.min}, actual: {count})"
                    ),
                    affected_objects=[constraint.fact_type_id],
                    affected_facts=[],
                )
            )
        if constraint.max is not None and count > constraint.max:
            violations.append(
                ConstraintViolation(
                    constraint_id=constraint_id,
                    constraint_type="Frequency",
                    message=(
                        f"{constants.FREQUENCY_MAX_VIOLATION}: {constraint.name} "
                        f"(max: {constraint.max}, actual: {count})"
                    ),
                    affected_objects=[constraint.fact_type_id],
                    affected_facts=[],
                )
            )

    return violations


def validate_enumerations(
    schema: InformationSchema, population: Population
) -> List[ConstraintViolation]:
    """One violation per label instance outside the allowed values."""
    violations: List[ConstraintViolation] = []

    for constraint_id, constraint in schema.enumeration_constraints.items():
        if schema.get_object(constraint.label_type_id) is None:
            continue
        instances = population.instances(constraint.label_type_id)
        if instances is None:
            continue

        allowed = {encode_value(v) for v in constraint.allowed_values}
        for instance in instances:
            if encode_value(instance) not in allowed:
                violations.append(
                    ConstraintViolation(
                        constraint_id=constraint_id,
                        constraint_type="Enumeration",
                        message=(
                            f"{constants.ENUMERATION_VIOLATION}: {constraint.name} "
                            f"(value: {instance!r})"
                        ),
                        affected_objects=[constraint.label_type_id],
                        affected_facts=[],
                    )
                )

    return violations


def validate_custom(
    schema: InformationSchema, population: Population
) -> List[ConstraintViolation]:
    """Delegate to registered evaluators; their violations pass through unchanged."""
    violations: List[ConstraintViolation] = []

    for constraint in schema.custom_constraints.values():
        evaluator = CUSTOM_EVALUATORS.get(constraint.kind)
        if evaluator is None:
            logger.warning(
                f"Skipping custom constraint '{constraint.id}': no evaluator for '{constraint.kind}'"
            )
            continue
        violations.extend(evaluator(constraint, schema, population))

    return violations
