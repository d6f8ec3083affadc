"""Referential integrity checks for schemas and generated relational schemas."""

from dataclasses import dataclass, field
from typing import List, Literal
from mathgraph.config.logging import get_logger
from .conceptual import InformationSchema
from .logical import SqlSchema

logger = get_logger(__name__)


@dataclass
class QaIssue:
    """Integrity issue found during schema checking."""

    stage: Literal["InformationSchema", "SqlSchema"]
    code: str  # e.g., "PRED_OBJECT_MISSING", "FK_REF_TABLE_MISSING"
    location: str  # element id, or "table_name.column_name"
    message: str
    details: dict = field(default_factory=dict)


def _issue(code: str, location: str, message: str, **details) -> QaIssue:
    return QaIssue(
        stage="InformationSchema", code=code, location=location, message=message, details=details
    )


def validate_schema(schema: InformationSchema) -> List[QaIssue]:
    """
    Check that every id referenced inside a schema resolves.

    The converter, validator and SQL generator all skip unresolved
    references silently; this check makes those gaps visible.

    Args:
        schema: InformationSchema to check

    Returns:
        List of QaIssue objects (empty if the schema is consistent)
    """
    issues: List[QaIssue] = []
    objects = schema.objects

    for pid, predicator in schema.predicators.items():
        if predicator.object_id not in objects:
            issues.append(
                _issue(
                    "PRED_OBJECT_MISSING",
                    pid,
                    f"Predicator '{pid}' is based on unknown object '{predicator.object_id}'",
                    object_id=predicator.object_id,
                )
            )
        if predicator.fact_type_id not in schema.fact_types:
            issues.append(
                _issue(
                    "PRED_FACT_TYPE_MISSING",
                    pid,
                    f"Predicator '{pid}' belongs to unknown fact type '{predicator.fact_type_id}'",
                    fact_type_id=predicator.fact_type_id,
                )
            )

    for ft_id, fact_type in schema.fact_types.items():
        for pid in fact_type.predicators:
            predicator = schema.predicators.get(pid)
            if predicator is None:
                issues.append(
                    _issue(
                        "FACT_PRED_MISSING",
                        ft_id,
                        f"Fact type '{fact_type.name}' lists unknown predicator '{pid}'",
                        predicator_id=pid,
                    )
                )
            elif predicator.fact_type_id != ft_id:
                issues.append(
                    _issue(
                        "FACT_PRED_FOREIGN",
                        ft_id,
                        f"Fact type '{fact_type.name}' lists predicator '{pid}' "
                        f"of fact type '{predicator.fact_type_id}'",
                        predicator_id=pid,
                    )
                )

    issues.extend(_check_constraint_refs(schema))

    for entity_id, entity in schema.entities.items():
        for identifier in schema.identifiers_of(entity):
            for pid in identifier.predicator_ids:
                predicator = schema.predicators.get(pid)
                if predicator is not None and predicator.object_id != entity_id:
                    issues.append(
                        _issue(
                            "IDENTIFIER_FOREIGN_PRED",
                            entity_id,
                            f"Identifier '{identifier.id}' of '{entity.name}' uses predicator "
                            f"'{pid}' played by '{predicator.object_id}'",
                            constraint_id=identifier.id,
                            predicator_id=pid,
                        )
                    )
        for parent_id in entity.specialization_of:
            if parent_id not in schema.entities:
                issues.append(
                    _issue(
                        "SPECIALIZATION_PARENT_MISSING",
                        entity_id,
                        f"Entity '{entity.name}' specializes unknown entity '{parent_id}'",
                        parent_id=parent_id,
                    )
                )

    for cid, constraint in schema.set_constraints.items():
        if not constraint.source_predicator_ids or not constraint.target_predicator_ids:
            issues.append(
                _issue(
                    "SET_CONSTRAINT_EMPTY_SIDE",
                    cid,
                    f"{constraint.kind} constraint '{constraint.name}' has an empty side",
                    source=len(constraint.source_predicator_ids),
                    target=len(constraint.target_predicator_ids),
                )
            )

    if issues:
        logger.warning(f"Schema check found {len(issues)} issues")
    else:
        logger.info("Schema check passed")

    return issues


def _check_constraint_refs(schema: InformationSchema) -> List[QaIssue]:
    issues: List[QaIssue] = []
    objects = schema.objects

    def missing(cid: str, kind: str, ref: str, known) -> None:
        if ref not in known:
            issues.append(
                _issue(
                    "CONSTRAINT_REF_MISSING",
                    cid,
                    f"{kind} constraint '{cid}' references unknown id '{ref}'",
                    constraint_type=kind,
                    ref=ref,
                )
            )

    for cid, c in schema.unique_constraints.items():
        for pid in c.predicator_ids:
            missing(cid, "Uniqueness", pid, schema.predicators)
    for cid, c in schema.total_role_constraints.items():
        missing(cid, "TotalRole", c.predicator_id, schema.predicators)
        missing(cid, "TotalRole", c.object_id, objects)
    for cid, c in schema.set_constraints.items():
        for pid in c.source_predicator_ids + c.target_predicator_ids:
            missing(cid, "SetConstraint", pid, schema.predicators)
    for cid, c in schema.cardinality_constraints.items():
        missing(cid, "Cardinality", c.predicator_id, schema.predicators)
    for cid, c in schema.frequency_constraints.items():
        missing(cid, "Frequency", c.fact_type_id, schema.fact_types)
    for cid, c in schema.enumeration_constraints.items():
        missing(cid, "Enumeration", c.label_type_id, schema.label_types)
    for cid, c in schema.custom_constraints.items():
        for ref in c.applies_to:
            missing(cid, "Custom", ref, {**objects, **schema.fact_types, **schema.predicators})

    return issues


def validate_sql_schema(sql_schema: SqlSchema) -> List[QaIssue]:
    """
    Check keys and foreign keys of a generated relational schema.

    Args:
        sql_schema: SqlSchema to check

    Returns:
        List of QaIssue objects (empty if validation passes)
    """
    tables = {table.name: table for table in sql_schema.tables}
    issues: List[QaIssue] = []

    for table_name, table in tables.items():
        column_names = {c.name for c in table.columns}

        if not table.primary_key:
            issues.append(
                QaIssue(
                    stage="SqlSchema",
                    code="MISSING_PK",
                    location=table_name,
                    message=f"{table_name}: missing primary key",
                    details={"table": table_name, "kind": table.kind},
                )
            )

        for pk_col in table.primary_key:
            if pk_col not in column_names:
                issues.append(
                    QaIssue(
                        stage="SqlSchema",
                        code="PK_COL_MISSING",
                        location=f"{table_name}.{pk_col}",
                        message=f"{table_name}: primary key column '{pk_col}' does not exist",
                        details={"table": table_name, "column": pk_col},
                    )
                )

        for fk in table.foreign_keys:
            location = f"{table_name}.{','.join(fk.columns)}"
            if fk.ref_table not in tables:
                issues.append(
                    QaIssue(
                        stage="SqlSchema",
                        code="FK_REF_TABLE_MISSING",
                        location=location,
                        message=f"{table_name}: foreign key '{fk.name}' references "
                        f"missing table '{fk.ref_table}'",
                        details={"table": table_name, "fk": fk.name, "ref_table": fk.ref_table},
                    )
                )
                continue

            absent = [c for c in fk.columns if c not in column_names]
            if absent:
                issues.append(
                    QaIssue(
                        stage="SqlSchema",
                        code="FK_COL_MISSING",
                        location=location,
                        message=f"{table_name}: foreign key columns {absent} do not exist",
                        details={"table": table_name, "columns": absent},
                    )
                )
                continue

            ref_columns = {c.name for c in tables[fk.ref_table].columns}
            absent = [c for c in fk.ref_columns if c not in ref_columns]
            if absent:
                issues.append(
                    QaIssue(
                        stage="SqlSchema",
                        code="FK_REF_COL_MISSING",
                        location=location,
                        message=f"{table_name}: foreign key '{fk.name}' references "
                        f"'{fk.ref_table}' columns {absent} which do not exist",
                        details={
                            "table": table_name,
                            "ref_table": fk.ref_table,
                            "ref_columns": absent,
                        },
                    )
                )

    if issues:
        logger.warning(f"Relational schema check found {len(issues)} issues")
    else:
        logger.info("Relational schema check passed")

    return issues
