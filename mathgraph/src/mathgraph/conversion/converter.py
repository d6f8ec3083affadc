"""Visual graph to information schema conversion.

Id mapping contract: every schema element id is the id of the graph element
it came from. Node ids become object / fact type ids, predicator edge ids
become predicator ids and constraint annotation ids become constraint ids.
No other ids are generated, so converting an unchanged graph twice yields
equal schemas.
"""

from typing import Dict, List, Optional, Tuple
from mathgraph.config.logging import get_logger
from mathgraph.config.settings import get_settings
from mathgraph.ir.conceptual import (
    Entity,
    FactType,
    InformationSchema,
    LabelType,
    PowerType,
    Predicator,
    SequenceType,
)
from mathgraph.ir.constraint_ir import (
    CardinalityConstraint,
    CustomConstraint,
    EnumerationConstraint,
    FrequencyConstraint,
    SetConstraint,
    TotalRoleConstraint,
    UniqueConstraint,
)
from mathgraph.ir.graph import GraphConstraint, GraphEdge, VisualGraph

logger = get_logger(__name__)

_SET_KINDS = {"subset": "Subset", "equality": "Equality", "exclusion": "Exclusion"}

_DATA_TYPES = {
    "string": "String",
    "text": "String",
    "char": "String",
    "integer": "Integer",
    "int": "Integer",
    "float": "Decimal",
    "double": "Decimal",
    "decimal": "Decimal",
    "boolean": "Boolean",
    "bool": "Boolean",
    "date": "Date",
    "timestamp": "DateTime",
    "datetime": "DateTime",
}

# Visual constraint kinds lowered to registered custom constraints
_CUSTOM_KINDS = {"noEmpty": "no_empty"}


class ConversionError(ValueError):
    """Raised in strict mode when a graph violates a structural precondition."""


def map_data_type(canvas_data_type: Optional[str]) -> str:
    """Map a canvas data type name to an abstract DataType; unknown names map to String."""
    return _DATA_TYPES.get((canvas_data_type or "string").lower(), "String")


def convert(
    graph: VisualGraph,
    schema_name: Optional[str] = None,
    strict: Optional[bool] = None,
) -> InformationSchema:
    """
    Convert a visual graph into an information schema.

    Runs three passes: nodes become objects or fact type shells, predicator
    edges become predicators grouped per fact type, constraint annotations
    become schema constraints. Unresolvable references are skipped.

    Args:
        graph: Visual graph to convert (not modified)
        schema_name: Schema name; defaults to the configured default name
        strict: Raise ConversionError on structural precondition violations;
            defaults to the ``strict_conversion`` setting

    Returns:
        A new InformationSchema

    Raises:
        ConversionError: Only in strict mode, for an odd-length set
            constraint predicator list without explicit source/target lists
    """
    settings = get_settings()
    name = schema_name or settings.default_schema_name
    if strict is None:
        strict = settings.strict_conversion

    schema = InformationSchema(id=name, name=name, version=settings.schema_version)
    node_kinds = {node.id: node.kind for node in graph.nodes}

    _convert_nodes(graph, schema)
    _convert_edges(graph, schema, node_kinds)
    _convert_constraints(graph, schema, strict)

    logger.info(
        f"Converted graph '{name}': {len(schema.objects)} objects, "
        f"{len(schema.fact_types)} fact types, {len(schema.predicators)} predicators"
    )
    return schema


def _convert_nodes(graph: VisualGraph, schema: InformationSchema) -> None:
    objectified: List[Tuple[str, str]] = []

    for node in graph.nodes:
        if node.kind == "entity":
            schema.entities[node.id] = Entity(id=node.id, name=node.label or "Unnamed Entity")
        elif node.kind == "labelType":
            schema.label_types[node.id] = LabelType(
                id=node.id,
                name=node.label or "Unnamed Label",
                data_type=map_data_type(node.data_type),
            )
        elif node.kind == "powerType":
            schema.power_types[node.id] = PowerType(
                id=node.id,
                name=node.label or "Unnamed Power Type",
                element_type_id=node.member_entity_id or "",
            )
        elif node.kind == "sequenceType":
            schema.sequence_types[node.id] = SequenceType(
                id=node.id,
                name=node.label or "Unnamed Sequence",
                element_type_id=node.member_entity_id or "",
            )
        elif node.kind == "objectified":
            schema.entities[node.id] = Entity(
                id=node.id,
                name=node.label or "Unnamed Objectified Fact",
                objectified_fact_type_id=node.objectified_fact_id,
            )
            if node.objectified_fact_id:
                objectified.append((node.id, node.objectified_fact_id))
        elif node.kind == "factType":
            schema.fact_types[node.id] = FactType(id=node.id, name=node.label or "Unnamed Fact")
        else:
            logger.debug(f"Skipping node '{node.id}' of unknown kind '{node.kind}'")

    # Fact type nodes may follow the objectified node that references them
    for entity_id, fact_type_id in objectified:
        fact_type = schema.fact_types.get(fact_type_id)
        if fact_type is not None:
            fact_type.is_objectified = True
            fact_type.objectified_as_id = entity_id


def _convert_edges(
    graph: VisualGraph, schema: InformationSchema, node_kinds: Dict[str, str]
) -> None:
    groups: Dict[str, List[GraphEdge]] = {}

    for edge in graph.edges:
        if edge.kind == "predicator":
            source_kind = node_kinds.get(edge.source_node_id)
            target_kind = node_kinds.get(edge.target_node_id)
            if source_kind == "factType" and target_kind != "factType":
                fact_type_id, object_id = edge.source_node_id, edge.target_node_id
            elif target_kind == "factType" and source_kind != "factType":
                fact_type_id, object_id = edge.target_node_id, edge.source_node_id
            else:
                logger.debug(f"Skipping predicator edge '{edge.id}': no single fact type endpoint")
                continue
            if fact_type_id not in schema.fact_types or schema.get_object(object_id) is None:
                logger.debug(f"Skipping predicator edge '{edge.id}': unresolved endpoint")
                continue

            groups.setdefault(fact_type_id, []).append(edge)
            schema.predicators[edge.id] = Predicator(
                id=edge.id,
                name=edge.label or "unnamed_role",
                fact_type_id=fact_type_id,
                object_id=object_id,
            )
        elif edge.kind == "specialization":
            subtype = schema.entities.get(edge.source_node_id)
            if subtype is not None:
                subtype.specialization_of.append(edge.target_node_id)
        else:
            logger.debug(f"Ignoring '{edge.kind}' edge '{edge.id}'")

    for fact_type_id, edges in groups.items():
        # Explicit positions first, then edge insertion order
        ordered = sorted(
            edges, key=lambda e: (e.position is None, e.position if e.position is not None else 0)
        )
        fact_type = schema.fact_types[fact_type_id]
        fact_type.predicators = [edge.id for edge in ordered]
        for position, edge in enumerate(ordered):
            schema.predicators[edge.id].position = position


def _convert_constraints(graph: VisualGraph, schema: InformationSchema, strict: bool) -> None:
    for constraint in graph.constraints:
        kind = constraint.kind
        params = constraint.parameters
        target = constraint.applies_to[0] if constraint.applies_to else None

        if kind == "uniqueness":
            predicator_ids = list(constraint.predicator_ids or constraint.applies_to)
            if not predicator_ids:
                logger.debug(f"Skipping uniqueness '{constraint.id}': no predicators")
                continue
            unique = UniqueConstraint(
                id=constraint.id,
                name=constraint.name or "Unique Constraint",
                predicator_ids=predicator_ids,
                is_primary=bool(constraint.is_primary),
                is_preferred=bool(constraint.is_primary),
            )
            schema.unique_constraints[constraint.id] = unique
            schema.attach_identifier(unique, constraint.is_primary)

        elif kind == "mandatory":
            predicator_id = target or (constraint.predicator_ids or [None])[0]
            predicator = schema.predicators.get(predicator_id) if predicator_id else None
            if predicator is None:
                logger.debug(f"Skipping mandatory '{constraint.id}': predicator not found")
                continue
            predicator.is_optional = False
            schema.total_role_constraints[constraint.id] = TotalRoleConstraint(
                id=constraint.id,
                name=constraint.name or "Mandatory Constraint",
                predicator_id=predicator.id,
                object_id=predicator.object_id,
            )

        elif kind in _SET_KINDS:
            source, target_ids = _split_set_constraint(constraint, strict)
            schema.set_constraints[constraint.id] = SetConstraint(
                id=constraint.id,
                name=constraint.name or f"{kind} Constraint",
                kind=_SET_KINDS[kind],
                source_predicator_ids=source,
                target_predicator_ids=target_ids,
            )

        elif kind == "frequency":
            if target is None:
                continue
            maximum = params.max if params else None
            schema.frequency_constraints[constraint.id] = FrequencyConstraint(
                id=constraint.id,
                name=constraint.name or "Frequency Constraint",
                fact_type_id=target,
                min=params.min if params else None,
                max=None if maximum == "infinity" else maximum,
            )

        elif kind == "enumeration":
            if target is None:
                continue
            schema.enumeration_constraints[constraint.id] = EnumerationConstraint(
                id=constraint.id,
                name=constraint.name or "Enumeration Constraint",
                label_type_id=target,
                allowed_values=list(params.values or []) if params else [],
            )

        elif kind in ("atLeast", "limit"):
            if target is None:
                continue
            minimum = maximum = None
            if params is not None:
                if kind == "atLeast":
                    minimum = params.n if params.n is not None else params.min
                else:
                    maximum = params.m if params.m is not None else params.max
            schema.cardinality_constraints[constraint.id] = CardinalityConstraint(
                id=constraint.id,
                name=constraint.name or "Cardinality Constraint",
                predicator_id=target,
                min=minimum,
                max=None if maximum == "infinity" else maximum,
            )

        elif kind in _CUSTOM_KINDS:
            if target is None:
                continue
            schema.custom_constraints[constraint.id] = CustomConstraint(
                id=constraint.id,
                name=constraint.name or f"{_CUSTOM_KINDS[kind]}({target})",
                kind=_CUSTOM_KINDS[kind],
                applies_to=list(constraint.applies_to),
            )

        else:
            logger.debug(f"Skipping constraint '{constraint.id}' of unsupported kind '{kind}'")


def _split_set_constraint(
    constraint: GraphConstraint, strict: bool
) -> Tuple[List[str], List[str]]:
    """Source and target predicator lists, explicit or bisected from ``predicatorIds``."""
    if constraint.source_predicator_ids is not None or constraint.target_predicator_ids is not None:
        return (
            list(constraint.source_predicator_ids or []),
            list(constraint.target_predicator_ids or []),
        )

    ids = list(constraint.predicator_ids or [])
    if len(ids) % 2 != 0:
        message = (
            f"Set constraint '{constraint.id}' has {len(ids)} predicator ids; "
            "an even list (source half, then target half) is required"
        )
        if strict:
            raise ConversionError(message)
        logger.warning(message)
    half = len(ids) // 2
    return ids[:half], ids[half:]
