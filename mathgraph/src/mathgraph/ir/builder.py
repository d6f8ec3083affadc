"""Interactive construction and editing of information schemas."""

from typing import Any, Dict, List, Optional, Sequence
from mathgraph.config.logging import get_logger
from mathgraph.config.settings import get_settings
from .conceptual import (
    DataType,
    Entity,
    FactType,
    InformationSchema,
    LabelType,
    PowerType,
    Predicator,
    SequenceType,
)
from .constraint_ir import (
    CardinalityConstraint,
    CustomConstraint,
    EnumerationConstraint,
    FrequencyConstraint,
    SetConstraint,
    SetConstraintKind,
    TotalRoleConstraint,
    UniqueConstraint,
)

logger = get_logger(__name__)


class NameCounter:
    """Per-kind sequence numbers for auto-named elements."""

    def __init__(self):
        self._counts: Dict[str, int] = {}

    def next(self, kind: str) -> int:
        self._counts[kind] = self._counts.get(kind, 0) + 1
        return self._counts[kind]

    def reset(self) -> None:
        self._counts.clear()


class SchemaBuilder:
    """
    Builds and edits an InformationSchema in place.

    Elements created without an explicit id or name get ``<kind>_<n>`` ids and
    ``<Label> <n>`` names from the builder's own NameCounter. Methods that
    take ids raise KeyError when an id does not resolve.

    Example:
        >>> builder = SchemaBuilder(name="Fleet")
        >>> person = builder.add_entity("Person")
        >>> car = builder.add_entity("Car")
        >>> owns = builder.add_binary_fact_type("owns", person.id, car.id, "owner", "car")
        >>> builder.add_unique([owns.predicators[1]])
    """

    def __init__(
        self,
        schema: Optional[InformationSchema] = None,
        name: Optional[str] = None,
        counter: Optional[NameCounter] = None,
    ):
        if schema is None:
            settings = get_settings()
            schema_name = name or settings.default_schema_name
            schema = InformationSchema(
                id=schema_name, name=schema_name, version=settings.schema_version
            )
        self.schema = schema
        self.counter = counter or NameCounter()

    def build(self) -> InformationSchema:
        return self.schema

    def _new_id(self, kind: str) -> str:
        taken = set(self.schema.objects) | set(self.schema.fact_types) | set(self.schema.predicators)
        for constraints in self.schema.constraint_maps().values():
            taken.update(constraints)
        while True:
            candidate = f"{kind}_{self.counter.next(kind)}"
            if candidate not in taken:
                return candidate

    def _auto_name(self, label: str) -> str:
        return f"{label} {self.counter.next(label)}"

    def _require_object(self, object_id: str):
        obj = self.schema.get_object(object_id)
        if obj is None:
            raise KeyError(f"Object '{object_id}' not found in schema '{self.schema.name}'")
        return obj

    def _require_predicator(self, predicator_id: str) -> Predicator:
        if predicator_id not in self.schema.predicators:
            raise KeyError(f"Predicator '{predicator_id}' not found in schema '{self.schema.name}'")
        return self.schema.predicators[predicator_id]

    # Objects

    def add_entity(self, name: Optional[str] = None, id: Optional[str] = None) -> Entity:
        entity_id = id or self._new_id("entity")
        entity = Entity(id=entity_id, name=name or self._auto_name("Entity"))
        self.schema.entities[entity_id] = entity
        return entity

    def add_label_type(
        self,
        name: Optional[str] = None,
        data_type: DataType = "String",
        id: Optional[str] = None,
        enumeration: Optional[List[Any]] = None,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        pattern: Optional[str] = None,
    ) -> LabelType:
        label_id = id or self._new_id("label")
        label = LabelType(
            id=label_id,
            name=name or self._auto_name("Label"),
            data_type=data_type,
            enumeration=enumeration,
            min_value=min_value,
            max_value=max_value,
            pattern=pattern,
        )
        self.schema.label_types[label_id] = label
        return label

    def add_power_type(
        self, element_type_id: str, name: Optional[str] = None, id: Optional[str] = None
    ) -> PowerType:
        self._require_object(element_type_id)
        power_id = id or self._new_id("power")
        power = PowerType(
            id=power_id,
            name=name or self._auto_name("Power Type"),
            element_type_id=element_type_id,
        )
        self.schema.power_types[power_id] = power
        return power

    def add_sequence_type(
        self,
        element_type_id: str,
        name: Optional[str] = None,
        id: Optional[str] = None,
        allows_duplicates: bool = False,
    ) -> SequenceType:
        self._require_object(element_type_id)
        sequence_id = id or self._new_id("sequence")
        sequence = SequenceType(
            id=sequence_id,
            name=name or self._auto_name("Sequence"),
            element_type_id=element_type_id,
            allows_duplicates=allows_duplicates,
        )
        self.schema.sequence_types[sequence_id] = sequence
        return sequence

    # Fact types

    def add_fact_type(
        self,
        object_ids: Sequence[str],
        name: Optional[str] = None,
        role_names: Optional[Sequence[str]] = None,
        optional: Optional[Sequence[bool]] = None,
        id: Optional[str] = None,
    ) -> FactType:
        """
        Add a fact type with one predicator per object id, in position order.

        Args:
            object_ids: Objects playing the roles, one per position
            name: Fact type name
            role_names: Predicator names; default to the object names
            optional: Optionality per role; all roles are optional by default
            id: Explicit fact type id

        Raises:
            KeyError: If an object id does not resolve
        """
        objects = [self._require_object(object_id) for object_id in object_ids]
        fact_type_id = id or self._new_id("fact")
        fact_type = FactType(id=fact_type_id, name=name or self._auto_name("Fact Type"))

        for position, obj in enumerate(objects):
            role_name = role_names[position] if role_names else obj.name
            predicator = Predicator(
                id=self._new_id("role"),
                name=role_name,
                fact_type_id=fact_type_id,
                position=position,
                object_id=obj.id,
                is_optional=optional[position] if optional else True,
            )
            self.schema.predicators[predicator.id] = predicator
            fact_type.predicators.append(predicator.id)

        self.schema.fact_types[fact_type_id] = fact_type
        logger.debug(f"Added fact type '{fact_type.name}' with arity {fact_type.arity}")
        return fact_type

    def add_unary_fact_type(self, object_id: str, name: str) -> FactType:
        return self.add_fact_type([object_id], name=name, role_names=[name])

    def add_binary_fact_type(
        self,
        name: str,
        first_object_id: str,
        second_object_id: str,
        first_role: str = "source",
        second_role: str = "target",
    ) -> FactType:
        return self.add_fact_type(
            [first_object_id, second_object_id], name=name, role_names=[first_role, second_role]
        )

    def specialize(self, child_id: str, parent_id: str) -> Entity:
        """Declare ``child_id`` a subtype of ``parent_id``; both must be entities."""
        if child_id not in self.schema.entities or parent_id not in self.schema.entities:
            raise KeyError(f"Specialization needs two entities, got '{child_id}' and '{parent_id}'")
        child = self.schema.entities[child_id]
        if parent_id not in child.specialization_of:
            child.specialization_of.append(parent_id)
        return child

    def objectify(
        self, fact_type_id: str, name: Optional[str] = None, id: Optional[str] = None
    ) -> Entity:
        """Create the entity standing for a fact type and link both directions."""
        if fact_type_id not in self.schema.fact_types:
            raise KeyError(f"Fact type '{fact_type_id}' not found in schema '{self.schema.name}'")
        fact_type = self.schema.fact_types[fact_type_id]
        entity = self.add_entity(name or fact_type.name, id=id)
        entity.objectified_fact_type_id = fact_type_id
        fact_type.is_objectified = True
        fact_type.objectified_as_id = entity.id
        return entity

    # Constraints

    def add_unique(
        self,
        predicator_ids: Sequence[str],
        name: Optional[str] = None,
        is_primary: Optional[bool] = None,
        id: Optional[str] = None,
    ) -> UniqueConstraint:
        """
        Add a uniqueness constraint and attach it as an identifier of its owner.

        With ``is_primary=None`` the first identifier of an entity becomes
        primary.
        """
        if not predicator_ids:
            raise ValueError("A uniqueness constraint needs at least one predicator")
        for pid in predicator_ids:
            self._require_predicator(pid)
        constraint = UniqueConstraint(
            id=id or self._new_id("unique"),
            name=name or "Unique Constraint",
            predicator_ids=list(predicator_ids),
        )
        self.schema.unique_constraints[constraint.id] = constraint
        self.schema.attach_identifier(constraint, is_primary)
        return constraint

    def add_mandatory(self, predicator_id: str, name: Optional[str] = None) -> TotalRoleConstraint:
        predicator = self._require_predicator(predicator_id)
        predicator.is_optional = False
        constraint = TotalRoleConstraint(
            id=self._new_id("mandatory"),
            name=name or "Mandatory Constraint",
            predicator_id=predicator_id,
            object_id=predicator.object_id,
        )
        self.schema.total_role_constraints[constraint.id] = constraint
        return constraint

    def add_set_constraint(
        self,
        kind: SetConstraintKind,
        source_predicator_ids: Sequence[str],
        target_predicator_ids: Sequence[str],
        name: Optional[str] = None,
    ) -> SetConstraint:
        for pid in [*source_predicator_ids, *target_predicator_ids]:
            self._require_predicator(pid)
        constraint = SetConstraint(
            id=self._new_id("set"),
            name=name or f"{kind} Constraint",
            kind=kind,
            source_predicator_ids=list(source_predicator_ids),
            target_predicator_ids=list(target_predicator_ids),
        )
        self.schema.set_constraints[constraint.id] = constraint
        return constraint

    def add_cardinality(
        self,
        predicator_id: str,
        min: Optional[int] = None,
        max: Optional[int] = None,
        name: Optional[str] = None,
    ) -> CardinalityConstraint:
        self._require_predicator(predicator_id)
        constraint = CardinalityConstraint(
            id=self._new_id("cardinality"),
            name=name or "Cardinality Constraint",
            predicator_id=predicator_id,
            min=min,
            max=max,
        )
        self.schema.cardinality_constraints[constraint.id] = constraint
        return constraint

    def add_frequency(
        self,
        fact_type_id: str,
        min: Optional[int] = None,
        max: Optional[int] = None,
        name: Optional[str] = None,
    ) -> FrequencyConstraint:
        if fact_type_id not in self.schema.fact_types:
            raise KeyError(f"Fact type '{fact_type_id}' not found in schema '{self.schema.name}'")
        constraint = FrequencyConstraint(
            id=self._new_id("frequency"),
            name=name or "Frequency Constraint",
            fact_type_id=fact_type_id,
            min=min,
            max=max,
        )
        self.schema.frequency_constraints[constraint.id] = constraint
        return constraint

    def add_enumeration(
        self, label_type_id: str, allowed_values: Sequence[Any], name: Optional[str] = None
    ) -> EnumerationConstraint:
        if label_type_id not in self.schema.label_types:
            raise KeyError(f"Label type '{label_type_id}' not found in schema '{self.schema.name}'")
        constraint = EnumerationConstraint(
            id=self._new_id("enumeration"),
            name=name or "Enumeration Constraint",
            label_type_id=label_type_id,
            allowed_values=list(allowed_values),
        )
        self.schema.enumeration_constraints[constraint.id] = constraint
        return constraint

    def add_custom(
        self,
        kind: str,
        applies_to: Sequence[str],
        name: Optional[str] = None,
        description: str = "",
        parameters: Optional[Dict[str, Any]] = None,
    ) -> CustomConstraint:
        constraint = CustomConstraint(
            id=self._new_id("custom"),
            name=name or f"{kind}({', '.join(applies_to)})",
            kind=kind,
            description=description,
            applies_to=list(applies_to),
            parameters=parameters or {},
        )
        self.schema.custom_constraints[constraint.id] = constraint
        return constraint

    # Removal

    def remove_object(self, object_id: str) -> None:
        """Remove an object and every predicator based on it."""
        self._require_object(object_id)
        for mapping in (
            self.schema.entities,
            self.schema.label_types,
            self.schema.power_types,
            self.schema.sequence_types,
        ):
            mapping.pop(object_id, None)

        played = [p for p in self.schema.predicators.values() if p.object_id == object_id]
        for predicator in played:
            del self.schema.predicators[predicator.id]
            fact_type = self.schema.fact_types.get(predicator.fact_type_id)
            if fact_type is not None and predicator.id in fact_type.predicators:
                fact_type.predicators.remove(predicator.id)
                for position, pid in enumerate(fact_type.predicators):
                    if pid in self.schema.predicators:
                        self.schema.predicators[pid].position = position
        logger.debug(f"Removed object '{object_id}' and {len(played)} predicators")

    def remove_fact_type(self, fact_type_id: str) -> None:
        """Remove a fact type with its predicators and unlink its objectification."""
        fact_type = self.schema.fact_types.pop(fact_type_id, None)
        if fact_type is None:
            raise KeyError(f"Fact type '{fact_type_id}' not found in schema '{self.schema.name}'")
        for pid in fact_type.predicators:
            self.schema.predicators.pop(pid, None)
        for entity in self.schema.entities.values():
            if entity.objectified_fact_type_id == fact_type_id:
                entity.objectified_fact_type_id = None

    def remove_constraint(self, constraint_id: str) -> None:
        """
        Remove a constraint of any category.

        A removed identifier is detached from its entity; removing the last
        mandatory constraint on a predicator makes it optional again.
        """
        for constraints in self.schema.constraint_maps().values():
            if constraint_id in constraints:
                removed = constraints.pop(constraint_id)
                break
        else:
            raise KeyError(f"Constraint '{constraint_id}' not found in schema '{self.schema.name}'")

        for entity in self.schema.entities.values():
            if constraint_id in entity.identifiers:
                entity.identifiers.remove(constraint_id)

        if isinstance(removed, TotalRoleConstraint):
            still_mandatory = any(
                c.predicator_id == removed.predicator_id
                for c in self.schema.total_role_constraints.values()
            )
            predicator = self.schema.predicators.get(removed.predicator_id)
            if predicator is not None and not still_mandatory:
                predicator.is_optional = True
