"""Information schema model: objects, fact types, predicators and the schema aggregate."""

from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field
from .constraint_ir import (
    CardinalityConstraint,
    CustomConstraint,
    EnumerationConstraint,
    FrequencyConstraint,
    SetConstraint,
    TotalRoleConstraint,
    UniqueConstraint,
)

DataType = Literal["String", "Integer", "Decimal", "Boolean", "Date", "DateTime"]

DATA_TYPES: List[str] = ["String", "Integer", "Decimal", "Boolean", "Date", "DateTime"]


class Entity(BaseModel):
    """An independently identified object type."""

    id: str
    name: str
    kind: Literal["Entity"] = "Entity"
    identifiers: List[str] = Field(default_factory=list)  # UniqueConstraint ids
    specialization_of: List[str] = Field(default_factory=list)  # parent entity ids
    objectified_fact_type_id: Optional[str] = None
    is_abstract: bool = False


class LabelType(BaseModel):
    """A scalar value type, optionally restricted."""

    id: str
    name: str
    kind: Literal["Label"] = "Label"
    data_type: DataType = "String"
    enumeration: Optional[List[Any]] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    pattern: Optional[str] = None


class PowerType(BaseModel):
    """Sets of instances of a member entity type."""

    id: str
    name: str
    kind: Literal["Power"] = "Power"
    element_type_id: str = ""


class SequenceType(BaseModel):
    """Ordered collections of a member entity type."""

    id: str
    name: str
    kind: Literal["Sequence"] = "Sequence"
    element_type_id: str = ""
    is_ordered: bool = True
    allows_duplicates: bool = False


ObjectType = Union[Entity, LabelType, PowerType, SequenceType]


class Predicator(BaseModel):
    """One role within exactly one fact type, based on one object (Base: P -> O)."""

    id: str
    name: str = "unnamed_role"
    fact_type_id: str
    position: int = 0
    object_id: str
    is_optional: bool = True


class FactType(BaseModel):
    """A relationship defined by an ordered list of predicator ids."""

    id: str
    name: str
    predicators: List[str] = Field(default_factory=list)
    is_objectified: bool = False
    objectified_as_id: Optional[str] = None

    @property
    def arity(self) -> int:
        return len(self.predicators)

    @property
    def is_unary(self) -> bool:
        return self.arity == 1


class InformationSchema(BaseModel):
    """Aggregate root of the information model.

    Every mapping is keyed by element id. Insertion order is kept so that
    derived output (tables, violations) is deterministic.
    """

    id: str
    name: str
    version: str = "1.0.0"

    entities: Dict[str, Entity] = Field(default_factory=dict)
    label_types: Dict[str, LabelType] = Field(default_factory=dict)
    power_types: Dict[str, PowerType] = Field(default_factory=dict)
    sequence_types: Dict[str, SequenceType] = Field(default_factory=dict)
    fact_types: Dict[str, FactType] = Field(default_factory=dict)
    predicators: Dict[str, Predicator] = Field(default_factory=dict)

    unique_constraints: Dict[str, UniqueConstraint] = Field(default_factory=dict)
    total_role_constraints: Dict[str, TotalRoleConstraint] = Field(default_factory=dict)
    set_constraints: Dict[str, SetConstraint] = Field(default_factory=dict)
    cardinality_constraints: Dict[str, CardinalityConstraint] = Field(default_factory=dict)
    frequency_constraints: Dict[str, FrequencyConstraint] = Field(default_factory=dict)
    enumeration_constraints: Dict[str, EnumerationConstraint] = Field(default_factory=dict)
    custom_constraints: Dict[str, CustomConstraint] = Field(default_factory=dict)

    @property
    def objects(self) -> Dict[str, ObjectType]:
        """All object types keyed by id."""
        merged: Dict[str, ObjectType] = {}
        merged.update(self.entities)
        merged.update(self.label_types)
        merged.update(self.power_types)
        merged.update(self.sequence_types)
        return merged

    def get_object(self, object_id: str) -> Optional[ObjectType]:
        for mapping in (self.entities, self.label_types, self.power_types, self.sequence_types):
            if object_id in mapping:
                return mapping[object_id]
        return None

    def constraint_maps(self) -> Dict[str, Dict[str, BaseModel]]:
        """Constraint mappings keyed by their category name."""
        return {
            "Uniqueness": self.unique_constraints,
            "TotalRole": self.total_role_constraints,
            "SetConstraint": self.set_constraints,
            "Cardinality": self.cardinality_constraints,
            "Frequency": self.frequency_constraints,
            "Enumeration": self.enumeration_constraints,
            "Custom": self.custom_constraints,
        }

    def fact_type_predicators(self, fact_type: FactType) -> List[Predicator]:
        """Resolved predicators of a fact type, in position order; unresolved ids are dropped."""
        return [self.predicators[pid] for pid in fact_type.predicators if pid in self.predicators]

    def identifiers_of(self, entity: Entity) -> List[UniqueConstraint]:
        return [
            self.unique_constraints[cid]
            for cid in entity.identifiers
            if cid in self.unique_constraints
        ]

    def primary_identifier(self, entity: Entity) -> Optional[UniqueConstraint]:
        for identifier in self.identifiers_of(entity):
            if identifier.is_primary:
                return identifier
        return None

    def attach_identifier(
        self, constraint: UniqueConstraint, is_primary: Optional[bool] = None
    ) -> Optional[Entity]:
        """
        Register a uniqueness constraint as an identifier of its owning entity.

        The owner is found through the constraint's first predicator. With
        ``is_primary=None`` the first identifier of an entity becomes primary;
        an explicit ``True`` demotes any existing primary and ``False`` never
        promotes.

        Returns:
            The owning Entity, or None when the owner does not resolve
        """
        if not constraint.predicator_ids:
            return None
        first = self.predicators.get(constraint.predicator_ids[0])
        if first is None:
            return None
        entity = self.entities.get(first.object_id)
        if entity is None:
            return None

        if constraint.id not in entity.identifiers:
            entity.identifiers.append(constraint.id)

        if is_primary:
            for other in self.identifiers_of(entity):
                other.is_primary = False
                other.is_preferred = False
            constraint.is_primary = True
            constraint.is_preferred = True
        elif is_primary is None and self.primary_identifier(entity) is None:
            constraint.is_primary = True
            constraint.is_preferred = True
        return entity
