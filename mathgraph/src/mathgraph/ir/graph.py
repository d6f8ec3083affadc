"""Visual graph models consumed by the schema converter.

Field names follow the canvas JSON export (camelCase); snake_case names are
accepted too.
"""

from typing import Any, List, Literal, Optional, Union
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

NODE_KINDS = ["entity", "factType", "labelType", "powerType", "sequenceType", "objectified"]
EDGE_KINDS = ["predicator", "generalization", "specialization"]


class _GraphModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GraphNode(_GraphModel):
    """A canvas node; ``kind`` is kept as a free string so unknown kinds can be skipped."""

    id: str
    kind: str = Field(validation_alias=AliasChoices("kind", "type"))
    label: str = ""
    data_type: Optional[str] = None
    arity: Optional[int] = None
    member_entity_id: Optional[str] = None
    objectified_fact_id: Optional[str] = None


class GraphEdge(_GraphModel):
    """A canvas edge between two nodes."""

    id: str
    kind: str = Field(validation_alias=AliasChoices("kind", "type"))
    source_node_id: str
    target_node_id: str
    label: str = ""
    position: Optional[int] = None  # explicit role position within its fact type


class ConstraintParameters(_GraphModel):
    min: Optional[int] = None
    max: Optional[Union[int, Literal["infinity"]]] = None
    values: Optional[List[Any]] = None
    n: Optional[int] = None
    m: Optional[int] = None


class GraphConstraint(_GraphModel):
    """A constraint annotation drawn on the canvas."""

    id: str
    kind: str = Field(validation_alias=AliasChoices("kind", "type"))
    name: Optional[str] = None
    applies_to: List[str] = Field(default_factory=list)
    predicator_ids: Optional[List[str]] = None
    source_predicator_ids: Optional[List[str]] = None
    target_predicator_ids: Optional[List[str]] = None
    is_primary: Optional[bool] = None
    parameters: Optional[ConstraintParameters] = None


class VisualGraph(_GraphModel):
    """Nodes, edges and constraint annotations, in canvas insertion order."""

    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[GraphEdge] = Field(default_factory=list)
    constraints: List[GraphConstraint] = Field(default_factory=list)
