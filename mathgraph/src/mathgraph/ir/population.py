"""Population model: object instance sets and fact tuples."""

import json
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator


def _json_default(value: Any) -> Any:
    # numpy scalars (from CSV loading), dates and other opaque values
    if hasattr(value, "item"):
        return value.item()
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def _canonical(value: Any) -> Any:
    # 1 and 1.0 are the same instance value; True stays distinct from 1
    if isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, dict):
        return {key: _canonical(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canonical(item) for item in value]
    return value


def encode_value(value: Any) -> str:
    """Stable string encoding used for structural equality of instance values."""
    return json.dumps(_canonical(value), sort_keys=True, default=_json_default)


class Population(BaseModel):
    """
    Sample instance data validated against a schema.

    ``object_populations`` maps an object id to its instances (set semantics,
    structural equality). ``fact_populations`` maps a fact type id to its
    tuples, each a predicator id -> value mapping; a tuple may omit
    optional roles.
    """

    schema_id: Optional[str] = None
    object_populations: Dict[str, List[Any]] = Field(default_factory=dict)
    fact_populations: Dict[str, List[Dict[str, Any]]] = Field(default_factory=dict)

    @field_validator("object_populations")
    @classmethod
    def deduplicate_instances(cls, v: Dict[str, List[Any]]) -> Dict[str, List[Any]]:
        """Collapse structurally equal instances, keeping first occurrence order."""
        result: Dict[str, List[Any]] = {}
        for object_id, instances in v.items():
            seen = set()
            unique: List[Any] = []
            for instance in instances:
                key = encode_value(instance)
                if key not in seen:
                    seen.add(key)
                    unique.append(instance)
            result[object_id] = unique
        return result

    def instances(self, object_id: str) -> Optional[List[Any]]:
        return self.object_populations.get(object_id)

    def tuples(self, fact_type_id: str) -> Optional[List[Dict[str, Any]]]:
        return self.fact_populations.get(fact_type_id)

    def add_instance(self, object_id: str, instance: Any) -> None:
        instances = self.object_populations.setdefault(object_id, [])
        key = encode_value(instance)
        if all(encode_value(existing) != key for existing in instances):
            instances.append(instance)

    def add_tuple(self, fact_type_id: str, fact: Dict[str, Any]) -> None:
        self.fact_populations.setdefault(fact_type_id, []).append(dict(fact))

    def clear(self) -> None:
        self.object_populations = {}
        self.fact_populations = {}
