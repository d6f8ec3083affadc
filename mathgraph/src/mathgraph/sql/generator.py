"""Information schema to relational schema lowering.

Table derivation, in order:

1. Every entity becomes a table.
2. Every objectified fact type gets its own table, named after the fact
   type, with a surrogate ``id`` and one reference column per role.
3. A remaining fact type gets a junction table when its arity is above two
   or when it is binary and no entity can host it as a column.

A binary fact type is hosted by the entity playing role ``p`` when the
partner role ``q`` carries a single-predicator uniqueness constraint, or
when ``p`` does and ``q`` is played by a non-entity object. With both roles
unique the lower position role wins.

An entity without a primary identifier of its own that specializes a
naturally keyed parent takes over the parent's key columns.
"""

from typing import Dict, List, NamedTuple, Optional, Set, Tuple
from mathgraph.config.logging import get_logger
from mathgraph.config.settings import get_settings
from mathgraph.ir.conceptual import (
    Entity,
    FactType,
    InformationSchema,
    LabelType,
    ObjectType,
    Predicator,
)
from mathgraph.ir.logical import (
    ColumnReference,
    SqlCheckConstraint,
    SqlColumn,
    SqlForeignKey,
    SqlIndex,
    SqlSchema,
    SqlTable,
)
from .ddl import render_ddl, render_literal, sanitize_name
from .dialects import auto_increment_type, resolve_dialect, sql_type

logger = get_logger(__name__)

# (referenced table, referenced columns) of a role column group
Reference = Tuple[str, List[str]]


class _Key(NamedTuple):
    columns: List[Tuple[str, str]]  # (column name, referencing type)
    natural: bool
    inherited_from: Optional[str] = None  # parent entity id


class _NameSet:
    """Column names claimed within one table; repeats get a numeric suffix."""

    def __init__(self):
        self.used: Set[str] = set()

    def claim(self, name: str) -> str:
        candidate = name
        suffix = 2
        while candidate in self.used:
            candidate = f"{name}_{suffix}"
            suffix += 1
        self.used.add(candidate)
        return candidate


def _number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


class _Lowering:
    """Per-call state for lowering one schema."""

    def __init__(self, schema: InformationSchema, dialect: str):
        self.schema = schema
        self.dialect = dialect
        self._keys: Dict[str, _Key] = {}
        self._resolving: Set[str] = set()
        self._hosts: Dict[str, Optional[Tuple[Predicator, Predicator]]] = {}

        self.unique_single: Set[str] = {
            uc.predicator_ids[0]
            for uc in schema.unique_constraints.values()
            if len(uc.predicator_ids) == 1
        }

        # Objectification may also be recorded on the entity side only
        self.objectified: Set[str] = {
            entity.objectified_fact_type_id
            for entity in schema.entities.values()
            if entity.objectified_fact_type_id in schema.fact_types
        }

        self.fact_tables = [ft for ft in schema.fact_types.values() if self._is_objectified(ft)]
        self.junctions = [ft for ft in schema.fact_types.values() if self._needs_junction(ft)]

        names = _NameSet()
        self.table_names: Dict[str, str] = {}
        for element in [*schema.entities.values(), *self.fact_tables, *self.junctions]:
            self.table_names[element.id] = names.claim(sanitize_name(element.name))

    # Placement

    def _is_objectified(self, fact_type: FactType) -> bool:
        return fact_type.is_objectified or fact_type.id in self.objectified

    def host(self, fact_type: FactType) -> Optional[Tuple[Predicator, Predicator]]:
        """(hosting role, referenced role) of a column-representable binary fact type."""
        if fact_type.id in self._hosts:
            return self._hosts[fact_type.id]

        result = None
        roles = self.schema.fact_type_predicators(fact_type)
        if fact_type.arity == 2 and len(roles) == 2 and not self._is_objectified(fact_type):
            first, second = roles
            entities = self.schema.entities
            for p, q in ((first, second), (second, first)):
                if p.object_id not in entities:
                    continue
                if q.id in self.unique_single or (
                    p.id in self.unique_single and q.object_id not in entities
                ):
                    result = (p, q)
                    break
        self._hosts[fact_type.id] = result
        return result

    def _needs_junction(self, fact_type: FactType) -> bool:
        if self._is_objectified(fact_type):
            return False
        roles = self.schema.fact_type_predicators(fact_type)
        if fact_type.arity != len(roles) or len(roles) < 2:
            return False
        if len(roles) > 2:
            return True
        return self.host(fact_type) is None

    # Keys and role columns

    def surrogate(self) -> _Key:
        return _Key([("id", sql_type(self.dialect, "Integer"))], natural=False)

    def entity_key(self, entity: Entity) -> _Key:
        """Primary key columns of an entity's table, as seen by referencing tables."""
        if entity.id in self._keys:
            return self._keys[entity.id]
        if entity.id in self._resolving:
            logger.debug(f"Cyclic identification through '{entity.id}'; using surrogate key")
            return self.surrogate()

        self._resolving.add(entity.id)
        try:
            key = self.surrogate()
            primary = self.schema.primary_identifier(entity)
            if primary is not None:
                names = _NameSet()
                columns: List[Tuple[str, str]] = []
                for pid in dict.fromkeys(primary.predicator_ids):
                    role_columns, _ = self.role_columns(entity, pid)
                    columns.extend((names.claim(c.name), c.data_type) for c in role_columns)
                if columns:
                    key = _Key(columns, natural=True)

            if not key.natural:
                for parent_id in dict.fromkeys(entity.specialization_of):
                    parent = self.schema.entities.get(parent_id)
                    if parent is None or parent.id == entity.id:
                        continue
                    parent_key = self.entity_key(parent)
                    if parent_key.natural or parent_key.inherited_from is not None:
                        key = _Key(parent_key.columns, natural=False, inherited_from=parent.id)
                        break
        finally:
            self._resolving.discard(entity.id)

        self._keys[entity.id] = key
        return key

    def reference(
        self, role_name: str, target: ObjectType, nullable: bool, source_ids: List[str]
    ) -> Tuple[List[SqlColumn], Optional[Reference]]:
        """Columns holding a value of ``target`` under a role name."""
        base = sanitize_name(role_name)

        if isinstance(target, Entity):
            key = self.entity_key(target)
            table = self.table_names[target.id]
            columns = []
            for key_name, key_type in key.columns:
                columns.append(
                    SqlColumn(
                        name=base if len(key.columns) == 1 else f"{base}_{key_name}",
                        data_type=key_type,
                        nullable=nullable,
                        references=ColumnReference(table=table, column=key_name),
                        source_predicator_ids=list(source_ids),
                        source_object_id=target.id,
                    )
                )
            return columns, (table, [name for name, _ in key.columns])

        data_type = target.data_type if isinstance(target, LabelType) else "Integer"
        column = SqlColumn(
            name=base,
            data_type=sql_type(self.dialect, data_type),
            nullable=nullable,
            source_predicator_ids=list(source_ids),
            source_object_id=target.id,
        )
        return [column], None

    def role_columns(
        self, entity: Entity, predicator_id: str
    ) -> Tuple[List[SqlColumn], Optional[Reference]]:
        """Columns contributed to an entity's table by one of its roles."""
        predicator = self.schema.predicators.get(predicator_id)
        if predicator is None or predicator.object_id != entity.id:
            return [], None
        fact_type = self.schema.fact_types.get(predicator.fact_type_id)
        if fact_type is None or self._is_objectified(fact_type):
            return [], None

        if fact_type.is_unary:
            column = SqlColumn(
                name=sanitize_name(fact_type.name),
                data_type=sql_type(self.dialect, "Boolean"),
                nullable=predicator.is_optional,
                source_predicator_ids=[predicator.id],
            )
            return [column], None

        host = self.host(fact_type)
        if host is None or host[0].id != predicator.id:
            return [], None
        partner = host[1]
        target = self.schema.get_object(partner.object_id)
        if target is None:
            return [], None
        return self.reference(
            partner.name, target, predicator.is_optional, [predicator.id, partner.id]
        )

    # Tables

    def entity_table(self, entity: Entity) -> SqlTable:
        table_name = self.table_names[entity.id]
        names = _NameSet()
        columns: List[SqlColumn] = []
        foreign_keys: List[SqlForeignKey] = []
        by_role: Dict[str, List[str]] = {}

        def add(pid: str, role_columns: List[SqlColumn], ref: Optional[Reference]) -> None:
            for column in role_columns:
                column.name = names.claim(column.name)
                columns.append(column)
            by_role[pid] = [c.name for c in role_columns]
            if ref is not None and role_columns:
                foreign_keys.append(
                    self.foreign_key(table_name, [c.name for c in role_columns], ref, "RESTRICT")
                )

        key = self.entity_key(entity)
        primary = self.schema.primary_identifier(entity)
        key_roles = list(dict.fromkeys(primary.predicator_ids)) if key.natural else []
        if key.natural:
            for pid in key_roles:
                add(pid, *self.role_columns(entity, pid))
        elif key.inherited_from is not None:
            for key_name, key_type in key.columns:
                columns.append(
                    SqlColumn(
                        name=names.claim(key_name),
                        data_type=key_type,
                        nullable=False,
                        primary_key=True,
                    )
                )
        else:
            columns.append(self.surrogate_column())
            names.claim("id")

        for predicator in self.schema.predicators.values():
            if predicator.object_id == entity.id and predicator.id not in by_role:
                add(predicator.id, *self.role_columns(entity, predicator.id))

        primary_key = ["id"]
        if key.inherited_from is not None:
            primary_key = [name for name, _ in key.columns]
        elif key.natural:
            primary_key = [name for pid in key_roles for name in by_role.get(pid, [])]
            for column in columns:
                if column.name in primary_key:
                    column.primary_key = True
                    column.nullable = False

        unique_constraints: List[List[str]] = []
        for identifier in self.schema.identifiers_of(entity):
            if key.natural and identifier.id == primary.id:
                continue
            cols = list(dict.fromkeys(
                name for pid in identifier.predicator_ids for name in by_role.get(pid, [])
            ))
            if cols and cols != primary_key and cols not in unique_constraints:
                unique_constraints.append(cols)

        for parent_id in dict.fromkeys(entity.specialization_of):
            parent = self.schema.entities.get(parent_id)
            if parent is None:
                logger.debug(f"Skipping specialization of '{entity.id}': parent '{parent_id}' not found")
                continue
            parent_key = self.entity_key(parent).columns
            if len(parent_key) != len(primary_key):
                logger.warning(
                    f"Skipping specialization FK from '{table_name}' to "
                    f"'{self.table_names[parent.id]}': key arity mismatch"
                )
                continue
            if [t for _, t in parent_key] != [t for _, t in key.columns]:
                logger.warning(
                    f"Skipping specialization FK from '{table_name}' to "
                    f"'{self.table_names[parent.id]}': key type mismatch"
                )
                continue
            foreign_keys.append(
                SqlForeignKey(
                    name=f"fk_{table_name}_{self.table_names[parent.id]}",
                    columns=list(primary_key),
                    ref_table=self.table_names[parent.id],
                    ref_columns=[name for name, _ in parent_key],
                    on_delete="CASCADE",
                    on_update="CASCADE",
                )
            )

        return SqlTable(
            name=table_name,
            kind="entity",
            source_id=entity.id,
            columns=columns,
            primary_key=primary_key,
            unique_constraints=unique_constraints,
            foreign_keys=foreign_keys,
            check_constraints=self.check_constraints(table_name, columns),
        )

    def fact_table(self, fact_type: FactType, junction: bool) -> SqlTable:
        """Table of an objectified fact type, or a junction table."""
        table_name = self.table_names[fact_type.id]
        names = _NameSet()
        columns: List[SqlColumn] = []
        foreign_keys: List[SqlForeignKey] = []

        if not junction:
            columns.append(self.surrogate_column())
            names.claim("id")

        for role in self.schema.fact_type_predicators(fact_type):
            target = self.schema.get_object(role.object_id)
            if target is None:
                logger.debug(f"Skipping role '{role.id}' of '{table_name}': object not found")
                continue
            nullable = False if junction else role.is_optional
            role_columns, ref = self.reference(role.name, target, nullable, [role.id])
            for column in role_columns:
                column.name = names.claim(column.name)
                columns.append(column)
            if ref is not None and role_columns:
                foreign_keys.append(
                    self.foreign_key(
                        table_name,
                        [c.name for c in role_columns],
                        ref,
                        "CASCADE" if junction else "RESTRICT",
                    )
                )

        return SqlTable(
            name=table_name,
            kind="junction" if junction else "objectified",
            source_id=fact_type.id,
            columns=columns,
            primary_key=[c.name for c in columns] if junction else ["id"],
            foreign_keys=foreign_keys,
            check_constraints=self.check_constraints(table_name, columns),
        )

    def surrogate_column(self) -> SqlColumn:
        return SqlColumn(
            name="id",
            data_type=auto_increment_type(self.dialect),
            nullable=False,
            primary_key=True,
            unique=True,
            auto_increment=True,
        )

    @staticmethod
    def foreign_key(table: str, columns: List[str], ref: Reference, on_delete: str) -> SqlForeignKey:
        return SqlForeignKey(
            name=f"fk_{table}_{'_'.join(columns)}",
            columns=columns,
            ref_table=ref[0],
            ref_columns=ref[1],
            on_delete=on_delete,
            on_update="CASCADE",
        )

    def check_constraints(self, table_name: str, columns: List[SqlColumn]) -> List[SqlCheckConstraint]:
        """Enumeration and range CHECKs for columns holding label values."""
        checks: List[SqlCheckConstraint] = []
        names = _NameSet()
        for column in columns:
            label = self.schema.label_types.get(column.source_object_id or "")
            if label is None:
                continue

            value_lists = [
                ec.allowed_values
                for ec in self.schema.enumeration_constraints.values()
                if ec.label_type_id == label.id and ec.allowed_values
            ] or ([label.enumeration] if label.enumeration else [])
            for allowed in value_lists:
                values = ", ".join(render_literal(v, self.dialect) for v in allowed)
                checks.append(
                    SqlCheckConstraint(
                        name=names.claim(f"chk_{table_name}_{column.name}_enum"),
                        expression=f"{column.name} IN ({values})",
                    )
                )

            bounds = []
            if label.min_value is not None:
                bounds.append(f"{column.name} >= {_number(label.min_value)}")
            if label.max_value is not None:
                bounds.append(f"{column.name} <= {_number(label.max_value)}")
            if bounds:
                checks.append(
                    SqlCheckConstraint(
                        name=f"chk_{table_name}_{column.name}_range",
                        expression=" AND ".join(bounds),
                    )
                )
        return checks


class SqlGenerator:
    """
    Lowers an information schema into a relational schema for one dialect.

    The generator holds only its dialect; every call works on fresh state,
    so one instance may be shared between threads.
    """

    def __init__(self, dialect: str = "PostgreSQL"):
        self.dialect = resolve_dialect(dialect)

    def generate_schema(self, schema: InformationSchema) -> SqlSchema:
        """
        Derive tables, keys, constraints and indexes from a schema.

        Tables follow schema insertion order: entity tables, then tables of
        objectified fact types, then junction tables.
        Unresolved references are omitted.
        """
        lowering = _Lowering(schema, self.dialect)

        tables = [lowering.entity_table(entity) for entity in schema.entities.values()]
        tables.extend(lowering.fact_table(ft, junction=False) for ft in lowering.fact_tables)
        tables.extend(lowering.fact_table(ft, junction=True) for ft in lowering.junctions)

        indexes: List[SqlIndex] = []
        seen: Set[Tuple[str, Tuple[str, ...]]] = set()
        for table in tables:
            for fk in table.foreign_keys:
                key = (table.name, tuple(fk.columns))
                if key in seen:
                    continue
                seen.add(key)
                indexes.append(
                    SqlIndex(
                        name=f"idx_{table.name}_{'_'.join(fk.columns)}",
                        table=table.name,
                        columns=list(fk.columns),
                    )
                )

        logger.info(
            f"Generated {len(tables)} tables and {len(indexes)} indexes "
            f"for schema '{schema.name}' ({self.dialect})"
        )
        return SqlSchema(dialect=self.dialect, tables=tables, indexes=indexes)

    def generate_ddl(self, sql_schema: SqlSchema) -> str:
        """CREATE TABLE statements followed by CREATE INDEX statements."""
        return render_ddl(sql_schema)


def export_to_sql(schema: InformationSchema, dialect: Optional[str] = None) -> str:
    """Generate DDL for a schema; the dialect defaults to the configured one."""
    generator = SqlGenerator(dialect or get_settings().default_dialect)
    return generator.generate_ddl(generator.generate_schema(schema))
