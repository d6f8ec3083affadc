"""DDL text rendering for the relational IR."""

import re
from typing import Any, List, Optional
from mathgraph.ir.logical import SqlIndex, SqlSchema, SqlTable

_INVALID_CHARS = re.compile(r"[^a-z0-9_]")


def sanitize_name(name: str) -> str:
    """
    Turn an arbitrary element name into a SQL identifier.

    Lowercases, strips surrounding whitespace and replaces every character
    outside ``[a-z0-9_]`` with an underscore. The result is idempotent:
    ``sanitize_name(sanitize_name(x)) == sanitize_name(x)``.
    """
    cleaned = _INVALID_CHARS.sub("_", (name or "").strip().lower())
    return cleaned or "unnamed"


def render_literal(value: Any, dialect: Optional[str] = None) -> str:
    """SQL literal for a CHECK value list entry; booleans become 1/0 on SQL Server and SQLite."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        if dialect in ("SQL Server", "SQLite"):
            return "1" if value else "0"
        return "TRUE" if value else "FALSE"
    if isinstance(value, str):
        return "'" + value.replace("'", "''") + "'"
    return str(value)


def _columns(names: List[str]) -> str:
    return ", ".join(sanitize_name(n) for n in names)


def render_table(table: SqlTable) -> str:
    """Render one CREATE TABLE statement."""
    lines: List[str] = []

    for col in table.columns:
        definition = f"  {sanitize_name(col.name)} {col.data_type}"
        if not col.nullable:
            definition += " NOT NULL"
        if col.default is not None:
            definition += f" DEFAULT {col.default}"
        if col.unique and not col.primary_key:
            definition += " UNIQUE"
        lines.append(definition)

    if table.primary_key:
        lines.append(f"  PRIMARY KEY ({_columns(table.primary_key)})")

    for unique in table.unique_constraints:
        lines.append(f"  UNIQUE ({_columns(unique)})")

    for fk in table.foreign_keys:
        definition = (
            f"  CONSTRAINT {sanitize_name(fk.name)} FOREIGN KEY ({_columns(fk.columns)}) "
            f"REFERENCES {sanitize_name(fk.ref_table)}({_columns(fk.ref_columns)})"
        )
        if fk.on_delete:
            definition += f" ON DELETE {fk.on_delete}"
        if fk.on_update:
            definition += f" ON UPDATE {fk.on_update}"
        lines.append(definition)

    for check in table.check_constraints:
        lines.append(f"  CONSTRAINT {sanitize_name(check.name)} CHECK ({check.expression})")

    return f"CREATE TABLE {sanitize_name(table.name)} (\n" + ",\n".join(lines) + "\n);"


def render_index(index: SqlIndex) -> str:
    unique = "UNIQUE " if index.unique else ""
    return (
        f"CREATE {unique}INDEX {sanitize_name(index.name)} "
        f"ON {sanitize_name(index.table)} ({_columns(index.columns)});"
    )


def render_ddl(sql_schema: SqlSchema) -> str:
    """Render tables, then indexes, separated by blank lines."""
    statements = [render_table(table) for table in sql_schema.tables]
    statements.extend(render_index(index) for index in sql_schema.indexes)
    return "\n\n".join(statements)
