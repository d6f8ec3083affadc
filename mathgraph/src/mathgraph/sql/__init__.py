"""Relational schema and DDL generation."""

from .dialects import DIALECTS, SQL_TYPE_MAPPING, resolve_dialect, sql_type
from .ddl import render_ddl, sanitize_name
from .generator import SqlGenerator, export_to_sql

__all__ = [
    "DIALECTS",
    "SQL_TYPE_MAPPING",
    "resolve_dialect",
    "sql_type",
    "render_ddl",
    "sanitize_name",
    "SqlGenerator",
    "export_to_sql",
]
