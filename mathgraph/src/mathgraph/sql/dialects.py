"""Per-dialect scalar type mappings and identity column syntax."""

from typing import Dict, List
from mathgraph.ir.logical import Dialect

DIALECTS: List[str] = ["PostgreSQL", "MySQL", "SQLite", "SQL Server"]

SQL_TYPE_MAPPING: Dict[str, Dict[str, str]] = {
    "PostgreSQL": {
        "String": "VARCHAR(255)",
        "Integer": "INTEGER",
        "Decimal": "NUMERIC(10,2)",
        "Boolean": "BOOLEAN",
        "Date": "DATE",
        "DateTime": "TIMESTAMP",
    },
    "MySQL": {
        "String": "VARCHAR(255)",
        "Integer": "INT",
        "Decimal": "DECIMAL(10,2)",
        "Boolean": "BOOLEAN",
        "Date": "DATE",
        "DateTime": "DATETIME",
    },
    "SQLite": {
        "String": "TEXT",
        "Integer": "INTEGER",
        "Decimal": "REAL",
        "Boolean": "INTEGER",  # 0/1
        "Date": "TEXT",
        "DateTime": "TEXT",
    },
    "SQL Server": {
        "String": "NVARCHAR(255)",
        "Integer": "INT",
        "Decimal": "DECIMAL(10,2)",
        "Boolean": "BIT",
        "Date": "DATE",
        "DateTime": "DATETIME2",
    },
}

AUTO_INCREMENT_TYPES: Dict[str, str] = {
    "PostgreSQL": "SERIAL",
    "MySQL": "INT AUTO_INCREMENT",
    "SQLite": "INTEGER",  # INTEGER PRIMARY KEY aliases the rowid
    "SQL Server": "INT IDENTITY(1,1)",
}

_DIALECT_ALIASES: Dict[str, str] = {
    "postgresql": "PostgreSQL",
    "postgres": "PostgreSQL",
    "pg": "PostgreSQL",
    "mysql": "MySQL",
    "sqlite": "SQLite",
    "sqlite3": "SQLite",
    "sql server": "SQL Server",
    "sqlserver": "SQL Server",
    "sql_server": "SQL Server",
    "mssql": "SQL Server",
}


def resolve_dialect(name: str) -> Dialect:
    """
    Resolve a dialect name or alias (case-insensitive) to its canonical name.

    Raises:
        ValueError: If the dialect is not supported
    """
    key = name.strip().lower()
    if key not in _DIALECT_ALIASES:
        available = ", ".join(DIALECTS)
        raise ValueError(f"Unsupported SQL dialect '{name}'. Supported dialects: {available}")
    return _DIALECT_ALIASES[key]  # type: ignore[return-value]


def sql_type(dialect: str, data_type: str) -> str:
    """Native type for an abstract data type; unknown types map like String."""
    mapping = SQL_TYPE_MAPPING[dialect]
    return mapping.get(data_type, mapping["String"])


def auto_increment_type(dialect: str) -> str:
    return AUTO_INCREMENT_TYPES[dialect]
