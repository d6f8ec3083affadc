"""Relational IR produced by the SQL generator."""

from typing import List, Literal, Optional
from pydantic import BaseModel, Field

Dialect = Literal["PostgreSQL", "MySQL", "SQLite", "SQL Server"]

ForeignKeyAction = Literal["CASCADE", "SET NULL", "RESTRICT", "NO ACTION"]


class ColumnReference(BaseModel):
    table: str
    column: str


class SqlColumn(BaseModel):
    """Specification for a table column."""

    name: str
    data_type: str  # native type for the generator's dialect
    nullable: bool = True
    primary_key: bool = False
    unique: bool = False
    auto_increment: bool = False
    default: Optional[str] = None
    references: Optional[ColumnReference] = None
    # Schema elements the column was derived from
    source_predicator_ids: List[str] = Field(default_factory=list)
    source_object_id: Optional[str] = None


class SqlForeignKey(BaseModel):
    """Specification for a foreign key constraint."""

    name: str
    columns: List[str]
    ref_table: str
    ref_columns: List[str]
    on_delete: Optional[ForeignKeyAction] = None
    on_update: Optional[ForeignKeyAction] = None


class SqlCheckConstraint(BaseModel):
    name: str
    expression: str


class SqlTable(BaseModel):
    """Specification for a database table."""

    name: str
    kind: Literal["entity", "objectified", "junction"] = "entity"
    source_id: Optional[str] = None  # entity or fact type id
    columns: List[SqlColumn] = Field(default_factory=list)
    primary_key: List[str] = Field(default_factory=list)
    unique_constraints: List[List[str]] = Field(default_factory=list)
    foreign_keys: List[SqlForeignKey] = Field(default_factory=list)
    check_constraints: List[SqlCheckConstraint] = Field(default_factory=list)

    def column(self, name: str) -> Optional[SqlColumn]:
        for col in self.columns:
            if col.name == name:
                return col
        return None


class SqlIndex(BaseModel):
    name: str
    table: str
    columns: List[str]
    unique: bool = False


class SqlSchema(BaseModel):
    """Relational schema for one dialect."""

    dialect: Dialect
    tables: List[SqlTable] = Field(default_factory=list)
    indexes: List[SqlIndex] = Field(default_factory=list)

    def table(self, name: str) -> Optional[SqlTable]:
        for table in self.tables:
            if table.name == name:
                return table
        return None
