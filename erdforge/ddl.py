"""
Render the canonical model into a dialect-specific SQL script.

Order: header comment block, then per table (model order) its comment lines,
CREATE TABLE and optional table-comment statement, then the foreign key block.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from .dialects import DialectAdapter, get_adapter
from .model import Relationship, Table

logger = logging.getLogger(__name__)


def _is_set(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def build_create_table(table: Table, adapter: DialectAdapter) -> List[str]:
    lines = [f"-- Table: {table.name}"]
    if _is_set(table.comment):
        lines.append(f"-- Comment: {table.comment}")
    lines.append(f"CREATE TABLE {adapter.format_table(table.name)} (")

    columns = list(table.columns)
    primary_keys = [c for c in columns if c.is_primary_key]
    for index, column in enumerate(columns):
        line = f"    {adapter.format_column(column.name)} {adapter.map_type(column.data_type)}"
        if not column.is_nullable:
            line += " NOT NULL"
        if _is_set(column.default_value):
            line += f" DEFAULT {column.default_value}"
        # comma goes before the inline comment; the PK constraint counts as a following line
        if index < len(columns) - 1 or primary_keys:
            line += ","
        if _is_set(column.comment):
            line += f" -- {column.comment}"
        lines.append(line)

    if primary_keys:
        pk_columns = ", ".join(adapter.format_column(c.name) for c in primary_keys)
        lines.append(f"    CONSTRAINT PK_{table.name} PRIMARY KEY ({pk_columns})")

    lines.append(");")
    lines.append("")
    if _is_set(table.comment):
        lines.append(adapter.table_comment_statement(table.name, table.comment))
    return lines


def build_foreign_keys(
    tables: List[Table], relationships: List[Relationship], adapter: DialectAdapter
) -> List[str]:
    if not relationships:
        return []
    by_id = {t.id: t for t in tables}
    lines = ["-- Foreign Key Constraints"]
    for rel in relationships:
        source = by_id.get(rel.source_table_id)
        target = by_id.get(rel.target_table_id)
        if source is None or target is None:
            logger.debug("Skipping relationship %s: table id not resolved", rel.id)
            continue
        lines.append(
            f"ALTER TABLE {adapter.format_table(target.name)} "
            f"ADD CONSTRAINT FK_{target.name}_{source.name} "
            f"FOREIGN KEY ({adapter.format_column(rel.target_column_name)}) "
            f"REFERENCES {adapter.format_table(source.name)}({adapter.format_column(rel.source_column_name)});"
        )
    lines.append("")
    return lines


def generate_ddl(
    tables: Iterable[Table],
    relationships: Iterable[Relationship],
    dialect: str,
    database_name: str,
    generated_at: Optional[datetime] = None,
) -> str:
    """Return the full SQL script for the given tables and relationships.

    Raises:
        UnsupportedDialectError: dialect is not MySQL, PostgreSQL, Oracle or Tibero.
    """
    adapter = get_adapter(dialect)
    tables = list(tables)
    relationships = list(relationships)
    stamp = (generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")

    parts = [
        f"-- ERD: {database_name}",
        f"-- Database: {adapter.name}",
        f"-- Generated: {stamp}",
        "",
    ]
    for table in tables:
        parts.extend(build_create_table(table, adapter))
    parts.extend(build_foreign_keys(tables, relationships, adapter))
    return "\n".join(parts) + "\n"


def generate_model_ddl(model, dialect: str, generated_at: Optional[datetime] = None) -> str:
    return generate_ddl(
        model.tables, model.relationships, dialect, model.database_name, generated_at=generated_at
    )
