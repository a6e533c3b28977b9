"""PostgreSQL dialect adapter."""

from typing import Any, List

from sqlalchemy import text
from sqlalchemy.engine import URL

from ..model import Column
from .base import (
    BLOB,
    CLOB,
    DATE,
    NUMBER,
    NUMBER_PRECISION,
    NUMBER_SCALED,
    VARCHAR2,
    CatalogForeignKey,
    CatalogTable,
    DialectAdapter,
    render_type,
    text_or_empty,
)


class PostgresqlAdapter(DialectAdapter):
    """PostgreSQL dialect adapter. Imported identifiers are uppercased."""

    name = "PostgreSQL"

    TYPE_RULES = (
        (VARCHAR2, r"VARCHAR\g<args>"),
        (NUMBER, "INTEGER"),
        (NUMBER_SCALED, r"NUMERIC(\g<p>,\g<s>)"),
        (NUMBER_PRECISION, "INTEGER"),
        (CLOB, "TEXT"),
        (BLOB, "BYTEA"),
        (DATE, "TIMESTAMP"),
    )

    TABLES_SQL = """
        SELECT t.table_name,
               COALESCE(pg_catalog.obj_description(c.oid, 'pg_class'), '') AS table_comment
        FROM information_schema.tables t
        LEFT JOIN pg_catalog.pg_namespace n ON n.nspname = t.table_schema
        LEFT JOIN pg_catalog.pg_class c ON c.relname = t.table_name AND c.relnamespace = n.oid
        WHERE t.table_schema = :schema AND t.table_type = 'BASE TABLE'
        ORDER BY t.table_name
    """

    COLUMNS_SQL = """
        SELECT
            c.column_name,
            c.data_type,
            c.character_maximum_length,
            c.numeric_precision,
            c.numeric_scale,
            c.is_nullable,
            c.column_default,
            COALESCE(pgd.description, '') AS column_comment,
            CASE WHEN pk.column_name IS NOT NULL THEN true ELSE false END AS is_primary
        FROM information_schema.columns c
        LEFT JOIN pg_catalog.pg_statio_all_tables st
            ON st.relname = c.table_name AND st.schemaname = c.table_schema
        LEFT JOIN pg_catalog.pg_description pgd
            ON pgd.objoid = st.relid AND pgd.objsubid = c.ordinal_position
        LEFT JOIN (
            SELECT ku.table_name, ku.column_name
            FROM information_schema.table_constraints tc
            JOIN information_schema.key_column_usage ku
                ON tc.constraint_name = ku.constraint_name AND tc.table_schema = ku.table_schema
            WHERE tc.constraint_type = 'PRIMARY KEY' AND tc.table_schema = :schema
        ) pk ON pk.table_name = c.table_name AND pk.column_name = c.column_name
        WHERE c.table_schema = :schema AND c.table_name = :table
        ORDER BY c.ordinal_position
    """

    FOREIGN_KEYS_SQL = """
        SELECT
            kcu1.table_name AS target_table,
            kcu1.column_name AS target_column,
            kcu2.table_name AS source_table,
            kcu2.column_name AS source_column
        FROM information_schema.referential_constraints rc
        JOIN information_schema.key_column_usage kcu1
            ON kcu1.constraint_name = rc.constraint_name AND kcu1.constraint_schema = rc.constraint_schema
        JOIN information_schema.key_column_usage kcu2
            ON kcu2.constraint_name = rc.unique_constraint_name
            AND kcu2.constraint_schema = rc.unique_constraint_schema
            AND kcu2.ordinal_position = kcu1.position_in_unique_constraint
        WHERE rc.constraint_schema = :schema
        ORDER BY kcu1.table_name, rc.constraint_name, kcu1.ordinal_position
    """

    def quote_identifier(self, name: str) -> str:
        return '"' + str(name).replace('"', '""') + '"'

    def build_url(self, info: Any) -> URL:
        return URL.create(
            "postgresql+psycopg2",
            username=info.user_id or None,
            password=info.password or None,
            host=info.host,
            port=info.port,
            database=info.database or None,
        )

    def resolve_schema(self, info: Any) -> str:
        return (info.schema or "").strip() or "public"

    def normalize_name(self, name: str) -> str:
        return str(name).upper()

    def fetch_tables(self, session: Any, schema: str) -> List[CatalogTable]:
        rows = session.execute(text(self.TABLES_SQL), {"schema": schema}).fetchall()
        return [
            CatalogTable(self.normalize_name(r[0]), text_or_empty(r[1]), str(r[0]))
            for r in rows
        ]

    def fetch_columns(self, session: Any, schema: str, table_name: str) -> List[Column]:
        rows = session.execute(
            text(self.COLUMNS_SQL), {"schema": schema, "table": table_name}
        ).fetchall()
        columns = []
        for row in rows:
            data_type = render_type(str(row[1]).upper(), row[2], row[3], row[4])
            columns.append(
                Column(
                    self.normalize_name(row[0]),
                    data_type,
                    is_primary_key=bool(row[8]),
                    is_nullable=row[5] == "YES",
                    default_value=text_or_empty(row[6]),
                    comment=text_or_empty(row[7]),
                )
            )
        return columns

    def fetch_foreign_keys(self, session: Any, schema: str) -> List[CatalogForeignKey]:
        rows = session.execute(text(self.FOREIGN_KEYS_SQL), {"schema": schema}).fetchall()
        return [CatalogForeignKey(str(r[0]), str(r[1]), str(r[2]), str(r[3])) for r in rows]
