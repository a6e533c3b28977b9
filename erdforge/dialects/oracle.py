"""Oracle dialect adapter."""

import re
from typing import Any, Dict, List

from sqlalchemy import text
from sqlalchemy.engine import URL

from ..model import Column
from .base import (
    CatalogForeignKey,
    CatalogTable,
    DialectAdapter,
    render_type,
    text_or_empty,
)

_CHARACTER_TYPES = ("VARCHAR2", "CHAR", "NVARCHAR2", "NCHAR")


class OracleAdapter(DialectAdapter):
    """Oracle dialect adapter. Identifiers are emitted uppercased and unquoted."""

    name = "Oracle"
    service_name = "ORCL"

    # Canonical types are already Oracle-flavored and pass through; these rules
    # pull MySQL/PostgreSQL-flavored input back toward Oracle syntax.
    TYPE_RULES = (
        (re.compile(r"VARCHAR(?P<args>\s*\(.*\))"), r"VARCHAR2\g<args>"),
        (re.compile(r"INT|INTEGER"), "NUMBER"),
        (
            re.compile(r"(?:DECIMAL|NUMERIC)\s*\(\s*(?P<p>\d+)\s*,\s*(?P<s>\d+)\s*\)"),
            r"NUMBER(\g<p>,\g<s>)",
        ),
        (re.compile(r"TEXT"), "CLOB"),
        (re.compile(r"DATETIME|TIMESTAMP"), "DATE"),
        (re.compile(r"BYTEA"), "BLOB"),
    )

    TABLES_SQL = """
        SELECT t.TABLE_NAME, c.COMMENTS
        FROM ALL_TABLES t
        LEFT JOIN ALL_TAB_COMMENTS c ON t.TABLE_NAME = c.TABLE_NAME AND t.OWNER = c.OWNER
        WHERE t.OWNER = :schema
        ORDER BY t.TABLE_NAME
    """

    COLUMNS_SQL = """
        SELECT
            c.COLUMN_NAME,
            c.DATA_TYPE,
            c.DATA_LENGTH,
            c.DATA_PRECISION,
            c.DATA_SCALE,
            c.NULLABLE,
            c.DATA_DEFAULT,
            cc.COMMENTS,
            CASE WHEN pk.COLUMN_NAME IS NOT NULL THEN 'Y' ELSE 'N' END AS IS_PK
        FROM ALL_TAB_COLUMNS c
        LEFT JOIN ALL_COL_COMMENTS cc
            ON c.TABLE_NAME = cc.TABLE_NAME AND c.COLUMN_NAME = cc.COLUMN_NAME AND c.OWNER = cc.OWNER
        LEFT JOIN (
            SELECT cols.TABLE_NAME, cols.COLUMN_NAME
            FROM ALL_CONSTRAINTS cons
            JOIN ALL_CONS_COLUMNS cols
                ON cons.CONSTRAINT_NAME = cols.CONSTRAINT_NAME AND cons.OWNER = cols.OWNER
            WHERE cons.CONSTRAINT_TYPE = 'P' AND cons.OWNER = :schema
        ) pk ON pk.TABLE_NAME = c.TABLE_NAME AND pk.COLUMN_NAME = c.COLUMN_NAME
        WHERE c.OWNER = :schema AND c.TABLE_NAME = :table
        ORDER BY c.COLUMN_ID
    """

    FOREIGN_KEYS_SQL = """
        SELECT
            cols.TABLE_NAME AS TARGET_TABLE,
            cols.COLUMN_NAME AS TARGET_COLUMN,
            rcols.TABLE_NAME AS SOURCE_TABLE,
            rcols.COLUMN_NAME AS SOURCE_COLUMN
        FROM ALL_CONSTRAINTS cons
        JOIN ALL_CONS_COLUMNS cols
            ON cons.CONSTRAINT_NAME = cols.CONSTRAINT_NAME AND cons.OWNER = cols.OWNER
        JOIN ALL_CONSTRAINTS rcons
            ON cons.R_CONSTRAINT_NAME = rcons.CONSTRAINT_NAME AND cons.R_OWNER = rcons.OWNER
        JOIN ALL_CONS_COLUMNS rcols
            ON rcons.CONSTRAINT_NAME = rcols.CONSTRAINT_NAME AND rcons.OWNER = rcols.OWNER
            AND rcols.POSITION = cols.POSITION
        WHERE cons.CONSTRAINT_TYPE = 'R' AND cons.OWNER = :schema
        ORDER BY cols.TABLE_NAME, cons.CONSTRAINT_NAME, cols.POSITION
    """

    def quote_identifier(self, name: str) -> str:
        return str(name).upper()

    def build_url(self, info: Any) -> URL:
        return URL.create(
            "oracle+oracledb",
            username=info.user_id or None,
            password=info.password or None,
            host=info.host,
            port=info.port,
            query={"service_name": self.service_name},
        )

    def connect_args(self, timeout: int) -> Dict[str, Any]:
        return {}

    def resolve_schema(self, info: Any) -> str:
        return (info.database or "").upper()

    def fetch_tables(self, session: Any, schema: str) -> List[CatalogTable]:
        rows = session.execute(text(self.TABLES_SQL), {"schema": schema}).fetchall()
        return [CatalogTable(str(r[0]), text_or_empty(r[1]), str(r[0])) for r in rows]

    def fetch_columns(self, session: Any, schema: str, table_name: str) -> List[Column]:
        rows = session.execute(
            text(self.COLUMNS_SQL), {"schema": schema, "table": table_name}
        ).fetchall()
        columns = []
        for row in rows:
            base = str(row[1])
            length = row[2] if base in _CHARACTER_TYPES else None
            precision, scale = (row[3], row[4]) if base == "NUMBER" else (None, None)
            columns.append(
                Column(
                    str(row[0]),
                    render_type(base, length, precision, scale),
                    is_primary_key=row[8] == "Y",
                    is_nullable=row[5] == "Y",
                    # DATA_DEFAULT keeps the trailing whitespace of the original DDL
                    default_value=text_or_empty(row[6]).rstrip(),
                    comment=text_or_empty(row[7]),
                )
            )
        return columns

    def fetch_foreign_keys(self, session: Any, schema: str) -> List[CatalogForeignKey]:
        rows = session.execute(text(self.FOREIGN_KEYS_SQL), {"schema": schema}).fetchall()
        return [CatalogForeignKey(str(r[0]), str(r[1]), str(r[2]), str(r[3])) for r in rows]
