"""MySQL dialect adapter."""

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
    text_or_empty,
)


class MysqlAdapter(DialectAdapter):
    """MySQL dialect adapter."""

    name = "MySQL"

    TYPE_RULES = (
        (VARCHAR2, r"VARCHAR\g<args>"),
        (NUMBER, "INT"),
        (NUMBER_SCALED, r"DECIMAL(\g<p>,\g<s>)"),
        (NUMBER_PRECISION, "INT"),
        (CLOB, "TEXT"),
        (BLOB, "BLOB"),
        (DATE, "DATETIME"),
    )

    TABLES_SQL = """
        SELECT TABLE_NAME, TABLE_COMMENT
        FROM INFORMATION_SCHEMA.TABLES
        WHERE TABLE_SCHEMA = :schema AND TABLE_TYPE = 'BASE TABLE'
        ORDER BY TABLE_NAME
    """

    COLUMNS_SQL = """
        SELECT COLUMN_NAME, DATA_TYPE, COLUMN_TYPE, IS_NULLABLE, COLUMN_KEY, COLUMN_DEFAULT, COLUMN_COMMENT
        FROM INFORMATION_SCHEMA.COLUMNS
        WHERE TABLE_SCHEMA = :schema AND TABLE_NAME = :table
        ORDER BY ORDINAL_POSITION
    """

    FOREIGN_KEYS_SQL = """
        SELECT TABLE_NAME, COLUMN_NAME, REFERENCED_TABLE_NAME, REFERENCED_COLUMN_NAME
        FROM INFORMATION_SCHEMA.KEY_COLUMN_USAGE
        WHERE TABLE_SCHEMA = :schema AND REFERENCED_TABLE_NAME IS NOT NULL
        ORDER BY TABLE_NAME, CONSTRAINT_NAME, ORDINAL_POSITION
    """

    def quote_identifier(self, name: str) -> str:
        return "`" + str(name).replace("`", "``") + "`"

    def table_comment_statement(self, table_name: str, comment: str) -> str:
        return f"ALTER TABLE {self.format_table(table_name)} COMMENT = '{self.escape_literal(comment)}';"

    def build_url(self, info: Any) -> URL:
        return URL.create(
            "mysql+pymysql",
            username=info.user_id or None,
            password=info.password or None,
            host=info.host,
            port=info.port,
            database=info.database or None,
            query={"charset": "utf8mb4"},
        )

    def resolve_schema(self, info: Any) -> str:
        return info.database

    def fetch_tables(self, session: Any, schema: str) -> List[CatalogTable]:
        rows = session.execute(text(self.TABLES_SQL), {"schema": schema}).fetchall()
        return [CatalogTable(str(r[0]), text_or_empty(r[1]), str(r[0])) for r in rows]

    def fetch_columns(self, session: Any, schema: str, table_name: str) -> List[Column]:
        rows = session.execute(
            text(self.COLUMNS_SQL), {"schema": schema, "table": table_name}
        ).fetchall()
        columns = []
        for row in rows:
            # COLUMN_TYPE already carries the catalog-rendered size, e.g. varchar(100)
            rendered = text_or_empty(row[2]) or text_or_empty(row[1])
            columns.append(
                Column(
                    str(row[0]),
                    rendered.upper(),
                    is_primary_key=row[4] == "PRI",
                    is_nullable=row[3] == "YES",
                    default_value=text_or_empty(row[5]),
                    comment=text_or_empty(row[6]),
                )
            )
        return columns

    def fetch_foreign_keys(self, session: Any, schema: str) -> List[CatalogForeignKey]:
        rows = session.execute(text(self.FOREIGN_KEYS_SQL), {"schema": schema}).fetchall()
        return [CatalogForeignKey(str(r[0]), str(r[1]), str(r[2]), str(r[3])) for r in rows]
