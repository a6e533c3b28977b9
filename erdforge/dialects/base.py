"""
Dialect adapter base class for the four supported SQL engines.

Each engine (MySQL, PostgreSQL, Oracle, Tibero) implements this interface to
provide identifier formatting, type mapping, table-comment DDL and the catalog
queries used to introspect an existing schema.
"""

import re
from abc import ABC, abstractmethod
from collections import namedtuple
from typing import Any, Callable, Dict, List, Optional, Pattern, Tuple, Union

from sqlalchemy.engine import URL

from ..model import Column

CatalogTable = namedtuple("CatalogTable", ["name", "comment", "catalog_name"])
CatalogForeignKey = namedtuple(
    "CatalogForeignKey", ["target_table", "target_column", "source_table", "source_column"]
)

TypeRule = Tuple[Pattern, Union[str, Callable[[re.Match], str]]]

# Canonical (Oracle-flavored) type patterns shared by the forward tables.
VARCHAR2 = re.compile(r"VARCHAR2(?P<args>\s*\(.*\))?")
NUMBER = re.compile(r"NUMBER")
NUMBER_SCALED = re.compile(r"NUMBER\s*\(\s*(?P<p>\d+)\s*,\s*(?P<s>0*[1-9]\d*)\s*\)")
NUMBER_PRECISION = re.compile(r"NUMBER\s*\(\s*(?P<p>\d+)\s*(?:,\s*0+\s*)?\)")
CLOB = re.compile(r"CLOB")
BLOB = re.compile(r"BLOB")
DATE = re.compile(r"DATE")


def render_type(
    base: str,
    length: Optional[int] = None,
    precision: Optional[int] = None,
    scale: Optional[int] = None,
) -> str:
    """Append the catalog size suffix: length, else precision+scale (scale > 0), else precision."""
    if length is not None:
        return f"{base}({int(length)})"
    if precision is not None and scale is not None and int(scale) > 0:
        return f"{base}({int(precision)},{int(scale)})"
    if precision is not None:
        return f"{base}({int(precision)})"
    return base


def text_or_empty(value: Any) -> str:
    return "" if value is None else str(value)


class DialectAdapter(ABC):
    """Abstract base for SQL dialect adapters."""

    name: str = ""
    TYPE_RULES: Tuple[TypeRule, ...] = ()

    # -- identifiers -------------------------------------------------------

    @abstractmethod
    def quote_identifier(self, name: str) -> str:
        """Quote (or case-fold) a single identifier for generated DDL."""
        pass

    def format_table(self, name: str) -> str:
        return self.quote_identifier(name)

    def format_column(self, name: str) -> str:
        return self.quote_identifier(name)

    # -- types -------------------------------------------------------------

    def map_type(self, data_type: str) -> str:
        """Translate a column type into this dialect. Unknown types pass through unchanged."""
        source = (data_type or "").strip()
        upper = source.upper()
        for pattern, replacement in self.TYPE_RULES:
            match = pattern.fullmatch(upper)
            if match is None:
                continue
            if callable(replacement):
                return replacement(match)
            return match.expand(replacement)
        return source

    # -- DDL fragments -----------------------------------------------------

    @staticmethod
    def escape_literal(value: str) -> str:
        return value.replace("'", "''")

    def table_comment_statement(self, table_name: str, comment: str) -> str:
        return f"COMMENT ON TABLE {self.format_table(table_name)} IS '{self.escape_literal(comment)}';"

    # -- introspection -----------------------------------------------------

    @abstractmethod
    def build_url(self, info: Any) -> URL:
        """Return the SQLAlchemy URL for a connection descriptor."""
        pass

    def connect_args(self, timeout: int) -> Dict[str, Any]:
        return {"connect_timeout": timeout}

    @abstractmethod
    def resolve_schema(self, info: Any) -> str:
        """Return the catalog owner/schema the import should read."""
        pass

    def normalize_name(self, name: str) -> str:
        """Map a catalog identifier onto the name stored in the canonical model."""
        return name

    @abstractmethod
    def fetch_tables(self, session: Any, schema: str) -> List[CatalogTable]:
        """Enumerate base tables with their table-level comments."""
        pass

    @abstractmethod
    def fetch_columns(self, session: Any, schema: str, table_name: str) -> List[Column]:
        """Columns of one table in catalog ordinal order, with primary keys flagged."""
        pass

    @abstractmethod
    def fetch_foreign_keys(self, session: Any, schema: str) -> List[CatalogForeignKey]:
        """One row per foreign-key column pair, using catalog table/column names."""
        pass
