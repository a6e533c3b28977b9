"""
Import an existing database schema into the canonical model.

The dialect adapters own the catalog queries; this module opens the query
session, drives the three catalog passes (tables, columns, foreign keys),
normalizes the rows and lays the result out. An import either returns the
complete schema or a failure message, never a partial model.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, ContextManager, Dict, Iterator, List, Optional

from sqlalchemy import create_engine
from sqlalchemy.pool import NullPool

from .config import DEFAULT_LAYOUT, DEFAULT_PORTS, LayoutConfig, Settings
from .dialects import DialectAdapter, get_adapter
from .errors import IntrospectionError, UnsupportedDialectError
from .layout import arrange_tables
from .model import Column, Relationship, RelationType, SchemaModel, Table

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectionInfo:
    """Connection descriptor; `schema` only matters for PostgreSQL."""

    db_type: str = "MySQL"
    host: str = "localhost"
    port: int = DEFAULT_PORTS["MySQL"]
    user_id: str = ""
    password: str = field(default="", repr=False)
    database: str = ""
    schema: str = "public"


@dataclass
class SchemaImport:
    database_name: str
    tables: List[Table]
    relationships: List[Relationship]

    def to_model(self) -> SchemaModel:
        model = SchemaModel(self.database_name)
        model.replace_contents(self.tables, self.relationships).raise_for_error()
        return model


@dataclass(frozen=True)
class ImportResult:
    schema: Optional[SchemaImport] = None
    error: Optional[IntrospectionError] = None

    @property
    def is_success(self) -> bool:
        return self.error is None and self.schema is not None

    @property
    def error_message(self) -> Optional[str]:
        return str(self.error) if self.error is not None else None

    @classmethod
    def success(cls, schema: SchemaImport) -> "ImportResult":
        return cls(schema=schema)

    @classmethod
    def failure(cls, error: Exception) -> "ImportResult":
        return cls(error=IntrospectionError.wrap(error))


SessionFactory = Callable[[ConnectionInfo, DialectAdapter], ContextManager[Any]]


@contextmanager
def open_session(
    info: ConnectionInfo, adapter: DialectAdapter, settings: Optional[Settings] = None
) -> Iterator[Any]:
    """Open one connection for one import attempt; disposed on every exit path."""
    settings = settings or Settings.from_env()
    engine = create_engine(
        adapter.build_url(info),
        poolclass=NullPool,
        connect_args=adapter.connect_args(settings.connect_timeout),
    )
    try:
        with engine.connect() as conn:
            yield conn
    finally:
        engine.dispose()


def _unique_columns(catalog_name: str, columns: List[Column]) -> List[Column]:
    kept: List[Column] = []
    seen = set()
    for column in columns:
        folded = column.name.casefold()
        if folded in seen:
            logger.warning(
                f"Skipping column '{catalog_name}.{column.name}': name differs from another only by case"
            )
            continue
        seen.add(folded)
        kept.append(column)
    return kept


def read_schema(
    adapter: DialectAdapter,
    session: Any,
    info: ConnectionInfo,
    config: LayoutConfig = DEFAULT_LAYOUT,
) -> SchemaImport:
    """Run the catalog passes on an open session. Any query failure propagates."""
    schema = adapter.resolve_schema(info)
    palette = config.palette

    tables: List[Table] = []
    by_catalog_name: Dict[str, Table] = {}
    seen_names = set()
    for entry in adapter.fetch_tables(session, schema):
        if entry.name.casefold() in seen_names:
            logger.warning(f"Skipping table '{entry.catalog_name}': name differs from another only by case")
            continue
        seen_names.add(entry.name.casefold())
        table = Table(
            name=entry.name,
            comment=entry.comment,
            header_color=palette[len(tables) % len(palette)],
        )
        tables.append(table)
        by_catalog_name[entry.catalog_name] = table

    for catalog_name, table in by_catalog_name.items():
        table.columns = _unique_columns(catalog_name, adapter.fetch_columns(session, schema, catalog_name))
        logger.debug(f"Read {len(table.columns)} columns for {catalog_name}")

    relationships: List[Relationship] = []
    seen_keys = set()
    for fk in adapter.fetch_foreign_keys(session, schema):
        source = by_catalog_name.get(fk.source_table)
        target = by_catalog_name.get(fk.target_table)
        if source is None or target is None:
            logger.debug(f"Skipping FK {fk.target_table}.{fk.target_column}: table not imported")
            continue
        target_column_name = adapter.normalize_name(fk.target_column)
        column = target.find_column(target_column_name)
        # A key column keeps its PK flag; the relationship still carries the FK.
        if column is not None and not column.is_primary_key:
            column.is_foreign_key = True
        # Cardinality is not derived from the catalog; every FK imports as one-to-many.
        relationship = Relationship(
            source_table_id=source.id,
            target_table_id=target.id,
            source_column_name=adapter.normalize_name(fk.source_column),
            target_column_name=target_column_name,
            relation_type=RelationType.ONE_TO_MANY,
        )
        if relationship.key() in seen_keys:
            continue
        seen_keys.add(relationship.key())
        relationships.append(relationship)

    return SchemaImport(info.database, tables, relationships)


def import_schema(
    info: ConnectionInfo,
    *,
    session_factory: Optional[SessionFactory] = None,
    config: LayoutConfig = DEFAULT_LAYOUT,
    settings: Optional[Settings] = None,
) -> ImportResult:
    """Import the schema described by `info`. Never raises; see ImportResult."""
    try:
        adapter = get_adapter(info.db_type)
    except UnsupportedDialectError as exc:
        logger.warning(str(exc))
        return ImportResult.failure(exc)

    if session_factory is None:
        def session_factory(i, a):
            return open_session(i, a, settings)

    logger.info(f"Starting schema import from {adapter.name} at {info.host}:{info.port}")
    try:
        with session_factory(info, adapter) as session:
            schema = read_schema(adapter, session, info, config)
    except Exception as e:
        logger.warning(f"Schema import from {adapter.name} failed: {e}")
        return ImportResult.failure(e)

    check = SchemaModel(schema.database_name).replace_contents(schema.tables, schema.relationships)
    if not check:
        logger.warning(f"Schema import from {adapter.name} rejected: {check.message}")
        return ImportResult.failure(IntrospectionError(check.message))

    arrange_tables(schema.tables, config)
    logger.info(
        f"Imported {len(schema.tables)} tables and {len(schema.relationships)} relationships"
    )
    return ImportResult.success(schema)


_executor: Optional[ThreadPoolExecutor] = None
_executor_lock = threading.Lock()


def _default_executor() -> ThreadPoolExecutor:
    global _executor
    with _executor_lock:
        if _executor is None:
            workers = Settings.from_env().import_workers
            _executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="erdforge-import")
        return _executor


def import_schema_async(
    info: ConnectionInfo,
    executor: Optional[ThreadPoolExecutor] = None,
    **kwargs: Any,
) -> "Future[ImportResult]":
    """Run import_schema off the caller's thread; the future resolves to one ImportResult."""
    return (executor or _default_executor()).submit(import_schema, info, **kwargs)
