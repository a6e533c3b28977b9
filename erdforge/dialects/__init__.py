"""SQL dialect adapters for the four supported engines."""

from typing import Tuple

from ..config import DEFAULT_PORTS
from ..errors import UnsupportedDialectError
from .base import CatalogForeignKey, CatalogTable, DialectAdapter, render_type
from .mysql import MysqlAdapter
from .oracle import OracleAdapter
from .postgresql import PostgresqlAdapter
from .tibero import TiberoAdapter

_ADAPTERS = {
    "mysql": MysqlAdapter,
    "postgresql": PostgresqlAdapter,
    "oracle": OracleAdapter,
    "tibero": TiberoAdapter,
}

_ALIASES = {
    "postgres": "postgresql",
}


def get_adapter(dialect_name: str) -> DialectAdapter:
    """Get the adapter for a dialect name (case-insensitive, e.g. MySQL, PostgreSQL).

    Raises:
        UnsupportedDialectError: the name is not one of the supported engines.
    """
    key = (dialect_name or "").strip().lower()
    key = _ALIASES.get(key, key)
    adapter_cls = _ADAPTERS.get(key)
    if adapter_cls is None:
        raise UnsupportedDialectError(dialect_name, supported_dialects())
    return adapter_cls()


def supported_dialects() -> Tuple[str, ...]:
    """Return the display names of the supported dialects."""
    return tuple(cls.name for cls in _ADAPTERS.values())


def default_port(dialect_name: str) -> int:
    """Standard port for a dialect name in any accepted spelling; 0 when unsupported."""
    try:
        return DEFAULT_PORTS[get_adapter(dialect_name).name]
    except UnsupportedDialectError:
        return 0


__all__ = [
    "CatalogForeignKey",
    "CatalogTable",
    "DialectAdapter",
    "MysqlAdapter",
    "OracleAdapter",
    "PostgresqlAdapter",
    "TiberoAdapter",
    "default_port",
    "get_adapter",
    "render_type",
    "supported_dialects",
]
