"""ERD modeling core: schema model, DDL generation, schema import, layout and diagram files."""

from .codec import dumps, load_diagram, load_into, loads, save_diagram
from .config import DEFAULT_LAYOUT, LayoutConfig, Settings, load_env
from .ddl import generate_ddl, generate_model_ddl
from .dialects import get_adapter, supported_dialects
from .errors import (
    ErdForgeError,
    IntrospectionError,
    SerializationError,
    UnsupportedDialectError,
    ValidationError,
)
from .introspection import ConnectionInfo, ImportResult, import_schema, import_schema_async
from .layout import arrange_tables, new_default_table, place_new_table, resolve_overlaps
from .model import (
    Column,
    MutationResult,
    Relationship,
    RelationType,
    SchemaModel,
    Table,
    sample_model,
)

__version__ = "0.1.0"

__all__ = [
    "Column",
    "ConnectionInfo",
    "DEFAULT_LAYOUT",
    "ErdForgeError",
    "ImportResult",
    "IntrospectionError",
    "LayoutConfig",
    "MutationResult",
    "RelationType",
    "Relationship",
    "SchemaModel",
    "SerializationError",
    "Settings",
    "Table",
    "UnsupportedDialectError",
    "ValidationError",
    "arrange_tables",
    "dumps",
    "generate_ddl",
    "generate_model_ddl",
    "get_adapter",
    "import_schema",
    "import_schema_async",
    "load_diagram",
    "load_env",
    "load_into",
    "loads",
    "new_default_table",
    "place_new_table",
    "resolve_overlaps",
    "sample_model",
    "save_diagram",
    "supported_dialects",
]
