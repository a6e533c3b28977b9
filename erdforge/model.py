"""
Canonical schema model: tables, columns and relationships plus the
SchemaModel container that enforces their invariants.

Mutations go through SchemaModel so that:
- table names stay unique case-insensitively,
- (source id, target id, source column, target column) stays unique, with
  column names compared case-insensitively,
- a column is never primary key and foreign key at the same time,
- every relationship points at existing tables (removing a table cascades).
"""

import logging
import re
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Tuple

from .config import NEW_TABLE_COLOR
from .errors import ValidationError

logger = logging.getLogger(__name__)

Listener = Callable[[str, Any], None]


_HEX_COLOR = re.compile(r"#?(?P<argb>[0-9A-Fa-f]{8}|[0-9A-Fa-f]{6})")


def _new_id() -> str:
    return str(uuid.uuid4())


def normalize_color(value: str) -> str:
    """Return '#RRGGBB' in uppercase; an '#AARRGGBB' value loses its alpha channel."""
    match = _HEX_COLOR.fullmatch((value or "").strip())
    if match is None:
        raise ValidationError(f"Invalid header color {value!r}; expected #RRGGBB")
    digits = match.group("argb").upper()
    return "#" + digits[-6:]


class RelationType(str, Enum):
    ONE_TO_ONE = "OneToOne"
    ONE_TO_MANY = "OneToMany"
    MANY_TO_ONE = "ManyToOne"
    MANY_TO_MANY = "ManyToMany"

    @classmethod
    def parse(cls, value: Any) -> "RelationType":
        if isinstance(value, cls):
            return value
        for member in cls:
            if value in (member.value, member.name):
                return member
        raise ValidationError(f"Unknown relation type: {value!r}")


class Column:
    """A table column. Primary key and foreign key flags are mutually exclusive."""

    def __init__(
        self,
        name: str,
        data_type: str = "",
        *,
        is_primary_key: bool = False,
        is_foreign_key: bool = False,
        is_nullable: bool = True,
        default_value: str = "",
        comment: str = "",
    ):
        if is_primary_key and is_foreign_key:
            raise ValidationError(f"Column '{name}' cannot be both primary key and foreign key")
        self.name = name
        self.data_type = data_type
        self._is_primary_key = bool(is_primary_key)
        self._is_foreign_key = bool(is_foreign_key)
        self.is_nullable = bool(is_nullable)
        self.default_value = default_value or ""
        self.comment = comment or ""

    @property
    def is_primary_key(self) -> bool:
        return self._is_primary_key

    @is_primary_key.setter
    def is_primary_key(self, value: bool) -> None:
        self._is_primary_key = bool(value)
        if self._is_primary_key:
            self._is_foreign_key = False

    @property
    def is_foreign_key(self) -> bool:
        return self._is_foreign_key

    @is_foreign_key.setter
    def is_foreign_key(self, value: bool) -> None:
        self._is_foreign_key = bool(value)
        if self._is_foreign_key:
            self._is_primary_key = False

    def _fields(self) -> Tuple:
        return (
            self.name,
            self.data_type,
            self._is_primary_key,
            self._is_foreign_key,
            self.is_nullable,
            self.default_value,
            self.comment,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Column):
            return NotImplemented
        return self._fields() == other._fields()

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        flags = []
        if self._is_primary_key:
            flags.append("PK")
        if self._is_foreign_key:
            flags.append("FK")
        if not self.is_nullable:
            flags.append("NOT NULL")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        return f"Column({self.name!r}, {self.data_type!r}{suffix})"


@dataclass(eq=True)
class Table:
    name: str
    comment: str = ""
    x: float = 0.0
    y: float = 0.0
    header_color: str = NEW_TABLE_COLOR
    columns: List[Column] = field(default_factory=list)
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        self.header_color = normalize_color(self.header_color)

    def find_column(self, name: str) -> Optional[Column]:
        wanted = (name or "").casefold()
        for column in self.columns:
            if column.name.casefold() == wanted:
                return column
        return None

    @property
    def primary_key_columns(self) -> List[Column]:
        return [c for c in self.columns if c.is_primary_key]


@dataclass(eq=True)
class Relationship:
    """
    Source side holds the referenced (usually primary-key) column, target side
    holds the referencing (foreign-key) column.
    """

    source_table_id: str
    target_table_id: str
    source_column_name: str
    target_column_name: str
    relation_type: RelationType = RelationType.ONE_TO_MANY
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        self.relation_type = RelationType.parse(self.relation_type)

    def key(self) -> Tuple[str, str, str, str]:
        return (
            self.source_table_id,
            self.target_table_id,
            self.source_column_name.casefold(),
            self.target_column_name.casefold(),
        )

    def references(self, table_id: str) -> bool:
        return table_id in (self.source_table_id, self.target_table_id)


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a model mutation; falsy when the mutation was rejected."""

    ok: bool
    message: str = ""

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def accepted(cls) -> "MutationResult":
        return cls(True)

    @classmethod
    def rejected(cls, message: str) -> "MutationResult":
        logger.debug("Rejected model mutation: %s", message)
        return cls(False, message)

    def raise_for_error(self) -> None:
        if not self.ok:
            raise ValidationError(self.message)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


class SchemaModel:
    """Ordered tables and relationships with change notification for renderers."""

    def __init__(self, database_name: str = "Database"):
        self.database_name = database_name
        self._tables: List[Table] = []
        self._relationships: List[Relationship] = []
        self._listeners: List[Listener] = []

    # -- observation -------------------------------------------------------

    @property
    def tables(self) -> Tuple[Table, ...]:
        return tuple(self._tables)

    @property
    def relationships(self) -> Tuple[Relationship, ...]:
        return tuple(self._relationships)

    def subscribe(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, event: str, payload: Any) -> None:
        for listener in list(self._listeners):
            listener(event, payload)

    # -- lookups -----------------------------------------------------------

    def get_table_by_id(self, table_id: str) -> Optional[Table]:
        for table in self._tables:
            if table.id == table_id:
                return table
        return None

    def find_table(self, name: str) -> Optional[Table]:
        wanted = (name or "").strip().casefold()
        for table in self._tables:
            if table.name.casefold() == wanted:
                return table
        return None

    def is_name_duplicate(self, name: str, exclude_id: Optional[str] = None) -> bool:
        wanted = (name or "").strip().casefold()
        return any(
            t.name.casefold() == wanted and t.id != exclude_id for t in self._tables
        )

    def has_relationship(self, relationship: Relationship) -> bool:
        key = relationship.key()
        return any(r.key() == key for r in self._relationships)

    def relationships_for(self, table: Table) -> List[Relationship]:
        return [r for r in self._relationships if r.references(table.id)]

    def _owner_of(self, column: Column) -> Optional[Table]:
        for table in self._tables:
            if any(c is column for c in table.columns):
                return table
        return None

    # -- tables ------------------------------------------------------------

    def add_table(self, table: Table) -> MutationResult:
        if _is_blank(table.name):
            return MutationResult.rejected("Table name is required.")
        if self.is_name_duplicate(table.name):
            return MutationResult.rejected(f"A table named '{table.name}' already exists.")
        if self.get_table_by_id(table.id) is not None:
            return MutationResult.rejected(f"A table with id '{table.id}' already exists.")
        problem = _column_problem(table)
        if problem:
            return MutationResult.rejected(problem)
        self._tables.append(table)
        self._notify("table_added", table)
        return MutationResult.accepted()

    def remove_table(self, table: Table) -> MutationResult:
        if self.get_table_by_id(table.id) is None:
            return MutationResult.rejected(f"Table '{table.name}' is not part of this model.")
        dropped = [r for r in self._relationships if r.references(table.id)]
        self._relationships = [r for r in self._relationships if not r.references(table.id)]
        self._tables = [t for t in self._tables if t.id != table.id]
        for relationship in dropped:
            self._notify("relationship_removed", relationship)
        self._notify("table_removed", table)
        return MutationResult.accepted()

    def rename_table(self, table: Table, new_name: str) -> MutationResult:
        if _is_blank(new_name):
            return MutationResult.rejected("Table name is required.")
        new_name = new_name.strip()
        if self.is_name_duplicate(new_name, exclude_id=table.id):
            return MutationResult.rejected(f"A table named '{new_name}' already exists.")
        table.name = new_name
        self._notify("table_changed", table)
        return MutationResult.accepted()

    def touch(self, table: Table) -> None:
        """Announce an in-place edit (position, comment, color) to listeners."""
        self._notify("table_changed", table)

    # -- columns -----------------------------------------------------------

    def add_column(self, table: Table, column: Column) -> MutationResult:
        if _is_blank(column.name):
            return MutationResult.rejected("Column name is required.")
        if table.find_column(column.name) is not None:
            return MutationResult.rejected(
                f"Table '{table.name}' already has a column named '{column.name}'."
            )
        table.columns.append(column)
        self._notify("column_added", (table, column))
        return MutationResult.accepted()

    def remove_column(self, table: Table, column: Column) -> MutationResult:
        if not any(c is column for c in table.columns):
            return MutationResult.rejected(f"Column '{column.name}' is not part of '{table.name}'.")
        table.columns = [c for c in table.columns if c is not column]
        wanted = column.name.casefold()
        dropped = [
            r
            for r in self._relationships
            if (r.source_table_id == table.id and r.source_column_name.casefold() == wanted)
            or (r.target_table_id == table.id and r.target_column_name.casefold() == wanted)
        ]
        self._relationships = [r for r in self._relationships if r not in dropped]
        for relationship in dropped:
            self._notify("relationship_removed", relationship)
        self._notify("column_removed", (table, column))
        return MutationResult.accepted()

    def rename_column(self, table: Table, column: Column, new_name: str) -> MutationResult:
        """Rename a column; relationships naming it on this table follow the new name."""
        if not any(c is column for c in table.columns):
            return MutationResult.rejected(f"Column '{column.name}' is not part of '{table.name}'.")
        if _is_blank(new_name):
            return MutationResult.rejected("Column name is required.")
        new_name = new_name.strip()
        clash = table.find_column(new_name)
        if clash is not None and clash is not column:
            return MutationResult.rejected(
                f"Table '{table.name}' already has a column named '{new_name}'."
            )
        old = column.name.casefold()
        for r in self._relationships:
            if r.source_table_id == table.id and r.source_column_name.casefold() == old:
                r.source_column_name = new_name
            if r.target_table_id == table.id and r.target_column_name.casefold() == old:
                r.target_column_name = new_name
        column.name = new_name
        self._notify("table_changed", table)
        return MutationResult.accepted()

    def toggle_primary_key(self, column: Column) -> bool:
        column.is_primary_key = not column.is_primary_key
        owner = self._owner_of(column)
        if owner is not None:
            self._notify("table_changed", owner)
        return column.is_primary_key

    def toggle_foreign_key(self, column: Column) -> bool:
        column.is_foreign_key = not column.is_foreign_key
        owner = self._owner_of(column)
        if owner is not None:
            self._notify("table_changed", owner)
        return column.is_foreign_key

    # -- relationships -----------------------------------------------------

    def _relationship_problem(self, relationship: Relationship, tables: Iterable[Table]) -> str:
        ids = {t.id for t in tables}
        if relationship.source_table_id not in ids:
            return f"Source table '{relationship.source_table_id}' does not exist."
        if relationship.target_table_id not in ids:
            return f"Target table '{relationship.target_table_id}' does not exist."
        if _is_blank(relationship.source_column_name) or _is_blank(relationship.target_column_name):
            return "Both relationship columns are required."
        return ""

    def add_relationship(self, relationship: Relationship) -> MutationResult:
        problem = self._relationship_problem(relationship, self._tables)
        if problem:
            return MutationResult.rejected(problem)
        if self.has_relationship(relationship):
            return MutationResult.rejected("This relationship already exists.")
        self._relationships.append(relationship)
        self._notify("relationship_added", relationship)
        return MutationResult.accepted()

    def remove_relationship(self, relationship: Relationship) -> MutationResult:
        remaining = [r for r in self._relationships if r.id != relationship.id]
        if len(remaining) == len(self._relationships):
            return MutationResult.rejected("Relationship is not part of this model.")
        self._relationships = remaining
        self._notify("relationship_removed", relationship)
        return MutationResult.accepted()

    # -- bulk --------------------------------------------------------------

    def replace_contents(
        self,
        tables: Iterable[Table],
        relationships: Iterable[Relationship],
        database_name: Optional[str] = None,
    ) -> MutationResult:
        """Swap in a whole diagram; nothing changes unless every invariant holds."""
        tables = list(tables)
        relationships = list(relationships)

        seen_names = set()
        seen_ids = set()
        for table in tables:
            if _is_blank(table.name):
                return MutationResult.rejected("Table name is required.")
            folded = table.name.casefold()
            if folded in seen_names:
                return MutationResult.rejected(f"A table named '{table.name}' already exists.")
            if table.id in seen_ids:
                return MutationResult.rejected(f"A table with id '{table.id}' already exists.")
            problem = _column_problem(table)
            if problem:
                return MutationResult.rejected(problem)
            seen_names.add(folded)
            seen_ids.add(table.id)

        seen_keys = set()
        for relationship in relationships:
            problem = self._relationship_problem(relationship, tables)
            if problem:
                return MutationResult.rejected(problem)
            key = relationship.key()
            if key in seen_keys:
                return MutationResult.rejected("This relationship already exists.")
            seen_keys.add(key)

        self._tables = tables
        self._relationships = relationships
        if database_name is not None:
            self.database_name = database_name
        self._notify("reset", self)
        return MutationResult.accepted()


def _column_problem(table: Table) -> str:
    seen = set()
    for column in table.columns:
        if _is_blank(column.name):
            return f"Table '{table.name}' has a column without a name."
        folded = column.name.casefold()
        if folded in seen:
            return f"Table '{table.name}' already has a column named '{column.name}'."
        seen.add(folded)
    return ""


def next_table_name(model: SchemaModel, base_name: str = "NEW_TABLE") -> str:
    name = base_name
    counter = 1
    while model.is_name_duplicate(name):
        name = f"{base_name}_{counter}"
        counter += 1
    return name


def sample_model() -> SchemaModel:
    """The fixed member/item/order diagram shown on a fresh start."""
    model = SchemaModel()

    member = Table(name="MEMBER2", comment="comment", x=400, y=100, header_color="#DC3C3C")
    member.columns = [
        Column("USERID", "VARCHAR2(30)", is_primary_key=True, is_nullable=False),
        Column("USERPW", "VARCHAR2(200)", is_nullable=False),
        Column("USERNAME", "VARCHAR2(15)", is_nullable=False),
        Column("USERAGE", "NUMBER(3)", is_nullable=False),
        Column("USERDATE", "DATE", is_nullable=False),
        Column("ORDNO", "NUMBER", is_nullable=False),
    ]

    item = Table(name="ITEM2", comment="comment", x=50, y=350, header_color="#C864C8")
    item.columns = [
        Column("ITEMNO", "NUMBER", is_primary_key=True, is_nullable=False),
        Column("ITEMNAME", "VARCHAR2(30)"),
        Column("ITEMPRICE", "NUMBER"),
        Column("ITEMQTY", "NUMBER"),
        Column("ITEMDATE", "DATE"),
        Column("ORDNO", "NUMBER", is_foreign_key=True, is_nullable=False),
        Column("USERID", "VARCHAR2(30)", is_foreign_key=True, is_nullable=False),
    ]

    order = Table(name="ORDER1", comment="comment", x=650, y=380, header_color="#5050B4")
    order.columns = [
        Column("ORDNO", "NUMBER", is_primary_key=True, is_nullable=False),
        Column("ORDCNT", "NUMBER"),
        Column("ORDDATE", "DATE"),
        Column("ITEMNO", "NUMBER", is_foreign_key=True, is_nullable=False),
        Column("USERID", "VARCHAR2(30)", is_foreign_key=True, is_nullable=False),
    ]

    relationships = [
        Relationship(member.id, order.id, "USERID", "USERID", RelationType.ONE_TO_MANY),
        Relationship(item.id, order.id, "ORDNO", "ORDNO", RelationType.MANY_TO_ONE),
        Relationship(item.id, order.id, "USERID", "USERID", RelationType.MANY_TO_ONE),
    ]
    model.replace_contents([member, item, order], relationships).raise_for_error()
    return model
