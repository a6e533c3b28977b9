"""
Pydantic models for the persisted diagram file and the HTTP payloads.

Field aliases carry the on-disk key names (DatabaseName, Tables, HeaderColor, ...).
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .dialects import default_port


class _Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ColumnData(_Document):
    name: str = Field(alias="Name")
    data_type: str = Field("", alias="DataType")
    is_primary_key: bool = Field(False, alias="IsPrimaryKey")
    is_foreign_key: bool = Field(False, alias="IsForeignKey")
    is_nullable: bool = Field(True, alias="IsNullable")
    default_value: str = Field("", alias="DefaultValue")
    comment: str = Field("", alias="Comment")


class TableData(_Document):
    id: str = Field(alias="Id")
    name: str = Field(alias="Name")
    comment: str = Field("", alias="Comment")
    x: float = Field(0.0, alias="X")
    y: float = Field(0.0, alias="Y")
    header_color: str = Field(alias="HeaderColor")
    columns: List[ColumnData] = Field(default_factory=list, alias="Columns")


class RelationshipData(_Document):
    id: Optional[str] = Field(None, alias="Id")
    source_table_id: str = Field(alias="SourceTableId")
    target_table_id: str = Field(alias="TargetTableId")
    source_column_name: str = Field(alias="SourceColumnName")
    target_column_name: str = Field(alias="TargetColumnName")
    relation_type: str = Field("OneToMany", alias="RelationType")


class DiagramFile(_Document):
    database_name: str = Field("", alias="DatabaseName")
    tables: List[TableData] = Field(alias="Tables")
    relationships: List[RelationshipData] = Field(default_factory=list, alias="Relationships")


class ConnectionRequest(_Document):
    db_type: str = Field("MySQL", alias="DbType")
    host: str = Field("localhost", alias="Host")
    port: Optional[int] = Field(None, alias="Port")
    user_id: str = Field("", alias="UserId")
    password: str = Field("", alias="Password", repr=False)
    database: str = Field("", alias="Database")
    schema_name: str = Field("public", alias="Schema")

    def resolved_port(self) -> int:
        if self.port is not None:
            return self.port
        return default_port(self.db_type)


class DdlRequest(_Document):
    diagram: DiagramFile = Field(alias="Diagram")
    dialect: str = Field("MySQL", alias="Dialect")


class DdlResponse(_Document):
    dialect: str = Field(alias="Dialect")
    sql: str = Field(alias="Sql")


class MeasuredSize(_Document):
    width: float = Field(gt=0, alias="Width")
    height: float = Field(gt=0, alias="Height")


class ReconcileRequest(_Document):
    diagram: DiagramFile = Field(alias="Diagram")
    sizes: Dict[str, MeasuredSize] = Field(default_factory=dict, alias="Sizes")
