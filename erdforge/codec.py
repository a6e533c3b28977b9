"""Lossless JSON round trip of a diagram (model plus positions)."""

import logging
from pathlib import Path
from typing import Union

from pydantic import ValidationError as PydanticValidationError

from .errors import ErdForgeError, SerializationError
from .model import Column, Relationship, RelationType, SchemaModel, Table
from .schemas import ColumnData, DiagramFile, RelationshipData, TableData

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def model_to_diagram(model: SchemaModel) -> DiagramFile:
    return DiagramFile(
        database_name=model.database_name,
        tables=[
            TableData(
                id=t.id,
                name=t.name,
                comment=t.comment,
                x=t.x,
                y=t.y,
                header_color=t.header_color,
                columns=[
                    ColumnData(
                        name=c.name,
                        data_type=c.data_type,
                        is_primary_key=c.is_primary_key,
                        is_foreign_key=c.is_foreign_key,
                        is_nullable=c.is_nullable,
                        default_value=c.default_value,
                        comment=c.comment,
                    )
                    for c in t.columns
                ],
            )
            for t in model.tables
        ],
        relationships=[
            RelationshipData(
                id=r.id,
                source_table_id=r.source_table_id,
                target_table_id=r.target_table_id,
                source_column_name=r.source_column_name,
                target_column_name=r.target_column_name,
                relation_type=r.relation_type.value,
            )
            for r in model.relationships
        ],
    )


def _build_contents(diagram: DiagramFile):
    tables = []
    for data in diagram.tables:
        table = Table(
            name=data.name,
            comment=data.comment,
            x=data.x,
            y=data.y,
            header_color=data.header_color,
            id=data.id,
        )
        table.columns = [
            Column(
                c.name,
                c.data_type,
                is_primary_key=c.is_primary_key,
                is_foreign_key=c.is_foreign_key,
                is_nullable=c.is_nullable,
                default_value=c.default_value,
                comment=c.comment,
            )
            for c in data.columns
        ]
        tables.append(table)

    relationships = []
    for data in diagram.relationships:
        kwargs = {"id": data.id} if data.id else {}
        relationships.append(
            Relationship(
                source_table_id=data.source_table_id,
                target_table_id=data.target_table_id,
                source_column_name=data.source_column_name,
                target_column_name=data.target_column_name,
                relation_type=RelationType.parse(data.relation_type),
                **kwargs,
            )
        )
    return tables, relationships


def apply_diagram(model: SchemaModel, diagram: DiagramFile) -> None:
    """Replace the model contents with the diagram; the model is untouched on failure."""
    try:
        tables, relationships = _build_contents(diagram)
    except ErdForgeError as exc:
        raise SerializationError(str(exc)) from exc
    result = model.replace_contents(tables, relationships, database_name=diagram.database_name)
    if not result:
        raise SerializationError(result.message)


def diagram_to_model(diagram: DiagramFile) -> SchemaModel:
    model = SchemaModel()
    apply_diagram(model, diagram)
    return model


def parse_diagram(text: Union[str, bytes]) -> DiagramFile:
    try:
        return DiagramFile.model_validate_json(text)
    except PydanticValidationError as exc:
        raise SerializationError(f"Invalid diagram file: {exc}") from exc


def dumps(model: SchemaModel) -> str:
    return model_to_diagram(model).model_dump_json(by_alias=True, indent=2)


def loads(text: Union[str, bytes]) -> SchemaModel:
    return diagram_to_model(parse_diagram(text))


def save_diagram(model: SchemaModel, path: PathLike) -> None:
    Path(path).write_text(dumps(model), encoding="utf-8")
    logger.info("Saved diagram '%s' to %s", model.database_name, path)


def _read(path: PathLike) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SerializationError(f"Could not read diagram file {path}: {exc}") from exc


def load_diagram(path: PathLike) -> SchemaModel:
    try:
        return loads(_read(path))
    except SerializationError as exc:
        logger.warning("Could not load %s: %s", path, exc)
        raise


def load_into(model: SchemaModel, path: PathLike) -> None:
    """Load a file into an existing model (listeners see one 'reset')."""
    try:
        apply_diagram(model, parse_diagram(_read(path)))
    except SerializationError as exc:
        logger.warning("Could not load %s: %s", path, exc)
        raise
