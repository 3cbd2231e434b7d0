# File: /inline_db/crud/schema.py | Version: 1.0 | Title: Schema Model (column create/update/delete + validation)
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence
from uuid import uuid4

from pydantic import ValidationError
from sqlalchemy.orm import Session

from inline_db.core.config import settings
from inline_db.core.errors import InvalidColumnConfig, NotFound
from inline_db.crud.snapshots import snapshot_cache
from inline_db.engine import formula as formula_lang
from inline_db.models import Database
from inline_db.schemas.columns import (
    Column,
    ColumnAdd,
    ColumnCreate,
    ColumnType,
    ColumnUpdate,
    FormulaColumn,
    RelationColumn,
    RollupColumn,
    SelectColumn,
    StatusColumn,
    dump_columns,
    parse_column,
)

logger = logging.getLogger(__name__)

_CONFIG_FIELD = {
    ColumnType.SELECT: "options",
    ColumnType.MULTI_SELECT: "options",
    ColumnType.STATUS: "status_options",
    ColumnType.RELATION: "relation",
    ColumnType.ROLLUP: "rollup",
    ColumnType.FORMULA: "formula",
}


def new_column_id() -> str:
    return f"col_{uuid4().hex[:12]}"


def build_column(spec: ColumnCreate, *, column_id: str) -> Column:
    """Turn a create/merge payload into a typed column. Only the config of its type is kept."""
    data: Dict[str, Any] = {"id": column_id, "name": spec.name.strip(), "type": spec.type.value}
    if spec.width is not None:
        data["width"] = spec.width

    field = _CONFIG_FIELD.get(spec.type)
    if field == "options":
        data["options"] = [o.strip() for o in (spec.options or [])]
    elif field == "status_options":
        data["status_options"] = [
            {**o.model_dump(), "id": o.id or f"opt_{uuid4().hex[:8]}"} for o in (spec.status_options or [])
        ]
    elif field is not None:
        config = getattr(spec, field)
        if config is None:
            raise InvalidColumnConfig(
                f"{spec.type.value} column '{spec.name}' requires a '{field}' configuration",
                detail={"column_id": column_id},
            )
        data[field] = config.model_dump(mode="json")

    try:
        return parse_column(data)
    except ValidationError as exc:
        raise InvalidColumnConfig(f"Invalid column '{spec.name}': {exc.errors()[0]['msg']}")


def _target_columns(
    db: Session, *, organization_id: str, database_id: Optional[str], columns: Sequence[Column], target_id: str
) -> Optional[Sequence[Column]]:
    if target_id == database_id:
        return columns
    target = db.get(Database, target_id)
    if target is None or target.organization_id != organization_id:
        return None
    return target.columns


def validate_column(
    db: Session,
    *,
    organization_id: str,
    database_id: Optional[str],
    columns: Sequence[Column],
    column: Column,
) -> None:
    """Validate ``column`` as a member of the complete schema ``columns``."""
    if isinstance(column, SelectColumn):
        if len(set(column.options)) != len(column.options) or any(not o for o in column.options):
            raise InvalidColumnConfig(f"Column '{column.name}' has duplicate or empty options")

    elif isinstance(column, StatusColumn):
        ids = [o.id for o in column.status_options]
        if len(set(ids)) != len(ids):
            raise InvalidColumnConfig(f"Column '{column.name}' has duplicate status option ids")

    elif isinstance(column, RelationColumn):
        target_id = column.relation.target_database_id
        if _target_columns(
            db, organization_id=organization_id, database_id=database_id, columns=columns, target_id=target_id
        ) is None:
            raise InvalidColumnConfig(
                f"Relation target database {target_id} does not exist",
                detail={"column_id": column.id},
            )

    elif isinstance(column, RollupColumn):
        cfg = column.rollup
        source = next((c for c in columns if c.id == cfg.source_relation_column_id), None)
        if not isinstance(source, RelationColumn):
            raise InvalidColumnConfig(
                f"Rollup '{column.name}' must use a RELATION column of this database as its source",
                detail={"column_id": column.id},
            )
        target_columns = _target_columns(
            db,
            organization_id=organization_id,
            database_id=database_id,
            columns=columns,
            target_id=source.relation.target_database_id,
        )
        if target_columns is None or not any(c.id == cfg.target_column_id for c in target_columns):
            raise InvalidColumnConfig(
                f"Rollup '{column.name}' targets an unknown column {cfg.target_column_id}",
                detail={"column_id": column.id},
            )

    elif isinstance(column, FormulaColumn):
        error = formula_lang.check_expression(column.formula.expression, {c.name for c in columns})
        if error is not None:
            raise InvalidColumnConfig(
                f"Formula '{column.name}' is invalid: {error}", detail={"column_id": column.id}
            )


def build_schema(
    db: Session, *, organization_id: str, specs: Sequence[ColumnCreate], database_id: Optional[str] = None
) -> List[Column]:
    """Build and validate an initial schema (database create)."""
    if not specs:
        raise InvalidColumnConfig("A database needs at least one column")
    if len(specs) > settings.MAX_COLUMNS:
        raise InvalidColumnConfig(f"A database can have at most {settings.MAX_COLUMNS} columns")
    columns = [build_column(s, column_id=s.id or new_column_id()) for s in specs]
    ids = [c.id for c in columns]
    if len(set(ids)) != len(ids):
        raise InvalidColumnConfig("Column ids must be unique")
    for col in columns:
        validate_column(db, organization_id=organization_id, database_id=database_id, columns=columns, column=col)
    return columns


def _save(db: Session, database: Database, columns: List[Column]) -> Database:
    database.schema = {"columns": dump_columns(columns)}
    db.commit()
    db.refresh(database)
    snapshot_cache.invalidate(database.id)
    return database


def create_column(db: Session, *, database: Database, spec: ColumnAdd) -> Column:
    columns = list(database.columns)
    if len(columns) >= settings.MAX_COLUMNS:
        raise InvalidColumnConfig(f"A database can have at most {settings.MAX_COLUMNS} columns")
    column_id = spec.id or new_column_id()
    if any(c.id == column_id for c in columns):
        raise InvalidColumnConfig(f"Column id '{column_id}' already exists")

    column = build_column(spec, column_id=column_id)
    position = len(columns) if spec.position is None else min(spec.position, len(columns))
    columns.insert(position, column)
    validate_column(
        db, organization_id=database.organization_id, database_id=database.id, columns=columns, column=column
    )
    _save(db, database, columns)
    logger.info(
        "column %s (%s) added", column.id, column.type,
        extra={"database_id": database.id, "column_id": column.id},
    )
    return column


def _rename_references(
    database: Database, columns: List[Column], old_name: str, new_name: str
) -> List[Column]:
    """Point formulas of this schema that read ``old_name`` at ``new_name``."""
    out: List[Column] = []
    for col in columns:
        if isinstance(col, FormulaColumn):
            expression = formula_lang.rename_column_reference(col.formula.expression, old_name, new_name)
            if expression != col.formula.expression:
                formula = col.formula.model_copy(update={"expression": expression})
                col = col.model_copy(update={"formula": formula})
                logger.info(
                    "formula %s now reads renamed column %r", col.id, new_name,
                    extra={"database_id": database.id, "column_id": col.id},
                )
        out.append(col)
    return out


def update_column(db: Session, *, database: Database, column_id: str, patch: ColumnUpdate) -> Column:
    """Merge ``patch`` into the column and re-validate. Stored values are never converted."""
    columns = list(database.columns)
    index = next((i for i, c in enumerate(columns) if c.id == column_id), None)
    if index is None:
        raise NotFound(f"Column {column_id} not found")

    previous = columns[index]
    merged = previous.model_dump(mode="json", exclude_none=True)
    merged.update(patch.model_dump(mode="json", exclude_unset=True, exclude_none=True))
    columns[index] = build_column(ColumnCreate.model_validate(merged), column_id=column_id)
    if previous.name.casefold() != columns[index].name.casefold():
        columns = _rename_references(database, columns, previous.name, columns[index].name)
    column = columns[index]
    validate_column(
        db, organization_id=database.organization_id, database_id=database.id, columns=columns, column=column
    )
    _save(db, database, columns)
    logger.info("column %s updated", column_id, extra={"database_id": database.id, "column_id": column_id})
    return column


def delete_column(db: Session, *, database: Database, column_id: str) -> None:
    """Drop the definition only; entries keep orphan keys and dependents compute to null."""
    columns = list(database.columns)
    if not any(c.id == column_id for c in columns):
        raise NotFound(f"Column {column_id} not found")
    if len(columns) == 1:
        raise InvalidColumnConfig("Cannot delete the last column")
    _save(db, database, [c for c in columns if c.id != column_id])
    logger.info("column %s deleted", column_id, extra={"database_id": database.id, "column_id": column_id})
