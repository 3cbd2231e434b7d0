# File: /inline_db/routers/imports.py | Version: 1.0 | Title: CSV import endpoint
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inline_db.core.permissions import Role, require_role
from inline_db.crud import databases as crud_db
from inline_db.crud import entries as crud_entries
from inline_db.db.session import get_db
from inline_db.engine.csv_import import ImportSession
from inline_db.schemas.imports import ImportReportOut, ImportRequest
from inline_db.security import Principal, get_current_principal

router = APIRouter(tags=["Import"])
log = logging.getLogger(__name__)


@router.post("/databases/{database_id}/import", response_model=ImportReportOut)
def import_csv(
    database_id: str,
    data: ImportRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.MEMBER)
    database = crud_db.get_database(db, organization_id=principal.organization_id, database_id=database_id)

    session = ImportSession(database.columns)
    session.load(data.csv)
    session.auto_map()
    if data.mapping:
        session.set_mapping(data.mapping)

    def create(properties):
        try:
            crud_entries.create_entry(db, database=database, properties=properties, user_id=principal.user_id)
        except SQLAlchemyError:
            # leave the session usable; earlier rows are already committed
            db.rollback()
            raise

    def progress(done: int, total: int) -> None:
        log.debug("import progress %d/%d", done, total, extra={"database_id": database_id})

    report = session.run(create, on_progress=progress)
    log.info(
        "csv import: %s", report.summary,
        extra={"database_id": database_id, "user_id": principal.user_id},
    )
    return {
        "state": report.state.value,
        "created": report.created,
        "total": report.total,
        "failures": [{"index": f.index, "reason": f.reason} for f in report.failures],
        "summary": report.summary,
        "error": report.error,
        "mapping": session.mapping,
    }
