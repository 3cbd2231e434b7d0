# File: /inline_db/models/database.py | Version: 1.0 | Title: Database + DatabaseEntry ORM models
from __future__ import annotations

from datetime import datetime, UTC
from typing import Any, Dict, List as TList, Optional
from uuid import uuid4

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inline_db.db.base_class import Base
from inline_db.schemas.columns import Column, parse_columns


def gen_uuid() -> str:
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(UTC)


class Database(Base):
    __tablename__ = "databases"
    id: Mapped[str] = mapped_column(String, primary_key=True, default=gen_uuid)
    organization_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    # {"columns": [...]}; always reassigned, never mutated in place
    schema: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=lambda: {"columns": []})
    created_by_id: Mapped[Optional[str]] = mapped_column(String(64))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    entries: Mapped[TList["DatabaseEntry"]] = relationship(
        back_populates="database",
        cascade="all, delete-orphan",
        order_by="DatabaseEntry.position",
    )

    @property
    def columns(self) -> TList[Column]:
        return parse_columns((self.schema or {}).get("columns", []))


class DatabaseEntry(Base):
    __tablename__ = "database_entries"
    id: Mapped[str] = mapped_column(String, primary_key=True, default=gen_uuid)
    database_id: Mapped[str] = mapped_column(
        ForeignKey("databases.id", ondelete="CASCADE"), index=True, nullable=False
    )
    properties: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_by_id: Mapped[Optional[str]] = mapped_column(String(64))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    database: Mapped["Database"] = relationship(back_populates="entries")

    __table_args__ = (Index("ix_database_entries_db_position", "database_id", "position"),)
