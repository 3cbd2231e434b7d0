# File: /inline_db/models/view.py | Version: 2.0 | Title: SQLAlchemy model for persisted database views
from __future__ import annotations

import uuid
from sqlalchemy import Column, DateTime, String, JSON, func, Index
from inline_db.db.base_class import Base


class DatabaseView(Base):
    """View state of one embedded database block. No FK: the database may be deleted first."""

    __tablename__ = "database_views"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    location_id = Column(String(200), nullable=False, unique=True)
    database_id = Column(String, nullable=False)
    owner_id = Column(String(64), nullable=True)
    organization_id = Column(String(64), nullable=False)

    view_type = Column(String(16), nullable=False, server_default="table")
    filters = Column(JSON, nullable=False, default=list)
    sort_by = Column(JSON, nullable=True)
    group_by = Column(String, nullable=True)
    hidden_columns = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_database_views_database", "database_id"),
        Index("ix_database_views_org", "organization_id"),
    )
