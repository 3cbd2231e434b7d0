# File: /inline_db/db/__init__.py | Version: 2.0 | Title: DB package exports
# Import models so Base.metadata knows every table before create_all()
import inline_db.models  # noqa: F401

from .base_class import Base
from .session import SessionLocal, engine, get_db

__all__ = ["Base", "get_db", "SessionLocal", "engine"]
