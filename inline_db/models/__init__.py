# File: /inline_db/models/__init__.py | Version: 2.0 | Title: Models Package Exports
from .database import Database, DatabaseEntry
from .view import DatabaseView

__all__ = ["Database", "DatabaseEntry", "DatabaseView"]
