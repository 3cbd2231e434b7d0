# File: /inline_db/schemas/__init__.py | Version: 2.0 | Title: Schemas package
from . import columns, database, entry, filters, imports, view

__all__ = ["columns", "database", "entry", "filters", "imports", "view"]
