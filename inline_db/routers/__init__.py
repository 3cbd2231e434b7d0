# File: /inline_db/routers/__init__.py | Version: 2.0 | Title: Router package exports
"""
Router package exports.

Keeping these explicit helps static analyzers and avoids surprises
when importing submodules like: `from inline_db.routers import entries`.
"""
from . import columns, databases, entries, health, imports, views

__all__ = ["columns", "databases", "entries", "health", "imports", "views"]
