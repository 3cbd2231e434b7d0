# File: /inline_db/main.py | Version: 2.0 | Title: FastAPI App (router includes + domain error handlers)
from __future__ import annotations

import logging

from fastapi import FastAPI

from inline_db.core.config import settings
from inline_db.core.error_handlers import register_domain_handlers, register_exception_handlers
from inline_db.core.logging import configure_logging
from inline_db.observability.sentry import init_sentry_if_configured
from inline_db.routers import columns, databases, entries, health, imports, views

# Initialize logging & observability
configure_logging()
# Silence very verbose multipart parser logs to avoid pytest "closed file" noise
logging.getLogger("python_multipart.multipart").setLevel(logging.WARNING)
init_sentry_if_configured()

# App
app = FastAPI(title="Inline Database API")

app.include_router(health.router)
app.include_router(databases.router)
app.include_router(columns.router)
app.include_router(entries.router)
app.include_router(imports.router)
app.include_router(views.router)

# Domain errors always render as {"error": {...}}
register_domain_handlers(app)

# Optional standardized error responses for HTTP/validation errors
if getattr(settings, "ENABLE_STD_ERRORS", False):
    register_exception_handlers(app)
