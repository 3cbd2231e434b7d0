# File: /inline_db/core/logging.py | Version: 2.0 | Title: App logging configuration (JSON optional, engine traces opt-in)
import json
import logging
import logging.config
import os

# Extra attributes the Mutation API attaches to audit records
_AUDIT_FIELDS = ("database_id", "entry_id", "column_id", "organization_id", "user_id")


def _boolenv(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "y", "on"}


class JsonConsole(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in _AUDIT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                base[name] = value
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(base, ensure_ascii=False, default=str)


def configure_logging() -> None:
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    engine_level = os.getenv("ENGINE_LOG_LEVEL", "WARNING").upper()
    use_json = _boolenv("LOG_JSON", False)

    formatter = {
        "format": "%(levelname)s %(asctime)s %(name)s: %(message)s",
        "class": "logging.Formatter",
    }
    if use_json:
        formatter = {"()": JsonConsole}

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": formatter,
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "level": level,
            },
        },
        "root": {
            "handlers": ["console"],
            "level": level,
        },
        "loggers": {
            # Quiet overly chatty libraries during tests to avoid closed-stream errors
            "httpx": {"level": "WARNING", "propagate": False},
            "httpcore": {"level": "WARNING", "propagate": False},
            "uvicorn": {"level": level},
            "uvicorn.access": {"level": level},
            "sqlalchemy.engine": {"level": "WARNING"},
            # Coercion failures and unresolved references are logged at DEBUG
            "inline_db.engine": {"level": engine_level},
        },
    }

    logging.config.dictConfig(config)
