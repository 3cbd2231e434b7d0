# File: /inline_db/observability/sentry.py | Version: 2.0 | Title: Optional Sentry initialization
import logging
import os

import sentry_sdk

from inline_db.core.errors import InlineDbError

log = logging.getLogger(__name__)


def _drop_domain_errors(event, hint):
    # Expected 4xx domain errors are answered to the caller, not reported
    exc_info = hint.get("exc_info") if hint else None
    if exc_info and isinstance(exc_info[1], InlineDbError) and exc_info[1].status_code < 500:
        return None
    return event


def init_sentry_if_configured() -> bool:
    dsn = os.getenv("SENTRY_DSN", "").strip()
    if not dsn:
        log.info("Sentry disabled (no SENTRY_DSN).")
        return False

    try:
        traces = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1"))
        sentry_sdk.init(
            dsn=dsn,
            traces_sample_rate=traces,
            environment=os.getenv("SENTRY_ENVIRONMENT", "development"),
            before_send=_drop_domain_errors,
        )
        log.info("Sentry initialized.")
        return True
    except Exception as e:  # pragma: no cover (best-effort)
        log.warning("Sentry init failed: %s", e)
        return False
