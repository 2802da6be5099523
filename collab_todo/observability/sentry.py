# File: collab_todo/observability/sentry.py | Version: 1.0 | Title: Optional Sentry initialization
import logging

from collab_todo.core.config import settings

log = logging.getLogger(__name__)


def init_sentry_if_configured() -> bool:
    dsn = settings.SENTRY_DSN.strip()
    if not dsn:
        log.info("Sentry disabled (no SENTRY_DSN).")
        return False

    try:
        import sentry_sdk
    except ImportError:
        log.warning("SENTRY_DSN is set but sentry-sdk is not installed; install the 'sentry' extra.")
        return False

    traces = settings.SENTRY_TRACES_SAMPLE_RATE
    sentry_sdk.init(
        dsn=dsn,
        environment=settings.SENTRY_ENVIRONMENT,
        traces_sample_rate=traces,
        profiles_sample_rate=settings.SENTRY_PROFILES_SAMPLE_RATE,
    )
    log.info("Sentry initialized (%s).", settings.SENTRY_ENVIRONMENT)
    return True
