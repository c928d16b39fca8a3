"""Sentry integration for error tracking and performance monitoring.

Sentry is only initialized when a DSN is configured.
"""

from __future__ import annotations

import sentry_sdk

from pgbrowse.__about__ import __version__


def setup_sentry(dsn: str | None, environment: str = "development") -> bool:
    """Initialize Sentry. Returns False when no DSN is configured."""
    if not dsn:
        return False
    sentry_sdk.init(
        dsn=dsn,
        traces_sample_rate=0.03,
        environment=environment,
        release=__version__,
        attach_stacktrace=True,
        send_default_pii=False,
    )
    return True
