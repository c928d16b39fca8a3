"""Logging configuration using structlog.

Logs go to stderr to keep stdout clean for CLI data output (piping).
The HTTP server can switch to JSON lines for log shippers.
"""

import logging
import sys
from typing import Any

import structlog

_LOG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


class _LazyStderrFactory:
    """Resolve sys.stderr at logger creation time, not at configure() time.

    PrintLoggerFactory(file=sys.stderr) captures the file handle once.
    Under CliRunner tests the captured handle becomes stale when stderr
    is closed between invocations.  This factory defers the lookup so
    each logger gets the *current* sys.stderr.
    """

    def __call__(self, *args: Any, **kwargs: Any) -> structlog.PrintLogger:
        return structlog.PrintLogger(file=sys.stderr)


def setup_logging(verbose: bool = False, json_logs: bool = False) -> None:
    """Configure structlog for pgbrowse.

    Args:
        verbose: If True, set log level to DEBUG. Otherwise INFO.
        json_logs: Render one JSON object per line instead of console output.
    """
    log_level = "debug" if verbose else "info"

    renderer: Any
    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_LOG_LEVELS[log_level]),
        context_class=dict,
        logger_factory=_LazyStderrFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structlog logger, optionally bound with a name.

    IMPORTANT: Never call this at module level. Always call inside
    functions or __init__() after setup_logging() has been called.
    """
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger
