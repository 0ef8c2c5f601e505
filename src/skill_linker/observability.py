"""Logging and Sentry setup for skill-linker."""

import logging
import os
import sys
from typing import Any

import sentry_sdk
import structlog
from sentry_sdk.integrations.logging import LoggingIntegration

from . import __version__


def init_sentry() -> bool:
    """Initialize Sentry for error tracking.

    Only enabled when SENTRY_DSN is set.

    Returns:
        Whether Sentry was initialized.
    """
    dsn = os.environ.get("SENTRY_DSN")
    if not dsn:
        return False

    environment = os.environ.get("ENVIRONMENT", "development")

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=f"skill-linker@{__version__}",
        traces_sample_rate=1.0 if environment == "development" else 0.2,
        integrations=[
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        send_default_pii=False,
        attach_stacktrace=True,
        max_breadcrumbs=50,
        server_name="skill-linker",
        ignore_errors=[
            "KeyboardInterrupt",
            "SystemExit",
        ],
    )

    sentry_sdk.set_tag("service", "skill-linker")
    return True


def _add_sentry_breadcrumb(
    _logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Record structlog events as Sentry breadcrumbs."""
    standard_keys = {"event", "level", "timestamp"}
    extra_data = {k: v for k, v in event_dict.items() if k not in standard_keys}

    sentry_sdk.add_breadcrumb(
        message=str(event_dict.get("event", "")),
        category="log",
        level=event_dict.get("level", method_name),
        data=extra_data if extra_data else None,
    )
    return event_dict


def configure_logging(
    log_level: str = "WARNING",
    json_format: bool | None = None,
    sentry_enabled: bool = False,
) -> None:
    """Configure structlog for CLI use.

    Diagnostics go to stderr so that per-skill status lines on stdout stay
    readable and scriptable.

    Args:
        log_level: Minimum level name (DEBUG, INFO, WARNING, ERROR).
        json_format: Use JSON output (True) or console format (False).
                     If None, JSON is used when ENVIRONMENT is not "development".
        sentry_enabled: Add log events to Sentry breadcrumbs.
    """
    if json_format is None:
        environment = os.environ.get("ENVIRONMENT", "development")
        json_format = environment != "development"

    level = logging.getLevelNamesMapping().get(log_level.upper(), logging.WARNING)

    processors: list[Any] = [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if sentry_enabled:
        processors.append(_add_sentry_breadcrumb)

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
