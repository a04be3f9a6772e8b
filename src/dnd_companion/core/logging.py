"""Structured logging for the D&D Companion.

Events are structlog dictionaries. The console renderer is used while
``debug`` is on and JSON otherwise. Relationship operations run inside
:func:`operation_context`, so every event they emit carries the acting user
and the character/campaign pair without each call passing them again.

Example:
    >>> from dnd_companion.core.logging import get_logger, operation_context
    >>> logger = get_logger(__name__)
    >>> with operation_context("link", user_id="u1", character_id="c1"):
    ...     logger.info("Campaign linked", campaign_id="p1")
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Generator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor

from dnd_companion.core.config import Settings, get_settings


if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger


APP_NAME = "dnd_companion"

# Libraries that log at INFO on every template fetch or PDF open.
NOISY_LOGGERS = ("urllib3", "requests", "asyncio", "fitz")


def add_app_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Stamp every event with the application name."""
    event_dict["app"] = APP_NAME
    return event_dict


def drop_unset_fields(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Remove fields whose value is None.

    Anonymous viewers and half-known pairs bind ``None`` ids; leaving them
    out keeps JSON events filterable on presence.
    """
    return {key: value for key, value in event_dict.items() if value is not None}


def configure_logging(
    settings: Settings | None = None,
    *,
    level: str | None = None,
    json_format: bool | None = None,
) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        settings: Source of the defaults (``log_level`` and ``debug``);
            the application settings if omitted.
        level: Overrides ``settings.log_level``.
        json_format: Overrides the renderer choice; JSON unless debugging.
    """
    settings = settings or get_settings()
    level_name = (level or settings.log_level).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)
    if json_format is None:
        json_format = settings.is_production

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        drop_unset_fields,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if json_format:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(colors=True, exception_formatter=structlog.dev.plain_traceback)
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        level=numeric_level,
        stream=sys.stdout,
        force=True,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a structlog logger, typically ``get_logger(__name__)``."""
    return structlog.get_logger(name)


@contextmanager
def operation_context(operation: str, **fields: Any) -> Generator[None, None, None]:
    """Bind ``operation`` and ``fields`` to every event logged inside the block.

    Previously bound values are restored on exit, so nested operations (a
    character creation that links campaigns) keep the outer context.

    Args:
        operation: Name of the operation, e.g. ``"link"``.
        **fields: Identifiers such as ``user_id`` or ``campaign_id``.
    """
    with structlog.contextvars.bound_contextvars(operation=operation, **fields):
        yield


__all__ = [
    "APP_NAME",
    "configure_logging",
    "drop_unset_fields",
    "get_logger",
    "operation_context",
]
