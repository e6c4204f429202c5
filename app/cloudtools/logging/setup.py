"""Structlog configuration for applications embedding cloudtools.

cloudtools modules only ever call `structlog.get_logger()`; they never
configure logging themselves. An application calls `configure_logging()`
once at startup to get timestamped, callsite-annotated events rendered for
a console (development) or as JSON lines (production).

Usage:
    from cloudtools.logging import configure_logging, get_module_logger

    configure_logging()

    logger = get_module_logger()
    logger.info("cache_warmed", tables=3)
"""

import inspect
import logging
import sys
from typing import List, Optional

import structlog
from structlog.stdlib import BoundLogger
from structlog.typing import Processor

from cloudtools.configuration import Settings, get_settings

SILENT_LEVEL = logging.CRITICAL + 1


def _is_test_environment() -> bool:
    """True when running under pytest."""
    return "pytest" in sys.modules


def _processors(production: bool) -> List[Processor]:
    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if production
        else structlog.dev.ConsoleRenderer()
    )
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.MODULE,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ]
        ),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        renderer,
    ]


def _resolve_level(log_level: str) -> int:
    level = logging.getLevelName(log_level.upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(
    log_level: Optional[str] = None,
    is_production: Optional[bool] = None,
    settings: Optional[Settings] = None,
) -> BoundLogger:
    """Configure structlog and the stdlib root logger.

    Args:
        log_level: Level name overriding `settings.LOG_LEVEL`
        is_production: JSON output when True, console output when False;
            defaults to `settings.is_production`
        settings: Settings instance (defaults to `get_settings()`)

    Returns:
        A logger using the new configuration

    Under pytest every event is dropped so test output stays clean.
    """
    if _is_test_environment():
        level = SILENT_LEVEL
        processors: List[Processor] = [
            structlog.stdlib.add_log_level,
            structlog.processors.KeyValueRenderer(),
        ]
    else:
        settings = settings or get_settings()
        production = (
            is_production if is_production is not None else settings.is_production
        )
        level = _resolve_level(log_level or settings.LOG_LEVEL)
        processors = _processors(production)

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", level=level, force=True)
    return structlog.stdlib.get_logger()


def get_module_logger() -> BoundLogger:
    """Logger bound with the calling module's name.

    Example:
        # In cloudtools/clients/aws/s3.py
        logger = get_module_logger()
        # context: {"component": "s3", "module_path": "cloudtools.clients.aws.s3"}
    """
    logger = structlog.stdlib.get_logger()
    frame = inspect.currentframe()
    caller = frame.f_back if frame is not None else None
    module = inspect.getmodule(caller) if caller is not None else None
    if module is None:
        return logger.bind(component="unknown")

    module_name = module.__name__
    return logger.bind(
        component=module_name.rsplit(".", 1)[-1],
        module_path=module_name,
    )
