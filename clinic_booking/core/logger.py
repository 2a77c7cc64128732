"""Logging setup with Loguru."""

import contextvars
import logging
import sys
from types import FrameType
from typing import Any, Dict, Optional

from loguru import logger

from .config.settings import get_settings

# Context variable for correlating all log lines of one wizard session
correlation_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id", default=None
)

__all__ = ["correlation_id_ctx", "setup_logging", "InterceptHandler"]


def _correlation_patcher(record: Dict[str, Any]) -> None:
    """
    Patch log records with correlation_id from context.

    Called by Loguru for each log record to inject the correlation_id from
    the ContextVar into the log's extra fields.
    """
    corr_id = correlation_id_ctx.get()
    if corr_id:
        record["extra"]["correlation_id"] = corr_id


class InterceptHandler(logging.Handler):
    """Redirect standard logging records (aiohttp, tenacity) into Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        # Get corresponding Loguru level if it exists
        try:
            level: Any = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame: Optional[FrameType] = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: Optional[str] = None, json_format: Optional[bool] = None) -> None:
    """
    Setup Loguru logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR); defaults to LOG_LEVEL
        json_format: Serialize records as JSON lines instead of text; defaults to LOG_JSON
    """
    settings = get_settings()
    if level is None:
        level = settings.log_level
    if json_format is None:
        json_format = settings.log_json
    # Variable values in tracebacks only in development
    diagnose = settings.is_development()

    logger.remove()
    logger.configure(patcher=_correlation_patcher)

    if json_format:
        logger.add(sys.stdout, format="{message}", level=level, serialize=True, diagnose=diagnose)
    else:
        console_format = (
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        )
        logger.add(sys.stdout, format=console_format, level=level, colorize=True, diagnose=diagnose)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    logging.root.setLevel(getattr(logging, level))

    # Reduce noise from third-party libraries
    logging.getLogger("aiohttp").setLevel(logging.WARNING)

    logger.info(f"Logging initialized (level={level}, json={json_format})")
