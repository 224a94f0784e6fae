"""Package loggers and user-facing error reporting."""

from __future__ import annotations

from collections.abc import Callable
import logging
from typing import Any, Optional, TypeVar

from flood_stats.errors import FloodStatsError

ROOT_LOGGER = "flood_stats"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_T = TypeVar("_T")


def engine_logger(component: Optional[str] = None) -> logging.Logger:
    """Return ``flood_stats`` or its ``flood_stats.<component>`` child."""
    name = f"{ROOT_LOGGER}.{component}" if component else ROOT_LOGGER
    return logging.getLogger(name)


def configure_logging(level: int = logging.INFO, *, force: bool = False) -> logging.Logger:
    logging.basicConfig(level=level, format=LOG_FORMAT, force=force)
    logger = engine_logger()
    logger.setLevel(level)
    return logger


def get_user_message(exc: BaseException) -> str:
    if not isinstance(exc, FloodStatsError):
        return f"Unexpected error: {exc}"
    return exc.user_message


def log_exception(
    logger: logging.Logger,
    exc: BaseException,
    *,
    show_traceback: bool = False,
) -> str:
    """Log the user message at ERROR, and context plus traceback below it."""
    message = get_user_message(exc)
    logger.error(message)
    if isinstance(exc, FloodStatsError) and exc.context:
        logger.debug("Error context: %s", exc.log_message())
    traceback_level = logging.ERROR if show_traceback else logging.DEBUG
    logger.log(traceback_level, "Detailed traceback:", exc_info=exc)
    return message


def run_with_error_handling(
    func: Callable[..., _T],
    *args: Any,
    logger: logging.Logger,
    show_traceback: bool = False,
    **kwargs: Any,
) -> _T:
    try:
        return func(*args, **kwargs)
    except Exception as exc:
        log_exception(logger, exc, show_traceback=show_traceback)
        raise


__all__ = [
    "LOG_FORMAT",
    "ROOT_LOGGER",
    "configure_logging",
    "engine_logger",
    "get_user_message",
    "log_exception",
    "run_with_error_handling",
]
