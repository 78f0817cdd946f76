"""Logging configuration for MealCart using loguru.

Every record carries ``extra[name]`` (the component) and ``extra[user_id]``
(the cart owner, ``None`` outside a service call), so cart actions of one
owner can be filtered out of the JSON log file.
"""
import sys
from loguru import logger

from mealcart.config.settings import MealCartSettings, get_settings

_CONSOLE_FORMATS = {
    "detailed": (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{extra[name]}</cyan>:<cyan>{line}</cyan> | "
        "owner={extra[user_id]} | "
        "<level>{message}</level>"
    ),
    "simple": (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<level>{message}</level>"
    ),
}


def setup_logging(settings: MealCartSettings) -> None:
    """Replace loguru's handlers with the MealCart console and file sinks."""
    logger.remove()
    logger.configure(extra={"name": "mealcart", "user_id": None})

    logger.add(
        sys.stderr,
        format=_CONSOLE_FORMATS[settings.LOG_FORMAT],
        level=settings.LOG_LEVEL,
        colorize=True,
        backtrace=True,
        diagnose=True,
    )

    if settings.LOG_FILE:
        # JSON lines; the format string only shapes the "text" field
        logger.add(
            settings.LOG_FILE,
            level=settings.LOG_LEVEL,
            rotation=f"{settings.LOG_ROTATION_SIZE_MB} MB",
            retention=f"{settings.LOG_RETENTION_DAYS} days",
            compression="zip",
            serialize=True,
            enqueue=True,  # Thread-safe logging
        )


setup_logging(get_settings())


def get_logger(name: str):
    """Get a logger bound to a MealCart component name.

    Args:
        name: Module ``__name__`` or class name; prefixed with ``mealcart.``
            when it is not already.
    """
    if not name.startswith("mealcart.") and name != "__main__":
        name = f"mealcart.{name}"
    return logger.bind(name=name)
