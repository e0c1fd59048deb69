"""Logging utils"""

import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from subdb.settings.models import SubDBSettings

# name: (severity, default colour, default icon)
CUSTOM_LEVELS = {
    "SUBDB": (20, "006989", "🎬"),
    "NETWORK": (5, "e56c49", "🌐"),  # trace
}

LOG_FORMAT = (
    "<fg #818589>{time:YY-MM-DD} {time:HH:mm:ss}</fg #818589> | "
    "<level>{level.icon}</level> <level>{level: <9}</level> | "
    "<fg #e7e7e7>{module}</fg #e7e7e7>.<fg #e7e7e7>{function}</fg #e7e7e7> - <level>{message}</level>"
)


def get_log_settings(name: str, default_color: str, default_icon: str) -> tuple[str, str]:
    """Colour and icon for a level, overridable through the environment."""

    color = os.getenv(f"SUBDB_LOGGER_{name}_FG", default_color)
    icon = os.getenv(f"SUBDB_LOGGER_{name}_ICON", default_icon)
    return f"<fg #{color}>", icon


def ensure_level(
    name: str, no: int, color: str | None = None, icon: str | None = None
) -> None:
    """Register a log level if it does not exist yet, otherwise restyle it."""

    try:
        logger.level(name)
    except ValueError:
        logger.level(name, no=no, color=color, icon=icon)
        return

    # Severity of an existing level cannot change
    if color is not None or icon is not None:
        logger.level(name, color=color, icon=icon)


def register_custom_levels() -> None:
    """Register the SUBDB and NETWORK levels with their configured style."""

    for name, (no, default_color, default_icon) in CUSTOM_LEVELS.items():
        color, icon = get_log_settings(name, default_color, default_icon)
        ensure_level(name, no=no, color=color, icon=icon)


def setup_logger(
    level: str = "INFO",
    log_file: str | Path | None = None,
    rotation_mb: int = 10,
    retention_hours: int = 24,
) -> None:
    """Setup the logger"""

    register_custom_levels()

    debug_color, debug_icon = get_log_settings("DEBUG", "98C1D9", "🐞")
    warning_color, warning_icon = get_log_settings("WARNING", "ffcc00", "⚠️ ")

    logger.level("DEBUG", color=debug_color, icon=debug_icon)
    logger.level("WARNING", color=warning_color, icon=warning_icon)

    level = (level or "INFO").upper()

    handlers = [
        {
            "sink": sys.stderr,
            "level": level,
            "format": LOG_FORMAT,
            "backtrace": False,
            "diagnose": False,
        }
    ]

    if log_file:
        log_path = Path(log_file)
        os.makedirs(log_path.parent, exist_ok=True)

        handlers.append(
            {
                "sink": log_path,
                "level": level,
                "format": LOG_FORMAT,
                "rotation": f"{rotation_mb} MB" if rotation_mb > 0 else None,
                "retention": f"{retention_hours} hours" if retention_hours > 0 else None,
                "backtrace": False,
                "diagnose": False,
            }
        )

    logger.configure(handlers=handlers)


def configure_logging(settings: "SubDBSettings", log_file: str | Path | None = None) -> None:
    """Apply `settings.log_level` to the stderr (and optional file) handler."""

    setup_logger(settings.log_level, log_file=log_file)
