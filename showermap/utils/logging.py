"""
Logging configuration for the location pipeline.

Console output is kept short because geocoding runs print one line per
record for hours. A file sink, optionally JSON-serialized, keeps the full
context of a run for later audit.
"""

import os
import sys
from pathlib import Path

from loguru import logger

from showermap.config import settings

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <7}</level> | "
    "<cyan>{name}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(
    level: str | None = None,
    log_file: Path | None = None,
    json_file: bool = False,
    rotation: str = "50 MB",
    retention: str = "2 weeks",
) -> None:
    """
    Replace loguru's default sink with the pipeline's sinks.

    Args:
        level: Minimum level for every sink (defaults to settings)
        log_file: Also write to this file, rotated and gzip-compressed
        json_file: Serialize file records as JSON lines
        rotation: Size or age at which the log file rotates
        retention: How long rotated files are kept
    """
    level = (level or settings.pipeline.log_level).upper()
    log_file = log_file or settings.pipeline.log_file

    logger.remove()
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level=level,
            format=FILE_FORMAT,
            serialize=json_file,
            rotation=rotation,
            retention=retention,
            compression="gz",
        )

    logger.debug(f"Logging to stderr{f' and {log_file}' if log_file else ''} at {level}")


if os.environ.get("DISABLE_LOGGING") != "1":
    setup_logging()
