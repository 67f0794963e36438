"""
Loguru sinks for import runs.

Console output is always on; a rotating run log is added when
IMPORTER_LOG_FILE (or the log_file argument) is set. The file sink only
records the importer's own messages.
"""

import os
import sys
from pathlib import Path

from loguru import logger

from site_importer.config import settings

CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> - <level>{message}</level>"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(
    level: str | None = None,
    log_file: Path | str | None = None,
    rotation: str = "10 MB",
    retention: str = "4 weeks",
) -> Path | None:
    """
    Replace loguru's default handler with the importer's sinks.

    Args:
        level: Log level (default from settings)
        log_file: Run log path (default from settings)
        rotation: Loguru rotation for the run log
        retention: Loguru retention for rotated run logs

    Returns:
        Path of the run log, or None when logging to stderr only
    """
    level = (level or settings.importer.log_level).upper()
    log_file = log_file or settings.importer.log_file

    logger.remove()
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True)

    if not log_file:
        return None

    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        level=level,
        format=FILE_FORMAT,
        filter="site_importer",
        rotation=rotation,
        retention=retention,
        encoding="utf-8",
    )
    logger.debug(f"Writing import log to {log_file}")
    return log_file


if os.environ.get("DISABLE_LOGGING") != "1":
    setup_logging()
