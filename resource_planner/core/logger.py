"""Loguru sinks for the resource planner.

Console output is for people watching a local run. The optional file sink
rotates and keeps zipped archives; in json mode each line is a serialized
loguru record, so the structured fields passed by the store and the week
transitions (operation, area_id, counts) can be filtered without parsing text.
"""

import sys
from pathlib import Path

from loguru import logger

SERVICE_NAME = "resource-planner"

_CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> <level>{level: <7}</level> "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> {message} <dim>{extra}</dim>"
)
_FILE_FORMAT = "{time:YYYY-MM-DDTHH:mm:ss.SSSZZ} {level: <7} [{extra[service]}] {name}:{function}:{line} {message} {extra}"


def _prepare_log_path(log_file: str) -> Path:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def setup_logger(
    level: str = "INFO",
    log_file: str | None = None,
    json_file: bool = False,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> int | None:
    """Route planner logs to stderr and, when log_file is set, to a rotating file.

    Every record carries service=resource-planner among its extra fields.

    Args:
        level: Minimum level for both sinks
        log_file: Path of the file sink; parent directories are created
        json_file: Write the file sink as one JSON record per line
        rotation: Size or age at which the file is rotated
        retention: How long rotated archives are kept

    Returns:
        Handler id of the file sink, or None when logging to stderr only
    """
    logger.remove()
    logger.configure(extra={"service": SERVICE_NAME})
    logger.add(sys.stderr, format=_CONSOLE_FORMAT, level=level)

    file_handler = None
    if log_file:
        file_handler = logger.add(
            _prepare_log_path(log_file),
            format=_FILE_FORMAT,
            serialize=json_file,
            level=level,
            rotation=rotation,
            retention=retention,
            compression="zip",
            backtrace=True,
            diagnose=False,
        )

    logger.info("Logging configured", log_level=level, log_file=log_file, json_file=json_file)
    return file_handler
