"""Loguru sinks for the API process and CLI.

Logs go to stderr as text, or as one JSON object per line when ``json_logs``
is on (log shippers in production). A daily-rotated file is added when a
``log_dir`` is configured.
"""

import sys
from pathlib import Path

from loguru import logger

LOG_FILE_NAME = "voter-card-api.log"
_TEXT_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} | {message}"


def setup_logging(log_level: str = "INFO", log_dir: str | None = None, *, json_logs: bool = False) -> None:
    """Replace any existing Loguru sinks with the service's sinks.

    Args:
        log_level: Minimum level, case-insensitive.
        log_dir: Directory for ``voter-card-api.log``; created if missing.
            The file rotates every 24 hours and is kept for 7 days.
        json_logs: Serialize stderr records as JSON instead of text.
    """
    level = log_level.upper()
    logger.remove()
    if json_logs:
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(sys.stderr, level=level, format=_TEXT_FORMAT)

    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        logger.add(path / LOG_FILE_NAME, level=level, format=_TEXT_FORMAT, rotation="24h", retention="7 days")
