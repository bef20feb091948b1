#!/usr/bin/env python3

# delugeweb - Client for the Deluge Web UI JSON-RPC interface
# Copyright (C) 2025  Anton Larionov
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

import logging
import time
from functools import wraps
from pathlib import Path

from platformdirs import user_log_dir


def get_logger() -> logging.Logger:
    """Get the delugeweb logger instance.

    Returns:
        Logger instance for the delugeweb package
    """
    return logging.getLogger("delugeweb")


LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

LOG_FORMAT = (
    "%(asctime)s.%(msecs)03d %(module)-15s %(levelname)-8s %(message)s"
)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def init_logger(log_level: str) -> Path:
    """Write the delugeweb logger to a file in the user log directory.

    Only the package logger is touched, so the logging setup of an
    embedding application stays as it is. Calling it again changes the
    level and keeps the single file handler.

    Args:
        log_level: Log level (debug, info, warning, error, critical);
                   unknown names fall back to warning

    Returns:
        Path of the log file
    """
    level = LEVELS.get(log_level.lower(), logging.WARNING)

    log_dir = Path(user_log_dir("delugeweb", appauthor=False))
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "delugeweb.log"

    logger = get_logger()
    logger.setLevel(level)

    if not any(
        isinstance(h, logging.FileHandler)
        and Path(h.baseFilename) == log_file.absolute()
        for h in logger.handlers
    ):
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        logger.addHandler(handler)

    logger.info(
        f"File logging: level={logging.getLevelName(level)}, file={log_file}"
    )

    return log_file


def log_time(func):
    """Decorator to log function execution time if it exceeds 1ms."""

    @wraps(func)
    def log_time_wrapper(*args, **kwargs):
        start_time = time.perf_counter()

        result = func(*args, **kwargs)

        end_time = time.perf_counter()

        total_time_ms = (end_time - start_time) * 1000

        if total_time_ms > 1:
            logger = get_logger()
            logger.debug(
                f'Function "{func.__qualname__}": {total_time_ms:.4f} ms'
            )

        return result

    return log_time_wrapper
