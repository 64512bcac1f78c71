"""
Logging for the live server.

The server's own modules log under the 'fpllive' namespace. uvicorn runs
with log_config=None, so its 'uvicorn' logger tree (startup, errors and the
'uvicorn.access' request log) is attached to the same handlers here.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

LOGGER_NAME = 'fpllive'
SERVER_LOGGER_NAME = 'uvicorn'

FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
CONSOLE_FORMAT = '%(asctime)s %(levelname)-7s %(name)s: %(message)s'


def _build_handlers(
    log_dir: Optional[Path],
    level: int,
    log_to_file: bool,
    log_to_console: bool,
) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []

    if log_to_file:
        log_dir = log_dir or Path('logs')
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f'fpllive_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log'
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        handlers.append(file_handler)

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt='%H:%M:%S'))
        handlers.append(console_handler)

    for handler in handlers:
        handler.setLevel(level)
    return handlers


def _attach(logger: logging.Logger, handlers: List[logging.Handler], level: int) -> None:
    for old in logger.handlers:
        if old not in handlers:
            old.close()
    logger.handlers = list(handlers)
    logger.setLevel(level)


def setup_logging(
    log_dir: Optional[Path] = None,
    level: int = logging.INFO,
    log_to_file: bool = False,
    log_to_console: bool = True,
) -> logging.Logger:
    """
    Configure the server's and uvicorn's loggers.

    Calling it again replaces the handlers of both trees.

    Args:
        log_dir: Directory for log files (default: ./logs)
        level: Logging level (default: INFO)
        log_to_file: Also write a timestamped log file (default: False)
        log_to_console: Log to stdout (default: True)

    Returns:
        The 'fpllive' logger

    Example:
        from fpllive.logging_config import setup_logging
        logger = setup_logging(level=logging.DEBUG)
        logger.info("Starting live server")
    """
    handlers = _build_handlers(log_dir, level, log_to_file, log_to_console)

    server_logger = logging.getLogger(SERVER_LOGGER_NAME)
    _attach(server_logger, handlers, level)
    server_logger.propagate = False
    # uvicorn.error and uvicorn.access propagate into the 'uvicorn' handlers
    for child in ('uvicorn.error', 'uvicorn.access'):
        child_logger = logging.getLogger(child)
        child_logger.handlers = []
        child_logger.propagate = True

    logger = logging.getLogger(LOGGER_NAME)
    _attach(logger, handlers, level)
    return logger
