"""
Logging for GeoJoin Report.

Every module logs under the ``geojoin`` namespace. A report run prints its
stage progress (row counts, CRS changes, output paths) to stdout and keeps a
DEBUG-level copy in ``logs/geojoin_<timestamp>.log``, so a failed run can be
read back stage by stage.

Functions:
    setup_logging: Attach the console and file handlers for one run
    get_logger: Module logger under the geojoin namespace
    log_banner: Log a ruled section heading

Example:
    >>> from utils.logger import setup_logging, get_logger
    >>> log_file = setup_logging()
    >>> logger = get_logger(__name__)
    >>> logger.info("Loading bank locations")
"""

import logging
import sys
from pathlib import Path
from datetime import datetime
from typing import Optional, Union

ROOT_LOGGER_NAME = 'geojoin'
BANNER_WIDTH = 80

CONSOLE_FORMAT = '%(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
FILE_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(log_dir: Optional[Union[str, Path]] = None,
                  console_level: int = logging.INFO) -> Path:
    """
    Route the geojoin loggers to stdout and to a per-run log file.

    Handlers from an earlier call are closed and replaced, so running the
    report twice in one process writes each run to its own file.

    Parameters:
    -----------
    log_dir : Optional[Union[str, Path]]
        Where the run's log file goes. Defaults to <project>/logs
    console_level : int
        Threshold for stdout; the file always records DEBUG

    Returns:
    --------
    Path
        The run's log file
    """
    log_dir = Path(log_dir) if log_dir is not None else Path(__file__).parent.parent / 'logs'
    log_dir.mkdir(parents=True, exist_ok=True)

    log_file = log_dir / f"geojoin_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(logging.DEBUG)

    for handler in list(root.handlers):
        handler.close()
        root.removeHandler(handler)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    run_file = logging.FileHandler(log_file, encoding='utf-8')
    run_file.setLevel(logging.DEBUG)
    run_file.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT))

    root.addHandler(console)
    root.addHandler(run_file)

    root.debug(f"Run log: {log_file}")

    return log_file


def get_logger(name: str) -> logging.Logger:
    """Module logger under ``geojoin``; pass __name__."""
    return logging.getLogger(f'{ROOT_LOGGER_NAME}.{name}')


def log_banner(logger: logging.Logger, title: str, level: int = logging.INFO) -> None:
    """Log ``title`` between two rules, as the report does at each stage."""
    rule = '=' * BANNER_WIDTH
    logger.log(level, rule)
    logger.log(level, title)
    logger.log(level, rule)
