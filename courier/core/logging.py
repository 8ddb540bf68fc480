"""
Logging setup for the relay process.

    setup_logging(config.paths, verbose=True)

Everything under the ``courier`` logger goes to the console (INFO, or
DEBUG when verbose) and in full to ``<data_dir>/logs/courier_YYYYMMDD.log``.
Calling it again replaces the handlers rather than adding more.
"""

from __future__ import annotations

import logging
from datetime import datetime

from courier.core.config import PathsConfig

CONSOLE_FORMAT = "[%(levelname)s] %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(paths: PathsConfig, verbose: bool = False) -> logging.Logger:
    paths.log_dir.mkdir(parents=True, exist_ok=True)
    log_file = paths.log_dir / f"courier_{datetime.now():%Y%m%d}.log"

    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG if verbose else logging.INFO)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    logger = logging.getLogger("courier")
    logger.setLevel(logging.DEBUG)
    for old in logger.handlers:
        old.close()
    logger.handlers = [console, file_handler]

    logger.info(f"Logging to {log_file}")
    return logger
