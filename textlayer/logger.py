"""
Logging Setup
=============
Single ``textlayer`` logger with a console handler. Modules log through
``logging.getLogger(__name__)`` and inherit this configuration.
"""

import logging
from typing import Union


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """
    Configure the package logger.

    Adds a StreamHandler once (repeated calls only change the level) and
    quiets pdfminer, whose debug output drowns everything else.
    """
    logger = get_logger()

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    logger.setLevel(level)

    logging.getLogger("pdfminer").setLevel(logging.WARNING)
    return logger


def get_logger() -> logging.Logger:
    return logging.getLogger("textlayer")
