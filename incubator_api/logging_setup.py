"""
Logging module
Stdout logging with optional structured (JSON) output
"""
import logging
import sys
from typing import Any, Dict

from pythonjsonlogger import jsonlogger


def setup_logging(config: Dict[str, Any]) -> logging.Logger:
    """Configure structured logging"""
    log_config = config.get("logging", {})
    log_level = str(log_config.get("level", "INFO")).upper()

    logger = logging.getLogger()
    logger.setLevel(getattr(logging, log_level, logging.INFO))

    # Prevent duplicate handlers when the app is created more than once
    for handler in list(logger.handlers):
        if getattr(handler, "_incubator_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler._incubator_handler = True

    if log_config.get("format") == "json":
        formatter = jsonlogger.JsonFormatter(
            '%(asctime)s %(name)s %(levelname)s %(message)s'
        )
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return logger
