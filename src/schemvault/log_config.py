# src/schemvault/log_config.py
import logging
import os
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] [%(name)s] %(message)s"
LOG_LEVEL_ENV_VAR = "SCHEMVAULT_LOG_LEVEL"


def setup_logging(level=None):
    """
    Configures logging to stdout for the whole process.

    The level can be given explicitly or through the SCHEMVAULT_LOG_LEVEL
    environment variable (e.g. "DEBUG"); it defaults to INFO.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO").upper()
    log_formatter = logging.Formatter(LOG_FORMAT)
    root_logger = logging.getLogger()

    # Clear existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(log_formatter)
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)
    logging.getLogger(__name__).debug("Logging configured at level %s.", logging.getLevelName(root_logger.level))
