# fic2epub/logging_config.py
"""
Logging configuration with granular verbosity control.
Usage:
    from fic2epub.logging_config import logger, set_debug_level

    set_debug_level('TRACE')      # Shows everything, including retry chatter
    set_debug_level('COMPONENT')  # Shows builder/adapter lifecycle only
    set_debug_level('ERROR')      # Errors only
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Literal

# Custom logging levels
TRACE_LEVEL = 5        # Extremely verbose (selector hits, raw fragment sizes)
COMPONENT_LEVEL = 15   # Builder state transitions, adapter selection

logging.addLevelName(TRACE_LEVEL, "TRACE")
logging.addLevelName(COMPONENT_LEVEL, "COMPONENT")

LOGGER_NAME = 'fic2epub'


class CustomLogger(logging.Logger):
    def trace(self, message, *args, **kwargs):
        if self.isEnabledFor(TRACE_LEVEL):
            self._log(TRACE_LEVEL, message, args, **kwargs)

    def component(self, message, *args, **kwargs):
        if self.isEnabledFor(COMPONENT_LEVEL):
            self._log(COMPONENT_LEVEL, message, args, **kwargs)


logging.setLoggerClass(CustomLogger)
logger = logging.getLogger(LOGGER_NAME)
logging.setLoggerClass(logging.Logger)

DEBUG_LEVELS = {
    'ERROR': logging.ERROR,
    'WARNING': logging.WARNING,
    'INFO': logging.INFO,
    'COMPONENT': COMPONENT_LEVEL,
    'DEBUG': logging.DEBUG,
    'TRACE': TRACE_LEVEL,
}


def set_debug_level(level: Literal['ERROR', 'WARNING', 'INFO', 'COMPONENT', 'DEBUG', 'TRACE'] = 'INFO'):
    """Set the global debug verbosity level."""
    numeric_level = DEBUG_LEVELS.get(str(level).upper(), logging.INFO)
    logger.setLevel(numeric_level)

    for handler in logger.handlers:
        handler.setLevel(numeric_level)

    logger.debug(f"[LOGGING] Debug level set to: {level} ({numeric_level})")


if not logger.handlers:
    log_dir = os.getenv('FIC2EPUB_LOG_DIR', 'logs')
    os.makedirs(log_dir, exist_ok=True)

    # Rotating file handler, opened lazily on first record
    file_handler = RotatingFileHandler(
        os.path.join(log_dir, 'app.log'),
        mode='a',
        maxBytes=128 * 1024,
        backupCount=5,
        encoding='utf-8',
        delay=True
    )

    console_handler = logging.StreamHandler(sys.stdout)

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    file_handler.setFormatter(formatter)
    console_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

set_debug_level(os.getenv('FIC2EPUB_DEBUG_LEVEL', 'INFO'))
