"""Package logger.

Every module logs through the single ``fic2epub`` logger configured in
:mod:`fic2epub.logging_config`::

    from .logging import logger
"""
from .logging_config import logger, set_debug_level, TRACE_LEVEL, COMPONENT_LEVEL

__all__ = ['logger', 'set_debug_level', 'TRACE_LEVEL', 'COMPONENT_LEVEL']
