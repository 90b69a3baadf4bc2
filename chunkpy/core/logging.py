"""Logging helpers shared by every chunkpy component."""

import logging


LOGGER_NAMES = (
    'chunkpy',
    'chunkpy.upload',
    'chunkpy.upload.session',
    'chunkpy.upload.chunk',
    'chunkpy.upload.merge',
    'chunkpy.upload.eviction',
    'chunkpy.upload.coordinator',
    'chunkpy.storage',
    'chunkpy.server',
)


def get_logger(name: str) -> logging.Logger:
    """Return a ``chunkpy.*`` logger that defers to the host application.
    
    Records always propagate, so an application that configured the root
    logger (``basicConfig`` or its own handlers) sees them unchanged. Until
    that happens the logger stays at WARNING, keeping library chatter off
    stderr. An explicit level set earlier is left alone.
    
    Args:
        name: Dotted logger name, e.g. 'chunkpy.upload.merge'
    """
    logger = logging.getLogger(name)
    logger.propagate = True
    
    if not logging.getLogger().handlers and logger.level == logging.NOTSET:
        logger.setLevel(logging.WARNING)
    
    return logger


def configure_logging(level: int = logging.INFO) -> None:
    """Apply one level to every logger listed in LOGGER_NAMES."""
    for logger_name in LOGGER_NAMES:
        logging.getLogger(logger_name).setLevel(level)
