"""
Process-wide logging setup, called once by each composition root.
"""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Install a single console handler on the market_mood logger.

    Safe to call repeatedly: handlers are only added once.
    """
    logger = logging.getLogger("market_mood")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)
    for handler in logger.handlers:
        handler.setLevel(level)
    # Third-party HTTP clients are noisy at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logger
