"""Logging configuration for RiskProfiler."""

import logging
import sys

from riskprofiler.config import SETTINGS


def setup_logger(name: str = "riskprofiler", level: str | None = None) -> logging.Logger:
    """Create and configure a logger.

    *level* defaults to ``app.log_level`` from the settings file.
    """
    if level is None:
        level = SETTINGS.get("app", {}).get("log_level", "INFO")
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        fmt = logging.Formatter(
            "%(asctime)s | %(name)-20s | %(levelname)-7s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(fmt)
        logger.addHandler(handler)
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    return logger
