"""Logging setup for host applications embedding the coupons engine."""

import logging

from coupons.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure the ``coupons`` logger hierarchy.

    Host applications that already configure logging can skip this; module
    loggers propagate to the root logger either way.
    """
    logger = logging.getLogger("coupons")
    logger.setLevel(level or settings.log_level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
