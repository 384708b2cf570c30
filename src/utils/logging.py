import logging
import sys
from typing import Optional

logger = logging.getLogger("receptionist")


def setup_logging(level: Optional[str] = None):
    """Configure the service logger once (stdout, single handler)."""
    from src.config import settings

    log_level = (level or settings.log_level or "INFO").upper()
    logger.setLevel(log_level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        ))
        logger.addHandler(handler)

    # Keep httpx request lines out of INFO logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logger
