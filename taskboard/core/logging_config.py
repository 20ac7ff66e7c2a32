import logging
import sys
from typing import Optional

from taskboard.core.config import settings

_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """Installe un handler console sur le logger `taskboard` (une seule fois)."""
    logger = logging.getLogger("taskboard")
    logger.setLevel((level or settings.LOG_LEVEL).upper())

    # Pas de doublons si l'app est importée plusieurs fois (tests, reload)
    if logger.handlers:
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
