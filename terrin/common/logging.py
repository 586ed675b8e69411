import logging
import sys

from terrin.config import settings

_ROOT = "terrin"
_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure the ``terrin`` logger tree once per process."""
    root = logging.getLogger(_ROOT)
    root.setLevel((level or settings.LOG_LEVEL).upper())

    if not any(getattr(h, "_terrin", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._terrin = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    root.propagate = False


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{_ROOT}.{name}")
