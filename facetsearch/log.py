# facetsearch/log.py
import logging

from facetsearch.settings import settings

ROOT_LOGGER = "facetsearch"


def get_logger(name: str) -> logging.Logger:
    """Return a child of the package logger, attaching the stream handler once."""
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        root.addHandler(h)
        root.setLevel(settings.LOG_LEVEL.upper())
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return root.getChild(name)
