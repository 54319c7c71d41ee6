import logging
from typing import Optional

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_handler_attached = False


def configure_logging(level: Optional[str] = None) -> None:
    """Attach a single stream handler to the root logger (safe to call twice)."""
    global _handler_attached

    if level is None:
        from devtrack.core.config import settings
        level = settings.LOG_LEVEL
    resolved = getattr(logging, str(level).upper(), logging.INFO)

    root = logging.getLogger()
    if not _handler_attached:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(handler)
        _handler_attached = True
    root.setLevel(resolved)
