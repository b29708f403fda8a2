import logging
import os
import sys
from typing import Optional

_HANDLER_NAME = "baken-stdout"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _resolve_level(level: Optional[str]) -> int:
    name = (level or os.getenv("LOG_LEVEL") or "INFO").upper().strip()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: Optional[str] = None) -> None:
    """Install the stdout handler for the engine.

    Calling it again only updates the level; the handler is added once.
    An explicit `level` wins over LOG_LEVEL.
    """
    root = logging.getLogger()
    root.setLevel(_resolve_level(level))

    if any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)

    # uvicorn のアクセスログは判定処理のログに埋もれるので抑える
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
