from __future__ import annotations

import logging
import sys

from pythonjsonlogger import jsonlogger

from ..config import Settings

_HANDLER_NAME = "evaluations-stdout"


def configure_logging(settings: Settings) -> None:
    """
    Configure the root logger: level from settings, one stdout handler,
    structured JSON lines when log_format == "json".

    Safe to call more than once; the handler is only installed once.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    if any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    if settings.log_format == "json":
        handler.setFormatter(
            jsonlogger.JsonFormatter(
                "%(asctime)s %(name)s %(levelname)s %(message)s",
                rename_fields={"asctime": "timestamp", "levelname": "level"},
            )
        )
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
    root.addHandler(handler)
