import logging
import sys

from pythonjsonlogger import jsonlogger

from hapa.core.config import Settings


def configure_logging(settings: Settings) -> None:
    """
    Structured JSON logging on stdout.
    Extra keys passed through `extra=` end up as top-level JSON fields.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)

    # clear handlers if reloaded
    root.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    fmt = jsonlogger.JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s",
        rename_fields={"levelname": "level", "name": "logger"},
        static_fields={"service": "hapa", "env": settings.environment},
    )
    handler.setFormatter(fmt)
    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(level)
    # boto/botocore are very chatty at DEBUG
    logging.getLogger("botocore").setLevel(max(level, logging.INFO))
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
