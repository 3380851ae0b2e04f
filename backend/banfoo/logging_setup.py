from __future__ import annotations
import logging, sys
import structlog
import structlog.stdlib
from banfoo.config import settings

# chatty libraries stay at WARNING unless LOG_LEVEL is DEBUG
QUIET_LOGGERS = ("sqlalchemy.engine", "urllib3", "minio", "aiosqlite")

def _level(name: str | None) -> int:
    lvl = logging.getLevelName((name or settings.log_level).upper())
    return lvl if isinstance(lvl, int) else logging.INFO

def configure_logging(level: str | None = None) -> None:
    lvl = _level(level)
    stamp = structlog.processors.TimeStamper(fmt="iso", utc=True)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            stamp,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.EventRenamer("message"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(lvl),
        cache_logger_on_first_use=True,
    )
    # uvicorn / sqlalchemy records come out as the same JSON lines
    out = logging.StreamHandler(sys.stdout)
    out.setFormatter(structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(),
        foreign_pre_chain=[structlog.stdlib.add_log_level, stamp],
    ))
    root = logging.getLogger()
    root.handlers = [out]
    root.setLevel(lvl)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(lvl if lvl <= logging.DEBUG else logging.WARNING)
