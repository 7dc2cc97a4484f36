import logging
import sys

from reforma.settings import settings

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Third-party loggers held back so they don't drown the ledger's own records.
QUIET_LOGGERS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "anthropic": logging.WARNING,
    "alembic.runtime.migration": logging.WARNING,
}


def _build_handler() -> logging.Handler:
    # Menus own the terminal; a log file keeps records out of the prompts.
    if settings.log_file:
        return logging.FileHandler(settings.log_file, encoding="utf-8")
    return logging.StreamHandler(sys.stderr)


def _build_formatter() -> logging.Formatter:
    if settings.log_json:
        from pythonjsonlogger.json import JsonFormatter

        return JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        )
    return logging.Formatter(TEXT_FORMAT)


def configure_logging() -> None:
    """Configure the root logger from settings.

    Call once at startup and again after Alembic's ``fileConfig`` has run.
    openpyxl reports workbook oddities through ``warnings``; those are
    routed into logging as well.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    handler = _build_handler()
    handler.setFormatter(_build_formatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    logging.captureWarnings(True)
    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(max(level, quiet_level))


reconfigure = configure_logging
