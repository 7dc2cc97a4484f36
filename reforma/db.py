import logging
import os
from pathlib import Path

from alembic.config import Config
from sqlalchemy import Connection, create_engine, event
from sqlalchemy.engine import Engine, make_url

from alembic import command
from reforma.settings import settings

logger = logging.getLogger(__name__)

_engine: Engine | None = None
_connection: Connection | None = None

PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    # SQLite leaves ON DELETE rules of bill_line_items unenforced otherwise.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _ensure_sqlite_dir(database: str | None) -> None:
    if not database or database == ":memory:":
        return
    Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        url = make_url(settings.db_url)
        if url.get_backend_name() == "sqlite":
            _ensure_sqlite_dir(url.database)
            _engine = create_engine(url)
            event.listen(_engine, "connect", _enable_sqlite_foreign_keys)
        else:
            _engine = create_engine(url, pool_pre_ping=True, pool_recycle=1800)
        logger.info("Database engine created: backend=%s", url.get_backend_name())
    return _engine


def get_connection() -> Connection:
    """Shared connection for the interactive CLI session."""
    global _connection
    if _connection is None:
        _connection = get_engine().connect()
        logger.debug("CLI DB connection opened")
    return _connection


def _get_alembic_config() -> Config:
    """Alembic config for the project migrations, wherever the CLI is started from."""
    ini_path = os.path.join(PROJECT_ROOT, "alembic.ini")
    if not os.path.exists(ini_path):
        ini_path = os.path.join(os.getcwd(), "alembic.ini")
    cfg = Config(ini_path)
    cfg.set_main_option("script_location", os.path.join(PROJECT_ROOT, "alembic"))
    return cfg


def initialize_db() -> None:
    """Bring the ledger schema up to date before the menus open."""
    logger.info("Migrating ledger schema: %s", make_url(settings.db_url).render_as_string(hide_password=True))
    command.upgrade(_get_alembic_config(), "head")
    logger.info("Ledger schema up to date")
