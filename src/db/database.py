import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

from config.settings import StoreSettings

logger = logging.getLogger(__name__)


def create_store_engine(settings: StoreSettings) -> Engine:
    """
    Builds the engine for the configured mode: an embedded SQLite file offline,
    a MySQL server online.

    With NullPool every store operation opens and closes its own connection.
    """
    url = settings.database_url()
    connect_args = {"check_same_thread": False} if settings.mode == "offline" else {}
    engine = create_engine(url, echo=settings.echo, poolclass=NullPool, connect_args=connect_args)
    logger.info(f"Store engine created in {settings.mode} mode ({url.render_as_string(hide_password=True)})")
    return engine
