import logging
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from resource_model.config import MysqlSettings

logger = logging.getLogger(__name__)


def get_engine(settings: MysqlSettings | None = None) -> AsyncEngine:
    settings = settings or MysqlSettings.from_env()
    engine = create_async_engine(settings.url(), future=True, pool_pre_ping=True)

    @event.listens_for(engine.sync_engine, "before_cursor_execute")
    def _log_statement(
        conn: Any,
        cursor: Any,
        statement: str,
        parameters: Any,
        context: Any,
        executemany: bool,
    ) -> None:
        logger.debug("Executing: %s | params=%r", statement, parameters)

    logger.debug("Created engine for %s", settings.redacted_url())
    return engine
