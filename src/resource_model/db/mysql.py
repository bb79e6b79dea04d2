import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import ColumnElement, Table, and_, delete, func, insert, select, text, true, update
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from resource_model.core.ports.storage import Order, Where
from resource_model.db.presets import FieldDeclaration
from resource_model.db.record import Record
from resource_model.errors import DatabaseConnectionError, DatabaseQueryError

logger = logging.getLogger(__name__)


class MysqlStorage:
    """Storage over one MySQL table through a SQLAlchemy ``AsyncEngine``.

    Every call runs in its own ``engine.begin()`` block. Driver errors are
    re-raised as ``DatabaseConnectionError`` (connection lost or refused) or
    ``DatabaseQueryError`` (anything the server rejected).
    """

    def __init__(self, engine: AsyncEngine, table: Table, fields: Mapping[str, FieldDeclaration]) -> None:
        self._engine = engine
        self.table = table
        self.fields = fields

    @asynccontextmanager
    async def _begin(self) -> AsyncIterator[AsyncConnection]:
        try:
            async with self._engine.begin() as conn:
                yield conn
        except (OperationalError, InterfaceError) as exc:
            logger.error("Connection to MySQL failed for table %s: %s", self.table.name, exc)
            raise DatabaseConnectionError(f"Unable to reach the database: {exc.orig}") from exc
        except DBAPIError as exc:
            raise DatabaseQueryError(f"Query on table '{self.table.name}' failed: {exc.orig}") from exc
        except OSError as exc:
            raise DatabaseConnectionError(f"Unable to reach the database: {exc}") from exc

    def _storage_value(self, name: str, value: Any) -> Any:
        decl = self.fields.get(name)
        if decl is None:
            return value
        return decl.set(value)

    def _where(self, where: Where) -> ColumnElement[bool]:
        clauses: list[ColumnElement[bool]] = []
        for name, value in where.items():
            if name not in self.table.c:
                raise DatabaseQueryError(f"Unknown column '{name}' in where clause for table '{self.table.name}'")
            column = self.table.c[name]
            if isinstance(value, (list, tuple, set)):
                clauses.append(column.in_([self._storage_value(name, v) for v in value]))
            else:
                clauses.append(column == self._storage_value(name, value))
        if not clauses:
            return true()
        return and_(*clauses)

    def _to_record(self, row: Any) -> Record:
        return Record(self.fields, dict(row._mapping))

    async def find_one(self, where: Where) -> Record | None:
        stmt = select(self.table).where(self._where(where)).limit(1)
        async with self._begin() as conn:
            result = await conn.execute(stmt)
            row = result.first()
        if row is None:
            return None
        return self._to_record(row)

    async def find_and_count_all(
        self,
        where: Where,
        order: Order = (),
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[list[Record], int]:
        condition = self._where(where)
        stmt = select(self.table).where(condition)
        for name, direction in order:
            if name not in self.table.c:
                raise DatabaseQueryError(f"Unknown sort column '{name}' for table '{self.table.name}'")
            column = self.table.c[name]
            stmt = stmt.order_by(column.desc() if direction.upper() == "DESC" else column.asc())
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        count_stmt = select(func.count()).select_from(self.table).where(condition)

        async with self._begin() as conn:
            total = (await conn.execute(count_stmt)).scalar_one()
            rows = (await conn.execute(stmt)).all()
        return [self._to_record(row) for row in rows], int(total)

    async def create(self, values: Mapping[str, Any]) -> Record:
        record = Record.build(self.fields, values)
        raw = {name: value for name, value in record.raw_values().items() if name in self.table.c}
        async with self._begin() as conn:
            await conn.execute(insert(self.table).values(**raw))
        return record

    async def update(self, values: Mapping[str, Any], where: Where) -> int:
        changes = Record(self.fields)
        changes.set_values(values)
        stmt = update(self.table).where(self._where(where)).values(**changes.raw_values())
        async with self._begin() as conn:
            result = await conn.execute(stmt)
        return int(result.rowcount)

    async def destroy(self, where: Where) -> int:
        stmt = delete(self.table).where(self._where(where))
        async with self._begin() as conn:
            result = await conn.execute(stmt)
        return int(result.rowcount)

    async def ping(self) -> bool:
        async with self._begin() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    async def dispose(self) -> None:
        await self._engine.dispose()
