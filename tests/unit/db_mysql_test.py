"""Tests for MysqlStorage with a mocked async engine."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from conftest import PersonModel
from sqlalchemy.dialects import mysql
from sqlalchemy.exc import OperationalError, ProgrammingError

from resource_model.db.mysql import MysqlStorage
from resource_model.errors import DatabaseConnectionError, DatabaseQueryError


def _mock_engine() -> tuple[MagicMock, AsyncMock]:
    conn = AsyncMock()
    conn.execute.return_value = MagicMock()
    engine = MagicMock()
    engine.begin.return_value.__aenter__.return_value = conn
    engine.begin.return_value.__aexit__.return_value = False
    engine.dispose = AsyncMock()
    return engine, conn


def _sql(conn: AsyncMock, call: int = 0) -> str:
    stmt = conn.execute.call_args_list[call].args[0]
    return str(stmt.compile(dialect=mysql.dialect()))


def _params(conn: AsyncMock, call: int = 0) -> dict[str, Any]:
    stmt = conn.execute.call_args_list[call].args[0]
    return stmt.compile(dialect=mysql.dialect()).params


@pytest.fixture
def engine_and_conn() -> tuple[MagicMock, AsyncMock]:
    return _mock_engine()


@pytest.fixture
def storage(person_model: PersonModel, engine_and_conn: tuple[MagicMock, AsyncMock]) -> MysqlStorage:
    engine, _ = engine_and_conn
    return MysqlStorage(engine, person_model.table, person_model.database_fields)


class TestFindOne:
    @pytest.mark.asyncio
    async def test_returns_record(self, storage: MysqlStorage, engine_and_conn: tuple[MagicMock, AsyncMock]) -> None:
        _, conn = engine_and_conn
        row = MagicMock()
        row._mapping = {"person_id": bytes(range(16)), "deleted": "no", "name": "Ada"}
        conn.execute.return_value.first.return_value = row

        record = await storage.find_one({"deleted": "no", "name": "Ada"})

        assert record is not None
        assert record.get("name") == "Ada"
        assert record.get("deleted") is False
        assert record.get("person_id") == "00010203-0405-0607-0809-0a0b0c0d0e0f"
        sql = _sql(conn)
        assert "FROM person" in sql
        assert "LIMIT" in sql

    @pytest.mark.asyncio
    async def test_where_values_pass_through_setters(
        self, storage: MysqlStorage, engine_and_conn: tuple[MagicMock, AsyncMock]
    ) -> None:
        _, conn = engine_and_conn
        conn.execute.return_value.first.return_value = None

        assert await storage.find_one({"deleted": False}) is None
        assert "no" in _params(conn).values()

    @pytest.mark.asyncio
    async def test_unknown_column_raises(self, storage: MysqlStorage) -> None:
        with pytest.raises(DatabaseQueryError, match="nope"):
            await storage.find_one({"nope": 1})


class TestFindAndCountAll:
    @pytest.mark.asyncio
    async def test_counts_and_orders(self, storage: MysqlStorage, engine_and_conn: tuple[MagicMock, AsyncMock]) -> None:
        _, conn = engine_and_conn
        count_result = MagicMock()
        count_result.scalar_one.return_value = 7
        row = MagicMock()
        row._mapping = {"name": "Ada"}
        rows_result = MagicMock()
        rows_result.all.return_value = [row]
        conn.execute.side_effect = [count_result, rows_result]

        records, total = await storage.find_and_count_all(
            {"deleted": "no"}, order=[("name", "DESC")], offset=5, limit=1
        )

        assert total == 7
        assert [r.get("name") for r in records] == ["Ada"]
        assert "count(*)" in _sql(conn, 0)
        select_sql = _sql(conn, 1)
        assert "ORDER BY person.name DESC" in select_sql
        assert "LIMIT" in select_sql

    @pytest.mark.asyncio
    async def test_unknown_sort_column(self, storage: MysqlStorage) -> None:
        with pytest.raises(DatabaseQueryError, match="sort column"):
            await storage.find_and_count_all({}, order=[("missing", "ASC")])


class TestWrites:
    @pytest.mark.asyncio
    async def test_create_inserts_storage_values(
        self, storage: MysqlStorage, engine_and_conn: tuple[MagicMock, AsyncMock]
    ) -> None:
        _, conn = engine_and_conn

        record = await storage.create({"person_id": "9f3c6a1e-0b2d-4c5e-8f7a-1b2c3d4e5f60", "name": "Ada"})

        assert record.get_data_value("is_active") == "yes"
        assert "INSERT INTO person" in _sql(conn)
        params = _params(conn)
        assert params["name"] == "Ada"
        assert params["deleted"] == "no"

    @pytest.mark.asyncio
    async def test_update_returns_rowcount(self, storage: MysqlStorage, engine_and_conn: tuple[MagicMock, AsyncMock]) -> None:
        _, conn = engine_and_conn
        conn.execute.return_value.rowcount = 1

        assert await storage.update({"deleted": True}, {"name": "Ada"}) == 1
        assert "UPDATE person SET deleted" in _sql(conn)

    @pytest.mark.asyncio
    async def test_destroy_returns_rowcount(self, storage: MysqlStorage, engine_and_conn: tuple[MagicMock, AsyncMock]) -> None:
        _, conn = engine_and_conn
        conn.execute.return_value.rowcount = 0

        assert await storage.destroy({"name": "Ada"}) == 0
        assert "DELETE FROM person" in _sql(conn)


class TestErrors:
    @pytest.mark.asyncio
    async def test_operational_error_is_a_connection_error(
        self, storage: MysqlStorage, engine_and_conn: tuple[MagicMock, AsyncMock]
    ) -> None:
        _, conn = engine_and_conn
        conn.execute.side_effect = OperationalError("SELECT 1", {}, Exception("server has gone away"))

        with pytest.raises(DatabaseConnectionError, match="gone away") as exc_info:
            await storage.ping()
        assert isinstance(exc_info.value.__cause__, OperationalError)

    @pytest.mark.asyncio
    async def test_programming_error_is_a_query_error(
        self, storage: MysqlStorage, engine_and_conn: tuple[MagicMock, AsyncMock]
    ) -> None:
        _, conn = engine_and_conn
        conn.execute.side_effect = ProgrammingError("SELECT", {}, Exception("syntax"))

        with pytest.raises(DatabaseQueryError, match="person"):
            await storage.destroy({"name": "Ada"})

    @pytest.mark.asyncio
    async def test_dispose(self, storage: MysqlStorage, engine_and_conn: tuple[MagicMock, AsyncMock]) -> None:
        engine, _ = engine_and_conn
        await storage.dispose()
        engine.dispose.assert_awaited_once()
