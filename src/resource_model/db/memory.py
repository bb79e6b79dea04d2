from collections.abc import Mapping
from typing import Any

from resource_model.core.ports.storage import Order, Where
from resource_model.db.presets import FieldDeclaration
from resource_model.db.record import Record


class InMemoryStorage:
    """Dict-backed storage with the same contract as ``MysqlStorage``.

    Rows are kept as raw storage values. Where clauses compare API values, so
    ``{"deleted": "no"}`` and ``{"deleted": False}`` match the same rows.
    """

    def __init__(self, fields: Mapping[str, FieldDeclaration]) -> None:
        self.fields = fields
        self.rows: list[dict[str, Any]] = []

    def _api_value(self, name: str, raw: Any) -> Any:
        decl = self.fields.get(name)
        if decl is None:
            return raw
        return decl.get(raw)

    def _where_value(self, name: str, value: Any) -> Any:
        decl = self.fields.get(name)
        if decl is None:
            return value
        return decl.get(decl.set(value))

    def _matches(self, row: Mapping[str, Any], where: Where) -> bool:
        for name, expected in where.items():
            actual = self._api_value(name, row.get(name))
            if isinstance(expected, (list, tuple, set)):
                if actual not in {self._where_value(name, v) for v in expected}:
                    return False
            elif actual != self._where_value(name, expected):
                return False
        return True

    def _select(self, where: Where) -> list[dict[str, Any]]:
        return [row for row in self.rows if self._matches(row, where)]

    def _sort_key(self, name: str, row: Mapping[str, Any]) -> tuple[bool, Any]:
        value = self._api_value(name, row.get(name))
        # NULLs first, as MySQL sorts them
        return (value is not None, "" if value is None else value)

    def _record(self, row: Mapping[str, Any]) -> Record:
        return Record(self.fields, row)

    async def find_one(self, where: Where) -> Record | None:
        for row in self._select(where):
            return self._record(row)
        return None

    async def find_and_count_all(
        self,
        where: Where,
        order: Order = (),
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[list[Record], int]:
        rows = self._select(where)
        for column, direction in reversed(list(order)):
            rows.sort(key=lambda row, c=column: self._sort_key(c, row), reverse=direction.upper() == "DESC")
        total = len(rows)
        end = None if limit is None else offset + limit
        return [self._record(row) for row in rows[offset:end]], total

    async def create(self, values: Mapping[str, Any]) -> Record:
        record = Record.build(self.fields, values)
        self.rows.append(record.raw_values())
        return record

    async def update(self, values: Mapping[str, Any], where: Where) -> int:
        changes = Record(self.fields)
        changes.set_values(values)
        matched = self._select(where)
        for row in matched:
            row.update(changes.raw_values())
        return len(matched)

    async def destroy(self, where: Where) -> int:
        matched = self._select(where)
        self.rows = [row for row in self.rows if not any(row is m for m in matched)]
        return len(matched)

    async def ping(self) -> bool:
        return True

    async def dispose(self) -> None:
        self.rows.clear()
