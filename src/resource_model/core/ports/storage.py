from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from resource_model.resource.models import ResourceIdentifier

Where = Mapping[str, Any]
Order = Sequence[tuple[str, str]]


class Row(Protocol):
    def get(self, name: str) -> Any: ...

    def get_data(self) -> dict[str, Any]: ...

    def set(self, name: str, value: Any) -> None: ...


class RelationshipDescriptor(Protocol):
    name: str

    def resolve_identifier(self, foreign_key: Any) -> ResourceIdentifier: ...


class Storage(Protocol):
    async def find_one(self, where: Where) -> Row | None: ...

    async def find_and_count_all(
        self,
        where: Where,
        order: Order = (),
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[list[Row], int]: ...

    async def create(self, values: Mapping[str, Any]) -> Row: ...

    async def update(self, values: Mapping[str, Any], where: Where) -> int: ...

    async def destroy(self, where: Where) -> int: ...

    async def ping(self) -> bool: ...

    async def dispose(self) -> None: ...
