"""Resource value objects produced by the models.

``to_jsonapi`` renders the JSON:API resource object (or identifier) through
the pydantic schemas in :mod:`resource_model.resource.schemas`.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any

from resource_model.resource.schemas import (
    PaginationObject,
    RelationshipObject,
    ResourceIdentifierObject,
    ResourceObject,
)


@dataclass
class ResourceIdentifier:
    id: str
    type: str

    def to_jsonapi(self) -> dict[str, Any]:
        return ResourceIdentifierObject(id=self.id, type=self.type).model_dump()


@dataclass
class Resource:
    id: str | None
    type: str
    attributes: dict[str, Any] = field(default_factory=dict)
    meta: dict[str, Any] = field(default_factory=dict)
    relationships: dict[str, ResourceIdentifier | ResourceIdentifierCollection | None] = field(default_factory=dict)
    raw_data_source: Any = field(default=None, repr=False, compare=False)

    def to_jsonapi(self) -> dict[str, Any]:
        relationships: dict[str, RelationshipObject] = {}
        for name, linked in self.relationships.items():
            if linked is None:
                relationships[name] = RelationshipObject(data=None)
            elif isinstance(linked, ResourceIdentifierCollection):
                relationships[name] = RelationshipObject(
                    data=[ResourceIdentifierObject(id=i.id, type=i.type) for i in linked.items]
                )
            else:
                relationships[name] = RelationshipObject(data=ResourceIdentifierObject(id=linked.id, type=linked.type))

        return ResourceObject(
            id=self.id,
            type=self.type,
            attributes=self.attributes,
            meta=self.meta,
            relationships=relationships,
        ).model_dump()


@dataclass
class ResourceCollection:
    type: str
    items: list[Resource] = field(default_factory=list)

    def add_resource(self, item: Resource) -> None:
        self.items.append(item)

    def __len__(self) -> int:
        return len(self.items)

    def to_jsonapi(self) -> list[dict[str, Any]]:
        return [item.to_jsonapi() for item in self.items]


@dataclass
class ResourceIdentifierCollection:
    type: str
    items: list[ResourceIdentifier] = field(default_factory=list)

    def add_identifier(self, item: ResourceIdentifier) -> None:
        self.items.append(item)

    def __len__(self) -> int:
        return len(self.items)

    def to_jsonapi(self) -> list[dict[str, Any]]:
        return [item.to_jsonapi() for item in self.items]


@dataclass(frozen=True)
class Pagination:
    """Paging metadata for a ``read_many`` result; ``-1`` marks an empty page."""

    all_records_returned: bool
    current_page: int
    page_size: int | None
    total_pages: int
    records_returned: int
    first_record_index: int
    last_record_index: int
    total_records: int

    @classmethod
    def create(cls, offset: int, limit: int | None, row_count: int, total_count: int) -> Pagination:
        return cls(
            all_records_returned=not row_count < total_count,
            current_page=math.ceil((offset + 1) / limit) if limit else 0,
            page_size=limit,
            total_pages=math.ceil(total_count / limit) if limit else 0,
            records_returned=row_count,
            first_record_index=offset if row_count else -1,
            last_record_index=offset + row_count - 1,
            total_records=total_count,
        )

    def to_jsonapi(self) -> dict[str, Any]:
        return PaginationObject(**asdict(self)).model_dump(by_alias=True)
