from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# --- JSON:API output objects ---


class ResourceIdentifierObject(BaseModel):
    id: str
    type: str


class RelationshipObject(BaseModel):
    data: ResourceIdentifierObject | list[ResourceIdentifierObject] | None = None


class ResourceObject(BaseModel):
    id: str | None
    type: str
    meta: dict[str, Any] = Field(default_factory=dict)
    attributes: dict[str, Any] = Field(default_factory=dict)
    relationships: dict[str, RelationshipObject] = Field(default_factory=dict)


# --- Write payloads ---


class LinkageInput(BaseModel):
    """``{"id": ..., "type": ...}`` inside a relationship; only ``id`` is used."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    type: str | None = None


class RelationshipInput(BaseModel):
    data: LinkageInput | None = None


class ResourceInput(BaseModel):
    """The ``data`` member of a create/update document."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    type: str | None = None
    attributes: dict[str, Any] | None = None
    relationships: dict[str, RelationshipInput] | None = None


class PaginationObject(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    all_records_returned: bool
    current_page: int
    page_size: int | None
    total_pages: int
    records_returned: int
    first_record_index: int
    last_record_index: int
    total_records: int
