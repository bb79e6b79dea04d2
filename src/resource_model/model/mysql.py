"""Models backed by a MySQL table.

A model owns the column declarations of its table and four mapping trees
(``attributes``, ``meta``, ``relationships`` and ``parameters``) that decide
where each column shows up in a resource. Every model gets the standard
bookkeeping columns::

    <table>_id        BINARYUUID primary key
    deleted           BOOLYESNO soft-delete flag
    status            ENUM("active")
    created_user_id   BINARYUUID     created_datetime  ZERO_NULL_DATETIME
    updated_user_id   BINARYUUID     updated_datetime  ZERO_NULL_DATETIME

A subclass overrides any of them by declaring a field with the same name in
``get_custom_database_fields``.
"""

from __future__ import annotations

import copy
import logging
import uuid
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from functools import cached_property
from typing import Any

from sqlalchemy import MetaData, Table

from resource_model.core.mapping import MappingTree, expand, flatten, iter_leaves, resolve_column, validate_mapping
from resource_model.core.ports.storage import Order, Row, Storage, Where
from resource_model.db.presets import FieldDeclaration, FieldPresets, Preset
from resource_model.db.types import TypeRegistry, get_type_registry
from resource_model.errors import MissingRelationshipError, MissingResourceError, ValidationError
from resource_model.model.base import BaseModel, ModelRegistry
from resource_model.resource.models import Pagination, Resource, ResourceCollection, ResourceIdentifier
from resource_model.resource.schemas import ResourceInput

logger = logging.getLogger(__name__)

MAPPING_GROUPS = ("attributes", "meta", "relationships", "parameters")

IGNORED_PARAMETERS = frozenset({"hardDelete", "pageNumber", "pageSize", "sort"})

PROTECTED_COLUMNS = ("created_datetime", "updated_datetime", "created_user_id", "updated_user_id")

_STANDARD_RELATIONSHIPS = {
    "createdBy": {"model_name": "User"},
    "updatedBy": {"model_name": "User"},
}

_STANDARD_MAPPINGS: dict[str, dict[str, str]] = {
    "attributes": {"status": "status"},
    "meta": {"createdDateTime": "created_datetime", "updatedDateTime": "updated_datetime"},
    "relationships": {"createdBy": "created_user_id", "updatedBy": "updated_user_id"},
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MysqlModel(BaseModel):
    mysql_table: str | None = None
    mysql_database: str | None = None
    primary_key: str | None = None
    field_mappings: Mapping[str, MappingTree] = {}
    relationship_config: Mapping[str, Mapping[str, Mapping[str, Any]]] = {}

    def __init__(
        self,
        name: str | None = None,
        *,
        mysql_table: str | None = None,
        mysql_database: str | None = None,
        database_primary_key: str | None = None,
        field_mappings: Mapping[str, MappingTree] | None = None,
        relationships: Mapping[str, Mapping[str, Mapping[str, Any]]] | None = None,
        storage: Storage | None = None,
        models: ModelRegistry | None = None,
        types: TypeRegistry | None = None,
    ) -> None:
        rel_config = copy.deepcopy(dict(relationships if relationships is not None else self.relationship_config))
        belongs_to = rel_config.setdefault("belongs_to", rel_config.pop("belongsTo", {}))
        for rel_name, rel_cfg in _STANDARD_RELATIONSHIPS.items():
            belongs_to.setdefault(rel_name, dict(rel_cfg))

        super().__init__(name=name, relationships=rel_config, models=models)

        self.mysql_table = mysql_table or self.mysql_table or self.snake_name
        self.mysql_database = mysql_database or self.mysql_database
        self.database_primary_key = database_primary_key or self.primary_key or f"{self.mysql_table}_id"
        self.types = types if types is not None else get_type_registry()
        self.presets = FieldPresets(self.types)
        self.mappings = self._init_mappings(field_mappings if field_mappings is not None else self.field_mappings)
        self._storage = storage

    def _init_mappings(self, config: Mapping[str, MappingTree]) -> dict[str, dict[str, Any]]:
        mappings: dict[str, dict[str, Any]] = {group: copy.deepcopy(dict(config.get(group) or {})) for group in MAPPING_GROUPS}
        for group, standard in _STANDARD_MAPPINGS.items():
            for key, column in standard.items():
                mappings[group].setdefault(key, column)
        parameter_columns = {column for _, column in iter_leaves(mappings["parameters"])}
        if self.database_primary_key not in parameter_columns:
            mappings["parameters"].setdefault("id", self.database_primary_key)
        for group, tree in mappings.items():
            validate_mapping(tree, group=f"{self.name}.{group}")
        return mappings

    # --- Field declarations ---

    def get_custom_database_fields(self, types: TypeRegistry, presets: FieldPresets) -> dict[str, FieldDeclaration]:
        """Model-specific columns; override in subclasses."""
        return {}

    @cached_property
    def database_fields(self) -> dict[str, FieldDeclaration]:
        custom = self.get_custom_database_fields(self.types, self.presets)

        start = {
            self.database_primary_key: FieldDeclaration(preset=Preset.BINARYUUID, primary_key=True),
            "deleted": FieldDeclaration(preset=Preset.BOOLYESNO),
            "status": FieldDeclaration(preset=Preset.ENUM, values=["active"]),
        }
        end = {
            "created_user_id": FieldDeclaration(preset=Preset.BINARYUUID),
            "created_datetime": FieldDeclaration(preset=Preset.ZERO_NULL_DATETIME),
            "updated_user_id": FieldDeclaration(preset=Preset.BINARYUUID),
            "updated_datetime": FieldDeclaration(preset=Preset.ZERO_NULL_DATETIME),
        }
        for name in custom:
            start.pop(name, None)
            end.pop(name, None)

        fields = {**start, **custom, **end}
        self.presets.apply(fields)
        return fields

    @cached_property
    def table(self) -> Table:
        columns = [decl.to_column(name) for name, decl in self.database_fields.items()]
        return Table(self.mysql_table, MetaData(schema=self.mysql_database), *columns)

    @property
    def storage(self) -> Storage:
        if self._storage is None:
            from resource_model.db.engine import get_engine
            from resource_model.db.mysql import MysqlStorage

            self._storage = MysqlStorage(get_engine(), self.table, self.database_fields)
        return self._storage

    @storage.setter
    def storage(self, storage: Storage) -> None:
        self._storage = storage

    # --- Resource assembly ---

    def to_resource(self, row: Row) -> Resource:
        """Build a resource from a storage row."""
        data = row.get_data()
        return Resource(
            id=row.get(self.database_primary_key),
            type=self.name,
            attributes=expand(data, self.mappings["attributes"]),
            meta=expand(data, self.mappings["meta"]),
            relationships=self._relationships_from_data(data),
            raw_data_source=row,
        )

    def _relationships_from_data(self, data: Mapping[str, Any]) -> dict[str, ResourceIdentifier | None]:
        linked: dict[str, ResourceIdentifier | None] = {}
        for rel_name, column in self.mappings["relationships"].items():
            linked[rel_name] = None
            relationship = self.relationships.get(rel_name)
            if relationship is None:
                raise MissingRelationshipError(
                    f"The '{self.name}' model maps column '{column}' to relationship '{rel_name}', "
                    "but no relationship with that name is declared"
                )
            foreign_key = data.get(column)
            if foreign_key is None:
                continue
            linked[rel_name] = relationship.resolve_identifier(foreign_key)
        return linked

    def to_resource_collection(self, rows: Iterable[Row]) -> ResourceCollection:
        collection = ResourceCollection(type=self.name)
        for row in rows:
            collection.add_resource(self.to_resource(row))
        return collection

    def to_storage_values(self, payload: ResourceInput | Mapping[str, Any]) -> dict[str, Any]:
        """Flatten a write payload into column values; relationships win on collision."""
        if not isinstance(payload, ResourceInput):
            payload = ResourceInput.model_validate(payload)

        values = flatten(payload.attributes, self.mappings["attributes"])
        for rel_name, column in self.mappings["relationships"].items():
            rel = (payload.relationships or {}).get(rel_name)
            if rel is None or rel.data is None or "id" not in rel.data.model_fields_set:
                continue
            values[column] = rel.data.id
        return values

    # --- Query builders ---

    def create_where(self, parameters: Mapping[str, Any] | None = None) -> dict[str, Any]:
        parameters = parameters or {}
        where: dict[str, Any] = {}
        for path, column in iter_leaves(self.mappings["parameters"]):
            key = ".".join(path)
            if key in IGNORED_PARAMETERS:
                continue
            value = parameters.get(key)
            if value is not None:
                where[column] = value
        # soft-deleted rows are excluded unless asked for
        if not where.get("deleted"):
            where["deleted"] = "no"
        return where

    def create_order(self, sort: str | Iterable[str] | None) -> list[tuple[str, str]]:
        if not sort:
            return []
        fields = sort.split(",") if isinstance(sort, str) else list(sort)

        order: list[tuple[str, str]] = []
        for raw in fields:
            field = raw.strip()
            if not field:
                continue
            direction = "ASC"
            if field.startswith("-"):
                direction = "DESC"
                field = field[1:]
            column = (
                resolve_column(self.mappings["attributes"], field)
                or resolve_column(self.mappings["meta"], field)
                or resolve_column(self.mappings["relationships"], field)
                or field
            )
            order.append((column, direction))
        return order

    @staticmethod
    def create_pagination(offset: int, limit: int | None, row_count: int, total_count: int) -> Pagination:
        return Pagination.create(offset, limit, row_count, total_count)

    def _require_primary_key(self, where: Where, operation: str) -> None:
        if where.get(self.database_primary_key) is None:
            raise ValidationError(self.database_primary_key, f"{operation} requires a primary key value")

    def _writable_values(self, data: ResourceInput | Mapping[str, Any]) -> dict[str, Any]:
        values = self.to_storage_values(data)
        for column in PROTECTED_COLUMNS:
            values.pop(column, None)
        return values

    # --- CRUD ---

    async def read_one_by_id(self, id: str) -> Resource:
        logger.debug("Starting %s.read_one_by_id() query operation", self.name)
        where = {"deleted": "no", self.database_primary_key: id}
        self._require_primary_key(where, "read_one_by_id")

        row = await self.storage.find_one(where)
        if row is None:
            raise MissingResourceError("The requested resource does not exist.")

        logger.info("read_one_by_id operation complete: [1] records returned")
        return self.to_resource(row)

    async def read_one(self, parameters: Mapping[str, Any] | None = None) -> Resource:
        logger.debug("Starting %s.read_one() query operation", self.name)
        row = await self.storage.find_one(self.create_where(parameters))
        if row is None:
            raise MissingResourceError("The requested resource does not exist.")

        logger.info("read_one operation complete: [1] records returned")
        return self.to_resource(row)

    async def read_many(
        self,
        parameters: Mapping[str, Any] | None = None,
        sort: str | Iterable[str] | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[ResourceCollection, Pagination]:
        logger.debug("Starting %s.read_many() query operation", self.name)
        order: Order = self.create_order(sort)
        rows, total_count = await self.storage.find_and_count_all(
            self.create_where(parameters), order=order, offset=offset, limit=limit
        )
        row_count = len(rows)

        logger.info("read_many operation complete: [%d of %d] records returned", row_count, total_count)
        return self.to_resource_collection(rows), self.create_pagination(offset, limit, row_count, total_count)

    async def create_one(self, data: ResourceInput | Mapping[str, Any], user_id: str | None) -> Resource:
        logger.debug("Starting %s.create_one() query operation", self.name)
        values = self._writable_values(data)

        now = _utcnow()
        new_id = str(uuid.uuid4())
        values.update(
            {
                self.database_primary_key: new_id,
                "created_user_id": user_id,
                "updated_user_id": user_id,
                "created_datetime": now,
                "updated_datetime": now,
            }
        )
        await self.storage.create(values)

        row = await self.storage.find_one({self.database_primary_key: new_id})
        if row is None:
            raise MissingResourceError("The created resource could not be read back.")

        logger.info("create_one operation complete: [1] records created")
        return self.to_resource(row)

    async def update_one_by_id(self, id: str, data: ResourceInput | Mapping[str, Any], user_id: str | None) -> Resource:
        logger.debug("Starting %s.update_one_by_id() query operation", self.name)
        where = {"deleted": "no", self.database_primary_key: id}
        self._require_primary_key(where, "update_one_by_id")

        if await self.storage.find_one(where) is None:
            raise MissingResourceError("The requested resource does not exist.")

        values = self._writable_values(data)
        values["updated_user_id"] = user_id
        values["updated_datetime"] = _utcnow()
        await self.storage.update(values, where)

        row = await self.storage.find_one({self.database_primary_key: id})
        if row is None:
            raise MissingResourceError("The requested resource does not exist.")

        logger.info("update_one_by_id operation complete: [1] records updated")
        return self.to_resource(row)

    async def soft_delete_one(self, parameters: Mapping[str, Any], user_id: str | None) -> None:
        logger.debug("Starting %s.soft_delete_one() query operation", self.name)
        where = self.create_where(parameters)
        self._require_primary_key(where, "soft_delete_one")

        count = await self.storage.update(
            {"deleted": "yes", "updated_user_id": user_id, "updated_datetime": _utcnow()},
            where,
        )
        if not count:
            raise MissingResourceError("The requested resource does not exist.")

        logger.info("soft_delete_one operation complete: [%d] records soft-deleted", count)

    async def hard_delete_one(self, parameters: Mapping[str, Any]) -> None:
        logger.debug("Starting %s.hard_delete_one() query operation", self.name)
        where = self.create_where(parameters)
        self._require_primary_key(where, "hard_delete_one")

        count = await self.storage.destroy(where)
        if not count:
            raise MissingResourceError("The requested resource does not exist.")

        logger.info("hard_delete_one operation complete: [%d] records hard-deleted", count)

    async def delete_one(
        self,
        parameters: Mapping[str, Any],
        user_id: str | None = None,
        hard_delete: bool | None = None,
    ) -> None:
        if hard_delete is None:
            hard_delete = parameters.get("hardDelete") is True
        if hard_delete:
            await self.hard_delete_one(parameters)
        else:
            await self.soft_delete_one(parameters, user_id)
