from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from resource_model import naming
from resource_model.errors import ConfigurationError, MissingRelationshipError
from resource_model.relationship import RELATIONSHIP_TYPES, BaseRelationship
from resource_model.resource.models import ResourceIdentifier

logger = logging.getLogger(__name__)

_KIND_ALIASES = {"belongsTo": "belongs_to", "hasMany": "has_many"}


class ModelRegistry:
    """Models by name, used to resolve the remote side of relationships."""

    def __init__(self) -> None:
        self._models: dict[str, BaseModel] = {}

    def add(self, model: BaseModel) -> BaseModel:
        self._models[model.name] = model
        model.models = self
        return model

    def get(self, name: str) -> BaseModel:
        try:
            return self._models[naming.model_name(name)]
        except KeyError:
            raise ConfigurationError(f"Model '{name}' is not registered") from None

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and naming.model_name(name) in self._models

    def names(self) -> list[str]:
        return list(self._models)


class BaseModel:
    """The parent class for all models.

    ``name`` is the singular PascalCase model name (``"user_addresses"``
    becomes ``"UserAddress"``) and ``plural_name`` its plural. Relationships
    are declared per type::

        {"belongs_to": {"owner": {"model_name": "User"}}, "has_many": {...}}
    """

    default_name: str | None = None

    def __init__(
        self,
        name: str | None = None,
        relationships: Mapping[str, Mapping[str, Mapping[str, Any]]] | None = None,
        models: ModelRegistry | None = None,
    ) -> None:
        raw_name = name or self.default_name or type(self).__name__
        self.name = naming.model_name(raw_name)
        if not self.name:
            raise ConfigurationError(f"Invalid model name {raw_name!r}")
        self.models = models
        self.relationships: dict[str, BaseRelationship] = {}
        self._init_relationships(relationships or {})
        if models is not None:
            models.add(self)

    @property
    def plural_name(self) -> str:
        return naming.plural_model_name(self.name)

    @property
    def snake_name(self) -> str:
        return naming.to_snake_case(self.name)

    def _init_relationships(self, config: Mapping[str, Mapping[str, Mapping[str, Any]]]) -> None:
        for kind, rels in config.items():
            for rel_name, rel_config in rels.items():
                self.add_relationship(kind, rel_name, **rel_config)

    def add_relationship(self, kind: str, name: str, model_name: str, **_: Any) -> BaseRelationship:
        kind = _KIND_ALIASES.get(kind, kind)
        rel_cls = RELATIONSHIP_TYPES.get(kind)
        if rel_cls is None:
            raise ConfigurationError(f"Unknown relationship type '{kind}' for {self.name}.{name}")
        relationship = rel_cls(name=name, local_model=self, model_name=model_name)
        self.relationships[name] = relationship
        logger.debug("Added relationship %r", relationship)
        return relationship

    def get_relationship(self, name: str) -> BaseRelationship:
        try:
            return self.relationships[name]
        except KeyError:
            raise MissingRelationshipError(
                f"Model '{self.name}' has no relationship named '{name}'"
            ) from None

    def create_resource_identifier(self, id: str) -> ResourceIdentifier:
        return ResourceIdentifier(id=id, type=self.name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
