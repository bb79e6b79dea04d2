"""One-way relationships from a local model to a remote model.

Two relationship objects, one on each model, describe a two-way link. Which
side is the parent depends on the relationship type: in a belongs-to the
local model is the child, in a has-many it is the parent.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Literal

from resource_model.errors import MissingRelationshipError
from resource_model.naming import model_name
from resource_model.resource.models import ResourceIdentifier

if TYPE_CHECKING:
    from resource_model.model.base import BaseModel

Position = Literal["child", "parent"]


class BaseRelationship:
    local_model_is: ClassVar[Position] = "child"
    kind: ClassVar[str] = "base"

    def __init__(self, name: str, local_model: BaseModel, model_name: str) -> None:
        self.name = name
        self.local_model = local_model
        self._remote_model_name = model_name
        self._remote_model: BaseModel | None = None

    @property
    def local_model_name(self) -> str:
        return self.local_model.name

    @property
    def remote_model(self) -> BaseModel:
        if self._remote_model is None:
            registry = self.local_model.models
            if registry is None:
                raise MissingRelationshipError(
                    f"Relationship '{self.name}' on {self.local_model_name} cannot load model "
                    f"'{self._remote_model_name}' without a model registry"
                )
            self._remote_model = registry.get(self._remote_model_name)
        return self._remote_model

    @property
    def remote_model_name(self) -> str:
        if self._remote_model is None:
            return model_name(self._remote_model_name)
        return self._remote_model.name

    @property
    def child_model(self) -> BaseModel:
        if self.local_model_is == "child":
            return self.local_model
        return self.remote_model

    @property
    def child_model_name(self) -> str:
        if self.local_model_is == "child":
            return self.local_model_name
        return self.remote_model_name

    @property
    def parent_model(self) -> BaseModel:
        if self.local_model_is == "child":
            return self.remote_model
        return self.local_model

    @property
    def parent_model_name(self) -> str:
        if self.local_model_is == "child":
            return self.remote_model_name
        return self.local_model_name

    def resolve_identifier(self, foreign_key: Any) -> ResourceIdentifier:
        """Identify the remote resource a foreign key points at.

        A registered remote model creates the identifier itself. Without one
        the type is the normalized configured model name.
        """
        registry = self.local_model.models
        if self._remote_model is not None or (registry is not None and self._remote_model_name in registry):
            return self.remote_model.create_resource_identifier(str(foreign_key))
        return ResourceIdentifier(id=str(foreign_key), type=model_name(self._remote_model_name))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.local_model_name}.{self.name} -> {self.remote_model_name})"


class BelongsToRelationship(BaseRelationship):
    """The child side of a 1:1 or 1:n relationship."""

    local_model_is = "child"
    kind = "belongs_to"


class HasManyRelationship(BaseRelationship):
    """The parent side of a 1:n relationship."""

    local_model_is = "parent"
    kind = "has_many"


RELATIONSHIP_TYPES: dict[str, type[BaseRelationship]] = {
    BelongsToRelationship.kind: BelongsToRelationship,
    HasManyRelationship.kind: HasManyRelationship,
}
