"""Registry of custom SQLAlchemy column types.

A registered type is a ``TypeDecorator`` whose behavior is a ``TypeBehaviors``
record: the base type's behaviors with only the supplied fields replaced. The
registry is an explicit table built once at startup and handed to the preset
engine and the models.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, fields, replace
from typing import Any, ClassVar

from sqlalchemy import Date, DateTime, LargeBinary
from sqlalchemy.dialects import mysql
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator, TypeEngine

from resource_model.db.helpers import (
    ZERO_DATE,
    ZERO_DATETIME,
    ZERO_UUID,
    force_to_proper_uuid,
    hexify,
    normalize_date_value,
    normalize_datetime_value,
    to_bytes,
    uuid_to_bytes,
)
from resource_model.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TypeBehaviors:
    """Overridable behaviors of a custom column type.

    ``bind`` converts an in-memory value to the driver value, ``result``
    sanitizes a driver value on read, ``literal`` renders an inline SQL
    literal, ``parse_options`` turns constructor arguments into an options
    dict, ``dialect_impl`` picks the concrete type per dialect and ``length``
    fixes the byte length for every instance of the type.
    """

    bind: Callable[[CustomType, Any], Any] | None = None
    result: Callable[[CustomType, Any], Any] | None = None
    literal: Callable[[CustomType, Any], str] | None = None
    parse_options: Callable[[int | None, dict[str, Any]], dict[str, Any]] | None = None
    dialect_impl: Callable[[CustomType, Dialect], TypeEngine[Any]] | None = None
    length: int | None = None

    def merged(self, overrides: TypeBehaviors) -> TypeBehaviors:
        changes = {f.name: getattr(overrides, f.name) for f in fields(self) if getattr(overrides, f.name) is not None}
        return replace(self, **changes)


class CustomType(TypeDecorator[Any]):
    """Common base for all registered types."""

    impl = LargeBinary
    cache_ok = True

    type_name: ClassVar[str] = "CUSTOM"
    base_type: ClassVar[type[TypeEngine[Any]]] = LargeBinary
    behaviors: ClassVar[TypeBehaviors] = TypeBehaviors()

    def __init__(self, length: int | None = None, **options: Any) -> None:
        super().__init__()
        if self.behaviors.parse_options is not None:
            options = self.behaviors.parse_options(length, options)
        elif length is not None:
            options["length"] = length
        if self.behaviors.length is not None:
            options["length"] = self.behaviors.length
        self.options = options
        self.length = options.get("length")

    def load_dialect_impl(self, dialect: Dialect) -> TypeEngine[Any]:
        if self.behaviors.dialect_impl is not None:
            return dialect.type_descriptor(self.behaviors.dialect_impl(self, dialect))
        return super().load_dialect_impl(dialect)

    def process_bind_param(self, value: Any, dialect: Dialect) -> Any:
        if self.behaviors.bind is None:
            return value
        return self.behaviors.bind(self, value)

    def process_result_value(self, value: Any, dialect: Dialect) -> Any:
        if self.behaviors.result is None:
            return value
        return self.behaviors.result(self, value)

    def process_literal_param(self, value: Any, dialect: Dialect) -> str:
        if self.behaviors.literal is None:
            return str(value)
        return self.behaviors.literal(self, value)

    def __repr__(self) -> str:
        if self.length is None:
            return self.type_name
        return f"{self.type_name}({self.length})"


def _is_binary(base: type[TypeEngine[Any]]) -> bool:
    if issubclass(base, CustomType):
        impl = base.impl if isinstance(base.impl, type) else type(base.impl)
        return issubclass(impl, LargeBinary)
    return issubclass(base, LargeBinary)


class TypeRegistry:
    """Named table of custom column types."""

    def __init__(self) -> None:
        self._types: dict[str, type[CustomType]] = {}
        self._lock = threading.Lock()
        self.applied = False

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __getitem__(self, name: str) -> type[CustomType]:
        return self.get(name)

    def names(self) -> list[str]:
        return list(self._types)

    def get(self, name: str) -> type[CustomType]:
        try:
            return self._types[name]
        except KeyError:
            raise ConfigurationError(f"Column type '{name}' has not been registered") from None

    def install_once(self, install: Callable[[TypeRegistry], None]) -> TypeRegistry:
        """Run ``install`` against this registry unless an install already ran."""
        with self._lock:
            if not self.applied:
                install(self)
                self.applied = True
        return self

    def register(
        self,
        name: str,
        base: str | type[TypeEngine[Any]],
        behaviors: TypeBehaviors | None = None,
    ) -> type[CustomType]:
        """Register ``name`` as a subtype of ``base`` with ``behaviors`` overridden."""
        base_cls = self._resolve_base(base)
        overrides = behaviors or TypeBehaviors()

        existing = self._types.get(name)
        if existing is not None:
            if existing.base_type is base_cls:
                return existing
            raise ConfigurationError(f"Column type '{name}' is already registered with a different base type")

        if overrides.length is not None and not _is_binary(base_cls):
            raise ConfigurationError(
                f"Column type '{name}' declares a fixed length but its base type {base_cls.__name__} "
                "does not support binary storage"
            )

        if issubclass(base_cls, CustomType):
            parent: type[CustomType] = base_cls
            impl = base_cls.impl
            inherited = base_cls.behaviors
        else:
            parent = CustomType
            impl = base_cls
            inherited = TypeBehaviors()

        new_type = type(
            name,
            (parent,),
            {
                "__module__": __name__,
                "impl": impl,
                "cache_ok": True,
                "type_name": name,
                "base_type": base_cls,
                "behaviors": inherited.merged(overrides),
            },
        )
        self._types[name] = new_type
        logger.debug("Registered column type %s (base %s)", name, base_cls.__name__)
        return new_type

    def _resolve_base(self, base: str | type[TypeEngine[Any]]) -> type[TypeEngine[Any]]:
        if isinstance(base, str):
            if base not in self._types:
                raise ConfigurationError(f"Cannot register a type on unknown base type '{base}'")
            return self._types[base]
        if isinstance(base, type) and issubclass(base, TypeEngine):
            return base
        raise ConfigurationError(f"Base type {base!r} is not a SQLAlchemy type")


# --- MySQL type set ---


def _varbinary_options(length: int | None, options: dict[str, Any]) -> dict[str, Any]:
    options = dict(options)
    options["length"] = length or options.get("length") or 1
    return options


def _varbinary_bind(column_type: CustomType, value: Any) -> Any:
    if value is None:
        return None
    return to_bytes(value)


def _varbinary_literal(column_type: CustomType, value: Any) -> str:
    return hexify(to_bytes(value))


def _varbinary_impl(column_type: CustomType, dialect: Dialect) -> TypeEngine[Any]:
    if dialect.name == "mysql":
        return mysql.VARBINARY(column_type.length)
    return LargeBinary(column_type.length)


def _binary_uuid_bind(column_type: CustomType, value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    return uuid_to_bytes(force_to_proper_uuid(value))


def _binary_uuid_literal(column_type: CustomType, value: Any) -> str:
    return hexify(_binary_uuid_bind(column_type, value))


def _zero_null_date_bind(column_type: CustomType, value: Any) -> Any:
    if value is None:
        return ZERO_DATE
    return normalize_date_value(value)


def _zero_null_date_result(column_type: CustomType, value: Any) -> Any:
    if value is None:
        return ZERO_DATE
    return normalize_date_value(value)


def _zero_null_datetime_bind(column_type: CustomType, value: Any) -> Any:
    if value is None:
        return ZERO_DATETIME
    return normalize_datetime_value(value)


def _zero_null_datetime_result(column_type: CustomType, value: Any) -> Any:
    if value is None:
        return ZERO_DATETIME
    return normalize_datetime_value(value)


def _register_mysql_types(registry: TypeRegistry) -> None:
    registry.register(
        "VARBINARY",
        LargeBinary,
        TypeBehaviors(
            bind=_varbinary_bind,
            literal=_varbinary_literal,
            parse_options=_varbinary_options,
            dialect_impl=_varbinary_impl,
        ),
    )
    registry.register(
        "BINARYUUID",
        "VARBINARY",
        TypeBehaviors(
            bind=_binary_uuid_bind,
            literal=_binary_uuid_literal,
            length=16,
        ),
    )
    registry.register(
        "ZERO_NULL_DATE",
        Date,
        TypeBehaviors(bind=_zero_null_date_bind, result=_zero_null_date_result),
    )
    registry.register(
        "ZERO_NULL_DATETIME",
        DateTime,
        TypeBehaviors(bind=_zero_null_datetime_bind, result=_zero_null_datetime_result),
    )
    logger.debug("Installed MySQL column types: %s", ", ".join(registry.names()))


def install_mysql_types(registry: TypeRegistry) -> TypeRegistry:
    """Install VARBINARY, BINARYUUID, ZERO_NULL_DATE and ZERO_NULL_DATETIME once."""
    return registry.install_once(_register_mysql_types)


_registry: TypeRegistry | None = None
_registry_lock = threading.Lock()


def get_type_registry() -> TypeRegistry:
    """Return the process-wide registry, building it on first use."""
    global _registry  # noqa: PLW0603
    with _registry_lock:
        if _registry is None:
            _registry = install_mysql_types(TypeRegistry())
    return _registry


__all__ = [
    "ZERO_UUID",
    "CustomType",
    "TypeBehaviors",
    "TypeRegistry",
    "get_type_registry",
    "install_mysql_types",
]
