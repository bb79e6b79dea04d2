"""Field presets: shorthand field declarations expanded into full columns.

A declaration carrying a ``preset`` is handed to the preset's function, which
fills in the column type, the nullability/default (only where the author left
them unset) and a getter/setter pair doing the storage coercion. The marker is
cleared afterwards, so applying presets twice is harmless.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, MutableMapping
from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum
from typing import Any

from sqlalchemy import Column, String, Text
from sqlalchemy import Enum as SqlEnum
from sqlalchemy.dialects import mysql

from resource_model.db.helpers import (
    STORAGE_DATE_FORMAT,
    STORAGE_DATETIME_FORMAT,
    ZERO_DATE,
    ZERO_DATETIME,
    ZERO_UUID,
    bool_to_yes_no,
    force_to_bool,
    force_to_proper_uuid,
    parse_datetime,
    to_iso_string,
    uuid_to_bytes,
)
from resource_model.db.types import TypeRegistry, get_type_registry
from resource_model.errors import ConfigurationError, ValidationError

logger = logging.getLogger(__name__)


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()

Getter = Callable[[Any], Any]
Setter = Callable[[Any], Any]


class Preset(StrEnum):
    STRING = "STRING"
    ENUM = "ENUM"
    INTEGER_11 = "INTEGER_11"
    DECIMAL_10_2 = "DECIMAL_10_2"
    TINYTEXT = "TINYTEXT"
    TEXT = "TEXT"
    MEDIUMTEXT = "MEDIUMTEXT"
    LONGTEXT = "LONGTEXT"
    ZERO_NULL_DATE = "ZERO_NULL_DATE"
    ZERO_NULL_DATETIME = "ZERO_NULL_DATETIME"
    BINARYUUID = "BINARYUUID"
    BOOLYESNO = "BOOLYESNO"


@dataclass
class FieldDeclaration:
    """A column as authored on a model, before or after preset expansion.

    ``allow_null`` and ``default_value`` stay ``UNSET`` until the author or a
    preset sets them; ``None`` is a legitimate default.
    """

    preset: Preset | PresetFunction | None = None
    type: Any = None
    allow_null: Any = UNSET
    default_value: Any = UNSET
    values: list[str] | None = None
    length: int | None = None
    primary_key: bool = False
    getter: Getter | None = None
    setter: Setter | None = None

    @property
    def has_default(self) -> bool:
        return self.default_value is not UNSET

    def get(self, raw: Any) -> Any:
        """Run the getter over a raw storage value."""
        if self.getter is None:
            return raw
        return self.getter(raw)

    def set(self, value: Any) -> Any:
        """Run the setter over an API value, returning the storage value."""
        if self.setter is None:
            return value
        return self.setter(value)

    def to_column(self, name: str) -> Column[Any]:
        if self.type is None:
            raise ConfigurationError(f"Field '{name}' has no column type; declare a type or a preset")
        nullable = True if self.allow_null is UNSET else bool(self.allow_null)
        return Column(name, self.type, primary_key=self.primary_key, nullable=nullable and not self.primary_key)


@dataclass(frozen=True)
class PresetContext:
    field_name: str
    field_list: MutableMapping[str, FieldDeclaration]
    presets: FieldPresets
    types: TypeRegistry


PresetFunction = Callable[[FieldDeclaration, PresetContext], FieldDeclaration]


def _set_defaults(decl: FieldDeclaration, **defaults: Any) -> None:
    for key, value in defaults.items():
        if getattr(decl, key) is UNSET:
            setattr(decl, key, value)


# --- Presets for common field types ---


def preset_string(decl: FieldDeclaration, ctx: PresetContext) -> FieldDeclaration:
    decl.type = String(decl.length or 255)
    _set_defaults(decl, allow_null=False, default_value="")
    return decl


def preset_enum(decl: FieldDeclaration, ctx: PresetContext) -> FieldDeclaration:
    if not decl.values:
        raise ConfigurationError(f"ENUM field '{ctx.field_name}' requires a non-empty list of values")
    decl.type = SqlEnum(*decl.values, name=ctx.field_name)
    _set_defaults(decl, allow_null=False)
    return decl


def preset_integer_11(decl: FieldDeclaration, ctx: PresetContext) -> FieldDeclaration:
    decl.type = mysql.INTEGER(display_width=11)
    _set_defaults(decl, allow_null=False, default_value=0)
    return decl


def preset_decimal_10_2(decl: FieldDeclaration, ctx: PresetContext) -> FieldDeclaration:
    decl.type = mysql.DECIMAL(precision=10, scale=2)
    _set_defaults(decl, allow_null=False, default_value="0.00")
    return decl


def _text_preset(text_type: Callable[[], Any]) -> PresetFunction:
    def preset_text(decl: FieldDeclaration, ctx: PresetContext) -> FieldDeclaration:
        decl.type = text_type()
        _set_defaults(decl, allow_null=False, default_value="")
        return decl

    return preset_text


# --- Presets with coercing getters/setters ---


def preset_zero_null_date(decl: FieldDeclaration, ctx: PresetContext) -> FieldDeclaration:
    """Dates stored as ``0000-00-00`` when empty and surfaced as ``None``."""
    field_name = ctx.field_name
    decl.type = ctx.types.get("ZERO_NULL_DATE")()
    _set_defaults(decl, allow_null=False, default_value=None)

    def getter(raw: Any) -> str | None:
        if raw is None or raw == ZERO_DATE:
            return None
        if isinstance(raw, (date, datetime)):
            return raw.strftime(STORAGE_DATE_FORMAT)
        return str(raw)

    def setter(value: Any) -> str:
        if value is None or value == ZERO_DATE:
            return ZERO_DATE
        if isinstance(value, date) and not isinstance(value, datetime):
            return value.strftime(STORAGE_DATE_FORMAT)
        try:
            return parse_datetime(value).strftime(STORAGE_DATE_FORMAT)
        except ValueError:
            raise ValidationError(
                field_name,
                "expected a date; this field accepts ISO-8601 strings (e.g. '2017-06-30'), "
                "date/datetime objects, epoch milliseconds or null.",
            ) from None

    decl.getter = getter
    decl.setter = setter
    return decl


def preset_zero_null_datetime(decl: FieldDeclaration, ctx: PresetContext) -> FieldDeclaration:
    """Date/times stored as ``0000-00-00 00:00:00`` when empty; read as UTC ISO-8601."""
    field_name = ctx.field_name
    decl.type = ctx.types.get("ZERO_NULL_DATETIME")()
    _set_defaults(decl, allow_null=False, default_value=None)

    def getter(raw: Any) -> str | None:
        if raw is None or raw == ZERO_DATETIME:
            return None
        try:
            return to_iso_string(parse_datetime(raw))
        except ValueError:
            raise ValidationError(field_name, f"stored value {raw!r} is not a date/time") from None

    def setter(value: Any) -> str:
        if value is None or value == ZERO_DATETIME:
            return ZERO_DATETIME
        try:
            return parse_datetime(value).strftime(STORAGE_DATETIME_FORMAT)
        except ValueError:
            raise ValidationError(
                field_name,
                "expected a date/time; this field accepts ISO-8601 strings "
                "(e.g. '2017-06-30T12:00:00Z'), datetime objects, epoch milliseconds or null.",
            ) from None

    decl.getter = getter
    decl.setter = setter
    return decl


def preset_binary_uuid(decl: FieldDeclaration, ctx: PresetContext) -> FieldDeclaration:
    """UUIDs stored as 16 bytes; the zero UUID reads back as ``None``."""
    decl.type = ctx.types.get("BINARYUUID")()
    _set_defaults(decl, allow_null=False, default_value=None)

    def getter(raw: Any) -> str | None:
        value = force_to_proper_uuid(raw)
        if value == ZERO_UUID:
            return None
        return value

    def setter(value: Any) -> bytes:
        return uuid_to_bytes(force_to_proper_uuid(value))

    decl.getter = getter
    decl.setter = setter
    return decl


def preset_bool_yes_no(decl: FieldDeclaration, ctx: PresetContext) -> FieldDeclaration:
    """Booleans stored in a ``'no'``/``'yes'`` enum."""
    decl.values = ["no", "yes"]
    decl.type = SqlEnum(*decl.values, name=ctx.field_name)
    _set_defaults(decl, allow_null=False, default_value=False)

    if decl.default_value is True or decl.default_value == 1:
        decl.default_value = "yes"
    if decl.default_value != "yes":
        decl.default_value = "no"

    decl.getter = force_to_bool
    decl.setter = bool_to_yes_no
    return decl


PRESET_FUNCTIONS: dict[Preset, PresetFunction] = {
    Preset.STRING: preset_string,
    Preset.ENUM: preset_enum,
    Preset.INTEGER_11: preset_integer_11,
    Preset.DECIMAL_10_2: preset_decimal_10_2,
    Preset.TINYTEXT: _text_preset(mysql.TINYTEXT),
    Preset.TEXT: _text_preset(Text),
    Preset.MEDIUMTEXT: _text_preset(mysql.MEDIUMTEXT),
    Preset.LONGTEXT: _text_preset(mysql.LONGTEXT),
    Preset.ZERO_NULL_DATE: preset_zero_null_date,
    Preset.ZERO_NULL_DATETIME: preset_zero_null_datetime,
    Preset.BINARYUUID: preset_binary_uuid,
    Preset.BOOLYESNO: preset_bool_yes_no,
}


class FieldPresets:
    """Applies presets across a model's field declarations."""

    def __init__(self, types: TypeRegistry | None = None) -> None:
        self.types = types if types is not None else get_type_registry()

    def resolve(self, preset: Preset | PresetFunction) -> PresetFunction:
        if isinstance(preset, Preset):
            return PRESET_FUNCTIONS[preset]
        if callable(preset):
            return preset
        raise ConfigurationError(f"Unknown preset {preset!r}")

    def apply(self, field_list: MutableMapping[str, FieldDeclaration]) -> MutableMapping[str, FieldDeclaration]:
        """Expand every declaration that still carries a preset marker.

        The mapping is modified in place and returned.
        """
        for field_name, decl in list(field_list.items()):
            if decl.preset is None:
                continue

            fn = self.resolve(decl.preset)
            ctx = PresetContext(field_name=field_name, field_list=field_list, presets=self, types=self.types)
            expanded = fn(decl, ctx)
            expanded.preset = None
            decl.preset = None
            field_list[field_name] = expanded
            logger.debug("Applied preset to field %s: %r", field_name, expanded.type)

        return field_list


def apply_presets(
    field_list: MutableMapping[str, FieldDeclaration],
    types: TypeRegistry | None = None,
) -> MutableMapping[str, FieldDeclaration]:
    return FieldPresets(types).apply(field_list)
