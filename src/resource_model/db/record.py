from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from resource_model.db.presets import FieldDeclaration


class Record:
    """A storage row held as raw values, read and written through field getters/setters.

    ``get``/``set`` run the declaration's getter/setter; ``get_data_value``/
    ``set_data_value`` touch the raw storage value directly. Columns without a
    declaration are kept verbatim.
    """

    def __init__(self, fields: Mapping[str, FieldDeclaration], data_values: Mapping[str, Any] | None = None) -> None:
        self.fields = fields
        self._values: dict[str, Any] = dict(data_values or {})

    @classmethod
    def build(cls, fields: Mapping[str, FieldDeclaration], values: Mapping[str, Any]) -> Record:
        """Create a record from API values, filling unset fields from their defaults."""
        record = cls(fields)
        for name, decl in fields.items():
            if name in values:
                record.set(name, values[name])
            elif decl.has_default:
                record.set(name, decl.default_value)
        for name, value in values.items():
            if name not in fields:
                record.set_data_value(name, value)
        return record

    def get(self, name: str) -> Any:
        raw = self._values.get(name)
        decl = self.fields.get(name)
        if decl is None:
            return raw
        return decl.get(raw)

    def set(self, name: str, value: Any) -> None:
        decl = self.fields.get(name)
        self._values[name] = value if decl is None else decl.set(value)

    def get_data_value(self, name: str) -> Any:
        return self._values.get(name)

    def set_data_value(self, name: str, value: Any) -> None:
        self._values[name] = value

    def set_values(self, values: Mapping[str, Any]) -> None:
        for name, value in values.items():
            self.set(name, value)

    def get_data(self) -> dict[str, Any]:
        """Return every column as its API value."""
        names = list(self.fields)
        names.extend(name for name in self._values if name not in self.fields)
        return {name: self.get(name) for name in names}

    def raw_values(self) -> dict[str, Any]:
        return dict(self._values)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __repr__(self) -> str:
        return f"Record({self._values!r})"
