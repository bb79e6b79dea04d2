"""Recursive mapping between flat storage records and nested resource structures.

A mapping tree mirrors the nested shape; each leaf names the flat column that
holds the value for that path, e.g.::

    {"name": "name", "address": {"city": "address_city"}}

Values are copied verbatim in both directions. Coercion belongs to the column
getters and setters.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from resource_model.errors import ConfigurationError

MappingTree = Mapping[str, Any]


def expand(
    flat: Mapping[str, Any] | None,
    mapping: MappingTree,
    into: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the nested structure described by ``mapping`` from a flat record.

    Leaves whose column is absent from ``flat`` are set to ``None``. A ``None``
    record leaves the accumulator untouched.
    """
    result: dict[str, Any] = {} if into is None else into
    if flat is None:
        return result

    for key, target in mapping.items():
        if isinstance(target, Mapping):
            branch = result.get(key)
            result[key] = expand(flat, target, branch if isinstance(branch, dict) else None)
        else:
            result[key] = flat.get(target)
    return result


def flatten(
    nested: Mapping[str, Any] | None,
    mapping: MappingTree,
    into: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Collect the values at each leaf path of ``mapping`` into a flat record.

    Paths missing from ``nested`` are skipped, so several trees can
    accumulate into one shared record through ``into``.
    """
    result: dict[str, Any] = {} if into is None else into
    if nested is None:
        return result

    for key, target in mapping.items():
        if isinstance(target, Mapping):
            branch = nested.get(key)
            if isinstance(branch, Mapping):
                flatten(branch, target, result)
        elif key in nested:
            result[target] = nested[key]
    return result


def iter_leaves(mapping: MappingTree, prefix: tuple[str, ...] = ()) -> Iterator[tuple[tuple[str, ...], str]]:
    """Yield ``(path, column)`` for every leaf in the tree."""
    for key, target in mapping.items():
        path = (*prefix, key)
        if isinstance(target, Mapping):
            yield from iter_leaves(target, path)
        else:
            yield path, target


def resolve_column(mapping: MappingTree, dotted_path: str) -> str | None:
    """Return the column a dotted API path maps to, or ``None`` if it does not."""
    node: Any = mapping
    for part in dotted_path.split("."):
        if not isinstance(node, Mapping) or part not in node:
            return None
        node = node[part]
    if isinstance(node, Mapping):
        return None
    return str(node)


def validate_mapping(mapping: MappingTree, group: str = "mapping") -> None:
    """Raise ``ConfigurationError`` if two paths target the same column."""
    seen: dict[str, tuple[str, ...]] = {}
    for path, column in iter_leaves(mapping):
        if column in seen:
            raise ConfigurationError(
                f"Column '{column}' is mapped twice in {group}: "
                f"'{'.'.join(seen[column])}' and '{'.'.join(path)}'"
            )
        seen[column] = path
