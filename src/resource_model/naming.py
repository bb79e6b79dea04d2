"""Model name normalization."""

from __future__ import annotations

import re

import inflection

_WORDS = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z]+|[0-9]+")


def to_pascal_case(value: str) -> str:
    return "".join(word[:1].upper() + word[1:].lower() for word in _WORDS.findall(value))


def to_snake_case(value: str) -> str:
    return "_".join(word.lower() for word in _WORDS.findall(value))


def model_name(value: str) -> str:
    """The singular PascalCase form every model is known by.

    ``"user_addresses"`` becomes ``"UserAddress"``, ``"people"`` becomes
    ``"Person"``.
    """
    return inflection.singularize(to_pascal_case(value))


def plural_model_name(value: str) -> str:
    return inflection.pluralize(model_name(value))
