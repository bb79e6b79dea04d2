"""Shared fixtures and helpers for tests."""

from pathlib import Path

import pytest

from resource_model.db.memory import InMemoryStorage
from resource_model.db.presets import FieldDeclaration, FieldPresets, Preset
from resource_model.db.types import TypeRegistry, install_mysql_types
from resource_model.model.mysql import MysqlModel

_REPO_ROOT = Path(__file__).parent.parent

USER_ID = "9f3c6a1e-0b2d-4c5e-8f7a-1b2c3d4e5f60"
OTHER_USER_ID = "0a1b2c3d-4e5f-4a6b-9c8d-7e6f5a4b3c2d"
SCHOOL_ID = "5d41402a-bc4b-4a76-b971-9d911017c592"


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Sample model
# ---------------------------------------------------------------------------


class PersonModel(MysqlModel):
    default_name = "person"
    mysql_table = "person"
    field_mappings = {
        "attributes": {
            "name": "name",
            "address": {"city": "address_city", "zip": "address_zip"},
            "active": "is_active",
            "birthDate": "birth_date",
        },
        "relationships": {"school": "school_id"},
        "parameters": {"name": "name", "school": "school_id", "sort": "sort_order"},
    }
    relationship_config = {"belongs_to": {"school": {"model_name": "School"}}}

    def get_custom_database_fields(self, types: TypeRegistry, presets: FieldPresets) -> dict[str, FieldDeclaration]:
        return {
            "name": FieldDeclaration(preset=Preset.STRING, length=100),
            "address_city": FieldDeclaration(preset=Preset.STRING),
            "address_zip": FieldDeclaration(preset=Preset.STRING, length=10),
            "is_active": FieldDeclaration(preset=Preset.BOOLYESNO, default_value=True),
            "birth_date": FieldDeclaration(preset=Preset.ZERO_NULL_DATE),
            "school_id": FieldDeclaration(preset=Preset.BINARYUUID),
            "sort_order": FieldDeclaration(preset=Preset.INTEGER_11),
        }


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def type_registry() -> TypeRegistry:
    """Return a fresh registry with the MySQL types installed."""
    return install_mysql_types(TypeRegistry())


@pytest.fixture
def person_model(type_registry: TypeRegistry) -> PersonModel:
    """Return a person model backed by in-memory storage."""
    model = PersonModel(types=type_registry)
    model.storage = InMemoryStorage(model.database_fields)
    return model
