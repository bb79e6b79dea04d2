from resource_model.db.engine import get_engine
from resource_model.db.memory import InMemoryStorage
from resource_model.db.mysql import MysqlStorage
from resource_model.db.presets import UNSET, FieldDeclaration, FieldPresets, Preset, apply_presets
from resource_model.db.record import Record
from resource_model.db.types import CustomType, TypeBehaviors, TypeRegistry, get_type_registry, install_mysql_types

__all__ = [
    "UNSET",
    "CustomType",
    "FieldDeclaration",
    "FieldPresets",
    "InMemoryStorage",
    "MysqlStorage",
    "Preset",
    "Record",
    "TypeBehaviors",
    "TypeRegistry",
    "apply_presets",
    "get_engine",
    "get_type_registry",
    "install_mysql_types",
]
