"""Tests for the custom column type registry."""

from __future__ import annotations

import threading
from datetime import date, datetime

import pytest
from sqlalchemy import Date, Integer, LargeBinary, String
from sqlalchemy.dialects import mysql, sqlite

from resource_model.db import types as types_module
from resource_model.db.types import TypeBehaviors, TypeRegistry, get_type_registry, install_mysql_types
from resource_model.errors import ConfigurationError

DIALECT = mysql.dialect()


class TestInstallation:
    def test_installs_the_mysql_types(self, type_registry: TypeRegistry) -> None:
        assert type_registry.applied is True
        assert type_registry.names() == ["VARBINARY", "BINARYUUID", "ZERO_NULL_DATE", "ZERO_NULL_DATETIME"]

    def test_second_install_is_a_no_op(self, type_registry: TypeRegistry) -> None:
        binary_uuid = type_registry.get("BINARYUUID")
        install_mysql_types(type_registry)
        assert type_registry.get("BINARYUUID") is binary_uuid
        assert len(type_registry.names()) == 4

    def test_install_once_runs_the_installer_a_single_time(self) -> None:
        registry = TypeRegistry()
        calls: list[TypeRegistry] = []

        assert registry.install_once(calls.append) is registry
        registry.install_once(calls.append)

        assert calls == [registry]
        assert registry.applied is True

    def test_global_registry_is_built_once(self) -> None:
        results: list[TypeRegistry] = []
        threads = [threading.Thread(target=lambda: results.append(get_type_registry())) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert all(r is results[0] for r in results)
        assert results[0] is types_module.get_type_registry()
        assert results[0].applied is True


class TestRegister:
    def test_unknown_base_name_raises(self) -> None:
        registry = TypeRegistry()
        with pytest.raises(ConfigurationError, match="unknown base type 'NOPE'"):
            registry.register("THING", "NOPE")

    def test_unknown_type_lookup_raises(self) -> None:
        with pytest.raises(ConfigurationError):
            TypeRegistry().get("MISSING")

    def test_same_name_and_base_returns_existing(self) -> None:
        registry = TypeRegistry()
        first = registry.register("BLOB2", LargeBinary)
        assert registry.register("BLOB2", LargeBinary) is first

    def test_same_name_with_other_base_raises(self) -> None:
        registry = TypeRegistry()
        registry.register("BLOB2", LargeBinary)
        with pytest.raises(ConfigurationError, match="different base"):
            registry.register("BLOB2", String)

    def test_fixed_length_needs_binary_base(self) -> None:
        registry = TypeRegistry()
        with pytest.raises(ConfigurationError, match="fixed length"):
            registry.register("SHORTINT", Integer, TypeBehaviors(length=4))

    def test_subtype_overrides_only_supplied_behaviors(self, type_registry: TypeRegistry) -> None:
        def passthrough_bind(column_type: object, value: object) -> object:
            return value

        hashed = type_registry.register("HASH32", "VARBINARY", TypeBehaviors(length=32, bind=passthrough_bind))
        varbinary = type_registry.get("VARBINARY")

        assert issubclass(hashed, varbinary)
        assert hashed.behaviors.bind is passthrough_bind
        assert hashed.behaviors.literal is varbinary.behaviors.literal
        assert hashed().length == 32


class TestVarbinary:
    def test_default_length_is_one(self, type_registry: TypeRegistry) -> None:
        assert type_registry.get("VARBINARY")().length == 1

    def test_explicit_length(self, type_registry: TypeRegistry) -> None:
        column_type = type_registry.get("VARBINARY")(64)
        assert column_type.length == 64
        assert repr(column_type) == "VARBINARY(64)"

    def test_bind_coerces_hex_to_bytes(self, type_registry: TypeRegistry) -> None:
        column_type = type_registry.get("VARBINARY")(4)
        assert column_type.process_bind_param("deadbeef", DIALECT) == b"\xde\xad\xbe\xef"
        assert column_type.process_bind_param(None, DIALECT) is None

    def test_literal_is_hex(self, type_registry: TypeRegistry) -> None:
        column_type = type_registry.get("VARBINARY")(2)
        assert column_type.process_literal_param(b"\x01\x02", DIALECT) == "0x0102"

    def test_dialect_impl(self, type_registry: TypeRegistry) -> None:
        column_type = type_registry.get("VARBINARY")(8)
        assert isinstance(column_type.load_dialect_impl(DIALECT), mysql.VARBINARY)
        assert isinstance(column_type.load_dialect_impl(sqlite.dialect()), LargeBinary)


class TestBinaryUuid:
    def test_length_is_fixed_at_sixteen(self, type_registry: TypeRegistry) -> None:
        binary_uuid = type_registry.get("BINARYUUID")
        assert binary_uuid().length == 16
        assert binary_uuid(99).length == 16

    def test_none_binds_to_zero_bytes(self, type_registry: TypeRegistry) -> None:
        assert type_registry.get("BINARYUUID")().process_bind_param(None, DIALECT) == bytes(16)

    def test_string_binds_to_packed_bytes(self, type_registry: TypeRegistry) -> None:
        bound = type_registry.get("BINARYUUID")().process_bind_param("9F3C6A1E-0B2D-4C5E-8F7A-1B2C3D4E5F60", DIALECT)
        assert bound == bytes.fromhex("9f3c6a1e0b2d4c5e8f7a1b2c3d4e5f60")

    def test_literal(self, type_registry: TypeRegistry) -> None:
        literal = type_registry.get("BINARYUUID")().process_literal_param(None, DIALECT)
        assert literal == "0x" + "00" * 16


class TestZeroNullTypes:
    def test_date_sentinel_passes_through(self, type_registry: TypeRegistry) -> None:
        column_type = type_registry.get("ZERO_NULL_DATE")()
        assert column_type.process_bind_param(None, DIALECT) == "0000-00-00"
        assert column_type.process_result_value(None, DIALECT) == "0000-00-00"
        assert column_type.process_bind_param("0000-00-00", DIALECT) == "0000-00-00"

    def test_date_values_are_normalized(self, type_registry: TypeRegistry) -> None:
        column_type = type_registry.get("ZERO_NULL_DATE")()
        assert column_type.process_result_value(date(2017, 6, 30), DIALECT) == "2017-06-30"
        assert column_type.base_type is Date

    def test_datetime_values_are_normalized(self, type_registry: TypeRegistry) -> None:
        column_type = type_registry.get("ZERO_NULL_DATETIME")()
        assert column_type.process_result_value(datetime(2017, 6, 30, 8, 1, 2), DIALECT) == "2017-06-30 08:01:02"
        assert column_type.process_bind_param(None, DIALECT) == "0000-00-00 00:00:00"
