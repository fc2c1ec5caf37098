"""Construction-time classification rules and policies."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Annotated, Optional

import pytest
from pydantic import BaseModel

from tabent.config import MapperSettings
from tabent.core.errors import ArgumentError, UnsupportedTypeError
from tabent.core.grammar import EdmType, KeyRole
from tabent.core.mapper import build_descriptor
from tabent.core.markers import Column, Ignore, PartitionKey, RowKey
from tabent.core.schema import TableRecord


@dataclass
class NoKeys:
    name: str = ""
    age: int = 0


@dataclass
class TwoPartitions:
    a: Annotated[str, PartitionKey] = ""
    b: Annotated[str, PartitionKey] = ""


@dataclass
class TwoRolesOneMember:
    a: Annotated[str, PartitionKey, RowKey] = ""


@dataclass
class IntPartition:
    a: Annotated[int, PartitionKey] = 0


@dataclass
class Clash:
    pk: Annotated[str, PartitionKey] = ""
    first: Annotated[str, Column("Name")] = ""
    Name: str = ""


@dataclass
class ReservedColumn:
    pk: Annotated[str, PartitionKey] = ""
    note: Annotated[str, Column("RowKey")] = ""


@dataclass
class KeyWithColumn:
    pk: Annotated[str, PartitionKey, Column("P")] = ""


@dataclass
class Tagged:
    pk: Annotated[str, PartitionKey] = ""
    tags: list[str] | None = None


@dataclass
class TaggedIgnored:
    pk: Annotated[str, PartitionKey] = ""
    tags: Annotated[Optional[list[str]], Ignore] = None


class Genre(Enum):
    ROCK = "rock"
    JAZZ = "jazz"


@dataclass
class Tune:
    pk: Annotated[str, PartitionKey] = ""
    genre: Annotated[Genre, Column(kind=EdmType.INT32)] = Genre.ROCK


class SecretDoc(BaseModel):
    pk: Annotated[str, PartitionKey]
    secret: Annotated[str, Ignore]


class OptionalSecretDoc(BaseModel):
    pk: Annotated[str, PartitionKey]
    secret: Annotated[str, Ignore] = "hidden"


@dataclass
class CachedRow:
    pk: Annotated[str, PartitionKey]
    _cache: int


class Conventional:
    partition_key: str = ""
    row_key: str = ""
    timestamp: Optional[datetime] = None
    etag: Optional[str] = None
    note: str = ""


class LooseTimestamp:
    PartitionKey: str = ""
    timestamp: str = ""


class Order:
    __entity_roles__ = {"customer": "PartitionKey", "number": KeyRole.ROW_KEY}

    customer: str = ""
    number: str = ""
    total: float = 0.0


@dataclass
class Reading:
    device: str = ""
    seq: int = 0
    value: float = 0.0

    @property
    def partition_key(self) -> str:
        return self.device

    @property
    def row_key(self) -> str:
        return f"{self.seq:08d}"


def test_no_key_role_raises() -> None:
    with pytest.raises(ArgumentError, match="PartitionKey or RowKey"):
        build_descriptor(NoKeys)


def test_duplicate_role_error_policy() -> None:
    with pytest.raises(ArgumentError, match="claimed by both"):
        build_descriptor(TwoPartitions)


def test_duplicate_role_first_policy() -> None:
    desc = build_descriptor(TwoPartitions, settings=MapperSettings(duplicate_role_policy="first"))
    assert desc.key_properties[KeyRole.PARTITION_KEY].declared_name == "a"
    assert [p.storage_name for p in desc.properties] == ["b"]
    rec = desc.to_record(TwoPartitions(a="x", b="y"))
    assert rec.partition_key == "x"
    assert rec.columns() == {"b": "y"}


def test_environment_settings_apply_only_when_loaded(monkeypatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("TABENT_DUPLICATE_ROLE_POLICY", "first")
    with pytest.raises(ArgumentError, match="claimed by both"):
        build_descriptor(TwoPartitions)
    desc = build_descriptor(TwoPartitions, settings=MapperSettings.load())
    assert desc.key_properties[KeyRole.PARTITION_KEY].declared_name == "a"


def test_member_with_two_roles_raises() -> None:
    with pytest.raises(ArgumentError, match="several key roles"):
        build_descriptor(TwoRolesOneMember)


def test_key_role_type_must_fit() -> None:
    with pytest.raises(ArgumentError, match="must be Edm.String"):
        build_descriptor(IntPartition)


def test_duplicate_storage_name_raises() -> None:
    with pytest.raises(ArgumentError, match="duplicate storage name"):
        build_descriptor(Clash)


def test_reserved_storage_name_raises() -> None:
    with pytest.raises(ArgumentError, match="reserved"):
        build_descriptor(ReservedColumn)


def test_column_marker_on_key_role_raises() -> None:
    with pytest.raises(ArgumentError, match="Column marker"):
        build_descriptor(KeyWithColumn)


def test_unsupported_member_type_fails_at_build() -> None:
    with pytest.raises(UnsupportedTypeError):
        build_descriptor(Tagged)


def test_ignored_member_is_not_mapped() -> None:
    desc = build_descriptor(TaggedIgnored)
    assert desc.properties == ()
    assert desc.to_record(TaggedIgnored(pk="p", tags=["a"])).properties == {}


def test_string_enum_with_integer_kind_fails_at_build() -> None:
    with pytest.raises(UnsupportedTypeError):
        build_descriptor(Tune)


@pytest.mark.parametrize("entity_type", [SecretDoc, CachedRow])
def test_required_unmapped_member_fails_at_build(entity_type) -> None:
    with pytest.raises(ArgumentError, match="without defaults"):
        build_descriptor(entity_type)


def test_ignored_member_with_default_keeps_default() -> None:
    desc = build_descriptor(OptionalSecretDoc)
    doc = desc.to_entity(TableRecord(partition_key="p"))
    assert doc.pk == "p"
    assert doc.secret == "hidden"


def test_convention_names() -> None:
    desc = build_descriptor(Conventional)
    assert {r: h.declared_name for r, h in desc.key_properties.items()} == {
        KeyRole.PARTITION_KEY: "partition_key",
        KeyRole.ROW_KEY: "row_key",
        KeyRole.TIMESTAMP: "timestamp",
        KeyRole.ETAG: "etag",
    }
    assert desc.rename_table["PartitionKey"] == "partition_key"
    assert [p.storage_name for p in desc.properties] == ["note"]


def test_conventions_disabled() -> None:
    with pytest.raises(ArgumentError, match="PartitionKey or RowKey"):
        build_descriptor(Conventional, settings=MapperSettings(use_conventions=False))


def test_convention_skips_member_of_wrong_type() -> None:
    desc = build_descriptor(LooseTimestamp)
    assert desc.key_properties[KeyRole.PARTITION_KEY].declared_name == "PartitionKey"
    assert desc.key_properties[KeyRole.TIMESTAMP] is None
    assert [p.storage_name for p in desc.properties] == ["timestamp"]
    assert "PartitionKey" not in desc.rename_table


def test_roles_from_class_config() -> None:
    desc = build_descriptor(Order)
    order = Order()
    order.customer, order.number, order.total = "c1", "0001", 9.5
    rec = desc.to_record(order)
    assert (rec.partition_key, rec.row_key, rec.columns()) == ("c1", "0001", {"total": 9.5})


def test_roles_argument_overrides_class_config() -> None:
    desc = build_descriptor(Order, roles={"customer": "row_key", "number": "partition_key"})
    assert desc.key_properties[KeyRole.PARTITION_KEY].declared_name == "number"
    assert desc.key_properties[KeyRole.ROW_KEY].declared_name == "customer"


def test_roles_for_unknown_member_raise() -> None:
    with pytest.raises(ArgumentError, match="unknown members"):
        build_descriptor(Order, roles={"missing": "RowKey"})


def test_read_only_keys_skip_policy() -> None:
    desc = build_descriptor(Reading)
    rec = desc.to_record(Reading(device="d1", seq=7, value=1.5))
    assert (rec.partition_key, rec.row_key) == ("d1", "00000007")
    assert rec.columns() == {"device": "d1", "seq": 7, "value": 1.5}
    assert desc.to_entity(rec) == Reading(device="d1", seq=7, value=1.5)


def test_read_only_error_policy() -> None:
    with pytest.raises(ArgumentError, match="read-only"):
        build_descriptor(Reading, settings=MapperSettings(read_only_policy="error"))


def test_record_without_key_values_leaves_defaults() -> None:
    desc = build_descriptor(Conventional)
    entity = desc.to_entity(TableRecord(partition_key="p"))
    assert entity.partition_key == "p"
    assert entity.row_key == ""
    assert entity.timestamp is None
    assert entity.etag is None


def test_non_class_argument_raises() -> None:
    with pytest.raises(ArgumentError):
        build_descriptor("Person")  # type: ignore[arg-type]
