from __future__ import annotations

from datetime import datetime
from enum import Enum, IntEnum
from types import SimpleNamespace
from typing import Any, Optional
from uuid import UUID

import pytest

from tabent.core.accessors import ValueAccessor, default_kind, resolve_scalar
from tabent.core.constants import EMPTY_GUID
from tabent.core.discovery import Member, MemberKind
from tabent.core.errors import ConversionError, TypeMismatchError, UnsupportedTypeError
from tabent.core.grammar import EdmType
from tabent.core.schema import EntityProperty


class Color(Enum):
    RED = "red"
    GREEN = "green"


class Priority(IntEnum):
    LOW = 1
    HIGH = 2


class Level(Enum):
    LOW = 1
    HIGH = 2


def _accessor(annotation: Any, kind: EdmType | None = None, **kw: Any) -> ValueAccessor:
    writable = kw.pop("writable", True)
    member = Member(name="x", annotation=annotation, metadata=(), kind=MemberKind.FIELD, writable=writable)
    return ValueAccessor.for_member(member, kind=kind, **kw)


def _prop(kind: EdmType, value: Any) -> EntityProperty:
    return EntityProperty(kind=kind, value=value)


@pytest.mark.parametrize(
    "tp, kind",
    [
        (str, EdmType.STRING),
        (bool, EdmType.BOOLEAN),
        (int, EdmType.INT64),
        (float, EdmType.DOUBLE),
        (datetime, EdmType.DATETIME),
        (bytes, EdmType.BINARY),
        (bytearray, EdmType.BINARY),
        (UUID, EdmType.GUID),
        (Color, EdmType.STRING),
        (Priority, EdmType.INT32),
    ],
)
def test_default_kind(tp, kind) -> None:
    assert default_kind(tp) is kind


@pytest.mark.parametrize("annotation", [list[int], dict, Any, int | str, type(None), complex])
def test_unsupported_annotations(annotation) -> None:
    with pytest.raises(UnsupportedTypeError):
        _accessor(annotation)


def test_resolve_scalar_nullable() -> None:
    assert resolve_scalar(Optional[int]) == (int, True)
    assert resolve_scalar(str | None) == (str, True)
    assert resolve_scalar(float) == (float, False)


def test_kind_override_must_fit_type() -> None:
    assert _accessor(int, EdmType.INT32).kind is EdmType.INT32
    assert _accessor(Level, EdmType.INT32).kind is EdmType.INT32
    assert _accessor(Priority, EdmType.STRING).kind is EdmType.STRING
    with pytest.raises(UnsupportedTypeError):
        _accessor(Color, EdmType.INT32)
    with pytest.raises(UnsupportedTypeError):
        _accessor(Color, EdmType.INT64)
    with pytest.raises(UnsupportedTypeError):
        _accessor(int, EdmType.DOUBLE)
    with pytest.raises(UnsupportedTypeError):
        _accessor(str, EdmType.GUID)


def test_read_boxes_values() -> None:
    assert _accessor(int).read(SimpleNamespace(x=5)) == _prop(EdmType.INT64, 5)
    assert _accessor(float).read(SimpleNamespace(x=3)) == _prop(EdmType.DOUBLE, 3.0)
    assert _accessor(Color).read(SimpleNamespace(x=Color.GREEN)) == _prop(EdmType.STRING, "GREEN")
    assert _accessor(Priority).read(SimpleNamespace(x=Priority.HIGH)) == _prop(EdmType.INT32, 2)
    assert _accessor(Optional[str]).read(SimpleNamespace(x=None)) == _prop(EdmType.STRING, None)


def test_read_runtime_mismatch_raises() -> None:
    with pytest.raises(TypeMismatchError):
        _accessor(int).read(SimpleNamespace(x="five"))
    with pytest.raises(TypeMismatchError):
        _accessor(bool).read(SimpleNamespace(x=1))
    with pytest.raises(TypeMismatchError):
        _accessor(Color).read(SimpleNamespace(x="GREEN"))


def test_int32_overflow_policy() -> None:
    big = SimpleNamespace(x=2**31)
    with pytest.raises(TypeMismatchError):
        _accessor(int, EdmType.INT32).read(big)
    widened = _accessor(int, EdmType.INT32, strict_int32=False).read(big)
    assert widened == _prop(EdmType.INT64, 2**31)


def test_coerce_lossless_conversions() -> None:
    assert _accessor(float).coerce(_prop(EdmType.INT32, 3)) == 3.0
    assert _accessor(int).coerce(_prop(EdmType.INT32, 3)) == 3
    assert _accessor(int).coerce(_prop(EdmType.DOUBLE, 4.0)) == 4
    assert _accessor(bytearray).coerce(_prop(EdmType.BINARY, b"ab")) == bytearray(b"ab")
    uid = UUID("12345678-1234-5678-1234-567812345678")
    assert _accessor(UUID).coerce(_prop(EdmType.STRING, str(uid))) == uid
    assert _accessor(Optional[int]).coerce(_prop(EdmType.INT64, None)) is None


@pytest.mark.parametrize(
    "annotation, prop",
    [
        (int, _prop(EdmType.STRING, "42")),
        (int, _prop(EdmType.DOUBLE, 4.5)),
        (int, _prop(EdmType.BOOLEAN, True)),
        (bool, _prop(EdmType.INT64, 1)),
        (str, _prop(EdmType.INT64, 1)),
        (datetime, _prop(EdmType.STRING, "2024-01-01")),
        (UUID, _prop(EdmType.STRING, "nope")),
        (int, _prop(EdmType.INT64, None)),
    ],
)
def test_coerce_mismatch_raises(annotation, prop) -> None:
    with pytest.raises(TypeMismatchError):
        _accessor(annotation).coerce(prop)


def test_enum_accepts_name_or_integer() -> None:
    pri = _accessor(Priority)
    assert pri.coerce(_prop(EdmType.INT64, 1)) is Priority.LOW
    assert pri.coerce(_prop(EdmType.STRING, "HIGH")) is Priority.HIGH
    color = _accessor(Color)
    assert color.coerce(_prop(EdmType.STRING, "RED")) is Color.RED
    with pytest.raises(TypeMismatchError):
        color.coerce(_prop(EdmType.STRING, "PURPLE"))
    with pytest.raises(TypeMismatchError):
        pri.coerce(_prop(EdmType.INT32, 9))


def test_write_and_read_only() -> None:
    target = SimpleNamespace(x=0)
    _accessor(int).write(target, _prop(EdmType.INT32, 9))
    assert target.x == 9
    with pytest.raises(ConversionError):
        _accessor(int, writable=False).write(target, _prop(EdmType.INT32, 1))


def test_zero_values() -> None:
    assert _accessor(int).zero_value() == 0
    assert _accessor(str).zero_value() == ""
    assert _accessor(bool).zero_value() is False
    assert _accessor(bytes).zero_value() == b""
    assert _accessor(UUID).zero_value() == EMPTY_GUID
    assert _accessor(datetime).zero_value() == datetime.min
    assert _accessor(Color).zero_value() is Color.RED
    assert _accessor(Optional[float]).zero_value() is None


def test_int_to_float_requires_exact_representation() -> None:
    acc = _accessor(float)
    assert acc.coerce(_prop(EdmType.INT64, 2**53)) == float(2**53)
    assert acc.coerce(_prop(EdmType.INT64, -(2**53))) == -float(2**53)
    with pytest.raises(TypeMismatchError):
        acc.coerce(_prop(EdmType.INT64, 2**53 + 1))


def test_int32_member_rejects_out_of_range_column() -> None:
    acc = _accessor(int, EdmType.INT32)
    assert acc.coerce(_prop(EdmType.INT64, 2**31 - 1)) == 2**31 - 1
    with pytest.raises(TypeMismatchError):
        acc.coerce(_prop(EdmType.INT64, 2**31))
    with pytest.raises(TypeMismatchError):
        acc.coerce(_prop(EdmType.DOUBLE, float(2**31)))
    loose = _accessor(int, EdmType.INT32, strict_int32=False)
    assert loose.coerce(_prop(EdmType.INT64, 2**31)) == 2**31
