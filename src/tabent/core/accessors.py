"""
Value accessors: uniform read/write access to one entity member.

A ValueAccessor resolves a member's declared type to a scalar kind once, at
construction, and afterwards converts between the member's Python value and an
EntityProperty.

Type mapping
- str -> Edm.String, bool -> Edm.Boolean, int -> Edm.Int64 (Edm.Int32 on request),
  float -> Edm.Double, datetime -> Edm.DateTime, bytes/bytearray -> Edm.Binary,
  uuid.UUID -> Edm.Guid.
- Enum -> Edm.String by member name; IntEnum -> Edm.Int32 by value. Integer kinds
  may be requested only for enums whose member values are all integers.
- ``X | None`` marks a nullable member.

Write coercions are lossless only: integer kinds widen to float up to 2**53, an
integral double narrows to int within the member's integer range, a Guid may be
parsed from a string, and enums accept either a member name or an integer value.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Final, get_args, get_origin
from uuid import UUID

from .constants import DOUBLE_EXACT_INT_MAX, EMPTY_GUID
from .discovery import Member, is_union
from .errors import ConversionError, TypeMismatchError, UnsupportedTypeError
from .grammar import EdmType
from .schema import EntityProperty, check_scalar

__all__ = [
    "ValueAccessor",
    "resolve_scalar",
    "default_kind",
]

_INT_KINDS: Final[frozenset[EdmType]] = frozenset({EdmType.INT32, EdmType.INT64})

_NONE_TYPE = type(None)


def resolve_scalar(annotation: Any) -> tuple[type, bool]:
    """
    Reduce an annotation to a concrete scalar type and a nullability flag.

    Args:
        annotation (Any): Declared annotation with Annotated wrappers removed.

    Returns:
        tuple[type, bool]: (python type, nullable).

    Raises:
        UnsupportedTypeError: For unions of several types, Any, or non-class annotations.
    """
    nullable = False
    if is_union(annotation):
        args = [a for a in get_args(annotation) if a is not _NONE_TYPE]
        if len(args) != 1:
            raise UnsupportedTypeError(f"union annotation {annotation!r} is not supported")
        nullable = True
        annotation = args[0]
    if (
        not isinstance(annotation, type)
        or get_origin(annotation) is not None
        or annotation is _NONE_TYPE
    ):
        raise UnsupportedTypeError(f"annotation {annotation!r} has no scalar mapping")
    return annotation, nullable


def default_kind(tp: type) -> EdmType:
    """Scalar kind used for `tp` when no explicit kind is declared."""
    if issubclass(tp, Enum):
        return EdmType.INT32 if issubclass(tp, IntEnum) else EdmType.STRING
    if issubclass(tp, bool):
        return EdmType.BOOLEAN
    if issubclass(tp, int):
        return EdmType.INT64
    if issubclass(tp, float):
        return EdmType.DOUBLE
    if issubclass(tp, str):
        return EdmType.STRING
    if issubclass(tp, datetime):
        return EdmType.DATETIME
    if issubclass(tp, (bytes, bytearray)):
        return EdmType.BINARY
    if issubclass(tp, UUID):
        return EdmType.GUID
    raise UnsupportedTypeError(f"type {tp.__name__} has no scalar mapping")


def _is_int_value(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _allowed_kinds(tp: type, natural: EdmType) -> frozenset[EdmType]:
    if issubclass(tp, Enum):
        if all(_is_int_value(m.value) for m in tp):
            return frozenset({EdmType.STRING, *_INT_KINDS})
        return frozenset({EdmType.STRING})
    if natural in _INT_KINDS:
        return _INT_KINDS
    return frozenset({natural})


class ValueAccessor:
    """
    Reads and writes one member, converting through EntityProperty.

    Attributes:
        member (Member): The discovered member.
        python_type (type): Declared scalar type (nullability removed).
        kind (EdmType): Scalar kind used in records.
        nullable (bool): Whether None is a legal member value.
        strict_int32 (bool): Raise on Int32 overflow when reading instead of widening.
    """

    __slots__ = ("member", "python_type", "kind", "nullable", "strict_int32")

    def __init__(
        self,
        member: Member,
        python_type: type,
        kind: EdmType,
        nullable: bool = False,
        strict_int32: bool = True,
    ) -> None:
        self.member = member
        self.python_type = python_type
        self.kind = kind
        self.nullable = nullable
        self.strict_int32 = strict_int32

    @classmethod
    def for_member(
        cls, member: Member, kind: EdmType | None = None, strict_int32: bool = True
    ) -> ValueAccessor:
        """
        Build the accessor for a member, validating its declared type.

        Args:
            member (Member): Discovered member.
            kind (EdmType | None): Explicit kind override (e.g. from a Column marker).
            strict_int32 (bool): See class attributes.

        Raises:
            UnsupportedTypeError: If the type has no scalar mapping or the override
                does not fit the type.
        """
        python_type, nullable = resolve_scalar(member.annotation)
        natural = default_kind(python_type)
        if kind is None:
            kind = natural
        elif kind not in _allowed_kinds(python_type, natural):
            raise UnsupportedTypeError(
                f"member {member.name!r} of type {python_type.__name__} cannot be stored as {kind.value}"
            )
        return cls(member, python_type, kind, nullable, strict_int32)

    @property
    def name(self) -> str:
        return self.member.name

    def __repr__(self) -> str:
        opt = " | None" if self.nullable else ""
        return f"ValueAccessor({self.name}: {self.python_type.__name__}{opt} -> {self.kind.value})"

    # ------------------------------------------------------------------
    # entity -> record
    # ------------------------------------------------------------------

    def read(self, instance: Any) -> EntityProperty:
        """
        Read the member from `instance` as an EntityProperty.

        Raises:
            TypeMismatchError: If the runtime value does not fit the member's kind.
        """
        value = getattr(instance, self.name)
        if value is None:
            return EntityProperty(kind=self.kind, value=None)
        kind = self.kind
        stored = self._to_storage(value)
        if kind is EdmType.INT32 and not self.strict_int32 and not self._fits(kind, stored):
            kind = EdmType.INT64
        try:
            return EntityProperty(kind=kind, value=check_scalar(kind, stored))
        except ValueError as e:
            raise TypeMismatchError(f"member {self.name!r}: {e}") from e

    def _to_storage(self, value: Any) -> Any:
        tp = self.python_type
        if issubclass(tp, Enum):
            if not isinstance(value, tp):
                raise TypeMismatchError(
                    f"member {self.name!r} expects {tp.__name__}, got {type(value).__name__}"
                )
            if self.kind is EdmType.STRING:
                return value.name
            return value.value
        if self.kind is EdmType.DOUBLE and isinstance(value, int) and not isinstance(value, bool):
            return float(value)
        return value

    @staticmethod
    def _fits(kind: EdmType, value: Any) -> bool:
        try:
            check_scalar(kind, value)
        except ValueError:
            return False
        return True

    # ------------------------------------------------------------------
    # record -> entity
    # ------------------------------------------------------------------

    def coerce(self, prop: EntityProperty) -> Any:
        """
        Convert a record value to the member's declared type.

        Raises:
            TypeMismatchError: If no lossless conversion from `prop.kind` exists, or a
                null targets a non-nullable member.
        """
        value, kind = prop.value, prop.kind
        if value is None:
            if self.nullable:
                return None
            raise TypeMismatchError(f"cannot assign null to non-nullable member {self.name!r}")
        tp = self.python_type
        if issubclass(tp, Enum):
            return self._coerce_enum(value, kind)
        if issubclass(tp, bool):
            if kind is EdmType.BOOLEAN:
                return value
        elif issubclass(tp, int):
            if kind in _INT_KINDS or (kind is EdmType.DOUBLE and value.is_integer()):
                return self._checked_int(tp(value))
        elif issubclass(tp, float):
            if kind is EdmType.DOUBLE:
                return tp(value)
            if kind in _INT_KINDS:
                if abs(value) > DOUBLE_EXACT_INT_MAX:
                    raise TypeMismatchError(
                        f"member {self.name!r}: {value} is not exactly representable as a float"
                    )
                return tp(value)
        elif issubclass(tp, str):
            if kind is EdmType.STRING:
                return value
        elif issubclass(tp, datetime):
            if kind is EdmType.DATETIME:
                return value
        elif issubclass(tp, (bytes, bytearray)):
            if kind is EdmType.BINARY:
                return tp(value)
        elif issubclass(tp, UUID):
            if kind is EdmType.GUID:
                return value
            if kind is EdmType.STRING:
                try:
                    return UUID(value)
                except ValueError as e:
                    raise TypeMismatchError(
                        f"member {self.name!r}: {value!r} is not a valid Guid"
                    ) from e
        raise TypeMismatchError(
            f"cannot assign {kind.value} to {tp.__name__} member {self.name!r}"
        )

    def _checked_int(self, value: int) -> int:
        kind = self.kind
        if kind is EdmType.INT32 and not self.strict_int32:
            kind = EdmType.INT64
        try:
            return check_scalar(kind, value)
        except ValueError as e:
            raise TypeMismatchError(f"member {self.name!r}: {e}") from e

    def _coerce_enum(self, value: Any, kind: EdmType) -> Enum:
        tp = self.python_type
        if kind is EdmType.STRING:
            if value in tp.__members__:
                return tp.__members__[value]
        elif kind in _INT_KINDS:
            try:
                return tp(value)
            except ValueError:
                pass
        raise TypeMismatchError(
            f"{kind.value} value {value!r} matches no member of {tp.__name__} ({self.name!r})"
        )

    def write(self, instance: Any, prop: EntityProperty) -> None:
        """Coerce `prop` and assign it to the member of `instance`."""
        self.assign(instance, self.coerce(prop))

    def assign(self, instance: Any, value: Any) -> None:
        if not self.member.writable:
            raise ConversionError(f"member {self.name!r} is read-only")
        setattr(instance, self.name, value)

    def zero_value(self) -> Any:
        """Default value of the member's type, used when a record has no value for it."""
        if self.nullable:
            return None
        tp = self.python_type
        if issubclass(tp, Enum):
            return next(iter(tp))
        if issubclass(tp, datetime):
            return datetime.min
        if issubclass(tp, UUID):
            return EMPTY_GUID
        return tp()
