"""
Pydantic v2 models for the storage-side record and its typed column values.

Responsibilities
- Define EntityProperty, the closed tagged union {kind, value} moved in and out of
  records; the validator keeps value and kind consistent.
- Define TableRecord: partition key, row key, timestamp, ETag and the generic
  column map.
- Guard column names (non-empty, never one of the reserved key-role names).

Style
- Zero-IO (stdlib + pydantic only).
- Google-style docstrings with Attributes, Args, Returns, Raises and Examples.

Examples
--------
>>> from tabent.core.schema import TableRecord
>>> rec = TableRecord(partition_key="users", row_key="42")
>>> rec.set("Age", 30)
>>> rec.get("Age").kind.value
'Edm.Int64'
>>> rec.columns()
{'Age': 30}
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from .constants import INT32_MAX, INT32_MIN, INT64_MAX, INT64_MIN
from .errors import ArgumentError, UnsupportedTypeError
from .grammar import EdmType, is_reserved_name
from .typing import JsonDict

__all__ = [
    "EntityProperty",
    "TableRecord",
    "check_scalar",
]


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def check_scalar(kind: EdmType, value: Any) -> Any:
    """
    Validate that `value` is a legal instance of `kind` and return its canonical form.

    Args:
        kind (EdmType): Target scalar kind.
        value (Any): Candidate value; None is a null of any kind.

    Returns:
        Any: The value, with bytearray normalized to bytes.

    Raises:
        ValueError: If the value does not belong to the kind.
    """
    if value is None:
        return None
    if kind is EdmType.STRING and isinstance(value, str):
        return value
    if kind is EdmType.BOOLEAN and isinstance(value, bool):
        return value
    if kind is EdmType.INT32 and _is_int(value):
        if not INT32_MIN <= value <= INT32_MAX:
            raise ValueError(f"{value} is out of Edm.Int32 range")
        return value
    if kind is EdmType.INT64 and _is_int(value):
        if not INT64_MIN <= value <= INT64_MAX:
            raise ValueError(f"{value} is out of Edm.Int64 range")
        return value
    if kind is EdmType.DOUBLE and isinstance(value, float):
        return value
    if kind is EdmType.DATETIME and isinstance(value, datetime):
        return value
    if kind is EdmType.BINARY and isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if kind is EdmType.GUID and isinstance(value, UUID):
        return value
    raise ValueError(f"{type(value).__name__} value {value!r} is not a valid {kind.value}")


class EntityProperty(BaseModel):
    """
    One typed column value of a record.

    Attributes:
        kind (EdmType): Scalar kind of the value.
        value (Any): Python value matching `kind`, or None for a null column.

    Examples:
        >>> EntityProperty(kind=EdmType.DOUBLE, value=1.5).value
        1.5
        >>> EntityProperty.infer(True).kind is EdmType.BOOLEAN
        True
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: EdmType
    value: Any = None

    @field_validator("value")
    @classmethod
    def _check_value(cls, v: Any, info: ValidationInfo) -> Any:
        kind = info.data.get("kind")
        if kind is None:
            return v
        return check_scalar(kind, v)

    @classmethod
    def infer(cls, value: Any) -> EntityProperty:
        """
        Build a property from a plain Python scalar, inferring its kind.

        Raises:
            UnsupportedTypeError: If no kind fits the value (including None).
        """
        if isinstance(value, bool):
            kind = EdmType.BOOLEAN
        elif _is_int(value):
            kind = EdmType.INT64
        elif isinstance(value, float):
            kind = EdmType.DOUBLE
        elif isinstance(value, str):
            kind = EdmType.STRING
        elif isinstance(value, datetime):
            kind = EdmType.DATETIME
        elif isinstance(value, (bytes, bytearray)):
            kind = EdmType.BINARY
        elif isinstance(value, UUID):
            kind = EdmType.GUID
        else:
            raise UnsupportedTypeError(f"cannot infer a scalar kind for {value!r}")
        return cls(kind=kind, value=value)


def _check_column_name(name: str) -> str:
    if not isinstance(name, str) or not name:
        raise ArgumentError(f"column name must be a non-empty string, got {name!r}")
    if is_reserved_name(name):
        raise ArgumentError(f"column name {name!r} is reserved for a key role")
    return name


class TableRecord(BaseModel):
    """
    Generic, loosely typed storage-side representation of one entity.

    Attributes:
        partition_key (str): Partition key.
        row_key (str): Row key.
        timestamp (datetime | None): Server timestamp; None when unset.
        etag (str | None): Opaque concurrency tag; None when unset.
        properties (dict[str, EntityProperty]): Generic column map by storage name.

    Notes:
        - Key-role fields are never present in `properties`.
        - Column order carries no meaning.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    partition_key: str = ""
    row_key: str = ""
    timestamp: datetime | None = None
    etag: str | None = None
    properties: dict[str, EntityProperty] = Field(default_factory=dict)

    @field_validator("properties")
    @classmethod
    def _check_column_names(cls, v: dict[str, EntityProperty]) -> dict[str, EntityProperty]:
        for name in v:
            _check_column_name(name)
        return v

    def get(self, name: str) -> EntityProperty | None:
        return self.properties.get(name)

    def set(self, name: str, value: Any, kind: EdmType | None = None) -> None:
        """
        Set a column from an EntityProperty or a plain scalar.

        Args:
            name (str): Storage column name.
            value (Any): EntityProperty, or a scalar (kind inferred unless given).
            kind (EdmType | None): Explicit kind for a scalar value.

        Raises:
            ArgumentError: If `name` is empty or reserved.
            UnsupportedTypeError: If the kind cannot be inferred.
        """
        _check_column_name(name)
        if isinstance(value, EntityProperty):
            prop = value
        elif kind is not None:
            prop = EntityProperty(kind=kind, value=value)
        else:
            prop = EntityProperty.infer(value)
        self.properties[name] = prop

    def columns(self) -> JsonDict:
        """Plain {name: value} view of the column map."""
        return {name: prop.value for name, prop in self.properties.items()}
