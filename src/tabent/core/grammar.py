"""
Canonical table-entity grammar: scalar kinds, key roles and naming helpers.

Responsibilities
- Define the closed set of scalar kinds (EdmType) a record column may hold.
- Define the four reserved key roles (KeyRole) and their fixed matcher order.
- Normalize role spellings used in per-type configuration maps.
- Supply the convention names recognised for each role.

Design principles
-----------------
1) One naming standard:
   - Enum classes: PascalCase
   - Enum member names: UPPER_SNAKE (Python constants)
   - Enum values: the storage-side spelling ("Edm.Int32", "PartitionKey")

2) Key roles are structural:
   - PartitionKey, RowKey, Timestamp and ETag live on the record itself and are
     never part of its generic column map.

Examples
--------
>>> from tabent.core.grammar import KeyRole, key_role_from_value, convention_names
>>> key_role_from_value("row_key") is KeyRole.ROW_KEY
True
>>> convention_names(KeyRole.PARTITION_KEY)
('PartitionKey', 'partition_key')
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Final

from .errors import ArgumentError

__all__ = [
    "EdmType",
    "KeyRole",
    "KEY_ROLE_ORDER",
    "RESERVED_NAMES",
    "key_role_from_value",
    "convention_names",
    "is_reserved_name",
]


class EdmType(str, Enum):
    """Scalar kinds supported in a record's generic column map."""

    STRING = "Edm.String"
    BOOLEAN = "Edm.Boolean"
    INT32 = "Edm.Int32"
    INT64 = "Edm.Int64"
    DOUBLE = "Edm.Double"
    DATETIME = "Edm.DateTime"
    BINARY = "Edm.Binary"
    GUID = "Edm.Guid"


class KeyRole(str, Enum):
    """Reserved structural fields of a record; the value is the storage name."""

    PARTITION_KEY = "PartitionKey"
    ROW_KEY = "RowKey"
    TIMESTAMP = "Timestamp"
    ETAG = "ETag"


# Matchers run in this order for every member.
KEY_ROLE_ORDER: Final[tuple[KeyRole, ...]] = (
    KeyRole.PARTITION_KEY,
    KeyRole.ROW_KEY,
    KeyRole.TIMESTAMP,
    KeyRole.ETAG,
)

RESERVED_NAMES: Final[frozenset[str]] = frozenset(role.value for role in KeyRole)

_SNAKE_NAMES: Final[dict[KeyRole, str]] = {
    KeyRole.PARTITION_KEY: "partition_key",
    KeyRole.ROW_KEY: "row_key",
    KeyRole.TIMESTAMP: "timestamp",
    KeyRole.ETAG: "etag",
}

_ROLE_LOOKUP: Final[dict[str, KeyRole]] = {
    **{role.value.lower(): role for role in KeyRole},
    **{snake: role for role, snake in _SNAKE_NAMES.items()},
}


def key_role_from_value(value: Any) -> KeyRole:
    """
    Resolve a KeyRole from a role, its storage name, or its snake_case spelling.

    Args:
        value (Any): KeyRole instance or string such as "PartitionKey" or "row_key".

    Returns:
        KeyRole: The resolved role.

    Raises:
        ArgumentError: If the value names no key role.
    """
    if isinstance(value, KeyRole):
        return value
    if isinstance(value, str):
        role = _ROLE_LOOKUP.get(value.strip().lower())
        if role is not None:
            return role
    raise ArgumentError(f"unknown key role {value!r}")


def convention_names(role: KeyRole) -> tuple[str, ...]:
    """Member names that carry `role` by convention."""
    return (role.value, _SNAKE_NAMES[role])


def is_reserved_name(name: str) -> bool:
    return name in RESERVED_NAMES
