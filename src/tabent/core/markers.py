"""
Declarative markers that associate key roles and storage names with entity members.

Markers are placed in ``typing.Annotated`` metadata on a field annotation or on a
property's return annotation:

>>> from typing import Annotated
>>> from tabent.core.markers import Column, PartitionKey, RowKey
>>> class Person:
...     category: Annotated[str, PartitionKey] = ""
...     id: Annotated[str, RowKey] = ""
...     name: Annotated[str, Column("FullName")] = ""

A per-type configuration map is accepted as an alternative for types that cannot
carry annotations (``__entity_roles__ = {"category": "PartitionKey"}`` or the
``roles=`` argument of ``build_descriptor``).

Notes:
    - Explicit declarations (marker or configuration) always win over conventions.
    - A member may declare at most one key role.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from .errors import ArgumentError
from .grammar import EdmType, KeyRole, key_role_from_value

__all__ = [
    "KeyMarker",
    "PartitionKey",
    "RowKey",
    "Timestamp",
    "ETag",
    "Column",
    "Ignore",
    "declared_roles",
    "find_column",
    "is_ignored",
]


@dataclass(frozen=True, slots=True)
class KeyMarker:
    """Marks a member as the holder of one key role."""

    role: KeyRole

    def __repr__(self) -> str:
        return self.role.value


PartitionKey = KeyMarker(KeyRole.PARTITION_KEY)
RowKey = KeyMarker(KeyRole.ROW_KEY)
Timestamp = KeyMarker(KeyRole.TIMESTAMP)
ETag = KeyMarker(KeyRole.ETAG)


@dataclass(frozen=True, slots=True)
class Column:
    """
    Storage-name and kind override for a regular property.

    Attributes:
        name (str | None): Column name in the record; None keeps the declared name.
        kind (EdmType | None): Explicit scalar kind, e.g. EdmType.INT32 for an int member.
    """

    name: str | None = None
    kind: EdmType | None = None


class _IgnoreMarker:
    __slots__ = ()

    def __repr__(self) -> str:
        return "Ignore"


Ignore = _IgnoreMarker()


def declared_roles(
    name: str,
    metadata: Iterable[Any],
    roles_config: Mapping[str, Any] | None = None,
) -> list[KeyRole]:
    """
    Collect every key role explicitly declared for a member.

    Args:
        name (str): Declared member name.
        metadata (Iterable[Any]): Annotated metadata attached to the member.
        roles_config (Mapping[str, Any] | None): Per-type configuration map.

    Returns:
        list[KeyRole]: Distinct declared roles in declaration order.

    Raises:
        ArgumentError: If the configuration names an unknown role.
    """
    found: list[KeyRole] = []
    for item in metadata:
        if isinstance(item, KeyMarker) and item.role not in found:
            found.append(item.role)
    if roles_config and name in roles_config:
        role = key_role_from_value(roles_config[name])
        if role not in found:
            found.append(role)
    return found


def find_column(metadata: Iterable[Any]) -> Column | None:
    """
    Merge the Column markers of a member into one.

    Nested aliases such as ``Annotated[Int32, Column("Qty")]`` contribute a kind and a
    name separately.

    Raises:
        ArgumentError: If two markers set different names or different kinds.
    """
    name: str | None = None
    kind: EdmType | None = None
    found = False
    for item in metadata:
        if not isinstance(item, Column):
            continue
        found = True
        if item.name is not None:
            if name is not None and name != item.name:
                raise ArgumentError(f"conflicting column names {name!r} and {item.name!r}")
            name = item.name
        if item.kind is not None:
            if kind is not None and kind is not item.kind:
                raise ArgumentError(f"conflicting column kinds {kind.value} and {item.kind.value}")
            kind = item.kind
    return Column(name=name, kind=kind) if found else None


def is_ignored(metadata: Iterable[Any]) -> bool:
    return any(item is Ignore for item in metadata)
