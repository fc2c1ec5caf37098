"""
Entity type descriptors: per-type classification of members and two-way conversion.

Responsibilities
- Classify every public member of an entity type as one of the four key roles
  (PartitionKey, RowKey, Timestamp, ETag) or as a regular property.
- Build the rename table between storage names and declared member names.
- Convert entity -> TableRecord and TableRecord -> entity.

Classification
- Roles are matched per member in KEY_ROLE_ORDER. A member that declares a role
  (Annotated marker or per-type configuration) matches only that role. A member that
  declares none matches a role by convention name when conventions are enabled and its
  type fits the role.
- A role already bound by an earlier member is a construction error under the default
  "error" policy; under "first" the later member is mapped as a regular property.
- At least one of PartitionKey and RowKey must be bound.

Rename table
- Maps storage name -> declared name, e.g. {"PartitionKey": "category", "FullName": "name"}.
  Only entries whose names differ are present.

Concurrency
- A descriptor is immutable once built and may be shared across threads converting
  different instances. Building is not synchronized; callers caching descriptors per
  type must deduplicate construction themselves.

Examples
--------
```python
from dataclasses import dataclass
from typing import Annotated

from tabent.core.markers import PartitionKey, RowKey

@dataclass
class Person:
    category: Annotated[str, PartitionKey] = ""
    id: Annotated[str, RowKey] = ""
    name: str = ""
    age: int = 0

desc = build_descriptor(Person)
rec = desc.to_record(Person("users", "42", "Ann", 30))
(rec.partition_key, rec.row_key, rec.columns())  # ("users", "42", {"name": "Ann", "age": 30})
desc.to_entity(rec) == Person("users", "42", "Ann", 30)  # True
```
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Final, Generic, TypeVar

from ..config import MapperSettings
from .accessors import ValueAccessor
from .discovery import EntityFactory, Member, discover_members, skipped_required_members
from .errors import ArgumentError, NullArgumentError
from .grammar import KEY_ROLE_ORDER, EdmType, KeyRole, convention_names, is_reserved_name
from .markers import declared_roles, find_column
from .schema import EntityProperty, TableRecord

__all__ = [
    "RegularProperty",
    "KeyProperty",
    "EntityTypeDescriptor",
    "build_descriptor",
    "to_record",
    "to_entity",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Record attribute holding each key role.
_RECORD_FIELDS: Final[dict[KeyRole, str]] = {
    KeyRole.PARTITION_KEY: "partition_key",
    KeyRole.ROW_KEY: "row_key",
    KeyRole.TIMESTAMP: "timestamp",
    KeyRole.ETAG: "etag",
}

_ROLE_KINDS: Final[dict[KeyRole, EdmType]] = {
    KeyRole.PARTITION_KEY: EdmType.STRING,
    KeyRole.ROW_KEY: EdmType.STRING,
    KeyRole.TIMESTAMP: EdmType.DATETIME,
    KeyRole.ETAG: EdmType.STRING,
}


@dataclass(frozen=True, slots=True)
class RegularProperty:
    """A member stored as a named column of the record."""

    accessor: ValueAccessor
    storage_name: str

    @property
    def declared_name(self) -> str:
        return self.accessor.name

    def read(self, entity: Any) -> EntityProperty:
        return self.accessor.read(entity)

    def source_value(self, record: TableRecord) -> EntityProperty | None:
        return record.properties.get(self.storage_name)


@dataclass(frozen=True, slots=True)
class KeyProperty:
    """A member bound to one of the record's distinguished key-role fields."""

    role: KeyRole
    accessor: ValueAccessor

    @property
    def declared_name(self) -> str:
        return self.accessor.name

    @property
    def storage_name(self) -> str:
        return self.role.value

    def read(self, entity: Any) -> EntityProperty:
        return self.accessor.read(entity)

    def source_value(self, record: TableRecord) -> EntityProperty | None:
        value = getattr(record, _RECORD_FIELDS[self.role])
        if value is None:
            return None
        return EntityProperty(kind=_ROLE_KINDS[self.role], value=value)


@dataclass(frozen=True)
class EntityTypeDescriptor(Generic[T]):
    """
    Compiled, immutable classification of one entity type.

    Attributes:
        entity_type (type[T]): The described type.
        properties (tuple[RegularProperty, ...]): Regular properties in discovery order.
        key_properties (Mapping[KeyRole, KeyProperty | None]): Handle per key role;
            None when the type has no member for the role.
        rename_table (Mapping[str, str]): Storage name -> declared name.
        factory (EntityFactory): Instance constructor used by to_entity.

    Notes:
        - Build with build_descriptor; do not instantiate directly.
    """

    entity_type: type[T]
    properties: tuple[RegularProperty, ...]
    key_properties: Mapping[KeyRole, KeyProperty | None]
    rename_table: Mapping[str, str]
    factory: EntityFactory

    def storage_name(self, declared_name: str) -> str:
        """Storage name of a declared member name (identity when not renamed)."""
        for storage, declared in self.rename_table.items():
            if declared == declared_name:
                return storage
        return declared_name

    def declared_name(self, storage_name: str) -> str:
        """Declared member name of a storage name (identity when not renamed)."""
        return self.rename_table.get(storage_name, storage_name)

    def _handles(self) -> list[KeyProperty | RegularProperty]:
        keys = [h for h in self.key_properties.values() if h is not None]
        return [*keys, *self.properties]

    def to_record(self, entity: T) -> TableRecord:
        """
        Convert an entity into a fresh TableRecord.

        Args:
            entity (T): Instance of the described type.

        Returns:
            TableRecord: Record with key fields and one column per regular property.

        Raises:
            NullArgumentError: If `entity` is None.
            ArgumentError: If `entity` is not an instance of the described type.
            ConversionError: If any member value cannot be read; no record is returned.
        """
        if entity is None:
            raise NullArgumentError("entity must not be None")
        if not isinstance(entity, self.entity_type):
            raise ArgumentError(
                f"expected {self.entity_type.__name__}, got {type(entity).__name__}"
            )

        keys: dict[str, Any] = {}
        for role, handle in self.key_properties.items():
            if handle is None:
                continue
            value = handle.read(entity).value
            if value is not None:
                keys[_RECORD_FIELDS[role]] = value

        columns = {p.storage_name: p.read(entity) for p in self.properties}
        return TableRecord(**keys, properties=columns)

    def to_entity(self, record: TableRecord) -> T:
        """
        Convert a TableRecord into a fresh instance of the described type.

        Columns without a matching regular property are ignored; properties without a
        matching column keep their default (or the zero value of their type).

        Args:
            record (TableRecord): Source record.

        Returns:
            T: New entity instance.

        Raises:
            NullArgumentError: If `record` is None.
            ConversionError: If any value cannot be coerced; no entity is returned.
        """
        if record is None:
            raise NullArgumentError("record must not be None")

        init_values: dict[str, Any] = {}
        late: list[tuple[ValueAccessor, Any]] = []
        for handle in self._handles():
            accessor = handle.accessor
            member = accessor.member
            if not member.settable:
                continue
            prop = handle.source_value(record)
            if prop is None:
                if member.has_default:
                    continue
                value = accessor.zero_value()
            else:
                value = accessor.coerce(prop)
            if member.init:
                init_values[member.name] = value
            else:
                late.append((accessor, value))

        entity = self.factory.create(init_values)
        for accessor, value in late:
            accessor.assign(entity, value)
        return entity


def _match_role(
    member: Member,
    accessor: ValueAccessor,
    roles_config: Mapping[str, Any],
    use_conventions: bool,
) -> KeyRole | None:
    declared = declared_roles(member.name, member.metadata, roles_config)
    if len(declared) > 1:
        raise ArgumentError(
            f"member {member.name!r} declares several key roles: "
            + ", ".join(r.value for r in declared)
        )
    for role in KEY_ROLE_ORDER:
        if declared:
            if role is declared[0]:
                if accessor.kind is not _ROLE_KINDS[role]:
                    raise ArgumentError(
                        f"{role.value} member {member.name!r} must be {_ROLE_KINDS[role].value}, "
                        f"not {accessor.kind.value}"
                    )
                return role
        elif (
            use_conventions
            and member.name in convention_names(role)
            and accessor.kind is _ROLE_KINDS[role]
        ):
            return role
    return None


def build_descriptor(
    entity_type: type[T],
    *,
    roles: Mapping[str, Any] | None = None,
    settings: MapperSettings | None = None,
) -> EntityTypeDescriptor[T]:
    """
    Classify the members of `entity_type` and compile its descriptor.

    Args:
        entity_type (type[T]): Plain class, dataclass or pydantic model.
        roles (Mapping[str, Any] | None): Per-type role configuration,
            e.g. {"category": "PartitionKey"}; overrides ``__entity_roles__``.
        settings (MapperSettings | None): Construction policies. When None the built-in
            defaults apply; environment and TOML configuration are read only through
            an explicit ``MapperSettings.load()`` passed here.

    Returns:
        EntityTypeDescriptor[T]: Immutable descriptor.

    Raises:
        ArgumentError: If no PartitionKey/RowKey is bound, a role is claimed twice
            (under the "error" policy), storage names collide, a configured member
            does not exist, or an ignored member is a required constructor
            argument.
        UnsupportedTypeError: If a member's declared type has no scalar mapping.
    """
    if not isinstance(entity_type, type):
        raise ArgumentError(f"entity_type must be a class, got {entity_type!r}")
    settings = settings or MapperSettings()
    type_name = entity_type.__name__

    roles_config = {**getattr(entity_type, "__entity_roles__", {}), **(roles or {})}
    members = discover_members(entity_type)
    required = [m.name for m in skipped_required_members(entity_type)]
    if required:
        raise ArgumentError(
            f"{type_name} requires unmapped constructor arguments without defaults: {required}"
        )
    unknown = set(roles_config) - {m.name for m in members}
    if unknown:
        raise ArgumentError(f"role configuration names unknown members of {type_name}: {sorted(unknown)}")

    keys: dict[KeyRole, KeyProperty | None] = dict.fromkeys(KEY_ROLE_ORDER)
    properties: list[RegularProperty] = []
    for member in members:
        column = find_column(member.metadata)
        accessor = ValueAccessor.for_member(
            member,
            kind=column.kind if column is not None else None,
            strict_int32=settings.strict_int32,
        )
        if not member.settable:
            if settings.read_only_policy == "error":
                raise ArgumentError(f"member {type_name}.{member.name} is read-only")
            logger.debug("%s.%s is read-only; mapped entity -> record only", type_name, member.name)

        role = _match_role(member, accessor, roles_config, settings.use_conventions)
        if role is not None and keys[role] is not None:
            bound = keys[role].declared_name  # type: ignore[union-attr]
            if settings.duplicate_role_policy == "error":
                raise ArgumentError(
                    f"{role.value} is claimed by both {bound!r} and {member.name!r} in {type_name}"
                )
            logger.debug(
                "%s: %s already bound to %r; mapping %r as a regular property",
                type_name,
                role.value,
                bound,
                member.name,
            )
            role = None

        if role is not None:
            if column is not None:
                raise ArgumentError(
                    f"Column marker is not allowed on {role.value} member {type_name}.{member.name}"
                )
            keys[role] = KeyProperty(role=role, accessor=accessor)
            continue

        storage = column.name if column is not None and column.name else member.name
        if is_reserved_name(storage):
            raise ArgumentError(
                f"regular property {type_name}.{member.name} uses reserved storage name {storage!r}"
            )
        properties.append(RegularProperty(accessor=accessor, storage_name=storage))

    if keys[KeyRole.PARTITION_KEY] is None and keys[KeyRole.ROW_KEY] is None:
        raise ArgumentError(f"PartitionKey or RowKey should be defined for type {type_name!r}")

    seen: set[str] = set()
    for prop in properties:
        if prop.storage_name in seen:
            raise ArgumentError(f"duplicate storage name {prop.storage_name!r} in {type_name}")
        seen.add(prop.storage_name)

    rename_table: dict[str, str] = {}
    for handle in [*(h for h in keys.values() if h is not None), *properties]:
        if handle.storage_name == handle.declared_name:
            continue
        if handle.storage_name in rename_table:
            raise ArgumentError(f"duplicate storage name {handle.storage_name!r} in {type_name}")
        rename_table[handle.storage_name] = handle.declared_name

    logger.debug(
        "built descriptor for %s: roles=%s properties=%d renames=%d",
        type_name,
        {r.value: h.declared_name for r, h in keys.items() if h is not None},
        len(properties),
        len(rename_table),
    )
    return EntityTypeDescriptor(
        entity_type=entity_type,
        properties=tuple(properties),
        key_properties=MappingProxyType(keys),
        rename_table=MappingProxyType(rename_table),
        factory=EntityFactory(entity_type),
    )


def to_record(descriptor: EntityTypeDescriptor[T], entity: T) -> TableRecord:
    """Convert `entity` with `descriptor`; see EntityTypeDescriptor.to_record."""
    return descriptor.to_record(entity)


def to_entity(descriptor: EntityTypeDescriptor[T], record: TableRecord) -> T:
    """Convert `record` with `descriptor`; see EntityTypeDescriptor.to_entity."""
    return descriptor.to_entity(record)
