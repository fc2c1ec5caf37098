"""
Member discovery and instance construction for entity types.

Responsibilities
- Enumerate the public instance fields and properties of an entity type with their
  declared annotation and Annotated metadata, in a deterministic order.
- Construct fresh instances from coerced member values.

Supported entity styles
- Plain classes with class-level annotations (constructed with ``cls()``).
- ``dataclasses`` (init fields passed to the constructor).
- Pydantic ``BaseModel`` subclasses (built with ``model_construct``).

Notes:
    - Order: fields base-first in annotation order, then properties in definition order.
    - ``ClassVar``, ``_private`` and ``Ignore``-marked members are skipped.
    - Annotations are resolved with ``typing.get_type_hints``; entity types must be
      importable at module level when using postponed annotations.
"""

from __future__ import annotations

import dataclasses
import types
import typing
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, ClassVar, Union, get_args, get_origin

from pydantic import BaseModel

from .errors import ConversionError, UnsupportedTypeError
from .markers import is_ignored

__all__ = [
    "MemberKind",
    "EntityStyle",
    "Member",
    "is_union",
    "split_annotated",
    "discover_members",
    "skipped_required_members",
    "EntityFactory",
]


class MemberKind(str, Enum):
    FIELD = "field"
    PROPERTY = "property"


class EntityStyle(str, Enum):
    PLAIN = "plain"
    DATACLASS = "dataclass"
    PYDANTIC = "pydantic"


@dataclass(frozen=True, slots=True)
class Member:
    """
    One discovered instance member.

    Attributes:
        name (str): Declared member name.
        annotation (Any): Declared type with Annotated wrappers removed.
        metadata (tuple[Any, ...]): Annotated metadata (markers) attached to the member.
        kind (MemberKind): Field or property.
        writable (bool): Whether the member can be assigned after construction.
        init (bool): Whether the member is passed to the constructor.
        has_default (bool): Whether construction supplies a value when omitted.
    """

    name: str
    annotation: Any
    metadata: tuple[Any, ...]
    kind: MemberKind
    writable: bool = True
    init: bool = False
    has_default: bool = True

    @property
    def settable(self) -> bool:
        return self.writable or self.init


def is_union(tp: Any) -> bool:
    return get_origin(tp) in (Union, types.UnionType)


def split_annotated(tp: Any) -> tuple[Any, tuple[Any, ...]]:
    """
    Strip Annotated wrappers from an annotation, collecting their metadata.

    Handles ``Annotated[X, ...] | None`` by rebuilding the union around the bare type.

    Examples:
        >>> from typing import Annotated, Optional
        >>> split_annotated(Optional[Annotated[int, "m"]]) == (Optional[int], ("m",))
        True
    """
    if get_origin(tp) is Annotated:
        base, *meta = get_args(tp)
        inner, more = split_annotated(base)
        return inner, tuple(meta) + more
    if is_union(tp):
        parts = [split_annotated(arg) for arg in get_args(tp)]
        meta = tuple(m for _, ms in parts for m in ms)
        if meta:
            return Union[tuple(p for p, _ in parts)], meta
    return tp, ()


def _style_of(entity_type: type) -> EntityStyle:
    if isinstance(entity_type, type) and issubclass(entity_type, BaseModel):
        return EntityStyle.PYDANTIC
    if dataclasses.is_dataclass(entity_type):
        return EntityStyle.DATACLASS
    return EntityStyle.PLAIN


def _type_hints(obj: Any) -> dict[str, Any]:
    try:
        return typing.get_type_hints(obj, include_extras=True)
    except NameError as e:
        raise UnsupportedTypeError(f"cannot resolve annotations of {obj!r}: {e}") from e


def _plain_fields(entity_type: type) -> list[Member]:
    members = []
    for name, hint in _type_hints(entity_type).items():
        if get_origin(hint) is ClassVar or hint is ClassVar:
            continue
        if isinstance(getattr(entity_type, name, None), property):
            continue
        annotation, metadata = split_annotated(hint)
        members.append(
            Member(
                name=name,
                annotation=annotation,
                metadata=metadata,
                kind=MemberKind.FIELD,
                has_default=hasattr(entity_type, name),
            )
        )
    return members


def _dataclass_fields(entity_type: type) -> list[Member]:
    hints = _type_hints(entity_type)
    frozen = entity_type.__dataclass_params__.frozen  # type: ignore[attr-defined]
    members = []
    for f in dataclasses.fields(entity_type):
        annotation, metadata = split_annotated(hints.get(f.name, f.type))
        members.append(
            Member(
                name=f.name,
                annotation=annotation,
                metadata=metadata,
                kind=MemberKind.FIELD,
                writable=not frozen,
                init=f.init,
                has_default=(
                    f.default is not dataclasses.MISSING
                    or f.default_factory is not dataclasses.MISSING
                ),
            )
        )
    return members


def _pydantic_fields(entity_type: type[BaseModel]) -> list[Member]:
    frozen = bool(entity_type.model_config.get("frozen"))
    members = []
    for name, info in entity_type.model_fields.items():
        annotation, inner = split_annotated(info.annotation)
        members.append(
            Member(
                name=name,
                annotation=annotation,
                metadata=tuple(info.metadata) + inner,
                kind=MemberKind.FIELD,
                writable=not (frozen or info.frozen),
                init=True,
                has_default=not info.is_required(),
            )
        )
    return members


def _properties(entity_type: type) -> list[Member]:
    found: dict[str, property] = {}
    for klass in reversed(entity_type.__mro__):
        if klass is object or klass.__module__.startswith("pydantic"):
            continue
        for name, attr in vars(klass).items():
            if isinstance(attr, property) and not name.startswith("_"):
                found[name] = attr
    members = []
    for name, prop in found.items():
        if prop.fget is None:
            continue
        hint = _type_hints(prop.fget).get("return")
        if hint is None:
            raise UnsupportedTypeError(
                f"property {entity_type.__name__}.{name} has no return annotation"
            )
        annotation, metadata = split_annotated(hint)
        members.append(
            Member(
                name=name,
                annotation=annotation,
                metadata=metadata,
                kind=MemberKind.PROPERTY,
                writable=prop.fset is not None,
            )
        )
    return members


def _all_members(entity_type: type) -> list[Member]:
    style = _style_of(entity_type)
    if style is EntityStyle.PYDANTIC:
        fields = _pydantic_fields(entity_type)
    elif style is EntityStyle.DATACLASS:
        fields = _dataclass_fields(entity_type)
    else:
        fields = _plain_fields(entity_type)
    return fields + _properties(entity_type)


def _is_skipped(member: Member) -> bool:
    return member.name.startswith("_") or is_ignored(member.metadata)


def discover_members(entity_type: type) -> list[Member]:
    """
    Enumerate public instance fields and properties of `entity_type`.

    Args:
        entity_type (type): Plain class, dataclass or pydantic model.

    Returns:
        list[Member]: Members in deterministic discovery order, ignored members removed.

    Raises:
        UnsupportedTypeError: If an annotation cannot be resolved or a property lacks
            a return annotation.
    """
    return [m for m in _all_members(entity_type) if not _is_skipped(m)]


def skipped_required_members(entity_type: type) -> list[Member]:
    """
    Members left out of mapping that the constructor still requires.

    An ignored or private member that is passed to the constructor and has no default
    can never be supplied when building an entity from a record.
    """
    return [
        m
        for m in _all_members(entity_type)
        if _is_skipped(m) and m.init and not m.has_default
    ]


class EntityFactory:
    """Builds fresh instances of one entity type from constructor arguments."""

    def __init__(self, entity_type: type) -> None:
        self.entity_type = entity_type
        self.style = _style_of(entity_type)

    def create(self, init_values: Mapping[str, Any]) -> Any:
        """
        Construct an instance.

        Args:
            init_values (Mapping[str, Any]): Values for members with ``init=True``.

        Returns:
            Any: New entity instance.

        Raises:
            ConversionError: If the entity constructor rejects the values.
        """
        try:
            if self.style is EntityStyle.PYDANTIC:
                return self.entity_type.model_construct(**init_values)
            return self.entity_type(**init_values)
        except (TypeError, ValueError) as e:
            raise ConversionError(f"cannot construct {self.entity_type.__name__}: {e}") from e
