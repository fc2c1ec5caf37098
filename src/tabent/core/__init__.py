"""
Core package aggregator for tabent contracts (grammar, markers, record schema, accessors, mapper).

## Contracts (single source of truth)
- Grammar: scalar kinds (EdmType), key roles (KeyRole), convention names.
- Markers: PartitionKey/RowKey/Timestamp/ETag, Column, Ignore.
- Schema: EntityProperty and TableRecord (pydantic models).
- Discovery: member enumeration and instance construction per entity style.
- Accessors: ValueAccessor: typed read/write of one member.
- Mapper: EntityTypeDescriptor, build_descriptor, to_record, to_entity.

## Notes
- Zero-IO policy: stdlib + pydantic only; no file/network IO.
- Descriptors are immutable; build once per type and reuse.
- Errors live in tabent.core.errors.

## Examples
```python
from dataclasses import dataclass
from typing import Annotated

from tabent.core import Column, PartitionKey, RowKey, build_descriptor

@dataclass
class Person:
    category: Annotated[str, PartitionKey] = ""
    id: Annotated[str, RowKey] = ""
    name: Annotated[str, Column("FullName")] = ""
    age: int = 0

desc = build_descriptor(Person)
rec = desc.to_record(Person("users", "42", "Ann", 30))
rec.columns()  # {'FullName': 'Ann', 'age': 30}
dict(desc.rename_table)  # {'PartitionKey': 'category', 'RowKey': 'id', 'FullName': 'name'}
```
"""

from .accessors import ValueAccessor
from .errors import (
    ArgumentError,
    ConversionError,
    NullArgumentError,
    TypeMismatchError,
    UnsupportedTypeError,
)
from .grammar import EdmType, KeyRole
from .mapper import (
    EntityTypeDescriptor,
    KeyProperty,
    RegularProperty,
    build_descriptor,
    to_entity,
    to_record,
)
from .markers import Column, ETag, Ignore, PartitionKey, RowKey, Timestamp
from .schema import EntityProperty, TableRecord

__all__ = [
    "ArgumentError",
    "Column",
    "ConversionError",
    "ETag",
    "EdmType",
    "EntityProperty",
    "EntityTypeDescriptor",
    "Ignore",
    "KeyProperty",
    "KeyRole",
    "NullArgumentError",
    "PartitionKey",
    "RegularProperty",
    "RowKey",
    "TableRecord",
    "Timestamp",
    "TypeMismatchError",
    "UnsupportedTypeError",
    "ValueAccessor",
    "build_descriptor",
    "to_entity",
    "to_record",
]
