"""
Core numeric limits and defaults shared by accessors and record validation.

Notes:
    - Int32/Int64 bounds follow the two's-complement ranges of the storage scalar kinds.
    - Guid zero value is used when a Guid member without a default is missing from a record.
"""

from __future__ import annotations

from uuid import UUID

__all__ = [
    "INT32_MIN",
    "INT32_MAX",
    "INT64_MIN",
    "INT64_MAX",
    "DOUBLE_EXACT_INT_MAX",
    "EMPTY_GUID",
]

INT32_MIN: int = -(2**31)
INT32_MAX: int = 2**31 - 1

INT64_MIN: int = -(2**63)
INT64_MAX: int = 2**63 - 1

# Largest magnitude below which every integer is exactly representable as a double.
DOUBLE_EXACT_INT_MAX: int = 2**53

EMPTY_GUID: UUID = UUID(int=0)
