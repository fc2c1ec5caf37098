"""
Typing aliases for entity annotations.

Provides Annotated aliases that pin a scalar kind. This module contains no runtime
logic and is zero-IO.

Examples:
    Use aliases in entity annotations.

    >>> from tabent.core.typing import Int32
    >>> from typing import get_args
    >>> get_args(Int32)[0] is int
    True
"""

from __future__ import annotations

from typing import Annotated, Any

from .grammar import EdmType
from .markers import Column

__all__ = [
    "Int32",
    "Int64",
    "JsonDict",
]

# int members stored as Edm.Int32 / Edm.Int64 (the default for int).
Int32 = Annotated[int, Column(kind=EdmType.INT32)]
Int64 = Annotated[int, Column(kind=EdmType.INT64)]

# Plain {column: value} view of a record, as returned by TableRecord.columns().
JsonDict = dict[str, Any]
