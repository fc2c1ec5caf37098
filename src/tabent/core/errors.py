"""
Core exception types raised by descriptor construction and entity conversion.

Provides typed exceptions for mapper failures:
- ArgumentError for invalid entity definitions (no key role, duplicate names or roles).
- NullArgumentError for a missing entity or record passed to a conversion.
- UnsupportedTypeError for a member whose declared type has no scalar mapping.
- TypeMismatchError for a value that cannot be coerced into a member's declared type.

Notes:
    - This module uses only the Python standard library and has no side effects.
    - Construction-time errors (ArgumentError, UnsupportedTypeError) surface once,
      from tabent.core.mapper.build_descriptor.
    - Conversion-time errors (NullArgumentError, TypeMismatchError) are per call and
      abort the whole conversion.

Examples:
    Catch a conversion failure.

    >>> from tabent.core.errors import ConversionError, TypeMismatchError
    >>> try:
    ...     raise TypeMismatchError("cannot assign Edm.String to int member 'age'")
    ... except ConversionError as e:
    ...     msg = str(e)
    >>> "age" in msg
    True
"""

from __future__ import annotations

__all__ = [
    "ArgumentError",
    "NullArgumentError",
    "ConversionError",
    "UnsupportedTypeError",
    "TypeMismatchError",
]


class ArgumentError(ValueError):
    """Invalid entity definition or argument (no key role, duplicate storage names or roles)."""


class NullArgumentError(ArgumentError):
    """A required entity or record argument was None."""


class ConversionError(ValueError):
    """Base class for failures translating between members and record values."""


class UnsupportedTypeError(ConversionError):
    """A member's declared type cannot be mapped to any supported scalar kind."""


class TypeMismatchError(ConversionError, TypeError):
    """A value's kind is incompatible with the target and no lossless conversion exists."""
