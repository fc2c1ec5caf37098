"""
tabent: map typed Python entities to generic table-storage records and back.

Layers
- tabent.core: zero-IO contracts (markers, record schema, accessors, descriptors).
- tabent.config: MapperSettings (env > TOML > defaults).

The storage transport, batching and queries belong to the client that owns the
descriptors; this package only translates entities and records.
"""

from .config import MapperSettings
from .core import *  # noqa: F401,F403
from .core import __all__ as _core_all

__all__ = ["MapperSettings", *_core_all]
