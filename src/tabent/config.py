"""
Configuration for descriptor construction.

Defines MapperSettings, a frozen dataclass carrying the policies applied by
tabent.core.mapper.build_descriptor. Settings load with precedence
environment > TOML > defaults.

Policies
- duplicate_role_policy: "error" rejects a second member claiming an already bound key
  role; "first" keeps the first member and maps later ones as regular properties.
- read_only_policy: "skip" maps members without a setter one way only (entity -> record);
  "error" rejects such members at construction.
- use_conventions: recognise members named PartitionKey/partition_key, RowKey/row_key,
  Timestamp/timestamp and ETag/etag without a marker.
- strict_int32: raise on Int32 overflow when reading; otherwise widen to Int64.

Import DAG discipline
- Depends only on the stdlib; tabent.core imports this module, never the reverse.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Literal

try:  # Python 3.11+ stdlib TOML parser
    import tomllib  # type: ignore
except Exception:  # pragma: no cover - environments without tomllib
    tomllib = None  # type: ignore[assignment]

__all__ = [
    "DuplicateRolePolicy",
    "ReadOnlyPolicy",
    "MapperSettings",
]

DuplicateRolePolicy = Literal["error", "first"]
ReadOnlyPolicy = Literal["skip", "error"]


def _bool(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return bool(v)
    if isinstance(v, str):
        return v.strip().lower() in {"1", "true", "t", "yes", "y", "on"}
    return False


def _choice(val: Any, allowed: set[str], fallback: str) -> str:
    if isinstance(val, str):
        lo = val.strip().lower()
        if lo in allowed:
            return lo
    return fallback


@dataclass(frozen=True)
class MapperSettings:
    """
    Policies for building entity type descriptors.

    Attributes:
        duplicate_role_policy (Literal["error","first"]): Handling of a repeated key role.
        read_only_policy (Literal["skip","error"]): Handling of members without a setter.
        use_conventions (bool): Recognise key roles by reserved member names.
        strict_int32 (bool): Raise on Int32 overflow when reading a member.

    Examples:
        >>> from tabent.config import MapperSettings
        >>> MapperSettings(duplicate_role_policy="first")  # doctest: +ELLIPSIS
        MapperSettings(...)
    """

    duplicate_role_policy: DuplicateRolePolicy = "error"
    read_only_policy: ReadOnlyPolicy = "skip"
    use_conventions: bool = True
    strict_int32: bool = True

    # Configuration loaders (env/TOML) with precedence: env > TOML > defaults.

    @classmethod
    def _apply_mapping(cls, base: MapperSettings, cfg: dict[str, Any] | None) -> MapperSettings:
        """Apply a loose config mapping onto MapperSettings, returning a new instance."""
        if not isinstance(cfg, dict):
            return base

        s = base

        if "duplicate_role_policy" in cfg:
            s = replace(
                s,
                duplicate_role_policy=_choice(  # type: ignore[arg-type]
                    cfg["duplicate_role_policy"], {"error", "first"}, s.duplicate_role_policy
                ),
            )
        if "read_only_policy" in cfg:
            s = replace(
                s,
                read_only_policy=_choice(  # type: ignore[arg-type]
                    cfg["read_only_policy"], {"skip", "error"}, s.read_only_policy
                ),
            )
        if "use_conventions" in cfg:
            s = replace(s, use_conventions=_bool(cfg["use_conventions"]))
        if "strict_int32" in cfg:
            s = replace(s, strict_int32=_bool(cfg["strict_int32"]))

        return s

    @classmethod
    def from_env(
        cls, base: MapperSettings | None = None, prefix: str = "TABENT_"
    ) -> MapperSettings:
        """
        Build MapperSettings from environment variables. Precedence is env > base > defaults.

        Recognized variables:
            - TABENT_DUPLICATE_ROLE_POLICY ("error" | "first")
            - TABENT_READ_ONLY_POLICY ("skip" | "error")
            - TABENT_USE_CONVENTIONS (1/0/true/false/yes/no/on/off)
            - TABENT_STRICT_INT32 (1/0/true/false/yes/no/on/off)
        """
        s = base or cls()

        mapping: dict[str, Any] = {}
        for key in ("duplicate_role_policy", "read_only_policy", "use_conventions", "strict_int32"):
            v = os.getenv(prefix + key.upper())
            if v:
                mapping[key] = v

        return cls._apply_mapping(s, mapping)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> MapperSettings:
        """
        Build MapperSettings from a TOML file.

        Search order when `path` is None:
            1) ./tabent.toml (with either a [mapper] table or top-level keys)
            2) ./pyproject.toml under [tool.tabent.mapper]

        Returns defaults if no file is present or tomllib is unavailable.
        """
        s = cls()
        if tomllib is None:
            return s

        def _load_toml(p: Path) -> dict[str, Any] | None:
            try:
                with p.open("rb") as fh:
                    return tomllib.load(fh)  # type: ignore[arg-type]
            except (OSError, tomllib.TOMLDecodeError):
                return None

        cfg: dict[str, Any] | None = None

        cand: list[Path] = []
        if path is not None:
            cand.append(Path(path))
        else:
            cand.append(Path.cwd() / "tabent.toml")
            cand.append(Path.cwd() / "pyproject.toml")

        for p in cand:
            if not p.exists():
                continue
            data = _load_toml(p)
            if not isinstance(data, dict):
                continue
            if p.name == "pyproject.toml":
                tool = data.get("tool", {})
                cfg = tool.get("tabent", {}).get("mapper") if isinstance(tool, dict) else None
            elif isinstance(data.get("mapper"), dict):
                cfg = data["mapper"]
            else:
                cfg = data
            if cfg:
                break

        return cls._apply_mapping(s, cfg)

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> MapperSettings:
        """
        Load MapperSettings applying precedence: environment > TOML > defaults.

        Args:
            path: Optional explicit TOML path. If None, search defaults (tabent.toml, pyproject.toml).
        """
        s = cls.from_toml(path)
        s = cls.from_env(base=s)
        return s
