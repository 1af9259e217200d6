"""Deterministic column naming for every derived feature.

All derived names come from ``column_name``, which keeps the layout used by
the full-history training pipeline:

- lag:      ``{group}_LAG_{l}_{target}``  /  ``LAG_{l}_{target}``
- time gap: ``{group}{gap_name}{l}``      /  ``{gap_name}{l}``
- rolling:  ``{group}{stat}_{p}_{target}`` / ``{stat}_{p}_{target}``
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from incremental_features.exceptions import ConfigError


class Role(str, Enum):
    LAG = "lag"
    TIME_GAP = "time_gap"
    ROLLING = "rolling"
    SHIFTED_TIME = "shifted_time"


@dataclass(frozen=True)
class ColumnKey:
    """Structured identity of a derived column."""

    role: Role
    index: int
    target: str
    group_var: str | None = None
    stat: str | None = None


def column_name(key: ColumnKey) -> str:
    prefix = key.group_var or ""
    if key.role is Role.LAG:
        return f"{prefix}_LAG_{key.index}_{key.target}" if prefix else f"LAG_{key.index}_{key.target}"
    if key.role is Role.TIME_GAP:
        return f"{prefix}{key.target}{key.index}"
    if key.role is Role.ROLLING:
        return f"{prefix}{key.stat}_{key.index}_{key.target}"
    # Temporary shifted timestamps, dropped before output
    return f"__{prefix}_shift_{key.index}"


class ColumnNamer:
    """Issues derived column names and refuses collisions.

    A name may be requested any number of times for the same key; two
    different keys (or a key and an input column) mapping to one name is a
    configuration error.
    """

    def __init__(self, reserved: Iterable[str] = ()) -> None:
        self._reserved = set(reserved)
        self._issued: dict[str, ColumnKey] = {}

    def __call__(self, key: ColumnKey) -> str:
        name = column_name(key)
        owner = self._issued.get(name)
        if owner is not None and owner != key:
            raise ConfigError(
                f"Derived column name {name!r} is produced twice",
                details={"first": repr(owner), "second": repr(key)},
            )
        if owner is None and name in self._reserved:
            raise ConfigError(
                f"Derived column name {name!r} collides with an input column",
                details={"key": repr(key)},
            )
        self._issued[name] = key
        return name

    def lag(self, index: int, target: str, group_var: str | None) -> str:
        return self(ColumnKey(Role.LAG, index, target, group_var))

    def time_gap(self, index: int, gap_name: str, group_var: str | None) -> str:
        return self(ColumnKey(Role.TIME_GAP, index, gap_name, group_var))

    def rolling(self, stat: str, period: int, target: str, group_var: str | None) -> str:
        return self(ColumnKey(Role.ROLLING, period, target, group_var, stat))

    def shifted_time(self, index: int, group_var: str | None) -> str:
        return self(ColumnKey(Role.SHIFTED_TIME, index, "", group_var))
