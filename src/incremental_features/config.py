"""Centralized project configuration using Pydantic."""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings

from incremental_features.exceptions import ConfigError
from incremental_features.features.stats import get_stat
from incremental_features.features.time_gap_features import normalize_time_unit

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class PathConfig(BaseModel):
    project_root: Path = PROJECT_ROOT
    data_raw: Path = PROJECT_ROOT / "data" / "raw"
    data_processed: Path = PROJECT_ROOT / "data" / "processed"
    params_file: Path = PROJECT_ROOT / "params.yaml"


class StatSpec(BaseModel):
    """One rolling aggregate: ``name`` is the column prefix, ``fn`` the registry key."""

    model_config = ConfigDict(frozen=True)

    name: str
    fn: str

    @field_validator("fn")
    @classmethod
    def _known_fn(cls, v: str) -> str:
        return get_stat(v).key


class FeatureSpec(BaseModel):
    """What to derive and for which records.

    Defaults mirror a typical scoring call: lags 1-5, a handful of moving
    averages and a day-level time gap over a ``DateTime`` column.
    """

    model_config = ConfigDict(frozen=True)

    lags: list[int] = [1, 2, 3, 4, 5]
    periods: list[int] = [3, 5, 10, 15, 20, 25]
    stats: list[StatSpec] = [StatSpec(name="MA", fn="mean")]
    targets: list[str] = ["Target"]
    grouping_vars: list[str] | None = None
    sort_column: str = "DateTime"
    time_gap_name: str | None = "Time_Gap"
    time_unit: str = "day"
    windowing_lag: int = 1
    direction: str = "Lag"
    records_keep: int = 1
    simple_impute: bool = True
    drop_rank_column: bool = True
    rank_column: str = "temp"

    @field_validator("lags", "periods", mode="before")
    @classmethod
    def _listify_ints(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, (int, float, str)):
            return [v]
        return v

    @field_validator("lags")
    @classmethod
    def _check_lags(cls, v: list[int]) -> list[int]:
        if any(lag < 0 for lag in v):
            raise ConfigError("lags need to be non-negative integers", details={"lags": v})
        return sorted(set(v))

    @field_validator("periods")
    @classmethod
    def _check_periods(cls, v: list[int]) -> list[int]:
        if any(p < 1 for p in v):
            raise ConfigError("periods need to be positive integers", details={"periods": v})
        return sorted(set(v))

    @field_validator("stats", mode="before")
    @classmethod
    def _normalize_stats(cls, v: Any) -> Any:
        if isinstance(v, (str, Mapping)):
            v = [v]
        normalized = []
        for entry in v or []:
            if isinstance(entry, str):
                normalized.append({"name": get_stat(entry).display_name, "fn": entry})
            elif isinstance(entry, (list, tuple)) and len(entry) == 2:
                normalized.append({"name": entry[0], "fn": entry[1]})
            else:
                normalized.append(entry)
        return normalized

    @field_validator("targets", mode="before")
    @classmethod
    def _listify_targets(cls, v: Any) -> Any:
        return [v] if isinstance(v, str) else v

    @field_validator("grouping_vars", mode="before")
    @classmethod
    def _listify_grouping_vars(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [v]
        return v or None

    @field_validator("direction")
    @classmethod
    def _check_direction(cls, v: str) -> str:
        if v.strip().lower() not in ("lag", "lead"):
            raise ConfigError("direction needs to be either Lag or Lead", details={"direction": v})
        return v.strip().capitalize()

    @field_validator("time_unit")
    @classmethod
    def _check_time_unit(cls, v: str) -> str:
        return normalize_time_unit(v)

    @field_validator("windowing_lag")
    @classmethod
    def _check_windowing_lag(cls, v: int) -> int:
        if v not in (0, 1):
            raise ConfigError("windowing_lag needs to be either 0 or 1", details={"windowing_lag": v})
        return v

    @field_validator("records_keep")
    @classmethod
    def _check_records_keep(cls, v: int) -> int:
        if v < 1:
            raise ConfigError("records_keep must be at least 1", details={"records_keep": v})
        return v

    @model_validator(mode="after")
    def _check_columns(self) -> "FeatureSpec":
        if not self.targets or any(not t for t in self.targets):
            raise ConfigError("targets must name at least one column")
        for field_name in ("targets", "grouping_vars"):
            values = getattr(self, field_name) or []
            if len(set(values)) != len(values):
                raise ConfigError(f"{field_name} contains duplicates", details={field_name: values})
        stat_names = [s.name for s in self.stats]
        if len(set(stat_names)) != len(stat_names):
            raise ConfigError(
                "stats need distinct display names",
                details={"stats": [(s.name, s.fn) for s in self.stats]},
            )
        if not self.sort_column:
            raise ConfigError("sort_column must name the time-ordering column")
        if not self.rank_column:
            raise ConfigError("rank_column must name the per-entity rank column")
        if not self.stats and self.periods:
            raise ConfigError("periods given without any rolling stats")
        if max([*self.lags, *self.periods, self.windowing_lag]) < 1:
            raise ConfigError(
                "nothing to compute: need a positive lag or period",
                details={"lags": self.lags, "periods": self.periods},
            )
        if self.time_gap_name == "":
            raise ConfigError("time_gap_name must be a non-empty string or null")
        return self

    @property
    def grouped(self) -> bool:
        return bool(self.grouping_vars)


class Settings(BaseSettings):
    paths: PathConfig = PathConfig()
    features: FeatureSpec = FeatureSpec()
    chunk_entities: int = 500

    model_config = {"env_prefix": "INCFEAT_"}


def load_feature_spec(params: Mapping[str, Any] | FeatureSpec) -> FeatureSpec:
    """Validate a mapping into a FeatureSpec, reporting every problem as ConfigError."""
    if isinstance(params, FeatureSpec):
        return params
    try:
        return FeatureSpec(**params)
    except ValidationError as exc:
        raise ConfigError("Invalid feature spec", details={"errors": exc.errors()}) from exc


def load_settings(params_path: Path | None = None) -> Settings:
    """Load settings from params.yaml, falling back to defaults."""
    params_path = params_path or PROJECT_ROOT / "params.yaml"
    if params_path.exists():
        with open(params_path) as f:
            params = yaml.safe_load(f) or {}
        try:
            return Settings(**params)
        except ValidationError as exc:
            raise ConfigError(
                "Invalid settings file",
                details={"path": str(params_path), "errors": exc.errors()},
            ) from exc
    return Settings()
