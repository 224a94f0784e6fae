"""Core data model, config loading and request fingerprint helpers."""

from __future__ import annotations

from collections.abc import Sequence as SequenceABC
from dataclasses import asdict, dataclass, field, is_dataclass
from enum import Enum
import hashlib
import json
from pathlib import Path, PurePath
from typing import Any, Dict, Iterable, Mapping, Optional, Set, Tuple, Union

import numpy as np

from flood_stats.errors import ConfigError
from flood_stats.io_utils import read_yaml_payload

UNKNOWN_CATEGORY = "Unknown"
OTHER_CATEGORY = "Other"
UNLIMITED = "unlimited"

CategoryLimit = Union[int, str]


class Scenario(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


def parse_scenario(value: Any, label: str = "scenario") -> Scenario:
    try:
        return Scenario(value)
    except ValueError as exc:
        allowed = ", ".join(item.value for item in Scenario)
        raise ConfigError(
            f"{label} must be one of: {allowed}; got {value!r}.",
            context={"scenario": value},
        ) from exc


class Metric(str, Enum):
    COUNT = "count"
    LENGTH = "length"


@dataclass(frozen=True)
class FeatureDefinition:
    """One selectable flood-model indicator on the road network."""

    field: str
    label: str
    scenario: Scenario
    description: str = ""


@dataclass(frozen=True)
class RawCountRecord:
    feature_field: str
    category: str
    count: int


@dataclass(frozen=True)
class DerivedRecord:
    feature_field: str
    category: str
    count: int
    value: float


@dataclass(frozen=True)
class CategoryBucket:
    label: str
    per_feature_value: Dict[str, float]
    total: float


@dataclass(frozen=True)
class RankedCategorySet:
    ordered_labels: Tuple[str, ...]
    overflowed: bool


@dataclass(frozen=True)
class SeriesDataset:
    series_label: str
    values: Tuple[float, ...]
    feature_field: str = ""
    scenario: Optional[Scenario] = None


@dataclass(frozen=True)
class ChartSeries:
    labels: Tuple[str, ...]
    datasets: Tuple[SeriesDataset, ...] = ()


@dataclass(frozen=True)
class ModelCount:
    label: str
    model_type: Optional[str]
    count: int


@dataclass(frozen=True)
class SegmentStatistic:
    label: str
    count: int
    length_km: float
    percentage: float
    model_type: Optional[str] = None


@dataclass(frozen=True)
class RiskBand:
    upper: float
    level: str


@dataclass(frozen=True)
class RiskScale:
    """Ascending percentage bands plus the level used above the last band."""

    bands: Tuple[RiskBand, ...]
    top_level: str


@dataclass(frozen=True)
class ScenarioStatistic:
    scenario: Scenario
    total_affected: SegmentStatistic
    model_breakdown: Tuple[SegmentStatistic, ...] = ()
    risk_level: Optional[str] = None
    title: str = ""
    return_period: str = ""


@dataclass(frozen=True)
class NetworkStatistics:
    total_segments: int
    total_length_km: float
    scenarios: Tuple[ScenarioStatistic, ...] = field(default_factory=tuple)

    def for_scenario(self, scenario: Union[Scenario, str]) -> Optional[ScenarioStatistic]:
        key = parse_scenario(scenario)
        for stat in self.scenarios:
            if stat.scenario == key:
                return stat
        return None


@dataclass(frozen=True)
class ScenarioComparison:
    percentage_increase: float
    additional_length_km: float
    additional_segments: int


def find_repo_root(start: Optional[Path] = None) -> Optional[Path]:
    """Return the repo root based on pyproject.toml or .git, if found."""
    base = start or Path.cwd()
    try:
        base = base.resolve()
    except OSError:
        base = base.absolute()
    for candidate in (base, *base.parents):
        if (candidate / "pyproject.toml").exists() or (candidate / ".git").exists():
            return candidate
    return None


def resolve_repo_path(path: Union[str, Path]) -> Path:
    """Resolve a path relative to cwd or repo root when possible."""
    target = Path(path)
    if target.is_absolute():
        return target
    cwd_candidate = (Path.cwd() / target).resolve()
    if cwd_candidate.exists():
        return cwd_candidate
    root = find_repo_root()
    if root is not None:
        root_candidate = (root / target).resolve()
        if root_candidate.exists():
            return root_candidate
    return target


def load_config(path: Union[str, Path]) -> Any:
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config not found: {path}")
    try:
        payload = read_yaml_payload(path)
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Failed to load config from {path}: {exc}") from exc
    return {} if payload is None else payload


def canonicalize(obj: Any, exclude_keys: Optional[Iterable[str]] = None) -> Any:
    exclude = {str(key) for key in exclude_keys or ()}
    return _canonicalize(obj, exclude)


def _stable_sort_key(value: Any) -> str:
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
    )


def _canonicalize(obj: Any, exclude_keys: Set[str]) -> Any:
    if isinstance(obj, Enum):
        return _canonicalize(obj.value, exclude_keys)

    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj

    if isinstance(obj, PurePath):
        return obj.as_posix()

    if isinstance(obj, Mapping):
        items = []
        for key, value in obj.items():
            key_str = str(key.value if isinstance(key, Enum) else key)
            if key_str in exclude_keys:
                continue
            items.append((key_str, _canonicalize(value, exclude_keys)))
        items.sort(key=lambda item: item[0])
        return {key: value for key, value in items}

    if isinstance(obj, (set, frozenset)):
        items = [_canonicalize(item, exclude_keys) for item in obj]
        items.sort(key=_stable_sort_key)
        return items

    if isinstance(obj, np.ndarray):
        return _canonicalize(obj.tolist(), exclude_keys)
    if isinstance(obj, np.generic):
        return _canonicalize(obj.item(), exclude_keys)

    if is_dataclass(obj) and not isinstance(obj, type):
        return _canonicalize(asdict(obj), exclude_keys)

    if isinstance(obj, SequenceABC) and not isinstance(obj, (bytes, bytearray)):
        return [_canonicalize(item, exclude_keys) for item in obj]

    raise TypeError(f"Unsupported type for canonicalize: {type(obj)!r}")


def stable_hash(
    obj: Any,
    *,
    exclude_keys: Optional[Iterable[str]] = None,
    length: Optional[int] = 16,
) -> str:
    canonical = canonicalize(obj, exclude_keys=exclude_keys)
    payload = json.dumps(
        canonical,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
    )
    digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()
    if length is None:
        return digest
    if length <= 0:
        raise ValueError("length must be a positive integer or None.")
    return digest[:length]


__all__ = [
    "UNKNOWN_CATEGORY",
    "OTHER_CATEGORY",
    "UNLIMITED",
    "CategoryLimit",
    "Scenario",
    "Metric",
    "parse_scenario",
    "FeatureDefinition",
    "RawCountRecord",
    "DerivedRecord",
    "CategoryBucket",
    "RankedCategorySet",
    "SeriesDataset",
    "ChartSeries",
    "ModelCount",
    "SegmentStatistic",
    "RiskBand",
    "RiskScale",
    "ScenarioStatistic",
    "NetworkStatistics",
    "ScenarioComparison",
    "find_repo_root",
    "resolve_repo_path",
    "load_config",
    "canonicalize",
    "stable_hash",
]
