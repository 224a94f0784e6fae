"""Normalize raw grouped-count rows into canonical count records."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
import math
from typing import Any, Optional

import numpy as np
import pandas as pd

from flood_stats.core import UNKNOWN_CATEGORY, RawCountRecord
from flood_stats.errors import InvalidCount, ValidationError
from flood_stats.logging_utils import engine_logger

FEATURE_KEYS = ("feature_field", "featureField")
CATEGORY_KEYS = ("category", "rawCategoryValue", "raw_category_value")
COUNT_KEYS = ("count",)
DEFAULT_COUNT_FIELD = "segment_count"

_LOGGER = engine_logger("ingest")


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, bytes)):
        return False
    if not pd.api.types.is_scalar(value):
        return False
    return bool(pd.isna(value))


def normalize_category(value: Any) -> str:
    if _is_missing(value):
        return UNKNOWN_CATEGORY
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and value.is_integer():
        # Coded fields (criticality, subnet) come back as floats from some sources.
        value = int(value)
    text = value.strip() if isinstance(value, str) else str(value).strip()
    return text or UNKNOWN_CATEGORY


def normalize_count(value: Any, *, context: Optional[Mapping[str, Any]] = None) -> int:
    if _is_missing(value):
        return 0
    if isinstance(value, (bool, np.bool_)):
        raise InvalidCount(f"Count must be an integer, got {value!r}.", context=context)
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            value = int(text)
        except ValueError as exc:
            raise InvalidCount(
                f"Count must be an integer, got {value!r}.", context=context
            ) from exc
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise InvalidCount(
                f"Count must be a whole number, got {value!r}.", context=context
            )
        value = int(value)
    if not isinstance(value, int):
        raise InvalidCount(
            f"Count must be an integer, got {type(value).__name__}.", context=context
        )
    if value < 0:
        raise InvalidCount(f"Count must be >= 0, got {value}.", context=context)
    return value


def _first_present(row: Mapping[str, Any], keys: Sequence[str]) -> tuple[bool, Any]:
    for key in keys:
        if key in row:
            return True, row[key]
    return False, None


def _unpack_row(row: Any, index: int) -> tuple[Any, Any, Any]:
    if isinstance(row, Mapping):
        found, feature_field = _first_present(row, FEATURE_KEYS)
        if not found:
            raise ValidationError(
                f"Row {index} is missing a feature field.",
                context={"row": dict(row)},
            )
        _, category = _first_present(row, CATEGORY_KEYS)
        _, count = _first_present(row, COUNT_KEYS)
        return feature_field, category, count
    if isinstance(row, Sequence) and not isinstance(row, (str, bytes)):
        if len(row) != 3:
            raise ValidationError(
                f"Row {index} must have 3 items (feature_field, category, count); "
                f"got {len(row)}."
            )
        return row[0], row[1], row[2]
    raise ValidationError(f"Row {index} must be a mapping or a 3-item sequence.")


def _require_feature_field(value: Any, index: int) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"Row {index} feature field must be a non-empty string, got {value!r}."
        )
    return value.strip()


def ingest(rows: Iterable[Any]) -> tuple[RawCountRecord, ...]:
    records: list[RawCountRecord] = []
    unknown = 0
    for index, row in enumerate(rows):
        raw_feature, raw_category, raw_count = _unpack_row(row, index)
        feature_field = _require_feature_field(raw_feature, index)
        category = normalize_category(raw_category)
        if category == UNKNOWN_CATEGORY:
            unknown += 1
        count = normalize_count(
            raw_count,
            context={"row": index, "feature_field": feature_field},
        )
        records.append(RawCountRecord(feature_field, category, count))
    _LOGGER.debug(
        "Ingested %d count rows (%d with unknown category).", len(records), unknown
    )
    return tuple(records)


def ingest_grouped(
    feature_field: str,
    rows: Iterable[Mapping[str, Any]],
    *,
    category_field: str,
    count_field: str = DEFAULT_COUNT_FIELD,
) -> tuple[RawCountRecord, ...]:
    """Ingest one feature's grouped query result.

    Each row is an attribute dictionary keyed by the grouping field and the
    count statistic field, the shape a grouped "count where flagged" query
    returns.
    """
    normalized = []
    for row in rows:
        if not isinstance(row, Mapping):
            raise ValidationError("Grouped query rows must be attribute mappings.")
        normalized.append(
            (feature_field, row.get(category_field), row.get(count_field))
        )
    return ingest(normalized)


def ingest_frame(
    frame: pd.DataFrame,
    *,
    feature_column: str = "feature_field",
    category_column: str = "category",
    count_column: str = "count",
) -> tuple[RawCountRecord, ...]:
    columns = [feature_column, category_column, count_column]
    missing = [column for column in columns if column not in frame.columns]
    if missing:
        raise ValidationError(
            f"Count table is missing columns: {', '.join(missing)}.",
            context={"columns": [str(column) for column in frame.columns]},
        )
    return ingest(frame[columns].itertuples(index=False, name=None))


__all__ = [
    "DEFAULT_COUNT_FIELD",
    "ingest",
    "ingest_frame",
    "ingest_grouped",
    "normalize_category",
    "normalize_count",
]
