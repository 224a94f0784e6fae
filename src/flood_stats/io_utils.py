"""Shared JSON/YAML/table I/O helpers."""

from __future__ import annotations

from collections.abc import Mapping
import json
import os
from pathlib import Path
import tempfile
from typing import Any, Optional

import pandas as pd
import yaml

from flood_stats.errors import ConfigError

TABLE_SUFFIXES = (".csv", ".json")


def read_yaml_payload(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        try:
            return yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {path}: {exc}") from exc


def write_yaml_payload(
    path: Path,
    payload: Mapping[str, Any],
    *,
    sort_keys: bool = True,
) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(
            dict(payload),
            handle,
            allow_unicode=False,
            default_flow_style=False,
            sort_keys=sort_keys,
        )


def read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def write_text_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_handle: Optional[int] = None
    tmp_path: Optional[str] = None
    try:
        tmp_handle, tmp_path = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        with os.fdopen(tmp_handle, "w", encoding="utf-8") as handle:
            tmp_handle = None
            handle.write(text)
        os.replace(tmp_path, path)
    finally:
        if tmp_handle is not None:
            try:
                os.close(tmp_handle)
            except OSError:
                pass
        if tmp_path is not None and os.path.exists(tmp_path):
            try:
                os.unlink(tmp_path)
            except OSError:
                pass


def write_json_atomic(path: Path, payload: Any) -> None:
    text = json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=True)
    write_text_atomic(path, text + "\n")


def _rows_from_json_payload(payload: Any, path: Path) -> list[Any]:
    if isinstance(payload, Mapping):
        payload = payload.get("rows", [])
    if not isinstance(payload, list):
        raise ConfigError(f"Expected a list of rows in {path}.")
    rows: list[Any] = []
    for index, row in enumerate(payload):
        if isinstance(row, Mapping):
            rows.append(dict(row))
        elif isinstance(row, list):
            rows.append(tuple(row))
        else:
            raise ConfigError(f"Row {index} in {path} must be a mapping or list.")
    return rows


def read_table_rows(path: Path) -> list[Any]:
    """Read count rows from a CSV table or a JSON ``rows`` payload.

    CSV files are read with pandas; missing cells arrive as NaN and are
    normalized later by the ingester. JSON rows may be mappings or
    ``[feature_field, category, count]`` lists.
    """
    if not path.exists():
        raise ConfigError(f"table not found: {path}")
    suffix = path.suffix.lower()
    if suffix == ".csv":
        try:
            frame = pd.read_csv(path, keep_default_na=True)
        except (OSError, ValueError) as exc:
            raise ConfigError(f"Failed to read CSV table from {path}: {exc}") from exc
        return frame.to_dict(orient="records")
    if suffix == ".json":
        try:
            payload = read_json(path)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Failed to parse JSON from {path}: {exc}") from exc
        return _rows_from_json_payload(payload, path)
    supported = ", ".join(TABLE_SUFFIXES)
    raise ConfigError(f"Unsupported table format {suffix!r}; expected one of {supported}.")


__all__ = [
    "TABLE_SUFFIXES",
    "read_json",
    "read_table_rows",
    "read_yaml_payload",
    "write_json_atomic",
    "write_text_atomic",
    "write_yaml_payload",
]
