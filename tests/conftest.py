from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    src_root = Path(__file__).resolve().parents[1] / "src"
    src_path = str(src_root)
    if src_path not in sys.path:
        sys.path.insert(0, src_path)


@pytest.fixture
def county_rows() -> list[tuple[str, object, int]]:
    return [
        ("F1", "Dublin", 40),
        ("F1", "Cork", 30),
        ("F2", "Dublin", 10),
        ("F2", "Cork", 5),
    ]


@pytest.fixture
def two_features():
    from flood_stats.core import FeatureDefinition, Scenario

    return [
        FeatureDefinition("F1", "Feature one", Scenario.PRIMARY),
        FeatureDefinition("F2", "Feature two", Scenario.SECONDARY),
    ]
