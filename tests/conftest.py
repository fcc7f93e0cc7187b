"""Shared fixtures for the framedb test suite."""

from __future__ import annotations

import itertools
from typing import Any, Callable, Dict

import pytest

from framedb.config import RawFrameRecord

_ids = itertools.count(1)

BASE_GEOMETRY: Dict[str, float] = {
    "virtual_seat_tube": 540.0,
    "virtual_top_tube": 545.0,
    "seat_tube": 520.0,
    "top_tube": 540.0,
    "head_tube_angle": 72.5,
    "seat_tube_angle": 73.5,
    "head_tube_length": 150.0,
    "chain_stay_length": 405.0,
    "front_center": 590.0,
    "wheelbase": 985.0,
    "bottom_bracket_drop": 70.0,
    "bracket_height": 270.0,
    "stack": 560.0,
    "reach": 385.0,
    "crank_length": 172.5,
    "fork_rate": 45.0,
}


@pytest.fixture
def raw_record() -> Callable[..., Dict[str, Any]]:
    """Factory for raw record dicts shaped like the data source's JSON."""

    def _make(**overrides: Any) -> Dict[str, Any]:
        rec: Dict[str, Any] = {
            "_id": str(next(_ids)),
            "brand": "Time",
            "model": "NXR",
            "size": "M",
            "year": "2011",
            **BASE_GEOMETRY,
        }
        rec.update(overrides)
        return rec

    return _make


@pytest.fixture
def record(raw_record) -> Callable[..., RawFrameRecord]:
    """Factory for validated records."""

    def _make(**overrides: Any) -> RawFrameRecord:
        return RawFrameRecord.model_validate(raw_record(**overrides))

    return _make


@pytest.fixture
def population(record):
    """Three frames with stack/reach ratios of 1.0, 2.0 and 3.0."""
    return [
        record(_id="a", size="S", stack=300.0, reach=300.0, fork_rate=40.0),
        record(_id="b", size="M", stack=500.0, reach=250.0, fork_rate=45.0),
        record(_id="c", size="L", stack=600.0, reach=200.0, fork_rate=50.0),
    ]
