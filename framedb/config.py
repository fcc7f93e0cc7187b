from __future__ import annotations
"""
Configuration for the frame geometry index (constants + schemas).
"""

import os
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Data source
DATA_SOURCE_URL = os.getenv("FRAMEDB_SOURCE_URL", "http://localhost:8080/all")

# HTTP hardening
HTTP_CONNECT_TIMEOUT = float(os.getenv("FRAMEDB_CONNECT_TIMEOUT", "3.0"))
HTTP_READ_TIMEOUT = float(os.getenv("FRAMEDB_READ_TIMEOUT", "10.0"))
HTTP_MAX_REDIRECTS = 2
HTTP_MAX_BYTES = 20_000_000
HTTP_USER_AGENT = "framedb/1.0"

# Rider defaults (centimetres)
DEFAULT_SADDLE_HEIGHT = 74.5
DEFAULT_SADDLE_FORE_AFT = 20.5
RIDER_UNIT_TO_MM = 10.0

# Normalization
NORMAL_SCALE = 10.0
RATIO_NAMES = ("ratio_stack_reach", "ratio_dsd_drop", "ratio_dsd_saddle_height")

# Ranking
NEAREST_DEFAULT_K = 10

# Distance: per-component weight and the target shift applied by a preference.
# dsd / drop in millimetres, ratio dimensionless, fork rate in millimetres.
DSD_WEIGHT = 1.0 / 10.0
DROP_WEIGHT = 1.0 / 10.0
RATIO_DSD_DROP_WEIGHT = 1.0 / 0.1
FORK_RATE_WEIGHT = 1.0 / 5.0

DSD_STEP = 10.0
DROP_STEP = 10.0
RATIO_DSD_DROP_STEP = 0.1

# Raw geometry fields as delivered by the data source, in schema order.
GEOMETRY_FIELDS = (
    "virtual_seat_tube",
    "virtual_top_tube",
    "seat_tube",
    "top_tube",
    "head_tube_angle",
    "seat_tube_angle",
    "head_tube_length",
    "chain_stay_length",
    "front_center",
    "wheelbase",
    "bottom_bracket_drop",
    "bracket_height",
    "stack",
    "reach",
    "crank_length",
    "fork_rate",
)


class Preference(str, Enum):
    """Direction a rider wants a measure to move relative to the reference.

    The values are the short forms used by the selection UI.
    """

    SAME = ""
    MORE = "+"
    LESS = "-"

    @property
    def sign(self) -> int:
        if self is Preference.MORE:
            return 1
        if self is Preference.LESS:
            return -1
        return 0


# Pydantic schemas
class RawFrameRecord(BaseModel):
    """One frame geometry record as served by the data source."""

    model_config = ConfigDict(
        frozen=True, extra="ignore", populate_by_name=True, allow_inf_nan=False
    )

    id: str = Field(alias="_id")
    brand: str
    model: str
    size: str
    year: str

    virtual_seat_tube: float
    virtual_top_tube: float
    seat_tube: float
    top_tube: float
    head_tube_angle: float
    seat_tube_angle: float
    head_tube_length: float
    chain_stay_length: float
    front_center: float
    wheelbase: float = Field(gt=0)
    bottom_bracket_drop: float
    bracket_height: float
    stack: float
    reach: float = Field(gt=0)
    crank_length: float
    fork_rate: float

    @field_validator("id", "brand", "model", "size", "year", mode="before")
    @classmethod
    def _keys_as_text(cls, value):
        # ids and years often arrive as numbers; they are used as mapping keys
        if isinstance(value, bool) or value is None:
            return value
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @property
    def key(self) -> tuple[str, str, str, str]:
        return (self.brand, self.model, self.size, self.year)


class RankingFilters(BaseModel):
    """Optional steering applied by the ranker to every distance."""

    model_config = ConfigDict(frozen=True)

    dsd: Preference = Preference.SAME
    drop: Preference = Preference.SAME
    ratio_dsd_drop: Preference = Preference.SAME
    fork_rate: Optional[float] = None
