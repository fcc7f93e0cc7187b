from __future__ import annotations

"""
Frame geometry entity.

A :class:`Frame` is the normalized view of one raw record: the same
identifying fields, the raw measurements renamed one-to-one, and three
dimensionless ratios computed for a given rider position.  Population
statistics (mean and a 0-10 score per ratio) are attached in a second
step by :func:`framedb.normalize.normalize` once every frame exists.

Units: frame measurements are millimetres, rider parameters are
centimetres (converted with ``RIDER_UNIT_TO_MM``).
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Optional

from .config import (
    DROP_STEP,
    DROP_WEIGHT,
    DSD_STEP,
    DSD_WEIGHT,
    FORK_RATE_WEIGHT,
    RATIO_DSD_DROP_STEP,
    RATIO_DSD_DROP_WEIGHT,
    RIDER_UNIT_TO_MM,
    Preference,
    RawFrameRecord,
)
from .errors import GeometryError, InvalidFilterError


@dataclass
class Frame:
    id: str
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
    wheelbase: float
    bottom_bracket_drop: float
    bracket_height: float
    stack: float
    reach: float
    crank_length: float
    fork_rate: float

    saddle_height: float
    saddle_fore_aft: float

    # rider-dependent geometry, filled in __post_init__
    dsd: float = field(init=False)
    drop: float = field(init=False)
    ratio_stack_reach: float = field(init=False)
    ratio_dsd_drop: float = field(init=False)
    ratio_dsd_saddle_height: float = field(init=False)

    # population statistics, filled by attach_statistics()
    ratio_stack_reach_moy: Optional[float] = field(default=None, init=False)
    ratio_stack_reach_normal: Optional[float] = field(default=None, init=False)
    ratio_dsd_drop_moy: Optional[float] = field(default=None, init=False)
    ratio_dsd_drop_normal: Optional[float] = field(default=None, init=False)
    ratio_dsd_saddle_height_moy: Optional[float] = field(default=None, init=False)
    ratio_dsd_saddle_height_normal: Optional[float] = field(default=None, init=False)
    _has_statistics: bool = field(default=False, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        height = self.saddle_height * RIDER_UNIT_TO_MM
        fore_aft = self.saddle_fore_aft * RIDER_UNIT_TO_MM
        if height <= 0 or abs(fore_aft) >= height:
            raise GeometryError(
                f"saddle height {self.saddle_height} must be positive and exceed "
                f"fore/aft {self.saddle_fore_aft}"
            )
        saddle_y = math.sqrt(height * height - fore_aft * fore_aft)

        self.dsd = self.reach + fore_aft
        self.drop = saddle_y - self.stack
        if self.drop == 0:
            raise GeometryError(f"frame {self.id}: saddle level with head tube, drop is zero")

        self.ratio_stack_reach = self.stack / self.reach
        self.ratio_dsd_drop = self.dsd / self.drop
        self.ratio_dsd_saddle_height = self.dsd / height

    @classmethod
    def from_record(
        cls, record: RawFrameRecord, saddle_height: float, saddle_fore_aft: float
    ) -> "Frame":
        """Build a frame from a validated raw record (field names map 1:1)."""
        return cls(
            id=record.id,
            brand=record.brand,
            model=record.model,
            size=record.size,
            year=record.year,
            virtual_seat_tube=record.virtual_seat_tube,
            virtual_top_tube=record.virtual_top_tube,
            seat_tube=record.seat_tube,
            top_tube=record.top_tube,
            head_tube_angle=record.head_tube_angle,
            seat_tube_angle=record.seat_tube_angle,
            head_tube_length=record.head_tube_length,
            chain_stay_length=record.chain_stay_length,
            front_center=record.front_center,
            wheelbase=record.wheelbase,
            bottom_bracket_drop=record.bottom_bracket_drop,
            bracket_height=record.bracket_height,
            stack=record.stack,
            reach=record.reach,
            crank_length=record.crank_length,
            fork_rate=record.fork_rate,
            saddle_height=saddle_height,
            saddle_fore_aft=saddle_fore_aft,
        )

    @property
    def key(self) -> tuple[str, str, str, str]:
        return (self.brand, self.model, self.size, self.year)

    @property
    def has_statistics(self) -> bool:
        return self._has_statistics

    def attach_statistics(self, stats: Dict[str, tuple[float, Optional[float]]]) -> None:
        """Store ``(mean, normalized)`` for each ratio.  Allowed once."""
        if self._has_statistics:
            raise RuntimeError(f"statistics already attached to frame {self.id}")
        for ratio, (mean, normal) in stats.items():
            setattr(self, f"{ratio}_moy", mean)
            setattr(self, f"{ratio}_normal", normal)
        self._has_statistics = True

    def distance(
        self,
        other: "Frame",
        dsd: Preference | str = Preference.SAME,
        drop: Preference | str = Preference.SAME,
        ratio_dsd_drop: Preference | str = Preference.SAME,
        fork_rate: Optional[float] = None,
    ) -> float:
        """Weighted euclidean distance from this frame to ``other``.

        Each preference shifts the target for its component by one step
        (``MORE`` asks for a larger value than this frame's, ``LESS`` for a
        smaller one).  ``fork_rate`` is an absolute target; when omitted the
        fork is not compared.
        """
        try:
            dsd, drop, ratio_dsd_drop = (
                Preference(dsd),
                Preference(drop),
                Preference(ratio_dsd_drop),
            )
        except ValueError as e:
            raise InvalidFilterError(str(e)) from e
        terms = [
            DSD_WEIGHT * (other.dsd - (self.dsd + dsd.sign * DSD_STEP)),
            DROP_WEIGHT * (other.drop - (self.drop + drop.sign * DROP_STEP)),
            RATIO_DSD_DROP_WEIGHT
            * (other.ratio_dsd_drop - (self.ratio_dsd_drop + ratio_dsd_drop.sign * RATIO_DSD_DROP_STEP)),
        ]
        if fork_rate is not None:
            terms.append(FORK_RATE_WEIGHT * (other.fork_rate - fork_rate))
        return math.sqrt(sum(t * t for t in terms))
