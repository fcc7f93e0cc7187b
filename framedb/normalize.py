from __future__ import annotations

"""
Turn raw records into frames and attach population-relative statistics.

Normalization runs in three passes over the population:

1. build one :class:`~framedb.frame.Frame` per record for the given rider
   position (the frame computes its own ratios);
2. reduce each ratio over the whole population to min / max / mean;
3. give every frame the mean and a 0-10 score
   ``10 * (value - min) / (max - min)`` for each ratio.

Statistics that cannot be computed (empty population, or a ratio with
``max == min``) raise :class:`~framedb.errors.DegenerateStatisticsError`
rather than leaking NaN or infinity into the frames.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np

from .config import NORMAL_SCALE, RATIO_NAMES, RawFrameRecord
from .errors import DegenerateStatisticsError
from .frame import Frame


@dataclass(frozen=True)
class RatioStats:
    name: str
    minimum: float
    maximum: float
    mean: float

    @property
    def is_degenerate(self) -> bool:
        return self.maximum == self.minimum


def ratio_stats(name: str, values: Sequence[float]) -> RatioStats:
    """Min / max / arithmetic mean of one ratio over the population."""
    arr = np.asarray(values, dtype="float64")
    if arr.size == 0:
        raise DegenerateStatisticsError(name, "empty population, no statistics")
    if not np.all(np.isfinite(arr)):
        raise DegenerateStatisticsError(name, "non-finite ratio in population")
    return RatioStats(
        name=name,
        minimum=float(arr.min()),
        maximum=float(arr.max()),
        mean=float(arr.mean()),
    )


def rescale(value: float, stats: RatioStats, scale: float = NORMAL_SCALE) -> float:
    """Linear map of ``value`` from ``[min, max]`` onto ``[0, scale]``."""
    if stats.is_degenerate:
        raise DegenerateStatisticsError(
            stats.name, f"all values equal {stats.minimum}, cannot rescale"
        )
    return scale * (value - stats.minimum) / (stats.maximum - stats.minimum)


def build_frames(
    records: Sequence[RawFrameRecord],
    saddle_height: float,
    saddle_fore_aft: float,
) -> List[Frame]:
    return [Frame.from_record(r, saddle_height, saddle_fore_aft) for r in records]


def population_stats(frames: Sequence[Frame]) -> Dict[str, RatioStats]:
    return {
        name: ratio_stats(name, [getattr(f, name) for f in frames])
        for name in RATIO_NAMES
    }


def normalize_population(
    records: Sequence[RawFrameRecord],
    saddle_height: float,
    saddle_fore_aft: float,
    *,
    allow_degenerate: bool = False,
) -> tuple[List[Frame], Dict[str, RatioStats]]:
    """
    Build frames for a rider position and attach population statistics.

    Parameters
    ----------
    records : Sequence[RawFrameRecord]
        The loaded population.  Must not be empty.
    saddle_height, saddle_fore_aft : float
        Rider position in centimetres, handed to every frame.
    allow_degenerate : bool
        When True a ratio whose values are all identical gets ``None`` as
        its normalized score instead of raising.

    Returns
    -------
    (frames, stats)
        Frames in record order, each with statistics attached, and the
        per-ratio population statistics.
    """
    frames = build_frames(records, saddle_height, saddle_fore_aft)
    stats = population_stats(frames)

    for frame in frames:
        attached: Dict[str, tuple[float, Optional[float]]] = {}
        for name, st in stats.items():
            if st.is_degenerate and allow_degenerate:
                normal = None
            else:
                normal = rescale(getattr(frame, name), st)
            attached[name] = (st.mean, normal)
        frame.attach_statistics(attached)
    return frames, stats


def normalize(
    records: Sequence[RawFrameRecord],
    saddle_height: float,
    saddle_fore_aft: float,
    *,
    allow_degenerate: bool = False,
) -> List[Frame]:
    """Frames only; see :func:`normalize_population`."""
    frames, _ = normalize_population(
        records, saddle_height, saddle_fore_aft, allow_degenerate=allow_degenerate
    )
    return frames
