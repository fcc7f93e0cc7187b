from __future__ import annotations

"""
Nearest-frame ranking.

Every frame of the population is scored against a reference with the
reference's own :meth:`~framedb.frame.Frame.distance`, then the whole
list is ordered with a stable sort so equal distances keep population
order.  The reference itself is not excluded: when it is part of the
population it comes back first with distance 0 under neutral filters.
"""

from dataclasses import dataclass
from typing import List, Mapping, Sequence

import numpy as np
from pydantic import ValidationError

from .config import NEAREST_DEFAULT_K, RankingFilters
from .errors import InvalidFilterError
from .frame import Frame


@dataclass(frozen=True)
class RankedFrame:
    frame: Frame
    distance: float


def _coerce_filters(filters: RankingFilters | Mapping | None) -> RankingFilters:
    if filters is None:
        return RankingFilters()
    if isinstance(filters, RankingFilters):
        return filters
    try:
        return RankingFilters.model_validate(dict(filters))
    except ValidationError as e:
        raise InvalidFilterError(f"invalid ranking filters {dict(filters)!r}: {e}") from e


def nearest(
    reference: Frame,
    population: Sequence[Frame],
    filters: RankingFilters | Mapping | None = None,
    k: int = NEAREST_DEFAULT_K,
) -> List[RankedFrame]:
    """Return the ``k`` frames closest to ``reference``, nearest first.

    ``k`` is clamped into ``[0, len(population)]``.  ``filters`` may be a
    :class:`RankingFilters` or a plain mapping with any of ``dsd``,
    ``drop``, ``ratio_dsd_drop`` and ``fork_rate``.
    """
    f = _coerce_filters(filters)
    k = max(0, min(int(k), len(population)))
    if k == 0:
        return []
    distances = np.fromiter(
        (
            reference.distance(
                cand,
                dsd=f.dsd,
                drop=f.drop,
                ratio_dsd_drop=f.ratio_dsd_drop,
                fork_rate=f.fork_rate,
            )
            for cand in population
        ),
        dtype="float64",
        count=len(population),
    )
    order = np.argsort(distances, kind="stable")[:k]
    return [RankedFrame(population[i], float(distances[i])) for i in order]
