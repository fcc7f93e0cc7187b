from __future__ import annotations

"""
In-memory frame index: selection tree, normalized frames and ranking.

:class:`FrameIndex` owns one :class:`IndexSnapshot` at a time.  A load
fetches the raw records, builds the tree and the normalized frames into
a brand-new snapshot and only then publishes it with a single attribute
assignment.  Readers grab the current snapshot once per call, so they
see either the previous state or the new one in full, never a tree
without its frames.  A failed or cancelled load publishes nothing.

Example::

    index = FrameIndex()
    await index.load()
    brand = index.brands()[0]
    ...
    ref = index.frame_for(brand, model, size, year)
    for ranked in index.nearest(ref, {"drop": "-"}, k=5):
        print(ranked.frame.model, ranked.distance)
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Sequence

import httpx
import pandas as pd
from loguru import logger

from .config import (
    DATA_SOURCE_URL,
    DEFAULT_SADDLE_FORE_AFT,
    DEFAULT_SADDLE_HEIGHT,
    NEAREST_DEFAULT_K,
    RankingFilters,
    RawFrameRecord,
)
from .errors import LoadError, NotFoundError, NotLoadedError
from .fetch import fetch_raw_records, parse_raw_records
from .frame import Frame
from .normalize import RatioStats, normalize_population
from .ranking import RankedFrame, nearest
from .tree import DuplicatePolicy, IndexTree, build_index


@dataclass(frozen=True)
class IndexSnapshot:
    """Everything derived from one load, immutable once published."""

    records: tuple[RawFrameRecord, ...]
    tree: IndexTree
    frames: tuple[Frame, ...]
    stats: Dict[str, RatioStats]
    saddle_height: float
    saddle_fore_aft: float
    _by_id: Dict[str, Frame] = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self) -> None:
        for frame in self.frames:
            if frame.id in self._by_id:
                raise LoadError(f"duplicate record _id {frame.id!r}")
            self._by_id[frame.id] = frame

    def frame_by_id(self, record_id: str) -> Frame:
        try:
            return self._by_id[record_id]
        except KeyError:
            raise NotFoundError((record_id,), f"no frame with id {record_id!r}") from None

    def to_dataframe(self) -> pd.DataFrame:
        """One row per frame, raw measurements plus ratios and statistics."""
        rows = []
        for f in self.frames:
            row = {k: v for k, v in vars(f).items() if not k.startswith("_")}
            rows.append(row)
        df = pd.DataFrame(rows)
        if not df.empty:
            df = df.set_index("id", drop=False)
        return df


def build_snapshot(
    records: Sequence[RawFrameRecord],
    saddle_height: float = DEFAULT_SADDLE_HEIGHT,
    saddle_fore_aft: float = DEFAULT_SADDLE_FORE_AFT,
    *,
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.KEEP_FIRST,
    allow_degenerate: bool = False,
) -> IndexSnapshot:
    """Build the tree and the normalized frames for ``records``."""
    records = tuple(records)
    tree = build_index(records, duplicate_policy)
    frames, stats = normalize_population(
        records, saddle_height, saddle_fore_aft, allow_degenerate=allow_degenerate
    )
    return IndexSnapshot(
        records=records,
        tree=tree,
        frames=tuple(frames),
        stats=stats,
        saddle_height=saddle_height,
        saddle_fore_aft=saddle_fore_aft,
    )


class FrameIndex:
    """Hierarchical lookup and similarity ranking over frame geometries."""

    def __init__(
        self,
        url: str = DATA_SOURCE_URL,
        *,
        saddle_height: float = DEFAULT_SADDLE_HEIGHT,
        saddle_fore_aft: float = DEFAULT_SADDLE_FORE_AFT,
        duplicate_policy: DuplicatePolicy = DuplicatePolicy.KEEP_FIRST,
        allow_degenerate: bool = False,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self.saddle_height = saddle_height
        self.saddle_fore_aft = saddle_fore_aft
        self.duplicate_policy = duplicate_policy
        self.allow_degenerate = allow_degenerate
        self._client = client
        self._snapshot: IndexSnapshot | None = None

    @classmethod
    def from_records(
        cls,
        records: Iterable[RawFrameRecord | Mapping],
        **kwargs,
    ) -> "FrameIndex":
        """Build an index from already-available records, no network."""
        index = cls(**kwargs)
        parsed = parse_raw_records(list(records))
        index._publish(index._build(parsed, index.saddle_height, index.saddle_fore_aft))
        return index

    # -------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------

    def _build(
        self, records: Sequence[RawFrameRecord], saddle_height: float, saddle_fore_aft: float
    ) -> IndexSnapshot:
        return build_snapshot(
            records,
            saddle_height,
            saddle_fore_aft,
            duplicate_policy=self.duplicate_policy,
            allow_degenerate=self.allow_degenerate,
        )

    def _publish(self, snapshot: IndexSnapshot) -> None:
        self._snapshot = snapshot
        logger.info(
            "Frame index published: {} records, {} indexed tuples",
            len(snapshot.records),
            len(snapshot.tree),
        )

    async def load(self) -> IndexSnapshot:
        """
        Fetch all records and replace the index contents.

        Raises :class:`~framedb.errors.LoadError` on transport, decoding or
        validation failure, and
        :class:`~framedb.errors.DegenerateStatisticsError` when the
        population cannot be normalized.  In every failure case, and on
        cancellation, the previous snapshot stays in place.
        """
        records = await fetch_raw_records(self.url, client=self._client)
        snapshot = self._build(records, self.saddle_height, self.saddle_fore_aft)
        self._publish(snapshot)
        return snapshot

    async def populate(self) -> IndexSnapshot:
        return await self.load()

    def rebuild(self, saddle_height: float, saddle_fore_aft: float) -> IndexSnapshot:
        """Recompute frames for a new rider position over the loaded records."""
        current = self.snapshot
        snapshot = self._build(current.records, saddle_height, saddle_fore_aft)
        self.saddle_height = saddle_height
        self.saddle_fore_aft = saddle_fore_aft
        self._publish(snapshot)
        return snapshot

    @property
    def is_loaded(self) -> bool:
        return self._snapshot is not None

    @property
    def snapshot(self) -> IndexSnapshot:
        snap = self._snapshot
        if snap is None:
            raise NotLoadedError()
        return snap

    # -------------------------------------------------------------------
    # Cascading selection
    # -------------------------------------------------------------------

    def brands(self) -> List[str]:
        return self.snapshot.tree.brands()

    def models(self, brand: str) -> List[str]:
        return self.snapshot.tree.models(brand)

    def sizes(self, brand: str, model: str) -> List[str]:
        return self.snapshot.tree.sizes(brand, model)

    def years(self, brand: str, model: str, size: str) -> List[str]:
        return self.snapshot.tree.years(brand, model, size)

    def id_for(self, brand: str, model: str, size: str, year: str) -> str:
        return self.snapshot.tree.id_for(brand, model, size, year)

    def frame_for(self, brand: str, model: str, size: str, year: str) -> Frame:
        snap = self.snapshot
        return snap.frame_by_id(snap.tree.id_for(brand, model, size, year))

    @property
    def frames(self) -> Sequence[Frame]:
        return self.snapshot.frames

    # -------------------------------------------------------------------
    # Ranking
    # -------------------------------------------------------------------

    def nearest(
        self,
        reference: Frame,
        filters: RankingFilters | Mapping | None = None,
        k: int = NEAREST_DEFAULT_K,
    ) -> List[RankedFrame]:
        return nearest(reference, self.snapshot.frames, filters, k)
