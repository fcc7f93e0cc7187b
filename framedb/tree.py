from __future__ import annotations

"""
Four-level selection tree: brand -> model -> size -> year -> record id.

The tree backs cascading selects (pick a brand, then one of its models,
and so on).  Keys come back in insertion order, which is the order the
records were delivered in; callers that want sorted lists sort them.

Example::

    tree = build_index(records)
    for brand in tree.brands():
        for model in tree.models(brand):
            ...
    record_id = tree.id_for("Time", "NXR", "XS", "2011")
"""

from enum import Enum
from typing import Dict, Iterable, List

from loguru import logger

from .config import RawFrameRecord
from .errors import DuplicateRecordError, NotFoundError

YearMap = Dict[str, str]
SizeMap = Dict[str, YearMap]
ModelMap = Dict[str, SizeMap]
BrandMap = Dict[str, ModelMap]


class DuplicatePolicy(str, Enum):
    """What to do when two records share a (brand, model, size, year) tuple."""

    KEEP_FIRST = "keep_first"
    RAISE = "raise"


class IndexTree:
    """Read-only view over the nested brand/model/size/year mapping."""

    def __init__(self, nodes: BrandMap | None = None) -> None:
        self._nodes: BrandMap = nodes if nodes is not None else {}

    def __len__(self) -> int:
        return sum(
            len(years)
            for models in self._nodes.values()
            for sizes in models.values()
            for years in sizes.values()
        )

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 4:
            return False
        try:
            self.id_for(*key)
        except NotFoundError:
            return False
        return True

    def _descend(self, *path: str):
        node = self._nodes
        for depth, segment in enumerate(path):
            try:
                node = node[segment]
            except (KeyError, TypeError):
                raise NotFoundError(path[: depth + 1]) from None
        return node

    def brands(self) -> List[str]:
        return list(self._nodes)

    def models(self, brand: str) -> List[str]:
        return list(self._descend(brand))

    def sizes(self, brand: str, model: str) -> List[str]:
        return list(self._descend(brand, model))

    def years(self, brand: str, model: str, size: str) -> List[str]:
        return list(self._descend(brand, model, size))

    def id_for(self, brand: str, model: str, size: str, year: str) -> str:
        return self._descend(brand, model, size, year)

    def to_dict(self) -> BrandMap:
        """Deep copy of the tree as plain nested dicts."""
        return {
            b: {m: {s: dict(y) for s, y in sizes.items()} for m, sizes in models.items()}
            for b, models in self._nodes.items()
        }


def build_index(
    records: Iterable[RawFrameRecord],
    policy: DuplicatePolicy = DuplicatePolicy.KEEP_FIRST,
) -> IndexTree:
    """
    Build the selection tree from raw records in a single pass.

    Levels are created when absent.  The leaf is written only if the slot
    is still empty: the first record for a tuple wins.  With
    ``DuplicatePolicy.RAISE`` a second record for the same tuple raises
    :class:`DuplicateRecordError` instead of being dropped.
    """
    nodes: BrandMap = {}
    dropped = 0
    for rec in records:
        years = (
            nodes.setdefault(rec.brand, {})
            .setdefault(rec.model, {})
            .setdefault(rec.size, {})
        )
        if rec.year in years:
            if policy is DuplicatePolicy.RAISE:
                raise DuplicateRecordError(rec.key, years[rec.year], rec.id)
            dropped += 1
            continue
        years[rec.year] = rec.id
    if dropped:
        logger.warning("Dropped {} duplicate records (first record per tuple kept)", dropped)
    return IndexTree(nodes)
