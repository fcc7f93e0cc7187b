from __future__ import annotations

import pytest
from pydantic import ValidationError

from framedb.config import Preference, RankingFilters
from framedb.errors import FrameIndexError, InvalidFilterError
from framedb.normalize import normalize
from framedb.ranking import nearest


@pytest.fixture
def frames(record):
    recs = [
        record(_id=str(i), size=f"S{i}", reach=360.0 + 5 * i, stack=540.0 + 4 * i)
        for i in range(12)
    ]
    return normalize(recs, 74.5, 20.5)


def _is_sorted(ranked):
    distances = [r.distance for r in ranked]
    return all(a <= b for a, b in zip(distances, distances[1:]))


@pytest.mark.parametrize("k, expected", [(3, 3), (10, 10), (12, 12), (50, 12), (0, 0), (-4, 0)])
def test_result_count_is_clamped(frames, k, expected):
    ranked = nearest(frames[5], frames, {}, k)
    assert len(ranked) == expected
    assert _is_sorted(ranked)


def test_default_k_is_ten(frames):
    assert len(nearest(frames[0], frames)) == 10


def test_reference_comes_back_first(frames):
    ranked = nearest(frames[5], frames, k=3)
    assert ranked[0].frame is frames[5]
    assert ranked[0].distance == 0.0
    assert {r.frame.id for r in ranked[1:]} == {"4", "6"}


def test_ties_keep_population_order(record):
    recs = [
        record(_id="x", size="A", reach=380.0, stack=550.0),
        record(_id="y", size="B", reach=380.0, stack=550.0),
        record(_id="z", size="C", reach=400.0, stack=570.0),
    ]
    frames = normalize(recs, 74.5, 20.5)
    ranked = nearest(frames[2], frames, k=3)
    assert [r.frame.id for r in ranked] == ["z", "x", "y"]


def test_filters_steer_ranking(frames):
    ref = frames[5]

    def order(filters):
        return [r.frame.id for r in nearest(ref, frames, filters, k=len(frames))]

    more = order({"dsd": "+"})
    less = order(RankingFilters(dsd=Preference.LESS))
    assert more.index("6") < more.index("4")
    assert less.index("4") < less.index("6")


def test_drop_preference_steers_ranking(frames):
    ref = frames[5]

    def order(filters):
        return [r.frame.id for r in nearest(ref, frames, filters, k=len(frames))]

    # frame 4 sits lower (larger drop) than the reference, frame 6 higher
    more = order({"drop": "+"})
    less = order({"drop": Preference.LESS})
    assert more.index("4") < more.index("6")
    assert less.index("6") < less.index("4")


def test_ratio_dsd_drop_preference_steers_ranking(frames):
    ref = frames[5]
    more = nearest(ref, frames, {"ratio_dsd_drop": "+"}, k=1)
    less = nearest(ref, frames, RankingFilters(ratio_dsd_drop=Preference.LESS), k=1)
    assert more[0].frame.ratio_dsd_drop > ref.ratio_dsd_drop
    assert less[0].frame.ratio_dsd_drop < ref.ratio_dsd_drop


def test_fork_rate_filter(record):
    recs = [
        record(_id="a", size="A", reach=380.0, fork_rate=40.0),
        record(_id="b", size="B", reach=390.0, fork_rate=55.0),
        record(_id="c", size="C", reach=400.0, stack=580.0, fork_rate=45.0),
    ]
    frames = normalize(recs, 74.5, 20.5)
    plain = nearest(frames[0], frames, k=1)
    assert plain[0].frame.id == "a"
    with_fork = nearest(frames[0], frames, {"fork_rate": 55.0}, k=3)
    assert [r.frame.id for r in with_fork][0] == "b"


def test_bad_filter_value_is_rejected(frames):
    with pytest.raises(InvalidFilterError) as exc_info:
        nearest(frames[0], frames, {"drop": "down"})
    assert isinstance(exc_info.value, FrameIndexError)
    assert isinstance(exc_info.value.__cause__, ValidationError)
