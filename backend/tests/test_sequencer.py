import random
from collections import Counter

import pytest

from app.services.aggregator import aggregate
from app.services.sequencer import (
    distinct,
    expand,
    fisher_yates,
    replica_count,
    round_robin,
    sequence,
)
from app.services.tracks import WeightedTrack

from stubs import contribution, make_track


@pytest.mark.parametrize(
    "weight, expected",
    [
        (1.0, 10),
        (0.7, 7),
        (0.7 / 2, 4),
        (0.3, 3),
        (0.3 / 2, 2),
        (0.3 / 7, 0),
        (0.04, 0),
    ],
)
def test_replica_count(weight, expected):
    assert replica_count(weight, 10) == expected


def test_full_weight_track_gets_ten_slots():
    track = make_track("T1", 1.0)
    working = expand([WeightedTrack(track=track, popularity_count=1, final_weight=1.0)], 10)
    assert len(working) == 10
    assert all(slot is track for slot in working)


def test_diluted_track_is_dropped():
    keep = WeightedTrack(track=make_track("keep"), popularity_count=1, final_weight=0.7)
    drop = WeightedTrack(track=make_track("drop", 0.3), popularity_count=8, final_weight=0.3 / 8)
    pool = sequence([keep, drop], rng=random.Random(7))
    assert {t.id for t in pool} == {"keep"}


def test_two_user_scenario_slot_counts():
    a = contribution("a", make_track("T1", 0.7), make_track("T2", 0.7))
    b = contribution("b", make_track("T1", 0.3, "recent"), make_track("T3", 0.7))
    pool = sequence(aggregate([a, b]), expansion_factor=10, rng=random.Random(1))
    assert Counter(t.id for t in pool) == {"T1": 4, "T2": 7, "T3": 7}
    assert len(pool) == 18


def test_sequence_only_emits_input_tracks():
    contributions = [contribution(f"u{i}", *(make_track(f"t{i}-{j}") for j in range(5)), make_track("shared")) for i in range(3)]
    input_ids = {t.id for c in contributions for t in c.tracks}
    pool = sequence(aggregate(contributions), rng=random.Random(3))
    assert pool
    assert {t.id for t in pool} <= input_ids


def test_fisher_yates_is_a_permutation():
    items = list(range(50))
    shuffled = fisher_yates(list(items), random.Random(42))
    assert sorted(shuffled) == items
    assert shuffled != items


def test_fisher_yates_is_reproducible_with_seeded_rng():
    assert fisher_yates(list(range(20)), random.Random(5)) == fisher_yates(list(range(20)), random.Random(5))


def test_fisher_yates_positions_are_roughly_uniform():
    rng = random.Random(11)
    first = Counter(fisher_yates([0, 1, 2], rng)[0] for _ in range(6000))
    for value in (0, 1, 2):
        assert 1700 < first[value] < 2300


def test_round_robin_interleaves_users():
    a = contribution("a", make_track("a1"), make_track("a2"), make_track("a3"))
    b = contribution("b", make_track("b1"))
    c = contribution("c", make_track("c1"), make_track("c2"))
    assert [t.id for t in round_robin([a, b, c])] == ["a1", "b1", "c1", "a2", "c2", "a3"]


def test_round_robin_length_and_order():
    sizes = [4, 0, 7, 2]
    contributions = [contribution(f"u{i}", *(make_track(f"u{i}-{j}") for j in range(n))) for i, n in enumerate(sizes)]
    pool = round_robin(contributions)
    assert len(pool) == sum(sizes)
    for i, n in enumerate(sizes):
        assert [t.id for t in pool if t.id.startswith(f"u{i}-")] == [f"u{i}-{j}" for j in range(n)]


def test_round_robin_keeps_shared_tracks_per_user():
    shared = make_track("shared")
    pool = round_robin([contribution("a", shared), contribution("b", shared)])
    assert [t.id for t in pool] == ["shared", "shared"]


def test_round_robin_does_not_consume_input():
    a = contribution("a", make_track("a1"), make_track("a2"))
    round_robin([a])
    assert [t.id for t in a.tracks] == ["a1", "a2"]


def test_distinct_keeps_first_occurrence():
    t1, t2 = make_track("T1"), make_track("T2")
    assert distinct([t1, t2, t1, t1, t2]) == [t1, t2]
