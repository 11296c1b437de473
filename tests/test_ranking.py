import pytest

from conftest import make_snapshot
from crowdmap.services.ranking import crowd_score, population_norm, rank, severity_weight


@pytest.mark.parametrize(
    "level, weight",
    [("붐빔", 4), ("약간 붐빔", 3), ("보통", 2), ("여유", 1), ("", 1), ("알수없음", 1), (None, 1)],
)
def test_severity_weight(level, weight) -> None:
    assert severity_weight(level) == weight


def test_population_norm() -> None:
    assert population_norm(100, 100) == 99
    assert population_norm(0, 100) == 0
    assert population_norm(None, 100) == 0
    assert population_norm(50, 0) == 0
    assert population_norm(50, 100) == 49  # 49.5 -> 49
    assert population_norm(2, 3) == 66
    assert population_norm(1, 3) == 33
    assert population_norm(51, 100) == 50  # 50.49 -> 50


def test_spec_example_scores_and_order() -> None:
    a = make_snapshot("A", "붐빔", pop_max=100)
    b = make_snapshot("B", "여유", pop_max=50)
    c = make_snapshot("C", "보통", pop_max=100)

    assert crowd_score(a, 100) == 499
    assert crowd_score(c, 100) == 299
    assert crowd_score(b, 100) == 149

    result = rank([a, b, c])

    assert [(e.snapshot.area_name, e.crowd_score) for e in result.crowded] == [("A", 499), ("C", 299), ("B", 149)]
    assert [(e.snapshot.area_name, e.crowd_score) for e in result.quiet] == [("B", 149), ("C", 299), ("A", 499)]


def test_empty_input() -> None:
    result = rank([])
    assert result.crowded == []
    assert result.quiet == []


def test_all_populations_unset_no_division_by_zero() -> None:
    result = rank([make_snapshot("A", "붐빔"), make_snapshot("B", "여유")])
    assert [e.crowd_score for e in result.crowded] == [400, 100]


def test_fewer_than_three_entries() -> None:
    result = rank([make_snapshot("A", "보통", pop_max=10)])
    assert [e.snapshot.area_name for e in result.crowded] == ["A"]
    assert [e.snapshot.area_name for e in result.quiet] == ["A"]


def test_level_dominates_population() -> None:
    small_busy = make_snapshot("small", "약간 붐빔", pop_max=1)
    big_calm = make_snapshot("big", "보통", pop_max=100000)

    result = rank([big_calm, small_busy])

    assert result.crowded[0].snapshot.area_name == "small"


def test_top_and_bottom_three_of_many() -> None:
    levels = ["여유", "보통", "약간 붐빔", "붐빔"]
    snaps = [make_snapshot(f"p{i}", levels[i % 4], pop_max=(i + 1) * 10) for i in range(8)]

    result = rank(snaps)

    assert [e.snapshot.area_name for e in result.crowded] == ["p7", "p3", "p6"]
    assert [e.snapshot.area_name for e in result.quiet] == ["p0", "p4", "p1"]
    assert all(100 <= e.crowd_score <= 499 for e in result.crowded + result.quiet)


def test_ties_keep_input_order() -> None:
    snaps = [make_snapshot(n, "보통", pop_max=10) for n in ("가", "나", "다", "라")]
    result = rank(snaps)

    assert [e.snapshot.area_name for e in result.crowded] == ["가", "나", "다"]
    assert [e.snapshot.area_name for e in result.quiet] == ["라", "다", "나"]


def test_rank_is_deterministic() -> None:
    snaps = [make_snapshot(f"p{i}", "보통", pop_max=i * 7) for i in range(10)]
    assert rank(snaps) == rank(snaps)
