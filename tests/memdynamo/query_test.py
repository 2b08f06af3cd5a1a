from decimal import Decimal

import pytest

from memdynamo.exceptions import ArgumentError, ValidationError
from memdynamo.query import key_condition, query, query_range
from memdynamo.types import KeyCondition


@pytest.fixture
def ranks_1_to_4(put_scores):
    # put out of order so that sorting is exercised
    return put_scores(
        [dict(group="g", rank=r, player=f"p{r % 2}", points=10 - r) for r in (3, 1, 4, 2)]
    )


def _ranks(items):
    return [item["rank"] for item in items]


def test_query_by_hash_and_range(store, ranks_1_to_4):
    assert _ranks(query_range(store, "scores", "g", start=2)) == [2, 3, 4]
    assert _ranks(query_range(store, "scores", "g", end=2)) == [1, 2]
    assert _ranks(query_range(store, "scores", "g", start=1, end=3)) == [1, 2, 3]
    assert _ranks(query_range(store, "scores", "g", scan_index_forward=False)) == [4, 3, 2, 1]


def test_limit_takes_the_first_n_in_order(store, ranks_1_to_4):
    assert _ranks(query_range(store, "scores", "g", limit=2)) == [1, 2]
    assert _ranks(query_range(store, "scores", "g", limit=2, scan_index_forward=False)) == [4, 3]
    with pytest.raises(ArgumentError):
        query_range(store, "scores", "g", limit=0)


def test_reverse_is_the_exact_reverse_even_with_ties(store, put_scores):
    put_scores([dict(group=f"g{n}", rank=1, player="tied", points=7) for n in range(5)])
    forward = query_range(store, "scores", "tied", index_name="by_player")
    backward = query_range(
        store, "scores", "tied", index_name="by_player", scan_index_forward=False
    )
    assert backward == list(reversed(forward))


def test_other_partitions_are_excluded(store, ranks_1_to_4, put_scores):
    put_scores([dict(group="other", rank=1)])
    assert _ranks(query_range(store, "scores", "g")) == [1, 2, 3, 4]
    assert query_range(store, "scores", "missing") == []


def test_numeric_range_keys_compare_numerically(store, put_scores):
    put_scores([dict(group="n", rank=r) for r in (10, 9, Decimal("100"), 2)])
    assert _ranks(query_range(store, "scores", "n", start=9)) == [9, 10, 100]


def test_index_query_selects_by_index_keys(store, ranks_1_to_4, put_scores):
    put_scores([dict(group="h", rank=1, player="p1", points=0), dict(group="h", rank=2)])
    items = query_range(store, "scores", "p1", index_name="by_player")
    assert [(item["group"], item["rank"]) for item in items] == [("h", 1), ("g", 3), ("g", 1)]
    assert [item["points"] for item in items] == [0, 7, 9]
    items = query_range(store, "scores", "p1", index_name="by_player", start=5, end=8)
    assert [item["points"] for item in items] == [7]


def test_hash_only_index(store, put_scores):
    put_scores([dict(group="x", rank=1, league="east"), dict(group="x", rank=2, league="west")])
    assert _ranks(query_range(store, "scores", "east", index_name="by_league")) == [1]
    with pytest.raises(ArgumentError):
        query_range(store, "scores", "east", index_name="by_league", start=1)


def test_unknown_index(store):
    with pytest.raises(ArgumentError):
        query_range(store, "scores", "g", index_name="by_nothing")


def test_mismatched_key_names_are_listed_verbatim(store):
    with pytest.raises(ValidationError) as ve_info:
        query(store, "scores", KeyCondition("team", "g"))
    assert ve_info.value.message == "Query condition missed key schema element: group"

    with pytest.raises(ValidationError) as ve_info:
        query(store, "scores", key_condition("team", "g", range_key_name="place", gte=1))
    assert ve_info.value.message == "Query condition missed key schema element: group, rank"
    assert ve_info.value.response["Error"]["Code"] == "ValidationException"

    with pytest.raises(ValidationError) as ve_info:
        query(
            store,
            "scores",
            key_condition("player", "p", range_key_name="rank", gte=1),
            index_name="by_player",
        )
    assert ve_info.value.message == "Query condition missed key schema element: points"


def test_between_requires_ordered_bounds(store, ranks_1_to_4):
    with pytest.raises(ValidationError):
        query_range(store, "scores", "g", start=3, end=1)


def test_query_results_are_copies(store, ranks_1_to_4):
    query_range(store, "scores", "g")[0]["player"] = "changed"
    assert query_range(store, "scores", "g")[0]["player"] == "p1"


def test_float_condition_values_match_decimal_keys(store, put_scores):
    put_scores([dict(group=0.5, rank=r) for r in (0.25, 0.75, 1.5)])
    assert _ranks(query_range(store, "scores", 0.5, start=0.5)) == [Decimal("0.75"), Decimal("1.5")]
    assert _ranks(query(store, "scores", KeyCondition("group", Decimal("0.5")))) == [
        Decimal("0.25"),
        Decimal("0.75"),
        Decimal("1.5"),
    ]
