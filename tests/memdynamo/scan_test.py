import pytest

from memdynamo.exceptions import ArgumentError
from memdynamo.scan import scan, scan_all, segment_of


@pytest.fixture
def many_scores(put_scores):
    return put_scores(
        [
            dict(
                group=f"g{n % 7}",
                rank=n,
                **(dict(player=f"p{n % 5}", points=n) if n % 3 else dict()),
            )
            for n in range(40)
        ]
    )


def _keys(items):
    return [(item["group"], item["rank"]) for item in items]


def test_unpaged_scan_returns_everything(store, many_scores):
    page = scan(store, "scores")
    assert sorted(_keys(page.items)) == sorted(_keys(many_scores))
    assert page.last_evaluated_key is None


@pytest.mark.parametrize("limit", [1, 3, 7, 39, 40, 41])
def test_following_cursors_is_complete_without_overlap(store, many_scores, limit):
    everything = _keys(scan(store, "scores").items)
    collected = list()
    start_key = None
    pages = 0
    while True:
        page = scan(store, "scores", start_key=start_key, limit=limit)
        pages += 1
        collected.extend(page.items)
        if page.last_evaluated_key is None:
            break
        assert page.last_evaluated_key == dict(
            group=page.items[-1]["group"], rank=page.items[-1]["rank"]
        )
        start_key = page.last_evaluated_key
    assert _keys(collected) == everything
    assert pages == max(1, -(-len(everything) // limit))


def test_index_scans_are_sparse_and_ordered_by_index_hash_key(store, many_scores):
    items = scan_all(store, "scores", index_name="by_player", limit=4)
    assert len(items) == len([s for s in many_scores if "player" in s])
    assert [item["player"] for item in items] == sorted(item["player"] for item in items)
    assert len(set(_keys(items))) == len(items)


def test_index_cursor_includes_index_keys(store, many_scores):
    page = scan(store, "scores", index_name="by_player", limit=2)
    assert set(page.last_evaluated_key) == {"group", "rank", "player", "points"}


def test_unknown_start_key_starts_over(store, many_scores):
    page = scan(store, "scores", start_key=dict(group="nope", rank=-1), limit=2)
    assert page.items == scan(store, "scores", limit=2).items


def test_segments_partition_the_table(store, many_scores):
    segments = [scan_all(store, "scores", segment=s, total_segments=3) for s in range(3)]
    all_keys = [key for segment in segments for key in _keys(segment)]
    assert sorted(all_keys) == sorted(_keys(many_scores))
    assert len(set(all_keys)) == len(all_keys)
    for s, segment in enumerate(segments):
        assert all(segment_of(item["group"], 3) == s for item in segment)


def test_segments_hash_equal_numbers_alike():
    assert segment_of(1, 10) == segment_of(1.0, 10)
    assert all(0 <= segment_of(f"k{n}", 4) < 4 for n in range(50))


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(segment=0),
        dict(total_segments=2),
        dict(segment=2, total_segments=2),
        dict(segment=0, total_segments=0),
        dict(limit=0),
        dict(index_name="by_nothing"),
    ],
)
def test_bad_scan_arguments(store, kwargs):
    with pytest.raises(ArgumentError):
        scan(store, "scores", **kwargs)


def test_empty_table(store):
    assert scan(store, "scores", limit=5) == ([], None)
