import pytest

from flood_stats.core import OTHER_CATEGORY, UNLIMITED, DerivedRecord
from flood_stats.engine.ranking import parse_category_limit, rank
from flood_stats.errors import InvalidCategoryLimit


def _records(*items: tuple[str, str, int]) -> list[DerivedRecord]:
    return [DerivedRecord(field, category, count, count) for field, category, count in items]


def test_rank_orders_by_total_descending() -> None:
    ranked, buckets = rank(
        _records(("F1", "Cork", 5), ("F1", "Dublin", 40), ("F2", "Galway", 12)),
        UNLIMITED,
    )

    assert ranked.ordered_labels == ("Dublin", "Galway", "Cork")
    assert ranked.overflowed is False
    assert buckets["Dublin"].total == 40


def test_rank_merges_features_per_category() -> None:
    _, buckets = rank(
        _records(("F1", "Dublin", 40), ("F2", "Dublin", 10), ("F1", "Dublin", 2)),
        10,
    )

    assert buckets["Dublin"].per_feature_value == {"F1": 42, "F2": 10}
    assert buckets["Dublin"].total == 52


def test_overflow_bucket_holds_truncated_sum() -> None:
    records = _records(
        ("F1", "A", 50),
        ("F1", "B", 30),
        ("F2", "C", 20),
        ("F1", "D", 10),
        ("F2", "D", 5),
    )

    ranked, buckets = rank(records, 2)

    assert ranked.ordered_labels == ("A", "B", OTHER_CATEGORY)
    assert ranked.overflowed is True
    other = buckets[OTHER_CATEGORY]
    assert other.total == 35
    assert other.per_feature_value == {"F2": 25, "F1": 10}


def test_totals_are_conserved() -> None:
    records = _records(
        ("F1", "A", 7),
        ("F1", "B", 3),
        ("F2", "C", 9),
        ("F2", "A", 1),
        ("F1", "E", 4),
    )
    expected = sum(record.value for record in records)

    for limit in (1, 2, 3, 10, UNLIMITED):
        _, buckets = rank(records, limit)
        assert sum(bucket.total for bucket in buckets.values()) == expected


def test_no_overflow_when_limit_matches_category_count() -> None:
    ranked, buckets = rank(_records(("F1", "A", 3), ("F1", "B", 2)), 2)

    assert ranked.ordered_labels == ("A", "B")
    assert ranked.overflowed is False
    assert OTHER_CATEGORY not in buckets


def test_zero_remainder_adds_no_other() -> None:
    ranked, buckets = rank(_records(("F1", "A", 3), ("F1", "B", 0)), 1)

    assert ranked.ordered_labels == ("A",)
    assert ranked.overflowed is False
    assert set(buckets) == {"A"}


def test_ties_keep_first_appearance_order() -> None:
    ranked, _ = rank(_records(("F1", "Cork", 50), ("F1", "Dublin", 50)), UNLIMITED)

    assert ranked.ordered_labels == ("Cork", "Dublin")


def test_ties_across_the_cut_keep_input_order() -> None:
    ranked, buckets = rank(
        _records(("F1", "Cork", 50), ("F1", "Dublin", 50), ("F1", "Galway", 50)),
        2,
    )

    assert ranked.ordered_labels == ("Cork", "Dublin", OTHER_CATEGORY)
    assert buckets[OTHER_CATEGORY].total == 50


def test_empty_input_ranks_nothing() -> None:
    ranked, buckets = rank([], 10)

    assert ranked.ordered_labels == ()
    assert ranked.overflowed is False
    assert buckets == {}


def test_kept_real_other_merges_with_overflow() -> None:
    records = _records(("F1", "Other", 100), ("F2", "A", 5), ("F2", "B", 1))

    ranked, buckets = rank(records, 2)

    assert ranked.ordered_labels == ("A", OTHER_CATEGORY)
    assert ranked.overflowed is True
    assert buckets[OTHER_CATEGORY].total == 101
    assert buckets[OTHER_CATEGORY].per_feature_value == {"F1": 100, "F2": 1}
    assert sum(bucket.total for bucket in buckets.values()) == 106


def test_kept_real_other_without_overflow_stays_in_place() -> None:
    ranked, buckets = rank(_records(("F1", "Other", 100), ("F1", "A", 5)), 2)

    assert ranked.ordered_labels == ("Other", "A")
    assert ranked.overflowed is False
    assert buckets["Other"].total == 100


def test_truncated_real_other_folds_into_bucket() -> None:
    records = _records(("F1", "A", 100), ("F1", "Other", 5), ("F1", "B", 1))

    ranked, buckets = rank(records, 1)

    assert ranked.ordered_labels == ("A", OTHER_CATEGORY)
    assert buckets[OTHER_CATEGORY].total == 6


def test_custom_other_label_avoids_collision() -> None:
    records = _records(("F1", "Other", 100), ("F1", "A", 5), ("F1", "B", 1))

    ranked, buckets = rank(records, 2, other_label="Remaining")

    assert ranked.ordered_labels == ("Other", "A", "Remaining")
    assert buckets["Remaining"].total == 1


@pytest.mark.parametrize("limit", [0, -3, 2.5, True, "all", None, "Unlimited "])
def test_invalid_category_limits(limit) -> None:
    with pytest.raises(InvalidCategoryLimit):
        rank(_records(("F1", "A", 1)), limit)


def test_magic_numbers_are_plain_limits() -> None:
    records = _records(("F1", "A", 1), ("F1", "B", 1))

    ranked, _ = rank(records, 999)

    assert ranked.ordered_labels == ("A", "B")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("10", 10), (" 50 ", 50), ("unlimited", UNLIMITED), ("UNLIMITED", UNLIMITED), (20, 20)],
)
def test_parse_category_limit(raw, expected) -> None:
    assert parse_category_limit(raw) == expected


@pytest.mark.parametrize("raw", ["0", "ten", "Infinity", "", "2.5"])
def test_parse_category_limit_rejects(raw) -> None:
    with pytest.raises(InvalidCategoryLimit):
        parse_category_limit(raw)
