"""Tests for duplicate filtering."""

from food_importer.domain.foods import FoodRecord
from food_importer.services.dedup import partition_duplicates


def _food(name: str) -> FoodRecord:
    return FoodRecord(name=name, calories=100)


def test_partition_skips_existing_names_case_insensitively() -> None:
    candidates = [(2, _food("Chicken Breast")), (3, _food("Brown Rice"))]

    partition = partition_duplicates([" chicken breast "], candidates)

    assert partition.to_insert == [(3, candidates[1][1])]
    assert partition.duplicates == [(2, candidates[0][1])]


def test_partition_catches_duplicates_within_the_same_file() -> None:
    candidates = [(2, _food("Oat Milk")), (3, _food("OAT MILK")), (4, _food("Tofu"))]

    partition = partition_duplicates([], candidates)

    assert [row for row, _food_record in partition.to_insert] == [2, 4]
    assert [row for row, _food_record in partition.duplicates] == [3]
