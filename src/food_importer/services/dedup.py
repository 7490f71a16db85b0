"""Duplicate filtering of validated food rows against existing names."""

from collections.abc import Iterable
from dataclasses import dataclass, field

from food_importer.domain.foods import FoodRecord, food_name_key

NumberedRecord = tuple[int, FoodRecord]


@dataclass
class DuplicatePartition:
    """Candidates split into rows to insert and rows skipped as duplicates."""

    to_insert: list[NumberedRecord] = field(default_factory=list)
    duplicates: list[NumberedRecord] = field(default_factory=list)


def partition_duplicates(
    existing_names: Iterable[str],
    candidates: Iterable[NumberedRecord],
) -> DuplicatePartition:
    """Split numbered candidates into new rows and duplicates.

    Names are compared trimmed and case-insensitively, both against the
    existing names and against earlier candidates in the same file.
    """
    seen = {food_name_key(name) for name in existing_names}
    partition = DuplicatePartition()
    for row_number, record in candidates:
        key = record.name_key
        if key in seen:
            partition.duplicates.append((row_number, record))
            continue
        seen.add(key)
        partition.to_insert.append((row_number, record))
    return partition
