"""Domain models for food records and spreadsheet rows."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum

RawRow = Mapping[str, object]


class FoodCategory(StrEnum):
    """Closed set of food categories stored in the foods table."""

    PROTEIN = "protein"
    CARBS = "carbs"
    FAT = "fat"
    VEGETABLE = "vegetable"
    FRUIT = "fruit"
    DAIRY = "dairy"
    BEVERAGE = "beverage"
    SNACK = "snack"
    SUPPLEMENT = "supplement"
    OTHER = "other"


@dataclass(frozen=True)
class SheetRow:
    """An unvalidated spreadsheet row with its 1-based sheet row number."""

    row_number: int
    values: RawRow


@dataclass(frozen=True)
class ValidationIssue:
    """A single problem found while validating a row."""

    field: str
    message: str


@dataclass(frozen=True)
class FoodRecord:
    """A normalized food row ready for persistence."""

    name: str
    calories: float
    category: FoodCategory = FoodCategory.OTHER
    serving_size: float = 100.0
    serving_unit: str = "g"
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    fiber: float = 0.0
    sugar: float = 0.0
    sodium: float = 0.0
    cholesterol: float = 0.0
    brand: str | None = None
    tags: tuple[str, ...] = field(default_factory=tuple)
    is_public: bool = True

    @property
    def name_key(self) -> str:
        """Return the case-insensitive deduplication key."""
        return food_name_key(self.name)


def food_name_key(name: str) -> str:
    """Normalize a food name for duplicate comparison."""
    return name.strip().lower()
