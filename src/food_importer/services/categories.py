"""Keyword-based mapping of free-text categories onto the food category set."""

from food_importer.domain.foods import FoodCategory

# Group order is significant: the first group with a matching keyword wins.
CATEGORY_KEYWORDS: tuple[tuple[FoodCategory, tuple[str, ...]], ...] = (
    (
        FoodCategory.PROTEIN,
        (
            "meat",
            "fish",
            "seafood",
            "chicken",
            "beef",
            "pork",
            "lamb",
            "poultry",
            "turkey",
            "egg",
            "steak",
            "legume",
        ),
    ),
    (
        FoodCategory.CARBS,
        ("bread", "rice", "pasta", "cereal", "grain", "wheat", "corn", "oats"),
    ),
    (FoodCategory.FAT, ("oil", "butter", "margarine", "lard", "fat")),
    (FoodCategory.DAIRY, ("milk", "yogurt", "yoghurt", "cheese", "cream", "dairy")),
    (
        FoodCategory.FRUIT,
        ("apple", "orange", "banana", "berry", "fruit", "pear", "grape", "melon"),
    ),
    (
        FoodCategory.VEGETABLE,
        ("vegetable", "veg", "carrot", "broccoli", "spinach", "lettuce", "cabbage"),
    ),
    (
        FoodCategory.BEVERAGE,
        (
            "juice",
            "water",
            "tea",
            "coffee",
            "drink",
            "beverage",
            "soda",
            "wine",
            "beer",
        ),
    ),
    (
        FoodCategory.SNACK,
        ("snack", "chip", "crisp", "cracker", "cookie", "biscuit"),
    ),
    (FoodCategory.SUPPLEMENT, ("vitamin", "supplement", "mineral", "protein powder")),
)

_CATEGORY_VALUES = {category.value: category for category in FoodCategory}


def normalize_category(raw: object | None) -> FoodCategory:
    """Map a free-text category onto the closed category set.

    An exact category name is returned as-is; otherwise keyword groups are
    tested by substring in ``CATEGORY_KEYWORDS`` order and anything
    unrecognized becomes ``other``.
    """
    if raw is None:
        return FoodCategory.OTHER
    text = str(raw).strip().lower()
    if not text:
        return FoodCategory.OTHER
    exact = _CATEGORY_VALUES.get(text)
    if exact is not None:
        return exact
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return category
    return FoodCategory.OTHER
