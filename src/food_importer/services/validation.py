"""Validation of raw spreadsheet rows into food records."""

import math

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from food_importer.domain.foods import (
    FoodRecord,
    RawRow,
    ValidationIssue,
)
from food_importer.services.categories import normalize_category

_NUMERIC_FIELDS = (
    "serving_size",
    "calories",
    "protein",
    "carbs",
    "fat",
    "fiber",
    "sugar",
    "sodium",
    "cholesterol",
)

# Spreadsheet headers that differ from the record field names.
_KEY_ALIASES = {
    "servingsize": "serving_size",
    "serving size": "serving_size",
    "servingunit": "serving_unit",
    "serving unit": "serving_unit",
    "fibre": "fiber",
}


class FoodRow(BaseModel):
    """Schema for a fixed-layout food spreadsheet row."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(min_length=1)
    category: str | None = None
    serving_size: float = Field(default=100.0, gt=0)
    serving_unit: str = "g"
    calories: float = Field(ge=0)
    protein: float = Field(default=0.0, ge=0)
    carbs: float = Field(default=0.0, ge=0)
    fat: float = Field(default=0.0, ge=0)
    fiber: float = Field(default=0.0, ge=0)
    sugar: float = Field(default=0.0, ge=0)
    sodium: float = Field(default=0.0, ge=0)
    cholesterol: float = Field(default=0.0, ge=0)
    brand: str | None = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("name", "category", "serving_unit", "brand", mode="before")
    @classmethod
    def _coerce_text(cls, value: object) -> object:
        if isinstance(value, bool):
            return value
        if isinstance(value, int | float):
            value = _format_number(value)
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator(*_NUMERIC_FIELDS, mode="before")
    @classmethod
    def _coerce_number(cls, value: object) -> float:
        if isinstance(value, bool):
            raise ValueError("expected a number, got a boolean")
        if isinstance(value, int | float):
            number = float(value)
        elif isinstance(value, str):
            try:
                number = float(value.strip())
            except ValueError:
                raise ValueError(f"could not parse {value!r} as a number") from None
        else:
            raise ValueError(f"could not parse {value!r} as a number")
        if not math.isfinite(number):
            raise ValueError("number must be finite")
        return number

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value: object) -> list[str]:
        if isinstance(value, str):
            pieces = value.split(",")
        elif isinstance(value, list | tuple):
            pieces = [str(piece) for piece in value]
        else:
            raise ValueError("tags must be a comma-separated string")
        return [piece.strip() for piece in pieces if piece.strip()]


def validate_row(raw: RawRow) -> FoodRecord | list[ValidationIssue]:
    """Validate one raw row, returning a food record or every issue found."""
    try:
        row = FoodRow.model_validate(_prepare(raw))
    except ValidationError as exc:
        return [_to_issue(error) for error in exc.errors()]
    return FoodRecord(
        name=row.name,
        category=normalize_category(row.category),
        serving_size=row.serving_size,
        serving_unit=row.serving_unit or "g",
        calories=row.calories,
        protein=row.protein,
        carbs=row.carbs,
        fat=row.fat,
        fiber=row.fiber,
        sugar=row.sugar,
        sodium=row.sodium,
        cholesterol=row.cholesterol,
        brand=row.brand or None,
        tags=tuple(row.tags),
    )


def _prepare(raw: RawRow) -> dict[str, object]:
    """Normalize keys and drop blank cells so defaults apply to them."""
    prepared: dict[str, object] = {}
    for key, value in raw.items():
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        normalized = str(key).strip()
        lowered = normalized.lower()
        field_name = _KEY_ALIASES.get(lowered, _snake_case(normalized))
        prepared.setdefault(field_name, value)
    return prepared


def _snake_case(key: str) -> str:
    if key.isupper() or key.islower():
        return key.lower().replace(" ", "_")
    chars: list[str] = []
    for char in key:
        if char.isupper():
            if chars:
                chars.append("_")
            chars.append(char.lower())
        else:
            chars.append(char)
    return "".join(chars).replace(" ", "_").replace("__", "_")


def _format_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _to_issue(error: dict[str, object]) -> ValidationIssue:
    location = error.get("loc") or ()
    field_name = ".".join(str(part) for part in location) or "row"
    message = str(error.get("msg", "invalid value"))
    if error.get("type") == "missing":
        message = "Field required"
    return ValidationIssue(field=field_name, message=message)
