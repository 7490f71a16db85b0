"""Supabase implementation for the shared foods table."""

from collections.abc import Sequence
from dataclasses import dataclass

from supabase import Client

from food_importer.domain.foods import FoodRecord
from food_importer.services.importer import FoodRepository

_PAGE_SIZE = 1000


@dataclass
class SupabaseFoodRepository(FoodRepository):
    """Supabase-backed repository for imported foods.

    Inserts rely on a unique index on ``foods.name``; each upsert is a
    single PostgREST request and therefore runs in one transaction.
    """

    client: Client
    table: str = "foods"

    def list_food_names(self) -> list[str]:
        """Return the names of every stored food."""
        names: list[str] = []
        start = 0
        while True:
            response = (
                self.client.table(self.table)
                .select("name")
                .order("id")
                .range(start, start + _PAGE_SIZE - 1)
                .execute()
            )
            rows = response.data or []
            names.extend(str(row["name"]) for row in rows if row.get("name"))
            if len(rows) < _PAGE_SIZE:
                return names
            start += _PAGE_SIZE

    def insert_foods(self, records: Sequence[FoodRecord]) -> int:
        """Insert a batch, skipping names that already exist."""
        if not records:
            return 0
        response = (
            self.client.table(self.table)
            .upsert(
                [_serialize_food(record) for record in records],
                on_conflict="name",
                ignore_duplicates=True,
            )
            .execute()
        )
        return len(response.data or [])


def _serialize_food(record: FoodRecord) -> dict[str, object]:
    """Serialize a food record into a foods table row."""
    return {
        "name": record.name,
        "category": record.category.value,
        "serving_size": record.serving_size,
        "serving_unit": record.serving_unit,
        "calories": record.calories,
        "protein": record.protein,
        "carbs": record.carbs,
        "fat": record.fat,
        "fiber": record.fiber,
        "sugar": record.sugar,
        "sodium": record.sodium,
        "cholesterol": record.cholesterol,
        "brand": record.brand,
        "tags": list(record.tags),
        "is_public": record.is_public,
    }
