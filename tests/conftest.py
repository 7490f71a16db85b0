"""Shared test fixtures."""

import asyncio
import io
from collections.abc import Sequence
from dataclasses import dataclass, field

import pytest
import xlwt
from openpyxl import Workbook

from food_importer.adapters.spreadsheet_reader import OpenpyxlSpreadsheetReader
from food_importer.config import Settings
from food_importer.containers import AppContainer
from food_importer.domain.foods import FoodRecord, food_name_key
from food_importer.services.importer import FoodImportService, FoodRepository
from food_importer.services.job_store import InMemoryImportJobStore
from food_importer.services.jobs import ImportJobRunner


@dataclass
class InMemoryFoodRepository(FoodRepository):
    """In-memory foods table that skips duplicate names like the database."""

    foods: list[FoodRecord] = field(default_factory=list)
    insert_calls: list[list[FoodRecord]] = field(default_factory=list)
    name_queries: int = 0
    fail_on_batches: set[int] = field(default_factory=set)

    def list_food_names(self) -> list[str]:
        self.name_queries += 1
        return [food.name for food in self.foods]

    def insert_foods(self, records: Sequence[FoodRecord]) -> int:
        self.insert_calls.append(list(records))
        if len(self.insert_calls) in self.fail_on_batches:
            raise RuntimeError("connection reset")
        existing = {food.name_key for food in self.foods}
        inserted = 0
        for record in records:
            key = food_name_key(record.name)
            if key in existing:
                continue
            existing.add(key)
            self.foods.append(record)
            inserted += 1
        return inserted


@dataclass
class FakeFileSource:
    """File source returning canned bytes or raising a canned error."""

    content: bytes = b""
    error: Exception | None = None
    delay_seconds: float = 0.0
    requested: list[str] = field(default_factory=list)

    async def fetch(self, url: str) -> bytes:
        self.requested.append(url)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error
        return self.content


def build_workbook(rows: Sequence[Sequence[object]], title: str = "Foods") -> bytes:
    """Build an XLSX file in memory from a list of rows."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = title
    for row in rows:
        sheet.append(list(row))
    output = io.BytesIO()
    workbook.save(output)
    return output.getvalue()


def build_legacy_workbook(
    rows: Sequence[Sequence[object]], title: str = "Foods"
) -> bytes:
    """Build an Excel 97-2003 XLS file in memory from a list of rows."""
    workbook = xlwt.Workbook()
    sheet = workbook.add_sheet(title)
    for row_index, row in enumerate(rows):
        for column_index, value in enumerate(row):
            if value is not None:
                sheet.write(row_index, column_index, value)
    output = io.BytesIO()
    workbook.save(output)
    return output.getvalue()


FOOD_HEADER = ["name", "category", "calories", "protein", "carbs", "fat", "tags"]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        admin_token="admin-token",
    )


@pytest.fixture
def food_repository() -> InMemoryFoodRepository:
    return InMemoryFoodRepository()


@pytest.fixture
def job_store() -> InMemoryImportJobStore:
    return InMemoryImportJobStore()


@pytest.fixture
def import_service(
    food_repository: InMemoryFoodRepository, job_store: InMemoryImportJobStore
) -> FoodImportService:
    return FoodImportService(
        repository=food_repository,
        reader=OpenpyxlSpreadsheetReader(),
        job_store=job_store,
        default_batch_size=100,
    )


@pytest.fixture
def file_source() -> FakeFileSource:
    return FakeFileSource()


@pytest.fixture
def container(
    settings: Settings,
    job_store: InMemoryImportJobStore,
    import_service: FoodImportService,
    file_source: FakeFileSource,
) -> AppContainer:
    job_runner = ImportJobRunner(
        import_service=import_service,
        job_store=job_store,
        file_source=file_source,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        job_store=job_store,
        import_service=import_service,
        job_runner=job_runner,
        close_resources=close_resources,
    )
