"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from food_importer.adapters.http_file_source import HttpxFileSource
from food_importer.adapters.spreadsheet_reader import OpenpyxlSpreadsheetReader
from food_importer.adapters.supabase_food_repository import SupabaseFoodRepository
from food_importer.config import Settings
from food_importer.services.importer import FoodImportService
from food_importer.services.job_store import ImportJobStore, InMemoryImportJobStore
from food_importer.services.jobs import ImportJobRunner


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    job_store: ImportJobStore
    import_service: FoodImportService
    job_runner: ImportJobRunner
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    food_repository = SupabaseFoodRepository(
        supabase_client, table=resolved_settings.foods_table
    )
    job_store = InMemoryImportJobStore(ttl_seconds=resolved_settings.job_ttl_seconds)
    import_service = FoodImportService(
        repository=food_repository,
        reader=OpenpyxlSpreadsheetReader(),
        job_store=job_store,
        default_batch_size=resolved_settings.import_batch_size,
    )
    file_source = HttpxFileSource.create(
        max_bytes=resolved_settings.max_upload_bytes,
        timeout_seconds=resolved_settings.fetch_timeout_seconds,
    )
    job_runner = ImportJobRunner(
        import_service=import_service,
        job_store=job_store,
        file_source=file_source,
    )

    async def close_resources() -> None:
        await job_runner.wait_for_all()
        await file_source.close()

    return AppContainer(
        settings=resolved_settings,
        job_store=job_store,
        import_service=import_service,
        job_runner=job_runner,
        close_resources=close_resources,
    )
