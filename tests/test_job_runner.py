"""Tests for background import jobs."""

import asyncio

from food_importer.domain.imports import ImportOptions, JobState
from food_importer.services.jobs import ImportJobRunner
from tests.conftest import FOOD_HEADER, build_workbook


def _runner(import_service, job_store, file_source):  # type: ignore[no-untyped-def]
    return ImportJobRunner(
        import_service=import_service, job_store=job_store, file_source=file_source
    )


def test_submit_buffer_returns_immediately_and_completes(
    import_service, job_store, file_source
) -> None:
    runner = _runner(import_service, job_store, file_source)
    buffer = build_workbook([FOOD_HEADER, ["Lentils", "Legumes", 116, 9]])

    async def scenario() -> tuple[JobState, JobState]:
        job_id = runner.submit_buffer(buffer, ImportOptions(), source="lentils.xlsx")
        initial = runner.get_job(job_id).status
        await runner.wait_for_all()
        return initial, runner.get_job(job_id).status

    initial, final = asyncio.run(scenario())

    assert initial == JobState.PENDING
    assert final == JobState.COMPLETED


def test_concurrent_jobs_are_tracked_separately(
    import_service, job_store, file_source
) -> None:
    runner = _runner(import_service, job_store, file_source)
    good = build_workbook([FOOD_HEADER, ["Tofu", "Protein", 76, 8]])

    async def scenario() -> tuple[str, str]:
        first = runner.submit_buffer(good, ImportOptions())
        second = runner.submit_buffer(b"\x00broken", ImportOptions())
        await runner.wait_for_all()
        return first, second

    first, second = asyncio.run(scenario())

    assert runner.get_job(first).status == JobState.COMPLETED
    assert runner.get_job(second).status == JobState.FAILED
    assert runner.get_job(second).progress == 100


def test_submit_url_marks_download_failures(
    import_service, job_store, file_source
) -> None:
    file_source.error = TimeoutError("timed out")
    runner = _runner(import_service, job_store, file_source)

    async def scenario() -> str:
        job_id = runner.submit_url("https://files.example.com/x.xlsx", ImportOptions())
        await runner.wait_for_all()
        return job_id

    job = runner.get_job(asyncio.run(scenario()))

    assert job.status == JobState.FAILED
    assert job.result.error_message == "Failed to download file: timed out"
    assert job.finished_at is not None


def test_download_failure_records_elapsed_time(
    import_service, job_store, file_source
) -> None:
    file_source.error = ConnectionError("reset by peer")
    file_source.delay_seconds = 0.1
    runner = _runner(import_service, job_store, file_source)
    job = runner.create_job("https://files.example.com/slow.xlsx")

    result = asyncio.run(
        runner.run_url(job.id, "https://files.example.com/slow.xlsx", ImportOptions())
    )

    assert result.success is False
    assert result.duration_seconds >= 0.05
    assert runner.get_job(job.id).result.duration_seconds == result.duration_seconds
