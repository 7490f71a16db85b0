"""Food import API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    File,
    Form,
    Header,
    HTTPException,
    Request,
    UploadFile,
    status,
)
from pydantic import AnyHttpUrl, BaseModel, Field

from food_importer.domain.imports import ColumnMapping, ImportOptions

if TYPE_CHECKING:
    from food_importer.containers import AppContainer

router = APIRouter(prefix="/imports", tags=["imports"])

MAX_BATCH_SIZE = 1000


class UrlImportRequest(BaseModel):
    """Request body for importing a spreadsheet hosted at a URL."""

    file_url: AnyHttpUrl
    batch_size: int | None = Field(default=None, ge=1, le=MAX_BATCH_SIZE)
    dry_run: bool = False
    column_mapping: ColumnMapping = ColumnMapping.FIXED
    sheet_name: str | None = None
    brand: str | None = None


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


def _build_options(  # noqa: PLR0913
    container: AppContainer,
    batch_size: int | None,
    dry_run: bool,
    column_mapping: ColumnMapping,
    sheet_name: str | None,
    brand: str | None,
) -> ImportOptions:
    return ImportOptions(
        batch_size=batch_size or container.settings.import_batch_size,
        dry_run=dry_run,
        column_mapping=column_mapping,
        sheet_name=sheet_name or None,
        brand=brand or container.settings.default_brand,
    )


def _accepted(job_id: str) -> dict[str, str]:
    return {
        "job_id": job_id,
        "status": "pending",
        "message": f"Import started. Poll /imports/jobs/{job_id} for status.",
    }


@router.post(
    "/foods/upload",
    status_code=status.HTTP_202_ACCEPTED,
    dependencies=[Depends(require_admin)],
)
async def upload_foods(  # noqa: PLR0913
    request: Request,
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    batch_size: int | None = Form(default=None, ge=1, le=MAX_BATCH_SIZE),
    dry_run: bool = Form(default=False),
    column_mapping: ColumnMapping = Form(default=ColumnMapping.FIXED),
    sheet_name: str | None = Form(default=None),
    brand: str | None = Form(default=None),
) -> dict[str, str]:
    """Start an import from an uploaded spreadsheet."""
    container: AppContainer = request.app.state.container
    max_bytes = container.settings.max_upload_bytes
    buffer = await file.read(max_bytes + 1)
    if len(buffer) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds {max_bytes} bytes",
        )
    if not buffer:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded"
        )
    options = _build_options(
        container, batch_size, dry_run, column_mapping, sheet_name, brand
    )
    runner = container.job_runner
    job = runner.create_job(source=file.filename)
    background_tasks.add_task(runner.run_buffer, job.id, buffer, options)
    return _accepted(job.id)


@router.post(
    "/foods",
    status_code=status.HTTP_202_ACCEPTED,
    dependencies=[Depends(require_admin)],
)
async def import_foods_from_url(
    payload: UrlImportRequest,
    request: Request,
    background_tasks: BackgroundTasks,
) -> dict[str, str]:
    """Start an import from a spreadsheet URL."""
    container: AppContainer = request.app.state.container
    options = _build_options(
        container,
        payload.batch_size,
        payload.dry_run,
        payload.column_mapping,
        payload.sheet_name,
        payload.brand,
    )
    url = str(payload.file_url)
    runner = container.job_runner
    job = runner.create_job(source=url)
    background_tasks.add_task(runner.run_url, job.id, url, options)
    return _accepted(job.id)


@router.get("/jobs/{job_id}", dependencies=[Depends(require_admin)])
async def get_import_job(job_id: str, request: Request) -> dict[str, object]:
    """Return the current status of an import job."""
    container: AppContainer = request.app.state.container
    job = container.job_runner.get_job(job_id)
    if job is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Import job not found"
        )
    return job.to_dict()
