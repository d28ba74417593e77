"""
Upload router for starting policy imports and polling their status.
"""

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from policy_import.schemas import UploadAccepted, ImportStatusResponse
from policy_import.deps import get_import_registry, read_upload_as_csv
from policy_import.services.jobs import ImportJobRegistry

router = APIRouter()

@router.post("/upload", response_model=UploadAccepted, status_code=status.HTTP_202_ACCEPTED)
async def upload_file(
    file: UploadFile = File(..., description="CSV or XLSX policy export"),
    registry: ImportJobRegistry = Depends(get_import_registry)
):
    """
    Upload a policy export and import it in the background.

    The import runs in a separate worker process; this endpoint returns as
    soon as the worker is started. Use GET /v1/imports/{import_id} to follow
    its progress.
    """
    csv_text = await read_upload_as_csv(file)
    job = registry.start(csv_text, file.filename)

    return UploadAccepted(
        message="File upload successful. Processing started.",
        file=job.file,
        import_id=job.import_id
    )

@router.get("/imports/{import_id}", response_model=ImportStatusResponse)
async def get_import_status(
    import_id: str,
    registry: ImportJobRegistry = Depends(get_import_registry)
):
    """Current state of an import job."""
    job = registry.get(import_id)
    if not job:
        raise HTTPException(status_code=404, detail="Import not found")

    return ImportStatusResponse(
        import_id=job.import_id,
        file=job.file,
        state=job.state.value,
        processed=job.processed,
        total=job.total,
        errors=job.errors,
        errors_list=job.errors_list,
        error=job.error,
        started_at=job.started_at,
        finished_at=job.finished_at
    )
