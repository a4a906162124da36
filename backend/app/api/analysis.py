import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_vehicle_or_404
from app.config import settings
from app.db import get_db
from app.models.vehicle import Vehicle
from app.schemas.analysis import AnalysisQueued, AnalysisStatus, PhotoUploadResponse
from app.services.queue import enqueue_analysis
from app.services.storage import photo_key, storage_client

logger = logging.getLogger(__name__)

router = APIRouter()

ACTIVE_ANALYSIS_STATES = ("queued", "analyzing")


@router.post("/{vehicle_id}/photos", response_model=PhotoUploadResponse)
async def upload_photos(
    files: list[UploadFile] = File(...),
    vehicle: Vehicle = Depends(get_vehicle_or_404),
    db: AsyncSession = Depends(get_db),
):
    max_bytes = settings.UPLOAD_MAX_SIZE_MB * 1024 * 1024
    uploads = []
    for upload in files:
        data = await upload.read()
        await upload.close()
        if len(data) > max_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File too large: {upload.filename}",
            )
        if not (upload.content_type or "").startswith("image/"):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Not an image: {upload.filename}",
            )
        uploads.append((upload, data))

    keys = list(vehicle.photo_keys or [])
    for upload, data in uploads:
        key = photo_key(str(vehicle.id), upload.filename)
        storage_client.upload_bytes(key, data, upload.content_type)
        keys.append(key)

    vehicle.photo_keys = keys
    await db.commit()
    return PhotoUploadResponse(vehicle_id=vehicle.id, photo_keys=keys, uploaded=len(uploads))


@router.post("/{vehicle_id}/analysis", response_model=AnalysisQueued, status_code=status.HTTP_202_ACCEPTED)
async def start_analysis(
    vehicle: Vehicle = Depends(get_vehicle_or_404),
    db: AsyncSession = Depends(get_db),
):
    if not vehicle.photo_keys:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Vehicle has no photos")
    if vehicle.analysis_status in ACTIVE_ANALYSIS_STATES:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Analysis already running")

    vehicle.analysis_status = "queued"
    vehicle.analysis_error = None
    vehicle.analysis_started_at = None
    vehicle.analysis_completed_at = None
    await db.commit()

    enqueue_analysis(str(vehicle.id))
    logger.info("Queued damage analysis for vehicle %s", vehicle.id)
    return AnalysisQueued(vehicle_id=vehicle.id, status="queued", photos=len(vehicle.photo_keys))


@router.get("/{vehicle_id}/analysis", response_model=AnalysisStatus)
async def get_analysis(vehicle: Vehicle = Depends(get_vehicle_or_404)):
    return AnalysisStatus(
        vehicle_id=vehicle.id,
        status=vehicle.analysis_status,
        error_message=vehicle.analysis_error,
        retry_count=vehicle.analysis_retry_count or 0,
        started_at=vehicle.analysis_started_at,
        completed_at=vehicle.analysis_completed_at,
        report=vehicle.ai_damage_report,
    )
