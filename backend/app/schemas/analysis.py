from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from app.schemas.damage import DamageReport


class AnalysisStatus(BaseModel):
    vehicle_id: UUID
    status: str | None = None
    error_message: str | None = None
    retry_count: int = 0
    started_at: datetime | None = None
    completed_at: datetime | None = None
    report: DamageReport | None = None


class AnalysisQueued(BaseModel):
    vehicle_id: UUID
    status: str
    photos: int


class PhotoUploadResponse(BaseModel):
    vehicle_id: UUID
    photo_keys: list[str]
    uploaded: int
