from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ReviewCreate(BaseModel):
    mechanic_id: str = Field(min_length=1, max_length=100)
    recommendation: Literal["green", "orange", "red"] | None = None
    repair_estimate: float = Field(0, ge=0)
    risk: Literal["low", "medium", "high"] | None = None
    comment: str | None = None


class ReviewRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    vehicle_id: UUID
    mechanic_id: str
    recommendation: str | None = None
    repair_estimate: float = 0
    risk: str | None = None
    comment: str | None = None
    created_at: datetime
