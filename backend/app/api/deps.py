import uuid
from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.db import get_db
from app.models.vehicle import Vehicle
from app.schemas.settings import CostSettings
from app.services.settings_store import get_cost_settings, get_exchange_rate


@dataclass
class EvaluationContext:
    cost_settings: CostSettings
    rate: float


async def get_evaluation_context(db: AsyncSession = Depends(get_db)) -> EvaluationContext:
    cost_settings = await get_cost_settings(db)
    exchange_rate = await get_exchange_rate(db)
    return EvaluationContext(cost_settings=cost_settings, rate=exchange_rate.rate)


async def load_vehicle(db: AsyncSession, vehicle_id: uuid.UUID) -> Vehicle | None:
    result = await db.execute(
        select(Vehicle)
        .options(selectinload(Vehicle.reviews))
        .where(Vehicle.id == vehicle_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_vehicle_or_404(
    vehicle_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> Vehicle:
    vehicle = await load_vehicle(db, vehicle_id)
    if not vehicle:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vehicle not found")
    return vehicle
