from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_db
from app.schemas.settings import CostSettings, CostSettingsUpdate, ExchangeRateRead, ExchangeRateUpdate
from app.services import settings_store

router = APIRouter()


@router.get("/cost-defaults", response_model=CostSettings)
async def get_cost_defaults(db: AsyncSession = Depends(get_db)):
    return await settings_store.get_cost_settings(db)


@router.put("/cost-defaults", response_model=CostSettings)
async def update_cost_defaults(payload: CostSettingsUpdate, db: AsyncSession = Depends(get_db)):
    return await settings_store.update_cost_settings(db, payload)


@router.get("/exchange-rate", response_model=ExchangeRateRead)
async def get_exchange_rate(db: AsyncSession = Depends(get_db)):
    return await settings_store.get_exchange_rate(db)


@router.put("/exchange-rate", response_model=ExchangeRateRead)
async def update_exchange_rate(payload: ExchangeRateUpdate, db: AsyncSession = Depends(get_db)):
    return await settings_store.set_exchange_rate(db, payload.rate)
