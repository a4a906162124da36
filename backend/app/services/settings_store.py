import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from app.models.setting import AppSetting
from app.schemas.settings import CostSettings, CostSettingsUpdate, ExchangeRateRead
from app.services.currency import default_rate

logger = logging.getLogger(__name__)

COST_DEFAULTS_KEY = "cost_defaults"
EXCHANGE_RATE_KEY = "exchange_rate"


def merge_cost_settings(stored: dict | None) -> CostSettings:
    """Overlay stored values on the built-in defaults. Unknown keys are dropped."""
    merged = CostSettings().model_dump()
    for key, value in (stored or {}).items():
        if key in merged and value is not None:
            merged[key] = value
    return CostSettings(**merged)


def _rate_from(row: AppSetting | None) -> ExchangeRateRead:
    if row is not None:
        rate = (row.value or {}).get("rate")
        if isinstance(rate, (int, float)) and rate > 0:
            return ExchangeRateRead(rate=float(rate), source="stored", updated_at=row.updated_at)
        logger.warning("Ignoring invalid stored exchange rate: %r", row.value)
    return ExchangeRateRead(rate=default_rate(), source="default")


async def _put(db: AsyncSession, key: str, value: dict) -> AppSetting:
    row = await db.get(AppSetting, key)
    if row is None:
        row = AppSetting(key=key, value=value)
        db.add(row)
    else:
        row.value = value
    await db.commit()
    await db.refresh(row)
    return row


async def get_cost_settings(db: AsyncSession) -> CostSettings:
    row = await db.get(AppSetting, COST_DEFAULTS_KEY)
    return merge_cost_settings(row.value if row else None)


async def update_cost_settings(db: AsyncSession, payload: CostSettingsUpdate) -> CostSettings:
    current = await get_cost_settings(db)
    merged = current.model_copy(update=payload.model_dump(exclude_unset=True, exclude_none=True))
    await _put(db, COST_DEFAULTS_KEY, merged.model_dump())
    return merged


async def get_exchange_rate(db: AsyncSession) -> ExchangeRateRead:
    return _rate_from(await db.get(AppSetting, EXCHANGE_RATE_KEY))


async def set_exchange_rate(db: AsyncSession, rate: float) -> ExchangeRateRead:
    row = await _put(db, EXCHANGE_RATE_KEY, {"rate": rate})
    return _rate_from(row)


def get_exchange_rate_sync(session: Session) -> float:
    return _rate_from(session.get(AppSetting, EXCHANGE_RATE_KEY)).rate
