from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.api.deps import EvaluationContext, get_evaluation_context
from app.db import get_db
from app.models.vehicle import Vehicle
from app.services.ampel import evaluate_vehicle
from app.services.export import stream_csv
from app.services.search import VehicleFilters, apply_vehicle_filters

router = APIRouter()


@router.get("/vehicles.csv")
async def export_vehicles(
    q: str | None = None,
    status_filter: list[str] | None = Query(None, alias="status"),
    brand: str | None = None,
    bid_min: float | None = None,
    bid_max: float | None = None,
    analysis_status: str | None = None,
    db: AsyncSession = Depends(get_db),
    ctx: EvaluationContext = Depends(get_evaluation_context),
):
    filters = VehicleFilters(
        q=q,
        status=status_filter,
        brand=brand,
        bid_min=bid_min,
        bid_max=bid_max,
        analysis_status=analysis_status,
    )
    query = apply_vehicle_filters(select(Vehicle), filters)
    result = await db.execute(
        query.options(selectinload(Vehicle.reviews)).order_by(Vehicle.created_at.desc())
    )
    rows = [
        (vehicle, evaluate_vehicle(vehicle, ctx.cost_settings, ctx.rate))
        for vehicle in result.scalars().all()
    ]

    headers = {"Content-Disposition": "attachment; filename=vehicles.csv"}
    return StreamingResponse(stream_csv(rows), media_type="text/csv", headers=headers)
