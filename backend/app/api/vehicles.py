import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.api.deps import EvaluationContext, get_evaluation_context, get_vehicle_or_404, load_vehicle
from app.db import get_db
from app.models.vehicle import Vehicle
from app.schemas.evaluation import EvaluationRead
from app.schemas.vehicle import VehicleCreate, VehicleListItem, VehiclePage, VehicleRead, VehicleUpdate
from app.services.ampel import Evaluation, evaluate_vehicle
from app.services.search import VehicleFilters, apply_vehicle_filters
from app.services.storage import storage_client

logger = logging.getLogger(__name__)

router = APIRouter()


def evaluation_read(evaluation: Evaluation) -> EvaluationRead:
    return EvaluationRead.model_validate(
        {
            "costs": evaluation.costs.as_dict(),
            "consensus": evaluation.consensus,
            "ampel": evaluation.ampel,
            "severity": evaluation.severity,
            "highest_risk": evaluation.highest_risk,
        },
        from_attributes=True,
    )


def list_item(vehicle: Vehicle, evaluation: Evaluation) -> VehicleListItem:
    item = VehicleListItem.model_validate(vehicle)
    return item.model_copy(
        update={
            "ampel_color": evaluation.ampel.color,
            "ampel_label": evaluation.ampel.label,
            "max_bid": evaluation.costs.max_bid,
            "max_bid_aed": evaluation.costs.max_bid_aed,
            "profit": round(evaluation.costs.profit, 2),
        }
    )


@router.get("", response_model=VehiclePage)
async def list_vehicles(
    q: str | None = None,
    status_filter: list[str] | None = Query(None, alias="status"),
    brand: str | None = None,
    bid_min: float | None = None,
    bid_max: float | None = None,
    analysis_status: str | None = None,
    ampel: str | None = Query(None, pattern="^(green|yellow|red)$"),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=200),
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
    ordered = query.options(selectinload(Vehicle.reviews)).order_by(Vehicle.created_at.desc())
    offset = (page - 1) * per_page

    if ampel:
        # the verdict is derived, so filtering happens after evaluation
        result = await db.execute(ordered)
        rows = [
            (vehicle, evaluate_vehicle(vehicle, ctx.cost_settings, ctx.rate))
            for vehicle in result.scalars().all()
        ]
        rows = [row for row in rows if row[1].ampel.color == ampel]
        items = [list_item(vehicle, evaluation) for vehicle, evaluation in rows[offset : offset + per_page]]
        return VehiclePage(items=items, page=page, per_page=per_page, total=len(rows))

    total = await db.scalar(select(func.count()).select_from(query.subquery()))
    result = await db.execute(ordered.offset(offset).limit(per_page))
    items = [
        list_item(vehicle, evaluate_vehicle(vehicle, ctx.cost_settings, ctx.rate))
        for vehicle in result.scalars().all()
    ]
    return VehiclePage(items=items, page=page, per_page=per_page, total=total or 0)


@router.post("", response_model=VehicleRead, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    payload: VehicleCreate,
    db: AsyncSession = Depends(get_db),
    ctx: EvaluationContext = Depends(get_evaluation_context),
):
    data = payload.model_dump(exclude={"cost_inputs"})
    cost_inputs = payload.cost_inputs or ctx.cost_settings.cost_inputs()
    if data.get("market_price_de") is None and ctx.cost_settings.default_market_price_de:
        data["market_price_de"] = ctx.cost_settings.default_market_price_de

    vehicle = Vehicle(**data, cost_inputs=cost_inputs.model_dump(), photo_keys=[])
    db.add(vehicle)
    await db.commit()
    logger.info("Created vehicle %s", vehicle.id)
    return await load_vehicle(db, vehicle.id)


@router.get("/{vehicle_id}", response_model=VehicleRead)
async def get_vehicle(vehicle: Vehicle = Depends(get_vehicle_or_404)):
    return vehicle


@router.patch("/{vehicle_id}", response_model=VehicleRead)
async def update_vehicle(
    payload: VehicleUpdate,
    vehicle: Vehicle = Depends(get_vehicle_or_404),
    db: AsyncSession = Depends(get_db),
):
    data = payload.model_dump(exclude_unset=True)
    if "cost_inputs" in data:
        data["cost_inputs"] = payload.cost_inputs.model_dump() if payload.cost_inputs else None
    if data.get("status") is None:
        data.pop("status", None)
    for key, value in data.items():
        setattr(vehicle, key, value)

    await db.commit()
    return await load_vehicle(db, vehicle.id)


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vehicle(
    vehicle: Vehicle = Depends(get_vehicle_or_404),
    db: AsyncSession = Depends(get_db),
):
    vehicle_id = vehicle.id
    await db.delete(vehicle)
    await db.commit()
    if vehicle.photo_keys:
        storage_client.delete_prefix(f"vehicles/{vehicle_id}/")
    logger.info("Deleted vehicle %s", vehicle_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{vehicle_id}/evaluation", response_model=EvaluationRead)
async def get_vehicle_evaluation(
    vehicle: Vehicle = Depends(get_vehicle_or_404),
    ctx: EvaluationContext = Depends(get_evaluation_context),
):
    try:
        evaluation = evaluate_vehicle(vehicle, ctx.cost_settings, ctx.rate)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return evaluation_read(evaluation)
