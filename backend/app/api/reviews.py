import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_vehicle_or_404
from app.db import get_db
from app.models.review import MechanicReview
from app.models.vehicle import Vehicle
from app.schemas.review import ReviewCreate, ReviewRead

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{vehicle_id}/reviews", response_model=list[ReviewRead])
async def list_reviews(vehicle: Vehicle = Depends(get_vehicle_or_404)):
    return vehicle.reviews


@router.post(
    "/{vehicle_id}/reviews", response_model=ReviewRead, status_code=status.HTTP_201_CREATED
)
async def create_review(
    payload: ReviewCreate,
    vehicle: Vehicle = Depends(get_vehicle_or_404),
    db: AsyncSession = Depends(get_db),
):
    review = MechanicReview(vehicle_id=vehicle.id, **payload.model_dump())
    db.add(review)
    await db.commit()
    await db.refresh(review)
    logger.info(
        "Review by %s on vehicle %s: %s", review.mechanic_id, vehicle.id, review.recommendation
    )
    return review
