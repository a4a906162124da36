from typing import Iterable

from sqlalchemy import Select, func

from app.models.vehicle import Vehicle


class VehicleFilters:
    def __init__(
        self,
        q: str | None = None,
        status: Iterable[str] | None = None,
        brand: str | None = None,
        bid_min: float | None = None,
        bid_max: float | None = None,
        analysis_status: str | None = None,
    ) -> None:
        self.q = q
        self.status = list(status) if status else None
        self.brand = brand
        self.bid_min = bid_min
        self.bid_max = bid_max
        self.analysis_status = analysis_status


def bid_price_aed():
    """The final bid when set, otherwise the start bid."""
    return func.coalesce(Vehicle.final_bid, Vehicle.start_bid)


def apply_vehicle_filters(query: Select, filters: VehicleFilters) -> Select:
    if filters.q:
        query = query.where(Vehicle.search_text.ilike(f"%{filters.q}%"))
    if filters.status:
        query = query.where(Vehicle.status.in_(filters.status))
    if filters.brand:
        query = query.where(Vehicle.brand.ilike(filters.brand))
    if filters.bid_min is not None:
        query = query.where(bid_price_aed() >= filters.bid_min)
    if filters.bid_max is not None:
        query = query.where(bid_price_aed() <= filters.bid_max)
    if filters.analysis_status:
        query = query.where(Vehicle.analysis_status == filters.analysis_status)
    return query
