from sqlalchemy import select
from sqlalchemy.dialects import postgresql

from app.models.vehicle import Vehicle
from app.services.search import VehicleFilters, apply_vehicle_filters


def _sql(filters: VehicleFilters) -> str:
    query = apply_vehicle_filters(select(Vehicle), filters)
    return str(query.compile(dialect=postgresql.dialect()))


def test_bid_range_uses_final_bid_before_start_bid():
    sql = _sql(VehicleFilters(bid_min=10000, bid_max=60000))
    assert "coalesce(vehicles.final_bid, vehicles.start_bid) >=" in sql
    assert "coalesce(vehicles.final_bid, vehicles.start_bid) <=" in sql


def test_no_filters_leave_query_untouched():
    assert "WHERE" not in _sql(VehicleFilters())


def test_text_status_and_analysis_filters():
    sql = _sql(VehicleFilters(q="land cruiser", status=["watching"], analysis_status="done"))
    assert "vehicles.search_text ILIKE" in sql
    assert "vehicles.status IN" in sql
    assert "vehicles.analysis_status =" in sql
