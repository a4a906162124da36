from app.services.ampel import AmpelStatus, evaluate_vehicle, get_ampel_status
from app.services.consensus import get_highest_risk, get_review_consensus
from app.services.costing import CostBreakdown, calculate_costs
from app.services.export import stream_csv
from app.services.queue import enqueue_analysis
from app.services.search import VehicleFilters, apply_vehicle_filters
from app.services.storage import photo_key, storage_client

__all__ = [
    "AmpelStatus",
    "evaluate_vehicle",
    "get_ampel_status",
    "get_highest_risk",
    "get_review_consensus",
    "CostBreakdown",
    "calculate_costs",
    "stream_csv",
    "enqueue_analysis",
    "VehicleFilters",
    "apply_vehicle_filters",
    "photo_key",
    "storage_client",
]
