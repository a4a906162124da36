import csv
from io import StringIO
from typing import Iterable

from app.models.vehicle import Vehicle
from app.services.ampel import Evaluation


VEHICLE_FIELDS = [
    "id",
    "title",
    "brand",
    "model",
    "vin",
    "status",
    "start_bid",
    "final_bid",
    "market_price_de",
]

EVALUATION_FIELDS = [
    "bid_price",
    "total_cost",
    "profit",
    "profit_pct",
    "max_bid",
    "max_bid_aed",
    "repair_estimate_source",
]

CSV_FIELDS = VEHICLE_FIELDS + EVALUATION_FIELDS + ["highest_risk", "ampel_color", "ampel_label", "ampel_reason"]


def _money(value):
    return round(value, 2) if isinstance(value, float) else value


def export_row(vehicle: Vehicle, evaluation: Evaluation) -> dict:
    row = {field: getattr(vehicle, field) for field in VEHICLE_FIELDS}
    costs = evaluation.costs
    row.update({field: _money(getattr(costs, field)) for field in EVALUATION_FIELDS})
    row["highest_risk"] = evaluation.highest_risk
    row["ampel_color"] = evaluation.ampel.color
    row["ampel_label"] = evaluation.ampel.label
    row["ampel_reason"] = evaluation.ampel.reason
    return row


def stream_csv(rows: Iterable[tuple[Vehicle, Evaluation]]):
    buffer = StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_FIELDS)
    writer.writeheader()
    yield buffer.getvalue()
    buffer.seek(0)
    buffer.truncate(0)

    for vehicle, evaluation in rows:
        writer.writerow(export_row(vehicle, evaluation))
        yield buffer.getvalue()
        buffer.seek(0)
        buffer.truncate(0)
