import csv
import uuid
from io import StringIO
from types import SimpleNamespace

import pytest

from app.models.setting import AppSetting
from app.schemas.settings import CostSettings
from app.services.ampel import evaluate_vehicle
from app.services.currency import to_aed, to_eur
from app.services.export import CSV_FIELDS, export_row, stream_csv
from app.services.settings_store import _rate_from, merge_cost_settings
from app.services.storage import guess_content_type, photo_key


def test_merge_cost_settings_overlays_defaults():
    merged = merge_cost_settings({"transport_cost": 3000, "unknown": 1, "tuv_cost": None})
    assert merged.transport_cost == 3000
    assert merged.tuv_cost == 800
    assert merged.target_profit_pct == 35
    assert merge_cost_settings(None) == CostSettings()


def test_stored_rate_is_used_when_valid():
    assert _rate_from(AppSetting(key="exchange_rate", value={"rate": 3.98})).rate == 3.98
    assert _rate_from(AppSetting(key="exchange_rate", value={"rate": 3.98})).source == "stored"


@pytest.mark.parametrize("value", [{"rate": 0}, {"rate": "4.1"}, {}, None])
def test_invalid_stored_rate_falls_back_to_default(value):
    rate = _rate_from(AppSetting(key="exchange_rate", value=value))
    assert rate.source == "default"
    assert rate.rate == 4.0
    assert _rate_from(None).source == "default"


def test_currency_conversion():
    assert to_eur(400, 4.0) == 100
    assert to_aed(100, 4.0) == 400


def _vehicle(**overrides):
    data = dict(
        id=uuid.UUID("00000000-0000-0000-0000-000000000001"),
        title="Toyota Land Cruiser 2019",
        brand="Toyota",
        model="Land Cruiser",
        vin="JTMHV05J904123456",
        status="watching",
        start_bid=50000.0,
        final_bid=None,
        market_price_de=15000.0,
        expected_resale_de=None,
        cost_inputs=None,
        reviews=[],
        ai_damage_report=None,
    )
    data.update(overrides)
    return SimpleNamespace(**data)


def test_export_row():
    vehicle = _vehicle()
    row = export_row(vehicle, evaluate_vehicle(vehicle, CostSettings(), 4.0))
    assert set(row) == set(CSV_FIELDS)
    assert row["brand"] == "Toyota"
    assert row["total_cost"] == 20162.5
    assert row["ampel_color"] == "red"
    assert row["ampel_reason"] == "Negatives Ergebnis"
    assert row["highest_risk"] is None


def test_stream_csv():
    vehicles = [_vehicle(), _vehicle(brand="Nissan", market_price_de=40000.0)]
    rows = [(vehicle, evaluate_vehicle(vehicle, CostSettings(), 4.0)) for vehicle in vehicles]
    text = "".join(stream_csv(rows))

    records = list(csv.DictReader(StringIO(text)))
    assert len(records) == 2
    assert records[0]["ampel_color"] == "red"
    assert records[1]["brand"] == "Nissan"
    assert records[1]["ampel_color"] == "green"


def test_photo_keys_are_scoped_per_vehicle():
    vehicle_id = uuid.UUID("00000000-0000-0000-0000-000000000002")
    key = photo_key(vehicle_id, "Front Left.JPG")
    assert key.startswith(f"vehicles/{vehicle_id}/photos/")
    assert key.endswith(".jpg")
    assert guess_content_type("x.png") == "image/png"
