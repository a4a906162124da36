from types import SimpleNamespace

import pytest

from app.schemas.settings import CostSettings
from app.services.costing import (
    LOADED_COST_MULTIPLIER,
    as_financials,
    calculate_costs,
    repair_estimate,
    round_down_bid,
)


def _vehicle(**overrides):
    data = {
        "start_bid": None,
        "final_bid": None,
        "market_price_de": None,
        "expected_resale_de": None,
        "cost_inputs": None,
        "reviews": [],
        "ai_damage_report": None,
    }
    data.update(overrides)
    return data


def test_landed_cost_for_default_settings_and_no_reviews():
    costs = calculate_costs(_vehicle(start_bid=50000, market_price_de=15000), CostSettings(), rate=4.0)

    assert costs.bid_price_aed == 50000
    assert costs.bid_price == pytest.approx(12500)
    assert costs.duty == pytest.approx(1250)
    assert costs.vat_base == pytest.approx(13750)
    assert costs.vat == pytest.approx(2612.5)
    assert costs.other_costs == pytest.approx(3800)
    assert costs.total_cost == pytest.approx(20162.5)
    assert costs.profit == pytest.approx(-5162.5)
    assert costs.profit_pct == pytest.approx(-5162.5 / 15000 * 100)
    assert costs.target_profit == pytest.approx(5250)
    assert costs.repair_estimate_source == "none"
    assert costs.repair_estimate_count == 0
    assert costs.max_bid == 4350
    assert costs.max_bid_aed == 17400
    assert costs.exchange_rate_used == 4.0


def test_loaded_cost_multiplier():
    assert LOADED_COST_MULTIPLIER == pytest.approx(1.309)


def test_max_bid_rounds_down_to_fifty():
    assert round_down_bid(17842.37) == 17800
    assert round_down_bid(17850) == 17850
    assert round_down_bid(49.99) == 0


@pytest.mark.parametrize("raw", [0.0, 12.5, 99.99, 1234.56, 17842.37, 50000.01])
def test_max_bid_is_non_negative_multiple_not_above_raw(raw):
    bid = round_down_bid(raw)
    assert bid >= 0
    assert bid % 50 == 0
    assert bid <= raw


def test_max_bid_never_negative():
    assert round_down_bid(-1234.0) == 0
    costs = calculate_costs(_vehicle(start_bid=10000), CostSettings(), rate=4.0)
    assert costs.max_bid_raw < 0
    assert costs.max_bid == 0


def test_max_bid_from_market_price():
    costs = calculate_costs(_vehicle(market_price_de=30000), CostSettings(), rate=4.0)
    # (30000 - 10500 - 200 - 3800) / 1.309
    assert costs.max_bid_raw == pytest.approx(15500 / 1.309)
    assert costs.max_bid == 11800
    assert costs.max_bid_aed == 47200


def test_final_bid_wins_over_start_bid():
    costs = calculate_costs(_vehicle(start_bid=40000, final_bid=48000), rate=4.0)
    assert costs.bid_price_aed == 48000
    assert costs.bid_price == pytest.approx(12000)


def test_legacy_resale_price_used_when_market_price_missing():
    costs = calculate_costs(_vehicle(expected_resale_de=20000), rate=4.0)
    assert costs.market_price == 20000

    costs = calculate_costs(_vehicle(market_price_de=18000, expected_resale_de=20000), rate=4.0)
    assert costs.market_price == 18000


def test_camel_case_vehicle_is_accepted():
    legacy = {
        "startBid": 50000,
        "marketPriceDE": 15000,
        "costInputs": {"transportCost": 2500, "tuvCost": 800, "miscCost": 500, "repairBufferPct": 15},
        "reviews": [{"recommendation": "green", "repairEstimate": 1000}],
        "aiDamageReport": {"estimatedRepairCost": 1200},
    }
    costs = calculate_costs(legacy, rate=4.0)
    assert costs.bid_price == pytest.approx(12500)
    assert costs.repair_estimate_source == "mechanic"
    assert costs.repair_buffered == pytest.approx(1150)


def test_repair_estimate_prefers_mechanic_mean():
    vehicle = as_financials(
        _vehicle(
            reviews=[
                {"recommendation": "green", "repair_estimate": 1000},
                {"recommendation": "orange", "repair_estimate": 2000},
                {"recommendation": "red", "repair_estimate": 0},
            ],
            ai_damage_report={"estimated_repair_cost": 5000},
        )
    )
    estimate = repair_estimate(vehicle)
    assert estimate.source == "mechanic"
    assert estimate.value == pytest.approx(1500)
    assert estimate.count == 2


def test_repair_estimate_falls_back_to_ai_report():
    costs = calculate_costs(
        _vehicle(
            reviews=[{"recommendation": "green", "repair_estimate": 0}],
            ai_damage_report={"estimated_repair_cost": 1200},
        ),
        rate=4.0,
    )
    assert costs.repair_estimate_source == "ai"
    assert costs.repair_estimate_avg == 1200
    assert costs.repair_estimate_count == 1
    assert costs.repair_buffered == pytest.approx(1380)


def test_missing_cost_inputs_fields_degrade_to_zero():
    costs = calculate_costs(_vehicle(cost_inputs={"transport_cost": 1000, "tuv_cost": None}), rate=4.0)
    assert costs.transport_cost == 1000
    assert costs.tuv_cost == 0
    assert costs.misc_cost == 0
    assert costs.repair_buffer_pct == 15
    assert costs.other_costs == pytest.approx(1000)


def test_missing_cost_inputs_use_settings_defaults():
    settings = CostSettings(transport_cost=3000, tuv_cost=0, misc_cost=0, repair_buffer_pct=20)
    costs = calculate_costs(
        _vehicle(ai_damage_report={"estimated_repair_cost": 1000}), settings, rate=4.0
    )
    assert costs.other_costs == pytest.approx(3000 + 1200)


def test_zero_totals_do_not_divide():
    zero_inputs = {"transport_cost": 0, "tuv_cost": 0, "misc_cost": 0}
    costs = calculate_costs(_vehicle(cost_inputs=zero_inputs), rate=4.0)
    assert costs.total_cost == 0
    assert costs.roi_pct == 0
    assert costs.profit_pct == 0


def test_orm_like_objects_are_accepted():
    vehicle = SimpleNamespace(
        start_bid=40000,
        final_bid=None,
        market_price_de=16000,
        expected_resale_de=None,
        cost_inputs=None,
        reviews=[SimpleNamespace(recommendation="green", repair_estimate=800, risk="low")],
        ai_damage_report=None,
    )
    costs = calculate_costs(vehicle, rate=4.0)
    assert costs.bid_price == pytest.approx(10000)
    assert costs.repair_estimate_avg == 800


def test_custom_rate_and_target_profit():
    settings = CostSettings(target_profit_pct=20, safety_deduction=0)
    costs = calculate_costs(_vehicle(start_bid=45000, market_price_de=20000), settings, rate=4.5)
    assert costs.bid_price == pytest.approx(10000)
    assert costs.target_profit == pytest.approx(4000)
    assert costs.exchange_rate_used == 4.5


def test_non_positive_rate_is_rejected():
    with pytest.raises(ValueError):
        calculate_costs(_vehicle(start_bid=1000), rate=0)
