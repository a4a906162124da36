import math
from dataclasses import asdict, dataclass
from typing import Any

from app.schemas.settings import CostSettings
from app.schemas.vehicle import VehicleFinancials
from app.services.currency import DEFAULT_EUR_AED_RATE, to_aed, to_eur

DUTY_RATE = 0.10
VAT_RATE = 0.19
# 1 + duty + VAT on (bid + duty): the fully loaded cost of one euro of bid
LOADED_COST_MULTIPLIER = 1 + DUTY_RATE + VAT_RATE * (1 + DUTY_RATE)
MAX_BID_STEP = 50


@dataclass
class RepairEstimate:
    value: float
    source: str
    count: int


@dataclass
class CostBreakdown:
    bid_price_aed: float
    bid_price: float
    market_price: float
    target_profit_pct: float
    target_profit: float
    safety_deduction: float
    duty: float
    vat_base: float
    vat: float
    transport_cost: float
    tuv_cost: float
    misc_cost: float
    repair_estimate_avg: float
    repair_estimate_source: str
    repair_estimate_count: int
    repair_buffer_pct: float
    repair_buffered: float
    other_costs: float
    total_cost: float
    profit: float
    roi_pct: float
    profit_pct: float
    max_bid_raw: float
    max_bid: float
    max_bid_aed: float
    exchange_rate_used: float

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def as_financials(vehicle: Any) -> VehicleFinancials:
    if isinstance(vehicle, VehicleFinancials):
        return vehicle
    return VehicleFinancials.model_validate(vehicle)


def repair_estimate(vehicle: VehicleFinancials) -> RepairEstimate:
    """Mechanic estimates win over the AI estimate; only positive values count."""
    estimates = [review.repair_estimate for review in vehicle.reviews if review.repair_estimate > 0]
    if estimates:
        return RepairEstimate(
            value=sum(estimates) / len(estimates), source="mechanic", count=len(estimates)
        )

    report = vehicle.ai_damage_report
    if report is not None and report.estimated_repair_cost > 0:
        return RepairEstimate(value=report.estimated_repair_cost, source="ai", count=1)

    return RepairEstimate(value=0.0, source="none", count=0)


def round_down_bid(raw: float) -> float:
    return max(0.0, float(math.floor(raw / MAX_BID_STEP) * MAX_BID_STEP))


def calculate_costs(
    vehicle: Any,
    cost_settings: CostSettings | None = None,
    rate: float = DEFAULT_EUR_AED_RATE,
) -> CostBreakdown:
    if rate is None or rate <= 0:
        raise ValueError("exchange rate must be positive")

    cost_settings = cost_settings or CostSettings()
    vehicle = as_financials(vehicle)
    inputs = vehicle.cost_inputs or cost_settings.cost_inputs()

    bid_price_aed = vehicle.bid_price_aed
    bid_price = to_eur(bid_price_aed, rate)
    market_price = vehicle.resale_price
    target_profit = market_price * cost_settings.target_profit_pct / 100

    duty = bid_price * DUTY_RATE
    vat_base = bid_price + duty
    vat = vat_base * VAT_RATE

    repair = repair_estimate(vehicle)
    repair_buffered = repair.value * (1 + inputs.repair_buffer_pct / 100)

    other_costs = inputs.transport_cost + inputs.tuv_cost + inputs.misc_cost + repair_buffered
    total_cost = bid_price + duty + vat + other_costs

    profit = market_price - total_cost
    roi_pct = profit / total_cost * 100 if total_cost else 0.0
    profit_pct = profit / market_price * 100 if market_price else 0.0

    max_bid_raw = (
        market_price - target_profit - cost_settings.safety_deduction - other_costs
    ) / LOADED_COST_MULTIPLIER
    max_bid = round_down_bid(max_bid_raw)

    return CostBreakdown(
        bid_price_aed=bid_price_aed,
        bid_price=bid_price,
        market_price=market_price,
        target_profit_pct=cost_settings.target_profit_pct,
        target_profit=target_profit,
        safety_deduction=cost_settings.safety_deduction,
        duty=duty,
        vat_base=vat_base,
        vat=vat,
        transport_cost=inputs.transport_cost,
        tuv_cost=inputs.tuv_cost,
        misc_cost=inputs.misc_cost,
        repair_estimate_avg=repair.value,
        repair_estimate_source=repair.source,
        repair_estimate_count=repair.count,
        repair_buffer_pct=inputs.repair_buffer_pct,
        repair_buffered=repair_buffered,
        other_costs=other_costs,
        total_cost=total_cost,
        profit=profit,
        roi_pct=roi_pct,
        profit_pct=profit_pct,
        max_bid_raw=max_bid_raw,
        max_bid=max_bid,
        max_bid_aed=to_aed(max_bid, rate),
        exchange_rate_used=rate,
    )
