from pydantic import BaseModel, ConfigDict, Field

from app.schemas.review import ReviewCreate
from app.schemas.vehicle import CostInputs


class CostBreakdownRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

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


class ConsensusRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    green: int
    orange: int
    red: int
    total: int
    dominant: str | None = None


class AmpelRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    color: str
    label: str
    reason: str


class EvaluationRead(BaseModel):
    costs: CostBreakdownRead
    consensus: ConsensusRead
    ampel: AmpelRead
    severity: str | None = None
    highest_risk: str | None = None


class QuickEvaluationRequest(BaseModel):
    start_bid: float | None = Field(None, ge=0)
    final_bid: float | None = Field(None, ge=0)
    market_price_de: float | None = Field(None, ge=0)
    cost_inputs: CostInputs | None = None
    reviews: list[ReviewCreate] = Field(default_factory=list)
    ai_estimated_repair_cost: float | None = Field(None, ge=0)
    ai_severity_score: int | None = Field(None, ge=1, le=10)

    target_profit_pct: float | None = Field(None, ge=0)
    safety_deduction: float | None = Field(None, ge=0)
    exchange_rate: float | None = Field(None, gt=0)


class ConversionRead(BaseModel):
    amount: float
    source: str
    target: str
    result: float
    rate: float
