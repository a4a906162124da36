from typing import Literal

from fastapi import APIRouter, Depends, Query

from app.api.deps import EvaluationContext, get_evaluation_context
from app.api.vehicles import evaluation_read
from app.schemas.evaluation import ConversionRead, EvaluationRead, QuickEvaluationRequest
from app.schemas.vehicle import VehicleFinancials
from app.services.ampel import evaluate_vehicle
from app.services.currency import to_aed, to_eur

router = APIRouter()


def quick_financials(payload: QuickEvaluationRequest) -> VehicleFinancials:
    report = None
    if payload.ai_estimated_repair_cost is not None or payload.ai_severity_score is not None:
        report = {
            "estimated_repair_cost": payload.ai_estimated_repair_cost,
            "severity_score": payload.ai_severity_score,
        }
    return VehicleFinancials.model_validate(
        {
            "start_bid": payload.start_bid,
            "final_bid": payload.final_bid,
            "market_price_de": payload.market_price_de,
            "cost_inputs": payload.cost_inputs,
            "reviews": [review.model_dump() for review in payload.reviews],
            "ai_damage_report": report,
        }
    )


@router.post("", response_model=EvaluationRead)
async def quick_evaluation(
    payload: QuickEvaluationRequest,
    ctx: EvaluationContext = Depends(get_evaluation_context),
):
    overrides = {
        key: value
        for key, value in (
            ("target_profit_pct", payload.target_profit_pct),
            ("safety_deduction", payload.safety_deduction),
        )
        if value is not None
    }
    cost_settings = ctx.cost_settings.model_copy(update=overrides)
    rate = payload.exchange_rate or ctx.rate
    return evaluation_read(evaluate_vehicle(quick_financials(payload), cost_settings, rate))


@router.get("/convert", response_model=ConversionRead)
async def convert(
    amount: float = Query(..., ge=0),
    source: Literal["AED", "EUR"] = "AED",
    rate: float | None = Query(None, gt=0),
    ctx: EvaluationContext = Depends(get_evaluation_context),
):
    rate = rate or ctx.rate
    if source == "AED":
        return ConversionRead(amount=amount, source="AED", target="EUR", result=round(to_eur(amount, rate), 2), rate=rate)
    return ConversionRead(amount=amount, source="EUR", target="AED", result=round(to_aed(amount, rate), 2), rate=rate)
