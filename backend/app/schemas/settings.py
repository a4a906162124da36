from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.vehicle import CostInputs


class CostSettings(BaseModel):
    target_profit_pct: float = Field(35.0, ge=0)
    safety_deduction: float = Field(200.0, ge=0)
    transport_cost: float = Field(2500.0, ge=0)
    tuv_cost: float = Field(800.0, ge=0)
    misc_cost: float = Field(500.0, ge=0)
    repair_buffer_pct: float = Field(15.0, ge=0)
    default_market_price_de: float = Field(0.0, ge=0)

    def cost_inputs(self) -> CostInputs:
        return CostInputs(
            transport_cost=self.transport_cost,
            tuv_cost=self.tuv_cost,
            misc_cost=self.misc_cost,
            repair_buffer_pct=self.repair_buffer_pct,
        )


class CostSettingsUpdate(BaseModel):
    target_profit_pct: float | None = Field(None, ge=0)
    safety_deduction: float | None = Field(None, ge=0)
    transport_cost: float | None = Field(None, ge=0)
    tuv_cost: float | None = Field(None, ge=0)
    misc_cost: float | None = Field(None, ge=0)
    repair_buffer_pct: float | None = Field(None, ge=0)
    default_market_price_de: float | None = Field(None, ge=0)


class ExchangeRateRead(BaseModel):
    rate: float
    source: str
    updated_at: datetime | None = None


class ExchangeRateUpdate(BaseModel):
    rate: float = Field(gt=0)
