from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from app.schemas.damage import DamageReport
from app.schemas.review import ReviewRead

VEHICLE_STATUSES = ("watching", "bid_placed", "bought", "rejected")


def _amount(value) -> float:
    """Missing or unreadable money fields count as 0."""
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _optional_amount(value) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class CostInputs(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    transport_cost: float = Field(
        0.0, validation_alias=AliasChoices("transport_cost", "transportCost")
    )
    tuv_cost: float = Field(0.0, validation_alias=AliasChoices("tuv_cost", "tuvCost"))
    misc_cost: float = Field(0.0, validation_alias=AliasChoices("misc_cost", "miscCost"))
    repair_buffer_pct: float = Field(
        15.0, validation_alias=AliasChoices("repair_buffer_pct", "repairBufferPct")
    )

    @field_validator("transport_cost", "tuv_cost", "misc_cost", mode="before")
    @classmethod
    def _missing_cost_is_zero(cls, value):
        return _amount(value)

    @field_validator("repair_buffer_pct", mode="before")
    @classmethod
    def _default_buffer(cls, value):
        parsed = _optional_amount(value)
        return 15.0 if parsed is None else parsed


class ReviewSignal(BaseModel):
    """The part of a mechanic review the cost model and consensus read."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True, extra="ignore")

    recommendation: str | None = None
    repair_estimate: float = Field(
        0.0, validation_alias=AliasChoices("repair_estimate", "repairEstimate")
    )
    risk: str | None = None

    @field_validator("repair_estimate", mode="before")
    @classmethod
    def _missing_estimate_is_zero(cls, value):
        return _amount(value)

    @field_validator("recommendation", "risk", mode="before")
    @classmethod
    def _lowercase(cls, value):
        if isinstance(value, str):
            return value.strip().lower() or None
        return None


class DamageSignal(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True, extra="ignore")

    estimated_repair_cost: float = Field(
        0.0, validation_alias=AliasChoices("estimated_repair_cost", "estimatedRepairCost")
    )
    severity_score: float | None = Field(
        None, validation_alias=AliasChoices("severity_score", "severityScore")
    )
    severity: str | None = None

    @field_validator("estimated_repair_cost", mode="before")
    @classmethod
    def _missing_cost_is_zero(cls, value):
        return _amount(value)

    @field_validator("severity_score", mode="before")
    @classmethod
    def _score(cls, value):
        return _optional_amount(value)


class VehicleFinancials(BaseModel):
    """Everything the decision engine is allowed to look at for one vehicle.

    Validates from an ORM row, an API payload or a legacy camelCase dict.
    """

    model_config = ConfigDict(from_attributes=True, populate_by_name=True, extra="ignore")

    start_bid: float | None = Field(
        None, validation_alias=AliasChoices("start_bid", "startBid")
    )
    final_bid: float | None = Field(
        None, validation_alias=AliasChoices("final_bid", "finalBid")
    )
    market_price_de: float | None = Field(
        None, validation_alias=AliasChoices("market_price_de", "marketPriceDE")
    )
    expected_resale_de: float | None = Field(
        None, validation_alias=AliasChoices("expected_resale_de", "expectedResaleDE")
    )
    cost_inputs: CostInputs | None = Field(
        None, validation_alias=AliasChoices("cost_inputs", "costInputs")
    )
    reviews: list[ReviewSignal] = Field(default_factory=list)
    ai_damage_report: DamageSignal | None = Field(
        None, validation_alias=AliasChoices("ai_damage_report", "aiDamageReport")
    )

    @field_validator("start_bid", "final_bid", "market_price_de", "expected_resale_de", mode="before")
    @classmethod
    def _optional_money(cls, value):
        return _optional_amount(value)

    @field_validator("reviews", mode="before")
    @classmethod
    def _reviews_list(cls, value):
        return list(value or [])

    @property
    def bid_price_aed(self) -> float:
        return self.final_bid or self.start_bid or 0.0

    @property
    def resale_price(self) -> float:
        return self.market_price_de or self.expected_resale_de or 0.0


class VehicleBase(BaseModel):
    title: str | None = None
    brand: str | None = None
    model: str | None = None
    year: int | None = None
    vin: str | None = None
    mileage_km: int | None = None
    auction_location: str | None = None
    notes: str | None = None

    start_bid: float | None = Field(None, ge=0)
    final_bid: float | None = Field(None, ge=0)
    market_price_de: float | None = Field(None, ge=0)
    expected_resale_de: float | None = Field(None, ge=0)


class VehicleCreate(VehicleBase):
    status: str = "watching"
    cost_inputs: CostInputs | None = None
    created_by: str | None = None

    @field_validator("status")
    @classmethod
    def _known_status(cls, value: str) -> str:
        if value not in VEHICLE_STATUSES:
            raise ValueError(f"status must be one of {', '.join(VEHICLE_STATUSES)}")
        return value


class VehicleUpdate(VehicleBase):
    status: str | None = None
    cost_inputs: CostInputs | None = None
    updated_by: str | None = None

    @field_validator("status")
    @classmethod
    def _known_status(cls, value: str | None) -> str | None:
        if value is not None and value not in VEHICLE_STATUSES:
            raise ValueError(f"status must be one of {', '.join(VEHICLE_STATUSES)}")
        return value


class VehicleRead(VehicleBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    status: str
    cost_inputs: CostInputs | None = None
    photo_keys: list[str] = Field(default_factory=list)
    ai_damage_report: DamageReport | None = None
    analysis_status: str | None = None
    analysis_error: str | None = None
    reviews: list[ReviewRead] = Field(default_factory=list)
    created_by: str | None = None
    updated_by: str | None = None
    created_at: datetime
    updated_at: datetime

    @field_validator("photo_keys", mode="before")
    @classmethod
    def _photo_keys(cls, value):
        return list(value or [])


class VehicleListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str | None = None
    brand: str | None = None
    model: str | None = None
    status: str
    start_bid: float | None = None
    final_bid: float | None = None
    market_price_de: float | None = None
    analysis_status: str | None = None
    created_at: datetime

    ampel_color: str | None = None
    ampel_label: str | None = None
    max_bid: float | None = None
    max_bid_aed: float | None = None
    profit: float | None = None


class VehiclePage(BaseModel):
    items: list[VehicleListItem]
    page: int
    per_page: int
    total: int
