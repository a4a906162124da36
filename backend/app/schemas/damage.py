from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class Roadworthy(str, Enum):
    YES = "YES"
    NO = "NO"
    UNKNOWN = "UNKNOWN"


class CostRange(BaseModel):
    low: float = 0.0
    mid: float = 0.0
    high: float = 0.0

    @classmethod
    def flat(cls, value: float) -> "CostRange":
        return cls(low=value, mid=value, high=value)


class PartToReplace(BaseModel):
    part_name: str = ""
    reason: str = ""
    evidence: str = ""
    confidence: float = 0.5


class PartToInspect(BaseModel):
    part_name: str = ""
    suspicion: str = ""
    inspection_method: str = ""
    confidence: float = 0.5


class CostAED(BaseModel):
    parts_range: CostRange = Field(default_factory=CostRange)
    labor_range: CostRange = Field(default_factory=CostRange)
    total_range: CostRange = Field(default_factory=CostRange)
    assumptions: list[str] = Field(default_factory=list)

    # legacy scalar mirrors of the range midpoints
    parts: float = 0.0
    labor: float = 0.0
    total: float = 0.0


class CostEUR(BaseModel):
    total_range: CostRange = Field(default_factory=CostRange)
    exchange_rate_used: float = 4.0
    total: float = 0.0


class LaborLineItem(BaseModel):
    name: str = ""
    hours: float = 0.0


class LaborHoursEstimate(BaseModel):
    hours_range: CostRange = Field(default_factory=CostRange)
    line_items: list[LaborLineItem] = Field(default_factory=list)


class SeverityComponent(BaseModel):
    score: float = 0.0
    percent: int = 0
    label: str = "UNBEKANNT"
    reasons: list[str] = Field(default_factory=list)


class SeverityBreakdown(BaseModel):
    status: str = "ok"
    technical_severity: int = 0
    economic_severity: int = 0
    overall_severity: int = 0
    technical: SeverityComponent = Field(default_factory=SeverityComponent)
    economic: SeverityComponent = Field(default_factory=SeverityComponent)
    summary_badge: str = ""


class DamageReport(BaseModel):
    component: str = "Unbekannt"
    damage_narrative: str = ""
    severity_score: int = 5
    severity: str = "medium"
    repair_approach: str = "Nicht bestimmt"

    parts_to_replace: list[PartToReplace] = Field(default_factory=list)
    parts_to_inspect: list[PartToInspect] = Field(default_factory=list)

    cost_aed: CostAED = Field(default_factory=CostAED)
    cost_eur: CostEUR = Field(default_factory=CostEUR)
    labor_hours_estimate: LaborHoursEstimate | None = None

    location_recommendation: str = "Sharjah Industrial Area"
    roadworthy: Roadworthy = Roadworthy.UNKNOWN
    risk_flags: list[str] = Field(default_factory=list)
    affected_parts: list[str] = Field(default_factory=list)

    estimated_repair_cost: float = 0.0
    estimated_repair_cost_aed: float = 0.0
    total_repair_hours: float = 0.0
    warnings: list[str] = Field(default_factory=list)

    severity_breakdown: SeverityBreakdown | None = None

    model: str | None = None
    photos_analyzed: int = 0
    created_at: datetime | None = None
