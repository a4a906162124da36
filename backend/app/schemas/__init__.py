from app.schemas.analysis import AnalysisQueued, AnalysisStatus, PhotoUploadResponse
from app.schemas.damage import DamageReport, Roadworthy, SeverityBreakdown
from app.schemas.evaluation import (
    AmpelRead,
    ConsensusRead,
    ConversionRead,
    CostBreakdownRead,
    EvaluationRead,
    QuickEvaluationRequest,
)
from app.schemas.review import ReviewCreate, ReviewRead
from app.schemas.settings import (
    CostSettings,
    CostSettingsUpdate,
    ExchangeRateRead,
    ExchangeRateUpdate,
)
from app.schemas.vehicle import (
    CostInputs,
    VehicleCreate,
    VehicleFinancials,
    VehicleListItem,
    VehiclePage,
    VehicleRead,
    VehicleUpdate,
)

__all__ = [
    "AnalysisQueued",
    "AnalysisStatus",
    "PhotoUploadResponse",
    "DamageReport",
    "Roadworthy",
    "SeverityBreakdown",
    "AmpelRead",
    "ConsensusRead",
    "ConversionRead",
    "CostBreakdownRead",
    "EvaluationRead",
    "QuickEvaluationRequest",
    "ReviewCreate",
    "ReviewRead",
    "CostSettings",
    "CostSettingsUpdate",
    "ExchangeRateRead",
    "ExchangeRateUpdate",
    "CostInputs",
    "VehicleCreate",
    "VehicleFinancials",
    "VehicleListItem",
    "VehiclePage",
    "VehicleRead",
    "VehicleUpdate",
]
