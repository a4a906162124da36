from worker.damage.describer import DamageDescriber, DescriberError, DescriberImage, DescriberResult
from worker.damage.parsing import (
    DamageReportError,
    EmptyResponse,
    NoJsonFound,
    UnparsableJson,
    normalize_damage_report,
    parse_describer_json,
)
from worker.damage.severity import EconomicBands, calculate_severity_breakdown, reconcile_severity

__all__ = [
    "DamageDescriber",
    "DescriberError",
    "DescriberImage",
    "DescriberResult",
    "DamageReportError",
    "EmptyResponse",
    "NoJsonFound",
    "UnparsableJson",
    "normalize_damage_report",
    "parse_describer_json",
    "EconomicBands",
    "calculate_severity_breakdown",
    "reconcile_severity",
]
