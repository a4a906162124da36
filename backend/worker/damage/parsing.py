from __future__ import annotations

import json
import logging
import math
import re
from typing import Any

from app.schemas.damage import (
    CostAED,
    CostEUR,
    CostRange,
    DamageReport,
    LaborHoursEstimate,
    LaborLineItem,
    PartToInspect,
    PartToReplace,
    Roadworthy,
)
from app.services.ampel import severity_from_score
from app.services.currency import DEFAULT_EUR_AED_RATE, to_eur

logger = logging.getLogger(__name__)


class DamageReportError(ValueError):
    """Raised when describer output cannot be turned into a report."""


class EmptyResponse(DamageReportError):
    pass


class NoJsonFound(DamageReportError):
    pass


class UnparsableJson(DamageReportError):
    pass


# Candidate keys per field, most preferred first: German snake_case,
# German camelCase, then English.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "component": ("bauteil", "Bauteil", "component"),
    "damage_narrative": ("schaden_analyse", "schadenAnalyse", "damage_analysis", "damage_narrative"),
    "severity_score": ("schweregrad", "schwereGrad", "severity_score"),
    "repair_approach": ("reparatur_weg", "reparaturWeg", "repair_approach"),
    "parts_list": ("teileliste", "teileListe", "parts_list"),
    "parts_to_replace": ("muss_ersetzt_werden", "mussErsetztWerden", "parts_to_replace"),
    "parts_to_inspect": ("vermutlich_defekt_pruefen", "vermutlichDefektPruefen", "parts_to_inspect"),
    "part_name": ("teil_bezeichnung", "teilBezeichnung", "part_name"),
    "reason": ("grund", "reason"),
    "evidence": ("beleg", "evidence"),
    "suspicion": ("verdacht", "suspicion"),
    "inspection_method": ("pruefung", "prüfung", "inspection_method"),
    "confidence": ("konfidenz", "confidence"),
    "cost_aed": ("kosten_schaetzung_aed", "kostenSchaetzungAed", "cost_aed"),
    "parts_range": ("teile_range", "teileRange", "parts_range"),
    "parts": ("teile", "parts"),
    "labor_range": ("arbeit_range", "arbeitRange", "labor_range"),
    "labor": ("arbeit", "labor"),
    "total_range": ("gesamt_range", "gesamtRange", "total_range"),
    "total": ("gesamt", "total"),
    "assumptions": ("annahmen", "assumptions"),
    "cost_eur": ("kosten_schaetzung_eur", "kostenSchaetzungEur", "cost_eur"),
    "eur_total_range": ("gesamt_range_eur", "gesamtRangeEur", "total_range"),
    "eur_total": ("gesamt_euro", "gesamtEuro", "gesamt", "total"),
    "exchange_rate": ("umrechnungskurs", "umrechnungsKurs", "exchange_rate_used"),
    "labor_hours": ("arbeitszeit_schaetzung", "arbeitszeitSchaetzung", "labor_hours_estimate"),
    "hours_range": ("stunden_range", "stundenRange", "hours_range"),
    "line_items": ("posten", "line_items"),
    "item_name": ("name", "bezeichnung"),
    "hours": ("stunden", "hours"),
    "location": ("location_tipp", "locationTipp", "location_recommendation"),
    "roadworthy": ("fahrbereit", "fahrBereit", "roadworthy"),
    "risk_flags": ("risk_flags", "riskFlags"),
    "affected_parts": ("affected_parts", "affectedParts", "betroffene_teile"),
}

ROADWORTHY_VALUES = {
    "YES": Roadworthy.YES,
    "JA": Roadworthy.YES,
    "TRUE": Roadworthy.YES,
    "NO": Roadworthy.NO,
    "NEIN": Roadworthy.NO,
    "FALSE": Roadworthy.NO,
}

DEFAULT_COMPONENT = "Unbekannt"
DEFAULT_REPAIR_APPROACH = "Nicht bestimmt"
DEFAULT_LOCATION = "Sharjah Industrial Area"
DEFAULT_SEVERITY_SCORE = 5
DEFAULT_CONFIDENCE = 0.5
# Workshop labour rate used to turn AED labour cost into hours
LABOR_RATE_AED_PER_HOUR = 150

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_CONTROL_CHAR_RE = re.compile(r"[\x00-\x1f\x7f]")
_STRING_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


def extract_json_span(text: str) -> str:
    first = text.find("{")
    last = text.rfind("}")
    if first == -1 or last <= first:
        raise NoJsonFound("No JSON object in describer response")
    return text[first : last + 1]


def strip_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA_RE.sub(r"\1", text)


def escape_control_chars(text: str) -> str:
    """Escape raw control characters that sit inside JSON string literals."""
    out: list[str] = []
    in_string = False
    escaped = False
    for char in text:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            elif ord(char) < 0x20 or char == "\x7f":
                out.append(_STRING_ESCAPES.get(char, f"\\u{ord(char):04x}"))
                continue
        elif char == '"':
            in_string = True
        out.append(char)
    return "".join(out)


def strip_control_chars(text: str) -> str:
    return _CONTROL_CHAR_RE.sub(" ", text)


def parse_describer_json(raw_text: Any) -> dict:
    if not isinstance(raw_text, str) or not raw_text.strip():
        raise EmptyResponse("Describer returned an empty response")

    span = extract_json_span(strip_code_fences(raw_text))
    candidate = escape_control_chars(strip_trailing_commas(span))
    try:
        parsed = json.loads(candidate)
        logger.debug("Describer JSON parsed after fence, comma and escape passes")
    except json.JSONDecodeError as first_error:
        logger.warning("Describer JSON parse failed (%s), retrying without control chars", first_error)
        try:
            parsed = json.loads(strip_control_chars(candidate))
        except json.JSONDecodeError as exc:
            raise UnparsableJson(f"Invalid JSON in describer response: {exc}") from exc
        logger.info("Describer JSON parsed after control-char strip")

    if not isinstance(parsed, dict):
        raise NoJsonFound("Describer response is not a JSON object")
    return parsed


def _pick(data: Any, field: str, default: Any = None) -> Any:
    if not isinstance(data, dict):
        return default
    for key in FIELD_ALIASES[field]:
        value = data.get(key)
        if value is not None:
            return value
    return default


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def _text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    if isinstance(value, list):
        value = ", ".join(str(item) for item in value if item is not None)
    text = str(value).strip()
    return text or default


def _string_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if not isinstance(value, list):
        return []
    return [_text(item) for item in value if _text(item)]


def _dict_list(value: Any) -> list[dict]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def clamp_severity_score(value: Any) -> int:
    score = _number(value)
    if not score:
        return DEFAULT_SEVERITY_SCORE
    # halves round up so 6.5 still lands in the "high" band
    return int(min(10, max(1, math.floor(score + 0.5))))


def normalize_confidence(value: Any) -> float:
    confidence = _number(value)
    if confidence is None:
        return DEFAULT_CONFIDENCE
    return min(1.0, max(0.0, confidence))


def normalize_roadworthy(value: Any) -> Roadworthy:
    if isinstance(value, bool):
        return Roadworthy.YES if value else Roadworthy.NO
    if isinstance(value, str):
        return ROADWORTHY_VALUES.get(value.strip().upper(), Roadworthy.UNKNOWN)
    return Roadworthy.UNKNOWN


def cost_range(value: Any) -> CostRange | None:
    """Accept a scalar amount or a {low, mid, high} mapping."""
    scalar = _number(value)
    if scalar is not None:
        return CostRange.flat(max(0.0, scalar))
    if not isinstance(value, dict):
        return None

    low = _number(value.get("low"))
    mid = _number(value.get("mid"))
    high = _number(value.get("high"))
    if low is None and mid is None and high is None:
        return None
    if mid is None:
        if low is not None and high is not None:
            mid = (low + high) / 2
        else:
            mid = low if low is not None else high
    low = mid if low is None else low
    high = mid if high is None else high
    return CostRange(low=max(0.0, low), mid=max(0.0, mid), high=max(0.0, high))


def _sum_ranges(a: CostRange, b: CostRange) -> CostRange:
    return CostRange(low=a.low + b.low, mid=a.mid + b.mid, high=a.high + b.high)


def _range_or_scalar(section: dict, range_field: str, scalar_field: str) -> CostRange | None:
    return cost_range(_pick(section, range_field)) or cost_range(_pick(section, scalar_field))


def normalize_cost_aed(section: Any) -> CostAED:
    section = section if isinstance(section, dict) else {}
    parts_range = _range_or_scalar(section, "parts_range", "parts") or CostRange()
    labor_range = _range_or_scalar(section, "labor_range", "labor") or CostRange()
    total_range = _range_or_scalar(section, "total_range", "total")
    if total_range is None:
        total_range = _sum_ranges(parts_range, labor_range)

    return CostAED(
        parts_range=parts_range,
        labor_range=labor_range,
        total_range=total_range,
        assumptions=_string_list(_pick(section, "assumptions")),
        parts=parts_range.mid,
        labor=labor_range.mid,
        total=total_range.mid,
    )


def normalize_cost_eur(section: Any, cost_aed: CostAED, rate: float) -> CostEUR:
    section = section if isinstance(section, dict) else {}
    total_range = _range_or_scalar(section, "eur_total_range", "eur_total")
    if total_range is None:
        aed = cost_aed.total_range
        total_range = CostRange(
            low=round(to_eur(aed.low, rate), 2),
            mid=round(to_eur(aed.mid, rate), 2),
            high=round(to_eur(aed.high, rate), 2),
        )
        return CostEUR(total_range=total_range, exchange_rate_used=rate, total=total_range.mid)

    quoted_rate = _number(_pick(section, "exchange_rate"))
    return CostEUR(
        total_range=total_range,
        exchange_rate_used=quoted_rate if quoted_rate and quoted_rate > 0 else rate,
        total=total_range.mid,
    )


def normalize_labor_hours(section: Any) -> LaborHoursEstimate | None:
    if not isinstance(section, dict):
        return None
    items = [
        LaborLineItem(
            name=_text(_pick(item, "item_name")),
            hours=max(0.0, _number(_pick(item, "hours")) or 0.0),
        )
        for item in _dict_list(_pick(section, "line_items"))
    ]
    return LaborHoursEstimate(
        hours_range=cost_range(_pick(section, "hours_range")) or CostRange(),
        line_items=items,
    )


def _parts_section(data: dict, field: str) -> list[dict]:
    parts_list = _pick(data, "parts_list")
    found = _pick(parts_list, field)
    if found is None:
        found = _pick(data, field)
    return _dict_list(found)


def normalize_parts(data: dict) -> tuple[list[PartToReplace], list[PartToInspect]]:
    to_replace = [
        PartToReplace(
            part_name=_text(_pick(item, "part_name")),
            reason=_text(_pick(item, "reason")),
            evidence=_text(_pick(item, "evidence")),
            confidence=normalize_confidence(_pick(item, "confidence")),
        )
        for item in _parts_section(data, "parts_to_replace")
    ]
    to_inspect = [
        PartToInspect(
            part_name=_text(_pick(item, "part_name")),
            suspicion=_text(_pick(item, "suspicion")),
            inspection_method=_text(_pick(item, "inspection_method")),
            confidence=normalize_confidence(_pick(item, "confidence")),
        )
        for item in _parts_section(data, "parts_to_inspect")
    ]
    return to_replace, to_inspect


def roadworthy_warnings(roadworthy: Roadworthy) -> list[str]:
    if roadworthy == Roadworthy.NO:
        return ["Fahrzeug nicht fahrbereit"]
    if roadworthy == Roadworthy.UNKNOWN:
        return ["Fahrbereitschaft unklar - prüfen"]
    return []


def total_repair_hours(labor_hours: LaborHoursEstimate | None, cost_aed: CostAED) -> float:
    if labor_hours is not None and labor_hours.hours_range.mid > 0:
        return labor_hours.hours_range.mid
    return float(math.ceil(cost_aed.labor / LABOR_RATE_AED_PER_HOUR))


def normalize_parsed(
    data: dict,
    rate: float = DEFAULT_EUR_AED_RATE,
    model: str | None = None,
    photos_analyzed: int = 0,
) -> DamageReport:
    severity_score = clamp_severity_score(_pick(data, "severity_score"))
    parts_to_replace, parts_to_inspect = normalize_parts(data)
    cost_aed = normalize_cost_aed(_pick(data, "cost_aed"))
    cost_eur = normalize_cost_eur(_pick(data, "cost_eur"), cost_aed, rate)
    labor_hours = normalize_labor_hours(_pick(data, "labor_hours"))
    roadworthy = normalize_roadworthy(_pick(data, "roadworthy"))

    return DamageReport(
        component=_text(_pick(data, "component"), DEFAULT_COMPONENT),
        damage_narrative=_text(_pick(data, "damage_narrative")),
        severity_score=severity_score,
        severity=severity_from_score(severity_score),
        repair_approach=_text(_pick(data, "repair_approach"), DEFAULT_REPAIR_APPROACH),
        parts_to_replace=parts_to_replace,
        parts_to_inspect=parts_to_inspect,
        cost_aed=cost_aed,
        cost_eur=cost_eur,
        labor_hours_estimate=labor_hours,
        location_recommendation=_text(_pick(data, "location"), DEFAULT_LOCATION),
        roadworthy=roadworthy,
        risk_flags=_string_list(_pick(data, "risk_flags")),
        affected_parts=_string_list(_pick(data, "affected_parts")),
        estimated_repair_cost=cost_eur.total_range.mid,
        estimated_repair_cost_aed=cost_aed.total_range.mid,
        total_repair_hours=total_repair_hours(labor_hours, cost_aed),
        warnings=roadworthy_warnings(roadworthy),
        model=model,
        photos_analyzed=photos_analyzed,
    )


def normalize_damage_report(
    raw_text: Any,
    rate: float = DEFAULT_EUR_AED_RATE,
    model: str | None = None,
    photos_analyzed: int = 0,
) -> DamageReport:
    """Turn raw describer text into a fully shaped DamageReport.

    Raises EmptyResponse, NoJsonFound or UnparsableJson when nothing usable
    can be recovered.
    """
    data = parse_describer_json(raw_text)
    return normalize_parsed(data, rate=rate, model=model, photos_analyzed=photos_analyzed)
