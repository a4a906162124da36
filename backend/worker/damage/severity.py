from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from app.schemas.damage import DamageReport, Roadworthy, SeverityBreakdown, SeverityComponent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DamageCategory:
    name: str
    weight: float
    keywords: tuple[str, ...]


# Checked in order; the first category with a matching keyword wins.
DAMAGE_CATEGORIES: tuple[DamageCategory, ...] = (
    DamageCategory(
        "safety_critical",
        1.0,
        (
            "airbag", "luftsack", "scheinwerfer", "headlight", "beleuchtung",
            "bremse", "brake", "lenkung", "steering", "fahrwerk", "suspension",
            "gurt", "seatbelt", "sensor", "radar", "kamera", "camera",
        ),
    ),
    DamageCategory(
        "structural",
        0.85,
        (
            "rahmen", "frame", "träger", "beam", "schweller", "sill",
            "a-säule", "b-säule", "c-säule", "pillar", "crashbar",
            "längsträger", "querträger", "bodenblech", "floor", "roof",
        ),
    ),
    DamageCategory(
        "drivetrain",
        0.7,
        (
            "motor", "engine", "getriebe", "transmission", "antrieb", "drivetrain",
            "kühler", "radiator", "auspuff", "exhaust", "öl", "oil",
        ),
    ),
    DamageCategory(
        "body_panels",
        0.5,
        (
            "stoßstange", "bumper", "kotflügel", "fender", "motorhaube", "hood",
            "tür", "door", "kofferraum", "trunk", "heckklappe", "tailgate",
            "seitenteil", "quarter panel",
        ),
    ),
    DamageCategory(
        "cosmetic",
        0.25,
        (
            "lack", "paint", "kratzer", "scratch", "delle", "dent",
            "spiegel", "mirror", "zierleiste", "trim", "emblem", "logo",
        ),
    ),
)
CATEGORIES_BY_NAME = {category.name: category for category in DAMAGE_CATEGORIES}

SAFETY_REASONS = (
    (("scheinwerfer", "headlight", "beleuchtung"), "Beleuchtung betroffen - Sicherheitsfunktion eingeschränkt"),
    (("airbag", "luftsack"), "Airbag-System möglicherweise betroffen"),
    (("bremse", "brake"), "Bremssystem betroffen"),
    (("sensor", "radar", "kamera", "camera"), "Fahrassistenzsysteme betroffen"),
    (("lenkung", "steering", "fahrwerk", "suspension"), "Lenkung oder Fahrwerk betroffen"),
)

PART_WEIGHT_FACTOR = 0.15
PARTS_CAP = 0.45
SAFETY_BONUS = 0.2
STRUCTURAL_BONUS = 0.2
NOT_ROADWORTHY_BONUS = 0.15
ROADWORTHY_UNKNOWN_BONUS = 0.05
RISK_FLAG_BONUS = 0.05
RISK_FLAGS_CAP = 0.15
MANY_AREAS_BONUS = 0.05
MANY_AREAS_COUNT = 3
MANY_PARTS_COUNT = 5

COST_WEIGHT = 0.65
LABOR_WEIGHT = 0.35
TECHNICAL_WEIGHT = 0.7
ECONOMIC_WEIGHT = 0.3
# Sharjah parts market keeps repairs up to this amount cheap
CHEAP_PARTS_LIMIT_AED = 12000
MAX_REASONS = 6

UNKNOWN_LABEL = "UNBEKANNT"


@dataclass(frozen=True)
class EconomicBands:
    cost_low_aed: float = 6000.0
    cost_medium_aed: float = 20000.0
    labor_low_hours: float = 10.0
    labor_medium_hours: float = 25.0

    @classmethod
    def from_settings(cls, settings) -> "EconomicBands":
        cost_low, cost_medium = settings.ECONOMIC_COST_BANDS_AED
        labor_low, labor_medium = settings.ECONOMIC_LABOR_BANDS_HOURS
        return cls(
            cost_low_aed=float(cost_low),
            cost_medium_aed=float(cost_medium),
            labor_low_hours=float(labor_low),
            labor_medium_hours=float(labor_medium),
        )


DEFAULT_BANDS = EconomicBands()


def percent_to_label(percent: int) -> str:
    if percent < 30:
        return "LEICHT"
    if percent < 60:
        return "MITTEL"
    return "SCHWER"


def contains_keyword(text: str, keywords: tuple[str, ...]) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)


def detect_category(text: str) -> DamageCategory:
    for category in DAMAGE_CATEGORIES:
        if contains_keyword(text, category.keywords):
            return category
    return CATEGORIES_BY_NAME["cosmetic"]


def banded_score(value: float, low: float, medium: float) -> float:
    """Map an amount onto 0..1: up to 0.3 in the low band, 0.6 at the top of
    the medium band, and the remaining 0.4 spread over one more medium span."""
    if value <= low:
        return value / low * 0.3
    if value <= medium:
        return 0.3 + (value - low) / (medium - low) * 0.3
    return 0.6 + min((value - medium) / medium, 0.4)


def _component(score: float, reasons: list[str]) -> SeverityComponent:
    score = min(1.0, max(0.0, score))
    percent = round(score * 100)
    return SeverityComponent(
        score=round(score, 2),
        percent=percent,
        label=percent_to_label(percent),
        reasons=reasons[:MAX_REASONS],
    )


def _signal_text(report: DamageReport) -> str:
    pieces = [report.component, report.damage_narrative]
    pieces.extend(report.affected_parts)
    pieces.extend(report.risk_flags)
    pieces.extend(part.part_name for part in report.parts_to_replace)
    return " ".join(piece for piece in pieces if piece)


def technical_severity(report: DamageReport) -> SeverityComponent:
    reasons: list[str] = []
    score = 0.0

    parts = report.parts_to_replace
    if parts:
        weights = sum(
            detect_category(f"{part.part_name} {part.reason}").weight * PART_WEIGHT_FACTOR
            for part in parts
        )
        score += min(weights, PARTS_CAP)
        reasons.append(f"{len(parts)} Teil(e) müssen ersetzt werden")

    corpus = _signal_text(report).lower()
    safety = CATEGORIES_BY_NAME["safety_critical"]
    if contains_keyword(corpus, safety.keywords):
        score += SAFETY_BONUS
        specific = [reason for keywords, reason in SAFETY_REASONS if contains_keyword(corpus, keywords)]
        reasons.extend(specific or ["Sicherheitsrelevante Bauteile betroffen"])

    if contains_keyword(corpus, CATEGORIES_BY_NAME["structural"].keywords):
        score += STRUCTURAL_BONUS
        reasons.append("Strukturelle Komponenten betroffen")

    if report.roadworthy == Roadworthy.NO:
        score += NOT_ROADWORTHY_BONUS
        reasons.append("Fahrzeug nicht fahrbereit")
    elif report.roadworthy == Roadworthy.UNKNOWN:
        score += ROADWORTHY_UNKNOWN_BONUS
        reasons.append("Fahrbereitschaft unklar")

    if report.risk_flags:
        score += min(len(report.risk_flags) * RISK_FLAG_BONUS, RISK_FLAGS_CAP)
        reasons.append(f"Risiko-Hinweise: {', '.join(report.risk_flags[:3])}")

    if len(report.affected_parts) >= MANY_AREAS_COUNT:
        score += MANY_AREAS_BONUS
        reasons.append(f"Mehrere Bereiche betroffen ({len(report.affected_parts)})")

    if not reasons:
        reasons.append("Keine sicherheitsrelevanten Befunde")
    return _component(score, reasons)


def labor_hours(report: DamageReport) -> float:
    estimate = report.labor_hours_estimate
    if estimate is not None and estimate.hours_range.mid > 0:
        return estimate.hours_range.mid
    return report.total_repair_hours


def economic_severity(report: DamageReport, bands: EconomicBands = DEFAULT_BANDS) -> SeverityComponent:
    reasons: list[str] = []
    cost = report.cost_aed.total_range.mid

    cost_score = banded_score(cost, bands.cost_low_aed, bands.cost_medium_aed)
    if cost <= bands.cost_low_aed:
        reasons.append(f"Reparaturkosten günstig ({cost:.0f} AED)")
    elif cost <= bands.cost_medium_aed:
        reasons.append(f"Reparaturkosten moderat ({cost:.0f} AED)")
    else:
        reasons.append(f"Reparaturkosten hoch ({cost:.0f} AED)")

    hours = labor_hours(report)
    if hours > 0:
        labor_score = banded_score(hours, bands.labor_low_hours, bands.labor_medium_hours)
        score = COST_WEIGHT * cost_score + LABOR_WEIGHT * labor_score
        if hours <= bands.labor_low_hours:
            reasons.append(f"Arbeitsaufwand gering ({hours:g}h)")
        elif hours <= bands.labor_medium_hours:
            reasons.append(f"Arbeitsaufwand moderat ({hours:g}h)")
        else:
            reasons.append(f"Arbeitsaufwand hoch ({hours:g}h)")
    else:
        score = cost_score

    part_count = len(report.parts_to_replace) + len(report.parts_to_inspect)
    if part_count >= MANY_PARTS_COUNT:
        reasons.append(f"{part_count} Teile betroffen")
    if 0 < cost <= CHEAP_PARTS_LIMIT_AED:
        reasons.append("Günstige Teile in Sharjah verfügbar")

    return _component(score, reasons)


def summary_badge(technical: SeverityComponent, economic: SeverityComponent) -> str:
    tech_label = technical.label
    econ_label = economic.label

    if tech_label == econ_label:
        return {
            "LEICHT": "Leichter Schaden, günstig reparierbar",
            "MITTEL": "Mittlerer Schaden, moderate Kosten",
        }.get(tech_label, "Schwerer Schaden, hohe Kosten")

    if technical.percent > economic.percent + 20:
        if tech_label == "SCHWER":
            return "Technisch schwer, aber gut reparierbar (Dubai)"
        if tech_label == "MITTEL" and econ_label == "LEICHT":
            return "Mittlerer Schaden, günstige Reparatur möglich"

    if economic.percent > technical.percent + 20:
        if econ_label == "SCHWER":
            return f"Technisch {tech_label.lower()}, aber hohe Kosten"
        if econ_label == "MITTEL" and tech_label == "LEICHT":
            return "Leichter Schaden, aber moderate Kosten"

    return f"Technisch {tech_label.lower()}, wirtschaftlich {econ_label.lower()}"


def has_signal(report: DamageReport) -> bool:
    return bool(
        report.parts_to_replace
        or report.parts_to_inspect
        or report.affected_parts
        or report.risk_flags
        or report.damage_narrative
        or report.cost_aed.total_range.mid > 0
        or labor_hours(report) > 0
    )


def unknown_breakdown() -> SeverityBreakdown:
    return SeverityBreakdown(
        status="unknown",
        technical=SeverityComponent(label=UNKNOWN_LABEL),
        economic=SeverityComponent(label=UNKNOWN_LABEL),
        summary_badge="Schweregrad nicht bestimmbar",
    )


def calculate_severity_breakdown(report: Any, bands: EconomicBands | None = None) -> SeverityBreakdown:
    bands = bands or DEFAULT_BANDS
    try:
        if not isinstance(report, DamageReport):
            report = DamageReport.model_validate(report)
        if not has_signal(report):
            logger.warning("Damage report carries no scoring signal, severity unknown")
            return unknown_breakdown()

        technical = technical_severity(report)
        economic = economic_severity(report, bands)
    except (TypeError, ValueError, AttributeError, ZeroDivisionError) as exc:
        logger.warning("Could not score damage report: %s", exc)
        return unknown_breakdown()

    return SeverityBreakdown(
        status="ok",
        technical_severity=technical.percent,
        economic_severity=economic.percent,
        overall_severity=round(
            technical.percent * TECHNICAL_WEIGHT + economic.percent * ECONOMIC_WEIGHT
        ),
        technical=technical,
        economic=economic,
        summary_badge=summary_badge(technical, economic),
    )


def reconcile_severity(report: DamageReport, bands: EconomicBands | None = None) -> DamageReport:
    """Return a copy of ``report`` with a freshly computed severity breakdown.

    The describer's own severity_score plays no part in the result.
    """
    breakdown = calculate_severity_breakdown(report, bands)
    if not isinstance(report, DamageReport):
        try:
            report = DamageReport.model_validate(report)
        except ValueError:
            report = DamageReport()
    return report.model_copy(update={"severity_breakdown": breakdown}, deep=True)
