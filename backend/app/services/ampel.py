from dataclasses import dataclass
from typing import Any, Callable

from app.schemas.settings import CostSettings
from app.schemas.vehicle import DamageSignal
from app.services.consensus import Consensus, get_highest_risk, get_review_consensus
from app.services.costing import CostBreakdown, as_financials, calculate_costs
from app.services.currency import DEFAULT_EUR_AED_RATE

LOSS_TOLERANCE = -500


@dataclass(frozen=True)
class AmpelStatus:
    color: str
    label: str
    reason: str


@dataclass
class AmpelContext:
    profit: float
    profit_pct: float
    target_profit_pct: float
    consensus: Consensus
    severity: str | None

    @property
    def good_profit(self) -> bool:
        return self.profit_pct > self.target_profit_pct

    @property
    def high_damage(self) -> bool:
        return self.severity == "high"


@dataclass(frozen=True)
class AmpelRule:
    name: str
    applies: Callable[[AmpelContext], bool]
    status: AmpelStatus


# Evaluated top to bottom, first match wins.
AMPEL_RULES: tuple[AmpelRule, ...] = (
    AmpelRule(
        "negative_result",
        lambda ctx: ctx.profit < LOSS_TOLERANCE,
        AmpelStatus("red", "Nicht empfohlen", "Negatives Ergebnis"),
    ),
    AmpelRule(
        "high_damage_red_votes",
        lambda ctx: ctx.high_damage and ctx.consensus.red >= 2,
        AmpelStatus("red", "Hohes Risiko", "Hoher Schaden, mehrere Mechaniker raten ab"),
    ),
    AmpelRule(
        "mechanics_advise_against",
        lambda ctx: ctx.consensus.dominant == "red" and ctx.consensus.red >= 2,
        AmpelStatus("red", "Nicht empfohlen", "Mehrere Mechaniker raten ab"),
    ),
    AmpelRule(
        "marginal_profit",
        lambda ctx: ctx.profit >= LOSS_TOLERANCE and ctx.profit_pct <= ctx.target_profit_pct,
        AmpelStatus("yellow", "Vorsicht", "Grenzwertiger Profit"),
    ),
    AmpelRule(
        "high_damage_good_profit",
        lambda ctx: ctx.high_damage and ctx.good_profit,
        AmpelStatus("yellow", "Prüfen", "Hoher Schaden aber guter Profit"),
    ),
    AmpelRule(
        "mechanics_unsure",
        lambda ctx: ctx.consensus.dominant == "orange",
        AmpelStatus("yellow", "Unsicher", "Mechaniker sind unsicher"),
    ),
    AmpelRule(
        "good_profit_acceptable_damage",
        lambda ctx: ctx.good_profit and not ctx.high_damage,
        AmpelStatus("green", "Empfohlen", "Guter Profit, akzeptabler Schaden"),
    ),
    AmpelRule(
        "good_profit_mechanics_recommend",
        lambda ctx: ctx.good_profit and ctx.consensus.dominant == "green",
        AmpelStatus("green", "Empfohlen", "Guter Profit, Mechaniker empfehlen"),
    ),
)

DEFAULT_STATUS = AmpelStatus("yellow", "Prüfen", "Bitte manuell bewerten")


def severity_from_score(score: float | None) -> str | None:
    if score is None:
        return None
    if score <= 3:
        return "low"
    if score <= 6:
        return "medium"
    return "high"


def report_severity(report: DamageSignal | None) -> str | None:
    if report is None:
        return None
    if report.severity_score is not None:
        return severity_from_score(report.severity_score)
    if report.severity in ("low", "medium", "high"):
        return report.severity
    return None


def evaluate_ampel(
    costs: CostBreakdown, consensus: Consensus, severity: str | None
) -> AmpelStatus:
    ctx = AmpelContext(
        profit=costs.profit,
        profit_pct=costs.profit_pct,
        target_profit_pct=costs.target_profit_pct,
        consensus=consensus,
        severity=severity,
    )
    return matching_rule(ctx).status


def matching_rule(ctx: AmpelContext) -> AmpelRule:
    for rule in AMPEL_RULES:
        if rule.applies(ctx):
            return rule
    return AmpelRule("default", lambda _ctx: True, DEFAULT_STATUS)


@dataclass
class Evaluation:
    costs: CostBreakdown
    consensus: Consensus
    ampel: AmpelStatus
    severity: str | None
    highest_risk: str | None = None


def evaluate_vehicle(
    vehicle: Any,
    cost_settings: CostSettings | None = None,
    rate: float = DEFAULT_EUR_AED_RATE,
) -> Evaluation:
    financials = as_financials(vehicle)
    costs = calculate_costs(financials, cost_settings, rate)
    consensus = get_review_consensus(financials.reviews)
    severity = report_severity(financials.ai_damage_report)
    return Evaluation(
        costs=costs,
        consensus=consensus,
        ampel=evaluate_ampel(costs, consensus, severity),
        severity=severity,
        highest_risk=get_highest_risk(financials.reviews),
    )


def get_ampel_status(
    vehicle: Any,
    cost_settings: CostSettings | None = None,
    rate: float = DEFAULT_EUR_AED_RATE,
) -> AmpelStatus:
    return evaluate_vehicle(vehicle, cost_settings, rate).ampel
