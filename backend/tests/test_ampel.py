from types import SimpleNamespace

import pytest

from app.schemas.settings import CostSettings
from app.schemas.vehicle import DamageSignal
from app.services.ampel import (
    AMPEL_RULES,
    AmpelContext,
    evaluate_ampel,
    evaluate_vehicle,
    get_ampel_status,
    matching_rule,
    report_severity,
    severity_from_score,
)
from app.services.consensus import Consensus


def _costs(profit, profit_pct, target_profit_pct=35):
    return SimpleNamespace(profit=profit, profit_pct=profit_pct, target_profit_pct=target_profit_pct)


def _consensus(green=0, orange=0, red=0):
    counts = {"green": green, "orange": orange, "red": red}
    dominant = None
    best = 0
    for color in ("green", "orange", "red"):
        if counts[color] > best:
            best = counts[color]
            dominant = color
    return Consensus(green=green, orange=orange, red=red, total=green + orange + red, dominant=dominant)


def test_rule_order():
    assert [rule.name for rule in AMPEL_RULES] == [
        "negative_result",
        "high_damage_red_votes",
        "mechanics_advise_against",
        "marginal_profit",
        "high_damage_good_profit",
        "mechanics_unsure",
        "good_profit_acceptable_damage",
        "good_profit_mechanics_recommend",
    ]


def test_negative_result_wins_over_everything():
    status = evaluate_ampel(_costs(-600, -5), _consensus(red=3), "high")
    assert status.color == "red"
    assert status.label == "Nicht empfohlen"
    assert status.reason == "Negatives Ergebnis"


def test_loss_within_tolerance_is_not_negative_result():
    status = evaluate_ampel(_costs(-500, -2), _consensus(), None)
    assert status.reason == "Grenzwertiger Profit"


def test_high_damage_with_two_red_votes():
    status = evaluate_ampel(_costs(-100, 10), _consensus(green=3, red=2), "high")
    assert (status.color, status.label) == ("red", "Hohes Risiko")
    assert status.reason == "Hoher Schaden, mehrere Mechaniker raten ab"


def test_mechanics_advise_against():
    status = evaluate_ampel(_costs(5000, 50), _consensus(green=1, red=2), "medium")
    assert status.color == "red"
    assert status.reason == "Mehrere Mechaniker raten ab"


def test_single_red_vote_is_not_enough():
    status = evaluate_ampel(_costs(5000, 50), _consensus(red=1), "medium")
    assert status.color == "green"


def test_marginal_profit():
    status = evaluate_ampel(_costs(100, 5), _consensus(green=2), "low")
    assert (status.color, status.label, status.reason) == ("yellow", "Vorsicht", "Grenzwertiger Profit")


def test_profit_exactly_at_target_is_marginal():
    status = evaluate_ampel(_costs(3500, 35), _consensus(), None)
    assert status.reason == "Grenzwertiger Profit"


def test_high_damage_good_profit():
    status = evaluate_ampel(_costs(8000, 40), _consensus(), "high")
    assert (status.color, status.label) == ("yellow", "Prüfen")
    assert status.reason == "Hoher Schaden aber guter Profit"


def test_mechanics_unsure():
    status = evaluate_ampel(_costs(8000, 40), _consensus(orange=2, green=1), "low")
    assert (status.color, status.label) == ("yellow", "Unsicher")


@pytest.mark.parametrize("severity", ["low", "medium", None])
def test_good_profit_acceptable_damage(severity):
    status = evaluate_ampel(_costs(8000, 40), _consensus(green=1), severity)
    assert (status.color, status.label) == ("green", "Empfohlen")
    assert status.reason == "Guter Profit, akzeptabler Schaden"


def test_default_when_no_rule_matches():
    nan = float("nan")
    ctx = AmpelContext(
        profit=nan, profit_pct=nan, target_profit_pct=35, consensus=_consensus(), severity=None
    )
    rule = matching_rule(ctx)
    assert rule.name == "default"
    assert rule.status.reason == "Bitte manuell bewerten"
    assert rule.status.color == "yellow"


@pytest.mark.parametrize(
    "score,expected",
    [(1, "low"), (3, "low"), (4, "medium"), (6, "medium"), (7, "high"), (10, "high"), (None, None)],
)
def test_severity_from_score(score, expected):
    assert severity_from_score(score) == expected


def test_report_severity_prefers_score_over_label():
    assert report_severity(DamageSignal(severity_score=8, severity="low")) == "high"
    assert report_severity(DamageSignal(severity="medium")) == "medium"
    assert report_severity(DamageSignal(severity="catastrophic")) is None
    assert report_severity(None) is None


def test_vehicle_with_loss_is_red():
    vehicle = {"start_bid": 50000, "market_price_de": 15000, "reviews": []}
    status = get_ampel_status(vehicle, CostSettings(), rate=4.0)
    assert status.color == "red"
    assert status.reason == "Negatives Ergebnis"


def test_evaluate_vehicle_bundles_everything():
    vehicle = {
        "start_bid": 20000,
        "market_price_de": 30000,
        "reviews": [
            {"recommendation": "green", "repair_estimate": 1000, "risk": "low"},
            {"recommendation": "green", "repair_estimate": 1000, "risk": "medium"},
        ],
        "ai_damage_report": {"estimated_repair_cost": 3000, "severity_score": 4},
    }
    evaluation = evaluate_vehicle(vehicle, CostSettings(), rate=4.0)
    assert evaluation.severity == "medium"
    assert evaluation.highest_risk == "medium"
    assert evaluation.consensus.dominant == "green"
    assert evaluation.costs.repair_estimate_source == "mechanic"
    # 30000 - (5000 * 1.309 + 3800 + 1150) = 18505
    assert evaluation.costs.profit == pytest.approx(18505)
    assert evaluation.ampel.color == "green"
