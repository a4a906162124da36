from dataclasses import dataclass
from typing import Any, Iterable

from app.schemas.vehicle import ReviewSignal

RECOMMENDATIONS = ("green", "orange", "red")
RISK_LEVELS = {"low": 1, "medium": 2, "high": 3}


@dataclass
class Consensus:
    green: int = 0
    orange: int = 0
    red: int = 0
    total: int = 0
    dominant: str | None = None


def get_review_consensus(reviews: Iterable[Any] | None) -> Consensus:
    """Count mechanic recommendations and pick the dominant colour.

    Ties keep the colour that comes first in green, orange, red order.
    """
    counts = dict.fromkeys(RECOMMENDATIONS, 0)
    for review in reviews or []:
        signal = review if isinstance(review, ReviewSignal) else ReviewSignal.model_validate(review)
        if signal.recommendation in counts:
            counts[signal.recommendation] += 1

    dominant = None
    best = 0
    for color in RECOMMENDATIONS:
        if counts[color] > best:
            best = counts[color]
            dominant = color

    return Consensus(
        green=counts["green"],
        orange=counts["orange"],
        red=counts["red"],
        total=sum(counts.values()),
        dominant=dominant,
    )


def get_highest_risk(reviews: Iterable[Any] | None) -> str | None:
    highest = None
    highest_level = 0
    for review in reviews or []:
        signal = review if isinstance(review, ReviewSignal) else ReviewSignal.model_validate(review)
        level = RISK_LEVELS.get(signal.risk or "", 0)
        if level > highest_level:
            highest_level = level
            highest = signal.risk
    return highest
