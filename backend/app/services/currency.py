from app.config import settings

DEFAULT_EUR_AED_RATE = 4.0


def default_rate() -> float:
    return settings.EUR_AED_RATE or DEFAULT_EUR_AED_RATE


def to_eur(aed_amount: float, rate: float) -> float:
    """Convert AED to EUR where ``rate`` means 1 EUR = rate AED."""
    return aed_amount / rate


def to_aed(eur_amount: float, rate: float) -> float:
    return eur_amount * rate
