from __future__ import annotations

import base64
import logging
import time
from dataclasses import dataclass
from typing import Callable, Sequence

import requests

from app.config import settings

logger = logging.getLogger(__name__)


class DescriberError(RuntimeError):
    """The damage describer could not produce a response."""


@dataclass
class DescriberImage:
    data: bytes
    content_type: str = "image/jpeg"

    def data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"


@dataclass
class DescriberResult:
    text: str
    model: str
    attempts: int
    duration_ms: int


SYSTEM_PROMPT = """Du bist ein KFZ-Gutachter für den Zweitmarkt in den VAE. Analysiere den Schaden \
basierend auf Werkstattpreisen in Al Quoz (Dubai) und Sharjah Industrial Area.

Nutze für Ersatzteile Preise für gebrauchte Originalteile (Scrap Parts) von Anbietern aus Sharjah (Sajja).
Arbeitskosten: Nutze Stundensätze kleinerer, unabhängiger Garagen (ca. 100-200 AED pro Stunde).
Reparatur-Stil: Priorisiere 'Denting & Painting' gegenüber Neukauf von Blechteilen.

Der aktuelle Wechselkurs ist 1 EUR = {rate:.2f} AED. Berechne die Kosten in AED und rechne sie in EUR um.

Gib die Antwort STRENG als JSON aus mit folgendem Schema:
{{
  "bauteil": "string",
  "schaden_analyse": "string",
  "schweregrad": 1-10,
  "reparatur_weg": "Gebrauchtteile/Denting/Lackierung",
  "teileliste": {{
    "muss_ersetzt_werden": [{{"teil_bezeichnung": "string", "grund": "string", "evidence": "string", "confidence": 0-1}}],
    "vermutlich_defekt_pruefen": [{{"teil_bezeichnung": "string", "verdacht": "string", "pruefung": "string", "confidence": 0-1}}]
  }},
  "kosten_schaetzung_aed": {{
    "teile_range": {{"low": number, "mid": number, "high": number}},
    "arbeit_range": {{"low": number, "mid": number, "high": number}},
    "gesamt_range": {{"low": number, "mid": number, "high": number}},
    "annahmen": ["string"]
  }},
  "kosten_schaetzung_eur": {{
    "gesamt_range_eur": {{"low": number, "mid": number, "high": number}},
    "umrechnungskurs": {rate:.2f}
  }},
  "arbeitszeit_schaetzung": {{
    "stunden_range": {{"low": number, "mid": number, "high": number}},
    "posten": [{{"name": "string", "stunden": number}}]
  }},
  "location_tipp": "z.B. Sharjah Industrial Area oder Al Quoz",
  "fahrbereit": "YES" | "NO" | "UNKNOWN",
  "risk_flags": ["string"],
  "affected_parts": ["string"]
}}

Wichtig: Antworte NUR im JSON-Format ohne zusätzlichen Text."""

USER_PROMPT = (
    "Analysiere die folgenden Bilder eines Fahrzeugs und erstelle eine detaillierte "
    "Schadensbewertung für den Dubai/VAE Markt."
)

UNAVAILABLE_MARKERS = ("not found", "does not have access", "does not exist")
QUOTA_MARKERS = ("429", "rate limit", "quota", "resource_exhausted")


def build_system_prompt(rate: float) -> str:
    return SYSTEM_PROMPT.format(rate=rate)


def build_payload(model: str, images: Sequence[DescriberImage], rate: float) -> dict:
    content = [{"type": "text", "text": USER_PROMPT}]
    content.extend(
        {"type": "image_url", "image_url": {"url": image.data_url()}} for image in images
    )
    return {
        "model": model,
        "messages": [
            {"role": "system", "content": build_system_prompt(rate)},
            {"role": "user", "content": content},
        ],
        "temperature": 0,
    }


def _error_message(response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return str(error.get("message") or f"HTTP {response.status_code}")
    return str(error or f"HTTP {response.status_code}")


def _response_text(response) -> str:
    try:
        return response.json()["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        raise DescriberError("Invalid response format from describer") from exc


class DamageDescriber:
    """Sends vehicle photos to a vision model and returns its raw answer.

    Models are tried in order. A model that is missing moves on to the next
    one; quota errors are retried on the same model with linear backoff.
    """

    def __init__(
        self,
        api_url: str | None = None,
        api_key: str | None = None,
        models: Sequence[str] | None = None,
        timeout: int | None = None,
        max_images: int | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        http=requests,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.api_url = api_url or settings.DESCRIBER_API_URL
        self.api_key = api_key if api_key is not None else settings.DESCRIBER_API_KEY
        self.models = list(models or settings.DESCRIBER_MODELS)
        self.timeout = timeout or settings.DESCRIBER_TIMEOUT_SECONDS
        self.max_images = max_images or settings.DESCRIBER_MAX_IMAGES
        self.max_retries = max_retries or settings.DESCRIBER_MAX_RETRIES
        self.backoff_seconds = (
            backoff_seconds if backoff_seconds is not None else settings.DESCRIBER_BACKOFF_SECONDS
        )
        self._http = http
        self._sleep = sleep

    def describe(self, images: Sequence[DescriberImage], rate: float) -> DescriberResult:
        if not images:
            raise DescriberError("No photos to analyze")
        images = list(images)[: self.max_images]
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        started = time.monotonic()

        for model in self.models:
            payload = build_payload(model, images, rate)
            for attempt in range(1, self.max_retries + 1):
                logger.info("Describer attempt %s/%s with model %s", attempt, self.max_retries, model)
                try:
                    response = self._http.post(
                        self.api_url, headers=headers, json=payload, timeout=self.timeout
                    )
                except requests.exceptions.RequestException as exc:
                    raise DescriberError(f"Describer connection error: {exc}") from exc

                if response.status_code == 200:
                    return DescriberResult(
                        text=_response_text(response),
                        model=model,
                        attempts=attempt,
                        duration_ms=int((time.monotonic() - started) * 1000),
                    )

                message = _error_message(response)
                lowered = message.lower()
                logger.warning("Describer model %s failed: %s %s", model, response.status_code, message)

                if response.status_code == 404 or any(m in lowered for m in UNAVAILABLE_MARKERS):
                    logger.info("Model %s unavailable, trying next model", model)
                    break

                if attempt < self.max_retries:
                    wait = self.backoff_seconds * attempt
                    if response.status_code == 429 or any(m in lowered for m in QUOTA_MARKERS):
                        logger.info("Describer quota exhausted, waiting %.1fs", wait)
                    self._sleep(wait)

        raise DescriberError(f"All describer models failed: {', '.join(self.models)}")
