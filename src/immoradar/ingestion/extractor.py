"""
Extractor de campos estructurados a partir de texto libre.

Cada campo se extrae de forma independiente y best-effort: que falle
uno no bloquea a los demás. Todas las reglas son deterministas (sin
llamadas externas) para que el comportamiento sea reproducible.
"""

import html
import json
import re
from dataclasses import dataclass
from typing import Any, Optional

from immoradar.config import (
    MIN_PLAUSIBLE_PRICE,
    POINT_PRICE_SPREAD,
    RABAT_DISTRICTS,
)
from immoradar.ingestion.gazetteer import fold
from immoradar.models import CandidateRecord, parse_amount

_NUMBER = r"\d{1,3}(?:[ \u00a0\u202f.,]\d{3})+|\d+"
_CURRENCY = r"(?:dhs|dh|mad|dirhams?)\b"
_RANGE_SEP = r"(?:-|–|à|a|au|to)"
# Monto con centavos opcionales ("1 200 000,00"); los centavos se descartan
_AMOUNT = rf"({_NUMBER})(?:[.,]\d{{2}}(?!\d))?"

# El monto no puede empezar pegado a una palabra ("F3 950 000" no es 3 950 000)
PRICE_RE = re.compile(rf"(?<![\w.,]){_AMOUNT}\s*{_CURRENCY}", re.IGNORECASE)
PRICE_RANGE_RE = re.compile(
    rf"(?<![\w.,]){_AMOUNT}\s*(?:{_CURRENCY})?\s*{_RANGE_SEP}\s*{_AMOUNT}\s*{_CURRENCY}",
    re.IGNORECASE,
)
BEDROOMS_RE = re.compile(
    rf"\b(\d+)(?:\s*{_RANGE_SEP}\s*(\d+))?\s*(?:chambres?|ch\b|bedrooms?)",
    re.IGNORECASE,
)
AREA_RE = re.compile(
    rf"\b(\d+)(?:\s*{_RANGE_SEP}\s*(\d+))?\s*(?:m²|m2\b|sqm\b)",
    re.IGNORECASE,
)
_TAG_RE = re.compile(r"<[^>]+>")


@dataclass(frozen=True)
class ClassificationRule:
    """Par (patrones, resultado): gana la primera regla cuyo patrón aparezca."""

    patterns: tuple[str, ...]
    result: str

    def matches(self, text: str) -> bool:
        return any(re.search(pattern, text) for pattern in self.patterns)


PROPERTY_TYPE_RULES: list[ClassificationRule] = [
    ClassificationRule((r"\bvillas?\b", r"\bmaisons?\b"), "villa"),
    ClassificationRule((r"\bterrains?\b", r"\bland\b"), "land"),
    ClassificationRule((r"\bcommerces?\b", r"\blocal\b", r"\blocaux\b"), "commercial"),
]
DEFAULT_PROPERTY_TYPE = "apartment"

CONSTRUCTION_STATUS_RULES: list[ClassificationRule] = [
    ClassificationRule((r"\bvefa\b", r"\bsur plans?\b"), "planning"),
    ClassificationRule(
        (
            r"\bneu(?:f|fs|ve|ves)\b",
            r"\bnouve(?:au|aux|lle|lles)\b",
            r"\bnew\b",
            r"\bprojets?\b",
        ),
        "construction",
    ),
]
DEFAULT_CONSTRUCTION_STATUS = "approved"


def clean_text(text: Optional[str]) -> str:
    """Quita HTML y entidades, colapsa espacios."""
    if not text:
        return ""
    text = html.unescape(_TAG_RE.sub(" ", text))
    return re.sub(r"\s+", " ", text).strip()


def classify(text: str, rules: list[ClassificationRule], default: str) -> str:
    """Evalúa las reglas en orden de prioridad sobre el texto normalizado."""
    folded = fold(text)
    for rule in rules:
        if rule.matches(folded):
            return rule.result
    return default


def _plausible(value: Optional[float]) -> bool:
    return value is not None and value >= MIN_PLAUSIBLE_PRICE


def extract_price(text: str) -> tuple[Optional[float], Optional[float]]:
    """
    Precio mínimo y máximo en MAD.

    Un rango explícito (o dos montos con moneda) da min/max; un único
    monto p se expande a p ± 5%. Montos bajo el umbral de plausibilidad
    se descartan (suelen ser cantidades de dormitorios mal leídas).
    """
    for match in PRICE_RANGE_RE.finditer(text):
        low = parse_amount(match.group(1))
        high = parse_amount(match.group(2))
        if _plausible(low) and _plausible(high):
            return low, high

    prices = [parse_amount(m.group(1)) for m in PRICE_RE.finditer(text)]
    prices = [p for p in prices if _plausible(p)]
    if len(prices) >= 2:
        return prices[0], prices[1]
    if prices:
        point = prices[0]
        return (
            float(round(point * (1 - POINT_PRICE_SPREAD))),
            float(round(point * (1 + POINT_PRICE_SPREAD))),
        )
    return None, None


def _extract_range(pattern: re.Pattern, text: str) -> tuple[Optional[int], Optional[int]]:
    match = pattern.search(text)
    if not match:
        return None, None
    low = int(match.group(1))
    high = int(match.group(2)) if match.group(2) else low
    return low, high


def extract_bedrooms(text: str) -> tuple[Optional[int], Optional[int]]:
    return _extract_range(BEDROOMS_RE, text)


def extract_area(text: str) -> tuple[Optional[int], Optional[int]]:
    return _extract_range(AREA_RE, text)


def extract_district(text: str) -> Optional[str]:
    """Primer distrito de la lista fija contenido en el texto."""
    folded = fold(text)
    for district in RABAT_DISTRICTS:
        if fold(district) in folded:
            return district
    return None


def extract_from_text(
    title: str,
    text: Optional[str],
    source_name: str,
    source_url: Optional[str] = None,
) -> CandidateRecord:
    """
    Construye un candidato a partir de título + snippet/descripción.

    Raises:
        pydantic.ValidationError: Si el título queda vacío
    """
    title = clean_text(title)
    body = clean_text(text)
    combined = f"{title} {body}".strip()

    price_min, price_max = extract_price(combined)
    bedrooms_min, bedrooms_max = extract_bedrooms(combined)
    area_min, area_max = extract_area(combined)

    return CandidateRecord(
        title=title,
        district=extract_district(combined),
        price_min=price_min,
        price_max=price_max,
        property_type=classify(combined, PROPERTY_TYPE_RULES, DEFAULT_PROPERTY_TYPE),
        bedrooms_min=bedrooms_min,
        bedrooms_max=bedrooms_max,
        area_min=area_min,
        area_max=area_max,
        construction_status=classify(
            combined, CONSTRUCTION_STATUS_RULES, DEFAULT_CONSTRUCTION_STATUS
        ),
        source_url=source_url,
        source_name=source_name,
        raw_snippet=combined,
    )


def extract_from_mapping(item: dict[str, Any], source_name: str) -> CandidateRecord:
    """
    Construye un candidato a partir de un objeto JSON devuelto por el LLM.

    Los campos ya estructurados se respetan; distrito y tipo se infieren
    del texto del propio item sólo cuando faltan.

    Raises:
        pydantic.ValidationError: Si falta el título
    """
    title = item.get("title") or item.get("name") or ""
    description = item.get("description") or ""
    text = clean_text(f"{title} {description}")

    district = item.get("district") or extract_district(text)
    property_type = item.get("property_type")
    if not property_type and text:
        property_type = classify(text, PROPERTY_TYPE_RULES, DEFAULT_PROPERTY_TYPE)

    return CandidateRecord(
        title=clean_text(str(title)),
        developer_name=item.get("developer") or item.get("developer_name"),
        district=district,
        price_min=item.get("price_min"),
        price_max=item.get("price_max"),
        property_type=property_type,
        bedrooms_min=item.get("bedrooms_min"),
        bedrooms_max=item.get("bedrooms_max"),
        area_min=item.get("area_min"),
        area_max=item.get("area_max"),
        construction_status=item.get("construction_status"),
        expected_completion=item.get("expected_completion"),
        latitude=item.get("latitude"),
        longitude=item.get("longitude"),
        source_url=item.get("source_url") or item.get("url"),
        source_name=source_name,
        raw_snippet=json.dumps(item, ensure_ascii=False, default=str),
    )
