"""Cross-field helpers and confidence scoring shared by the domain extractors."""

import logging
from typing import Any

from deal_brain.corpus import DocumentCorpus
from deal_brain.models import DomainRecord, ExtractedField, FieldSource
from deal_brain.pattern_rules import PLAUSIBLE_RANGES

logger = logging.getLogger(__name__)

CORROBORATION_BONUS = 0.1
IN_RANGE_BONUS = 0.1
OUT_OF_RANGE_FACTOR = 0.5
INCONSISTENCY_FACTOR = 0.8


def clamp(confidence: float) -> float:
    return min(1.0, max(0.0, confidence))


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _fmt(number: float) -> str:
    if float(number).is_integer():
        return str(int(number))
    return f"{number:.4f}".rstrip("0").rstrip(".")


def textual_forms(value: Any) -> list[str]:
    """Ways ``value`` is likely to be written in a source document."""
    if isinstance(value, str):
        text = value.strip()
        return [text] if len(text) >= 3 else []
    if not is_number(value):
        return []

    number = float(value)
    if abs(number) < 1000:
        # Small numbers only count when written as a rate or multiple
        plain = _fmt(number)
        return [f"{plain}%", f"{plain} %", f"{plain}x", f"{plain} percent"]

    forms = [_fmt(number)]
    if number.is_integer():
        forms.append(f"{int(number):,}")
    for scale, words in ((1e9, ("billion", "bn", "B")), (1e6, ("million", "m", "M", "mm"))):
        if abs(number) >= scale:
            short = _fmt(number / scale)
            forms.extend(f"{short} {w}" for w in words)
            forms.extend(f"{short}{w}" for w in words)
            break
    return forms


def score_field(
    name: str,
    field: ExtractedField,
    corpus: DocumentCorpus,
    plausible_range: tuple[float, float] | None = None,
) -> ExtractedField:
    """Adjust confidence for corroboration across documents and plausibility."""
    if not field.found:
        return field

    confidence = field.confidence

    forms = textual_forms(field.value)
    if field.raw:
        forms.append(field.raw)
    documents = corpus.count_documents_containing(forms)
    if documents > 1:
        confidence = clamp(confidence + CORROBORATION_BONUS * (documents - 1))

    rng = plausible_range or PLAUSIBLE_RANGES.get(name)
    if rng is not None and is_number(field.value):
        low, high = rng
        if low <= field.value <= high:
            confidence = clamp(confidence + IN_RANGE_BONUS)
        else:
            confidence = clamp(confidence * OUT_OF_RANGE_FACTOR)

    return field.with_confidence(confidence)


def calculated(value: Any, *inputs: ExtractedField) -> ExtractedField:
    """A value computed from other fields, trusted no more than its weakest input."""
    confidence = min((f.confidence for f in inputs), default=0.5)
    return ExtractedField(value=value, confidence=clamp(confidence), source=FieldSource.CALCULATED)


def penalize(record: DomainRecord, names: list[str], message: str, factor: float = INCONSISTENCY_FACTOR) -> DomainRecord:
    """Multiply the confidence of ``names`` down and record why."""
    for name in names:
        field = record.get(name)
        if field.found:
            record = record.with_field(name, field.with_confidence(field.confidence * factor))
    logger.info("%s: %s", record.domain.value, message)
    return record.with_warning(message)


def relative_gap(actual: float, expected: float) -> float:
    if expected == 0:
        return 0.0 if actual == 0 else float("inf")
    return abs(actual - expected) / abs(expected)
