"""Weighted regex matching used when the AI pass is unavailable or returns null.

A ``FieldSpec`` carries an ordered tuple of ``Candidate`` regexes. Every
candidate runs against the whole corpus text; captures are parsed, scaled by
magnitude words and filtered by the field's plausible range. The highest
weight wins, ties go to the match seen first in the corpus.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from deal_brain.models import ExtractedField, FieldSource

MULTIPLIERS: dict[str, float] = {
    "billion": 1e9,
    "bn": 1e9,
    "b": 1e9,
    "million": 1e6,
    "mn": 1e6,
    "mm": 1e6,
    "m": 1e6,
    "thousand": 1e3,
    "k": 1e3,
}

# Shared regex fragments for rule authors
NUMBER = r"(?P<value>\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?)"
UNIT = r"(?:\s*(?P<unit>billion|bn|million|mn|mm|thousand|[bmk])\b)?"
CURRENCY_PREFIX = r"(?:(?:USD|EUR|GBP|JPY|CAD|AUD|CHF|CNY)\s*)?[$€£¥]?\s*"
NO_MAGNITUDE = r"(?!\s*(?:billion|bn|million|mn|mm|thousand|[bmk])\b)"
LABEL_GAP = r"(?:\s*\([^)\n]{0,12}\))?[\s:=,|]*(?:(?:of|is|was|at|approximately|approx\.?|about|around|totals?|totaling|totalling)\s+)*"


class FieldKind(str, Enum):
    NUMBER = "number"
    PERCENTAGE = "percentage"
    TEXT = "text"
    ENUM = "enum"
    DATE = "date"
    MULTIPLE = "multiple"


@dataclass(frozen=True)
class Candidate:
    """One weighted rule. ``value`` is a fixed result for categorical rules."""

    regex: str
    weight: float
    value: Any = None
    unit_table: dict[str, float] | None = None
    flags: int = re.IGNORECASE | re.MULTILINE
    pattern: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "pattern", re.compile(self.regex, self.flags))


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: FieldKind
    candidates: tuple[Candidate, ...]
    plausible_range: tuple[float, float] | None = None


@dataclass(frozen=True)
class PatternHit:
    value: Any
    weight: float
    start: int
    raw: str
    groups: dict[str, str | None] = field(default_factory=dict)


def parse_number(text: str | None) -> float | None:
    """Parse a plain number, ignoring currency symbols, commas and spaces."""
    if text is None:
        return None
    cleaned = re.sub(r"[$€£¥,\s]", "", str(text))
    cleaned = cleaned.rstrip("%")
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def in_range(spec: FieldSpec, value: Any) -> bool:
    if spec.plausible_range is None or not isinstance(value, (int, float)):
        return True
    low, high = spec.plausible_range
    return low <= value <= high


def _evaluate(spec: FieldSpec, candidate: Candidate, m: re.Match) -> Any:
    if candidate.value is not None:
        return candidate.value

    groups = m.groupdict()
    captured = groups.get("value")
    if captured is None:
        captured = m.group(1) if m.re.groups else m.group(0)
    if captured is None:
        return None

    if spec.kind in (FieldKind.TEXT, FieldKind.DATE, FieldKind.ENUM):
        text = captured.strip(" \t,;:.\"'")
        return text or None

    number = parse_number(captured)
    if number is None:
        return None
    unit = groups.get("unit")
    # Bare percentages are never scaled unless the rule brings its own table
    if unit and (candidate.unit_table is not None or spec.kind != FieldKind.PERCENTAGE):
        table = candidate.unit_table or MULTIPLIERS
        number *= table.get(" ".join(unit.lower().split()), 1.0)
    return number


def match_all(text: str, spec: FieldSpec) -> list[PatternHit]:
    """Every range-valid hit of every candidate, in candidate then corpus order."""
    hits: list[PatternHit] = []
    if not text:
        return hits
    for candidate in spec.candidates:
        for m in candidate.pattern.finditer(text):
            value = _evaluate(spec, candidate, m)
            if value is None or not in_range(spec, value):
                continue
            hits.append(PatternHit(
                value=value,
                weight=candidate.weight,
                start=m.start(),
                raw=m.group(0).strip(),
                groups=m.groupdict(),
            ))
    return hits


def match(text: str, spec: FieldSpec) -> ExtractedField | None:
    """Best hit for ``spec`` as an ExtractedField, or None when nothing survives."""
    hits = match_all(text, spec)
    if not hits:
        return None
    best = min(hits, key=lambda h: (-h.weight, h.start))
    return ExtractedField(
        value=best.value,
        confidence=min(1.0, max(0.0, best.weight)),
        source=FieldSource.PATTERN,
        raw=best.raw,
    )
