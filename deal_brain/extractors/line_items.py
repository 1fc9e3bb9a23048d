"""Shared handling for list-valued domains (revenue and cost line items)."""

import logging
import re
from typing import Any

from deal_brain.extractors.base import DomainExtractor
from deal_brain.models import DomainRecord, ExtractedField, FieldSource, GrowthType, LineItem
from deal_brain.patterns import FieldSpec, match_all
from deal_brain.scoring import calculated, penalize, relative_gap
from deal_brain.standardizer import (
    StandardizationFailure,
    normalize_growth_type,
    standardize_percentage,
    to_number,
)

logger = logging.getLogger(__name__)

GROWTH_RATE_RANGE = (-50.0, 200.0)
# Aggregate vs. sum of items above this is inconsistent
TOTAL_TOLERANCE = 0.20

_SKIP_NAMES = re.compile(r"^\s*(?:total|sum|subtotal|grand\s+total|net|gross)\b|growth|margin|%", re.IGNORECASE)


def clean_name(name: str) -> str:
    name = re.sub(r"\s+", " ", name).strip(" \t-:|,\"'")
    return name[:1].upper() + name[1:] if name else name


def growth_rate_or_none(value: Any, already_scaled: bool) -> float | None:
    if value is None or value == "":
        return None
    try:
        rate = standardize_percentage(value, already_scaled=already_scaled)
    except StandardizationFailure:
        return None
    low, high = GROWTH_RATE_RANGE
    return rate if low <= rate <= high else None


class LineItemExtractor(DomainExtractor):
    """Adds item parsing, item pattern matching and total checks."""

    item_range: tuple[float, float] = (1e4, 1e11)

    def categorize(self, name: str, field: str) -> str:
        return "other"

    def item_extras(self, field: str, name: str, raw: dict[str, Any]) -> dict[str, Any]:
        """Field-specific LineItem attributes (isFixed, depreciationYears)."""
        return {}

    def accepts_name(self, field: str, name: str) -> bool:
        return len(name) > 2 and not _SKIP_NAMES.search(name)

    def _in_item_range(self, value: float) -> bool:
        low, high = self.item_range
        return low <= value <= high

    def parse_items(self, name: str, raw: Any, confidence: float, source: FieldSource) -> list[LineItem]:
        if not isinstance(raw, list):
            return []
        items = []
        for entry in raw:
            if not isinstance(entry, dict):
                continue
            item_name = clean_name(str(entry.get("name") or ""))
            value = to_number(entry.get("value"))
            if not item_name or value is None or value <= 0 or not self._in_item_range(value):
                continue
            category = str(entry.get("category") or "").strip().lower() or self.categorize(item_name, name)
            items.append(LineItem(
                name=item_name,
                value=value,
                growth_type=normalize_growth_type(entry.get("growthType")),
                growth_rate=growth_rate_or_none(entry.get("growthRate"), already_scaled=False),
                category=category,
                confidence=confidence,
                source=source,
                **self.item_extras(name, item_name, entry),
            ))
        return items

    def pattern_items(self, name: str, spec: FieldSpec, text: str) -> list[LineItem]:
        items = []
        for hit in match_all(text, spec):
            item_name = clean_name(hit.groups.get("name") or "")
            if not self.accepts_name(name, item_name) or hit.value <= 0:
                continue
            growth = growth_rate_or_none(hit.groups.get("growth"), already_scaled=True)
            items.append(LineItem(
                name=item_name,
                value=hit.value,
                growth_type=GrowthType.LINEAR,
                growth_rate=growth,
                category=self.categorize(item_name, name),
                confidence=hit.weight,
                source=FieldSource.PATTERN,
                **self.item_extras(name, item_name, hit.groups),
            ))
        return items

    def check_total(self, record: DomainRecord, items_field: str, total_field: str) -> DomainRecord:
        """Derive a missing aggregate from the items, or penalize a diverging one."""
        items_entry = record.get(items_field)
        total = record.get(total_field)
        if not items_entry.found:
            return record

        item_sum = sum(item.value for item in items_entry.value)
        if not total.found:
            logger.info("Deriving %s from %d items", total_field, len(items_entry.value))
            return record.with_field(total_field, calculated(round(item_sum, 2), items_entry))

        if relative_gap(item_sum, total.value) > TOTAL_TOLERANCE:
            record = penalize(
                record, [total_field],
                f"{total_field} ({total.value:,.0f}) differs from the sum of items ({item_sum:,.0f}) by more than 20%",
            )
        return record

    def weighted_growth(self, record: DomainRecord, items_field: str) -> ExtractedField | None:
        items_entry = record.get(items_field)
        if not items_entry.found:
            return None
        rated = [i for i in items_entry.value if i.growth_rate is not None]
        weight = sum(i.value for i in rated)
        if not rated or weight <= 0:
            return None
        rate = sum(i.value * i.growth_rate for i in rated) / weight
        return calculated(round(rate, 4), items_entry)
