"""Shared pipeline for the six domain extractors.

AI attempt -> pattern fallback -> snapshot hints -> cross-field
validation/derivation -> confidence scoring -> standardization. Each stage returns a
new DomainRecord; AI failures are logged and never leave the extractor.
"""

import asyncio
import logging
from typing import Any

from deal_brain.config import settings
from deal_brain.corpus import DocumentCorpus
from deal_brain.insight_client import (
    DocumentInsightService,
    InsightPayload,
    InsightServiceError,
    InsightServiceUnavailable,
    UnparseableResponse,
)
from deal_brain.models import (
    Domain,
    DomainRecord,
    ExtractedField,
    FieldSource,
    LineItem,
    MasterSnapshot,
    SnapshotOrigin,
    StandardizedRecord,
)
from deal_brain.pattern_rules import PATTERN_LIBRARY
from deal_brain.patterns import FieldSpec, match
from deal_brain.scoring import clamp, is_number, score_field
from deal_brain.standardizer import (
    CURRENCY_FIELDS,
    FIELD_TYPES,
    DataStandardizer,
    StandardizationFailure,
    normalize_currency_code,
    standardize_percentage,
    to_number,
)

logger = logging.getLogger(__name__)

BASE_AI_CONFIDENCE = 0.5
MAX_AI_CONFIDENCE = 0.9
MAX_HINT_CONFIDENCE = 0.5


def dedupe_items(items: list[LineItem]) -> list[LineItem]:
    """Drop repeated ``(name, value)`` pairs, keep the most confident, sort by value desc."""
    best: dict[tuple[str, float], LineItem] = {}
    for item in items:
        key = (item.name.strip().lower(), round(item.value, 2))
        current = best.get(key)
        if current is None or item.confidence > current.confidence:
            best[key] = item
    return sorted(best.values(), key=lambda i: i.value, reverse=True)


def percent_field(value: float, confidence: float, source: FieldSource) -> ExtractedField:
    """A percentage already on the 0-100 scale; the raw ``%`` marks it as such."""
    return ExtractedField(value=value, confidence=confidence, source=source, raw=f"{value}%")


class DomainExtractor:
    """Base class; subclasses declare their fields and a ``validate`` hook."""

    domain: Domain
    field_names: tuple[str, ...] = ()
    list_fields: tuple[str, ...] = ()
    # field name -> ((snapshot section, attribute), ...) tried in order
    snapshot_hints: dict[str, tuple[tuple[str, str], ...]] = {}

    def __init__(
        self,
        insight: DocumentInsightService | None = None,
        standardizer: DataStandardizer | None = None,
        patterns: dict[str, FieldSpec] | None = None,
        target_currency: str | None = None,
        ai_timeout: float | None = None,
    ):
        self._insight = insight
        self._standardizer = standardizer or DataStandardizer()
        self._patterns = patterns if patterns is not None else PATTERN_LIBRARY[self.domain]
        self.target_currency = (target_currency or settings.TARGET_CURRENCY).upper()
        if ai_timeout is not None:
            self._ai_timeout = ai_timeout
        elif insight is not None:
            self._ai_timeout = insight.timeout
        else:
            self._ai_timeout = float(settings.INSIGHT_TIMEOUT_SECONDS)

    # --- public API ---------------------------------------------------------

    async def extract(self, corpus: DocumentCorpus, snapshot: MasterSnapshot) -> StandardizedRecord:
        record = self.empty_record()
        record = await self._apply_ai(record, corpus)
        return self._finish(record, corpus, snapshot)

    def extract_offline(self, corpus: DocumentCorpus, snapshot: MasterSnapshot) -> StandardizedRecord:
        """Same pipeline without the AI call, used when the AI stage was cut short."""
        return self._finish(self.empty_record(), corpus, snapshot)

    def empty_record(self) -> DomainRecord:
        return DomainRecord.empty(self.domain, self.field_names)

    # --- stages -------------------------------------------------------------

    def _finish(self, record: DomainRecord, corpus: DocumentCorpus, snapshot: MasterSnapshot) -> StandardizedRecord:
        record = self.apply_patterns(record, corpus)
        record = self.apply_snapshot(record, snapshot)
        record = self.validate(record, corpus)
        record = self.score(record, corpus)
        return self._standardizer.standardize(
            record, self.target_currency, self.source_currency(record, snapshot),
        )

    async def _apply_ai(self, record: DomainRecord, corpus: DocumentCorpus) -> DomainRecord:
        if self._insight is None or corpus.is_empty():
            return record

        try:
            payload = await asyncio.wait_for(
                self._insight.extract(corpus.documents, self.domain),
                timeout=self._ai_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("%s: AI extraction timed out after %.0fs", self.domain.value, self._ai_timeout)
            return record.with_warning("AI extraction timed out; used pattern matching")
        except InsightServiceUnavailable as e:
            logger.warning("%s: insight service unavailable: %s", self.domain.value, e)
            return record.with_warning(f"AI service unavailable: {e}")
        except UnparseableResponse as e:
            logger.warning("%s: unparseable AI response: %s", self.domain.value, e)
            return record.with_warning("AI response could not be parsed; used pattern matching")
        except InsightServiceError as e:
            logger.error("%s: insight service error: %s", self.domain.value, e)
            return record.with_warning(f"AI extraction failed: {e}")
        except Exception:
            logger.exception("%s: unexpected AI extraction failure", self.domain.value)
            return record.with_warning("AI extraction failed unexpectedly; used pattern matching")

        if payload is None:
            return record
        return self.apply_ai_payload(record, payload)

    def apply_ai_payload(self, record: DomainRecord, payload: InsightPayload) -> DomainRecord:
        data = payload.data
        nested = data.get(self.domain.value)
        if isinstance(nested, dict):
            data = nested

        confidence = BASE_AI_CONFIDENCE
        if payload.certainty is not None:
            confidence = min(MAX_AI_CONFIDENCE, max(BASE_AI_CONFIDENCE, payload.certainty))

        accepted = 0
        for name in self.field_names:
            raw = data.get(name)
            if raw is None or raw == "" or raw == []:
                continue
            if name in self.list_fields:
                items = self.parse_items(name, raw, confidence, FieldSource.AI)
                field = self.list_field(items, FieldSource.AI)
            else:
                field = self.coerce(name, raw, confidence, FieldSource.AI)
            if field is not None:
                record = record.with_field(name, field)
                accepted += 1

        logger.info("%s: accepted %d AI fields", self.domain.value, accepted)
        return record

    def apply_patterns(self, record: DomainRecord, corpus: DocumentCorpus) -> DomainRecord:
        text = corpus.text
        if not text:
            return record
        for name in self.field_names:
            if record.get(name).found:
                continue
            spec = self._patterns.get(name)
            if spec is None:
                continue
            if name in self.list_fields:
                field = self.list_field(self.pattern_items(name, spec, text), FieldSource.PATTERN)
            else:
                field = match(text, spec)
                if field is not None:
                    field = self.post_match(name, field)
            if field is not None:
                record = record.with_field(name, field)
        return record

    def validate(self, record: DomainRecord, corpus: DocumentCorpus) -> DomainRecord:
        """Domain-specific derivation and consistency checks."""
        return record

    def apply_snapshot(self, record: DomainRecord, snapshot: MasterSnapshot) -> DomainRecord:
        confidence = min(MAX_HINT_CONFIDENCE, snapshot.overall_confidence)
        if confidence <= 0:
            return record
        # The label scan stores percentages as written, already on the 0-100 scale
        scaled = snapshot.origin == SnapshotOrigin.PATTERN
        for name, paths in self.snapshot_hints.items():
            if record.get(name).found:
                continue
            for section, attribute in paths:
                value = getattr(getattr(snapshot, section), attribute, None)
                if value is None or value == "" or value == []:
                    continue
                if name in self.list_fields:
                    items = self.parse_items(name, value, confidence, FieldSource.DERIVED)
                    field = self.list_field(items, FieldSource.DERIVED)
                elif scaled and FIELD_TYPES.get(name) == "percentage" and is_number(value):
                    field = percent_field(float(value), confidence, FieldSource.DERIVED)
                else:
                    field = self.coerce(name, value, confidence, FieldSource.DERIVED)
                if field is not None:
                    record = record.with_field(name, field)
                    break
        return record

    def score(self, record: DomainRecord, corpus: DocumentCorpus) -> DomainRecord:
        for name in self.field_names:
            field = record.get(name)
            if field.found and name not in self.list_fields:
                record = record.with_field(
                    name, score_field(name, field, corpus, self.plausible_range(name, record)),
                )
        return record

    # --- hooks and helpers ----------------------------------------------------

    def plausible_range(self, name: str, record: DomainRecord) -> tuple[float, float] | None:
        spec = self._patterns.get(name)
        return spec.plausible_range if spec is not None else None

    def post_match(self, name: str, field: ExtractedField) -> ExtractedField:
        """Adjust a pattern hit before it enters the record."""
        return field

    def pattern_items(self, name: str, spec: FieldSpec, text: str) -> list[LineItem]:
        return []

    def parse_items(self, name: str, raw: Any, confidence: float, source: FieldSource) -> list[LineItem]:
        return []

    def list_field(self, items: list[LineItem], source: FieldSource) -> ExtractedField | None:
        items = dedupe_items(items)
        if not items:
            return None
        confidence = sum(i.confidence for i in items) / len(items)
        return ExtractedField(value=items, confidence=clamp(confidence), source=source)

    def coerce(self, name: str, value: Any, confidence: float, source: FieldSource) -> ExtractedField | None:
        """Turn an AI or snapshot value into a typed field; None if unusable."""
        kind = FIELD_TYPES.get(name, "text")

        if kind in ("currency", "number"):
            number = to_number(value)
            if number is None:
                logger.info("%s: dropping non-numeric %s=%r", self.domain.value, name, value)
                return None
            return ExtractedField(value=number, confidence=confidence, source=source, raw=str(value))

        if kind == "percentage":
            try:
                number = standardize_percentage(value)
            except StandardizationFailure:
                logger.info("%s: dropping non-numeric %s=%r", self.domain.value, name, value)
                return None
            return percent_field(number, confidence, source)

        if isinstance(value, (dict, list)):
            return None
        text = str(value).strip()
        if not text:
            return None
        return ExtractedField(value=text, confidence=confidence, source=source)

    def source_currency(self, record: DomainRecord, snapshot: MasterSnapshot) -> str | None:
        candidates = [record.value(name) for name in CURRENCY_FIELDS]
        candidates.append(snapshot.transaction_details.currency)
        for value in candidates:
            if not value:
                continue
            try:
                return normalize_currency_code(value)
            except StandardizationFailure:
                continue
        return None
