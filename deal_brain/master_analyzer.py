"""Holistic first pass producing the MasterSnapshot.

One AI call for the ``masterAnalysis`` domain. When that is unavailable,
fails or comes back empty, a label-anchored scan of the corpus lines builds
a best-effort snapshot. Anything the scan cannot find stays None.
"""

import asyncio
import logging
import re
from datetime import date

from dateutil.relativedelta import relativedelta
from pydantic import ValidationError

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
    DataQuality,
    DataSourceQuality,
    Domain,
    ExitSnapshot,
    FinancingStructure,
    MasterSnapshot,
    SnapshotOrigin,
    TransactionDetails,
)
from deal_brain.patterns import MULTIPLIERS
from deal_brain.standardizer import (
    StandardizationFailure,
    normalize_currency_code,
    standardize_date,
    to_number,
)

logger = logging.getLogger(__name__)

FALLBACK_CONFIDENCE = 0.3
# Longer stated holding periods are treated as misread cells
MAX_HOLDING_MONTHS = 360
DEFAULT_AI_CONFIDENCE = 0.5

FALLBACK_LABELS: dict[str, str] = {
    "equityContribution": "equity contribution",
    "debtFinancing": "debt financing",
    "currency": "currency",
    "transactionFee": "transaction fee",
    "ltv": "ltv",
    "acquisitionDate": "acquisition date",
    "holdingPeriod": "holding period",
}

CRITICAL_FIELDS = (
    "dealValue", "currency", "equityContribution",
    "debtFinancing", "closingDate", "expectedExitDate",
)

_DOLLAR_AMOUNT = re.compile(r"\$\s*(\d[\d,]*(?:\.\d+)?)\s*(million|billion|mm|bn|m|b)\b", re.IGNORECASE)


def last_token(line: str) -> str | None:
    """Last non-empty comma-separated token (``Label,,,,,Value`` -> ``Value``)."""
    tokens = [t.strip() for t in line.split(",")]
    tokens = [t for t in tokens if t]
    if len(tokens) >= 2:
        return tokens[-1]
    # "Label: value" rows without commas
    if ":" in line:
        value = line.rsplit(":", 1)[1].strip()
        return value or None
    return None


def _label_lines(lines: list[str], label: str):
    pattern = re.compile(r"\b" + re.escape(label) + r"s?\b", re.IGNORECASE)
    for line in lines:
        if pattern.search(line):
            token = last_token(line)
            if token is not None:
                yield line, token


def _parse_amount(line: str, token: str) -> float | None:
    number = to_number(token)
    return number if number is not None and number > 0 else None


def _parse_percent(line: str, token: str) -> float | None:
    number = to_number(token.replace("%", ""))
    return number if number is not None and 0 < number <= 100 else None


def _parse_currency(line: str, token: str) -> str | None:
    try:
        return normalize_currency_code(token)
    except StandardizationFailure:
        return None


def _parse_date(line: str, token: str) -> str | None:
    try:
        return standardize_date(token)
    except StandardizationFailure:
        return None


def _parse_months(line: str, token: str) -> float | None:
    number = to_number(token)
    if number is None or number <= 0:
        return None
    if re.search(r"\byears?\b", line, re.IGNORECASE):
        number *= 12
    return number if number <= MAX_HOLDING_MONTHS else None


def _scan(lines: list[str], key: str, parse) -> object | None:
    for line, token in _label_lines(lines, FALLBACK_LABELS[key]):
        value = parse(line, token)
        if value is not None:
            return value
    return None


def build_fallback_snapshot(corpus: DocumentCorpus) -> MasterSnapshot:
    """Deterministic snapshot from labelled lines; never fabricates values."""
    lines = corpus.lines()
    if not lines:
        return MasterSnapshot.empty()

    equity = _scan(lines, "equityContribution", _parse_amount)
    debt = _scan(lines, "debtFinancing", _parse_amount)
    currency = _scan(lines, "currency", _parse_currency)
    fee = _scan(lines, "transactionFee", _parse_percent)
    ltv = _scan(lines, "ltv", _parse_percent)
    acquired = _scan(lines, "acquisitionDate", _parse_date)
    holding_months = _scan(lines, "holdingPeriod", _parse_months)

    assumptions: list[str] = []
    deal_value = None
    if equity is not None and debt is not None:
        deal_value = equity + debt
        assumptions.append("Deal value is equity contribution plus debt financing")
    elif equity is not None or debt is not None:
        deal_value = equity if equity is not None else debt
        assumptions.append("Deal value taken from the only financing component found")
    else:
        m = _DOLLAR_AMOUNT.search(corpus.text)
        if m:
            deal_value = float(m.group(1).replace(",", "")) * MULTIPLIERS[m.group(2).lower()]
            assumptions.append("Deal value taken from the first dollar amount in the documents")

    if ltv is None and equity is not None and debt is not None and deal_value:
        ltv = round(debt / deal_value * 100, 4)
        assumptions.append("LTV is debt financing over deal value")

    exit_date = None
    if acquired is not None and holding_months is not None:
        try:
            exit_day = date.fromisoformat(acquired) + relativedelta(months=int(round(holding_months)))
        except (ValueError, OverflowError) as e:
            logger.info("Could not derive exit date from acquisition date: %s", e)
        else:
            exit_date = exit_day.isoformat()
            assumptions.append("Exit date is acquisition date plus holding period")

    found = {
        "dealValue": deal_value,
        "currency": currency,
        "equityContribution": equity,
        "debtFinancing": debt,
        "closingDate": acquired,
        "expectedExitDate": exit_date,
    }
    anything = any(v is not None for v in (*found.values(), fee, ltv, holding_months))

    logger.info(
        "Fallback snapshot: %d of %d critical fields found",
        sum(v is not None for v in found.values()), len(found),
    )

    return MasterSnapshot(
        transaction_details=TransactionDetails(
            deal_value=deal_value,
            currency=currency,
            transaction_fees=fee,
            closing_date=acquired,
            expected_exit_date=exit_date,
        ),
        financing_structure=FinancingStructure(
            total_deal_value=deal_value,
            debt_ltv=ltv,
            equity_contribution=equity,
            debt_financing=debt,
        ),
        exit_assumptions=ExitSnapshot(
            holding_period_years=round(holding_months / 12, 2) if holding_months is not None else None,
        ),
        data_quality=DataQuality(
            overall_confidence=FALLBACK_CONFIDENCE if anything else 0.0,
            missing_critical_data=[k for k in CRITICAL_FIELDS if found[k] is None],
            assumptions=assumptions,
            data_source_quality=DataSourceQuality.LOW,
        ),
        origin=SnapshotOrigin.PATTERN if anything else SnapshotOrigin.NONE,
    )


class MasterAnalyzer:
    """Runs the holistic pass; always returns a snapshot, possibly empty."""

    def __init__(self, insight: DocumentInsightService | None = None, timeout: float | None = None):
        self._insight = insight
        if timeout is not None:
            self._timeout = timeout
        elif insight is not None:
            self._timeout = insight.timeout
        else:
            self._timeout = float(settings.INSIGHT_TIMEOUT_SECONDS)

    async def analyze(self, corpus: DocumentCorpus) -> MasterSnapshot:
        if self._insight is not None and not corpus.is_empty():
            snapshot = await self._analyze_with_ai(corpus)
            if snapshot is not None:
                return snapshot
        return build_fallback_snapshot(corpus)

    async def _analyze_with_ai(self, corpus: DocumentCorpus) -> MasterSnapshot | None:
        try:
            payload = await asyncio.wait_for(
                self._insight.extract(corpus.documents, Domain.MASTER_ANALYSIS),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Master analysis timed out after %.0fs, using fallback", self._timeout)
            return None
        except (InsightServiceUnavailable, UnparseableResponse) as e:
            logger.warning("Master analysis unavailable, using fallback: %s", e)
            return None
        except InsightServiceError as e:
            logger.error("Master analysis failed, using fallback: %s", e)
            return None
        except Exception:
            logger.exception("Unexpected master analysis failure, using fallback")
            return None

        if payload is None:
            logger.info("Master analysis returned no data, using fallback")
            return None
        return snapshot_from_payload(payload)


def snapshot_from_payload(payload: InsightPayload) -> MasterSnapshot | None:
    """Validate an AI payload into a snapshot; None if it is unusable or empty."""
    data = payload.data
    extracted = data.get("extractedData")
    if isinstance(extracted, dict):
        data = extracted
    standardized = data.get("standardizedData")
    if isinstance(standardized, dict):
        data = standardized

    try:
        snapshot = MasterSnapshot.model_validate({**data, "origin": SnapshotOrigin.AI})
    except ValidationError as e:
        logger.warning("Master analysis payload failed validation: %d errors", e.error_count())
        return None

    if snapshot.is_empty():
        logger.info("Master analysis payload carried no data, using fallback")
        return None

    quality = data.get("dataQuality")
    if not isinstance(quality, dict) or quality.get("overallConfidence") is None:
        confidence = payload.certainty if payload.certainty is not None else DEFAULT_AI_CONFIDENCE
        snapshot = snapshot.model_copy(update={
            "data_quality": snapshot.data_quality.model_copy(update={"overall_confidence": confidence}),
        })
    return snapshot
