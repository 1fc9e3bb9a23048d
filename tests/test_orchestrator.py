"""Tests for the master-then-fan-out pipeline."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from deal_brain.extractors import build_extractors
from deal_brain.insight_client import InsightPayload
from deal_brain.models import DOMAIN_ORDER, Domain, ExtractedField, FieldSource, SnapshotOrigin
from deal_brain.orchestrator import ExtractionOrchestrator


def _files(deal_csv: str) -> list[tuple[str, str]]:
    return [("deal_model.csv", deal_csv)]


class TestExtractionOrchestrator:
    @pytest.mark.asyncio
    async def test_six_records_in_order(self, deal_csv: str):
        result = await ExtractionOrchestrator().run(_files(deal_csv))

        assert [r.domain for r in result.records] == list(DOMAIN_ORDER)
        assert result.snapshot.origin == SnapshotOrigin.PATTERN
        assert result.warnings == []
        assert result.processing_time_ms >= 0

        deal = result.record(Domain.DEAL_ASSUMPTIONS)
        assert deal.value("dealValue") == 100_000_000
        assert deal.value("dealLTV") == pytest.approx(70.0)
        assert deal.target_currency == "USD"

    @pytest.mark.asyncio
    async def test_slow_extractor_replaced_by_pattern_record(self, deal_csv: str):
        extractors = build_extractors()

        async def slow(corpus, snapshot):
            await asyncio.sleep(5)

        extractors[1].extract = slow
        orchestrator = ExtractionOrchestrator(extractors=extractors, timeout=0.05)
        result = await orchestrator.run(_files(deal_csv))

        message = "dealAssumptions: timed out, used pattern matching only"
        deal = result.record(Domain.DEAL_ASSUMPTIONS)
        assert message in result.warnings
        assert message in deal.warnings
        assert deal.value("dealValue") == 100_000_000
        assert len(result.records) == 6

    @pytest.mark.asyncio
    async def test_failing_extractor_replaced_by_pattern_record(self, deal_csv: str):
        extractors = build_extractors()
        extractors[4].extract = AsyncMock(side_effect=RuntimeError("boom"))

        result = await ExtractionOrchestrator(extractors=extractors).run(_files(deal_csv))

        assert result.warnings == ["debtModel: extraction failed, used pattern matching only"]
        assert result.record(Domain.DEBT_MODEL).domain == Domain.DEBT_MODEL
        assert not any("extraction failed" in w for w in result.record(Domain.DEAL_ASSUMPTIONS).warnings)

    @pytest.mark.asyncio
    async def test_cancelling_run_cancels_extractors(self, deal_csv: str):
        started = asyncio.Event()
        cancelled = asyncio.Event()

        async def hang(corpus, snapshot):
            started.set()
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        extractors = build_extractors()
        extractors[0].extract = hang
        run = asyncio.create_task(ExtractionOrchestrator(extractors=extractors).run(_files(deal_csv)))

        await asyncio.wait_for(started.wait(), timeout=1)
        run.cancel()
        with pytest.raises(asyncio.CancelledError):
            await run
        assert cancelled.is_set()

    @pytest.mark.asyncio
    async def test_ai_answers_per_domain(self, deal_csv: str, mock_master_response: str):
        async def answer(documents, domain):
            if domain == Domain.MASTER_ANALYSIS:
                return InsightPayload(data=json.loads(mock_master_response))
            if domain == Domain.DEAL_ASSUMPTIONS:
                return InsightPayload(data={"dealValue": 120000000, "dealLTV": 50}, certainty=0.9)
            return None

        insight = MagicMock()
        insight.timeout = 5.0
        insight.extract = AsyncMock(side_effect=answer)

        result = await ExtractionOrchestrator(insight=insight).run(_files(deal_csv), target_currency="eur")

        assert result.snapshot.origin == SnapshotOrigin.AI
        assert result.snapshot.company_overview.company_name == "Harbor Logistics"
        # one master call plus one per domain
        assert insight.extract.await_count == 7

        deal = result.record(Domain.DEAL_ASSUMPTIONS)
        assert deal.target_currency == "EUR"
        assert deal.value("dealValue") == pytest.approx(120_000_000)
        assert deal.get("dealValue").source == FieldSource.AI
        assert deal.value("dealLTV") == 50

    @pytest.mark.asyncio
    async def test_confidence_bounds(self, deal_csv: str, unavailable_insight):
        result = await ExtractionOrchestrator(insight=unavailable_insight).run(_files(deal_csv))

        for record in result.records:
            for field in record.fields.values():
                assert 0.0 <= field.confidence <= 1.0
                if not field.found:
                    assert field.confidence == 0.0

    @pytest.mark.asyncio
    async def test_empty_input_is_all_missing(self, unavailable_insight):
        result = await ExtractionOrchestrator(insight=unavailable_insight).run([])

        assert len(result.records) == 6
        assert result.snapshot.is_empty()
        for record in result.records:
            for field in record.fields.values():
                assert field == ExtractedField.missing()
        unavailable_insight.extract.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_target_currency_override(self, deal_csv: str):
        orchestrator = ExtractionOrchestrator(target_currency="usd")
        result = await orchestrator.run(_files(deal_csv), target_currency="EUR")

        deal = result.record(Domain.DEAL_ASSUMPTIONS)
        assert deal.target_currency == "EUR"
        assert deal.value("dealValue") == pytest.approx(85_000_000)

    @pytest.mark.asyncio
    async def test_implausible_holding_period_does_not_fail_run(self):
        files = [("deal.csv", "Acquisition date,,,,,31/03/2025\nHolding Period,,,,,200000")]
        result = await ExtractionOrchestrator().run(files)

        assert len(result.records) == 6
        assert result.snapshot.transaction_details.expected_exit_date is None
        assert result.record(Domain.HIGH_LEVEL_PARAMETERS).value("projectStartDate") == "2025-03-31"
