"""Sequences the master pass and the six domain extractors.

Master analysis always completes first. The extractors then run as
concurrent tasks with one shared deadline; any extractor that does not
finish cleanly is replaced by its pattern-only record, so a run always
yields six well-formed records.
"""

import asyncio
import logging
import time

from deal_brain.config import settings
from deal_brain.corpus import DocumentCorpus
from deal_brain.extractors import DomainExtractor, build_extractors
from deal_brain.insight_client import DocumentInsightService
from deal_brain.master_analyzer import MasterAnalyzer
from deal_brain.models import ExtractionResult, MasterSnapshot, StandardizedRecord
from deal_brain.standardizer import DataStandardizer

logger = logging.getLogger(__name__)


class ExtractionOrchestrator:
    def __init__(
        self,
        insight: DocumentInsightService | None = None,
        standardizer: DataStandardizer | None = None,
        master: MasterAnalyzer | None = None,
        extractors: list[DomainExtractor] | None = None,
        target_currency: str | None = None,
        timeout: float | None = None,
    ):
        self._insight = insight
        self._standardizer = standardizer or DataStandardizer()
        self._master = master or MasterAnalyzer(insight)
        self._extractors = extractors
        self._target_currency = (target_currency or settings.TARGET_CURRENCY).upper()
        self._timeout = timeout if timeout is not None else float(settings.REQUEST_TIMEOUT_SECONDS)

    def extractors_for(self, target_currency: str) -> list[DomainExtractor]:
        if self._extractors is not None:
            return self._extractors
        return build_extractors(
            insight=self._insight,
            standardizer=self._standardizer,
            target_currency=target_currency,
        )

    async def run(
        self,
        files: list[tuple[str, str]],
        timeout: float | None = None,
        target_currency: str | None = None,
    ) -> ExtractionResult:
        """Extract all six domains from ``(source_name, content)`` pairs."""
        start = time.monotonic()
        corpus = DocumentCorpus.from_files(files)

        snapshot = await self._master.analyze(corpus)
        logger.info(
            "Master snapshot ready: origin=%s confidence=%.2f",
            snapshot.origin.value, snapshot.overall_confidence,
        )

        extractors = self.extractors_for((target_currency or self._target_currency).upper())
        records, warnings = await self._fan_out(
            extractors, corpus, snapshot, timeout if timeout is not None else self._timeout,
        )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.info("Extraction finished in %dms (%d documents)", elapsed_ms, len(corpus))
        return ExtractionResult(
            snapshot=snapshot,
            records=records,
            processing_time_ms=elapsed_ms,
            warnings=warnings,
        )

    async def _fan_out(
        self,
        extractors: list[DomainExtractor],
        corpus: DocumentCorpus,
        snapshot: MasterSnapshot,
        timeout: float,
    ) -> tuple[list[StandardizedRecord], list[str]]:
        tasks = [
            asyncio.create_task(e.extract(corpus, snapshot), name=f"extract-{e.domain.value}")
            for e in extractors
        ]
        try:
            done, pending = await asyncio.wait(tasks, timeout=timeout)
        except asyncio.CancelledError:
            # Caller aborted the request: stop every extractor before re-raising
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        warnings: list[str] = []
        if pending:
            logger.warning("%d extractors exceeded the %.0fs deadline, cancelling", len(pending), timeout)
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        records: list[StandardizedRecord] = []
        for extractor, task in zip(extractors, tasks):
            if task in done and not task.cancelled() and task.exception() is None:
                records.append(task.result())
                continue

            if task in pending or task.cancelled():
                message = f"{extractor.domain.value}: timed out, used pattern matching only"
            else:
                logger.error(
                    "%s extractor failed: %s", extractor.domain.value, task.exception(),
                )
                message = f"{extractor.domain.value}: extraction failed, used pattern matching only"
            warnings.append(message)
            record = extractor.extract_offline(corpus, snapshot)
            records.append(record.model_copy(update={"warnings": (*record.warnings, message)}))

        return records, warnings
