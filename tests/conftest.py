"""Shared test fixtures for deal brain tests."""

import json
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add parent directory to path so we can import the package without installing it
sys.path.insert(0, str(Path(__file__).parent.parent))

from deal_brain.corpus import DocumentCorpus
from deal_brain.insight_client import InsightServiceUnavailable
from deal_brain.models import MasterSnapshot


@pytest.fixture
def deal_csv() -> str:
    """Spreadsheet dump with label,,,,,value rows."""
    return "\n".join([
        "Deal Summary,,,,,",
        "Equity Contribution,,,,,30000000",
        "Debt Financing,,,,,70000000",
        "Currency,,,,,USD",
        "Acquisition date,,,,,31/03/2025",
        "Holding Period,,,,,60",
    ])


@pytest.fixture
def csv_corpus(deal_csv: str) -> DocumentCorpus:
    return DocumentCorpus.from_files([("deal_model.csv", deal_csv)])


@pytest.fixture
def empty_corpus() -> DocumentCorpus:
    return DocumentCorpus.from_files([])


@pytest.fixture
def empty_snapshot() -> MasterSnapshot:
    return MasterSnapshot.empty()


@pytest.fixture
def unavailable_insight() -> MagicMock:
    """Insight service stand-in whose every call fails to connect."""
    insight = MagicMock()
    insight.timeout = 5.0
    insight.extract = AsyncMock(side_effect=InsightServiceUnavailable("Cannot connect to insight service"))
    insight.health = AsyncMock(return_value={"status": "unreachable"})
    return insight


@pytest.fixture
def mock_master_response() -> str:
    """Model output for a masterAnalysis call, wrapped the way some models answer."""
    return json.dumps({
        "extractedData": {
            "standardizedData": {
                "companyOverview": {"companyName": "Harbor Logistics", "industry": "Logistics"},
                "transactionDetails": {
                    "dealValue": "150,000,000",
                    "currency": "EUR",
                    "closingDate": "2025-06-30",
                },
                "financingStructure": {"debtLTV": 60, "equityContribution": 60000000, "debtFinancing": 90000000},
                "dataQuality": {"overallConfidence": 85, "dataSourceQuality": "High"},
            }
        }
    })


@pytest.fixture
def mock_markdown_response() -> str:
    """Model output wrapped in a markdown code fence."""
    return '```json\n{"dealValue": 100000000, "dealLTV": 70}\n```'


@pytest.fixture
def mock_think_response() -> str:
    """Model output with a reasoning block before the JSON."""
    return '<think>\nThe memo says {"dealValue": 1} somewhere, but that is a footnote.\n</think>\n{"dealValue": 250000000}'
