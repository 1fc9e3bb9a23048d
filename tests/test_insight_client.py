"""Tests for the insight service client: payload handling and error mapping."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from deal_brain.corpus import DocumentCorpus
from deal_brain.insight_client import (
    DocumentInsightService,
    InsightServiceError,
    InsightServiceUnavailable,
    UnparseableResponse,
    try_parse_json,
)
from deal_brain.models import Domain


@pytest.fixture
def insight() -> DocumentInsightService:
    """Client pointed at a fake host; every test patches the transport calls."""
    return DocumentInsightService(base_url="http://fake-insight:8091/", timeout=5, connect_timeout=2)


@pytest.fixture
def documents():
    return DocumentCorpus.from_files([("memo.txt", "Deal value: $100 million")]).documents


class TestTryParseJSON:
    def test_direct_json(self):
        assert try_parse_json('{"dealValue": 100}') == {"dealValue": 100}

    def test_markdown_fence(self, mock_markdown_response: str):
        result = try_parse_json(mock_markdown_response)
        assert result == {"dealValue": 100000000, "dealLTV": 70}

    def test_think_block_ignored(self, mock_think_response: str):
        result = try_parse_json(mock_think_response)
        assert result == {"dealValue": 250000000}

    def test_preamble_with_nested_objects(self):
        raw = 'Here is the data:\n{"transactionDetails": {"dealValue": 5}, "dataQuality": {"overallConfidence": 0.4}}'
        result = try_parse_json(raw)
        assert result["transactionDetails"] == {"dealValue": 5}

    def test_not_json(self):
        assert try_parse_json("No figures could be found.") is None

    def test_array_not_dict(self):
        assert try_parse_json("[1, 2, 3]") is None

    def test_empty_string(self):
        assert try_parse_json("") is None


class TestExtract:
    @pytest.mark.asyncio
    async def test_structured_data(self, insight: DocumentInsightService, documents):
        response = httpx.Response(200, json={"data": {"dealValue": 100000000}, "certainty": 85})

        with patch.object(insight._client, "post", AsyncMock(return_value=response)) as post:
            payload = await insight.extract(documents, Domain.DEAL_ASSUMPTIONS)

        assert payload.data == {"dealValue": 100000000}
        assert payload.certainty == pytest.approx(0.85)

        body = post.call_args.kwargs["json"]
        assert post.call_args.args[0] == "/extract"
        assert body["domain"] == "dealAssumptions"
        assert '"dealValue"' in body["prompt"]
        assert body["documents"][0]["source_name"] == "memo.txt"
        assert body["documents"][0]["mime_class"] == "narrative"

    @pytest.mark.asyncio
    async def test_model_text_salvaged(self, insight: DocumentInsightService, documents, mock_think_response: str):
        response = httpx.Response(200, json={"text": mock_think_response})

        with patch.object(insight._client, "post", AsyncMock(return_value=response)):
            payload = await insight.extract(documents, "dealAssumptions")

        assert payload.data == {"dealValue": 250000000}
        assert payload.certainty is None

    @pytest.mark.asyncio
    async def test_unparseable_text(self, insight: DocumentInsightService, documents):
        response = httpx.Response(200, json={"text": "I could not find a deal value."})

        with patch.object(insight._client, "post", AsyncMock(return_value=response)):
            with pytest.raises(UnparseableResponse):
                await insight.extract(documents, Domain.DEAL_ASSUMPTIONS)

    @pytest.mark.asyncio
    async def test_empty_answer_is_none(self, insight: DocumentInsightService, documents):
        for body in ({"data": {}}, {"text": ""}, {"data": None}):
            response = httpx.Response(200, json=body)
            with patch.object(insight._client, "post", AsyncMock(return_value=response)):
                assert await insight.extract(documents, Domain.DEBT_MODEL) is None

    @pytest.mark.asyncio
    async def test_non_object_body(self, insight: DocumentInsightService, documents):
        response = httpx.Response(200, json=["not", "an", "object"])

        with patch.object(insight._client, "post", AsyncMock(return_value=response)):
            with pytest.raises(UnparseableResponse):
                await insight.extract(documents, Domain.DEBT_MODEL)

    @pytest.mark.asyncio
    async def test_503_raises_unavailable(self, insight: DocumentInsightService, documents):
        response = httpx.Response(503, json={"detail": "Model loading"})

        with patch.object(insight._client, "post", AsyncMock(return_value=response)) as post:
            with pytest.raises(InsightServiceUnavailable, match="Model loading"):
                await insight.extract(documents, Domain.DEAL_ASSUMPTIONS)
        # never retried
        assert post.await_count == 1

    @pytest.mark.asyncio
    async def test_500_raises_error(self, insight: DocumentInsightService, documents):
        response = httpx.Response(500, json={"detail": "Internal error"})

        with patch.object(insight._client, "post", AsyncMock(return_value=response)):
            with pytest.raises(InsightServiceError, match="Internal error"):
                await insight.extract(documents, Domain.DEAL_ASSUMPTIONS)

    @pytest.mark.asyncio
    async def test_400_without_json_body(self, insight: DocumentInsightService, documents):
        response = httpx.Response(400, text="bad request")

        with patch.object(insight._client, "post", AsyncMock(return_value=response)):
            with pytest.raises(InsightServiceError, match="HTTP 400"):
                await insight.extract(documents, Domain.DEAL_ASSUMPTIONS)

    @pytest.mark.asyncio
    async def test_connect_error(self, insight: DocumentInsightService, documents):
        with patch.object(insight._client, "post", AsyncMock(side_effect=httpx.ConnectError("Connection refused"))):
            with pytest.raises(InsightServiceUnavailable, match="Cannot connect"):
                await insight.extract(documents, Domain.DEAL_ASSUMPTIONS)

    @pytest.mark.asyncio
    async def test_read_timeout(self, insight: DocumentInsightService, documents):
        with patch.object(insight._client, "post", AsyncMock(side_effect=httpx.ReadTimeout("timed out"))):
            with pytest.raises(InsightServiceUnavailable, match="read timeout"):
                await insight.extract(documents, Domain.DEAL_ASSUMPTIONS)

    @pytest.mark.asyncio
    async def test_unknown_domain_has_no_prompt(self, insight: DocumentInsightService, documents):
        with pytest.raises(KeyError):
            await insight.extract(documents, "sentimentAnalysis")


class TestHealth:
    @pytest.mark.asyncio
    async def test_health_ok(self, insight: DocumentInsightService):
        response = httpx.Response(200, json={"status": "healthy", "model": "deal-extractor"})

        with patch.object(insight._client, "get", AsyncMock(return_value=response)):
            assert (await insight.health())["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_health_never_raises(self, insight: DocumentInsightService):
        with patch.object(insight._client, "get", AsyncMock(side_effect=httpx.ConnectError("refused"))):
            health = await insight.health()
        assert health["status"] == "unreachable"
        assert "refused" in health["error"]


class TestConfig:
    def test_timeouts_from_arguments(self):
        client = DocumentInsightService(base_url="http://fake-insight:8091", timeout=12, connect_timeout=3)
        assert client.timeout == 12.0
        assert client._client.timeout.read == 12.0
        assert client._client.timeout.connect == 3.0
