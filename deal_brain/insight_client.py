"""HTTP client for the document insight (AI extraction) service.

Uses httpx with configurable timeouts. Calls are never retried: a timeout or
error means the caller falls back to pattern matching straight away.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

import httpx

from deal_brain.config import settings
from deal_brain.models import Domain, DocumentText
from deal_brain.prompts import prompt_for

logger = logging.getLogger(__name__)


class InsightServiceUnavailable(Exception):
    """Insight service cannot be reached (connection error, timeout, 503)."""


class InsightServiceError(Exception):
    """Insight service returned an error response (400, 500)."""


class UnparseableResponse(Exception):
    """Insight service answered, but not with a JSON object."""


@dataclass(frozen=True)
class InsightPayload:
    data: dict[str, Any]
    certainty: float | None = None


def try_parse_json(raw: str) -> dict | None:
    """Try to extract a JSON object from model output.

    Handles: direct JSON, markdown fences, preamble text, and
    <think>...</think> reasoning blocks.
    """
    if not raw:
        return None

    cleaned = re.sub(r"<think>.*?</think>", "", raw, flags=re.DOTALL).strip()

    # Try direct parse first
    try:
        result = json.loads(cleaned)
        if isinstance(result, dict):
            return result
    except json.JSONDecodeError:
        pass

    # Try to find JSON block in markdown code fences
    match = re.search(r"```(?:json)?\s*\n?(.*?)\n?```", cleaned, re.DOTALL)
    if match:
        try:
            result = json.loads(match.group(1).strip())
            if isinstance(result, dict):
                return result
        except json.JSONDecodeError:
            pass

    # Outermost { ... } span, which may contain nested objects
    start, end = cleaned.find("{"), cleaned.rfind("}")
    if start != -1 and end > start:
        try:
            result = json.loads(cleaned[start:end + 1])
            if isinstance(result, dict):
                return result
        except json.JSONDecodeError:
            pass

    logger.warning("Could not parse JSON from model response: %s", cleaned[:200])
    return None


def _certainty(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        certainty = float(value)
    except (TypeError, ValueError):
        return None
    if certainty > 1.0:
        certainty /= 100.0
    return min(1.0, max(0.0, certainty))


class DocumentInsightService:
    """Async HTTP client for the insight service. No retry, bounded timeouts."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: int | None = None,
        connect_timeout: int | None = None,
    ):
        self._base_url = (base_url or settings.INSIGHT_SERVICE_URL).rstrip("/")

        read_timeout = timeout if timeout is not None else settings.INSIGHT_TIMEOUT_SECONDS
        conn_timeout = connect_timeout if connect_timeout is not None else settings.INSIGHT_CONNECT_TIMEOUT
        self.timeout = float(read_timeout)

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(
                connect=float(conn_timeout),
                read=float(read_timeout),
                write=30.0,
                pool=30.0,
            ),
        )

    async def aclose(self):
        await self._client.aclose()

    async def extract(self, documents: list[DocumentText] | tuple[DocumentText, ...], domain: Domain | str) -> InsightPayload | None:
        """Ask the service for a structured guess for ``domain``.

        Returns None when the service has nothing to offer.
        Raises InsightServiceUnavailable, InsightServiceError or UnparseableResponse.
        """
        domain_tag = domain.value if isinstance(domain, Domain) else str(domain)
        payload = {
            "domain": domain_tag,
            "prompt": prompt_for(domain_tag),
            "documents": [d.model_dump(mode="json") for d in documents],
        }
        data = await self._send_extract(payload)

        if isinstance(data.get("data"), dict):
            parsed = data["data"]
        elif data.get("data") is None and "text" in data:
            parsed = try_parse_json(data.get("text") or "")
            if parsed is None and (data.get("text") or "").strip():
                raise UnparseableResponse(f"No JSON object in {domain_tag} response")
        elif data.get("data") is None:
            parsed = None
        else:
            raise UnparseableResponse(f"Unexpected {domain_tag} payload type: {type(data.get('data')).__name__}")

        if not parsed:
            return None
        return InsightPayload(data=parsed, certainty=_certainty(data.get("certainty")))

    async def _send_extract(self, payload: dict) -> dict:
        """Send a single extraction request to the insight service."""
        try:
            resp = await self._client.post("/extract", json=payload)
        except (httpx.ConnectError, httpx.ConnectTimeout) as e:
            logger.warning("Insight service connection failed: %s", e)
            raise InsightServiceUnavailable(f"Cannot connect to insight service: {e}") from e
        except httpx.ReadTimeout as e:
            logger.warning("Insight service read timeout: %s", e)
            raise InsightServiceUnavailable(f"Insight service read timeout: {e}") from e
        except httpx.HTTPError as e:
            logger.error("Insight service HTTP error: %s", e)
            raise InsightServiceError(f"Insight service HTTP error: {e}") from e

        if resp.status_code == 503:
            detail = _detail(resp, "Service unavailable")
            logger.warning("Insight service returned 503: %s", detail)
            raise InsightServiceUnavailable(detail)

        if resp.status_code != 200:
            detail = _detail(resp, f"HTTP {resp.status_code}")
            logger.error("Insight service error %d: %s", resp.status_code, detail)
            raise InsightServiceError(detail)

        try:
            data = resp.json()
        except ValueError as e:
            raise UnparseableResponse(f"Insight service returned non-JSON body: {e}") from e
        if not isinstance(data, dict):
            raise UnparseableResponse("Insight service returned a non-object body")
        return data

    async def health(self) -> dict:
        """Check insight service health. Never raises."""
        try:
            resp = await self._client.get("/health", timeout=10.0)
            return resp.json()
        except Exception as e:
            logger.warning("Insight health check failed: %s", e)
            return {"status": "unreachable", "error": str(e)}


def _detail(resp: httpx.Response, default: str) -> str:
    try:
        body = resp.json()
    except ValueError:
        return default
    if isinstance(body, dict):
        return str(body.get("detail", default))
    return default
