"""FastAPI deal brain service: deal-parameter extraction from document text.

Runs the master pass and six domain extractors per request. The AI insight
service is optional; without it every domain runs on pattern matching.
Document contents are never logged, only sizes.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, File, Form, UploadFile
from fastapi.responses import JSONResponse

from deal_brain.config import settings
from deal_brain.insight_client import DocumentInsightService
from deal_brain.models import ExtractionResponse
from deal_brain.orchestrator import ExtractionOrchestrator
from deal_brain.standardizer import CURRENCY_RATES

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

_insight: DocumentInsightService | None = None
_orchestrator: ExtractionOrchestrator | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the insight client on startup if configured."""
    global _insight, _orchestrator

    if not settings.INSIGHT_SERVICE_URL:
        logger.info("Insight service not configured (INSIGHT_SERVICE_URL is empty), pattern-only extraction")
        _insight = None
    else:
        logger.info("Connecting to insight service at %s", settings.INSIGHT_SERVICE_URL)
        _insight = DocumentInsightService()

        # Startup health probe (log only)
        health = await _insight.health()
        if health.get("status") == "unreachable":
            logger.warning("Insight service not reachable yet: %s", health)
        else:
            logger.info("Insight service is up: %s", health)

    _orchestrator = ExtractionOrchestrator(insight=_insight)

    yield

    if _insight is not None:
        await _insight.aclose()
    _insight = None
    _orchestrator = None


app = FastAPI(title="Deal Brain", version="1.0.0", lifespan=lifespan)


@app.post("/api/v1/extract", response_model=ExtractionResponse)
async def extract(
    files: list[UploadFile] = File(...),
    target_currency: str = Form(default=""),
):
    """Extract deal parameters for all six domains from uploaded text files."""
    target = (target_currency or settings.TARGET_CURRENCY).strip().upper()
    if target not in CURRENCY_RATES:
        return JSONResponse(
            status_code=400,
            content={"detail": f"Unsupported target currency: {target}"},
        )

    documents: list[tuple[str, str]] = []
    total_bytes = 0
    for upload in files:
        content = await upload.read()
        if content:
            total_bytes += len(content)
            documents.append((upload.filename or "document", content.decode("utf-8", errors="replace")))

    if not documents:
        return JSONResponse(
            status_code=400,
            content={"detail": "Empty upload"},
        )

    # Sizes only, never content
    logger.info(
        "Processing extraction: files=%d size=%d bytes target=%s",
        len(documents), total_bytes, target,
    )

    orchestrator = _orchestrator or ExtractionOrchestrator(insight=_insight)
    result = await orchestrator.run(documents, target_currency=target)
    return ExtractionResponse.from_result(result)


@app.get("/health")
async def health():
    """Return service status and insight service availability."""
    base = {
        "status": "healthy",
        "insight_available": _insight is not None,
    }

    if _insight is not None:
        base["insight_health"] = await _insight.health()

    return base


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
