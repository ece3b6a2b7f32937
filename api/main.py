"""
De-Escalator API — Main Application

POST /classify       — Is this text escalatory, and along which dimension
POST /rewrite        — Rule-based de-escalated rewrite with diff spans
POST /delta          — What the user changed relative to a suggestion
POST /api/rephrase   — LLM rewrite with rule fallback
POST /interactions   — Record what a user did with a suggestion
GET  /interactions   — Recent interaction records
GET  /patterns       — The active pattern catalog
GET  /health         — Health check
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.requests import Request

from deescalator import __version__
from deescalator.cache import rephrase_cache
from deescalator.catalog import CATALOG
from deescalator.classifier import classify
from deescalator.config import settings
from deescalator.delta import delta
from deescalator.interactions import InteractionLog, InteractionRecord
from deescalator.llm.factory import get_provider
from deescalator.logging import get_logger, setup_logging
from deescalator.rate_limit import check_rate_limit
from deescalator.rephraser import rephrase
from deescalator.rewriter import compute_diff_spans, rewrite_with_trace
from deescalator.schemas.api import (
    ClassifyResponse,
    DeltaRequest,
    DeltaResponse,
    HealthResponse,
    InteractionListResponse,
    InteractionRequest,
    InteractionResponse,
    PatternsResponse,
    RephraseRequest,
    RephraseResponse,
    RewriteResponse,
    TextRequest,
)

logger = get_logger("api")


# ============================================================
# STARTUP / SHUTDOWN
# ============================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(
        f"De-Escalator API starting (threshold={settings.ESCALATION_THRESHOLD}, "
        f"profanity_policy={settings.PROFANITY_POLICY})",
        extra={"catalog_version": CATALOG.version},
    )
    yield
    logger.info("De-Escalator API shutting down")


app = FastAPI(
    title="De-Escalator API",
    description="Escalation detection and de-escalated rewrites for conversational text",
    version=f"{__version__} (catalog {CATALOG.version})",
    lifespan=lifespan,
)

# Browser extensions call from origins that vary per install; narrow
# DEESCALATOR_CORS_ORIGINS in production.
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",")],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
    allow_credentials=False,
)


# ============================================================
# GLOBAL ERROR HANDLER
# ============================================================

@app.exception_handler(Exception)
async def global_error_handler(request: Request, exc: Exception):
    """Catch unhandled exceptions; return a structured error without internals."""
    logger.error(
        f"Unhandled exception: {type(exc).__name__}",
        extra={"error": str(exc), "path": request.url.path, "method": request.method},
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error. The request could not be completed."},
    )


# ============================================================
# DEPENDENCIES
# ============================================================

_llm = None
_interaction_log: Optional[InteractionLog] = None


def _get_llm():
    global _llm
    if _llm is None:
        _llm = get_provider(settings.LLM_PROVIDER)
    return _llm


def _get_interaction_log() -> InteractionLog:
    global _interaction_log
    if _interaction_log is None:
        _interaction_log = InteractionLog()
    return _interaction_log


def client_id(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def rate_limited(request: Request) -> Optional[str]:
    cid = client_id(request)
    check_rate_limit(cid)
    return cid


# ============================================================
# ROUTES
# ============================================================

@app.post("/classify", response_model=ClassifyResponse)
async def classify_text(request: TextRequest, cid: Optional[str] = Depends(rate_limited)):
    """Classify text as escalatory or not."""
    result = classify(request.text)
    logger.info(
        f"Classified: escalatory={result.is_escalatory} type={result.escalation_type.value}",
        extra={
            "score": result.score,
            "is_escalatory": result.is_escalatory,
            "escalation_type": result.escalation_type.value,
            "client_id": cid,
        },
    )
    return result.to_dict()


@app.post("/rewrite", response_model=RewriteResponse)
async def rewrite_text(request: TextRequest, cid: Optional[str] = Depends(rate_limited)):
    """
    Produce the rule-based rewrite.

    Runs regardless of the classification; both the original's and the
    rewrite's classification are returned so clients can decide.
    """
    rewritten, stages = rewrite_with_trace(request.text)
    return {
        "original": request.text,
        "rewritten": rewritten,
        "stages_applied": stages,
        "diff_spans": compute_diff_spans(request.text, rewritten),
        "classification": classify(request.text).to_dict(),
        "rewrite_classification": classify(rewritten).to_dict(),
    }


@app.post("/delta", response_model=DeltaResponse)
async def delta_text(request: DeltaRequest, cid: Optional[str] = Depends(rate_limited)):
    return {"delta": delta(request.actual, request.suggested)}


@app.post("/api/rephrase", response_model=RephraseResponse)
async def rephrase_text(request: RephraseRequest, cid: Optional[str] = Depends(rate_limited)):
    """De-escalate text with the LLM, falling back to the rule rewrite."""
    start = time.time()

    cached = await rephrase_cache.get(request.text, CATALOG.version)
    if cached:
        return cached

    result = await rephrase(request.text, llm=_get_llm())
    result["rephrasedText"] = result["rephrased"]

    # Rule fallbacks after an LLM error are not cached; the backend may recover.
    if "error" not in result:
        await rephrase_cache.put(request.text, CATALOG.version, result)

    logger.info(
        f"Rephrase complete: source={result['source']}",
        extra={
            "source": result["source"],
            "is_escalatory": result["classification"]["is_escalatory"],
            "duration_ms": int((time.time() - start) * 1000),
            "client_id": cid,
            "error": result.get("error"),
        },
    )
    return result


@app.post("/interactions", response_model=InteractionResponse)
async def log_interaction(request: InteractionRequest, cid: Optional[str] = Depends(rate_limited)):
    """Record an interaction. The delta is computed here, never trusted from clients."""
    record = InteractionRecord.from_payload(request.model_dump())
    row_id = _get_interaction_log().log(record)
    logger.info(
        "Interaction logged",
        extra={"interaction_id": row_id, "escalation_type": record.escalation_type},
    )
    return {"id": row_id, "delta": record.delta, "record": record.to_dict()}


@app.get("/interactions", response_model=InteractionListResponse)
async def get_interactions(limit: int = Query(20, ge=1, le=100)):
    log = _get_interaction_log()
    return {"entries": log.get_recent(limit=limit), "total_count": log.count()}


@app.get("/patterns", response_model=PatternsResponse)
async def get_patterns():
    """Every rule, profane idiom and non-verbal cue in the active catalog."""
    patterns = CATALOG.describe()
    return {
        "catalog_version": CATALOG.version,
        "total": len(patterns),
        "patterns": patterns,
    }


@app.get("/health", response_model=HealthResponse)
async def health():
    return {
        "status": "operational",
        "version": __version__,
        "catalog_version": CATALOG.version,
        "threshold": settings.ESCALATION_THRESHOLD,
        "profanity_policy": settings.PROFANITY_POLICY,
        "llm_provider": settings.LLM_PROVIDER,
        "llm_configured": bool(settings.GEMINI_API_KEY),
        "interactions_logged": _get_interaction_log().count(),
        "cache": rephrase_cache.stats,
    }


# --- Version Headers Middleware ---
@app.middleware("http")
async def add_version_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Deescalator-Version"] = __version__
    response.headers["X-Catalog-Version"] = CATALOG.version
    response.headers["X-Content-Type-Options"] = "nosniff"
    return response


# --- Body Size Limit Middleware ---
_MAX_BODY_BYTES = 65_536  # 64 KB; texts are capped at MAX_TEXT_LENGTH characters


@app.middleware("http")
async def enforce_body_size_limit(request: Request, call_next):
    """Reject oversized requests, checking both Content-Length and the actual body."""
    content_length = request.headers.get("content-length")
    if content_length:
        try:
            if int(content_length) > _MAX_BODY_BYTES:
                return JSONResponse(
                    status_code=413,
                    content={"detail": "Request body too large."},
                )
        except ValueError:
            pass  # malformed header; the framework rejects it

    if request.method in ("POST", "PUT", "PATCH"):
        body = await request.body()
        if len(body) > _MAX_BODY_BYTES:
            return JSONResponse(
                status_code=413,
                content={"detail": "Request body too large."},
            )

    return await call_next(request)


# --- Request Logging Middleware ---
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every API request with method, path, status, duration."""
    path = request.url.path
    if path == "/health":
        return await call_next(request)

    start = time.time()
    response = await call_next(request)
    duration_ms = round((time.time() - start) * 1000, 1)

    logger.info(
        f"{request.method} {path} → {response.status_code} ({duration_ms}ms)",
        extra={
            "method": request.method,
            "path": path,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        },
    )
    return response
