"""
API Schemas — Request and Response Models

Pydantic models for the De-Escalator API.
"""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, Field

from deescalator.config import settings

_MAX_TEXT = settings.MAX_TEXT_LENGTH


# ============================================================
# CLASSIFY / REWRITE
# ============================================================

class TextRequest(BaseModel):
    """POST /classify and POST /rewrite request body."""
    text: str = Field(..., max_length=_MAX_TEXT,
                      description=f"Text to analyze (up to {_MAX_TEXT} characters).")

    model_config = {"json_schema_extra": {"examples": [
        {"text": "You are always wrong!!"},
    ]}}


class ReasonResponse(BaseModel):
    category: str
    note: str
    weight: float


class ClassifyResponse(BaseModel):
    """POST /classify response body."""
    is_escalatory: bool
    escalation_type: str
    score: float
    reasons: list[ReasonResponse]
    threshold: float
    catalog_version: str


class RewriteResponse(BaseModel):
    """POST /rewrite response body."""
    original: str
    rewritten: str
    stages_applied: list[str]
    diff_spans: list[dict]
    classification: ClassifyResponse
    rewrite_classification: ClassifyResponse


# ============================================================
# DELTA
# ============================================================

class DeltaRequest(BaseModel):
    actual: str = Field(..., max_length=_MAX_TEXT,
                        description="The text the user actually posted.")
    suggested: str = Field(..., max_length=_MAX_TEXT,
                           description="The rewrite the user was offered.")


class DeltaResponse(BaseModel):
    delta: str


# ============================================================
# REPHRASE RELAY
# ============================================================

class RephraseRequest(BaseModel):
    """POST /api/rephrase request body."""
    text: str = Field(..., min_length=1, max_length=_MAX_TEXT,
                      pattern=r"^\s*\S",
                      description="Draft to de-escalate (non-blank).")


class RephraseResponse(BaseModel):
    """POST /api/rephrase response body.

    rephrasedText mirrors rephrased for clients of the older relay.
    """
    original: str
    rephrased: str
    rephrasedText: str
    source: str
    rephrase_triggered: bool
    classification: ClassifyResponse
    suggestion_classification: Optional[ClassifyResponse] = None
    diff_spans: list[dict] = []
    catalog_version: str
    error: Optional[str] = None
    cached: bool = False


# ============================================================
# INTERACTIONS
# ============================================================

class InteractionRequest(BaseModel):
    """POST /interactions request body. Every field is optional."""
    user_id: Optional[str] = None
    date: Optional[str] = None
    gender: Optional[str] = None
    age: Optional[Union[str, int]] = None
    sector: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    original_post_content: Optional[str] = Field(None, max_length=_MAX_TEXT)
    original_post_writer: Optional[str] = None
    user_original_text: Optional[str] = Field(None, max_length=_MAX_TEXT)
    rephrase_suggestion: Optional[str] = Field(None, max_length=_MAX_TEXT)
    did_user_accept: Optional[Union[str, bool]] = None
    actual_posted_text: Optional[str] = Field(None, max_length=_MAX_TEXT)
    platform: Optional[str] = None
    context: Optional[str] = None
    escalation_type: Optional[str] = None


class InteractionResponse(BaseModel):
    id: int
    delta: str
    record: dict


class InteractionListResponse(BaseModel):
    entries: list[dict]
    total_count: int


# ============================================================
# CATALOG / HEALTH
# ============================================================

class PatternsResponse(BaseModel):
    catalog_version: str
    total: int
    patterns: list[dict]


class HealthResponse(BaseModel):
    status: str
    version: str
    catalog_version: str
    threshold: float
    profanity_policy: str
    llm_provider: str
    llm_configured: bool
    interactions_logged: int
    cache: dict
