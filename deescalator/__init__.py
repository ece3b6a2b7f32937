"""
De-Escalator — Escalation Detection and Rewrite Engine

Detects escalatory language in conversational text and proposes a
de-escalated rewrite.

Public API:
  - classify:  score text against the pattern catalog and decide
  - rewrite:   ordered rule pipeline producing a de-escalated rewrite
  - delta:     what a user changed relative to the suggestion
  - score:     raw weighted score with reasons
  - CATALOG:   the immutable, versioned pattern catalog
  - rephrase:  LLM rewrite with rule fallback (async)

Usage:
    from deescalator import classify, rewrite, delta
    result = classify("You are always wrong!!")
    if result.is_escalatory:
        suggestion = rewrite("You are always wrong!!")
"""

__version__ = "1.0.0"

from deescalator.catalog import (
    CATALOG,
    CATALOG_VERSION,
    Category,
    CatalogValidationError,
    PatternCatalog,
    build_catalog,
)
from deescalator.scorer import InvalidInput, Reason, ScoreResult, score
from deescalator.classifier import (
    ClassificationResult,
    EscalationType,
    THRESHOLD_BASELINE,
    THRESHOLD_REDUCED,
    classify,
)
from deescalator.rewriter import REWRITE_STAGES, rewrite, rewrite_with_trace
from deescalator.delta import delta
from deescalator.validation import activate_catalog, validate_catalog
from deescalator.llm import LLMProvider
from deescalator.rephraser import rephrase

__all__ = [
    "CATALOG",
    "CATALOG_VERSION",
    "Category",
    "CatalogValidationError",
    "PatternCatalog",
    "build_catalog",
    "InvalidInput",
    "Reason",
    "ScoreResult",
    "score",
    "ClassificationResult",
    "EscalationType",
    "THRESHOLD_BASELINE",
    "THRESHOLD_REDUCED",
    "classify",
    "REWRITE_STAGES",
    "rewrite",
    "rewrite_with_trace",
    "delta",
    "activate_catalog",
    "validate_catalog",
    "LLMProvider",
    "rephrase",
]
