"""
Scoring Engine

Evaluates text against the pattern catalog and accumulates a weighted
escalation score. Deterministic, no I/O, safe to call from any thread:
the catalog is read-only and every call builds its own result.

Score = sum of:
  - simple pattern categories: rule weight, once per distinct rule
  - Categorical: +1.5 for 2+ occurrences, +1.0 for one in short text
  - profanity: one of +4 / +3 / +2.5 per curse-token span
  - non-verbal cues: exclamations, shouting, question barrages
  - +1 when argumentative and blame categories both fire
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from deescalator.catalog import (
    ARGUMENTATIVE_CATEGORIES,
    BLAME_CATEGORIES,
    CATALOG,
    CATEGORICAL_MULTI_WEIGHT,
    CATEGORICAL_SHORT_TEXT,
    CATEGORICAL_SINGLE_WEIGHT,
    COMBINATION_BONUS,
    PROFANITY_CONTEXT_WEIGHT,
    PROFANITY_IDIOM_WEIGHT,
    PROFANITY_STANDALONE_WEIGHT,
    Category,
    PatternCatalog,
)
from deescalator.config import settings

logger = logging.getLogger(__name__)


class InvalidInput(TypeError):
    """Raised when the core is called with something other than a string."""


def ensure_text(value: object, name: str = "text") -> str:
    if not isinstance(value, str):
        raise InvalidInput(
            f"{name} must be a str, got {type(value).__name__}"
        )
    return value


# Simple categories, in evaluation order
_SIMPLE_CATEGORIES: tuple[Category, ...] = (
    Category.ABSOLUTE_TRUTH,
    Category.GENERALIZED,
    Category.ONCE_ALWAYS,
    Category.ONLY_VERB,
    Category.BLAME,
    Category.MOCKING,
    Category.DISMISSIVE,
    Category.DISMISSIVE_RELATIONSHIP,
    Category.JUDGING,
    Category.THEY_BLAME,
    Category.DIRECT_PROFANITY,
)

_CLAUSE_BOUNDARY = re.compile(r"[.!?;:,\n]")
_WORD = re.compile(r"[a-z']+")

# Profanity attribution kinds
KIND_CONTEXT = "context"
KIND_IDIOM = "idiom"
KIND_STANDALONE = "standalone"


# ============================================================
# RESULT STRUCTURES
# ============================================================

@dataclass(frozen=True)
class Reason:
    """One contribution to the score, in evaluation order."""
    category: Category
    note: str
    weight: float

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "note": self.note,
            "weight": self.weight,
        }


@dataclass(frozen=True)
class ProfanityHit:
    """A curse-token occurrence and the single sub-category it counted toward."""
    token: str
    start: int
    end: int
    kind: str  # "context" | "idiom" | "standalone"
    category: Category
    weight: float


@dataclass
class ScoreResult:
    total_score: float = 0.0
    reasons: list[Reason] = field(default_factory=list)
    matched_categories: set[Category] = field(default_factory=set)
    profanity_hits: list[ProfanityHit] = field(default_factory=list)

    def add(self, category: Category, weight: float, note: str) -> None:
        self.total_score += weight
        self.reasons.append(Reason(category=category, note=note, weight=weight))
        self.matched_categories.add(category)

    @property
    def argumentative(self) -> bool:
        return bool(self.matched_categories & ARGUMENTATIVE_CATEGORIES)

    @property
    def blame(self) -> bool:
        return bool(self.matched_categories & BLAME_CATEGORIES)

    def to_dict(self) -> dict:
        return {
            "total_score": self.total_score,
            "reasons": [r.to_dict() for r in self.reasons],
            "matched_categories": sorted(c.value for c in self.matched_categories),
        }


# ============================================================
# SCORING
# ============================================================

def score(
    text: str,
    catalog: PatternCatalog = CATALOG,
    min_length: Optional[int] = None,
) -> ScoreResult:
    """
    Score text for escalatory language.

    Never raises for a str. Text shorter than the minimum length scores
    zero unless it contains a high-risk keyword.
    """
    ensure_text(text)
    min_length = settings.MIN_LENGTH if min_length is None else min_length
    result = ScoreResult()

    trimmed = text.strip()
    if len(trimmed) < min_length and not catalog.has_high_risk_keyword(trimmed):
        return result

    # --- Phase 1: simple pattern categories ---
    for category in _SIMPLE_CATEGORIES:
        if category == Category.ONCE_ALWAYS:
            # Categorical sits between Generalized and OnceAlways
            _score_categorical(trimmed, catalog, result)
        for rule in catalog.rules_for(category):
            fragment = rule.find(trimmed)
            if fragment is not None:
                result.add(category, rule.weight, f"{rule.id}: '{fragment}'")

    # --- Phase 2: profanity spans ---
    _score_profanity(trimmed, catalog, result)

    # --- Phase 3: non-verbal cues ---
    for cue in catalog.nonverbal_cues:
        if cue.check(trimmed):
            result.add(cue.category, cue.weight, f"{cue.id}: {cue.description}")

    # --- Phase 4: combination bonus ---
    if result.argumentative and result.blame:
        result.total_score += COMBINATION_BONUS
        result.reasons.append(Reason(
            category=_combination_category(result),
            note="COMBINATION: argumentative and blame language together",
            weight=COMBINATION_BONUS,
        ))

    logger.debug(
        "Scored text: total=%.2f categories=%s",
        result.total_score,
        sorted(c.value for c in result.matched_categories),
    )
    return result


def _combination_category(result: ScoreResult) -> Category:
    """The bonus is recorded under the first argumentative category that fired."""
    for reason in result.reasons:
        if reason.category in ARGUMENTATIVE_CATEGORIES:
            return reason.category
    return Category.ABSOLUTE_TRUTH


def _score_categorical(text: str, catalog: PatternCatalog, result: ScoreResult) -> None:
    count = sum(rule.count(text) for rule in catalog.rules_for(Category.CATEGORICAL))
    if count >= 2:
        result.add(
            Category.CATEGORICAL, CATEGORICAL_MULTI_WEIGHT,
            f"CATEGORICAL: {count} categorical words",
        )
    elif count == 1 and len(text) < CATEGORICAL_SHORT_TEXT:
        result.add(
            Category.CATEGORICAL, CATEGORICAL_SINGLE_WEIGHT,
            "CATEGORICAL: single categorical word in short text",
        )


def _clause_around(text: str, start: int, end: int) -> str:
    left = 0
    for m in _CLAUSE_BOUNDARY.finditer(text, 0, start):
        left = m.end()
    nxt = _CLAUSE_BOUNDARY.search(text, end)
    right = nxt.start() if nxt else len(text)
    return text[left:right]


def _score_profanity(text: str, catalog: PatternCatalog, result: ScoreResult) -> None:
    """
    Attribute every curse-token span to exactly one sub-category.

    Priority: negative word in the same clause (+4), then a profane idiom
    covering the span (+3, DirectProfanity), then standalone (+2.5).
    """
    idiom_spans = [
        (m.start(), m.end(), idiom.id)
        for idiom in catalog.profanity_idioms
        for m in idiom.pattern.finditer(text)
    ]

    for m in catalog.curse_pattern.finditer(text):
        token, start, end = m.group(0), m.start(), m.end()

        clause = _clause_around(text, start, end)
        negatives = [
            w for w in _WORD.findall(clause.lower()) if w in catalog.negative_words
        ]
        if negatives:
            kind, category, weight = KIND_CONTEXT, Category.PROFANITY_CONTEXT, PROFANITY_CONTEXT_WEIGHT
            note = f"PROFANITY_CONTEXT: '{token}' near '{negatives[0]}'"
        else:
            idiom_id = next(
                (iid for s, e, iid in idiom_spans if s <= start and end <= e), None,
            )
            if idiom_id is not None:
                kind, category, weight = KIND_IDIOM, Category.DIRECT_PROFANITY, PROFANITY_IDIOM_WEIGHT
                note = f"{idiom_id}: '{token}'"
            else:
                kind, category, weight = KIND_STANDALONE, Category.PROFANITY_CONTEXT, PROFANITY_STANDALONE_WEIGHT
                note = f"PROFANITY_STANDALONE: '{token}'"

        result.profanity_hits.append(ProfanityHit(
            token=token, start=start, end=end, kind=kind,
            category=category, weight=weight,
        ))
        result.add(category, weight, note)
