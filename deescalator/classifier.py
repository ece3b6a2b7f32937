"""
Classifier — Score to Decision

Turns a ScoreResult into a yes/no escalation decision and a label for
the dimension that drove it:

  both       argumentative and blame categories fired
  cognitive  only argumentative
  emotional  only blame
  other      threshold crossed by non-verbal cues alone
  none       not escalatory

Threshold: two values were deployed historically, 2.5 and a "reduced"
2.0. Neither is assumed here; the active value is read from
settings.ESCALATION_THRESHOLD and echoed on every result.

Profanity policy (settings.PROFANITY_POLICY):
  override  any ProfanityContext/DirectProfanity hit is escalatory (default)
  additive  profanity only adds to the score
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from deescalator.catalog import CATALOG, PROFANITY_CATEGORIES, PatternCatalog
from deescalator.config import settings
from deescalator.scorer import Reason, ScoreResult, score

THRESHOLD_BASELINE = 2.5
THRESHOLD_REDUCED = 2.0
KNOWN_THRESHOLDS = (THRESHOLD_BASELINE, THRESHOLD_REDUCED)

POLICY_OVERRIDE = "override"
POLICY_ADDITIVE = "additive"
PROFANITY_POLICIES = (POLICY_OVERRIDE, POLICY_ADDITIVE)


class EscalationType(str, Enum):
    NONE = "none"
    COGNITIVE = "cognitive"
    EMOTIONAL = "emotional"
    BOTH = "both"
    OTHER = "other"


@dataclass(frozen=True)
class ClassificationResult:
    is_escalatory: bool
    escalation_type: EscalationType
    score: float
    reasons: tuple[Reason, ...]
    threshold: float
    catalog_version: str

    def to_dict(self) -> dict:
        return {
            "is_escalatory": self.is_escalatory,
            "escalation_type": self.escalation_type.value,
            "score": self.score,
            "reasons": [r.to_dict() for r in self.reasons],
            "threshold": self.threshold,
            "catalog_version": self.catalog_version,
        }


def escalation_type_for(result: ScoreResult, is_escalatory: bool) -> EscalationType:
    if not is_escalatory:
        return EscalationType.NONE
    if result.argumentative and result.blame:
        return EscalationType.BOTH
    if result.argumentative:
        return EscalationType.COGNITIVE
    if result.blame:
        return EscalationType.EMOTIONAL
    return EscalationType.OTHER


def decide(
    result: ScoreResult,
    threshold: Optional[float] = None,
    profanity_policy: Optional[str] = None,
) -> bool:
    threshold = settings.ESCALATION_THRESHOLD if threshold is None else threshold
    policy = profanity_policy or settings.PROFANITY_POLICY
    if policy not in PROFANITY_POLICIES:
        raise ValueError(f"Unknown profanity policy: {policy}")

    if result.total_score >= threshold:
        return True
    if policy == POLICY_OVERRIDE and result.matched_categories & PROFANITY_CATEGORIES:
        return True
    return False


def classify(
    text: str,
    threshold: Optional[float] = None,
    profanity_policy: Optional[str] = None,
    catalog: PatternCatalog = CATALOG,
) -> ClassificationResult:
    """Classify text as escalatory or not. Pure; never raises for a str."""
    threshold = settings.ESCALATION_THRESHOLD if threshold is None else threshold
    result = score(text, catalog=catalog)
    escalatory = decide(result, threshold=threshold, profanity_policy=profanity_policy)

    return ClassificationResult(
        is_escalatory=escalatory,
        escalation_type=escalation_type_for(result, escalatory),
        score=result.total_score,
        reasons=tuple(result.reasons),
        threshold=threshold,
        catalog_version=catalog.version,
    )
