"""
Catalog Validation — Fixed Corpus Gate

A catalog is only activated after it reproduces the expected decision
on every text in FIXED_CORPUS. Per case it also checks that the rule
rewrite is safe to re-apply: a second pass never scores higher than the
first and never leaves a curse word behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from deescalator.catalog import CATALOG, CatalogValidationError, PatternCatalog
from deescalator.classifier import EscalationType, classify
from deescalator.rewriter import rewrite
from deescalator.scorer import score

logger = logging.getLogger(__name__)

_ANY_ESCALATORY = frozenset({
    EscalationType.COGNITIVE, EscalationType.EMOTIONAL,
    EscalationType.BOTH, EscalationType.OTHER,
})


@dataclass(frozen=True)
class CorpusCase:
    text: str
    escalatory: bool
    allowed_types: frozenset[EscalationType] = frozenset({EscalationType.NONE})


def _esc(text: str, *types: EscalationType) -> CorpusCase:
    return CorpusCase(text, True, frozenset(types) if types else _ANY_ESCALATORY)


def _calm(text: str) -> CorpusCase:
    return CorpusCase(text, False)


_C, _E, _B, _O = (
    EscalationType.COGNITIVE, EscalationType.EMOTIONAL,
    EscalationType.BOTH, EscalationType.OTHER,
)

FIXED_CORPUS: tuple[CorpusCase, ...] = (
    # Reference decisions
    _esc("You are always wrong!!", _C, _B),
    _esc("you idiot", _E, _B),
    _calm("ok"),
    _calm("fine."),
    # Escalatory, by dimension
    _esc("The fact is you people never listen.", _C),
    _esc("All politicians are liars and they never tell the truth.", _C),
    _esc("Whatever, I don't care what you think, get over it.", _E),
    _esc("This is bullshit.", _E),
    _esc("I hate this damn traffic", _E),
    _esc("You are an idiot.", _E),
    _esc("They're all such morons.", _E),
    _esc("It's your fault that everything is ruined!!", _B),
    _esc("You never listen and it's all your fault.", _B),
    _esc("WHY WOULD ANYONE DO THIS??? SERIOUSLY!!!", _O),
    # Neutral controls
    _calm("Thanks for sharing your perspective, I learned something today."),
    _calm("I see your point, but I think we should look at the data together."),
    _calm("The weather is lovely today and I'm going for a walk."),
    _calm("Could you send me the report when you get a chance?"),
)


@dataclass
class ValidationReport:
    catalog_version: str
    total: int = 0
    failures: list[dict] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.failures

    def to_dict(self) -> dict:
        return {
            "catalog_version": self.catalog_version,
            "passed": self.passed,
            "total": self.total,
            "failures": self.failures,
        }


def _check_case(
    case: CorpusCase, catalog: PatternCatalog, threshold: Optional[float],
) -> list[str]:
    problems = []
    result = classify(case.text, threshold=threshold, catalog=catalog)

    if result.is_escalatory != case.escalatory:
        problems.append(
            f"expected escalatory={case.escalatory}, got {result.is_escalatory} "
            f"(score {result.score:.2f})"
        )
    elif result.escalation_type not in case.allowed_types:
        allowed = sorted(t.value for t in case.allowed_types)
        problems.append(
            f"expected type in {allowed}, got {result.escalation_type.value}"
        )

    once = rewrite(case.text)
    twice = rewrite(once)
    first = score(once, catalog=catalog).total_score
    second = score(twice, catalog=catalog).total_score
    if second > first:
        problems.append(
            f"second rewrite pass raised score {first:.2f} -> {second:.2f}"
        )
    for label, output in (("rewrite", once), ("second rewrite", twice)):
        curse = catalog.curse_pattern.search(output)
        if curse:
            problems.append(f"{label} contains curse word '{curse.group(0)}'")

    return problems


def validate_catalog(
    catalog: PatternCatalog = CATALOG,
    threshold: Optional[float] = None,
    corpus: tuple[CorpusCase, ...] = FIXED_CORPUS,
) -> ValidationReport:
    """Run the catalog against the fixed corpus."""
    report = ValidationReport(catalog_version=catalog.version)

    for case in corpus:
        report.total += 1
        for problem in _check_case(case, catalog, threshold):
            report.failures.append({"text": case.text, "problem": problem})

    logger.debug(
        "Validated catalog %s: %d cases, %d failures",
        catalog.version, report.total, len(report.failures),
    )
    return report


def activate_catalog(
    catalog: PatternCatalog,
    threshold: Optional[float] = None,
) -> PatternCatalog:
    """Return catalog if it passes the corpus, else raise CatalogValidationError."""
    report = validate_catalog(catalog, threshold=threshold)
    if not report.passed:
        first = report.failures[0]
        raise CatalogValidationError(
            f"Catalog {catalog.version} failed {len(report.failures)} corpus "
            f"check(s); first: '{first['text']}': {first['problem']}"
        )
    return catalog
