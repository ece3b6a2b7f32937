"""
Rephrase Relay — LLM De-Escalation with Rule Fallback

Asks a generative model for a de-escalated alternative to an escalatory
draft. The model's suggestion is never trusted blindly: it is classified
with the same catalog, and the deterministic rule rewrite is returned
instead whenever the model fails, answers without a suggestion, or
suggests something that is itself escalatory.

Flow:
  1. Classify the draft; calm text passes through untouched
  2. Prompt the model for {"rephrasedText": ...}
  3. Re-classify the suggestion
  4. On any failure, fall back to rewrite() with source="rules"
"""

from __future__ import annotations

from typing import Optional

from deescalator.catalog import CATALOG, PatternCatalog
from deescalator.classifier import classify
from deescalator.llm import LLMProvider
from deescalator.logging import get_logger
from deescalator.rewriter import compute_diff_spans, rewrite

logger = get_logger("rephraser")

SOURCE_PASSTHROUGH = "passthrough"
SOURCE_LLM = "llm"
SOURCE_RULES = "rules"

# Reply keys accepted from the model, in order of preference
_REPLY_FIELDS = ("rephrasedText", "rephrased", "text")

SYSTEM_INSTRUCTION = """You help people keep political and other sensitive \
conversations from escalating. You rewrite drafts; you never answer them."""

REPHRASE_PROMPT = """Rewrite the draft below so it is less likely to escalate the conversation.

Two kinds of escalation to remove:
- Cognitive: absolute or generalized claims presented as the single truth
  ("they always...", "you are wrong", "everyone knows").
- Emotional: blame, accusation, mockery or contempt aimed at the reader or
  at a group ("you just want to...", "they are all...").

The rewrite must:
- speak from the writer's own perspective ("I think...", "In my experience..."),
- acknowledge that the issue is complex and own the writer's feelings,
- drop blame, insults, profanity and generalizations,
- keep the writer's actual point and roughly the same length.

DRAFT:
{text}

Respond with JSON only:
{{"rephrasedText": "<the full rewritten message>"}}"""


def _extract_rephrased(reply: dict) -> Optional[str]:
    for key in _REPLY_FIELDS:
        value = reply.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


async def rephrase(
    text: str,
    llm: LLMProvider,
    catalog: PatternCatalog = CATALOG,
) -> dict:
    """
    Produce a de-escalated suggestion for text, preferring the model.

    Never raises for LLM problems; failures are reported in "error" and
    the rule rewrite is returned with source="rules".
    """
    classification = classify(text, catalog=catalog)
    result = {
        "original": text,
        "classification": classification.to_dict(),
        "catalog_version": catalog.version,
    }

    if not classification.is_escalatory:
        result.update({
            "rephrased": text,
            "source": SOURCE_PASSTHROUGH,
            "rephrase_triggered": False,
            "diff_spans": [],
        })
        return result

    result["rephrase_triggered"] = True
    try:
        reply = await llm.generate_json(
            REPHRASE_PROMPT.format(text=text),
            system_instruction=SYSTEM_INSTRUCTION,
            temperature=0.7,
        )
        suggestion = _extract_rephrased(reply)
        if suggestion is None:
            raise ValueError("LLM response missing rephrasedText field")

        check = classify(suggestion, catalog=catalog)
        if check.is_escalatory:
            raise ValueError(
                f"LLM suggestion is still escalatory (score {check.score:.2f})"
            )

        result.update({
            "rephrased": suggestion,
            "source": SOURCE_LLM,
            "suggestion_classification": check.to_dict(),
        })

    except Exception as e:
        logger.warning(
            "Rephrase fell back to rule rewrite: %s", e,
            extra={"error": str(e), "error_type": type(e).__name__},
        )
        fallback = rewrite(text)
        result.update({
            "rephrased": fallback,
            "source": SOURCE_RULES,
            "suggestion_classification": classify(fallback, catalog=catalog).to_dict(),
            "error": str(e),
        })

    result["diff_spans"] = compute_diff_spans(text, result["rephrased"])
    return result
