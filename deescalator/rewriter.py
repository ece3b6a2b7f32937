"""
Rewrite Engine — Rule-Based De-Escalation

Produces a de-escalated alternative for any text. The rewrite is an
ordered pipeline: each stage works on the text the previous stage left
behind, so specific transforms run before the generic ones that would
otherwise mangle them.

  1. deep_accusatory      "you're always wrong" -> first-person framing
  2. you_observation      "you always/never ..." -> "I often notice ..."
  3. absolute_truth       "the fact is", "obviously", ...
  4. fault_blame          "it's your fault" family
  5. generalized_groups   "all the X" -> "some X"
  6. categorical_words    always/never/everyone/intensifiers
                          (always/never skipped if 1-2 already softened)
  7. judging_dismissive   judging, dismissive, mocking and profane idioms;
                          residual curse words removed
  8. intensity            "!" -> "."
  9. subjective_framing   "In my view, " when no first-person marker
 10. normalize            whitespace, punctuation, capitalization

A second pass is not guaranteed to be a no-op, but it never raises the
escalation score and never brings profanity back.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Union

import diff_match_patch as dmp_module

from deescalator.catalog import (
    CURSE_TOKEN_PATTERN,
    GROUP_NOUNS,
    INSULT_MODIFIERS,
    INSULT_NOUNS,
    NEGATIVE_ADJECTIVES,
)
from deescalator.scorer import ensure_text

logger = logging.getLogger(__name__)

# Singleton diff engine
_dmp = dmp_module.diff_match_patch()

_I = re.IGNORECASE
_GROUPS = "|".join(GROUP_NOUNS)
_NEG_ADJ = "|".join(NEGATIVE_ADJECTIVES)
_INSULTS = "|".join(INSULT_NOUNS)
_INSULT_MODS = "|".join(INSULT_MODIFIERS)
_YOU_ARE = r"you(?:'re|\s+are)"
_INTENSIFIERS = r"always|totally|completely|so|just|absolutely|dead|simply|utterly|clearly|really"

_FIRST_PERSON = re.compile(r"\b(?:i|me|my|mine|myself)\b", _I)
_FRAMING_PREFIX = "In my view, "
_EMPTY_FALLBACK = "I'd rather not put it that way"

Replacement = Union[str, Callable[[re.Match], str]]


# ============================================================
# WORKING TEXT
# ============================================================

@dataclass
class _WorkingText:
    """The single mutable value threaded through the stages."""
    text: str
    softened: bool = False   # stage 1/2 introduced often/rarely
    applied: list[str] = field(default_factory=list)

    def substitute(self, pattern: re.Pattern, replacement: Replacement, stage: str) -> bool:
        new = pattern.sub(replacement, self.text)
        if new == self.text:
            return False
        self.text = new
        if stage not in self.applied:
            self.applied.append(stage)
        return True

    def apply_table(self, table, stage: str) -> bool:
        changed = False
        for pattern, replacement in table:
            changed = self.substitute(pattern, replacement, stage) or changed
        return changed


def _cased(template: str) -> Callable[[re.Match], str]:
    """Expand template, capitalizing it when the match was capitalized."""
    def _replace(m: re.Match) -> str:
        out = m.expand(template)
        if out and m.group(0)[:1].isupper():
            out = out[0].upper() + out[1:]
        return out
    return _replace


def _table(entries: list[tuple[str, str]]) -> tuple[tuple[re.Pattern, Replacement], ...]:
    return tuple((re.compile(regex, _I), _cased(template)) for regex, template in entries)


_PLURAL_VERBS = {
    "is": "are", "was": "were", "has": "have", "does": "do", "knows": "know",
    "thinks": "think", "wants": "want", "says": "say", "believes": "believe",
}
_EVERYONE = re.compile(
    r"\b(?:everyone|everybody)(?:\s+(" + "|".join(_PLURAL_VERBS) + r"))?\b", _I,
)


def _many_people(m: re.Match) -> str:
    out = "many people"
    if m.group(1):
        out += " " + _PLURAL_VERBS[m.group(1).lower()]
    if m.group(0)[:1].isupper():
        out = out[0].upper() + out[1:]
    return out


# ============================================================
# STAGE TABLES
# ============================================================

_COMPOUND_WRONG = re.compile(
    rf"\b{_YOU_ARE}\s+(?:(?:{_INTENSIFIERS})\s+){{1,2}}wrong\b", _I,
)
_ACCUSATORY = _table([
    (rf"\b{_YOU_ARE}\s+(?:(?:{_INSULT_MODS})\s+)*(?:{_INSULTS})s?\b", "I'm frustrated with this"),
    (rf"\b{_YOU_ARE}\s+wrong\b", "I see this differently"),
    (rf"\b{_YOU_ARE}\s+(?:so\s+|such\s+|being\s+|just\s+|really\s+|completely\s+|totally\s+)?"
     rf"(?:{_NEG_ADJ})\b", "I'm having a strong reaction to this"),
])

_YOU_ALWAYS = re.compile(r"\byou((?:'re|\s+are)?)\s+always\b", _I)
_YOU_NEVER = re.compile(r"\byou((?:'re|\s+are)?)\s+never\b", _I)
_YOU_OBSERVATION = _table([
    (r"\byou\s+(?:don'?t|do\s+not)\s+(care|listen|understand|get\s+it)\b",
     r"I feel like you might not \1"),
    (r"\byou\s+(?:only|just)\s+(want|care|think|see|hear|talk|say|like|need)(\w*)\b",
     r"I feel you mostly \1\2"),
])

_ABSOLUTE_TRUTH = _table([
    (r"\bthe\s+(?:fact|truth|reality)\s+is(?:\s+that)?\b", "as I see it,"),
    (r"\b(?:everyone|everybody|anyone\s+with\s+a\s+brain)\s+knows\b", "many people believe"),
    (r"\b(?:obviously|undeniably|unquestionably|indisputably)\b", "arguably"),
    (r"\bthere(?:'s|\s+is)\s+no\s+(?:doubt|question|debate|argument)(?:\s+that)?\b",
     "I strongly believe"),
    (r"\b(?:without\s+(?:a|any)\s+doubt|beyond\s+(?:any\s+)?doubt)\b", "in my opinion"),
    (r"[,;]?\s*\b(?:end\s+of\s+(?:story|discussion|debate)|case\s+closed|full\s+stop)\b", ""),
    (r"\bthe\s+only\s+(truth|answer|way|solution)\b", r"one \1"),
    (r"\bit(?:'s|\s+is)\s+a\s+fact(?:\s+that)?\b", "I believe"),
    (r"\b(?:that(?:'s|\s+is)|this\s+is|it(?:'s|\s+is))\s+a\s+lie\b",
     "I don't think that's accurate"),
    (r"\b(?:that(?:'s|\s+is)|this\s+is|it(?:'s|\s+is))\s+(?:just\s+|simply\s+|completely\s+|totally\s+)?"
     r"(?:wrong|false|nonsense|not\s+true)\b", "I see that differently"),
])

_FAULT_BLAME = _table([
    (r"\b(?:it(?:'s|\s+is)|this\s+is|that(?:'s|\s+is))\s+(?:all\s+)?your\s+fault\b",
     "I'm struggling with this"),
    (r"\b(?:it(?:'s|\s+is)|this\s+is|that(?:'s|\s+is))\s+(?:all\s+)?(?:their|his|her)\s+fault\b",
     "I'm finding this situation hard"),
    (r"\bbecause\s+of\s+(?:you|people\s+like\s+you|them|those\s+people|people\s+like\s+them)\b",
     "in this situation"),
    (r"\byou\s+(?:made|make)\s+me(?:\s+feel)?\b", "I feel"),
    (r"\byou\s+(?:ruined|destroyed|broke)\b", "I'm upset about what happened to"),
    (r"\byou\s+(?:caused|started)\b", "I'm struggling with how we got to"),
    (r"\b(?:i\s+)?blame\s+(?:you|yourself)\b", "I feel hurt"),
    (rf"\b{_YOU_ARE}\s+to\s+blame\b", "I'm struggling with this"),
    (rf"\b{_YOU_ARE}\s+responsible\s+for\b", "I'm struggling with"),
    (r"\bthey\s+(?:started|caused|ruined)\b", "I'm concerned about"),
])

_GENERALIZED = _table([
    (r"\b(?:everyone|anyone|people)\s+like\s+(?:you|them)\b", "some people"),
    (rf"\b(?:all\s+(?:of\s+)?(?:the\s+)?|the\s+)({_GROUPS})\b", r"some \1"),
    (r"\ball\s+(?:the\s+)?people\b", "some people"),
    (r"\b(?:they\s+all|all\s+of\s+them|every\s+(?:last\s+)?one\s+of\s+them)\b", "some of them"),
    (r"\b(?:you\s+all|y'all|all\s+of\s+you)\b", "some of you"),
    (r"\b(?:these|those|you)\s+people\b", "some people"),
])

_ALWAYS_NEVER = _table([
    (r"\balways\b", "often"),
    (r"\bnever\b", "rarely"),
])
_CATEGORICAL = _table([
    (r"\bforever\b", "for a long time"),
    (r"\b(?:all\s+the\s+time|every\s+single\s+time)\b", "often"),
    (r"\b(?:nobody|no\s+one)\b", "few people"),
    (r"\beverything\b", "a lot"),
    (r"\bnothing\s+but\b", "mostly"),
    (r"\bnothing\b", "very little"),
    (r"\b(?:completely|totally|absolutely|entirely|utterly|100\s+percent)\b", "largely"),
    (r"\b(?:solely|exclusively|purely)\b", "primarily"),
])

_JUDGING_DISMISSIVE = _table([
    # judging
    (r"\bhow\s+dare\s+you\b", "I'm surprised by this"),
    (r"\bshame\s+on\s+you\b", "I'm disappointed"),
    (r"\byou\s+should\s+be\s+ashamed(?:\s+of\s+yourself)?\b", "I'm disappointed"),
    (r"\bwhat(?:'s|\s+is)\s+wrong\s+with\s+you\b", "I'm struggling to understand this"),
    (r"\bonly\s+an?\s+(?:idiot|moron|fool)\s+would\b", "I don't think I would"),
    (r"\bno\s+(?:sane|rational|decent)\s+person\b", "I don't think many people"),
    (r"\b(?:grow\s+up|get\s+a\s+life|educate\s+yourself)\b", "I'd like us to talk about this calmly"),
    (r"\b(?:pathetic|disgusting|ridiculous|absurd|laughable)\b", "hard for me to accept"),
    # dismissive
    (r"\bi\s+(?:don'?t|do\s+not|couldn'?t|could\s+not)\s+care(?:\s+less)?\b",
     "I'm not sure this matters to me"),
    (r"\b(?:whatever|who\s+cares|so\s+what|big\s+deal)\b", "I see it differently"),
    (r"\b(?:get\s+over\s+it|deal\s+with\s+it)\b", "I hope we can move forward"),
    (r"\bnot\s+my\s+problem\b", "not something I can help with"),
    (r"\b(?:not\s+worth\s+(?:my|the)\s+time|(?:a\s+)?waste\s+of\s+(?:my\s+)?time)\b",
     "hard for me to engage with"),
    (r"\byou\s+(?:have\s+no\s+idea|don'?t\s+know\s+what\s+you(?:'re|\s+are)\s+talking\s+about)\b",
     "I think we see this differently"),
    (r"\b(?:i(?:'m|\s+am)\s+done\s+with\s+you|we(?:'re|\s+are)\s+done)\b",
     "I need a break from this conversation"),
    (r"\b(?:mind\s+your\s+own\s+business|stay\s+out\s+of\s+(?:this|it)|"
     r"nobody\s+asked\s+(?:you|for\s+your\s+opinion)|who\s+asked)\b",
     "I'd rather discuss this another time"),
    (r"\b(?:unfriend(?:ed|ing)?\s+you|block(?:ed|ing)?\s+you|"
     r"never\s+(?:talk|speak)\s+to\s+me\s+again)\b", "I need some space"),
    # mocking
    (r"\b(?:lol|lmao|rofl|haha(?:ha)*)\b", ""),
    (r"\b(?:oh\s+(?:sure|really|please)|yeah\s+right|sure\s+(?:buddy|pal|jan)|nice\s+try|"
     r"good\s+luck\s+with\s+that|cry\s+(?:me\s+a\s+river|more)|keep\s+crying|cope\s+harder)\b",
     "I'm not convinced"),
    (r"\b(?:real|such\s+a|thanks,?|ok(?:ay)?,?)\s+(?:genius|einstein)\b", "I see"),
    (r"\bwow,?\s+just\s+wow\b", "I'm surprised"),
    # insults and profanity
    (r"\byou\s+(?:(?:stupid|little|absolute|complete|total|pathetic|ignorant)\s+)?"
     rf"(?:{_INSULTS})s?\b", "I'm frustrated"),
    (rf"\bthey(?:'re|\s+are)\s+(?:all\s+)?(?:(?:such|a\s+bunch\s+of|complete|total|"
     rf"real|absolute|stupid|pathetic|ignorant)\s+)*(?:{_INSULTS})s\b",
     "I strongly disagree with them"),
    (r"\bshut\s+(?:the\s+(?:f+u+c+k+|hell)\s+)?up\b", "please let me finish"),
    (r"\b(?:screw\s+(?:you|off|this)|get\s+lost|drop\s+dead|kill\s+yourself|kys)\b",
     "I need some space"),
    (r"\b(?:f+u+c+k+\s+(?:you|u|off|yourself|this|that|them)|go\s+to\s+hell|stfu|gtfo)\b",
     "I strongly disagree"),
    (r"\b(?:you\s+)?piece\s+of\s+(?:shit|crap)\b", "I'm really upset"),
    (r"\byou\s+(?:little\s+)?(?:asshole|bitch|bastard|dick(?:head)?)s?\b", "I'm really upset"),
    (r"\b(?:god)?damn\s+(?:you|them)\b", "I'm really upset"),
    (r"\b(?:that(?:'s|\s+is)|this\s+is|what\s+a\s+load\s+of)\s+(?:total\s+|complete\s+)?bullshit\b",
     "I see that differently"),
    (r"\bwhat\s+the\s+(?:hell|f+u+c+k+|heck)\b", "what"),
    (r"\bthe\s+(?:hell|f+u+c+k+)\b", ""),
    # curse frames go whole, so the scrub below leaves no dangling words
    (r"\b(?:shit|crap)\s+happens\b", "these things happen"),
    (r"[,;]?\s*\b(?:god)?damn(?:ed)?\s+it(?:\s+all)?\b", ""),
    (r"[,;]?\s*\b(?:oh|holy)\s+(?:shit|crap|hell|f+u+c+k+)\b", ""),
])


# ============================================================
# STAGES
# ============================================================

def _stage_deep_accusatory(work: _WorkingText) -> None:
    if work.substitute(_COMPOUND_WRONG, "I often disagree with your perspective", "deep_accusatory"):
        work.softened = True
    work.apply_table(_ACCUSATORY, "deep_accusatory")


def _stage_you_observation(work: _WorkingText) -> None:
    if work.substitute(_YOU_ALWAYS, r"I often notice that you\1", "you_observation"):
        work.softened = True
    if work.substitute(_YOU_NEVER, r"I rarely see that you\1", "you_observation"):
        work.softened = True
    work.apply_table(_YOU_OBSERVATION, "you_observation")


def _stage_absolute_truth(work: _WorkingText) -> None:
    work.apply_table(_ABSOLUTE_TRUTH, "absolute_truth")


def _stage_fault_blame(work: _WorkingText) -> None:
    work.apply_table(_FAULT_BLAME, "fault_blame")


def _stage_generalized_groups(work: _WorkingText) -> None:
    work.apply_table(_GENERALIZED, "generalized_groups")
    work.substitute(_EVERYONE, _many_people, "generalized_groups")


def _stage_categorical_words(work: _WorkingText) -> None:
    if not work.softened:
        work.apply_table(_ALWAYS_NEVER, "categorical_words")
    work.substitute(_EVERYONE, _many_people, "categorical_words")
    work.apply_table(_CATEGORICAL, "categorical_words")


def _stage_judging_dismissive(work: _WorkingText) -> None:
    work.apply_table(_JUDGING_DISMISSIVE, "judging_dismissive")
    work.substitute(CURSE_TOKEN_PATTERN, "", "judging_dismissive")


def _stage_intensity(work: _WorkingText) -> None:
    work.substitute(re.compile(r"!"), ".", "intensity")


def _stage_subjective_framing(work: _WorkingText) -> None:
    body = work.text.strip()
    if not body:
        work.text = _EMPTY_FALLBACK
        work.applied.append("subjective_framing")
        return
    if _FIRST_PERSON.search(body) or body.endswith("?"):
        return
    # Leave acronyms ("NASA ...") alone
    if len(body) > 1 and body[1].isupper():
        first = body[0]
    else:
        first = body[0].lower()
    work.text = _FRAMING_PREFIX + first + body[1:]
    work.applied.append("subjective_framing")


_NORMALIZE_STEPS: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r"\s+"), " "),
    (re.compile(r"\s+([.,!?;:])"), r"\1"),
    (re.compile(r",\s*,+"), ","),
    (re.compile(r"[,;:]+\s*(?=[.!?]|$)"), ""),
    (re.compile(r"\.{2,}"), "."),
    (re.compile(r"\?[.!]+"), "?"),
    (re.compile(r"^[\s,;:.!?]+"), ""),
)


def _stage_normalize(work: _WorkingText) -> None:
    text = work.text
    for pattern, replacement in _NORMALIZE_STEPS:
        text = pattern.sub(replacement, text)
    text = text.strip()
    if not text:
        text = _EMPTY_FALLBACK
    if text[-1] not in ".!?":
        text += "."
    text = text[0].upper() + text[1:]
    if text != work.text:
        work.text = text
        work.applied.append("normalize")


# Order matters: later generic stages assume the specific ones already ran.
REWRITE_STAGES: tuple[tuple[str, Callable[[_WorkingText], None]], ...] = (
    ("deep_accusatory", _stage_deep_accusatory),
    ("you_observation", _stage_you_observation),
    ("absolute_truth", _stage_absolute_truth),
    ("fault_blame", _stage_fault_blame),
    ("generalized_groups", _stage_generalized_groups),
    ("categorical_words", _stage_categorical_words),
    ("judging_dismissive", _stage_judging_dismissive),
    ("intensity", _stage_intensity),
    ("subjective_framing", _stage_subjective_framing),
    ("normalize", _stage_normalize),
)


# ============================================================
# PUBLIC API
# ============================================================

def rewrite_with_trace(text: str) -> tuple[str, list[str]]:
    """Rewrite text, also returning the names of stages that changed it."""
    ensure_text(text)
    if not text.strip():
        return text, []

    work = _WorkingText(text=text)
    for _name, stage in REWRITE_STAGES:
        stage(work)

    logger.debug("Rewrite stages applied: %s", work.applied)
    return work.text, work.applied


def rewrite(text: str) -> str:
    """
    Produce a de-escalated rewrite of text.

    Runs unconditionally; callers usually only ask for escalatory text.
    Empty or whitespace-only input is returned unchanged.
    """
    rewritten, _ = rewrite_with_trace(text)
    return rewritten


_SPAN_TYPES = {
    dmp_module.diff_match_patch.DIFF_EQUAL: "equal",
    dmp_module.diff_match_patch.DIFF_DELETE: "delete",
    dmp_module.diff_match_patch.DIFF_INSERT: "insert",
}


def compute_diff_spans(original: str, rewritten: str) -> list[dict]:
    """
    Highlightable spans turning original into rewritten.

    Equal spans carry offsets into both texts, deletions only into the
    original and insertions only into the rewrite. Joining the equal and
    delete texts gives back the original; equal and insert, the rewrite.
    """
    diffs = _dmp.diff_main(original, rewritten)
    _dmp.diff_cleanupSemantic(diffs)

    spans = []
    offsets = {"orig": 0, "new": 0}
    for op, chunk in diffs:
        kind = _SPAN_TYPES[op]
        span = {"type": kind, "text": chunk}
        sides = {"equal": ("orig", "new"), "delete": ("orig",), "insert": ("new",)}[kind]
        for side in sides:
            span[f"{side}_start"] = offsets[side]
            offsets[side] += len(chunk)
            span[f"{side}_end"] = offsets[side]
        spans.append(span)
    return spans
