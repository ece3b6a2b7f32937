"""
Pattern Catalog — Versioned, Read-Only Detection Rules

The catalog defines what the scorer looks for:
  1. Weighted regex rules, grouped into linguistic categories
  2. Profanity vocabulary (curse tokens, negative-sentiment words,
     direct-profanity idioms) used for per-span attribution
  3. Three non-verbal cues computed from text statistics
  4. High-risk keywords that bypass the minimum-length gate

The catalog is built and validated once at import time and is never
mutated afterwards. A rule change is a new CATALOG_VERSION, checked
against the fixed corpus in validation.py before it ships.

Weights reflect severity:
  - direct aggression (profanity idioms, explicit insults)  ~3.0
  - accusative "you" framing, absolute-truth claims         ~2.0
  - tone markers (mocking, dismissiveness)                  ~1.5
  - categorical-word density                                1.0-1.5
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

CATALOG_VERSION = "1.1.0"


class CatalogValidationError(ValueError):
    """Raised when a catalog is structurally invalid or fails the corpus."""


# ============================================================
# CATEGORIES
# ============================================================

class Category(str, Enum):
    ABSOLUTE_TRUTH = "AbsoluteTruth"
    GENERALIZED = "Generalized"
    CATEGORICAL = "Categorical"
    ONCE_ALWAYS = "OnceAlways"
    ONLY_VERB = "OnlyVerb"
    BLAME = "Blame"
    MOCKING = "Mocking"
    DISMISSIVE = "Dismissive"
    DISMISSIVE_RELATIONSHIP = "DismissiveRelationship"
    JUDGING = "Judging"
    PROFANITY_CONTEXT = "ProfanityContext"
    DIRECT_PROFANITY = "DirectProfanity"
    THEY_BLAME = "TheyBlame"
    NONVERBAL_EXCLAMATION = "NonVerbalExclamation"
    NONVERBAL_CAPS = "NonVerbalCaps"
    NONVERBAL_QUESTION = "NonVerbalQuestion"


# Cognitive dimension
ARGUMENTATIVE_CATEGORIES = frozenset({
    Category.ABSOLUTE_TRUTH,
    Category.GENERALIZED,
    Category.CATEGORICAL,
    Category.ONCE_ALWAYS,
    Category.ONLY_VERB,
})

# Emotional dimension
BLAME_CATEGORIES = frozenset({
    Category.BLAME,
    Category.MOCKING,
    Category.DISMISSIVE,
    Category.DISMISSIVE_RELATIONSHIP,
    Category.JUDGING,
    Category.THEY_BLAME,
    Category.PROFANITY_CONTEXT,
    Category.DIRECT_PROFANITY,
})

PROFANITY_CATEGORIES = frozenset({
    Category.PROFANITY_CONTEXT,
    Category.DIRECT_PROFANITY,
})

NONVERBAL_CATEGORIES = frozenset({
    Category.NONVERBAL_EXCLAMATION,
    Category.NONVERBAL_CAPS,
    Category.NONVERBAL_QUESTION,
})


# ============================================================
# SHARED VOCABULARY (scorer and rewriter)
# ============================================================

GROUP_NOUNS: tuple[str, ...] = (
    "liberals", "conservatives", "leftists", "right-wingers", "progressives",
    "democrats", "republicans", "politicians", "immigrants", "foreigners",
    "muslims", "christians", "jews", "atheists", "arabs", "israelis",
    "palestinians", "settlers", "seculars", "religious", "media",
    "journalists", "elites", "boomers", "millennials", "men", "women",
)

NEGATIVE_ADJECTIVES: tuple[str, ...] = (
    "stupid", "dumb", "ignorant", "pathetic", "ridiculous", "delusional",
    "naive", "clueless", "crazy", "insane", "selfish", "evil", "disgusting",
    "hypocritical", "brainwashed", "racist", "sick", "useless", "worthless",
    "blind", "heartless", "arrogant",
)

NEGATIVE_WORDS: frozenset[str] = frozenset({
    "hate", "hating", "hated", "stupid", "idiot", "idiots", "moron", "morons",
    "dumb", "ugly", "worst", "terrible", "awful", "disgusting", "pathetic",
    "useless", "worthless", "liar", "liars", "loser", "losers", "evil",
    "trash", "garbage", "sick", "kill", "die", "angry", "horrible",
    "ignorant", "disgrace", "scum", "ruined", "ruin", "wrong",
})

INSULT_NOUNS: tuple[str, ...] = (
    "idiot", "moron", "fool", "liar", "loser", "jerk", "clown", "imbecile",
    "dumbass", "scum", "troll",
)

# Words allowed between "you are" and the insult noun
INSULT_MODIFIERS: tuple[str, ...] = (
    "such", "a", "an", "just", "really", "so", "being", "complete", "total",
    "real", "absolute", "little", "stupid", "pathetic", "ignorant", "big",
)

CURSE_TOKEN_PATTERN = re.compile(
    r"\b(?:f+u+c+k+\w*|motherf\w+|bullshit\w*|shit\w*|goddamn\w*|damn\w*|"
    r"crap\w*|bitch\w*|bastard\w*|asshole\w*|ass|dick(?:s|head\w*)?|"
    r"piss\w*|wtf|stfu|gtfo|hell)\b",
    re.IGNORECASE,
)

# Plain case-insensitive containment. Looser than the weighted rules on
# purpose: only used to let very short text past the length gate.
HIGH_RISK_KEYWORDS: tuple[str, ...] = (
    "idiot", "stupid", "moron", "dumb", "hate", "worst", "angry", "asshole",
    "fuck", "shit", "damn", "bitch", "bastard", "wtf", "stfu", "shut up",
    "loser", "liar", "pathetic", "disgusting", "kill", "die", "hell",
    "your fault", "how dare", "wrong",
)

_GROUPS = "|".join(GROUP_NOUNS)
_NEG_ADJ = "|".join(NEGATIVE_ADJECTIVES)
_YOU_ARE = r"you(?:'re|\s+are)"
_INSULTS = "|".join(INSULT_NOUNS)
_INSULT_MODS = "|".join(INSULT_MODIFIERS)


# ============================================================
# RULE STRUCTURES
# ============================================================

@dataclass(frozen=True)
class PatternRule:
    """
    One weighted detection rule.

    The compiled regex is the matcher. A rule contributes its weight
    once per text no matter how often it matches, except for the
    Categorical rules whose occurrences are counted by the scorer.
    """
    id: str
    category: Category
    weight: float
    pattern: re.Pattern
    description: str

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None

    def count(self, text: str) -> int:
        return sum(1 for _ in self.pattern.finditer(text))

    def find(self, text: str) -> Optional[str]:
        m = self.pattern.search(text)
        return m.group(0) if m else None


@dataclass(frozen=True)
class NonVerbalCue:
    """A cue computed from text statistics rather than a pattern."""
    id: str
    category: Category
    weight: float
    description: str
    check: Callable[[str], bool]


def _rule(
    rule_id: str, category: Category, weight: float, regex: str, description: str,
) -> PatternRule:
    return PatternRule(
        id=rule_id,
        category=category,
        weight=weight,
        pattern=re.compile(regex, re.IGNORECASE),
        description=description,
    )


def caps_ratio(text: str) -> float:
    """Share of alphabetic characters that are uppercase."""
    letters = [c for c in text if c.isalpha()]
    if not letters:
        return 0.0
    return sum(1 for c in letters if c.isupper()) / len(letters)


# ============================================================
# WEIGHTED RULES
# ============================================================

_AT = Category.ABSOLUTE_TRUTH
_GEN = Category.GENERALIZED
_CAT = Category.CATEGORICAL
_OA = Category.ONCE_ALWAYS
_OV = Category.ONLY_VERB
_BL = Category.BLAME
_MK = Category.MOCKING
_DS = Category.DISMISSIVE
_DR = Category.DISMISSIVE_RELATIONSHIP
_JD = Category.JUDGING
_TB = Category.THEY_BLAME
_DP = Category.DIRECT_PROFANITY

PATTERN_RULES: tuple[PatternRule, ...] = (
    # --- AbsoluteTruth: a single truth, no room for the other view ---
    _rule("AT_YOU_ARE_WRONG", _AT, 2.0,
          rf"\b{_YOU_ARE}\s+(?:\w+\s+){{0,2}}wrong\b",
          "Declares the other person wrong outright."),
    _rule("AT_THAT_IS_FALSE", _AT, 2.0,
          r"\b(?:that(?:'s|\s+is)|this\s+is|it(?:'s|\s+is))\s+"
          r"(?:just\s+|simply\s+|completely\s+|totally\s+)?"
          r"(?:wrong|false|a\s+lie|nonsense|not\s+true)\b",
          "Dismisses a statement as plainly false."),
    _rule("AT_THE_FACT_IS", _AT, 2.0,
          r"\bthe\s+(?:fact|truth|reality)\s+is\b",
          "Presents an opinion as 'the fact'."),
    _rule("AT_EVERYONE_KNOWS", _AT, 2.0,
          r"\b(?:everyone|everybody|anyone\s+with\s+a\s+brain)\s+knows\b",
          "Appeals to universal knowledge."),
    _rule("AT_OBVIOUSLY", _AT, 2.0,
          r"\b(?:obviously|undeniably|unquestionably|indisputably)\b",
          "Frames the claim as beyond question."),
    _rule("AT_NO_DOUBT", _AT, 2.0,
          r"\b(?:there(?:'s|\s+is)\s+no\s+(?:doubt|question|debate|argument)|"
          r"without\s+(?:a|any)\s+doubt|beyond\s+(?:any\s+)?doubt)\b",
          "Rules out doubt or debate."),
    _rule("AT_END_OF_STORY", _AT, 2.0,
          r"\b(?:end\s+of\s+(?:story|discussion|debate)|case\s+closed|full\s+stop)\b",
          "Closes the discussion unilaterally."),
    _rule("AT_ONLY_TRUTH", _AT, 2.0,
          r"\b(?:the\s+only\s+(?:truth|answer|way|solution)|it(?:'s|\s+is)\s+a\s+fact)\b",
          "Claims sole possession of the truth."),

    # --- Generalized: whole groups treated as one ---
    _rule("GEN_ALL_GROUP", _GEN, 2.0,
          rf"\ball\s+(?:of\s+)?(?:the\s+)?(?:{_GROUPS})\b",
          "Attributes one trait to an entire group."),
    _rule("GEN_THE_GROUP_ARE", _GEN, 2.0,
          rf"\bthe\s+(?:{_GROUPS})\s+(?:are|always|never|just|only|want|hate|don'?t)\b",
          "Speaks of a group as a single actor."),
    _rule("GEN_ALL_PEOPLE", _GEN, 1.5,
          r"\ball\s+(?:the\s+)?people\b",
          "Generalizes over all people."),
    _rule("GEN_THEY_ALL", _GEN, 2.0,
          r"\b(?:they\s+all|all\s+of\s+them|every\s+(?:last\s+)?one\s+of\s+them)\b",
          "Lumps 'them' together."),
    _rule("GEN_THESE_PEOPLE", _GEN, 2.0,
          r"\b(?:these|those|you)\s+people\b",
          "Othering reference to a group."),
    _rule("GEN_YOU_ALL", _GEN, 1.5,
          r"\b(?:you\s+all|y'all|all\s+of\s+you)\b",
          "Addresses the other side as a bloc."),
    _rule("GEN_PEOPLE_LIKE", _GEN, 2.0,
          r"\b(?:everyone|anyone|people)\s+like\s+(?:you|them)\b",
          "Generalizes from the person to a type."),

    # --- Categorical: counted by occurrence, not by rule ---
    _rule("CAT_ALWAYS_NEVER", _CAT, 1.0,
          r"\b(?:always|never|forever)\b",
          "Temporal absolutes."),
    _rule("CAT_UNIVERSAL_PEOPLE", _CAT, 1.0,
          r"\b(?:everyone|everybody|nobody|no\s+one)\b",
          "Universal quantifiers over people."),
    _rule("CAT_UNIVERSAL_THINGS", _CAT, 1.0,
          r"\b(?:everything|nothing(?!\s+but)|all\s+the\s+time|every\s+single\s+time)\b",
          "Universal quantifiers over things and time."),
    _rule("CAT_INTENSIFIER", _CAT, 1.0,
          r"\b(?:completely|totally|absolutely|entirely|utterly|100\s+percent)\b",
          "Intensifiers that remove nuance."),
    _rule("CAT_EXCLUSIVE", _CAT, 1.0,
          r"\b(?:solely|exclusively|purely|nothing\s+but)\b",
          "Exclusive framing."),

    # --- OnceAlways: one event turned into a pattern of behaviour ---
    _rule("OA_YOU_ALWAYS", _OA, 2.0,
          r"\byou(?:'re|\s+are)?\s+always\b",
          "'You always ...' accusation."),
    _rule("OA_YOU_NEVER", _OA, 2.0,
          r"\byou(?:'re|\s+are)?\s+never\b",
          "'You never ...' accusation."),
    _rule("OA_THEY_ALWAYS", _OA, 2.0,
          r"\bthey(?:'re|\s+are)?\s+(?:always|never)\b",
          "'They always/never ...' accusation."),
    _rule("OA_EVERY_TIME", _OA, 2.0,
          r"\bevery\s+(?:single\s+)?time\s+(?:you|they)\b",
          "Every occurrence attributed to the other side."),
    _rule("OA_AS_USUAL", _OA, 1.5,
          r"\b(?:as\s+usual|once\s+again|yet\s+again|here\s+we\s+go\s+again)\b",
          "Marks the behaviour as habitual."),

    # --- OnlyVerb: motives reduced to one thing ---
    _rule("OV_YOU_ONLY", _OV, 2.0,
          r"\byou\s+(?:only|just)\s+(?:want|care|think|see|hear|talk|say|like|need)\w*\b",
          "'You only/just want ...' mind reading."),
    _rule("OV_THEY_ONLY", _OV, 2.0,
          r"\bthey\s+(?:only|just)\s+(?:want|care|think|see|hear|talk|say|like|need)\w*\b",
          "'They only/just want ...' mind reading."),
    _rule("OV_ALL_YOU_DO", _OV, 2.0,
          r"\ball\s+(?:you|they)\s+(?:ever\s+)?(?:do|care\s+about|want|think\s+about)\b",
          "'All you do is ...' reduction."),

    # --- Blame: fault assigned to the addressee ---
    _rule("BL_YOUR_FAULT", _BL, 2.0,
          r"\b(?:it(?:'s|\s+is)|this\s+is|that(?:'s|\s+is))\s+(?:all\s+)?your\s+fault\b",
          "Assigns fault to the addressee."),
    _rule("BL_BECAUSE_OF_YOU", _BL, 2.0,
          r"\bbecause\s+of\s+(?:you|people\s+like\s+you)\b",
          "Makes the addressee the cause."),
    _rule("BL_YOU_MADE", _BL, 2.0,
          r"\byou\s+(?:made|make)\s+(?:me|this|it|us|everything)\b",
          "Holds the addressee responsible for feelings or outcomes."),
    _rule("BL_YOU_RUINED", _BL, 2.0,
          r"\byou\s+(?:ruined|destroyed|caused|started|broke)\b",
          "Accuses the addressee of causing damage."),
    _rule("BL_BLAME_YOU", _BL, 2.0,
          rf"\b(?:blame\s+(?:you|yourself)|{_YOU_ARE}\s+(?:to\s+blame|responsible\s+for))\b",
          "Explicit blame."),
    _rule("BL_YOU_DONT_CARE", _BL, 2.0,
          r"\byou\s+(?:don'?t|do\s+not)\s+(?:care|listen|understand|get\s+it)\b",
          "Accuses the addressee of indifference."),

    # --- Mocking ---
    _rule("MK_LAUGHTER", _MK, 1.5,
          r"\b(?:lol|lmao|rofl|haha(?:ha)*)\b",
          "Derisive laughter."),
    _rule("MK_OH_SURE", _MK, 1.5,
          r"\b(?:oh\s+(?:sure|really|please)|yeah\s+right|sure\s+(?:buddy|pal|jan))\b",
          "Sarcastic agreement."),
    _rule("MK_NICE_TRY", _MK, 1.5,
          r"\b(?:nice\s+try|good\s+luck\s+with\s+that|cry\s+(?:me\s+a\s+river|more)|"
          r"keep\s+crying|cope\s+harder)\b",
          "Belittling dismissal."),
    _rule("MK_GENIUS", _MK, 1.5,
          r"\b(?:real|such\s+a|thanks,?|ok(?:ay)?,?)\s+(?:genius|einstein)\b",
          "Ironic praise."),
    _rule("MK_WOW", _MK, 1.5,
          r"\bwow,?\s+just\s+wow\b",
          "Theatrical disbelief."),

    # --- Dismissive ---
    _rule("DS_WHATEVER", _DS, 1.5,
          r"\b(?:whatever|who\s+cares|so\s+what|big\s+deal)\b",
          "Brushes off the point."),
    _rule("DS_DONT_CARE", _DS, 1.5,
          r"\bi\s+(?:don'?t|do\s+not|couldn'?t|could\s+not)\s+care(?:\s+less)?\b",
          "Declares indifference."),
    _rule("DS_GET_OVER_IT", _DS, 1.5,
          r"\b(?:get\s+over\s+it|deal\s+with\s+it|not\s+my\s+problem)\b",
          "Tells the other side to drop it."),
    _rule("DS_NOT_WORTH", _DS, 1.5,
          r"\b(?:not\s+worth\s+(?:my|the)\s+time|(?:a\s+)?waste\s+of\s+(?:my\s+)?time)\b",
          "Declares the exchange worthless."),
    _rule("DS_NO_IDEA", _DS, 1.5,
          r"\byou\s+(?:have\s+no\s+idea|don'?t\s+know\s+what\s+you(?:'re|\s+are)\s+talking\s+about)\b",
          "Denies the other side any competence."),

    # --- DismissiveRelationship: the relationship itself is dismissed ---
    _rule("DR_DONE_WITH_YOU", _DR, 1.5,
          r"\b(?:i(?:'m|\s+am)\s+done\s+with\s+you|we(?:'re|\s+are)\s+done)\b",
          "Ends the relationship."),
    _rule("DR_STAY_OUT", _DR, 1.5,
          r"\b(?:stay\s+out\s+of\s+(?:this|it)|mind\s+your\s+own\s+business|"
          r"nobody\s+asked\s+(?:you|for\s+your\s+opinion)|who\s+asked)\b",
          "Excludes the other person from the conversation."),
    _rule("DR_WHY_BOTHER", _DR, 1.5,
          r"\b(?:why\s+(?:do|should)\s+i\s+(?:even\s+)?(?:bother|talk\s+to\s+you)|"
          r"talking\s+to\s+you\s+is\s+(?:pointless|useless))\b",
          "Declares talking to the person futile."),
    _rule("DR_BLOCK", _DR, 1.5,
          r"\b(?:unfriend(?:ed|ing)?\s+you|block(?:ed|ing)?\s+you|"
          r"never\s+(?:talk|speak)\s+to\s+me\s+again)\b",
          "Threatens to cut contact."),

    # --- Judging ---
    _rule("JD_HOW_DARE", _JD, 2.0,
          r"\bhow\s+dare\s+you\b",
          "Moral outrage at the addressee."),
    _rule("JD_YOU_ARE_NEGATIVE", _JD, 3.0,
          rf"\b{_YOU_ARE}\s+(?:so\s+|such\s+|being\s+|just\s+|really\s+|completely\s+|totally\s+)?"
          rf"(?:{_NEG_ADJ})\b",
          "Explicit insult: negative adjective applied to the addressee."),
    _rule("JD_SHAME", _JD, 2.0,
          r"\b(?:shame\s+on\s+you|you\s+should\s+be\s+ashamed)\b",
          "Shaming."),
    _rule("JD_WHATS_WRONG", _JD, 2.0,
          r"\bwhat(?:'s|\s+is)\s+wrong\s+with\s+you\b",
          "Pathologizes the addressee."),
    _rule("JD_ONLY_A_FOOL", _JD, 2.0,
          r"\b(?:only\s+an?\s+(?:idiot|moron|fool)\s+would|"
          r"no\s+(?:sane|rational|decent)\s+person)\b",
          "Judges anyone who disagrees."),
    _rule("JD_TONE_WORDS", _JD, 1.5,
          r"\b(?:pathetic|disgusting|ridiculous|absurd|laughable)\b",
          "Contemptuous evaluation."),
    _rule("JD_GROW_UP", _JD, 2.0,
          r"\b(?:grow\s+up|get\s+a\s+life|educate\s+yourself)\b",
          "Condescending instruction."),

    # --- TheyBlame: fault assigned to a third party ---
    _rule("TB_THEIR_FAULT", _TB, 2.0,
          r"\b(?:it(?:'s|\s+is)|this\s+is|that(?:'s|\s+is))\s+(?:all\s+)?(?:their|his|her)\s+fault\b",
          "Assigns fault to a third party."),
    _rule("TB_BECAUSE_OF_THEM", _TB, 2.0,
          r"\bbecause\s+of\s+(?:them|those\s+people|people\s+like\s+them)\b",
          "Makes a third party the cause."),
    _rule("TB_THEY_WANT_HARM", _TB, 2.0,
          r"\bthey\s+(?:want\s+to\s+(?:destroy|kill|ruin|control|erase)|"
          r"are\s+(?:destroying|ruining|killing))\b",
          "Attributes hostile intent to a third party."),
    _rule("TB_THEY_ARE_LABEL", _TB, 2.0,
          r"\bthey(?:'re|\s+are)\s+(?:all\s+)?(?:evil|terrorists|criminals|"
          r"animals|traitors|the\s+problem|to\s+blame)\b",
          "Labels a third party."),
    _rule("TB_THEY_ARE_INSULT", _TB, 3.0,
          rf"\bthey(?:'re|\s+are)\s+(?:all\s+)?(?:(?:such|a\s+bunch\s+of|complete|total|"
          rf"real|absolute|stupid|pathetic|ignorant)\s+)*(?:{_INSULTS})s\b",
          "Insults a third party."),
    _rule("TB_THEY_STARTED", _TB, 2.0,
          r"\bthey\s+(?:started|caused|ruined)\b",
          "Accuses a third party of causing the conflict."),

    # --- DirectProfanity without curse tokens (insult idioms) ---
    _rule("DP_YOU_INSULT", _DP, 3.0,
          r"\byou\s+(?:(?:stupid|little|absolute|complete|total|pathetic|ignorant)\s+)?"
          rf"(?:{_INSULTS})s?\b",
          "Direct insult addressed to the other person."),
    _rule("DP_YOU_ARE_INSULT", _DP, 3.0,
          rf"\b{_YOU_ARE}\s+(?:(?:{_INSULT_MODS})\s+)*(?:{_INSULTS})s?\b",
          "Explicit insult: the addressee is called a name."),
    _rule("DP_SHUT_UP", _DP, 3.0,
          r"\bshut\s+up\b",
          "Orders the other person to be silent."),
    _rule("DP_SCREW_YOU", _DP, 3.0,
          r"\b(?:screw\s+(?:you|off|this)|get\s+lost|drop\s+dead)\b",
          "Aggressive rejection."),
    _rule("DP_KILL_YOURSELF", _DP, 3.0,
          r"\b(?:kill\s+yourself|kys)\b",
          "Self-harm incitement."),
)

# Curse-token idioms. Only consulted for spans that contain a curse token,
# so they never double-count with the insult idioms above.
PROFANITY_IDIOMS: tuple[PatternRule, ...] = (
    _rule("PI_F_YOU", _DP, 3.0,
          r"\bf+u+c+k+\s+(?:you|u|off|yourself|this|that|them)\b",
          "Profane rejection."),
    _rule("PI_GO_TO_HELL", _DP, 3.0,
          r"\bgo\s+to\s+hell\b",
          "Profane dismissal."),
    _rule("PI_SHUT_THE_F_UP", _DP, 3.0,
          r"\bshut\s+the\s+(?:f+u+c+k+|hell)\s+up\b",
          "Profane silencing."),
    _rule("PI_PIECE_OF", _DP, 3.0,
          r"\bpiece\s+of\s+(?:shit|crap)\b",
          "Profane insult."),
    _rule("PI_YOU_CURSE_NOUN", _DP, 3.0,
          r"\byou\s+(?:little\s+)?(?:asshole|bitch|bastard|dick(?:head)?)s?\b",
          "Profane name-calling."),
    _rule("PI_DAMN_YOU", _DP, 3.0,
          r"\b(?:god)?damn\s+(?:you|them)\b",
          "Profane curse on a person."),
    _rule("PI_BULLSHIT", _DP, 3.0,
          r"\b(?:that(?:'s|\s+is)|this\s+is|what\s+a\s+load\s+of)\s+(?:total\s+|complete\s+)?bullshit\b",
          "Profane dismissal of a claim."),
    _rule("PI_STFU", _DP, 3.0,
          r"\b(?:stfu|gtfo)\b",
          "Abbreviated profane silencing."),
)

# Profanity span weights, by attribution
PROFANITY_CONTEXT_WEIGHT = 4.0
PROFANITY_IDIOM_WEIGHT = 3.0
PROFANITY_STANDALONE_WEIGHT = 2.5

# Categorical density: single words weigh more in short text
CATEGORICAL_MULTI_WEIGHT = 1.5
CATEGORICAL_SINGLE_WEIGHT = 1.0
CATEGORICAL_SHORT_TEXT = 50

COMBINATION_BONUS = 1.0

# Non-verbal thresholds
EXCLAMATION_MIN = 2
QUESTION_MIN = 3
CAPS_RATIO_MIN = 0.30
CAPS_LENGTH_MIN = 20

NONVERBAL_CUES: tuple[NonVerbalCue, ...] = (
    NonVerbalCue(
        id="NV_EXCLAMATION",
        category=Category.NONVERBAL_EXCLAMATION,
        weight=1.0,
        description=f"{EXCLAMATION_MIN}+ exclamation marks.",
        check=lambda text: text.count("!") >= EXCLAMATION_MIN,
    ),
    NonVerbalCue(
        id="NV_CAPS",
        category=Category.NONVERBAL_CAPS,
        weight=1.5,
        description="Shouting: more than 30% capitals in text over 20 characters.",
        check=lambda text: len(text) > CAPS_LENGTH_MIN and caps_ratio(text) > CAPS_RATIO_MIN,
    ),
    NonVerbalCue(
        id="NV_QUESTION",
        category=Category.NONVERBAL_QUESTION,
        weight=1.0,
        description=f"{QUESTION_MIN}+ question marks.",
        check=lambda text: text.count("?") >= QUESTION_MIN,
    ),
)


# ============================================================
# THE CATALOG
# ============================================================

@dataclass(frozen=True)
class PatternCatalog:
    """Everything the scorer consults, versioned as one unit."""
    version: str
    rules: tuple[PatternRule, ...]
    profanity_idioms: tuple[PatternRule, ...]
    nonverbal_cues: tuple[NonVerbalCue, ...]
    high_risk_keywords: tuple[str, ...]
    curse_pattern: re.Pattern
    negative_words: frozenset[str]

    def rules_for(self, category: Category) -> tuple[PatternRule, ...]:
        return tuple(r for r in self.rules if r.category == category)

    def has_high_risk_keyword(self, text: str) -> bool:
        lowered = text.lower()
        return any(k in lowered for k in self.high_risk_keywords)

    def validate(self) -> None:
        """Structural checks. Raises CatalogValidationError."""
        seen: set[str] = set()
        entries = list(self.rules) + list(self.profanity_idioms) + list(self.nonverbal_cues)
        for entry in entries:
            if entry.id in seen:
                raise CatalogValidationError(f"Duplicate rule id: {entry.id}")
            seen.add(entry.id)
            if not entry.weight > 0:
                raise CatalogValidationError(
                    f"Rule {entry.id} has non-positive weight {entry.weight}"
                )
            if not isinstance(entry.category, Category):
                raise CatalogValidationError(
                    f"Rule {entry.id} has unknown category {entry.category!r}"
                )

        for rule in self.rules:
            if rule.category in NONVERBAL_CATEGORIES or rule.category == Category.PROFANITY_CONTEXT:
                raise CatalogValidationError(
                    f"Rule {rule.id}: {rule.category.value} is not a pattern category"
                )
        for idiom in self.profanity_idioms:
            if idiom.category != Category.DIRECT_PROFANITY:
                raise CatalogValidationError(
                    f"Profanity idiom {idiom.id} must be {Category.DIRECT_PROFANITY.value}"
                )
        for cue in self.nonverbal_cues:
            if cue.category not in NONVERBAL_CATEGORIES:
                raise CatalogValidationError(
                    f"Cue {cue.id} must use a non-verbal category"
                )
        if not self.high_risk_keywords:
            raise CatalogValidationError("High-risk keyword list is empty")

    def describe(self) -> list[dict]:
        """JSON-ready listing of every rule and cue (GET /patterns)."""
        listing = [
            {
                "id": r.id,
                "category": r.category.value,
                "weight": r.weight,
                "description": r.description,
                "kind": "pattern",
            }
            for r in self.rules
        ]
        listing.extend(
            {
                "id": r.id,
                "category": r.category.value,
                "weight": r.weight,
                "description": r.description,
                "kind": "profanity_idiom",
            }
            for r in self.profanity_idioms
        )
        listing.extend(
            {
                "id": c.id,
                "category": c.category.value,
                "weight": c.weight,
                "description": c.description,
                "kind": "nonverbal",
            }
            for c in self.nonverbal_cues
        )
        return listing


def build_catalog(
    version: str = CATALOG_VERSION,
    rules: tuple[PatternRule, ...] = PATTERN_RULES,
    profanity_idioms: tuple[PatternRule, ...] = PROFANITY_IDIOMS,
    nonverbal_cues: tuple[NonVerbalCue, ...] = NONVERBAL_CUES,
    high_risk_keywords: tuple[str, ...] = HIGH_RISK_KEYWORDS,
) -> PatternCatalog:
    """Assemble and structurally validate a catalog."""
    catalog = PatternCatalog(
        version=version,
        rules=tuple(rules),
        profanity_idioms=tuple(profanity_idioms),
        nonverbal_cues=tuple(nonverbal_cues),
        high_risk_keywords=tuple(k.lower() for k in high_risk_keywords),
        curse_pattern=CURSE_TOKEN_PATTERN,
        negative_words=NEGATIVE_WORDS,
    )
    catalog.validate()
    return catalog


# ============================================================
# SINGLETON — built once, never mutated
# ============================================================

CATALOG = build_catalog()
