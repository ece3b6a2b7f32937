"""
Tests for the Classifier — threshold, profanity policy, escalation type.
"""

import pytest

from deescalator.catalog import Category
from deescalator.classifier import (
    THRESHOLD_BASELINE,
    THRESHOLD_REDUCED,
    EscalationType,
    classify,
    decide,
    escalation_type_for,
)
from deescalator.config import settings
from deescalator.scorer import InvalidInput, ScoreResult


class TestReferenceDecisions:
    def test_always_wrong(self):
        result = classify("You are always wrong!!")
        assert result.is_escalatory is True
        assert result.escalation_type in (EscalationType.COGNITIVE, EscalationType.BOTH)

    def test_you_idiot(self):
        result = classify("you idiot")
        assert result.is_escalatory is True
        assert result.escalation_type == EscalationType.EMOTIONAL

    @pytest.mark.parametrize("text", ["ok", "fine.", "sure", "thanks", "", "   ", "lol ok"])
    def test_short_text_never_escalatory(self, text):
        result = classify(text)
        assert result.is_escalatory is False
        assert result.escalation_type == EscalationType.NONE

    def test_neutral(self):
        result = classify("Could you send me the report when you get a chance?")
        assert result.is_escalatory is False
        assert result.score == 0


class TestExplicitInsults:
    @pytest.mark.parametrize("text", [
        "You are an idiot.",
        "You're a moron",
        "You are such an idiot",
        "you are a liar",
        "You're just being a complete jerk.",
    ])
    def test_name_calling_the_addressee(self, text):
        result = classify(text)
        assert result.is_escalatory is True
        assert result.escalation_type == EscalationType.EMOTIONAL
        assert result.score == pytest.approx(3.0)
        assert result.reasons[0].note.startswith("DP_YOU_ARE_INSULT")

    @pytest.mark.parametrize("text", ["They are all idiots.", "They're all such morons."])
    def test_name_calling_a_third_party(self, text):
        result = classify(text)
        assert result.is_escalatory is True
        assert result.escalation_type == EscalationType.EMOTIONAL
        assert result.reasons[0].note.startswith("TB_THEY_ARE_INSULT")

    def test_negated_insult_is_calm(self):
        assert classify("You are not an idiot, you are brilliant.").is_escalatory is False


class TestEscalationType:
    def test_cognitive(self):
        result = classify("The fact is you people never listen.")
        assert result.escalation_type == EscalationType.COGNITIVE

    def test_emotional(self):
        result = classify("Whatever, I don't care what you think, get over it.")
        assert result.escalation_type == EscalationType.EMOTIONAL

    def test_both(self):
        result = classify("You never listen and it's all your fault.")
        assert result.escalation_type == EscalationType.BOTH

    def test_other_nonverbal_only(self):
        result = classify("WHY WOULD ANYONE DO THIS??? SERIOUSLY!!!")
        assert result.is_escalatory is True
        assert result.escalation_type == EscalationType.OTHER

    def test_not_escalatory_is_none_even_with_matches(self):
        result = ScoreResult()
        result.add(Category.BLAME, 2.0, "BL")
        assert escalation_type_for(result, is_escalatory=False) == EscalationType.NONE
        assert escalation_type_for(result, is_escalatory=True) == EscalationType.EMOTIONAL


class TestThreshold:
    def test_known_values(self):
        assert THRESHOLD_BASELINE == 2.5
        assert THRESHOLD_REDUCED == 2.0

    def test_default_from_settings(self):
        result = classify("I always win the game.")
        assert result.threshold == settings.ESCALATION_THRESHOLD

    def test_explicit_threshold(self):
        # Scores 1.0 (single categorical word in short text)
        assert classify("I always win the game.", threshold=1.0).is_escalatory is True
        assert classify("I always win the game.", threshold=1.5).is_escalatory is False

    def test_threshold_is_inclusive(self):
        result = classify("You are wrong. You are wrong.", threshold=2.0)
        assert result.score == pytest.approx(2.0)
        assert result.is_escalatory is True

    def test_threshold_echoed(self):
        assert classify("hello there", threshold=THRESHOLD_REDUCED).threshold == THRESHOLD_REDUCED


class TestProfanityPolicy:
    TEXT = "Well shit, the bus left early."  # standalone profanity, 2.5

    def test_override_forces_escalation(self):
        result = classify(self.TEXT, threshold=5.0, profanity_policy="override")
        assert result.is_escalatory is True
        assert result.escalation_type == EscalationType.EMOTIONAL

    def test_additive_only_adds_weight(self):
        result = classify(self.TEXT, threshold=5.0, profanity_policy="additive")
        assert result.is_escalatory is False
        assert result.score == pytest.approx(2.5)

    def test_override_ignores_non_profane_blame(self):
        result = classify("Whatever, I don't care what you think, get over it.",
                          threshold=10.0, profanity_policy="override")
        assert result.is_escalatory is False

    def test_unknown_policy_rejected(self):
        with pytest.raises(ValueError, match="profanity policy"):
            decide(ScoreResult(), profanity_policy="strict")


class TestResultShape:
    def test_to_dict(self):
        data = classify("You are always wrong!!").to_dict()
        assert set(data) == {
            "is_escalatory", "escalation_type", "score",
            "reasons", "threshold", "catalog_version",
        }
        assert data["escalation_type"] == "cognitive"
        assert data["reasons"][0] == {
            "category": "AbsoluteTruth",
            "note": "AT_YOU_ARE_WRONG: 'You are always wrong'",
            "weight": 2.0,
        }

    def test_invalid_input(self):
        with pytest.raises(InvalidInput):
            classify(123)

    def test_deterministic(self):
        text = "It's your fault that everything is ruined!!"
        assert classify(text) == classify(text)
