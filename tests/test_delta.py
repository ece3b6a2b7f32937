"""
Tests for the Delta Calculator.
"""

import pytest

from deescalator.delta import delta
from deescalator.scorer import InvalidInput


class TestDelta:
    def test_appended(self):
        assert delta("I disagree with you.", "I disagree") == "with you."

    def test_removed(self):
        assert delta("I disagree", "I disagree with you") == "[REMOVED: with you]"

    @pytest.mark.parametrize("text", [
        "I disagree",
        "In my view, some politicians are liars.",
        "שלום",
        "  padded  ",
    ])
    def test_identical(self, text):
        assert delta(text, text) == ""

    def test_equal_after_trim(self):
        assert delta("  same  ", "same") == ""

    def test_leading_punctuation_stripped(self):
        assert delta("I disagree, and here is why.", "I disagree") == "and here is why."

    def test_substring_removed(self):
        assert delta("Well, I disagree here", "I disagree") == "Well,  here"

    def test_unrelated_text_returned(self):
        assert delta("Totally different", "I disagree") == "Totally different"

    def test_all_occurrences_removed(self):
        assert delta("yes, ok then ok", "ok") == "yes,  then"

    @pytest.mark.parametrize("actual,suggested", [("", "x"), ("x", ""), ("", "")])
    def test_empty_side(self, actual, suggested):
        assert delta(actual, suggested) == ""


class TestDeltaInput:
    def test_non_string_rejected(self):
        with pytest.raises(InvalidInput, match="actual"):
            delta(None, "x")
        with pytest.raises(InvalidInput, match="suggested"):
            delta("x", 3)
