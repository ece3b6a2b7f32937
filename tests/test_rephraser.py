"""
Tests for the rephrase relay — LLM suggestion with rule fallback.

No real LLM calls; MockLLM returns canned replies or raises.
"""

from __future__ import annotations

import json

import pytest

from deescalator.llm import LLMProvider
from deescalator.rephraser import (
    SOURCE_LLM,
    SOURCE_PASSTHROUGH,
    SOURCE_RULES,
    rephrase,
)
from deescalator.rewriter import rewrite

ESCALATORY = "You are always wrong!!"
CALM = "Could you send me the report when you get a chance?"


class MockLLM(LLMProvider):
    """Mock LLM that returns a pre-configured reply or raises."""

    def __init__(self, reply=None, raw=None, error=None):
        self._reply = reply
        self._raw = raw
        self._error = error
        self.calls = []

    async def generate(self, prompt, system_instruction=None, temperature=0.7, json_mode=False):
        self.calls.append(prompt)
        if self._error is not None:
            raise self._error
        if self._raw is not None:
            return self._raw
        return json.dumps(self._reply)


class TestPassthrough:
    @pytest.mark.asyncio
    async def test_calm_text_skips_llm(self):
        llm = MockLLM(reply={"rephrasedText": "should not be used"})
        result = await rephrase(CALM, llm)
        assert result["rephrase_triggered"] is False
        assert result["source"] == SOURCE_PASSTHROUGH
        assert result["rephrased"] == CALM
        assert llm.calls == []


class TestLLMSuggestion:
    @pytest.mark.asyncio
    async def test_accepts_rephrased_text(self):
        llm = MockLLM(reply={"rephrasedText": "I see this differently."})
        result = await rephrase(ESCALATORY, llm)
        assert result["rephrase_triggered"] is True
        assert result["source"] == SOURCE_LLM
        assert result["rephrased"] == "I see this differently."
        assert "error" not in result
        assert result["suggestion_classification"]["is_escalatory"] is False
        assert result["diff_spans"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", ["rephrasedText", "rephrased", "text"])
    async def test_accepted_reply_keys(self, key):
        llm = MockLLM(reply={key: "I see this differently."})
        result = await rephrase(ESCALATORY, llm)
        assert result["source"] == SOURCE_LLM

    @pytest.mark.asyncio
    async def test_fenced_json(self):
        raw = '```json\n{"rephrasedText": "I see this differently."}\n```'
        result = await rephrase(ESCALATORY, MockLLM(raw=raw))
        assert result["source"] == SOURCE_LLM
        assert result["rephrased"] == "I see this differently."

    @pytest.mark.asyncio
    async def test_prompt_contains_draft(self):
        llm = MockLLM(reply={"rephrasedText": "I see this differently."})
        await rephrase(ESCALATORY, llm)
        assert len(llm.calls) == 1
        assert ESCALATORY in llm.calls[0]


class TestFallback:
    @pytest.mark.asyncio
    async def test_missing_field(self):
        result = await rephrase(ESCALATORY, MockLLM(reply={"foo": "bar"}))
        assert result["source"] == SOURCE_RULES
        assert result["rephrased"] == rewrite(ESCALATORY)
        assert "missing" in result["error"]

    @pytest.mark.asyncio
    async def test_blank_suggestion(self):
        result = await rephrase(ESCALATORY, MockLLM(reply={"rephrasedText": "   "}))
        assert result["source"] == SOURCE_RULES

    @pytest.mark.asyncio
    async def test_still_escalatory(self):
        result = await rephrase(ESCALATORY, MockLLM(reply={"rephrasedText": "You idiot, you are always wrong!!"}))
        assert result["source"] == SOURCE_RULES
        assert "still escalatory" in result["error"]

    @pytest.mark.asyncio
    async def test_llm_error(self):
        result = await rephrase(ESCALATORY, MockLLM(error=RuntimeError("backend down")))
        assert result["source"] == SOURCE_RULES
        assert result["error"] == "backend down"
        assert result["rephrased"] == "I often disagree with your perspective."

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        result = await rephrase(ESCALATORY, MockLLM(raw="not json at all"))
        assert result["source"] == SOURCE_RULES
        assert "invalid JSON" in result["error"]

    @pytest.mark.asyncio
    async def test_json_array_rejected(self):
        result = await rephrase(ESCALATORY, MockLLM(raw='["I see this differently."]'))
        assert result["source"] == SOURCE_RULES


class TestGenerateJson:
    @pytest.mark.asyncio
    async def test_parses_object(self):
        llm = MockLLM(reply={"a": 1})
        assert await llm.generate_json("prompt") == {"a": 1}

    @pytest.mark.asyncio
    async def test_raises_value_error(self):
        with pytest.raises(ValueError):
            await MockLLM(raw="{broken").generate_json("prompt")
