"""
LLM Provider — base interface.

The rephrase relay only needs text in, text (or JSON) out. Providers
implement generate(); generate_json() is shared.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Optional


class LLMProvider(ABC):
    """Abstract async text-generation backend."""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> str:
        ...

    async def generate_json(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        temperature: float = 0.3,
    ) -> dict:
        """Generate and parse a JSON object. Raises ValueError on bad output."""
        raw = await self.generate(
            prompt,
            system_instruction=system_instruction,
            temperature=temperature,
            json_mode=True,
        )
        cleaned = (raw or "").strip()
        if cleaned.startswith("```"):
            cleaned = cleaned.split("\n", 1)[1] if "\n" in cleaned else ""
            if cleaned.rstrip().endswith("```"):
                cleaned = cleaned.rstrip()[:-3]
        try:
            parsed = json.loads(cleaned)
        except json.JSONDecodeError as e:
            raise ValueError(f"LLM returned invalid JSON: {e}") from e
        if not isinstance(parsed, dict):
            raise ValueError("LLM returned JSON that is not an object")
        return parsed
