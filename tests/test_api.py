"""
API Integration Tests — Endpoint Verification

Tests every public API endpoint using FastAPI's TestClient.
No real LLM calls; the relay gets a MockLLM and the interaction
log writes to a temporary database.

These tests catch:
  - Schema mismatches (response model vs actual data)
  - Route registration issues
  - Middleware/dependency injection bugs
  - Response format regressions
"""

from __future__ import annotations

import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from deescalator.cache import rephrase_cache
from deescalator.catalog import CATALOG
from deescalator.interactions import InteractionLog
from deescalator.llm import LLMProvider
from deescalator import rate_limit


class MockLLM(LLMProvider):
    """Mock LLM that returns a fixed suggestion or raises."""

    def __init__(self, suggestion="I see this differently.", error=None):
        self.suggestion = suggestion
        self.error = error
        self.calls = 0

    async def generate(self, prompt, system_instruction=None, temperature=0.7, json_mode=False):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return json.dumps({"rephrasedText": self.suggestion})


# --- Fixtures ---

@pytest.fixture(scope="module")
def client(tmp_path_factory):
    """Create a test client with an isolated interaction log and a mock LLM."""
    from api import main
    main._interaction_log = InteractionLog(
        db_path=str(tmp_path_factory.mktemp("db") / "interactions.db"),
        retention=100,
    )
    main._llm = MockLLM()
    with TestClient(main.app) as c:
        yield c


@pytest.fixture(autouse=True)
def fresh_limits_and_cache():
    rate_limit.reset()
    asyncio.run(rephrase_cache.clear())
    yield
    rate_limit.reset()


@pytest.fixture
def llm(monkeypatch):
    from api import main
    mock = MockLLM()
    monkeypatch.setattr(main, "_llm", mock)
    return mock


# ============================================================
# HEALTH & META
# ============================================================

class TestHealth:
    """Verify /health returns correct structure."""

    def test_health_returns_200(self, client):
        assert client.get("/health").status_code == 200

    def test_health_fields(self, client):
        data = client.get("/health").json()
        assert data["status"] == "operational"
        assert data["catalog_version"] == CATALOG.version
        assert data["threshold"] == 2.5
        assert data["profanity_policy"] == "override"
        assert "llm_provider" in data
        assert "interactions_logged" in data
        assert set(data["cache"]) == {"entries", "hits", "misses", "hit_rate"}

    def test_version_headers(self, client):
        r = client.get("/health")
        assert r.headers["X-Catalog-Version"] == CATALOG.version
        assert "X-Deescalator-Version" in r.headers


# ============================================================
# CLASSIFY
# ============================================================

class TestClassify:
    def test_escalatory(self, client):
        r = client.post("/classify", json={"text": "You are always wrong!!"})
        assert r.status_code == 200
        data = r.json()
        assert data["is_escalatory"] is True
        assert data["escalation_type"] == "cognitive"
        assert data["score"] == pytest.approx(6.0)
        assert data["reasons"]
        assert data["catalog_version"] == CATALOG.version

    def test_emotional(self, client):
        data = client.post("/classify", json={"text": "you idiot"}).json()
        assert data["is_escalatory"] is True
        assert data["escalation_type"] == "emotional"

    def test_empty_text_not_escalatory(self, client):
        r = client.post("/classify", json={"text": ""})
        assert r.status_code == 200
        assert r.json()["is_escalatory"] is False
        assert r.json()["escalation_type"] == "none"

    def test_missing_text(self, client):
        assert client.post("/classify", json={}).status_code == 422

    def test_non_string_text(self, client):
        assert client.post("/classify", json={"text": 42}).status_code == 422

    def test_text_too_long(self, client):
        assert client.post("/classify", json={"text": "a" * 6000}).status_code == 422

    def test_body_too_large(self, client):
        assert client.post("/classify", json={"text": "a" * 70000}).status_code == 413


# ============================================================
# REWRITE / DELTA
# ============================================================

class TestRewrite:
    def test_rewrite(self, client):
        r = client.post("/rewrite", json={"text": "You are always wrong!"})
        assert r.status_code == 200
        data = r.json()
        assert data["rewritten"] == "I often disagree with your perspective."
        assert data["stages_applied"] == ["deep_accusatory", "intensity"]
        assert data["classification"]["is_escalatory"] is True
        assert data["rewrite_classification"]["is_escalatory"] is False
        assert data["diff_spans"]

    def test_calm_text_unchanged(self, client):
        data = client.post("/rewrite", json={"text": "I disagree with this plan."}).json()
        assert data["rewritten"] == "I disagree with this plan."
        assert data["stages_applied"] == []


class TestDelta:
    def test_delta(self, client):
        r = client.post("/delta", json={"actual": "I disagree with you.", "suggested": "I disagree"})
        assert r.status_code == 200
        assert r.json() == {"delta": "with you."}

    def test_missing_field(self, client):
        assert client.post("/delta", json={"actual": "x"}).status_code == 422


# ============================================================
# REPHRASE RELAY
# ============================================================

class TestRephrase:
    def test_llm_suggestion(self, client, llm):
        r = client.post("/api/rephrase", json={"text": "You are always wrong!!"})
        assert r.status_code == 200
        data = r.json()
        assert data["source"] == "llm"
        assert data["rephrasedText"] == "I see this differently."
        assert data["rephrased"] == data["rephrasedText"]
        assert data["rephrase_triggered"] is True
        assert data["cached"] is False
        assert data["error"] is None

    def test_calm_passthrough(self, client, llm):
        text = "Could you send me the report when you get a chance?"
        data = client.post("/api/rephrase", json={"text": text}).json()
        assert data["source"] == "passthrough"
        assert data["rephrasedText"] == text
        assert llm.calls == 0

    @pytest.mark.parametrize("text", ["", "   "])
    def test_blank_rejected(self, client, llm, text):
        assert client.post("/api/rephrase", json={"text": text}).status_code == 422

    def test_llm_failure_falls_back(self, client, monkeypatch):
        from api import main
        monkeypatch.setattr(main, "_llm", MockLLM(error=RuntimeError("backend down")))
        data = client.post("/api/rephrase", json={"text": "You are always wrong!!"}).json()
        assert data["source"] == "rules"
        assert data["error"] == "backend down"
        assert data["rephrasedText"] == "I often disagree with your perspective."

    def test_repeat_is_cached(self, client, llm):
        first = client.post("/api/rephrase", json={"text": "you idiot"}).json()
        second = client.post("/api/rephrase", json={"text": "you idiot"}).json()
        assert first["cached"] is False
        assert second["cached"] is True
        assert second["rephrasedText"] == first["rephrasedText"]
        assert llm.calls == 1

    def test_fallback_not_cached(self, client, monkeypatch):
        from api import main
        failing = MockLLM(error=RuntimeError("backend down"))
        monkeypatch.setattr(main, "_llm", failing)
        client.post("/api/rephrase", json={"text": "you idiot"})
        client.post("/api/rephrase", json={"text": "you idiot"})
        assert failing.calls == 2


# ============================================================
# INTERACTIONS
# ============================================================

class TestInteractions:
    def test_log_interaction(self, client):
        r = client.post("/interactions", json={
            "user_id": "u-42",
            "age": 25,
            "did_user_accept": True,
            "rephrase_suggestion": "I disagree",
            "actual_posted_text": "I disagree with you.",
            "platform": "twitter",
        })
        assert r.status_code == 200
        data = r.json()
        assert data["delta"] == "with you."
        assert data["record"]["age"] == "25"
        assert data["record"]["did_user_accept"] == "yes"
        assert data["record"]["country"] == "unknown"

    def test_client_delta_ignored(self, client):
        data = client.post("/interactions", json={"delta": "forged"}).json()
        assert data["delta"] == ""

    def test_recent_newest_first(self, client):
        client.post("/interactions", json={"user_id": "older"})
        client.post("/interactions", json={"user_id": "newer"})
        data = client.get("/interactions", params={"limit": 2}).json()
        assert [e["user_id"] for e in data["entries"]] == ["newer", "older"]
        assert data["total_count"] >= 2

    def test_limit_bounds(self, client):
        assert client.get("/interactions", params={"limit": 0}).status_code == 422
        assert client.get("/interactions", params={"limit": 101}).status_code == 422


# ============================================================
# PATTERNS
# ============================================================

class TestPatterns:
    def test_patterns(self, client):
        data = client.get("/patterns").json()
        assert data["catalog_version"] == CATALOG.version
        assert data["total"] == len(data["patterns"])
        assert data["total"] == len(CATALOG.describe())


# ============================================================
# RATE LIMITING
# ============================================================

@pytest.mark.skipif(not rate_limit.RATE_LIMIT_ENABLED, reason="rate limiting disabled")
class TestRateLimit:
    def test_limit_enforced(self, client):
        for _ in range(rate_limit.DEFAULT_LIMITS.per_minute):
            assert client.post("/classify", json={"text": "hello there"}).status_code == 200
        r = client.post("/classify", json={"text": "hello there"})
        assert r.status_code == 429
        assert "Retry-After" in r.headers
