"""
Tests for catalog validation against the fixed corpus, and the
run_validation CLI.
"""

import json
import sys

import pytest

from deescalator.catalog import CATALOG, CatalogValidationError, build_catalog
from deescalator.classifier import EscalationType
from deescalator.validation import (
    FIXED_CORPUS,
    CorpusCase,
    activate_catalog,
    validate_catalog,
)


@pytest.fixture
def broken_catalog():
    """A structurally valid catalog that detects nothing but profanity."""
    return build_catalog(version="0.0.0-broken", rules=(), profanity_idioms=())


class TestFixedCorpus:
    def test_has_escalatory_and_neutral_cases(self):
        assert any(c.escalatory for c in FIXED_CORPUS)
        assert any(not c.escalatory for c in FIXED_CORPUS)

    def test_reference_examples_present(self):
        texts = {c.text for c in FIXED_CORPUS}
        assert "You are always wrong!!" in texts
        assert "you idiot" in texts

    def test_neutral_cases_expect_none(self):
        for case in FIXED_CORPUS:
            if not case.escalatory:
                assert case.allowed_types == frozenset({EscalationType.NONE})


class TestValidateCatalog:
    def test_default_catalog_passes(self):
        report = validate_catalog(CATALOG)
        assert report.failures == []
        assert report.passed is True
        assert report.total == len(FIXED_CORPUS)
        assert report.catalog_version == CATALOG.version

    def test_broken_catalog_fails(self, broken_catalog):
        report = validate_catalog(broken_catalog)
        assert report.passed is False
        assert any(f["text"] == "you idiot" for f in report.failures)

    def test_wrong_type_reported(self):
        corpus = (CorpusCase("You are always wrong!!", True, frozenset({EscalationType.EMOTIONAL})),)
        report = validate_catalog(CATALOG, corpus=corpus)
        assert len(report.failures) == 1
        assert "expected type" in report.failures[0]["problem"]

    def test_report_to_dict(self):
        data = validate_catalog(CATALOG).to_dict()
        assert data["passed"] is True
        assert set(data) == {"catalog_version", "passed", "total", "failures"}


class TestActivateCatalog:
    def test_passing_catalog_returned(self):
        assert activate_catalog(CATALOG) is CATALOG

    def test_failing_catalog_rejected(self, broken_catalog):
        with pytest.raises(CatalogValidationError, match="0.0.0-broken"):
            activate_catalog(broken_catalog)


class TestValidationCLI:
    def test_text_report(self, monkeypatch, capsys):
        from run_validation import main
        monkeypatch.setattr(sys, "argv", ["run_validation.py"])
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 0
        assert "PASSED" in capsys.readouterr().out

    def test_json_report(self, monkeypatch, capsys):
        from run_validation import main
        monkeypatch.setattr(sys, "argv", ["run_validation.py", "--json"])
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["passed"] is True
