"""Tests for parser configuration."""

import pytest

from elengine import ParserOptions


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("ELENGINE_MAX_DEPTH", raising=False)
    monkeypatch.delenv("ELENGINE_CONDITIONAL", raising=False)
    monkeypatch.delenv("ELENGINE_MATCH", raising=False)
    monkeypatch.delenv("ELENGINE_JOIN", raising=False)


class TestParserOptions:
    def test_defaults(self):
        options = ParserOptions()

        assert options.max_depth == 50
        assert options.conditional_allowed is True
        assert options.match_allowed is False
        assert options.join_allowed is False

    def test_from_env_without_variables(self):
        assert ParserOptions.from_env() == ParserOptions()

    def test_from_env_reads_variables(self, monkeypatch):
        monkeypatch.setenv("ELENGINE_MAX_DEPTH", "10")
        monkeypatch.setenv("ELENGINE_CONDITIONAL", "off")

        options = ParserOptions.from_env()

        assert options.max_depth == 10
        assert options.conditional_allowed is False

    @pytest.mark.parametrize("raw", ["1", "true", "YES", " on "])
    def test_conditional_true_spellings(self, monkeypatch, raw):
        monkeypatch.setenv("ELENGINE_CONDITIONAL", raw)
        assert ParserOptions.from_env().conditional_allowed is True

    def test_invalid_depth(self, monkeypatch):
        monkeypatch.setenv("ELENGINE_MAX_DEPTH", "deep")

        with pytest.raises(ValueError, match="ELENGINE_MAX_DEPTH"):
            ParserOptions.from_env()

    def test_depth_must_be_positive(self, monkeypatch):
        monkeypatch.setenv("ELENGINE_MAX_DEPTH", "0")

        with pytest.raises(ValueError, match="at least 1"):
            ParserOptions.from_env()

    def test_from_env_reads_optional_operators(self, monkeypatch):
        monkeypatch.setenv("ELENGINE_MATCH", "yes")
        monkeypatch.setenv("ELENGINE_JOIN", "1")

        options = ParserOptions.from_env()

        assert options.match_allowed is True
        assert options.join_allowed is True
        assert options.conditional_allowed is True

    @pytest.mark.parametrize("name", ["ELENGINE_MATCH", "ELENGINE_JOIN"])
    def test_invalid_operator_flag(self, monkeypatch, name):
        monkeypatch.setenv(name, "maybe")

        with pytest.raises(ValueError, match=name):
            ParserOptions.from_env()

    def test_invalid_conditional(self, monkeypatch):
        monkeypatch.setenv("ELENGINE_CONDITIONAL", "sometimes")

        with pytest.raises(ValueError, match="ELENGINE_CONDITIONAL"):
            ParserOptions.from_env()

    def test_options_are_immutable(self):
        with pytest.raises(AttributeError):
            ParserOptions().max_depth = 5
