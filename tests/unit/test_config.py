"""Tests for environment configuration and validated run options."""
import logging

import pytest
from pydantic import ValidationError

from voicenotes.analysis.fields import Verbosity
from voicenotes.config import Config, _getenv_int, _parse_bool, _parse_list, get_config, reset_config
from voicenotes.config.validation import PipelineOptions, SummaryOptions
from voicenotes.utils.retry import TRANSCRIPTION_RETRY_POLICY


class TestHelperFunctions:
    @pytest.mark.parametrize("value", ["true", "1", "YES", "on", "enabled", True])
    def test_parse_bool_truthy(self, value):
        assert _parse_bool(value) is True

    @pytest.mark.parametrize("value", ["false", "0", "", None, False])
    def test_parse_bool_falsy(self, value):
        assert _parse_bool(value) is False

    def test_parse_list(self):
        assert _parse_list("a, b,,c ") == ["a", "b", "c"]
        assert _parse_list(["x"]) == ["x"]
        assert _parse_list(None) == []

    def test_getenv_int_invalid(self, monkeypatch):
        monkeypatch.setenv("CHUNK_SIZE_MB", "big")
        with pytest.raises(ValueError, match="CHUNK_SIZE_MB"):
            _getenv_int("CHUNK_SIZE_MB", 24)


class TestConfig:
    def test_defaults(self):
        config = Config()
        assert config.completion_provider == "openai"
        assert config.chunk_size_mb == 24
        assert config.max_file_size == 200_000_000
        assert config.summary_options == ["summary", "main_points", "action_items"]
        assert config.transcription_max_concurrent == 30
        assert config.summarization_max_concurrent == 35
        assert config.moderation_max_concurrent == 500
        assert config.transcription_min_interval == pytest.approx(1 / 30)
        assert config.max_tokens_per_chunk is None
        assert config.whisper_prompt == "Hello, welcome to my lecture."

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("COMPLETION_PROVIDER", "Anthropic")
        monkeypatch.setenv("MAX_TOKENS_PER_CHUNK", "8000")
        monkeypatch.setenv("DISABLE_MODERATION", "yes")
        monkeypatch.setenv("SUMMARY_OPTIONS", "summary, stories")

        config = Config()

        assert config.completion_provider == "anthropic"
        assert config.max_tokens_per_chunk == 8000
        assert config.disable_moderation is True
        assert config.summary_options == ["summary", "stories"]

    def test_repr_redacts_keys(self):
        text = repr(Config(OPENAI_API_KEY="sk-secret", ANTHROPIC_API_KEY="sk-ant-secret"))
        assert "sk-secret" not in text
        assert "sk-ant-secret" not in text
        assert "***REDACTED***" in text

    def test_validate_requires_openai_key(self):
        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            Config(ANTHROPIC_API_KEY="k").validate("anthropic")

    def test_validate_requires_provider_key(self):
        with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
            Config(OPENAI_API_KEY="k").validate("anthropic")

    def test_validate_ok(self):
        Config(OPENAI_API_KEY="k").validate("openai")

    @pytest.mark.parametrize(
        "env",
        [
            {"MAX_API_RETRIES": "11"},
            {"MAX_API_RETRIES": "0"},
            {"API_RETRY_DELAY": "60", "MAX_RETRY_DELAY": "30"},
        ],
    )
    def test_validate_rejects_retry_settings(self, monkeypatch, env):
        for name, value in env.items():
            monkeypatch.setenv(name, value)
        with pytest.raises(ValueError, match="Invalid retry settings"):
            Config(OPENAI_API_KEY="k").validate("openai")

    def test_retry_policy_applies_settings(self):
        config = Config(max_retries=5, retry_delay=0.5, max_retry_delay=4.0)
        policy = config.retry_policy(TRANSCRIPTION_RETRY_POLICY)
        assert policy.max_attempts == 5
        assert policy.base_delay == 0.5
        assert policy.max_delay == 4.0
        assert policy.should_retry is TRANSCRIPTION_RETRY_POLICY.should_retry

    def test_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")
        assert Config().log_level_value == logging.WARNING

    def test_validate_rejects_unknown_log_level(self):
        config = Config(OPENAI_API_KEY="k", log_level="LOUD")
        assert config.log_level_value == logging.INFO
        with pytest.raises(ValueError, match="LOG_LEVEL"):
            config.validate("openai")

    def test_singleton(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-one")
        first = get_config()
        assert get_config() is first
        reset_config()
        assert get_config() is not first


class TestSummaryOptions:
    def test_labels_resolved_and_deduplicated(self):
        options = SummaryOptions(fields=["Summary", "action_items", "Action Items"])
        assert options.fields == ["summary", "action_items"]

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError, match="horoscope"):
            SummaryOptions(fields=["horoscope"])

    @pytest.mark.parametrize("temperature", [-1, 11])
    def test_temperature_range(self, temperature):
        with pytest.raises(ValidationError):
            SummaryOptions(temperature=temperature)

    def test_sampling_temperature(self):
        assert SummaryOptions(temperature=7).sampling_temperature == pytest.approx(0.7)

    def test_verbosity_parsed(self):
        assert SummaryOptions(verbosity="High").verbosity is Verbosity.HIGH
        with pytest.raises(ValidationError):
            SummaryOptions(verbosity="Extreme")

    def test_blank_language_is_none(self):
        assert SummaryOptions(summary_language="  ").summary_language is None

    def test_title_only(self):
        assert SummaryOptions(fields=[]).title_only
        assert not SummaryOptions(fields=["summary"]).title_only


class TestPipelineOptions:
    def test_token_budget_defaults_per_provider(self):
        assert PipelineOptions(provider="openai").max_tokens_per_chunk == 2750
        assert PipelineOptions(provider="anthropic").max_tokens_per_chunk == 5000

    def test_token_budget_ceiling(self):
        assert PipelineOptions(provider="anthropic", max_tokens_per_chunk=50000).max_tokens_per_chunk == 50000
        with pytest.raises(ValidationError):
            PipelineOptions(provider="openai", max_tokens_per_chunk=5001)
        with pytest.raises(ValidationError):
            PipelineOptions(provider="openai", max_tokens_per_chunk=499)

    @pytest.mark.parametrize("size", [9, 51])
    def test_chunk_size_range(self, size):
        with pytest.raises(ValidationError):
            PipelineOptions(chunk_size_mb=size)

    def test_unknown_provider(self):
        with pytest.raises(ValidationError):
            PipelineOptions(provider="groq")
