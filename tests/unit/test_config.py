"""Unit tests for configuration module."""

import os
from typing import get_args
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from chess_agent_bench import config
from chess_agent_bench.types import GameStatus, Provider


class TestLoadEnv:
    """Tests for load_env function."""

    def setup_method(self):
        """Reset global state before each test."""
        config._ENV_LOADED = False
        for key in list(os.environ.keys()):
            if key.startswith("TEST_"):
                del os.environ[key]

    def test_load_env__given_valid_env_file__when_called__then_loads_variables(
        self, tmp_path
    ):
        env_file = tmp_path / ".env"
        env_file.write_text("TEST_VAR=test_value\nTEST_NUMBER=42")

        loaded_path = config.load_env(str(env_file))

        assert loaded_path == env_file
        assert os.environ.get("TEST_VAR") == "test_value"
        assert os.environ.get("TEST_NUMBER") == "42"
        assert config._ENV_LOADED is True

    def test_load_env__when_called_twice__then_skips_second_load(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("TEST_VAR=first_value")
        config.load_env(str(env_file))

        env_file.write_text("TEST_VAR=second_value")
        second_path = config.load_env(str(env_file))

        assert second_path is None
        assert os.environ.get("TEST_VAR") == "first_value"

    def test_load_env__given_override_true__when_already_loaded__then_reloads(
        self, tmp_path
    ):
        env_file = tmp_path / ".env"
        env_file.write_text("TEST_VAR=first_value")
        config.load_env(str(env_file))

        env_file.write_text("TEST_VAR=second_value")
        second_path = config.load_env(str(env_file), override=True)

        assert second_path == env_file
        assert os.environ.get("TEST_VAR") == "second_value"

    def test_load_env__given_missing_file__then_returns_none(self, tmp_path):
        with patch("chess_agent_bench.config.find_dotenv", return_value=""):
            assert config.load_env(str(tmp_path / "missing.env")) is None
        assert config._ENV_LOADED is False


class TestAgentContextFromEnv:
    def test_defaults_to_gemini_flash_on_google(self, monkeypatch):
        for key in ("AGENT_PROVIDER", "AGENT_MODEL", "AGENT_LANGUAGE", "AGENT_ROUTED"):
            monkeypatch.delenv(key, raising=False)
        monkeypatch.setenv("AGENT_API_KEY", "secret")

        context = config.agent_context_from_env()

        assert context.provider == "google"
        assert context.model == "gemini-2.5-flash"
        assert context.api_key == "secret"
        assert context.language == "English"
        assert context.mode == "bench"
        assert context.is_routed is False
        assert context.ollama_base_url is None

    def test_no_ccp_selects_plain_bench_mode(self, monkeypatch):
        monkeypatch.setenv("AGENT_API_KEY", "secret")

        assert config.agent_context_from_env(use_ccp=False).mode == "bench-no-ccp"

    def test_ollama_provider_gets_base_url(self, monkeypatch):
        monkeypatch.setenv("AGENT_PROVIDER", "ollama")
        monkeypatch.setenv("AGENT_MODEL", "qwen3:8b")
        monkeypatch.delenv("OLLAMA_BASE_URL", raising=False)

        context = config.agent_context_from_env()

        assert context.ollama_base_url == "http://localhost:11434"

    def test_routed_flag_is_parsed(self, monkeypatch):
        monkeypatch.setenv("AGENT_ROUTED", "true")
        monkeypatch.setenv("AGENT_API_KEY", "secret")

        assert config.agent_context_from_env().is_routed is True

    def test_missing_api_key_for_cloud_provider_only_warns(
        self, monkeypatch, loguru_messages
    ):
        monkeypatch.setenv("AGENT_PROVIDER", "openai")
        monkeypatch.delenv("AGENT_API_KEY", raising=False)

        context = config.agent_context_from_env()

        assert context.api_key == ""
        assert any("No API key found" in m for m in loguru_messages)


class TestBenchmarkConfig:
    def test_defaults(self):
        cfg = config.BenchmarkConfig()

        assert cfg.games == 5
        assert cfg.engine_depth == 15
        assert cfg.api_delay_seconds == 1
        assert cfg.agent_timeout_seconds == 60
        assert cfg.engine_skill_level == 1000
        assert cfg.max_moves == 200
        assert cfg.max_consecutive_errors == 3
        assert cfg.retry_backoff_seconds == 5
        assert cfg.draw_priority[0] is GameStatus.STALEMATE

    @pytest.mark.parametrize(
        "field,value",
        [("games", 0), ("engine_depth", -1), ("agent_timeout_seconds", 0)],
    )
    def test_rejects_out_of_range_values(self, field, value):
        with pytest.raises(ValidationError):
            config.BenchmarkConfig(**{field: value})

    def test_accepts_reordered_draw_priority(self):
        priority = (
            GameStatus.INSUFFICIENT_MATERIAL,
            GameStatus.STALEMATE,
            GameStatus.FIFTY_MOVE_RULE,
            GameStatus.THREEFOLD_REPETITION,
        )

        assert config.BenchmarkConfig(draw_priority=priority).draw_priority == priority

    def test_rejects_draw_priority_with_missing_or_foreign_statuses(self):
        with pytest.raises(ValidationError, match="draw_priority"):
            config.BenchmarkConfig(draw_priority=(GameStatus.STALEMATE,))
        with pytest.raises(ValidationError, match="draw_priority"):
            config.BenchmarkConfig(
                draw_priority=(
                    GameStatus.CHECKMATE,
                    GameStatus.STALEMATE,
                    GameStatus.THREEFOLD_REPETITION,
                    GameStatus.INSUFFICIENT_MATERIAL,
                )
            )

    def test_rejects_draw_priority_with_repeated_status(self):
        with pytest.raises(ValidationError, match="draw_priority"):
            config.BenchmarkConfig(
                draw_priority=(
                    GameStatus.STALEMATE,
                    GameStatus.STALEMATE,
                    GameStatus.THREEFOLD_REPETITION,
                    GameStatus.INSUFFICIENT_MATERIAL,
                )
            )

    def test_cloud_providers_are_known_providers(self):
        assert set(config.CLOUD_PROVIDERS) < set(get_args(Provider))


class TestParsePositionalNumber:
    @pytest.mark.parametrize(
        "raw,expected",
        [(None, 7), ("12", 12), (" 3 ", 3), ("abc", 7), ("", 7), ("0", 7), ("2.5", 7)],
    )
    def test_parses_or_defaults(self, raw, expected):
        assert config.parse_positional_number(raw, 7) == expected

    def test_negative_values_pass_through_for_validation(self):
        assert config.parse_positional_number("-4", 7) == -4

    @pytest.mark.parametrize(
        "raw,expected",
        [("2.5", 2.5), ("0.25", 0.25), ("3", 3.0), ("0.0", 60.0), ("abc", 60.0)],
    )
    def test_parses_fractional_seconds(self, raw, expected):
        assert config.parse_positional_number(raw, 60.0, float) == expected

    @pytest.mark.parametrize("raw", ["nan", "inf", "-inf"])
    def test_non_finite_seconds_use_default(self, raw):
        assert config.parse_positional_number(raw, 60.0, float) == 60.0
