"""Tests for SummarizerConfig loading (TOML layers, env overrides, validation)."""

import logging

import pytest

from chunkwise.config import SummarizerConfig, get_config, set_config


class TestConfigDefaults:
    """Defaults and validation rules."""

    def test_defaults_are_valid(self):
        config = SummarizerConfig()
        config.validate()
        assert config.max_chunk_size == 28000
        assert config.small_content_threshold == 10000
        assert config.max_chunks_total == 20
        assert config.api_key is None

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"max_chunk_size": 0}, "max_chunk_size"),
            ({"max_concurrent_requests": -1}, "max_concurrent_requests"),
            ({"task_timeout": 0.0}, "task_timeout"),
            ({"max_retries": -1}, "max_retries"),
            ({"resize_threshold": 1.5}, "resize_threshold"),
            ({"min_workers": 5, "max_concurrent_requests": 2}, "min_workers"),
            ({"min_chunk_size": 500, "max_chunk_size": 500}, "min_chunk_size"),
            ({"log_level": "VERBOSE"}, "Invalid log level"),
        ],
    )
    def test_validate_rejects_bad_settings(self, overrides, message):
        config = SummarizerConfig(**overrides)
        with pytest.raises(ValueError, match=message):
            config.validate()

    def test_to_dict_redacts_api_key(self):
        config = SummarizerConfig(api_key="sk-secret")
        assert config.to_dict()["api_key"] == "****"
        assert config.to_dict(redact=False)["api_key"] == "sk-secret"

    def test_repr_hides_api_key(self):
        assert "sk-secret" not in repr(SummarizerConfig(api_key="sk-secret"))


class TestConfigLoading:
    """Layered TOML loading with environment overrides."""

    def test_no_files_gives_defaults(self, isolated_env):
        config = SummarizerConfig.from_env()
        assert config == SummarizerConfig()

    def test_explicit_file_sections(self, isolated_env):
        path = isolated_env / "custom.toml"
        path.write_text(
            """
[provider]
model = "claude-custom"
temperature = 0.3

[chunking]
max_chunk_size = 5000
meta_summary_fallback = false

[scheduler]
max_concurrent_requests = 8
cancel_on_timeout = true

[rate_limit]
requests_per_minute = 10

[retry]
base_delay = 2

[logging]
level = "debug"
"""
        )

        config = SummarizerConfig.from_env(str(path))

        assert config.model == "claude-custom"
        assert config.temperature == 0.3
        assert config.max_chunk_size == 5000
        assert config.meta_summary_fallback is False
        assert config.max_concurrent_requests == 8
        assert config.cancel_on_timeout is True
        assert config.api_requests_per_minute == 10
        assert config.retry_base_delay == 2.0
        assert config.log_level == "DEBUG"

    def test_config_file_env_var(self, isolated_env, monkeypatch):
        path = isolated_env / "from-env.toml"
        path.write_text("[chunking]\nmax_chunks_total = 7\n")
        monkeypatch.setenv("CHUNKWISE_CONFIG_FILE", str(path))

        assert SummarizerConfig.from_env().max_chunks_total == 7

    def test_project_overrides_home(self, isolated_env):
        (isolated_env / "home" / ".chunkwise.toml").write_text(
            "[chunking]\nmax_chunk_size = 4000\nmax_chunks_total = 9\n"
        )
        (isolated_env / "chunkwise.toml").write_text("[chunking]\nmax_chunk_size = 3000\n")

        config = SummarizerConfig.from_env()

        assert config.max_chunk_size == 3000
        assert config.max_chunks_total == 9

    def test_home_overrides_xdg(self, isolated_env):
        xdg_dir = isolated_env / "xdg" / "chunkwise"
        xdg_dir.mkdir(parents=True)
        (xdg_dir / "config.toml").write_text("[retry]\nmax_retries = 1\nbase_delay = 3.0\n")
        (isolated_env / "home" / ".chunkwise.toml").write_text("[retry]\nmax_retries = 5\n")

        config = SummarizerConfig.from_env()

        assert config.max_retries == 5
        assert config.retry_base_delay == 3.0

    def test_env_overrides_toml(self, isolated_env, monkeypatch):
        (isolated_env / "chunkwise.toml").write_text("[chunking]\nmax_chunk_size = 3000\n")
        monkeypatch.setenv("CHUNKWISE_MAX_CHUNK_SIZE", "2500")
        monkeypatch.setenv("CHUNKWISE_ADAPTIVE_MODEL_SELECTION", "no")
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-env")

        config = SummarizerConfig.from_env()

        assert config.max_chunk_size == 2500
        assert config.adaptive_model_selection is False
        assert config.api_key == "sk-env"

    def test_empty_env_value_ignored(self, isolated_env, monkeypatch):
        monkeypatch.setenv("CHUNKWISE_MAX_RETRIES", "")
        assert SummarizerConfig.from_env().max_retries == 3

    @pytest.mark.parametrize(
        "env_var,value",
        [
            ("CHUNKWISE_MAX_CHUNK_SIZE", "large"),
            ("CHUNKWISE_CANCEL_ON_TIMEOUT", "maybe"),
            ("CHUNKWISE_TASK_TIMEOUT", "soon"),
        ],
    )
    def test_unparseable_env_value_raises(self, isolated_env, monkeypatch, env_var, value):
        monkeypatch.setenv(env_var, value)
        with pytest.raises(ValueError, match=env_var):
            SummarizerConfig.from_env()

    def test_invalid_combination_raises(self, isolated_env, monkeypatch):
        monkeypatch.setenv("CHUNKWISE_MAX_CHUNKS_TOTAL", "0")
        with pytest.raises(ValueError, match="max_chunks_total"):
            SummarizerConfig.from_env()

    def test_unknown_keys_warn(self, isolated_env, caplog):
        path = isolated_env / "typo.toml"
        path.write_text("[chunking]\nmax_chunk_sise = 10\n")

        with caplog.at_level(logging.WARNING, logger="chunkwise.config.loader"):
            config = SummarizerConfig.from_env(str(path))

        assert config.max_chunk_size == 28000
        assert "max_chunk_sise" in caplog.text

    def test_missing_explicit_file_warns(self, isolated_env, caplog):
        with caplog.at_level(logging.WARNING, logger="chunkwise.config.loader"):
            config = SummarizerConfig.from_env(str(isolated_env / "absent.toml"))

        assert config == SummarizerConfig()
        assert "Config file not found" in caplog.text


class TestGlobalConfig:
    """get_config/set_config."""

    def test_get_config_caches(self, isolated_env):
        first = get_config()
        assert get_config() is first

    def test_set_config_overrides(self, isolated_env):
        custom = SummarizerConfig(max_chunk_size=1234)
        set_config(custom)
        assert get_config() is custom
