"""SummarizerConfig loading and validation logic.

Provides ``_SummarizerConfigLoader``, a mixin whose methods are inherited by
``SummarizerConfig`` (defined in ``summarizer.py``), keeping that module
focused on field declarations.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, cast

if TYPE_CHECKING:
    from chunkwise.config.summarizer import SummarizerConfig

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # Python < 3.11 fallback

from chunkwise.config.parsing import _coerce

logger = logging.getLogger(__name__)

_ENV_PREFIX = "CHUNKWISE_"
_CONFIG_FILE_ENV_VAR = "CHUNKWISE_CONFIG_FILE"
_API_KEY_ENV_VAR = "ANTHROPIC_API_KEY"

# TOML section -> {key in section: config field}
_TOML_SECTIONS: Dict[str, Dict[str, str]] = {
    "provider": {
        "api_key": "api_key",
        "base_url": "base_url",
        "model": "model",
        "meta_model": "meta_model",
        "adaptive_model_selection": "adaptive_model_selection",
        "max_tokens": "max_tokens",
        "meta_max_tokens": "meta_max_tokens",
        "temperature": "temperature",
        "meta_temperature": "meta_temperature",
        "request_timeout": "request_timeout",
    },
    "chunking": {
        "max_chunk_size": "max_chunk_size",
        "min_chunk_size": "min_chunk_size",
        "small_content_threshold": "small_content_threshold",
        "small_chunk_count_threshold": "small_chunk_count_threshold",
        "max_chunks_total": "max_chunks_total",
        "meta_summary_fallback": "meta_summary_fallback",
    },
    "scheduler": {
        "max_concurrent_requests": "max_concurrent_requests",
        "min_workers": "min_workers",
        "task_timeout": "task_timeout",
        "cancel_on_timeout": "cancel_on_timeout",
        "chunk_task_retries": "chunk_task_retries",
        "resize_interval": "resize_interval",
        "resize_threshold": "resize_threshold",
    },
    "rate_limit": {
        "requests_per_minute": "api_requests_per_minute",
    },
    "retry": {
        "max_retries": "max_retries",
        "base_delay": "retry_base_delay",
    },
    "logging": {
        "level": "log_level",
        "structured": "structured_logging",
    },
}

# Every field can also be set as CHUNKWISE_<FIELD_NAME>.
_ENV_FIELDS = sorted({name for section in _TOML_SECTIONS.values() for name in section.values()})


class _SummarizerConfigLoader:
    """Mixin providing config-loading methods for ``SummarizerConfig``.

    At runtime ``self`` is always a ``SummarizerConfig`` instance.
    """

    if TYPE_CHECKING:
        api_key: Optional[str]
        log_level: str

        def validate(self) -> None: ...

    @classmethod
    def from_env(cls, config_file: Optional[str] = None) -> "SummarizerConfig":
        """
        Create configuration from environment variables and optional TOML file.

        Priority (highest to lowest):
        1. Environment variables (CHUNKWISE_*, ANTHROPIC_API_KEY)
        2. Explicit config file (argument or CHUNKWISE_CONFIG_FILE)
        3. Project TOML config (./chunkwise.toml)
        4. User TOML config (~/.chunkwise.toml)
        5. XDG config (~/.config/chunkwise/config.toml)
        6. Default values
        """
        config = cls()

        toml_path = config_file or os.environ.get(_CONFIG_FILE_ENV_VAR)
        if toml_path:
            config._load_toml(Path(toml_path))
        else:
            xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
            xdg_config = Path(xdg_config_home) / "chunkwise" / "config.toml"
            if xdg_config.exists():
                config._load_toml(xdg_config)
                logger.debug(f"Loaded XDG config from {xdg_config}")

            home_config = Path.home() / ".chunkwise.toml"
            if home_config.exists():
                config._load_toml(home_config)
                logger.debug(f"Loaded user config from {home_config}")

            project_config = Path("chunkwise.toml")
            if project_config.exists():
                config._load_toml(project_config)
                logger.debug(f"Loaded project config from {project_config}")

        config._load_env()
        config.validate()
        return cast("SummarizerConfig", config)

    def _set_field(self, name: str, value: Any, *, source: str) -> None:
        current = getattr(self, name)
        like = current
        if current is None and name == "api_key":
            like = ""
        coerced = _coerce(value, like, key=f"{source}:{name}")
        if name == "log_level":
            coerced = coerced.upper()
        setattr(self, name, coerced)

    def _load_toml(self, path: Path) -> None:
        """Load configuration from TOML file."""
        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            return

        with open(path, "rb") as f:
            data = tomllib.load(f)
        self.apply_toml_dict(data, source=str(path))

    def apply_toml_dict(self, data: Mapping[str, Any], *, source: str = "toml") -> None:
        """Apply an already-parsed TOML document."""
        for section, keys in _TOML_SECTIONS.items():
            table = data.get(section)
            if not isinstance(table, Mapping):
                continue
            for key, field_name in keys.items():
                if key in table:
                    self._set_field(field_name, table[key], source=source)
            unknown = set(table) - set(keys)
            if unknown:
                logger.warning(f"Ignoring unknown keys in [{section}] of {source}: {', '.join(sorted(unknown))}")

    def _load_env(self) -> None:
        """Load configuration from environment variables."""
        if api_key := os.environ.get(_API_KEY_ENV_VAR):
            self.api_key = api_key

        for field_name in _ENV_FIELDS:
            env_var = f"{_ENV_PREFIX}{field_name.upper()}"
            if (raw := os.environ.get(env_var)) is not None and raw != "":
                self._set_field(field_name, raw, source=env_var)
