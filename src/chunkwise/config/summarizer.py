"""SummarizerConfig dataclass and global configuration state.

Loading lives in the ``_SummarizerConfigLoader`` mixin (``loader.py``).
"""

import logging
from dataclasses import asdict, dataclass, field
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_package_version
from typing import Any, Dict, Optional

from chunkwise.config.loader import _SummarizerConfigLoader


def _get_version() -> str:
    """Get package version from metadata (single source of truth: pyproject.toml)."""
    try:
        return get_package_version("chunkwise")
    except PackageNotFoundError:
        return "0.1.0"  # Fallback for dev without install


_PACKAGE_VERSION = _get_version()

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class SummarizerConfig(_SummarizerConfigLoader):
    """Summarizer configuration with support for env vars and TOML overrides."""

    # Provider
    api_key: Optional[str] = field(default=None, repr=False)
    base_url: str = "https://api.anthropic.com"
    model: str = "claude-3-5-sonnet-20240620"
    meta_model: str = "claude-3-5-sonnet-20240620"
    adaptive_model_selection: bool = True
    max_tokens: int = 800
    meta_max_tokens: int = 1200
    temperature: float = 0.1
    meta_temperature: float = 0.15
    request_timeout: float = 60.0

    # Chunking and aggregation
    max_chunk_size: int = 28000
    min_chunk_size: int = 0  # 0 disables tiny-chunk merging
    small_content_threshold: int = 10000
    small_chunk_count_threshold: int = 4
    max_chunks_total: int = 20
    meta_summary_fallback: bool = True

    # Scheduler
    max_concurrent_requests: int = 4
    min_workers: int = 1
    task_timeout: float = 180.0
    cancel_on_timeout: bool = False
    chunk_task_retries: int = 1
    resize_interval: float = 180.0
    resize_threshold: float = 0.25

    # Rate limiting and retry
    api_requests_per_minute: int = 50
    max_retries: int = 3
    retry_base_delay: float = 1.0

    # Logging
    log_level: str = "INFO"
    structured_logging: bool = False

    server_name: str = "chunkwise"
    server_version: str = field(default_factory=lambda: _PACKAGE_VERSION)

    def validate(self) -> None:
        """Reject settings the pipeline cannot run with.

        Raises:
            ValueError: On the first invalid setting found.
        """
        positive_ints = (
            "max_tokens",
            "meta_max_tokens",
            "max_chunk_size",
            "small_content_threshold",
            "small_chunk_count_threshold",
            "max_chunks_total",
            "max_concurrent_requests",
            "min_workers",
            "api_requests_per_minute",
        )
        for name in positive_ints:
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")

        positive_floats = ("request_timeout", "task_timeout", "resize_interval", "retry_base_delay")
        for name in positive_floats:
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")

        for name in ("min_chunk_size", "max_retries", "chunk_task_retries"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative, got {getattr(self, name)}")

        if not 0 < self.resize_threshold < 1:
            raise ValueError(f"resize_threshold must be between 0 and 1, got {self.resize_threshold}")
        if self.min_workers > self.max_concurrent_requests:
            raise ValueError(
                f"min_workers ({self.min_workers}) exceeds max_concurrent_requests ({self.max_concurrent_requests})"
            )
        if self.min_chunk_size >= self.max_chunk_size:
            raise ValueError("min_chunk_size must be smaller than max_chunk_size")
        if self.log_level.upper() not in _VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}")

    def to_dict(self, *, redact: bool = True) -> Dict[str, Any]:
        data = asdict(self)
        if redact and data.get("api_key"):
            data["api_key"] = "****"
        return data

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        level = getattr(logging, self.log_level, logging.INFO)

        if self.structured_logging:
            # JSON-style structured logging
            formatter = logging.Formatter(
                '{"timestamp":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}'
            )
        else:
            formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

        handler = logging.StreamHandler()
        handler.setFormatter(formatter)

        root_logger = logging.getLogger("chunkwise")
        root_logger.setLevel(level)
        root_logger.addHandler(handler)


# Global configuration instance
_config: Optional[SummarizerConfig] = None


def get_config() -> SummarizerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = SummarizerConfig.from_env()
    return _config


def set_config(config: Optional[SummarizerConfig]) -> None:
    """Set (or with None, reset) the global configuration instance."""
    global _config
    _config = config


__all__ = ["SummarizerConfig", "get_config", "set_config", "_PACKAGE_VERSION"]
