"""Configuration package for chunkwise.

Sub-modules:
    parsing    – value coercion helpers
    loader     – TOML/env loading mixin (_SummarizerConfigLoader)
    summarizer – SummarizerConfig dataclass, get_config/set_config globals
"""

from chunkwise.config.parsing import _coerce, _try_parse_bool  # noqa: F401
from chunkwise.config.summarizer import (  # noqa: F401
    _PACKAGE_VERSION,
    SummarizerConfig,
    get_config,
    set_config,
)
