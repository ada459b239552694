"""Parsing helpers for configuration values coming from TOML or the environment."""

from typing import Any, Optional


def _try_parse_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in {"true", "1", "yes", "on"}:
        return True
    if normalized in {"false", "0", "no", "off"}:
        return False
    return None


def _coerce(value: Any, like: Any, *, key: str) -> Any:
    """Coerce ``value`` to the type of the field's current value ``like``.

    Raises:
        ValueError: If the value cannot be interpreted as that type.
    """
    if isinstance(like, bool):
        parsed = _try_parse_bool(value)
        if parsed is None:
            raise ValueError(f"Invalid boolean for {key}: {value!r}")
        return parsed
    if isinstance(like, int):
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid integer for {key}: {value!r}") from None
    if isinstance(like, float):
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid number for {key}: {value!r}") from None
    if value is None:
        return None
    return str(value)
