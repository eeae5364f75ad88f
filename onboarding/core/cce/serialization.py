"""camelCase / snake_case key conversion for API payloads."""
from __future__ import annotations
import re
from typing import Any

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def to_snake(key: str) -> str:
    """Convert a camelCase key to snake_case (``lastSuccessfulScan`` -> ``last_successful_scan``)."""
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def to_camel(key: str) -> str:
    """Convert a snake_case key to camelCase (``account_id`` -> ``accountId``)."""
    head, *rest = key.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def snake_keys(data: Any) -> Any:
    """Recursively convert dictionary keys to snake_case."""
    if isinstance(data, dict):
        return {to_snake(k) if isinstance(k, str) else k: snake_keys(v) for k, v in data.items()}
    if isinstance(data, list):
        return [snake_keys(item) for item in data]
    return data


def camel_keys(data: Any, opaque: frozenset[str] = frozenset()) -> Any:
    """Recursively convert dictionary keys to camelCase.

    Args:
        data: Payload to convert
        opaque: Keys whose values are passed through untouched (e.g. service
            ``resources`` maps, whose keys belong to the caller)
    """
    if isinstance(data, dict):
        converted = {}
        for key, value in data.items():
            new_key = to_camel(key) if isinstance(key, str) else key
            converted[new_key] = value if key in opaque else camel_keys(value, opaque)
        return converted
    if isinstance(data, list):
        return [camel_keys(item, opaque) for item in data]
    return data
