"""Header normalization at the caller boundary.

Callers may hand headers over as a mapping or as an attribute bag
(``SimpleNamespace`` and the like). Everything below this module only sees
``dict[str, tuple[str, ...]]``.
"""
from __future__ import annotations
from collections.abc import Iterable, Mapping
from typing import Any, Dict, Tuple

from .exceptions import InvalidArgumentError

AUTHORIZATION_HEADER = "Authorization"

Headers = Dict[str, Tuple[str, ...]]


def _header_values(name: str, value: Any) -> Tuple[str, ...]:
    if value is None:
        raise InvalidArgumentError(f"The value for the header '{name}' cannot be null")
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Iterable) and not isinstance(value, (bytes, bytearray, Mapping)):
        values = tuple(value)
        if all(isinstance(v, str) for v in values):
            return values
    raise InvalidArgumentError(
        f"The header '{name}' has an invalid value - all header values must be strings or sequences of strings"
    )


def normalize_headers(headers: Any) -> Headers:
    """Convert a mapping or attribute bag into a normalized header mapping.

    Args:
        headers: Mapping, object with attributes, or None

    Returns:
        Mapping of header name to tuple of values

    Raises:
        InvalidArgumentError: On null/non-string keys, null or non-string values,
            or a caller-supplied Authorization header
    """
    if headers is None:
        return {}

    if isinstance(headers, Mapping):
        items = headers.items()
    elif hasattr(headers, "__dict__"):
        items = vars(headers).items()
    else:
        raise InvalidArgumentError(
            f"Headers must be a mapping or an object with attributes, got {type(headers).__name__}"
        )

    normalized: Headers = {}
    for key, value in items:
        if key is None:
            raise InvalidArgumentError("Header names cannot be null")
        if not isinstance(key, str):
            raise InvalidArgumentError(f"Header names must be strings - the provided name is of type '{type(key).__name__}'")
        if key.lower() == AUTHORIZATION_HEADER.lower():
            raise InvalidArgumentError("The Authorization header is managed by the client and cannot be overridden")
        normalized[key] = _header_values(key, value)
    return normalized


def merge_headers(*header_sets: Headers) -> Headers:
    """Merge normalized header sets; later values for the same name are appended."""
    merged: Headers = {}
    index: Dict[str, str] = {}
    for header_set in header_sets:
        for name, values in header_set.items():
            existing = index.get(name.lower())
            if existing is None:
                index[name.lower()] = name
                merged[name] = tuple(values)
            else:
                merged[existing] = merged[existing] + tuple(values)
    return merged


def flatten_headers(headers: Headers) -> Dict[str, str]:
    """Join multi-valued headers for the transport, which takes one string per name."""
    return {name: ", ".join(values) for name, values in headers.items()}
