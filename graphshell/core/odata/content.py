"""Request body serialization."""
from __future__ import annotations
import dataclasses
import io
import json
from collections.abc import Mapping
from typing import Any, Optional, Union

from .exceptions import UnsupportedContentTypeError

JSON_CONTENT_TYPE = "application/json"

# Bodies the transport accepts as-is
PREBUILT_TYPES = (bytes, bytearray, memoryview, io.IOBase)


def is_prebuilt(content: Any) -> bool:
    """Return True if content is already a transport-level body."""
    return isinstance(content, PREBUILT_TYPES)


def is_structured(content: Any) -> bool:
    """Return True if content is a map or record to be sent as JSON."""
    return isinstance(content, Mapping) or (
        dataclasses.is_dataclass(content) and not isinstance(content, type)
    )


def serialize(content: Any) -> Optional[Union[bytes, bytearray, memoryview, io.IOBase]]:
    """Convert request content to a body.

    - None -> no body
    - str -> UTF-8 bytes, content unchanged
    - mapping or dataclass instance -> JSON, keys in insertion order
    - bytes, bytearray, memoryview, file-like -> returned unchanged

    Raises:
        UnsupportedContentTypeError: For any other shape
    """
    if content is None:
        return None
    if is_prebuilt(content):
        return content
    if isinstance(content, str):
        return content.encode("utf-8")
    if isinstance(content, Mapping):
        return _to_json(dict(content))
    if is_structured(content):
        return _to_json(dataclasses.asdict(content))
    raise UnsupportedContentTypeError(f"Unknown content type: '{type(content).__name__}'")


def _to_json(payload: dict) -> bytes:
    try:
        return json.dumps(payload).encode("utf-8")
    except TypeError as e:
        raise UnsupportedContentTypeError(f"Content is not JSON serializable: {e}") from e
