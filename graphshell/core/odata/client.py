"""Low-level HTTP executor for the Graph OData API.

Builds the final URL, attaches the bearer token, serializes the body and
maps transport and HTTP failures onto the Graph exception types.
"""
from __future__ import annotations
import logging
import threading
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, NamedTuple, Optional, Tuple

import requests

from . import content as content_serializer
from . import query as query_builder
from .auth import AuthContext
from .exceptions import (
    ApiError,
    CancelledError,
    InvalidArgumentError,
    TransportError,
)
from .headers import (
    AUTHORIZATION_HEADER,
    Headers,
    flatten_headers,
    merge_headers,
    normalize_headers,
)
from .query import QueryOptions

logger = logging.getLogger(__name__)

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")
CONTENT_TYPE_HEADER = "Content-Type"


def join_url(base_address: str, resource_path: str) -> str:
    """Join a base address and a resource path with exactly one slash.

    Absolute resource paths (e.g. a server-issued next link) are returned
    unchanged.
    """
    if resource_path.lower().startswith(("http://", "https://")):
        return resource_path
    if not resource_path:
        return base_address.rstrip("/")
    return f"{base_address.rstrip('/')}/{resource_path.lstrip('/')}"


class CancellationToken:
    """Caller-owned cancellation signal with an optional deadline.

    Args:
        timeout: Seconds from now after which the token counts as cancelled
    """

    def __init__(self, timeout: Optional[float] = None):
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set() or self.deadline_passed

    @property
    def deadline_passed(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise CancelledError("Request was cancelled")


@dataclass(frozen=True)
class RequestSpec:
    """A single request, immutable once built.

    ``query_options`` of None means the resource path is used verbatim
    (next links already carry a server-encoded query string).
    """
    method: str
    resource_path: str
    query_options: Optional[QueryOptions] = None
    headers: Headers = field(default_factory=dict)
    body: Any = None

    def __post_init__(self):
        method = (self.method or "").upper()
        if method not in HTTP_METHODS:
            raise InvalidArgumentError(f"Unsupported HTTP method: {self.method!r}")
        if not self.resource_path:
            raise InvalidArgumentError("A resource path is required")
        object.__setattr__(self, "method", method)
        object.__setattr__(self, "headers", MappingProxyType(normalize_headers(self.headers)))

    @classmethod
    def next_page(cls, next_link: str) -> "RequestSpec":
        """GET against a next link, with no added query or headers."""
        return cls("GET", next_link)


class RawResponse(NamedTuple):
    status_code: int
    body_text: str


class RequestExecutor:
    """Sends RequestSpecs against a configured service root.

    Usage:
        executor = RequestExecutor(settings)
        status, body = executor.execute(RequestSpec("GET", "users"), auth)

    The executor reads ``service_root`` and ``request_timeout`` from the
    environment object at call time, so in-place configuration updates take
    effect on the next call.
    """

    def __init__(self, environment):
        self.environment = environment

    def prepare(self, spec: RequestSpec, auth: AuthContext) -> Tuple[str, Dict[str, str], Any]:
        """Return (url, headers, body) for a spec without sending it.

        Raises:
            InvalidArgumentError: On invalid query options
            UnsupportedContentTypeError: On unsupported body content
            NotAuthenticatedError: If no token is available
        """
        if spec.query_options is None:
            path = spec.resource_path
            option_headers: Headers = {}
        else:
            path = query_builder.build(spec.resource_path, spec.query_options)
            option_headers = query_builder.build_headers(spec.query_options)

        url = join_url(self.environment.service_root, path)

        body = content_serializer.serialize(spec.body)
        content_headers: Headers = {}
        if content_serializer.is_structured(spec.body) and not any(
            name.lower() == CONTENT_TYPE_HEADER.lower() for name in spec.headers
        ):
            content_headers[CONTENT_TYPE_HEADER] = (content_serializer.JSON_CONTENT_TYPE,)

        headers = flatten_headers(merge_headers(option_headers, spec.headers, content_headers))
        headers[AUTHORIZATION_HEADER] = auth.authorization_header()
        return url, headers, body

    def execute(
        self,
        spec: RequestSpec,
        auth: AuthContext,
        cancellation: Optional[CancellationToken] = None,
    ) -> RawResponse:
        """Send a request and return its status and body.

        Args:
            spec: Request to send
            auth: Token capability
            cancellation: Optional caller-owned cancellation token

        Returns:
            RawResponse(status_code, body_text)

        Raises:
            InvalidArgumentError: Before any network call, on invalid input
            CancelledError: If cancelled or out of time before sending, or if
                cancellation interrupted the transport. A response that
                arrives is returned even if cancel() was called meanwhile
            TransportError: On network failure (not retried)
            ApiError: On HTTP status >= 400, with the body preserved verbatim
        """
        url, headers, body = self.prepare(spec, auth)

        timeout = self.environment.request_timeout
        if cancellation is not None:
            cancellation.raise_if_cancelled()
            remaining = cancellation.remaining()
            if remaining is not None and remaining <= 0:
                raise CancelledError(f"Deadline passed before sending request to {url}")
            if remaining is not None:
                timeout = remaining if timeout is None else min(timeout, remaining)

        logger.debug(f"{spec.method} {url}")
        try:
            resp = requests.request(spec.method, url, headers=headers, data=body, timeout=timeout)
        except requests.RequestException as e:
            if cancellation is not None and cancellation.cancelled:
                raise CancelledError(f"Request to {url} was cancelled") from e
            raise TransportError(str(e), url) from e

        logger.debug(f"{spec.method} {url} -> {resp.status_code}")
        self._handle_error(resp, url)
        return RawResponse(resp.status_code, resp.text)

    def _handle_error(self, resp: requests.Response, url: str) -> None:
        """Raise ApiError for HTTP error statuses, keeping the body as-is."""
        if resp.status_code >= 400:
            raise ApiError(resp.status_code, resp.text, url)
