"""
Graph Service Layer: Verb-Level Operations

Every generated Graph verb funnels through this module, which wires the
request engine together:

    caller intent ──> QueryOptions / RequestSpec ──> RequestExecutor ──> interpret ──> shape_result
                                                                               │
                                                                               └──> Paginator (next links)

Features:
    - get / search with OData query options
    - next-page follow-up on a server-issued @odata.nextLink
    - lazy page iteration and all-or-nothing "fetch all"
    - create / update / replace / delete
    - custom requests with raw-text fallback
    - $metadata retrieval
    - environment inspection and in-place update
"""

from __future__ import annotations
import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional

from graphshell.config.settings import EnvironmentParameters
from graphshell.core.odata import (
    AuthContext,
    CancellationToken,
    CollectionPage,
    OperationKind,
    Paginator,
    QueryOptions,
    RequestExecutor,
    RequestSpec,
    as_collection_page,
    interpret,
    shape_result,
)

logger = logging.getLogger(__name__)

METADATA_PATH = "$metadata"


class GraphService:
    """Service exposing Graph verbs over the OData request engine.

    Usage:
        service = GraphService(load_settings(), AuthContext.from_token(token))
        users = service.search("users", QueryOptions(filter="startswith(displayName,'A')", top=10))
        user = service.get("users/42", select=["id", "displayName"])
    """

    def __init__(
        self,
        environment: EnvironmentParameters,
        auth: AuthContext,
        executor: Optional[RequestExecutor] = None,
    ):
        """Initialize the service.

        Args:
            environment: Graph environment parameters (read at call time)
            auth: Token capability supplied by the authentication layer
            executor: Request executor (defaults to one bound to ``environment``)
        """
        self.environment = environment
        self.auth = auth
        self.executor = executor or RequestExecutor(environment)

    # ─────────────────────────────────────────────────────────────────────────
    # Internal plumbing
    # ─────────────────────────────────────────────────────────────────────────

    def _send(
        self,
        spec: RequestSpec,
        kind: OperationKind,
        cancellation: Optional[CancellationToken] = None,
        raw_fallback: bool = False,
    ):
        logger.debug(f"[{kind.value}] {spec.method} {spec.resource_path}")
        raw = self.executor.execute(spec, self.auth, cancellation)
        return interpret(raw.body_text, kind, raw_fallback=raw_fallback)

    def _paginator(self, cancellation: Optional[CancellationToken] = None) -> Paginator:
        return Paginator(self.executor, self.auth, cancellation)

    def _first_page(
        self,
        resource_path: str,
        options: Optional[QueryOptions],
        headers: Any,
        cancellation: Optional[CancellationToken],
    ) -> CollectionPage:
        spec = RequestSpec("GET", resource_path, options or QueryOptions(), headers or {})
        return as_collection_page(self._send(spec, OperationKind.SEARCH, cancellation))

    # ─────────────────────────────────────────────────────────────────────────
    # Read verbs
    # ─────────────────────────────────────────────────────────────────────────

    def get(
        self,
        resource_path: str,
        select: Optional[Iterable[str]] = None,
        expand: Optional[Iterable[str]] = None,
        headers: Any = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> Any:
        """Get a resource or collection.

        Collection results keep their full envelope.
        """
        options = QueryOptions(select=select or (), expand=expand or ())
        spec = RequestSpec("GET", resource_path, options, headers or {})
        return shape_result(self._send(spec, OperationKind.GET, cancellation), OperationKind.GET)

    def search(
        self,
        resource_path: str,
        options: Optional[QueryOptions] = None,
        headers: Any = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> Any:
        """Query a collection with $filter/$orderBy/$skip/$top.

        Returns:
            Bare item list when the result is a single counted page,
            otherwise the CollectionPage (use ``get_next_page`` to continue)
        """
        spec = RequestSpec("GET", resource_path, options or QueryOptions(), headers or {})
        return shape_result(self._send(spec, OperationKind.SEARCH, cancellation), OperationKind.SEARCH)

    def get_next_page(self, next_link: str, cancellation: Optional[CancellationToken] = None) -> Any:
        """Fetch the page behind an ``@odata.nextLink``, replayed verbatim."""
        envelope = self._send(RequestSpec.next_page(next_link), OperationKind.NEXT_PAGE, cancellation)
        return shape_result(envelope, OperationKind.NEXT_PAGE)

    def iter_pages(
        self,
        resource_path: str,
        options: Optional[QueryOptions] = None,
        headers: Any = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> Iterator[CollectionPage]:
        """Lazily yield every page of a collection, starting with the first."""
        first_page = self._first_page(resource_path, options, headers, cancellation)
        yield from self._paginator(cancellation).iter_pages(first_page)

    def get_all(
        self,
        resource_path: str,
        options: Optional[QueryOptions] = None,
        headers: Any = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> List[Any]:
        """Fetch every item of a collection across all pages.

        Any failure discards the items already gathered.
        """
        first_page = self._first_page(resource_path, options, headers, cancellation)
        return self._paginator(cancellation).fetch_all(first_page)

    def get_metadata(self, cancellation: Optional[CancellationToken] = None) -> str:
        """Return the $metadata document of the current schema as raw text."""
        raw = self.executor.execute(RequestSpec("GET", METADATA_PATH), self.auth, cancellation)
        return raw.body_text

    # ─────────────────────────────────────────────────────────────────────────
    # Write verbs
    # ─────────────────────────────────────────────────────────────────────────

    def create(self, resource_path: str, content: Any, headers: Any = None,
               cancellation: Optional[CancellationToken] = None) -> Any:
        """POST a new resource and return the created representation."""
        spec = RequestSpec("POST", resource_path, headers=headers or {}, body=content)
        return shape_result(self._send(spec, OperationKind.GET, cancellation))

    def update(self, resource_path: str, content: Any, headers: Any = None,
               cancellation: Optional[CancellationToken] = None) -> Any:
        """PATCH a resource."""
        spec = RequestSpec("PATCH", resource_path, headers=headers or {}, body=content)
        return shape_result(self._send(spec, OperationKind.GET, cancellation))

    def replace(self, resource_path: str, content: Any, headers: Any = None,
                cancellation: Optional[CancellationToken] = None) -> Any:
        """PUT a full resource representation."""
        spec = RequestSpec("PUT", resource_path, headers=headers or {}, body=content)
        return shape_result(self._send(spec, OperationKind.GET, cancellation))

    def delete(self, resource_path: str, headers: Any = None,
               cancellation: Optional[CancellationToken] = None) -> None:
        """DELETE a resource."""
        spec = RequestSpec("DELETE", resource_path, headers=headers or {})
        self.executor.execute(spec, self.auth, cancellation)

    def invoke_request(
        self,
        method: str,
        url: str,
        headers: Any = None,
        content: Any = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> Any:
        """Send a custom request with the current token.

        Args:
            method: GET, POST, PUT, PATCH or DELETE
            url: Relative path or absolute URL, used as given
            headers: Mapping or attribute bag of header values
            content: str (sent as-is), mapping/record (sent as JSON) or prebuilt body

        Returns:
            Parsed JSON result, or the raw body text if it is not JSON
        """
        spec = RequestSpec(method, url, headers=headers or {}, body=content)
        return shape_result(self._send(spec, OperationKind.GET, cancellation, raw_fallback=True))

    # ─────────────────────────────────────────────────────────────────────────
    # Environment
    # ─────────────────────────────────────────────────────────────────────────

    def get_environment(self) -> Dict[str, str]:
        """Return the current environment parameters."""
        return self.environment.describe()

    def update_environment(self, **changes: Any) -> Dict[str, str]:
        """Update environment parameters in place (see EnvironmentParameters.update)."""
        self.environment.update(**changes)
        return self.environment.describe()
