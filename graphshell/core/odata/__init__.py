"""OData request engine for the Graph API.

Architecture:
- query.py: $select/$expand/$filter/$orderBy/$skip/$top encoding
- headers.py: Header normalization at the caller boundary
- content.py: Request body serialization
- auth.py: Bearer-token capability
- client.py: RequestSpec and RequestExecutor (HTTP via requests)
- response.py: Envelope classification and result shaping
- paging.py: @odata.nextLink following
- exceptions.py: Typed exceptions for error handling

Usage:
    from graphshell.config import load_settings
    from graphshell.core.odata import (
        AuthContext, RequestExecutor, RequestSpec, QueryOptions,
        OperationKind, interpret, Paginator,
    )

    executor = RequestExecutor(load_settings())
    auth = AuthContext.from_token(token)
    raw = executor.execute(RequestSpec("GET", "users", QueryOptions(top=5)), auth)
    page = interpret(raw.body_text, OperationKind.SEARCH)
"""
from .auth import AuthContext
from .client import (
    CancellationToken,
    RawResponse,
    RequestExecutor,
    RequestSpec,
    join_url,
)
from .content import serialize
from .exceptions import (
    GraphError,
    InvalidArgumentError,
    NotAuthenticatedError,
    TransportError,
    ApiError,
    MalformedResponseError,
    UnsupportedContentTypeError,
    CancelledError,
)
from .headers import normalize_headers
from .paging import Paginator
from .query import QueryOptions, build, build_headers
from .response import (
    OperationKind,
    SingleResource,
    CollectionPage,
    RawScalar,
    as_collection_page,
    classify,
    interpret,
    shape_result,
)

__all__ = [
    # Client
    "AuthContext",
    "CancellationToken",
    "RawResponse",
    "RequestExecutor",
    "RequestSpec",
    "join_url",

    # Query / content / headers
    "QueryOptions",
    "build",
    "build_headers",
    "serialize",
    "normalize_headers",

    # Responses
    "OperationKind",
    "SingleResource",
    "CollectionPage",
    "RawScalar",
    "as_collection_page",
    "classify",
    "interpret",
    "shape_result",
    "Paginator",

    # Exceptions
    "GraphError",
    "InvalidArgumentError",
    "NotAuthenticatedError",
    "TransportError",
    "ApiError",
    "MalformedResponseError",
    "UnsupportedContentTypeError",
    "CancelledError",
]
