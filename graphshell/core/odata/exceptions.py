"""Graph-specific exceptions for error handling."""


class GraphError(Exception):
    """Base exception for all Graph operations."""
    pass


class InvalidArgumentError(GraphError, ValueError):
    """Malformed request input (query options, headers, method)."""
    pass


class NotAuthenticatedError(GraphError):
    """The auth context could not supply a bearer token."""
    pass


class TransportError(GraphError):
    """Network-level failure (DNS, timeout, connection reset).

    Attributes:
        endpoint: URL that was being requested
    """

    def __init__(self, message: str, endpoint: str = ""):
        self.endpoint = endpoint
        super().__init__(f"{endpoint}: {message}" if endpoint else message)


class ApiError(GraphError):
    """HTTP error from the Graph service.

    Attributes:
        status_code: HTTP status code
        body_text: Raw response body, preserved verbatim
        endpoint: API endpoint that failed
    """

    def __init__(self, status_code: int, body_text: str, endpoint: str = ""):
        self.status_code = status_code
        self.body_text = body_text
        self.endpoint = endpoint
        super().__init__(f"[{status_code}] {endpoint}: {body_text}")


class MalformedResponseError(GraphError):
    """Response body could not be classified (e.g. collection without "value")."""
    pass


class UnsupportedContentTypeError(GraphError, TypeError):
    """Request content of a shape the serializer cannot handle."""
    pass


class CancelledError(GraphError):
    """The caller cancelled the request or its deadline passed."""
    pass
