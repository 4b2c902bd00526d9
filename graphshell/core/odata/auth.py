"""Bearer-token capability consumed by the request executor.

Token acquisition and refresh belong to an external authentication
collaborator. The core only asks for "the current valid token" at the
moment it attaches the Authorization header, and never stores it.
"""
from __future__ import annotations
from typing import Callable, Optional

from .exceptions import NotAuthenticatedError


class AuthContext:
    """Holder for a token provider.

    Usage:
        auth = AuthContext(lambda: session.access_token)
        auth = AuthContext.from_token("eyJ0eXAi...")
    """

    def __init__(self, token_provider: Callable[[], Optional[str]]):
        self._token_provider = token_provider

    @classmethod
    def from_token(cls, token: str) -> "AuthContext":
        """Create a context that always returns the same token."""
        return cls(lambda: token)

    def current_token(self) -> str:
        """Return the current bearer token.

        Raises:
            NotAuthenticatedError: If the provider has no token
        """
        token = self._token_provider()
        if not token:
            raise NotAuthenticatedError("Not authenticated - no access token is available")
        return token

    def authorization_header(self) -> str:
        return f"Bearer {self.current_token()}"
