"""Environment parameters for the Graph service, loaded from the process environment."""
from __future__ import annotations
import logging
import os
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from graphshell.core.odata.exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_VERSION = "v1.0"
DEFAULT_BASE_ADDRESS = "https://graph.microsoft.com"
DEFAULT_AUTH_URL = "https://login.microsoftonline.com/common"
DEFAULT_APP_ID = "d1ddf0e4-d672-4dae-b554-9d5bdfd93547"
DEFAULT_REDIRECT_LINK = "urn:ietf:wg:oauth:2.0:oob"
DEFAULT_RESOURCE_ID = "https://graph.microsoft.com"

# Fields that must hold an absolute http(s) URL
_URL_FIELDS = {"base_address", "auth_url"}


def _is_absolute_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


@dataclass
class EnvironmentParameters:
    """Graph environment configuration.

    Passed explicitly to the request executor, which reads it at call time.
    Use ``update`` to change values in place.
    """
    schema_version: str = DEFAULT_SCHEMA_VERSION
    base_address: str = DEFAULT_BASE_ADDRESS
    auth_url: str = DEFAULT_AUTH_URL
    app_id: str = DEFAULT_APP_ID
    redirect_link: str = DEFAULT_REDIRECT_LINK
    resource_id: str = DEFAULT_RESOURCE_ID
    # No timeout unless configured
    request_timeout: Optional[float] = None

    @property
    def service_root(self) -> str:
        """Base address and schema version joined by a single slash."""
        return f"{self.base_address.rstrip('/')}/{self.schema_version.strip('/')}"

    def update(self, **changes: Any) -> "EnvironmentParameters":
        """Replace the given values in place.

        All changes are validated before any is applied.

        Raises:
            InvalidArgumentError: On unknown names, empty values, or
                non-absolute URLs for base_address/auth_url
        """
        known = {f.name for f in fields(self)}
        for name, value in changes.items():
            if name not in known:
                raise InvalidArgumentError(f"Unknown environment parameter: {name}")
            if name == "request_timeout":
                if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0):
                    raise InvalidArgumentError("request_timeout must be a positive number or None")
                continue
            if not isinstance(value, str) or not value.strip():
                raise InvalidArgumentError(f"{name} cannot be null or empty")
            if name in _URL_FIELDS and not _is_absolute_url(value):
                raise InvalidArgumentError(f"{name} must be an absolute http(s) URL (got {value!r})")

        for name, value in changes.items():
            setattr(self, name, value)
        if changes:
            logger.info(f"[settings] Updated environment: {', '.join(sorted(changes))}")
        return self

    def describe(self) -> Dict[str, str]:
        """Return the current environment as a display mapping."""
        return {
            "SchemaVersion": self.schema_version,
            "BaseAddress": self.base_address,
            "AuthenticationUrl": self.auth_url,
            "AppId": self.app_id,
            "RedirectLink": self.redirect_link,
            "GraphResourceId": self.resource_id,
        }

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _parse_timeout(raw: Optional[str]) -> Optional[float]:
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        raise RuntimeError(f"GRAPH_REQUEST_TIMEOUT must be a number (got {raw!r})")
    return value if value > 0 else None


def load_settings() -> EnvironmentParameters:
    """Load environment parameters from GRAPH_* environment variables."""
    params = EnvironmentParameters(
        schema_version=os.environ.get("GRAPH_SCHEMA_VERSION", DEFAULT_SCHEMA_VERSION),
        base_address=os.environ.get("GRAPH_BASE_URL", DEFAULT_BASE_ADDRESS),
        auth_url=os.environ.get("GRAPH_AUTH_URL", DEFAULT_AUTH_URL),
        app_id=os.environ.get("GRAPH_APP_ID", DEFAULT_APP_ID),
        redirect_link=os.environ.get("GRAPH_REDIRECT_LINK", DEFAULT_REDIRECT_LINK),
        resource_id=os.environ.get("GRAPH_RESOURCE_ID", DEFAULT_RESOURCE_ID),
        request_timeout=_parse_timeout(os.environ.get("GRAPH_REQUEST_TIMEOUT")),
    )

    for name in _URL_FIELDS:
        value = getattr(params, name)
        if not _is_absolute_url(value):
            raise RuntimeError(f"Environment parameter {name} must be an absolute http(s) URL (got {value!r})")

    logger.info(f"[settings] schema={params.schema_version}; base={params.base_address}")
    return params
