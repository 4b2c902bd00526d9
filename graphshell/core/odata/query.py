"""OData query-string construction.

Turns structured query intent ($select, $expand, $filter, $orderBy, $skip,
$top, $count) into a canonical, percent-encoded resource path, and the
page-size preference into a request header.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import quote

from .exceptions import InvalidArgumentError

PREFER_HEADER = "Prefer"
MAX_PAGE_SIZE_PREFERENCE = "odata.maxpagesize"


@dataclass(frozen=True)
class QueryOptions:
    """Query intent for a single call. Every field is optional."""
    select: Iterable[str] = field(default_factory=tuple)
    expand: Iterable[str] = field(default_factory=tuple)
    filter: Optional[str] = None
    order_by: Iterable[str] = field(default_factory=tuple)
    skip: Optional[int] = None
    top: Optional[int] = None
    count: Optional[bool] = None
    max_page_size: Optional[int] = None


def _ordered(values: Optional[Iterable[str]]) -> List[str]:
    """Return option values in a stable order.

    Sets have no order of their own, so they are sorted. Sequences keep the
    caller's order with repeats dropped.
    """
    if not values:
        return []
    if isinstance(values, str):
        values = [values]
    if isinstance(values, (set, frozenset)):
        return sorted(v for v in values if v)
    seen: List[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen


def _non_negative(name: str, value: Optional[int]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise InvalidArgumentError(f"{name} must not be negative (got {value})")
    return str(value)


def query_pairs(options: Optional[QueryOptions]) -> List[Tuple[str, str]]:
    """Return (name, value) pairs in canonical order, unencoded.

    Raises:
        InvalidArgumentError: If skip or top is negative or not an integer
    """
    if options is None:
        return []

    pairs: List[Tuple[str, str]] = []
    select = _ordered(options.select)
    if select:
        pairs.append(("$select", ",".join(select)))
    expand = _ordered(options.expand)
    if expand:
        pairs.append(("$expand", ",".join(expand)))
    if options.filter:
        pairs.append(("$filter", options.filter))
    order_by = _ordered(options.order_by)
    if order_by:
        pairs.append(("$orderBy", ",".join(order_by)))

    skip = _non_negative("skip", options.skip)
    if skip is not None:
        pairs.append(("$skip", skip))
    top = _non_negative("top", options.top)
    if top is not None:
        pairs.append(("$top", top))

    if options.count is not None:
        pairs.append(("$count", "true" if options.count else "false"))
    return pairs


def build(resource_path: str, options: Optional[QueryOptions] = None) -> str:
    """Append the encoded query string for ``options`` to ``resource_path``.

    Each value is percent-encoded on its own; the ``$`` of the option name is
    left as is. If the path already carries a query string the options are
    appended after it.

    Args:
        resource_path: Relative or absolute resource path
        options: Query intent (None or empty produces the path unchanged)

    Returns:
        Final resource path with query string

    Raises:
        InvalidArgumentError: On negative skip/top
    """
    pairs = query_pairs(options)
    if not pairs:
        return resource_path

    query = "&".join(f"{name}={quote(value, safe='')}" for name, value in pairs)
    separator = "&" if "?" in resource_path else "?"
    return f"{resource_path}{separator}{query}"


def build_headers(options: Optional[QueryOptions]) -> Dict[str, Tuple[str, ...]]:
    """Return headers implied by the query options (page-size preference).

    Raises:
        InvalidArgumentError: If max_page_size is not a positive integer
    """
    if options is None or options.max_page_size is None:
        return {}
    size = options.max_page_size
    if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
        raise InvalidArgumentError(f"max_page_size must be a positive integer (got {size!r})")
    return {PREFER_HEADER: (f"{MAX_PAGE_SIZE_PREFERENCE}={size}",)}
