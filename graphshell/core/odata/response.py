"""Classification of OData response bodies.

A body is interpreted as one of three envelopes:

- SingleResource: a plain resource object
- CollectionPage: the ``@odata.*`` + ``value`` wrapper around a page of results
- RawScalar: anything else (empty body, JSON scalar or array, raw text)

``shape_result`` then decides what the caller sees. Single-page results of
search-style calls are unwrapped to their bare items.
"""
from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .exceptions import MalformedResponseError

logger = logging.getLogger(__name__)

ODATA_CONTEXT = "@odata.context"
ODATA_COUNT = "@odata.count"
ODATA_NEXT_LINK = "@odata.nextLink"
ODATA_VALUE = "value"


class OperationKind(Enum):
    """What kind of call produced a response."""
    GET = "get"
    SEARCH = "search"
    NEXT_PAGE = "next_page"

    @property
    def unwraps_single_page(self) -> bool:
        return self in (OperationKind.SEARCH, OperationKind.NEXT_PAGE)


@dataclass(frozen=True)
class SingleResource:
    fields: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CollectionPage:
    items: List[Any] = field(default_factory=list)
    count: Optional[int] = None
    next_link: Optional[str] = None
    context: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.next_link is None


@dataclass(frozen=True)
class RawScalar:
    value: Any = None


ResponseEnvelope = Union[SingleResource, CollectionPage, RawScalar]


def _collection_page(payload: Dict[str, Any]) -> CollectionPage:
    count = payload.get(ODATA_COUNT)
    if count is not None and (isinstance(count, bool) or not isinstance(count, int)):
        raise MalformedResponseError(f"{ODATA_COUNT} must be an integer, got {count!r}")
    next_link = payload.get(ODATA_NEXT_LINK) or None
    return CollectionPage(
        items=list(payload[ODATA_VALUE]),
        count=count,
        next_link=next_link,
        context=payload.get(ODATA_CONTEXT),
    )


def classify(payload: Any, kind: OperationKind = OperationKind.GET) -> ResponseEnvelope:
    """Classify already-parsed JSON into an envelope.

    Raises:
        MalformedResponseError: If the payload carries collection markers
            (or comes from a next-page call) without a "value" array,
            or a next-page payload is not an object
    """
    if not isinstance(payload, dict):
        if kind is OperationKind.NEXT_PAGE:
            raise MalformedResponseError("Next page response is not a JSON object")
        return RawScalar(payload)

    has_value = isinstance(payload.get(ODATA_VALUE), list)
    has_paging_markers = ODATA_COUNT in payload or ODATA_NEXT_LINK in payload

    if kind is OperationKind.NEXT_PAGE:
        if not has_value:
            raise MalformedResponseError("Next page response is missing a 'value' array")
        return _collection_page(payload)

    if has_paging_markers:
        if not has_value:
            raise MalformedResponseError("Collection response is missing a 'value' array")
        if ODATA_CONTEXT in payload:
            return _collection_page(payload)

    return SingleResource(dict(payload))


def as_collection_page(envelope: ResponseEnvelope) -> CollectionPage:
    """Return the envelope as a first page to paginate from.

    A bare object with a "value" array (collection returned without count
    or next link) is treated as a single terminal page.

    Raises:
        MalformedResponseError: If the envelope is not a collection
    """
    if isinstance(envelope, CollectionPage):
        return envelope
    if isinstance(envelope, SingleResource) and isinstance(envelope.fields.get(ODATA_VALUE), list):
        return _collection_page(envelope.fields)
    raise MalformedResponseError("Response is not a collection and cannot be paged")


def interpret(body_text: Optional[str], kind: OperationKind = OperationKind.GET, raw_fallback: bool = False) -> ResponseEnvelope:
    """Parse a response body and classify it.

    Args:
        body_text: Raw response body
        kind: Operation that produced the body
        raw_fallback: Return the raw text instead of failing when the body is not JSON

    Returns:
        Response envelope

    Raises:
        MalformedResponseError: If the body is not JSON (and raw_fallback is off)
            or is a collection without "value", or a next-page body is
            empty or not a JSON object
    """
    if body_text is None or not body_text.strip():
        if kind is OperationKind.NEXT_PAGE:
            raise MalformedResponseError("Next page response is empty")
        return RawScalar(None)

    try:
        payload = json.loads(body_text)
    except ValueError as e:
        if raw_fallback:
            logger.warning("Response body is not JSON; returning raw text")
            return RawScalar(body_text)
        raise MalformedResponseError(f"Response body is not valid JSON: {e}") from e

    return classify(payload, kind)


def shape_result(envelope: ResponseEnvelope, kind: OperationKind = OperationKind.GET) -> Any:
    """Return the caller-visible value for an envelope.

    A single-page collection from a search-style call collapses to its items
    (the metadata carries nothing a caller needs). Other collection pages keep
    the full envelope so paging can continue.
    """
    if isinstance(envelope, CollectionPage):
        if kind.unwraps_single_page and envelope.is_terminal and envelope.count is not None:
            return envelope.items
        return envelope
    if isinstance(envelope, SingleResource):
        return envelope.fields
    return envelope.value
