"""Following ``@odata.nextLink`` continuations.

Pages are fetched strictly one after another: the next link is only known
once the previous page has been interpreted. Items are not deduplicated;
if the server-side collection changes between fetches, items can repeat
or be skipped, and that is passed through as-is.
"""
from __future__ import annotations
import logging
from typing import Any, Iterator, List, Optional

from .auth import AuthContext
from .client import CancellationToken, RequestExecutor, RequestSpec
from .response import CollectionPage, OperationKind, interpret

logger = logging.getLogger(__name__)


class Paginator:
    """Lazy cursor over the pages of a collection result.

    Usage:
        paginator = Paginator(executor, auth)
        for page in paginator.iter_pages(first_page):
            ...
        items = paginator.fetch_all(first_page)

    Stopping iteration early needs no cleanup; no connection is held
    between page fetches.
    """

    def __init__(
        self,
        executor: RequestExecutor,
        auth: AuthContext,
        cancellation: Optional[CancellationToken] = None,
    ):
        self.executor = executor
        self.auth = auth
        self.cancellation = cancellation

    def next(self, page: CollectionPage) -> Optional[CollectionPage]:
        """Fetch the page after ``page``, or None if ``page`` is the last one.

        The next link is requested verbatim, with no query options or extra
        headers added.
        """
        if page.next_link is None:
            return None
        logger.debug(f"Following next link: {page.next_link}")
        raw = self.executor.execute(RequestSpec.next_page(page.next_link), self.auth, self.cancellation)
        return interpret(raw.body_text, OperationKind.NEXT_PAGE)

    def iter_pages(self, first_page: CollectionPage) -> Iterator[CollectionPage]:
        """Yield ``first_page`` and then every following page until the last."""
        page: Optional[CollectionPage] = first_page
        while page is not None:
            yield page
            page = self.next(page)

    def fetch_all(self, first_page: CollectionPage) -> List[Any]:
        """Drive pagination to the end and return all items in fetch order.

        All-or-nothing: if any page fails, the exception propagates and the
        items gathered so far are dropped. Callers wanting partial results
        should use ``next``/``iter_pages`` directly.
        """
        items: List[Any] = []
        pages = 0
        for page in self.iter_pages(first_page):
            items.extend(page.items)
            pages += 1
        logger.debug(f"Fetched {len(items)} item(s) across {pages} page(s)")
        return items
