# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Lazily fetched, paginated stream of query results.

A :class:`Pageable` fetches nothing until it is iterated. Each iteration
starts from the first page and follows continuation links until the service
stops supplying them::

    results = client.query.builder("movies").where(F.year > 2000).execute()
    for movie in results:
        print(movie["title"])
    print(results.count)

Iterators are explicit state machines. When a fetch fails the iterator moves
to :attr:`PageableState.FAILED` and raises; advancing the same iterator again
re-issues the failed fetch. Nothing is retried automatically.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Callable, Dict, Generic, Iterator, List, Optional, TypeVar, Union, TYPE_CHECKING

from ..core.errors import OperationCancelledError
from .page import ContinuationLink, Page

if TYPE_CHECKING:
    import pandas as pd

T = TypeVar("T")

# Receives None for the first page, then each continuation link in turn.
FetchPage = Callable[[Optional[ContinuationLink]], Page]

_logger = logging.getLogger(__name__)


class PageableState(str, Enum):
    NOT_STARTED = "not_started"
    FETCHING = "fetching"
    HAS_PAGE = "has_page"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


class PageIterator(Generic[T]):
    """
    Iterator over the pages of one traversal of a :class:`Pageable`.

    :param pageable: Owning stream; receives ``count`` and ``last_page`` updates.
    :type pageable: Pageable
    """

    def __init__(self, pageable: "Pageable[T]") -> None:
        self._pageable = pageable
        self._state = PageableState.NOT_STARTED
        self._next_link: Optional[ContinuationLink] = None
        self._pages_fetched = 0

    @property
    def state(self) -> PageableState:
        return self._state

    def __iter__(self) -> "PageIterator[T]":
        return self

    def __next__(self) -> Page[T]:
        if self._state is PageableState.EXHAUSTED:
            raise StopIteration
        if self._state is PageableState.HAS_PAGE and self._next_link is None:
            self._state = PageableState.EXHAUSTED
            raise StopIteration

        # NOT_STARTED, FAILED (retry of the same target) or HAS_PAGE with a link
        cancel_event = self._pageable.cancel_event
        if cancel_event is not None and cancel_event.is_set():
            self._state = PageableState.FAILED
            raise OperationCancelledError(details={"pages_fetched": self._pages_fetched})

        self._state = PageableState.FETCHING
        link = self._next_link
        try:
            page = self._pageable._fetch(link)
        except Exception:
            self._state = PageableState.FAILED
            _logger.debug("Page fetch failed after %d page(s)", self._pages_fetched)
            raise

        self._pages_fetched += 1
        self._next_link = page.next_link
        self._state = PageableState.HAS_PAGE
        self._pageable._observe(page)
        _logger.debug(
            "Fetched page %d with %d item(s) (count=%s, has_more=%s)",
            self._pages_fetched,
            len(page.items),
            page.count,
            page.has_more,
        )
        return page


class ItemIterator(Generic[T]):
    """Iterator over the items of one traversal, fetching pages as needed."""

    def __init__(self, pages: PageIterator[T]) -> None:
        self._pages = pages
        self._items: tuple = ()
        self._index = 0

    @property
    def state(self) -> PageableState:
        return self._pages.state

    def __iter__(self) -> "ItemIterator[T]":
        return self

    def __next__(self) -> T:
        # Empty pages that carry a link are skipped over.
        while self._index >= len(self._items):
            page = next(self._pages)
            self._items = page.items
            self._index = 0
        item = self._items[self._index]
        self._index += 1
        return item


class Pageable(Generic[T]):
    """
    Paginated result stream of a table query.

    :param fetch: Callable returning the first page when given ``None`` and the
        following page when given a :class:`ContinuationLink`.
    :type fetch: Callable[[ContinuationLink | None], Page]
    :param cancel_event: Event checked before every fetch. Once set, the next
        fetch raises :class:`~Datasync.Client.core.errors.OperationCancelledError`.
    :type cancel_event: threading.Event or None

    ``count`` and ``last_page`` reflect the most recent page fetched by any
    traversal.
    """

    def __init__(self, fetch: FetchPage, *, cancel_event: Optional[threading.Event] = None) -> None:
        self._fetch = fetch
        self.cancel_event = cancel_event
        self.count: Optional[int] = None
        self.last_page: Optional[Page[T]] = None

    @classmethod
    def from_query(
        cls,
        fetch_page: Callable[[Union[str, ContinuationLink]], Page],
        query: str,
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> "Pageable[T]":
        """
        Build a stream over a transport that fetches either a query string or a link.

        :param fetch_page: Fetch function of a table transport.
        :param query: Serialized query string for the first page.
        :type query: str
        """
        return cls(lambda link: fetch_page(query if link is None else link), cancel_event=cancel_event)

    def _observe(self, page: Page[T]) -> None:
        self.last_page = page
        if page.count is not None:
            self.count = page.count

    def __iter__(self) -> ItemIterator[T]:
        return ItemIterator(PageIterator(self))

    def iter_pages(self) -> PageIterator[T]:
        """
        Iterate page by page, starting a fresh traversal.

        :rtype: PageIterator
        """
        return PageIterator(self)

    def to_list(self) -> List[T]:
        """Fetch every page and return all items in order."""
        return list(self)

    def to_dict(self, key: Union[str, Callable[[T], Any]]) -> Dict[Any, T]:
        """
        Fetch every page and index the items.

        :param key: Attribute or dict key of each item, or a callable returning the key.
        :raises ValueError: If two items produce the same key.
        """
        if callable(key):
            key_of = key
        else:
            def key_of(item: Any) -> Any:
                return item[key] if isinstance(item, dict) else getattr(item, key)

        result: Dict[Any, T] = {}
        for item in self:
            k = key_of(item)
            if k in result:
                raise ValueError(f"Duplicate key {k!r} in query results")
            result[k] = item
        return result

    def to_dataframe(self) -> "pd.DataFrame":
        """
        Fetch every page and return the items as a pandas DataFrame.

        Dataclass items become one column per field; dict items one column per key.

        :rtype: pandas.DataFrame
        """
        from ..utils._pandas import items_to_dataframe

        return items_to_dataframe(self.to_list())


__all__ = ["PageableState", "PageIterator", "ItemIterator", "Pageable", "FetchPage"]
