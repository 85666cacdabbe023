# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Page of items returned by one fetch of a table query.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Iterator, Optional, Tuple, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class ContinuationLink:
    """
    Opaque reference to the next page of a query, as returned by the service.

    The only supported use is passing it back to the fetch that produced it;
    an absolute link is sent verbatim, a relative one is resolved against
    the service endpoint.

    :param value: URL supplied by the service.
    :type value: str
    """

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value:
            raise ValueError("ContinuationLink requires a non-empty string")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Page(Generic[T]):
    """
    One page of query results.

    :param items: Items on this page, in service order.
    :type items: tuple
    :param count: Total number of matching items, when the query asked for it.
    :type count: int or None
    :param next_link: Link to the next page, or ``None`` on the last page.
    :type next_link: ContinuationLink or None

    Example::

        for page in client.query.builder("movies").take(10).execute().iter_pages():
            print(len(page), page.count, page.has_more)
    """

    items: Tuple[T, ...] = field(default_factory=tuple)
    count: Optional[int] = None
    next_link: Optional[ContinuationLink] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))

    @property
    def has_more(self) -> bool:
        """``True`` when the service supplied a link to another page."""
        return self.next_link is not None

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: Any) -> Any:
        return self.items[index]


__all__ = ["ContinuationLink", "Page"]
