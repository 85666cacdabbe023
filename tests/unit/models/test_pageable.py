# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Unit tests for the paginated result stream."""

import threading
import unittest
from dataclasses import dataclass
from unittest.mock import MagicMock

import pandas as pd

from Datasync.Client.core.errors import HttpError, OperationCancelledError
from Datasync.Client.models.page import ContinuationLink, Page
from Datasync.Client.models.pageable import Pageable, PageableState


def _pages(*pages):
    """Build a fetch mock serving the given pages in order."""
    return MagicMock(side_effect=list(pages))


LINK_2 = ContinuationLink("https://datasync.example.com/tables/movies?$skip=5")
LINK_3 = ContinuationLink("https://datasync.example.com/tables/movies?$skip=10")


def _three_pages(count=None):
    return (
        Page(items=[{"n": i} for i in range(5)], count=count, next_link=LINK_2),
        Page(items=[{"n": i} for i in range(5, 10)], count=count, next_link=LINK_3),
        Page(items=[], count=count, next_link=None),
    )


class TestPageableTraversal(unittest.TestCase):
    """Tests for item and page iteration."""

    def test_three_pages_yield_ten_items_in_three_fetches(self):
        """Test 5 + 5 + 0 items over three fetches."""
        fetch = _pages(*_three_pages())
        items = list(Pageable(fetch))
        self.assertEqual([i["n"] for i in items], list(range(10)))
        self.assertEqual(fetch.call_count, 3)

    def test_continuation_links_followed_verbatim(self):
        """Test that the first fetch gets None and later fetches get the links."""
        fetch = _pages(*_three_pages())
        list(Pageable(fetch))
        self.assertEqual([c.args[0] for c in fetch.call_args_list], [None, LINK_2, LINK_3])

    def test_nothing_fetched_until_iterated(self):
        """Test lazy fetching."""
        fetch = _pages(*_three_pages())
        Pageable(fetch)
        fetch.assert_not_called()

    def test_empty_page_with_link_is_traversed(self):
        """Test that an empty page carrying a link does not end the stream."""
        fetch = _pages(
            Page(items=[], next_link=LINK_2),
            Page(items=[{"n": 1}], next_link=None),
        )
        self.assertEqual(list(Pageable(fetch)), [{"n": 1}])
        self.assertEqual(fetch.call_count, 2)

    def test_exhausted_iterator_stays_exhausted(self):
        """Test that advancing an exhausted iterator fetches nothing more."""
        fetch = _pages(Page(items=[{"n": 1}]))
        it = iter(Pageable(fetch))
        self.assertEqual(next(it), {"n": 1})
        with self.assertRaises(StopIteration):
            next(it)
        self.assertEqual(it.state, PageableState.EXHAUSTED)
        with self.assertRaises(StopIteration):
            next(it)
        self.assertEqual(fetch.call_count, 1)

    def test_reiteration_starts_fresh(self):
        """Test that iterating again starts from the first page."""
        fetch = _pages(Page(items=[{"n": 1}]), Page(items=[{"n": 1}]))
        stream = Pageable(fetch)
        list(stream)
        list(stream)
        self.assertEqual([c.args[0] for c in fetch.call_args_list], [None, None])

    def test_iter_pages(self):
        """Test page-level iteration."""
        pages = list(Pageable(_pages(*_three_pages())).iter_pages())
        self.assertEqual([len(p) for p in pages], [5, 5, 0])
        self.assertTrue(pages[0].has_more)
        self.assertFalse(pages[2].has_more)


class TestPageableState(unittest.TestCase):
    """Tests for state transitions, count and last page."""

    def test_states(self):
        """Test NOT_STARTED -> HAS_PAGE -> EXHAUSTED."""
        pages = Pageable(_pages(Page(items=[{"n": 1}]))).iter_pages()
        self.assertEqual(pages.state, PageableState.NOT_STARTED)
        next(pages)
        self.assertEqual(pages.state, PageableState.HAS_PAGE)
        with self.assertRaises(StopIteration):
            next(pages)
        self.assertEqual(pages.state, PageableState.EXHAUSTED)

    def test_count_known_after_first_page(self):
        """Test that count reflects the first page's total."""
        stream = Pageable(_pages(*_three_pages(count=10)))
        it = iter(stream)
        self.assertIsNone(stream.count)
        next(it)
        self.assertEqual(stream.count, 10)
        list(it)
        self.assertEqual(stream.count, 10)

    def test_last_page(self):
        """Test that last_page is the most recent page fetched."""
        stream = Pageable(_pages(*_three_pages()))
        list(stream)
        self.assertEqual(len(stream.last_page), 0)
        self.assertIsNone(stream.last_page.next_link)


class TestPageableFailures(unittest.TestCase):
    """Tests for error surfacing, retry by re-advancing, and cancellation."""

    def test_error_surfaces_and_readvance_refetches_same_link(self):
        """Test FAILED state and re-issuing the failed fetch."""
        error = HttpError("Service unavailable", status_code=503, is_transient=True)
        first, second, third = _three_pages()
        fetch = MagicMock(side_effect=[first, error, second, third])
        it = iter(Pageable(fetch))

        for _ in range(5):
            next(it)
        with self.assertRaises(HttpError):
            next(it)
        self.assertEqual(it.state, PageableState.FAILED)

        self.assertEqual(next(it), {"n": 5})
        self.assertEqual(fetch.call_args_list[1].args[0], LINK_2)
        self.assertEqual(fetch.call_args_list[2].args[0], LINK_2)
        self.assertEqual(len(list(it)), 4)

    def test_first_fetch_failure_is_retried_from_start(self):
        """Test that a failed first fetch is re-issued without a link."""
        fetch = MagicMock(side_effect=[HttpError("boom", status_code=500), Page(items=[{"n": 1}])])
        it = iter(Pageable(fetch))
        with self.assertRaises(HttpError):
            next(it)
        self.assertEqual(next(it), {"n": 1})
        self.assertEqual([c.args[0] for c in fetch.call_args_list], [None, None])

    def test_cancel_before_first_fetch(self):
        """Test that a set event stops the stream without fetching."""
        event = threading.Event()
        event.set()
        fetch = _pages(*_three_pages())
        it = iter(Pageable(fetch, cancel_event=event))
        with self.assertRaises(OperationCancelledError):
            next(it)
        fetch.assert_not_called()
        self.assertEqual(it.state, PageableState.FAILED)

    def test_cancel_between_pages(self):
        """Test that cancellation is checked before each fetch only."""
        event = threading.Event()
        fetch = _pages(*_three_pages())
        it = iter(Pageable(fetch, cancel_event=event))
        for _ in range(5):
            next(it)
        event.set()
        with self.assertRaises(OperationCancelledError):
            next(it)
        self.assertEqual(fetch.call_count, 1)


@dataclass
class Row:
    id: str
    year: int


class TestPageableHelpers(unittest.TestCase):
    """Tests for to_list / to_dict / to_dataframe."""

    def setUp(self):
        self.fetch = _pages(
            Page(items=[Row("a", 2001), Row("b", 2002)], next_link=LINK_2),
            Page(items=[Row("c", 2003)]),
        )

    def test_to_list(self):
        """Test collecting every item."""
        self.assertEqual([r.id for r in Pageable(self.fetch).to_list()], ["a", "b", "c"])

    def test_to_dict_by_attribute(self):
        """Test indexing items by attribute name."""
        result = Pageable(self.fetch).to_dict("id")
        self.assertEqual(list(result), ["a", "b", "c"])
        self.assertEqual(result["b"].year, 2002)

    def test_to_dict_by_callable(self):
        """Test indexing items with a key function."""
        result = Pageable(self.fetch).to_dict(lambda r: r.year)
        self.assertEqual(sorted(result), [2001, 2002, 2003])

    def test_to_dict_duplicate_key(self):
        """Test that duplicate keys are rejected."""
        with self.assertRaises(ValueError):
            Pageable(self.fetch).to_dict(lambda r: "same")

    def test_to_dataframe(self):
        """Test DataFrame conversion of dataclass items."""
        df = Pageable(self.fetch).to_dataframe()
        self.assertIsInstance(df, pd.DataFrame)
        self.assertEqual(list(df.columns), ["id", "year"])
        self.assertListEqual(df["year"].tolist(), [2001, 2002, 2003])


class TestFromQuery(unittest.TestCase):
    """Tests for Pageable.from_query."""

    def test_first_fetch_uses_query_string(self):
        """Test that the query string is sent first, then links."""
        fetch_page = MagicMock(side_effect=list(_three_pages()))
        list(Pageable.from_query(fetch_page, "$top=10"))
        self.assertEqual([c.args[0] for c in fetch_page.call_args_list], ["$top=10", LINK_2, LINK_3])


if __name__ == "__main__":
    unittest.main()
