# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Table query operations namespace."""

from __future__ import annotations

import functools
import logging
import threading
from typing import Any, Optional, TYPE_CHECKING

from ..core._error_codes import DECODE_NOT_A_PAGE
from ..core.errors import ResponseDecodeError
from ..models.pageable import Pageable
from ..models.query import TableQuery
from ..models.schema import ElementSchema

if TYPE_CHECKING:
    from ..client import DatasyncClient

_logger = logging.getLogger(__name__)


class QueryOperations:
    """
    Query operations for reading table items.

    Accessed via ``client.query``. Provides fluent query building, raw OData
    queries and item counts.

    Example:
        Fluent query builder (recommended)::

            from Datasync.Client.models.nodes import F

            movies = (client.query.builder("movies", Movie)
                      .where(F.rating == "PG")
                      .order_by("title")
                      .execute())
            for movie in movies:
                print(movie.title)

        Raw OData query string::

            for item in client.query.get("movies", "$filter=(year%20gt%202000)"):
                print(item["title"])

        Count items::

            total = client.query.count("movies")
    """

    def __init__(self, client: "DatasyncClient") -> None:
        """
        Initialize QueryOperations.

        :param client: Parent DatasyncClient instance.
        :type client: DatasyncClient
        """
        self._client = client

    def builder(self, table: str, element_type: Optional[type] = None) -> TableQuery:
        """
        Create a fluent query bound to ``table``.

        The returned query can be refined with the builder methods and run
        directly with ``.execute()``.

        :param table: Table name.
        :type table: str
        :param element_type: Dataclass describing the table's items. Untyped
            queries return dicts and accept any field name.
        :type element_type: type or None
        :return: Bound query for fluent construction and execution.
        :rtype: ~Datasync.Client.models.query.TableQuery
        """
        if not isinstance(table, str) or not table.strip():
            raise ValueError("table is required.")
        return TableQuery(
            element_type=element_type,
            property_naming=self._client._config.property_naming,
            _table_ops=(self, table),
        )

    def execute(
        self,
        table: str,
        query: TableQuery,
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> Pageable[Any]:
        """
        Run a query against ``table``.

        The query is serialized immediately, so translation errors are raised
        here; pages are fetched only when the result is iterated.

        :param table: Table name.
        :type table: str
        :param query: Query to run; standalone or bound queries are both accepted.
        :type query: ~Datasync.Client.models.query.TableQuery
        :param cancel_event: Event that cancels the stream before its next fetch.
        :type cancel_event: threading.Event or None
        :rtype: ~Datasync.Client.models.pageable.Pageable
        :raises ~Datasync.Client.core.errors.QueryTranslationError: If the query
            cannot be expressed in OData.
        """
        query_string = query.to_query_string()
        decoder = query.item_decoder()
        _logger.debug("Query on %s: %s", table, query_string)
        rt = self._client._get_remote()
        return Pageable.from_query(
            functools.partial(rt.fetch_page, table, decoder=decoder),
            query_string,
            cancel_event=cancel_event,
        )

    def get(
        self,
        table: str,
        query: str = "",
        *,
        element_type: Optional[type] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Pageable[Any]:
        """
        Run a pre-built OData query string against ``table``.

        :param table: Table name.
        :type table: str
        :param query: Query string, sent as given (a leading ``?`` is ignored).
        :type query: str
        :param element_type: Dataclass each item is decoded into; dicts when omitted.
        :type element_type: type or None
        :param cancel_event: Event that cancels the stream before its next fetch.
        :type cancel_event: threading.Event or None
        :rtype: ~Datasync.Client.models.pageable.Pageable

        Example::

            for item in client.query.get("movies", "$filter=(rating%20eq%20'PG')&$top=5"):
                print(item["title"])
        """
        schema = ElementSchema.for_type(element_type, self._client._config.property_naming)
        rt = self._client._get_remote()
        return Pageable.from_query(
            functools.partial(rt.fetch_page, table, decoder=schema.from_wire),
            (query or "").lstrip("?"),
            cancel_event=cancel_event,
        )

    def count(self, table: str, query: Optional[TableQuery] = None) -> int:
        """
        Return the number of items in ``table`` matching ``query``.

        Only the first page is requested, asking for one item and the total count.

        :param table: Table name.
        :type table: str
        :param query: Optional filter query; ordering and projection are ignored.
        :type query: ~Datasync.Client.models.query.TableQuery or None
        :rtype: int
        :raises ~Datasync.Client.core.errors.ResponseDecodeError: If the service
            does not return a count.
        """
        counting = TableQuery(property_naming=self._client._config.property_naming)
        if query is not None:
            counting = TableQuery(element_type=query.element_type, property_naming=query.property_naming)
            if query.spec.filter is not None:
                counting = counting.where(query.spec.filter)
            if query.spec.include_deleted:
                counting = counting.include_deleted_items()
            if query.spec.parameters:
                counting = counting.with_parameters(query.spec.parameter_map)
        counting = counting.include_total_count().take(1)

        rt = self._client._get_remote()
        page = rt.fetch_page(table, counting.to_query_string())
        if page.count is None:
            raise ResponseDecodeError(f"The service did not return a count for table '{table}'", subcode=DECODE_NOT_A_PAGE)
        return page.count


__all__ = ["QueryOperations"]
