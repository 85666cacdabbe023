# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from __future__ import annotations

from typing import Optional

import requests
from azure.core.credentials import TokenCredential

from .core._auth import _AuthManager
from .core.config import DatasyncConfig
from .data._remote_table import _RemoteTableClient
from .operations.query import QueryOperations


class DatasyncClient:
    """
    High-level client for Azure Mobile Apps / Datasync table services.

    The client builds strongly-typed table queries, translates them to OData
    query strings and reads the paged results as one lazily fetched stream.
    HTTP work is delegated to an internal
    :class:`~Datasync.Client.data._remote_table._RemoteTableClient`.

    **Context Manager Support (Recommended)**:
        Using the client as a context manager ensures proper resource cleanup
        and enables connection pooling for better performance::

            with DatasyncClient(endpoint, credential) as client:
                movies = client.query.builder("movies").take(10).execute().to_list()
            # Resources automatically cleaned up

    **Without Context Manager**:
        Resources are created lazily on first use. Call ``close()`` when done::

            client = DatasyncClient(endpoint)
            try:
                total = client.query.count("movies")
            finally:
                client.close()

    Operations are organized under namespaces:

    - ``client.query``: Table queries (fluent builder, raw OData strings, counts)

    :param endpoint: Service endpoint, for example ``"https://myapp.azurewebsites.net"``.
        Trailing slash is automatically removed.
    :type endpoint: :class:`str`
    :param credential: Optional Azure Identity credential. Anonymous services need none.
    :type credential: ~azure.core.credentials.TokenCredential or None
    :param config: Optional configuration for headers, naming policy, timeouts and retries.
        If not provided, defaults are loaded from :meth:`~Datasync.Client.core.config.DatasyncConfig.from_env`.
    :type config: ~Datasync.Client.core.config.DatasyncConfig or None

    :raises ValueError: If ``endpoint`` is missing or empty after trimming.

    Example::

        from dataclasses import dataclass
        from Datasync.Client.client import DatasyncClient
        from Datasync.Client.models.nodes import F

        @dataclass
        class Movie:
            id: str
            title: str
            year: int

        with DatasyncClient("https://myapp.azurewebsites.net") as client:
            query = (client.query.builder("movies", Movie)
                     .where(F.year >= 1990)
                     .order_by_descending(F.year)
                     .include_total_count())
            movies = query.execute()
            for movie in movies:
                print(movie.year, movie.title)
            print(f"{movies.count} matching movies")
    """

    def __init__(
        self,
        endpoint: str,
        credential: Optional[TokenCredential] = None,
        config: Optional[DatasyncConfig] = None,
    ) -> None:
        self.auth = _AuthManager(credential) if credential is not None else None
        self._endpoint = (endpoint or "").strip().rstrip("/")
        if not self._endpoint:
            raise ValueError("endpoint is required.")
        self._config = config or DatasyncConfig.from_env()
        self._remote: Optional[_RemoteTableClient] = None
        self._session: Optional[requests.Session] = None
        self._owns_session: bool = False

        self.query = QueryOperations(self)

    def __enter__(self) -> "DatasyncClient":
        """
        Enter the context manager.

        Creates an HTTP session for connection pooling. All operations within
        the context reuse this session.

        :return: The client instance.
        :rtype: DatasyncClient
        """
        if self._session is None:
            self._session = requests.Session()
            self._owns_session = True
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """
        Exit the context manager with cleanup.

        Closes the HTTP session and releases any resources. Exceptions are not suppressed.
        """
        self.close()

    def close(self) -> None:
        """
        Explicitly close the client and release resources.

        Closes the HTTP session (if any) and the internal table client.
        Safe to call multiple times.
        """
        if self._remote is not None:
            self._remote.close()
            self._remote = None
        if self._session is not None and self._owns_session:
            self._session.close()
            self._session = None
            self._owns_session = False

    def _get_remote(self) -> _RemoteTableClient:
        """
        Get or create the internal table client.

        Construction is deferred until the first query is run. When a session
        exists (from the context manager), it is passed on for connection pooling.

        :rtype: ~Datasync.Client.data._remote_table._RemoteTableClient
        """
        if self._remote is None:
            self._remote = _RemoteTableClient(
                self.auth,
                self._endpoint,
                self._config,
                session=self._session,
            )
        return self._remote


__all__ = ["DatasyncClient"]
