# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
HTTP client for Datasync table requests.

:class:`~Datasync.Client.core._http._HttpClient` wraps the requests library.
Its retry contract is narrow:

- Only requests that fail before any response arrives (connection errors,
  timeouts and other ``requests.exceptions.RequestException``) are retried.
- Only idempotent methods (``GET``, ``HEAD``, ``OPTIONS``) are retried; any
  other method raises on the first network error.
- Delays grow as ``backoff * 2 ** attempt``.
- A response with an error status is returned as is. Whether a failed page
  is fetched again is up to the caller, who re-advances the result stream.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

import requests

_logger = logging.getLogger(__name__)

_IDEMPOTENT_METHODS = frozenset({"get", "head", "options"})


class _HttpClient:
    """
    HTTP client with network retry for reads, per-method timeouts and optional session support.

    :param retries: Maximum number of attempts for an idempotent request that raises a
        network error. Default is 5; values below 1 mean a single attempt.
    :type retries: :class:`int` | None
    :param backoff: Base delay in seconds between attempts. Default is 0.5.
    :type backoff: :class:`float` | None
    :param timeout: Default request timeout in seconds. If None, uses per-method defaults.
    :type timeout: :class:`float` | None
    :param session: Optional requests.Session for connection pooling. If provided,
        all requests use this session.
    :type session: :class:`requests.Session` | None
    """

    def __init__(
        self,
        retries: Optional[int] = None,
        backoff: Optional[float] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.max_attempts = max(1, retries if retries is not None else 5)
        self.base_delay = backoff if backoff is not None else 0.5
        self.default_timeout: Optional[float] = timeout
        self._session = session

    def _attempts_for(self, method: str) -> int:
        return self.max_attempts if (method or "").lower() in _IDEMPOTENT_METHODS else 1

    def _send(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        if self._session is not None:
            return self._session.request(method, url, **kwargs)
        return requests.request(method, url, **kwargs)

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """
        Send a request, retrying idempotent requests on network errors.

        Requests without an explicit ``timeout`` get the configured default,
        or 120s for POST/DELETE and 10s for anything else.

        :param method: HTTP method.
        :type method: :class:`str`
        :param url: Target URL, sent unchanged.
        :type url: :class:`str`
        :param kwargs: Passed to ``requests.request()`` or ``session.request()``.
        :return: The response, whatever its status code.
        :rtype: :class:`requests.Response`
        :raises requests.exceptions.RequestException: If the last attempt fails
            before a response arrives.
        """
        if "timeout" not in kwargs:
            if self.default_timeout is not None:
                kwargs["timeout"] = self.default_timeout
            else:
                kwargs["timeout"] = 120 if (method or "").lower() in ("post", "delete") else 10

        attempts = self._attempts_for(method)
        for attempt in range(attempts):
            try:
                return self._send(method, url, **kwargs)
            except requests.exceptions.RequestException as exc:
                if attempt == attempts - 1:
                    _logger.warning("%s %s failed after %d attempt(s): %s", method.upper(), url, attempts, exc)
                    raise
                delay = self.base_delay * (2**attempt)
                _logger.debug("%s %s failed (%s); retrying in %.2fs", method.upper(), url, exc, delay)
                time.sleep(delay)
        raise RuntimeError("Unexpected end of retry loop")

    def close(self) -> None:
        """Close the session, if any. Safe to call multiple times."""
        if self._session is not None:
            self._session.close()
            self._session = None
