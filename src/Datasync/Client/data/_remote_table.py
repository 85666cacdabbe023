# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
HTTP transport for Datasync table endpoints.

A page request is ``GET {endpoint}/tables/{table}?{query}``; following pages
are requested from the ``nextLink`` of the previous response, unchanged. The
service answers with::

    {"items": [...], "count": 42, "nextLink": "https://.../tables/movies?$skip=10"}

where ``count`` and ``nextLink`` are optional.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Optional, Union
from urllib.parse import urljoin, urlsplit

from ..core._error_codes import (
    DECODE_NOT_A_PAGE,
    DECODE_NOT_JSON,
    _http_subcode,
    _is_transient_status,
)
from ..core._http import _HttpClient
from ..core.config import DatasyncConfig
from ..core.errors import HttpError, ResponseDecodeError
from ..models.page import ContinuationLink, Page

_logger = logging.getLogger(__name__)

_BODY_EXCERPT_LIMIT = 200


class _RemoteTableClient:
    """
    Low-level client for the table endpoints of one Datasync service.

    :param auth: Authentication manager, or ``None`` for anonymous services.
    :type auth: ~Datasync.Client.core._auth._AuthManager or None
    :param base_url: Service endpoint, e.g. ``"https://myapp.azurewebsites.net"``.
    :type base_url: str
    :param config: Client configuration. Defaults to :meth:`DatasyncConfig.from_env`.
    :param session: Optional session for connection pooling.
    """

    def __init__(self, auth: Any, base_url: str, config: Optional[DatasyncConfig] = None, session: Any = None) -> None:
        self.auth = auth
        self.base_url = (base_url or "").strip().rstrip("/")
        if not self.base_url:
            raise ValueError("base_url is required.")
        self.config = config or DatasyncConfig.from_env()
        self._http = _HttpClient(
            retries=self.config.http_retries,
            backoff=self.config.http_backoff,
            timeout=self.config.http_timeout,
            session=session,
        )

    def _headers(self) -> Dict[str, str]:
        """Build the standard Datasync request headers."""
        headers = {
            "Accept": "application/json",
            "ZUMO-API-VERSION": self.config.api_version,
        }
        if self.auth is not None:
            scope = self.config.auth_scope or f"{self.base_url}/.default"
            token = self.auth._acquire_token(scope).access_token
            headers["Authorization"] = f"Bearer {token}"
        if self.config.user_agent:
            headers["User-Agent"] = self.config.user_agent
        if self.config.installation_id:
            headers["X-ZUMO-INSTALLATION-ID"] = self.config.installation_id
        return headers

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        """
        Send a request and raise :class:`HttpError` for any non-success status.

        :raises ~Datasync.Client.core.errors.HttpError: If the service returns
            a status outside 2xx.
        """
        if "headers" not in kwargs:
            kwargs["headers"] = self._headers()
        r = self._http._request(method, url, **kwargs)
        status = r.status_code
        if 200 <= status < 300:
            return r

        service_code: Optional[str] = None
        message = ""
        try:
            body = r.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            err = body.get("error")
            if isinstance(err, dict):
                service_code = err.get("code")
                message = err.get("message") or ""
            elif isinstance(err, str):
                message = err
            if not message and isinstance(body.get("message"), str):
                message = body["message"]

        retry_after: Optional[int] = None
        raw_retry = (r.headers or {}).get("Retry-After")
        if raw_retry is not None:
            try:
                retry_after = int(raw_retry)
            except (TypeError, ValueError):
                retry_after = None

        text = getattr(r, "text", "") or ""
        excerpt = text[:_BODY_EXCERPT_LIMIT] if text else None
        transient = _is_transient_status(status)
        _logger.warning("%s %s returned HTTP %d", method.upper(), url, status)
        raise HttpError(
            message or f"HTTP {status} from {method.upper()} {url}",
            status_code=status,
            is_transient=transient,
            subcode=_http_subcode(status),
            service_error_code=service_code,
            request_url=url,
            body_excerpt=excerpt,
            retry_after=retry_after,
        )

    def _table_url(self, table: str) -> str:
        table = (table or "").strip()
        if not table:
            raise ValueError("table is required.")
        return f"{self.base_url}/tables/{table.lower()}"

    def _page_url(self, table: str, target: Union[str, ContinuationLink]) -> str:
        if isinstance(target, ContinuationLink):
            if urlsplit(target.value).scheme:
                return target.value
            return urljoin(self.base_url + "/", target.value)
        url = self._table_url(table)
        query = (target or "").lstrip("?")
        return f"{url}?{query}" if query else url

    def fetch_page(
        self,
        table: str,
        target: Union[str, ContinuationLink],
        decoder: Optional[Callable[[Dict[str, Any]], Any]] = None,
    ) -> Page:
        """
        Fetch and decode one page of a table query.

        :param table: Table name; lowercased into the request path.
        :type table: str
        :param target: Serialized query string for the first page, or the
            continuation link of the previous page.
        :type target: str or ~Datasync.Client.models.page.ContinuationLink
        :param decoder: Converts each wire item; items are returned as dicts when omitted.
        :return: Decoded page. Items are decoded before the page is returned, so
            a decoding failure never yields a partial page.
        :rtype: ~Datasync.Client.models.page.Page
        :raises ~Datasync.Client.core.errors.HttpError: On a non-success status.
        :raises ~Datasync.Client.core.errors.ResponseDecodeError: If the body is
            not a page of items.
        """
        url = self._page_url(table, target)
        _logger.debug("GET %s", url)
        r = self._request("get", url)
        try:
            body = r.json()
        except ValueError:
            raise ResponseDecodeError(
                f"Response from {url} is not JSON", subcode=DECODE_NOT_JSON, details={"request_url": url}
            ) from None
        return _decode_page(body, url, decoder)

    def close(self) -> None:
        """Release the underlying HTTP resources."""
        self._http.close()


def _decode_page(body: Any, url: str, decoder: Optional[Callable[[Dict[str, Any]], Any]]) -> Page:
    def bad(reason: str) -> ResponseDecodeError:
        return ResponseDecodeError(
            f"Response from {url} is not a page of items: {reason}",
            subcode=DECODE_NOT_A_PAGE,
            details={"request_url": url, "body_excerpt": json.dumps(body, default=str)[:_BODY_EXCERPT_LIMIT]},
        )

    if not isinstance(body, dict):
        raise bad("expected a JSON object")
    items = body.get("items")
    if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
        raise bad("'items' must be a list of objects")
    count = body.get("count")
    if count is not None and (isinstance(count, bool) or not isinstance(count, int)):
        raise bad("'count' must be an integer")
    next_link = body.get("nextLink")
    if next_link is not None and not isinstance(next_link, str):
        raise bad("'nextLink' must be a string")

    decode = decoder or dict
    return Page(
        items=tuple(decode(i) for i in items),
        count=count,
        next_link=ContinuationLink(next_link) if next_link else None,
    )


__all__ = ["_RemoteTableClient"]
