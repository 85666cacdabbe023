# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Structured exceptions for the Datasync client.

Every error raised by the client derives from :class:`DatasyncError` and
identifies its kind through :attr:`DatasyncError.code`:

- ``validation_error``: a builder call received a malformed argument.
- ``translation_error``: a query expression cannot be translated to OData.
- ``http_error`` / ``decode_error``: the remote service rejected a request
  or returned a body that is not a page of items.
- ``cancelled``: the caller cancelled a paged query between fetches.
"""

from __future__ import annotations

import datetime as _dt
from typing import Any, Dict, Optional

from ._error_codes import (
    TRANSLATION_UNKNOWN_FIELD,
    TRANSLATION_UNSUPPORTED,
)


class DatasyncError(Exception):
    """Base structured error for the Datasync client."""

    def __init__(
        self,
        message: str,
        *,
        code: str,
        subcode: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        source: Optional[str] = None,
        is_transient: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.subcode = subcode
        self.status_code = status_code
        self.details = details or {}
        self.source = source or "client"
        self.is_transient = is_transient
        self.timestamp = _dt.datetime.now(_dt.timezone.utc).isoformat().replace("+00:00", "Z")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "subcode": self.subcode,
            "status_code": self.status_code,
            "details": self.details,
            "source": self.source,
            "is_transient": self.is_transient,
            "timestamp": self.timestamp,
        }

    def __repr__(self) -> str:  # pragma: no cover
        return f"{self.__class__.__name__}(code={self.code!r}, subcode={self.subcode!r}, message={self.message!r})"


class ValidationError(DatasyncError):
    """Raised synchronously by a query builder call that received an invalid argument."""

    def __init__(self, message: str, *, subcode: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="validation_error", subcode=subcode, details=details, source="client")


class QueryTranslationError(DatasyncError):
    """Raised when a query cannot be converted into an OData query string."""

    def __init__(
        self,
        message: str,
        *,
        subcode: str,
        construct: Optional[str] = None,
        clause: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        d = details or {}
        if construct is not None:
            d["construct"] = construct
        if clause is not None:
            d["clause"] = clause
        super().__init__(message, code="translation_error", subcode=subcode, details=d, source="client")
        self.construct = construct
        self.clause = clause


class UnsupportedExpressionError(QueryTranslationError):
    """An expression uses a node, operator or function outside the supported OData subset."""

    def __init__(self, construct: str, *, clause: Optional[str] = None, reason: Optional[str] = None) -> None:
        where = f" in a '{clause}' clause" if clause else ""
        message = f"'{construct}' is not supported{where}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, subcode=TRANSLATION_UNSUPPORTED, construct=construct, clause=clause)


class UnknownFieldError(QueryTranslationError):
    """A field reference does not resolve against the element schema of the query."""

    def __init__(self, field_name: str, *, element_type: Optional[str] = None, clause: Optional[str] = None) -> None:
        owner = f" on '{element_type}'" if element_type else ""
        super().__init__(
            f"Unknown field '{field_name}'{owner}",
            subcode=TRANSLATION_UNKNOWN_FIELD,
            construct=field_name,
            clause=clause,
            details={"element_type": element_type} if element_type else None,
        )
        self.field_name = field_name


class HttpError(DatasyncError):
    def __init__(
        self,
        message: str,
        status_code: int,
        is_transient: bool = False,
        subcode: Optional[str] = None,
        service_error_code: Optional[str] = None,
        request_url: Optional[str] = None,
        body_excerpt: Optional[str] = None,
        retry_after: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        d = details or {}
        if service_error_code is not None:
            d["service_error_code"] = service_error_code
        if request_url is not None:
            d["request_url"] = request_url
        if body_excerpt is not None:
            d["body_excerpt"] = body_excerpt
        if retry_after is not None:
            d["retry_after"] = retry_after
        super().__init__(
            message,
            code="http_error",
            subcode=subcode,
            status_code=status_code,
            details=d,
            source="server",
            is_transient=is_transient,
        )


class ResponseDecodeError(DatasyncError):
    """The service answered successfully but the body is not a page of items."""

    def __init__(self, message: str, *, subcode: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="decode_error", subcode=subcode, details=details, source="server")


class OperationCancelledError(DatasyncError):
    def __init__(self, message: str = "The paged query was cancelled", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="cancelled", details=details, source="client")


__all__ = [
    "DatasyncError",
    "ValidationError",
    "QueryTranslationError",
    "UnsupportedExpressionError",
    "UnknownFieldError",
    "HttpError",
    "ResponseDecodeError",
    "OperationCancelledError",
]
