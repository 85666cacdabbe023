# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Core infrastructure components for the Datasync client.

This module contains the foundational components including authentication,
configuration, HTTP client, and error handling.
"""

from .errors import (
    DatasyncError,
    ValidationError,
    QueryTranslationError,
    UnsupportedExpressionError,
    UnknownFieldError,
    HttpError,
    ResponseDecodeError,
    OperationCancelledError,
)

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
