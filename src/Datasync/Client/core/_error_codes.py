# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

# HTTP subcode constants
HTTP_400 = "http_400"
HTTP_401 = "http_401"
HTTP_403 = "http_403"
HTTP_404 = "http_404"
HTTP_409 = "http_409"
HTTP_410 = "http_410"
HTTP_412 = "http_412"
HTTP_415 = "http_415"
HTTP_429 = "http_429"
HTTP_500 = "http_500"
HTTP_502 = "http_502"
HTTP_503 = "http_503"
HTTP_504 = "http_504"

ALL_HTTP_SUBCODES = {
    HTTP_400,
    HTTP_401,
    HTTP_403,
    HTTP_404,
    HTTP_409,
    HTTP_410,
    HTTP_412,
    HTTP_415,
    HTTP_429,
    HTTP_500,
    HTTP_502,
    HTTP_503,
    HTTP_504,
}

TRANSIENT_STATUS_CODES = {429, 502, 503, 504}

# Validation subcodes
VALIDATION_SKIP_NEGATIVE = "validation_skip_negative"
VALIDATION_TAKE_NOT_POSITIVE = "validation_take_not_positive"
VALIDATION_PARAMETER_BLANK = "validation_parameter_blank"
VALIDATION_PARAMETER_RESERVED = "validation_parameter_reserved"
VALIDATION_PARAMETERS_EMPTY = "validation_parameters_empty"
VALIDATION_EXPRESSION_INVALID = "validation_expression_invalid"
VALIDATION_PROJECTION_EMPTY = "validation_projection_empty"

# Translation subcodes
TRANSLATION_UNSUPPORTED = "translation_unsupported"
TRANSLATION_UNKNOWN_FIELD = "translation_unknown_field"

# Response decoding subcodes
DECODE_NOT_JSON = "decode_not_json"
DECODE_NOT_A_PAGE = "decode_not_a_page"


def _http_subcode(status: int) -> str:
    """Map an HTTP status to its ``http_<status>`` subcode."""
    return f"http_{status}"


def _is_transient_status(status: int) -> bool:
    return status in TRANSIENT_STATUS_CODES
