# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Assembly of a :class:`~Datasync.Client.models.query.QuerySpec` into an OData
query string.

Components are emitted in a fixed order::

    $count, $filter, $orderby, $select, $skip, $top, __includedeleted

followed by caller parameters in insertion order. Components at their default
value are left out, so a default spec serializes to ``""``. Values are
percent-encoded; keys are sent as given.
"""

from __future__ import annotations

from typing import List, Tuple
from urllib.parse import quote

from ..models.query import QuerySpec
from ..models.schema import ElementSchema
from ._translator import translate_filter, translate_ordering, translate_selection

COUNT = "$count"
FILTER = "$filter"
ORDER_BY = "$orderby"
SELECT = "$select"
SKIP = "$skip"
TOP = "$top"
INCLUDE_DELETED = "__includedeleted"

# Characters left unescaped in values besides letters, digits and "-._~"
_SAFE = "'()*!,"


def encode_value(value: str) -> str:
    """Percent-encode a query string value, e.g. ``(id eq 'foo')`` -> ``(id%20eq%20'foo')``."""
    return quote(value, safe=_SAFE)


def query_components(spec: QuerySpec, schema: ElementSchema, *, include_parameters: bool = True) -> List[Tuple[str, str]]:
    """
    Build the ``(key, raw value)`` pairs of a query in canonical order.

    Every expression is translated before anything is returned, so a
    translation failure never yields a partial result.

    :raises ~Datasync.Client.core.errors.QueryTranslationError: If an
        expression cannot be translated.
    """
    components: List[Tuple[str, str]] = []
    if spec.include_total_count:
        components.append((COUNT, "true"))
    if spec.filter is not None:
        components.append((FILTER, translate_filter(spec.filter, schema)))
    if spec.ordering:
        components.append((ORDER_BY, translate_ordering(spec.ordering, schema)))
    if spec.selection:
        components.append((SELECT, translate_selection(spec.selection, schema)))
    if spec.skip > 0:
        components.append((SKIP, str(spec.skip)))
    if spec.take is not None:
        components.append((TOP, str(spec.take)))
    if spec.include_deleted:
        components.append((INCLUDE_DELETED, "true"))
    if include_parameters:
        components.extend(spec.parameters)
    return components


def serialize(spec: QuerySpec, schema: ElementSchema, *, include_parameters: bool = True) -> str:
    """
    Serialize a query to its OData query string, without a leading ``?``.

    :param spec: Query to serialize.
    :type spec: ~Datasync.Client.models.query.QuerySpec
    :param schema: Element schema used to resolve field references.
    :param include_parameters: Append caller parameters.
    :rtype: str
    """
    return "&".join(
        f"{key}={encode_value(value)}"
        for key, value in query_components(spec, schema, include_parameters=include_parameters)
    )


__all__ = ["serialize", "query_components", "encode_value"]
