# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Function-call builders for query expressions.

Each helper returns a :class:`~Datasync.Client.models.nodes.FunctionCallNode`
named after the OData function it translates to::

    from Datasync.Client.models import functions as fn
    from Datasync.Client.models.nodes import F

    fn.year(F.release_date) == 1994
    fn.ceiling(F.duration / 60.0) == 2
    fn.substring(F.rating, 0, 2) == "PG"

:func:`call` builds an arbitrary call; its name and arity are checked when the
query is translated.
"""

from __future__ import annotations

from typing import Any

from .nodes import FunctionCallNode, _wrap

# name -> accepted argument counts
SUPPORTED_FUNCTIONS = {
    "tolower": (1,),
    "toupper": (1,),
    "length": (1,),
    "trim": (1,),
    "startswith": (2,),
    "endswith": (2,),
    "contains": (2,),
    "concat": (2,),
    "indexof": (2,),
    "substring": (2, 3),
    "replace": (3,),
    "year": (1,),
    "month": (1,),
    "day": (1,),
    "hour": (1,),
    "minute": (1,),
    "second": (1,),
    "floor": (1,),
    "ceiling": (1,),
    "round": (1,),
}


def call(name: str, *args: Any) -> FunctionCallNode:
    """
    Build a call of ``name`` with the given arguments.

    :param name: Function name.
    :type name: str
    :param args: Arguments; plain values become constants.
    :rtype: FunctionCallNode
    """
    return FunctionCallNode(name, tuple(_wrap(a) for a in args))


def tolower(value: Any) -> FunctionCallNode:
    return call("tolower", value)


def toupper(value: Any) -> FunctionCallNode:
    return call("toupper", value)


def length(value: Any) -> FunctionCallNode:
    return call("length", value)


def trim(value: Any) -> FunctionCallNode:
    return call("trim", value)


def startswith(value: Any, prefix: Any) -> FunctionCallNode:
    return call("startswith", value, prefix)


def endswith(value: Any, suffix: Any) -> FunctionCallNode:
    return call("endswith", value, suffix)


def contains(value: Any, search: Any) -> FunctionCallNode:
    return call("contains", value, search)


def concat(left: Any, right: Any) -> FunctionCallNode:
    return call("concat", left, right)


def indexof(value: Any, search: Any) -> FunctionCallNode:
    return call("indexof", value, search)


def substring(value: Any, start: Any, length: Any = None) -> FunctionCallNode:
    """Build ``substring(value, start)`` or ``substring(value, start, length)``."""
    if length is None:
        return call("substring", value, start)
    return call("substring", value, start, length)


def replace(value: Any, find: Any, replacement: Any) -> FunctionCallNode:
    return call("replace", value, find, replacement)


def year(value: Any) -> FunctionCallNode:
    return call("year", value)


def month(value: Any) -> FunctionCallNode:
    return call("month", value)


def day(value: Any) -> FunctionCallNode:
    return call("day", value)


def hour(value: Any) -> FunctionCallNode:
    return call("hour", value)


def minute(value: Any) -> FunctionCallNode:
    return call("minute", value)


def second(value: Any) -> FunctionCallNode:
    return call("second", value)


def floor(value: Any) -> FunctionCallNode:
    return call("floor", value)


def ceiling(value: Any) -> FunctionCallNode:
    return call("ceiling", value)


def round(value: Any) -> FunctionCallNode:  # noqa: A001
    return call("round", value)


__all__ = ["SUPPORTED_FUNCTIONS", "call"] + sorted(SUPPORTED_FUNCTIONS)
