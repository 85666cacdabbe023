# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Translation of expression trees into OData ``$filter``, ``$orderby`` and
``$select`` fragments.

Only a fixed subset of expressions has an OData form. Anything else raises
:class:`~Datasync.Client.core.errors.UnsupportedExpressionError`; a field that
is not part of the element type raises
:class:`~Datasync.Client.core.errors.UnknownFieldError`.
"""

from __future__ import annotations

import datetime as _dt
import decimal
import enum
import math
import uuid
from typing import Any, Callable, Dict, List, Sequence, Tuple

from ..core.errors import UnsupportedExpressionError
from ..models.functions import SUPPORTED_FUNCTIONS
from ..models.nodes import (
    BinaryOperatorKind,
    BinaryOperatorNode,
    ConstantNode,
    FunctionCallNode,
    MemberAccessNode,
    QueryNode,
    UnaryOperatorKind,
    UnaryOperatorNode,
)
from ..models.query import OrderByNode
from ..models.schema import ElementSchema

FILTER = "filter"
ORDER_BY = "orderby"
SELECT = "select"

_SUPPORTED_BINARY = {
    BinaryOperatorKind.EQUAL,
    BinaryOperatorKind.NOT_EQUAL,
    BinaryOperatorKind.GREATER_THAN,
    BinaryOperatorKind.GREATER_THAN_OR_EQUAL,
    BinaryOperatorKind.LESS_THAN,
    BinaryOperatorKind.LESS_THAN_OR_EQUAL,
    BinaryOperatorKind.AND,
    BinaryOperatorKind.OR,
    BinaryOperatorKind.ADD,
    BinaryOperatorKind.SUBTRACT,
    BinaryOperatorKind.MULTIPLY,
    BinaryOperatorKind.DIVIDE,
    BinaryOperatorKind.MODULO,
}

# Functions whose result is a string
_STRING_FUNCTIONS = {"tolower", "toupper", "trim", "concat", "substring", "replace"}


def format_literal(value: Any, *, clause: str = FILTER) -> str:
    """
    Encode a Python value as an OData literal.

    :param value: Constant value.
    :param clause: Clause being translated, reported on failure.
    :return: OData literal text.
    :rtype: str
    :raises ~Datasync.Client.core.errors.UnsupportedExpressionError: If the
        value has no OData literal form.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, enum.Enum):
        return _quote(value.name)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise UnsupportedExpressionError(repr(value), clause=clause, reason="non-finite numbers have no literal form")
        text = repr(value).replace("e", "E")
        if "." not in text and "E" not in text:
            text += ".0"
        return text
    if isinstance(value, decimal.Decimal):
        if not value.is_finite():
            raise UnsupportedExpressionError(str(value), clause=clause, reason="non-finite numbers have no literal form")
        return f"{value}M"
    if isinstance(value, str):
        return _quote(value)
    if isinstance(value, uuid.UUID):
        return f"cast({value},Edm.Guid)"
    if isinstance(value, _dt.datetime):
        if value.tzinfo is None or value.utcoffset() is None:
            raise UnsupportedExpressionError(
                repr(value), clause=clause, reason="datetime values must be timezone-aware"
            )
        utc = value.astimezone(_dt.timezone.utc)
        return f"cast({utc.strftime('%Y-%m-%dT%H:%M:%S')}.{utc.microsecond // 1000:03d}Z,Edm.DateTimeOffset)"
    if isinstance(value, _dt.date):
        return f"cast({value.isoformat()},Edm.Date)"
    if isinstance(value, _dt.time):
        text = value.strftime("%H:%M:%S")
        if value.microsecond:
            text += f".{value.microsecond // 1000:03d}"
        return f"cast({text},Edm.TimeOfDay)"
    raise UnsupportedExpressionError(
        f"constant of type {type(value).__name__}", clause=clause, reason="no OData literal form"
    )


def _quote(text: str) -> str:
    return "'" + text.replace("'", "''") + "'"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, decimal.Decimal)) and not isinstance(value, (bool, enum.Enum))


class _ExpressionTranslator:
    """
    Recursive translator for one clause of one query.

    :param schema: Element schema used to resolve field references.
    :param clause: ``"filter"``, ``"orderby"`` or ``"select"``.
    """

    def __init__(self, schema: ElementSchema, clause: str) -> None:
        self.schema = schema
        self.clause = clause
        self._visitors: Dict[type, Callable[[Any], str]] = {
            ConstantNode: self._constant,
            MemberAccessNode: self._member,
            UnaryOperatorNode: self._unary,
            BinaryOperatorNode: self._binary,
            FunctionCallNode: self._call,
        }

    def translate(self, node: Any) -> str:
        visitor = self._visitors.get(type(node))
        if visitor is None:
            raise UnsupportedExpressionError(
                f"{type(node).__name__} {node!r}", clause=self.clause, reason="not a query expression"
            )
        return visitor(node)

    def _unsupported(self, node: QueryNode, reason: str) -> UnsupportedExpressionError:
        return UnsupportedExpressionError(repr(node), clause=self.clause, reason=reason)

    def _constant(self, node: ConstantNode) -> str:
        return format_literal(node.value, clause=self.clause)

    def _member(self, node: MemberAccessNode) -> str:
        return self.schema.wire_name(node._path, clause=self.clause)

    def _unary(self, node: UnaryOperatorNode) -> str:
        if node.kind is UnaryOperatorKind.NOT:
            return f"not({self.translate(node.operand)})"
        operand = node.operand
        if isinstance(operand, ConstantNode) and _is_number(operand.value):
            return format_literal(-operand.value, clause=self.clause)
        raise self._unsupported(node, "negation is only supported on numeric constants")

    def _binary(self, node: BinaryOperatorNode) -> str:
        if node.kind not in _SUPPORTED_BINARY:
            raise self._unsupported(node, f"operator '{node.symbol}' has no OData equivalent")
        left = self.translate(node.left)
        right = self.translate(node.right)
        if node.kind is BinaryOperatorKind.ADD and (self._is_string(node.left) or self._is_string(node.right)):
            return f"concat({left},{right})"
        return f"({left} {node.kind.value} {right})"

    def _call(self, node: FunctionCallNode) -> str:
        arities = SUPPORTED_FUNCTIONS.get(node.name)
        if arities is None:
            raise self._unsupported(node, f"function '{node.name}' is not supported")
        if len(node.arguments) not in arities:
            expected = " or ".join(str(a) for a in arities)
            raise self._unsupported(
                node, f"function '{node.name}' takes {expected} argument(s), got {len(node.arguments)}"
            )
        return f"{node.name}({','.join(self.translate(a) for a in node.arguments)})"

    def _is_string(self, node: QueryNode) -> bool:
        if isinstance(node, ConstantNode):
            return isinstance(node.value, str)
        if isinstance(node, MemberAccessNode):
            return self.schema.is_string_field(node._path)
        if isinstance(node, FunctionCallNode):
            return node.name in _STRING_FUNCTIONS
        if isinstance(node, BinaryOperatorNode) and node.kind is BinaryOperatorKind.ADD:
            return self._is_string(node.left) or self._is_string(node.right)
        return False


def translate_filter(node: QueryNode, schema: ElementSchema) -> str:
    """
    Translate a filter predicate into ``$filter`` text.

    :param node: Predicate tree.
    :param schema: Element schema of the query.
    :rtype: str
    """
    return _ExpressionTranslator(schema, FILTER).translate(node)


def _field_only(node: Any, schema: ElementSchema, clause: str) -> str:
    if not isinstance(node, MemberAccessNode):
        raise UnsupportedExpressionError(
            repr(node), clause=clause, reason="only a field reference is allowed here"
        )
    return schema.wire_name(node._path, clause=clause)


def translate_ordering(ordering: Sequence[OrderByNode], schema: ElementSchema) -> str:
    """Translate sort keys into ``$orderby`` text, e.g. ``year desc,title``."""
    parts: List[str] = []
    for key in ordering:
        name = _field_only(key.member, schema, ORDER_BY)
        parts.append(name if key.ascending else f"{name} desc")
    return ",".join(parts)


def selection_columns(
    selection: Sequence[Tuple[str, QueryNode]], schema: ElementSchema
) -> List[Tuple[str, str]]:
    """
    Resolve a projection to ``(output_name, wire_name)`` pairs.

    :raises ~Datasync.Client.core.errors.UnsupportedExpressionError: If an
        entry is not a plain field reference.
    """
    return [(name, _field_only(node, schema, SELECT)) for name, node in selection]


def translate_selection(selection: Sequence[Tuple[str, QueryNode]], schema: ElementSchema) -> str:
    """Translate a projection into ``$select`` text; each wire name appears once."""
    seen: Dict[str, None] = {}
    for _, wire in selection_columns(selection, schema):
        seen.setdefault(wire, None)
    return ",".join(seen)


__all__ = [
    "format_literal",
    "translate_filter",
    "translate_ordering",
    "translate_selection",
    "selection_columns",
]
