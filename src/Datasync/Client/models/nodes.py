# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Expression nodes for table query predicates, sort keys and projections.

Expressions are built with ordinary Python operators on field references
obtained from the :data:`F` root::

    from Datasync.Client.models.nodes import F

    predicate = (F.year >= 1930) & (F.rating == "PG")
    title_filter = F.title.lower().startswith("the")

Python's ``and``, ``or`` and ``not`` keywords cannot be overloaded; use ``&``,
``|`` and ``~`` instead. Evaluating a node for truthiness raises
:class:`TypeError`.

Every operator builds a node, including operators the service cannot
evaluate (``^``, ``**``, ``<<``, ``>>``, ``//``). Such nodes are rejected when
the query is translated, not when it is built.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Tuple


class UnaryOperatorKind(str, Enum):
    """Unary operators understood by the expression model."""

    NOT = "not"
    NEGATE = "negate"


class BinaryOperatorKind(str, Enum):
    """
    Binary operators understood by the expression model.

    The value of each member is its OData token. Members below ``MODULO``
    have no OData equivalent and exist so that the Python operator can be
    captured and rejected during translation.
    """

    EQUAL = "eq"
    NOT_EQUAL = "ne"
    GREATER_THAN = "gt"
    GREATER_THAN_OR_EQUAL = "ge"
    LESS_THAN = "lt"
    LESS_THAN_OR_EQUAL = "le"
    AND = "and"
    OR = "or"
    ADD = "add"
    SUBTRACT = "sub"
    MULTIPLY = "mul"
    DIVIDE = "div"
    MODULO = "mod"
    EXCLUSIVE_OR = "xor"
    POWER = "power"
    LEFT_SHIFT = "lshift"
    RIGHT_SHIFT = "rshift"
    FLOOR_DIVIDE = "floordiv"


_PYTHON_SYMBOLS = {
    BinaryOperatorKind.EQUAL: "==",
    BinaryOperatorKind.NOT_EQUAL: "!=",
    BinaryOperatorKind.GREATER_THAN: ">",
    BinaryOperatorKind.GREATER_THAN_OR_EQUAL: ">=",
    BinaryOperatorKind.LESS_THAN: "<",
    BinaryOperatorKind.LESS_THAN_OR_EQUAL: "<=",
    BinaryOperatorKind.AND: "&",
    BinaryOperatorKind.OR: "|",
    BinaryOperatorKind.ADD: "+",
    BinaryOperatorKind.SUBTRACT: "-",
    BinaryOperatorKind.MULTIPLY: "*",
    BinaryOperatorKind.DIVIDE: "/",
    BinaryOperatorKind.MODULO: "%",
    BinaryOperatorKind.EXCLUSIVE_OR: "^",
    BinaryOperatorKind.POWER: "**",
    BinaryOperatorKind.LEFT_SHIFT: "<<",
    BinaryOperatorKind.RIGHT_SHIFT: ">>",
    BinaryOperatorKind.FLOOR_DIVIDE: "//",
}


def _wrap(value: Any) -> "QueryNode":
    if isinstance(value, QueryNode):
        return value
    return ConstantNode(value)


class QueryNode:
    """
    Base class for all expression nodes.

    Nodes are immutable. Comparison operators build new nodes instead of
    returning booleans, so use :meth:`equivalent` to compare two trees.
    """

    __slots__ = ()

    # Structural identity used by equivalent() and by QuerySpec equality.
    def _key(self) -> Tuple[Any, ...]:
        raise NotImplementedError

    def equivalent(self, other: Any) -> bool:
        """
        Return ``True`` when ``other`` is a node with the same structure.

        :param other: Object to compare against.
        :rtype: bool
        """
        return isinstance(other, QueryNode) and self._key() == other._key()

    def __bool__(self) -> bool:
        raise TypeError(
            "Query expressions have no truth value; combine them with '&', '|' and '~' "
            "instead of 'and', 'or' and 'not'."
        )

    __hash__ = None  # type: ignore[assignment]

    def _binary(self, kind: BinaryOperatorKind, other: Any) -> "BinaryOperatorNode":
        return BinaryOperatorNode(kind, self, _wrap(other))

    def _reflected(self, kind: BinaryOperatorKind, other: Any) -> "BinaryOperatorNode":
        return BinaryOperatorNode(kind, _wrap(other), self)

    # Comparison
    def __eq__(self, other: Any) -> "BinaryOperatorNode":  # type: ignore[override]
        return self._binary(BinaryOperatorKind.EQUAL, other)

    def __ne__(self, other: Any) -> "BinaryOperatorNode":  # type: ignore[override]
        return self._binary(BinaryOperatorKind.NOT_EQUAL, other)

    def __gt__(self, other: Any) -> "BinaryOperatorNode":
        return self._binary(BinaryOperatorKind.GREATER_THAN, other)

    def __ge__(self, other: Any) -> "BinaryOperatorNode":
        return self._binary(BinaryOperatorKind.GREATER_THAN_OR_EQUAL, other)

    def __lt__(self, other: Any) -> "BinaryOperatorNode":
        return self._binary(BinaryOperatorKind.LESS_THAN, other)

    def __le__(self, other: Any) -> "BinaryOperatorNode":
        return self._binary(BinaryOperatorKind.LESS_THAN_OR_EQUAL, other)

    # Logical
    def __and__(self, other: Any) -> "BinaryOperatorNode":
        return self._binary(BinaryOperatorKind.AND, other)

    def __rand__(self, other: Any) -> "BinaryOperatorNode":
        return self._reflected(BinaryOperatorKind.AND, other)

    def __or__(self, other: Any) -> "BinaryOperatorNode":
        return self._binary(BinaryOperatorKind.OR, other)

    def __ror__(self, other: Any) -> "BinaryOperatorNode":
        return self._reflected(BinaryOperatorKind.OR, other)

    def __invert__(self) -> "UnaryOperatorNode":
        return UnaryOperatorNode(UnaryOperatorKind.NOT, self)

    # Arithmetic
    def __add__(self, other: Any) -> "BinaryOperatorNode":
        return self._binary(BinaryOperatorKind.ADD, other)

    def __radd__(self, other: Any) -> "BinaryOperatorNode":
        return self._reflected(BinaryOperatorKind.ADD, other)

    def __sub__(self, other: Any) -> "BinaryOperatorNode":
        return self._binary(BinaryOperatorKind.SUBTRACT, other)

    def __rsub__(self, other: Any) -> "BinaryOperatorNode":
        return self._reflected(BinaryOperatorKind.SUBTRACT, other)

    def __mul__(self, other: Any) -> "BinaryOperatorNode":
        return self._binary(BinaryOperatorKind.MULTIPLY, other)

    def __rmul__(self, other: Any) -> "BinaryOperatorNode":
        return self._reflected(BinaryOperatorKind.MULTIPLY, other)

    def __truediv__(self, other: Any) -> "BinaryOperatorNode":
        return self._binary(BinaryOperatorKind.DIVIDE, other)

    def __rtruediv__(self, other: Any) -> "BinaryOperatorNode":
        return self._reflected(BinaryOperatorKind.DIVIDE, other)

    def __mod__(self, other: Any) -> "BinaryOperatorNode":
        return self._binary(BinaryOperatorKind.MODULO, other)

    def __rmod__(self, other: Any) -> "BinaryOperatorNode":
        return self._reflected(BinaryOperatorKind.MODULO, other)

    def __neg__(self) -> "UnaryOperatorNode":
        return UnaryOperatorNode(UnaryOperatorKind.NEGATE, self)

    # Captured so they can be rejected during translation
    def __xor__(self, other: Any) -> "BinaryOperatorNode":
        return self._binary(BinaryOperatorKind.EXCLUSIVE_OR, other)

    def __rxor__(self, other: Any) -> "BinaryOperatorNode":
        return self._reflected(BinaryOperatorKind.EXCLUSIVE_OR, other)

    def __pow__(self, other: Any) -> "BinaryOperatorNode":
        return self._binary(BinaryOperatorKind.POWER, other)

    def __rpow__(self, other: Any) -> "BinaryOperatorNode":
        return self._reflected(BinaryOperatorKind.POWER, other)

    def __lshift__(self, other: Any) -> "BinaryOperatorNode":
        return self._binary(BinaryOperatorKind.LEFT_SHIFT, other)

    def __rlshift__(self, other: Any) -> "BinaryOperatorNode":
        return self._reflected(BinaryOperatorKind.LEFT_SHIFT, other)

    def __rshift__(self, other: Any) -> "BinaryOperatorNode":
        return self._binary(BinaryOperatorKind.RIGHT_SHIFT, other)

    def __rrshift__(self, other: Any) -> "BinaryOperatorNode":
        return self._reflected(BinaryOperatorKind.RIGHT_SHIFT, other)

    def __floordiv__(self, other: Any) -> "BinaryOperatorNode":
        return self._binary(BinaryOperatorKind.FLOOR_DIVIDE, other)

    def __rfloordiv__(self, other: Any) -> "BinaryOperatorNode":
        return self._reflected(BinaryOperatorKind.FLOOR_DIVIDE, other)

    # String helpers
    def lower(self) -> "FunctionCallNode":
        """Build ``tolower(self)``."""
        return FunctionCallNode("tolower", (self,))

    def upper(self) -> "FunctionCallNode":
        """Build ``toupper(self)``."""
        return FunctionCallNode("toupper", (self,))

    def strip(self) -> "FunctionCallNode":
        """Build ``trim(self)``."""
        return FunctionCallNode("trim", (self,))

    def startswith(self, prefix: Any) -> "FunctionCallNode":
        """Build ``startswith(self, prefix)``."""
        return FunctionCallNode("startswith", (self, _wrap(prefix)))

    def endswith(self, suffix: Any) -> "FunctionCallNode":
        """Build ``endswith(self, suffix)``."""
        return FunctionCallNode("endswith", (self, _wrap(suffix)))

    def contains(self, value: Any) -> "FunctionCallNode":
        """Build ``contains(self, value)``."""
        return FunctionCallNode("contains", (self, _wrap(value)))


class ConstantNode(QueryNode):
    """A literal value."""

    __slots__ = ("value",)

    def __init__(self, value: Any) -> None:
        object.__setattr__(self, "value", value)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def _key(self) -> Tuple[Any, ...]:
        return ("constant", type(self.value), self.value)

    def __repr__(self) -> str:
        return repr(self.value)


class MemberAccessNode(QueryNode):
    """
    A reference to a field of the element type.

    :param path: Field names from the element outwards. More than one segment
        denotes a navigation path, e.g. ``("owner", "name")``.
    :type path: tuple[str, ...]

    Attribute access extends the path, so ``F.owner.name`` is a two-segment
    reference. The string helpers (``lower``, ``upper``, ``strip``,
    ``startswith``, ``endswith``, ``contains``) and ``equivalent`` remain
    methods; use item access (``F.owner["lower"]``) for a segment with one of
    those names.

    Calling a reference builds a function call on its parent, so
    ``F.title.normalize()`` becomes ``normalize(title)``. Whether the
    function is supported is decided when the query is translated.
    """

    __slots__ = ("_path",)

    def __init__(self, path: Tuple[str, ...]) -> None:
        if not path or not all(isinstance(p, str) and p for p in path):
            raise ValueError("A field reference needs at least one non-empty name")
        object.__setattr__(self, "_path", tuple(path))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __getattr__(self, name: str) -> "MemberAccessNode":
        if name.startswith("_"):
            raise AttributeError(name)
        return MemberAccessNode(self._path + (name,))

    def __getitem__(self, name: str) -> "MemberAccessNode":
        return MemberAccessNode(self._path + (name,))

    def __call__(self, *args: Any) -> "FunctionCallNode":
        if len(self._path) == 1:
            return FunctionCallNode(self._path[0], args)
        return FunctionCallNode(self._path[-1], (MemberAccessNode(self._path[:-1]),) + args)

    @property
    def _dotted(self) -> str:
        return ".".join(self._path)

    def _key(self) -> Tuple[Any, ...]:
        return ("member", self._path)

    def __repr__(self) -> str:
        return self._dotted


class UnaryOperatorNode(QueryNode):
    """A unary operator applied to one operand."""

    __slots__ = ("kind", "operand")

    def __init__(self, kind: UnaryOperatorKind, operand: QueryNode) -> None:
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "operand", _wrap(operand))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def _key(self) -> Tuple[Any, ...]:
        return ("unary", self.kind, self.operand._key())

    def __repr__(self) -> str:
        if self.kind is UnaryOperatorKind.NOT:
            return f"~{self.operand!r}"
        return f"-{self.operand!r}"


class BinaryOperatorNode(QueryNode):
    """A binary operator applied to two operands."""

    __slots__ = ("kind", "left", "right")

    def __init__(self, kind: BinaryOperatorKind, left: QueryNode, right: QueryNode) -> None:
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "left", _wrap(left))
        object.__setattr__(self, "right", _wrap(right))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def symbol(self) -> str:
        """The Python operator that built this node."""
        return _PYTHON_SYMBOLS[self.kind]

    def _key(self) -> Tuple[Any, ...]:
        return ("binary", self.kind, self.left._key(), self.right._key())

    def __repr__(self) -> str:
        return f"({self.left!r} {self.symbol} {self.right!r})"


class FunctionCallNode(QueryNode):
    """A call of a named function with positional arguments."""

    __slots__ = ("name", "arguments")

    def __init__(self, name: str, arguments: Tuple[QueryNode, ...]) -> None:
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "arguments", tuple(_wrap(a) for a in arguments))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def _key(self) -> Tuple[Any, ...]:
        return ("call", self.name, tuple(a._key() for a in self.arguments))

    def __repr__(self) -> str:
        return f"{self.name}({', '.join(repr(a) for a in self.arguments)})"


class _FieldRoot:
    """Entry point for field references: ``F.year`` or ``F["release_date"]``."""

    __slots__ = ()

    def __getattr__(self, name: str) -> MemberAccessNode:
        if name.startswith("_"):
            raise AttributeError(name)
        return MemberAccessNode((name,))

    def __getitem__(self, name: str) -> MemberAccessNode:
        return MemberAccessNode((name,))

    def __repr__(self) -> str:
        return "F"


F = _FieldRoot()


def field_ref(name: str) -> MemberAccessNode:
    """
    Build a field reference from a name.

    ``"owner.name"`` and ``"owner/name"`` both denote a navigation path.

    :param name: Field name or path.
    :type name: str
    :rtype: MemberAccessNode
    """
    if not isinstance(name, str) or not name.strip():
        raise ValueError("field name must be a non-empty string")
    return MemberAccessNode(tuple(name.replace("/", ".").split(".")))


__all__ = [
    "UnaryOperatorKind",
    "BinaryOperatorKind",
    "QueryNode",
    "ConstantNode",
    "MemberAccessNode",
    "UnaryOperatorNode",
    "BinaryOperatorNode",
    "FunctionCallNode",
    "F",
    "field_ref",
]
