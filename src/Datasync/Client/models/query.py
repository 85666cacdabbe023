# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Immutable table query and its fluent builder.

:class:`QuerySpec` is the value describing one query. :class:`TableQuery`
wraps a spec together with the element type it is evaluated against and, when
created through ``client.query.builder(...)``, the table it runs on. Every
builder method returns a new :class:`TableQuery`; the receiver never changes.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Tuple, Union, TYPE_CHECKING

from ..core._error_codes import (
    VALIDATION_EXPRESSION_INVALID,
    VALIDATION_PARAMETER_BLANK,
    VALIDATION_PARAMETER_RESERVED,
    VALIDATION_PARAMETERS_EMPTY,
    VALIDATION_PROJECTION_EMPTY,
    VALIDATION_SKIP_NEGATIVE,
    VALIDATION_TAKE_NOT_POSITIVE,
)
from ..core.errors import ValidationError
from .nodes import BinaryOperatorKind, BinaryOperatorNode, ConstantNode, F, MemberAccessNode, QueryNode, field_ref

if TYPE_CHECKING:
    from .pageable import Pageable

Predicate = Union[QueryNode, bool, Callable[[Any], Any]]
FieldSelector = Union[str, QueryNode, Callable[[Any], Any]]

RESERVED_PREFIXES = ("$", "__")


@dataclass(frozen=True, eq=False)
class OrderByNode:
    """One sort key: a field reference and its direction."""

    member: QueryNode
    ascending: bool = True

    def _key(self) -> Tuple[Any, ...]:
        return (self.member._key(), self.ascending)


@dataclass(frozen=True, eq=False)
class QuerySpec:
    """
    Immutable description of a table query.

    :param filter: Conjunction of every ``where`` predicate, or ``None``.
    :param ordering: Sort keys, primary key first.
    :param selection: ``(output_name, field)`` pairs, or ``None`` for all fields.
    :param skip: Items to skip; cumulative across ``skip`` calls.
    :param take: Maximum items to return, or ``None``.
    :param include_deleted: Ask for soft-deleted items too.
    :param include_total_count: Ask for the total count of matching items.
    :param parameters: Additional query parameters, in insertion order.

    Two specs are equal when all of the above are equal; filter trees are
    compared structurally.
    """

    filter: Optional[QueryNode] = None
    ordering: Tuple[OrderByNode, ...] = ()
    selection: Optional[Tuple[Tuple[str, QueryNode], ...]] = None
    skip: int = 0
    take: Optional[int] = None
    include_deleted: bool = False
    include_total_count: bool = False
    parameters: Tuple[Tuple[str, str], ...] = ()

    def _key(self) -> Tuple[Any, ...]:
        return (
            None if self.filter is None else self.filter._key(),
            tuple(o._key() for o in self.ordering),
            None if self.selection is None else tuple((n, m._key()) for n, m in self.selection),
            self.skip,
            self.take,
            self.include_deleted,
            self.include_total_count,
            tuple(sorted(self.parameters)),
        )

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, QuerySpec):
            return NotImplemented
        return self._key() == other._key()

    def __ne__(self, other: Any) -> bool:
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    __hash__ = None  # type: ignore[assignment]

    @property
    def parameter_map(self) -> dict:
        """Caller parameters as a new dict, in insertion order."""
        return dict(self.parameters)


def _resolve_expression(value: Any, what: str) -> QueryNode:
    if value is None:
        raise ValidationError(f"{what} must not be None", subcode=VALIDATION_EXPRESSION_INVALID)
    if isinstance(value, QueryNode):
        return value
    if isinstance(value, bool):
        return ConstantNode(value)
    if callable(value):
        result = value(F)
        # A bool here means a comparison was evaluated by Python instead of building a node.
        if not isinstance(result, QueryNode):
            raise ValidationError(
                f"{what} must build a query expression, got {type(result).__name__}",
                subcode=VALIDATION_EXPRESSION_INVALID,
            )
        return result
    raise ValidationError(
        f"{what} must be a query expression or a callable, got {type(value).__name__}",
        subcode=VALIDATION_EXPRESSION_INVALID,
    )


def _resolve_field(value: Any, what: str) -> QueryNode:
    if isinstance(value, str):
        try:
            return field_ref(value)
        except ValueError as exc:
            raise ValidationError(f"{what}: {exc}", subcode=VALIDATION_EXPRESSION_INVALID) from None
    return _resolve_expression(value, what)


def _output_name(node: QueryNode) -> str:
    if isinstance(node, MemberAccessNode):
        return node._path[-1]
    return repr(node)


@dataclass(frozen=True)
class TableQuery:
    """
    Fluent, immutable builder for table queries.

    :param element_type: Dataclass describing the table's items, ``dict`` or
        ``None`` for untyped access.
    :param spec: Query value built so far.
    :type spec: QuerySpec
    :param projection_type: Type receiving projected items; set by :meth:`select`.

    Example:
        Build and execute a query (via client)::

            from Datasync.Client.models.nodes import F

            movies = (client.query.builder("movies", Movie)
                      .where(F.year >= 1930)
                      .where(lambda m: m.rating == "PG")
                      .order_by_descending(F.year)
                      .then_by("title")
                      .take(10)
                      .execute())
            for movie in movies:
                print(movie.title)

        Build a standalone query::

            query = TableQuery(Movie).where(F.id == "foo").skip(25)
            query.to_query_string()  # "$filter=(id%20eq%20'foo')&$skip=25"
    """

    element_type: Optional[type] = None
    spec: QuerySpec = field(default_factory=QuerySpec)
    projection_type: Optional[type] = None
    property_naming: Optional[str] = "camelCase"
    _table_ops: Any = field(default=None, compare=False, repr=False)

    __hash__ = None  # type: ignore[assignment]

    def _with(self, **changes: Any) -> "TableQuery":
        return dataclasses.replace(self, spec=dataclasses.replace(self.spec, **changes))

    # ---------------- filtering ----------------

    def where(self, predicate: Predicate) -> "TableQuery":
        """
        Add a filter predicate; repeated calls are combined with ``and``.

        :param predicate: Expression built from :data:`~Datasync.Client.models.nodes.F`,
            or a callable receiving the field root, e.g. ``lambda m: m.year > 2000``.
        :return: New query.
        :rtype: TableQuery
        :raises ~Datasync.Client.core.errors.ValidationError: If the predicate is
            ``None`` or does not build an expression.
        """
        node = _resolve_expression(predicate, "predicate")
        current = self.spec.filter
        if current is not None:
            node = BinaryOperatorNode(BinaryOperatorKind.AND, current, node)
        return self._with(filter=node)

    # ---------------- ordering ----------------

    def order_by(self, key: FieldSelector) -> "TableQuery":
        """
        Sort ascending by ``key``, replacing any previous ordering.

        :param key: Field name, field reference or callable receiving the field root.
        :rtype: TableQuery
        """
        return self._with(ordering=(OrderByNode(_resolve_field(key, "order key"), True),))

    def order_by_descending(self, key: FieldSelector) -> "TableQuery":
        """Sort descending by ``key``, replacing any previous ordering."""
        return self._with(ordering=(OrderByNode(_resolve_field(key, "order key"), False),))

    def then_by(self, key: FieldSelector) -> "TableQuery":
        """
        Add an ascending secondary sort key.

        On a query without ordering this behaves like :meth:`order_by`.
        """
        return self._with(ordering=self.spec.ordering + (OrderByNode(_resolve_field(key, "order key"), True),))

    def then_by_descending(self, key: FieldSelector) -> "TableQuery":
        """Add a descending secondary sort key."""
        return self._with(ordering=self.spec.ordering + (OrderByNode(_resolve_field(key, "order key"), False),))

    # ---------------- projection ----------------

    def select(self, *fields: FieldSelector, into: Optional[type] = None, **named: FieldSelector) -> "TableQuery":
        """
        Restrict the fields returned and change the shape of result items.

        Positional fields keep their own name; keyword fields are renamed. A
        callable may return a single field, a tuple or list of fields, or a
        dict of ``output_name -> field``.

        :param fields: Field names, field references or callables.
        :param into: Dataclass built from each projected item. Defaults to ``dict``.
        :type into: type or None
        :param named: Output name to field mapping.
        :return: New query whose items are ``into`` instances or dicts.
        :rtype: TableQuery
        :raises ~Datasync.Client.core.errors.ValidationError: If no field is selected.

        Example::

            query.select("id", "title")
            query.select(lambda m: (m.id, m.title))
            query.select(name=F.title, released=F.release_date, into=MovieSummary)
        """
        selection = []
        for item in fields:
            if callable(item) and not isinstance(item, (str, QueryNode)):
                result = item(F)
                if isinstance(result, dict):
                    selection.extend((str(k), _resolve_field(v, "selection")) for k, v in result.items())
                    continue
                nodes = result if isinstance(result, (tuple, list)) else (result,)
                for node in nodes:
                    node = _resolve_field(node, "selection")
                    selection.append((_output_name(node), node))
                continue
            node = _resolve_field(item, "selection")
            selection.append((_output_name(node), node))
        for name, item in named.items():
            selection.append((name, _resolve_field(item, "selection")))
        if not selection:
            raise ValidationError("select requires at least one field", subcode=VALIDATION_PROJECTION_EMPTY)
        return dataclasses.replace(
            self,
            spec=dataclasses.replace(self.spec, selection=tuple(selection)),
            projection_type=into,
        )

    # ---------------- paging ----------------

    def skip(self, n: int) -> "TableQuery":
        """
        Skip ``n`` more items. Repeated calls accumulate.

        :param n: Non-negative number of items.
        :type n: int
        :raises ~Datasync.Client.core.errors.ValidationError: If ``n`` is negative.
        """
        if isinstance(n, bool) or not isinstance(n, int) or n < 0:
            raise ValidationError(f"skip count must be a non-negative integer, got {n!r}", subcode=VALIDATION_SKIP_NEGATIVE)
        return self._with(skip=self.spec.skip + n)

    def take(self, n: int) -> "TableQuery":
        """
        Return at most ``n`` items. Repeated calls keep the smallest limit.

        :param n: Positive number of items.
        :type n: int
        :raises ~Datasync.Client.core.errors.ValidationError: If ``n`` is not positive.
        """
        if isinstance(n, bool) or not isinstance(n, int) or n <= 0:
            raise ValidationError(f"take count must be a positive integer, got {n!r}", subcode=VALIDATION_TAKE_NOT_POSITIVE)
        current = self.spec.take
        return self._with(take=n if current is None else min(current, n))

    # ---------------- flags ----------------

    def include_deleted_items(self, enabled: bool = True) -> "TableQuery":
        """Include soft-deleted items in the results."""
        return self._with(include_deleted=bool(enabled))

    def include_total_count(self, enabled: bool = True) -> "TableQuery":
        """Ask the service for the total number of matching items (see ``Pageable.count``)."""
        return self._with(include_total_count=bool(enabled))

    # ---------------- parameters ----------------

    @staticmethod
    def _check_parameter(key: Any, value: Any) -> None:
        if not isinstance(key, str) or not key.strip():
            raise ValidationError("parameter name must be a non-blank string", subcode=VALIDATION_PARAMETER_BLANK)
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(
                f"value of parameter '{key}' must be a non-blank string", subcode=VALIDATION_PARAMETER_BLANK
            )
        if key.startswith(RESERVED_PREFIXES):
            raise ValidationError(
                f"parameter name '{key}' is reserved; names must not start with '$' or '__'",
                subcode=VALIDATION_PARAMETER_RESERVED,
            )

    def with_parameter(self, key: str, value: str) -> "TableQuery":
        """
        Add a query parameter sent after the OData options.

        Setting an existing key replaces its value.

        :raises ~Datasync.Client.core.errors.ValidationError: If the key or
            value is blank, or the key starts with ``$`` or ``__``.
        """
        return self.with_parameters({key: value})

    def with_parameters(self, parameters: Mapping[str, str]) -> "TableQuery":
        """
        Add several query parameters. Nothing is added unless all are valid.

        :param parameters: Name to value mapping, in the order to send them.
        :type parameters: Mapping[str, str]
        :raises ~Datasync.Client.core.errors.ValidationError: If the mapping is
            empty or any entry is invalid.
        """
        if parameters is None or not len(parameters):
            raise ValidationError("parameters must not be empty", subcode=VALIDATION_PARAMETERS_EMPTY)
        for key, value in parameters.items():
            self._check_parameter(key, value)
        merged = dict(self.spec.parameters)
        merged.update(parameters)
        return self._with(parameters=tuple(merged.items()))

    # ---------------- output ----------------

    def to_query_string(self, include_parameters: bool = True) -> str:
        """
        Serialize this query to an OData query string (without the leading ``?``).

        :param include_parameters: Append caller parameters added with
            :meth:`with_parameter`.
        :type include_parameters: bool
        :rtype: str
        :raises ~Datasync.Client.core.errors.QueryTranslationError: If an
            expression cannot be expressed in OData.
        """
        from ..data._serializer import serialize
        from .schema import ElementSchema

        schema = ElementSchema.for_type(self.element_type, self.property_naming)
        return serialize(self.spec, schema, include_parameters=include_parameters)

    def item_decoder(self) -> Callable[[dict], Any]:
        """Return the function turning one wire item into a result item of this query."""
        from ..data._translator import selection_columns
        from .schema import ElementSchema, projection_decoder

        schema = ElementSchema.for_type(self.element_type, self.property_naming)
        if self.spec.selection is None:
            return schema.from_wire
        return projection_decoder(selection_columns(self.spec.selection, schema), self.projection_type)

    def execute(self, *, cancel_event: Any = None) -> "Pageable[Any]":
        """
        Run the query and return a lazily fetched result stream.

        Only available when the query was created via ``client.query.builder(table)``.
        Nothing is sent until the stream is iterated.

        :param cancel_event: Optional :class:`threading.Event` cancelling the
            stream before its next fetch.
        :rtype: ~Datasync.Client.models.pageable.Pageable
        :raises RuntimeError: If the query was not created via ``client.query.builder()``.
        :raises ~Datasync.Client.core.errors.QueryTranslationError: If the
            query cannot be serialized.
        """
        if self._table_ops is None:
            raise RuntimeError(
                "Cannot execute: query was not created via client.query.builder(). "
                "Use client.query.execute(table, query) instead."
            )
        ops, table = self._table_ops
        return ops.execute(table, self, cancel_event=cancel_event)


__all__ = ["OrderByNode", "QuerySpec", "TableQuery"]
