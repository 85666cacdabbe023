# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Unit tests for the TableQuery builder and QuerySpec value."""

import unittest
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from Datasync.Client.core._error_codes import (
    VALIDATION_EXPRESSION_INVALID,
    VALIDATION_PARAMETER_BLANK,
    VALIDATION_PARAMETER_RESERVED,
    VALIDATION_PARAMETERS_EMPTY,
    VALIDATION_PROJECTION_EMPTY,
    VALIDATION_SKIP_NEGATIVE,
    VALIDATION_TAKE_NOT_POSITIVE,
)
from Datasync.Client.core.errors import UnsupportedExpressionError, ValidationError
from Datasync.Client.models.nodes import BinaryOperatorKind, F
from Datasync.Client.models.query import QuerySpec, TableQuery


@dataclass
class Movie:
    id: str = ""
    title: str = ""
    year: int = 0
    duration: int = 0
    rating: str = ""
    best_picture_winner: bool = False
    release_date: Optional[date] = None


@dataclass
class MovieSummary:
    name: str
    released: Optional[date] = None


class TestTableQueryImmutability(unittest.TestCase):
    """Every builder call returns a new query and leaves the receiver alone."""

    def test_where_returns_new_instance(self):
        """Test that where() does not modify the original query."""
        original = TableQuery(Movie)
        filtered = original.where(F.year > 2000)
        self.assertIsNot(original, filtered)
        self.assertIsNone(original.spec.filter)
        self.assertIsNotNone(filtered.spec.filter)

    def test_all_builders_leave_receiver_unchanged(self):
        """Test that the default query is still the default after chaining."""
        original = TableQuery(Movie)
        (
            original.where(F.year > 2000)
            .order_by(F.title)
            .then_by_descending(F.year)
            .select("id", "title")
            .skip(5)
            .take(10)
            .include_deleted_items()
            .include_total_count()
            .with_parameter("custom", "value")
        )
        self.assertEqual(original.spec, QuerySpec())
        self.assertEqual(original.to_query_string(), "")


class TestWhere(unittest.TestCase):
    """Tests for filter composition."""

    def test_where_composes_by_conjunction(self):
        """Test that consecutive where() calls are combined with 'and'."""
        q = TableQuery(Movie).where(F.year >= 1930).where(F.year <= 1939)
        self.assertEqual(q.spec.filter.kind, BinaryOperatorKind.AND)
        self.assertEqual(q.to_query_string(), "$filter=((year%20ge%201930)%20and%20(year%20le%201939))")

    def test_where_accepts_lambda(self):
        """Test that a callable receives the field root."""
        q = TableQuery(Movie).where(lambda m: m.rating == "PG")
        self.assertTrue(q.spec.filter.equivalent(F.rating == "PG"))

    def test_where_accepts_boolean_constant(self):
        """Test that a bare boolean becomes a constant filter."""
        self.assertEqual(TableQuery(Movie).where(True).to_query_string(), "$filter=true")

    def test_where_none_is_rejected(self):
        """Test that a None predicate is a validation error."""
        with self.assertRaises(ValidationError) as ctx:
            TableQuery(Movie).where(None)
        self.assertEqual(ctx.exception.subcode, VALIDATION_EXPRESSION_INVALID)

    def test_where_lambda_returning_non_expression_is_rejected(self):
        """Test that a callable must build an expression."""
        with self.assertRaises(ValidationError):
            TableQuery(Movie).where(lambda m: "year > 2000")

    def test_where_lambda_returning_bool_is_rejected(self):
        """Test that a comparison Python already evaluated is not sent as a constant."""
        with self.assertRaises(ValidationError) as ctx:
            TableQuery(Movie).where(lambda m: len("x") == 1)
        self.assertEqual(ctx.exception.subcode, VALIDATION_EXPRESSION_INVALID)

    def test_where_navigation_through_name_segment(self):
        """Test that m.owner.name is a field path, not a node attribute."""
        q = TableQuery().where(lambda m: m.owner.name == "x")
        self.assertTrue(q.spec.filter.equivalent(F.owner["name"] == "x"))
        self.assertEqual(q.to_query_string(), "$filter=(owner%2Fname%20eq%20'x')")

    def test_where_unknown_method_fails_translation(self):
        """Test that calling an unsupported method builds, then fails to translate."""
        q = TableQuery(Movie).where(lambda m: m.title.normalize() == "x")
        with self.assertRaises(UnsupportedExpressionError) as ctx:
            q.to_query_string()
        self.assertEqual(ctx.exception.clause, "filter")

    def test_where_supported_method_call_translates(self):
        """Test that a call of a known function on a field translates."""
        q = TableQuery(Movie).where(lambda m: m.title.concat("!") == "Alien!")
        self.assertEqual(q.to_query_string(), "$filter=(concat(title,'!')%20eq%20'Alien!')")


class TestOrdering(unittest.TestCase):
    """Tests for order_by / then_by."""

    def test_order_by_then_by_descending(self):
        """Test primary and secondary sort keys."""
        q = TableQuery(Movie).order_by(F.id).then_by_descending(F.year)
        self.assertEqual(q.to_query_string(), "$orderby=id,year%20desc")

    def test_order_by_replaces_previous_ordering(self):
        """Test that order_by() discards earlier keys."""
        q = TableQuery(Movie).order_by(F.id).then_by(F.title).order_by_descending(F.year)
        self.assertEqual(len(q.spec.ordering), 1)
        self.assertFalse(q.spec.ordering[0].ascending)

    def test_then_by_without_order_by_is_primary(self):
        """Test that then_by() on an empty ordering starts it."""
        q = TableQuery(Movie).then_by("title")
        self.assertEqual(q.to_query_string(), "$orderby=title")

    def test_string_keys_use_naming_policy(self):
        """Test that string keys are resolved like field references."""
        q = TableQuery(Movie).order_by("release_date")
        self.assertEqual(q.to_query_string(), "$orderby=releaseDate")

    def test_computed_order_key_fails_translation(self):
        """Test that order keys must be plain fields."""
        q = TableQuery(Movie).order_by(lambda m: m.year + 1)
        with self.assertRaises(UnsupportedExpressionError) as ctx:
            q.to_query_string()
        self.assertEqual(ctx.exception.clause, "orderby")

    def test_order_by_navigation_path(self):
        """Test ordering by a nested field reached by attribute access."""
        q = TableQuery().order_by(lambda m: m.owner.name).then_by_descending(lambda m: m.owner.kind)
        self.assertEqual(q.to_query_string(), "$orderby=owner%2Fname,owner%2Fkind%20desc")


class TestPaging(unittest.TestCase):
    """Tests for skip and take."""

    def test_skip_is_cumulative(self):
        """Test skip(5).skip(20) == 25."""
        self.assertEqual(TableQuery().skip(5).skip(20).spec.skip, 25)

    def test_skip_zero_is_allowed(self):
        """Test that skip(0) is valid and omitted from the query string."""
        q = TableQuery().skip(0)
        self.assertEqual(q.spec.skip, 0)
        self.assertEqual(q.to_query_string(), "")

    def test_skip_negative_rejected(self):
        """Test that a negative skip is a validation error."""
        with self.assertRaises(ValidationError) as ctx:
            TableQuery().skip(-1)
        self.assertEqual(ctx.exception.subcode, VALIDATION_SKIP_NEGATIVE)

    def test_take_is_minimum_wins(self):
        """Test that the smallest take wins regardless of order."""
        self.assertEqual(TableQuery().take(5).take(20).spec.take, 5)
        self.assertEqual(TableQuery().take(20).take(5).spec.take, 5)

    def test_take_not_positive_rejected(self):
        """Test that take(0) and take(-1) are validation errors."""
        for n in (0, -1):
            with self.assertRaises(ValidationError) as ctx:
                TableQuery().take(n)
            self.assertEqual(ctx.exception.subcode, VALIDATION_TAKE_NOT_POSITIVE)

    def test_skip_and_take_serialize(self):
        """Test $skip/$top output."""
        self.assertEqual(TableQuery().skip(25).take(5).to_query_string(), "$skip=25&$top=5")


class TestFlagsAndParameters(unittest.TestCase):
    """Tests for flags and caller parameters."""

    def test_flags_serialize(self):
        """Test $count and __includedeleted output."""
        q = TableQuery().include_total_count().include_deleted_items()
        self.assertEqual(q.to_query_string(), "$count=true&__includedeleted=true")

    def test_disabling_absent_flag_is_noop(self):
        """Test that disabling a flag that was never set changes nothing."""
        q = TableQuery().include_deleted_items(False).include_total_count(False)
        self.assertEqual(q.spec, QuerySpec())

    def test_disabling_flag_clears_it(self):
        """Test that a flag can be cleared after being set."""
        q = TableQuery().include_total_count().include_total_count(False)
        self.assertEqual(q.to_query_string(), "")

    def test_reserved_keys_rejected(self):
        """Test that $ and __ prefixed keys are rejected."""
        for key in ("$count", "__includedeleted"):
            with self.assertRaises(ValidationError) as ctx:
                TableQuery().with_parameter(key, "true")
            self.assertEqual(ctx.exception.subcode, VALIDATION_PARAMETER_RESERVED)

    def test_blank_key_or_value_rejected(self):
        """Test that blank keys and values are rejected."""
        for key, value in (("", "v"), ("   ", "v"), ("k", ""), ("k", "  "), ("k", None)):
            with self.assertRaises(ValidationError) as ctx:
                TableQuery().with_parameter(key, value)
            self.assertEqual(ctx.exception.subcode, VALIDATION_PARAMETER_BLANK)

    def test_batch_is_all_or_nothing(self):
        """Test that one invalid entry rejects the whole batch."""
        q = TableQuery().with_parameter("a", "1")
        with self.assertRaises(ValidationError):
            q.with_parameters({"b": "2", "$top": "3"})
        self.assertEqual(q.spec.parameter_map, {"a": "1"})

    def test_empty_batch_rejected(self):
        """Test that an empty mapping is rejected."""
        with self.assertRaises(ValidationError) as ctx:
            TableQuery().with_parameters({})
        self.assertEqual(ctx.exception.subcode, VALIDATION_PARAMETERS_EMPTY)

    def test_parameter_overwrite(self):
        """Test that a repeated key overwrites the value."""
        q = TableQuery().with_parameter("a", "1").with_parameter("b", "2").with_parameter("a", "3")
        self.assertEqual(q.spec.parameter_map, {"a": "3", "b": "2"})

    def test_parameters_follow_builtin_components(self):
        """Test that caller parameters come last, keys verbatim, values encoded."""
        q = TableQuery().with_parameter("search", "two words").take(5)
        self.assertEqual(q.to_query_string(), "$top=5&search=two%20words")
        self.assertEqual(q.to_query_string(include_parameters=False), "$top=5")


class TestSelect(unittest.TestCase):
    """Tests for projection."""

    def test_select_names(self):
        """Test selecting fields by name."""
        q = TableQuery(Movie).select("id", "title")
        self.assertEqual(q.to_query_string(), "$select=id,title")
        self.assertEqual([name for name, _ in q.spec.selection], ["id", "title"])

    def test_select_lambda_tuple(self):
        """Test a callable returning several fields."""
        q = TableQuery(Movie).select(lambda m: (m.id, m.release_date))
        self.assertEqual(q.to_query_string(), "$select=id,releaseDate")

    def test_select_named_into_type(self):
        """Test renamed fields and a projection type."""
        q = TableQuery(Movie).select(name=F.title, released=F.release_date, into=MovieSummary)
        self.assertIs(q.projection_type, MovieSummary)
        self.assertIs(q.element_type, Movie)
        decode = q.item_decoder()
        item = decode({"id": "x", "title": "Alien", "releaseDate": "1979-05-25"})
        self.assertEqual(item, MovieSummary(name="Alien", released="1979-05-25"))

    def test_select_without_into_decodes_dicts(self):
        """Test that projections default to dict items."""
        decode = TableQuery(Movie).select("title").item_decoder()
        self.assertEqual(decode({"id": "x", "title": "Alien"}), {"title": "Alien"})

    def test_select_nothing_rejected(self):
        """Test that an empty projection is a validation error."""
        with self.assertRaises(ValidationError) as ctx:
            TableQuery(Movie).select()
        self.assertEqual(ctx.exception.subcode, VALIDATION_PROJECTION_EMPTY)

    def test_select_duplicate_wire_names_once(self):
        """Test that a field selected twice appears once in $select."""
        q = TableQuery(Movie).select("title", heading=F.title)
        self.assertEqual(q.to_query_string(), "$select=title")

    def test_select_navigation_path(self):
        """Test that a nested field keeps its last segment as output name."""
        q = TableQuery().select(lambda m: m.owner.name)
        self.assertEqual(q.to_query_string(), "$select=owner%2Fname")
        self.assertEqual([name for name, _ in q.spec.selection], ["name"])


class TestQuerySpecEquality(unittest.TestCase):
    """Tests for QuerySpec value semantics."""

    def test_equal_when_built_the_same_way(self):
        """Test structural equality of specs."""
        a = TableQuery(Movie).where(F.year > 2000).order_by(F.title).take(5)
        b = TableQuery(Movie).where(F.year > 2000).order_by(F.title).take(5)
        self.assertEqual(a.spec, b.spec)
        self.assertEqual(a, b)

    def test_parameter_order_does_not_matter(self):
        """Test that parameters compare as a set."""
        a = TableQuery().with_parameter("a", "1").with_parameter("b", "2")
        b = TableQuery().with_parameter("b", "2").with_parameter("a", "1")
        self.assertEqual(a.spec, b.spec)
        self.assertEqual(
            set(a.to_query_string().split("&")),
            set(b.to_query_string().split("&")),
        )

    def test_different_filters_not_equal(self):
        """Test that different filter trees compare unequal."""
        self.assertNotEqual(TableQuery().where(F.a == 1).spec, TableQuery().where(F.a == 2).spec)

    def test_queries_are_unhashable(self):
        """Test that queries compare by value but cannot be hashed."""
        self.assertEqual(TableQuery(), TableQuery())
        with self.assertRaises(TypeError):
            hash(TableQuery())
        with self.assertRaises(TypeError):
            hash(TableQuery().spec)


class TestExecute(unittest.TestCase):
    """Tests for execute() binding."""

    def test_execute_without_binding_raises(self):
        """Test that a standalone query cannot execute itself."""
        with self.assertRaises(RuntimeError):
            TableQuery(Movie).execute()


if __name__ == "__main__":
    unittest.main()
