"""
Unit tests for PythonHost and the string forms of host values.
"""

import pytest

from vtl import Template
from vtl.errors import AmbiguousMemberError, EvaluationError, HostAccessError, NoSuchMemberError
from vtl.host import HostValues, PythonHost, is_integer, to_string, type_name

from tests.infrastructure import Person, render


class TestToString:

    @pytest.mark.parametrize("value,expected", [
        (None, "null"),
        (True, "true"),
        (False, "false"),
        (42, "42"),
        ("text", "text"),
        ([1, "a"], "[1, a]"),
        ((1, None), "[1, null]"),
        (range(1, 4), "[1, 2, 3]"),
        ({"a": 1, "b": [True]}, "{a=1, b=[true]}"),
        (frozenset(), "[]"),
    ])
    def test_string_forms(self, value, expected):
        assert to_string(value) == expected


class TestPythonHost:

    def setup_method(self):
        self.host = PythonHost()

    def test_is_a_host_values(self):
        assert isinstance(self.host, HostValues)

    def test_snake_case_property(self):
        person = Person("Ann", ["a"])
        assert self.host.get_property(person, "hasTags") is True

    def test_private_names_are_not_exposed(self):
        with pytest.raises(NoSuchMemberError):
            self.host.call_method(Person("Ann"), "_secret", [])

    def test_signature_cache_is_shared_between_instances(self):
        first, second = Person("Ann"), Person("Bob")
        assert self.host.call_method(first, "greet", ["x"]) == "Ann greets x"
        assert self.host.call_method(second, "greet", ["y"]) == "Bob greets y"
        assert (Person, "greet") in self.host._signatures

    def test_non_callable_attribute_is_not_a_method(self):
        with pytest.raises(NoSuchMemberError, match="no method name in"):
            self.host.call_method(Person("Ann"), "name", [])

    def test_wrong_arity(self):
        with pytest.raises(HostAccessError, match="parameters for method greet have wrong types"):
            self.host.call_method(Person("Ann"), "greet", [])

    def test_index_on_tuple(self):
        assert self.host.index(("a", "b"), -2) == "a"

    def test_bool_is_not_a_list_index(self):
        with pytest.raises(HostAccessError, match="list index is not an Integer: true"):
            self.host.index(["a", "b"], True)

class Unprintable:
    def __str__(self) -> str:
        raise ValueError("cannot print")


class Cursor:
    """Два разных метода, на которые отображается одно имя свойства."""

    def hasNext(self) -> bool:
        return True

    def has_next(self) -> bool:
        return False


class AliasedCursor:

    def has_next(self) -> bool:
        return True

    hasNext = has_next


class FailingHost(PythonHost):

    def to_string(self, value):
        raise RuntimeError("no strings here")


class TestStringConversionErrors:

    def test_failing_str_in_output(self):
        with pytest.raises(EvaluationError) as exc_info:
            render("$b", b=Unprintable())
        assert str(exc_info.value) == "In expression on line 1: ValueError: cannot print"
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_failing_str_in_concatenation(self):
        with pytest.raises(EvaluationError, match="ValueError: cannot print"):
            render("#set($s = 'a' + $b)", b=Unprintable())

    def test_failing_str_in_comparison(self):
        with pytest.raises(EvaluationError, match="ValueError: cannot print"):
            render("#if ($b == 1)x#end", b=Unprintable())

    def test_failing_custom_host(self):
        template = Template.from_string("a\n$x")
        with pytest.raises(EvaluationError) as exc_info:
            template.evaluate({"x": 1}, host=FailingHost())
        assert str(exc_info.value) == "In expression on line 2: RuntimeError: no strings here"
        assert exc_info.value.line_number == 2


class TestAmbiguousProperty:

    def setup_method(self):
        self.host = PythonHost()

    def test_distinct_candidates_are_ambiguous(self):
        with pytest.raises(AmbiguousMemberError) as exc_info:
            self.host.get_property(Cursor(), "hasNext")
        assert str(exc_info.value) == "ambiguous method invocation, could be one of: hasNext, has_next"

    def test_aliases_are_not_ambiguous(self):
        assert self.host.get_property(AliasedCursor(), "hasNext") is True

    def test_single_candidate_is_used(self):
        assert self.host.get_property(Cursor(), "has_next") is False

    def test_ambiguity_in_template(self):
        with pytest.raises(EvaluationError) as exc_info:
            render("$c.hasNext", c=Cursor())
        assert str(exc_info.value) == (
            "In expression on line 1: In $c.hasNext: "
            "ambiguous method invocation, could be one of: hasNext, has_next"
        )
        assert isinstance(exc_info.value.__cause__, AmbiguousMemberError)


def test_is_integer():
    assert is_integer(1)
    assert not is_integer(True)
    assert not is_integer(1.0)


def test_type_name():
    assert type_name(1) == "int"
    assert type_name(Person("Ann")) == "tests.infrastructure.testing_utils.Person"
