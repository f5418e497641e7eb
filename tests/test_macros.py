"""
Tests for macro definition and invocation: call-by-name arguments,
parameter shadowing, #@ bodies and error wrapping.
"""

import pytest

from vtl import Template
from vtl.errors import EvaluationError

from tests.infrastructure import Counter, render


class TestMacroCalls:

    def test_simple_macro(self):
        assert render("#macro(m $a)[$a]#end#m(1)#m('x')") == "[1][x]"

    def test_macro_can_be_called_before_definition(self):
        assert render("#m()#macro(m)defined later#end") == "defined later"

    def test_parameters_with_commas(self):
        assert render("#macro(pair, $a, $b)$a=$b#end#pair('k', 'v')") == "k=v"

    def test_first_definition_wins(self):
        assert render("#macro(m)first#end#macro(m)second#end#m()") == "first"

    def test_macros_exposed_on_template(self):
        template = Template.from_string("#macro(greet $who)Hi $who#end")
        macro = template.macros["greet"]
        assert macro.parameter_names == ("who",)
        assert macro.definition_line == 1
        with pytest.raises(TypeError):
            template.macros["other"] = macro

    def test_recursive_macro(self):
        text = "#macro(count $n)$n#if ($n > 1)#set($m = $n - 1)#count($m)#end#end#count(3)"
        assert render(text) == "321"


class TestCallByName:

    def setup_method(self):
        self.counter = Counter()

    def test_argument_is_evaluated_on_each_use(self):
        assert render("#macro(twice $x)$x $x#end#twice($c.next())", c=self.counter) == "1 2"
        assert self.counter.calls == 2

    def test_unused_argument_is_never_evaluated(self):
        assert render("#macro(never $x)ok#end#never($c.next())", c=self.counter) == "ok"
        assert self.counter.calls == 0

    def test_argument_evaluated_in_caller_context(self):
        text = "#macro(show $x $y)$x,$y#end#set($y = 'outer')#show($y 'inner')"
        assert render(text) == "outer,inner"


class TestParameterShadowing:

    def test_set_shadows_parameter_until_exit(self):
        text = "#macro(m $p)#set($p = 'in')$p #end#m('arg')$p"
        assert render(text, p="outer") == "in outer"

    def test_foreach_over_parameter_name(self):
        text = "#macro(m $x)#foreach ($x in [1, 2])$x#end$x#end#m('arg')"
        assert render(text) == "12arg"


class TestBodyContent:

    def test_body_content(self):
        assert render("#macro(wrap)<$bodyContent>#end#@wrap()hi#end") == "<hi>"

    def test_body_content_sees_caller_variables(self):
        text = "#macro(each $items)#foreach ($item in $items)$bodyContent#end#end#@each([1, 2])($item)#end"
        assert render(text) == "(1)(2)"

    def test_body_content_cannot_be_dereferenced(self):
        with pytest.raises(EvaluationError, match="comes from #@wrap and cannot be dereferenced"):
            render("#macro(wrap)$bodyContent.x#end#@wrap()hi#end")


class TestMacroErrors:

    def test_undefined_macro(self):
        with pytest.raises(EvaluationError) as exc_info:
            render("#nope()")
        assert str(exc_info.value) == (
            "In expression on line 1: #nope is neither a standard directive nor a macro that has been defined"
        )

    def test_wrong_number_of_arguments(self):
        with pytest.raises(EvaluationError) as exc_info:
            render("#macro(m $a $b)#end#m(1)")
        assert str(exc_info.value) == "In expression on line 1: Wrong number of arguments to #m: expected 2, got 1"

    def test_error_inside_macro_is_wrapped(self):
        with pytest.raises(EvaluationError) as exc_info:
            render("#macro(m)\n$undefined#end#m()")
        error = exc_info.value
        assert str(error) == (
            "In macro #m defined on line 1: In expression on line 2: Undefined reference $undefined"
        )
        assert isinstance(error.__cause__, EvaluationError)
