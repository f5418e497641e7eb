"""
Тесты директив #set, #if, #foreach, #define и #break.
"""

import pytest

from vtl import Template
from vtl.errors import EvaluationError

from tests.infrastructure import render


class TestSet:

    def test_set_and_read(self):
        assert render("#set($x = 'a')$x") == "a"

    def test_set_does_not_modify_caller_variables(self):
        variables = {"a": 1}
        Template.from_string("#set($a = 2)#set($b = 3)$a$b").evaluate(variables)
        assert variables == {"a": 1}

    def test_set_to_null_then_render(self):
        with pytest.raises(EvaluationError, match=r"Null value for \$x"):
            render("#set($x = $n)$x", n=None)


class TestIf:

    def test_if_else(self):
        template = Template.from_string("#if ($x == 1)one#elseif ($x == 2)two#else\nother#end")
        assert template.evaluate({"x": 1}) == "one"
        assert template.evaluate({"x": 2}) == "two"
        assert template.evaluate({"x": 3}) == "other"

    def test_nested_if(self):
        text = "#if ($a)#if ($b)both#else\nonly a#end#end"
        assert render(text, a=True, b=False) == "only a"
        assert render(text, a=False, b=True) == ""


class TestForEach:

    def test_iterate_list(self):
        assert render("#foreach ($i in $items)<$i>#end", items=["a", "b"]) == "<a><b>"

    def test_separator_with_has_next(self):
        assert render("#foreach ($i in [1..3])$i#if ($foreach.hasNext),#end#end") == "1,2,3"

    def test_first_and_last(self):
        text = "#foreach ($i in [1, 2, 3])#if ($foreach.first)[#end$i#if ($foreach.last)]#end#end"
        assert render(text) == "[123]"

    def test_index_and_count(self):
        text = "#foreach ($a in [1, 2])#foreach ($b in ['x'])$foreach.index#end$foreach.count#end"
        assert render(text) == "0102"

    def test_mapping_iterates_values(self):
        assert render("#foreach ($v in $m)$v#end", m={"a": 1, "b": 2}) == "12"

    def test_null_collection_is_skipped(self):
        assert render("#foreach ($i in $n)x#end", n=None) == ""

    def test_not_iterable(self):
        with pytest.raises(EvaluationError) as exc_info:
            render("#foreach ($i in $s)x#end", s="abc")
        assert str(exc_info.value) == "In expression on line 1: Not iterable: abc"

    def test_loop_variable_is_restored(self):
        assert render("#foreach ($i in [1, 2])$i#end$i", i="keep") == "12keep"
        assert render("#foreach ($i in [1, 2])$i#end#if ($i)defined#else\nundefined#end") == "12undefined"

    def test_set_inside_loop_survives(self):
        assert render("#foreach ($i in [1, 2, 3])#set($last = $i)#end$last") == "3"

    def test_generator_collection(self):
        assert render("#foreach ($i in $g)$i#if ($foreach.hasNext)-#end#end", g=(n * n for n in range(3))) == "0-1-4"


class TestDefine:

    def test_define_renders_on_each_read(self):
        text = "#define($d)v=$v#end#set($v = 1)$d #set($v = 2)$d"
        assert render(text) == "v=1v=2"

    def test_defined_block_cannot_be_dereferenced(self):
        with pytest.raises(EvaluationError) as exc_info:
            render("#define($d)x#end$d.length")
        assert str(exc_info.value) == (
            "In expression on line 1: In $d.length: $d comes from #define and cannot be dereferenced"
        )

    def test_defined_block_in_concatenation(self):
        assert render("#define($d)body#end#set($s = 'a ' + $d)$s") == "a body"


class TestBreak:

    def test_break_stops_innermost_loop(self):
        assert render("#foreach ($i in [1..5])#if ($i == 3)#break#end$i#end") == "12"

    def test_break_foreach_scope(self):
        text = "#foreach ($i in [1, 2])#foreach ($j in [1, 2])#break($foreach)$j#end$i#end"
        assert render(text) == "12"

    def test_break_at_top_level_keeps_partial_output(self):
        assert render("before#break after") == "before"

    def test_break_with_unsupported_scope(self):
        with pytest.raises(EvaluationError, match=r"Argument to #break is not a supported scope: \$i"):
            render("#foreach ($i in [1])#break($i)#end")

    def test_foreach_scope_outside_foreach(self):
        text = "#foreach ($i in [1])#set($f = $foreach)#end#break($f)"
        with pytest.raises(EvaluationError) as exc_info:
            render(text)
        assert str(exc_info.value) == "In expression on line 1: #break($foreach) is not inside a #foreach"

    def test_template_is_reusable_after_break(self):
        template = Template.from_string("#foreach ($i in [1, 2])$i#break#end!")
        assert template.evaluate() == "1!"
        assert template.evaluate() == "1!"
