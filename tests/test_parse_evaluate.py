"""
Тесты #parse и #evaluate: вложенные шаблоны, кэш разбора, перенос макросов
и изоляция вычислений одного шаблона.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from vtl import MappingResourceOpener, Template
from vtl.errors import EvaluationError

from tests.infrastructure import ClosingTrackingReader, CountingOpener, render, render_resources


class TestParse:

    def test_nested_template_is_rendered_inline(self):
        resources = {"main": "a#parse('inner')c", "inner": "b"}
        assert render_resources(resources, "main") == "abc"

    def test_nested_template_sees_variables(self):
        resources = {"main": "#set($x = 1)#parse($name)", "inner": "x=$x y=$y"}
        assert render_resources(resources, "main", {"name": "inner", "y": 2}) == "x=1 y=2"

    def test_nested_template_parsed_once(self, counting_opener: CountingOpener):
        template = Template.parse_from("main", counting_opener)
        assert template.evaluate() == "[1][2][3]"
        assert template.evaluate() == "[1][2][3]"
        assert counting_opener.opened["main"] == 1
        assert counting_opener.opened["item"] == 1
        assert template.loader.cached_names() == ["item"]

    def test_macros_are_grafted(self):
        resources = {"main": "#parse('lib')#m()", "lib": "#macro(m)from lib#end"}
        assert render_resources(resources, "main") == "from lib"

    def test_first_definition_wins_over_grafted(self):
        resources = {"main": "#macro(m)from main#end#parse('lib')#m()", "lib": "#macro(m)from lib#end"}
        assert render_resources(resources, "main") == "from main"

    def test_grafted_macros_do_not_leak_between_evaluations(self):
        resources = {
            "main": "#parse($lib)#m()",
            "a": "#macro(m)A#end",
            "b": "#macro(m)B#end",
        }
        template = Template.parse_from("main", MappingResourceOpener(resources))
        assert template.evaluate({"lib": "a"}) == "A"
        assert template.evaluate({"lib": "b"}) == "B"
        assert "m" not in template.macros

    def test_break_in_nested_template_ends_only_nested_render(self):
        resources = {"main": "#foreach ($i in [1, 2])#parse('inner')#end", "inner": "$i#break after"}
        assert render_resources(resources, "main") == "12"

    def test_break_foreach_in_nested_template_ends_loop(self):
        resources = {"main": "#foreach ($i in [1, 2])#parse('inner')$i#end", "inner": "#break($foreach)"}
        assert render_resources(resources, "main") == ""

    def test_argument_must_be_string(self):
        with pytest.raises(EvaluationError, match="Argument to #parse must be a string, not null"):
            render_resources({"main": "#parse($n)"}, "main", {"n": None})
        with pytest.raises(EvaluationError, match="Argument to #parse must be a string, not int"):
            render_resources({"main": "#parse(3)"}, "main")

    def test_missing_resource(self):
        with pytest.raises(EvaluationError) as exc_info:
            render_resources({"main": "#parse('nope')"}, "main")
        assert "FileNotFoundError" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    def test_parse_error_in_nested_template(self):
        with pytest.raises(EvaluationError) as exc_info:
            render_resources({"main": "#parse('bad')", "bad": "#end"}, "main")
        assert "Found #end outside any construct, on line 1 of bad" in str(exc_info.value)

    def test_parse_without_opener(self):
        with pytest.raises(EvaluationError, match="No ResourceOpener has been configured to read x"):
            render("#parse('x')")


class TestEvaluate:

    def test_evaluate_string(self):
        assert render("#set($t = 'x=$x')#evaluate($t)", x=5) == "x=5"

    def test_null_is_ignored(self):
        assert render("a#evaluate($n)b", n=None) == "ab"

    def test_argument_must_be_string(self):
        with pytest.raises(EvaluationError, match="Argument to #evaluate must be a string: 3"):
            render("#evaluate(3)")

    def test_macros_defined_in_evaluated_text(self):
        assert render("#evaluate('#macro(m)M#end')#m()") == "M"

    def test_break_ends_only_evaluated_text(self):
        assert render("#evaluate('a#break b')c") == "ac"

    def test_parse_error_in_evaluated_text(self):
        with pytest.raises(EvaluationError) as exc_info:
            render("#evaluate('#end')")
        assert "Found #end outside any construct, on line 1 of #evaluate on line 1" in str(exc_info.value)

    def test_newline_after_evaluate_is_skipped(self):
        assert render("#evaluate('a')\nb") == "ab"


class TestTemplateApi:

    def test_from_reader_does_not_close_reader(self):
        reader = ClosingTrackingReader("Hello, $name!")
        template = Template.from_reader(reader)
        assert reader.close_calls == 0
        assert template.evaluate({"name": "reader"}) == "Hello, reader!"

    def test_evaluate_without_variables(self):
        assert Template.from_string("plain").evaluate() == "plain"

    def test_concurrent_evaluation(self, counting_opener: CountingOpener):
        template = Template.parse_from("main", counting_opener)
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: template.evaluate(), range(32)))
        assert results == ["[1][2][3]"] * 32
        assert counting_opener.opened["item"] == 1

    def test_concurrent_evaluation_with_distinct_variables(self):
        template = Template.from_string("#set($twice = $n * 2)$n:$twice")
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda n: template.evaluate({"n": n}), range(50)))
        assert results == [f"{n}:{n * 2}" for n in range(50)]
