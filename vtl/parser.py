"""
Парсер шаблонов: текст, ссылки, комментарии, дословные блоки и директивы.

Разбор идёт рекурсивным спуском поверх парсера выражений. Последовательность
узлов собирается до стоп-маркера (#end, #else, #elseif или конец входа);
неожиданный стоп-маркер является ошибкой разбора.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple, Type

from .directives import (
    BreakNode,
    DefineNode,
    EvaluateNode,
    ForEachNode,
    IfNode,
    MacroCallNode,
    ParseNode,
    SetNode,
)
from .errors import ParseError
from .expression_parser import ExpressionParser
from .expressions import ExpressionNode
from .macros import Macro
from .nodes import (
    CommentNode,
    ConsNode,
    ElseIfNode,
    ElseNode,
    EndNode,
    EofNode,
    Node,
    StopNode,
    TextNode,
    empty_node,
)
from .references import PlainReferenceNode
from .scanner import EOF, is_ascii_letter, is_space
from .spacing import remove_initial_space_before_set, should_remove_last_node_before_set

if TYPE_CHECKING:
    from .cache import TemplateLoader
    from .template import Template

logger = logging.getLogger(__name__)

StopClasses = Tuple[Type[StopNode], ...]

_EOF_CLASSES: StopClasses = (EofNode,)
_END_CLASSES: StopClasses = (EndNode,)
_ELSE_ELSEIF_END_CLASSES: StopClasses = (ElseNode, ElseIfNode, EndNode)

# Директивы эталонного языка, которые не поддерживаются; без '(' за ними
# они не могут молча стать обычным текстом
UNSUPPORTED_DIRECTIVES = frozenset({"stop"})


class TemplateParser(ExpressionParser):
    """
    Парсер одного ресурса.

    Args:
        text: Исходный текст шаблона
        resource_name: Имя ресурса для диагностики (может отсутствовать)
        loader: Загрузчик вложенных шаблонов, общий для всего дерева разбора
    """

    def __init__(self, text: str, resource_name: Optional[str], loader: TemplateLoader):
        super().__init__(text, resource_name)
        self.loader = loader
        self.macros: Dict[str, Macro] = {}

    def parse(self) -> Template:
        """
        Разбирает весь вход.

        Returns:
            Шаблон с корневым узлом и макросами, определёнными в ресурсе

        Raises:
            ParseError: При любой синтаксической ошибке
        """
        from .template import Template

        nodes, _ = self._parse_to_stop(_EOF_CLASSES, "outside any construct")
        root = ConsNode(self.resource_name, self.line_number, nodes)
        logger.debug(
            f"Parsed template {self.resource_name or '<source>'}: "
            f"{len(nodes)} nodes, {len(self.macros)} macros"
        )
        return Template(root, self.macros, self.loader)

    def parse_string_template(self, text: str, resource_name: str) -> Tuple[Node, ...]:
        # Макросы, определённые внутри строки, не сохраняются
        nested = TemplateParser(text, resource_name, self.loader)
        nodes, _ = nested._parse_to_stop(_EOF_CLASSES, "outside any construct")
        return nodes

    # -------- sequences --------

    def _parse_to_stop(self, stop_classes: StopClasses, context_description: str) -> Tuple[Tuple[Node, ...], StopNode]:
        nodes: List[Node] = []
        while True:
            node = self._parse_node()
            if isinstance(node, StopNode):
                break
            if isinstance(node, SetNode) and should_remove_last_node_before_set(nodes):
                nodes[-1] = node
            else:
                nodes.append(node)
        if not isinstance(node, stop_classes):
            raise self.error(f"Found {node.name} {context_description}")
        return tuple(nodes), node

    def _skip_newline_and_parse_to_stop(
        self, stop_classes: StopClasses, context_description: str
    ) -> Tuple[Tuple[Node, ...], StopNode]:
        self.skip_newline()
        return self._parse_to_stop(stop_classes, context_description)

    def _parse_node(self) -> Node:
        if self.c == "#":
            self.advance()
            c = self.c
            if c == "#":
                return self._parse_line_comment()
            if c == "*":
                return self._parse_block_comment()
            if c == "[":
                return self._parse_hash_square()
            if c == "{":
                return self._parse_directive()
            if c == "@":
                return self._parse_macro_call_with_body()
            if is_ascii_letter(c):
                return self._parse_directive()
            return self._parse_plain_text("#")
        if self.c is EOF:
            return EofNode(self.resource_name, self.line_number)
        if self.c == "$":
            return self._parse_dollar()
        first = self.c
        self.advance()
        return self._parse_plain_text(first)

    # -------- text, comments and verbatim blocks --------

    def _parse_plain_text(self, prefix: str) -> Node:
        chars = [prefix]
        while self.c is not EOF and self.c != "$" and self.c != "#":
            chars.append(self.c)
            self.advance()
        return TextNode(self.resource_name, self.line_number, "".join(chars))

    def _parse_line_comment(self) -> Node:
        line_number = self.line_number
        while self.c != "\n" and self.c is not EOF:
            self.advance()
        self.advance()
        return CommentNode(self.resource_name, line_number)

    def _parse_block_comment(self) -> Node:
        # Незакрытый блочный комментарий допускается и тянется до конца входа
        start_line = self.line_number
        last = ""
        self.advance()
        while not (last == "*" and self.c == "#") and self.c is not EOF:
            last = self.c
            self.advance()
        self.advance()
        return CommentNode(self.resource_name, start_line)

    def _parse_hash_square(self) -> Node:
        self.advance()
        if self.c != "[":
            return self._parse_plain_text("#[")
        start_line = self.line_number
        self.advance()
        chars: List[str] = []
        while True:
            if self.c is EOF:
                raise ParseError(
                    "Unterminated #[[ - did not see matching ]]#", self.resource_name, start_line
                )
            if self.c == "#" and len(chars) > 1 and chars[-1] == "]" and chars[-2] == "]":
                self.advance()
                break
            chars.append(self.c)
            self.advance()
        return TextNode(self.resource_name, self.line_number, "".join(chars[:-2]))

    # -------- references in text --------

    def _parse_dollar(self) -> Node:
        self.advance()
        silent = self.c == "!"
        if silent:
            self.advance()
        if is_ascii_letter(self.c) or self.c == "{":
            return self._parse_reference(silent)
        return self._parse_plain_text("$!" if silent else "$")

    def _parse_reference(self, silent: bool) -> Node:
        if self.c == "{":
            self.advance()
            if not is_ascii_letter(self.c):
                return self._parse_plain_text("$!{" if silent else "${")
            node = self.parse_reference_no_brace(silent)
            self.expect("}")
            return node
        return self.parse_reference_no_brace(silent)

    # -------- directives --------

    def _parse_directive(self) -> Node:
        if self.c == "{":
            self.advance()
            directive = self.parse_id("Directive inside #{...}")
            self.expect("}")
        else:
            directive = self.parse_id("Directive")

        if directive == "end":
            node: Node = EndNode(self.resource_name, self.line_number)
        elif directive == "if":
            return self._parse_if_or_else_if("#if")
        elif directive == "elseif":
            node = ElseIfNode(self.resource_name, self.line_number)
        elif directive == "else":
            node = ElseNode(self.resource_name, self.line_number)
        elif directive == "foreach":
            return self._parse_foreach()
        elif directive == "break":
            return self._parse_break()
        elif directive == "set":
            node = self._parse_set()
        elif directive == "define":
            node = self._parse_define()
        elif directive == "parse":
            node = self._parse_parse()
        elif directive == "macro":
            return self._parse_macro_definition()
        elif directive == "evaluate":
            return self._parse_evaluate()
        else:
            node = self._parse_macro_call("#", directive)
        self.skip_newline()
        return node

    def _parse_if_or_else_if(self, directive: str) -> Node:
        start_line = self.line_number
        self.expect("(")
        condition = self.parse_expression()
        self.expect(")")
        true_nodes, stop = self._skip_newline_and_parse_to_stop(
            _ELSE_ELSEIF_END_CLASSES, f"parsing {directive} starting on line {start_line}"
        )
        true_part = ConsNode(self.resource_name, start_line, true_nodes)
        if isinstance(stop, EndNode):
            false_part: Node = empty_node(self.resource_name, self.line_number)
        elif isinstance(stop, ElseIfNode):
            false_part = self._parse_if_or_else_if("#elseif")
        else:
            else_line = self.line_number
            false_nodes, _ = self._parse_to_stop(
                _END_CLASSES, f"parsing #else starting on line {else_line}"
            )
            false_part = ConsNode(self.resource_name, else_line, false_nodes)
        return IfNode(self.resource_name, start_line, condition, true_part, false_part)

    def _parse_foreach(self) -> Node:
        start_line = self.line_number
        self.expect("(")
        self.skip_space()
        if self.c != "$":
            raise self.error("Expected variable beginning with '$' for #foreach")
        var_node = self._parse_dollar()
        if not isinstance(var_node, PlainReferenceNode):
            raise self.error("Expected simple variable for #foreach")
        self.skip_space()
        if self.c == "i":
            self.advance()
            bad = self.c != "n"
        else:
            bad = True
        if bad:
            raise self.error("Expected 'in' for #foreach")
        self.advance()
        collection = self.parse_expression()
        self.expect(")")
        body_nodes, _ = self._skip_newline_and_parse_to_stop(
            _END_CLASSES, f"parsing #foreach starting on line {start_line}"
        )
        body = ConsNode(self.resource_name, start_line, body_nodes)
        return ForEachNode(self.resource_name, start_line, var_node.id, collection, body)

    def _parse_break(self) -> Node:
        self.skip_space()
        scope: Optional[ExpressionNode] = None
        if self.c == "(":
            self.advance()
            scope = self.parse_primary()
            self.expect(")")
        return BreakNode(self.resource_name, self.line_number, scope)

    def _parse_set(self) -> Node:
        self.expect("(")
        self.expect("$")
        var = self.parse_id("#set variable")
        self.expect("=")
        expression = self.parse_expression()
        self.expect(")")
        return SetNode(expression.resource_name, expression.line_number, var, expression)

    def _parse_define(self) -> Node:
        start_line = self.line_number
        self.expect("(")
        self.expect("$")
        var = self.parse_id("#define variable")
        self.expect(")")
        body_nodes, _ = self._skip_newline_and_parse_to_stop(
            _END_CLASSES, f"parsing #define starting on line {start_line}"
        )
        body = ConsNode(self.resource_name, start_line, body_nodes)
        return DefineNode(self.resource_name, start_line, var, body)

    def _parse_parse(self) -> Node:
        start_line = self.line_number
        self.expect("(")
        expression = self.parse_primary()
        self.skip_space()
        self.expect(")")
        return ParseNode(self.resource_name, start_line, expression, self.loader)

    def _parse_evaluate(self) -> Node:
        start_line = self.line_number
        self.expect("(")
        expression = self.parse_primary()
        self.expect(")")
        self.skip_newline()
        return EvaluateNode(self.resource_name, start_line, expression, self.loader)

    # -------- macros --------

    def _parse_macro_definition(self) -> Node:
        start_line = self.line_number
        self.expect("(")
        self.skip_space()
        name = self.parse_id("Macro name")
        parameter_names: List[str] = []
        while True:
            self.skip_space()
            if self.c == ")":
                self.advance()
                break
            if self.c == ",":
                self.advance()
                self.skip_space()
            if self.c != "$":
                raise self.error("Macro parameters should look like $name")
            self.advance()
            parameter_names.append(self.parse_id("Macro parameter name"))

        body_nodes, _ = self._skip_newline_and_parse_to_stop(
            _END_CLASSES, f"parsing #macro starting on line {start_line}"
        )
        # Первое определение макроса с данным именем побеждает
        if name not in self.macros:
            body = ConsNode(self.resource_name, start_line, tuple(remove_initial_space_before_set(body_nodes)))
            self.macros[name] = Macro(start_line, name, tuple(parameter_names), body)
        return empty_node(self.resource_name, self.line_number)

    def _parse_macro_call_with_body(self) -> Node:
        self.advance()
        if not is_ascii_letter(self.c):
            return self._parse_plain_text("#@")
        name = self.parse_id("#@")
        return self._parse_macro_call("#@", name)

    def _parse_macro_call(self, prefix: str, directive: str) -> Node:
        start_line = self.line_number
        text = [prefix, directive]
        while is_space(self.c):
            text.append(self.c)
            self.advance()
        if self.c != "(":
            if directive in UNSUPPORTED_DIRECTIVES:
                raise self.error(f"#{directive} is not currently supported")
            if directive.startswith("end"):
                raise self.error(f"Unrecognized directive #{directive}")
            return self._parse_plain_text("".join(text))

        self.advance()
        arguments: List[ExpressionNode] = []
        while True:
            self.skip_space()
            if self.c == ")":
                self.advance()
                break
            arguments.append(self.parse_primary())
            if self.c == ",":
                self.advance()

        body_content: Optional[Node] = None
        if prefix == "#@":
            body_nodes, _ = self._skip_newline_and_parse_to_stop(
                _END_CLASSES, f"#@{directive} starting on line {start_line}"
            )
            body_content = ConsNode(self.resource_name, start_line, body_nodes)
        return MacroCallNode(
            self.resource_name, self.line_number, directive, tuple(arguments), body_content
        )


__all__ = ["TemplateParser", "UNSUPPORTED_DIRECTIVES"]
