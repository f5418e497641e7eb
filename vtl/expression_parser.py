"""
Парсер выражений.

Разбирает ссылки с цепочками суффиксов, литералы (целые, строки, булевы,
null, списки и диапазоны) и бинарные операции с приоритетами:

    ||/or < &&/and < == != < < <= > >= < + - < * / %

Унарные ! и not, а также скобки связывают сильнее любого бинарного оператора.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from .expressions import (
    INT_MAX,
    BinaryExpressionNode,
    ConstantNode,
    ExpressionNode,
    ListLiteralNode,
    NotExpressionNode,
    Operator,
    RangeLiteralNode,
    StringLiteralNode,
)
from .errors import where
from .nodes import Node, TextNode
from .references import (
    IndexReferenceNode,
    MemberReferenceNode,
    MethodReferenceNode,
    PlainReferenceNode,
    ReferenceNode,
)
from .scanner import EOF, Scanner, is_ascii_digit, is_ascii_letter


def _operators_by_first_char() -> Dict[str, List[Operator]]:
    table: Dict[str, List[Operator]] = {}
    for operator in Operator:
        if operator is not Operator.STOP:
            table.setdefault(operator.symbol[0], []).append(operator)
    return table


_OPERATORS_BY_FIRST_CHAR = _operators_by_first_char()

_WORD_OPERATORS = {"a": ("and", Operator.AND), "o": ("or", Operator.OR)}


class ExpressionParser(Scanner, ABC):
    """
    Разбор выражений поверх посимвольного сканера.

    Строки в двойных кавычках разбираются как вложенные шаблоны через
    parse_string_template, который реализует парсер директив.
    """

    @abstractmethod
    def parse_string_template(self, text: str, resource_name: str) -> Tuple[Node, ...]:
        """Разбирает содержимое строки в двойных кавычках как шаблон."""
        pass

    # -------- expressions --------

    def parse_expression(self) -> ExpressionNode:
        lhs = self.parse_unary_expression()
        return _OperatorParser(self).parse(lhs, 1)

    def parse_unary_expression(self) -> ExpressionNode:
        self.skip_space()
        if self.c == "(":
            self.next_non_space()
            node = self.parse_expression()
            self.expect(")")
            self.skip_space()
            return node
        if self.c == "!":
            self.advance()
            node = NotExpressionNode(self.resource_name, self.line_number, self.parse_unary_expression())
            self.skip_space()
            return node
        return self.parse_primary()

    def parse_primary(self, null_allowed: bool = False) -> ExpressionNode:
        """
        Разбирает первичное выражение: ссылку или литерал.

        Args:
            null_allowed: Разрешён ли литерал null (только в аргументах методов)
        """
        self.skip_space()
        c = self.c
        if c == "$":
            self.advance()
            node: ExpressionNode = self.parse_required_reference()
        elif c == '"':
            node = self._parse_string_literal('"', expand=True)
        elif c == "'":
            node = self._parse_string_literal("'", expand=False)
        elif c == "-":
            self.advance()
            node = self._parse_int_literal("-")
        elif c == "[":
            node = self._parse_list_literal()
        elif is_ascii_digit(c):
            node = self._parse_int_literal("")
        elif is_ascii_letter(c):
            node = self._parse_not_or_boolean_or_null_literal(null_allowed)
        else:
            raise self.error("Expected a reference or a literal")
        self.skip_space()
        return node

    # -------- literals --------

    def _parse_int_literal(self, prefix: str) -> ExpressionNode:
        chars = [prefix]
        while is_ascii_digit(self.c):
            chars.append(self.c)
            self.advance()
        text = "".join(chars)
        try:
            value = int(text)
        except ValueError:
            value = None
        if value is None or not -INT_MAX - 1 <= value <= INT_MAX:
            raise self.error(f"Invalid integer: {text}")
        return ConstantNode(self.resource_name, self.line_number, value)

    def _parse_not_or_boolean_or_null_literal(self, null_allowed: bool) -> ExpressionNode:
        word = self.parse_id("Identifier without $")
        if word == "true":
            value: Optional[bool] = True
        elif word == "false":
            value = False
        elif word == "not":
            return NotExpressionNode(self.resource_name, self.line_number, self.parse_unary_expression())
        elif word == "null" and null_allowed:
            value = None
        else:
            suffix = " or null" if null_allowed else ""
            raise self.error(f"Identifier must be preceded by $ or be true or false{suffix}: {word}")
        return ConstantNode(self.resource_name, self.line_number, value)

    def _parse_string_literal(self, quote: str, expand: bool) -> ExpressionNode:
        self.advance()
        chars = []
        while self.c != quote:
            if self.c is EOF:
                raise self.error("Unterminated string constant")
            if self.c == "\\":
                raise self.error("Escapes in string constants are not currently supported")
            chars.append(self.c)
            self.advance()
        self.advance()
        text = "".join(chars)
        if expand:
            resource_name = f"string {where(self.resource_name, self.line_number)}"
            nodes = self.parse_string_template(text, resource_name)
        else:
            nodes = (TextNode(self.resource_name, self.line_number, text),)
        return StringLiteralNode(self.resource_name, self.line_number, quote, nodes)

    def _parse_list_literal(self) -> ExpressionNode:
        self.next_non_space()
        if self.c == "]":
            self.advance()
            return ListLiteralNode(self.resource_name, self.line_number, ())
        first = self.parse_primary()
        if self.c == ".":
            return self._parse_range_literal(first)
        return self._parse_remainder_of_list_literal(first)

    def _parse_range_literal(self, first: ExpressionNode) -> ExpressionNode:
        self.advance()
        if self.c != ".":
            raise self.error("Expected two dots (..) not just one")
        self.next_non_space()
        last = self.parse_primary()
        if self.c != "]":
            raise self.error("Expected ] at end of range literal")
        self.next_non_space()
        return RangeLiteralNode(self.resource_name, self.line_number, first, last)

    def _parse_remainder_of_list_literal(self, first: ExpressionNode) -> ExpressionNode:
        elements = [first]
        while self.c == ",":
            self.advance()
            elements.append(self.parse_primary())
        if self.c != "]":
            raise self.error("Expected ] at end of list literal")
        self.advance()
        return ListLiteralNode(self.resource_name, self.line_number, tuple(elements))

    # -------- references --------

    def parse_required_reference(self) -> ReferenceNode:
        """Ссылка внутри выражения, после '$'. '!' допускается и игнорируется."""
        if self.c == "!":
            self.advance()
        if self.c == "{":
            self.advance()
            node = self.parse_reference_no_brace(silent=False)
            self.expect("}")
            return node
        return self.parse_reference_no_brace(silent=False)

    def parse_reference_no_brace(self, silent: bool) -> ReferenceNode:
        name = self.parse_id("Reference")
        lhs = PlainReferenceNode(self.resource_name, self.line_number, name, silent)
        return self._parse_reference_suffix(lhs, silent)

    def _parse_reference_suffix(self, lhs: ReferenceNode, silent: bool) -> ReferenceNode:
        if self.c == ".":
            return self._parse_reference_member(lhs, silent)
        if self.c == "[":
            return self._parse_reference_index(lhs, silent)
        return lhs

    def _parse_reference_member(self, lhs: ReferenceNode, silent: bool) -> ReferenceNode:
        self.advance()
        if not is_ascii_letter(self.c):
            # Точка не входит в ссылку: "$x." или "$x.5"
            self.pushback(".")
            return lhs
        name = self.parse_id("Member")
        if self.c == "(":
            reference = self._parse_reference_method_params(lhs, name, silent)
        else:
            reference = MemberReferenceNode(lhs.resource_name, lhs.line_number, lhs, name, silent)
        return self._parse_reference_suffix(reference, silent)

    def _parse_reference_method_params(self, lhs: ReferenceNode, name: str, silent: bool) -> ReferenceNode:
        self.next_non_space()
        args = []
        if self.c != ")":
            args.append(self.parse_primary(null_allowed=True))
            while self.c == ",":
                self.next_non_space()
                args.append(self.parse_primary(null_allowed=True))
            if self.c != ")":
                raise self.error("Expected )")
        self.advance()
        return MethodReferenceNode(lhs.resource_name, lhs.line_number, lhs, name, tuple(args), silent)

    def _parse_reference_index(self, lhs: ReferenceNode, silent: bool) -> ReferenceNode:
        self.advance()
        index = self.parse_primary()
        if self.c != "]":
            raise self.error("Expected ]")
        self.advance()
        reference = IndexReferenceNode(lhs.resource_name, lhs.line_number, lhs, index, silent)
        return self._parse_reference_suffix(reference, silent)


class _OperatorParser:
    """
    Разбор бинарных операторов подъёмом по приоритетам.

    Держит текущий ещё не применённый оператор; STOP означает конец выражения.
    """

    def __init__(self, parser: ExpressionParser):
        self._parser = parser
        self._current = Operator.STOP
        self._next_operator()

    def parse(self, lhs: ExpressionNode, min_precedence: int) -> ExpressionNode:
        while self._current.precedence >= min_precedence:
            operator = self._current
            rhs = self._parser.parse_unary_expression()
            self._next_operator()
            while self._current.precedence > operator.precedence:
                rhs = self.parse(rhs, self._current.precedence)
            lhs = BinaryExpressionNode(lhs.resource_name, lhs.line_number, lhs, operator, rhs)
        return lhs

    def _next_operator(self) -> None:
        parser = self._parser
        parser.skip_space()

        word = _WORD_OPERATORS.get(parser.c)
        if word is not None:
            symbol, operator = word
            found = parser.parse_id("")
            if found != symbol:
                raise parser.error(f"Expected '{symbol}' but was '{found}'")
            self._current = operator
            return

        candidates = _OPERATORS_BY_FIRST_CHAR.get(parser.c)
        if not candidates:
            self._current = Operator.STOP
            return

        first_char = parser.c
        parser.advance()
        operator = None
        for candidate in candidates:
            if len(candidate.symbol) == 1:
                operator = candidate
            elif candidate.symbol[1] == parser.c:
                parser.advance()
                operator = candidate
        if operator is None:
            raise parser.error(f"Expected {candidates[0]}, not just {first_char}")
        self._current = operator


__all__ = ["ExpressionParser"]
