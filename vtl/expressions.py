"""
Узлы выражений: константы, бинарные операции, отрицание и литералы.

Арифметика работает только с целыми числами и повторяет семантику
32-битных машинных целых: переполнение заворачивается, деление
округляется к нулю, остаток имеет знак делимого.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Optional, Tuple

from .host import is_integer, type_name
from .nodes import Node

if TYPE_CHECKING:
    from .context import EvaluationContext

_INT_RANGE = 1 << 32
_INT_MIN = -(1 << 31)
INT_MAX = (1 << 31) - 1


def wrap_int(value: int) -> int:
    """Приводит целое к диапазону знакового 32-битного целого."""
    return (value - _INT_MIN) % _INT_RANGE + _INT_MIN


def _truncating_div(lhs: int, rhs: int) -> int:
    quotient = abs(lhs) // abs(rhs)
    return -quotient if (lhs < 0) != (rhs < 0) else quotient


@dataclass(frozen=True)
class ExpressionNode(Node):
    """
    Узел, вычисляемый в значение.

    При отрисовке значение превращается в строку; null является ошибкой,
    если ссылка не «тихая» ($!foo).
    """

    def render(self, context: EvaluationContext, output: List[str]) -> None:
        value = self.evaluate(context)
        if value is None:
            if self.is_silent():
                return
            raise self.evaluation_error(f"Null value for {self}")
        output.append(self.host_string(context, value))

    @abstractmethod
    def evaluate(self, context: EvaluationContext, undefined_is_false: bool = False) -> Any:
        """
        Вычисляет значение выражения.

        Args:
            context: Контекст вычисления
            undefined_is_false: Неопределённая простая ссылка даёт false вместо ошибки.
                Действует только в условии #if и через &&, || и !.
        """
        pass

    def is_true(self, context: EvaluationContext, undefined_is_false: bool = False) -> bool:
        value = self.evaluate(context, undefined_is_false)
        if isinstance(value, bool):
            return value
        return value is not None

    def _show(self, context: EvaluationContext, value: Any) -> str:
        if value is None:
            return "null"
        return f"{self.host_string(context, value)} (a {type_name(value)})"

    def is_silent(self) -> bool:
        return False

    def int_value(self, context: EvaluationContext) -> Optional[int]:
        value = self.evaluate(context)
        if value is None:
            return None
        if not is_integer(value):
            raise self.evaluation_error(
                f"Arithmetic is only available on integers, not {self._show(context, value)}"
            )
        return value

    @abstractmethod
    def __str__(self) -> str:
        """Исходный текст выражения; используется в сообщениях и при конкатенации с null."""
        pass


@dataclass(frozen=True)
class ConstantNode(ExpressionNode):
    """Целое, булево или null в выражении."""
    value: Any

    def evaluate(self, context: EvaluationContext, undefined_is_false: bool = False) -> Any:
        return self.value

    def __str__(self) -> str:
        if self.value is None:
            return "null"
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        return str(self.value)


class Operator(Enum):
    """Бинарные операторы с приоритетами; STOP завершает выражение."""

    STOP = ("", 0)
    OR = ("||", 1)
    AND = ("&&", 2)
    EQUAL = ("==", 3)
    NOT_EQUAL = ("!=", 3)
    LESS = ("<", 4)
    LESS_OR_EQUAL = ("<=", 4)
    GREATER = (">", 4)
    GREATER_OR_EQUAL = (">=", 4)
    PLUS = ("+", 5)
    MINUS = ("-", 5)
    TIMES = ("*", 6)
    DIVIDE = ("/", 6)
    REMAINDER = ("%", 6)

    def __init__(self, symbol: str, precedence: int):
        self.symbol = symbol
        self.precedence = precedence

    def is_inequality(self) -> bool:
        return self.precedence == 4

    def __str__(self) -> str:
        return self.symbol


@dataclass(frozen=True)
class BinaryExpressionNode(ExpressionNode):
    lhs: ExpressionNode
    op: Operator
    rhs: ExpressionNode

    def __str__(self) -> str:
        return f"{self._operand_string(self.lhs)} {self.op} {self._operand_string(self.rhs)}"

    def _operand_string(self, operand: ExpressionNode) -> str:
        if isinstance(operand, BinaryExpressionNode) and operand.op.precedence < self.op.precedence:
            return f"({operand})"
        return str(operand)

    def evaluate(self, context: EvaluationContext, undefined_is_false: bool = False) -> Any:
        op = self.op
        if op is Operator.OR:
            return self.lhs.is_true(context, undefined_is_false) or self.rhs.is_true(context, undefined_is_false)
        if op is Operator.AND:
            return self.lhs.is_true(context, undefined_is_false) and self.rhs.is_true(context, undefined_is_false)
        if op is Operator.EQUAL:
            return self._equal(context)
        if op is Operator.NOT_EQUAL:
            return not self._equal(context)
        if op is Operator.PLUS:
            return self._plus(context)

        lhs = self.lhs.int_value(context)
        rhs = self.rhs.int_value(context)
        if lhs is None or rhs is None:
            return self._null_operand(lhs is None)

        if op is Operator.LESS:
            return lhs < rhs
        if op is Operator.LESS_OR_EQUAL:
            return lhs <= rhs
        if op is Operator.GREATER:
            return lhs > rhs
        if op is Operator.GREATER_OR_EQUAL:
            return lhs >= rhs
        if op is Operator.MINUS:
            return wrap_int(lhs - rhs)
        if op is Operator.TIMES:
            return wrap_int(lhs * rhs)
        # Деление и остаток от деления на ноль дают null
        if rhs == 0:
            return None
        quotient = _truncating_div(lhs, rhs)
        if op is Operator.DIVIDE:
            return wrap_int(quotient)
        if op is Operator.REMAINDER:
            return lhs - rhs * quotient
        raise AssertionError(op)

    def _null_operand(self, left_is_null: bool) -> None:
        if self.op.is_inequality():
            operand = f"Left operand {self.lhs}" if left_is_null else f"Right operand {self.rhs}"
            raise self.evaluation_error(f"{operand} of {self.op} must not be null")
        return None

    def _equal(self, context: EvaluationContext) -> bool:
        lhs = self.lhs.evaluate(context)
        rhs = self.rhs.evaluate(context)
        if lhs is rhs:
            return True
        if lhs is None or rhs is None:
            return False
        if type(lhs) is type(rhs):
            return lhs == rhs
        # Разные типы сравниваются по строковому представлению
        return self.host_string(context, lhs) == self.host_string(context, rhs)

    def _plus(self, context: EvaluationContext) -> Any:
        lhs = self.lhs.evaluate(context)
        rhs = self.rhs.evaluate(context)
        if isinstance(lhs, str) or isinstance(rhs, str):
            # null при конкатенации заменяется исходным текстом операнда
            left = str(self.lhs) if lhs is None else self.host_string(context, lhs)
            right = str(self.rhs) if rhs is None else self.host_string(context, rhs)
            return left + right
        if lhs is None or rhs is None:
            return None
        if not is_integer(lhs) or not is_integer(rhs):
            raise self.evaluation_error(
                "Operands of + must both be integers, or at least one must be a string: "
                f"{self._show(context, lhs)} + {self._show(context, rhs)}"
            )
        return wrap_int(lhs + rhs)


@dataclass(frozen=True)
class NotExpressionNode(ExpressionNode):
    expr: ExpressionNode

    def __str__(self) -> str:
        if isinstance(self.expr, BinaryExpressionNode):
            return f"!({self.expr})"
        return f"!{self.expr}"

    def evaluate(self, context: EvaluationContext, undefined_is_false: bool = False) -> Any:
        return not self.expr.is_true(context, undefined_is_false)


@dataclass(frozen=True)
class StringLiteralNode(ExpressionNode):
    """
    Строковый литерал.

    Строка в двойных кавычках разбирается как вложенный шаблон и
    вычисляется его отрисовкой; в одинарных содержит один TextNode.
    """
    quote: str
    nodes: Tuple[Node, ...]

    def __str__(self) -> str:
        return self.quote + "".join(str(node) for node in self.nodes) + self.quote

    def evaluate(self, context: EvaluationContext, undefined_is_false: bool = False) -> Any:
        output: List[str] = []
        for node in self.nodes:
            node.render(context, output)
        return "".join(output)


@dataclass(frozen=True)
class ListLiteralNode(ExpressionNode):
    elements: Tuple[ExpressionNode, ...]

    def __str__(self) -> str:
        return "[" + ", ".join(str(element) for element in self.elements) + "]"

    def evaluate(self, context: EvaluationContext, undefined_is_false: bool = False) -> Any:
        return tuple(element.evaluate(context) for element in self.elements)


@dataclass(frozen=True)
class RangeLiteralNode(ExpressionNode):
    """Диапазон [a..b] включительно; убывающий, если a > b."""
    first: ExpressionNode
    last: ExpressionNode

    def __str__(self) -> str:
        return f"[{self.first}..{self.last}]"

    def evaluate(self, context: EvaluationContext, undefined_is_false: bool = False) -> Any:
        start = self._bound(self.first, context)
        stop = self._bound(self.last, context)
        if start <= stop:
            return range(start, stop + 1)
        return range(start, stop - 1, -1)

    @staticmethod
    def _bound(node: ExpressionNode, context: EvaluationContext) -> int:
        value = node.int_value(context)
        if value is None:
            raise node.evaluation_error("Arithmetic is only available on integers, not null")
        return value


__all__ = [
    "INT_MAX",
    "wrap_int",
    "ExpressionNode",
    "ConstantNode",
    "Operator",
    "BinaryExpressionNode",
    "NotExpressionNode",
    "StringLiteralNode",
    "ListLiteralNode",
    "RangeLiteralNode",
]
