"""
Базовые узлы AST шаблона.

Каждый узел неизменяем, помнит имя ресурса и номер строки и умеет
отрисовать себя в выходной буфер (список строк) в заданном контексте.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Optional, Tuple

from .errors import BreakSignal, EvaluationError, VtlUserError, where
from .scanner import is_space

if TYPE_CHECKING:
    from .context import EvaluationContext


@dataclass(frozen=True)
class Node(ABC):
    """Базовый класс для всех узлов шаблона."""
    resource_name: Optional[str]
    line_number: int

    @abstractmethod
    def render(self, context: EvaluationContext, output: List[str]) -> None:
        """Дописывает результат отрисовки узла в output."""
        pass

    def is_whitespace(self) -> bool:
        return False

    def is_horizontal_whitespace(self) -> bool:
        return False

    def _where(self) -> str:
        return f"In expression {where(self.resource_name, self.line_number)}"

    def evaluation_error(self, message: str) -> EvaluationError:
        return EvaluationError(f"{self._where()}: {message}", self.resource_name, self.line_number)

    def evaluation_error_from(self, cause: BaseException) -> EvaluationError:
        """Ошибка вычисления, описывающая исключение-причину; вызывающий делает `raise ... from cause`."""
        return self.evaluation_error(f"{type(cause).__name__}: {cause}")

    def host_string(self, context: EvaluationContext, value: Any) -> str:
        """Строковое представление значения через хост; сбой хоста становится ошибкой вычисления."""
        try:
            return context.host.to_string(value)
        except (VtlUserError, BreakSignal):
            raise
        except Exception as e:
            raise self.evaluation_error_from(e) from e


@dataclass(frozen=True)
class ConsNode(Node):
    """Последовательность узлов, отрисовываемых подряд."""
    nodes: Tuple[Node, ...]

    def render(self, context: EvaluationContext, output: List[str]) -> None:
        for node in self.nodes:
            node.render(context, output)


def empty_node(resource_name: Optional[str], line_number: int) -> ConsNode:
    return ConsNode(resource_name, line_number, ())


@dataclass(frozen=True)
class TextNode(Node):
    """Буквальный текст шаблона, включая содержимое #[[...]]#."""
    text: str

    def render(self, context: EvaluationContext, output: List[str]) -> None:
        output.append(self.text)

    def is_whitespace(self) -> bool:
        return all(is_space(ch) for ch in self.text)

    def is_horizontal_whitespace(self) -> bool:
        return self.is_whitespace() and "\n" not in self.text

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class CommentNode(Node):
    """Комментарий ## или #* *#. Ничего не выводит, но влияет на пробелы перед #set."""

    def render(self, context: EvaluationContext, output: List[str]) -> None:
        pass


# ---------------- Stop markers ----------------

@dataclass(frozen=True)
class StopNode(Node):
    """
    Маркер, завершающий последовательность узлов при разборе.

    В готовое дерево не попадает.
    """
    name = ""

    def render(self, context: EvaluationContext, output: List[str]) -> None:
        raise NotImplementedError(type(self).__name__)


@dataclass(frozen=True)
class EofNode(StopNode):
    name = "end of file"


@dataclass(frozen=True)
class EndNode(StopNode):
    name = "#end"


@dataclass(frozen=True)
class ElseIfNode(StopNode):
    name = "#elseif"


@dataclass(frozen=True)
class ElseNode(StopNode):
    name = "#else"


class DeferredBlock:
    """
    Значение, которое отрисовывает тело блока при каждом чтении.

    Используется для переменных из #define и для $bodyContent в вызовах
    #@macro. Тело отрисовывается в контексте, где блок был создан.
    """

    def __init__(self, body: Node, context: EvaluationContext, origin: str):
        self.body = body
        self.context = context
        self.origin = origin

    def __str__(self) -> str:
        output: List[str] = []
        self.body.render(self.context, output)
        return "".join(output)


__all__ = [
    "Node",
    "ConsNode",
    "DeferredBlock",
    "empty_node",
    "TextNode",
    "CommentNode",
    "StopNode",
    "EofNode",
    "EndNode",
    "ElseIfNode",
    "ElseNode",
]
