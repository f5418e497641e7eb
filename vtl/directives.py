"""
Узлы директив: #set, #if, #foreach, #define, #break, #parse, #evaluate
и вызовы макросов.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterator, List, Optional, Tuple

from .errors import BreakSignal, ParseError, where
from .expressions import ExpressionNode
from .host import type_name
from .nodes import DeferredBlock, Node

if TYPE_CHECKING:
    from .cache import TemplateLoader
    from .context import EvaluationContext

logger = logging.getLogger(__name__)

FOREACH_VAR = "foreach"

_NOTHING = object()


@dataclass(frozen=True)
class DirectiveNode(Node):
    """Базовый класс директив."""
    pass


@dataclass(frozen=True)
class SetNode(DirectiveNode):
    var: str
    expression: ExpressionNode

    def render(self, context: EvaluationContext, output: List[str]) -> None:
        context.set_var(self.var, self.expression.evaluate(context))


@dataclass(frozen=True)
class IfNode(DirectiveNode):
    """#if/#elseif/#else, развёрнутые во вложенные двоичные выборы."""
    condition: ExpressionNode
    true_part: Node
    false_part: Node

    def render(self, context: EvaluationContext, output: List[str]) -> None:
        branch = self.true_part if self.condition.is_true(context, True) else self.false_part
        branch.render(context, output)


class ForEachState:
    """
    Значение $foreach внутри цикла.

    Свойства index (с нуля), count, has_next, first, last. Строковое
    представление "{}".
    """

    def __init__(self, iterable: Iterable):
        self._iterator: Iterator = iter(iterable)
        self._lookahead: Any = _NOTHING
        self._index = -1

    def __iter__(self) -> ForEachState:
        return self

    def __next__(self) -> Any:
        if not self.has_next:
            raise StopIteration
        item, self._lookahead = self._lookahead, _NOTHING
        self._index += 1
        return item

    @property
    def has_next(self) -> bool:
        if self._lookahead is _NOTHING:
            self._lookahead = next(self._iterator, _NOTHING)
        return self._lookahead is not _NOTHING

    @property
    def index(self) -> int:
        return self._index

    @property
    def count(self) -> int:
        return self._index + 1

    @property
    def first(self) -> bool:
        return self._index == 0

    @property
    def last(self) -> bool:
        return not self.has_next

    def __str__(self) -> str:
        return "{}"


@dataclass(frozen=True)
class ForEachNode(DirectiveNode):
    var: str
    collection: ExpressionNode
    body: Node

    def render(self, context: EvaluationContext, output: List[str]) -> None:
        value = self.collection.evaluate(context)
        if value is None:
            return
        if isinstance(value, Mapping):
            iterable: Iterable = value.values()
        elif isinstance(value, Iterable) and not isinstance(value, (str, bytes)):
            iterable = value
        else:
            raise self.evaluation_error(f"Not iterable: {self.host_string(context, value)}")

        undo = context.set_var(self.var, None)
        state = ForEachState(iterable)
        undo_foreach = context.set_var(FOREACH_VAR, state)
        try:
            for item in state:
                context.set_var(self.var, item)
                self.body.render(context, output)
        except BreakSignal:
            pass
        finally:
            undo_foreach()
            undo()


@dataclass(frozen=True)
class BreakNode(DirectiveNode):
    """#break или #break($foreach)."""
    scope: Optional[ExpressionNode]

    def render(self, context: EvaluationContext, output: List[str]) -> None:
        if self.scope is None:
            raise BreakSignal(self, foreach_scope=False)
        if isinstance(self.scope.evaluate(context), ForEachState):
            raise BreakSignal(self, foreach_scope=True)
        raise self.evaluation_error(f"Argument to #break is not a supported scope: {self.scope}")


@dataclass(frozen=True)
class DefineNode(DirectiveNode):
    """#define: переменная, тело которой отрисовывается при каждом чтении."""
    var: str
    body: Node

    def render(self, context: EvaluationContext, output: List[str]) -> None:
        context.set_var(self.var, DeferredBlock(self.body, context, "#define"))


@dataclass(frozen=True)
class MacroCallNode(DirectiveNode):
    """
    Вызов макроса #name(...) или #@name(...) тело #end.

    Аргументы передаются по имени: это выражения, а не значения.
    """
    name: str
    arguments: Tuple[ExpressionNode, ...]
    body_content: Optional[Node] = None

    def render(self, context: EvaluationContext, output: List[str]) -> None:
        macro = context.get_macro(self.name)
        if macro is None:
            raise self.evaluation_error(
                f"#{self.name} is neither a standard directive nor a macro that has been defined"
            )
        if len(self.arguments) != macro.parameter_count:
            raise self.evaluation_error(
                f"Wrong number of arguments to #{self.name}: "
                f"expected {macro.parameter_count}, got {len(self.arguments)}"
            )
        macro.render(context, self.arguments, self.body_content, output)


@dataclass(frozen=True)
class ParseNode(DirectiveNode):
    """
    #parse: отрисовывает вложенный шаблон на месте директивы.

    Шаблон разбирается не более одного раза на имя ресурса; его макросы
    добавляются в реестр, если там ещё нет макроса с тем же именем.
    """
    expression: ExpressionNode
    loader: TemplateLoader = field(compare=False, repr=False)

    def render(self, context: EvaluationContext, output: List[str]) -> None:
        name = self.expression.evaluate(context)
        if not isinstance(name, str):
            what = "null" if name is None else type_name(name)
            raise self.evaluation_error(f"Argument to #parse must be a string, not {what}")

        try:
            template = self.loader.load(name)
        except (ParseError, OSError) as e:
            raise self.evaluation_error_from(e) from e

        for macro_name, macro in template.macros.items():
            context.macros.setdefault(macro_name, macro)

        logger.debug(f"#parse renders {name}")
        try:
            template.render(context, output)
        except BreakSignal as signal:
            if signal.foreach_scope:
                raise


@dataclass(frozen=True)
class EvaluateNode(DirectiveNode):
    """#evaluate: разбирает строку как шаблон и отрисовывает её в текущем контексте."""
    expression: ExpressionNode
    loader: TemplateLoader = field(compare=False, repr=False)

    def render(self, context: EvaluationContext, output: List[str]) -> None:
        value = self.expression.evaluate(context)
        if value is None:
            return
        if not isinstance(value, str):
            raise self.evaluation_error(
                f"Argument to #evaluate must be a string: {self.host_string(context, value)}"
            )

        try:
            resource_name = f"#evaluate {where(self.resource_name, self.line_number)}"
            template = self.loader.parse_string(value, resource_name)
        except ParseError as e:
            raise self.evaluation_error_from(e) from e

        for macro_name, macro in template.macros.items():
            context.macros.setdefault(macro_name, macro)

        logger.debug(f"#evaluate renders {len(value)} characters")
        try:
            template.render(context, output)
        except BreakSignal as signal:
            if signal.foreach_scope:
                raise


__all__ = [
    "FOREACH_VAR",
    "DirectiveNode",
    "SetNode",
    "IfNode",
    "ForEachState",
    "ForEachNode",
    "BreakNode",
    "DefineNode",
    "MacroCallNode",
    "ParseNode",
    "EvaluateNode",
]
