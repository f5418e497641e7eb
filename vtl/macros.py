"""
Макросы и передача аргументов по имени.

Параметры макроса связываются не со значениями, а с thunk'ами: парой
(выражение аргумента, контекст места вызова). Каждое чтение параметра
заново вычисляет выражение в контексте вызывающего.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .context import EvaluationContext, Undo
from .errors import EvaluationError
from .expressions import ExpressionNode
from .host import HostValues
from .nodes import DeferredBlock, Node

logger = logging.getLogger(__name__)

BODY_CONTENT = "bodyContent"


@dataclass(frozen=True)
class Thunk:
    """Отложенное выражение аргумента, привязанное к контексту вызова."""
    expression: ExpressionNode
    context: EvaluationContext

    def evaluate(self) -> Any:
        return self.expression.evaluate(self.context)


@dataclass(frozen=True)
class Macro:
    """
    Определение макроса.

    Attributes:
        definition_line: Строка, на которой стоит #macro
        name: Имя макроса
        parameter_names: Имена параметров без '$'
        body: Тело макроса
    """
    definition_line: int
    name: str
    parameter_names: Tuple[str, ...]
    body: Node

    @property
    def parameter_count(self) -> int:
        return len(self.parameter_names)

    def render(
        self,
        context: EvaluationContext,
        arguments: Sequence[ExpressionNode],
        body_content: Optional[Node],
        output: List[str],
    ) -> None:
        """
        Отрисовывает тело макроса для одного вызова.

        Args:
            context: Контекст места вызова
            arguments: Выражения аргументов, по одному на параметр
            body_content: Тело вызова #@name(...) ... #end или None
            output: Выходной буфер

        Raises:
            EvaluationError: С префиксом "In macro #name defined on line N"
        """
        thunks = {
            name: Thunk(argument, context)
            for name, argument in zip(self.parameter_names, arguments)
        }
        block = None
        if body_content is not None:
            block = DeferredBlock(body_content, context, f"#@{self.name}")
        macro_context = MacroEvaluationContext(thunks, context, block)
        try:
            self.body.render(macro_context, output)
        except EvaluationError as e:
            raise EvaluationError(
                f"In macro #{self.name} defined on line {self.definition_line}: {e}",
                e.resource_name,
                e.line_number,
            ) from e
        finally:
            macro_context.restore_parameters()


class _ShadowedParameter:
    """Отмена #set, перекрывшего параметр макроса; выполняется не более одного раза."""

    def __init__(self, thunks: Dict[str, Thunk], var: str, thunk: Thunk, original_undo: Undo):
        self._thunks = thunks
        self._var = var
        self._thunk = thunk
        self._original_undo = original_undo
        self._done = False

    def __call__(self) -> None:
        if self._done:
            return
        self._done = True
        self._original_undo()
        self._thunks[self._var] = self._thunk


class MacroEvaluationContext(EvaluationContext):
    """
    Контекст тела макроса.

    Параметры читаются через thunk'и, остальные переменные и макросы
    берутся из контекста вызова. #set параметра перекрывает thunk до
    выхода из макроса.
    """

    def __init__(
        self,
        thunks: Dict[str, Thunk],
        original: EvaluationContext,
        body_content: Optional[DeferredBlock],
    ):
        self._thunks = thunks
        self._original = original
        self._body_content = body_content
        self._shadowed: List[_ShadowedParameter] = []

    def get_var(self, var: str) -> Any:
        if self._body_content is not None and var == BODY_CONTENT:
            return self._body_content
        thunk = self._thunks.get(var)
        if thunk is None:
            return self._original.get_var(var)
        return thunk.evaluate()

    def var_is_defined(self, var: str) -> bool:
        return (
            var in self._thunks
            or (self._body_content is not None and var == BODY_CONTENT)
            or self._original.var_is_defined(var)
        )

    def set_var(self, var: str, value: Any) -> Undo:
        thunk = self._thunks.pop(var, None)
        if thunk is None:
            return self._original.set_var(var, value)
        logger.debug(f"#set shadows parameter ${var} of macro")
        undo = _ShadowedParameter(self._thunks, var, thunk, self._original.set_var(var, value))
        self._shadowed.append(undo)
        return undo

    def restore_parameters(self) -> None:
        """Возвращает перекрытые параметры к их thunk'ам в обратном порядке."""
        while self._shadowed:
            self._shadowed.pop()()

    @property
    def macros(self) -> Dict[str, Macro]:
        return self._original.macros

    @property
    def host(self) -> HostValues:
        return self._original.host


__all__ = ["Thunk", "Macro", "MacroEvaluationContext", "BODY_CONTENT"]
