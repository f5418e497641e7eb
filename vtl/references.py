"""
Ссылки: $name и цепочки суффиксов .member, .method(...) и [index].
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Tuple

from .errors import BreakSignal, HostAccessError, VtlUserError
from .expressions import ExpressionNode
from .nodes import DeferredBlock

if TYPE_CHECKING:
    from .context import EvaluationContext


@dataclass(frozen=True)
class ReferenceNode(ExpressionNode):
    """Базовый класс ссылок."""

    def _dereference(self, lhs: ReferenceNode, context: EvaluationContext) -> Any:
        """Вычисляет левую часть суффикса; null и значения из #define недопустимы."""
        value = lhs.evaluate(context)
        if value is None:
            raise self.evaluation_error(f"In {self}: {lhs} must not be null")
        if isinstance(value, DeferredBlock):
            raise self.evaluation_error(
                f"In {self}: {lhs} comes from {value.origin} and cannot be dereferenced"
            )
        return value

    def _call_host(self, call: Callable[..., Any], *args: Any) -> Any:
        try:
            return call(*args)
        except HostAccessError as e:
            raise self.evaluation_error(f"In {self}: {e}") from e
        except (VtlUserError, BreakSignal):
            raise
        except Exception as e:
            raise self.evaluation_error_from(e) from e


@dataclass(frozen=True)
class PlainReferenceNode(ReferenceNode):
    id: str
    silent: bool = False

    def __str__(self) -> str:
        return f"$!{self.id}" if self.silent else f"${self.id}"

    def is_silent(self) -> bool:
        return self.silent

    def evaluate(self, context: EvaluationContext, undefined_is_false: bool = False) -> Any:
        if context.var_is_defined(self.id):
            return context.get_var(self.id)
        if undefined_is_false:
            return False
        raise self.evaluation_error(f"Undefined reference ${self.id}")


@dataclass(frozen=True)
class MemberReferenceNode(ReferenceNode):
    lhs: ReferenceNode
    id: str
    silent: bool = False

    def __str__(self) -> str:
        return f"{self.lhs}.{self.id}"

    def is_silent(self) -> bool:
        return self.silent

    def evaluate(self, context: EvaluationContext, undefined_is_false: bool = False) -> Any:
        value = self._dereference(self.lhs, context)
        return self._call_host(context.host.get_property, value, self.id)


@dataclass(frozen=True)
class MethodReferenceNode(ReferenceNode):
    lhs: ReferenceNode
    id: str
    args: Tuple[ExpressionNode, ...]
    silent: bool = False

    def __str__(self) -> str:
        return f"{self.lhs}.{self.id}(" + ", ".join(str(arg) for arg in self.args) + ")"

    def is_silent(self) -> bool:
        return self.silent

    def evaluate(self, context: EvaluationContext, undefined_is_false: bool = False) -> Any:
        value = self._dereference(self.lhs, context)
        arg_values = [arg.evaluate(context) for arg in self.args]
        return self._call_host(context.host.call_method, value, self.id, arg_values)


@dataclass(frozen=True)
class IndexReferenceNode(ReferenceNode):
    lhs: ReferenceNode
    index: ExpressionNode
    silent: bool = False

    def __str__(self) -> str:
        return f"{self.lhs}[{self.index}]"

    def is_silent(self) -> bool:
        return self.silent

    def evaluate(self, context: EvaluationContext, undefined_is_false: bool = False) -> Any:
        value = self._dereference(self.lhs, context)
        key = self.index.evaluate(context)
        return self._call_host(context.host.index, value, key)


__all__ = [
    "ReferenceNode",
    "PlainReferenceNode",
    "MemberReferenceNode",
    "MethodReferenceNode",
    "IndexReferenceNode",
]
