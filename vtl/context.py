"""
Контекст вычисления шаблона.

Хранит переменные, реестр макросов и ссылку на доступ к значениям хоста.
Установка переменной возвращает действие отмены, которое восстанавливает
прежнее состояние (значение или отсутствие переменной).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Optional

from .host import HostValues

if TYPE_CHECKING:
    from .macros import Macro

Undo = Callable[[], None]


class EvaluationContext(ABC):
    """Интерфейс окружения, в котором отрисовываются узлы."""

    @abstractmethod
    def get_var(self, var: str) -> Any:
        pass

    @abstractmethod
    def var_is_defined(self, var: str) -> bool:
        pass

    @abstractmethod
    def set_var(self, var: str, value: Any) -> Undo:
        """Связывает переменную со значением и возвращает действие отмены."""
        pass

    @property
    @abstractmethod
    def macros(self) -> Dict[str, Macro]:
        """Изменяемый реестр макросов текущего вычисления."""
        pass

    @property
    @abstractmethod
    def host(self) -> HostValues:
        pass

    def get_macro(self, name: str) -> Optional[Macro]:
        return self.macros.get(name)


class PlainEvaluationContext(EvaluationContext):
    """
    Контекст верхнего уровня одного вычисления.

    Копирует переданные переменные, поэтому #set не меняет исходный словарь.
    """

    def __init__(self, variables: Mapping[str, Any], macros: Dict[str, Macro], host: HostValues):
        self._vars: Dict[str, Any] = dict(variables)
        self._macros = macros
        self._host = host

    def get_var(self, var: str) -> Any:
        return self._vars.get(var)

    def var_is_defined(self, var: str) -> bool:
        return var in self._vars

    def set_var(self, var: str, value: Any) -> Undo:
        if var in self._vars:
            old_value = self._vars[var]

            def undo() -> None:
                self._vars[var] = old_value
        else:
            def undo() -> None:
                self._vars.pop(var, None)

        self._vars[var] = value
        return undo

    @property
    def macros(self) -> Dict[str, Macro]:
        return self._macros

    @property
    def host(self) -> HostValues:
        return self._host


__all__ = ["Undo", "EvaluationContext", "PlainEvaluationContext"]
