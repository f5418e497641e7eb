"""
Публичный API шаблона.

Шаблон разбирается один раз и затем вычисляется любое число раз, в том
числе одновременно из нескольких потоков: дерево узлов неизменяемо, а всё
изменяемое состояние вычисления живёт в контексте, создаваемом на каждый
вызов evaluate().
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, TextIO

from .cache import TemplateLoader
from .context import EvaluationContext, PlainEvaluationContext
from .errors import BreakSignal
from .host import HostValues, PythonHost
from .macros import Macro
from .nodes import Node
from .resources import ResourceOpener, SourceTextOpener


class Template:
    """
    Разобранный шаблон.

    Создаётся через parse_from(), from_string() или from_reader().
    """

    def __init__(self, root: Node, macros: Dict[str, Macro], loader: TemplateLoader):
        self._root = root
        self._macros = dict(macros)
        self._loader = loader
        self._host = PythonHost()

    # -------- construction --------

    @classmethod
    def parse_from(cls, resource_name: str, opener: ResourceOpener) -> Template:
        """
        Разбирает шаблон из именованного ресурса.

        Тот же opener используется для всех #parse при вычислении шаблона.

        Args:
            resource_name: Имя корневого ресурса
            opener: Источник ресурсов

        Returns:
            Разобранный шаблон

        Raises:
            ParseError: Синтаксическая ошибка в шаблоне
            OSError: Ресурс не удалось открыть
        """
        return TemplateLoader(opener).parse_resource(resource_name)

    @classmethod
    def from_string(cls, text: str) -> Template:
        """Разбирает шаблон из строки. #parse внутри такого шаблона недоступен."""
        return TemplateLoader(SourceTextOpener(text)).parse_resource(None)

    @classmethod
    def from_reader(cls, reader: TextIO) -> Template:
        """Разбирает шаблон из текстового потока. Поток не закрывается."""
        return cls.from_string(reader.read())

    # -------- evaluation --------

    @property
    def loader(self) -> TemplateLoader:
        """Загрузчик, через который этот шаблон разбирает #parse и #evaluate."""
        return self._loader

    @property
    def macros(self) -> Mapping[str, Macro]:
        """Макросы, определённые в самом шаблоне (без подключаемых через #parse)."""
        return MappingProxyType(self._macros)

    def evaluate(self, variables: Optional[Mapping[str, Any]] = None, host: Optional[HostValues] = None) -> str:
        """
        Вычисляет шаблон.

        Args:
            variables: Значения переменных; сам словарь не изменяется
            host: Доступ к свойствам и методам значений; по умолчанию PythonHost

        Returns:
            Результат отрисовки

        Raises:
            EvaluationError: Ошибка вычисления (undefined reference и т.п.)
        """
        context = PlainEvaluationContext(
            variables or {},
            dict(self._macros),
            host if host is not None else self._host,
        )
        output: List[str] = []
        try:
            self.render(context, output)
        except BreakSignal as signal:
            if signal.foreach_scope:
                raise signal.origin.evaluation_error("#break($foreach) is not inside a #foreach") from None
        return "".join(output)

    def render(self, context: EvaluationContext, output: List[str]) -> None:
        """Отрисовывает корень шаблона в чужом контексте (для #parse и #evaluate)."""
        self._root.render(context, output)


__all__ = ["Template"]
