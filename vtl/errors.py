"""
Иерархия исключений шаблонизатора.

Все ожидаемые ошибки, которые может исправить автор шаблона, наследуются
от VtlUserError. Ошибки программирования от него не наследуются и
распространяются с полным трейсбеком.
"""

from __future__ import annotations

from typing import Optional


def where(resource_name: Optional[str], line_number: int) -> str:
    """Описание места в исходнике: 'on line N' или 'on line N of R'."""
    if resource_name is None:
        return f"on line {line_number}"
    return f"on line {line_number} of {resource_name}"


class VtlUserError(Exception):
    """
    Base class for all user-facing template errors.

    These errors indicate problems that the template author can fix:
    syntax errors, undefined references, missing resources, etc.
    """
    pass


class ParseError(VtlUserError):
    """
    Ошибка разбора шаблона.

    Несёт имя ресурса, номер строки и фрагмент текста, следующий
    за местом ошибки.
    """

    def __init__(
        self,
        message: str,
        resource_name: Optional[str],
        line_number: int,
        context: Optional[str] = None,
    ):
        self.message = message
        self.resource_name = resource_name
        self.line_number = line_number
        self.context = context

        full = f"{message}, {where(resource_name, line_number)}"
        if context is not None:
            full += f", at text starting: {context}"
        super().__init__(full)


class EvaluationError(VtlUserError):
    """Ошибка вычисления шаблона с привязкой к узлу-источнику."""

    def __init__(self, message: str, resource_name: Optional[str] = None, line_number: Optional[int] = None):
        self.resource_name = resource_name
        self.line_number = line_number
        super().__init__(message)


class HostAccessError(VtlUserError):
    """Failure reported by a host-value collaborator."""
    pass


class NoSuchMemberError(HostAccessError):
    """No property or method matches the requested name and arguments."""
    pass


class AmbiguousMemberError(HostAccessError):
    """More than one method matches the requested name and arguments."""
    pass


class ConfigError(VtlUserError):
    """Некорректная конфигурация движка."""
    pass


class BreakSignal(Exception):
    """
    Внутренний сигнал #break.

    Не является пользовательской ошибкой: перехватывается ближайшей
    подходящей конструкцией (#foreach, #parse, #evaluate или корень шаблона).

    Args:
        origin: Узел #break, породивший сигнал
        foreach_scope: True для #break($foreach), который ловит только #foreach
    """

    def __init__(self, origin, foreach_scope: bool):
        super().__init__("#break")
        self.origin = origin
        self.foreach_scope = foreach_scope


__all__ = [
    "where",
    "VtlUserError",
    "ParseError",
    "EvaluationError",
    "HostAccessError",
    "NoSuchMemberError",
    "AmbiguousMemberError",
    "ConfigError",
    "BreakSignal",
]
