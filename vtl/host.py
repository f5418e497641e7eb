"""
Доступ к значениям хоста: свойства, методы, индексация и строковое представление.

Ядро шаблонизатора обращается к значениям только через протокол HostValues.
PythonHost реализует его поверх getattr/inspect и выдаёт строки в том же
виде, что и эталонный движок: true/false, null, [a, b], {k=v}.
"""

from __future__ import annotations

import inspect
import re
import threading
import typing
from collections.abc import Mapping, Sequence, Set
from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from .errors import AmbiguousMemberError, HostAccessError, NoSuchMemberError

_MISSING = object()

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def is_integer(value: Any) -> bool:
    """Целое число, но не bool."""
    return isinstance(value, int) and not isinstance(value, bool)


def is_list_like(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def type_name(value: Any) -> str:
    """Имя типа значения для сообщений об ошибках."""
    cls = type(value)
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def to_string(value: Any) -> str:
    """
    Строковое представление значения в стиле эталонного движка.

    Args:
        value: Любое значение хоста

    Returns:
        'null' для None, 'true'/'false' для bool, '[a, b]' для
        последовательностей и множеств, '{k=v}' для отображений,
        иначе str(value)
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        return "{" + ", ".join(f"{to_string(k)}={to_string(v)}" for k, v in value.items()) + "}"
    if is_list_like(value) or isinstance(value, Set):
        return "[" + ", ".join(to_string(item) for item in value) + "]"
    return str(value)


def _flip_initial(name: str) -> str:
    initial = name[0]
    if initial.isupper():
        return initial.lower() + name[1:]
    if initial.islower():
        return initial.upper() + name[1:]
    return name


def _snake_case(name: str) -> str:
    return _CAMEL_BOUNDARY.sub(lambda m: "_" + m.group(1).lower(), name)


@runtime_checkable
class HostValues(Protocol):
    """
    Протокол доступа к значениям хоста.

    Реализация должна быть детерминированной и сообщать об отсутствии
    подходящего члена через NoSuchMemberError, о неоднозначности через
    AmbiguousMemberError.
    """

    def get_property(self, value: Any, name: str) -> Any: ...

    def call_method(self, value: Any, name: str, args: List[Any]) -> Any: ...

    def index(self, value: Any, key: Any) -> Any: ...

    def to_string(self, value: Any) -> str: ...


class PythonHost:
    """Реализация HostValues поверх getattr/inspect."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._signatures: Dict[Tuple[type, str], Optional[inspect.Signature]] = {}

    # -------- properties --------

    def get_property(self, value: Any, name: str) -> Any:
        if isinstance(value, Mapping):
            return value.get(name)

        matches: List[Tuple[str, Any]] = []
        for candidate in dict.fromkeys((name, _flip_initial(name), _snake_case(name))):
            if candidate.startswith("_"):
                continue
            attr = getattr(value, candidate, _MISSING)
            if attr is _MISSING:
                continue
            if inspect.ismethod(attr) or inspect.isbuiltin(attr):
                if not self._accepts(value, candidate, attr, []):
                    continue
            if any(_same_member(attr, other) for _, other in matches):
                continue
            matches.append((candidate, attr))

        if len(matches) > 1:
            raise AmbiguousMemberError(
                "ambiguous method invocation, could be one of: "
                + ", ".join(candidate for candidate, _ in matches)
            )
        if matches:
            attr = matches[0][1]
            if inspect.ismethod(attr) or inspect.isbuiltin(attr):
                return attr()
            return attr

        raise NoSuchMemberError(
            f"member {name} does not correspond to a public getter of "
            f"{to_string(value)}, a {type_name(value)}"
        )

    # -------- methods --------

    def call_method(self, value: Any, name: str, args: List[Any]) -> Any:
        attr = _MISSING
        if not name.startswith("_"):
            attr = getattr(value, name, _MISSING)
        if attr is _MISSING or not callable(attr):
            raise NoSuchMemberError(f"no method {name} in {type_name(value)}")
        if not self._accepts(value, name, attr, args):
            raise HostAccessError(
                f"parameters for method {name} have wrong types: "
                f"[{', '.join(to_string(arg) for arg in args)}]"
            )
        return attr(*args)

    def _accepts(self, value: Any, name: str, method: Any, args: List[Any]) -> bool:
        signature = self._signature(value, name, method)
        if signature is None:
            return True
        try:
            bound = signature.bind(*args)
        except TypeError:
            return False
        hints = _type_hints(method)
        for param_name, arg in bound.arguments.items():
            kind = signature.parameters[param_name].kind
            if kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                continue
            expected = hints.get(param_name)
            if arg is None or not isinstance(expected, type):
                continue
            if not _instance_of(arg, expected):
                return False
        return True

    def _signature(self, value: Any, name: str, method: Any) -> Optional[inspect.Signature]:
        cls = type(value)
        # Кэшируем только методы, объявленные на типе; атрибуты экземпляра
        # могут различаться между объектами одного типа
        cacheable = not isinstance(value, type) and inspect.getattr_static(cls, name, None) is not None
        key = (cls, name)
        if cacheable:
            with self._lock:
                if key in self._signatures:
                    return self._signatures[key]
        try:
            signature: Optional[inspect.Signature] = inspect.signature(method)
        except (TypeError, ValueError):
            signature = None
        if cacheable:
            with self._lock:
                self._signatures.setdefault(key, signature)
        return signature

    # -------- indexing --------

    def index(self, value: Any, key: Any) -> Any:
        if is_list_like(value):
            if not is_integer(key):
                raise HostAccessError(f"list index is not an Integer: {to_string(key)}")
            size = len(value)
            if key < 0:
                if key + size < 0:
                    raise HostAccessError(
                        f"negative list index {key} counts from the end of the list, "
                        f"but the list size is only {size}"
                    )
                return value[key + size]
            if key >= size:
                raise HostAccessError(f"list index {key} is not valid for list of size {size}")
            return value[key]
        if isinstance(value, Mapping):
            return value.get(key)
        return self.call_method(value, "get", [key])

    def to_string(self, value: Any) -> str:
        return to_string(value)


def _type_hints(method: Any) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(method)
    except (NameError, TypeError, AttributeError):
        return {}


def _same_member(first: Any, second: Any) -> bool:
    """Один и тот же член класса, найденный под разными именами (например, алиас метода)."""
    return getattr(first, "__func__", first) is getattr(second, "__func__", second)


def _instance_of(arg: Any, expected: type) -> bool:
    if expected is int:
        return is_integer(arg)
    if expected is float:
        return isinstance(arg, float) or is_integer(arg)
    return isinstance(arg, expected)


__all__ = [
    "HostValues",
    "PythonHost",
    "is_integer",
    "is_list_like",
    "type_name",
    "to_string",
]
