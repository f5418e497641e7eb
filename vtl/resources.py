"""
Открытие именованных ресурсов шаблонов.

Движок обращается к ресурсам только через ResourceOpener: для корневого
шаблона (имя может отсутствовать) и для каждой директивы #parse.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Mapping, Optional, Protocol, TextIO, runtime_checkable


@runtime_checkable
class ResourceOpener(Protocol):
    """Открывает ресурс по имени как текстовый поток. Вызывающий закрывает поток."""

    def open_resource(self, resource_name: Optional[str]) -> TextIO:
        ...


class MappingResourceOpener:
    """Ресурсы из словаря имя -> исходный текст."""

    def __init__(self, resources: Mapping[str, str]):
        self._resources = dict(resources)

    def open_resource(self, resource_name: Optional[str]) -> TextIO:
        if resource_name is None or resource_name not in self._resources:
            raise FileNotFoundError(resource_name)
        return io.StringIO(self._resources[resource_name])


class FileResourceOpener:
    """
    Ресурсы из файлов под корневым каталогом.

    Args:
        root: Каталог шаблонов
        encoding: Кодировка файлов
    """

    def __init__(self, root: Path, encoding: str = "utf-8"):
        self.root = Path(root).resolve()
        self.encoding = encoding

    def resolve(self, resource_name: str) -> Path:
        path = (self.root / resource_name).resolve()
        if path != self.root and self.root not in path.parents:
            raise PermissionError(f"Resource {resource_name} is outside {self.root}")
        return path

    def open_resource(self, resource_name: Optional[str]) -> TextIO:
        if resource_name is None:
            raise FileNotFoundError("A resource name is required to open a template file")
        return self.resolve(resource_name).open("r", encoding=self.encoding)


class SourceTextOpener:
    """Отдаёт готовый текст корневого шаблона; именованные ресурсы не поддерживаются."""

    def __init__(self, text: str):
        self._text = text

    def open_resource(self, resource_name: Optional[str]) -> TextIO:
        if resource_name is None:
            return io.StringIO(self._text)
        raise OSError(f"No ResourceOpener has been configured to read {resource_name}")


__all__ = [
    "ResourceOpener",
    "MappingResourceOpener",
    "FileResourceOpener",
    "SourceTextOpener",
]
