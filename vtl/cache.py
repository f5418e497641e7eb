"""
Кэш разбора вложенных шаблонов для #parse и #evaluate.

Один загрузчик создаётся на корневой разбор и передаётся вниз во все
вложенные разборы. Шаблон каждого ресурса разбирается не более одного раза.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Dict, Optional

from .resources import ResourceOpener

if TYPE_CHECKING:
    from .template import Template

logger = logging.getLogger(__name__)


class TemplateLoader:
    """
    Загрузчик вложенных шаблонов с кэшем по имени ресурса.

    Получение из кэша и вставка выполняются под блокировкой, поэтому
    шаблон можно вычислять из нескольких потоков одновременно.
    """

    def __init__(self, opener: ResourceOpener):
        self.opener = opener
        self._templates: Dict[str, Template] = {}
        self._lock = threading.RLock()

    def load(self, resource_name: str) -> Template:
        """
        Возвращает разобранный шаблон ресурса, разбирая его при первом обращении.

        Raises:
            ParseError: Ошибка разбора ресурса
            OSError: Ресурс не удалось открыть
        """
        with self._lock:
            template = self._templates.get(resource_name)
            if template is not None:
                logger.debug(f"Parse cache hit for {resource_name}")
                return template

            logger.debug(f"Parse cache miss for {resource_name}")
            template = self.parse_resource(resource_name)
            self._templates[resource_name] = template
            return template

    def parse_resource(self, resource_name: Optional[str]) -> Template:
        """Открывает и разбирает ресурс без обращения к кэшу."""
        from .parser import TemplateParser

        with self.opener.open_resource(resource_name) as reader:
            text = reader.read()
        return TemplateParser(text, resource_name, self).parse()

    def parse_string(self, text: str, resource_name: str) -> Template:
        """Разбирает текст как отдельный шаблон, разделяющий этот кэш."""
        from .parser import TemplateParser

        return TemplateParser(text, resource_name, self).parse()

    def cached_names(self):
        with self._lock:
            return sorted(self._templates)


__all__ = ["TemplateLoader"]
