"""
TemplateEngine: шаблоны из каталога по конфигурации.

Объединяет EngineConfig, FileResourceOpener и кэш разобранных корневых
шаблонов по имени.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .config import EngineConfig, load_config
from .resources import FileResourceOpener
from .template import Template
from .version import tool_version

logger = logging.getLogger(__name__)


class TemplateEngine:
    """
    Фасад для рендеринга шаблонов из файлов.

    Args:
        config: Настройки движка; по умолчанию шаблоны ищутся в текущем каталоге
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self.opener = FileResourceOpener(self.config.resource_root, self.config.encoding)
        # Кэши для производительности
        self._template_cache: Dict[str, Template] = {}
        self._lock = threading.Lock()
        logger.debug(f"vtl {tool_version()} engine over {self.opener.root}")

    @classmethod
    def from_config_file(cls, path: Path) -> TemplateEngine:
        """Создаёт движок по vtl.yaml (или каталогу, который его содержит)."""
        return cls(load_config(path))

    def get_template(self, name: str) -> Template:
        """
        Возвращает разобранный шаблон по имени ресурса.

        Raises:
            ParseError: Синтаксическая ошибка в шаблоне
            OSError: Файл шаблона не удалось открыть
        """
        if not self.config.cache_templates:
            return Template.parse_from(name, self.opener)

        with self._lock:
            template = self._template_cache.get(name)
            if template is None:
                logger.debug(f"Loading template {name} from {self.opener.root}")
                template = Template.parse_from(name, self.opener)
                self._template_cache[name] = template
            return template

    def render(self, name: str, variables: Optional[Mapping[str, Any]] = None) -> str:
        """Разбирает (или берёт из кэша) шаблон и вычисляет его."""
        return self.get_template(name).evaluate(variables)

    def clear_cache(self) -> None:
        with self._lock:
            self._template_cache.clear()


__all__ = ["TemplateEngine"]
