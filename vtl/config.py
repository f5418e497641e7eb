"""
Конфигурация движка шаблонов.

Файл vtl.yaml (или явно указанный путь) с ключами:

    resource_root: templates   # каталог шаблонов, относительно файла конфигурации
    encoding: utf-8
    cache_templates: true
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .errors import ConfigError

DEFAULT_CFG_FILE = "vtl.yaml"

_yaml = YAML(typ="safe")


@dataclass(frozen=True)
class EngineConfig:
    """
    Настройки TemplateEngine.

    Attributes:
        resource_root: Каталог, из которого открываются шаблоны
        encoding: Кодировка файлов шаблонов
        cache_templates: Запоминать ли разобранные шаблоны по имени
    """
    resource_root: Path = Path(".")
    encoding: str = "utf-8"
    cache_templates: bool = True

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], base_dir: Path = Path(".")) -> EngineConfig:
        """
        Строит конфигурацию из словаря YAML.

        Args:
            raw: Разобранный документ
            base_dir: Каталог, относительно которого трактуется resource_root

        Raises:
            ConfigError: Неизвестный ключ или значение неверного типа
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(map(str, unknown))}")

        root = raw.get("resource_root", ".")
        if not isinstance(root, str):
            raise ConfigError(f"resource_root must be a string, got {type(root).__name__}")
        encoding = raw.get("encoding", "utf-8")
        if not isinstance(encoding, str):
            raise ConfigError(f"encoding must be a string, got {type(encoding).__name__}")
        cache_templates = raw.get("cache_templates", True)
        if not isinstance(cache_templates, bool):
            raise ConfigError(f"cache_templates must be a boolean, got {type(cache_templates).__name__}")

        return cls(
            resource_root=base_dir / root,
            encoding=encoding,
            cache_templates=cache_templates,
        )


def _read_yaml_map(path: Path) -> Dict[str, Any]:
    """Читает YAML файл и возвращает словарь."""
    try:
        raw = _yaml.load(path.read_text(encoding="utf-8")) or {}
    except YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"YAML must be a mapping: {path}")
    return raw


def load_config(path: Path) -> EngineConfig:
    """
    Загружает конфигурацию движка.

    • Если path указывает на каталог, читается vtl.yaml в нём.
    • Если файла нет, возвращаются настройки по умолчанию с корнем в этом каталоге.

    Args:
        path: Файл конфигурации или каталог с vtl.yaml

    Returns:
        Конфигурация движка
    """
    path = Path(path)
    cfg_file = path / DEFAULT_CFG_FILE if path.is_dir() else path
    base_dir = cfg_file.parent
    if not cfg_file.is_file():
        return EngineConfig(resource_root=base_dir)
    return EngineConfig.from_dict(_read_yaml_map(cfg_file), base_dir)


__all__ = ["DEFAULT_CFG_FILE", "EngineConfig", "load_config"]
