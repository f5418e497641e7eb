"""
Шаблонизатор с подмножеством языка Velocity (VTL).

Поддерживает ссылки $x.y.z(...)[i], #set, #if/#elseif/#else, #foreach,
#define, #macro, #@macro, #break, #parse и #evaluate.

    from vtl import Template

    template = Template.from_string("Hello, $name!")
    template.evaluate({"name": "World"})
"""

from __future__ import annotations

from .config import EngineConfig, load_config
from .engine import TemplateEngine
from .errors import (
    AmbiguousMemberError,
    ConfigError,
    EvaluationError,
    HostAccessError,
    NoSuchMemberError,
    ParseError,
    VtlUserError,
)
from .host import HostValues, PythonHost
from .resources import FileResourceOpener, MappingResourceOpener, ResourceOpener, SourceTextOpener
from .template import Template
from .version import tool_version

__all__ = [
    "Template",
    "TemplateEngine",
    "EngineConfig",
    "load_config",
    # Errors
    "VtlUserError",
    "ParseError",
    "EvaluationError",
    "HostAccessError",
    "NoSuchMemberError",
    "AmbiguousMemberError",
    "ConfigError",
    # Host values
    "HostValues",
    "PythonHost",
    # Resources
    "ResourceOpener",
    "MappingResourceOpener",
    "FileResourceOpener",
    "SourceTextOpener",
    "tool_version",
]
