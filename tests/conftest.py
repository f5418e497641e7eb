from pathlib import Path

import pytest

from vtl import EngineConfig, TemplateEngine

from tests.infrastructure.file_utils import write_templates
from tests.infrastructure.testing_utils import CountingOpener


@pytest.fixture
def templates_dir(tmp_path: Path) -> Path:
    """Каталог с небольшим набором шаблонов: корневой, подключаемый и библиотека макросов."""
    return write_templates(tmp_path / "templates", {
        "main.vm": "Hello, $name#parse('footer.vm')",
        "footer.vm": "!",
        "lib/macros.vm": "#macro(bold $text)<b>$text</b>#end",
        "page.vm": "#parse('lib/macros.vm')#bold($title)",
        "broken.vm": "#if (true)never closed",
    })


@pytest.fixture
def engine(templates_dir: Path) -> TemplateEngine:
    return TemplateEngine(EngineConfig(resource_root=templates_dir))


@pytest.fixture
def counting_opener() -> CountingOpener:
    return CountingOpener({
        "main": "#foreach ($i in [1..3])#parse('item')#end",
        "item": "[$i]",
        "lib": "#macro(m)from lib#end",
    })
