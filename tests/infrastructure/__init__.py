"""
Unified test infrastructure for the template engine.

Modules:
- file_utils: Utilities for creating template files and directories
- rendering_utils: Utilities for parsing and rendering templates
- testing_utils: Host objects and resource openers used across tests
"""

from .file_utils import write, write_templates
from .rendering_utils import render, render_resources, make_parser
from .testing_utils import (
    CountingOpener,
    ClosingTrackingReader,
    Counter,
    Person,
    Registry,
    ShoutingHost,
)

__all__ = [
    # File utilities
    "write", "write_templates",

    # Rendering utilities
    "render", "render_resources", "make_parser",

    # Testing utilities
    "CountingOpener", "ClosingTrackingReader", "Counter", "Person", "Registry", "ShoutingHost",
]
