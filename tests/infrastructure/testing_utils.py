"""
Testing utilities: host objects, openers and other test helpers.
"""

from __future__ import annotations

import io
import threading
from collections import Counter as _Counter
from typing import Any, List, Mapping, Optional, TextIO

from vtl import MappingResourceOpener, PythonHost


class CountingOpener(MappingResourceOpener):
    """In-memory opener that records how many times each resource was opened."""

    def __init__(self, resources: Mapping[str, str]):
        super().__init__(resources)
        self.opened: _Counter = _Counter()
        self._lock = threading.Lock()

    def open_resource(self, resource_name: Optional[str]) -> TextIO:
        with self._lock:
            self.opened[resource_name] += 1
        return super().open_resource(resource_name)


class ClosingTrackingReader(io.StringIO):
    """StringIO that remembers whether close() was called."""

    def __init__(self, text: str):
        super().__init__(text)
        self.close_calls = 0

    def close(self) -> None:
        self.close_calls += 1
        super().close()


class Counter:
    """Host object whose next() has a visible side effect."""

    def __init__(self):
        self.calls = 0

    def next(self) -> int:
        self.calls += 1
        return self.calls


class Person:
    """Host object with plain attributes, a zero-argument method and a typed method."""

    def __init__(self, name: str, tags: Optional[List[str]] = None):
        self.name = name
        self.tags = tags or []
        self._secret = "hidden"

    def has_tags(self) -> bool:
        return bool(self.tags)

    def greet(self, other: str) -> str:
        return f"{self.name} greets {other}"

    def fail(self) -> Any:
        raise ValueError("boom")

    def __str__(self) -> str:
        return f"Person({self.name})"


class Registry:
    """Non-mapping host object indexed through a get() method."""

    def __init__(self, **items: Any):
        self._items = items

    def get(self, key: str) -> Any:
        return self._items.get(key)


class ShoutingHost(PythonHost):
    """HostValues that renders every string in upper case."""

    def to_string(self, value: Any) -> str:
        return super().to_string(value).upper()


__all__ = [
    "CountingOpener",
    "ClosingTrackingReader",
    "Counter",
    "Person",
    "Registry",
    "ShoutingHost",
]
