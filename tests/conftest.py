from __future__ import annotations

import sys
from pathlib import Path

import pytest


# Ensure src/ is importable for all tests (CI and local)
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
for p in (ROOT, SRC):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from listener_scope.config import ScopeSettings  # noqa: E402
from listener_scope.events import EventEmitter  # noqa: E402
from listener_scope.scope import ListenerScope  # noqa: E402


def pytest_collection_modifyitems(config, items):
    """Default all tests to 'unit' unless explicitly marked otherwise."""
    for item in items:
        marks = {m.name for m in item.iter_markers()}
        if not ("integ" in marks or "unit" in marks):
            item.add_marker(pytest.mark.unit)


@pytest.fixture
def emitter() -> EventEmitter:
    ee = EventEmitter()
    yield ee
    ee.remove_all_listeners()


@pytest.fixture
def registry(emitter: EventEmitter) -> ListenerScope:
    instance = ListenerScope(emitter, settings=ScopeSettings())
    yield instance
    instance.destroy()


class MinimalEmitter:
    """Emitter exposing only on/once/remove_listener/listeners/emit.

    ``listeners()`` reports fire-once wrappers rather than the original
    callables, and there is no lock, ``raw_listeners`` or ``event_names``.
    """

    def __init__(self) -> None:
        self._events = {}

    def on(self, event, listener):
        self._events.setdefault(event, []).append(listener)

    def once(self, event, listener):
        def wrapper(*args, **kwargs):
            self.remove_listener(event, wrapper)
            return listener(*args, **kwargs)

        wrapper.listener = listener
        self._events.setdefault(event, []).append(wrapper)

    def remove_listener(self, event, listener):
        entries = self._events.get(event, [])
        for index, entry in enumerate(entries):
            if entry is listener:
                del entries[index]
                break
        if not entries:
            self._events.pop(event, None)

    def listeners(self, event):
        return list(self._events.get(event, []))

    def emit(self, event, *args, **kwargs):
        for entry in list(self._events.get(event, [])):
            entry(*args, **kwargs)


@pytest.fixture
def minimal_emitter() -> MinimalEmitter:
    return MinimalEmitter()
