"""Event emitter used as the publish/subscribe backbone for listener scopes."""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, Hashable, List, Tuple

from .exceptions import ListenerError
from .logging import get_logger
from .tags import unwrap

LOGGER = get_logger("events")

Listener = Callable[..., Any]


class _WrappedListener:
    """Stored entry for fire-once and context-bound registrations.

    ``listener`` exposes the caller's callable so owners can recognise the
    wrapper when enumerating the emitter.
    """

    __slots__ = ("listener", "context", "once", "fired", "_emitter", "_event", "__weakref__")

    def __init__(
        self,
        emitter: "EventEmitter",
        event: Hashable,
        listener: Listener,
        context: Any = None,
        once: bool = False,
    ) -> None:
        self.listener = listener
        self.context = context
        self.once = once
        self.fired = False
        self._emitter = emitter
        self._event = event

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        if self.once:
            with self._emitter.lock:
                if self.fired:
                    return None
                self.fired = True
                self._emitter._detach(self._event, self)
        if self.context is not None:
            return self.listener(self.context, *args, **kwargs)
        return self.listener(*args, **kwargs)

    def __repr__(self) -> str:
        kind = "once" if self.once else "bound"
        return f"<{kind} listener {self.listener!r}>"


class EventEmitter:
    """A lightweight in-process event dispatcher.

    Listeners for each event name are kept in registration order. Event
    names may be any hashable value.
    """

    def __init__(self) -> None:
        self._events: Dict[Hashable, List[Listener]] = {}
        self.lock = threading.RLock()

    def on(self, event: Hashable, listener: Listener, context: Any = None) -> "EventEmitter":
        """Register ``listener`` for every emission of ``event``.

        When ``context`` is given the listener is called as
        ``listener(context, *args, **kwargs)``.
        """

        self._check_callable(listener)
        entry: Listener = listener
        if context is not None:
            entry = _WrappedListener(self, event, listener, context)
        with self.lock:
            self._events.setdefault(event, []).append(entry)
        return self

    add_listener = on

    def once(self, event: Hashable, listener: Listener, context: Any = None) -> "EventEmitter":
        """Register ``listener`` for the next emission of ``event`` only."""

        self._check_callable(listener)
        entry = _WrappedListener(self, event, listener, context, once=True)
        with self.lock:
            self._events.setdefault(event, []).append(entry)
        return self

    def remove_listener(self, event: Hashable, listener: Listener) -> "EventEmitter":
        """Remove the most recently added entry that is, or wraps, ``listener``.

        A stored entry identical to ``listener`` wins over one that merely
        wraps it.
        """

        with self.lock:
            entries = self._events.get(event)
            if not entries:
                return self
            index = _last_index(entries, lambda entry: entry is listener)
            if index is None:
                index = _last_index(
                    entries, lambda entry: entry == listener or unwrap(entry) == listener
                )
            if index is not None:
                del entries[index]
            if not entries:
                del self._events[event]
        return self

    off = remove_listener

    def remove_all_listeners(self, event: Hashable | None = None) -> "EventEmitter":
        with self.lock:
            if event is None:
                self._events.clear()
            else:
                self._events.pop(event, None)
        return self

    def listeners(self, event: Hashable) -> Tuple[Listener, ...]:
        """Return the caller-supplied listeners for ``event``."""

        with self.lock:
            return tuple(unwrap(entry) for entry in self._events.get(event, ()))

    def raw_listeners(self, event: Hashable) -> Tuple[Listener, ...]:
        """Return the stored entries for ``event``, wrappers included."""

        with self.lock:
            return tuple(self._events.get(event, ()))

    def listener_count(self, event: Hashable) -> int:
        with self.lock:
            return len(self._events.get(event, ()))

    def event_names(self) -> Tuple[Hashable, ...]:
        with self.lock:
            return tuple(name for name, entries in self._events.items() if entries)

    def emit(self, event: Hashable, *args: Any, **kwargs: Any) -> bool:
        """Call every listener for ``event`` in registration order.

        Returns ``True`` if the event had listeners.
        """

        with self.lock:
            entries = tuple(self._events.get(event, ()))
        if not entries:
            return False
        LOGGER.debug("emit event=%r listeners=%d", event, len(entries))
        for entry in entries:
            entry(*args, **kwargs)
        return True

    def _detach(self, event: Hashable, entry: Listener) -> None:
        with self.lock:
            entries = self._events.get(event)
            if not entries:
                return
            for index, candidate in enumerate(entries):
                if candidate is entry:
                    del entries[index]
                    break
            if not entries:
                del self._events[event]

    @staticmethod
    def _check_callable(listener: Any) -> None:
        if not callable(listener):
            raise ListenerError(f"Listener must be callable, got {type(listener).__name__}")


def _last_index(entries: List[Listener], predicate: Callable[[Listener], bool]) -> int | None:
    for index in range(len(entries) - 1, -1, -1):
        if predicate(entries[index]):
            return index
    return None


__all__ = ["EventEmitter", "Listener"]
