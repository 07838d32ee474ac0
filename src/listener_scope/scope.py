"""Scoped listener registration on top of a shared event emitter."""

from __future__ import annotations

import itertools
from contextlib import nullcontext
from typing import Any, Callable, ContextManager, Hashable, Iterable, List, Tuple

from .config import ScopeSettings, load_settings
from .exceptions import ConfigurationError
from .logging import get_logger, log_event
from .tags import TAGS, OwnershipTags, release, resolve_owner

LOGGER = get_logger("scope")

_ids = itertools.count()


class ListenerScope:
    """Registers listeners on an emitter and removes only the ones it added.

    Every listener added through :meth:`on` or :meth:`once` is tagged with the
    scope's :attr:`id`. :meth:`remove` and :meth:`destroy` inspect the
    emitter's live listeners and detach only entries carrying that tag, so
    listeners added directly on the emitter or through other scopes are
    left alone.
    """

    def __init__(
        self,
        emitter: Any = None,
        *,
        settings: ScopeSettings | None = None,
        tags: OwnershipTags = TAGS,
    ) -> None:
        self._id = next(_ids)
        self.emitter = emitter
        self.settings = settings if settings is not None else _settings_from_env()
        self._tags = tags
        self._alive = True

    @property
    def id(self) -> int:
        return self._id

    @property
    def alive(self) -> bool:
        return self._alive

    def on(self, event: Hashable, listener: Callable[..., Any], context: Any = None) -> "ListenerScope":
        """Add a persistent listener for ``event``."""

        return self._register("on", event, listener, context)

    def once(self, event: Hashable, listener: Callable[..., Any], context: Any = None) -> "ListenerScope":
        """Add a listener that fires on the next emission of ``event`` only."""

        return self._register("once", event, listener, context)

    def remove(self, *events: Hashable) -> "ListenerScope":
        """Remove this scope's listeners from ``events``, or from every event."""

        self._remove(events)
        return self

    def destroy(self) -> bool:
        """Remove every listener added by this scope and release the emitter.

        Returns ``True`` on the first call and ``False`` afterwards.
        """

        if not self._alive:
            return False

        removed = self._remove(())
        for _, entry in removed:
            release(entry, self._id, self._tags)
        self.emitter = None
        self._alive = False
        log_event(LOGGER, "scope_destroyed", {"scope_id": self._id, "removed": len(removed)})
        return True

    def __enter__(self) -> "ListenerScope":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.destroy()

    def __repr__(self) -> str:
        state = "alive" if self._alive else "destroyed"
        return f"<ListenerScope id={self._id} {state} emitter={self.emitter!r}>"

    def _register(
        self, method: str, event: Hashable, listener: Callable[..., Any], context: Any
    ) -> "ListenerScope":
        emitter = self.emitter
        if emitter is None:
            return self

        previous = self._tags.tag(listener, self._id)
        add = getattr(emitter, method)
        try:
            if context is None:
                add(event, listener)
            else:
                add(event, listener, context)
        except BaseException:
            self._tags.restore(listener, previous)
            raise
        LOGGER.debug(
            "%s scope=%s event=%r", method, self._id, event,
            extra={"scope_id": self._id, "event_name": repr(event)},
        )
        return self

    def _remove(self, events: Tuple[Hashable, ...]) -> List[Tuple[Hashable, Any]]:
        emitter = self.emitter
        if emitter is None:
            return []

        names = self._target_names(emitter, events)
        removed: List[Tuple[Hashable, Any]] = []
        for name in names:
            with _emitter_lock(emitter):
                for entry in _live_entries(emitter, name):
                    if resolve_owner(entry, self._tags) != self._id:
                        continue
                    emitter.remove_listener(name, entry)
                    removed.append((name, entry))
        if removed:
            LOGGER.debug(
                "remove scope=%s listeners=%d", self._id, len(removed),
                extra={"scope_id": self._id},
            )
        return removed

    def _target_names(self, emitter: Any, events: Tuple[Hashable, ...]) -> Iterable[Hashable]:
        if not events:
            return _event_names(emitter)
        if (
            len(events) == 1
            and isinstance(events[0], str)
            and self.settings.split_delimited_names
        ):
            return self.settings.split_names(events[0]) or events
        return events


def scope(emitter: Any = None, *, settings: ScopeSettings | None = None) -> ListenerScope:
    """Return a new :class:`ListenerScope` wrapping ``emitter``."""

    return ListenerScope(emitter, settings=settings)


def _settings_from_env() -> ScopeSettings:
    try:
        return load_settings()
    except ConfigurationError as exc:
        LOGGER.warning("Ignoring invalid scope settings from environment: %s", exc)
        return ScopeSettings()


def _emitter_lock(emitter: Any) -> ContextManager[Any]:
    lock = getattr(emitter, "lock", None)
    if lock is None or not hasattr(lock, "__enter__"):
        return nullcontext()
    return lock


def _live_entries(emitter: Any, event: Hashable) -> Tuple[Any, ...]:
    raw = getattr(emitter, "raw_listeners", None)
    if callable(raw):
        return tuple(raw(event))
    return tuple(emitter.listeners(event))


def _event_names(emitter: Any) -> Tuple[Hashable, ...]:
    names = getattr(emitter, "event_names", None)
    if callable(names):
        return tuple(names())
    events = getattr(emitter, "_events", None)
    if isinstance(events, dict):
        return tuple(events)
    return ()


__all__ = ["ListenerScope", "scope"]
