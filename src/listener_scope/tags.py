"""Ownership tags linking listeners to the scope that registered them.

Tags live in a side table rather than on the callable itself, so tagging
never changes how a listener is invoked and works for bound methods and
other callables that reject attribute assignment. Listeners that support
weak references are held weakly; the rest are held strongly until their
owner untags them.
"""

from __future__ import annotations

import threading
import weakref
from typing import Any, Callable, Dict, MutableMapping

# Attribute emitters use to expose the callable behind a fire-once or
# context-binding wrapper.
WRAPPED_ATTRIBUTE = "listener"


class OwnershipTags:
    """Process-wide mapping of listener -> owning scope id."""

    def __init__(self) -> None:
        self._weak: MutableMapping[Any, int] = weakref.WeakKeyDictionary()
        self._strong: Dict[Any, int] = {}
        self._lock = threading.Lock()

    def tag(self, listener: Callable[..., Any], owner: int) -> int | None:
        """Tag ``listener`` with ``owner`` and return the previous tag, if any."""

        with self._lock:
            previous = self._get(listener)
            try:
                self._weak[listener] = owner
            except TypeError:
                self._strong[listener] = owner
            return previous

    def restore(self, listener: Callable[..., Any], owner: int | None) -> None:
        """Put back a tag returned by :meth:`tag` (``None`` clears it)."""

        with self._lock:
            self._discard(listener)
            if owner is not None:
                try:
                    self._weak[listener] = owner
                except TypeError:
                    self._strong[listener] = owner

    def owner_of(self, listener: Any) -> int | None:
        with self._lock:
            return self._get(listener)

    def untag(self, listener: Any, owner: int) -> bool:
        """Drop the tag of ``listener`` if it is still owned by ``owner``."""

        with self._lock:
            if self._get(listener) != owner:
                return False
            self._discard(listener)
            return True

    def _get(self, listener: Any) -> int | None:
        try:
            owner = self._weak.get(listener)
        except TypeError:
            owner = None
        if owner is None:
            try:
                owner = self._strong.get(listener)
            except TypeError:
                owner = None
        return owner

    def _discard(self, listener: Any) -> None:
        try:
            self._weak.pop(listener, None)
        except TypeError:
            pass
        try:
            self._strong.pop(listener, None)
        except TypeError:
            pass

    def __len__(self) -> int:
        with self._lock:
            return len(self._weak) + len(self._strong)


TAGS = OwnershipTags()


def unwrap(entry: Any) -> Any:
    """Follow the wrapper chain of ``entry`` down to the caller's callable."""

    seen = set()
    while id(entry) not in seen:
        seen.add(id(entry))
        inner = getattr(entry, WRAPPED_ATTRIBUTE, None)
        if inner is None or not callable(inner):
            break
        entry = inner
    return entry


def resolve_owner(entry: Any, tags: OwnershipTags = TAGS) -> int | None:
    """Return the owner of ``entry``, looking through emitter wrappers."""

    seen = set()
    while entry is not None and id(entry) not in seen:
        seen.add(id(entry))
        owner = tags.owner_of(entry)
        if owner is not None:
            return owner
        inner = getattr(entry, WRAPPED_ATTRIBUTE, None)
        entry = inner if callable(inner) else None
    return None


def release(entry: Any, owner: int, tags: OwnershipTags = TAGS) -> bool:
    """Drop the tag found by :func:`resolve_owner` for ``entry``.

    Only succeeds when the resolved owner is ``owner``.
    """

    seen = set()
    while entry is not None and id(entry) not in seen:
        seen.add(id(entry))
        if tags.owner_of(entry) is not None:
            return tags.untag(entry, owner)
        inner = getattr(entry, WRAPPED_ATTRIBUTE, None)
        entry = inner if callable(inner) else None
    return False


__all__ = ["OwnershipTags", "TAGS", "WRAPPED_ATTRIBUTE", "release", "resolve_owner", "unwrap"]
