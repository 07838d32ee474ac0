"""Scoped listener registration for shared event emitters."""

from .config import ScopeSettings, load_settings
from .events import EventEmitter
from .exceptions import ConfigurationError, ListenerError, ListenerScopeError
from .scope import ListenerScope, scope
from .tags import resolve_owner

__all__ = [
    "ConfigurationError",
    "EventEmitter",
    "ListenerError",
    "ListenerScope",
    "ListenerScopeError",
    "ScopeSettings",
    "load_settings",
    "resolve_owner",
    "scope",
]
