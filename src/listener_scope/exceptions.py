"""Custom exceptions raised by listener-scope."""


class ListenerScopeError(RuntimeError):
    """Base error for all listener scope related exceptions."""


class ConfigurationError(ListenerScopeError):
    """Raised when configuration values are invalid or missing."""


class ListenerError(ListenerScopeError, TypeError):
    """Raised by the event emitter when a listener is not callable."""
