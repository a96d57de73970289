"""Exceptions raised by the event return explorer."""


class EventExplorerError(Exception):
    """Base exception for the explorer."""
    pass


class DatasetLoadError(EventExplorerError):
    """Raised when the event dataset is missing, unreadable, or malformed."""
    pass


class InvalidTransition(EventExplorerError):
    """Raised when an app-state transition is applied in the wrong state."""
    pass
