"""Arcade exception hierarchy.

Centralised base classes so broad ``except Exception`` blocks can be
replaced with narrower catches and failures become easier to diagnose.
"""


class ArcadeError(Exception):
    """Root of all arcade domain exceptions."""


class SessionError(ArcadeError):
    """Errors while driving a session (scheduling, re-entrancy)."""


class InvalidTransitionError(SessionError):
    """A session phase transition that the state machine does not allow."""


class ConfigurationError(ArcadeError):
    """Invalid or missing configuration."""


class ReportError(ArcadeError):
    """A scoring report could not be delivered."""


class PersistenceError(ArcadeError):
    """Errors while loading or saving the best score."""
