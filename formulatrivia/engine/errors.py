from __future__ import annotations

"""Domain errors raised by the level session engine and its collaborators."""


class TriviaError(Exception):
    """Base class for all Formula Trivia errors."""


class ConfigurationError(TriviaError):
    """Unknown level number or an invalid configuration value."""


class InvalidStateError(TriviaError):
    """An operation was called in a state that does not allow it."""
