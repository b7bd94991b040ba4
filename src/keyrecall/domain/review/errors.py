"""
Error taxonomy for review scheduling.

Every error carries a stable ``code`` (the class name) so batch operations can
report failures as data instead of raising.
"""


class ReviewError(Exception):
    """Base class for all review scheduling errors."""

    @property
    def code(self) -> str:
        return type(self).__name__


class InvalidId(ReviewError, ValueError):
    """An empty or malformed shortcut id was supplied at initialization."""

    def __init__(self, shortcut_id: object):
        self.shortcut_id = shortcut_id
        super().__init__(f"Invalid shortcut id: {shortcut_id!r}")


class UnknownItem(ReviewError, KeyError):
    """An operation referenced a shortcut id that was never initialized."""

    def __init__(self, shortcut_id: str):
        self.shortcut_id = shortcut_id
        super().__init__(f"Shortcut {shortcut_id!r} is not tracked")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class InvalidRating(ReviewError, ValueError):
    """A rating token outside of again/hard/good/easy."""

    def __init__(self, token: object):
        self.token = token
        super().__init__(
            f"Invalid rating {token!r}; expected one of: again, hard, good, easy"
        )


class ResultNotInSession(ReviewError):
    """A completion result referenced an id absent from the session snapshot."""

    def __init__(self, shortcut_id: str, session_id: str):
        self.shortcut_id = shortcut_id
        self.session_id = session_id
        super().__init__(f"Shortcut {shortcut_id!r} is not part of session {session_id}")


class StorageError(ReviewError):
    """Persisted review state could not be read or written."""
