"""Errors raised by the review engine and its collaborators."""


class ReviewError(Exception):
    """Base class for review errors."""


class NoCurrentItem(ReviewError):
    """A decision was requested after the session ran out of items."""


class NothingToUndo(ReviewError):
    """Undo was requested with no recorded decision."""


class SessionNotFinished(ReviewError):
    """A deletion batch was requested before every item was reviewed."""


class InvalidDecision(ReviewError):
    """A decision does not continue the log contiguously."""


class PersistenceWriteFailed(ReviewError):
    """A progress write did not reach durable storage."""


class LoadFailed(ReviewError):
    """Rendering a media item failed."""


class DeletionExecutionFailed(ReviewError):
    """The deletion gateway could not remove a batch."""


class ScopeNotFound(ReviewError):
    """No media exists for the requested scope."""


class SessionNotOpen(ReviewError):
    """No review session is open for the requested scope."""
