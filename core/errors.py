# core/errors.py


class ReadingTrackerError(Exception):
    """Base class for all errors raised by the reading tracker core."""


class ValidationError(ReadingTrackerError):
    """Malformed input, e.g. a rating outside 1-5."""


class NotFound(ReadingTrackerError):
    """A referenced user, book or favorite does not exist (or is not owned by the caller)."""


class AlreadyExists(ReadingTrackerError):
    """A user already has a favorite for the referenced book."""


class ExternalSourceError(ReadingTrackerError):
    """The bibliographic source was unreachable or answered with an error."""

    def __init__(self, message: str, external_id: str | None = None):
        super().__init__(message)
        self.external_id = external_id


class UniqueConstraintViolation(ReadingTrackerError):
    """An insert or update collided with a unique index."""

    def __init__(self, message: str, constraint: str | None = None):
        super().__init__(message)
        self.constraint = constraint
