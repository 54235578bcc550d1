"""Exception hierarchy for story extraction and storage"""


class NewsError(Exception):
    """Base class for all errors raised by this package."""

    pass


class ConfigError(NewsError):
    """Raised when a configuration file cannot be read or validated."""

    pass


class MaildirError(NewsError):
    """Raised when the Maildir tree cannot be enumerated."""

    pass


class EmailParseError(NewsError):
    """Raised when a message cannot be read as an email."""

    pass


class StoryExtractionError(NewsError):
    """Raised when the extraction service fails or returns unusable output."""

    pass


class ExtractionAbortedError(StoryExtractionError):
    """Raised when an in-flight extraction is abandoned by a timeout or cancellation."""

    pass


class StoryPersistenceError(NewsError):
    """Raised when a story file cannot be written or a directory cannot be accessed."""

    pass


class StoryDirectoryNotFound(StoryPersistenceError, FileNotFoundError):
    """Raised when the story directory does not exist."""

    pass


class InvalidFilenameError(NewsError, ValueError):
    """Raised when a caller supplied story filename is unsafe."""

    pass


class StoryNotFoundError(NewsError, FileNotFoundError):
    """Raised when a story file to save or unsave does not exist."""

    pass


class AlreadySavedError(NewsError, FileExistsError):
    """Raised when a story is already present in the saved directory."""

    pass
