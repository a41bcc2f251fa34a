"""
Tracker Error Taxonomy
Exceptions shared by the store, the fetcher and the backup codec.
"""


class TrackerError(Exception):
    """Base class for all channel tracker errors."""
    pass


class DuplicateChannelError(TrackerError):
    """Raised when adding a channel whose ID is already tracked."""
    pass


class NotFoundError(TrackerError):
    """Raised when a channel does not exist (locally or on YouTube)."""
    pass


class FetchError(TrackerError):
    """Base class for failures while fetching remote channel metrics."""
    pass


class TransportError(FetchError):
    """Network or API failure while talking to YouTube."""
    pass


class InvalidCredentialError(FetchError):
    """The API key was rejected by YouTube."""
    pass


class MalformedBackupError(TrackerError):
    """The backup document does not have the expected structure."""
    pass


class SourceUnavailableError(TrackerError):
    """The backup source could not be read."""
    pass
