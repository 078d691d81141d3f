"""Exception hierarchy for fiction resolution, scraping and EPUB assembly."""


class Fic2EpubError(Exception):
    """Base exception for everything that can fail one book."""
    pass


class ResolutionError(Fic2EpubError):
    """Raised when a reference cannot be mapped to an adapter and URL."""
    pass


class FetchError(Fic2EpubError):
    """Raised when a page cannot be retrieved (network failure, bad status)."""

    def __init__(self, url, message):
        super().__init__(f"{message} ({url})")
        self.url = url


class VerificationError(Fic2EpubError):
    """Raised when a page was retrieved but its marker element is missing."""

    def __init__(self, url, message="Page did not load properly"):
        super().__init__(f"{message} ({url})")
        self.url = url


class RetryExhaustedError(Fic2EpubError):
    """Raised when a capped retry policy runs out of attempts."""

    def __init__(self, url, attempts, last_error=None):
        super().__init__(f"Gave up on {url} after {attempts} attempt(s): {last_error}")
        self.url = url
        self.attempts = attempts
        self.last_error = last_error


class MetadataError(Fic2EpubError):
    """Raised when fiction metadata cannot be extracted."""
    pass


class MissingTitleError(MetadataError):
    """Raised when the fiction page has no title, usually a bad id or a failed load."""
    pass


class ChapterListError(Fic2EpubError):
    """Raised when the chapter list cannot be retrieved."""
    pass


class CoverError(Fic2EpubError):
    """Raised when the cover image is malformed or of an unsupported type."""
    pass


class ArchiveError(Fic2EpubError):
    """Raised when the EPUB archive cannot be assembled or written."""
    pass


class ArchiveStateError(ArchiveError):
    """Raised when a builder operation is called out of order."""
    pass


class ArchiveWriteError(ArchiveError):
    """Raised when an entry collides with an existing one or cannot be written."""
    pass
