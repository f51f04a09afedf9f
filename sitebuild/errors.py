"""Exception hierarchy shared by the build pipeline, CLI and HTTP layer."""


class SiteBuildError(Exception):
    """Base class for all sitebuild errors."""


class ConfigurationError(SiteBuildError):
    """Required settings (credentials, space id) are missing or inconsistent."""


class MissingMetadataError(SiteBuildError):
    """A content entry lacks the metadata or slug needed to interpret it.

    Raised per entry and caught by the batch loop, so a single malformed
    entry never aborts a build.
    """

    def __init__(self, message: str, entry_id: str = "") -> None:
        super().__init__(message)
        self.entry_id = entry_id


class ContentSourceError(SiteBuildError):
    """The CMS could not be reached or returned an unusable payload."""


class StyleFileWriteError(SiteBuildError):
    """The theme style side-channel file could not be written."""


class CacheError(SiteBuildError):
    """The cache artifact is missing, unreadable, or malformed."""
